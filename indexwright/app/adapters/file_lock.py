"""Lock file adapter built on ``fcntl.flock``."""

from __future__ import annotations

import fcntl
import logging
import os
from pathlib import Path
from types import TracebackType

from indexwright.app.ports import LockHandle, LockPort

logger = logging.getLogger(__name__)


class FileLock(LockHandle):
    """Exclusive advisory lock held on an open lock file.

    The kernel drops ``flock`` locks when the holding process dies, so a
    crashed build never leaves its scope locked.
    """

    def __init__(self, path: Path, fd: int | None) -> None:
        self.path = path
        self._fd = fd

    def __bool__(self) -> bool:
        return self._fd is not None

    def __repr__(self) -> str:
        state = "held" if self else "not held"
        return f"FileLock({str(self.path)!r}, {state})"

    def release(self) -> None:
        fd, self._fd = self._fd, None
        if fd is None:
            return
        try:
            fcntl.flock(fd, fcntl.LOCK_UN)
        finally:
            os.close(fd)

    def __enter__(self) -> "FileLock":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.release()


class FileLockAdapter(LockPort):
    """Adapter that treats lock keys as lock file paths."""

    def try_acquire(self, key: str) -> FileLock:
        path = Path(key)
        path.parent.mkdir(parents=True, exist_ok=True)

        fd = os.open(path, os.O_RDWR | os.O_CREAT, 0o644)
        try:
            fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
        except BlockingIOError:
            os.close(fd)
            logger.debug("Lock %s is held by another owner", path)
            return FileLock(path, None)
        except BaseException:
            os.close(fd)
            raise

        return FileLock(path, fd)
