"""Lock port interface for per-scope mutual exclusion."""

from __future__ import annotations

from types import TracebackType
from typing import Protocol


class LockHandle(Protocol):
    """Handle returned by :meth:`LockPort.try_acquire`.

    A handle is truthy only when the lock was acquired. Releasing a falsy or
    already released handle is a no-op, so callers may always use it as a
    context manager.
    """

    def __bool__(self) -> bool:
        ...

    def release(self) -> None:
        ...

    def __enter__(self) -> "LockHandle":
        ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        ...


class LockPort(Protocol):
    """Port interface for acquiring exclusive locks by key.

    Adapter: fcntl lock files.

    Side effects: Creates lock files (offline).
    """

    def try_acquire(self, key: str) -> LockHandle:
        """Attempt to acquire ``key`` without blocking.

        Args:
            key: Lock key (a lock file path for file-based adapters)

        Returns:
            Handle that is truthy when the lock is held
        """
        ...
