"""Durable per-scope index status records."""

from __future__ import annotations

import logging
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field, ValidationError

from indexwright.utils.atomic import atomic_write_text
from indexwright.utils.paths import scope_file_stem

if TYPE_CHECKING:  # pragma: no cover
    from indexwright.app.ports.index_store import IndexStorePort

logger = logging.getLogger(__name__)

LOCK_SUFFIX = ".lock"


class IndexingStatus(str, Enum):
    """Lifecycle state of a scope's index."""

    IDLE = "idle"
    REBUILDING = "rebuilding"
    UPDATING = "updating"
    UNAVAILABLE = "unavailable"


class IndexInfo(BaseModel):
    """Status snapshot for one index scope.

    Only ``scope``, ``status`` and ``last_indexed_utc`` are persisted;
    ``document_count`` and ``fields`` are always read from the live store.
    """

    scope: str = Field(..., description="Index scope name")
    status: IndexingStatus = Field(IndexingStatus.IDLE, description="Current build state")
    last_indexed_utc: datetime | None = Field(
        None, description="Start time of the last finalized build (UTC)"
    )
    document_count: int = Field(0, description="Documents in the live store")
    fields: list[str] = Field(default_factory=list, description="Fields of the live store")

    def to_record(self) -> str:
        """Serialize the persisted subset of this snapshot as JSON."""
        return self.model_dump_json(include={"scope", "status", "last_indexed_utc"}, indent=2)

    @classmethod
    def from_record(cls, raw: str) -> "IndexInfo":
        info = cls.model_validate_json(raw)
        # Live fields are never trusted from disk.
        info.document_count = 0
        info.fields = []
        if info.status is IndexingStatus.UNAVAILABLE:
            info.status = IndexingStatus.IDLE
        return info


def status_file_path(status_dir: Path, scope: str, environment: str) -> Path:
    """Return the status record location for ``scope`` in ``environment``."""
    return status_dir / f"{scope_file_stem(scope, environment)}.json"


def lock_key_for(status_path: Path) -> str:
    """Return the lock key guarding the scope owning ``status_path``."""
    return f"{status_path}{LOCK_SUFFIX}"


class StatusStore:
    """Reads and writes :class:`IndexInfo` records under ``status_dir``."""

    def __init__(self, status_dir: Path, environment: str):
        self.status_dir = status_dir
        self.environment = environment

    def path_for(self, scope: str) -> Path:
        return status_file_path(self.status_dir, scope, self.environment)

    def lock_key(self, scope: str) -> str:
        return lock_key_for(self.path_for(scope))

    def read(self, scope: str, store: "IndexStorePort") -> IndexInfo:
        """Load the record for ``scope`` and overlay live store details.

        A missing record yields an idle default. A store that does not exist
        reports :attr:`IndexingStatus.UNAVAILABLE`.
        """
        info = self._load(scope)
        info.scope = scope

        if not store.exists:
            info.status = IndexingStatus.UNAVAILABLE
            info.document_count = 0
            info.fields = []
            return info

        info.document_count = store.document_count
        info.fields = list(store.get_all_fields())
        return info

    def write(self, info: IndexInfo) -> None:
        """Persist ``info``, replacing any previous record for its scope."""
        atomic_write_text(self.path_for(info.scope), info.to_record())

    def _load(self, scope: str) -> IndexInfo:
        path = self.path_for(scope)
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return IndexInfo(scope=scope)
        except UnicodeDecodeError as exc:
            return self._handle_corrupt_record(path, scope, exc)

        try:
            return IndexInfo.from_record(raw)
        except ValidationError as exc:
            return self._handle_corrupt_record(path, scope, exc)

    def _handle_corrupt_record(self, path: Path, scope: str, exc: Exception) -> IndexInfo:
        """Move an unreadable record aside and fall back to the default."""

        logger.warning(
            "Status record %s for scope '%s' is corrupted (%s); starting from defaults.",
            path,
            scope,
            exc,
        )

        backup_path = path.with_suffix(".corrupt")
        try:
            path.replace(backup_path)
        except OSError:
            logger.debug("Failed to back up corrupted status record %s", path)
        return IndexInfo(scope=scope)
