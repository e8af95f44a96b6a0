"""Index build orchestration.

Builds run synchronously on the caller's thread. Each scope is guarded by its
own lock; a second build for a busy scope is rejected rather than queued.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from indexwright.app.ports import (
    IndexCollectorPort,
    IndexProviderPort,
    IndexStorePort,
    LedgerPort,
    LockPort,
)
from indexwright.index.operations import IndexOperationType, Segment
from indexwright.index.status import IndexInfo, IndexingStatus, StatusStore

logger = logging.getLogger(__name__)


class ScopeNotFoundError(ValueError):
    """Raised when no collector is registered for the requested scope."""

    def __init__(self, scope: str) -> None:
        super().__init__(f"A collector for indexing scope '{scope}' does not exist.")
        self.scope = scope


class BuildMode(str, Enum):
    REBUILD = "rebuild"
    UPDATE = "update"


class BuildOutcome(str, Enum):
    """How a build request ended.

    Store failures are not an outcome: they propagate to the caller after the
    status record has been finalized.
    """

    COMPLETED = "completed"
    CANCELLED = "cancelled"
    BUSY = "busy"
    SKIPPED = "skipped"


class DeleteOutcome(str, Enum):
    DELETED = "deleted"
    NOT_FOUND = "not_found"
    BUSY = "busy"
    SKIPPED = "skipped"


class BuildProgress(BaseModel):
    """Counters reported after each applied segment."""

    scope: str
    segments_applied: int = 0
    documents_indexed: int = 0
    documents_deleted: int = 0


class BuildReport(BuildProgress):
    """Summary of a rebuild or update request."""

    mode: BuildMode
    outcome: BuildOutcome = BuildOutcome.COMPLETED
    started_on_utc: datetime | None = Field(
        None, description="Build start; becomes the scope's last_indexed_utc"
    )
    finished_on_utc: datetime | None = None

    def progress(self) -> BuildProgress:
        return BuildProgress(
            scope=self.scope,
            segments_applied=self.segments_applied,
            documents_indexed=self.documents_indexed,
            documents_deleted=self.documents_deleted,
        )


ProgressCallback = Callable[[BuildProgress], None]


class CancellationToken:
    """Cooperative cancellation flag checked between segments."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()


class CollectorRegistry:
    """Collectors keyed by scope name, matched case-insensitively."""

    def __init__(self, collectors: Iterable[IndexCollectorPort] = ()) -> None:
        self._collectors: dict[str, IndexCollectorPort] = {}
        for collector in collectors:
            self.register(collector)

    def register(self, collector: IndexCollectorPort) -> None:
        key = collector.scope.casefold()
        if key in self._collectors:
            raise ValueError(f"A collector for scope '{collector.scope}' is already registered.")
        self._collectors[key] = collector

    def get(self, scope: str) -> IndexCollectorPort | None:
        return self._collectors.get(scope.casefold())

    def scopes(self) -> list[str]:
        return [collector.scope for collector in self._collectors.values()]

    def __len__(self) -> int:
        return len(self._collectors)


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _require_scope(scope: str) -> None:
    if not scope or not scope.strip():
        raise ValueError("Scope must be a non-empty string.")


class IndexingService:
    """Builds, updates and deletes per-scope indexes.

    All side effects go through ports: the index provider for the stores, the
    collectors for documents, the lock port for exclusion and the status store
    for the durable build state.
    """

    def __init__(
        self,
        *,
        provider: IndexProviderPort | None,
        collectors: CollectorRegistry,
        lock_port: LockPort,
        status_store: StatusStore,
        ledger_port: LedgerPort | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        """Initialize indexing service.

        Args:
            provider: Index store provider, or None when indexing is disabled
            collectors: Registered collectors, one per scope
            lock_port: Lock adapter used to serialize work per scope
            status_store: Durable status records
            ledger_port: Optional audit ledger recording each build
            clock: Source of UTC timestamps
        """
        self.provider = provider
        self.collectors = collectors
        self.lock_port = lock_port
        self.status_store = status_store
        self.ledger = ledger_port
        self._clock = clock

    def has_provider(self) -> bool:
        return self.provider is not None

    def enumerate_scopes(self) -> list[str]:
        return self.collectors.scopes()

    def rebuild(
        self,
        scope: str,
        *,
        cancellation: CancellationToken | None = None,
        progress: ProgressCallback | None = None,
    ) -> BuildReport:
        """Drop the scope's index and rebuild it from all collected documents."""
        return self._build(scope, BuildMode.REBUILD, cancellation, progress)

    def update(
        self,
        scope: str,
        *,
        cancellation: CancellationToken | None = None,
        progress: ProgressCallback | None = None,
    ) -> BuildReport:
        """Apply the changes collected since the scope's last build."""
        return self._build(scope, BuildMode.UPDATE, cancellation, progress)

    def delete_index(self, scope: str) -> DeleteOutcome:
        """Remove the scope's index store.

        The status record is left in place; reads report the scope as
        unavailable until it is rebuilt.
        """
        _require_scope(scope)

        if self.provider is None:
            return DeleteOutcome.SKIPPED

        with self.lock_port.try_acquire(self.status_store.lock_key(scope)) as lock:
            if not lock:
                logger.info("Could not delete index '%s' because it is in use.", scope)
                return DeleteOutcome.BUSY

            store = self.provider.get_index_store(scope)
            if not store.exists:
                return DeleteOutcome.NOT_FOUND

            store.delete()

        logger.info("Deleted index '%s'", scope)
        self._log("index_delete", scope, {})
        return DeleteOutcome.DELETED

    def get_index_info(self, scope: str) -> IndexInfo | None:
        """Return the status snapshot for ``scope``, or None without a provider."""
        _require_scope(scope)

        if self.provider is None:
            return None

        collector = self.collectors.get(scope)
        name = collector.scope if collector is not None else scope
        return self.status_store.read(name, self.provider.get_index_store(name))

    def _build(
        self,
        scope: str,
        mode: BuildMode,
        cancellation: CancellationToken | None,
        progress: ProgressCallback | None,
    ) -> BuildReport:
        _require_scope(scope)

        if self.provider is None:
            logger.debug("No index provider configured; skipping %s of '%s'", mode.value, scope)
            return BuildReport(scope=scope, mode=mode, outcome=BuildOutcome.SKIPPED)

        collector = self.collectors.get(scope)
        if collector is None:
            raise ScopeNotFoundError(scope)

        scope = collector.scope

        with self.lock_port.try_acquire(self.status_store.lock_key(scope)) as lock:
            if not lock:
                logger.info("Could not build index '%s' because it is already in use.", scope)
                return BuildReport(scope=scope, mode=mode, outcome=BuildOutcome.BUSY)

            return self._run_locked(collector, self.provider, mode, cancellation, progress)

    def _run_locked(
        self,
        collector: IndexCollectorPort,
        provider: IndexProviderPort,
        mode: BuildMode,
        cancellation: CancellationToken | None,
        progress: ProgressCallback | None,
    ) -> BuildReport:
        scope = collector.scope
        rebuild = mode is BuildMode.REBUILD

        store = provider.get_index_store(scope)
        info = self.status_store.read(scope, store)
        started_on_utc = self._clock()
        report = BuildReport(scope=scope, mode=mode, started_on_utc=started_on_utc)

        info.status = IndexingStatus.REBUILDING if rebuild else IndexingStatus.UPDATING
        self.status_store.write(info)
        logger.info("Starting %s of index '%s'", mode.value, scope)

        failed = False
        try:
            if rebuild and store.exists:
                store.delete()

            store.create_if_not_exists()

            since_utc = None if rebuild else info.last_indexed_utc
            segments = iter(collector.collect(since_utc, provider.create_document))
            try:
                while True:
                    if cancellation is not None and cancellation.is_cancelled:
                        logger.info("Cancelled %s of index '%s'", mode.value, scope)
                        report.outcome = BuildOutcome.CANCELLED
                        break

                    segment = next(segments, None)
                    if segment is None:
                        break

                    self._apply_segment(store, segment, rebuild, report)
                    if progress is not None:
                        progress(report.progress())
            finally:
                close = getattr(segments, "close", None)
                if close is not None:
                    close()
        except Exception:
            failed = True
            logger.exception("Failed to %s index '%s'", mode.value, scope)
            raise
        finally:
            # Runs on every exit path, so failed builds also advance last_indexed_utc.
            info.status = IndexingStatus.IDLE
            info.last_indexed_utc = started_on_utc
            self.status_store.write(info)
            report.finished_on_utc = self._clock()
            self._log(
                f"index_{mode.value}",
                scope,
                {
                    "outcome": "failed" if failed else report.outcome.value,
                    "started_on_utc": started_on_utc.isoformat(),
                    "segments_applied": report.segments_applied,
                    "documents_indexed": report.documents_indexed,
                    "documents_deleted": report.documents_deleted,
                },
            )

        logger.info(
            "Finished %s of index '%s': %d segments, %d indexed, %d deleted",
            mode.value,
            scope,
            report.segments_applied,
            report.documents_indexed,
            report.documents_deleted,
        )
        return report

    def _apply_segment(
        self,
        store: IndexStorePort,
        segment: Segment,
        rebuild: bool,
        report: BuildReport,
    ) -> None:
        # A rebuilt store starts empty, so deletions carry no meaning there.
        if not rebuild:
            to_delete = [
                operation.document.id
                for operation in segment
                if operation.operation_type is IndexOperationType.DELETE
            ]
            if to_delete:
                store.delete_documents(to_delete)
                report.documents_deleted += len(to_delete)

        to_index = [
            operation.document
            for operation in segment
            if operation.operation_type is IndexOperationType.INDEX
        ]
        if to_index:
            store.save_documents(to_index)
            report.documents_indexed += len(to_index)

        report.segments_applied += 1
        logger.debug(
            "Applied segment %d to index '%s' (%d operations)",
            report.segments_applied,
            report.scope,
            len(segment),
        )

    def _log(self, operation: str, scope: str, args: dict[str, Any]) -> None:
        if self.ledger is None:
            return
        try:
            self.ledger.log(operation, scope, args)
        except OSError as exc:
            logger.warning(
                "Failed to record %s for '%s' in audit ledger: %s", operation, scope, exc
            )
