"""Application bootstrap wiring ports, adapters, and services."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from indexwright.app import CollectorRegistry, IndexingService
from indexwright.app.adapters import (
    FileLockAdapter,
    FileSystemCollector,
    InMemoryIndexProvider,
    TantivyIndexProvider,
)
from indexwright.app.ports import IndexProviderPort, LedgerPort, LockPort
from indexwright.audit.ledger import AuditLedger
from indexwright.config import Settings, get_settings
from indexwright.index.status import StatusStore
from indexwright.utils.paths import scope_file_stem

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ApplicationContainer:
    """Aggregates wired services and adapters for the CLI layer."""

    settings: Settings
    indexing_service: IndexingService
    provider: IndexProviderPort | None
    collectors: CollectorRegistry
    lock_port: LockPort
    status_store: StatusStore
    ledger: AuditLedger | None


def create_index_provider(settings: Settings) -> IndexProviderPort | None:
    """Return the configured index provider, or None when indexing is disabled."""

    if settings.index_backend == "none":
        return None

    if settings.index_backend == "memory":
        return InMemoryIndexProvider()

    return TantivyIndexProvider(
        settings.get_index_dir(),
        environment=settings.environment_identifier,
        text_fields=settings.index_fields,
        heap_size=settings.writer_heap_size,
    )


def create_collectors(settings: Settings) -> CollectorRegistry:
    """Register one filesystem collector per configured scope."""

    registry = CollectorRegistry()
    state_dir = settings.get_collector_state_dir()

    for scope, root in settings.collectors.items():
        manifest_name = f"{scope_file_stem(scope, settings.environment_identifier)}.jsonl"
        registry.register(
            FileSystemCollector(
                scope,
                root.expanduser(),
                manifest_path=state_dir / manifest_name,
                patterns=settings.collector_patterns,
                segment_size=settings.segment_size,
            )
        )

    logger.debug("Registered collectors for scopes: %s", ", ".join(registry.scopes()) or "-")
    return registry


def _create_ledger(settings: Settings) -> AuditLedger | None:
    if not settings.audit_enabled:
        return None
    return AuditLedger(settings.get_audit_path())


def bootstrap_application(settings: Settings | None = None) -> ApplicationContainer:
    """Instantiate adapters and services for CLI consumption."""

    active_settings = settings or get_settings()

    provider = create_index_provider(active_settings)
    collectors = create_collectors(active_settings)
    lock_port = FileLockAdapter()
    status_store = StatusStore(
        active_settings.get_status_dir(),
        active_settings.environment_identifier,
    )
    ledger = _create_ledger(active_settings)
    ledger_port: LedgerPort | None = ledger

    indexing_service = IndexingService(
        provider=provider,
        collectors=collectors,
        lock_port=lock_port,
        status_store=status_store,
        ledger_port=ledger_port,
    )

    return ApplicationContainer(
        settings=active_settings,
        indexing_service=indexing_service,
        provider=provider,
        collectors=collectors,
        lock_port=lock_port,
        status_store=status_store,
        ledger=ledger,
    )
