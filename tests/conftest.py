"""Pytest configuration and fixtures."""

import gc
import shutil
import tempfile
from collections.abc import Callable, Generator, Iterator, Sequence
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from indexwright.app import CollectorRegistry, IndexingService
from indexwright.app.adapters import FileLockAdapter, InMemoryIndexProvider
from indexwright.audit.ledger import AuditLedger
from indexwright.config import Settings
from indexwright.index import (
    DocumentFactory,
    IndexOperation,
    Segment,
    StatusStore,
)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    tmpdir = tempfile.mkdtemp()
    try:
        yield Path(tmpdir)
    finally:
        # Force garbage collection to release any file handles
        gc.collect()
        shutil.rmtree(tmpdir, ignore_errors=True)


@pytest.fixture
def override_settings(temp_dir: Path) -> Generator[Settings, None, None]:
    """Provide isolated indexwright settings scoped to tests."""

    import indexwright.config as config_module

    original_settings = getattr(config_module, "_settings", None)

    data_dir = temp_dir / "appdata"
    data_dir.mkdir(parents=True, exist_ok=True)

    settings = config_module.Settings(
        data_dir=data_dir,
        environment_identifier="test",
        audit_enabled=True,
    )

    config_module._settings = settings

    try:
        yield settings
    finally:
        config_module._settings = original_settings


class StaticCollector:
    """Collector replaying a fixed list of segments.

    Each segment is a list of ``(kind, doc_id)`` tuples where ``kind`` is
    ``"index"`` or ``"delete"``. Calls to :meth:`collect` are recorded.
    """

    def __init__(self, scope: str, segments: Sequence[Sequence[tuple[str, str]]] = ()):
        self._scope = scope
        self.segments = [list(segment) for segment in segments]
        self.calls: list[datetime | None] = []
        self.before_segment: Callable[[int], None] | None = None

    @property
    def scope(self) -> str:
        return self._scope

    def collect(
        self, since_utc: datetime | None, create_document: DocumentFactory
    ) -> Iterator[Segment]:
        self.calls.append(since_utc)
        return self._generate(create_document)

    def _generate(self, create_document: DocumentFactory) -> Iterator[Segment]:
        for number, planned in enumerate(self.segments):
            if self.before_segment is not None:
                self.before_segment(number)
            segment: Segment = []
            for kind, doc_id in planned:
                document = create_document(doc_id)
                if kind == "index":
                    document.add("title", f"Title of {doc_id}")
                    segment.append(IndexOperation.index(document))
                else:
                    segment.append(IndexOperation.delete(document))
            yield segment


class SteppingClock:
    """Clock returning increasing UTC timestamps one second apart."""

    def __init__(self, start: datetime | None = None):
        self.current = start or datetime(2026, 1, 1, 12, 0, tzinfo=UTC)
        self.issued: list[datetime] = []

    def __call__(self) -> datetime:
        value = self.current
        self.issued.append(value)
        self.current = value + timedelta(seconds=1)
        return value


@pytest.fixture
def clock() -> SteppingClock:
    return SteppingClock()


@pytest.fixture
def provider() -> InMemoryIndexProvider:
    return InMemoryIndexProvider()


@pytest.fixture
def status_store(temp_dir: Path) -> StatusStore:
    return StatusStore(temp_dir / "indexing", "test")


@pytest.fixture
def make_service(
    temp_dir: Path,
    provider: InMemoryIndexProvider,
    status_store: StatusStore,
    clock: SteppingClock,
) -> Callable[..., IndexingService]:
    """Factory building an IndexingService around in-memory stores."""

    def _make(
        *collectors: StaticCollector,
        with_provider: bool = True,
        ledger: AuditLedger | None = None,
    ) -> IndexingService:
        return IndexingService(
            provider=provider if with_provider else None,
            collectors=CollectorRegistry(collectors),
            lock_port=FileLockAdapter(),
            status_store=status_store,
            ledger_port=ledger,
            clock=clock,
        )

    return _make


@pytest.fixture
def collector_factory() -> type[StaticCollector]:
    """Expose :class:`StaticCollector` to tests."""
    return StaticCollector
