"""Collector turning a directory of text documents into index operations."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Sequence
from datetime import UTC, datetime
from pathlib import Path

from indexwright.app.ports import IndexCollectorPort
from indexwright.index.operations import (
    DocumentFactory,
    IndexDocument,
    IndexOperation,
    Segment,
    iter_segments,
)
from indexwright.utils.atomic import atomic_write_jsonl, read_jsonl
from indexwright.utils.paths import find_files

logger = logging.getLogger(__name__)


class FileSystemCollector(IndexCollectorPort):
    """Collect documents from files below ``root``.

    Document ids are POSIX paths relative to ``root``. Files modified after the
    cutoff, and files not listed in the previous manifest, become index
    operations. Ids recorded in the manifest of the previous
    complete pass that no longer exist on disk become delete operations, which
    are emitted before any additions.

    The manifest is only rewritten once a pass has been consumed completely, so
    an aborted build reports the same deletions again next time.
    """

    def __init__(
        self,
        scope: str,
        root: Path,
        *,
        manifest_path: Path,
        patterns: Sequence[str] = ("*.txt", "*.md"),
        segment_size: int = 500,
    ) -> None:
        if segment_size < 1:
            raise ValueError("segment_size must be at least 1")
        self._scope = scope
        self.root = root
        self.manifest_path = manifest_path
        self.patterns = tuple(patterns)
        self.segment_size = segment_size

    @property
    def scope(self) -> str:
        return self._scope

    def collect(
        self,
        since_utc: datetime | None,
        create_document: DocumentFactory,
    ) -> Iterator[Segment]:
        if not self.root.is_dir():
            raise FileNotFoundError(f"Collector root not found: {self.root}")

        files = {self._doc_id(path): path for path in find_files(self.root, self.patterns)}
        previous_ids = self._load_manifest()

        removed = sorted(previous_ids - files.keys())
        if removed:
            logger.debug(
                "Scope '%s': %d documents removed since last pass", self._scope, len(removed)
            )
            yield from iter_segments(
                (IndexOperation.delete(create_document(doc_id)) for doc_id in removed),
                self.segment_size,
            )

        # Ids missing from the previous manifest are indexed regardless of mtime
        changed = (
            (doc_id, path)
            for doc_id, path in sorted(files.items())
            if since_utc is None
            or doc_id not in previous_ids
            or _modified_utc(path) > since_utc
        )
        yield from iter_segments(
            (
                IndexOperation.index(self._load(doc_id, path, create_document))
                for doc_id, path in changed
            ),
            self.segment_size,
        )

        self._save_manifest(files)

    def _doc_id(self, path: Path) -> str:
        return path.relative_to(self.root).as_posix()

    def _load(
        self, doc_id: str, path: Path, create_document: DocumentFactory
    ) -> IndexDocument:
        document = create_document(doc_id)
        document.add("title", path.stem)
        document.add("body", path.read_text(encoding="utf-8", errors="replace"))
        document.add("path", doc_id)
        return document

    def _load_manifest(self) -> set[str]:
        if not self.manifest_path.exists():
            return set()
        return {record["id"] for record in read_jsonl(self.manifest_path) if "id" in record}

    def _save_manifest(self, files: dict[str, Path]) -> None:
        records: Iterable[dict[str, str]] = ({"id": doc_id} for doc_id in sorted(files))
        count = atomic_write_jsonl(self.manifest_path, records)
        logger.debug("Scope '%s': manifest now lists %d documents", self._scope, count)


def _modified_utc(path: Path) -> datetime:
    return datetime.fromtimestamp(path.stat().st_mtime, UTC)
