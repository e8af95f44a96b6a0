"""Tests for the filesystem collector."""

import os
from datetime import UTC, datetime
from pathlib import Path

import pytest

from indexwright.app.adapters import FileSystemCollector
from indexwright.index import IndexDocument, IndexOperationType


def _write(path: Path, text: str, mtime: datetime | None = None) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    if mtime is not None:
        stamp = mtime.timestamp()
        os.utime(path, (stamp, stamp))
    return path


def _flatten(segments):
    return [(op.operation_type, op.document.id) for segment in segments for op in segment]


@pytest.fixture
def docs_root(temp_dir: Path) -> Path:
    root = temp_dir / "docs"
    root.mkdir()
    return root


@pytest.fixture
def collector(temp_dir: Path, docs_root: Path) -> FileSystemCollector:
    return FileSystemCollector(
        "articles",
        docs_root,
        manifest_path=temp_dir / "state" / "articles.jsonl",
        segment_size=2,
    )


def test_full_pass_indexes_matching_files(collector: FileSystemCollector, docs_root: Path):
    """Test that every matching file becomes an index operation."""
    _write(docs_root / "intro.md", "# Intro")
    _write(docs_root / "guides" / "setup.txt", "Install it.")
    _write(docs_root / "image.png", "binary")

    segments = list(collector.collect(None, IndexDocument))

    assert _flatten(segments) == [
        (IndexOperationType.INDEX, "guides/setup.txt"),
        (IndexOperationType.INDEX, "intro.md"),
    ]
    document = segments[0][0].document
    assert document.fields == {
        "title": "setup",
        "body": "Install it.",
        "path": "guides/setup.txt",
    }


def test_segments_respect_size(collector: FileSystemCollector, docs_root: Path):
    """Test that operations are grouped by the configured segment size."""
    for i in range(5):
        _write(docs_root / f"doc{i}.txt", str(i))

    segments = list(collector.collect(None, IndexDocument))

    assert [len(segment) for segment in segments] == [2, 2, 1]


def test_incremental_pass_only_changed_files(collector: FileSystemCollector, docs_root: Path):
    """Test that known files older than the cutoff are skipped."""
    cutoff = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)
    _write(docs_root / "old.txt", "old", mtime=datetime(2025, 12, 31, tzinfo=UTC))
    new = _write(docs_root / "new.txt", "new", mtime=datetime(2025, 12, 31, tzinfo=UTC))
    list(collector.collect(None, IndexDocument))

    stamp = datetime(2026, 1, 2, tzinfo=UTC).timestamp()
    os.utime(new, (stamp, stamp))
    segments = list(collector.collect(cutoff, IndexDocument))

    assert _flatten(segments) == [(IndexOperationType.INDEX, "new.txt")]


def test_renamed_file_indexed_under_new_id(collector: FileSystemCollector, docs_root: Path):
    """Test that a moved file keeps its old mtime but is indexed at its new path."""
    cutoff = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)
    original = _write(docs_root / "a.txt", "a", mtime=datetime(2025, 12, 31, tzinfo=UTC))
    list(collector.collect(None, IndexDocument))

    (docs_root / "sub").mkdir()
    original.rename(docs_root / "sub" / "a.txt")
    segments = list(collector.collect(cutoff, IndexDocument))

    assert _flatten(segments) == [
        (IndexOperationType.DELETE, "a.txt"),
        (IndexOperationType.INDEX, "sub/a.txt"),
    ]


def test_copied_file_with_preserved_mtime_indexed(
    collector: FileSystemCollector, docs_root: Path
):
    """Test that a file arriving with an old mtime is still picked up."""
    cutoff = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)
    _write(docs_root / "known.txt", "known", mtime=datetime(2025, 12, 1, tzinfo=UTC))
    list(collector.collect(None, IndexDocument))

    _write(docs_root / "restored.txt", "restored", mtime=datetime(2025, 6, 1, tzinfo=UTC))
    segments = list(collector.collect(cutoff, IndexDocument))

    assert _flatten(segments) == [(IndexOperationType.INDEX, "restored.txt")]


def test_removed_files_become_deletes_first(collector: FileSystemCollector, docs_root: Path):
    """Test that files gone since the last pass are deleted before additions."""
    _write(docs_root / "keep.txt", "keep")
    gone = _write(docs_root / "gone.txt", "gone")
    list(collector.collect(None, IndexDocument))

    gone.unlink()
    _write(docs_root / "added.txt", "added")
    segments = list(collector.collect(None, IndexDocument))

    assert _flatten(segments) == [
        (IndexOperationType.DELETE, "gone.txt"),
        (IndexOperationType.INDEX, "added.txt"),
        (IndexOperationType.INDEX, "keep.txt"),
    ]
    assert all(op.operation_type is IndexOperationType.DELETE for op in segments[0])


def test_manifest_written_after_complete_pass(
    collector: FileSystemCollector, docs_root: Path
):
    """Test that the manifest lists the documents of the last finished pass."""
    _write(docs_root / "a.txt", "a")
    _write(docs_root / "b.txt", "b")

    list(collector.collect(None, IndexDocument))

    lines = collector.manifest_path.read_text(encoding="utf-8").splitlines()
    assert lines == ['{"id":"a.txt"}', '{"id":"b.txt"}']


def test_abandoned_pass_keeps_previous_manifest(
    collector: FileSystemCollector, docs_root: Path
):
    """Test that deletions are reported again when a pass is not finished."""
    gone = _write(docs_root / "gone.txt", "gone")
    list(collector.collect(None, IndexDocument))
    gone.unlink()
    for i in range(4):
        _write(docs_root / f"doc{i}.txt", str(i))

    partial = collector.collect(None, IndexDocument)
    next(partial)
    partial.close()

    segments = list(collector.collect(None, IndexDocument))
    assert (IndexOperationType.DELETE, "gone.txt") in _flatten(segments)


def test_missing_root_raises(temp_dir: Path):
    """Test that a missing document root is an error."""
    collector = FileSystemCollector(
        "articles", temp_dir / "missing", manifest_path=temp_dir / "m.jsonl"
    )

    with pytest.raises(FileNotFoundError):
        list(collector.collect(None, IndexDocument))


def test_invalid_segment_size_rejected(temp_dir: Path):
    """Test that collectors require a positive segment size."""
    with pytest.raises(ValueError):
        FileSystemCollector("articles", temp_dir, manifest_path=temp_dir / "m.jsonl", segment_size=0)
