"""Tests for path helpers."""

from pathlib import Path

import pytest

from indexwright.utils.paths import find_files, scope_file_stem, slugify


def test_slugify():
    assert slugify("Produkte (Übersicht)") == "produkte-ubersicht"
    assert slugify("  --  ") == ""


def test_scope_file_stem_case_insensitive():
    assert scope_file_stem("Products", "prod") == scope_file_stem("products", "prod")
    assert scope_file_stem("products", "prod") != scope_file_stem("products", "staging")


def test_scope_file_stem_non_ascii_scope():
    stem = scope_file_stem("日本", "prod")

    assert stem.startswith("prod-")
    assert stem != scope_file_stem("中国", "prod")


def test_scope_file_stem_rejects_blank():
    with pytest.raises(ValueError):
        scope_file_stem(" ", "prod")


def test_find_files_patterns(temp_dir: Path):
    (temp_dir / "sub").mkdir()
    (temp_dir / "a.txt").write_text("a")
    (temp_dir / "sub" / "b.md").write_text("b")
    (temp_dir / "c.png").write_text("c")

    found = find_files(temp_dir, ["*.txt", "*.md"])

    assert found == [temp_dir / "a.txt", temp_dir / "sub" / "b.md"]
    assert find_files(temp_dir, ["*.md"], recursive=False) == []
    assert find_files(temp_dir / "missing") == []
