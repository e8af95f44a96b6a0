"""Path utilities for directory and file operations."""

from __future__ import annotations

import os
import re
import unicodedata
from collections.abc import Iterable
from pathlib import Path

from indexwright.utils.hashing import short_digest

_UNSAFE_CHARS = re.compile(r"[^a-z0-9]+")


def get_xdg_data_home() -> Path:
    """Get XDG_DATA_HOME directory, defaulting to ~/.local/share."""
    xdg_data = os.getenv("XDG_DATA_HOME")
    if xdg_data:
        return Path(xdg_data)
    return Path.home() / ".local" / "share"


def find_files(
    root: Path,
    patterns: Iterable[str] = ("*",),
    recursive: bool = True,
    follow_symlinks: bool = False,
) -> list[Path]:
    """Find files matching any of ``patterns`` in directory."""
    if not root.is_dir():
        return []

    found: set[Path] = set()
    for pattern in patterns:
        matches = root.rglob(pattern) if recursive else root.glob(pattern)
        for path in matches:
            if path.is_symlink() and not follow_symlinks:
                continue

            if path.is_file():
                found.add(path)

    return sorted(found)


def slugify(value: str) -> str:
    """Reduce ``value`` to a lowercase ASCII slug made of ``[a-z0-9-]``.

    Examples:
        >>> slugify("Produkte (Übersicht)")
        'produkte-ubersicht'
    """
    normalized = unicodedata.normalize("NFKD", value)
    ascii_only = normalized.encode("ascii", "ignore").decode("ascii").lower()
    return _UNSAFE_CHARS.sub("-", ascii_only).strip("-")


def scope_file_stem(scope: str, environment: str) -> str:
    """Build the file-system-safe stem identifying ``scope`` in ``environment``.

    Scope names compare case-insensitively, so ``"Products"`` and ``"products"``
    map to the same stem. The digest suffix keeps scopes apart whose slugs would
    otherwise coincide (``"a b"`` vs ``"a-b"``).
    """
    if not scope or not scope.strip():
        raise ValueError("Scope must be a non-empty string.")

    key = f"{scope.strip().casefold()}\x00{environment}"
    slug = slugify(f"{scope}-{environment}") or "scope"
    return f"{slug}-{short_digest(key)}"
