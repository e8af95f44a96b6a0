"""Concrete adapters wiring application ports to built-in implementations."""

from __future__ import annotations

from .file_lock import FileLock, FileLockAdapter
from .filesystem_collector import FileSystemCollector
from .memory_store import InMemoryIndexProvider, InMemoryIndexStore
from .tantivy_store import TantivyIndexProvider, TantivyIndexStore

__all__ = [
    "FileLock",
    "FileLockAdapter",
    "FileSystemCollector",
    "InMemoryIndexProvider",
    "InMemoryIndexStore",
    "TantivyIndexProvider",
    "TantivyIndexStore",
]
