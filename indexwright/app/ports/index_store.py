"""Index store port interfaces for the write side of a search index."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol

from indexwright.index.operations import IndexDocument


class IndexStorePort(Protocol):
    """Port interface for one scope's index store.

    Adapters: Tantivy index directory, in-memory dictionary.

    Side effects: Reads/writes index data (offline).
    """

    @property
    def scope(self) -> str:
        ...

    @property
    def exists(self) -> bool:
        """True when the underlying index has been created."""
        ...

    @property
    def document_count(self) -> int:
        """Number of live documents (0 when the store does not exist)."""
        ...

    def create_if_not_exists(self) -> None:
        ...

    def delete(self) -> None:
        """Remove the whole store."""
        ...

    def delete_documents(self, ids: Iterable[str]) -> None:
        """Remove documents by id; unknown ids are ignored."""
        ...

    def save_documents(self, documents: Iterable[IndexDocument]) -> None:
        """Insert or replace documents keyed by their id."""
        ...

    def get_all_fields(self) -> list[str]:
        """Return the names of all fields defined in the store."""
        ...


class IndexProviderPort(Protocol):
    """Port interface resolving index stores and creating documents.

    Adapters: Tantivy, in-memory.
    """

    def get_index_store(self, scope: str) -> IndexStorePort:
        """Return the store for ``scope`` (which may not exist yet)."""
        ...

    def create_document(self, doc_id: str) -> IndexDocument:
        """Create an empty document understood by this provider's stores."""
        ...
