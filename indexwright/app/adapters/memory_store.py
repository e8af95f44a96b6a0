"""Dictionary-backed index store provider."""

from __future__ import annotations

import threading
from collections.abc import Iterable

from indexwright.app.ports import IndexProviderPort, IndexStorePort
from indexwright.index.operations import IndexDocument


class InMemoryIndexStore(IndexStorePort):
    """Index store keeping documents in a dict; lost when the process exits."""

    def __init__(self, scope: str) -> None:
        self._scope = scope
        self._documents: dict[str, IndexDocument] | None = None
        self._lock = threading.Lock()

    @property
    def scope(self) -> str:
        return self._scope

    @property
    def exists(self) -> bool:
        return self._documents is not None

    @property
    def document_count(self) -> int:
        with self._lock:
            return len(self._documents) if self._documents is not None else 0

    def create_if_not_exists(self) -> None:
        with self._lock:
            if self._documents is None:
                self._documents = {}

    def delete(self) -> None:
        with self._lock:
            self._documents = None

    def delete_documents(self, ids: Iterable[str]) -> None:
        with self._lock:
            documents = self._require_documents()
            for doc_id in ids:
                documents.pop(doc_id, None)

    def save_documents(self, documents: Iterable[IndexDocument]) -> None:
        with self._lock:
            stored = self._require_documents()
            for document in documents:
                stored[document.id] = document

    def get_all_fields(self) -> list[str]:
        with self._lock:
            if not self._documents:
                return []
            names: set[str] = {"id"}
            for document in self._documents.values():
                names.update(document.fields)
            return sorted(names)

    def get_document(self, doc_id: str) -> IndexDocument | None:
        with self._lock:
            if self._documents is None:
                return None
            return self._documents.get(doc_id)

    def document_ids(self) -> set[str]:
        with self._lock:
            return set(self._documents or ())

    def _require_documents(self) -> dict[str, IndexDocument]:
        if self._documents is None:
            raise RuntimeError(f"Index store for scope '{self._scope}' does not exist.")
        return self._documents


class InMemoryIndexProvider(IndexProviderPort):
    """Provider handing out one :class:`InMemoryIndexStore` per scope."""

    def __init__(self) -> None:
        self._stores: dict[str, InMemoryIndexStore] = {}
        self._lock = threading.Lock()

    def get_index_store(self, scope: str) -> InMemoryIndexStore:
        key = scope.casefold()
        with self._lock:
            store = self._stores.get(key)
            if store is None:
                store = InMemoryIndexStore(scope)
                self._stores[key] = store
            return store

    def create_document(self, doc_id: str) -> IndexDocument:
        return IndexDocument(id=doc_id)
