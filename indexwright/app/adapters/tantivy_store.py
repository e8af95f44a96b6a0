"""Tantivy-backed index stores, one index directory per scope."""

from __future__ import annotations

import json
import logging
import shutil
from collections.abc import Iterable, Iterator, Sequence
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import tantivy

from indexwright.app.ports import IndexProviderPort, IndexStorePort
from indexwright.index.operations import IndexDocument
from indexwright.utils.paths import scope_file_stem

logger = logging.getLogger(__name__)

ID_FIELD = "id"
META_FILE = "meta.json"


def create_schema(text_fields: Sequence[str]) -> tantivy.Schema:
    """Create Tantivy schema for document indexing.

    Args:
        text_fields: Names of the full-text fields

    Returns:
        Tantivy schema with a raw ``id`` field followed by ``text_fields``
    """
    schema_builder = tantivy.SchemaBuilder()

    # Raw tokenizer keeps ids as single terms so they can be deleted exactly
    schema_builder.add_text_field(ID_FIELD, stored=True, tokenizer_name="raw")

    for name in text_fields:
        schema_builder.add_text_field(name, stored=True)

    return schema_builder.build()


class TantivyIndexStore(IndexStorePort):
    """Write-side view of a Tantivy index stored in ``index_dir``."""

    def __init__(
        self,
        scope: str,
        index_dir: Path,
        *,
        schema: tantivy.Schema,
        text_fields: Sequence[str],
        heap_size: int,
    ) -> None:
        self._scope = scope
        self.index_dir = index_dir
        self._schema = schema
        self._text_fields = frozenset(text_fields)
        self._heap_size = heap_size

    @property
    def scope(self) -> str:
        return self._scope

    @property
    def exists(self) -> bool:
        return (self.index_dir / META_FILE).is_file()

    @property
    def document_count(self) -> int:
        if not self.exists:
            return 0
        index = tantivy.Index(self._schema, str(self.index_dir))
        return index.searcher().num_docs

    def create_if_not_exists(self) -> None:
        if self.exists:
            return
        self.index_dir.mkdir(parents=True, exist_ok=True)
        tantivy.Index(self._schema, str(self.index_dir))
        logger.debug("Created index for scope '%s' at %s", self._scope, self.index_dir)

    def delete(self) -> None:
        if self.index_dir.exists():
            shutil.rmtree(self.index_dir)
            logger.debug("Deleted index for scope '%s' at %s", self._scope, self.index_dir)

    def delete_documents(self, ids: Iterable[str]) -> None:
        unique_ids = list(dict.fromkeys(ids))
        if not unique_ids:
            return

        with self._writer() as writer:
            for doc_id in unique_ids:
                writer.delete_documents_by_query(self._id_query(doc_id))

    def save_documents(self, documents: Iterable[IndexDocument]) -> None:
        converted = [(document.id, self._to_tantivy(document)) for document in documents]
        if not converted:
            return

        with self._writer() as writer:
            for doc_id, doc in converted:
                # Upsert: drop any earlier version before adding
                writer.delete_documents_by_query(self._id_query(doc_id))
                writer.add_document(doc)

    def get_all_fields(self) -> list[str]:
        meta_path = self.index_dir / META_FILE
        try:
            meta = json.loads(meta_path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return []

        return [entry["name"] for entry in meta.get("schema", []) if "name" in entry]

    @contextmanager
    def _writer(self) -> Iterator[Any]:
        if not self.exists:
            raise RuntimeError(f"Index store for scope '{self._scope}' does not exist.")

        index = tantivy.Index(self._schema, str(self.index_dir))
        writer = index.writer(heap_size=self._heap_size, num_threads=1)
        try:
            yield writer
        except BaseException:
            writer.rollback()
            raise
        else:
            writer.commit()
        finally:
            writer.wait_merging_threads()

    def _id_query(self, doc_id: str) -> tantivy.Query:
        return tantivy.Query.term_query(self._schema, ID_FIELD, doc_id)

    def _to_tantivy(self, document: IndexDocument) -> tantivy.Document:
        doc = tantivy.Document()
        doc.add_text(ID_FIELD, document.id)

        for name, value in document.fields.items():
            if name not in self._text_fields:
                raise ValueError(
                    f"Field '{name}' of document '{document.id}' is not defined "
                    f"in the schema for scope '{self._scope}'."
                )
            if value is None:
                continue
            values = value if isinstance(value, (list, tuple)) else [value]
            for item in values:
                doc.add_text(name, str(item))

        return doc


class TantivyIndexProvider(IndexProviderPort):
    """Provider resolving each scope to its own index directory."""

    def __init__(
        self,
        index_root: Path,
        *,
        environment: str,
        text_fields: Sequence[str] = ("title", "body", "path"),
        heap_size: int = 50_000_000,
    ) -> None:
        self.index_root = index_root
        self._environment = environment
        self._text_fields = tuple(text_fields)
        self._heap_size = heap_size
        self._schema = create_schema(self._text_fields)

    def get_index_store(self, scope: str) -> TantivyIndexStore:
        index_dir = self.index_root / scope_file_stem(scope, self._environment)
        return TantivyIndexStore(
            scope,
            index_dir,
            schema=self._schema,
            text_fields=self._text_fields,
            heap_size=self._heap_size,
        )

    def create_document(self, doc_id: str) -> IndexDocument:
        return IndexDocument(id=doc_id)
