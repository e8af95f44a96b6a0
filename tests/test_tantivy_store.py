"""Tests for the Tantivy index store adapter."""

from pathlib import Path

import pytest

from indexwright.app.adapters import TantivyIndexProvider
from indexwright.index import IndexDocument


@pytest.fixture
def provider(temp_dir: Path) -> TantivyIndexProvider:
    return TantivyIndexProvider(
        temp_dir / "index",
        environment="test",
        text_fields=["title", "body"],
        heap_size=15_000_000,
    )


def _doc(provider: TantivyIndexProvider, doc_id: str, title: str) -> IndexDocument:
    return provider.create_document(doc_id).add("title", title).add("body", f"Body of {title}")


def test_store_lifecycle(provider: TantivyIndexProvider):
    """Test create, populate, and delete of a scope's index."""
    store = provider.get_index_store("products")
    assert not store.exists
    assert store.document_count == 0
    assert store.get_all_fields() == []

    store.create_if_not_exists()
    store.create_if_not_exists()
    assert store.exists
    assert store.document_count == 0

    store.save_documents([_doc(provider, "doc1", "One"), _doc(provider, "doc2", "Two")])
    assert store.document_count == 2
    assert store.get_all_fields() == ["id", "title", "body"]

    store.delete()
    assert not store.exists
    assert store.document_count == 0


def test_save_replaces_existing_document(provider: TantivyIndexProvider):
    """Test that saving an id twice keeps a single document."""
    store = provider.get_index_store("products")
    store.create_if_not_exists()

    store.save_documents([_doc(provider, "doc1", "One")])
    store.save_documents([_doc(provider, "doc1", "One, revised")])

    assert store.document_count == 1


def test_delete_documents_by_id(provider: TantivyIndexProvider):
    """Test that documents are removed by exact id."""
    store = provider.get_index_store("products")
    store.create_if_not_exists()
    store.save_documents(
        [_doc(provider, "docs/a b.txt", "A"), _doc(provider, "docs/a", "Prefix")]
    )

    store.delete_documents(["docs/a b.txt", "docs/a b.txt", "unknown"])

    assert store.document_count == 1


def test_unknown_field_rejected(provider: TantivyIndexProvider):
    """Test that fields outside the schema fail before anything is written."""
    store = provider.get_index_store("products")
    store.create_if_not_exists()

    with pytest.raises(ValueError, match="price"):
        store.save_documents([provider.create_document("doc1").add("price", "9.99")])

    assert store.document_count == 0


def test_write_to_missing_store_raises(provider: TantivyIndexProvider):
    """Test that writes require the store to exist."""
    store = provider.get_index_store("products")

    with pytest.raises(RuntimeError):
        store.save_documents([_doc(provider, "doc1", "One")])


def test_scopes_are_isolated(provider: TantivyIndexProvider):
    """Test that each scope gets its own index directory."""
    products = provider.get_index_store("products")
    blog = provider.get_index_store("blog")
    products.create_if_not_exists()
    products.save_documents([_doc(provider, "doc1", "One")])

    assert not blog.exists
    assert provider.get_index_store("PRODUCTS").document_count == 1
