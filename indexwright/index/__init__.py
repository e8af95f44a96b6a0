"""Index status records and index operations."""

from indexwright.index.operations import (
    DocumentFactory,
    IndexDocument,
    IndexOperation,
    IndexOperationType,
    Segment,
    iter_segments,
)
from indexwright.index.status import IndexInfo, IndexingStatus, StatusStore

__all__ = [
    "DocumentFactory",
    "IndexDocument",
    "IndexInfo",
    "IndexOperation",
    "IndexOperationType",
    "IndexingStatus",
    "Segment",
    "StatusStore",
    "iter_segments",
]
