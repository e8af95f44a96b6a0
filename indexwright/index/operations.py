"""Index operations produced by collectors and applied to index stores."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass, field
from enum import Enum
from itertools import islice
from typing import Any


class IndexOperationType(str, Enum):
    """Kind of change an operation applies to the store."""

    INDEX = "index"
    DELETE = "delete"


@dataclass(slots=True)
class IndexDocument:
    """Document handed to an index store.

    The orchestrator treats documents as opaque; only ``id`` is read when
    deleting. Providers create empty documents through their document factory
    and collectors fill in ``fields``.
    """

    id: str
    fields: dict[str, Any] = field(default_factory=dict)

    def add(self, name: str, value: Any) -> "IndexDocument":
        """Set field ``name`` and return the document for chaining."""
        self.fields[name] = value
        return self


@dataclass(frozen=True, slots=True)
class IndexOperation:
    """Single add or delete destined for an index store."""

    operation_type: IndexOperationType
    document: IndexDocument

    @classmethod
    def index(cls, document: IndexDocument) -> "IndexOperation":
        return cls(IndexOperationType.INDEX, document)

    @classmethod
    def delete(cls, document: IndexDocument) -> "IndexOperation":
        return cls(IndexOperationType.DELETE, document)


Segment = list[IndexOperation]
DocumentFactory = Callable[[str], IndexDocument]


def iter_segments(
    operations: Iterable[IndexOperation], segment_size: int
) -> Iterator[Segment]:
    """Group ``operations`` lazily into segments of at most ``segment_size``.

    Only one segment is held in memory at a time; empty segments are never
    yielded.
    """
    if segment_size < 1:
        raise ValueError("segment_size must be at least 1")

    iterator = iter(operations)
    while True:
        segment = list(islice(iterator, segment_size))
        if not segment:
            return
        yield segment
