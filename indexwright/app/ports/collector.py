"""Collector port interface for producing index operations."""

from __future__ import annotations

from collections.abc import Iterator
from datetime import datetime
from typing import Protocol

from indexwright.index.operations import DocumentFactory, Segment


class IndexCollectorPort(Protocol):
    """Port interface for document collectors.

    A collector owns exactly one scope and decides which documents changed.

    Adapter: filesystem directory walker.

    Side effects: Reads document sources; may persist its own bookkeeping.
    """

    @property
    def scope(self) -> str:
        ...

    def collect(
        self,
        since_utc: datetime | None,
        create_document: DocumentFactory,
    ) -> Iterator[Segment]:
        """Produce the operations for changes since ``since_utc``.

        Every call returns a fresh, finite iterator. ``None`` means all
        documents. Segment boundaries are chosen by the collector.

        Args:
            since_utc: Cutoff timestamp, or None for everything
            create_document: Factory creating provider documents by id

        Yields:
            Segments of index operations, in application order
        """
        ...
