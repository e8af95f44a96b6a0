"""Port interfaces for the indexwright application layer.

These protocol interfaces define contracts for adapters.
Domain logic depends on these ports, never on concrete implementations.
"""

__all__ = [
    "IndexCollectorPort",
    "IndexProviderPort",
    "IndexStorePort",
    "LedgerPort",
    "LockHandle",
    "LockPort",
]

from indexwright.app.ports.collector import IndexCollectorPort
from indexwright.app.ports.index_store import IndexProviderPort, IndexStorePort
from indexwright.app.ports.ledger import LedgerPort
from indexwright.app.ports.lock import LockHandle, LockPort
