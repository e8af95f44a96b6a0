"""Application layer for indexwright.

This layer orchestrates index builds without direct filesystem access.
All side effects are delegated to adapters via port interfaces.
"""

__all__ = [
    "BuildMode",
    "BuildOutcome",
    "BuildProgress",
    "BuildReport",
    "CancellationToken",
    "CollectorRegistry",
    "DeleteOutcome",
    "IndexingService",
    "ScopeNotFoundError",
]

from indexwright.app.indexing_service import (
    BuildMode,
    BuildOutcome,
    BuildProgress,
    BuildReport,
    CancellationToken,
    CollectorRegistry,
    DeleteOutcome,
    IndexingService,
    ScopeNotFoundError,
)
