"""
Data contracts for catalog entries and sync results.

Pydantic models shared by the validator, cache, and orchestrator.
"""

from game_catalog_sync.contracts.catalog import (
    MAX_CATALOG_SIZE,
    GameEntry,
    Orientation,
)
from game_catalog_sync.contracts.results import (
    CacheMetadata,
    CatalogSource,
    FetchMetadata,
    FetchResult,
    ValidationReport,
    ValidationSummary,
)

__all__ = [
    "MAX_CATALOG_SIZE",
    "CacheMetadata",
    "CatalogSource",
    "FetchMetadata",
    "FetchResult",
    "GameEntry",
    "Orientation",
    "ValidationReport",
    "ValidationSummary",
]
