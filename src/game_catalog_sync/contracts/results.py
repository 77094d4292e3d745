"""
Result and metadata contracts for catalog synchronization.
"""

from enum import Enum

from pydantic import BaseModel, Field

from game_catalog_sync.contracts.catalog import GameEntry


class CatalogSource(str, Enum):
    """Which tier produced a catalog."""

    REMOTE = "remote"
    CACHED = "cached"
    BUNDLED = "bundled"


class ValidationReport(BaseModel):
    """
    Outcome of validating a raw catalog.

    ``sanitized`` holds the entries that passed; it is diagnostic only
    when ``valid`` is False.
    """

    valid: bool
    errors: list[str] = Field(default_factory=list)
    sanitized: list[GameEntry] | None = None


class ValidationSummary(BaseModel):
    """Validation outcome persisted alongside a cached catalog."""

    passed: bool
    errors: list[str] = Field(default_factory=list)


class CacheMetadata(BaseModel):
    """Metadata describing the currently cached catalog."""

    etag: str | None = None
    last_modified: str | None = None
    last_fetch_timestamp_ms: int
    source: CatalogSource = CatalogSource.REMOTE
    validation: ValidationSummary = Field(
        default_factory=lambda: ValidationSummary(passed=True)
    )


class FetchMetadata(BaseModel):
    """Per-call details returned with a catalog."""

    fetch_time_ms: float = Field(..., ge=0, description="Wall time spent in the call")
    from_cache: bool = False
    etag: str | None = None
    last_modified: str | None = None


class FetchResult(BaseModel):
    """
    Catalog returned to consumers, tagged with its provenance.

    Example:
        >>> result = await service.fetch_catalog()
        >>> if result.source is CatalogSource.CACHED:
        ...     show_offline_banner()
    """

    games: list[GameEntry]
    source: CatalogSource
    metadata: FetchMetadata
