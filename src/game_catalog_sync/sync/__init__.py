"""
Remote catalog synchronization.

Fetcher, validator, cache and the orchestrator that combines them
into the remote -> cached -> bundled fallback chain.
"""

from game_catalog_sync.sync.bundled import BundledCatalogLoader
from game_catalog_sync.sync.cache import (
    CacheKey,
    CatalogCache,
    FileStorage,
    KeyValueStorage,
    MemoryStorage,
)
from game_catalog_sync.sync.exceptions import (
    CatalogSyncError,
    CatalogUnavailableError,
    ConfigError,
    FetchError,
    FormatError,
    HttpError,
    InvalidSourceUrlError,
    NetworkError,
    NotModifiedWithoutCacheError,
    StorageError,
    ValidationError,
)
from game_catalog_sync.sync.fetcher import CatalogFetcher, NotModified, RawCatalog
from game_catalog_sync.sync.orchestrator import CatalogSyncService
from game_catalog_sync.sync.validator import CatalogValidator

__all__ = [
    # Components
    "BundledCatalogLoader",
    "CacheKey",
    "CatalogCache",
    "CatalogFetcher",
    "CatalogSyncService",
    "CatalogValidator",
    "FileStorage",
    "KeyValueStorage",
    "MemoryStorage",
    "NotModified",
    "RawCatalog",
    # Errors
    "CatalogSyncError",
    "CatalogUnavailableError",
    "ConfigError",
    "FetchError",
    "FormatError",
    "HttpError",
    "InvalidSourceUrlError",
    "NetworkError",
    "NotModifiedWithoutCacheError",
    "StorageError",
    "ValidationError",
]
