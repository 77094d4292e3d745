"""
Catalog sync orchestrator.

Composes fetcher, validator and cache into the fallback policy:
remote -> cached -> bundled -> raise. Expected failures never escape;
every call returns a FetchResult tagged with the tier that produced it.
"""

import time
from collections.abc import Callable
from typing import Any

import httpx

from game_catalog_sync.config import CatalogSourceConfig, get_settings
from game_catalog_sync.contracts import (
    CatalogSource,
    FetchMetadata,
    FetchResult,
    GameEntry,
    ValidationSummary,
)
from game_catalog_sync.logger import get_logger, sync_context
from game_catalog_sync.sync.bundled import BundledCatalogLoader
from game_catalog_sync.sync.cache import CatalogCache, FileStorage
from game_catalog_sync.sync.exceptions import (
    CatalogSyncError,
    CatalogUnavailableError,
    InvalidSourceUrlError,
    NotModifiedWithoutCacheError,
    ValidationError,
)
from game_catalog_sync.sync.fetcher import CatalogFetcher, NotModified
from game_catalog_sync.sync.utils.inflight import InFlightRegistry
from game_catalog_sync.sync.validator import CatalogValidator


class CatalogSyncService:
    """
    Resolves the catalog for one call.

    All collaborators are injected; anything omitted is built from
    settings.

    Example:
        >>> async with CatalogSyncService() as service:
        ...     result = await service.fetch_catalog(
        ...         CatalogSourceConfig(url="https://example.com/catalog.json")
        ...     )
        ...     print(result.source, len(result.games))
    """

    def __init__(
        self,
        *,
        fetcher: CatalogFetcher | None = None,
        cache: CatalogCache | None = None,
        validator: CatalogValidator | None = None,
        bundled_loader: Callable[[], Any] | None = None,
        clock: Callable[[], float] = time.time,
        default_config: CatalogSourceConfig | None = None,
        dedupe_in_flight: bool | None = None,
    ) -> None:
        """
        Initialize the service.

        Args:
            fetcher: Remote catalog fetcher
            cache: Catalog cache
            validator: Catalog validator
            bundled_loader: Returns the raw bundled catalog
            clock: Returns the current time in seconds
            default_config: Config used when fetch_catalog gets none
            dedupe_in_flight: Share concurrent identical fetches
        """
        settings = get_settings()
        self._default_config = default_config or settings.catalog
        self._fetcher = fetcher or CatalogFetcher()
        self._cache = cache or CatalogCache(
            FileStorage(settings.cache.directory),
            max_age_hours=settings.cache.max_age_hours,
            clock=clock,
        )
        self._validator = validator or CatalogValidator()
        self._bundled_loader = bundled_loader or BundledCatalogLoader(
            self._default_config.bundled_path
        )
        self._clock = clock
        if dedupe_in_flight is None:
            dedupe_in_flight = settings.fetch.dedupe_in_flight
        self._inflight: InFlightRegistry[FetchResult] | None = (
            InFlightRegistry() if dedupe_in_flight else None
        )
        self._logger = get_logger(__name__, component="orchestrator")

    @property
    def cache(self) -> CatalogCache:
        return self._cache

    async def close(self) -> None:
        """Release the fetcher's HTTP client."""
        await self._fetcher.close()

    async def __aenter__(self) -> "CatalogSyncService":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    def clear_cache(self) -> None:
        """Remove every persisted catalog key."""
        self._cache.clear()

    async def fetch_catalog(self, config: CatalogSourceConfig | None = None) -> FetchResult:
        """
        Resolve the catalog through the fallback chain.

        Args:
            config: Source and fallback policy (defaults to settings)

        Returns:
            FetchResult: Games tagged with the tier that produced them

        Raises:
            CatalogUnavailableError: No tier could produce a valid catalog
        """
        config = config or self._default_config
        started = time.perf_counter()

        if not config.url:
            self._logger.info("No remote URL configured, using bundled catalog")
            return self._bundled_or_raise(config, started, cause=None)

        if self._inflight is None:
            return await self._sync(config, started)

        key = (
            config.url,
            config.fallback_to_bundled,
            config.validate_schema,
            config.enforce_https,
            config.bundled_path,
        )
        return await self._inflight.run(key, lambda: self._sync(config, started))

    async def _sync(self, config: CatalogSourceConfig, started: float) -> FetchResult:
        url = config.url or ""
        with sync_context(catalog_url=url):
            try:
                self._check_source_url(url, enforce_https=config.enforce_https)
                return await self._fetch_remote(url, config, started)
            except CatalogSyncError as e:
                self._logger.warning(
                    "Remote catalog unavailable, falling back",
                    error_type=type(e).__name__,
                    error=str(e),
                )
                return self._fallback(config, started, cause=e)

    def _check_source_url(self, url: str, *, enforce_https: bool) -> None:
        """
        Pre-network checks on the catalog source URL.

        Raises:
            InvalidSourceUrlError: URL is not absolute, not https, or has no host
        """
        try:
            parsed = httpx.URL(url)
            scheme = parsed.scheme.lower()
            host = parsed.host
        except (httpx.InvalidURL, ValueError, TypeError, UnicodeError) as e:
            raise InvalidSourceUrlError(
                "Invalid catalog URL format", url=url, original_error=e
            ) from e

        allowed = ("https",) if enforce_https else ("https", "http")
        if scheme not in allowed:
            raise InvalidSourceUrlError(
                f"Catalog URL must use {' or '.join(allowed)}", url=url
            )
        if not host:
            raise InvalidSourceUrlError("Invalid hostname in catalog URL", url=url)

    async def _fetch_remote(
        self,
        url: str,
        config: CatalogSourceConfig,
        started: float,
    ) -> FetchResult:
        outcome = await self._fetcher.fetch(url, etag=self._cache.get_etag())

        if isinstance(outcome, NotModified):
            cached = self._cache.get_catalog()
            if not cached:
                raise NotModifiedWithoutCacheError(
                    "304 response but no cached catalog available", url=url, status_code=304
                )
            self._cache.mark_revalidated(
                self._now_ms(), etag=outcome.etag, last_modified=outcome.last_modified
            )
            metadata = self._cache.get_metadata()
            self._logger.info("Remote catalog not modified, serving cached copy", games=len(cached))
            return self._result(
                cached,
                CatalogSource.REMOTE,
                started,
                from_cache=True,
                etag=metadata.etag if metadata else None,
                last_modified=metadata.last_modified if metadata else None,
            )

        report = self._validator.validate(outcome.payload, strict=config.validate_schema)
        if not report.valid or report.sanitized is None:
            raise ValidationError(
                f"Remote catalog failed schema validation ({len(report.errors)} errors)",
                errors=report.errors,
                url=url,
            )

        games = report.sanitized
        self._cache.store_catalog(
            games,
            etag=outcome.etag,
            last_modified=outcome.last_modified,
            fetched_at_ms=self._now_ms(),
            validation=ValidationSummary(passed=True, errors=report.errors),
        )

        self._logger.info(
            "Fetched and validated remote catalog",
            url=url,
            games=len(games),
            etag=outcome.etag,
        )
        return self._result(
            games,
            CatalogSource.REMOTE,
            started,
            from_cache=False,
            etag=outcome.etag,
            last_modified=outcome.last_modified,
        )

    def _fallback(
        self,
        config: CatalogSourceConfig,
        started: float,
        *,
        cause: Exception,
    ) -> FetchResult:
        cached = self._cache.get_catalog()
        if cached:
            metadata = self._cache.get_metadata()
            self._logger.info("Using cached catalog as fallback", games=len(cached))
            return self._result(
                cached,
                CatalogSource.CACHED,
                started,
                from_cache=True,
                etag=metadata.etag if metadata else None,
                last_modified=metadata.last_modified if metadata else None,
            )

        return self._bundled_or_raise(config, started, cause=cause)

    def _bundled_or_raise(
        self,
        config: CatalogSourceConfig,
        started: float,
        *,
        cause: Exception | None,
    ) -> FetchResult:
        # With no URL the bundled catalog is the only tier, so the flag does not apply
        if config.url and not config.fallback_to_bundled:
            raise CatalogUnavailableError(
                "Remote catalog unavailable, no cached copy, and bundled fallback disabled",
                cause=cause,
            ) from cause

        try:
            games = self._load_bundled(config)
        except CatalogSyncError as e:
            self._logger.error("Bundled catalog unusable", error=str(e))
            raise CatalogUnavailableError("Bundled catalog unusable", cause=e) from e

        self._logger.info("Using bundled catalog", games=len(games))
        return self._result(games, CatalogSource.BUNDLED, started, from_cache=False)

    def _load_bundled(self, config: CatalogSourceConfig) -> list[GameEntry]:
        loader = self._bundled_loader
        if (
            config.bundled_path is not None
            and config.bundled_path != self._default_config.bundled_path
        ):
            loader = BundledCatalogLoader(config.bundled_path)

        raw = loader()
        report = self._validator.validate(raw, strict=config.validate_schema)
        if not report.valid or report.sanitized is None:
            raise ValidationError(
                f"Bundled catalog failed schema validation ({len(report.errors)} errors)",
                errors=report.errors,
            )
        return report.sanitized

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    def _result(
        self,
        games: list[GameEntry],
        source: CatalogSource,
        started: float,
        *,
        from_cache: bool,
        etag: str | None = None,
        last_modified: str | None = None,
    ) -> FetchResult:
        return FetchResult(
            games=games,
            source=source,
            metadata=FetchMetadata(
                fetch_time_ms=(time.perf_counter() - started) * 1000,
                from_cache=from_cache,
                etag=etag,
                last_modified=last_modified,
            ),
        )
