"""
Remote catalog fetcher with conditional requests and bounded retries.

Sends ``If-None-Match`` when an entity tag is known, enforces one
absolute timeout per attempt, and retries transient failures with a
fixed delay. Never touches the cache.
"""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

import httpx
from tenacity import retry, retry_if_exception, stop_after_attempt, wait_fixed

from game_catalog_sync.config import get_settings
from game_catalog_sync.logger import get_logger
from game_catalog_sync.sync.exceptions import (
    FetchError,
    FormatError,
    HttpError,
    NetworkError,
)
from game_catalog_sync.sync.validator import CatalogValidator


@dataclass(frozen=True)
class RawCatalog:
    """Decoded but unvalidated catalog body."""

    payload: Any
    etag: str | None = None
    last_modified: str | None = None
    status_code: int = 200


@dataclass(frozen=True)
class NotModified:
    """The host confirmed the caller's copy is current (HTTP 304)."""

    etag: str | None = None
    last_modified: str | None = None


FetchOutcome = RawCatalog | NotModified


def is_transient(exc: BaseException) -> bool:
    """Network failures, timeouts and 5xx responses are retried; nothing else is."""
    if isinstance(exc, NetworkError):
        return True
    if isinstance(exc, HttpError):
        return exc.is_server_error
    return False


class CatalogFetcher:
    """
    Fetches the raw catalog over HTTP.

    Example:
        >>> async with CatalogFetcher() as fetcher:
        ...     outcome = await fetcher.fetch(url, etag='"v1"')
        ...     if isinstance(outcome, NotModified):
        ...         ...
    """

    def __init__(
        self,
        *,
        client: httpx.AsyncClient | None = None,
        timeout: float | None = None,
        max_attempts: int | None = None,
        retry_delay: float | None = None,
        user_agent: str | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """
        Initialize the fetcher.

        Args:
            client: HTTP client to use (created lazily and owned if None)
            timeout: Absolute timeout per attempt in seconds
            max_attempts: Total attempts for transient failures
            retry_delay: Fixed delay between attempts in seconds
            user_agent: User-Agent header value
            sleep: Awaitable sleep used between attempts
        """
        settings = get_settings()
        self._timeout = timeout if timeout is not None else settings.fetch.timeout_seconds
        self._max_attempts = max_attempts or settings.fetch.max_attempts
        self._retry_delay = (
            retry_delay if retry_delay is not None else settings.fetch.retry_delay_seconds
        )
        self._user_agent = user_agent or settings.fetch.user_agent
        self._sleep = sleep
        self._client = client
        self._owns_client = client is None
        self._logger = get_logger(__name__, component="fetcher")

    @property
    def client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self._timeout),
                follow_redirects=True,
            )
            self._owns_client = True
        return self._client

    @property
    def max_attempts(self) -> int:
        return self._max_attempts

    async def close(self) -> None:
        """Close the HTTP client if this fetcher created it."""
        if self._owns_client and self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "CatalogFetcher":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    def _create_retry_decorator(self) -> Any:
        """Create retry decorator with current configuration."""
        return retry(
            retry=retry_if_exception(is_transient),
            stop=stop_after_attempt(self._max_attempts),
            wait=wait_fixed(self._retry_delay),
            sleep=self._sleep,
            before_sleep=self._log_retry_attempt,
            reraise=True,
        )

    def _log_retry_attempt(self, retry_state: Any) -> None:
        """Log retry attempts for observability."""
        self._logger.warning(
            "Retrying catalog fetch",
            attempt=retry_state.attempt_number,
            wait_seconds=retry_state.next_action.sleep if retry_state.next_action else 0,
            exception=str(retry_state.outcome.exception()) if retry_state.outcome else None,
        )

    def _build_headers(self, etag: str | None) -> dict[str, str]:
        headers = {
            "Accept": "application/json",
            "User-Agent": self._user_agent,
        }
        if etag:
            headers["If-None-Match"] = etag
        return headers

    async def fetch(self, url: str, etag: str | None = None) -> FetchOutcome:
        """
        Fetch the catalog, retrying transient failures.

        Args:
            url: Catalog URL
            etag: Entity tag of the locally cached copy

        Returns:
            RawCatalog on 2xx, NotModified on 304

        Raises:
            NetworkError: Connection failure or timeout on the last attempt
            HttpError: Non-2xx, non-304 status
            FormatError: Response is not JSON
        """
        headers = self._build_headers(etag)
        attempts = 0

        @self._create_retry_decorator()
        async def _request() -> FetchOutcome:
            nonlocal attempts
            attempts += 1
            self._logger.debug(
                "Fetching remote catalog",
                url=url,
                attempt=attempts,
                max_attempts=self._max_attempts,
                conditional=bool(etag),
            )
            return await self._attempt(url, headers)

        try:
            outcome: FetchOutcome = await _request()
        except FetchError as e:
            self._logger.error(
                "Catalog fetch failed",
                url=url,
                attempts=attempts,
                error=str(e),
                status_code=e.status_code,
            )
            raise

        self._logger.info(
            "Catalog fetch complete",
            url=url,
            attempts=attempts,
            not_modified=isinstance(outcome, NotModified),
        )
        return outcome

    async def _attempt(self, url: str, headers: dict[str, str]) -> FetchOutcome:
        """Single request bounded by the absolute timeout."""
        try:
            response = await asyncio.wait_for(
                self.client.get(url, headers=headers),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError as e:
            raise NetworkError(
                f"Request timed out after {self._timeout}s",
                url=url,
                timed_out=True,
                original_error=e,
            ) from e
        except httpx.TimeoutException as e:
            raise NetworkError(
                f"Request timed out: {e}",
                url=url,
                timed_out=True,
                original_error=e,
            ) from e
        except httpx.HTTPError as e:
            raise NetworkError(f"Network error: {e}", url=url, original_error=e) from e
        except httpx.InvalidURL as e:
            raise FetchError(f"Invalid request URL: {e}", url=url, original_error=e) from e

        if response.status_code == 304:
            return NotModified(
                etag=response.headers.get("ETag"),
                last_modified=response.headers.get("Last-Modified"),
            )

        if not response.is_success:
            raise HttpError(response.status_code, url=url)

        content_type = response.headers.get("Content-Type")
        if not CatalogValidator.is_json_content_type(content_type):
            raise FormatError(f"Response is not JSON (Content-Type: {content_type})", url=url)

        try:
            payload = response.json()
        except ValueError as e:
            raise FormatError("Response body is not valid JSON", url=url, original_error=e) from e

        return RawCatalog(
            payload=payload,
            etag=response.headers.get("ETag"),
            last_modified=response.headers.get("Last-Modified"),
            status_code=response.status_code,
        )
