"""
Exception hierarchy for catalog synchronization.

Fetch, validation, and storage errors are expected failures: the
orchestrator absorbs them into the fallback chain. Only
CatalogUnavailableError reaches callers.
"""

from datetime import datetime, timezone


class CatalogSyncError(Exception):
    """Base exception for catalog sync errors."""

    def __init__(
        self,
        message: str,
        *,
        url: str | None = None,
        status_code: int | None = None,
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.url = url
        self.status_code = status_code
        self.original_error = original_error
        self.timestamp = datetime.now(timezone.utc)


class ConfigError(CatalogSyncError):
    """Raised for unusable configuration."""

    pass


class InvalidSourceUrlError(ConfigError):
    """Raised when the catalog source URL fails pre-network checks."""

    pass


class FetchError(CatalogSyncError):
    """Base class for failures while fetching the remote catalog."""

    pass


class NetworkError(FetchError):
    """Raised on connection failures and timeouts."""

    def __init__(
        self,
        message: str,
        *,
        url: str | None = None,
        timed_out: bool = False,
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(message, url=url, original_error=original_error)
        self.timed_out = timed_out


class HttpError(FetchError):
    """Raised when the catalog host answers with an unexpected status."""

    def __init__(self, status_code: int, *, url: str | None = None) -> None:
        super().__init__(f"HTTP error: {status_code}", url=url, status_code=status_code)

    @property
    def is_server_error(self) -> bool:
        """5xx responses are worth retrying."""
        return self.status_code is not None and self.status_code >= 500


class FormatError(FetchError):
    """Raised when the response is not a JSON document."""

    pass


class NotModifiedWithoutCacheError(FetchError):
    """Raised when the host answers 304 but nothing is cached locally."""

    pass


class ValidationError(CatalogSyncError):
    """Raised when a catalog fails schema validation."""

    def __init__(
        self,
        message: str,
        *,
        errors: list[str] | None = None,
        url: str | None = None,
    ) -> None:
        super().__init__(message, url=url)
        self.errors = errors or []


class StorageError(CatalogSyncError):
    """Raised by storage backends; always absorbed by the cache."""

    pass


class CatalogUnavailableError(CatalogSyncError):
    """Raised when every tier of the fallback chain has failed."""

    def __init__(self, message: str, *, cause: Exception | None = None) -> None:
        super().__init__(message, original_error=cause)
        self.cause = cause
