"""
Persistent cache for the catalog and its metadata.

Storage backends expose plain string-keyed bytes; CatalogCache owns
the key table and the typed helpers on top. Storage failures never
leave this module: they are logged and reported as a cache miss.
"""

import json
import os
import re
import tempfile
import time
from collections.abc import Callable
from enum import Enum
from pathlib import Path
from typing import Protocol

from pydantic import ValidationError as PydanticValidationError

from game_catalog_sync.contracts import (
    CacheMetadata,
    CatalogSource,
    GameEntry,
    ValidationSummary,
)
from game_catalog_sync.logger import get_logger
from game_catalog_sync.sync.exceptions import StorageError


class CacheKey(str, Enum):
    """Every key the catalog cache persists."""

    CATALOG = "@games_cache"
    ETAG = "@remote_catalog_etag"
    LAST_MODIFIED = "@remote_catalog_last_modified"
    LAST_FETCH = "@remote_catalog_last_fetch"
    VALIDATION = "@remote_catalog_validation"


class KeyValueStorage(Protocol):
    """String-keyed byte persistence."""

    def get(self, key: str) -> bytes | None: ...

    def set(self, key: str, value: bytes) -> None: ...

    def remove(self, key: str) -> None: ...


class MemoryStorage:
    """Dict-backed storage for tests and ephemeral runs."""

    def __init__(self) -> None:
        self._data: dict[str, bytes] = {}

    def get(self, key: str) -> bytes | None:
        return self._data.get(key)

    def set(self, key: str, value: bytes) -> None:
        self._data[key] = bytes(value)

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._data)


class FileStorage:
    """
    One file per key inside a directory.

    Writes go to a temporary file that atomically replaces the target,
    so readers never observe a half-written value.
    """

    _UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_.-]")

    def __init__(self, directory: Path) -> None:
        self._directory = Path(directory)

    @property
    def directory(self) -> Path:
        return self._directory

    def _path_for(self, key: str) -> Path:
        return self._directory / f"{self._UNSAFE_CHARS.sub('_', key.lstrip('@'))}.bin"

    def get(self, key: str) -> bytes | None:
        path = self._path_for(key)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageError(f"Failed to read {key}", original_error=e) from e

    def set(self, key: str, value: bytes) -> None:
        path = self._path_for(key)
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self._directory, prefix=".tmp-")
            try:
                with os.fdopen(fd, "wb") as f:
                    f.write(value)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise StorageError(f"Failed to write {key}", original_error=e) from e

    def remove(self, key: str) -> None:
        try:
            self._path_for(key).unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to remove {key}", original_error=e) from e


class CatalogCache:
    """
    Typed access to the cached catalog.

    Metadata is only reported while the catalog blob exists. Writes
    remove the blob first and write it last, and clears remove it
    first, so an interrupted write or clear reads as "no cache".

    Example:
        >>> cache = CatalogCache(FileStorage(Path("data/cache")))
        >>> games = cache.get_catalog()
        >>> etag = cache.get_etag()
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        *,
        max_age_hours: float = 24.0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """
        Initialize the cache.

        Args:
            storage: Byte storage backend
            max_age_hours: Expiry for the cached catalog (0 disables expiry)
            clock: Returns the current time in seconds
        """
        self._storage = storage
        self._max_age_ms = int(max_age_hours * 3600 * 1000)
        self._clock = clock
        self._logger = get_logger(__name__, component="catalog_cache")

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    def _get(self, key: CacheKey) -> bytes | None:
        try:
            return self._storage.get(key.value)
        except StorageError as e:
            self._logger.warning("Cache read failed", key=key.value, error=str(e))
            return None

    def _get_text(self, key: CacheKey) -> str | None:
        value = self._get(key)
        if value is None:
            return None
        try:
            return value.decode("utf-8")
        except UnicodeDecodeError:
            self._logger.warning("Cache value is not valid UTF-8", key=key.value)
            return None

    def _set(self, key: CacheKey, value: bytes | None) -> bool:
        try:
            if value is None:
                self._storage.remove(key.value)
            else:
                self._storage.set(key.value, value)
            return True
        except StorageError as e:
            self._logger.warning("Cache write failed", key=key.value, error=str(e))
            return False

    def _has_catalog(self) -> bool:
        return self._get(CacheKey.CATALOG) is not None

    def _last_fetch_ms(self) -> int | None:
        value = self._get_text(CacheKey.LAST_FETCH)
        if value is None:
            return None
        try:
            return int(value)
        except ValueError:
            self._logger.warning("Cache timestamp is corrupt", value=value[:32])
            return None

    def _is_expired(self) -> bool:
        if self._max_age_ms <= 0:
            return False
        last_fetch = self._last_fetch_ms()
        if last_fetch is None:
            return True
        return self._now_ms() - last_fetch > self._max_age_ms

    def get_catalog(self) -> list[GameEntry] | None:
        """
        Load the cached catalog.

        Returns:
            The cached games, or None on miss, expiry, or corruption
        """
        blob = self._get(CacheKey.CATALOG)
        if blob is None:
            return None

        if self._is_expired():
            self._logger.info("Cached catalog expired")
            self.clear()
            return None

        try:
            raw = json.loads(blob)
            if not isinstance(raw, list):
                raise ValueError("cached catalog is not a list")
            games = [GameEntry.model_validate(item) for item in raw]
        except (ValueError, PydanticValidationError) as e:
            # JSONDecodeError and UnicodeDecodeError are ValueErrors
            self._logger.warning("Cached catalog is corrupt, discarding", error=str(e))
            self.clear()
            return None

        self._logger.debug("Loaded cached catalog", games=len(games))
        return games

    def get_etag(self) -> str | None:
        """Entity tag of the cached catalog, if any."""
        if not self._has_catalog() or self._is_expired():
            return None
        return self._get_text(CacheKey.ETAG)

    def get_metadata(self) -> CacheMetadata | None:
        """Metadata describing the cached catalog, or None when nothing is cached."""
        if not self._has_catalog():
            return None

        last_fetch = self._last_fetch_ms()
        if last_fetch is None:
            return None

        validation = ValidationSummary(passed=True)
        raw_validation = self._get(CacheKey.VALIDATION)
        if raw_validation is not None:
            try:
                validation = ValidationSummary.model_validate_json(raw_validation)
            except PydanticValidationError as e:
                self._logger.warning("Cached validation summary is corrupt", error=str(e))

        return CacheMetadata(
            etag=self._get_text(CacheKey.ETAG),
            last_modified=self._get_text(CacheKey.LAST_MODIFIED),
            last_fetch_timestamp_ms=last_fetch,
            source=CatalogSource.REMOTE,
            validation=validation,
        )

    def store_catalog(
        self,
        games: list[GameEntry],
        *,
        etag: str | None = None,
        last_modified: str | None = None,
        fetched_at_ms: int | None = None,
        validation: ValidationSummary | None = None,
    ) -> bool:
        """
        Overwrite the cached catalog and all of its metadata.

        Returns:
            bool: True if every key was written
        """
        fetched_at_ms = self._now_ms() if fetched_at_ms is None else fetched_at_ms
        validation = validation or ValidationSummary(passed=True)
        blob = json.dumps([game.to_wire() for game in games], ensure_ascii=False)

        ok = self._set(CacheKey.CATALOG, None)
        ok = self._set(CacheKey.ETAG, etag.encode("utf-8") if etag else None) and ok
        ok = (
            self._set(
                CacheKey.LAST_MODIFIED,
                last_modified.encode("utf-8") if last_modified else None,
            )
            and ok
        )
        ok = self._set(CacheKey.VALIDATION, validation.model_dump_json().encode("utf-8")) and ok
        ok = self._set(CacheKey.LAST_FETCH, str(fetched_at_ms).encode("ascii")) and ok

        if not ok:
            # Leave no blob behind so stale metadata is never paired with it
            self._logger.warning("Cache metadata write incomplete, not storing catalog")
            return False

        if not self._set(CacheKey.CATALOG, blob.encode("utf-8")):
            return False

        self._logger.info(
            "Stored catalog in cache",
            games=len(games),
            etag=etag,
            fetched_at_ms=fetched_at_ms,
        )
        return True

    def mark_revalidated(
        self,
        fetched_at_ms: int | None = None,
        *,
        etag: str | None = None,
        last_modified: str | None = None,
    ) -> bool:
        """
        Refresh metadata after the host confirmed the cache (304).

        The fetch timestamp is always updated; validators are replaced only
        when the 304 carried new ones.
        """
        if not self._has_catalog():
            return False
        fetched_at_ms = self._now_ms() if fetched_at_ms is None else fetched_at_ms

        ok = True
        if etag:
            ok = self._set(CacheKey.ETAG, etag.encode("utf-8")) and ok
        if last_modified:
            ok = self._set(CacheKey.LAST_MODIFIED, last_modified.encode("utf-8")) and ok
        return self._set(CacheKey.LAST_FETCH, str(fetched_at_ms).encode("ascii")) and ok

    def clear(self) -> None:
        """Remove the catalog blob and every metadata key."""
        for key in CacheKey:
            self._set(key, None)
        self._logger.info("Catalog cache cleared")
