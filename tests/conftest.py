"""Shared fixtures for catalog sync tests."""

import json
from collections.abc import AsyncIterator
from pathlib import Path
from typing import Any

import pytest
import pytest_asyncio

from game_catalog_sync.config import get_settings
from game_catalog_sync.sync import (
    BundledCatalogLoader,
    CatalogCache,
    CatalogFetcher,
    CatalogSyncService,
    MemoryStorage,
)

FIXTURES_DIR = Path(__file__).parent / "fixtures"


def load_fixture(name: str) -> Any:
    """Load a JSON fixture file."""
    with (FIXTURES_DIR / name).open(encoding="utf-8") as f:
        return json.load(f)


class FakeClock:
    """Manually advanced wall clock (seconds)."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingSleep:
    """Async sleep that records delays instead of waiting."""

    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture(autouse=True)
def fresh_settings() -> Any:
    """Settings are cached process-wide; reload them for every test."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sleeps() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def cache(storage: MemoryStorage, clock: FakeClock) -> CatalogCache:
    return CatalogCache(storage, max_age_hours=24, clock=clock)


@pytest.fixture
def remote_catalog() -> list[dict[str, Any]]:
    return load_fixture("remote_catalog.json")


@pytest.fixture
def bundled_catalog() -> list[dict[str, Any]]:
    return load_fixture("bundled_catalog.json")


@pytest_asyncio.fixture
async def fetcher(sleeps: RecordingSleep) -> AsyncIterator[CatalogFetcher]:
    async with CatalogFetcher(
        timeout=5.0,
        max_attempts=3,
        retry_delay=1.0,
        sleep=sleeps,
    ) as fetcher:
        yield fetcher


@pytest_asyncio.fixture
async def service(
    fetcher: CatalogFetcher,
    cache: CatalogCache,
    clock: FakeClock,
) -> AsyncIterator[CatalogSyncService]:
    async with CatalogSyncService(
        fetcher=fetcher,
        cache=cache,
        bundled_loader=BundledCatalogLoader(FIXTURES_DIR / "bundled_catalog.json"),
        clock=clock,
        dedupe_in_flight=True,
    ) as service:
        yield service
