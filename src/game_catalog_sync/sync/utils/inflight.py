"""
In-flight request sharing.

Concurrent callers asking for the same key await one shared task
instead of each starting their own fetch.
"""

import asyncio
from collections.abc import Awaitable, Callable, Hashable
from typing import Generic, TypeVar

from game_catalog_sync.logger import get_logger

T = TypeVar("T")


class InFlightRegistry(Generic[T]):
    """
    Deduplicates concurrent work by key.

    The first caller for a key starts the task; callers arriving while
    it runs share its result or its exception. Once the task finishes
    the key is released and the next call starts fresh.

    Example:
        >>> registry: InFlightRegistry[FetchResult] = InFlightRegistry()
        >>> result = await registry.run(url, lambda: sync_once(url))
    """

    def __init__(self) -> None:
        self._tasks: dict[Hashable, asyncio.Task[T]] = {}
        self._lock = asyncio.Lock()
        self._logger = get_logger(__name__, component="inflight")

    async def run(self, key: Hashable, factory: Callable[[], Awaitable[T]]) -> T:
        """
        Run ``factory`` for ``key`` unless an identical run is in progress.

        Args:
            key: Identity of the work
            factory: Creates the awaitable doing the work

        Returns:
            The shared result
        """
        async with self._lock:
            task = self._tasks.get(key)
            if task is None:
                task = asyncio.ensure_future(factory())
                self._tasks[key] = task
                task.add_done_callback(lambda done, k=key: self._release(k, done))
            else:
                self._logger.debug("Joining in-flight request", key=str(key))

        # Shield so one cancelled caller does not cancel the others
        return await asyncio.shield(task)

    def _release(self, key: Hashable, task: "asyncio.Task[T]") -> None:
        if self._tasks.get(key) is task:
            del self._tasks[key]

    @property
    def in_flight(self) -> int:
        """Number of keys currently running (for monitoring)."""
        return len(self._tasks)
