"""Registry of in-flight reads shared by concurrent identical callers.

Every identical safe request issued while one is outstanding awaits the same
task instead of starting a new network call. Entries only live until the task
settles: this coalesces concurrent work and is not a response cache.

The registry is not thread-safe. It relies on the single-threaded event loop
and on callers registering a task before their first ``await``.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

logger = logging.getLogger(__name__)


class InFlightRegistry:
    def __init__(self) -> None:
        self._in_flight: dict[str, asyncio.Future[Any]] = {}

    def __len__(self) -> int:
        return len(self._in_flight)

    def __contains__(self, key: object) -> bool:
        return key in self._in_flight

    def acquire(self, key: str) -> asyncio.Future[Any] | None:
        future = self._in_flight.get(key)
        if future is not None and future.done():
            # Settled but its done-callback has not run yet.
            self.release(key)
            return None
        return future

    def register(self, key: str, future: asyncio.Future[Any]) -> None:
        """Track ``future`` under ``key`` until it settles.

        Release is wired to the future's done-callback so the entry goes away
        on success, failure and cancellation alike.
        """
        if key in self._in_flight:
            raise RuntimeError(f"request {key!r} is already in flight")
        self._in_flight[key] = future
        future.add_done_callback(lambda settled: self._on_settled(key, settled))

    def release(self, key: str) -> None:
        if self._in_flight.pop(key, None) is not None:
            logger.debug("Released in-flight request %s", key)

    def _on_settled(self, key: str, future: asyncio.Future[Any]) -> None:
        if self._in_flight.get(key) is future:
            self.release(key)
        if not future.cancelled():
            # Marks the exception retrieved when every waiter was cancelled.
            future.exception()
