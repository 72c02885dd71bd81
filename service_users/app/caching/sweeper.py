"""
Background task that reclaims expired cache entries.
"""

import asyncio
from typing import Optional

from shared.logging import get_logger
from .response_cache import ResponseCache


class CacheSweeper:
    """Periodically drops expired entries so unread keys do not accumulate."""

    def __init__(self, cache: ResponseCache, interval_seconds: float = 60.0):
        self.cache = cache
        self.interval_seconds = interval_seconds
        self.logger = get_logger("users.cache_sweeper")
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        """Start the sweep loop. A non-positive interval disables it."""
        if self.interval_seconds <= 0 or self.running:
            return
        self._task = asyncio.create_task(self._run())
        self.logger.info("Cache sweeper started", interval_seconds=self.interval_seconds)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        self.logger.info("Cache sweeper stopped")

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            try:
                removed = self.cache.sweep_expired()
            except Exception as exc:
                self.logger.error("Cache sweep failed", error=str(exc))
                continue
            if removed:
                self.logger.info("Cache sweep removed expired entries", removed=removed)
