"""Background sweeper that periodically evicts expired cache entries."""

from __future__ import annotations

import asyncio
from contextlib import suppress

import structlog

from linkprobe.domain.ports.result_cache import ResultCachePort

log = structlog.get_logger(__name__)


class CacheSweeper:
    """Runs ``cache.cleanup()`` on a fixed interval.

    Call :meth:`start` once an event loop is running (or await
    :meth:`run_forever` as a task yourself). Cancelling the task exits
    from its current sleep.
    """

    def __init__(self, cache: ResultCachePort, *, interval_seconds: float = 300.0) -> None:
        self._cache = cache
        self._interval = interval_seconds
        self._task: asyncio.Task[None] | None = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run_forever(self) -> None:
        """Main loop: sleep, sweep, repeat."""
        log.info("cache_sweeper_started", interval_seconds=self._interval)
        try:
            while True:
                await asyncio.sleep(self._interval)
                self.sweep()
        except asyncio.CancelledError:
            log.info("cache_sweeper_cancelled")
            raise

    def sweep(self) -> int:
        """Run one cleanup pass. Errors are logged, never raised."""
        try:
            return self._cache.cleanup()
        except Exception:
            log.error("cache_sweeper_tick_error", exc_info=True)
            return 0

    def start(self) -> None:
        if self.is_running:
            return
        self._task = asyncio.create_task(self.run_forever())

    async def stop(self) -> None:
        task = self._task
        self._task = None
        if task is None or task.done():
            return
        task.cancel()
        with suppress(asyncio.CancelledError):
            await task
