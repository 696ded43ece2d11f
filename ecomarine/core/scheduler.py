"""PollingScheduler — runs the ingestion cycle on a fixed interval.

The next cycle is scheduled only after the previous one has returned,
so cycles never overlap even when one takes longer than the interval.
"""

from __future__ import annotations

import asyncio
import logging

from ecomarine.core.ingestion import IngestionCycle

logger = logging.getLogger(__name__)


class PollingScheduler:
    """Background asyncio task driving an IngestionCycle.

    Args:
        cycle: The cycle to run.
        interval_seconds: Sleep between the end of one cycle and the start of the next.
        run_immediately: Run the first cycle at start() rather than after one interval.
    """

    def __init__(
        self,
        cycle: IngestionCycle,
        interval_seconds: float = 30.0,
        run_immediately: bool = True,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self._cycle = cycle
        self._interval = interval_seconds
        self._run_immediately = run_immediately
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def interval_seconds(self) -> float:
        return self._interval

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._loop(), name="ecomarine-ingestion")
        logger.info("Ingestion scheduler started (every %.1fs)", self._interval)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Ingestion scheduler stopped")

    async def _loop(self) -> None:
        if not self._run_immediately:
            await asyncio.sleep(self._interval)
        while True:
            try:
                await self._cycle.run_cycle()
            except Exception as exc:
                logger.error("Ingestion cycle crashed: %s", exc, exc_info=True)
            await asyncio.sleep(self._interval)
