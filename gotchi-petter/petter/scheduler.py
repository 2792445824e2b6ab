"""
Wall-clock scheduler firing petting runs every 15 minutes.

Ticks land on minutes 0, 15, 30 and 45. Each tick spawns its run as a
separate task so a slow run never delays the next tick; overlapping runs are
skipped by the runner's guard.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta
from typing import Awaitable, Callable, Optional, Set

from .constants import RUN_INTERVAL_MINUTES


def next_tick(now: datetime, interval_minutes: int = RUN_INTERVAL_MINUTES) -> datetime:
    """Return the next wall-clock instant on the interval grid, strictly after now."""
    floored = now.replace(second=0, microsecond=0) - timedelta(
        minutes=now.minute % interval_minutes
    )
    return floored + timedelta(minutes=interval_minutes)


class PetScheduler:
    """Fires a run callback on a fixed wall-clock interval."""

    def __init__(
        self,
        run: Callable[[], Awaitable[object]],
        interval_minutes: int = RUN_INTERVAL_MINUTES,
        clock: Callable[[], datetime] = datetime.now,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._run = run
        self._interval_minutes = interval_minutes
        self._clock = clock
        self._sleep = sleep
        self._logger = logger or logging.getLogger("scheduler")
        self._tasks: Set[asyncio.Task] = set()
        self.running = False

    def fire(self) -> asyncio.Task:
        """Start one run in the background and keep a reference until it ends."""
        task = asyncio.create_task(self._run())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def run_forever(self, run_immediately: bool = False) -> None:
        self.running = True
        self._logger.info(
            "⏰ Petting scheduled every %s minutes", self._interval_minutes
        )
        if run_immediately:
            self.fire()
        last_tick: Optional[datetime] = None
        try:
            while self.running:
                now = self._clock()
                tick_at = next_tick(now, self._interval_minutes)
                # sleep may wake a little early; never fire a tick twice
                if last_tick is not None and tick_at <= last_tick:
                    tick_at = next_tick(last_tick, self._interval_minutes)
                self._logger.debug("Next petting run at %s", tick_at.isoformat())
                await self._sleep(max((tick_at - now).total_seconds(), 0))
                if not self.running:
                    break
                last_tick = tick_at
                self.fire()
        finally:
            await self.shutdown()

    async def shutdown(self) -> None:
        """Stop ticking and wait for in-flight runs to finish."""
        self.running = False
        if self._tasks:
            self._logger.info("Waiting for %s in-flight run(s)", len(self._tasks))
            await asyncio.gather(*self._tasks, return_exceptions=True)
