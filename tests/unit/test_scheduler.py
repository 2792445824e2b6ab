"""
Unit tests for the wall-clock petting scheduler.
"""

import asyncio
import sys
from datetime import datetime
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent.parent / "gotchi-petter"))

from petter.scheduler import PetScheduler, next_tick


class TestNextTick:
    @pytest.mark.parametrize(
        "now,expected",
        [
            (datetime(2024, 5, 1, 10, 7, 30), datetime(2024, 5, 1, 10, 15)),
            (datetime(2024, 5, 1, 10, 15, 0), datetime(2024, 5, 1, 10, 30)),
            (datetime(2024, 5, 1, 10, 44, 59, 999999), datetime(2024, 5, 1, 10, 45)),
            (datetime(2024, 5, 1, 23, 50), datetime(2024, 5, 2, 0, 0)),
        ],
    )
    def test_aligns_to_quarter_hours(self, now, expected):
        assert next_tick(now) == expected

    def test_custom_interval(self):
        assert next_tick(datetime(2024, 5, 1, 10, 7), 5) == datetime(2024, 5, 1, 10, 10)


class TestPetScheduler:
    @pytest.mark.asyncio
    async def test_sleeps_until_next_tick_then_fires(self):
        run = AsyncMock()
        sleeps = []
        scheduler = None

        async def fake_sleep(seconds):
            sleeps.append(seconds)
            if len(sleeps) == 2:
                scheduler.running = False

        scheduler = PetScheduler(
            run, clock=lambda: datetime(2024, 5, 1, 10, 7, 30), sleep=fake_sleep
        )
        await scheduler.run_forever()

        assert sleeps[0] == 450
        run.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_same_tick_is_never_fired_twice(self):
        run = AsyncMock()
        sleeps = []
        scheduler = None

        async def fake_sleep(seconds):
            sleeps.append(seconds)
            if len(sleeps) == 3:
                scheduler.running = False

        # A clock stuck just before the tick mimics an early wake-up
        scheduler = PetScheduler(
            run,
            clock=lambda: datetime(2024, 5, 1, 10, 14, 59, 999000),
            sleep=fake_sleep,
        )
        await scheduler.run_forever()

        assert run.await_count == 2
        assert sleeps[1] == pytest.approx(15 * 60 + 0.001)

    @pytest.mark.asyncio
    async def test_run_immediately_fires_before_first_tick(self):
        run = AsyncMock()
        scheduler = None

        async def fake_sleep(seconds):
            scheduler.running = False

        scheduler = PetScheduler(
            run, clock=lambda: datetime(2024, 5, 1, 10, 7), sleep=fake_sleep
        )
        await scheduler.run_forever(run_immediately=True)

        run.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_fire_does_not_wait_for_previous_run(self):
        release = asyncio.Event()
        started = []

        async def slow_run():
            started.append(True)
            await release.wait()

        scheduler = PetScheduler(slow_run)
        scheduler.fire()
        scheduler.fire()
        await asyncio.sleep(0)

        assert len(started) == 2
        release.set()
        await scheduler.shutdown()

    @pytest.mark.asyncio
    async def test_failed_run_does_not_stop_scheduler(self):
        run = AsyncMock(side_effect=RuntimeError("boom"))
        sleeps = []
        scheduler = None

        async def fake_sleep(seconds):
            sleeps.append(seconds)
            await asyncio.sleep(0)
            if len(sleeps) == 3:
                scheduler.running = False

        scheduler = PetScheduler(
            run, clock=lambda: datetime(2024, 5, 1, 10, 7), sleep=fake_sleep
        )
        await scheduler.run_forever()

        assert run.await_count == 2
