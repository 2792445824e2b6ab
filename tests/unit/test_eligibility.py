"""
Unit tests for the eligibility filter.

Covers the 12 hour threshold, order preservation and the continue-on-error
behaviour of per-gotchi state reads.
"""

import sys
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent.parent / "gotchi-petter"))

from petter.constants import SECONDS_BETWEEN_PETS
from petter.eligibility import (
    Checked,
    EligibilityFilter,
    Skipped,
    is_ready_to_be_pet,
)
from petter.errors import ChainReadError
from petter.models import GotchiState

NOW = 1_700_000_000
HOUR = 60 * 60


def make_fetcher(last_interacted_by_id, failing_ids=()):
    """Return an async fetcher serving canned gotchi states."""

    async def fetch(gotchi_id):
        if gotchi_id in failing_ids:
            raise ChainReadError(f"getAavegotchi({gotchi_id}) failed: timeout")
        return GotchiState(
            token_id=gotchi_id, last_interacted=last_interacted_by_id[gotchi_id]
        )

    return AsyncMock(side_effect=fetch)


class TestIsReadyToBePet:
    def test_exactly_at_threshold_is_not_ready(self):
        state = GotchiState(token_id=1, last_interacted=NOW - SECONDS_BETWEEN_PETS)
        assert is_ready_to_be_pet(state, NOW) is False

    def test_one_second_past_threshold_is_ready(self):
        state = GotchiState(token_id=1, last_interacted=NOW - SECONDS_BETWEEN_PETS - 1)
        assert is_ready_to_be_pet(state, NOW) is True

    def test_recently_pet_is_not_ready(self):
        state = GotchiState(token_id=1, last_interacted=NOW - HOUR)
        assert is_ready_to_be_pet(state, NOW) is False


class TestEligibilityFilter:
    @pytest.mark.asyncio
    async def test_only_gotchi_pet_13_hours_ago_is_eligible(self):
        fetcher = make_fetcher({1: NOW - HOUR, 2: NOW - 13 * HOUR, 3: NOW - HOUR})
        eligibility = EligibilityFilter(fetcher, clock=lambda: NOW)

        assert await eligibility.filter_pettable([1, 2, 3]) == [2]
        assert fetcher.await_count == 3

    @pytest.mark.asyncio
    async def test_preserves_input_order(self):
        fetcher = make_fetcher(
            {9: NOW - 20 * HOUR, 4: NOW - 2 * HOUR, 7: NOW - 13 * HOUR, 1: NOW - 50 * HOUR}
        )
        eligibility = EligibilityFilter(fetcher, clock=lambda: NOW)

        assert await eligibility.filter_pettable([9, 4, 7, 1]) == [9, 7, 1]

    @pytest.mark.asyncio
    async def test_failed_read_skips_only_that_gotchi(self):
        fetcher = make_fetcher(
            {1: NOW - 13 * HOUR, 3: NOW - 13 * HOUR}, failing_ids={2}
        )
        eligibility = EligibilityFilter(fetcher, clock=lambda: NOW)

        assert await eligibility.filter_pettable([1, 2, 3]) == [1, 3]
        assert [call.args[0] for call in fetcher.await_args_list] == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_check_gotchis_reports_each_outcome(self):
        fetcher = make_fetcher({1: NOW - HOUR}, failing_ids={2})
        eligibility = EligibilityFilter(fetcher, clock=lambda: NOW)

        results = await eligibility.check_gotchis([1, 2])

        assert isinstance(results[0], Checked)
        assert results[0].state.last_interacted == NOW - HOUR
        assert isinstance(results[1], Skipped)
        assert results[1].gotchi_id == 2
        assert "timeout" in results[1].reason

    @pytest.mark.asyncio
    async def test_all_reads_failing_yields_empty_list(self):
        fetcher = make_fetcher({}, failing_ids={1, 2})
        eligibility = EligibilityFilter(fetcher, clock=lambda: NOW)

        assert await eligibility.filter_pettable([1, 2]) == []

    @pytest.mark.asyncio
    async def test_custom_threshold(self):
        fetcher = make_fetcher({1: NOW - 2 * HOUR})
        eligibility = EligibilityFilter(
            fetcher, seconds_between_pets=HOUR, clock=lambda: NOW
        )

        assert await eligibility.filter_pettable([1]) == [1]

    @pytest.mark.asyncio
    async def test_unexpected_errors_propagate(self):
        fetcher = AsyncMock(side_effect=RuntimeError("bug"))
        eligibility = EligibilityFilter(fetcher, clock=lambda: NOW)

        with pytest.raises(RuntimeError):
            await eligibility.filter_pettable([1])
