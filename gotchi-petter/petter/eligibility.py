"""
Eligibility check deciding which gotchis can be pet on this run.

Each id is checked sequentially and produces either ``Checked`` or
``Skipped``. A failed read only skips that id; the batch always completes.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional, Sequence, Union

from .constants import SECONDS_BETWEEN_PETS
from .errors import ChainReadError
from .models import GotchiId, GotchiState

StateFetcher = Callable[[GotchiId], Awaitable[GotchiState]]


@dataclass(frozen=True)
class Checked:
    gotchi_id: GotchiId
    state: GotchiState


@dataclass(frozen=True)
class Skipped:
    gotchi_id: GotchiId
    reason: str


CheckResult = Union[Checked, Skipped]


def is_ready_to_be_pet(
    state: GotchiState,
    now: float,
    seconds_between_pets: int = SECONDS_BETWEEN_PETS,
) -> bool:
    """Return True once strictly more than the pet interval has elapsed."""
    seconds_since_last_pet = int(now) - state.last_interacted
    return seconds_since_last_pet > seconds_between_pets


class EligibilityFilter:
    """Applies the time-since-last-pet threshold to a list of gotchi ids."""

    def __init__(
        self,
        fetch_state: StateFetcher,
        seconds_between_pets: int = SECONDS_BETWEEN_PETS,
        clock: Callable[[], float] = time.time,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._fetch_state = fetch_state
        self._seconds_between_pets = seconds_between_pets
        self._clock = clock
        self._logger = logger or logging.getLogger("eligibility")

    async def check_gotchis(self, gotchi_ids: Sequence[GotchiId]) -> List[CheckResult]:
        """Fetch the state of every gotchi, one at a time, in input order."""
        results: List[CheckResult] = []
        for gotchi_id in gotchi_ids:
            self._logger.info("Checking status of gotchi (id=%s)", gotchi_id)
            try:
                state = await self._fetch_state(gotchi_id)
            except ChainReadError as exc:
                self._logger.error(
                    "Error while fetching gotchi (id=%s): %s", gotchi_id, exc
                )
                results.append(Skipped(gotchi_id, str(exc)))
                continue
            self._logger.info(
                "Found gotchi: (id=%s, lastInteracted=%s)",
                state.token_id,
                state.last_interacted_at.isoformat(),
            )
            results.append(Checked(gotchi_id, state))
        return results

    async def filter_pettable(self, gotchi_ids: Sequence[GotchiId]) -> List[GotchiId]:
        """Return the ids that are ready to be pet, preserving input order."""
        results = await self.check_gotchis(gotchi_ids)
        now = self._clock()
        pettable: List[GotchiId] = []
        for result in results:
            if isinstance(result, Skipped):
                continue
            if is_ready_to_be_pet(result.state, now, self._seconds_between_pets):
                pettable.append(result.gotchi_id)
            else:
                self._logger.info(
                    "Gotchi with id %s is not ready to be pet yet", result.gotchi_id
                )
        return pettable
