"""
One petting pass: filter, build, price, sign and submit.

A run never raises. Every outcome, including failures, is logged and
reported as a ``RunOutcome`` so the scheduler keeps ticking.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Optional, Sequence

from .aavegotchi import AavegotchiClient
from .config import PetterConfig
from .cost_guard import CostCeilingExceeded, CostGuard
from .eligibility import EligibilityFilter
from .errors import PetterError
from .gas_station import GasStationClient
from .models import GotchiId
from .transaction_sender import TransactionSender


class RunOutcome(Enum):
    NOTHING_TO_PET = "nothing_to_pet"
    ABORTED = "aborted"
    SUBMITTED = "submitted"
    FAILED = "failed"
    SKIPPED_OVERLAP = "skipped_overlap"


class PetRunner:
    """Runs the petting pipeline for the configured gotchis."""

    def __init__(
        self,
        config: PetterConfig,
        eligibility: EligibilityFilter,
        chain: AavegotchiClient,
        cost_guard: CostGuard,
        sender: TransactionSender,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._config = config
        self._eligibility = eligibility
        self._chain = chain
        self._cost_guard = cost_guard
        self._sender = sender
        self._logger = logger or logging.getLogger("pet_runner")
        self._run_lock = asyncio.Lock()

    @classmethod
    def from_config(
        cls, config: PetterConfig, logger: Optional[logging.Logger] = None
    ) -> "PetRunner":
        """Wire every component from a single configuration."""
        chain = AavegotchiClient(config, logger=logger)
        gas_station = GasStationClient(
            url=config.gas_station_url, speed=config.gas_speed, logger=logger
        )
        return cls(
            config=config,
            eligibility=EligibilityFilter(
                chain.fetch_gotchi_state,
                seconds_between_pets=config.seconds_between_pets,
                logger=logger,
            ),
            chain=chain,
            cost_guard=CostGuard(
                gas_station.fetch_gas_quote,
                chain.estimate_gas,
                gas_cost_limit=config.gas_cost_limit,
                logger=logger,
            ),
            sender=TransactionSender(chain.w3, config.private_key, logger=logger),
            logger=logger,
        )

    @property
    def is_running(self) -> bool:
        return self._run_lock.locked()

    async def run_guarded(self) -> RunOutcome:
        """Run once unless a previous run is still in progress."""
        if self._run_lock.locked():
            self._logger.warning(
                "Skipping petting run: previous run is still in progress"
            )
            return RunOutcome.SKIPPED_OVERLAP
        async with self._run_lock:
            return await self.run_once()

    async def run_once(self) -> RunOutcome:
        """Execute the full pipeline once; errors end the run, not the process."""
        try:
            pettable_ids = await self._eligibility.filter_pettable(
                self._config.gotchi_ids
            )
            return await self.pet_gotchis(pettable_ids)
        except PetterError as exc:
            self._logger.error("Error during petting process: %s", exc)
        except Exception as exc:
            self._logger.error("Error in main petting loop: %s", exc, exc_info=True)
        return RunOutcome.FAILED

    async def pet_gotchis(self, gotchi_ids: Sequence[GotchiId]) -> RunOutcome:
        if not gotchi_ids:
            self._logger.info("There are no gotchis to be pet at this time.")
            return RunOutcome.NOTHING_TO_PET

        self._logger.info(
            "Petting gotchis with ids: %s", ",".join(str(i) for i in gotchi_ids)
        )
        unsigned = self._chain.build_interaction(gotchi_ids)
        priced = await self._cost_guard.apply_gas_pricing(unsigned)

        if isinstance(priced, CostCeilingExceeded):
            self._logger.info(
                "ABORTED: Estimated gas cost exceeds limit. GAS_COST_LIMIT_MATIC=%s",
                priced.limit,
            )
            return RunOutcome.ABORTED

        tx_params = await self._sender.prepare(priced)
        signed = self._sender.sign(tx_params)
        receipt = await self._sender.submit(signed)
        self._logger.info("Transaction complete. Hash: %s", receipt.tx_hash)
        return RunOutcome.SUBMITTED
