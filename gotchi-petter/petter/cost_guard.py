"""
Gas pricing and the spending ceiling for pet transactions.

``apply_gas_pricing`` returns either a ``PricedTransaction`` ready to be signed
or a ``CostCeilingExceeded`` outcome. Going over the ceiling is a policy
decision and is never raised as an exception.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from decimal import Decimal
from typing import Awaitable, Callable, Optional, Union

from .constants import DEFAULT_GAS_COST_LIMIT_MATIC, GWEI, WEI_PER_MATIC
from .gas_station import GasQuote
from .models import PricedTransaction, UnsignedTransaction


@dataclass(frozen=True)
class CostCeilingExceeded:
    estimated_cost: float
    limit: float
    gas_limit: int
    max_priority_fee_per_gas: int


PricingResult = Union[PricedTransaction, CostCeilingExceeded]


def gwei_to_wei_ceil(value: float) -> int:
    """Convert a gwei amount to wei, rounding up to the next whole wei."""
    return int(math.ceil(Decimal(str(value)) * GWEI))


def estimate_cost_matic(
    gas_limit: int, max_priority_fee_per_gas: int, estimated_base_fee_gwei: float
) -> float:
    """Return ``gasLimit * (priorityFee + baseFee)`` expressed in MATIC."""
    return (
        gas_limit * (max_priority_fee_per_gas + estimated_base_fee_gwei * GWEI)
    ) / WEI_PER_MATIC


class CostGuard:
    """Prices an unsigned transaction and enforces the gas cost ceiling."""

    def __init__(
        self,
        fetch_gas_quote: Callable[[], Awaitable[GasQuote]],
        estimate_gas: Callable[[UnsignedTransaction], Awaitable[int]],
        gas_cost_limit: float = DEFAULT_GAS_COST_LIMIT_MATIC,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._fetch_gas_quote = fetch_gas_quote
        self._estimate_gas = estimate_gas
        self._gas_cost_limit = gas_cost_limit
        self._logger = logger or logging.getLogger("cost_guard")

    @property
    def gas_cost_limit(self) -> float:
        return self._gas_cost_limit

    async def apply_gas_pricing(self, tx: UnsignedTransaction) -> PricingResult:
        quote = await self._fetch_gas_quote()
        gas_limit = await self._estimate_gas(tx)

        max_priority_fee_per_gas = gwei_to_wei_ceil(quote.max_priority_fee)
        base_fee_per_gas = gwei_to_wei_ceil(quote.estimated_base_fee)
        # Same headroom web3 clients apply by default: twice the base fee plus the tip
        max_fee_per_gas = 2 * base_fee_per_gas + max_priority_fee_per_gas

        self._logger.info(
            "Creating pet transaction: (from=%s, to=%s, gasLimit=%s, maxPriorityFeePerGas=%s)",
            tx.from_address,
            tx.to,
            gas_limit,
            max_priority_fee_per_gas,
        )

        estimated_cost = estimate_cost_matic(
            gas_limit, max_priority_fee_per_gas, quote.estimated_base_fee
        )
        self._logger.info("Estimated gas cost is ~%.6f MATIC", estimated_cost)

        if estimated_cost > self._gas_cost_limit:
            return CostCeilingExceeded(
                estimated_cost=estimated_cost,
                limit=self._gas_cost_limit,
                gas_limit=gas_limit,
                max_priority_fee_per_gas=max_priority_fee_per_gas,
            )

        return PricedTransaction(
            unsigned=tx,
            gas_limit=gas_limit,
            max_priority_fee_per_gas=max_priority_fee_per_gas,
            max_fee_per_gas=max_fee_per_gas,
            estimated_cost=estimated_cost,
        )
