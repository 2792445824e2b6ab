"""Value types passed between the petter components."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

GotchiId = int


@dataclass(frozen=True)
class GotchiState:
    """Snapshot of the on-chain fields the eligibility check needs."""

    token_id: GotchiId
    last_interacted: int

    @property
    def last_interacted_at(self) -> datetime:
        return datetime.fromtimestamp(self.last_interacted, tz=timezone.utc)


@dataclass(frozen=True)
class UnsignedTransaction:
    """Call to ``interact`` before any gas pricing."""

    from_address: str
    to: str
    data: str
    gotchi_ids: Tuple[GotchiId, ...] = field(default=())

    def as_call(self) -> Dict[str, Any]:
        """Return the fields used for eth_call / eth_estimateGas."""
        return {"from": self.from_address, "to": self.to, "data": self.data}


@dataclass(frozen=True)
class PricedTransaction:
    """Unsigned transaction with gas limit and EIP-1559 fees set (wei)."""

    unsigned: UnsignedTransaction
    gas_limit: int
    max_priority_fee_per_gas: int
    max_fee_per_gas: int
    estimated_cost: float

    def as_tx_params(self) -> Dict[str, Any]:
        params = self.unsigned.as_call()
        params.update(
            {
                "gas": self.gas_limit,
                "maxPriorityFeePerGas": self.max_priority_fee_per_gas,
                "maxFeePerGas": self.max_fee_per_gas,
            }
        )
        return params


@dataclass(frozen=True)
class SignedTransaction:
    raw_transaction: bytes
    tx_hash: str


@dataclass(frozen=True)
class TransactionReceipt:
    tx_hash: str
    block_number: Optional[int]
    gas_used: Optional[int]
    status: Optional[int]
