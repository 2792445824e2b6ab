"""
Signing and broadcasting of pet transactions.

The wallet key is only used locally by eth-account; the node only ever sees
the raw signed payload.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Optional

from eth_account import Account
from web3 import Web3
from web3.exceptions import TimeExhausted

from .errors import SigningError, SubmissionError
from .models import PricedTransaction, SignedTransaction, TransactionReceipt

DEFAULT_RECEIPT_TIMEOUT_SECONDS = 120
DYNAMIC_FEE_TX_TYPE = 2


class TransactionSender:
    """Completes, signs and submits transactions from the petter wallet."""

    def __init__(
        self,
        w3: Web3,
        private_key: str,
        receipt_timeout: float = DEFAULT_RECEIPT_TIMEOUT_SECONDS,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._w3 = w3
        self._private_key = private_key
        self._receipt_timeout = receipt_timeout
        self._logger = logger or logging.getLogger("transaction_sender")

    async def prepare(self, priced: PricedTransaction) -> Dict[str, Any]:
        """Fill in nonce and chain id so the transaction can be signed offline."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._prepare_sync, priced)

    def _prepare_sync(self, priced: PricedTransaction) -> Dict[str, Any]:
        tx_params = priced.as_tx_params()
        try:
            tx_params["nonce"] = self._w3.eth.get_transaction_count(
                priced.unsigned.from_address, "pending"
            )
            tx_params["chainId"] = self._w3.eth.chain_id
        except Exception as exc:
            raise SubmissionError(f"Failed to prepare transaction: {exc}") from exc
        tx_params["type"] = DYNAMIC_FEE_TX_TYPE
        tx_params["value"] = 0
        self._logger.debug(
            "Prepared pet transaction (nonce=%s, chainId=%s)",
            tx_params["nonce"],
            tx_params["chainId"],
        )
        return tx_params

    def sign(self, tx_params: Dict[str, Any]) -> SignedTransaction:
        """Sign the transaction locally with the wallet key."""
        try:
            signed = Account.sign_transaction(tx_params, self._private_key)
        except Exception as exc:
            raise SigningError(f"Failed to sign pet transaction: {exc}") from exc

        raw_tx = getattr(signed, "raw_transaction", None) or getattr(
            signed, "rawTransaction", None
        )
        if raw_tx is None:
            raise SigningError("Signed transaction missing raw payload")
        return SignedTransaction(
            raw_transaction=bytes(raw_tx), tx_hash=Web3.to_hex(signed.hash)
        )

    async def submit(self, signed: SignedTransaction) -> TransactionReceipt:
        """Broadcast the signed transaction and wait until it is mined."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._submit_sync, signed)

    def _submit_sync(self, signed: SignedTransaction) -> TransactionReceipt:
        try:
            tx_hash = self._w3.eth.send_raw_transaction(signed.raw_transaction)
        except Exception as exc:
            raise SubmissionError(f"Node rejected pet transaction: {exc}") from exc

        self._logger.info("Pet transaction sent: %s", Web3.to_hex(tx_hash))
        try:
            receipt = self._w3.eth.wait_for_transaction_receipt(
                tx_hash, timeout=self._receipt_timeout
            )
        except TimeExhausted as exc:
            raise SubmissionError(
                f"Pet transaction {Web3.to_hex(tx_hash)} not mined after {self._receipt_timeout}s"
            ) from exc
        except Exception as exc:
            raise SubmissionError(f"Failed to fetch transaction receipt: {exc}") from exc

        result = TransactionReceipt(
            tx_hash=Web3.to_hex(receipt.get("transactionHash", tx_hash)),
            block_number=receipt.get("blockNumber"),
            gas_used=receipt.get("gasUsed"),
            status=receipt.get("status"),
        )
        if result.status == 0:
            raise SubmissionError(f"Pet transaction {result.tx_hash} reverted")
        return result
