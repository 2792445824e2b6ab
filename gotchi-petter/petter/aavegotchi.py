"""
Aavegotchi diamond contract access for the petter.

Wraps the read-only ``getAavegotchi`` call, the encoding of the ``interact``
batch call and gas estimation. Web3 calls are blocking, so the async entry
points run them in the default executor.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional, Sequence

from web3 import Web3
from web3.contract import Contract
from web3.middleware import ExtraDataToPOAMiddleware

from .config import PetterConfig
from .errors import ChainReadError
from .models import GotchiId, GotchiState, UnsignedTransaction


def _component(type_: str, name: str, internal_type: Optional[str] = None) -> Dict[str, Any]:
    return {"internalType": internal_type or type_, "name": name, "type": type_}


ITEM_TYPE_COMPONENTS: List[Dict[str, Any]] = [
    _component("string", "name"),
    _component("string", "description"),
    _component("string", "author"),
    _component("int8[6]", "traitModifiers"),
    _component("bool[16]", "slotPositions"),
    _component("uint8[]", "allowedCollaterals"),
    {
        "components": [
            _component("uint8", "x"),
            _component("uint8", "y"),
            _component("uint8", "width"),
            _component("uint8", "height"),
        ],
        "internalType": "struct Dimensions",
        "name": "dimensions",
        "type": "tuple",
    },
    _component("uint256", "ghstPrice"),
    _component("uint256", "maxQuantity"),
    _component("uint256", "totalQuantity"),
    _component("uint32", "svgId"),
    _component("uint8", "rarityScoreModifier"),
    _component("bool", "canPurchaseWithGhst"),
    _component("uint16", "minLevel"),
    _component("bool", "canBeTransferred"),
    _component("uint8", "category"),
    _component("int16", "kinshipBonus"),
    _component("uint32", "experienceBonus"),
]

AAVEGOTCHI_INFO_COMPONENTS: List[Dict[str, Any]] = [
    _component("uint256", "tokenId"),
    _component("string", "name"),
    _component("address", "owner"),
    _component("uint256", "randomNumber"),
    _component("uint256", "status"),
    _component("int16[6]", "numericTraits"),
    _component("int16[6]", "modifiedNumericTraits"),
    _component("uint16[16]", "equippedWearables"),
    _component("address", "collateral"),
    _component("address", "escrow"),
    _component("uint256", "stakedAmount"),
    _component("uint256", "minimumStake"),
    _component("uint256", "kinship"),
    _component("uint256", "lastInteracted"),
    _component("uint256", "experience"),
    _component("uint256", "toNextLevel"),
    _component("uint256", "usedSkillPoints"),
    _component("uint256", "level"),
    _component("uint256", "hauntId"),
    _component("uint256", "baseRarityScore"),
    _component("uint256", "modifiedRarityScore"),
    _component("bool", "locked"),
    {
        "components": [
            _component("uint256", "balance"),
            _component("uint256", "itemId"),
            {
                "components": ITEM_TYPE_COMPONENTS,
                "internalType": "struct ItemType",
                "name": "itemType",
                "type": "tuple",
            },
        ],
        "internalType": "struct ItemTypeIO[]",
        "name": "items",
        "type": "tuple[]",
    },
]

# Minimal ABI fragment for the Aavegotchi diamond.
AAVEGOTCHI_DIAMOND_ABI: List[Dict[str, Any]] = [
    {
        "inputs": [{"internalType": "uint256", "name": "_tokenId", "type": "uint256"}],
        "name": "getAavegotchi",
        "outputs": [
            {
                "components": AAVEGOTCHI_INFO_COMPONENTS,
                "internalType": "struct AavegotchiInfo",
                "name": "aavegotchiInfo_",
                "type": "tuple",
            }
        ],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [
            {"internalType": "uint256[]", "name": "_tokenIds", "type": "uint256[]"}
        ],
        "name": "interact",
        "outputs": [],
        "stateMutability": "nonpayable",
        "type": "function",
    },
]

# Field positions inside AavegotchiInfo, used when the node returns a plain tuple.
_TOKEN_ID_INDEX = 0
_LAST_INTERACTED_INDEX = 13


def _read_field(info: Any, name: str, index: int) -> Any:
    if isinstance(info, dict):
        return info[name]
    if hasattr(info, name):
        return getattr(info, name)
    return info[index]


class AavegotchiClient:
    """Reads gotchi state and prepares ``interact`` calls on the diamond."""

    def __init__(
        self,
        config: PetterConfig,
        logger: Optional[logging.Logger] = None,
        w3: Optional[Web3] = None,
    ) -> None:
        self._logger = logger or logging.getLogger("aavegotchi")
        self._config = config
        self._wallet_address = Web3.to_checksum_address(config.wallet_address)
        self._w3 = w3 if w3 is not None else self._create_web3(config.rpc_url)
        self._contract: Contract = self._w3.eth.contract(
            address=Web3.to_checksum_address(config.contract_address),
            abi=AAVEGOTCHI_DIAMOND_ABI,
            decode_tuples=True,
        )

    @property
    def w3(self) -> Web3:
        return self._w3

    @property
    def contract_address(self) -> str:
        return self._contract.address

    def _create_web3(self, rpc_url: str) -> Web3:
        w3 = Web3(Web3.HTTPProvider(rpc_url))
        # Polygon blocks carry POA extra-data
        try:
            w3.middleware_onion.inject(ExtraDataToPOAMiddleware, layer=0)
        except ValueError:
            pass
        return w3

    async def fetch_gotchi_state(self, gotchi_id: GotchiId) -> GotchiState:
        """Return the current on-chain state of a gotchi or raise ChainReadError."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._fetch_gotchi_state_sync, gotchi_id)

    def _fetch_gotchi_state_sync(self, gotchi_id: GotchiId) -> GotchiState:
        try:
            info = self._contract.functions.getAavegotchi(int(gotchi_id)).call()
            return GotchiState(
                token_id=int(_read_field(info, "tokenId", _TOKEN_ID_INDEX)),
                last_interacted=int(
                    _read_field(info, "lastInteracted", _LAST_INTERACTED_INDEX)
                ),
            )
        except Exception as exc:
            raise ChainReadError(
                f"getAavegotchi({gotchi_id}) failed: {exc}"
            ) from exc

    def build_interaction(self, gotchi_ids: Sequence[GotchiId]) -> UnsignedTransaction:
        """Encode a single ``interact`` call petting every given gotchi."""
        ids = tuple(int(gotchi_id) for gotchi_id in gotchi_ids)
        data = self._contract.encode_abi("interact", args=[list(ids)])
        return UnsignedTransaction(
            from_address=self._wallet_address,
            to=self._contract.address,
            data=data,
            gotchi_ids=ids,
        )

    async def estimate_gas(self, tx: UnsignedTransaction) -> int:
        """Simulate the transaction on the node and return its gas usage."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._estimate_gas_sync, tx)

    def _estimate_gas_sync(self, tx: UnsignedTransaction) -> int:
        try:
            return int(self._w3.eth.estimate_gas(tx.as_call()))
        except Exception as exc:
            raise ChainReadError(f"Gas estimation failed: {exc}") from exc
