"""
Process configuration for the Gotchi Petter.

Everything the petter needs is read once from the environment at startup and
frozen into a ``PetterConfig`` that is handed to each component.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional, Tuple

from eth_account import Account
from web3 import Web3

from .constants import (
    AAVEGOTCHI_DIAMOND_ADDRESS,
    DEFAULT_GAS_COST_LIMIT_MATIC,
    DEFAULT_GAS_SPEED,
    DEFAULT_POLYGON_RPC_HOST,
    GAS_SPEEDS,
    POLYGON_GAS_STATION_HOST,
    SECONDS_BETWEEN_PETS,
)
from .errors import ConfigError


@dataclass(frozen=True)
class PetterConfig:
    """Immutable runtime configuration shared by all components."""

    wallet_address: str
    private_key: str
    gotchi_ids: Tuple[int, ...]
    rpc_url: str = DEFAULT_POLYGON_RPC_HOST
    contract_address: str = AAVEGOTCHI_DIAMOND_ADDRESS
    gas_station_url: str = POLYGON_GAS_STATION_HOST
    gas_speed: str = DEFAULT_GAS_SPEED
    gas_cost_limit: float = DEFAULT_GAS_COST_LIMIT_MATIC
    seconds_between_pets: int = SECONDS_BETWEEN_PETS

    def __repr__(self) -> str:
        # Never leak the key into logs
        return (
            f"PetterConfig(wallet_address={self.wallet_address!r}, "
            f"gotchi_ids={self.gotchi_ids!r}, rpc_url={self.rpc_url!r}, "
            f"gas_speed={self.gas_speed!r}, gas_cost_limit={self.gas_cost_limit!r})"
        )

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        password: Optional[str] = None,
    ) -> "PetterConfig":
        """Build the configuration from environment variables.

        Raises ConfigError on the first missing or malformed value.
        """
        env = os.environ if environ is None else environ

        wallet_address = _require(env, "PETTER_WALLET_ADDRESS")
        try:
            wallet_address = Web3.to_checksum_address(wallet_address)
        except ValueError as exc:
            raise ConfigError(f"Invalid PETTER_WALLET_ADDRESS: {exc}") from exc

        if password is None:
            password = env.get("PETTER_WALLET_KEY_PASSWORD") or None
        private_key = prepare_private_key(_require(env, "PETTER_WALLET_KEY"), password)

        gas_speed = (env.get("GAS_SPEED") or DEFAULT_GAS_SPEED).strip()
        if gas_speed not in GAS_SPEEDS:
            raise ConfigError(
                f"Unsupported GAS_SPEED '{gas_speed}' (expected one of {', '.join(GAS_SPEEDS)})"
            )

        limit_raw = (env.get("GAS_COST_LIMIT_MATIC") or "").strip()
        gas_cost_limit = DEFAULT_GAS_COST_LIMIT_MATIC
        if limit_raw:
            try:
                gas_cost_limit = float(limit_raw)
            except ValueError as exc:
                raise ConfigError(f"Invalid GAS_COST_LIMIT_MATIC '{limit_raw}'") from exc
            if gas_cost_limit <= 0:
                raise ConfigError("GAS_COST_LIMIT_MATIC must be positive")

        return cls(
            wallet_address=wallet_address,
            private_key=private_key,
            gotchi_ids=parse_gotchi_ids(_require(env, "GOTCHI_IDS")),
            rpc_url=(env.get("POLYGON_RPC_HOST") or DEFAULT_POLYGON_RPC_HOST).strip(),
            gas_speed=gas_speed,
            gas_cost_limit=gas_cost_limit,
        )


def _require(env: Mapping[str, str], name: str) -> str:
    value = (env.get(name) or "").strip()
    if not value:
        raise ConfigError(f"Missing required environment variable {name}")
    return value


def parse_gotchi_ids(raw: str) -> Tuple[int, ...]:
    """Parse a comma separated list of gotchi ids, keeping the given order."""
    ids = []
    for part in raw.split(","):
        part = part.strip()
        if not part:
            continue
        try:
            gotchi_id = int(part)
        except ValueError as exc:
            raise ConfigError(f"Invalid gotchi id '{part}' in GOTCHI_IDS") from exc
        if gotchi_id < 0:
            raise ConfigError(f"Invalid gotchi id '{part}' in GOTCHI_IDS")
        ids.append(gotchi_id)
    if not ids:
        raise ConfigError("GOTCHI_IDS does not contain any gotchi id")
    return tuple(ids)


def prepare_private_key(key_data: str, password: Optional[str] = None) -> str:
    """Return a usable private key, decrypting a keystore when a password is given."""
    key_data = key_data.strip()
    if password is None:
        return key_data if key_data.startswith("0x") else f"0x{key_data}"

    try:
        decrypted_bytes = Account.decrypt(key_data, password)
    except Exception as exc:
        raise ConfigError(f"Failed to decrypt wallet keystore: {exc}") from exc

    return Web3.to_hex(decrypted_bytes)
