"""
Polygon gas station client.

The gas station publishes fee recommendations per speed tier. Its JSON body is
classified once, at the boundary, into one of ``ValidQuote``, ``MissingTier``
or ``ExplicitError`` so the rest of the petter never inspects the raw shape.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

import aiohttp

from .constants import DEFAULT_GAS_SPEED, POLYGON_GAS_STATION_HOST
from .errors import OracleError

REQUEST_TIMEOUT_SECONDS = 10


@dataclass(frozen=True)
class GasQuote:
    """Fee recommendation for one speed tier, in gwei."""

    speed: str
    max_priority_fee: float
    max_fee: Optional[float]
    estimated_base_fee: float


@dataclass(frozen=True)
class ValidQuote:
    quote: GasQuote


@dataclass(frozen=True)
class MissingTier:
    speed: str


@dataclass(frozen=True)
class ExplicitError:
    message: str


GasStationResult = Union[ValidQuote, MissingTier, ExplicitError]


def classify_gas_station_payload(payload: Any, speed: str) -> GasStationResult:
    """Turn a decoded gas station body into a tagged result."""
    if not isinstance(payload, dict):
        return ExplicitError(f"unexpected response body: {payload!r}")

    error = payload.get("error")
    if error:
        if isinstance(error, dict):
            message = str(error.get("message") or error)
        else:
            message = str(error)
        return ExplicitError(message)

    tier = payload.get(speed)
    if not isinstance(tier, dict) or tier.get("maxPriorityFee") is None:
        return MissingTier(speed)

    try:
        max_fee_raw = tier.get("maxFee")
        quote = GasQuote(
            speed=speed,
            max_priority_fee=float(tier["maxPriorityFee"]),
            max_fee=float(max_fee_raw) if max_fee_raw is not None else None,
            estimated_base_fee=float(payload["estimatedBaseFee"]),
        )
    except (KeyError, TypeError, ValueError) as exc:
        return ExplicitError(f"malformed fee data: {exc}")
    return ValidQuote(quote)


class GasStationClient:
    """Fetches fresh fee quotes from the Polygon gas station."""

    def __init__(
        self,
        url: str = POLYGON_GAS_STATION_HOST,
        speed: str = DEFAULT_GAS_SPEED,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._url = url
        self._speed = speed
        self._logger = logger or logging.getLogger("gas_station")

    @property
    def speed(self) -> str:
        return self._speed

    async def fetch_gas_quote(self) -> GasQuote:
        """Return the quote for the configured speed tier or raise OracleError."""
        payload = await self._get_json()
        result = classify_gas_station_payload(payload, self._speed)

        if isinstance(result, ExplicitError):
            raise OracleError(f"Polygon gas station error: {result.message}")
        if isinstance(result, MissingTier):
            raise OracleError(
                f"Polygon gas station response does not include data for gas speed '{result.speed}'"
            )

        self._logger.debug(
            "Gas quote (%s): priority=%s gwei base=%s gwei",
            result.quote.speed,
            result.quote.max_priority_fee,
            result.quote.estimated_base_fee,
        )
        return result.quote

    async def _get_json(self) -> Dict[str, Any]:
        timeout = aiohttp.ClientTimeout(total=REQUEST_TIMEOUT_SECONDS)
        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.get(self._url) as resp:
                    if resp.status != 200:
                        text = await resp.text()
                        raise OracleError(
                            f"Polygon gas station returned HTTP {resp.status}: {text[:200]}"
                        )
                    return await resp.json(content_type=None)
        except OracleError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as exc:
            raise OracleError(f"Polygon gas station request failed: {exc}") from exc
