"""
Shared constants for the Gotchi Petter.

This module provides a single source of truth for values that are used
across multiple modules.
"""

AAVEGOTCHI_DIAMOND_ADDRESS = "0x86935F11C86623deC8a25696E1C19a8659CbF95d"
DEFAULT_POLYGON_RPC_HOST = "https://polygon-rpc.com/"
POLYGON_GAS_STATION_HOST = "https://gasstation.polygon.technology/v2"

# Speed tiers published by the gas station
GAS_SPEEDS = ("safeLow", "standard", "fast")
DEFAULT_GAS_SPEED = "standard"
DEFAULT_GAS_COST_LIMIT_MATIC = 0.05

# A gotchi can be pet again once every 12 hours
SECONDS_BETWEEN_PETS = 60 * 60 * 12

# Runs fire on a 15 minute wall-clock grid (cron "*/15 * * * *")
RUN_INTERVAL_MINUTES = 15

GWEI = 10**9
WEI_PER_MATIC = 10**18
