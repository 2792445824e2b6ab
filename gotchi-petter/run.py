#!/usr/bin/env python3
"""
Entry point for the Gotchi Petter.

Loads the configuration once, wires the components and pets the configured
gotchis every 15 minutes.
"""

import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path
from typing import Optional

# Add the current directory to Python path for local imports
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from dotenv import load_dotenv

from petter.config import PetterConfig
from petter.errors import ConfigError
from petter.pet_runner import PetRunner
from petter.scheduler import PetScheduler

DEFAULT_PETTER_VERSION = "0.1.0"


def setup_logging() -> logging.Logger:
    """Set up timestamped logging on stdout.

    Format: [YYYY-MM-DD HH:MM:SS] [LOG_LEVEL] [petter] Your message
    """
    log_format = "[%(asctime)s] [%(levelname)s] [petter] %(message)s"
    date_format = "%Y-%m-%d %H:%M:%S"

    level_name = os.environ.get("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format=log_format,
        datefmt=date_format,
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    # web3 and its HTTP stack are chatty at DEBUG
    logging.getLogger("web3").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)

    return logging.getLogger("gotchi_petter")


def load_environment() -> None:
    """Load a .env file next to this script, falling back to the working directory."""
    env_path = Path(__file__).parent / ".env"
    if env_path.exists():
        load_dotenv(dotenv_path=env_path)
    else:
        load_dotenv()


async def main(password: Optional[str] = None, once: bool = False) -> int:
    """Main entry point for the Gotchi Petter."""
    logger = setup_logging()
    logger.info("🚀 Starting Gotchi Petter")

    try:
        config = PetterConfig.from_env(password=password)
    except ConfigError as exc:
        logger.error("💥 Invalid configuration: %s", exc)
        return 1

    addr_preview = f"{config.wallet_address[:6]}...{config.wallet_address[-4:]}"
    logger.info(
        "Petter wallet %s watching %s gotchi(s): %s",
        addr_preview,
        len(config.gotchi_ids),
        ",".join(str(i) for i in config.gotchi_ids),
    )

    runner = PetRunner.from_config(config, logger=logger)

    if once:
        outcome = await runner.run_guarded()
        logger.info("Single run finished: %s", outcome.value)
        return 0

    scheduler = PetScheduler(runner.run_guarded, logger=logger)
    try:
        await scheduler.run_forever()
    except asyncio.CancelledError:
        logger.info("🛑 Petter shutdown requested")
    return 0


def get_version() -> str:
    """Return the current petter version."""
    return os.environ.get("GOTCHI_PETTER_VERSION", DEFAULT_PETTER_VERSION)


def parse_args() -> argparse.Namespace:
    """Parse CLI arguments for the petter."""
    parser = argparse.ArgumentParser(description="Pet your Aavegotchis on schedule.")
    parser.add_argument(
        "--password",
        type=str,
        help="Password to decrypt PETTER_WALLET_KEY when it holds a keystore.",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Run a single petting pass and exit.",
    )
    parser.add_argument(
        "--version",
        action="store_true",
        help="Print the Gotchi Petter version and exit.",
    )
    return parser.parse_args()


if __name__ == "__main__":
    cli_args = parse_args()

    if cli_args.version:
        print(f"Gotchi Petter {get_version()}")
        sys.exit(0)

    load_environment()
    try:
        sys.exit(asyncio.run(main(password=cli_args.password, once=cli_args.once)))
    except KeyboardInterrupt:
        print("\n🛑 Petter stopped by user")
        sys.exit(0)
    except Exception as e:
        print(f"💥 Fatal error: {e}")
        sys.exit(1)
