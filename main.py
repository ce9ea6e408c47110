#!/usr/bin/env python3
"""
Main entry point for the Eden IRC bot
"""

import asyncio
import logging
import sys

from eden.bot import run_bots
from eden.config import config_file_path, load_config
from eden.errors import ConfigError, log_error
from eden.logging_config import LoggerConfigurator


async def main() -> None:
    try:
        logging.info("Starting Eden")
        config_file = config_file_path()
        config = load_config(config_file)
        await run_bots(config, config_file)
    except ConfigError as e:
        log_error("Configuration error", e)
        sys.exit(1)
    except KeyboardInterrupt:
        logging.warning("Interrupted by user")
    finally:
        logging.info("Application shutdown complete")


def health_check() -> int:
    logging.info("Health check mode")
    try:
        config = load_config()
    except ConfigError as e:
        logging.error(f"Health check failed: {e}")
        return 1
    logging.info(
        f"Health check passed - {len(config.irc_servers)} server(s) configured"
    )
    return 0


if __name__ == "__main__":
    LoggerConfigurator().configure()

    if len(sys.argv) > 1 and sys.argv[1] == "--health-check":
        sys.exit(health_check())

    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logging.info("Application terminated by user")
        sys.exit(0)
    except Exception as e:
        log_error("Top-level error", e)
        logging.critical(f"Critical error occurred: {e}", exc_info=True)
        sys.exit(1)
