"""Startup and shutdown of every server connection."""

from __future__ import annotations

import asyncio
import logging
import signal

from ..commands import CommandRegistry, build_registry
from ..config.model import BotConfig
from ..config.watcher import ConfigWatcher, create_config_watcher
from ..constants import SHUTDOWN_TIMEOUT_SECONDS
from ..errors.handling import log_error
from ..errors.internal import NetworkError
from ..logs.logger import logger
from ..store import SqliteAccountStore
from ..store.protocols import AccountStore
from .core import EdenBot


class BotManager:
    """Runs one :class:`EdenBot` per configured server."""

    def __init__(
        self,
        config: BotConfig,
        registry: CommandRegistry,
        store: AccountStore,
        config_file: str | None = None,
    ) -> None:
        self.config = config
        self.registry = registry
        self.store = store
        self.config_file = config_file
        self.bots: list[EdenBot] = []
        self.watcher: ConfigWatcher | None = None
        self._stop_event = asyncio.Event()

    @property
    def shutdown_initiated(self) -> bool:
        return self._stop_event.is_set()

    def stop(self) -> None:
        self._stop_event.set()

    def setup_signal_handlers(self) -> None:  # pragma: no cover
        loop = asyncio.get_running_loop()

        def handler(signum: int) -> None:
            if self.shutdown_initiated:
                return
            logging.warning(f"Signal received - initiating shutdown (signal={signum})")
            self.stop()

        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, handler, sig)

    async def start_all_bots(self) -> list[EdenBot]:
        """Connect every server; failures are logged and skipped."""
        if not self.registry.sealed:
            self.registry.seal()
        candidates = [
            EdenBot.from_config(server, self.config, self.registry, self.store)
            for server in self.config.irc_servers
        ]
        results = await asyncio.gather(
            *(bot.start() for bot in candidates), return_exceptions=True
        )
        for bot, result in zip(candidates, results, strict=True):
            if isinstance(result, NetworkError):
                log_error("Failed to connect", result, {"server": bot.server})
            elif isinstance(result, BaseException):
                raise result
            else:
                self.bots.append(bot)
        logger.log_event(
            "manager", "bots_started", connected=len(self.bots), total=len(candidates)
        )
        return self.bots

    async def stop_all_bots(self, timeout: float = SHUTDOWN_TIMEOUT_SECONDS) -> None:
        bots, self.bots = self.bots, []
        live = [bot for bot in bots if bot.connected]
        results = await asyncio.gather(
            *(bot.close(timeout) for bot in live), return_exceptions=True
        )
        for bot, result in zip(live, results, strict=True):
            if isinstance(result, Exception):
                log_error("Error closing connection", result, {"server": bot.server})
        logger.log_event("manager", "bots_stopped", count=len(bots))

    def apply_config(self, config: BotConfig) -> None:
        self.config = config
        for bot in self.bots:
            bot.apply_config(config)
        logger.log_event("manager", "config_applied", bots=len(self.bots))

    async def run(self) -> None:
        """Start all bots and block until :meth:`stop` (or a signal)."""
        await self.start_all_bots()
        if not self.bots:
            logger.log_event("manager", "no_connections", level=logging.ERROR)
            return
        if self.config_file:
            self.watcher = await create_config_watcher(self.config_file, self.apply_config)
        try:
            await self._stop_event.wait()
        finally:
            if self.watcher is not None:
                self.watcher.stop()
            await self.stop_all_bots()


async def run_bots(config: BotConfig, config_file: str | None = None) -> None:
    """Open the store, build the command registry and run until signalled."""
    async with SqliteAccountStore(config.database_path) as store:
        registry = build_registry(config.command_prefix)
        manager = BotManager(config, registry, store, config_file)
        manager.setup_signal_handlers()
        logging.info(f"Servers: {', '.join(config.irc_servers) or 'none'}")
        logging.info(f"Channels: {', '.join(config.irc_channels) or 'none'}")
        await manager.run()
    logging.info("Goodbye")
