"""
Reload the config file when it changes on disk.

watchdog reports file events on its own thread. A change is re-read and
validated there and only a valid config is handed to the asyncio loop.
"""

from __future__ import annotations

import asyncio
import logging
import os
import time
from collections.abc import Callable
from typing import Any

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from ..constants import RELOAD_WATCH_DELAY
from ..errors.internal import ConfigError
from ..logs.logger import logger
from .loader import load_config
from .model import BotConfig


class ConfigFileHandler(FileSystemEventHandler):
    """Forwards events for a single file, once per modification time."""

    def __init__(self, config_file: str, on_change: Callable[[], None]) -> None:
        super().__init__()
        self.config_file = os.path.abspath(config_file)
        self.on_change = on_change
        self.last_mtime = 0.0

    def _touches_config(self, event: FileSystemEvent) -> bool:
        # Editors that save via rename show up as a move onto the file.
        paths = (getattr(event, "src_path", ""), getattr(event, "dest_path", ""))
        return any(p and os.path.abspath(p) == self.config_file for p in paths)

    def _mtime_advanced(self) -> bool:
        try:
            mtime = os.path.getmtime(self.config_file)
        except FileNotFoundError:
            return False
        if mtime <= self.last_mtime:
            return False
        self.last_mtime = mtime
        return True

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory or not self._touches_config(event):
            return
        if self._mtime_advanced():
            # Let multi-step writes settle before reading.
            time.sleep(RELOAD_WATCH_DELAY)
            self.on_change()


class ConfigWatcher:
    """Watches ``config_file`` and passes every valid reload to ``reload_callback``.

    The callback always runs on ``loop``, so it may touch asyncio state.
    """

    def __init__(
        self,
        config_file: str,
        reload_callback: Callable[[BotConfig], Any],
        loop: asyncio.AbstractEventLoop,
    ) -> None:
        self.config_file = config_file
        self.reload_callback = reload_callback
        self.loop = loop
        self.observer: Any | None = None

    @property
    def running(self) -> bool:
        return self.observer is not None

    def start(self) -> None:
        if self.running:
            return
        directory = os.path.dirname(os.path.abspath(self.config_file))
        if not os.path.isdir(directory):
            logger.log_event(
                "config_watch", "dir_missing", level=logging.WARNING, path=directory
            )
            return

        observer = Observer()
        observer.schedule(
            ConfigFileHandler(self.config_file, self.reload), directory, recursive=False
        )
        try:
            observer.start()
        except OSError as e:
            logger.log_event(
                "config_watch", "start_failed", level=logging.ERROR, error=str(e)
            )
            return
        self.observer = observer
        logger.log_event("config_watch", "start", path=self.config_file)

    def stop(self) -> None:
        observer, self.observer = self.observer, None
        if observer is None:
            return
        observer.stop()
        observer.join()
        logger.log_event("config_watch", "stopped")

    def reload(self) -> None:
        """Re-read the file; an invalid config is logged and dropped."""
        try:
            config = load_config(self.config_file)
        except ConfigError as e:
            logger.log_event(
                "config_watch", "invalid", level=logging.ERROR, error=str(e)
            )
            return
        logger.log_event(
            "config_watch", "validation_passed", servers=len(config.irc_servers)
        )
        self.loop.call_soon_threadsafe(self.reload_callback, config)


async def create_config_watcher(
    config_file: str, reload_callback: Callable[[BotConfig], Any]
) -> ConfigWatcher:
    """Create and start a watcher; starting the observer thread runs off-loop."""
    loop = asyncio.get_running_loop()
    watcher = ConfigWatcher(config_file, reload_callback, loop)
    await loop.run_in_executor(None, watcher.start)
    return watcher
