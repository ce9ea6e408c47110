"""Event handler registry for an IRC connection.

Handlers are keyed by event name (an IRC command such as ``PRIVMSG`` or one
of the synthetic ``CONNECTED`` / ``DISCONNECTED`` events). Plain functions run
inline on the read loop; coroutine functions are scheduled as tasks so a
handler that waits on later traffic (e.g. a NickServ reply) never blocks the
loop that delivers it.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Callable
from typing import Any

from ..logs.logger import logger
from .parser import IRCLine

CONNECTED = "CONNECTED"
DISCONNECTED = "DISCONNECTED"

LineHandler = Callable[[IRCLine], Any]


class HandlerRemover:
    """Detaches one registered handler; calling ``remove`` twice is a no-op."""

    def __init__(self, registry: HandlerRegistry, event: str, handler: LineHandler):
        self._registry = registry
        self._event = event
        self._handler = handler
        self._removed = False

    @property
    def removed(self) -> bool:
        return self._removed

    def remove(self) -> None:
        if self._removed:
            return
        self._removed = True
        self._registry._discard(self._event, self._handler)  # noqa: SLF001


class HandlerRegistry:
    def __init__(self, server: str | None = None) -> None:
        self.server = server
        self._handlers: dict[str, list[LineHandler]] = {}
        self._tasks: set[asyncio.Task[Any]] = set()

    def add(self, event: str, handler: LineHandler) -> HandlerRemover:
        self._handlers.setdefault(event.upper(), []).append(handler)
        return HandlerRemover(self, event.upper(), handler)

    def count(self, event: str) -> int:
        return len(self._handlers.get(event.upper(), []))

    @property
    def pending_tasks(self) -> set[asyncio.Task[Any]]:
        return set(self._tasks)

    def _discard(self, event: str, handler: LineHandler) -> None:
        handlers = self._handlers.get(event)
        if handlers and handler in handlers:
            handlers.remove(handler)

    def dispatch(self, event: str, line: IRCLine) -> None:
        # Copy: handlers may remove themselves while we iterate.
        for handler in list(self._handlers.get(event.upper(), [])):
            if inspect.iscoroutinefunction(handler):
                task = asyncio.create_task(self._run_async(event, handler, line))
                self._tasks.add(task)
                task.add_done_callback(self._tasks.discard)
                continue
            try:
                handler(line)
            except Exception as e:  # noqa: BLE001
                self._log_handler_error(event, e)

    async def _run_async(self, event: str, handler: LineHandler, line: IRCLine) -> None:
        try:
            await handler(line)
        except asyncio.CancelledError:
            raise
        except Exception as e:  # noqa: BLE001
            self._log_handler_error(event, e)

    def _log_handler_error(self, event: str, error: Exception) -> None:
        logger.log_event(
            "irc",
            "handler_error",
            level=logging.ERROR,
            server=self.server,
            event=event,
            error=str(error),
            error_type=type(error).__name__,
        )

    async def drain(self, timeout: float | None = None) -> None:
        """Wait for in-flight handler tasks, cancelling any left at ``timeout``."""
        if not self._tasks:
            return
        tasks = set(self._tasks)
        _done, pending = await asyncio.wait(tasks, timeout=timeout)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
