"""Asyncio IRC client connection."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from typing import Any

from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ..constants import (
    IRC_CONNECT_BACKOFF_MAX_SECONDS,
    IRC_CONNECT_MAX_ATTEMPTS,
    IRC_CONNECT_TIMEOUT,
    IRC_DEFAULT_PORT,
    IRC_READ_CHUNK_SIZE,
    IRC_READ_TIMEOUT,
)
from ..errors.internal import NetworkError
from ..logs.logger import logger
from .dispatcher import IRCDispatcher
from .handlers import DISCONNECTED, HandlerRegistry, HandlerRemover
from .parser import IRCLine, build_line


def split_server(server: str) -> tuple[str, int]:
    """Split ``host[:port]``; the port defaults to ``IRC_DEFAULT_PORT``."""
    host, sep, port = server.rpartition(":")
    if not sep:
        return server, IRC_DEFAULT_PORT
    if not host or not port.isdigit():
        raise ValueError(f"invalid server address: {server!r}")
    return host, int(port)


class IRCConnection:  # pylint: disable=too-many-instance-attributes
    """One client connection: registration, read loop and outbound primitives.

    Inbound lines are routed to ``handlers``; use :meth:`add_handler` to
    subscribe and the returned remover to unsubscribe.
    """

    def __init__(
        self,
        server: str,
        nickname: str,
        *,
        ident: str | None = None,
        realname: str | None = None,
        version: str | None = None,
        connect_timeout: float = IRC_CONNECT_TIMEOUT,
        read_timeout: float = IRC_READ_TIMEOUT,
        max_attempts: int = IRC_CONNECT_MAX_ATTEMPTS,
    ) -> None:
        self.server = server
        self.host, self.port = split_server(server)
        self.nickname = nickname
        self.current_nick = nickname
        self.ident = ident or nickname
        self.realname = realname or nickname
        self.version = version
        self.connect_timeout = connect_timeout
        self.read_timeout = read_timeout
        self.max_attempts = max_attempts
        self.reader: asyncio.StreamReader | None = None
        self.writer: asyncio.StreamWriter | None = None
        self.connected = False
        self.registered = False
        self.running = False
        self.message_buffer = ""
        self.last_server_activity = 0.0
        self.handlers = HandlerRegistry(server)
        self.dispatcher = IRCDispatcher(self)
        self._listen_task: asyncio.Task[None] | None = None
        self._write_lock = asyncio.Lock()

    def add_handler(self, event: str, handler: Callable[[IRCLine], Any]) -> HandlerRemover:
        return self.handlers.add(event, handler)

    async def connect(self) -> None:
        """Open the socket (with retry/backoff), register and start listening.

        Raises:
            NetworkError: Every attempt failed.
        """
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=1, max=IRC_CONNECT_BACKOFF_MAX_SECONDS),
            retry=retry_if_exception_type(NetworkError),
            reraise=True,
        ):
            with attempt:
                await self._open(attempt.retry_state.attempt_number)
        await self._register()
        self._listen_task = asyncio.create_task(self.listen())

    async def _open(self, attempt: int) -> None:
        logger.log_event(
            "irc", "connect_start", server=self.server, attempt=attempt
        )
        try:
            self.reader, self.writer = await asyncio.wait_for(
                asyncio.open_connection(self.host, self.port),
                timeout=self.connect_timeout,
            )
        except TimeoutError as e:
            logger.log_event(
                "irc",
                "connect_timeout",
                level=logging.WARNING,
                server=self.server,
                timeout=self.connect_timeout,
            )
            raise NetworkError("Connection timed out", data={"server": self.server}) from e
        except OSError as e:
            logger.log_event(
                "irc",
                "connect_network_error",
                level=logging.WARNING,
                server=self.server,
                error=str(e),
            )
            raise NetworkError("Connection failed", data={"server": self.server}) from e
        self.connected = True
        self.last_server_activity = time.time()

    async def _register(self) -> None:
        self.current_nick = self.nickname
        await self.send_line(f"NICK {self.nickname}")
        await self.send_line(build_line("USER", self.ident, "0", "*", self.realname))

    async def send_line(self, message: str) -> None:
        if not self.writer or not self.connected:
            raise NetworkError("Not connected", data={"server": self.server})
        try:
            async with self._write_lock:
                self.writer.write(f"{message}\r\n".encode())
                await self.writer.drain()
        except (OSError, RuntimeError) as e:
            raise NetworkError("Write failed", data={"server": self.server}) from e

    async def privmsg(self, target: str, text: str) -> None:
        for line in text.splitlines() or [""]:
            await self.send_line(build_line("PRIVMSG", target, line))

    async def notice(self, target: str, text: str) -> None:
        await self.send_line(build_line("NOTICE", target, text))

    async def join(self, channel: str) -> None:
        logger.log_event("irc", "join", server=self.server, channel=channel)
        await self.send_line(f"JOIN {channel}")

    async def quit(self, message: str | None = None) -> None:
        await self.send_line(build_line("QUIT", message) if message else "QUIT")

    async def listen(self) -> None:
        if not self.connected or not self.reader:
            logger.log_event(
                "irc", "listen_start_failed", level=logging.ERROR, server=self.server
            )
            return
        self.running = True
        logger.log_event("irc", "listener_start", level=logging.DEBUG, server=self.server)
        try:
            while self.running and self.connected:
                if await self._process_read_cycle():
                    break
        finally:
            await self._finalize_listening()

    async def _process_read_cycle(self) -> bool:
        """Read one chunk; return True when the loop should stop."""
        assert self.reader is not None
        try:
            data = await asyncio.wait_for(
                self.reader.read(IRC_READ_CHUNK_SIZE), timeout=self.read_timeout
            )
        except TimeoutError:
            logger.log_event(
                "irc",
                "connection_stale",
                level=logging.WARNING,
                server=self.server,
                timeout=self.read_timeout,
            )
            return True
        except OSError as e:
            logger.log_event(
                "irc", "connection_reset", level=logging.ERROR, server=self.server, error=str(e)
            )
            return True
        if not data:
            logger.log_event("irc", "connection_lost", level=logging.WARNING, server=self.server)
            return True
        self.message_buffer = await self.dispatcher.process_incoming_data(
            self.message_buffer, data.decode("utf-8", errors="replace")
        )
        return False

    async def _finalize_listening(self) -> None:
        self.running = False
        await self._close_transport()
        logger.log_event("irc", "disconnected", level=logging.WARNING, server=self.server)
        self.handlers.dispatch(
            DISCONNECTED, IRCLine(raw="", prefix=None, command=DISCONNECTED)
        )

    async def _close_transport(self) -> None:
        self.connected = False
        self.registered = False
        self.message_buffer = ""
        writer, self.writer, self.reader = self.writer, None, None
        if writer is None:
            return
        try:
            writer.close()
            await writer.wait_closed()
        except (OSError, RuntimeError) as e:
            logger.log_event(
                "irc", "close_error", level=logging.DEBUG, server=self.server, error=str(e)
            )

    async def close(self, quit_message: str | None = None, timeout: float = 15.0) -> None:
        """Send QUIT and wait (bounded) for the server to drop the connection."""
        if self.connected:
            try:
                await self.quit(quit_message)
            except NetworkError as e:
                logger.log_event(
                    "irc", "quit_failed", level=logging.DEBUG, server=self.server, error=str(e)
                )
        task = self._listen_task
        if task is not None and not task.done():
            try:
                await asyncio.wait_for(asyncio.shield(task), timeout=timeout)
            except TimeoutError:
                self.running = False
                task.cancel()
                await asyncio.gather(task, return_exceptions=True)
        elif self.writer is not None:
            await self._close_transport()
        await self.handlers.drain(timeout=timeout)
