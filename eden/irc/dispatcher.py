"""Inbound line framing and protocol level handling."""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

from ..constants import IRC_NICK_COLLISION_SUFFIX
from ..logs.logger import logger
from .handlers import CONNECTED
from .parser import IRCLine, parse_irc_message

if TYPE_CHECKING:  # pragma: no cover
    from .connection import IRCConnection

RPL_WELCOME = "001"
ERR_NICKNAMEINUSE = "433"
CTCP_DELIM = "\x01"


class IRCDispatcher:
    def __init__(self, client: IRCConnection):
        self.client = client

    async def process_incoming_data(self, buffer: str, new_data: str) -> str:
        """Handle every complete line in ``buffer + new_data``; return the rest."""
        buffer += new_data
        self.client.last_server_activity = time.time()
        while "\n" in buffer:
            line, buffer = buffer.split("\n", 1)
            line = line.rstrip("\r")
            if line.strip():
                await self.handle_line(line)
        return buffer

    async def handle_line(self, raw_message: str) -> None:
        if not raw_message.startswith("PING"):
            logger.log_event(
                "irc", "raw", level=logging.DEBUG, server=self.client.server, raw=raw_message
            )

        parsed = parse_irc_message(raw_message)
        command = parsed.command
        if not command:
            return
        if command == "PING":
            await self._handle_ping(parsed)
            return
        if command == RPL_WELCOME:
            self._handle_welcome(parsed)
        elif command == ERR_NICKNAMEINUSE:
            await self._handle_nick_in_use()
        elif command == "NICK" and parsed.nick == self.client.current_nick:
            self.client.current_nick = parsed.text
        elif command == "PRIVMSG" and self._is_ctcp_version(parsed):
            await self._reply_version(parsed)
            return

        self.client.handlers.dispatch(command, parsed)
        if command == RPL_WELCOME:
            self.client.handlers.dispatch(CONNECTED, parsed)

    async def _handle_ping(self, parsed: IRCLine) -> None:
        await self.client.send_line(f"PONG :{parsed.text or self.client.host}")

    def _handle_welcome(self, parsed: IRCLine) -> None:
        if parsed.target:
            self.client.current_nick = parsed.target
        self.client.registered = True
        logger.log_event(
            "irc", "registered", server=self.client.server, nick=self.client.current_nick
        )

    async def _handle_nick_in_use(self) -> None:
        if self.client.registered:
            return
        self.client.current_nick += IRC_NICK_COLLISION_SUFFIX
        logger.log_event(
            "irc",
            "nick_in_use",
            level=logging.WARNING,
            server=self.client.server,
            nick=self.client.current_nick,
        )
        await self.client.send_line(f"NICK {self.client.current_nick}")

    @staticmethod
    def _is_ctcp_version(parsed: IRCLine) -> bool:
        return parsed.text == f"{CTCP_DELIM}VERSION{CTCP_DELIM}"

    async def _reply_version(self, parsed: IRCLine) -> None:
        if not self.client.version:
            return
        await self.client.notice(
            parsed.nick, f"{CTCP_DELIM}VERSION {self.client.version}{CTCP_DELIM}"
        )
