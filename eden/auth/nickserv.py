"""NickServ STATUS challenge.

NickServ answers ``STATUS <nick>`` with a private ``STATUS <nick> <code>``
notice; code 3 means the nickname is registered and its user identified.
The reply arrives on the same inbound stream as all other traffic, so the
challenge installs a temporary PRIVMSG listener and waits on a one-shot
future that the listener resolves.
"""

from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import Callable
from typing import TYPE_CHECKING, Protocol

from ..constants import (
    NICKSERV_NICK,
    NICKSERV_STATUS_IDENTIFIED,
    NICKSERV_TIMEOUT_SECONDS,
)
from ..logs.logger import logger

if TYPE_CHECKING:  # pragma: no cover
    from ..irc.handlers import HandlerRemover
    from ..irc.parser import IRCLine


class ChallengeTransport(Protocol):
    """The slice of an IRC connection a challenge needs."""

    server: str

    def add_handler(
        self, event: str, handler: Callable[[IRCLine], object]
    ) -> HandlerRemover: ...

    async def privmsg(self, target: str, text: str) -> None: ...


class NickServChallenge:
    def __init__(
        self,
        transport: ChallengeTransport,
        timeout: float = NICKSERV_TIMEOUT_SECONDS,
        oracle: str = NICKSERV_NICK,
    ) -> None:
        self.transport = transport
        self.timeout = timeout
        self.oracle = oracle

    async def challenge(self, nick: str) -> bool:
        """Ask NickServ whether ``nick`` is identified.

        Returns False on a negative status or when no reply arrives within
        ``timeout``. Never retries.
        """
        loop = asyncio.get_running_loop()
        reply: asyncio.Future[bool] = loop.create_future()
        pattern = re.compile(rf"^STATUS {re.escape(nick)} (\d)$")

        def on_privmsg(line: IRCLine) -> None:
            if reply.done():
                return
            if line.nick.lower() != self.oracle.lower() or line.public:
                return
            match = pattern.match(line.text)
            if match:
                reply.set_result(match.group(1) == NICKSERV_STATUS_IDENTIFIED)

        remover = self.transport.add_handler("PRIVMSG", on_privmsg)
        try:
            await self.transport.privmsg(self.oracle, f"STATUS {nick}")
            logger.log_event(
                "auth",
                "challenge_sent",
                level=logging.DEBUG,
                server=self.transport.server,
                nick=nick,
            )
            verified = await asyncio.wait_for(reply, timeout=self.timeout)
        except TimeoutError:
            logger.log_event(
                "auth",
                "challenge_timeout",
                level=logging.WARNING,
                server=self.transport.server,
                nick=nick,
                timeout=self.timeout,
            )
            return False
        finally:
            remover.remove()

        logger.log_event(
            "auth",
            "challenge_result",
            level=logging.DEBUG,
            server=self.transport.server,
            nick=nick,
            verified=verified,
        )
        return verified
