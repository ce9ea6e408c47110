"""Per-connection bot: IRC event wiring plus the command execution context."""

from __future__ import annotations

import inspect
import logging
from collections.abc import Sequence

from ..auth import Authorizer, NickServChallenge, UserCache
from ..commands import CommandRegistry, Handler, Message, User
from ..config.model import BotConfig
from ..constants import NICKSERV_NICK, NICKSERV_TIMEOUT_SECONDS
from ..errors.internal import NetworkError
from ..irc import CONNECTED, DISCONNECTED, IRCConnection, IRCLine
from ..logs.logger import logger
from ..store.models import Permission
from ..store.protocols import AccountStore


class EdenBot:  # pylint: disable=too-many-instance-attributes
    """Owns one connection and the authorization state scoped to it.

    Nicknames only mean something on the server they were seen on, so every
    bot keeps its own cache; the command registry is shared read-only.
    """

    def __init__(
        self,
        connection: IRCConnection,
        registry: CommandRegistry,
        store: AccountStore,
        *,
        nickserv_password: str = "",
        nickserv_timeout: float = NICKSERV_TIMEOUT_SECONDS,
        autojoin_channels: Sequence[str] = (),
        quit_message: str = "",
    ) -> None:
        self.connection = connection
        self.server = connection.server
        self.registry = registry
        self.nickserv_password = nickserv_password
        self.autojoin_channels = list(autojoin_channels)
        self.quit_message = quit_message
        self.cache = UserCache(self.server)
        self.challenger = NickServChallenge(connection, timeout=nickserv_timeout)
        self.authorizer = Authorizer(self.cache, self.challenger, store, self.server)
        self._install_handlers()

    @classmethod
    def from_config(
        cls,
        server: str,
        config: BotConfig,
        registry: CommandRegistry,
        store: AccountStore,
    ) -> EdenBot:
        connection = IRCConnection(
            server,
            config.irc_nickname,
            ident=config.irc_ident or None,
            realname=config.irc_name or None,
            version=config.version or None,
        )
        return cls(
            connection,
            registry,
            store,
            nickserv_password=config.irc_nickserv_pass,
            nickserv_timeout=config.irc_nickserv_timeout,
            autojoin_channels=config.irc_channels,
            quit_message=config.irc_quit_message,
        )

    def _install_handlers(self) -> None:
        handlers = {
            CONNECTED: self._on_connected,
            DISCONNECTED: self._on_disconnected,
            "MODE": self._on_mode,
            "NICK": self._on_identity_change,
            "PART": self._on_identity_change,
            "QUIT": self._on_identity_change,
            "PRIVMSG": self._on_privmsg,
        }
        for event, handler in handlers.items():
            self.connection.add_handler(event, handler)

    @property
    def connected(self) -> bool:
        return self.connection.connected

    async def start(self) -> None:
        await self.connection.connect()

    async def close(self, timeout: float) -> None:
        await self.connection.close(self.quit_message or None, timeout=timeout)

    def apply_config(self, config: BotConfig) -> None:
        """Take over reloadable settings; connection identity stays as is."""
        self.challenger.timeout = config.irc_nickserv_timeout
        self.quit_message = config.irc_quit_message
        self.nickserv_password = config.irc_nickserv_pass
        self.autojoin_channels = list(config.irc_channels)

    async def autojoin(self) -> None:
        for channel in self.autojoin_channels:
            await self.connection.join(channel)

    # IRC event handlers

    async def _on_connected(self, line: IRCLine) -> None:
        if self.nickserv_password:
            await self.connection.privmsg(
                NICKSERV_NICK, f"IDENTIFY {self.nickserv_password}"
            )
        else:
            await self.autojoin()

    async def _on_mode(self, line: IRCLine) -> None:
        # NickServ sets +r on us once IDENTIFY succeeded.
        if len(line.params) >= 2 and line.params[0] == self.connection.current_nick:
            if line.params[1] == "+r":
                await self.autojoin()

    async def _on_identity_change(self, line: IRCLine) -> None:
        if line.nick:
            await self.cache.remove(line.nick)

    async def _on_disconnected(self, line: IRCLine) -> None:
        await self.cache.clear()

    async def _on_privmsg(self, line: IRCLine) -> None:
        public = line.public
        message = Message(
            content=line.text,
            source=User(name=line.nick),
            public=public,
            target=line.target if public else line.nick,
        )
        try:
            await self.registry.execute_commands(message, self)
        except Exception as e:  # noqa: BLE001
            logger.log_event(
                "command",
                "dispatch_error",
                level=logging.ERROR,
                server=self.server,
                error=str(e),
                error_type=type(e).__name__,
            )

    # CommandContext

    async def execute(
        self, handler: Handler, message: Message, args: Sequence[str]
    ) -> None:
        try:
            result = handler(self, message, args)
            if inspect.isawaitable(result):
                await result
        except Exception as e:  # noqa: BLE001
            logger.log_event(
                "command",
                "handler_error",
                level=logging.ERROR,
                server=self.server,
                channel=message.target,
                error=str(e),
                error_type=type(e).__name__,
            )

    async def authorize(self, user: User, permission: Permission) -> bool:
        return await self.authorizer.authorize(user, permission)

    async def send_to_user(self, user: User, text: str) -> None:
        await self._send(user.name, text)

    async def send_to_channel(self, channel: str, text: str) -> None:
        await self._send(channel, text)

    async def _send(self, target: str, text: str) -> None:
        try:
            await self.connection.privmsg(target, text)
        except NetworkError as e:
            logger.log_event(
                "irc",
                "send_failed",
                level=logging.WARNING,
                server=self.server,
                target=target,
                error=str(e),
            )
