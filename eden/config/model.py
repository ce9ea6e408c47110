from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator

from ..constants import DEFAULT_COMMAND_PREFIX, NICKSERV_TIMEOUT_SECONDS
from ..irc.connection import split_server


def _split_list(v: Any) -> Any:
    """Accept comma separated strings (environment style) as lists."""
    if isinstance(v, str):
        return [item for item in (part.strip() for part in v.split(",")) if item]
    return v


class BotConfig(BaseModel):
    """Process configuration for the bot.

    Attributes:
        database_path: SQLite file holding accounts, roles and permissions.
        version: Reported in CTCP VERSION replies.
        irc_servers: ``host[:port]`` entries, one connection each.
        irc_channels: Channels joined after connecting (and identifying).
        irc_nickname: Nickname used on every server.
        irc_ident: USER ident, defaults to the nickname.
        irc_name: Real name, defaults to the nickname.
        irc_nickserv_pass: Password sent with NickServ IDENTIFY on connect.
        irc_nickserv_timeout: Seconds a STATUS challenge waits for NickServ.
        irc_quit_message: QUIT message on shutdown.
        command_prefix: Default prefix for registered commands.
    """

    database_path: str = "eden.db"
    version: str = ""
    irc_servers: list[str] = Field(default_factory=list)
    irc_channels: list[str] = Field(default_factory=list)
    irc_nickname: str = Field(min_length=1, max_length=30)
    irc_ident: str = ""
    irc_name: str = ""
    irc_nickserv_pass: str = ""
    irc_nickserv_timeout: float = Field(default=NICKSERV_TIMEOUT_SECONDS, gt=0)
    irc_quit_message: str = ""
    command_prefix: str = DEFAULT_COMMAND_PREFIX

    @field_validator("irc_servers", mode="before")
    @classmethod
    def validate_servers(cls, v: Any) -> list[str]:
        v = _split_list(v)
        if not isinstance(v, list):
            raise ValueError("irc_servers must be a list")
        servers = [s.strip() for s in v if isinstance(s, str) and s.strip()]
        for server in servers:
            split_server(server)
        return list(dict.fromkeys(servers))

    @field_validator("irc_channels", mode="before")
    @classmethod
    def validate_channels(cls, v: Any) -> list[str]:
        """Normalize channels to ``#name`` form, dropping blanks and duplicates."""
        v = _split_list(v)
        if not isinstance(v, list):
            raise ValueError("irc_channels must be a list")
        channels = []
        for c in v:
            if isinstance(c, str) and c.strip():
                name = c.strip()
                if not name.startswith(("#", "&")):
                    name = f"#{name}"
                channels.append(name)
        return list(dict.fromkeys(channels))

    @field_validator("irc_nickname")
    @classmethod
    def validate_nickname(cls, v: str) -> str:
        v = v.strip()
        if not v or any(ch.isspace() for ch in v):
            raise ValueError("irc_nickname must be a single word")
        return v
