"""IRC transport package.

Line parsing, event handler registry, protocol level dispatch and the
asyncio connection used by the bot.
"""

from .connection import IRCConnection, split_server  # noqa: F401
from .dispatcher import IRCDispatcher  # noqa: F401
from .handlers import CONNECTED, DISCONNECTED, HandlerRegistry, HandlerRemover  # noqa: F401
from .parser import IRCLine, build_line, parse_irc_message  # noqa: F401

__all__ = [
    "CONNECTED",
    "DISCONNECTED",
    "HandlerRegistry",
    "HandlerRemover",
    "IRCConnection",
    "IRCDispatcher",
    "IRCLine",
    "build_line",
    "parse_irc_message",
    "split_server",
]
