"""Message types and the execution context handed to command handlers."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Any, Protocol

from ..store.models import Permission


@dataclass(slots=True)
class User:
    """The sender of a message as seen on the connection."""

    name: str
    id: int | None = None
    display_name: str = ""


@dataclass(slots=True)
class Message:
    """A single inbound chat line.

    Attributes:
        content: Raw message text.
        source: Sender of the line.
        public: True when sent to a channel rather than privately.
        target: Where replies go (the channel, or the sender's nick for private lines).
    """

    content: str
    source: User
    public: bool
    target: str


# Handlers receive the context, the message and the parsed arguments and may
# be plain functions or coroutines.
Handler = Callable[["CommandContext", Message, Sequence[str]], Awaitable[Any] | Any]


class CommandContext(Protocol):
    """What the dispatcher and handlers may use from a connection."""

    async def execute(
        self, handler: Handler, message: Message, args: Sequence[str]
    ) -> None:
        """Invoke ``handler`` for a matched command."""
        ...

    async def authorize(self, user: User, permission: Permission) -> bool:
        """Return True if ``user`` holds ``permission``."""
        ...

    async def send_to_user(self, user: User, text: str) -> None:
        """Send a private message to ``user``."""
        ...

    async def send_to_channel(self, channel: str, text: str) -> None:
        """Send a message to ``channel`` (or any other target)."""
        ...
