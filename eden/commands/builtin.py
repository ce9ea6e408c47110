"""Commands shipped with the bot."""

from __future__ import annotations

from collections.abc import Sequence

from ..constants import DEFAULT_COMMAND_PREFIX
from .command import CommandRegistry
from .context import CommandContext, Message


async def hello(ctx: CommandContext, message: Message, args: Sequence[str]) -> None:
    await ctx.send_to_channel(message.target, "Hello world!")


def register_builtin_commands(registry: CommandRegistry) -> None:
    registry.register("hello", hello)


def build_registry(prefix: str = DEFAULT_COMMAND_PREFIX) -> CommandRegistry:
    """Create a registry holding the builtin commands (not yet sealed)."""
    registry = CommandRegistry(default_prefix=prefix)
    register_builtin_commands(registry)
    return registry
