"""Command definitions, registration options and the command registry.

A command fires when a message starts with its prefix, the remainder is
separated from the prefix by whitespace (unless the command opts out), the
argument count is within bounds and, when a permission is required, the
sender holds it. Every registered command is evaluated for every message, so
one line may trigger several commands.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from dataclasses import dataclass

from ..constants import DEFAULT_COMMAND_PREFIX
from ..errors.internal import CommandOptionError, RegistryFrozenError
from ..logs.logger import logger
from ..store.models import Permission
from .context import CommandContext, Handler, Message
from .tokenizer import parse_args

CommandFunc = Callable[[Message], str]


@dataclass(slots=True)
class CommandOptions:
    """Mutable builder the option functions write into before a Command is built."""

    prefix: str
    command_func: CommandFunc | None = None
    allow_no_whitespace: bool = False
    min_args: int = 0
    max_args: int = 0
    permission: Permission | None = None


CommandOption = Callable[[CommandOptions], None]


def with_args(num_args: int) -> CommandOption:
    """Require exactly ``num_args`` arguments."""

    def apply(opts: CommandOptions) -> None:
        if num_args < 0:
            raise CommandOptionError(
                "Argument count cannot be negative", data={"num_args": num_args}
            )
        opts.min_args = num_args
        opts.max_args = num_args

    return apply


def with_var_args(min_args: int, max_args: int) -> CommandOption:
    """Accept between ``min_args`` and ``max_args`` arguments (inclusive)."""

    def apply(opts: CommandOptions) -> None:
        if min_args < 0 or max_args < min_args:
            raise CommandOptionError(
                "Invalid argument bounds",
                data={"min_args": min_args, "max_args": max_args},
            )
        opts.min_args = min_args
        opts.max_args = max_args

    return apply


def with_allow_no_whitespace() -> CommandOption:
    """Fire even when the remainder directly follows the prefix (``.roll2d6``)."""

    def apply(opts: CommandOptions) -> None:
        opts.allow_no_whitespace = True

    return apply


def with_permission_check(permission: Permission | str) -> CommandOption:
    """Only fire for senders holding ``permission``."""

    def apply(opts: CommandOptions) -> None:
        perm = Permission(permission) if isinstance(permission, str) else permission
        if not isinstance(perm, Permission) or not perm.name:
            raise CommandOptionError(
                "Permission must be a non-empty name", data={"permission": permission}
            )
        opts.permission = perm

    return apply


def with_prefix(prefix: str) -> CommandOption:
    """Replace the registry's default prefix for this command."""

    def apply(opts: CommandOptions) -> None:
        if not isinstance(prefix, str):
            raise CommandOptionError("Prefix must be a string", data={"prefix": prefix})
        opts.prefix = prefix

    return apply


def with_command_func(command_func: CommandFunc) -> CommandOption:
    """Compute the full trigger (prefix and name) per message.

    Useful for commands addressed to the bot by nickname, e.g. ``eden: help``.
    """

    def apply(opts: CommandOptions) -> None:
        if not callable(command_func):
            raise CommandOptionError(
                "Command func must be callable", data={"command_func": command_func}
            )
        opts.command_func = command_func

    return apply


@dataclass(frozen=True, slots=True)
class Command:
    name: str
    handler: Handler
    prefix: str
    command_func: CommandFunc | None = None
    allow_no_whitespace: bool = False
    min_args: int = 0
    max_args: int = 0
    permission: Permission | None = None

    def trigger_for(self, message: Message) -> str:
        if self.command_func is not None:
            return self.command_func(message)
        return self.prefix + self.name

    def match_args(self, message: Message) -> list[str] | None:
        """Return the parsed arguments if the message matches, ignoring permissions."""
        trigger = self.trigger_for(message)
        if not message.content.startswith(trigger):
            return None
        remainder = message.content[len(trigger) :]
        if remainder and not self.allow_no_whitespace and not remainder[0].isspace():
            return None
        args = parse_args(remainder)
        if not self.min_args <= len(args) <= self.max_args:
            return None
        return args

    async def execute(self, message: Message, context: CommandContext) -> bool:
        """Run the handler if the message matches; return whether it fired."""
        args = self.match_args(message)
        if args is None:
            return False
        if self.permission is not None and not await context.authorize(
            message.source, self.permission
        ):
            logger.log_event(
                "command",
                "denied",
                level=logging.DEBUG,
                command=self.name,
                nick=message.source.name,
                permission=self.permission.name,
            )
            return False
        logger.log_event(
            "command",
            "execute",
            level=logging.DEBUG,
            command=self.name,
            nick=message.source.name,
            channel=message.target,
            args=len(args),
        )
        await context.execute(self.handler, message, args)
        return True


class CommandRegistry:
    """Ordered, append-only set of commands.

    Commands are registered during startup, then the registry is sealed and
    only read. Evaluation order is registration order.
    """

    def __init__(self, default_prefix: str = DEFAULT_COMMAND_PREFIX) -> None:
        self.default_prefix = default_prefix
        self._commands: list[Command] = []
        self._sealed = False

    def __iter__(self) -> Iterator[Command]:
        return iter(self._commands)

    def __len__(self) -> int:
        return len(self._commands)

    @property
    def sealed(self) -> bool:
        return self._sealed

    def seal(self) -> None:
        """End the registration phase; later ``register`` calls raise."""
        self._sealed = True
        logger.log_event(
            "command", "registry_sealed", level=logging.DEBUG, count=len(self)
        )

    def register(self, name: str, handler: Handler, *options: CommandOption) -> Command:
        """Build a command from ``options`` and append it.

        Raises:
            CommandOptionError: An option rejected its value.
            RegistryFrozenError: The registry was already sealed.
        """
        if self._sealed:
            raise RegistryFrozenError(
                "Command registry is sealed", data={"command": name}
            )
        opts = CommandOptions(prefix=self.default_prefix)
        for option in options:
            option(opts)
        command = Command(
            name=name,
            handler=handler,
            prefix=opts.prefix,
            command_func=opts.command_func,
            allow_no_whitespace=opts.allow_no_whitespace,
            min_args=opts.min_args,
            max_args=opts.max_args,
            permission=opts.permission,
        )
        self._commands.append(command)
        logger.log_event(
            "command", "registered", level=logging.DEBUG, command=name
        )
        return command

    def command(self, name: str, *options: CommandOption) -> Callable[[Handler], Handler]:
        """Decorator form of :meth:`register`."""

        def decorator(handler: Handler) -> Handler:
            self.register(name, handler, *options)
            return handler

        return decorator

    async def execute_commands(
        self, message: Message, context: CommandContext
    ) -> list[Command]:
        """Evaluate every command against ``message``; return those that fired.

        A command that raises while matching or authorizing is logged and
        skipped; the remaining commands are still evaluated.
        """
        fired: list[Command] = []
        for command in self._commands:
            try:
                ran = await command.execute(message, context)
            except Exception as e:  # noqa: BLE001
                logger.log_event(
                    "command",
                    "match_error",
                    level=logging.ERROR,
                    command=command.name,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                continue
            if ran:
                fired.append(command)
        return fired
