"""Command parsing, registration and dispatch."""

from .builtin import build_registry, register_builtin_commands
from .command import (
    Command,
    CommandOptions,
    CommandRegistry,
    with_allow_no_whitespace,
    with_args,
    with_command_func,
    with_permission_check,
    with_prefix,
    with_var_args,
)
from .context import CommandContext, Handler, Message, User
from .tokenizer import parse_args

__all__ = [
    "Command",
    "CommandContext",
    "CommandOptions",
    "CommandRegistry",
    "Handler",
    "Message",
    "User",
    "build_registry",
    "parse_args",
    "register_builtin_commands",
    "with_allow_no_whitespace",
    "with_args",
    "with_command_func",
    "with_permission_check",
    "with_prefix",
    "with_var_args",
]
