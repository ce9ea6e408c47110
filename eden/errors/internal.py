"""Centralized internal error hierarchy.

These exceptions provide semantic categories for the bot's failure modes.
Raw library errors (aiosqlite, OSError, pydantic) are wrapped at the boundary
where they occur so callers only ever handle these types.

Classes:
  InternalError        - Base for all internal errors.
  NetworkError         - Transport failures talking to an IRC server.
  StoreError           - Account / permission store failures.
  CommandOptionError   - Malformed option passed while registering a command.
  RegistryFrozenError  - Registration attempted after the registry was sealed.
  ConfigError          - Invalid or unreadable configuration.
"""

from __future__ import annotations

from collections.abc import Mapping


class InternalError(Exception):
    """Base class for all internal application errors with metadata support.

    Attributes:
        data: Dictionary containing arbitrary structured context data.

    Args:
        message: Descriptive error message.
        data: Optional mapping of additional context data.
    """

    data: dict[str, object]

    def __init__(
        self, message: str, *, data: Mapping[str, object] | None = None
    ) -> None:
        super().__init__(message)
        # Copy into a plain dict to avoid unexpected mutations from caller.
        self.data = dict(data) if data else {}


class NetworkError(InternalError):
    """Exception raised for connection level failures (connect, read, write)."""


class StoreError(InternalError):
    """Exception raised when the account store cannot answer a query."""


class CommandOptionError(InternalError):
    """Exception raised when a command option is malformed."""


class RegistryFrozenError(InternalError):
    """Exception raised when registering a command after the registry was sealed."""


class ConfigError(InternalError):
    """Exception raised for invalid or unreadable configuration."""


__all__ = [
    "InternalError",
    "NetworkError",
    "StoreError",
    "CommandOptionError",
    "RegistryFrozenError",
    "ConfigError",
]
