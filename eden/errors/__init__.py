"""Error hierarchy and error logging helpers."""

from .handling import log_error
from .internal import (
    CommandOptionError,
    ConfigError,
    InternalError,
    NetworkError,
    RegistryFrozenError,
    StoreError,
)

__all__ = [
    "CommandOptionError",
    "ConfigError",
    "InternalError",
    "NetworkError",
    "RegistryFrozenError",
    "StoreError",
    "log_error",
]
