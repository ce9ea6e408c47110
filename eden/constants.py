"""
Configuration constants for the Eden IRC bot

This module contains the tunable constants used throughout the application.
Each constant can be overridden by setting an environment variable with the same name.
"""

import os


def _get_env_int(name: str, default: int) -> int:
    """Retrieve an integer value from an environment variable.

    Attempts to parse the environment variable as an integer. If the variable
    is not set or cannot be parsed, prints a warning and returns the default value.

    Args:
        name: The name of the environment variable to read.
        default: The default integer value to return if parsing fails.

    Returns:
        The parsed integer value from the environment, or the default if unavailable.
    """
    value = os.getenv(name)
    if value is not None:
        try:
            return int(value)
        except ValueError:
            print(
                f"Warning: Invalid integer value for {name}='{value}', using default {default}"
            )
    return default


def _get_env_float(name: str, default: float) -> float:
    """Retrieve a float value from an environment variable.

    Args:
        name: The name of the environment variable to read.
        default: The default float value to return if parsing fails.

    Returns:
        The parsed float value from the environment, or the default if unavailable.
    """
    value = os.getenv(name)
    if value is not None:
        try:
            return float(value)
        except ValueError:
            print(
                f"Warning: Invalid float value for {name}='{value}', using default {default}"
            )
    return default


# Command dispatch
DEFAULT_COMMAND_PREFIX = os.getenv("DEFAULT_COMMAND_PREFIX", ".")

# NickServ identity checks
NICKSERV_NICK = os.getenv("NICKSERV_NICK", "NickServ")
NICKSERV_TIMEOUT_SECONDS = _get_env_float(
    "NICKSERV_TIMEOUT_SECONDS", 15.0
)  # How long a STATUS challenge waits for a reply
NICKSERV_STATUS_IDENTIFIED = "3"  # STATUS code for "registered and identified"

# IRC connection
IRC_DEFAULT_PORT = _get_env_int("IRC_DEFAULT_PORT", 6667)
IRC_CONNECT_TIMEOUT = _get_env_float(
    "IRC_CONNECT_TIMEOUT", 15.0
)  # Timeout for establishing the TCP connection
IRC_READ_TIMEOUT = _get_env_float(
    "IRC_READ_TIMEOUT", 300.0
)  # Max silence before the connection is considered dead
IRC_READ_CHUNK_SIZE = _get_env_int("IRC_READ_CHUNK_SIZE", 4096)
IRC_CONNECT_MAX_ATTEMPTS = _get_env_int(
    "IRC_CONNECT_MAX_ATTEMPTS", 5
)  # Connection attempts before giving up on a server
IRC_CONNECT_BACKOFF_MAX_SECONDS = _get_env_int(
    "IRC_CONNECT_BACKOFF_MAX_SECONDS", 60
)  # Upper bound for exponential connect backoff
IRC_NICK_COLLISION_SUFFIX = "_"

# Shutdown
SHUTDOWN_TIMEOUT_SECONDS = _get_env_float(
    "SHUTDOWN_TIMEOUT_SECONDS", 15.0
)  # Per-server grace period when closing connections

# Config reload
RELOAD_WATCH_DELAY = _get_env_float(
    "RELOAD_WATCH_DELAY", 0.5
)  # Delay before re-reading a changed config file
