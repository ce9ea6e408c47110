"""Configuration loading: JSON file overlaid with environment variables."""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from ..errors.internal import ConfigError
from .model import BotConfig

DEFAULT_CONFIG_FILE = "eden.conf"
CONFIG_FILE_ENV = "EDEN_CONF_FILE"

# Environment variable -> BotConfig field
ENV_FIELDS: dict[str, str] = {
    "EDEN_DATABASE_PATH": "database_path",
    "VERSION": "version",
    "IRC_SERVERS": "irc_servers",
    "IRC_CHANNELS": "irc_channels",
    "IRC_NICKNAME": "irc_nickname",
    "IRC_IDENT": "irc_ident",
    "IRC_NAME": "irc_name",
    "IRC_NICKSERV_PASS": "irc_nickserv_pass",
    "IRC_NICKSERV_TIMEOUT": "irc_nickserv_timeout",
    "IRC_QUIT_MESSAGE": "irc_quit_message",
    "COMMAND_PREFIX": "command_prefix",
}


def config_file_path() -> str:
    return os.environ.get(CONFIG_FILE_ENV, DEFAULT_CONFIG_FILE)


def load_raw(path: str) -> dict[str, Any]:
    """Read the JSON config file; a missing file yields an empty mapping.

    Raises:
        ConfigError: The file exists but is not a JSON object.
    """
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        logging.debug(f"Config file {path} not found, using environment only")
        return {}
    except (OSError, ValueError) as e:
        raise ConfigError(f"Cannot read config file: {e}", data={"path": path}) from e
    if not isinstance(data, dict):
        raise ConfigError("Config file must contain a JSON object", data={"path": path})
    return data


def env_overrides(environ: Mapping[str, str] | None = None) -> dict[str, Any]:
    environ = os.environ if environ is None else environ
    return {
        field: environ[name] for name, field in ENV_FIELDS.items() if environ.get(name)
    }


def load_config(
    path: str | None = None, environ: Mapping[str, str] | None = None
) -> BotConfig:
    """Load and validate the bot configuration.

    Environment variables win over file values.

    Raises:
        ConfigError: Unreadable file or invalid values.
    """
    path = path or config_file_path()
    raw = load_raw(path)
    raw.update(env_overrides(environ))
    try:
        return BotConfig.model_validate(raw)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}", data={"path": path}) from e
