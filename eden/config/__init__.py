"""Configuration package exports."""

from .loader import config_file_path, env_overrides, load_config
from .model import BotConfig
from .watcher import ConfigWatcher, create_config_watcher

__all__ = [
    "BotConfig",
    "ConfigWatcher",
    "config_file_path",
    "create_config_watcher",
    "env_overrides",
    "load_config",
]
