"""Bot runtime: per-connection bot and the multi-server manager."""

from .core import EdenBot
from .manager import BotManager, run_bots

__all__ = ["BotManager", "EdenBot", "run_bots"]
