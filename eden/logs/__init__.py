"""Event logging: the template catalog and the BotLogger built on it."""

from .event_catalog import EVENT_TEMPLATES, reload_event_templates, render  # noqa: F401
from .logger import BotLogger, logger  # noqa: F401

__all__ = ["BotLogger", "logger", "EVENT_TEMPLATES", "reload_event_templates", "render"]
