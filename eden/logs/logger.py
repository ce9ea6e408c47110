"""Event oriented logger for the Eden bot.

Records go to ``logging.getLogger("eden")`` and are rendered by whatever
handlers the root logger carries (see :mod:`eden.logging_config`).
"""

from __future__ import annotations

import logging
import os

from .event_catalog import render

LOCATION_WIDTH = 24
EVENT_NAME_WIDTH = 32


def debug_enabled() -> bool:
    return os.environ.get("DEBUG", "false").lower() in ("true", "1", "yes")


def _location(server: object, channel: object) -> str:
    label = server if isinstance(server, str) and server else "system"
    if isinstance(channel, str) and channel:
        label = f"{label}/{channel}"
    return f"[{label.ljust(LOCATION_WIDTH)[:LOCATION_WIDTH]}]"


def _event_column(domain: str, action: str) -> str:
    name = f"{domain}_{action}".lower()
    if len(name) > EVENT_NAME_WIDTH:
        name = name[: EVENT_NAME_WIDTH - 1] + "~"
    return name.ljust(EVENT_NAME_WIDTH)


class BotLogger:
    """Logs named events instead of free form strings.

    Every call names a ``(domain, action)`` pair, e.g. ``("auth",
    "challenge_timeout")``. The text comes from the event catalog unless
    ``human`` is given. ``server`` and ``channel`` are reserved and shown as
    a fixed width location prefix. With ``DEBUG`` set the event name and the
    remaining fields are included as well.
    """

    def __init__(self, name: str = "eden") -> None:
        self.logger = logging.getLogger(name)

    def log_event(
        self,
        domain: str,
        action: str,
        level: int = logging.INFO,
        human: str | None = None,
        *,
        exc_info: bool = False,
        **fields: object,
    ) -> None:
        if not self.logger.isEnabledFor(level):
            return
        text = (
            human
            or render(domain, action, fields)
            or f"{domain.replace('_', ' ')}: {action.replace('_', ' ')}"
        )
        location = _location(fields.pop("server", None), fields.pop("channel", None))

        if debug_enabled():
            message = f"{_event_column(domain, action)} {location} {text}"
            if fields:
                context = ", ".join(f"{k}={v}" for k, v in fields.items())
                message = f"{message} ({context})"
        else:
            message = f"{location} {text}"
        self.logger.log(level, message, exc_info=exc_info)


logger = BotLogger()
