"""Human readable text for log events, keyed by ``(domain, action)``."""

from __future__ import annotations

import json
from collections.abc import Mapping
from importlib import resources
from typing import Any

TEMPLATE_RESOURCE = "event_templates.json"

EVENT_TEMPLATES: dict[tuple[str, str], str] = {}


def _flatten(raw: Any) -> dict[tuple[str, str], str]:
    if not isinstance(raw, Mapping):
        raise ValueError("template file must map domains to actions")
    return {
        (domain, action): text
        for domain, actions in raw.items()
        if isinstance(actions, Mapping)
        for action, text in actions.items()
        if isinstance(text, str)
    }


def load_event_templates() -> dict[tuple[str, str], str]:
    """Read the packaged template file.

    A broken or missing file yields a single ``app/load_error`` entry so
    logging keeps working.
    """
    try:
        source = resources.files(__package__).joinpath(TEMPLATE_RESOURCE)
        return _flatten(json.loads(source.read_text(encoding="utf-8")))
    except (OSError, ValueError) as e:
        return {("app", "load_error"): f"Event templates could not be loaded: {e}"[:200]}


def reload_event_templates() -> None:
    EVENT_TEMPLATES.clear()
    EVENT_TEMPLATES.update(load_event_templates())


def render(domain: str, action: str, fields: Mapping[str, object]) -> str | None:
    """Fill the template for ``(domain, action)``; None when there is none.

    Fields missing from the call leave the template text unformatted.
    """
    template = EVENT_TEMPLATES.get((domain, action))
    if template is None:
        return None
    try:
        return template.format(**fields)
    except (KeyError, IndexError, ValueError):
        return template


reload_event_templates()

__all__ = ["EVENT_TEMPLATES", "load_event_templates", "reload_event_templates", "render"]
