"""IRC line parsing utilities."""

from __future__ import annotations

from dataclasses import dataclass, field

CHANNEL_PREFIXES = ("#", "&", "+", "!")


@dataclass
class IRCLine:
    raw: str
    prefix: str | None
    command: str | None
    params: list[str] = field(default_factory=list)
    tags: dict[str, str] = field(default_factory=dict)

    @property
    def nick(self) -> str:
        """Nickname part of the prefix (``nick!user@host``), or ``""``."""
        if not self.prefix:
            return ""
        return self.prefix.split("!", 1)[0]

    @property
    def target(self) -> str:
        return self.params[0] if self.params else ""

    @property
    def text(self) -> str:
        """Trailing parameter (message body for PRIVMSG/NOTICE)."""
        return self.params[-1] if self.params else ""

    @property
    def public(self) -> bool:
        """True when addressed to a channel rather than a nickname."""
        return self.target.startswith(CHANNEL_PREFIXES)


def parse_irc_message(raw_line: str) -> IRCLine:
    tags: dict[str, str] = {}
    prefix: str | None = None
    command: str | None = None
    trailing: str | None = None

    original = raw_line

    if raw_line.startswith("@"):
        tags_part, _, raw_line = raw_line.partition(" ")
        tags = _parse_tags(tags_part[1:])

    if raw_line.startswith(":"):
        # Malformed lines may omit the space after the prefix
        remainder = raw_line[1:]
        if " " in remainder:
            prefix, raw_line = remainder.split(" ", 1)
        else:
            prefix = remainder
            raw_line = ""

    if raw_line.startswith(":"):
        trailing = raw_line[1:]
        raw_line = ""
    elif " :" in raw_line:
        raw_line, trailing = raw_line.split(" :", 1)

    parts = raw_line.split()
    params: list[str] = []
    if parts:
        command = parts[0].upper()
        params = parts[1:]
    if trailing is not None:
        params.append(trailing)

    return IRCLine(raw=original, prefix=prefix, command=command, params=params, tags=tags)


def _parse_tags(raw_tags: str) -> dict[str, str]:
    tags: dict[str, str] = {}
    for tag in raw_tags.split(";"):
        if "=" in tag:
            k, v = tag.split("=", 1)
        else:
            k, v = tag, ""
        tags[k] = v
    return tags


def build_line(command: str, *params: str) -> str:
    """Serialize a command; the last parameter is sent as trailing."""
    if not params:
        return command
    *middle, last = params
    return " ".join([command, *middle, f":{last}"])
