"""Account, role and permission records read from the store."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class Permission:
    """A named capability.

    Equality and hashing use the name only, so commands can declare the
    permission they need without knowing the store's row id.
    """

    name: str
    id: int | None = field(default=None, compare=False)


@dataclass(frozen=True, slots=True)
class Role:
    id: int
    name: str


@dataclass(frozen=True, slots=True)
class Account:
    """Application level principal a nickname may be linked to."""

    id: int
    username: str
