"""Query contract the authorization layer needs from a store."""

from __future__ import annotations

from typing import Protocol

from .models import Account, Permission


class AccountStore(Protocol):
    """Read-only account queries.

    Implementations raise ``StoreError`` when they cannot answer.
    """

    async def find_linked_account(self, nickname: str) -> Account | None:
        """Return the account linked to an IRC nickname, if any."""
        ...

    async def fetch_effective_permissions(self, account: Account) -> set[Permission]:
        """Return the union of the permissions of every role of ``account``."""
        ...
