"""Permission checks for command senders."""

from __future__ import annotations

import logging

from ..commands.context import User
from ..errors.handling import log_error
from ..errors.internal import NetworkError, StoreError
from ..logs.logger import logger
from ..store.models import Account, Permission
from ..store.protocols import AccountStore
from .cache import CacheToken, UserCache
from .nickserv import NickServChallenge


class Authorizer:
    """Resolves a sender to an account and checks its permissions.

    Resolution order:

    1. Cached account: go straight to the permission check.
    2. Cached ``None``: NickServ already verified the nick, so skip the
       challenge but look the account up again; one may have been linked.
    3. Unknown nick: challenge NickServ. A negative or missing answer denies
       without caching anything so the next attempt challenges again.

    A NICK, PART, QUIT or disconnect for the nick while a check is in flight
    makes that check deny and write nothing to the cache.

    Store failures are logged and deny; nothing here raises into dispatch.
    """

    def __init__(
        self,
        cache: UserCache,
        challenger: NickServChallenge,
        store: AccountStore,
        server: str | None = None,
    ) -> None:
        self.cache = cache
        self.challenger = challenger
        self.store = store
        self.server = server

    async def authorize(self, user: User, permission: Permission) -> bool:
        nick = user.name
        account, found, token = await self.cache.lookup(nick)

        if not found:
            if not await self._verify(nick):
                return False
            if not await self._remember(nick, None, token):
                return False

        if account is None:
            account = await self._resolve_account(nick)
            if account is None:
                return False
            if not await self._remember(nick, account, token):
                return False

        user.id = account.id
        granted = permission in await self.permissions(account)
        logger.log_event(
            "auth",
            "granted" if granted else "denied",
            level=logging.DEBUG,
            server=self.server,
            nick=nick,
            account=account.username,
            permission=permission.name,
        )
        return granted

    async def permissions(self, account: Account) -> set[Permission]:
        """Effective permissions of ``account``; empty when the store fails."""
        try:
            return await self.store.fetch_effective_permissions(account)
        except StoreError as e:
            log_error(
                "Error fetching account permissions",
                e,
                {"server": self.server, "account": account.username},
            )
            return set()

    async def _remember(self, nick: str, account: Account | None, token: CacheToken) -> bool:
        # The nick may have been invalidated while we waited.
        if await self.cache.set(nick, account, token):
            return True
        logger.log_event(
            "auth", "invalidated_during_check", level=logging.INFO, server=self.server, nick=nick
        )
        return False

    async def _verify(self, nick: str) -> bool:
        try:
            return await self.challenger.challenge(nick)
        except NetworkError as e:
            log_error("NickServ challenge failed", e, {"server": self.server, "nick": nick})
            return False

    async def _resolve_account(self, nick: str) -> Account | None:
        try:
            account = await self.store.find_linked_account(nick)
        except StoreError as e:
            log_error("Error fetching account for nick", e, {"server": self.server, "nick": nick})
            return None
        if account is None:
            logger.log_event(
                "auth", "no_account", level=logging.DEBUG, server=self.server, nick=nick
            )
        return account
