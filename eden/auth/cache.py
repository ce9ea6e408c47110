"""Per-connection cache of nickname -> account resolutions."""

from __future__ import annotations

import logging

from ..logs.logger import logger
from ..store.models import Account
from ..utils.rwlock import ReadWriteLock

# (clear epoch, per-nick invalidation count)
CacheToken = tuple[int, int]


class UserCache:
    """Maps nicknames to what authorization learned about them.

    A nickname is either absent (never checked), mapped to ``None`` (NickServ
    verified it but no account is linked) or mapped to an ``Account``.
    Lookups share the lock, mutations hold it exclusively.

    Every ``remove`` and ``clear`` advances the nick's token. A check that
    started before an invalidation passes the token it read to ``set``,
    which then refuses to write so the old binding cannot come back.
    """

    def __init__(self, server: str | None = None) -> None:
        self.server = server
        self._mapping: dict[str, Account | None] = {}
        self._generations: dict[str, int] = {}
        self._epoch = 0
        self._lock = ReadWriteLock()

    def __len__(self) -> int:
        return len(self._mapping)

    def __contains__(self, nick: object) -> bool:
        return nick in self._mapping

    def _token(self, nick: str) -> CacheToken:
        return self._epoch, self._generations.get(nick, 0)

    async def get(self, nick: str) -> tuple[Account | None, bool]:
        """Return ``(account, found)`` for ``nick``."""
        account, found, _token = await self.lookup(nick)
        return account, found

    async def lookup(self, nick: str) -> tuple[Account | None, bool, CacheToken]:
        """Like :meth:`get`, plus the token to hand back to :meth:`set`."""
        async with self._lock.read():
            token = self._token(nick)
            if nick in self._mapping:
                return self._mapping[nick], True, token
            return None, False, token

    async def set(
        self, nick: str, account: Account | None, token: CacheToken | None = None
    ) -> bool:
        """Store ``account`` for ``nick``.

        With ``token``, nothing is written if ``nick`` was invalidated since
        the token was read. Returns whether the entry was written.
        """
        async with self._lock.write():
            if token is not None and token != self._token(nick):
                return False
            self._mapping[nick] = account
        return True

    async def remove(self, nick: str) -> bool:
        """Forget ``nick``; return whether an entry existed."""
        async with self._lock.write():
            self._generations[nick] = self._generations.get(nick, 0) + 1
            existed = self._mapping.pop(nick, _MISSING) is not _MISSING
        if existed:
            logger.log_event(
                "auth", "cache_invalidated", level=logging.DEBUG, server=self.server, nick=nick
            )
        return existed

    async def clear(self) -> None:
        async with self._lock.write():
            self._epoch += 1
            self._generations.clear()
            self._mapping.clear()


_MISSING = object()
