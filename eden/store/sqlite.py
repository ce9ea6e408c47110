"""SQLite backed account store.

Accounts, roles and permissions live in plain relational tables; an IRC
nickname is linked to an account through ``irc_users``. The store only reads
these tables, populating them is an administrative concern.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import aiosqlite

from ..errors.internal import StoreError
from ..logs.logger import logger
from .models import Account, Permission

SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    username TEXT NOT NULL UNIQUE,
    password_hash TEXT,
    created_at INTEGER
);
CREATE TABLE IF NOT EXISTS roles (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL UNIQUE
);
CREATE TABLE IF NOT EXISTS permissions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL UNIQUE
);
CREATE TABLE IF NOT EXISTS user_roles (
    user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    role_id INTEGER NOT NULL REFERENCES roles(id) ON DELETE CASCADE,
    PRIMARY KEY (user_id, role_id)
);
CREATE TABLE IF NOT EXISTS role_permissions (
    role_id INTEGER NOT NULL REFERENCES roles(id) ON DELETE CASCADE,
    permission_id INTEGER NOT NULL REFERENCES permissions(id) ON DELETE CASCADE,
    PRIMARY KEY (role_id, permission_id)
);
CREATE TABLE IF NOT EXISTS irc_users (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    nickname TEXT NOT NULL UNIQUE COLLATE NOCASE,
    user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE
);
"""

_FIND_LINKED_ACCOUNT = """
SELECT u.id, u.username
FROM irc_users i
JOIN users u ON u.id = i.user_id
WHERE i.nickname = ?
LIMIT 1
"""

_FETCH_EFFECTIVE_PERMISSIONS = """
SELECT DISTINCT p.id, p.name
FROM user_roles ur
JOIN role_permissions rp ON rp.role_id = ur.role_id
JOIN permissions p ON p.id = rp.permission_id
WHERE ur.user_id = ?
"""


class SqliteAccountStore:
    """Account store on a single long lived aiosqlite connection.

    Example:
        >>> async with SqliteAccountStore("eden.db") as store:
        ...     account = await store.find_linked_account("alice")
    """

    def __init__(self, db_path: str) -> None:
        if not db_path:
            raise ValueError("db_path cannot be empty")
        self.db_path = db_path
        self._conn: aiosqlite.Connection | None = None
        self._lock = asyncio.Lock()

    async def __aenter__(self) -> SqliteAccountStore:
        await self.open()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    async def open(self) -> None:
        """Open the database and create the schema if needed."""
        async with self._lock:
            if self._conn is not None:
                return
            try:
                conn = await aiosqlite.connect(self.db_path)
                await conn.execute("PRAGMA foreign_keys = ON")
                await conn.executescript(SCHEMA)
                await conn.commit()
            except aiosqlite.Error as e:
                raise StoreError(
                    "Failed to open account store", data={"path": self.db_path}
                ) from e
            self._conn = conn
        logger.log_event("store", "opened", level=logging.DEBUG, path=self.db_path)

    async def close(self) -> None:
        async with self._lock:
            if self._conn is None:
                return
            conn, self._conn = self._conn, None
        await conn.close()
        logger.log_event("store", "closed", level=logging.DEBUG, path=self.db_path)

    async def find_linked_account(self, nickname: str) -> Account | None:
        row = await self._fetchone(_FIND_LINKED_ACCOUNT, (nickname,))
        if row is None:
            return None
        return Account(id=row[0], username=row[1])

    async def fetch_effective_permissions(self, account: Account) -> set[Permission]:
        rows = await self._fetchall(_FETCH_EFFECTIVE_PERMISSIONS, (account.id,))
        return {Permission(name=name, id=perm_id) for perm_id, name in rows}

    def _require_conn(self) -> aiosqlite.Connection:
        if self._conn is None:
            raise StoreError("Account store is not open", data={"path": self.db_path})
        return self._conn

    async def _fetchone(self, query: str, params: tuple[Any, ...]) -> Any:
        conn = self._require_conn()
        try:
            async with conn.execute(query, params) as cursor:
                return await cursor.fetchone()
        except aiosqlite.Error as e:
            raise StoreError("Account store query failed", data={"params": params}) from e

    async def _fetchall(self, query: str, params: tuple[Any, ...]) -> list[Any]:
        conn = self._require_conn()
        try:
            async with conn.execute(query, params) as cursor:
                return list(await cursor.fetchall())
        except aiosqlite.Error as e:
            raise StoreError("Account store query failed", data={"params": params}) from e
