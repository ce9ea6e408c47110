import asyncio

import pytest

from eden.auth import Authorizer, NickServChallenge, UserCache
from eden.commands import User
from eden.store import Account, Permission
from tests.fixtures.fakes import FakeStore, FakeTransport, nickserv_replies, wait_until

ALICE = Account(id=1, username="alice_account")
OP = Permission("op", id=10)
VOICE = Permission("voice", id=11)


def make_authorizer(status="3", timeout=1.0):
    transport = FakeTransport()
    if status is not None:
        nickserv_replies(transport, status)
    store = FakeStore()
    cache = UserCache(server=transport.server)
    authorizer = Authorizer(
        cache, NickServChallenge(transport, timeout=timeout), store, server=transport.server
    )
    return authorizer, transport, store, cache


@pytest.mark.asyncio
async def test_verified_linked_user_with_permission_is_granted():
    authorizer, transport, store, cache = make_authorizer()
    store.link("alice", ALICE, [OP])
    user = User("alice")

    assert await authorizer.authorize(user, Permission("op")) is True
    assert user.id == ALICE.id
    assert transport.status_requests() == ["STATUS alice"]
    assert await cache.get("alice") == (ALICE, True)


@pytest.mark.asyncio
async def test_missing_permission_is_denied():
    authorizer, _, store, _ = make_authorizer()
    store.link("alice", ALICE, [VOICE])

    assert await authorizer.authorize(User("alice"), OP) is False


@pytest.mark.asyncio
async def test_permission_from_any_role_counts():
    authorizer, _, store, _ = make_authorizer()
    store.link("alice", ALICE, [VOICE], [OP])

    assert await authorizer.authorize(User("alice"), OP) is True


@pytest.mark.asyncio
async def test_cached_account_skips_challenge():
    authorizer, transport, store, _ = make_authorizer()
    store.link("alice", ALICE, [OP])

    await authorizer.authorize(User("alice"), OP)
    await authorizer.authorize(User("alice"), VOICE)

    assert transport.status_requests() == ["STATUS alice"]
    assert store.find_calls == ["alice"]
    # Permissions are always read fresh
    assert len(store.permission_calls) == 2


@pytest.mark.asyncio
async def test_unverified_nick_denied_and_not_cached():
    authorizer, transport, store, cache = make_authorizer(status="1")
    store.link("alice", ALICE, [OP])

    assert await authorizer.authorize(User("alice"), OP) is False
    assert await authorizer.authorize(User("alice"), OP) is False

    assert transport.status_requests() == ["STATUS alice", "STATUS alice"]
    assert store.find_calls == []
    assert "alice" not in cache


@pytest.mark.asyncio
async def test_challenge_timeout_denies_without_caching():
    authorizer, transport, store, cache = make_authorizer(status=None, timeout=0.05)
    store.link("alice", ALICE, [OP])

    assert await authorizer.authorize(User("alice"), OP) is False
    assert transport.status_requests() == ["STATUS alice"]
    assert "alice" not in cache

    assert await authorizer.authorize(User("alice"), OP) is False
    assert transport.status_requests() == ["STATUS alice", "STATUS alice"]


@pytest.mark.asyncio
async def test_verified_without_account_caches_marker_and_rechecks_store():
    authorizer, transport, store, cache = make_authorizer()

    assert await authorizer.authorize(User("alice"), OP) is False
    assert await cache.get("alice") == (None, True)

    # Linked later: no new challenge, but the lookup runs again and succeeds
    store.link("alice", ALICE, [OP])
    assert await authorizer.authorize(User("alice"), OP) is True

    assert transport.status_requests() == ["STATUS alice"]
    assert store.find_calls == ["alice", "alice"]
    assert await cache.get("alice") == (ALICE, True)


@pytest.mark.asyncio
async def test_invalidation_forces_new_challenge():
    authorizer, transport, store, cache = make_authorizer()
    store.link("alice", ALICE, [OP])

    await authorizer.authorize(User("alice"), OP)
    await cache.remove("alice")
    await authorizer.authorize(User("alice"), OP)

    assert transport.status_requests() == ["STATUS alice", "STATUS alice"]


@pytest.mark.asyncio
async def test_store_lookup_failure_denies():
    authorizer, _, store, _ = make_authorizer()
    store.link("alice", ALICE, [OP])
    store.fail_find = True

    assert await authorizer.authorize(User("alice"), OP) is False


@pytest.mark.asyncio
async def test_permission_fetch_failure_denies():
    authorizer, _, store, _ = make_authorizer()
    store.link("alice", ALICE, [OP])
    store.fail_permissions = True

    assert await authorizer.authorize(User("alice"), OP) is False
    assert await authorizer.permissions(ALICE) == set()


@pytest.mark.asyncio
async def test_store_failure_is_aggregated():
    from eden.logging_config import error_aggregator

    authorizer, _, store, _ = make_authorizer()
    store.fail_find = True

    await authorizer.authorize(User("alice"), OP)
    assert len(error_aggregator.errors["store"]) == 1


class GatedStore(FakeStore):
    """FakeStore whose account lookup waits until ``gate`` is set."""

    def __init__(self) -> None:
        super().__init__()
        self.gate = asyncio.Event()

    async def find_linked_account(self, nickname):
        self.find_calls.append(nickname)
        await self.gate.wait()
        return self.links.get(nickname)


def make_gated_authorizer():
    transport = FakeTransport()
    nickserv_replies(transport, "3")
    store = GatedStore()
    cache = UserCache(server=transport.server)
    authorizer = Authorizer(
        cache, NickServChallenge(transport, timeout=1.0), store, server=transport.server
    )
    return authorizer, transport, store, cache


@pytest.mark.asyncio
async def test_quit_during_account_lookup_denies_and_caches_nothing():
    authorizer, transport, store, cache = make_gated_authorizer()
    store.link("alice", ALICE, [OP])
    store.gate.set()
    assert await authorizer.authorize(User("alice"), OP) is True
    store.gate.clear()

    # alice quits; her cached account goes and a newcomer takes the nick
    await cache.remove("alice")
    pending = asyncio.create_task(authorizer.authorize(User("alice"), OP))
    await wait_until(lambda: len(store.find_calls) == 2)
    await cache.remove("alice")
    store.gate.set()

    assert await pending is False
    assert "alice" not in cache
    # The newcomer is challenged again on the next attempt
    await authorizer.authorize(User("alice"), OP)
    assert transport.status_requests() == ["STATUS alice"] * 3


@pytest.mark.asyncio
async def test_disconnect_during_account_lookup_denies():
    authorizer, _, store, cache = make_gated_authorizer()
    store.link("alice", ALICE, [OP])

    pending = asyncio.create_task(authorizer.authorize(User("alice"), OP))
    await wait_until(lambda: store.find_calls == ["alice"])
    await cache.clear()
    store.gate.set()

    assert await pending is False
    assert "alice" not in cache


@pytest.mark.asyncio
async def test_remove_during_challenge_denies_before_lookup():
    transport = FakeTransport()
    store = FakeStore()
    store.link("alice", ALICE, [OP])
    cache = UserCache(server=transport.server)
    authorizer = Authorizer(
        cache, NickServChallenge(transport, timeout=1.0), store, server=transport.server
    )

    pending = asyncio.create_task(authorizer.authorize(User("alice"), OP))
    await wait_until(lambda: transport.status_requests() == ["STATUS alice"])
    await cache.remove("alice")
    transport.deliver(":NickServ!NickServ@services PRIVMSG eden :STATUS alice 3")

    assert await pending is False
    assert store.find_calls == []
    assert "alice" not in cache
