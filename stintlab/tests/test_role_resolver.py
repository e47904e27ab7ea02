from __future__ import annotations

import asyncio
from typing import Dict, List

import pytest

from stintlab.app.roles import (
    Identity,
    InMemoryRoleStore,
    Role,
    RoleResolver,
    RoleSet,
)


class GatedRoleStore:
    """Role store whose lookups block until the test releases them."""

    def __init__(self, assignments: Dict[str, List[str]]) -> None:
        self._assignments = assignments
        self.gates: Dict[str, asyncio.Event] = {}
        self.calls: List[str] = []

    def gate(self, user_id: str) -> asyncio.Event:
        return self.gates.setdefault(user_id, asyncio.Event())

    async def fetch_roles(self, user_id: str) -> List[str]:
        self.calls.append(user_id)
        await self.gate(user_id).wait()
        return list(self._assignments.get(user_id, []))


class FailingRoleStore:
    def __init__(self) -> None:
        self.calls = 0

    async def fetch_roles(self, user_id: str) -> List[str]:
        self.calls += 1
        raise ConnectionError("role store unreachable")


class SlowRoleStore:
    async def fetch_roles(self, user_id: str) -> List[str]:
        await asyncio.sleep(10)
        return ["platform_admin"]


@pytest.mark.parametrize(
    "values",
    [
        [],
        ["platform_admin"],
        ["club_admin"],
        ["user"],
        ["platform_admin", "user"],
        ["club_admin", "user", "platform_admin"],
    ],
)
def test_derived_flags_follow_membership(values: List[str]) -> None:
    role_set = RoleSet.from_values(values)

    assert role_set.is_platform_admin == ("platform_admin" in values)
    assert role_set.is_club_admin == ("club_admin" in values)
    assert role_set.is_user == ("user" in values)


def test_club_admin_does_not_imply_platform_admin() -> None:
    role_set = RoleSet.from_values(["club_admin"])

    assert role_set.is_club_admin is True
    assert role_set.is_platform_admin is False
    assert role_set.is_user is False


def test_unknown_role_values_are_ignored() -> None:
    role_set = RoleSet.from_values(["user", "superuser"])

    assert role_set.roles == frozenset({Role.USER})


def test_no_identity_yields_empty_roles_without_store_calls() -> None:
    store = InMemoryRoleStore({"u-1": ["platform_admin"]})
    resolver = RoleResolver(store)

    state = asyncio.run(resolver.resolve(None))

    assert state.roles == frozenset()
    assert state.loading is False
    assert store.calls == []


def test_resolve_returns_roles_and_caches_per_identity() -> None:
    store = InMemoryRoleStore({"u-1": ["club_admin", "user"]})
    resolver = RoleResolver(store)
    identity = Identity(id="u-1")

    async def scenario():
        first = await resolver.resolve(identity)
        second = await resolver.resolve(identity)
        return first, second

    first, second = asyncio.run(scenario())

    assert first.roles == frozenset({Role.CLUB_ADMIN, Role.USER})
    assert first.is_club_admin is True
    assert first.is_platform_admin is False
    assert first.loading is False
    assert second == first
    assert store.calls == ["u-1"]


def test_loading_is_true_while_lookup_in_flight() -> None:
    store = GatedRoleStore({"u-1": ["user"]})
    resolver = RoleResolver(store)

    async def scenario():
        task = asyncio.create_task(resolver.resolve(Identity(id="u-1")))
        await asyncio.sleep(0)
        during = resolver.state
        store.gate("u-1").set()
        after = await task
        return during, after

    during, after = asyncio.run(scenario())

    assert during.loading is True
    assert during.roles == frozenset()
    assert after.loading is False
    assert after.is_user is True



def test_refresh_keeps_last_known_flags_while_in_flight() -> None:
    store = GatedRoleStore({"u-1": ["club_admin"]})
    resolver = RoleResolver(store)
    identity = Identity(id="u-1")

    async def scenario():
        store.gate("u-1").set()
        known = await resolver.resolve(identity)
        store.gate("u-1").clear()
        task = asyncio.create_task(resolver.refresh())
        await asyncio.sleep(0)
        during = resolver.state
        store.gate("u-1").set()
        after = await task
        return known, during, after

    known, during, after = asyncio.run(scenario())

    assert known.is_club_admin is True
    assert during.loading is True
    assert during.is_club_admin is True
    assert during.is_platform_admin is False
    assert after.loading is False
    assert after.is_club_admin is True
    assert store.calls == ["u-1", "u-1"]

def test_superseded_lookup_is_discarded() -> None:
    store = GatedRoleStore({"user-a": ["platform_admin"], "user-b": ["user"]})
    resolver = RoleResolver(store)

    async def scenario():
        task_a = asyncio.create_task(resolver.resolve(Identity(id="user-a")))
        await asyncio.sleep(0)
        task_b = asyncio.create_task(resolver.resolve(Identity(id="user-b")))
        await asyncio.sleep(0)
        store.gate("user-b").set()
        await task_b
        store.gate("user-a").set()
        await task_a
        return resolver.state

    final = asyncio.run(scenario())

    assert store.calls == ["user-a", "user-b"]
    assert final.user_id == "user-b"
    assert final.roles == frozenset({Role.USER})
    assert final.is_platform_admin is False
    assert final.loading is False


def test_sign_out_discards_in_flight_lookup() -> None:
    store = GatedRoleStore({"u-1": ["platform_admin"]})
    resolver = RoleResolver(store)

    async def scenario():
        task = asyncio.create_task(resolver.resolve(Identity(id="u-1")))
        await asyncio.sleep(0)
        resolver.sign_out()
        store.gate("u-1").set()
        await task
        return resolver.state

    final = asyncio.run(scenario())

    assert final.roles == frozenset()
    assert final.user_id is None
    assert final.loading is False


def test_identity_change_clears_previous_roles() -> None:
    store = InMemoryRoleStore({"u-1": ["platform_admin"], "u-2": []})
    resolver = RoleResolver(store)

    async def scenario():
        await resolver.resolve(Identity(id="u-1"))
        return await resolver.resolve(Identity(id="u-2"))

    state = asyncio.run(scenario())

    assert state.user_id == "u-2"
    assert state.is_platform_admin is False
    assert store.calls == ["u-1", "u-2"]


def test_lookup_failure_fails_closed() -> None:
    store = FailingRoleStore()
    resolver = RoleResolver(store)

    state = asyncio.run(resolver.resolve(Identity(id="u-1")))

    assert state.roles == frozenset()
    assert state.loading is False
    assert state.is_platform_admin is False


def test_lookup_failure_is_retried_on_next_resolve() -> None:
    store = FailingRoleStore()
    resolver = RoleResolver(store)
    identity = Identity(id="u-1")

    async def scenario():
        await resolver.resolve(identity)
        await resolver.resolve(identity)

    asyncio.run(scenario())

    assert store.calls == 2


def test_lookup_timeout_fails_closed() -> None:
    resolver = RoleResolver(SlowRoleStore(), timeout=0.01)

    state = asyncio.run(resolver.resolve(Identity(id="u-1")))

    assert state.roles == frozenset()
    assert state.loading is False


def test_refresh_picks_up_new_assignments() -> None:
    store = InMemoryRoleStore({"u-1": ["user"]})
    resolver = RoleResolver(store)

    async def scenario():
        await resolver.resolve(Identity(id="u-1"))
        store.assign("u-1", "club_admin")
        cached = await resolver.resolve(Identity(id="u-1"))
        refreshed = await resolver.refresh()
        return cached, refreshed

    cached, refreshed = asyncio.run(scenario())

    assert cached.is_club_admin is False
    assert refreshed.is_club_admin is True
    assert store.calls == ["u-1", "u-1"]


def test_invalidate_forces_next_lookup() -> None:
    store = InMemoryRoleStore({"u-1": ["user"]})
    resolver = RoleResolver(store)
    identity = Identity(id="u-1")

    async def scenario():
        await resolver.resolve(identity)
        resolver.invalidate()
        await resolver.resolve(identity)

    asyncio.run(scenario())

    assert store.calls == ["u-1", "u-1"]
