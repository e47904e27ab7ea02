"""Read-only access to the external role store."""
from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Optional, Protocol

import asyncpg


class RoleStore(Protocol):
    """Query interface for role rows keyed by user id."""

    async def fetch_roles(self, user_id: str) -> List[str]:
        ...


SELECT_ROLES_SQL = """
    SELECT role
    FROM user_roles
    WHERE user_id = $1
"""


class PostgresRoleStore:
    """Role store backed by the ``user_roles`` table through an asyncpg pool."""

    def __init__(self, pool: asyncpg.Pool) -> None:
        self._pool = pool

    @classmethod
    async def connect(cls, db_config: Mapping[str, Any], *, timeout: float = 5.0) -> "PostgresRoleStore":
        pool = await asyncpg.create_pool(
            min_size=1,
            max_size=5,
            command_timeout=timeout,
            timeout=timeout,
            **dict(db_config),
        )
        return cls(pool)

    async def fetch_roles(self, user_id: str) -> List[str]:
        async with self._pool.acquire() as connection:
            rows = await connection.fetch(SELECT_ROLES_SQL, user_id)
        return [row["role"] for row in rows]

    async def close(self) -> None:
        await self._pool.close()


class InMemoryRoleStore:
    """Simple in-memory role store suitable for tests and local development."""

    def __init__(self, assignments: Optional[Mapping[str, Iterable[str]]] = None) -> None:
        self._assignments: Dict[str, List[str]] = {
            user_id: list(roles) for user_id, roles in (assignments or {}).items()
        }
        self.calls: List[str] = []

    def assign(self, user_id: str, *roles: str) -> None:
        self._assignments.setdefault(user_id, []).extend(roles)

    async def fetch_roles(self, user_id: str) -> List[str]:
        self.calls.append(user_id)
        return list(self._assignments.get(user_id, []))
