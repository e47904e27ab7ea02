"""Typed representations of platform roles and resolved role state."""
from __future__ import annotations

import logging
from enum import Enum
from typing import FrozenSet, Iterable, Optional

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)


class Role(str, Enum):
    """Organizational roles assigned by the external role store."""

    PLATFORM_ADMIN = "platform_admin"
    CLUB_ADMIN = "club_admin"
    USER = "user"


class Identity(BaseModel):
    """An authenticated user as handed over by the auth provider."""

    id: str = Field(min_length=1)
    email: Optional[str] = None

    model_config = ConfigDict(frozen=True)


class RoleSet(BaseModel):
    """An unordered set of roles with derived capability flags.

    No role implies another: a club admin is not a platform admin and a
    platform admin is only a ``user`` if the store says so.
    """

    roles: FrozenSet[Role] = Field(default_factory=frozenset)

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_values(cls, values: Iterable[str]) -> "RoleSet":
        """Build a role set from raw store values, skipping unknown roles."""

        roles = set()
        for value in values:
            try:
                roles.add(Role(value))
            except ValueError:
                logger.warning("Ignoring unknown role value %r", value)
        return cls(roles=frozenset(roles))

    def has(self, role: Role) -> bool:
        return role in self.roles

    @property
    def is_platform_admin(self) -> bool:
        return Role.PLATFORM_ADMIN in self.roles

    @property
    def is_club_admin(self) -> bool:
        return Role.CLUB_ADMIN in self.roles

    @property
    def is_user(self) -> bool:
        return Role.USER in self.roles

    def __bool__(self) -> bool:
        return bool(self.roles)


EMPTY_ROLES = RoleSet()


class RoleState(BaseModel):
    """Snapshot returned to callers asking what an identity may administer."""

    role_set: RoleSet = Field(default_factory=RoleSet)
    loading: bool = False
    user_id: Optional[str] = None

    model_config = ConfigDict(frozen=True)

    @property
    def roles(self) -> FrozenSet[Role]:
        return self.role_set.roles

    @property
    def is_platform_admin(self) -> bool:
        return self.role_set.is_platform_admin

    @property
    def is_club_admin(self) -> bool:
        return self.role_set.is_club_admin

    @property
    def is_user(self) -> bool:
        return self.role_set.is_user
