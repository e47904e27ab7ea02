"""Role resolution against the external role store."""

from .models import EMPTY_ROLES, Identity, Role, RoleSet, RoleState
from .resolver import RoleResolver
from .store import InMemoryRoleStore, PostgresRoleStore, RoleStore

__all__ = [
    "EMPTY_ROLES",
    "Identity",
    "Role",
    "RoleSet",
    "RoleState",
    "RoleResolver",
    "InMemoryRoleStore",
    "PostgresRoleStore",
    "RoleStore",
]
