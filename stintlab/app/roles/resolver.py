"""Asynchronous role resolution with last-request-wins semantics."""
from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Optional, Tuple

from .models import EMPTY_ROLES, Identity, RoleSet, RoleState
from .store import RoleStore

if TYPE_CHECKING:  # pragma: no cover
    from ..config import StintLabConfig

logger = logging.getLogger(__name__)


class RoleResolver:
    """Resolves the role set of the current identity against a :class:`RoleStore`.

    Every call to :meth:`resolve` starts a new generation. A lookup whose
    generation has been superseded by the time it completes is discarded, so
    a slow answer for a previous identity never overwrites the current one.
    Lookup failures are fail-closed: the identity is treated as holding no
    roles and the error is logged rather than raised.

    The resolved set is cached for the lifetime of the identity and cleared
    when the identity changes or signs out.
    """

    def __init__(self, store: RoleStore, *, timeout: Optional[float] = None) -> None:
        self._store = store
        self._timeout = timeout
        self._generation = 0
        self._identity: Optional[Identity] = None
        self._resolved: Optional[RoleSet] = None
        self._state = RoleState()

    @classmethod
    def from_config(cls, store: RoleStore, config: "StintLabConfig") -> "RoleResolver":
        return cls(store, timeout=config.role_lookup_timeout)

    @property
    def state(self) -> RoleState:
        return self._state

    @property
    def identity(self) -> Optional[Identity]:
        return self._identity

    async def resolve(self, identity: Optional[Identity]) -> RoleState:
        """Return the role state for ``identity``, looking it up if needed."""

        generation = self._next_generation()
        if identity is None:
            self._reset()
            return self._state

        if self._identity is None or self._identity.id != identity.id:
            self._identity = identity
            self._resolved = None
            self._state = RoleState(user_id=identity.id)

        if self._resolved is not None:
            self._state = RoleState(role_set=self._resolved, user_id=identity.id)
            return self._state

        return await self._lookup(identity, generation)

    async def refresh(self) -> RoleState:
        """Force a new lookup for the current identity."""

        generation = self._next_generation()
        if self._identity is None:
            self._reset()
            return self._state
        self._resolved = None
        return await self._lookup(self._identity, generation)

    def invalidate(self) -> None:
        """Drop the cached role set; the next :meth:`resolve` re-queries the store."""

        self._resolved = None

    def sign_out(self) -> RoleState:
        """Clear the identity and discard any lookup still in flight."""

        self._next_generation()
        self._reset()
        return self._state

    def _next_generation(self) -> int:
        self._generation += 1
        return self._generation

    def _reset(self) -> None:
        self._identity = None
        self._resolved = None
        self._state = RoleState()

    async def _lookup(self, identity: Identity, generation: int) -> RoleState:
        self._state = self._state.model_copy(update={"loading": True})
        role_set, succeeded = await self._fetch(identity.id)

        if generation != self._generation:
            logger.debug(
                "Discarding superseded role lookup for user=%s generation=%s current=%s",
                identity.id,
                generation,
                self._generation,
            )
            return self._state

        if succeeded:
            self._resolved = role_set
        self._state = RoleState(role_set=role_set, user_id=identity.id)
        return self._state

    async def _fetch(self, user_id: str) -> Tuple[RoleSet, bool]:
        try:
            if self._timeout is None:
                values = await self._store.fetch_roles(user_id)
            else:
                values = await asyncio.wait_for(self._store.fetch_roles(user_id), self._timeout)
        except Exception:
            logger.warning("Role lookup failed for user=%s; treating as no roles", user_id, exc_info=True)
            return EMPTY_ROLES, False
        return RoleSet.from_values(values), True
