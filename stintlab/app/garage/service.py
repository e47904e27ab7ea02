"""Service layer enforcing referential integrity for garage records."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Callable, Dict, Iterable, List, Mapping, Optional, Protocol, Type, TypeVar
from uuid import uuid4

from pydantic import BaseModel, ValidationError

from .exceptions import (
    GarageConsistencyError,
    GarageReferenceError,
    GarageReferentialError,
    GarageValidationError,
)
from .models import Car, DeletePolicy, DeletionSummary, SessionEquipment, SessionGarageLink, Setup

if TYPE_CHECKING:  # pragma: no cover
    from ..config import StintLabConfig

logger = logging.getLogger("garage")

ModelT = TypeVar("ModelT", bound=BaseModel)

_READ_ONLY_FIELDS = frozenset({"id", "created_at"})


class GarageRepository(Protocol):
    """Persistence layer for cars, setups and session links.

    ``delete_car`` and ``delete_setup`` must be atomic: the record is removed
    together with its cascade (setups of the car, link references to either)
    or not at all.
    """

    def get_car(self, car_id: str) -> Optional[Car]:
        ...

    def list_cars(self) -> List[Car]:
        ...

    def save_car(self, car: Car) -> Car:
        ...

    def delete_car(self, car_id: str) -> DeletionSummary:
        ...

    def get_setup(self, setup_id: str) -> Optional[Setup]:
        ...

    def list_setups(self, car_id: Optional[str] = None) -> List[Setup]:
        ...

    def save_setup(self, setup: Setup) -> Setup:
        ...

    def delete_setup(self, setup_id: str) -> DeletionSummary:
        ...

    def get_link(self, session_id: str) -> Optional[SessionGarageLink]:
        ...

    def list_links(self) -> List[SessionGarageLink]:
        ...

    def find_links(
        self,
        *,
        car_ids: Iterable[str] = (),
        setup_ids: Iterable[str] = (),
    ) -> List[SessionGarageLink]:
        ...

    def save_link(self, link: SessionGarageLink) -> SessionGarageLink:
        ...


def _current_time(clock: Optional[Callable[[], datetime]]) -> datetime:
    if clock is None:
        return datetime.now(timezone.utc)
    value = clock()
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _new_id() -> str:
    return str(uuid4())


def _build(model: Type[ModelT], data: Mapping[str, Any]) -> ModelT:
    try:
        return model.model_validate(dict(data))
    except ValidationError as exc:
        errors = [
            {"field": ".".join(str(part) for part in error["loc"]), "message": error["msg"]}
            for error in exc.errors()
        ]
        raise GarageValidationError(
            code=f"invalid_{model.__name__.lower()}",
            message=f"{model.__name__} attributes are invalid.",
            detail={"errors": errors},
        ) from exc


def _missing(kind: str, identifier: str) -> GarageReferenceError:
    return GarageReferenceError(
        code=f"{kind}_not_found",
        message=f"{kind.capitalize()} '{identifier}' does not exist.",
        detail={f"{kind}_id": identifier},
    )


def _writable(attrs: Mapping[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in attrs.items() if key not in _READ_ONLY_FIELDS}


@dataclass
class GarageService:
    """Coordinates repository access and the garage's referential invariants."""

    repository: GarageRepository
    delete_policy: DeletePolicy = DeletePolicy.CASCADE
    clock: Optional[Callable[[], datetime]] = None
    id_factory: Callable[[], str] = field(default=_new_id)

    @classmethod
    def from_config(cls, repository: GarageRepository, config: "StintLabConfig") -> "GarageService":
        return cls(repository=repository, delete_policy=config.garage_delete_policy)

    # Cars

    def create_car(self, attrs: Mapping[str, Any]) -> Car:
        car = _build(
            Car,
            {**_writable(attrs), "id": self.id_factory(), "created_at": _current_time(self.clock)},
        )
        stored = self.repository.save_car(car)
        logger.info("Created car %s (%s %s)", stored.id, stored.brand, stored.model)
        return stored

    def update_car(self, car_id: str, changes: Mapping[str, Any]) -> Car:
        car = self._require_car(car_id)
        updated = _build(Car, {**car.model_dump(), **_writable(changes)})
        stored = self.repository.save_car(updated)
        logger.info("Updated car %s fields=%s", car_id, sorted(_writable(changes)))
        return stored

    def get_car(self, car_id: str) -> Optional[Car]:
        return self.repository.get_car(car_id)

    def list_cars(self) -> List[Car]:
        return self.repository.list_cars()

    def delete_car(self, car_id: str) -> DeletionSummary:
        """Delete a car according to :attr:`delete_policy`.

        With ``CASCADE`` the car's setups are deleted and every link pointing
        at the car or one of those setups loses both references. With
        ``REJECT`` the delete fails while any setup or link still refers to
        the car.
        """

        self._require_car(car_id)
        if self.delete_policy is DeletePolicy.REJECT:
            setup_ids = [setup.id for setup in self.repository.list_setups(car_id)]
            links = self.repository.find_links(car_ids=[car_id], setup_ids=setup_ids)
            if setup_ids or links:
                raise GarageReferentialError(
                    code="car_in_use",
                    message=f"Car '{car_id}' is still referenced and cannot be deleted.",
                    detail={
                        "car_id": car_id,
                        "setup_ids": setup_ids,
                        "session_ids": [link.session_id for link in links],
                    },
                )

        summary = self.repository.delete_car(car_id)
        logger.info(
            "Deleted car %s setups=%s unlinked_sessions=%s",
            car_id,
            list(summary.deleted_setup_ids),
            list(summary.unlinked_session_ids),
        )
        return summary

    # Setups

    def create_setup(self, car_id: str, attrs: Optional[Mapping[str, Any]] = None) -> Setup:
        self._require_car(car_id)
        data = _writable(attrs or {})
        data.update(car_id=car_id, id=self.id_factory(), created_at=_current_time(self.clock))
        setup = _build(Setup, data)
        stored = self.repository.save_setup(setup)
        logger.info("Created setup %s for car %s", stored.id, car_id)
        return stored

    def update_setup(self, setup_id: str, changes: Mapping[str, Any]) -> Setup:
        setup = self._require_setup(setup_id)
        writable = _writable(changes)
        if "car_id" in writable and writable["car_id"] != setup.car_id:
            raise GarageConsistencyError(
                code="setup_car_immutable",
                message=f"Setup '{setup_id}' cannot be moved to another car.",
                detail={"setup_id": setup_id, "car_id": setup.car_id, "requested_car_id": writable["car_id"]},
            )
        updated = _build(Setup, {**setup.model_dump(), **writable})
        stored = self.repository.save_setup(updated)
        logger.info("Updated setup %s fields=%s", setup_id, sorted(writable))
        return stored

    def duplicate_setup(self, setup_id: str) -> Setup:
        """Copy a setup under a new id, suffixing its label with ``(copy)``."""

        original = self._require_setup(setup_id)
        copy = original.model_copy(
            update={
                "id": self.id_factory(),
                "label": f"{original.label or ''} (copy)".strip(),
                "created_at": _current_time(self.clock),
            }
        )
        stored = self.repository.save_setup(copy)
        logger.info("Duplicated setup %s as %s", setup_id, stored.id)
        return stored

    def get_setup(self, setup_id: str) -> Optional[Setup]:
        return self.repository.get_setup(setup_id)

    def list_setups(self, car_id: Optional[str] = None) -> List[Setup]:
        return self.repository.list_setups(car_id)

    def delete_setup(self, setup_id: str) -> DeletionSummary:
        """Delete a setup, nulling link references or rejecting per policy."""

        self._require_setup(setup_id)
        if self.delete_policy is DeletePolicy.REJECT:
            links = self.repository.find_links(setup_ids=[setup_id])
            if links:
                raise GarageReferentialError(
                    code="setup_in_use",
                    message=f"Setup '{setup_id}' is linked to sessions and cannot be deleted.",
                    detail={"setup_id": setup_id, "session_ids": [link.session_id for link in links]},
                )

        summary = self.repository.delete_setup(setup_id)
        logger.info("Deleted setup %s unlinked_sessions=%s", setup_id, list(summary.unlinked_session_ids))
        return summary

    # Session links

    def upsert_link(
        self,
        session_id: str,
        car_id: Optional[str] = None,
        setup_id: Optional[str] = None,
    ) -> SessionGarageLink:
        """Attach equipment to a session, replacing any previous attachment.

        When only a setup is given the link's car is taken from the setup.
        """

        if car_id is not None:
            self._require_car(car_id)
        if setup_id is not None:
            setup = self._require_setup(setup_id)
            if car_id is None:
                car_id = setup.car_id
            elif setup.car_id != car_id:
                raise GarageConsistencyError(
                    code="setup_car_mismatch",
                    message=f"Setup '{setup_id}' belongs to car '{setup.car_id}', not '{car_id}'.",
                    detail={"session_id": session_id, "car_id": car_id, "setup_id": setup_id},
                )

        link = _build(
            SessionGarageLink,
            {"session_id": session_id, "car_id": car_id, "setup_id": setup_id},
        )
        existed = self.repository.get_link(session_id) is not None
        stored = self.repository.save_link(link)
        logger.info(
            "%s garage link session=%s car=%s setup=%s",
            "Updated" if existed else "Created",
            session_id,
            car_id,
            setup_id,
        )
        return stored

    def get_link(self, session_id: str) -> Optional[SessionGarageLink]:
        return self.repository.get_link(session_id)

    def list_links(self) -> List[SessionGarageLink]:
        return self.repository.list_links()

    # Enrichment

    def enrich_session(self, session_id: str) -> SessionEquipment:
        """Resolve the equipment attached to a session.

        A session without a link, or whose link references were nulled by a
        delete, yields empty equipment rather than an error.
        """

        return self.enrich_sessions([session_id])[0]

    def enrich_sessions(self, session_ids: Iterable[str]) -> List[SessionEquipment]:
        """Resolve equipment for several sessions, preserving their order."""

        cars: Dict[str, Optional[Car]] = {}
        setups: Dict[str, Optional[Setup]] = {}
        enriched: List[SessionEquipment] = []
        for session_id in session_ids:
            link = self.repository.get_link(session_id)
            if link is None:
                enriched.append(SessionEquipment(session_id=session_id))
                continue
            car = None
            if link.car_id is not None:
                if link.car_id not in cars:
                    cars[link.car_id] = self.repository.get_car(link.car_id)
                car = cars[link.car_id]
            setup = None
            if link.setup_id is not None:
                if link.setup_id not in setups:
                    setups[link.setup_id] = self.repository.get_setup(link.setup_id)
                setup = setups[link.setup_id]
            enriched.append(SessionEquipment(session_id=session_id, car=car, setup=setup))
        return enriched

    @staticmethod
    def group_by_car(enriched: Iterable[SessionEquipment]) -> Dict[str, List[SessionEquipment]]:
        """Group enriched sessions by car id, skipping sessions without a car."""

        groups: Dict[str, List[SessionEquipment]] = {}
        for item in enriched:
            if item.car is not None:
                groups.setdefault(item.car.id, []).append(item)
        return groups

    @staticmethod
    def group_by_setup(enriched: Iterable[SessionEquipment]) -> Dict[str, List[SessionEquipment]]:
        """Group enriched sessions by setup id, skipping sessions without a setup."""

        groups: Dict[str, List[SessionEquipment]] = {}
        for item in enriched:
            if item.setup is not None:
                groups.setdefault(item.setup.id, []).append(item)
        return groups

    def _require_car(self, car_id: str) -> Car:
        car = self.repository.get_car(car_id)
        if car is None:
            raise _missing("car", car_id)
        return car

    def _require_setup(self, setup_id: str) -> Setup:
        setup = self.repository.get_setup(setup_id)
        if setup is None:
            raise _missing("setup", setup_id)
        return setup
