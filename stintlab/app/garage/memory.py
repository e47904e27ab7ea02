"""In-memory garage repository for tests and local development."""
from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from .models import Car, DeletionSummary, SessionGarageLink, Setup


class InMemoryGarageRepository:
    """Dictionary backed implementation of the garage repository protocol."""

    def __init__(self) -> None:
        self.cars: Dict[str, Car] = {}
        self.setups: Dict[str, Setup] = {}
        self.links: Dict[str, SessionGarageLink] = {}

    def get_car(self, car_id: str) -> Optional[Car]:
        return self.cars.get(car_id)

    def list_cars(self) -> List[Car]:
        return sorted(self.cars.values(), key=lambda car: car.created_at)

    def save_car(self, car: Car) -> Car:
        self.cars[car.id] = car
        return car

    def delete_car(self, car_id: str) -> DeletionSummary:
        setup_ids = [setup.id for setup in self.setups.values() if setup.car_id == car_id]
        unlinked: List[str] = []
        for link in self.find_links(car_ids=[car_id], setup_ids=setup_ids):
            self.links[link.session_id] = link.model_copy(update={"car_id": None, "setup_id": None})
            unlinked.append(link.session_id)
        for setup_id in setup_ids:
            del self.setups[setup_id]
        removed = (car_id,) if self.cars.pop(car_id, None) is not None else ()
        return DeletionSummary(
            deleted_car_ids=removed,
            deleted_setup_ids=tuple(setup_ids),
            unlinked_session_ids=tuple(unlinked),
        )

    def get_setup(self, setup_id: str) -> Optional[Setup]:
        return self.setups.get(setup_id)

    def list_setups(self, car_id: Optional[str] = None) -> List[Setup]:
        setups = [setup for setup in self.setups.values() if car_id is None or setup.car_id == car_id]
        return sorted(setups, key=lambda setup: setup.created_at)

    def save_setup(self, setup: Setup) -> Setup:
        self.setups[setup.id] = setup
        return setup

    def delete_setup(self, setup_id: str) -> DeletionSummary:
        unlinked: List[str] = []
        for link in self.find_links(setup_ids=[setup_id]):
            self.links[link.session_id] = link.model_copy(update={"setup_id": None})
            unlinked.append(link.session_id)
        removed = (setup_id,) if self.setups.pop(setup_id, None) is not None else ()
        return DeletionSummary(deleted_setup_ids=removed, unlinked_session_ids=tuple(unlinked))

    def get_link(self, session_id: str) -> Optional[SessionGarageLink]:
        return self.links.get(session_id)

    def list_links(self) -> List[SessionGarageLink]:
        return list(self.links.values())

    def find_links(
        self,
        *,
        car_ids: Iterable[str] = (),
        setup_ids: Iterable[str] = (),
    ) -> List[SessionGarageLink]:
        car_set = set(car_ids)
        setup_set = set(setup_ids)
        return [
            link
            for link in self.links.values()
            if (link.car_id is not None and link.car_id in car_set)
            or (link.setup_id is not None and link.setup_id in setup_set)
        ]

    def save_link(self, link: SessionGarageLink) -> SessionGarageLink:
        self.links[link.session_id] = link
        return link
