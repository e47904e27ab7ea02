"""Garage enrichment records attached to immutable telemetry sessions."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .templates import ParameterValue, validate_parameters


class DeletePolicy(str, Enum):
    """How deleting a referenced car or setup is handled."""

    CASCADE = "cascade"
    REJECT = "reject"


class Car(BaseModel):
    """A physical or scale model car owned by the garage."""

    id: str = Field(min_length=1)
    brand: str = Field(min_length=1)
    model: str = Field(min_length=1)
    scale: Optional[str] = None
    motor: Optional[str] = None
    weight: Optional[float] = Field(default=None, ge=0, description="Weight in grams.")
    notes: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(frozen=True)

    @field_validator("brand", "model")
    @classmethod
    def _strip_required(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("must not be blank")
        return stripped


class Setup(BaseModel):
    """A named configuration belonging to exactly one car."""

    id: str = Field(min_length=1)
    car_id: str = Field(min_length=1)
    label: Optional[str] = None
    notes: Optional[str] = None
    tires: Optional[str] = None
    gear_ratio: Optional[str] = None
    ride_height: Optional[float] = Field(default=None, ge=0, description="Ride height in millimetres.")
    magnet: Optional[str] = None
    tags: Tuple[str, ...] = ()
    parameters: Dict[str, ParameterValue] = Field(default_factory=dict)
    custom_fields: Dict[str, str] = Field(default_factory=dict)
    images: Tuple[str, ...] = Field(default=(), description="URLs of attached photos.")
    created_at: datetime

    model_config = ConfigDict(frozen=True)

    @field_validator("parameters")
    @classmethod
    def _validate_parameters(cls, value: Dict[str, ParameterValue]) -> Dict[str, ParameterValue]:
        return validate_parameters(value)

    @field_validator("custom_fields")
    @classmethod
    def _validate_custom_fields(cls, value: Dict[str, str]) -> Dict[str, str]:
        normalized: Dict[str, str] = {}
        for name, field_value in value.items():
            key = name.strip()
            if not key:
                raise ValueError("custom field names must not be blank")
            if key in normalized:
                raise ValueError(f"duplicate custom field: {key}")
            normalized[key] = field_value
        return normalized

    @field_validator("tags")
    @classmethod
    def _dedupe_tags(cls, value: Tuple[str, ...]) -> Tuple[str, ...]:
        seen = []
        for tag in value:
            tag = tag.strip()
            if tag and tag not in seen:
                seen.append(tag)
        return tuple(seen)

    @field_validator("images")
    @classmethod
    def _strip_images(cls, value: Tuple[str, ...]) -> Tuple[str, ...]:
        return tuple(url.strip() for url in value if url.strip())


class SessionGarageLink(BaseModel):
    """Associates an external session with optional garage equipment.

    The session id is the link's identity; the session itself is never
    touched by the garage.
    """

    session_id: str = Field(min_length=1)
    car_id: Optional[str] = None
    setup_id: Optional[str] = None

    model_config = ConfigDict(frozen=True)

    @property
    def is_empty(self) -> bool:
        return self.car_id is None and self.setup_id is None


@dataclass(frozen=True)
class SessionEquipment:
    """A session id resolved to the car and setup attached to it, if any."""

    session_id: str
    car: Optional[Car] = None
    setup: Optional[Setup] = None

    @property
    def is_empty(self) -> bool:
        return self.car is None and self.setup is None


@dataclass(frozen=True)
class DeletionSummary:
    """What a delete removed or unlinked."""

    deleted_car_ids: Tuple[str, ...] = ()
    deleted_setup_ids: Tuple[str, ...] = ()
    unlinked_session_ids: Tuple[str, ...] = ()
