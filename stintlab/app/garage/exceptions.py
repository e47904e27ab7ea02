"""Errors surfaced by garage writes."""
from __future__ import annotations

from dataclasses import dataclass

from fastapi import status

from ..errors import DomainError


@dataclass
class GarageError(DomainError):
    """Base for rejected garage writes; nothing is committed when raised."""

    status_code: int = status.HTTP_409_CONFLICT


@dataclass
class GarageReferenceError(GarageError):
    """A write referenced a car or setup that does not exist."""

    status_code: int = status.HTTP_404_NOT_FOUND


@dataclass
class GarageConsistencyError(GarageError):
    """A link paired a setup with a car it does not belong to."""

    status_code: int = status.HTTP_409_CONFLICT


@dataclass
class GarageReferentialError(GarageError):
    """A delete would leave a dangling reference behind."""

    status_code: int = status.HTTP_409_CONFLICT


@dataclass
class GarageValidationError(GarageError):
    """Submitted attributes failed model validation."""

    status_code: int = 422
