"""Garage enrichment: cars, setups and their links to telemetry sessions."""

from .exceptions import (
    GarageConsistencyError,
    GarageError,
    GarageReferenceError,
    GarageReferentialError,
    GarageValidationError,
)
from .memory import InMemoryGarageRepository
from .models import Car, DeletePolicy, DeletionSummary, SessionEquipment, SessionGarageLink, Setup
from .repository import PostgresGarageRepository
from .service import GarageRepository, GarageService
from .templates import (
    PARAMETER_INDEX,
    SLOT_CAR_TEMPLATE,
    ParameterDefinition,
    ParameterType,
    SetupSection,
    get_parameter_definition,
    parameters_by_section,
)

__all__ = [
    "GarageConsistencyError",
    "GarageError",
    "GarageReferenceError",
    "GarageReferentialError",
    "GarageValidationError",
    "InMemoryGarageRepository",
    "Car",
    "DeletePolicy",
    "DeletionSummary",
    "SessionEquipment",
    "SessionGarageLink",
    "Setup",
    "PostgresGarageRepository",
    "GarageRepository",
    "GarageService",
    "PARAMETER_INDEX",
    "SLOT_CAR_TEMPLATE",
    "ParameterDefinition",
    "ParameterType",
    "SetupSection",
    "get_parameter_definition",
    "parameters_by_section",
]
