"""Static catalog of structured slot car setup parameters."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Tuple, Union

ParameterValue = Union[str, int, float]


class ParameterType(str, Enum):
    TEXT = "text"
    NUMBER = "number"
    SELECT = "select"


class SetupSection(str, Enum):
    """Sections used to group parameters for display."""

    CHASSIS = "chassis"
    DRIVETRAIN = "drivetrain"
    MOTOR = "motor"
    RUNNING_GEAR = "running_gear"
    GUIDE = "guide"
    ELECTRICAL = "electrical"
    BODY = "body"
    GEOMETRY = "geometry"
    TRACK_CONDITIONS = "track_conditions"


@dataclass(frozen=True)
class ParameterDefinition:
    """Describes a single parameter field available in a setup."""

    key: str
    label: str
    section: SetupSection
    type: ParameterType = ParameterType.TEXT
    unit: Optional[str] = None
    min: Optional[float] = None
    max: Optional[float] = None
    options: Tuple[str, ...] = ()

    def validate(self, value: ParameterValue) -> ParameterValue:
        """Return ``value`` if acceptable for this parameter, raising otherwise."""

        if self.type is ParameterType.NUMBER:
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValueError(f"{self.key} expects a number")
            if self.min is not None and value < self.min:
                raise ValueError(f"{self.key} must be >= {self.min}")
            if self.max is not None and value > self.max:
                raise ValueError(f"{self.key} must be <= {self.max}")
            return value
        if not isinstance(value, str):
            raise ValueError(f"{self.key} expects text")
        if self.type is ParameterType.SELECT and value not in self.options:
            raise ValueError(f"{self.key} must be one of {', '.join(self.options)}")
        return value


def _text(key: str, label: str, section: SetupSection) -> ParameterDefinition:
    return ParameterDefinition(key=key, label=label, section=section)


def _number(
    key: str,
    label: str,
    section: SetupSection,
    unit: Optional[str],
    minimum: float,
    maximum: float,
) -> ParameterDefinition:
    return ParameterDefinition(
        key=key,
        label=label,
        section=section,
        type=ParameterType.NUMBER,
        unit=unit,
        min=minimum,
        max=maximum,
    )


def _select(key: str, label: str, section: SetupSection, *options: str) -> ParameterDefinition:
    return ParameterDefinition(
        key=key,
        label=label,
        section=section,
        type=ParameterType.SELECT,
        options=options,
    )


_S = SetupSection

SLOT_CAR_TEMPLATE: Tuple[ParameterDefinition, ...] = (
    _text("chassis_type", "Chassis Type", _S.CHASSIS),
    _number("ride_height_front", "Front Ride Height", _S.CHASSIS, "mm", 0, 20),
    _number("ride_height_rear", "Rear Ride Height", _S.CHASSIS, "mm", 0, 20),
    _select("chassis_flex", "Chassis Flex", _S.CHASSIS, "Rigid", "Medium", "Soft"),
    _number("ballast_weight", "Ballast Weight", _S.CHASSIS, "g", 0, 100),
    _text("ballast_position", "Ballast Position", _S.CHASSIS),
    _text("gear_ratio", "Gear Ratio", _S.DRIVETRAIN),
    _number("pinion", "Pinion", _S.DRIVETRAIN, "teeth", 5, 30),
    _number("crown", "Crown", _S.DRIVETRAIN, "teeth", 20, 40),
    _text("axle_type", "Axle Type", _S.DRIVETRAIN),
    _select("differential", "Differential", _S.DRIVETRAIN, "None", "Locked", "Open", "Limited Slip"),
    _text("motor_brand", "Motor Brand", _S.MOTOR),
    _text("motor_model", "Motor Model", _S.MOTOR),
    _number("motor_rpm", "Motor RPM", _S.MOTOR, "rpm", 0, 50000),
    _text("motor_magnet", "Motor Magnet", _S.MOTOR),
    _text("front_tires", "Front Tires", _S.RUNNING_GEAR),
    _text("rear_tires", "Rear Tires", _S.RUNNING_GEAR),
    _text("front_wheels", "Front Wheels", _S.RUNNING_GEAR),
    _text("rear_wheels", "Rear Wheels", _S.RUNNING_GEAR),
    _text("front_axle", "Front Axle", _S.RUNNING_GEAR),
    _text("rear_axle", "Rear Axle", _S.RUNNING_GEAR),
    _text("guide_type", "Guide Type", _S.GUIDE),
    _select("guide_spring", "Guide Spring", _S.GUIDE, "Soft", "Medium", "Hard"),
    _text("guide_flag", "Guide Flag", _S.GUIDE),
    _text("controller_profile", "Controller Profile", _S.ELECTRICAL),
    _text("magnet", "Traction Magnet", _S.ELECTRICAL),
    _text("magnet_position", "Magnet Position", _S.ELECTRICAL),
    _select("brake_setting", "Brake Setting", _S.ELECTRICAL, "Off", "Low", "Medium", "High"),
    _text("braids", "Braids", _S.ELECTRICAL),
    _text("body_type", "Body Type", _S.BODY),
    _number("body_weight", "Body Weight", _S.BODY, "g", 0, 200),
    _text("body_paint", "Paint / Livery", _S.BODY),
    _number("wheelbase", "Wheelbase", _S.GEOMETRY, "mm", 50, 200),
    _number("front_track", "Front Track", _S.GEOMETRY, "mm", 30, 100),
    _number("rear_track", "Rear Track", _S.GEOMETRY, "mm", 30, 100),
    _number("front_ground_clearance", "Front Ground Clearance", _S.GEOMETRY, "mm", 0, 10),
    _number("rear_ground_clearance", "Rear Ground Clearance", _S.GEOMETRY, "mm", 0, 10),
    _number("pod_height", "Pod Height", _S.GEOMETRY, "mm", 0, 30),
    _select("track_surface", "Track Surface", _S.TRACK_CONDITIONS, "Plastic", "Wood", "Routed"),
    _select("track_grip", "Track Grip", _S.TRACK_CONDITIONS, "Low", "Medium", "High"),
    _number("temperature", "Temperature", _S.TRACK_CONDITIONS, "°C", -10, 50),
    _text("tire_treatment", "Tire Treatment", _S.TRACK_CONDITIONS),
)

PARAMETER_INDEX: Mapping[str, ParameterDefinition] = MappingProxyType(
    {definition.key: definition for definition in SLOT_CAR_TEMPLATE}
)


def get_parameter_definition(key: str) -> ParameterDefinition:
    try:
        return PARAMETER_INDEX[key]
    except KeyError as exc:
        raise KeyError(f"Unknown setup parameter: {key}") from exc


def parameters_by_section() -> Dict[SetupSection, Tuple[ParameterDefinition, ...]]:
    """Group template parameters by section, preserving template order."""

    grouped: Dict[SetupSection, Tuple[ParameterDefinition, ...]] = {}
    for section in SetupSection:
        grouped[section] = tuple(
            definition for definition in SLOT_CAR_TEMPLATE if definition.section is section
        )
    return grouped


def validate_parameters(parameters: Mapping[str, ParameterValue]) -> Dict[str, ParameterValue]:
    """Validate a parameter mapping against the template."""

    validated: Dict[str, ParameterValue] = {}
    for key, value in parameters.items():
        if key not in PARAMETER_INDEX:
            raise ValueError(f"Unknown setup parameter: {key}")
        validated[key] = PARAMETER_INDEX[key].validate(value)
    return validated
