from __future__ import annotations

import pytest

from stintlab.app.garage import (
    PARAMETER_INDEX,
    SLOT_CAR_TEMPLATE,
    ParameterType,
    SetupSection,
    get_parameter_definition,
    parameters_by_section,
)


def test_template_keys_are_unique() -> None:
    assert len(PARAMETER_INDEX) == len(SLOT_CAR_TEMPLATE)


def test_every_section_has_parameters() -> None:
    grouped = parameters_by_section()

    assert set(grouped) == set(SetupSection)
    assert all(grouped[section] for section in SetupSection)


def test_number_bounds_and_types() -> None:
    pinion = get_parameter_definition("pinion")

    assert pinion.type is ParameterType.NUMBER
    assert pinion.validate(12) == 12
    with pytest.raises(ValueError):
        pinion.validate(4)
    with pytest.raises(ValueError):
        pinion.validate("12")
    with pytest.raises(ValueError):
        pinion.validate(True)


def test_select_options() -> None:
    brake = get_parameter_definition("brake_setting")

    assert brake.validate("High") == "High"
    with pytest.raises(ValueError):
        brake.validate("Max")


def test_unknown_parameter_lookup_raises() -> None:
    with pytest.raises(KeyError):
        get_parameter_definition("flux_capacitor")
