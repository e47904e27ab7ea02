"""Static catalog mapping each feature to the plans that may use it."""
from __future__ import annotations

from types import MappingProxyType
from typing import Mapping, Tuple

from .models import PLAN_ORDER, Feature, FeatureDefinition, Plan


def _from_tier(feature: Feature, minimum: Plan, *, beta_only: bool = False) -> FeatureDefinition:
    return FeatureDefinition(
        feature=feature,
        allowed_plans=frozenset(plan for plan in PLAN_ORDER if plan.includes(minimum)),
        beta_only=beta_only,
    )


# Every feature is open to every tier until plan enforcement is switched on.
FEATURE_CATALOG: Mapping[Feature, FeatureDefinition] = MappingProxyType(
    {
        Feature.SECTOR_CHART: _from_tier(Feature.SECTOR_CHART, Plan.FREE),
        Feature.EXPORT_CSV: _from_tier(Feature.EXPORT_CSV, Plan.FREE),
        Feature.EXPORT_PNG: _from_tier(Feature.EXPORT_PNG, Plan.FREE),
        Feature.PIT_ANALYSIS: _from_tier(Feature.PIT_ANALYSIS, Plan.FREE),
        Feature.DRIVER_COMPARISON: _from_tier(Feature.DRIVER_COMPARISON, Plan.FREE),
    }
)


def get_feature_definition(feature: Feature) -> FeatureDefinition:
    """Return a feature definition, raising if unsupported."""

    try:
        return FEATURE_CATALOG[Feature(feature)]
    except (KeyError, ValueError) as exc:
        raise KeyError(f"Unknown feature: {feature}") from exc


def allowed_plans(feature: Feature) -> Tuple[Plan, ...]:
    """Return the plans allowed to use ``feature`` in tier order."""

    return get_feature_definition(feature).ordered_plans()
