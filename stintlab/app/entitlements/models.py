"""Domain models for plans, features and enforcement phases."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet, Tuple


class Plan(str, Enum):
    """Subscription tiers, ordered from the narrowest to the widest scope."""

    FREE = "free"
    PRO = "pro"
    TEAM = "team"

    @property
    def rank(self) -> int:
        return PLAN_ORDER.index(self)

    def includes(self, other: "Plan") -> bool:
        """Return whether this tier covers everything ``other`` covers."""

        return self.rank >= other.rank

    @classmethod
    def parse(cls, value: object) -> "Plan":
        """Coerce a stored plan value, falling back to :attr:`FREE`."""

        if isinstance(value, Plan):
            return value
        if not isinstance(value, str) or not value:
            return cls.FREE
        try:
            return cls(value.strip().lower())
        except ValueError:
            return cls.FREE


PLAN_ORDER: Tuple[Plan, ...] = (Plan.FREE, Plan.PRO, Plan.TEAM)


class Feature(str, Enum):
    """Canonical identifiers for gated analysis features."""

    SECTOR_CHART = "sector_chart"
    EXPORT_CSV = "export_csv"
    EXPORT_PNG = "export_png"
    PIT_ANALYSIS = "pit_analysis"
    DRIVER_COMPARISON = "driver_comparison"


class EnforcementPhase(str, Enum):
    """Whether plan checks are advisory or enforced."""

    OPEN = "open"
    ENFORCED = "enforced"


class CatalogError(ValueError):
    """Raised when a feature catalog entry violates tier monotonicity."""


@dataclass(frozen=True)
class FeatureDefinition:
    """Describes which plans may use a feature and whether it is beta only."""

    feature: Feature
    allowed_plans: FrozenSet[Plan]
    beta_only: bool = False

    def __post_init__(self) -> None:
        if not self.allowed_plans:
            raise CatalogError(f"Feature {self.feature.value} must allow at least one plan")
        lowest = min(self.allowed_plans, key=lambda plan: plan.rank)
        expected = frozenset(plan for plan in PLAN_ORDER if plan.includes(lowest))
        if self.allowed_plans != expected:
            raise CatalogError(
                f"Feature {self.feature.value} must allow every tier above {lowest.value}"
            )

    @property
    def minimum_plan(self) -> Plan:
        return min(self.allowed_plans, key=lambda plan: plan.rank)

    def allows(self, plan: Plan) -> bool:
        return plan in self.allowed_plans

    def ordered_plans(self) -> Tuple[Plan, ...]:
        return tuple(plan for plan in PLAN_ORDER if plan in self.allowed_plans)
