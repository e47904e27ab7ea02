"""Pure evaluation of feature access for a plan tier."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, FrozenSet, Mapping, Optional

from .catalog import FEATURE_CATALOG
from .models import EnforcementPhase, Feature, FeatureDefinition, Plan

if TYPE_CHECKING:  # pragma: no cover
    from ..config import StintLabConfig


DEFAULT_PHASE = EnforcementPhase.OPEN


@dataclass(frozen=True)
class EntitlementEvaluator:
    """Answers "is feature X unlocked for plan Y" against the static catalog.

    The catalog is consulted in every phase; the phase only decides whether a
    plan outside ``allowed_plans`` is refused. Beta-only features always
    require the beta channel.
    """

    phase: EnforcementPhase = DEFAULT_PHASE
    catalog: Mapping[Feature, FeatureDefinition] = field(default_factory=lambda: FEATURE_CATALOG)

    @classmethod
    def from_config(cls, config: "StintLabConfig") -> "EntitlementEvaluator":
        return cls(phase=config.enforcement_phase)

    def definition(self, feature: Feature) -> FeatureDefinition:
        try:
            return self.catalog[Feature(feature)]
        except (KeyError, ValueError) as exc:
            raise KeyError(f"Unknown feature: {feature}") from exc

    def is_enabled(
        self,
        feature: Feature,
        plan: Optional[Plan] = None,
        *,
        is_beta: bool = False,
    ) -> bool:
        definition = self.definition(feature)
        effective_plan = Plan.parse(plan)

        if definition.beta_only and not is_beta:
            return False
        if self.phase is EnforcementPhase.OPEN:
            return True
        return definition.allows(effective_plan)

    def enabled_features(self, plan: Optional[Plan] = None, *, is_beta: bool = False) -> FrozenSet[Feature]:
        """Return every feature unlocked for ``plan``."""

        return frozenset(
            feature
            for feature in self.catalog
            if self.is_enabled(feature, plan, is_beta=is_beta)
        )


_DEFAULT_EVALUATOR = EntitlementEvaluator()


def is_feature_enabled(
    feature: Feature,
    plan: Optional[Plan] = Plan.FREE,
    *,
    is_beta: bool = False,
    phase: Optional[EnforcementPhase] = None,
) -> bool:
    """Module level shortcut around :class:`EntitlementEvaluator`."""

    evaluator = _DEFAULT_EVALUATOR if phase is None else EntitlementEvaluator(phase=phase)
    return evaluator.is_enabled(feature, plan, is_beta=is_beta)
