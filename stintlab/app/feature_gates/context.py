"""Convenience wrapper combining role state and plan for feature gating."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, FrozenSet, Optional

from ..entitlements import EntitlementEvaluator, Feature, Plan
from ..roles import Role, RoleState
from .enforcement import require_feature, require_role

if TYPE_CHECKING:  # pragma: no cover
    from ..config import StintLabConfig


@dataclass(frozen=True)
class AccessContext:
    """Facade answering both administrative and plan questions for a caller.

    Roles and plan are independent axes; nothing here lets one stand in for
    the other.
    """

    role_state: RoleState = field(default_factory=RoleState)
    plan: Plan = Plan.FREE
    is_beta: bool = False
    evaluator: EntitlementEvaluator = field(default_factory=EntitlementEvaluator)

    @classmethod
    def from_config(
        cls,
        config: "StintLabConfig",
        role_state: RoleState,
        plan: Optional[Plan] = None,
    ) -> "AccessContext":
        return cls(
            role_state=role_state,
            plan=Plan.parse(plan),
            is_beta=config.beta_channel,
            evaluator=EntitlementEvaluator.from_config(config),
        )

    @property
    def roles(self) -> FrozenSet[Role]:
        return self.role_state.roles

    @property
    def is_platform_admin(self) -> bool:
        return self.role_state.is_platform_admin

    @property
    def is_club_admin(self) -> bool:
        return self.role_state.is_club_admin

    @property
    def is_user(self) -> bool:
        return self.role_state.is_user

    @property
    def loading(self) -> bool:
        return self.role_state.loading

    def has_feature(self, feature: Feature) -> bool:
        return self.evaluator.is_enabled(feature, self.plan, is_beta=self.is_beta)

    def enabled_features(self) -> FrozenSet[Feature]:
        return self.evaluator.enabled_features(self.plan, is_beta=self.is_beta)

    def require_feature(self, feature: Feature, *, error_code: str = "feature_unavailable") -> None:
        require_feature(
            self.evaluator,
            feature,
            self.plan,
            is_beta=self.is_beta,
            error_code=error_code,
        )

    def require_role(self, role: Role, *, error_code: str = "role_required") -> None:
        require_role(self.role_state, role, error_code=error_code)
