"""Helpers for enforcing feature and role checks on API and service layers."""
from __future__ import annotations

from typing import Optional

from ..entitlements import EntitlementEvaluator, Feature, Plan
from ..roles import Role, RoleState
from .exceptions import FeatureGateError


def require_feature(
    evaluator: EntitlementEvaluator,
    feature: Feature,
    plan: Optional[Plan] = None,
    *,
    is_beta: bool = False,
    error_code: str = "feature_unavailable",
    message: str | None = None,
) -> None:
    """Ensure ``feature`` is unlocked for ``plan`` before proceeding.

    Parameters
    ----------
    evaluator:
        The evaluator carrying the active enforcement phase.
    feature:
        The gated feature.
    plan:
        The caller's plan. ``None`` is treated as ``free``.
    is_beta:
        Whether the caller is on the beta channel.
    error_code:
        Optional override for the surfaced error code.
    message:
        Optional human-friendly message. Defaults to one naming the feature.
    """

    if evaluator.is_enabled(feature, plan, is_beta=is_beta):
        return

    effective_plan = Plan.parse(plan)
    definition = evaluator.definition(feature)
    raise FeatureGateError(
        code=error_code,
        message=message or f"Feature '{definition.feature.value}' is not available on the {effective_plan.value} plan.",
        detail={
            "feature": definition.feature.value,
            "plan": effective_plan.value,
            "required_plan": definition.minimum_plan.value,
            "beta_only": definition.beta_only,
        },
    )


def require_role(
    state: RoleState,
    role: Role,
    *,
    error_code: str = "role_required",
    message: str | None = None,
) -> None:
    """Ensure the resolved role state holds ``role``.

    A state that is still loading holds only its last-known roles, so a
    check made before resolution completes is refused.
    """

    if state.role_set.has(role):
        return

    raise FeatureGateError(
        code=error_code,
        message=message or f"Role '{role.value}' is required.",
        detail={"missing_role": role.value, "loading": state.loading},
    )
