"""Plan tiers, gated features and the entitlement evaluator."""

from .catalog import FEATURE_CATALOG, allowed_plans, get_feature_definition
from .models import (
    PLAN_ORDER,
    CatalogError,
    EnforcementPhase,
    Feature,
    FeatureDefinition,
    Plan,
)
from .service import DEFAULT_PHASE, EntitlementEvaluator, is_feature_enabled

__all__ = [
    "FEATURE_CATALOG",
    "allowed_plans",
    "get_feature_definition",
    "PLAN_ORDER",
    "CatalogError",
    "EnforcementPhase",
    "Feature",
    "FeatureDefinition",
    "Plan",
    "DEFAULT_PHASE",
    "EntitlementEvaluator",
    "is_feature_enabled",
]
