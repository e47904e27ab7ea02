"""Feature gating utilities combining role and plan checks."""
from .context import AccessContext
from .enforcement import require_feature, require_role
from .exceptions import FeatureGateError

__all__ = [
    "AccessContext",
    "FeatureGateError",
    "require_feature",
    "require_role",
]
