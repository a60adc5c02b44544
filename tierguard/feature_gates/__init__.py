"""Feature gating utilities coordinating tier enforcement."""
from .context import TierContext
from .enforcement import require_feature
from .exceptions import FeatureGateError
from .quota import QuotaDecision, assert_can_create, can_create

__all__ = [
    "FeatureGateError",
    "QuotaDecision",
    "TierContext",
    "assert_can_create",
    "can_create",
    "require_feature",
]
