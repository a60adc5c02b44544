"""Client-side entitlement resolution and document quota enforcement."""

from .entitlements import CustomerRecord, Entitlement, EntitlementResolver, Tier, TierCatalog, TierId
from .feature_gates import FeatureGateError, QuotaDecision, can_create
from .subscriptions import SessionState, SubscriptionSession

__all__ = [
    "CustomerRecord",
    "Entitlement",
    "EntitlementResolver",
    "FeatureGateError",
    "QuotaDecision",
    "SessionState",
    "SubscriptionSession",
    "Tier",
    "TierCatalog",
    "TierId",
    "can_create",
]
