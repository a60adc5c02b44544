"""Subscription session package binding billing state to a resolved tier."""

from .exceptions import (
    BillingError,
    InvalidUser,
    ProviderUnavailable,
    PurchaseFailed,
    SessionNotReady,
    UserCancelled,
)
from .models import (
    OutcomeStatus,
    RefreshOutcome,
    ResolvedState,
    SessionState,
    SessionStatus,
    TierChange,
)
from .providers import BillingProvider, DocumentStore, IdentityProvider
from .session import SubscriptionSession

__all__ = [
    "BillingError",
    "BillingProvider",
    "DocumentStore",
    "IdentityProvider",
    "InvalidUser",
    "OutcomeStatus",
    "ProviderUnavailable",
    "PurchaseFailed",
    "RefreshOutcome",
    "ResolvedState",
    "SessionNotReady",
    "SessionState",
    "SessionStatus",
    "SubscriptionSession",
    "TierChange",
    "UserCancelled",
]
