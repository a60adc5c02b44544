"""Errors raised by billing collaborators and the subscription session."""
from __future__ import annotations


class BillingError(Exception):
    """Base class for failures reported by the billing provider."""

    code = "billing_error"

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.code)
        self.message = message or self.code


class ProviderUnavailable(BillingError):
    """The billing backend could not be reached. Safe to retry."""

    code = "provider_unavailable"


class InvalidUser(BillingError):
    """The user id is missing or malformed; binding cannot proceed."""

    code = "invalid_user"


class UserCancelled(BillingError):
    """The user dismissed the purchase flow."""

    code = "user_cancelled"


class PurchaseFailed(BillingError):
    """The store rejected or could not complete the purchase."""

    code = "purchase_failed"


class SessionNotReady(RuntimeError):
    """Raised when a tier is requested before the session has resolved one."""
