"""Helpers for enforcing tier feature checks."""
from __future__ import annotations

from typing import AbstractSet

from .exceptions import FeatureGateError


def require_feature(
    features: AbstractSet[str],
    flag: str,
    *,
    error_code: str = "entitlement_required",
    message: str | None = None,
) -> None:
    """Ensure a feature is part of the current tier before proceeding.

    Parameters
    ----------
    features:
        Feature set of the resolved :class:`~tierguard.entitlements.Tier`.
    flag:
        The canonical feature name that must be present.
    error_code:
        Optional override for the surfaced error code when the feature is not
        granted. Defaults to ``"entitlement_required"``.
    message:
        Optional human-friendly message explaining the failure. If omitted, a
        default message mentioning the missing feature is used.
    """

    if flag not in features:
        raise FeatureGateError.missing_feature(flag, code=error_code, message=message)
