"""Document quota evaluation utilities for feature gating."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..entitlements.models import Tier
from .exceptions import FeatureGateError


@dataclass(frozen=True)
class QuotaDecision:
    """Outcome of a document creation check.

    ``limit`` and ``remaining`` are ``None`` when the tier is unbounded.
    """

    allowed: bool
    limit: Optional[int]
    remaining: Optional[int]
    current_count: int

    def to_dict(self) -> dict[str, Optional[int] | bool]:
        """Serialize the decision for logging or telemetry."""

        return {
            "allowed": self.allowed,
            "limit": self.limit,
            "remaining": self.remaining,
            "current_count": self.current_count,
        }


def can_create(tier: Tier, current_count: int) -> QuotaDecision:
    """Decide whether one more document fits under ``tier``'s quota."""

    if current_count < 0:
        raise ValueError("current_count must be >= 0")

    if tier.max_documents is None:
        return QuotaDecision(allowed=True, limit=None, remaining=None, current_count=current_count)

    return QuotaDecision(
        allowed=current_count < tier.max_documents,
        limit=tier.max_documents,
        remaining=max(0, tier.max_documents - current_count),
        current_count=current_count,
    )


def assert_can_create(
    tier: Tier,
    current_count: int,
    *,
    error_code: str = "document_quota_exceeded",
) -> QuotaDecision:
    """Raise when creating another document would exceed the tier quota."""

    decision = can_create(tier, current_count)
    if not decision.allowed:
        raise FeatureGateError.quota_exceeded(
            tier_id=tier.id.value,
            limit=decision.limit,
            current_count=current_count,
            code=error_code,
        )
    return decision
