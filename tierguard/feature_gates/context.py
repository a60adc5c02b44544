"""Convenience wrapper around a resolved tier for feature gating."""
from __future__ import annotations

from dataclasses import dataclass
from typing import FrozenSet, Optional

from ..entitlements import Tier, TierId
from .enforcement import require_feature
from .quota import QuotaDecision, assert_can_create, can_create


@dataclass(frozen=True)
class TierContext:
    """Facade exposing gating-centric helpers for a resolved tier."""

    tier: Tier

    @property
    def tier_id(self) -> TierId:
        return self.tier.id

    @property
    def features(self) -> FrozenSet[str]:
        return self.tier.features

    @property
    def max_documents(self) -> Optional[int]:
        return self.tier.max_documents

    def has(self, flag: str) -> bool:
        """Return whether the tier includes the provided feature."""

        return self.tier.has_feature(flag)

    def require(self, flag: str, *, error_code: str = "entitlement_required") -> None:
        """Ensure a feature is included in the tier."""

        require_feature(self.tier.features, flag, error_code=error_code)

    def can_create(self, current_count: int) -> QuotaDecision:
        return can_create(self.tier, current_count)

    def assert_can_create(
        self,
        current_count: int,
        *,
        error_code: str = "document_quota_exceeded",
    ) -> QuotaDecision:
        """Raise when another document would exceed the tier quota."""

        return assert_can_create(self.tier, current_count, error_code=error_code)
