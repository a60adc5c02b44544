"""Static catalog definitions for tiers and the entitlements that grant them."""
from __future__ import annotations

from typing import Dict, Iterable, Mapping, Optional, Tuple

from .models import Tier, TierId


class CatalogError(ValueError):
    """Raised when a tier catalog violates its structural invariants."""


FREE_FEATURES = frozenset({"documents.create"})
PRO_FEATURES = FREE_FEATURES | {"documents.export", "sync.enabled"}
PREMIUM_FEATURES = PRO_FEATURES | {"documents.unlimited", "support.priority"}

FREE_TIER = Tier(
    id=TierId.FREE,
    rank=0,
    max_documents=5,
    features=FREE_FEATURES,
    display_name="Free",
)

PRO_TIER = Tier(
    id=TierId.PRO,
    rank=10,
    max_documents=100,
    features=PRO_FEATURES,
    display_name="Pro",
)

PREMIUM_TIER = Tier(
    id=TierId.PREMIUM,
    rank=20,
    max_documents=None,
    features=PREMIUM_FEATURES,
    display_name="Premium",
)

DEFAULT_ENTITLEMENT_MAP: Dict[str, TierId] = {
    "pro": TierId.PRO,
    "premium": TierId.PREMIUM,
}


def _quota_key(tier: Tier) -> float:
    return float("inf") if tier.max_documents is None else float(tier.max_documents)


class TierCatalog:
    """Lookup table mapping entitlement ids to ranked tiers."""

    def __init__(self, tiers: Iterable[Tier], entitlement_map: Mapping[str, TierId]) -> None:
        ordered = tuple(sorted(tiers, key=lambda tier: tier.rank))
        self._tiers: Tuple[Tier, ...] = ordered
        self._by_id: Dict[TierId, Tier] = {tier.id: tier for tier in ordered}
        self._entitlement_map: Dict[str, TierId] = dict(entitlement_map)
        self._validate()

    def _validate(self) -> None:
        if len(self._by_id) != len(self._tiers):
            raise CatalogError("tier ids must be unique")
        ranks = [tier.rank for tier in self._tiers]
        if len(set(ranks)) != len(ranks):
            raise CatalogError("tier ranks must be unique")
        if TierId.FREE not in self._by_id:
            raise CatalogError("catalog must define a free tier")
        if self._by_id[TierId.FREE] is not self._tiers[0]:
            raise CatalogError("free tier must have the lowest rank")

        for tier in self._tiers:
            if tier.max_documents is not None and tier.max_documents < 0:
                raise CatalogError(f"max_documents for {tier.id.value} must be >= 0")

        for lower, higher in zip(self._tiers, self._tiers[1:]):
            if _quota_key(higher) < _quota_key(lower):
                raise CatalogError(
                    f"max_documents must not decrease with rank: "
                    f"{lower.id.value}={lower.max_documents} > {higher.id.value}={higher.max_documents}"
                )

        for entitlement_id, tier_id in self._entitlement_map.items():
            if not entitlement_id:
                raise CatalogError("entitlement ids must be non-empty")
            if tier_id not in self._by_id:
                raise CatalogError(f"entitlement {entitlement_id!r} maps to unknown tier {tier_id}")

    @property
    def free_tier(self) -> Tier:
        return self._by_id[TierId.FREE]

    def tier_for(self, entitlement_id: str) -> Optional[Tier]:
        """Return the tier granted by an entitlement id, or ``None`` if unmapped."""

        tier_id = self._entitlement_map.get(entitlement_id)
        if tier_id is None:
            return None
        return self._by_id[tier_id]

    def all_tiers(self) -> Tuple[Tier, ...]:
        """Return every tier ordered by ascending rank."""

        return self._tiers

    def get(self, tier_id: TierId) -> Tier:
        try:
            return self._by_id[tier_id]
        except KeyError as exc:
            raise KeyError(f"Unknown tier id: {tier_id}") from exc

    def entitlement_ids(self) -> Tuple[str, ...]:
        return tuple(self._entitlement_map)


DEFAULT_CATALOG = TierCatalog((FREE_TIER, PRO_TIER, PREMIUM_TIER), DEFAULT_ENTITLEMENT_MAP)
