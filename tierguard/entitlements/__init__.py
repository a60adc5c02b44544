"""Entitlements domain models, tier catalog, and resolution."""

from .catalog import (
    DEFAULT_CATALOG,
    DEFAULT_ENTITLEMENT_MAP,
    FREE_TIER,
    PREMIUM_TIER,
    PRO_TIER,
    CatalogError,
    TierCatalog,
)
from .models import CustomerRecord, Entitlement, Tier, TierId
from .resolver import EntitlementResolver

__all__ = [
    "DEFAULT_CATALOG",
    "DEFAULT_ENTITLEMENT_MAP",
    "FREE_TIER",
    "PREMIUM_TIER",
    "PRO_TIER",
    "CatalogError",
    "CustomerRecord",
    "Entitlement",
    "EntitlementResolver",
    "Tier",
    "TierCatalog",
    "TierId",
]
