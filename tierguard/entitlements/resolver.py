"""Resolution of customer records into a single active tier."""
from __future__ import annotations

import logging
from typing import Optional, Tuple

from .catalog import DEFAULT_CATALOG, TierCatalog
from .models import CustomerRecord, Tier

logger = logging.getLogger(__name__)


class EntitlementResolver:
    """Maps customer records onto the highest-ranked tier they grant."""

    def __init__(self, catalog: Optional[TierCatalog] = None) -> None:
        self._catalog = catalog or DEFAULT_CATALOG

    @property
    def catalog(self) -> TierCatalog:
        return self._catalog

    def resolve(self, record: CustomerRecord) -> Tier:
        """Return the active tier for ``record``.

        Inactive entitlements and ids missing from the catalog contribute
        nothing. A record granting no known tier resolves to the free tier.
        """

        granted = []
        for entitlement_id in dict.fromkeys(record.granted_ids()):
            tier = self._catalog.tier_for(entitlement_id)
            if tier is None:
                logger.warning(
                    "Ignoring unknown entitlement %s",
                    entitlement_id,
                    extra={"user_id": record.user_id, "entitlement_id": entitlement_id},
                )
                continue
            granted.append(tier)

        if not granted:
            return self._catalog.free_tier
        return max(granted, key=lambda tier: tier.rank)

    def unknown_entitlements(self, record: CustomerRecord) -> Tuple[str, ...]:
        """Return active entitlement ids that have no catalog mapping."""

        return tuple(
            entitlement_id
            for entitlement_id in dict.fromkeys(record.granted_ids())
            if self._catalog.tier_for(entitlement_id) is None
        )
