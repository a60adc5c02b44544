from __future__ import annotations

import pytest

from tierguard.entitlements import (
    DEFAULT_CATALOG,
    FREE_TIER,
    PREMIUM_TIER,
    PRO_TIER,
    CatalogError,
    Tier,
    TierCatalog,
    TierId,
)


def test_all_tiers_ordered_by_rank() -> None:
    tiers = DEFAULT_CATALOG.all_tiers()

    assert [tier.id for tier in tiers] == [TierId.FREE, TierId.PRO, TierId.PREMIUM]
    assert [tier.rank for tier in tiers] == sorted(tier.rank for tier in tiers)


def test_tier_for_known_and_unknown_ids() -> None:
    assert DEFAULT_CATALOG.tier_for("pro") == PRO_TIER
    assert DEFAULT_CATALOG.tier_for("premium") == PREMIUM_TIER
    assert DEFAULT_CATALOG.tier_for("gold") is None
    assert DEFAULT_CATALOG.tier_for("free") is None


def test_default_quotas_and_features() -> None:
    assert FREE_TIER.max_documents == 5
    assert PRO_TIER.max_documents == 100
    assert PREMIUM_TIER.is_unbounded
    assert PRO_TIER.has_feature("documents.export")
    assert not FREE_TIER.has_feature("documents.export")
    assert FREE_TIER.features <= PRO_TIER.features <= PREMIUM_TIER.features


def test_catalog_rejects_decreasing_quota() -> None:
    shrinking_pro = Tier(id=TierId.PRO, rank=10, max_documents=3)

    with pytest.raises(CatalogError):
        TierCatalog((FREE_TIER, shrinking_pro), {"pro": TierId.PRO})


def test_catalog_rejects_bounded_tier_above_unbounded() -> None:
    unbounded_pro = Tier(id=TierId.PRO, rank=10, max_documents=None)
    bounded_premium = Tier(id=TierId.PREMIUM, rank=20, max_documents=1000)

    with pytest.raises(CatalogError):
        TierCatalog((FREE_TIER, unbounded_pro, bounded_premium), {})


def test_catalog_rejects_duplicate_ranks() -> None:
    same_rank = Tier(id=TierId.PRO, rank=FREE_TIER.rank, max_documents=100)

    with pytest.raises(CatalogError):
        TierCatalog((FREE_TIER, same_rank), {})


def test_catalog_requires_free_tier() -> None:
    with pytest.raises(CatalogError):
        TierCatalog((PRO_TIER, PREMIUM_TIER), {"pro": TierId.PRO})


def test_catalog_rejects_mapping_to_missing_tier() -> None:
    with pytest.raises(CatalogError):
        TierCatalog((FREE_TIER, PRO_TIER), {"premium": TierId.PREMIUM})


def test_get_unknown_tier_raises_key_error() -> None:
    catalog = TierCatalog((FREE_TIER,), {})

    assert catalog.get(TierId.FREE) == FREE_TIER
    with pytest.raises(KeyError):
        catalog.get(TierId.PRO)
