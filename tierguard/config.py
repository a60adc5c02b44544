"""Engine configuration helpers."""
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Mapping, Optional
import os

from .entitlements.catalog import (
    FREE_TIER,
    PREMIUM_TIER,
    PRO_TIER,
    CatalogError,
    TierCatalog,
)
from .entitlements.models import TierId

_UNBOUNDED_VALUES = {"", "unlimited", "unbounded", "none"}


@dataclass(frozen=True)
class EngineConfig:
    """Quota limits and entitlement ids used to build the tier catalog."""

    free_max_documents: int
    pro_max_documents: Optional[int]
    premium_max_documents: Optional[int]
    pro_entitlement: str
    premium_entitlement: str


def _to_int(value: Optional[str], *, default: int) -> int:
    if value is None or value == "":
        return default
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Expected integer value, got {value!r}") from exc


def _to_limit(value: Optional[str], *, default: Optional[int]) -> Optional[int]:
    if value is None:
        return default
    if value.strip().lower() in _UNBOUNDED_VALUES:
        return None
    return _to_int(value.strip(), default=0)


def load_engine_config(env: Optional[Mapping[str, str]] = None) -> EngineConfig:
    """Load :class:`EngineConfig` from environment variables."""

    env_mapping = os.environ if env is None else env

    free_max = _to_int(env_mapping.get("TIERGUARD_FREE_MAX_DOCUMENTS"), default=FREE_TIER.max_documents or 0)
    pro_max = _to_limit(env_mapping.get("TIERGUARD_PRO_MAX_DOCUMENTS"), default=PRO_TIER.max_documents)
    premium_max = _to_limit(
        env_mapping.get("TIERGUARD_PREMIUM_MAX_DOCUMENTS"),
        default=PREMIUM_TIER.max_documents,
    )

    for name, limit in (("free", free_max), ("pro", pro_max), ("premium", premium_max)):
        if limit is not None and limit < 0:
            raise CatalogError(f"{name} document limit must be >= 0, got {limit}")

    pro_entitlement = (env_mapping.get("TIERGUARD_PRO_ENTITLEMENT") or "pro").strip() or "pro"
    premium_entitlement = (env_mapping.get("TIERGUARD_PREMIUM_ENTITLEMENT") or "premium").strip() or "premium"

    return EngineConfig(
        free_max_documents=free_max,
        pro_max_documents=pro_max,
        premium_max_documents=premium_max,
        pro_entitlement=pro_entitlement,
        premium_entitlement=premium_entitlement,
    )


def build_catalog(config: EngineConfig) -> TierCatalog:
    """Build a validated catalog applying the configured limits."""

    tiers = (
        replace(FREE_TIER, max_documents=config.free_max_documents),
        replace(PRO_TIER, max_documents=config.pro_max_documents),
        replace(PREMIUM_TIER, max_documents=config.premium_max_documents),
    )
    return TierCatalog(
        tiers,
        {
            config.pro_entitlement: TierId.PRO,
            config.premium_entitlement: TierId.PREMIUM,
        },
    )
