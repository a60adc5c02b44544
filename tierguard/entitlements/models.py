"""Domain models for tiers, entitlements, and customer records."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TierId(str, Enum):
    """Canonical identifiers for subscription tiers."""

    FREE = "free"
    PRO = "pro"
    PREMIUM = "premium"


@dataclass(frozen=True)
class Tier:
    """A ranked bundle of document quota and feature access.

    ``max_documents`` of ``None`` means the tier is unbounded.
    """

    id: TierId
    rank: int
    max_documents: Optional[int]
    features: FrozenSet[str] = frozenset()
    display_name: str = ""

    @property
    def is_unbounded(self) -> bool:
        return self.max_documents is None

    def has_feature(self, flag: str) -> bool:
        return flag in self.features

    def to_dict(self) -> Dict[str, object]:
        """Serialize the tier for logging or API payloads."""

        return {
            "id": self.id.value,
            "rank": self.rank,
            "max_documents": self.max_documents,
            "features": sorted(self.features),
        }


class Entitlement(BaseModel):
    """A single grant issued by the billing backend."""

    id: str = Field(min_length=1)
    is_active: bool = True

    model_config = ConfigDict(populate_by_name=True, frozen=True)


class CustomerRecord(BaseModel):
    """Snapshot of a customer's entitlement state as read from the provider."""

    user_id: str
    active_entitlements: Sequence[Entitlement] = Field(default_factory=tuple)

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    @field_validator("user_id")
    @classmethod
    def _validate_user_id(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("user_id must be a non-empty string")
        return value

    @field_validator("active_entitlements")
    @classmethod
    def _freeze_entitlements(cls, value: Sequence[Entitlement]) -> Tuple[Entitlement, ...]:
        return tuple(value)

    def granted_ids(self) -> Tuple[str, ...]:
        """Return ids of the entitlements currently active."""

        return tuple(entitlement.id for entitlement in self.active_entitlements if entitlement.is_active)
