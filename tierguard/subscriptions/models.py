"""Session state models for the subscription session."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..entitlements.models import CustomerRecord, Tier, TierId
from .exceptions import BillingError


class SessionStatus(str, Enum):
    """Lifecycle states of a subscription session."""

    UNINITIALIZED = "uninitialized"
    BINDING = "binding"
    READY = "ready"
    REFRESHING = "refreshing"
    TORN_DOWN = "torn_down"


class OutcomeStatus(str, Enum):
    """Result categories for purchase, restore, and refresh requests."""

    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"
    SUPERSEDED = "superseded"
    ABORTED = "aborted"


@dataclass(frozen=True)
class ResolvedState:
    """The tier resolved from a customer record at a point in time."""

    tier: Tier
    record: CustomerRecord
    resolved_at: datetime


@dataclass(frozen=True)
class TierChange:
    """Notification payload delivered to tier-change observers."""

    previous: Optional[Tier]
    current: Tier
    state: ResolvedState


@dataclass(frozen=True)
class RefreshOutcome:
    """Result of a request that re-enters resolution."""

    status: OutcomeStatus
    state: Optional[ResolvedState] = None
    error: Optional[BillingError] = None

    @property
    def succeeded(self) -> bool:
        return self.status == OutcomeStatus.COMPLETED


class SessionState(BaseModel):
    """Read-only view of the session returned to callers of ``get_state``.

    ``limit`` and ``remaining`` are ``None`` for unbounded tiers. For a bounded
    tier ``remaining`` is also ``None`` until the document count is known;
    ``unbounded`` tells the two cases apart.
    """

    status: Literal["unresolved", "ready"]
    tier: Optional[TierId] = None
    limit: Optional[int] = None
    remaining: Optional[int] = None
    unbounded: bool = False
    resolved_at: Optional[datetime] = Field(default=None, alias="resolvedAt")

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    @property
    def is_ready(self) -> bool:
        return self.status == "ready"

    def to_payload(self) -> Dict[str, object]:
        """Serialize with camelCase keys for client consumption."""

        return self.model_dump(mode="json", by_alias=True)
