"""Gate failures raised when a tier does not permit an action."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from fastapi import HTTPException, status


@dataclass
class FeatureGateError(Exception):
    """A denied feature or quota check, carrying a machine-readable code."""

    code: str
    message: str
    status_code: int = status.HTTP_403_FORBIDDEN
    detail: Optional[Mapping[str, Any]] = None

    def __post_init__(self) -> None:
        payload: Dict[str, Any] = {"error": self.code, "message": self.message}
        if self.detail:
            payload.update(self.detail)
        object.__setattr__(self, "_payload", payload)
        super().__init__(self.message)

    @classmethod
    def missing_feature(cls, flag: str, *, code: str, message: Optional[str] = None) -> "FeatureGateError":
        return cls(
            code=code,
            message=message or f"Feature '{flag}' is not included in the current tier.",
            detail={"missing_entitlement": flag},
        )

    @classmethod
    def quota_exceeded(
        cls,
        *,
        tier_id: str,
        limit: Optional[int],
        current_count: int,
        code: str,
    ) -> "FeatureGateError":
        return cls(
            code=code,
            message="Document quota exceeded.",
            status_code=status.HTTP_402_PAYMENT_REQUIRED,
            detail={"tier": tier_id, "limit": limit, "current_count": current_count},
        )

    @property
    def payload(self) -> Mapping[str, Any]:
        """Serialized representation suitable for JSON responses."""

        return self._payload

    def to_http_exception(self) -> HTTPException:
        """Convert the gate failure into a FastAPI HTTPException for server hosts."""

        return HTTPException(status_code=self.status_code, detail=dict(self.payload))
