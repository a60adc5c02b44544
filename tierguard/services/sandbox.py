"""In-memory collaborators for local development and tests."""
from __future__ import annotations

import asyncio
import itertools
import logging
from typing import Dict, Mapping, Optional, Set

from ..entitlements import CustomerRecord, Entitlement
from ..subscriptions import (
    BillingError,
    BillingProvider,
    DocumentStore,
    IdentityProvider,
    InvalidUser,
    PurchaseFailed,
    UserCancelled,
)
from ..subscriptions.providers import CountListener, RecordListener, Unsubscribe

logger = logging.getLogger("tierguard.sandbox")

DEFAULT_PACKAGES: Dict[str, str] = {
    "pro_monthly": "pro",
    "pro_annual": "pro",
    "premium_monthly": "premium",
    "premium_annual": "premium",
}


class LocalSandboxBillingProvider(BillingProvider):
    """Minimal billing provider keeping grants in memory."""

    def __init__(
        self,
        package_entitlements: Optional[Mapping[str, str]] = None,
        *,
        latency_seconds: float = 0.0,
    ) -> None:
        self._packages = dict(DEFAULT_PACKAGES if package_entitlements is None else package_entitlements)
        self._latency = max(latency_seconds, 0.0)
        self._grants: Dict[str, Dict[str, bool]] = {}
        self._user_id: Optional[str] = None
        self._listener_ids = itertools.count()
        self._listeners: Dict[int, RecordListener] = {}
        self._cancel_next = False
        self._next_error: Optional[BillingError] = None

    @property
    def bound_user_id(self) -> Optional[str]:
        return self._user_id

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    async def bind(self, user_id: str) -> CustomerRecord:
        await self._simulate()
        if not user_id:
            raise InvalidUser("user id must be provided")
        self._user_id = user_id
        logger.debug("Sandbox provider bound to %s", user_id)
        return self._record(user_id)

    async def fetch_record(self) -> CustomerRecord:
        await self._simulate()
        return self._record(self._require_user())

    async def purchase(self, package_ref: str) -> CustomerRecord:
        await self._simulate()
        user_id = self._require_user()
        if self._cancel_next:
            self._cancel_next = False
            raise UserCancelled("purchase dismissed")
        entitlement_id = self._packages.get(package_ref)
        if entitlement_id is None:
            raise PurchaseFailed(f"unknown package {package_ref!r}")
        self._grants.setdefault(user_id, {})[entitlement_id] = True
        logger.info("Sandbox purchase of %s for %s", package_ref, user_id)
        return self._record(user_id)

    async def restore(self) -> CustomerRecord:
        await self._simulate()
        return self._record(self._require_user())

    async def unbind(self) -> None:
        logger.debug("Sandbox provider unbound from %s", self._user_id)
        self._user_id = None

    def subscribe(self, listener: RecordListener) -> Unsubscribe:
        token = next(self._listener_ids)
        self._listeners[token] = listener

        def unsubscribe() -> None:
            self._listeners.pop(token, None)

        return unsubscribe

    def grant(self, user_id: str, entitlement_id: str, *, active: bool = True) -> None:
        """Set an entitlement out of band, pushing the change to subscribers."""

        self._grants.setdefault(user_id, {})[entitlement_id] = active
        if user_id == self._user_id:
            self._push(user_id)

    def revoke(self, user_id: str, entitlement_id: str) -> None:
        self.grant(user_id, entitlement_id, active=False)

    def cancel_next_purchase(self) -> None:
        self._cancel_next = True

    def fail_next(self, error: BillingError) -> None:
        self._next_error = error

    async def _simulate(self) -> None:
        if self._latency:
            await asyncio.sleep(self._latency)
        if self._next_error is not None:
            error, self._next_error = self._next_error, None
            raise error

    def _require_user(self) -> str:
        if self._user_id is None:
            raise InvalidUser("provider is not bound to a user")
        return self._user_id

    def _record(self, user_id: str) -> CustomerRecord:
        grants = self._grants.get(user_id, {})
        return CustomerRecord(
            user_id=user_id,
            active_entitlements=[
                Entitlement(id=entitlement_id, is_active=active)
                for entitlement_id, active in sorted(grants.items())
            ],
        )

    def _push(self, user_id: str) -> None:
        record = self._record(user_id)
        for listener in list(self._listeners.values()):
            listener(record)


class InMemoryDocumentStore(DocumentStore):
    """Document id sets per user with count change notifications."""

    def __init__(self) -> None:
        self._documents: Dict[str, Set[str]] = {}
        self._listener_ids = itertools.count()
        self._listeners: Dict[int, tuple[str, CountListener]] = {}

    def count(self, user_id: str) -> int:
        return len(self._documents.get(user_id, ()))

    def add(self, user_id: str, document_id: str) -> int:
        self._documents.setdefault(user_id, set()).add(document_id)
        return self._publish(user_id)

    def remove(self, user_id: str, document_id: str) -> int:
        self._documents.get(user_id, set()).discard(document_id)
        return self._publish(user_id)

    def subscribe(self, user_id: str, listener: CountListener) -> Unsubscribe:
        token = next(self._listener_ids)
        self._listeners[token] = (user_id, listener)

        def unsubscribe() -> None:
            self._listeners.pop(token, None)

        return unsubscribe

    def _publish(self, user_id: str) -> int:
        count = self.count(user_id)
        for owner, listener in list(self._listeners.values()):
            if owner == user_id:
                listener(count)
        return count


class StaticIdentityProvider(IdentityProvider):
    """Identity provider returning a fixed, swappable user id."""

    def __init__(self, user_id: Optional[str] = None) -> None:
        self._user_id = user_id

    def current_user_id(self) -> Optional[str]:
        return self._user_id

    def sign_in(self, user_id: str) -> None:
        self._user_id = user_id

    def sign_out(self) -> None:
        self._user_id = None
