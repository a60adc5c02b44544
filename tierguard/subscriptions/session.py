"""Subscription session coordinating billing state, tier resolution, and observers."""
from __future__ import annotations

import asyncio
import inspect
import itertools
import logging
from datetime import datetime, timezone
from typing import Awaitable, Callable, Dict, Optional, Set, TypeVar

from ..entitlements import CustomerRecord, EntitlementResolver, Tier
from ..feature_gates import QuotaDecision, TierContext
from .exceptions import BillingError, InvalidUser, SessionNotReady, UserCancelled
from .models import (
    OutcomeStatus,
    RefreshOutcome,
    ResolvedState,
    SessionState,
    SessionStatus,
    TierChange,
)
from .providers import BillingProvider, DocumentStore, IdentityProvider, Unsubscribe

logger = logging.getLogger(__name__)

T = TypeVar("T")
TierObserver = Callable[[TierChange], None]

_ACTIVE_STATUSES = frozenset({SessionStatus.READY, SessionStatus.REFRESHING})


class SubscriptionSession:
    """Owns the resolved tier for one bound user.

    All state transitions run on the event loop that drives the session.
    Every resolution request is stamped with a sequence number. A completed
    record is dropped when a later request is still in flight or has already
    applied its record.
    """

    def __init__(
        self,
        billing_provider: BillingProvider,
        document_store: Optional[DocumentStore] = None,
        identity_provider: Optional[IdentityProvider] = None,
        *,
        resolver: Optional[EntitlementResolver] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._provider = billing_provider
        self._documents = document_store
        self._identity = identity_provider
        self._resolver = resolver or EntitlementResolver()
        self._clock = clock or (lambda: datetime.now(timezone.utc))

        self._status = SessionStatus.UNINITIALIZED
        self._state: Optional[ResolvedState] = None
        self._user_id: Optional[str] = None
        self._document_count: Optional[int] = None

        self._sequence = itertools.count(1)
        self._latest_applied = 0
        self._pending: Set[int] = set()
        self._generation = 0
        self._inflight: Set[asyncio.Future] = set()

        self._observer_ids = itertools.count()
        self._observers: Dict[int, TierObserver] = {}
        self._push_unsubscribe: Optional[Unsubscribe] = None
        self._documents_unsubscribe: Optional[Unsubscribe] = None

    # -- read side -----------------------------------------------------------

    @property
    def status(self) -> SessionStatus:
        return self._status

    @property
    def user_id(self) -> Optional[str]:
        return self._user_id

    @property
    def resolved_state(self) -> Optional[ResolvedState]:
        return self._state

    @property
    def current_tier(self) -> Optional[Tier]:
        return self._state.tier if self._state else None

    @property
    def document_count(self) -> Optional[int]:
        return self._document_count

    def get_state(self) -> SessionState:
        """Return the current tier and quota headroom, or ``unresolved``."""

        state = self._state
        if state is None:
            return SessionState(status="unresolved")

        tier = state.tier
        remaining: Optional[int] = None
        if tier.max_documents is not None and self._document_count is not None:
            remaining = max(0, tier.max_documents - self._document_count)
        return SessionState(
            status="ready",
            tier=tier.id,
            limit=tier.max_documents,
            remaining=remaining,
            unbounded=tier.is_unbounded,
            resolved_at=state.resolved_at,
        )

    def context(self) -> TierContext:
        return TierContext(self._require_tier())

    def check_create_allowed(self, current_count: Optional[int] = None) -> QuotaDecision:
        """Evaluate the quota against ``current_count`` or the last observed count."""

        return self.context().can_create(self._count_for_check(current_count))

    def assert_create_allowed(self, current_count: Optional[int] = None) -> QuotaDecision:
        return self.context().assert_can_create(self._count_for_check(current_count))

    def require_feature(self, flag: str) -> None:
        self.context().require(flag)

    def subscribe_to_tier_changes(self, observer: TierObserver) -> Unsubscribe:
        """Register ``observer`` for tier transitions; returns an unsubscribe handle."""

        token = next(self._observer_ids)
        self._observers[token] = observer

        def unsubscribe() -> None:
            self._observers.pop(token, None)

        return unsubscribe

    # -- lifecycle -----------------------------------------------------------

    async def bind(self, user_id: str) -> Optional[ResolvedState]:
        """Bind the billing provider to ``user_id`` and resolve the first tier.

        Provider failures propagate and leave the session in ``BINDING``.
        Returns ``None`` when the session is torn down before a record arrives.
        """

        if not user_id or not user_id.strip():
            raise InvalidUser("user id must be a non-empty string")

        if self._status not in (SessionStatus.UNINITIALIZED, SessionStatus.TORN_DOWN):
            await self.teardown()

        self._user_id = user_id
        self._status = SessionStatus.BINDING
        generation = self._generation
        seq = self._issue()
        logger.info("Binding subscription session", extra={"user_id": user_id})

        try:
            await self._watch_documents(user_id)
            record = await self._call(self._provider.bind(user_id))
        except asyncio.CancelledError:
            if generation != self._generation:
                logger.debug("Binding aborted by teardown", extra={"user_id": user_id})
                return None
            raise
        except BillingError as exc:
            logger.warning(
                "Failed to bind billing provider: %s",
                exc.code,
                extra={"user_id": user_id, "error": exc.code},
            )
            raise
        finally:
            self._pending.discard(seq)

        if generation != self._generation:
            return None
        self._accept(record, seq)
        return self._state

    async def bind_current_user(self) -> Optional[ResolvedState]:
        """Bind to the user id reported by the identity provider."""

        if self._identity is None:
            raise InvalidUser("no identity provider configured")
        user_id = self._identity.current_user_id()
        if not user_id:
            raise InvalidUser("identity provider has no current user")
        return await self.bind(user_id)

    async def teardown(self) -> None:
        """Drop the binding and cached tier; safe to call at any point."""

        if self._status == SessionStatus.TORN_DOWN:
            return

        was_bound = self._status != SessionStatus.UNINITIALIZED
        user_id = self._user_id
        self._generation += 1
        for task in list(self._inflight):
            task.cancel()
        self._inflight.clear()
        self._pending.clear()

        if self._push_unsubscribe is not None:
            self._push_unsubscribe()
            self._push_unsubscribe = None
        if self._documents_unsubscribe is not None:
            self._documents_unsubscribe()
            self._documents_unsubscribe = None

        self._state = None
        self._user_id = None
        self._document_count = None
        self._status = SessionStatus.TORN_DOWN
        logger.info("Subscription session torn down", extra={"user_id": user_id})

        if was_bound:
            try:
                await self._provider.unbind()
            except BillingError as exc:
                logger.warning(
                    "Billing provider failed during unbind: %s",
                    exc.code,
                    extra={"user_id": user_id, "error": exc.code},
                )

    # -- requests ------------------------------------------------------------

    async def request_purchase(self, package_ref: str) -> RefreshOutcome:
        if not package_ref:
            raise ValueError("package_ref must be provided")
        self._require_active("purchase")
        return await self._refresh(lambda: self._provider.purchase(package_ref), "purchase")

    async def request_restore(self) -> RefreshOutcome:
        self._require_active("restore")
        return await self._refresh(self._provider.restore, "restore")

    async def request_refresh(self) -> RefreshOutcome:
        """Re-fetch the customer record; also retries a failed first resolution."""

        if self._status not in _ACTIVE_STATUSES and self._status != SessionStatus.BINDING:
            raise SessionNotReady(f"cannot refresh while {self._status.value}")
        return await self._refresh(self._provider.fetch_record, "refresh")

    # -- internals -----------------------------------------------------------

    def _issue(self) -> int:
        seq = next(self._sequence)
        self._pending.add(seq)
        if self._status == SessionStatus.READY:
            self._status = SessionStatus.REFRESHING
        return seq

    def _settle(self) -> None:
        if self._status in _ACTIVE_STATUSES:
            self._status = SessionStatus.REFRESHING if self._pending else SessionStatus.READY

    async def _call(self, awaitable: Awaitable[T]) -> T:
        task = asyncio.ensure_future(awaitable)
        self._inflight.add(task)
        try:
            return await task
        finally:
            self._inflight.discard(task)

    async def _refresh(
        self,
        operation: Callable[[], Awaitable[CustomerRecord]],
        kind: str,
    ) -> RefreshOutcome:
        generation = self._generation
        seq = self._issue()
        extra = {"user_id": self._user_id, "request": kind, "sequence": seq}

        try:
            record = await self._call(operation())
        except asyncio.CancelledError:
            if generation != self._generation:
                logger.debug("Request aborted by teardown", extra=extra)
                return RefreshOutcome(status=OutcomeStatus.ABORTED)
            raise
        except UserCancelled as exc:
            logger.info("Purchase cancelled by user", extra=extra)
            return RefreshOutcome(status=OutcomeStatus.CANCELLED, state=self._state, error=exc)
        except BillingError as exc:
            logger.warning("Billing %s failed: %s", kind, exc.code, extra=extra)
            return RefreshOutcome(status=OutcomeStatus.FAILED, state=self._state, error=exc)
        finally:
            self._pending.discard(seq)
            self._settle()

        if generation != self._generation:
            return RefreshOutcome(status=OutcomeStatus.ABORTED)
        if not self._accept(record, seq):
            return RefreshOutcome(status=OutcomeStatus.SUPERSEDED, state=self._state)
        return RefreshOutcome(status=OutcomeStatus.COMPLETED, state=self._state)

    def _on_push(self, record: CustomerRecord) -> None:
        if self._status not in _ACTIVE_STATUSES:
            return
        logger.debug("Received pushed customer record", extra={"user_id": record.user_id})
        seq = self._issue()
        self._pending.discard(seq)
        self._accept(record, seq)

    def _accept(self, record: CustomerRecord, seq: int) -> bool:
        """Resolve and store ``record`` unless a later request has overtaken it.

        A later request overtakes ``seq`` once it has applied its own record or
        while it is still in flight. Later requests that failed do not count.
        """

        if seq < self._latest_applied or any(pending > seq for pending in self._pending):
            logger.debug(
                "Discarding superseded customer record",
                extra={"user_id": record.user_id, "sequence": seq, "latest": self._latest_applied},
            )
            return False

        tier = self._resolver.resolve(record)
        previous = self._state.tier if self._state else None
        state = ResolvedState(tier=tier, record=record, resolved_at=self._clock())
        self._state = state
        self._latest_applied = seq

        if self._status == SessionStatus.BINDING:
            self._status = SessionStatus.READY
            self._watch_provider()
        self._settle()

        if previous is None or previous.id != tier.id:
            logger.info(
                "Tier changed from %s to %s",
                previous.id.value if previous else None,
                tier.id.value,
                extra={"user_id": record.user_id},
            )
            self._notify(TierChange(previous=previous, current=tier, state=state))
        return True

    def _notify(self, change: TierChange) -> None:
        for observer in list(self._observers.values()):
            try:
                observer(change)
            except Exception:
                logger.exception(
                    "Tier change observer failed",
                    extra={"tier": change.current.id.value},
                )

    def _watch_provider(self) -> None:
        if self._push_unsubscribe is None:
            self._push_unsubscribe = self._provider.subscribe(self._on_push)

    async def _watch_documents(self, user_id: str) -> None:
        if self._documents is None:
            return

        def on_count(count: int) -> None:
            self._document_count = count

        self._documents_unsubscribe = self._documents.subscribe(user_id, on_count)
        count = self._documents.count(user_id)
        if inspect.isawaitable(count):
            count = await self._call(count)
        if self._document_count is None:
            self._document_count = count

    def _require_active(self, action: str) -> None:
        if self._status not in _ACTIVE_STATUSES:
            raise SessionNotReady(f"cannot {action} while {self._status.value}")

    def _require_tier(self) -> Tier:
        if self._state is None:
            raise SessionNotReady("tier has not been resolved")
        return self._state.tier

    def _count_for_check(self, current_count: Optional[int]) -> int:
        count = self._document_count if current_count is None else current_count
        if count is None:
            raise ValueError("document count is unknown; pass current_count explicitly")
        return count
