"""Protocols for the external collaborators consumed by the session."""
from __future__ import annotations

from typing import Awaitable, Callable, Optional, Protocol, Union

from ..entitlements.models import CustomerRecord

RecordListener = Callable[[CustomerRecord], None]
CountListener = Callable[[int], None]
Unsubscribe = Callable[[], None]


class BillingProvider(Protocol):
    """Third-party billing backend holding customer entitlement state."""

    async def bind(self, user_id: str) -> CustomerRecord:
        """Associate the provider with ``user_id`` and return its record.

        Raises ``ProviderUnavailable`` or ``InvalidUser``.
        """

    async def fetch_record(self) -> CustomerRecord:
        """Return the latest record for the bound user."""

    async def purchase(self, package_ref: str) -> CustomerRecord:
        """Buy a package. Raises ``UserCancelled`` or ``PurchaseFailed``."""

    async def restore(self) -> CustomerRecord:
        """Restore previous purchases for the bound user."""

    async def unbind(self) -> None:
        """Release the binding established by :meth:`bind`."""

    def subscribe(self, listener: RecordListener) -> Unsubscribe:
        """Register for records pushed on out-of-band changes."""


class DocumentStore(Protocol):
    """Persistence layer owning the user's documents."""

    def count(self, user_id: str) -> Union[int, Awaitable[int]]:
        ...

    def subscribe(self, user_id: str, listener: CountListener) -> Unsubscribe:
        ...


class IdentityProvider(Protocol):
    """Source of the stable anonymous or authenticated user id."""

    def current_user_id(self) -> Optional[str]:
        ...
