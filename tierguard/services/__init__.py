"""Service wiring and local collaborators."""

from .sandbox import InMemoryDocumentStore, LocalSandboxBillingProvider, StaticIdentityProvider
from .session import build_subscription_session, get_subscription_session

__all__ = [
    "InMemoryDocumentStore",
    "LocalSandboxBillingProvider",
    "StaticIdentityProvider",
    "build_subscription_session",
    "get_subscription_session",
]
