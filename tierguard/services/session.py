"""Application wiring for the subscription session."""
from __future__ import annotations

from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv

from ..config import EngineConfig, build_catalog, load_engine_config
from ..entitlements import EntitlementResolver
from ..subscriptions import BillingProvider, DocumentStore, IdentityProvider, SubscriptionSession
from .sandbox import InMemoryDocumentStore, LocalSandboxBillingProvider, StaticIdentityProvider


def build_subscription_session(
    billing_provider: BillingProvider,
    document_store: Optional[DocumentStore] = None,
    identity_provider: Optional[IdentityProvider] = None,
    *,
    config: Optional[EngineConfig] = None,
) -> SubscriptionSession:
    """Create a session whose catalog reflects ``config`` (or the environment)."""

    engine_config = config or load_engine_config()
    resolver = EntitlementResolver(build_catalog(engine_config))
    return SubscriptionSession(
        billing_provider,
        document_store,
        identity_provider,
        resolver=resolver,
    )


@lru_cache(maxsize=1)
def get_subscription_session() -> SubscriptionSession:
    load_dotenv()
    config = load_engine_config()
    provider = LocalSandboxBillingProvider(
        {
            "pro_monthly": config.pro_entitlement,
            "pro_annual": config.pro_entitlement,
            "premium_monthly": config.premium_entitlement,
            "premium_annual": config.premium_entitlement,
        }
    )
    return build_subscription_session(
        provider,
        InMemoryDocumentStore(),
        StaticIdentityProvider(),
        config=config,
    )
