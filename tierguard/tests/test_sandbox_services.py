"""End-to-end checks of the session against the in-memory collaborators."""
from __future__ import annotations

import pytest

from tierguard.config import load_engine_config
from tierguard.entitlements import TierId
from tierguard.services import (
    InMemoryDocumentStore,
    LocalSandboxBillingProvider,
    StaticIdentityProvider,
    build_subscription_session,
    get_subscription_session,
)
from tierguard.subscriptions import InvalidUser, OutcomeStatus, ProviderUnavailable, SessionStatus


@pytest.fixture
def provider() -> LocalSandboxBillingProvider:
    return LocalSandboxBillingProvider()


@pytest.fixture
def store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def session(provider, store):
    return build_subscription_session(
        provider,
        store,
        StaticIdentityProvider("anon-42"),
        config=load_engine_config({}),
    )


@pytest.mark.asyncio
async def test_sandbox_purchase_flow(session, provider, store) -> None:
    for index in range(5):
        store.add("anon-42", f"doc-{index}")

    await session.bind_current_user()
    assert session.check_create_allowed().allowed is False

    outcome = await session.request_purchase("pro_monthly")

    assert outcome.status == OutcomeStatus.COMPLETED
    assert session.current_tier.id == TierId.PRO
    assert session.check_create_allowed().remaining == 95


@pytest.mark.asyncio
async def test_sandbox_unknown_package_fails(session) -> None:
    await session.bind_current_user()

    outcome = await session.request_purchase("platinum_lifetime")

    assert outcome.status == OutcomeStatus.FAILED
    assert session.current_tier.id == TierId.FREE


@pytest.mark.asyncio
async def test_sandbox_cancelled_purchase(session, provider) -> None:
    await session.bind_current_user()
    provider.cancel_next_purchase()

    outcome = await session.request_purchase("premium_monthly")

    assert outcome.status == OutcomeStatus.CANCELLED
    assert session.current_tier.id == TierId.FREE


@pytest.mark.asyncio
async def test_sandbox_grants_push_tier_changes(session, provider) -> None:
    await session.bind_current_user()

    provider.grant("anon-42", "premium")
    assert session.current_tier.id == TierId.PREMIUM

    provider.revoke("anon-42", "premium")
    assert session.current_tier.id == TierId.FREE

    provider.grant("someone-else", "pro")
    assert session.current_tier.id == TierId.FREE


@pytest.mark.asyncio
async def test_sandbox_restore_after_rebind(session, provider) -> None:
    provider.grant("anon-42", "pro")
    await session.bind_current_user()
    await session.teardown()
    assert provider.bound_user_id is None
    assert provider.listener_count == 0

    await session.bind("anon-42")
    outcome = await session.request_restore()

    assert outcome.status == OutcomeStatus.COMPLETED
    assert session.current_tier.id == TierId.PRO


@pytest.mark.asyncio
async def test_sandbox_transient_failure_keeps_last_tier(session, provider) -> None:
    provider.grant("anon-42", "pro")
    await session.bind_current_user()
    provider.fail_next(ProviderUnavailable("timeout"))

    outcome = await session.request_refresh()

    assert outcome.status == OutcomeStatus.FAILED
    assert isinstance(outcome.error, ProviderUnavailable)
    assert session.status == SessionStatus.READY
    assert session.get_state().tier == TierId.PRO


def test_document_store_publishes_counts(store) -> None:
    seen = []
    unsubscribe = store.subscribe("user-a", seen.append)

    store.add("user-a", "one")
    store.add("user-b", "two")
    store.add("user-a", "one")
    store.remove("user-a", "one")
    unsubscribe()
    store.add("user-a", "three")

    assert seen == [1, 1, 0]
    assert store.count("user-a") == 1


@pytest.mark.asyncio
async def test_signed_out_identity_cannot_bind(provider, store) -> None:
    identity = StaticIdentityProvider("anon-42")
    session = build_subscription_session(provider, store, identity, config=load_engine_config({}))
    identity.sign_out()

    with pytest.raises(InvalidUser):
        await session.bind_current_user()

    identity.sign_in("member-7")
    await session.bind_current_user()
    assert session.user_id == "member-7"


def test_application_session_is_shared(monkeypatch) -> None:
    monkeypatch.setenv("TIERGUARD_PRO_MAX_DOCUMENTS", "250")
    get_subscription_session.cache_clear()

    session = get_subscription_session()

    assert session is get_subscription_session()
    assert session.status == SessionStatus.UNINITIALIZED
    get_subscription_session.cache_clear()
