from __future__ import annotations

import logging

import pytest

from tierguard.entitlements import CustomerRecord, Entitlement, EntitlementResolver, TierId


def _record(*grants: tuple[str, bool]) -> CustomerRecord:
    return CustomerRecord(
        user_id="user-1",
        active_entitlements=[Entitlement(id=entitlement_id, is_active=active) for entitlement_id, active in grants],
    )


@pytest.fixture
def resolver() -> EntitlementResolver:
    return EntitlementResolver()


def test_no_entitlements_resolves_free(resolver: EntitlementResolver) -> None:
    assert resolver.resolve(_record()).id == TierId.FREE


def test_single_pro_entitlement(resolver: EntitlementResolver) -> None:
    tier = resolver.resolve(_record(("pro", True)))

    assert tier.id == TierId.PRO
    assert tier.max_documents == 100


def test_highest_rank_wins(resolver: EntitlementResolver) -> None:
    assert resolver.resolve(_record(("pro", True), ("premium", True))).id == TierId.PREMIUM
    assert resolver.resolve(_record(("premium", True), ("pro", True))).id == TierId.PREMIUM


def test_inactive_entitlements_never_change_result(resolver: EntitlementResolver) -> None:
    base = _record(("pro", True))
    with_inactive = _record(("pro", True), ("premium", False))

    assert resolver.resolve(with_inactive) == resolver.resolve(base)
    assert resolver.resolve(_record(("premium", False))).id == TierId.FREE


def test_unknown_entitlements_are_ignored_and_logged(
    resolver: EntitlementResolver, caplog: pytest.LogCaptureFixture
) -> None:
    record = _record(("legacy_gold", True), ("pro", True))

    with caplog.at_level(logging.WARNING, logger="tierguard.entitlements.resolver"):
        tier = resolver.resolve(record)

    assert tier.id == TierId.PRO
    assert resolver.unknown_entitlements(record) == ("legacy_gold",)
    assert "legacy_gold" in caplog.text


def test_resolve_is_idempotent(resolver: EntitlementResolver) -> None:
    record = _record(("pro", True), ("pro", True), ("premium", False))

    assert resolver.resolve(record) == resolver.resolve(record)


def test_record_requires_user_id() -> None:
    with pytest.raises(ValueError):
        CustomerRecord(user_id="   ")


def test_repeated_unknown_entitlement_logged_once(
    resolver: EntitlementResolver, caplog: pytest.LogCaptureFixture
) -> None:
    record = _record(("legacy_gold", True), ("legacy_gold", True))

    with caplog.at_level(logging.WARNING, logger="tierguard.entitlements.resolver"):
        tier = resolver.resolve(record)

    assert tier.id == TierId.FREE
    assert resolver.unknown_entitlements(record) == ("legacy_gold",)
    assert [r.getMessage() for r in caplog.records] == ["Ignoring unknown entitlement legacy_gold"]
