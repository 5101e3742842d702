from __future__ import annotations

from ledgerdesk.domain.entities import FinancialProject, Principal
from ledgerdesk.domain.ledger_cache import BALANCE, MY_PROJECTS, PROJECTS, LedgerCache, escrow_key

ALICE = Principal("aaaaa-alice")
BOB = Principal("bbbbb-bob")


def test_write_with_current_scope_is_stored() -> None:
    cache = LedgerCache()
    scope = cache.activate(ALICE)

    assert cache.write(scope, BALANCE, 40) is True
    assert cache.balance() == 40


def test_write_from_previous_identity_is_dropped() -> None:
    cache = LedgerCache()
    old = cache.activate(ALICE)
    cache.write(old, BALANCE, 40)

    cache.activate(BOB)

    assert cache.balance() is None
    assert cache.write(old, BALANCE, 99) is False
    assert cache.balance() is None


def test_same_principal_after_reset_gets_new_scope() -> None:
    cache = LedgerCache()
    first = cache.activate(ALICE)
    cache.reset()
    second = cache.activate(ALICE)

    assert first != second
    assert not cache.is_current(first)
    assert cache.write(first, escrow_key(1), 10) is False


def test_stale_marker_cleared_by_next_write() -> None:
    cache = LedgerCache()
    scope = cache.activate(ALICE)
    cache.mark_stale(scope, [escrow_key(3)])
    assert cache.is_stale(escrow_key(3))

    cache.write(scope, escrow_key(3), 0)

    assert not cache.is_stale(escrow_key(3))


def test_project_lookup_searches_all_lists() -> None:
    cache = LedgerCache()
    scope = cache.activate(ALICE)
    mine = FinancialProject(1, "a", "b", 10, ALICE)
    other = FinancialProject(2, "c", "d", 10, BOB)
    cache.write(scope, MY_PROJECTS, [mine])
    cache.write(scope, PROJECTS, [mine, other])

    assert cache.project(2) == other
    assert cache.project(1) == mine
    assert cache.project(3) is None
