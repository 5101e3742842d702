from __future__ import annotations

from ledgerdesk.domain.entities import FinancialProject
from ledgerdesk.domain.ledger_cache import MY_APPLICATIONS, MY_PROJECTS, LedgerCache, escrow_key
from ledgerdesk.tests.helpers import ALICE, BOB, CAROL
from ledgerdesk.viewmodels.escrow_vm import EscrowVM


def _project(project_id, budget, **kwargs) -> FinancialProject:
    return FinancialProject(project_id, f"P{project_id}", "D", budget, ALICE, **kwargs)


def _vm(*projects, escrow=None, applications=()):
    cache = LedgerCache()
    scope = cache.activate(ALICE)
    cache.write(scope, MY_PROJECTS, list(projects))
    cache.write(scope, MY_APPLICATIONS, list(applications))
    for project_id, held in (escrow or {}).items():
        cache.write(scope, escrow_key(project_id), held)
    return EscrowVM(cache), scope


def test_status_and_progress_follow_cached_escrow() -> None:
    funded = _project(1, 1000)
    pending = _project(2, 1000)
    done = _project(3, 400, is_completed=True)
    vm, _scope = _vm(funded, pending, done, escrow={1: 250})

    assert vm.project_status(funded) == "Funded"
    assert vm.project_status(pending) == "Pending"
    assert vm.project_status(done) == "Completed"
    assert vm.project_progress(funded) == 25.0
    assert vm.project_progress(pending) == 0.0
    assert vm.project_progress(done) == 100.0


def test_progress_is_capped_and_zero_budget_safe() -> None:
    over = _project(1, 100)
    free = _project(2, 0)
    vm, _scope = _vm(over, free, escrow={1: 500, 2: 10})

    assert vm.project_progress(over) == 100.0
    assert vm.project_progress(free) == 0.0


def test_stale_escrow_is_flagged() -> None:
    project = _project(1, 100)
    vm, scope = _vm(project, escrow={1: 40})
    vm.cache.mark_stale(scope, [escrow_key(1)])

    row = vm.rows()[0]

    assert row["stale"] is True
    assert row["escrow"] == 40
    assert row["progress"] == 40


def test_requester_stats() -> None:
    vm, _scope = _vm(_project(1, 1000), _project(2, 300, is_completed=True))

    assert vm.requester_stats() == {
        "total_escrowed": 1300,
        "pending_payouts": 1000,
        "completed_payouts": 300,
        "completed_projects": 1,
    }


def test_provider_stats_only_count_selected_projects() -> None:
    applications = [
        _project(1, 500, selected_provider=BOB, is_completed=True),
        _project(2, 700, selected_provider=BOB),
        _project(3, 900, selected_provider=CAROL, is_completed=True),
    ]
    vm, _scope = _vm(applications=applications)

    assert vm.provider_stats(BOB) == {
        "selected_projects": 2,
        "completed_projects": 1,
        "total_earnings": 500,
    }
    assert vm.provider_stats(None)["selected_projects"] == 0
