from __future__ import annotations

import asyncio
from dataclasses import replace

import pytest

from ledgerdesk.domain.entities import (
    ProjectInput,
    Proposal,
    ProposalInput,
    RegistrationInput,
    RequesterInfo,
)
from ledgerdesk.domain.ledger_cache import (
    BALANCE,
    MY_APPLICATIONS,
    MY_PROJECTS,
    PROJECTS,
    PROPOSALS,
    STAKE,
    LedgerCache,
)
from ledgerdesk.domain.ports import BackendRejected, PreconditionFailed
from ledgerdesk.tests.helpers import ALICE, BOB, CAROL, NOW, fixed_clock, make_ledger
from ledgerdesk.usecases.add_test_balance import AddTestBalance
from ledgerdesk.usecases.apply_to_project import ApplyToProject
from ledgerdesk.usecases.approve_applicant import ApproveApplicant
from ledgerdesk.usecases.create_project import CreateProject
from ledgerdesk.usecases.create_proposal import CreateProposal
from ledgerdesk.usecases.deposit_to_escrow import DepositToEscrow
from ledgerdesk.usecases.refresh_caches import RefreshCaches
from ledgerdesk.usecases.register_user import RegisterUser
from ledgerdesk.usecases.release_funds import ReleaseFunds
from ledgerdesk.usecases.stake_tokens import StakeTokens
from ledgerdesk.usecases.vote_on_proposal import VoteOnProposal
from ledgerdesk.usecases.withdraw_escrow import WithdrawEscrow


def _bound(ledger, principal):
    cache = LedgerCache()
    client = ledger.client_for(principal)
    return client, RefreshCaches(client, cache, cache.activate(principal))


def _project(ledger, budget=1000):
    return asyncio.run(ledger.client_for(ALICE).create_project(ProjectInput("T", "D", budget))).value


def _code(exc_info) -> str:
    return exc_info.value.code


def test_create_project_requires_requester_role_without_remote_call() -> None:
    ledger = make_ledger()
    client, refresh = _bound(ledger, BOB)

    with pytest.raises(PreconditionFailed) as exc_info:
        asyncio.run(CreateProject(client, refresh)(role="Provider", data=ProjectInput("T", "D", 5)))

    assert _code(exc_info) == "ROLE_REQUIRED"
    assert ledger.calls == []


def test_create_project_refreshes_project_lists() -> None:
    ledger = make_ledger()
    client, refresh = _bound(ledger, ALICE)

    project = asyncio.run(
        CreateProject(client, refresh)(role="Requester", data=ProjectInput("T", "D", 5))
    )

    assert [p.id for p in refresh.cache.my_projects()] == [project.id]
    assert [p.id for p in refresh.cache.projects()] == [project.id]


def test_create_project_validates_input() -> None:
    ledger = make_ledger()
    client, refresh = _bound(ledger, ALICE)

    with pytest.raises(PreconditionFailed) as exc_info:
        asyncio.run(CreateProject(client, refresh)(role="Requester", data=ProjectInput("", "D", 0)))

    assert _code(exc_info) == "INVALID_PROJECT"
    assert "Project budget must be greater than 0" in exc_info.value.message


def test_apply_twice_is_rejected_locally() -> None:
    ledger = make_ledger()
    project = _project(ledger)
    client, refresh = _bound(ledger, BOB)
    uc = ApplyToProject(client, refresh)

    asyncio.run(uc(role="Provider", project_id=project.id))
    assert refresh.cache.project(project.id).has_applicant(BOB)
    applies_before = ledger.calls_named("applyToProject")

    with pytest.raises(PreconditionFailed) as exc_info:
        asyncio.run(uc(role="Provider", project_id=project.id))

    assert _code(exc_info) == "ALREADY_APPLIED"
    assert ledger.calls_named("applyToProject") == applies_before


def test_apply_backend_rejection_is_verbatim_and_cache_unchanged() -> None:
    ledger = make_ledger()
    project = _project(ledger)
    asyncio.run(ledger.client_for(BOB).apply_to_project(project.id))
    client, refresh = _bound(ledger, BOB)
    # the cached listing predates the first application
    refresh.cache.write(refresh.scope, PROJECTS, [project])
    cached = refresh.cache.get(PROJECTS)

    with pytest.raises(BackendRejected) as exc_info:
        asyncio.run(ApplyToProject(client, refresh)(role="Provider", project_id=project.id))

    assert exc_info.value.message == "AlreadyApplied"
    assert refresh.cache.get(PROJECTS) is cached
    assert not refresh.cache.has(MY_APPLICATIONS)


def test_approve_requires_ownership_of_cached_project() -> None:
    ledger = make_ledger()
    project = _project(ledger)
    client, refresh = _bound(ledger, CAROL)
    refresh.cache.write(refresh.scope, PROJECTS, [project])

    with pytest.raises(PreconditionFailed) as exc_info:
        asyncio.run(
            ApproveApplicant(client, refresh)(role="Requester", project_id=project.id, applicant=BOB)
        )
    assert _code(exc_info) == "NOT_PROJECT_OWNER"


def test_deposit_checks_amount_and_cached_balance() -> None:
    ledger = make_ledger(alice=100)
    project = _project(ledger)
    client, refresh = _bound(ledger, ALICE)
    uc = DepositToEscrow(client, refresh)

    with pytest.raises(PreconditionFailed) as zero:
        asyncio.run(uc(role="Requester", project_id=project.id, amount=0))
    asyncio.run(refresh.balance())
    with pytest.raises(PreconditionFailed) as too_much:
        asyncio.run(uc(role="Requester", project_id=project.id, amount=101))

    assert _code(zero) == "INVALID_AMOUNT"
    assert _code(too_much) == "INSUFFICIENT_BALANCE"
    assert ledger.calls_named("depositToEscrow") == []


def test_deposit_refreshes_escrow_and_balance() -> None:
    ledger = make_ledger(alice=100)
    project = _project(ledger)
    client, refresh = _bound(ledger, ALICE)

    asyncio.run(DepositToEscrow(client, refresh)(role="Requester", project_id=project.id, amount=40))

    assert refresh.cache.escrow_balance(project.id) == 40
    assert refresh.cache.balance() == 60


def test_withdraw_rejects_completed_project() -> None:
    ledger = make_ledger()
    project = replace(_project(ledger), is_completed=True)
    client, refresh = _bound(ledger, ALICE)
    refresh.cache.write(refresh.scope, MY_PROJECTS, [project])

    with pytest.raises(PreconditionFailed) as exc_info:
        asyncio.run(WithdrawEscrow(client, refresh)(role="Requester", project_id=project.id))
    assert _code(exc_info) == "PROJECT_COMPLETED"


def test_release_needs_funds_and_provider() -> None:
    ledger = make_ledger(alice=500)
    project = _project(ledger)
    client, refresh = _bound(ledger, ALICE)
    uc = ReleaseFunds(client, refresh)

    asyncio.run(refresh.escrow(project.id))
    with pytest.raises(PreconditionFailed) as empty:
        asyncio.run(uc(role="Requester", project_id=project.id))
    asyncio.run(DepositToEscrow(client, refresh)(role="Requester", project_id=project.id, amount=200))
    with pytest.raises(PreconditionFailed) as nobody:
        asyncio.run(uc(role="Requester", project_id=project.id))

    assert _code(empty) == "NO_ESCROW_FUNDS"
    assert _code(nobody) == "NO_PROVIDER_SELECTED"


def test_release_uses_selected_provider_and_refreshes_completion() -> None:
    ledger = make_ledger(alice=500)
    project = _project(ledger)
    bob = ledger.client_for(BOB)
    asyncio.run(bob.apply_to_project(project.id))
    client, refresh = _bound(ledger, ALICE)
    asyncio.run(ApproveApplicant(client, refresh)(role="Requester", project_id=project.id, applicant=BOB))
    asyncio.run(DepositToEscrow(client, refresh)(role="Requester", project_id=project.id, amount=200))

    paid = asyncio.run(ReleaseFunds(client, refresh)(role="Requester", project_id=project.id))

    assert paid == BOB
    assert refresh.cache.escrow_balance(project.id) == 0
    assert refresh.cache.project(project.id).is_completed
    assert ledger.balances[BOB] == 200


def test_stake_refreshes_stake_and_balance() -> None:
    ledger = make_ledger(alice=50_000)
    client, refresh = _bound(ledger, ALICE)

    asyncio.run(StakeTokens(client, refresh)(amount=500))

    assert refresh.cache.stake() == 500
    assert refresh.cache.balance() == 49_500


def test_create_proposal_checks_role_minimum_stake() -> None:
    ledger = make_ledger(alice=1000)
    client, refresh = _bound(ledger, ALICE)
    uc = CreateProposal(client, refresh)
    data = ProposalInput("Fees", "Lower fees", 24)

    asyncio.run(refresh.stake())
    with pytest.raises(PreconditionFailed) as none:
        asyncio.run(uc(role="Requester", data=data))
    asyncio.run(StakeTokens(client, refresh)(amount=100))
    with pytest.raises(PreconditionFailed) as low:
        asyncio.run(uc(role="Requester", data=data))
    asyncio.run(StakeTokens(client, refresh)(amount=400))
    proposal = asyncio.run(uc(role="Requester", data=data))

    assert _code(none) == "NO_STAKE"
    assert _code(low) == "STAKE_TOO_LOW"
    assert "500" in low.value.message
    assert [p.id for p in refresh.cache.proposals()] == [proposal.id]


def test_create_proposal_with_unresolved_role_only_needs_some_stake() -> None:
    ledger = make_ledger()
    ledger.stakes[ALICE] = 10
    client, refresh = _bound(ledger, ALICE)
    refresh.cache.write(refresh.scope, STAKE, 10)

    proposal = asyncio.run(
        CreateProposal(client, refresh)(role=None, data=ProposalInput("Fees", "Lower fees", 24))
    )

    assert proposal.proposer == ALICE
    assert ledger.calls_named("createProposal") == [ALICE]


def test_vote_rejects_ended_proposal_locally() -> None:
    ledger = make_ledger()
    client, refresh = _bound(ledger, ALICE)
    ended = Proposal(9, "t", "d", BOB, voting_deadline=int(NOW) - 1)
    refresh.cache.write(refresh.scope, PROPOSALS, [ended])
    refresh.cache.write(refresh.scope, STAKE, 10)

    with pytest.raises(PreconditionFailed) as exc_info:
        asyncio.run(VoteOnProposal(client, refresh, clock=fixed_clock)(proposal_id=9, support=True))

    assert _code(exc_info) == "VOTING_CLOSED"
    assert ledger.calls_named("voteOnProposal") == []


def test_vote_without_stake_is_rejected_locally() -> None:
    ledger = make_ledger()
    client, refresh = _bound(ledger, ALICE)
    refresh.cache.write(refresh.scope, STAKE, 0)

    with pytest.raises(PreconditionFailed) as exc_info:
        asyncio.run(VoteOnProposal(client, refresh)(proposal_id=1, support=False))
    assert _code(exc_info) == "NO_STAKE"


def test_add_test_balance_refreshes_balance() -> None:
    ledger = make_ledger(alice=5)
    client, refresh = _bound(ledger, ALICE)

    asyncio.run(AddTestBalance(client, refresh)(amount=10_000))

    assert refresh.cache.balance() == 10_005
    assert refresh.cache.get(BALANCE) == 10_005


def test_register_user_validates_then_returns_account() -> None:
    ledger = make_ledger()
    client = ledger.client_for(CAROL)
    uc = RegisterUser(client)

    with pytest.raises(PreconditionFailed):
        asyncio.run(uc(RegistrationInput("Requester")))
    account = asyncio.run(
        uc(RegistrationInput("Requester", requester_info=RequesterInfo("Co", "Ads", "https://co")))
    )

    assert account.principal == CAROL
    assert account.role == "Requester"
    with pytest.raises(BackendRejected) as again:
        asyncio.run(
            uc(RegistrationInput("Requester", requester_info=RequesterInfo("Co", "Ads", "https://co")))
        )
    assert again.value.message == "User already registered"
