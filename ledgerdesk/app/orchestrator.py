"""Guarded ledger operations for the presentation layer.

``TransactionOrchestrator`` owns one set of use cases per identity. ``bind``
rebuilds the set for a new client and the current cache scope, so a call that
started under a previous identity keeps talking to its own client and its
refreshes land nowhere. Every operation resolves to an
:class:`~ledgerdesk.app.outcome.OperationOutcome`; use-case errors never
escape.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import replace
from typing import Any, Awaitable, Callable, Iterable, List, Optional

from ..domain.entities import Principal, ProjectInput, ProposalInput, Role
from ..domain.ledger_cache import BALANCE, PROPOSALS, STAKE, LedgerCache
from ..domain.ports import LedgerPort, ProjectId, ProposalId, UseCaseError
from ..usecases.add_test_balance import AddTestBalance
from ..usecases.apply_to_project import ApplyToProject
from ..usecases.approve_applicant import ApproveApplicant
from ..usecases.create_project import CreateProject
from ..usecases.create_proposal import CreateProposal
from ..usecases.deposit_to_escrow import DepositToEscrow
from ..usecases.refresh_caches import RefreshCaches
from ..usecases.release_funds import ReleaseFunds
from ..usecases.stake_tokens import StakeTokens
from ..usecases.vote_on_proposal import VoteOnProposal
from ..usecases.withdraw_escrow import WithdrawEscrow
from .outcome import STALE_SESSION, OperationOutcome

RoleSource = Callable[[], Optional[Role]]

UNAVAILABLE = OperationOutcome(
    "rejected_locally", "LEDGER_UNAVAILABLE", "Ledger client is not available."
)


class TransactionOrchestrator:
    """Run use cases against the bound client and report outcomes.

    Args:
        cache: Principal-scoped cache shared with the view models.
        role_source: Returns the currently resolved role (``None`` while
            unresolved).
        clock: Time source for proposal status checks.
    """

    def __init__(
        self,
        cache: LedgerCache,
        *,
        role_source: RoleSource,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._log = logging.getLogger(__name__)
        self.cache = cache
        self._role_source = role_source
        self._clock = clock
        self.last_error: Optional[str] = None
        self._client: Optional[LedgerPort] = None
        self.refresh: Optional[RefreshCaches] = None
        self.uc_create_project: Optional[CreateProject] = None
        self.uc_apply: Optional[ApplyToProject] = None
        self.uc_approve: Optional[ApproveApplicant] = None
        self.uc_deposit: Optional[DepositToEscrow] = None
        self.uc_withdraw: Optional[WithdrawEscrow] = None
        self.uc_release: Optional[ReleaseFunds] = None
        self.uc_stake: Optional[StakeTokens] = None
        self.uc_create_proposal: Optional[CreateProposal] = None
        self.uc_vote: Optional[VoteOnProposal] = None
        self.uc_add_balance: Optional[AddTestBalance] = None

    @property
    def client(self) -> Optional[LedgerPort]:
        return self._client

    def reset(self) -> None:
        """Drop the client, every use case and the last error."""
        self._client = None
        self.refresh = None
        self.uc_create_project = None
        self.uc_apply = None
        self.uc_approve = None
        self.uc_deposit = None
        self.uc_withdraw = None
        self.uc_release = None
        self.uc_stake = None
        self.uc_create_proposal = None
        self.uc_vote = None
        self.uc_add_balance = None
        self.last_error = None

    def bind(self, client: Optional[LedgerPort]) -> None:
        """Rebuild the use cases for ``client`` and the cache's current scope."""
        self.reset()
        if client is None:
            return
        self._client = client
        refresh = RefreshCaches(client, self.cache, self.cache.scope())
        self.refresh = refresh
        self.uc_create_project = CreateProject(client, refresh)
        self.uc_apply = ApplyToProject(client, refresh)
        self.uc_approve = ApproveApplicant(client, refresh)
        self.uc_deposit = DepositToEscrow(client, refresh)
        self.uc_withdraw = WithdrawEscrow(client, refresh)
        self.uc_release = ReleaseFunds(client, refresh)
        self.uc_stake = StakeTokens(client, refresh)
        self.uc_create_proposal = CreateProposal(client, refresh)
        self.uc_vote = VoteOnProposal(client, refresh, clock=self._clock)
        self.uc_add_balance = AddTestBalance(client, refresh)

    # ------------------------------------------------------------------
    # Guarded operations
    # ------------------------------------------------------------------
    async def create_project(self, data: ProjectInput) -> OperationOutcome:
        uc = self.uc_create_project
        return await self._mutate(uc, lambda: uc(role=self._role_source(), data=data))

    async def apply_to_project(self, project_id: ProjectId) -> OperationOutcome:
        uc = self.uc_apply
        return await self._mutate(uc, lambda: uc(role=self._role_source(), project_id=project_id))

    async def approve_applicant(
        self, project_id: ProjectId, applicant: Principal
    ) -> OperationOutcome:
        uc = self.uc_approve
        return await self._mutate(
            uc,
            lambda: uc(role=self._role_source(), project_id=project_id, applicant=applicant),
        )

    async def deposit_to_escrow(self, project_id: ProjectId, amount: int) -> OperationOutcome:
        uc = self.uc_deposit
        return await self._mutate(
            uc, lambda: uc(role=self._role_source(), project_id=project_id, amount=amount)
        )

    async def withdraw_escrow(self, project_id: ProjectId) -> OperationOutcome:
        uc = self.uc_withdraw
        return await self._mutate(uc, lambda: uc(role=self._role_source(), project_id=project_id))

    async def release_funds(
        self, project_id: ProjectId, provider: Optional[Principal] = None
    ) -> OperationOutcome:
        uc = self.uc_release
        return await self._mutate(
            uc,
            lambda: uc(role=self._role_source(), project_id=project_id, provider=provider),
        )

    async def stake_tokens(self, amount: int) -> OperationOutcome:
        uc = self.uc_stake
        return await self._mutate(uc, lambda: uc(amount=amount))

    async def create_proposal(self, data: ProposalInput) -> OperationOutcome:
        uc = self.uc_create_proposal
        return await self._mutate(uc, lambda: uc(role=self._role_source(), data=data))

    async def vote_on_proposal(self, proposal_id: ProposalId, support: bool) -> OperationOutcome:
        uc = self.uc_vote
        return await self._mutate(uc, lambda: uc(proposal_id=proposal_id, support=support))

    async def add_test_balance(self, amount: int) -> OperationOutcome:
        uc = self.uc_add_balance
        return await self._mutate(uc, lambda: uc(amount=amount))

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    async def refresh_balance(self) -> OperationOutcome:
        return await self._read(lambda refresh: refresh.balance())

    async def refresh_stake(self) -> OperationOutcome:
        return await self._read(lambda refresh: refresh.stake())

    async def refresh_escrow_balance(self, project_id: ProjectId) -> OperationOutcome:
        return await self._read(lambda refresh: refresh.escrow(project_id))

    async def refresh_escrow_balances(self, project_ids: Iterable[ProjectId]) -> OperationOutcome:
        """Fetch several escrow balances concurrently; value maps id to balance."""
        ids = list(dict.fromkeys(project_ids))

        async def _all(refresh: RefreshCaches) -> dict:
            balances = await asyncio.gather(*(refresh.escrow(pid) for pid in ids))
            return dict(zip(ids, balances))

        return await self._read(_all)

    async def load_projects(self) -> OperationOutcome:
        return await self._read(lambda refresh: refresh.projects())

    async def load_my_projects(self) -> OperationOutcome:
        return await self._read(lambda refresh: refresh.my_projects())

    async def load_my_applications(self) -> OperationOutcome:
        return await self._read(lambda refresh: refresh.my_applications())

    async def load_applicants(self, project_id: ProjectId) -> OperationOutcome:
        return await self._read(lambda refresh: refresh.applicants(project_id))

    async def load_approved_applicants(self, project_id: ProjectId) -> OperationOutcome:
        return await self._read(lambda refresh: refresh.approved_applicants(project_id))

    async def load_proposals(self) -> OperationOutcome:
        return await self._read(lambda refresh: refresh.proposals())

    async def check_applicant_approved(self, project_id: ProjectId) -> OperationOutcome:
        """Whether the caller is approved for ``project_id`` (provider view)."""
        return await self._read(lambda refresh: refresh.approval(project_id))

    async def refresh_account_state(self) -> List[str]:
        """Reload balance, stake and proposals; returns failure messages."""
        refresh = self.refresh
        if refresh is None:
            return ["Ledger client is not available."]
        return await refresh.settle(BALANCE, STAKE, PROPOSALS)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    async def _mutate(self, uc: Any, call: Callable[[], Awaitable[Any]]) -> OperationOutcome:
        if uc is None or self._client is None:
            return self._finish(UNAVAILABLE)
        if self._client.principal.is_anonymous:
            return self._finish(
                OperationOutcome("rejected_locally", "NOT_AUTHENTICATED", "Sign in to continue.")
            )
        return await self._invoke(uc.refresh, call)

    async def _read(self, call: Callable[[RefreshCaches], Awaitable[Any]]) -> OperationOutcome:
        refresh = self.refresh
        if refresh is None:
            return self._finish(UNAVAILABLE)
        return await self._invoke(refresh, lambda: call(refresh))

    async def _invoke(
        self, refresh: RefreshCaches, call: Callable[[], Awaitable[Any]]
    ) -> OperationOutcome:
        try:
            value = await call()
        except UseCaseError as exc:
            outcome = OperationOutcome.from_error(exc)
        else:
            outcome = OperationOutcome.success(value)
        if not refresh.is_current:
            self._log.info("Outcome %s arrived for a replaced identity", outcome.status)
            return replace(STALE_SESSION, value=outcome.value)
        return self._finish(outcome)

    def _finish(self, outcome: OperationOutcome) -> OperationOutcome:
        if outcome.ok:
            self.last_error = None
        else:
            self.last_error = outcome.message
            level = logging.INFO if outcome.status == "rejected_locally" else logging.WARNING
            self._log.log(level, "%s [%s]: %s", outcome.status, outcome.code, outcome.message)
        return outcome


__all__ = ["TransactionOrchestrator"]
