from __future__ import annotations

import time
from dataclasses import dataclass, replace
from typing import Callable, Dict, List, Set, Tuple

from ledgerdesk.domain.entities import (
    FinancialProject,
    Principal,
    Profile,
    ProjectInput,
    Proposal,
    ProposalInput,
    RegistrationInput,
    RoleAccount,
)
from ledgerdesk.domain.ports import LedgerPort, ProjectId, ProposalId
from ledgerdesk.domain.result import Err, LedgerResult, Ok


@dataclass
class InMemoryLedger:
    """Offline substitute for the ledger backend with deterministic rules.

    State is shared by every client handed out through :meth:`client_for`;
    each client answers as the principal it was created for. ``calls``
    records ``(principal, method)`` for every request in arrival order.
    """

    clock: Callable[[], float] = time.time

    def __post_init__(self) -> None:
        self.accounts: Dict[Principal, RoleAccount] = {}
        self.balances: Dict[Principal, int] = {}
        self.stakes: Dict[Principal, int] = {}
        self.projects: Dict[int, FinancialProject] = {}
        self.approved: Dict[int, List[Principal]] = {}
        self.escrow: Dict[int, int] = {}
        self.proposals: Dict[int, Proposal] = {}
        self.votes: Set[Tuple[int, Principal]] = set()
        self.calls: List[Tuple[Principal, str]] = []
        self._next_project_id = 1
        self._next_proposal_id = 1

    def client_for(self, principal: Principal) -> "InMemoryLedgerClient":
        return InMemoryLedgerClient(self, principal)

    def calls_named(self, method: str) -> List[Principal]:
        return [who for who, name in self.calls if name == method]

    # ---------- seeding helpers ----------

    def seed_account(self, account: RoleAccount, *, balance: int = 0) -> None:
        self.accounts[account.principal] = account
        self.balances[account.principal] = balance

    def new_project_id(self) -> int:
        project_id = self._next_project_id
        self._next_project_id += 1
        return project_id

    def new_proposal_id(self) -> int:
        proposal_id = self._next_proposal_id
        self._next_proposal_id += 1
        return proposal_id


class InMemoryLedgerClient(LedgerPort):
    """``LedgerPort`` view of an :class:`InMemoryLedger` for one principal."""

    def __init__(self, ledger: InMemoryLedger, principal: Principal) -> None:
        self.ledger = ledger
        self._principal = principal

    @property
    def principal(self) -> Principal:
        return self._principal

    def _record(self, method: str) -> None:
        self.ledger.calls.append((self._principal, method))

    def _role(self):
        account = self.ledger.accounts.get(self._principal)
        return account.role if account else None

    def _owned_project(self, project_id: ProjectId):
        project = self.ledger.projects.get(project_id)
        if project is None:
            return None, Err("Project not found")
        if project.owner != self._principal:
            return None, Err("Only the project owner can do this")
        return project, None

    # ---------- accounts ----------

    async def is_user_registered(self, principal: Principal) -> bool:
        self._record("isUserRegistered")
        return principal in self.ledger.accounts

    async def get_my_account(self) -> LedgerResult[RoleAccount]:
        self._record("getMyAccount")
        account = self.ledger.accounts.get(self._principal)
        return Ok(account) if account else Err("Account not found")

    async def get_profile(self, principal: Principal) -> LedgerResult[Profile]:
        self._record("getProfile")
        account = self.ledger.accounts.get(principal)
        if account is None or account.profile is None:
            return Err("Profile not found")
        return Ok(account.profile)

    async def register_user(self, data: RegistrationInput) -> LedgerResult[RoleAccount]:
        self._record("registerUser")
        if self._principal.is_anonymous:
            return Err("Anonymous principals cannot register")
        if self._principal in self.ledger.accounts:
            return Err("User already registered")
        account = RoleAccount(
            principal=self._principal,
            role=data.role,
            requester_info=data.requester_info,
            provider_info=data.provider_info,
            profile=data.profile,
        )
        self.ledger.accounts[self._principal] = account
        self.ledger.balances.setdefault(self._principal, 0)
        return Ok(account)

    async def get_user_balance(self, principal: Principal) -> int:
        self._record("getUserBalance")
        return self.ledger.balances.get(principal, 0)

    async def add_user_balance(self, principal: Principal, amount: int) -> LedgerResult[None]:
        self._record("addUserBalance")
        if amount <= 0:
            return Err("Amount must be positive")
        self.ledger.balances[principal] = self.ledger.balances.get(principal, 0) + amount
        return Ok(None)

    # ---------- projects ----------

    async def get_projects(self) -> List[FinancialProject]:
        self._record("getProjects")
        return list(self.ledger.projects.values())

    async def get_my_client_projects(self) -> List[FinancialProject]:
        self._record("getMyClientProjects")
        return [p for p in self.ledger.projects.values() if p.owner == self._principal]

    async def get_my_creative_applications(self) -> List[FinancialProject]:
        self._record("getMyCreativeApplications")
        return [p for p in self.ledger.projects.values() if self._principal in p.applicants]

    async def create_project(self, data: ProjectInput) -> LedgerResult[FinancialProject]:
        self._record("createProject")
        if self._role() != "Requester":
            return Err("Only clients can create projects")
        project = FinancialProject(
            id=self.ledger.new_project_id(),
            title=data.title,
            description=data.description,
            budget=data.budget,
            owner=self._principal,
        )
        self.ledger.projects[project.id] = project
        self.ledger.escrow[project.id] = 0
        return Ok(project)

    async def apply_to_project(self, project_id: ProjectId) -> LedgerResult[None]:
        self._record("applyToProject")
        project = self.ledger.projects.get(project_id)
        if project is None:
            return Err("Project not found")
        if self._role() != "Provider":
            return Err("Only creatives can apply to projects")
        if project.has_applicant(self._principal):
            return Err("AlreadyApplied")
        self.ledger.projects[project_id] = replace(
            project, applicants=project.applicants | {self._principal}
        )
        return Ok(None)

    async def get_project_applicants(self, project_id: ProjectId) -> LedgerResult[List[Principal]]:
        self._record("getProjectApplicants")
        project, err = self._owned_project(project_id)
        if err:
            return err
        return Ok(sorted(project.applicants, key=str))

    async def get_project_approved_applicants(
        self, project_id: ProjectId
    ) -> LedgerResult[List[Principal]]:
        self._record("getProjectApprovedApplicants")
        _project, err = self._owned_project(project_id)
        if err:
            return err
        return Ok(list(self.ledger.approved.get(project_id, [])))

    async def is_applicant_approved(
        self, project_id: ProjectId, applicant: Principal
    ) -> LedgerResult[bool]:
        self._record("isApplicantApproved")
        if project_id not in self.ledger.projects:
            return Err("Project not found")
        return Ok(applicant in self.ledger.approved.get(project_id, []))

    async def approve_applicant(self, project_id: ProjectId, applicant: Principal) -> LedgerResult[None]:
        self._record("approveApplicant")
        project, err = self._owned_project(project_id)
        if err:
            return err
        if not project.has_applicant(applicant):
            return Err("Applicant has not applied to this project")
        approved = self.ledger.approved.setdefault(project_id, [])
        if applicant in approved:
            return Err("Applicant already approved")
        approved.append(applicant)
        self.ledger.projects[project_id] = replace(project, selected_provider=applicant)
        return Ok(None)

    # ---------- escrow ----------

    async def get_escrow_balance(self, project_id: ProjectId) -> LedgerResult[int]:
        self._record("getEscrowBalance")
        if project_id not in self.ledger.projects:
            return Err("Project not found")
        return Ok(self.ledger.escrow.get(project_id, 0))

    async def deposit_to_escrow(self, project_id: ProjectId, amount: int) -> LedgerResult[None]:
        self._record("depositToEscrow")
        _project, err = self._owned_project(project_id)
        if err:
            return err
        if amount <= 0:
            return Err("Amount must be positive")
        balance = self.ledger.balances.get(self._principal, 0)
        if amount > balance:
            return Err("Insufficient balance")
        self.ledger.balances[self._principal] = balance - amount
        self.ledger.escrow[project_id] = self.ledger.escrow.get(project_id, 0) + amount
        return Ok(None)

    async def withdraw_escrow(self, project_id: ProjectId) -> LedgerResult[None]:
        self._record("withdrawEscrow")
        project, err = self._owned_project(project_id)
        if err:
            return err
        if project.is_completed:
            return Err("Project already completed")
        held = self.ledger.escrow.get(project_id, 0)
        if held <= 0:
            return Err("No funds in escrow")
        self.ledger.escrow[project_id] = 0
        self.ledger.balances[self._principal] = self.ledger.balances.get(self._principal, 0) + held
        return Ok(None)

    async def release_funds(self, project_id: ProjectId, provider: Principal) -> LedgerResult[None]:
        self._record("releaseFunds")
        project, err = self._owned_project(project_id)
        if err:
            return err
        if provider not in self.ledger.approved.get(project_id, []):
            return Err("Provider is not approved for this project")
        held = self.ledger.escrow.get(project_id, 0)
        if held <= 0:
            return Err("No funds in escrow")
        self.ledger.escrow[project_id] = 0
        self.ledger.balances[provider] = self.ledger.balances.get(provider, 0) + held
        self.ledger.projects[project_id] = replace(project, is_completed=True)
        return Ok(None)

    # ---------- governance ----------

    async def get_user_stake(self, principal: Principal) -> int:
        self._record("getUserStake")
        return self.ledger.stakes.get(principal, 0)

    async def stake_tokens(self, amount: int) -> LedgerResult[None]:
        self._record("stakeTokens")
        if amount <= 0:
            return Err("Amount must be positive")
        balance = self.ledger.balances.get(self._principal, 0)
        if amount > balance:
            return Err("Insufficient balance")
        self.ledger.balances[self._principal] = balance - amount
        self.ledger.stakes[self._principal] = self.ledger.stakes.get(self._principal, 0) + amount
        return Ok(None)

    async def get_all_proposals(self) -> List[Proposal]:
        self._record("getAllProposals")
        return list(self.ledger.proposals.values())

    async def create_proposal(self, data: ProposalInput) -> LedgerResult[Proposal]:
        self._record("createProposal")
        if self.ledger.stakes.get(self._principal, 0) <= 0:
            return Err("Must stake tokens to create proposals")
        proposal = Proposal(
            id=self.ledger.new_proposal_id(),
            title=data.title,
            description=data.description,
            proposer=self._principal,
            voting_deadline=int(self.ledger.clock()) + data.voting_duration_hours * 3600,
        )
        self.ledger.proposals[proposal.id] = proposal
        return Ok(proposal)

    async def vote_on_proposal(self, proposal_id: ProposalId, support: bool) -> LedgerResult[None]:
        self._record("voteOnProposal")
        proposal = self.ledger.proposals.get(proposal_id)
        if proposal is None:
            return Err("Proposal not found")
        if proposal.status(self.ledger.clock()) != "active":
            return Err("Voting period has ended")
        weight = self.ledger.stakes.get(self._principal, 0)
        if weight <= 0:
            return Err("Must stake tokens to vote")
        if (proposal_id, self._principal) in self.ledger.votes:
            return Err("Already voted")
        self.ledger.votes.add((proposal_id, self._principal))
        if support:
            proposal = replace(proposal, votes_for=proposal.votes_for + weight)
        else:
            proposal = replace(proposal, votes_against=proposal.votes_against + weight)
        self.ledger.proposals[proposal_id] = proposal
        return Ok(None)


__all__ = ["InMemoryLedger", "InMemoryLedgerClient"]
