from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, List, Optional, Protocol

from .entities import (
    FinancialProject,
    Principal,
    Profile,
    ProjectInput,
    Proposal,
    ProposalInput,
    RegistrationInput,
    RoleAccount,
)
from .result import LedgerResult

ProjectId = int
ProposalId = int


# ---- Error model ----
class UseCaseError(Exception):
    """Base class for use case level errors (user-presentable)."""

    def __init__(self, code: str, message: str):
        super().__init__(message)
        self.code = code
        self.message = message


class PreconditionFailed(UseCaseError):
    """Local advisory check failed; no remote call was made."""


class BackendRejected(UseCaseError):
    """The ledger answered with ``Err``; ``message`` is the backend text verbatim."""

    def __init__(self, message: str, code: str = "BACKEND_REJECTED"):
        super().__init__(code, message)


class TransportFailed(UseCaseError):
    """No ``Ok``/``Err`` answer was obtained; backend effect is unknown."""


# ---- Ports (Hexagonal boundaries) ----
class LedgerPort(Protocol):
    """Typed RPC surface of the ledger backend, bound to one caller identity.

    Every mutating call answers with ``Ok``/``Err``. Transport problems are
    raised as ``ledgerdesk.adapters.api_errors.ApiError`` subclasses.
    """

    @property
    def principal(self) -> Principal: ...

    async def is_user_registered(self, principal: Principal) -> bool: ...
    async def get_my_account(self) -> LedgerResult[RoleAccount]: ...
    async def get_profile(self, principal: Principal) -> LedgerResult[Profile]: ...
    async def register_user(self, data: RegistrationInput) -> LedgerResult[RoleAccount]: ...

    async def get_user_balance(self, principal: Principal) -> int: ...
    async def add_user_balance(self, principal: Principal, amount: int) -> LedgerResult[None]: ...

    async def get_projects(self) -> List[FinancialProject]: ...
    async def get_my_client_projects(self) -> List[FinancialProject]: ...
    async def get_my_creative_applications(self) -> List[FinancialProject]: ...
    async def create_project(self, data: ProjectInput) -> LedgerResult[FinancialProject]: ...
    async def apply_to_project(self, project_id: ProjectId) -> LedgerResult[None]: ...
    async def get_project_applicants(
        self, project_id: ProjectId
    ) -> LedgerResult[List[Principal]]: ...
    async def get_project_approved_applicants(
        self, project_id: ProjectId
    ) -> LedgerResult[List[Principal]]: ...
    async def is_applicant_approved(
        self, project_id: ProjectId, applicant: Principal
    ) -> LedgerResult[bool]: ...
    async def approve_applicant(
        self, project_id: ProjectId, applicant: Principal
    ) -> LedgerResult[None]: ...

    async def get_escrow_balance(self, project_id: ProjectId) -> LedgerResult[int]: ...
    async def deposit_to_escrow(self, project_id: ProjectId, amount: int) -> LedgerResult[None]: ...
    async def withdraw_escrow(self, project_id: ProjectId) -> LedgerResult[None]: ...
    async def release_funds(
        self, project_id: ProjectId, provider: Principal
    ) -> LedgerResult[None]: ...

    async def get_user_stake(self, principal: Principal) -> int: ...
    async def stake_tokens(self, amount: int) -> LedgerResult[None]: ...
    async def get_all_proposals(self) -> List[Proposal]: ...
    async def create_proposal(self, data: ProposalInput) -> LedgerResult[Proposal]: ...
    async def vote_on_proposal(self, proposal_id: ProposalId, support: bool) -> LedgerResult[None]: ...


class Identity(Protocol):
    """Opaque signing capability yielded by the identity provider."""

    def get_principal(self) -> Principal: ...
    def get_delegation(self) -> Optional[str]: ...


@dataclass(frozen=True)
class LoginOptions:
    identity_provider: str
    max_time_to_live_ns: Optional[int] = None


class IdentityProviderPort(Protocol):
    """Black-box identity provider; only success/failure callbacks matter."""

    async def is_authenticated(self) -> bool: ...
    def get_identity(self) -> Identity: ...
    def login(
        self,
        options: LoginOptions,
        on_success: Callable[[], None],
        on_error: Callable[[str], None],
    ) -> None: ...
    async def logout(self) -> None: ...
