from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional, TypeVar

import httpx

from ledgerdesk.domain.entities import (
    ANONYMOUS_PRINCIPAL,
    FinancialProject,
    Principal,
    Profile,
    ProjectInput,
    Proposal,
    ProposalInput,
    RegistrationInput,
    RoleAccount,
    principals_from_payload,
)
from ledgerdesk.domain.ports import Identity, LedgerPort, ProjectId, ProposalId
from ledgerdesk.domain.result import LedgerResult, result_from_payload

from .api_errors import (
    ApiClientError,
    ApiDecodeError,
    ApiServerError,
    build_error_message,
    extract_error_code,
    parse_error_payload,
)
from .http_client import AsyncRetryingSession

T = TypeVar("T")


def _unit(_value: Any) -> None:
    return None


def _as_int(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise ValueError(f"expected integer, got {value!r}")
    return int(value)


class LedgerRpcAdapter(LedgerPort):
    """JSON-over-HTTP client for the ledger gateway, bound to one identity.

    Queries go to ``/api/v2/canister/<id>/query`` and may be retried on
    timeouts; state-changing calls go to ``/call`` and are sent exactly once.
    Request bodies are ``{"method": name, "args": [...]}``; the response body
    is the method's return value.
    """

    def __init__(
        self,
        base_url: str,
        ledger_id: str,
        *,
        session: AsyncRetryingSession,
        identity: Optional[Identity] = None,
    ) -> None:
        if not base_url:
            raise ValueError("LedgerRpcAdapter requires a base URL")
        if not ledger_id:
            raise ValueError("LedgerRpcAdapter requires a ledger id")
        self.base_url = base_url.rstrip("/")
        self.ledger_id = ledger_id
        self.session = session
        self.identity = identity
        self._principal = identity.get_principal() if identity else ANONYMOUS_PRINCIPAL

    @property
    def principal(self) -> Principal:
        return self._principal

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------
    async def is_user_registered(self, principal: Principal) -> bool:
        data = await self._query("isUserRegistered", str(principal))
        if not isinstance(data, bool):
            raise ApiDecodeError("isUserRegistered: expected boolean", payload=data)
        return data

    async def get_my_account(self) -> LedgerResult[RoleAccount]:
        return await self._query_result("getMyAccount", decode=RoleAccount.from_payload)

    async def get_profile(self, principal: Principal) -> LedgerResult[Profile]:
        return await self._query_result(
            "getProfile", str(principal), decode=Profile.from_payload
        )

    async def register_user(self, data: RegistrationInput) -> LedgerResult[RoleAccount]:
        return await self._call_result(
            "registerUser", data.to_payload(), decode=RoleAccount.from_payload
        )

    async def get_user_balance(self, principal: Principal) -> int:
        return self._decode("getUserBalance", await self._query("getUserBalance", str(principal)), _as_int)

    async def add_user_balance(self, principal: Principal, amount: int) -> LedgerResult[None]:
        return await self._call_result("addUserBalance", str(principal), int(amount))

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------
    async def get_projects(self) -> List[FinancialProject]:
        return self._decode_projects("getProjects", await self._query("getProjects"))

    async def get_my_client_projects(self) -> List[FinancialProject]:
        return self._decode_projects(
            "getMyClientProjects", await self._query("getMyClientProjects")
        )

    async def get_my_creative_applications(self) -> List[FinancialProject]:
        return self._decode_projects(
            "getMyCreativeApplications", await self._query("getMyCreativeApplications")
        )

    async def create_project(self, data: ProjectInput) -> LedgerResult[FinancialProject]:
        return await self._call_result(
            "createProject", data.to_payload(), decode=FinancialProject.from_payload
        )

    async def apply_to_project(self, project_id: ProjectId) -> LedgerResult[None]:
        return await self._call_result("applyToProject", int(project_id))

    async def get_project_applicants(self, project_id: ProjectId) -> LedgerResult[List[Principal]]:
        return await self._query_result(
            "getProjectApplicants", int(project_id), decode=principals_from_payload
        )

    async def get_project_approved_applicants(
        self, project_id: ProjectId
    ) -> LedgerResult[List[Principal]]:
        return await self._query_result(
            "getProjectApprovedApplicants", int(project_id), decode=principals_from_payload
        )

    async def is_applicant_approved(
        self, project_id: ProjectId, applicant: Principal
    ) -> LedgerResult[bool]:
        return await self._query_result(
            "isApplicantApproved", int(project_id), str(applicant), decode=bool
        )

    async def approve_applicant(
        self, project_id: ProjectId, applicant: Principal
    ) -> LedgerResult[None]:
        return await self._call_result("approveApplicant", int(project_id), str(applicant))

    # ------------------------------------------------------------------
    # Escrow
    # ------------------------------------------------------------------
    async def get_escrow_balance(self, project_id: ProjectId) -> LedgerResult[int]:
        return await self._query_result("getEscrowBalance", int(project_id), decode=_as_int)

    async def deposit_to_escrow(self, project_id: ProjectId, amount: int) -> LedgerResult[None]:
        return await self._call_result("depositToEscrow", int(project_id), int(amount))

    async def withdraw_escrow(self, project_id: ProjectId) -> LedgerResult[None]:
        return await self._call_result("withdrawEscrow", int(project_id))

    async def release_funds(self, project_id: ProjectId, provider: Principal) -> LedgerResult[None]:
        return await self._call_result("releaseFunds", int(project_id), str(provider))

    # ------------------------------------------------------------------
    # Governance
    # ------------------------------------------------------------------
    async def get_user_stake(self, principal: Principal) -> int:
        return self._decode("getUserStake", await self._query("getUserStake", str(principal)), _as_int)

    async def stake_tokens(self, amount: int) -> LedgerResult[None]:
        return await self._call_result("stakeTokens", int(amount))

    async def get_all_proposals(self) -> List[Proposal]:
        data = await self._query("getAllProposals")
        if not isinstance(data, list):
            raise ApiDecodeError("getAllProposals: expected list response", payload=data)
        return self._decode(
            "getAllProposals", data, lambda items: [Proposal.from_payload(item) for item in items]
        )

    async def create_proposal(self, data: ProposalInput) -> LedgerResult[Proposal]:
        return await self._call_result(
            "createProposal", data.to_payload(), decode=Proposal.from_payload
        )

    async def vote_on_proposal(self, proposal_id: ProposalId, support: bool) -> LedgerResult[None]:
        return await self._call_result("voteOnProposal", int(proposal_id), bool(support))

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _url(self, kind: str) -> str:
        return f"{self.base_url}/api/v2/canister/{self.ledger_id}/{kind}"

    def _identity_headers(self) -> Dict[str, str]:
        headers = {"X-Principal": str(self._principal)}
        delegation = self.identity.get_delegation() if self.identity else None
        if delegation:
            headers["Authorization"] = f"Bearer {delegation}"
        return headers

    async def _send(self, kind: str, method: str, args: tuple) -> Any:
        resp = await self.session.post(
            self._url(kind),
            json_body={"method": method, "args": list(args)},
            headers=self._identity_headers(),
            retry=kind == "query",
        )
        self._ensure_ok(resp, method)
        try:
            return resp.json()
        except ValueError as exc:
            raise ApiDecodeError(f"{method}: invalid JSON response", context=method) from exc

    async def _query(self, method: str, *args: Any) -> Any:
        return await self._send("query", method, args)

    async def _query_result(
        self, method: str, *args: Any, decode: Callable[[Any], T] = _unit
    ) -> LedgerResult[T]:
        payload = await self._send("query", method, args)
        return self._decode(method, payload, lambda data: result_from_payload(data, decode))

    async def _call_result(
        self, method: str, *args: Any, decode: Callable[[Any], T] = _unit
    ) -> LedgerResult[T]:
        payload = await self._send("call", method, args)
        return self._decode(method, payload, lambda data: result_from_payload(data, decode))

    @staticmethod
    def _decode(method: str, payload: Any, decode: Callable[[Any], T]) -> T:
        try:
            return decode(payload)
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            raise ApiDecodeError(f"{method}: {exc}", payload=payload, context=method) from exc

    def _decode_projects(self, method: str, payload: Any) -> List[FinancialProject]:
        if not isinstance(payload, list):
            raise ApiDecodeError(f"{method}: expected list response", payload=payload)
        return self._decode(
            method, payload, lambda items: [FinancialProject.from_payload(item) for item in items]
        )

    @staticmethod
    def _ensure_ok(resp: httpx.Response, ctx: str) -> None:
        if 200 <= resp.status_code < 300:
            return
        payload = parse_error_payload(resp)
        message = build_error_message(ctx, resp.status_code, payload)
        if 400 <= resp.status_code < 500:
            raise ApiClientError(
                message,
                status=resp.status_code,
                code=extract_error_code(payload),
                payload=payload,
                context=ctx,
            )
        raise ApiServerError(message, status=resp.status_code, payload=payload, context=ctx)


__all__ = ["LedgerRpcAdapter"]
