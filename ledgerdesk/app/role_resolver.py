"""Resolve the caller's registration and role for capability gating."""

from __future__ import annotations

import logging
from typing import Literal, Optional

from ..domain.entities import Principal, RegistrationInput, Role, RoleAccount
from ..domain.ports import LedgerPort, UseCaseError
from ..domain.result import Err, Ok
from ..domain.roles import (
    NO_CAPABILITIES,
    Capabilities,
    capabilities_for,
    minimum_stake,
    role_display_name,
    verification_label,
    voting_power,
)
from ..usecases.error_mapping import map_api_error
from ..usecases.register_user import RegisterUser
from .outcome import OperationOutcome

ResolutionStatus = Literal[
    "unresolved", "resolving", "not_registered", "registered", "unreadable", "failed"
]

REGISTRATION_CHECK_FAILED = "Failed to check user registration"


class RoleResolver:
    """Cache the :class:`RoleAccount` of one principal.

    ``clear`` must be called on every principal change; it also invalidates
    any resolution still awaiting the ledger, so an answer for a previous
    principal is never stored.

    Status values:
        ``unresolved``: no principal or not resolved yet.
        ``not_registered``: the ledger has no account for the principal.
        ``registered``: account fetched and cached.
        ``unreadable``: registered, but fetching the account was rejected.
        ``failed``: the registration check or fetch did not get an answer.
    """

    def __init__(self) -> None:
        self._log = logging.getLogger(__name__)
        self._token = 0
        self._principal: Optional[Principal] = None
        self._client: Optional[LedgerPort] = None
        self._status: ResolutionStatus = "unresolved"
        self._account: Optional[RoleAccount] = None
        self.last_error: Optional[str] = None

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------
    @property
    def status(self) -> ResolutionStatus:
        return self._status

    @property
    def principal(self) -> Optional[Principal]:
        return self._principal

    @property
    def account(self) -> Optional[RoleAccount]:
        return self._account

    @property
    def is_registered(self) -> bool:
        return self._status in ("registered", "unreadable")

    @property
    def role(self) -> Optional[Role]:
        return self._account.role if self._account is not None else None

    @property
    def is_requester(self) -> bool:
        return self.role == "Requester"

    @property
    def is_provider(self) -> bool:
        return self.role == "Provider"

    @property
    def capabilities(self) -> Capabilities:
        if self._status != "registered":
            return NO_CAPABILITIES
        return capabilities_for(self.role, registered=True)

    def minimum_stake(self) -> int:
        return minimum_stake(self.role)

    def voting_power(self, stake: int) -> float:
        return voting_power(stake, self.role)

    def role_display_name(self) -> str:
        return role_display_name(self.role)

    def verification_label(self) -> str:
        account = self._account
        return verification_label(account.verification_status if account else None)

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------
    def clear(self) -> None:
        self._token += 1
        self._principal = None
        self._client = None
        self._status = "unresolved"
        self._account = None
        self.last_error = None

    async def resolve(
        self, principal: Optional[Principal], client: Optional[LedgerPort]
    ) -> ResolutionStatus:
        """Determine registration and fetch the account for ``principal``."""
        self.clear()
        if principal is None or principal.is_anonymous or client is None:
            return self._status
        if client.principal != principal:
            self._log.warning(
                "Not resolving %s through a client acting as %s", principal, client.principal
            )
            return self._status
        token = self._token
        self._principal = principal
        self._client = client
        self._status = "resolving"

        try:
            registered = await client.is_user_registered(principal)
        except Exception as exc:
            return self._fail(token, exc, REGISTRATION_CHECK_FAILED)
        if token != self._token:
            self._log.debug("Discarding registration answer for %s", principal)
            return self._status
        if not registered:
            self._status = "not_registered"
            self._log.info("Principal %s is not registered", principal)
            return self._status

        try:
            result = await client.get_my_account()
        except Exception as exc:
            return self._fail(token, exc, "Failed to load account")
        if token != self._token:
            self._log.debug("Discarding account answer for %s", principal)
            return self._status
        if isinstance(result, Ok):
            self._store(result.value)
        elif isinstance(result, Err):
            self._status = "unreadable"
            self.last_error = result.message
            self._log.warning("Account of %s is unreadable: %s", principal, result.message)
        else:
            raise TypeError(f"Expected Ok or Err, got {type(result).__name__}")
        return self._status

    async def register(self, data: RegistrationInput) -> OperationOutcome:
        """Register the resolved principal with ``data``; caches the new account."""
        client = self._client
        if client is None or self._principal is None:
            return OperationOutcome(
                "rejected_locally", "NOT_AUTHENTICATED", "Sign in before registering."
            )
        token = self._token
        try:
            account = await RegisterUser(client)(data)
        except UseCaseError as exc:
            if token == self._token:
                self.last_error = exc.message
            return OperationOutcome.from_error(exc)
        if token != self._token:
            return OperationOutcome(
                "stale_session",
                "STALE_SESSION",
                "The signed-in identity changed before registration completed.",
            )
        self._store(account)
        return OperationOutcome.success(account)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _store(self, account: RoleAccount) -> None:
        self._account = account
        self._status = "registered"
        self.last_error = None
        self._log.info("Resolved %s as %s", account.principal, account.role)

    def _fail(self, token: int, exc: Exception, message: str) -> ResolutionStatus:
        if token != self._token:
            return self._status
        error = map_api_error(exc, default_code="ROLE_RESOLUTION_FAILED", default_message=message)
        self._status = "failed"
        self.last_error = message
        self._log.warning("%s: %s", message, error.message)
        return self._status


__all__ = ["REGISTRATION_CHECK_FAILED", "ResolutionStatus", "RoleResolver"]
