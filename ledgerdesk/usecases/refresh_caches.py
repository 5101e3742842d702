"""Use case for re-querying ledger state into the principal-scoped cache.

Every cached balance, list, and flag is written here and only here, always
from a backend answer. A ``RefreshCaches`` instance is bound to the client
and cache scope of one identity; once that identity is replaced its writes
are dropped by :class:`ledgerdesk.domain.ledger_cache.LedgerCache`.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Hashable, List, Sequence, TypeVar

from ledgerdesk.domain.entities import FinancialProject, Principal, Proposal
from ledgerdesk.domain.ledger_cache import (
    BALANCE,
    MY_APPLICATIONS,
    MY_PROJECTS,
    PROJECTS,
    PROPOSALS,
    STAKE,
    CacheScope,
    LedgerCache,
    applicants_key,
    approval_key,
    approved_key,
    escrow_key,
)
from ledgerdesk.domain.ports import LedgerPort, UseCaseError
from ledgerdesk.domain.result import LedgerResult
from ledgerdesk.usecases.error_mapping import map_api_error, unwrap_result

T = TypeVar("T")


@dataclass
class RefreshCaches:
    """Fetch-and-store operations keyed by cache entry."""

    ledger: LedgerPort
    cache: LedgerCache
    scope: CacheScope
    _log: logging.Logger = field(default_factory=lambda: logging.getLogger(__name__), repr=False)

    @property
    def principal(self) -> Principal:
        return self.ledger.principal

    @property
    def is_current(self) -> bool:
        return self.cache.is_current(self.scope)

    # ------------------------------------------------------------------
    # Single-entry refreshes
    # ------------------------------------------------------------------
    async def balance(self) -> int:
        value = await self._fetch(self.ledger.get_user_balance(self.principal), "BALANCE_LOAD_FAILED")
        self._store(BALANCE, value)
        return value

    async def stake(self) -> int:
        value = await self._fetch(self.ledger.get_user_stake(self.principal), "STAKE_LOAD_FAILED")
        self._store(STAKE, value)
        return value

    async def escrow(self, project_id: int) -> int:
        result = await self._fetch(
            self.ledger.get_escrow_balance(project_id), "ESCROW_LOAD_FAILED"
        )
        value = unwrap_result(result)
        self._store(escrow_key(project_id), value)
        return value

    async def projects(self) -> List[FinancialProject]:
        value = await self._fetch(self.ledger.get_projects(), "PROJECTS_LOAD_FAILED")
        self._store(PROJECTS, value)
        return value

    async def my_projects(self) -> List[FinancialProject]:
        value = await self._fetch(self.ledger.get_my_client_projects(), "PROJECTS_LOAD_FAILED")
        self._store(MY_PROJECTS, value)
        return value

    async def my_applications(self) -> List[FinancialProject]:
        value = await self._fetch(
            self.ledger.get_my_creative_applications(), "APPLICATIONS_LOAD_FAILED"
        )
        self._store(MY_APPLICATIONS, value)
        return value

    async def applicants(self, project_id: int) -> List[Principal]:
        result = await self._fetch(
            self.ledger.get_project_applicants(project_id), "APPLICANTS_LOAD_FAILED"
        )
        value = unwrap_result(result)
        self._store(applicants_key(project_id), value)
        return value

    async def approved_applicants(self, project_id: int) -> List[Principal]:
        result = await self._fetch(
            self.ledger.get_project_approved_applicants(project_id), "APPLICANTS_LOAD_FAILED"
        )
        value = unwrap_result(result)
        self._store(approved_key(project_id), value)
        return value

    async def approval(self, project_id: int) -> bool:
        result = await self._fetch(
            self.ledger.is_applicant_approved(project_id, self.principal), "APPROVAL_LOAD_FAILED"
        )
        value = unwrap_result(result)
        self._store(approval_key(project_id), value)
        return value

    async def proposals(self) -> List[Proposal]:
        value = await self._fetch(self.ledger.get_all_proposals(), "PROPOSALS_LOAD_FAILED")
        self._store(PROPOSALS, value)
        return value

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------
    async def submit(
        self,
        call: Awaitable[LedgerResult[T]],
        *,
        affected: Sequence[Hashable],
        code: str,
    ) -> T:
        """Await a state-changing call and refresh ``affected`` entries.

        ``Err`` raises ``BackendRejected`` without touching the cache. A
        transport failure marks ``affected`` stale, attempts a refresh, then
        raises ``TransportFailed``.
        """
        try:
            result = await call
        except Exception as exc:
            mapped = map_api_error(exc, default_code=code)
            self._log.warning("%s: transport failure (%s)", code, mapped.message)
            self.cache.mark_stale(self.scope, affected)
            await self.settle(*affected)
            raise mapped from exc
        value = unwrap_result(result)
        await self.settle(*affected)
        return value

    async def settle(self, *keys: Hashable) -> List[str]:
        """Refresh ``keys`` concurrently; failures are logged and left stale."""
        if not self.is_current:
            self._log.debug("Skipping refresh of %s for outdated scope", keys)
            return []
        jobs = [self.refresh_key(key) for key in keys]
        outcomes = await asyncio.gather(*jobs, return_exceptions=True)
        failures: List[str] = []
        for key, outcome in zip(keys, outcomes):
            if isinstance(outcome, UseCaseError):
                self._log.warning("Refresh of %r failed: %s", key, outcome.message)
                self.cache.mark_stale(self.scope, [key])
                failures.append(outcome.message)
            elif isinstance(outcome, BaseException):
                raise outcome
        return failures

    def refresh_key(self, key: Hashable) -> Awaitable[Any]:
        if key == BALANCE:
            return self.balance()
        if key == STAKE:
            return self.stake()
        if key == PROJECTS:
            return self.projects()
        if key == MY_PROJECTS:
            return self.my_projects()
        if key == MY_APPLICATIONS:
            return self.my_applications()
        if key == PROPOSALS:
            return self.proposals()
        if isinstance(key, tuple) and len(key) == 2:
            kind, project_id = key
            if kind == "escrow":
                return self.escrow(project_id)
            if kind == "applicants":
                return self.applicants(project_id)
            if kind == "approved":
                return self.approved_applicants(project_id)
            if kind == "approval":
                return self.approval(project_id)
        raise KeyError(f"No refresh defined for cache key {key!r}")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    async def _fetch(self, call: Awaitable[T], code: str) -> T:
        try:
            return await call
        except Exception as exc:
            raise map_api_error(exc, default_code=code) from exc

    def _store(self, key: Hashable, value: Any) -> bool:
        return self.cache.write(self.scope, key, value)


__all__ = ["RefreshCaches"]
