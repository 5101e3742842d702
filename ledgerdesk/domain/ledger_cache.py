from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Hashable, Iterable, List, Optional, Set

from .entities import FinancialProject, Principal, Proposal

# ---- Cache keys ----
BALANCE = "balance"
STAKE = "stake"
PROJECTS = "projects"
MY_PROJECTS = "my_projects"
MY_APPLICATIONS = "my_applications"
PROPOSALS = "proposals"


def escrow_key(project_id: int) -> tuple:
    return ("escrow", project_id)


def applicants_key(project_id: int) -> tuple:
    return ("applicants", project_id)


def approved_key(project_id: int) -> tuple:
    return ("approved", project_id)


def approval_key(project_id: int) -> tuple:
    return ("approval", project_id)


@dataclass(frozen=True)
class CacheScope:
    """Identity a cache write was issued under.

    ``epoch`` increases on every identity change, so a scope captured before
    sign-out never matches again even if the same principal signs back in.
    """

    principal: Optional[Principal]
    epoch: int


class LedgerCache:
    """Read-through cache of backend answers for the active principal only.

    Values are only ever written from backend responses. Writes carrying a
    scope that is no longer current are dropped, which keeps answers to
    calls made under a previous identity out of the active session.
    """

    def __init__(self) -> None:
        self._log = logging.getLogger(__name__)
        self._principal: Optional[Principal] = None
        self._epoch = 0
        self._entries: Dict[Hashable, Any] = {}
        self._stale: Set[Hashable] = set()

    # ------------------------------------------------------------------
    # Scope lifecycle
    # ------------------------------------------------------------------
    @property
    def principal(self) -> Optional[Principal]:
        return self._principal

    def scope(self) -> CacheScope:
        return CacheScope(self._principal, self._epoch)

    def is_current(self, scope: CacheScope) -> bool:
        return scope.epoch == self._epoch and scope.principal == self._principal

    def activate(self, principal: Optional[Principal]) -> CacheScope:
        """Start a fresh epoch for ``principal`` and drop every entry."""
        self._epoch += 1
        self._principal = principal
        self._entries.clear()
        self._stale.clear()
        self._log.debug("Cache epoch %s for principal %s", self._epoch, principal)
        return self.scope()

    def reset(self) -> CacheScope:
        return self.activate(None)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------
    def write(self, scope: CacheScope, key: Hashable, value: Any) -> bool:
        if not self.is_current(scope):
            self._log.debug(
                "Dropping cache write %r for outdated scope %s/%s",
                key,
                scope.principal,
                scope.epoch,
            )
            return False
        self._entries[key] = value
        self._stale.discard(key)
        return True

    def mark_stale(self, scope: CacheScope, keys: Iterable[Hashable]) -> None:
        if not self.is_current(scope):
            return
        self._stale.update(keys)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def get(self, key: Hashable, default: Any = None) -> Any:
        return self._entries.get(key, default)

    def has(self, key: Hashable) -> bool:
        return key in self._entries

    def is_stale(self, key: Hashable) -> bool:
        return key in self._stale

    def balance(self) -> Optional[int]:
        return self._entries.get(BALANCE)

    def stake(self) -> Optional[int]:
        return self._entries.get(STAKE)

    def escrow_balance(self, project_id: int) -> Optional[int]:
        return self._entries.get(escrow_key(project_id))

    def projects(self) -> List[FinancialProject]:
        return list(self._entries.get(PROJECTS) or [])

    def my_projects(self) -> List[FinancialProject]:
        return list(self._entries.get(MY_PROJECTS) or [])

    def my_applications(self) -> List[FinancialProject]:
        return list(self._entries.get(MY_APPLICATIONS) or [])

    def applicants(self, project_id: int) -> Optional[List[Principal]]:
        return self._entries.get(applicants_key(project_id))

    def approved_applicants(self, project_id: int) -> Optional[List[Principal]]:
        return self._entries.get(approved_key(project_id))

    def proposals(self) -> List[Proposal]:
        return list(self._entries.get(PROPOSALS) or [])

    def project(self, project_id: int) -> Optional[FinancialProject]:
        """Most recently listed copy of a project, searching every project list."""
        for key in (MY_PROJECTS, MY_APPLICATIONS, PROJECTS):
            for project in self._entries.get(key) or ():
                if project.id == project_id:
                    return project
        return None

    def proposal(self, proposal_id: int) -> Optional[Proposal]:
        for proposal in self._entries.get(PROPOSALS) or ():
            if proposal.id == proposal_id:
                return proposal
        return None


__all__ = [
    "BALANCE",
    "CacheScope",
    "LedgerCache",
    "MY_APPLICATIONS",
    "MY_PROJECTS",
    "PROJECTS",
    "PROPOSALS",
    "STAKE",
    "applicants_key",
    "approval_key",
    "approved_key",
    "escrow_key",
]
