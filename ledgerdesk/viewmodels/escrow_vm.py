"""Escrow overview derived from cached ledger answers.

Nothing here computes a balance; every number is read from
:class:`ledgerdesk.domain.ledger_cache.LedgerCache`, which only holds values
returned by the ledger.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Literal, Optional

from ..domain.entities import FinancialProject, Principal
from ..domain.ledger_cache import LedgerCache, escrow_key

EscrowStatus = Literal["Completed", "Funded", "Pending"]


@dataclass
class EscrowVM:
    cache: LedgerCache

    def escrow_balance(self, project_id: int) -> int:
        """Cached escrow balance, ``0`` until it has been fetched."""
        return self.cache.escrow_balance(project_id) or 0

    def is_stale(self, project_id: int) -> bool:
        return self.cache.is_stale(escrow_key(project_id))

    def project_status(self, project: FinancialProject) -> EscrowStatus:
        if project.is_completed:
            return "Completed"
        if self.escrow_balance(project.id) > 0:
            return "Funded"
        return "Pending"

    def project_progress(self, project: FinancialProject) -> float:
        """Funding progress in percent, capped at 100."""
        if project.is_completed:
            return 100.0
        if project.budget <= 0:
            return 0.0
        return min(self.escrow_balance(project.id) / project.budget * 100, 100.0)

    def requester_stats(self, projects: Optional[Iterable[FinancialProject]] = None) -> Dict[str, int]:
        rows = list(self.cache.my_projects() if projects is None else projects)
        completed = [p for p in rows if p.is_completed]
        pending = [p for p in rows if not p.is_completed]
        return {
            "total_escrowed": sum(p.budget for p in rows),
            "pending_payouts": sum(p.budget for p in pending),
            "completed_payouts": sum(p.budget for p in completed),
            "completed_projects": len(completed),
        }

    def provider_stats(
        self,
        principal: Optional[Principal],
        projects: Optional[Iterable[FinancialProject]] = None,
    ) -> Dict[str, int]:
        rows = list(self.cache.my_applications() if projects is None else projects)
        selected = [p for p in rows if principal is not None and p.selected_provider == principal]
        completed = [p for p in selected if p.is_completed]
        return {
            "selected_projects": len(selected),
            "completed_projects": len(completed),
            "total_earnings": sum(p.budget for p in completed),
        }

    def rows(self) -> List[dict]:
        """Table rows for the requester's projects."""
        return [
            {
                "id": project.id,
                "title": project.title,
                "budget": project.budget,
                "escrow": self.escrow_balance(project.id),
                "status": self.project_status(project),
                "progress": round(self.project_progress(project)),
                "stale": self.is_stale(project.id),
            }
            for project in self.cache.my_projects()
        ]


__all__ = ["EscrowStatus", "EscrowVM"]
