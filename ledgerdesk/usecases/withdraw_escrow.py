from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ledgerdesk.domain.entities import Role
from ledgerdesk.domain.ledger_cache import BALANCE, escrow_key
from ledgerdesk.domain.ports import LedgerPort, PreconditionFailed, ProjectId
from ledgerdesk.usecases.refresh_caches import RefreshCaches


@dataclass
class WithdrawEscrow:
    ledger: LedgerPort
    refresh: RefreshCaches

    async def __call__(self, *, role: Optional[Role], project_id: ProjectId) -> None:
        if role != "Requester":
            raise PreconditionFailed("ROLE_REQUIRED", "Only requesters can withdraw from escrow.")
        project = self.refresh.cache.project(project_id)
        if project is not None and project.is_completed:
            raise PreconditionFailed(
                "PROJECT_COMPLETED", "Escrow of a completed project cannot be withdrawn."
            )
        await self.refresh.submit(
            self.ledger.withdraw_escrow(project_id),
            affected=(escrow_key(project_id), BALANCE),
            code="WITHDRAW_FAILED",
        )
