from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ledgerdesk.domain.entities import Role
from ledgerdesk.domain.ledger_cache import BALANCE, escrow_key
from ledgerdesk.domain.ports import LedgerPort, PreconditionFailed, ProjectId
from ledgerdesk.usecases.refresh_caches import RefreshCaches


@dataclass
class DepositToEscrow:
    ledger: LedgerPort
    refresh: RefreshCaches

    async def __call__(self, *, role: Optional[Role], project_id: ProjectId, amount: int) -> None:
        if role != "Requester":
            raise PreconditionFailed("ROLE_REQUIRED", "Only requesters can deposit funds to escrow.")
        if amount <= 0:
            raise PreconditionFailed("INVALID_AMOUNT", "Please enter a valid positive amount.")
        balance = self.refresh.cache.balance()
        if balance is not None and amount > balance:
            raise PreconditionFailed("INSUFFICIENT_BALANCE", "Insufficient balance.")
        await self.refresh.submit(
            self.ledger.deposit_to_escrow(project_id, amount),
            affected=(escrow_key(project_id), BALANCE),
            code="DEPOSIT_FAILED",
        )
