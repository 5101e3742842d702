from __future__ import annotations

from dataclasses import dataclass

from ledgerdesk.domain.ledger_cache import BALANCE
from ledgerdesk.domain.ports import LedgerPort, PreconditionFailed
from ledgerdesk.usecases.refresh_caches import RefreshCaches


@dataclass
class AddTestBalance:
    """Development faucet: credit tokens to the caller's own balance."""

    ledger: LedgerPort
    refresh: RefreshCaches

    async def __call__(self, *, amount: int) -> None:
        if amount <= 0:
            raise PreconditionFailed("INVALID_AMOUNT", "Please enter a valid positive amount.")
        await self.refresh.submit(
            self.ledger.add_user_balance(self.ledger.principal, amount),
            affected=(BALANCE,),
            code="FAUCET_FAILED",
        )
