from __future__ import annotations

from dataclasses import dataclass

from ledgerdesk.domain.ledger_cache import BALANCE, STAKE
from ledgerdesk.domain.ports import LedgerPort, PreconditionFailed
from ledgerdesk.usecases.refresh_caches import RefreshCaches


@dataclass
class StakeTokens:
    ledger: LedgerPort
    refresh: RefreshCaches

    async def __call__(self, *, amount: int) -> None:
        if amount <= 0:
            raise PreconditionFailed("INVALID_AMOUNT", "Please enter a valid stake amount.")
        balance = self.refresh.cache.balance()
        if balance is not None and amount > balance:
            raise PreconditionFailed("INSUFFICIENT_BALANCE", "Insufficient balance.")
        await self.refresh.submit(
            self.ledger.stake_tokens(amount),
            affected=(STAKE, BALANCE),
            code="STAKE_FAILED",
        )
