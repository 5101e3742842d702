from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Callable

from ledgerdesk.domain.ledger_cache import PROPOSALS
from ledgerdesk.domain.ports import LedgerPort, PreconditionFailed, ProposalId
from ledgerdesk.usecases.refresh_caches import RefreshCaches


@dataclass
class VoteOnProposal:
    ledger: LedgerPort
    refresh: RefreshCaches
    clock: Callable[[], float] = field(default=time.time)

    async def __call__(self, *, proposal_id: ProposalId, support: bool) -> None:
        cache = self.refresh.cache
        stake = cache.stake()
        if stake is not None and stake <= 0:
            raise PreconditionFailed("NO_STAKE", "You must stake tokens before voting.")
        proposal = cache.proposal(proposal_id)
        if proposal is not None and proposal.status(self.clock()) != "active":
            raise PreconditionFailed("VOTING_CLOSED", "Voting on this proposal has ended.")
        await self.refresh.submit(
            self.ledger.vote_on_proposal(proposal_id, support),
            affected=(PROPOSALS,),
            code="VOTE_FAILED",
        )
