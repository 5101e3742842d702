from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ledgerdesk.domain.entities import Proposal, ProposalInput, Role
from ledgerdesk.domain.ledger_cache import PROPOSALS
from ledgerdesk.domain.ports import LedgerPort, PreconditionFailed
from ledgerdesk.domain.roles import minimum_stake
from ledgerdesk.domain.validation import validate_proposal_input
from ledgerdesk.usecases.refresh_caches import RefreshCaches


@dataclass
class CreateProposal:
    ledger: LedgerPort
    refresh: RefreshCaches

    async def __call__(self, *, role: Optional[Role], data: ProposalInput) -> Proposal:
        stake = self.refresh.cache.stake()
        if stake is not None:
            if stake <= 0:
                raise PreconditionFailed(
                    "NO_STAKE", "You must stake tokens before creating proposals."
                )
            # an unresolved role has no minimum; the ledger decides
            required = minimum_stake(role) if role is not None else 0
            if stake < required:
                raise PreconditionFailed(
                    "STAKE_TOO_LOW",
                    f"You must stake at least {required} tokens to create proposals.",
                )
        errors = validate_proposal_input(data)
        if errors:
            raise PreconditionFailed("INVALID_PROPOSAL", "; ".join(errors))
        return await self.refresh.submit(
            self.ledger.create_proposal(data),
            affected=(PROPOSALS,),
            code="CREATE_PROPOSAL_FAILED",
        )
