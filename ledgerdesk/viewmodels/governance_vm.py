"""Governance panel state: stake, voting power and proposal display."""

from __future__ import annotations

import math
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from ..domain.entities import Proposal, ProposalStatus, Role
from ..domain.ledger_cache import LedgerCache
from ..domain.roles import minimum_stake, voting_power


def format_time_remaining(deadline: float, now: float) -> str:
    remaining = deadline - now
    if remaining <= 0:
        return "Voting ended"
    hours = math.floor(remaining / 3600)
    minutes = math.floor((remaining % 3600) / 60)
    if hours > 24:
        days = hours // 24
        return f"{days} day{'s' if days > 1 else ''} remaining"
    if hours > 0:
        return f"{hours}h {minutes}m remaining"
    return f"{minutes}m remaining"


def vote_percentages(proposal: Proposal) -> Dict[str, float]:
    total = proposal.votes_for + proposal.votes_against
    if total <= 0:
        return {"for": 0.0, "against": 0.0, "total": 0}
    return {
        "for": proposal.votes_for / total * 100,
        "against": proposal.votes_against / total * 100,
        "total": total,
    }


@dataclass
class GovernanceVM:
    cache: LedgerCache
    role_source: Callable[[], Optional[Role]]
    clock: Callable[[], float] = field(default=time.time)

    @property
    def stake(self) -> int:
        return self.cache.stake() or 0

    @property
    def voting_power(self) -> float:
        """Voting power of the cached stake, never of a locally assumed one."""
        return voting_power(self.stake, self.role_source())

    def voting_power_label(self) -> str:
        return f"{self.voting_power:.1f}"

    def minimum_stake_label(self) -> str:
        return f"{minimum_stake(self.role_source())} tokens"

    def meets_minimum_stake(self) -> bool:
        return self.stake >= minimum_stake(self.role_source())

    def proposal_status(self, proposal: Proposal) -> ProposalStatus:
        return proposal.status(self.clock())

    def time_remaining(self, proposal: Proposal) -> str:
        return format_time_remaining(proposal.voting_deadline, self.clock())

    def rows(self) -> List[dict]:
        now = self.clock()
        rows = []
        for proposal in self.cache.proposals():
            shares = vote_percentages(proposal)
            rows.append(
                {
                    "id": proposal.id,
                    "title": proposal.title,
                    "status": proposal.status(now),
                    "time_remaining": format_time_remaining(proposal.voting_deadline, now),
                    "votes_for": proposal.votes_for,
                    "votes_against": proposal.votes_against,
                    "for_pct": round(shares["for"], 1),
                    "against_pct": round(shares["against"], 1),
                }
            )
        return rows


__all__ = ["GovernanceVM", "format_time_remaining", "vote_percentages"]
