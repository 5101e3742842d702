"""Role-dependent rules evaluated locally before talking to the ledger.

All functions are pure in the resolved role. The backend stays the authority;
these values only keep obviously doomed calls from being sent.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .entities import Role, VerificationStatus

VOTING_POWER_MULTIPLIERS = {"Requester": 1.5, "Provider": 1.2}
DEFAULT_VOTING_POWER_MULTIPLIER = 1.0

MINIMUM_STAKE = {"Requester": 500, "Provider": 100}
DEFAULT_MINIMUM_STAKE = 50


def voting_power_multiplier(role: Optional[Role]) -> float:
    return VOTING_POWER_MULTIPLIERS.get(role or "", DEFAULT_VOTING_POWER_MULTIPLIER)


def voting_power(stake: int, role: Optional[Role]) -> float:
    """Return ``stake`` scaled by the role multiplier.

    Raises:
        ValueError: If ``stake`` is negative.
    """
    if stake < 0:
        raise ValueError("Stake cannot be negative.")
    return stake * voting_power_multiplier(role)


def minimum_stake(role: Optional[Role]) -> int:
    return MINIMUM_STAKE.get(role or "", DEFAULT_MINIMUM_STAKE)


def role_display_name(role: Optional[Role]) -> str:
    return role if role in VOTING_POWER_MULTIPLIERS else "Unknown"


def verification_label(status: Optional[VerificationStatus]) -> str:
    if not status:
        return "Not verified"
    if status in ("Verified", "Pending", "Rejected"):
        return status
    return "Unknown"


@dataclass(frozen=True)
class Capabilities:
    """Capability gates derived only from the resolved account."""

    can_create_project: bool = False
    can_apply_to_project: bool = False
    can_view_project_applicants: bool = False
    can_approve_applicant: bool = False
    can_deposit_to_escrow: bool = False
    can_withdraw_from_escrow: bool = False
    can_release_funds: bool = False
    can_stake_tokens: bool = False
    can_create_proposal: bool = False
    can_vote_on_proposal: bool = False


NO_CAPABILITIES = Capabilities()


def capabilities_for(role: Optional[Role], *, registered: bool) -> Capabilities:
    """Compute gates for a role; ``registered`` covers role-agnostic actions."""
    if not registered:
        return NO_CAPABILITIES
    requester = role == "Requester"
    provider = role == "Provider"
    return Capabilities(
        can_create_project=requester,
        can_apply_to_project=provider,
        can_view_project_applicants=requester,
        can_approve_applicant=requester,
        can_deposit_to_escrow=requester,
        can_withdraw_from_escrow=requester,
        can_release_funds=requester,
        can_stake_tokens=True,
        can_create_proposal=True,
        can_vote_on_proposal=True,
    )


__all__ = [
    "Capabilities",
    "DEFAULT_MINIMUM_STAKE",
    "DEFAULT_VOTING_POWER_MULTIPLIER",
    "MINIMUM_STAKE",
    "NO_CAPABILITIES",
    "VOTING_POWER_MULTIPLIERS",
    "capabilities_for",
    "minimum_stake",
    "role_display_name",
    "verification_label",
    "voting_power",
    "voting_power_multiplier",
]
