from __future__ import annotations

import pytest

from ledgerdesk.domain.roles import (
    NO_CAPABILITIES,
    capabilities_for,
    minimum_stake,
    role_display_name,
    verification_label,
    voting_power,
)


@pytest.mark.parametrize("stake", [0, 1, 7, 500, 123_456])
def test_voting_power_uses_role_multiplier(stake: int) -> None:
    assert voting_power(stake, "Requester") == pytest.approx(stake * 1.5)
    assert voting_power(stake, "Provider") == pytest.approx(stake * 1.2)
    assert voting_power(stake, None) == pytest.approx(stake * 1.0)


def test_voting_power_rejects_negative_stake() -> None:
    with pytest.raises(ValueError):
        voting_power(-1, "Requester")


def test_minimum_stake_per_role() -> None:
    assert minimum_stake("Requester") == 500
    assert minimum_stake("Provider") == 100
    assert minimum_stake(None) == 50


def test_capabilities_follow_role_only() -> None:
    requester = capabilities_for("Requester", registered=True)
    provider = capabilities_for("Provider", registered=True)

    assert requester.can_create_project and requester.can_deposit_to_escrow
    assert requester.can_release_funds and not requester.can_apply_to_project
    assert provider.can_apply_to_project and not provider.can_create_project
    assert not provider.can_approve_applicant
    assert provider.can_vote_on_proposal and requester.can_stake_tokens


def test_unregistered_caller_has_no_capabilities() -> None:
    assert capabilities_for("Requester", registered=False) == NO_CAPABILITIES


def test_display_labels() -> None:
    assert role_display_name("Provider") == "Provider"
    assert role_display_name(None) == "Unknown"
    assert verification_label(None) == "Not verified"
    assert verification_label("Verified") == "Verified"
