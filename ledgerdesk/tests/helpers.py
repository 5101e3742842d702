"""Shared builders for ledger tests."""

from __future__ import annotations

from typing import Optional

from ledgerdesk.adapters.identity_mock import InMemoryIdentityProvider, StaticIdentity
from ledgerdesk.adapters.ledger_mock import InMemoryLedger
from ledgerdesk.app.main import LedgerApp
from ledgerdesk.domain.entities import (
    ANONYMOUS_PRINCIPAL,
    Principal,
    Profile,
    ProviderInfo,
    RequesterInfo,
    Role,
    RoleAccount,
)
from ledgerdesk.viewmodels.settings_vm import LedgerSettings, SettingsVM

ALICE = Principal("aaaaa-alice")
BOB = Principal("bbbbb-bob")
CAROL = Principal("ccccc-carol")

NOW = 1_700_000_000.0


def fixed_clock() -> float:
    return NOW


def make_account(principal: Principal, role: Role, *, username: str = "") -> RoleAccount:
    return RoleAccount(
        principal=principal,
        role=role,
        requester_info=RequesterInfo("Acme", "Media", "https://acme.test")
        if role == "Requester"
        else None,
        provider_info=ProviderInfo(("design",), "Expert", (), 80) if role == "Provider" else None,
        profile=Profile(username or str(principal), "bio"),
    )


def make_ledger(**balances: int) -> InMemoryLedger:
    """Ledger with ALICE as requester and BOB as provider."""
    ledger = InMemoryLedger(clock=fixed_clock)
    ledger.seed_account(make_account(ALICE, "Requester"), balance=balances.get("alice", 0))
    ledger.seed_account(make_account(BOB, "Provider"), balance=balances.get("bob", 0))
    return ledger


def make_app(
    ledger: InMemoryLedger,
    provider: InMemoryIdentityProvider,
    *,
    builder=None,
) -> LedgerApp:
    async def _provider_factory() -> InMemoryIdentityProvider:
        return provider

    def _client_for(identity: Optional[StaticIdentity]):
        principal = identity.get_principal() if identity is not None else ANONYMOUS_PRINCIPAL
        return ledger.client_for(principal)

    settings = SettingsVM(config=LedgerSettings(ledger_url="http://ledger.test", ledger_id="ledger-1"))
    return LedgerApp(
        _provider_factory,
        settings_vm=settings,
        client_builder=builder or _client_for,
        clock=fixed_clock,
    )


__all__ = [
    "ALICE",
    "BOB",
    "CAROL",
    "NOW",
    "fixed_clock",
    "make_account",
    "make_app",
    "make_ledger",
]
