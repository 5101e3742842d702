from __future__ import annotations

import asyncio

import httpx

from ledgerdesk.adapters.identity_mock import StaticIdentity
from ledgerdesk.adapters.ledger_rpc import LedgerRpcAdapter
from ledgerdesk.app.client_factory import ClientFactory
from ledgerdesk.app.session_manager import Session
from ledgerdesk.domain.entities import ANONYMOUS_PRINCIPAL
from ledgerdesk.tests.helpers import ALICE, BOB, make_ledger
from ledgerdesk.viewmodels.settings_vm import LedgerSettings, SettingsVM


def _settings(**overrides) -> SettingsVM:
    values = {"ledger_url": "http://ledger.test", "ledger_id": "ledger-1"}
    values.update(overrides)
    return SettingsVM(config=LedgerSettings(**values))


def _signed_in(principal) -> Session:
    return Session("authenticated", StaticIdentity(principal), principal)


def test_default_builder_binds_rpc_adapter_to_identity() -> None:
    factory = ClientFactory(_settings(), transport=httpx.MockTransport(lambda r: httpx.Response(200)))

    client = factory.rebuild(_signed_in(ALICE))

    assert isinstance(client, LedgerRpcAdapter)
    assert client.principal == ALICE
    assert factory.config_warning is None
    asyncio.run(factory.aclose())


def test_unauthenticated_session_gets_anonymous_client() -> None:
    factory = ClientFactory(_settings())

    client = factory.rebuild(Session("unauthenticated"))

    assert client.principal == ANONYMOUS_PRINCIPAL
    assert factory.principal.is_anonymous


def test_every_identity_change_builds_a_new_client() -> None:
    ledger = make_ledger()
    factory = ClientFactory(
        _settings(),
        builder=lambda identity: ledger.client_for(
            identity.get_principal() if identity else ANONYMOUS_PRINCIPAL
        ),
    )

    first = factory.rebuild(_signed_in(ALICE))
    second = factory.rebuild(_signed_in(BOB))

    assert first is not second
    assert factory.client is second
    assert second.principal == BOB


def test_principal_mismatch_falls_back_to_anonymous_with_warning() -> None:
    ledger = make_ledger()
    factory = ClientFactory(
        _settings(),
        builder=lambda identity: ledger.client_for(BOB if identity else ANONYMOUS_PRINCIPAL),
    )

    client = factory.rebuild(_signed_in(ALICE))

    assert client.principal.is_anonymous
    assert "does not match" in factory.config_warning


def test_missing_configuration_never_raises() -> None:
    factory = ClientFactory(_settings(ledger_url="", ledger_id=""))

    client = factory.rebuild(_signed_in(ALICE))

    assert client is None
    assert "Ledger URL and ledger id must be configured." in factory.config_warning
