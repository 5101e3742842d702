from __future__ import annotations

import asyncio
import json
from typing import List

import httpx
import pytest

from ledgerdesk.adapters.api_errors import (
    ApiClientError,
    ApiDecodeError,
    ApiServerError,
    ApiTimeoutError,
)
from ledgerdesk.adapters.http_client import AsyncRetryingSession, HttpConfig
from ledgerdesk.adapters.identity_mock import StaticIdentity
from ledgerdesk.adapters.ledger_rpc import LedgerRpcAdapter
from ledgerdesk.domain.entities import Principal, ProjectInput
from ledgerdesk.domain.result import Err, Ok

ALICE = Principal("aaaaa-alice")


class _Gateway:
    """Scripted gateway recording every request."""

    def __init__(self, *responses) -> None:
        self.responses = list(responses)
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        if isinstance(item, httpx.Response):
            return item
        return httpx.Response(200, json=item)

    def body(self, index: int = -1) -> dict:
        return json.loads(self.requests[index].content)


def _adapter(gateway: _Gateway, *, identity=None, retries: int = 2) -> LedgerRpcAdapter:
    session = AsyncRetryingSession(
        HttpConfig(request_timeout_s=1, retries=retries),
        transport=httpx.MockTransport(gateway),
    )
    return LedgerRpcAdapter("http://ledger.test/", "ledger-1", session=session, identity=identity)


def test_query_posts_method_and_identity_headers() -> None:
    gateway = _Gateway(True)
    adapter = _adapter(gateway, identity=StaticIdentity(ALICE, delegation="tok"))

    assert asyncio.run(adapter.is_user_registered(ALICE)) is True

    request = gateway.requests[0]
    assert str(request.url) == "http://ledger.test/api/v2/canister/ledger-1/query"
    assert request.headers["X-Principal"] == "aaaaa-alice"
    assert request.headers["Authorization"] == "Bearer tok"
    assert gateway.body() == {"method": "isUserRegistered", "args": ["aaaaa-alice"]}


def test_anonymous_adapter_sends_anonymous_principal_without_token() -> None:
    gateway = _Gateway(0)
    adapter = _adapter(gateway)

    assert adapter.principal.is_anonymous
    asyncio.run(adapter.get_user_balance(ALICE))

    assert gateway.requests[0].headers["X-Principal"] == "2vxsx-fae"
    assert "Authorization" not in gateway.requests[0].headers


def test_mutation_goes_to_call_endpoint_and_decodes_result() -> None:
    project = {
        "id": 3,
        "title": "Logo",
        "description": "d",
        "budget": 500,
        "owner": "aaaaa-alice",
        "applicants": [],
        "selectedCreative": [],
        "isCompleted": False,
    }
    gateway = _Gateway({"ok": project})
    adapter = _adapter(gateway, identity=StaticIdentity(ALICE))

    result = asyncio.run(adapter.create_project(ProjectInput("Logo", "d", 500)))

    assert isinstance(result, Ok)
    assert result.value.id == 3
    assert str(gateway.requests[0].url).endswith("/call")
    assert gateway.body()["args"] == [{"title": "Logo", "description": "d", "budget": 500}]


def test_err_variant_is_returned_not_raised() -> None:
    gateway = _Gateway({"err": {"AlreadyApplied": None}})
    adapter = _adapter(gateway, identity=StaticIdentity(ALICE))

    assert asyncio.run(adapter.apply_to_project(7)) == Err("AlreadyApplied")


def test_query_retries_timeouts() -> None:
    gateway = _Gateway(httpx.ConnectTimeout("slow"), httpx.ReadTimeout("slow"), {"ok": 250})
    adapter = _adapter(gateway)

    assert asyncio.run(adapter.get_escrow_balance(1)) == Ok(250)
    assert len(gateway.requests) == 3


def test_mutation_is_not_retried_on_timeout() -> None:
    gateway = _Gateway(httpx.ReadTimeout("slow"), {"ok": None})
    adapter = _adapter(gateway, identity=StaticIdentity(ALICE))

    with pytest.raises(ApiTimeoutError):
        asyncio.run(adapter.deposit_to_escrow(1, 100))
    assert len(gateway.requests) == 1


def test_http_status_maps_to_client_and_server_errors() -> None:
    gateway = _Gateway(
        httpx.Response(403, json={"reject_message": "bad delegation", "code": "IC0406"}),
        httpx.Response(502, text="upstream down"),
    )
    adapter = _adapter(gateway, identity=StaticIdentity(ALICE))

    with pytest.raises(ApiClientError) as client_err:
        asyncio.run(adapter.stake_tokens(5))
    assert client_err.value.status == 403
    assert client_err.value.code == "IC0406"
    assert "bad delegation" in str(client_err.value)

    with pytest.raises(ApiServerError):
        asyncio.run(adapter.get_projects())


def test_malformed_payload_raises_decode_error() -> None:
    gateway = _Gateway({"unexpected": True}, "not-a-number")
    adapter = _adapter(gateway)

    with pytest.raises(ApiDecodeError):
        asyncio.run(adapter.get_escrow_balance(1))
    with pytest.raises(ApiDecodeError):
        asyncio.run(adapter.get_user_stake(ALICE))


def test_adapter_requires_endpoint_settings() -> None:
    session = AsyncRetryingSession(transport=httpx.MockTransport(_Gateway()))
    with pytest.raises(ValueError):
        LedgerRpcAdapter("", "ledger-1", session=session)
