"""Build the ledger client bound to the current identity.

``ClientFactory`` replaces its client on every identity change, before any
other component sees the new session. When no authenticated client can be
built it falls back to an anonymous one and keeps the reason in
``config_warning`` for display.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

import httpx

from ..adapters.http_client import AsyncRetryingSession, HttpConfig
from ..adapters.ledger_rpc import LedgerRpcAdapter
from ..domain.entities import Principal
from ..domain.errors import LedgerConfigError
from ..domain.ports import Identity, LedgerPort
from ..viewmodels.settings_vm import SettingsVM
from .session_manager import Session

ClientBuilder = Callable[[Optional[Identity]], LedgerPort]


class ClientFactory:
    """Create and cache the ledger client for the active identity.

    Args:
        settings_vm: Connection settings used by the default builder.
        builder: Optional replacement for the default ``LedgerRpcAdapter``
            builder. Receives ``None`` for the anonymous client.
        transport: Optional ``httpx`` transport for the shared HTTP session.
    """

    def __init__(
        self,
        settings_vm: SettingsVM,
        *,
        builder: Optional[ClientBuilder] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._log = logging.getLogger(__name__)
        self.settings_vm = settings_vm
        self._builder = builder or self._build_rpc_client
        self._transport = transport
        self._http: Optional[AsyncRetryingSession] = None
        self._client: Optional[LedgerPort] = None
        self.config_warning: Optional[str] = None

    @property
    def client(self) -> Optional[LedgerPort]:
        """Current client, ``None`` only when not even an anonymous client could be built."""
        return self._client

    @property
    def principal(self) -> Optional[Principal]:
        return self._client.principal if self._client is not None else None

    def rebuild(self, session: Session) -> Optional[LedgerPort]:
        """Replace the client for ``session``; never raises."""
        self.config_warning = None
        identity = session.identity if session.authenticated else None
        client: Optional[LedgerPort] = None
        if identity is not None:
            try:
                client = self._build_for(identity)
            except Exception as exc:
                self._log.warning("Authenticated ledger client unavailable: %s", exc)
                self.config_warning = f"Using anonymous access: {exc}"
        if client is None:
            client = self._build_anonymous()
        self._client = client
        if client is not None:
            self._log.info("Ledger client bound to principal %s", client.principal)
        return client

    async def aclose(self) -> None:
        self._client = None
        if self._http is not None:
            await self._http.aclose()
            self._http = None

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _build_for(self, identity: Identity) -> LedgerPort:
        expected = identity.get_principal()
        client = self._builder(identity)
        if client.principal != expected:
            raise LedgerConfigError(
                f"Client principal {client.principal} does not match identity {expected}."
            )
        return client

    def _build_anonymous(self) -> Optional[LedgerPort]:
        try:
            return self._builder(None)
        except Exception as exc:
            self._log.error("Anonymous ledger client unavailable: %s", exc)
            message = f"Ledger unavailable: {exc}"
            self.config_warning = (
                f"{self.config_warning} {message}" if self.config_warning else message
            )
            return None

    def _build_rpc_client(self, identity: Optional[Identity]) -> LedgerPort:
        base_url = self.settings_vm.effective_ledger_url()
        ledger_id = self.settings_vm.ledger_id
        if not base_url or not ledger_id:
            raise LedgerConfigError("Ledger URL and ledger id must be configured.")
        if self._http is None:
            self._http = AsyncRetryingSession(
                HttpConfig(
                    request_timeout_s=self.settings_vm.request_timeout_s,
                    retries=self.settings_vm.retries,
                ),
                transport=self._transport,
            )
        return LedgerRpcAdapter(base_url, ledger_id, session=self._http, identity=identity)


__all__ = ["ClientBuilder", "ClientFactory"]
