# ledgerdesk/app/main.py
from __future__ import annotations

import logging
import time
from typing import Callable, Optional, Tuple

import httpx

from ..domain.entities import Principal
from ..domain.ledger_cache import LedgerCache
from ..utils import logging as logging_utils
from ..viewmodels.escrow_vm import EscrowVM
from ..viewmodels.governance_vm import GovernanceVM
from ..viewmodels.settings_vm import SettingsVM
from .client_factory import ClientBuilder, ClientFactory
from .orchestrator import TransactionOrchestrator
from .role_resolver import ResolutionStatus, RoleResolver
from .session_manager import ProviderFactory, Session, SessionManager


class LedgerApp:
    """Bootstrap: wire session, client factory, cache, role resolver and orchestrator.

    Every identity change performs a full reset of dependent state inside the
    session listener, before the code awaiting the session change resumes:
    the client is rebuilt, the cache starts a new epoch, the resolved role is
    dropped and the orchestrator rebuilds its use cases.
    """

    def __init__(
        self,
        provider_factory: ProviderFactory,
        *,
        settings_vm: Optional[SettingsVM] = None,
        client_builder: Optional[ClientBuilder] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._log = logging.getLogger(__name__)
        if settings_vm is None:
            settings_vm = SettingsVM()
            settings_vm.apply_env()
        self.settings_vm = settings_vm
        logging_utils.configure_root()
        logging_utils.apply_preferences(self.settings_vm.debug_logging)

        self.session = SessionManager(
            provider_factory,
            identity_provider_url=self.settings_vm.effective_identity_provider(),
        )
        self.clients = ClientFactory(
            self.settings_vm, builder=client_builder, transport=transport
        )
        self.cache = LedgerCache()
        self.roles = RoleResolver()
        self.orchestrator = TransactionOrchestrator(
            self.cache, role_source=lambda: self.roles.role, clock=clock
        )

        # ---- ViewModels ----
        self.escrow_vm = EscrowVM(self.cache)
        self.governance_vm = GovernanceVM(
            self.cache, role_source=lambda: self.roles.role, clock=clock
        )

        self._bound: Optional[Tuple[bool, Optional[Principal]]] = None
        self.session.subscribe(self._on_session_change)
        self._on_session_change(self.session.session)

    @property
    def config_warning(self) -> Optional[str]:
        return self.clients.config_warning

    @property
    def last_error(self) -> Optional[str]:
        return self.orchestrator.last_error or self.roles.last_error or self.session.last_error

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    async def start(self) -> ResolutionStatus:
        await self.session.initialize()
        return await self.resolve_role()

    async def sign_in(self) -> bool:
        signed_in = await self.session.sign_in()
        if signed_in:
            await self.resolve_role()
        return signed_in

    async def sign_out(self) -> None:
        await self.session.sign_out()

    async def resolve_role(self) -> ResolutionStatus:
        """Resolve the signed-in principal through its own client only."""
        principal = self.session.principal if self.session.authenticated else None
        if principal is None or self.clients.principal != principal:
            self.roles.clear()
            return self.roles.status
        return await self.roles.resolve(principal, self.clients.client)

    async def aclose(self) -> None:
        self.orchestrator.reset()
        await self.clients.aclose()

    # ------------------------------------------------------------------
    # Session wiring
    # ------------------------------------------------------------------
    def _on_session_change(self, session: Session) -> None:
        key = (session.authenticated, session.principal if session.authenticated else None)
        if key == self._bound:
            return
        self._bound = key
        self._log.info("Identity changed to %s; resetting dependent state", key[1] or "anonymous")
        client = self.clients.rebuild(session)
        # cache entries belong to whoever the client answers as
        principal = client.principal if client is not None else None
        if principal is not None and principal.is_anonymous:
            principal = None
        self.cache.activate(principal)
        self.roles.clear()
        self.orchestrator.bind(client)


__all__ = ["LedgerApp"]
