"""Authentication lifecycle of the caller.

``SessionManager`` restores a previously authenticated identity on start,
drives the out-of-band sign-in flow of the identity provider and clears the
identity on sign-out. Dependent components learn about changes through
:meth:`SessionManager.subscribe`; listeners run synchronously, before the
awaiting ``initialize``/``sign_in``/``sign_out`` caller resumes.

State machine::

    unstarted -> initializing -> {unauthenticated, authenticated}
    unauthenticated -> authenticating -> {authenticated, unauthenticated}
    authenticated -> unauthenticated
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, replace
from typing import Awaitable, Callable, Dict, FrozenSet, List, Literal, Optional

from ..domain.entities import Principal
from ..domain.errors import InvalidSessionTransition
from ..domain.ports import Identity, IdentityProviderPort, LoginOptions

SessionState = Literal[
    "unstarted", "initializing", "unauthenticated", "authenticating", "authenticated"
]

_TRANSITIONS: Dict[str, FrozenSet[str]] = {
    "unstarted": frozenset({"initializing"}),
    "initializing": frozenset({"unauthenticated", "authenticated"}),
    "unauthenticated": frozenset({"authenticating"}),
    "authenticating": frozenset({"authenticated", "unauthenticated"}),
    "authenticated": frozenset({"unauthenticated"}),
}

INIT_FAILED = "Failed to initialize authentication"
LOGIN_FAILED = "Failed to authenticate with Internet Identity"
LOGIN_CRASHED = "Authentication failed. Please try again."

ProviderFactory = Callable[[], Awaitable[IdentityProviderPort]]
SessionListener = Callable[["Session"], None]


@dataclass(frozen=True)
class Session:
    """Snapshot of the authentication state."""

    state: SessionState = "unstarted"
    identity: Optional[Identity] = None
    principal: Optional[Principal] = None
    last_error: Optional[str] = None

    @property
    def authenticated(self) -> bool:
        return self.state == "authenticated"

    @property
    def initialized(self) -> bool:
        return self.state not in ("unstarted", "initializing")

    @property
    def is_loading(self) -> bool:
        return self.state in ("initializing", "authenticating")


class SessionManager:
    """Own the identity provider handle and the current :class:`Session`.

    Args:
        provider_factory: Coroutine function creating the identity provider
            handle. Called lazily on ``initialize`` (and again on
            ``sign_in`` if creating it failed before).
        identity_provider_url: URL handed to ``login``.
        max_time_to_live_ns: Optional delegation lifetime passed to ``login``.
    """

    def __init__(
        self,
        provider_factory: ProviderFactory,
        *,
        identity_provider_url: str,
        max_time_to_live_ns: Optional[int] = None,
    ) -> None:
        self._log = logging.getLogger(__name__)
        self._provider_factory = provider_factory
        self._provider: Optional[IdentityProviderPort] = None
        self._login_options = LoginOptions(
            identity_provider=identity_provider_url,
            max_time_to_live_ns=max_time_to_live_ns,
        )
        self._session = Session()
        self._listeners: List[SessionListener] = []

    # ------------------------------------------------------------------
    # Read-only view
    # ------------------------------------------------------------------
    @property
    def session(self) -> Session:
        return self._session

    @property
    def state(self) -> SessionState:
        return self._session.state

    @property
    def initialized(self) -> bool:
        return self._session.initialized

    @property
    def authenticated(self) -> bool:
        return self._session.authenticated

    @property
    def is_loading(self) -> bool:
        return self._session.is_loading

    @property
    def identity(self) -> Optional[Identity]:
        return self._session.identity

    @property
    def principal(self) -> Optional[Principal]:
        return self._session.principal

    @property
    def last_error(self) -> Optional[str]:
        return self._session.last_error

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Register ``listener`` for every session change; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    async def initialize(self) -> Session:
        """Restore a persisted identity; failure to restore means "no session"."""
        if self._session.state != "unstarted":
            self._log.debug("initialize() ignored in state %s", self._session.state)
            return self._session
        self._move("initializing")
        try:
            provider = await self._ensure_provider()
            restored = await provider.is_authenticated()
            identity = provider.get_identity() if restored else None
            principal = identity.get_principal() if identity is not None else None
        except Exception:
            self._log.exception("Restoring the previous session failed")
            self._move("unauthenticated", last_error=INIT_FAILED)
            return self._session

        if principal is None or principal.is_anonymous:
            self._move("unauthenticated")
        else:
            self._log.info("Restored session for principal %s", principal)
            self._move("authenticated", identity=identity, principal=principal)
        return self._session

    async def sign_in(self) -> bool:
        """Run the identity provider login flow.

        Returns ``True`` once authenticated. A call made while another
        sign-in is pending is ignored and returns ``False``.
        """
        state = self._session.state
        if state == "authenticating":
            self._log.warning("sign_in() ignored: authentication already in progress")
            return False
        if state == "authenticated":
            self._log.debug("sign_in() ignored: already authenticated")
            return True
        self._move("authenticating")

        try:
            provider = await self._ensure_provider()
            reason = await self._login(provider)
        except Exception:
            self._log.exception("Identity provider login raised")
            self._move("unauthenticated", last_error=LOGIN_CRASHED)
            return False
        if reason is not None:
            self._log.warning("Login rejected by identity provider: %s", reason)
            self._move("unauthenticated", last_error=LOGIN_FAILED)
            return False

        try:
            identity = provider.get_identity()
            principal = identity.get_principal()
        except Exception:
            self._log.exception("Reading the signed-in identity failed")
            self._move("unauthenticated", last_error=LOGIN_CRASHED)
            return False
        if principal.is_anonymous:
            self._log.warning("Login completed without a principal")
            self._move("unauthenticated", last_error=LOGIN_FAILED)
            return False

        self._log.info("Signed in as %s", principal)
        self._move("authenticated", identity=identity, principal=principal)
        return True

    async def sign_out(self) -> None:
        """Revoke the identity and clear the session.

        Local state is cleared even if the provider logout raises; the
        failure is kept as ``last_error``.
        """
        if self._session.state != "authenticated":
            self._log.debug("sign_out() ignored in state %s", self._session.state)
            return
        error: Optional[str] = None
        if self._provider is not None:
            try:
                await self._provider.logout()
            except Exception as exc:
                self._log.warning("Identity provider logout failed: %s", exc)
                error = f"Sign-out did not complete at the identity provider: {exc}"
        self._log.info("Signed out %s", self._session.principal)
        self._move("unauthenticated", last_error=error)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    async def _ensure_provider(self) -> IdentityProviderPort:
        if self._provider is None:
            self._provider = await self._provider_factory()
        return self._provider

    async def _login(self, provider: IdentityProviderPort) -> Optional[str]:
        """Bridge the callback-style login into a coroutine.

        Resolves to ``None`` on success or the provider's error text. The
        callbacks may fire from any thread.
        """
        loop = asyncio.get_running_loop()
        done: asyncio.Future = loop.create_future()

        def _settle(reason: Optional[str]) -> None:
            if not done.done():
                done.set_result(reason)

        def on_success() -> None:
            loop.call_soon_threadsafe(_settle, None)

        def on_error(reason: str) -> None:
            loop.call_soon_threadsafe(_settle, str(reason or "unknown error"))

        provider.login(self._login_options, on_success, on_error)
        return await done

    def _move(
        self,
        target: SessionState,
        *,
        identity: Optional[Identity] = None,
        principal: Optional[Principal] = None,
        last_error: Optional[str] = None,
    ) -> None:
        current = self._session.state
        if target not in _TRANSITIONS[current]:
            raise InvalidSessionTransition(current, target)
        if target == "authenticated":
            session = Session(target, identity, principal, None)
        elif target == "unauthenticated":
            session = Session(target, None, None, last_error)
        else:
            session = replace(self._session, state=target, last_error=None)
        self._session = session
        self._log.debug("Session %s -> %s", current, target)
        for listener in list(self._listeners):
            listener(session)


__all__ = [
    "INIT_FAILED",
    "LOGIN_CRASHED",
    "LOGIN_FAILED",
    "Session",
    "SessionManager",
    "SessionState",
]
