from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Union

from ledgerdesk.domain.entities import ANONYMOUS_PRINCIPAL, Principal
from ledgerdesk.domain.ports import IdentityProviderPort, LoginOptions


@dataclass(frozen=True)
class StaticIdentity:
    """Identity handle with a fixed principal and optional delegation token."""

    principal: Principal
    delegation: Optional[str] = None

    def get_principal(self) -> Principal:
        return self.principal

    def get_delegation(self) -> Optional[str]:
        return self.delegation


ANONYMOUS_IDENTITY = StaticIdentity(ANONYMOUS_PRINCIPAL)


@dataclass
class InMemoryIdentityProvider(IdentityProviderPort):
    """Offline identity provider for tests and local development.

    ``pending`` lists the outcomes of upcoming ``login`` calls: a principal
    signs in, a string is delivered to ``on_error``. Callbacks fire on the
    next loop iteration to mimic the out-of-band flow.
    """

    restored: Optional[StaticIdentity] = None
    pending: List[Union[StaticIdentity, str]] = field(default_factory=list)
    logout_error: Optional[Exception] = None

    def __post_init__(self) -> None:
        self._identity: Optional[StaticIdentity] = self.restored
        self.login_calls: List[LoginOptions] = []
        self.logout_calls = 0

    async def is_authenticated(self) -> bool:
        return self._identity is not None

    def get_identity(self) -> StaticIdentity:
        return self._identity or ANONYMOUS_IDENTITY

    def login(
        self,
        options: LoginOptions,
        on_success: Callable[[], None],
        on_error: Callable[[str], None],
    ) -> None:
        self.login_calls.append(options)
        loop = asyncio.get_running_loop()
        if not self.pending:
            loop.call_soon(on_error, "UserInterrupt")
            return
        outcome = self.pending.pop(0)
        if isinstance(outcome, str):
            loop.call_soon(on_error, outcome)
            return

        def _complete() -> None:
            self._identity = outcome
            on_success()

        loop.call_soon(_complete)

    async def logout(self) -> None:
        self.logout_calls += 1
        self._identity = None
        if self.logout_error is not None:
            raise self.logout_error


__all__ = ["ANONYMOUS_IDENTITY", "InMemoryIdentityProvider", "StaticIdentity"]
