from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ledgerdesk.domain.entities import Principal, Role
from ledgerdesk.domain.ledger_cache import MY_PROJECTS, PROJECTS, escrow_key
from ledgerdesk.domain.ports import LedgerPort, PreconditionFailed, ProjectId
from ledgerdesk.usecases.refresh_caches import RefreshCaches


@dataclass
class ReleaseFunds:
    """Pay out a project's escrow to its selected provider.

    ``provider`` defaults to the project's ``selected_provider`` from the
    most recently listed copy of the project.
    """

    ledger: LedgerPort
    refresh: RefreshCaches

    async def __call__(
        self,
        *,
        role: Optional[Role],
        project_id: ProjectId,
        provider: Optional[Principal] = None,
    ) -> Principal:
        if role != "Requester":
            raise PreconditionFailed("ROLE_REQUIRED", "Only requesters can release funds.")
        cache = self.refresh.cache
        held = cache.escrow_balance(project_id)
        if held is not None and held <= 0:
            raise PreconditionFailed("NO_ESCROW_FUNDS", "There are no funds in escrow to release.")
        project = cache.project(project_id)
        target = provider or (project.selected_provider if project else None)
        if target is None:
            raise PreconditionFailed(
                "NO_PROVIDER_SELECTED", "Select a provider before releasing funds."
            )
        affected = [escrow_key(project_id), MY_PROJECTS]
        if cache.has(PROJECTS):
            affected.append(PROJECTS)
        await self.refresh.submit(
            self.ledger.release_funds(project_id, target),
            affected=affected,
            code="RELEASE_FAILED",
        )
        return target
