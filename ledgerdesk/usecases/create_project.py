from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ledgerdesk.domain.entities import FinancialProject, ProjectInput, Role
from ledgerdesk.domain.ledger_cache import MY_PROJECTS, PROJECTS
from ledgerdesk.domain.ports import LedgerPort, PreconditionFailed
from ledgerdesk.domain.validation import validate_project_input
from ledgerdesk.usecases.refresh_caches import RefreshCaches


@dataclass
class CreateProject:
    ledger: LedgerPort
    refresh: RefreshCaches

    async def __call__(self, *, role: Optional[Role], data: ProjectInput) -> FinancialProject:
        if role != "Requester":
            raise PreconditionFailed("ROLE_REQUIRED", "Only requesters can create projects.")
        errors = validate_project_input(data)
        if errors:
            raise PreconditionFailed("INVALID_PROJECT", "; ".join(errors))
        return await self.refresh.submit(
            self.ledger.create_project(data),
            affected=(PROJECTS, MY_PROJECTS),
            code="CREATE_PROJECT_FAILED",
        )
