from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ledgerdesk.domain.entities import Principal, Role
from ledgerdesk.domain.ledger_cache import MY_PROJECTS, approved_key
from ledgerdesk.domain.ports import LedgerPort, PreconditionFailed, ProjectId
from ledgerdesk.usecases.refresh_caches import RefreshCaches


@dataclass
class ApproveApplicant:
    ledger: LedgerPort
    refresh: RefreshCaches

    async def __call__(
        self, *, role: Optional[Role], project_id: ProjectId, applicant: Principal
    ) -> None:
        if role != "Requester":
            raise PreconditionFailed("ROLE_REQUIRED", "Only requesters can approve applicants.")
        project = self.refresh.cache.project(project_id)
        if project is not None and not project.is_owned_by(self.ledger.principal):
            raise PreconditionFailed(
                "NOT_PROJECT_OWNER", "Only the project owner can approve applicants."
            )
        await self.refresh.submit(
            self.ledger.approve_applicant(project_id, applicant),
            affected=(approved_key(project_id), MY_PROJECTS),
            code="APPROVE_FAILED",
        )
