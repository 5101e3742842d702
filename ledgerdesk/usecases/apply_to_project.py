from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ledgerdesk.domain.entities import Role
from ledgerdesk.domain.ledger_cache import MY_APPLICATIONS, PROJECTS
from ledgerdesk.domain.ports import LedgerPort, PreconditionFailed, ProjectId
from ledgerdesk.usecases.refresh_caches import RefreshCaches


@dataclass
class ApplyToProject:
    ledger: LedgerPort
    refresh: RefreshCaches

    async def __call__(self, *, role: Optional[Role], project_id: ProjectId) -> None:
        if role != "Provider":
            raise PreconditionFailed("ROLE_REQUIRED", "Only providers can apply to projects.")
        if self._already_applied(project_id):
            raise PreconditionFailed(
                "ALREADY_APPLIED", "You have already applied to this project."
            )
        await self.refresh.submit(
            self.ledger.apply_to_project(project_id),
            affected=(PROJECTS, MY_APPLICATIONS),
            code="APPLY_FAILED",
        )

    def _already_applied(self, project_id: ProjectId) -> bool:
        cache = self.refresh.cache
        principal = self.ledger.principal
        if any(project.id == project_id for project in cache.my_applications()):
            return True
        project = cache.project(project_id)
        return project is not None and project.has_applicant(principal)
