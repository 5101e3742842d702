from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal

from ..domain.ports import BackendRejected, PreconditionFailed, TransportFailed, UseCaseError

OutcomeStatus = Literal[
    "succeeded",
    "rejected_locally",
    "rejected_by_backend",
    "transport_failed",
    "stale_session",
]


@dataclass(frozen=True)
class OperationOutcome:
    """Reportable result of one orchestrated operation."""

    status: OutcomeStatus
    code: str = ""
    message: str = ""
    value: Any = None

    @property
    def ok(self) -> bool:
        return self.status == "succeeded"

    @classmethod
    def success(cls, value: Any = None) -> "OperationOutcome":
        return cls("succeeded", value=value)

    @classmethod
    def from_error(cls, exc: UseCaseError) -> "OperationOutcome":
        if isinstance(exc, PreconditionFailed):
            status: OutcomeStatus = "rejected_locally"
        elif isinstance(exc, BackendRejected):
            status = "rejected_by_backend"
        elif isinstance(exc, TransportFailed):
            status = "transport_failed"
        else:
            status = "rejected_locally"
        return cls(status, exc.code, exc.message)


STALE_SESSION = OperationOutcome(
    "stale_session",
    "STALE_SESSION",
    "The signed-in identity changed before the operation completed.",
)

__all__ = ["OperationOutcome", "OutcomeStatus", "STALE_SESSION"]
