"""Domain package exports for value objects and aggregates."""

from .entities import (
    ANONYMOUS_PRINCIPAL,
    FinancialProject,
    Principal,
    Profile,
    ProjectInput,
    Proposal,
    ProposalInput,
    ProviderInfo,
    RegistrationInput,
    RequesterInfo,
    Role,
    RoleAccount,
)
from .result import Err, LedgerResult, Ok

__all__ = [
    "ANONYMOUS_PRINCIPAL",
    "Err",
    "FinancialProject",
    "LedgerResult",
    "Ok",
    "Principal",
    "Profile",
    "ProjectInput",
    "Proposal",
    "ProposalInput",
    "ProviderInfo",
    "RegistrationInput",
    "RequesterInfo",
    "Role",
    "RoleAccount",
]
