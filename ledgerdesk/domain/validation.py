"""Input validation for registration, projects, and proposals.

Each validator returns a list of human-readable messages; an empty list means
the input may be submitted.
"""

from __future__ import annotations

from typing import List, Optional

from .entities import (
    EXPERIENCE_LEVELS,
    ProjectInput,
    ProposalInput,
    ProviderInfo,
    RegistrationInput,
    RequesterInfo,
)


def _blank(value: Optional[str]) -> bool:
    return not value or not value.strip()


def validate_requester_info(info: Optional[RequesterInfo]) -> List[str]:
    if info is None:
        return ["Client information is required"]
    errors: List[str] = []
    if _blank(info.company_name):
        errors.append("Company name is required")
    if _blank(info.industry):
        errors.append("Industry is required")
    if _blank(info.website):
        errors.append("Website is required")
    return errors


def validate_provider_info(info: Optional[ProviderInfo]) -> List[str]:
    if info is None:
        return ["Creative information is required"]
    errors: List[str] = []
    if not info.specializations:
        errors.append("At least one specialization is required")
    if info.experience_level not in EXPERIENCE_LEVELS:
        errors.append("Experience level is required")
    if info.hourly_rate is not None and info.hourly_rate < 0:
        errors.append("Hourly rate must not be negative")
    return errors


def validate_registration(data: RegistrationInput) -> List[str]:
    errors: List[str] = []
    if data.profile is not None:
        if _blank(data.profile.username):
            errors.append("Username is required")
        if _blank(data.profile.bio):
            errors.append("Bio is required")
    if data.role == "Requester":
        errors.extend(validate_requester_info(data.requester_info))
    elif data.role == "Provider":
        errors.extend(validate_provider_info(data.provider_info))
    else:
        errors.append(f"Unknown role: {data.role}")
    return errors


def validate_project_input(data: ProjectInput) -> List[str]:
    errors: List[str] = []
    if _blank(data.title):
        errors.append("Project title is required")
    if _blank(data.description):
        errors.append("Project description is required")
    if data.budget <= 0:
        errors.append("Project budget must be greater than 0")
    return errors


def validate_proposal_input(data: ProposalInput) -> List[str]:
    errors: List[str] = []
    if _blank(data.title):
        errors.append("Proposal title is required")
    if _blank(data.description):
        errors.append("Proposal description is required")
    if data.voting_duration_hours <= 0:
        errors.append("Voting duration must be greater than 0")
    return errors


__all__ = [
    "validate_project_input",
    "validate_proposal_input",
    "validate_provider_info",
    "validate_registration",
    "validate_requester_info",
]
