"""Domain value objects shared across adapters, use-cases, and view models.

Backend records use two encodings that are translated here exactly once:
optional fields arrive as ``[]`` / ``[value]`` and closed variants arrive as
single-key objects such as ``{"Client": null}``. Everything past this module
works with ``Optional`` values and plain string literals.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, FrozenSet, Iterable, List, Literal, Mapping, Optional, Tuple

Role = Literal["Requester", "Provider"]
VerificationStatus = Literal["Pending", "Verified", "Rejected"]
ExperienceLevel = Literal["Beginner", "Intermediate", "Expert", "Master"]
ProposalStatus = Literal["active", "ended"]

ROLES: Tuple[Role, ...] = ("Requester", "Provider")
VERIFICATION_STATUSES: Tuple[VerificationStatus, ...] = ("Pending", "Verified", "Rejected")
EXPERIENCE_LEVELS: Tuple[ExperienceLevel, ...] = ("Beginner", "Intermediate", "Expert", "Master")

# Backend variant tags -> domain role names.
_WIRE_ROLES = {
    "Client": "Requester",
    "Creative": "Provider",
    "Requester": "Requester",
    "Provider": "Provider",
}
_ROLE_TO_WIRE = {"Requester": "Client", "Provider": "Creative"}


def unwrap_optional(value: Any) -> Any:
    """Turn the ``[]`` / ``[x]`` optional encoding into ``None`` / ``x``."""
    if isinstance(value, (list, tuple)):
        if not value:
            return None
        if len(value) == 1:
            return value[0]
        raise ValueError("Optional encoding must hold at most one value.")
    return value


def wrap_optional(value: Any) -> List[Any]:
    return [] if value is None else [value]


def variant_tag(value: Any) -> Optional[str]:
    """Return the tag of a ``{"Tag": null}`` variant, or the string itself."""
    if value is None:
        return None
    if isinstance(value, str):
        return value.strip() or None
    if isinstance(value, Mapping) and len(value) == 1:
        return str(next(iter(value.keys())))
    raise ValueError(f"Unsupported variant encoding: {value!r}")


def parse_role(value: Any) -> Role:
    tag = variant_tag(value)
    role = _WIRE_ROLES.get(tag or "")
    if role is None:
        raise ValueError(f"Unknown role: {value!r}")
    return role  # type: ignore[return-value]


def role_to_wire(role: Role) -> dict:
    return {_ROLE_TO_WIRE[role]: None}


def _as_int(value: Any, name: str) -> int:
    if isinstance(value, bool):
        raise ValueError(f"{name} must be an integer.")
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        return int(value.strip())
    raise ValueError(f"{name} must be an integer, got {value!r}.")


def _text(payload: Mapping[str, Any], *keys: str, default: str = "") -> str:
    for key in keys:
        if key in payload and payload[key] is not None:
            return str(payload[key])
    return default


def _texts(values: Any) -> Tuple[str, ...]:
    if not values:
        return ()
    return tuple(str(item) for item in values)


@dataclass(frozen=True)
class Principal:
    """Stable identifier of a caller as issued by the identity provider."""

    value: str

    def __post_init__(self) -> None:
        if not isinstance(self.value, str) or not self.value.strip():
            raise ValueError("Principal must be a non-empty string.")

    def __str__(self) -> str:
        return self.value

    @property
    def is_anonymous(self) -> bool:
        return self.value == ANONYMOUS_PRINCIPAL_TEXT

    @classmethod
    def from_payload(cls, raw: Any) -> "Principal":
        if isinstance(raw, Principal):
            return raw
        if isinstance(raw, Mapping):
            raw = raw.get("__principal__") or raw.get("principal")
        return cls(str(raw or "").strip())


ANONYMOUS_PRINCIPAL_TEXT = "2vxsx-fae"
ANONYMOUS_PRINCIPAL = Principal(ANONYMOUS_PRINCIPAL_TEXT)


@dataclass(frozen=True)
class RequesterInfo:
    company_name: str
    industry: str
    website: str

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "RequesterInfo":
        return cls(
            company_name=_text(payload, "companyName", "company_name"),
            industry=_text(payload, "industry"),
            website=_text(payload, "website"),
        )

    def to_payload(self) -> dict:
        return {
            "companyName": self.company_name,
            "industry": self.industry,
            "website": self.website,
        }


@dataclass(frozen=True)
class ProviderInfo:
    specializations: Tuple[str, ...]
    experience_level: Optional[ExperienceLevel]
    portfolio_links: Tuple[str, ...] = ()
    hourly_rate: Optional[int] = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "ProviderInfo":
        level = variant_tag(payload.get("experienceLevel", payload.get("experience_level")))
        if level is not None and level not in EXPERIENCE_LEVELS:
            raise ValueError(f"Unknown experience level: {level!r}")
        rate = unwrap_optional(payload.get("hourlyRate", payload.get("hourly_rate")))
        return cls(
            specializations=_texts(payload.get("specializations")),
            experience_level=level,  # type: ignore[arg-type]
            portfolio_links=_texts(payload.get("portfolioLinks", payload.get("portfolio_links"))),
            hourly_rate=None if rate is None else _as_int(rate, "hourlyRate"),
        )

    def to_payload(self) -> dict:
        return {
            "specializations": list(self.specializations),
            "experienceLevel": {self.experience_level: None} if self.experience_level else None,
            "portfolioLinks": list(self.portfolio_links),
            "hourlyRate": wrap_optional(self.hourly_rate),
        }


@dataclass(frozen=True)
class Profile:
    username: str
    bio: str
    links: Tuple[str, ...] = ()

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "Profile":
        return cls(
            username=_text(payload, "username"),
            bio=_text(payload, "bio"),
            links=_texts(payload.get("socialLinks", payload.get("links"))),
        )

    def to_payload(self) -> dict:
        return {"username": self.username, "bio": self.bio, "socialLinks": list(self.links)}


@dataclass(frozen=True)
class RoleAccount:
    """Role-bearing account record created server-side on registration."""

    principal: Principal
    role: Role
    requester_info: Optional[RequesterInfo] = None
    provider_info: Optional[ProviderInfo] = None
    profile: Optional[Profile] = None
    verification_status: VerificationStatus = "Pending"

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "RoleAccount":
        if not isinstance(payload, Mapping):
            raise ValueError("Account payload must be an object.")
        requester = unwrap_optional(payload.get("clientInfo", payload.get("requester_info")))
        provider = unwrap_optional(payload.get("creativeInfo", payload.get("provider_info")))
        profile = unwrap_optional(payload.get("profile"))
        status = variant_tag(payload.get("verificationStatus", payload.get("verification_status")))
        if status is None:
            status = "Pending"
        if status not in VERIFICATION_STATUSES:
            raise ValueError(f"Unknown verification status: {status!r}")
        return cls(
            principal=Principal.from_payload(payload.get("principal")),
            role=parse_role(payload.get("role")),
            requester_info=RequesterInfo.from_payload(requester) if requester else None,
            provider_info=ProviderInfo.from_payload(provider) if provider else None,
            profile=Profile.from_payload(profile) if profile else None,
            verification_status=status,  # type: ignore[arg-type]
        )


@dataclass(frozen=True)
class FinancialProject:
    """Backend-owned project record; the client only caches it read-through."""

    id: int
    title: str
    description: str
    budget: int
    owner: Principal
    applicants: FrozenSet[Principal] = frozenset()
    selected_provider: Optional[Principal] = None
    is_completed: bool = False

    def has_applicant(self, principal: Principal) -> bool:
        return principal in self.applicants

    def is_owned_by(self, principal: Optional[Principal]) -> bool:
        return principal is not None and self.owner == principal

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "FinancialProject":
        selected = unwrap_optional(
            payload.get("selectedCreative", payload.get("selected_provider"))
        )
        return cls(
            id=_as_int(payload.get("id"), "id"),
            title=_text(payload, "title"),
            description=_text(payload, "description"),
            budget=_as_int(payload.get("budget", 0), "budget"),
            owner=Principal.from_payload(payload.get("owner")),
            applicants=frozenset(
                Principal.from_payload(item) for item in payload.get("applicants") or ()
            ),
            selected_provider=Principal.from_payload(selected) if selected else None,
            is_completed=bool(payload.get("isCompleted", payload.get("is_completed", False))),
        )


@dataclass(frozen=True)
class Proposal:
    id: int
    title: str
    description: str
    proposer: Principal
    voting_deadline: int
    votes_for: int = 0
    votes_against: int = 0
    is_executed: bool = False
    is_active: bool = True

    def status(self, now: float) -> ProposalStatus:
        """Derived from the deadline on every read, never stored."""
        return "ended" if self.voting_deadline < now else "active"

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "Proposal":
        return cls(
            id=_as_int(payload.get("id"), "id"),
            title=_text(payload, "title"),
            description=_text(payload, "description"),
            proposer=Principal.from_payload(payload.get("proposer")),
            voting_deadline=_as_int(
                payload.get("votingDeadline", payload.get("voting_deadline", 0)),
                "votingDeadline",
            ),
            votes_for=_as_int(payload.get("votesFor", payload.get("votes_for", 0)), "votesFor"),
            votes_against=_as_int(
                payload.get("votesAgainst", payload.get("votes_against", 0)), "votesAgainst"
            ),
            is_executed=bool(payload.get("isExecuted", payload.get("is_executed", False))),
            is_active=bool(payload.get("isActive", payload.get("is_active", True))),
        )


@dataclass(frozen=True)
class ProjectInput:
    title: str
    description: str
    budget: int

    def to_payload(self) -> dict:
        return {"title": self.title, "description": self.description, "budget": int(self.budget)}


@dataclass(frozen=True)
class ProposalInput:
    title: str
    description: str
    voting_duration_hours: int = 72

    def to_payload(self) -> dict:
        return {
            "title": self.title,
            "description": self.description,
            "votingDurationHours": int(self.voting_duration_hours),
        }


@dataclass(frozen=True)
class RegistrationInput:
    role: Role
    requester_info: Optional[RequesterInfo] = None
    provider_info: Optional[ProviderInfo] = None
    profile: Optional[Profile] = None

    def to_payload(self) -> dict:
        return {
            "role": role_to_wire(self.role),
            "clientInfo": wrap_optional(
                self.requester_info.to_payload() if self.requester_info else None
            ),
            "creativeInfo": wrap_optional(
                self.provider_info.to_payload() if self.provider_info else None
            ),
            "profile": wrap_optional(self.profile.to_payload() if self.profile else None),
        }


def principals_from_payload(values: Optional[Iterable[Any]]) -> List[Principal]:
    return [Principal.from_payload(item) for item in values or ()]


__all__ = [
    "ANONYMOUS_PRINCIPAL",
    "EXPERIENCE_LEVELS",
    "ExperienceLevel",
    "FinancialProject",
    "Principal",
    "Profile",
    "ProjectInput",
    "Proposal",
    "ProposalInput",
    "ProposalStatus",
    "ProviderInfo",
    "ROLES",
    "RegistrationInput",
    "RequesterInfo",
    "Role",
    "RoleAccount",
    "VERIFICATION_STATUSES",
    "VerificationStatus",
    "parse_role",
    "principals_from_payload",
    "role_to_wire",
    "unwrap_optional",
    "variant_tag",
    "wrap_optional",
]
