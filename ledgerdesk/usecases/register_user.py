from __future__ import annotations

from dataclasses import dataclass

from ledgerdesk.domain.entities import RegistrationInput, RoleAccount
from ledgerdesk.domain.ports import LedgerPort, PreconditionFailed
from ledgerdesk.domain.validation import validate_registration
from ledgerdesk.usecases.error_mapping import map_api_error, unwrap_result


@dataclass
class RegisterUser:
    ledger: LedgerPort

    async def __call__(self, data: RegistrationInput) -> RoleAccount:
        if self.ledger.principal.is_anonymous:
            raise PreconditionFailed("NOT_AUTHENTICATED", "Sign in before registering.")
        errors = validate_registration(data)
        if errors:
            raise PreconditionFailed("INVALID_REGISTRATION", "; ".join(errors))
        try:
            result = await self.ledger.register_user(data)
        except Exception as exc:
            raise map_api_error(
                exc,
                default_code="REGISTRATION_FAILED",
                default_message="Failed to register user.",
            ) from exc
        return unwrap_result(result)
