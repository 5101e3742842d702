"""Translate adapter errors and ledger results into UseCaseError instances."""

from __future__ import annotations

from typing import Optional, TypeVar

from ledgerdesk.adapters.api_errors import (
    ApiClientError,
    ApiDecodeError,
    ApiError,
    ApiServerError,
    ApiTimeoutError,
)
from ledgerdesk.domain.ports import BackendRejected, TransportFailed, UseCaseError
from ledgerdesk.domain.result import Err, LedgerResult, Ok

T = TypeVar("T")


def map_api_error(
    exc: Exception,
    *,
    default_code: str,
    default_message: Optional[str] = None,
) -> UseCaseError:
    """Map adapter exceptions to stable UseCaseError codes.

    Every non-``UseCaseError`` exception is a transport failure: no ledger
    answer was obtained, so the backend effect is unknown.
    """
    if isinstance(exc, UseCaseError):
        return exc
    if isinstance(exc, ApiTimeoutError):
        return TransportFailed("REQUEST_TIMEOUT", "Request timed out. Check connection.")
    if isinstance(exc, ApiClientError):
        status = exc.status or 0
        if status in (401, 403):
            return TransportFailed("AUTH_FAILED", "Ledger rejected the caller identity.")
        label = f"Request failed (HTTP {status})" if status else "Request failed"
        return TransportFailed("REQUEST_FAILED", f"{label}.")
    if isinstance(exc, ApiServerError):
        return TransportFailed("SERVER_ERROR", "Ledger error, try again.")
    if isinstance(exc, ApiDecodeError):
        return TransportFailed("BAD_RESPONSE", str(exc))
    if isinstance(exc, ApiError):
        return TransportFailed("API_ERROR", str(exc))

    message = default_message or str(exc) or "Unexpected error."
    return TransportFailed(default_code, message)


def unwrap_result(result: LedgerResult[T]) -> T:
    """Return the ``Ok`` payload or raise ``BackendRejected`` with the verbatim message."""
    if isinstance(result, Ok):
        return result.value
    if isinstance(result, Err):
        raise BackendRejected(result.message)
    raise TypeError(f"Expected Ok or Err, got {type(result).__name__}")


__all__ = ["map_api_error", "unwrap_result"]
