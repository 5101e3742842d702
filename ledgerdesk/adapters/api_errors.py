"""Transport-level error types raised by ledger adapters.

These never represent a business rejection: a well-formed ``{"err": ...}``
answer is returned as :class:`ledgerdesk.domain.result.Err`. Anything raised
from here means no ``Ok``/``Err`` answer could be obtained.
"""
from __future__ import annotations

from typing import Any, Optional


class ApiError(RuntimeError):
    """Base class for ledger transport failures."""

    def __init__(
        self,
        message: str,
        *,
        status: Optional[int] = None,
        code: Optional[str] = None,
        payload: Any = None,
        context: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.status = status
        self.code = code
        self.payload = payload
        self.context = context


class ApiClientError(ApiError):
    """HTTP 4xx from the ledger gateway."""


class ApiServerError(ApiError):
    """HTTP 5xx from the ledger gateway."""


class ApiTimeoutError(ApiError):
    """Timeout or connectivity failure before any answer arrived."""

    def __init__(self, message: str, *, context: Optional[str] = None) -> None:
        super().__init__(message, context=context)


class ApiDecodeError(ApiError):
    """The gateway answered, but the body did not match the expected shape."""

    def __init__(self, message: str, *, payload: Any = None, context: Optional[str] = None) -> None:
        super().__init__(message, payload=payload, context=context)


def parse_error_payload(resp: Any) -> Any:
    """Best-effort extraction of error payload without raising."""
    try:
        return resp.json()
    except ValueError:
        snippet = getattr(resp, "text", "")
        if not snippet:
            return None
        return snippet[:400]


def build_error_message(ctx: str, status: int, payload: Any) -> str:
    detail = first_string(payload)
    if detail:
        return f"{ctx}: {detail} (HTTP {status})"
    return f"{ctx}: HTTP {status}"


def extract_error_code(payload: Any) -> Optional[str]:
    if isinstance(payload, dict):
        for key in ("code", "error_code", "reject_code"):
            value = payload.get(key)
            if value is None:
                continue
            return value if isinstance(value, str) else str(value)
    return None


def first_string(payload: Any) -> Optional[str]:
    if isinstance(payload, str):
        text = payload.strip()
        return text or None
    if isinstance(payload, dict):
        for key in ("detail", "message", "reject_message", "error"):
            value = payload.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()
            if isinstance(value, (list, dict)):
                candidate = first_string(value)
                if candidate:
                    return candidate
    if isinstance(payload, list):
        for item in payload:
            candidate = first_string(item)
            if candidate:
                return candidate
    return None
