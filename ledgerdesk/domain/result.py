"""Tagged result type returned by every ledger operation.

The backend answers with ``{"ok": value}`` or ``{"err": message}`` instead of
raising. Adapters convert that wire shape into :class:`Ok` or :class:`Err`
once, so callers branch on the variant type rather than probing dict keys.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Generic, Mapping, TypeVar, Union

T = TypeVar("T")
R = TypeVar("R")


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful backend answer carrying the decoded payload."""

    value: T


@dataclass(frozen=True)
class Err:
    """Well-formed backend rejection; ``message`` is kept verbatim."""

    message: str

    def __str__(self) -> str:
        return self.message


LedgerResult = Union[Ok[T], Err]


def is_ok(result: "LedgerResult[Any]") -> bool:
    return isinstance(result, Ok)


def fold(
    result: "LedgerResult[T]",
    on_ok: Callable[[T], R],
    on_err: Callable[[str], R],
) -> R:
    """Branch on the result variant; any other object is a programming error."""
    if isinstance(result, Ok):
        return on_ok(result.value)
    if isinstance(result, Err):
        return on_err(result.message)
    raise TypeError(f"Expected Ok or Err, got {type(result).__name__}")


def unwrap_or(result: "LedgerResult[T]", default: T) -> T:
    return fold(result, lambda value: value, lambda _message: default)


def result_from_payload(
    payload: Any,
    decode: Callable[[Any], T] = lambda value: value,
) -> "LedgerResult[T]":
    """Decode a ``{"ok": ...}`` / ``{"err": ...}`` mapping.

    Raises:
        ValueError: If the payload is not a mapping with exactly one of the
            two variant keys.
    """
    if not isinstance(payload, Mapping):
        raise ValueError("Result payload must be an object.")
    has_ok = "ok" in payload
    has_err = "err" in payload
    if has_ok == has_err:
        raise ValueError("Result payload must contain exactly one of 'ok' or 'err'.")
    if has_ok:
        return Ok(decode(payload["ok"]))
    return Err(_error_text(payload["err"]))


def _error_text(raw: Any) -> str:
    # Variant errors arrive as {"AlreadyApplied": null}; keep the tag name.
    if isinstance(raw, str):
        return raw
    if isinstance(raw, Mapping) and len(raw) == 1:
        key, value = next(iter(raw.items()))
        if value is None:
            return str(key)
        return f"{key}: {value}"
    return str(raw)


__all__ = [
    "Err",
    "LedgerResult",
    "Ok",
    "fold",
    "is_ok",
    "result_from_payload",
    "unwrap_or",
]
