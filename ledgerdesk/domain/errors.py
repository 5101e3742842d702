"""Domain-level error types for use-case and adapter mapping.

This module holds shared domain errors that must cross layer boundaries
without leaking transport-specific exception details.
"""
from __future__ import annotations


class LedgerConfigError(ValueError):
    """Raised when an authenticated ledger client cannot be constructed."""


class InvalidSessionTransition(RuntimeError):
    """Raised when the session state machine is asked for a forbidden move."""

    def __init__(self, current: str, target: str) -> None:
        super().__init__(f"Invalid session transition: {current} -> {target}")
        self.current = current
        self.target = target
