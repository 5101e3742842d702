"""Root logging setup for ledgerdesk.

The root level follows the ``debug_logging`` setting unless the environment
pins it (``LEDGERDESK_LOG_LEVEL`` wins over a truthy ``LEDGERDESK_DEBUG``).
``httpx`` logs every request at INFO, so its transport loggers sit at WARNING
unless the root level is DEBUG.
"""

from __future__ import annotations

import logging
import os
from typing import Optional, Union

_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
_DATEFMT = "%H:%M:%S"
_TRUTHY = frozenset({"1", "true", "yes", "on"})
_TRANSPORT_LOGGERS = ("httpx", "httpcore")


def env_truthy(value: Optional[str]) -> bool:
    return value is not None and value.strip().lower() in _TRUTHY


def _parse_level(text: str) -> Optional[int]:
    text = text.strip()
    if text.isdigit():
        return int(text)
    level = logging.getLevelName(text.upper())
    return level if isinstance(level, int) else None


def _env_override() -> Optional[int]:
    raw = os.getenv("LEDGERDESK_LOG_LEVEL", "")
    if raw.strip():
        level = _parse_level(raw)
        return logging.INFO if level is None else level
    if env_truthy(os.getenv("LEDGERDESK_DEBUG")):
        return logging.DEBUG
    return None


def _install(preferred: int) -> int:
    override = _env_override()
    level = preferred if override is None else override
    logging.getLogger().setLevel(level)
    transport = logging.DEBUG if level <= logging.DEBUG else logging.WARNING
    for name in _TRANSPORT_LOGGERS:
        logging.getLogger(name).setLevel(transport)
    return level


def configure_root(default_level: Union[int, str] = logging.INFO) -> int:
    """Attach a compact handler once and return the effective root level."""
    if not logging.getLogger().handlers:
        logging.basicConfig(format=_FORMAT, datefmt=_DATEFMT)
    if isinstance(default_level, str):
        parsed = _parse_level(default_level)
        default_level = logging.INFO if parsed is None else parsed
    return _install(default_level)


def apply_preferences(debug_enabled: bool) -> int:
    return _install(logging.DEBUG if debug_enabled else logging.INFO)


def env_debug() -> bool:
    """True when the environment forces DEBUG regardless of settings."""
    override = _env_override()
    return override is not None and override <= logging.DEBUG


__all__ = ["apply_preferences", "configure_root", "env_debug", "env_truthy"]
