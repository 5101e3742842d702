from __future__ import annotations

import logging

import pytest

from ledgerdesk.utils import logging as logging_utils


@pytest.fixture(autouse=True)
def _restore_levels(monkeypatch):
    monkeypatch.delenv("LEDGERDESK_LOG_LEVEL", raising=False)
    monkeypatch.delenv("LEDGERDESK_DEBUG", raising=False)
    loggers = [logging.getLogger(), logging.getLogger("httpx"), logging.getLogger("httpcore")]
    levels = [logger.level for logger in loggers]
    yield
    for logger, level in zip(loggers, levels):
        logger.setLevel(level)


def test_preferences_toggle_debug() -> None:
    assert logging_utils.apply_preferences(True) == logging.DEBUG
    assert logging.getLogger().level == logging.DEBUG
    assert logging_utils.apply_preferences(False) == logging.INFO


def test_transport_loggers_only_follow_debug() -> None:
    logging_utils.apply_preferences(False)
    assert logging.getLogger("httpx").level == logging.WARNING

    logging_utils.apply_preferences(True)
    assert logging.getLogger("httpx").level == logging.DEBUG
    assert logging.getLogger("httpcore").level == logging.DEBUG


def test_explicit_level_overrides_preferences(monkeypatch) -> None:
    monkeypatch.setenv("LEDGERDESK_LOG_LEVEL", "warning")

    assert logging_utils.apply_preferences(True) == logging.WARNING
    assert logging_utils.configure_root() == logging.WARNING
    assert not logging_utils.env_debug()


def test_debug_flag_forces_debug(monkeypatch) -> None:
    monkeypatch.setenv("LEDGERDESK_DEBUG", "on")

    assert logging_utils.env_debug()
    assert logging_utils.apply_preferences(False) == logging.DEBUG


def test_unknown_level_name_falls_back(monkeypatch) -> None:
    monkeypatch.setenv("LEDGERDESK_LOG_LEVEL", "chatty")

    assert logging_utils.configure_root() == logging.INFO
    assert logging_utils.configure_root("ERROR") == logging.INFO


def test_default_level_without_env() -> None:
    assert logging_utils.configure_root("ERROR") == logging.ERROR
    assert logging_utils.env_truthy(" Yes ")
    assert not logging_utils.env_truthy(None)


def test_explicit_level_wins_over_debug_flag(monkeypatch) -> None:
    monkeypatch.setenv("LEDGERDESK_DEBUG", "1")
    monkeypatch.setenv("LEDGERDESK_LOG_LEVEL", "10")

    assert logging_utils.configure_root() == logging.DEBUG
    assert logging.getLogger("httpx").level == logging.DEBUG

    monkeypatch.setenv("LEDGERDESK_LOG_LEVEL", "error")
    assert logging_utils.apply_preferences(True) == logging.ERROR
    assert logging.getLogger("httpcore").level == logging.WARNING
    assert not logging_utils.env_debug()
