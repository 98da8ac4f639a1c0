import logging

import pytest

from core import logger as log_setup


@pytest.fixture
def fresh_logging(monkeypatch):
    root = logging.getLogger()
    saved = {name: logging.getLogger(name).level for name in log_setup.NOISY_LOGGERS}
    saved_root = root.level
    monkeypatch.setattr(log_setup, "_configured", False)
    monkeypatch.setenv("LOG_TO_FILE", "false")
    yield
    root.setLevel(saved_root)
    for name, level in saved.items():
        logging.getLogger(name).setLevel(level)


def test_debug_level_keeps_http_libraries_quiet(fresh_logging, monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "debug")

    log_setup.setup_logging()

    assert logging.getLogger().level == logging.DEBUG
    for name in log_setup.NOISY_LOGGERS:
        assert logging.getLogger(name).level == logging.WARNING
    assert not logging.getLogger("urllib3").isEnabledFor(logging.DEBUG)


def test_stricter_level_applies_to_http_libraries_too(fresh_logging, monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "ERROR")

    log_setup.setup_logging()

    assert logging.getLogger("urllib3").level == logging.ERROR


def test_unknown_level_falls_back_to_info(fresh_logging, monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "chatty")

    log_setup.setup_logging()

    assert logging.getLogger().level == logging.INFO


@pytest.mark.parametrize("value, expected", [("true", True), ("YES", True), ("1", True), ("false", False), ("", False)])
def test_env_flag(monkeypatch, value, expected):
    monkeypatch.setenv("SCRAPER_TEST_FLAG", value)
    assert log_setup._env_flag("SCRAPER_TEST_FLAG", "false") is expected


def test_get_logger_returns_named_logger():
    assert log_setup.get_logger("extraction.collector").name == "extraction.collector"
