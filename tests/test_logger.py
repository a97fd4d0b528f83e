import logging

from pagewriter import logger as logger_module
from pagewriter.logger import LOG_LEVEL_ENV, get_logger


def test_get_logger_returns_named_logger():
    log = get_logger("pagewriter.docs.store")
    assert log.name == "pagewriter.docs.store"
    assert logging.getLogger().handlers


def test_level_comes_from_environment(monkeypatch):
    monkeypatch.setenv(LOG_LEVEL_ENV, "debug")
    assert logger_module._level_from_env() == logging.DEBUG
    monkeypatch.setenv(LOG_LEVEL_ENV, "chatty")
    assert logger_module._level_from_env() == logging.INFO
    monkeypatch.delenv(LOG_LEVEL_ENV)
    assert logger_module._level_from_env() == logging.INFO
