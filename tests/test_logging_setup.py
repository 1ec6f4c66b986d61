# ruff: noqa: E501
from __future__ import annotations

import logging

import pytest

from fiscal_ledger.logging_setup import configure_logging, get_logger


@pytest.fixture()
def pkg_logger():
    logger = logging.getLogger("fiscal_ledger")
    saved = (list(logger.handlers), logger.level, logger.propagate)
    yield logger
    logger.handlers[:] = saved[0]
    logger.setLevel(saved[1])
    logger.propagate = saved[2]


def _stderr_handlers(logger: logging.Logger) -> list[logging.Handler]:
    return [h for h in logger.handlers if h.get_name() == "fiscal_ledger.stderr"]


def test_configure_logging_reads_level_from_env(pkg_logger, monkeypatch: pytest.MonkeyPatch):
    pkg_logger.handlers.clear()
    get_logger("fiscal_ledger.test")
    monkeypatch.setenv("FISCAL_LEDGER_LOG_LEVEL", "debug")

    configure_logging()
    configure_logging()

    assert pkg_logger.level == logging.DEBUG
    assert len(_stderr_handlers(pkg_logger)) == 1
    assert not any(isinstance(h, logging.NullHandler) for h in pkg_logger.handlers)
    assert pkg_logger.propagate is False


@pytest.mark.parametrize(("raw", "expected"), [("15", 15), ("nonsense", logging.INFO), ("", logging.INFO)])
def test_configure_logging_level_fallbacks(pkg_logger, monkeypatch: pytest.MonkeyPatch, raw, expected):
    pkg_logger.handlers.clear()
    monkeypatch.setenv("FISCAL_LEDGER_LOG_LEVEL", raw)

    configure_logging()

    assert pkg_logger.level == expected


def test_get_logger_is_silent_until_configured(pkg_logger):
    pkg_logger.handlers.clear()

    logger = get_logger("fiscal_ledger.ingest")

    assert logger.name == "fiscal_ledger.ingest"
    assert [type(h) for h in pkg_logger.handlers] == [logging.NullHandler]
