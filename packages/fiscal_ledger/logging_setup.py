"""Logging for ``fiscal_ledger``.

Library modules call ``get_logger("fiscal_ledger.<module>")`` and stay silent
until an entrypoint calls ``configure_logging()``; the CLI does so once from
its root callback. Verbosity comes from ``FISCAL_LEDGER_LOG_LEVEL`` (level
name or number, default ``INFO``). Output goes to stderr so it never mixes
with the tab-separated tables the CLI prints on stdout.
"""

from __future__ import annotations

import logging
import os

_PKG_LOGGER_NAME = "fiscal_ledger"
_HANDLER_NAME = "fiscal_ledger.stderr"
_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"


def _level_from_env() -> int:
    raw = (os.getenv("FISCAL_LEDGER_LOG_LEVEL") or "").strip().upper()
    if raw.isdigit():
        return int(raw)
    level = logging.getLevelNamesMapping().get(raw)
    return level if level is not None else logging.INFO


def configure_logging() -> None:
    """Send package logs to stderr at the level set in the environment.

    Calling it again is a no-op: the handler is found by name on the package
    logger.
    """

    logger = logging.getLogger(_PKG_LOGGER_NAME)
    if any(h.get_name() == _HANDLER_NAME for h in logger.handlers):
        return

    for h in list(logger.handlers):
        if isinstance(h, logging.NullHandler):
            logger.removeHandler(h)

    handler = logging.StreamHandler()
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(logging.Formatter(_FORMAT))

    logger.setLevel(_level_from_env())
    logger.addHandler(handler)
    logger.propagate = False


def get_logger(name: str) -> logging.Logger:
    pkg_logger = logging.getLogger(_PKG_LOGGER_NAME)
    if not pkg_logger.handlers:
        pkg_logger.addHandler(logging.NullHandler())
    return logging.getLogger(name)


__all__ = ["configure_logging", "get_logger"]
