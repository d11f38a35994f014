"""Logging utilities for ci-status commands."""

from __future__ import annotations

import logging
from pathlib import Path

_LOGGER_NAME = "ci_status"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a module-scoped logger under the ci_status hierarchy."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


def configure_logging(
    *,
    verbose: bool = False,
    silent: bool = False,
    log_file: Path | None = None,
) -> logging.Logger:
    """Configure the ci_status logger with stderr output and an optional file sink.

    ``silent`` wins over ``verbose``: only errors are emitted so that CI logs
    stay clean when reporting is expected to be a no-op.
    """
    if silent:
        level = logging.ERROR
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.INFO
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    # Drop handlers from an earlier call so records are not emitted twice.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(level)
    stream_handler.setFormatter(logging.Formatter("[ci-status] %(levelname)s %(message)s"))
    logger.addHandler(stream_handler)

    if log_file is not None:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
        logger.addHandler(file_handler)

    return logger


__all__ = ["configure_logging", "get_logger"]
