from __future__ import annotations

import logging

LOGGER_NAME = "csvrecords"


def get_logger(name: str | None = None) -> logging.Logger:
    if not name:
        return logging.getLogger(LOGGER_NAME)
    return logging.getLogger(f"{LOGGER_NAME}.{name}")


def configure_logging(level: int = logging.INFO) -> logging.Logger:
    """Attach a stderr handler to the package logger unless one is present."""
    logger = get_logger()
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("[csvrecords] %(message)s"))
        logger.addHandler(handler)
    logger.setLevel(level)
    return logger
