"""Centralized logging configuration."""

import logging

from config import settings

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s  %(message)s"

# Libraries that log every request or statement at INFO
NOISY_LOGGERS = (
    "sqlalchemy.engine",
    "sqlalchemy.pool",
    "httpx",
    "httpcore",
    "urllib3",
    "yfinance",
    "peewee",
    "keyring",
)


def setup_logging(level: str | None = None) -> None:
    """Configure logging for the scripts and any host application.

    Args:
        level: Overrides ``settings.LOG_LEVEL`` (e.g. a ``--log-level``
               command line flag). Case-insensitive.

    Raises:
        ValueError: ``level`` is not a standard logging level name.
    """
    name = (level or settings.LOG_LEVEL).upper()
    numeric = logging.getLevelName(name)
    if not isinstance(numeric, int):
        raise ValueError(f"Unknown log level: {level!r}")

    logging.basicConfig(
        format=LOG_FORMAT,
        datefmt="%H:%M:%S",
        level=numeric,
        force=True,
    )

    for logger_name in NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.WARNING)
