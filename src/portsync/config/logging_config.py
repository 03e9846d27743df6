"""Logging configuration for the sync engine."""

import logging
import sys
from typing import Optional

from portsync.config.settings import get_settings

# Scheduler jobs and warmup workers run on named threads
LOG_FORMAT = "%(asctime)s - %(threadName)s - %(name)s - %(levelname)s - %(message)s"

# Chatty dependencies of the quote provider and the store
_QUIET_LOGGERS = {
    "sqlalchemy.engine": logging.WARNING,
    "yfinance": logging.WARNING,
    "peewee": logging.WARNING,
    "urllib3": logging.WARNING,
}


def setup_logging(level: Optional[str] = None) -> None:
    """
    Configure engine logging on stdout.

    ``level`` overrides ``settings.log_level``. Does nothing to the root
    handlers if the host application already configured logging.
    """
    level_name = (level or get_settings().log_level).upper()

    logging.basicConfig(
        level=getattr(logging, level_name),
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    for name, quiet_level in _QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(quiet_level)
