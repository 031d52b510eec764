"""Logging setup for the clientingest command line."""

from __future__ import annotations

import logging
import os
from typing import Final

LOG_FORMAT: Final[str] = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
LOG_DATE_FORMAT: Final[str] = "%H:%M:%S"
LOG_LEVEL_ENV: Final[str] = "CLIENTINGEST_LOG_LEVEL"

# chatty per-request loggers; page progress is reported by the CLI itself
_NOISY_LOGGERS: Final[tuple[str, ...]] = ("httpx", "httpcore", "hishel", "sqlalchemy.engine")


def _resolve_level(*, verbose: bool) -> int:
    if verbose:
        return logging.DEBUG
    name = (os.getenv(LOG_LEVEL_ENV) or "").strip().upper()
    level = logging.getLevelNamesMapping().get(name)
    return level if level is not None else logging.INFO


def configure_logging(*, verbose: bool = False, force: bool = False) -> int:
    """Configure the root logger and return the level that was applied.

    ``verbose`` always selects DEBUG; otherwise ``CLIENTINGEST_LOG_LEVEL`` may name a
    level, defaulting to INFO.
    """

    level = _resolve_level(verbose=verbose)
    logging.basicConfig(level=level, format=LOG_FORMAT, datefmt=LOG_DATE_FORMAT, force=force)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
    return level
