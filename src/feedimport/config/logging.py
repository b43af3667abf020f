"""Logging setup for the command line."""

from __future__ import annotations

import logging
from typing import Final

LOG_FORMAT: Final[str] = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

# chatty at INFO; only shown when feedimport itself logs at DEBUG
_NOISY_LOGGERS: Final[tuple[str, ...]] = ("httpx", "httpcore", "hishel", "alembic")


def configure_logging(*, level: int = logging.INFO, force: bool = False) -> None:
    """Configure the root logger for CLI output.

    ``force=True`` replaces handlers installed earlier, e.g. by a test runner.
    """

    logging.basicConfig(level=level, format=LOG_FORMAT, datefmt="%H:%M:%S", force=force)
    library_level = logging.DEBUG if level <= logging.DEBUG else logging.WARNING
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(library_level)
