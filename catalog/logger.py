"""Logging setup for the catalog backend."""

import logging
import sys

LOGGER_NAME = "catalog"

_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_DATEFMT = "%Y-%m-%d %H:%M:%S"


def configure_logging(level: str = "INFO") -> logging.Logger:
    """Attach a single stdout handler to the ``catalog`` logger tree.

    Calling it again replaces the handler, so app factories and tests can
    reconfigure without duplicating output.
    """
    root = logging.getLogger(LOGGER_NAME)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    root.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(fmt=_FORMAT, datefmt=_DATEFMT))
    root.addHandler(handler)
    return root


def get_logger(name: str) -> logging.Logger:
    """Return a child of the ``catalog`` logger, e.g. ``catalog.resolver``."""
    if name == LOGGER_NAME or name.startswith(LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{LOGGER_NAME}.{name}")
