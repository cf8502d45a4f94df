"""Logging setup for the ``billfold`` logger namespace."""

from __future__ import annotations

import logging

_FORMAT = "[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s"


def configure_logging(level: str = "info") -> logging.Logger:
    """Attach a stream handler to the ``billfold`` logger.

    Safe to call more than once; the handler is only installed the first time.
    """
    logger = logging.getLogger("billfold")
    logger.setLevel(level.upper())
    if not any(getattr(h, "_billfold", False) for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_FORMAT))
        handler._billfold = True  # type: ignore[attr-defined]
        logger.addHandler(handler)
    return logger
