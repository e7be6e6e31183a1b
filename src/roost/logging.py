"""Logging setup for the ``roost`` logger hierarchy.

Library code only creates loggers (``logging.getLogger("roost.<area>")``);
handlers are installed by applications or by the CLI through
``configure_logging``.
"""

import logging
import sys

_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


def configure_logging(level: str | int = "info") -> logging.Logger:
    """Send ``roost.*`` records at *level* and above to stderr."""
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        if not isinstance(resolved, int):
            msg = f"Unknown log level {level!r}"
            raise ValueError(msg)
        level = resolved

    logger = logging.getLogger("roost")
    logger.setLevel(level)
    if not any(getattr(h, "_roost", False) for h in logger.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(_FORMAT))
        handler._roost = True  # type: ignore[attr-defined]
        logger.addHandler(handler)
    return logger
