"""Logging helpers.

Modules log through ``logging.getLogger(__name__)``. Iterative solvers write
per-iteration traces at the custom ``NUMERICS`` level, which sits between
DEBUG and INFO so traces can be switched on without the full debug output.
"""

from __future__ import annotations

import logging

from yancpy.env import parse_log_level_env

NUMERICS = 15
logging.addLevelName(NUMERICS, "NUMERICS")

_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


class NumericsLogger(logging.LoggerAdapter):
    """Logger adapter adding a :meth:`numerics` method."""

    def numerics(self, msg, *args, **kwargs):
        self.log(NUMERICS, msg, *args, **kwargs)


def numerics_logger(name: str) -> NumericsLogger:
    """Return a logger for ``name`` that understands the NUMERICS level."""
    return NumericsLogger(logging.getLogger(name), {})


def configure_logging(level: int | str | None = None) -> None:
    """Attach a stream handler to the ``yancpy`` logger.

    Parameters
    ----------
    level:
        Level name or number. When omitted, ``YANC_LOG_LEVEL`` is consulted and
        WARNING is used as the fallback.
    """

    if level is None:
        level = parse_log_level_env("YANC_LOG_LEVEL", default=logging.WARNING)
    elif isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.WARNING

    logger = logging.getLogger("yancpy")
    logger.setLevel(level)
    if not any(getattr(h, "_yanc_handler", False) for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_FORMAT))
        handler._yanc_handler = True
        logger.addHandler(handler)
