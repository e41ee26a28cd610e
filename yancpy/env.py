"""Environment-variable helpers.

These helpers centralize parsing of the environment variables that tune YANC
at runtime (worker count, log level).

Notes
-----
These are intentionally forgiving: invalid inputs fall back to defaults rather
than raising, to keep CLI and batch runs robust.
"""

from __future__ import annotations

import logging
import os


def parse_int_env(name: str, *, default: int, minimum: int = 1) -> int:
    """Parse an integer environment variable with a lower bound.

    Parameters
    ----------
    name:
        Environment variable name.
    default:
        Default value used when the variable is unset or invalid.
    minimum:
        Lower bound enforced on the returned value.

    Returns
    -------
    int
        Parsed integer value (at least ``minimum``).
    """

    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return max(minimum, value)


def parse_log_level_env(name: str, *, default: int) -> int:
    """Parse a logging level given by name (``"INFO"``) or number (``"20"``)."""

    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    if raw.isdigit():
        return int(raw)
    level = logging.getLevelName(raw.upper())
    return level if isinstance(level, int) else default


def default_worker_count() -> int:
    """Worker pool size: ``YANC_WORKERS`` or the CPU count."""

    return parse_int_env("YANC_WORKERS", default=os.cpu_count() or 1, minimum=1)
