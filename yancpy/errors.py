"""Error taxonomy.

Every failure raised by YANC derives from :class:`YancError`. Errors that
describe a bad input value additionally derive from :class:`ValueError` so
callers that only know the standard library still catch them sensibly.

Messages always name the offending operands, shapes or iteration counts.
"""

from __future__ import annotations

from typing import Any


class YancError(Exception):
    """Base class for all YANC errors."""


class DomainError(YancError, ValueError):
    """Mathematically invalid input (zero-modulus division, vanishing derivative, ...)."""


class DimensionError(YancError, ValueError):
    """Operand shapes are incompatible with the requested operation."""


class SingularMatrixError(YancError, ArithmeticError):
    """The matrix is singular within the configured tolerance."""


class ConvergenceError(YancError, ArithmeticError):
    """An iteration or tolerance budget was exhausted.

    Parameters
    ----------
    message:
        Human readable description.
    iterations:
        Number of iterations performed before giving up.
    estimate:
        Best estimate available at the time of failure, if any.
    """

    def __init__(self, message: str, *, iterations: int | None = None, estimate: Any = None):
        super().__init__(message)
        self.iterations = iterations
        self.estimate = estimate


class DivergenceError(YancError, ArithmeticError):
    """An iterative method is moving away from a solution."""

    def __init__(self, message: str, *, iterations: int | None = None):
        super().__init__(message)
        self.iterations = iterations


class UnsupportedOperationError(YancError, TypeError):
    """A supplied object lacks a capability the operation requires."""


class KeyGenerationError(YancError):
    """Key generation failed, e.g. the primality search budget ran out."""


class HandlerError(YancError):
    """An event subscriber raised; reported as an event, never propagated."""

    def __init__(self, event_name: str, original: BaseException):
        super().__init__(f"handler for event {event_name!r} raised {original!r}")
        self.event_name = event_name
        self.original = original


class TaskCancelledError(YancError):
    """The task was cancelled; it has no result."""


class ConfigError(YancError, ValueError):
    """A configuration file could not be read or validated."""
