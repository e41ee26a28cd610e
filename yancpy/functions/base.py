"""The ``MathFunction`` capability surface.

A math function is any object exposing ``evaluate(x) -> float``; it may also
expose ``derivative() -> MathFunction``. The capability set is closed and is
probed explicitly at call time with :func:`capabilities_of` and
:func:`require`; operations that need a capability the function lacks, and
that have no numerical fallback, raise
:class:`~yancpy.errors.UnsupportedOperationError`.

Built-in variants declare their capabilities in a ``capabilities`` attribute.
For foreign objects the capabilities are inferred from the attributes they
expose.
"""

from __future__ import annotations

from enum import Enum
from typing import Protocol, runtime_checkable

import numpy as np

from yancpy.errors import UnsupportedOperationError


class Capability(str, Enum):
    EVALUATE = "evaluate"
    DERIVATIVE = "derivative"


@runtime_checkable
class MathFunction(Protocol):
    def evaluate(self, x: float) -> float: ...


def capabilities_of(f) -> frozenset[Capability]:
    """Return the capabilities ``f`` supports."""
    declared = getattr(f, "capabilities", None)
    if declared is not None:
        return frozenset(declared)
    found = set()
    if callable(getattr(f, "evaluate", None)):
        found.add(Capability.EVALUATE)
    if callable(getattr(f, "derivative", None)):
        found.add(Capability.DERIVATIVE)
    return frozenset(found)


def supports(f, capability: Capability) -> bool:
    return capability in capabilities_of(f)


def require(f, capability: Capability, operation: str) -> None:
    """Raise :class:`UnsupportedOperationError` if ``f`` lacks ``capability``."""
    if not supports(f, capability):
        raise UnsupportedOperationError(
            f"{operation} requires a function with '{capability.value}', "
            f"but {type(f).__name__} does not provide it"
        )


def as_math_function(f, operation: str = "this operation"):
    """Return ``f`` as a math function.

    Objects with ``evaluate`` are returned unchanged, plain callables are
    wrapped in a :class:`~yancpy.functions.composed.UserFunction`, anything
    else is rejected.
    """
    if supports(f, Capability.EVALUATE):
        return f
    if callable(f):
        from yancpy.functions.composed import UserFunction

        return UserFunction(f)
    raise UnsupportedOperationError(
        f"{operation} requires a function with 'evaluate', got {type(f).__name__}"
    )


def evaluate_many(f, xs: np.ndarray) -> np.ndarray:
    """Evaluate ``f`` at every point of ``xs``.

    Functions providing ``evaluate_many`` are called once on the whole array;
    otherwise ``evaluate`` is called point by point.
    """
    xs = np.asarray(xs, dtype=np.float64)
    vectorized = getattr(f, "evaluate_many", None)
    if callable(vectorized):
        return np.asarray(vectorized(xs), dtype=np.float64)
    return np.fromiter((f.evaluate(float(x)) for x in xs.ravel()), dtype=np.float64, count=xs.size).reshape(xs.shape)
