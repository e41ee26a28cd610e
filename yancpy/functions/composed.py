"""User-defined, composed and numerically differentiated functions."""

from __future__ import annotations

from collections.abc import Callable

import numpy as np

from yancpy.errors import UnsupportedOperationError
from yancpy.functions.base import Capability, as_math_function, require, supports

_CBRT_EPS = float(np.cbrt(np.finfo(np.float64).eps))


def default_step(x: float) -> float:
    """Central-difference step balancing truncation and rounding error.

    The truncation error of the central difference is ``O(h**2)`` and the
    rounding error ``O(eps / h)``; their sum is minimal for ``h ~ cbrt(eps)``,
    scaled to the magnitude of ``x``.
    """
    return _CBRT_EPS * max(abs(x), 1.0)


def central_difference(f, x: float, h: float | None = None) -> float:
    """``(f(x + h) - f(x - h)) / 2h`` with ``h`` from :func:`default_step` by default."""
    if h is None:
        h = default_step(x)
    # Divide by the representable spacing rather than 2h.
    upper = x + h
    lower = x - h
    return (f.evaluate(upper) - f.evaluate(lower)) / (upper - lower)


class UserFunction:
    """Wrap a plain callable as a math function.

    Parameters
    ----------
    func:
        ``func(x) -> float``.
    derivative:
        Optional analytic derivative, either a callable or another math
        function. Without it, the function has no ``derivative`` capability and
        solvers use a numerical fallback.
    name:
        Label used in reprs and error messages.
    """

    def __init__(self, func: Callable[[float], float], derivative=None, name: str | None = None):
        if not callable(func):
            raise UnsupportedOperationError(f"expected a callable, got {type(func).__name__}")
        self._func = func
        self._derivative = None if derivative is None else as_math_function(derivative)
        self.name = name or getattr(func, "__name__", "f")
        caps = {Capability.EVALUATE}
        if self._derivative is not None:
            caps.add(Capability.DERIVATIVE)
        self.capabilities = frozenset(caps)

    def evaluate(self, x: float) -> float:
        return float(self._func(x))

    def __call__(self, x: float) -> float:
        return self.evaluate(x)

    def derivative(self):
        if self._derivative is None:
            raise UnsupportedOperationError(
                f"function {self.name!r} has no analytic derivative"
            )
        return self._derivative

    def __repr__(self):
        return f"UserFunction({self.name})"


class ComposedFunction:
    """``outer(inner(x))``.

    The derivative is available through the chain rule when both parts have
    one, otherwise the composition only supports ``evaluate``.
    """

    def __init__(self, outer, inner):
        self.outer = as_math_function(outer, "composition")
        self.inner = as_math_function(inner, "composition")
        caps = {Capability.EVALUATE}
        if supports(self.outer, Capability.DERIVATIVE) and supports(self.inner, Capability.DERIVATIVE):
            caps.add(Capability.DERIVATIVE)
        self.capabilities = frozenset(caps)

    def evaluate(self, x: float) -> float:
        return float(self.outer.evaluate(self.inner.evaluate(x)))

    def __call__(self, x: float) -> float:
        return self.evaluate(x)

    def derivative(self):
        if Capability.DERIVATIVE not in self.capabilities:
            raise UnsupportedOperationError(
                "composition has no analytic derivative: "
                f"{type(self.outer).__name__} or {type(self.inner).__name__} lacks one"
            )
        outer_prime = self.outer.derivative()
        inner_prime = self.inner.derivative()
        chained = ComposedFunction(outer_prime, self.inner)
        return UserFunction(
            lambda x: chained.evaluate(x) * inner_prime.evaluate(x),
            name=f"d/dx {self!r}",
        )

    def __repr__(self):
        return f"ComposedFunction({self.outer!r}, {self.inner!r})"


class NumericalDerivative:
    """Central-difference derivative of another math function.

    Its own ``derivative()`` is again numerical, so higher derivatives are
    available at the cost of accuracy.
    """

    capabilities = frozenset({Capability.EVALUATE, Capability.DERIVATIVE})

    def __init__(self, f, h: float | None = None):
        self.f = as_math_function(f, "numerical differentiation")
        self.h = h

    def evaluate(self, x: float) -> float:
        return central_difference(self.f, float(x), self.h)

    def __call__(self, x: float) -> float:
        return self.evaluate(x)

    def derivative(self):
        return NumericalDerivative(self, self.h)

    def __repr__(self):
        return f"NumericalDerivative({self.f!r})"


def differentiate(f, h: float | None = None):
    """Return the analytic derivative of ``f`` if available, else a numerical one."""
    f = as_math_function(f, "differentiation")
    if supports(f, Capability.DERIVATIVE):
        return f.derivative()
    return NumericalDerivative(f, h)


def analytic_derivative(f):
    """Return ``f.derivative()``; there is no numerical fallback here."""
    f = as_math_function(f, "analytic differentiation")
    require(f, Capability.DERIVATIVE, "analytic differentiation")
    return f.derivative()
