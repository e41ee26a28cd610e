"""Sample functions into arrays for an external plotting sink.

No rendering happens here. A sink is any object with
``plot_function(x, y)`` and/or ``plot_surface(x, y, z)``; the helpers
produce the arrays and hand them over.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Protocol, runtime_checkable

import numpy as np

from yancpy.errors import DomainError, UnsupportedOperationError
from yancpy.functions.base import as_math_function, evaluate_many


@runtime_checkable
class PlotSink(Protocol):
    def plot_function(self, x: np.ndarray, y: np.ndarray) -> None: ...

    def plot_surface(self, x: np.ndarray, y: np.ndarray, z: np.ndarray) -> None: ...


def _check_range(a: float, b: float, samples: int, axis: str = "x") -> None:
    if samples < 2:
        raise DomainError(f"need at least 2 samples along {axis}, got {samples}")
    if not (np.isfinite(a) and np.isfinite(b)) or a == b:
        raise DomainError(f"{axis} range must be finite and non-empty, got [{a}, {b}]")


def sample_function(f, a: float, b: float, samples: int = 200) -> tuple[np.ndarray, np.ndarray]:
    """``(x, f(x))`` on ``samples`` equally spaced points of ``[a, b]``."""
    _check_range(a, b, samples)
    f = as_math_function(f, "sample_function")
    x = np.linspace(a, b, samples)
    return x, evaluate_many(f, x)


def sample_surface(
    f: Callable[[float, float], float],
    x_range: tuple[float, float],
    y_range: tuple[float, float],
    samples: int | tuple[int, int] = 50,
    vectorized: bool = False,
) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Grid ``(x, y, z)`` with ``z[j, i] = f(x[i], y[j])``.

    Rows of ``z`` follow ``y``, columns follow ``x``. With ``vectorized`` the
    function is called once with meshgrid arrays instead of point by point.
    """
    nx, ny = (samples, samples) if isinstance(samples, int) else samples
    _check_range(*x_range, nx, "x")
    _check_range(*y_range, ny, "y")
    x = np.linspace(*x_range, nx)
    y = np.linspace(*y_range, ny)

    if vectorized:
        xx, yy = np.meshgrid(x, y)
        z = np.asarray(f(xx, yy), dtype=np.float64)
        if z.shape != (ny, nx):
            raise DomainError(f"vectorized surface returned shape {z.shape}, expected {(ny, nx)}")
    else:
        z = np.empty((ny, nx))
        for j, yj in enumerate(y):
            for i, xi in enumerate(x):
                z[j, i] = f(float(xi), float(yj))
    return x, y, z


def _sink_method(sink, method: str):
    fn = getattr(sink, method, None)
    if not callable(fn):
        raise UnsupportedOperationError(f"{type(sink).__name__} has no {method}() method")
    return fn


def render_function(sink, f, a: float, b: float, samples: int = 200) -> tuple[np.ndarray, np.ndarray]:
    plot = _sink_method(sink, "plot_function")
    x, y = sample_function(f, a, b, samples)
    plot(x, y)
    return x, y


def render_surface(
    sink,
    f: Callable[[float, float], float],
    x_range: tuple[float, float],
    y_range: tuple[float, float],
    samples: int | tuple[int, int] = 50,
    vectorized: bool = False,
) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    plot = _sink_method(sink, "plot_surface")
    x, y, z = sample_surface(f, x_range, y_range, samples, vectorized)
    plot(x, y, z)
    return x, y, z
