"""Gradient descent."""

from __future__ import annotations

import math
from collections.abc import Callable
from typing import TYPE_CHECKING, NamedTuple

import numpy as np
import numpy.typing as npt

from yancpy.errors import DivergenceError, DomainError
from yancpy.functions.composed import default_step
from yancpy.log import numerics_logger
from yancpy.numerics import Numerics, resolve
from yancpy.progress import CONVERGENCE, checkpoint, emit

if TYPE_CHECKING:
    from yancpy.tasks.events import EventBus
    from yancpy.tasks.task import CancellationToken

log = numerics_logger(__name__)


class OptimizationResult(NamedTuple):
    x: np.ndarray
    value: float
    iterations: int
    gradient_norm: float
    converged: bool


def step_size(schedule: str, learning_rate: float, decay: float, iteration: int) -> float:
    """Learning rate at ``iteration`` (0-based) for the named schedule.

    ``fixed`` keeps ``learning_rate``, ``exponential`` uses
    ``learning_rate * exp(-decay * k)`` and ``inverse`` uses
    ``learning_rate / (1 + decay * k)``.
    """
    match schedule:
        case "fixed":
            return learning_rate
        case "exponential":
            return learning_rate * math.exp(-decay * iteration)
        case "inverse":
            return learning_rate / (1.0 + decay * iteration)
        case _:
            raise DomainError(f"unknown learning schedule {schedule!r}")


def numerical_gradient(f: Callable[[np.ndarray], float], x: np.ndarray) -> np.ndarray:
    """Central-difference gradient of a scalar field."""
    x = np.asarray(x, dtype=np.float64)
    grad = np.empty_like(x)
    flat = grad.reshape(-1)
    for i in range(x.size):
        h = default_step(float(x.flat[i]))
        upper = x.copy()
        lower = x.copy()
        upper.flat[i] += h
        lower.flat[i] -= h
        flat[i] = (float(f(upper)) - float(f(lower))) / (upper.flat[i] - lower.flat[i])
    return grad


def gradient_descent(
    f: Callable[[np.ndarray], float],
    gradient: Callable[[np.ndarray], npt.ArrayLike] | None,
    x0: npt.ArrayLike,
    learning_rate: float | None = None,
    *,
    schedule: str | None = None,
    decay: float | None = None,
    tolerance: float | None = None,
    max_iterations: int | None = None,
    numerics: Numerics | None = None,
    events: EventBus | None = None,
    cancel: CancellationToken | None = None,
) -> OptimizationResult:
    """Minimize ``f`` by steepest descent from ``x0``.

    Parameters
    ----------
    f:
        Objective, called with a ``float64`` array shaped like ``x0``.
    gradient:
        Gradient of ``f``; ``None`` selects a central-difference gradient.
    x0:
        Starting point, scalar or array.
    learning_rate, schedule, decay:
        Step schedule, see :func:`step_size`. Defaults come from
        ``numerics.solver``.

    Returns
    -------
    OptimizationResult
        ``converged`` is ``False`` when the iteration cap was reached before
        the gradient norm dropped below ``tolerance``.

    Raises
    ------
    DivergenceError
        When the gradient norm becomes non-finite or grows beyond
        ``numerics.solver.divergence_factor`` times its initial value.
    """
    cfg = resolve(numerics).solver
    rate = learning_rate if learning_rate is not None else cfg.learning_rate
    schedule = schedule if schedule is not None else cfg.learning_schedule
    decay = decay if decay is not None else cfg.learning_decay
    tol = tolerance if tolerance is not None else cfg.gradient_tolerance
    max_iter = max_iterations if max_iterations is not None else cfg.gradient_max_iterations
    if rate <= 0.0:
        raise DomainError(f"learning rate must be positive, got {rate}")
    # Validates the schedule name before iterating.
    step_size(schedule, rate, decay, 0)

    if gradient is None:
        def gradient(x):
            return numerical_gradient(f, x)

    x = np.array(x0, dtype=np.float64)
    g = np.asarray(gradient(x), dtype=np.float64)
    norm = float(np.linalg.norm(g))
    if not math.isfinite(norm):
        raise DivergenceError(f"gradient is not finite at the starting point {x0!r}", iterations=0)
    limit = cfg.divergence_factor * max(norm, tol)

    iteration = 0
    while norm >= tol and iteration < max_iter:
        checkpoint(cancel)
        x = x - step_size(schedule, rate, decay, iteration) * g
        g = np.asarray(gradient(x), dtype=np.float64)
        norm = float(np.linalg.norm(g))
        iteration += 1

        emit(events, CONVERGENCE, operation="gradient_descent", iteration=iteration, x=x.tolist(), error=norm)
        log.numerics("gradient descent iteration %d: |grad| = %.3e", iteration, norm)

        if not math.isfinite(norm) or norm > limit:
            raise DivergenceError(
                f"gradient descent diverged on iteration {iteration}: |grad| = {norm:.3e} "
                f"exceeds {limit:.3e} (learning rate {rate}, schedule {schedule!r})",
                iterations=iteration,
            )

    converged = norm < tol
    if not converged:
        log.warning(
            "gradient descent stopped at the iteration cap %d with |grad| = %.3e (tolerance %.1e)",
            max_iter,
            norm,
            tol,
        )
    return OptimizationResult(
        x=x,
        value=float(f(x)),
        iterations=iteration,
        gradient_norm=norm,
        converged=converged,
    )
