"""Newton-Raphson root finding."""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

from yancpy.errors import ConvergenceError, DomainError
from yancpy.functions.base import as_math_function
from yancpy.functions.composed import differentiate
from yancpy.log import numerics_logger
from yancpy.numerics import Numerics, resolve
from yancpy.progress import CONVERGENCE, checkpoint, emit

if TYPE_CHECKING:
    from yancpy.tasks.events import EventBus
    from yancpy.tasks.task import CancellationToken

log = numerics_logger(__name__)


def newton_raphson(
    f,
    x0: float,
    *,
    tolerance: float | None = None,
    max_iterations: int | None = None,
    derivative_epsilon: float | None = None,
    numerics: Numerics | None = None,
    events: EventBus | None = None,
    cancel: CancellationToken | None = None,
) -> float:
    """Find a root of ``f`` starting from ``x0``.

    Iterates ``x_{n+1} = x_n - f(x_n) / f'(x_n)`` until ``|f(x_n)|`` drops
    below ``tolerance``. The analytic derivative is used when ``f`` has one,
    a central difference otherwise.

    Every iteration emits a ``convergence`` event with payload
    ``{"operation", "iteration", "x", "error"}`` where ``x`` is the new
    iterate and ``error`` is ``|f(x)|`` at it.

    Raises
    ------
    DomainError
        If ``|f'(x_n)|`` falls below ``derivative_epsilon``.
    ConvergenceError
        If ``max_iterations`` is reached, or an iterate stops being finite.
    """
    cfg = resolve(numerics).solver
    tol = tolerance if tolerance is not None else cfg.newton_tolerance
    max_iter = max_iterations if max_iterations is not None else cfg.newton_max_iterations
    eps = derivative_epsilon if derivative_epsilon is not None else cfg.derivative_epsilon

    f = as_math_function(f, "newton_raphson")
    f_prime = differentiate(f, cfg.derivative_step)

    x = float(x0)
    fx = float(f.evaluate(x))
    if abs(fx) < tol:
        return x

    for iteration in range(1, max_iter + 1):
        checkpoint(cancel)
        slope = float(f_prime.evaluate(x))
        if not abs(slope) >= eps:
            raise DomainError(
                f"derivative vanishes at x = {x!r} on iteration {iteration} "
                f"(|f'(x)| = {abs(slope):.3e} < {eps:.1e})"
            )

        x = x - fx / slope
        fx = float(f.evaluate(x))
        error = abs(fx)
        emit(events, CONVERGENCE, operation="newton_raphson", iteration=iteration, x=x, error=error)
        log.numerics("newton iteration %d: x = %.17g, |f(x)| = %.3e", iteration, x, error)

        if not (math.isfinite(x) and math.isfinite(error)):
            raise ConvergenceError(
                f"Newton-Raphson left the finite range on iteration {iteration} (x = {x!r})",
                iterations=iteration,
                estimate=x,
            )
        if error < tol:
            log.debug("newton_raphson converged to %.17g in %d iterations", x, iteration)
            return x

    raise ConvergenceError(
        f"Newton-Raphson from x0 = {x0!r} did not converge in {max_iter} iterations "
        f"(last x = {x!r}, |f(x)| = {abs(fx):.3e}, tolerance {tol:.1e})",
        iterations=max_iter,
        estimate=x,
    )
