"""Differentiation and adaptive Simpson quadrature."""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

from yancpy.errors import ConvergenceError, DomainError
from yancpy.functions.base import Capability, as_math_function, supports
from yancpy.functions.composed import central_difference
from yancpy.log import numerics_logger
from yancpy.numerics import Numerics, resolve
from yancpy.progress import checkpoint

if TYPE_CHECKING:
    from yancpy.tasks.events import EventBus
    from yancpy.tasks.task import CancellationToken

log = numerics_logger(__name__)


def derivative(
    f,
    x: float,
    h: float | None = None,
    *,
    numerics: Numerics | None = None,
    events: EventBus | None = None,
    cancel: CancellationToken | None = None,
) -> float:
    """First derivative of ``f`` at ``x``.

    Uses ``f.derivative()`` when ``f`` provides one and no step ``h`` is
    forced; otherwise a central difference with step ``h``,
    ``numerics.solver.derivative_step`` or ``cbrt(eps) * max(|x|, 1)``, in
    that order.
    """
    checkpoint(cancel)
    f = as_math_function(f, "derivative")
    x = float(x)
    if h is None and supports(f, Capability.DERIVATIVE):
        return float(f.derivative().evaluate(x))
    if h is None:
        h = resolve(numerics).solver.derivative_step
    if h is not None and h <= 0.0:
        raise DomainError(f"derivative step must be positive, got {h}")
    return float(central_difference(f, x, h))


def _finite(f, x: float) -> float:
    value = float(f.evaluate(x))
    if not math.isfinite(value):
        raise DomainError(f"integrand is not finite at x = {x!r} (value {value!r})")
    return value


def integrate(
    f,
    a: float,
    b: float,
    *,
    tolerance: float | None = None,
    max_depth: int | None = None,
    numerics: Numerics | None = None,
    events: EventBus | None = None,
    cancel: CancellationToken | None = None,
) -> float:
    """Definite integral of ``f`` over ``[a, b]`` by adaptive Simpson quadrature.

    Each interval is compared against the sum of its two halves; when they
    disagree by more than ``15 * tol`` both halves are refined with half the
    tolerance. The Richardson-corrected sum is returned for accepted
    intervals.

    Parameters
    ----------
    f:
        Math function or plain callable.
    a, b:
        Bounds. ``a > b`` yields the negated integral, ``a == b`` zero.
    tolerance:
        Absolute error target, default ``numerics.solver.integration_tolerance``.
    max_depth:
        Subdivision depth limit, default ``numerics.solver.integration_max_depth``.

    Raises
    ------
    ConvergenceError
        When an interval still misses its tolerance at ``max_depth``.
    DomainError
        When the integrand is not finite at a sample point.
    """
    cfg = resolve(numerics).solver
    tol = tolerance if tolerance is not None else cfg.integration_tolerance
    depth_limit = max_depth if max_depth is not None else cfg.integration_max_depth
    f = as_math_function(f, "integrate")
    a = float(a)
    b = float(b)

    if a == b:
        return 0.0
    if a > b:
        return -integrate(
            f, b, a, tolerance=tol, max_depth=depth_limit, events=events, cancel=cancel
        )
    if not (math.isfinite(a) and math.isfinite(b)):
        raise DomainError(f"integration bounds must be finite, got [{a}, {b}]")

    evaluations = 0

    def simpson(lo: float, f_lo: float, hi: float, f_hi: float):
        nonlocal evaluations
        mid = 0.5 * (lo + hi)
        f_mid = _finite(f, mid)
        evaluations += 1
        return mid, f_mid, (hi - lo) / 6.0 * (f_lo + 4.0 * f_mid + f_hi)

    def refine(lo, f_lo, hi, f_hi, mid, f_mid, whole, eps, depth):
        left_mid, f_left_mid, left = simpson(lo, f_lo, mid, f_mid)
        right_mid, f_right_mid, right = simpson(mid, f_mid, hi, f_hi)
        delta = left + right - whole
        if abs(delta) <= 15.0 * eps:
            return left + right + delta / 15.0
        if depth >= depth_limit:
            raise ConvergenceError(
                f"adaptive Simpson on [{a}, {b}] exceeded depth {depth_limit} "
                f"on [{lo}, {hi}] (error estimate {abs(delta) / 15.0:.3e}, "
                f"tolerance {eps:.3e})",
                iterations=evaluations,
                estimate=left + right,
            )
        checkpoint(cancel)
        return refine(
            lo, f_lo, mid, f_mid, left_mid, f_left_mid, left, 0.5 * eps, depth + 1
        ) + refine(
            mid, f_mid, hi, f_hi, right_mid, f_right_mid, right, 0.5 * eps, depth + 1
        )

    checkpoint(cancel)
    f_a = _finite(f, a)
    f_b = _finite(f, b)
    mid, f_mid, whole = simpson(a, f_a, b, f_b)
    value = refine(a, f_a, b, f_b, mid, f_mid, whole, tol, 0)
    log.numerics("integrate on [%g, %g]: %d evaluations", a, b, evaluations + 2)
    return float(value)
