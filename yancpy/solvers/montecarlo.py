"""Monte Carlo integration.

Randomness always comes from an explicitly seeded
:class:`numpy.random.Generator`; the global NumPy random state is never used.
Samples are drawn in batches so memory stays bounded and cancellation is
checked between batches.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from typing import TYPE_CHECKING, NamedTuple

import numpy as np

from yancpy.errors import DomainError
from yancpy.functions.base import as_math_function, evaluate_many
from yancpy.log import numerics_logger
from yancpy.numerics import Numerics, resolve
from yancpy.progress import PROGRESS, checkpoint, emit

if TYPE_CHECKING:
    from yancpy.tasks.events import EventBus
    from yancpy.tasks.task import CancellationToken

log = numerics_logger(__name__)


class MonteCarloResult(NamedTuple):
    estimate: float
    standard_error: float


def _merge(count: int, mean: float, m2: float, batch: np.ndarray) -> tuple[int, float, float]:
    """Combine running ``(count, mean, M2)`` with a batch (Chan et al.)."""
    n_b = batch.size
    mean_b = float(batch.mean())
    m2_b = float(np.sum((batch - mean_b) ** 2))
    total = count + n_b
    delta = mean_b - mean
    mean = mean + delta * n_b / total
    m2 = m2 + m2_b + delta * delta * count * n_b / total
    return total, mean, m2


def monte_carlo_integrate(
    f,
    a: float,
    b: float,
    samples: int = 100_000,
    seed: int | np.random.SeedSequence | None = None,
    *,
    batch_size: int | None = None,
    numerics: Numerics | None = None,
    events: EventBus | None = None,
    cancel: CancellationToken | None = None,
) -> MonteCarloResult:
    """Estimate the integral of ``f`` over ``[a, b]`` from uniform samples.

    The estimate is ``(b - a) * mean(f(U))`` and the standard error
    ``|b - a| * std(f(U)) / sqrt(samples)`` with the sample standard
    deviation. The same ``seed`` always yields the same result; without one
    ``numerics.solver.seed`` is used.
    """
    if samples < 2:
        raise DomainError(f"Monte Carlo integration needs at least 2 samples, got {samples}")
    cfg = resolve(numerics).solver
    batch_size = batch_size if batch_size is not None else cfg.monte_carlo_batch_size
    seed = seed if seed is not None else cfg.seed
    f = as_math_function(f, "monte_carlo_integrate")
    a = float(a)
    b = float(b)
    if not (math.isfinite(a) and math.isfinite(b)):
        raise DomainError(f"integration bounds must be finite, got [{a}, {b}]")
    if a == b:
        return MonteCarloResult(0.0, 0.0)

    rng = np.random.default_rng(seed)
    lo, hi = min(a, b), max(a, b)
    count, mean, m2 = 0, 0.0, 0.0
    while count < samples:
        checkpoint(cancel)
        n = min(batch_size, samples - count)
        values = evaluate_many(f, rng.uniform(lo, hi, size=n))
        count, mean, m2 = _merge(count, mean, m2, values)
        emit(events, PROGRESS, operation="monte_carlo_integrate", samples=count, progress_fraction=count / samples)

    width = b - a
    variance = m2 / (count - 1)
    result = MonteCarloResult(
        estimate=width * mean,
        standard_error=abs(width) * math.sqrt(variance / count),
    )
    log.numerics("monte carlo on [%g, %g] with %d samples: %r", a, b, count, result)
    return result


def combine_estimates(results: Sequence[MonteCarloResult], counts: Sequence[int]) -> MonteCarloResult:
    """Pool independent estimates of the same integral, weighted by sample count."""
    total = sum(counts)
    if total == 0:
        raise DomainError("cannot combine Monte Carlo estimates without samples")
    estimate = sum(r.estimate * n for r, n in zip(results, counts)) / total
    error = math.sqrt(sum((r.standard_error * n) ** 2 for r, n in zip(results, counts))) / total
    return MonteCarloResult(estimate, error)
