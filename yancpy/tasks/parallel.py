"""Fan-out/fan-in wrappers around the solvers and transforms.

Each helper splits one operation into independent partitions, submits one
task per partition to a :class:`~yancpy.tasks.scheduler.Scheduler` and
returns the composite task from :meth:`Scheduler.gather`. Partial results are
combined in partition-index order, so the outcome does not depend on which
worker finishes first.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

import numpy as np
import numpy.typing as npt

from yancpy.errors import DomainError
from yancpy.functions.base import as_math_function
from yancpy.solvers.calculus import integrate
from yancpy.solvers.montecarlo import combine_estimates, monte_carlo_integrate
from yancpy.tasks.scheduler import Scheduler
from yancpy.tasks.task import Task
from yancpy.transforms import fft


def partition_bounds(a: float, b: float, n: int) -> list[tuple[float, float]]:
    """``n`` contiguous sub-intervals covering ``[a, b]`` exactly."""
    if n < 1:
        raise DomainError(f"partition count must be at least 1, got {n}")
    edges = np.linspace(a, b, n + 1)
    edges[0] = a
    edges[-1] = b
    return [(float(edges[i]), float(edges[i + 1])) for i in range(n)]


def _ordered_sum(values: Sequence[float]) -> float:
    total = 0.0
    for value in values:
        total += value
    return total


def parallel_integrate(
    scheduler: Scheduler,
    f,
    a: float,
    b: float,
    n: int | None = None,
    *,
    tolerance: float | None = None,
    name: str = "parallel_integrate",
) -> Task:
    """Integrate ``f`` over ``[a, b]`` as ``n`` concurrent partitions.

    Each partition is integrated with ``tolerance / n`` so the summed error
    target matches a single :func:`~yancpy.solvers.calculus.integrate` call.
    The returned task's result is the sum of the partition integrals in
    partition order. ``n`` defaults to the scheduler's worker count.
    """
    n = scheduler.workers if n is None else int(n)
    f = as_math_function(f, "parallel_integrate")
    tol = tolerance if tolerance is not None else scheduler.numerics.solver.integration_tolerance
    children = [
        scheduler.submit(
            integrate,
            f,
            lo,
            hi,
            name=f"{name}[{index}]",
            tolerance=tol / n,
            numerics=scheduler.numerics,
        )
        for index, (lo, hi) in enumerate(partition_bounds(a, b, n))
    ]
    return scheduler.gather(children, _ordered_sum, name=name)


def parallel_monte_carlo(
    scheduler: Scheduler,
    f,
    a: float,
    b: float,
    samples: int,
    n: int | None = None,
    seed: int | None = None,
    *,
    name: str = "parallel_monte_carlo",
) -> Task:
    """Monte Carlo integration split into ``n`` independently seeded partitions.

    Partition seeds are spawned from one :class:`numpy.random.SeedSequence`,
    so a given ``(seed, n)`` pair always reproduces the same estimate. The
    result is a :class:`~yancpy.solvers.montecarlo.MonteCarloResult` pooling
    the partition estimates.
    """
    n = scheduler.workers if n is None else int(n)
    if n < 1:
        raise DomainError(f"partition count must be at least 1, got {n}")
    if samples < 2 * n:
        raise DomainError(
            f"{samples} samples cannot be split into {n} partitions of at least 2 samples"
        )
    f = as_math_function(f, "parallel_monte_carlo")
    seed = seed if seed is not None else scheduler.numerics.solver.seed
    seeds = np.random.SeedSequence(seed).spawn(n)
    base, extra = divmod(samples, n)
    counts = [base + (1 if i < extra else 0) for i in range(n)]

    children = [
        scheduler.submit(
            monte_carlo_integrate,
            f,
            a,
            b,
            counts[i],
            seeds[i],
            name=f"{name}[{i}]",
            numerics=scheduler.numerics,
        )
        for i in range(n)
    ]
    return scheduler.gather(
        children, lambda results: combine_estimates(results, counts), name=name
    )


def parallel_fft(
    scheduler: Scheduler,
    signals: Iterable[npt.ArrayLike],
    *,
    name: str = "parallel_fft",
) -> Task:
    """Transform a batch of signals concurrently; results keep the input order."""
    return scheduler.map(fft, signals, name=name, inject_cancel=False)
