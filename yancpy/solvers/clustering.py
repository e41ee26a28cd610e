"""k-means clustering (Lloyd's algorithm with k-means++ seeding)."""

from __future__ import annotations

from typing import TYPE_CHECKING, NamedTuple

import numpy as np
import numpy.typing as npt

from yancpy.errors import ConvergenceError, DomainError
from yancpy.kernels.cpu_numba import assign_clusters
from yancpy.log import numerics_logger
from yancpy.numerics import Numerics, resolve
from yancpy.progress import CONVERGENCE, checkpoint, emit

if TYPE_CHECKING:
    from yancpy.tasks.events import EventBus
    from yancpy.tasks.task import CancellationToken

log = numerics_logger(__name__)


class KMeansResult(NamedTuple):
    centroids: np.ndarray
    labels: np.ndarray
    inertia: float
    iterations: int
    converged: bool


def kmeans_plus_plus(points: np.ndarray, k: int, rng: np.random.Generator) -> np.ndarray:
    """Pick ``k`` initial centroids, each new one with probability proportional to ``D(x)**2``."""
    n = points.shape[0]
    centroids = np.empty((k, points.shape[1]))
    centroids[0] = points[rng.integers(n)]
    d2 = np.sum((points - centroids[0]) ** 2, axis=1)
    for j in range(1, k):
        total = d2.sum()
        if total > 0.0:
            index = rng.choice(n, p=d2 / total)
        else:
            index = rng.integers(n)
        centroids[j] = points[index]
        d2 = np.minimum(d2, np.sum((points - centroids[j]) ** 2, axis=1))
    return centroids


def kmeans(
    points: npt.ArrayLike,
    k: int,
    seed: int | None = None,
    *,
    max_iterations: int | None = None,
    tolerance: float | None = None,
    max_reseeds: int | None = None,
    numerics: Numerics | None = None,
    events: EventBus | None = None,
    cancel: CancellationToken | None = None,
) -> KMeansResult:
    """Partition ``points`` into ``k`` clusters.

    Parameters
    ----------
    points:
        ``(n, d)`` array; a 1D array is treated as ``n`` points in one
        dimension.
    k:
        Number of clusters, ``1 <= k <= n``.
    seed:
        Seed for the k-means++ initialization, default ``numerics.solver.seed``.

    Notes
    -----
    Iteration stops once no centroid moves by more than ``tolerance``. A
    cluster that ends up empty is re-seeded with the point farthest from its
    assigned centroid; :class:`~yancpy.errors.ConvergenceError` is raised only
    when that happens more than ``max_reseeds`` times. Hitting
    ``max_iterations`` returns the current partition with ``converged=False``.
    """
    cfg = resolve(numerics).solver
    max_iter = max_iterations if max_iterations is not None else cfg.kmeans_max_iterations
    tol = tolerance if tolerance is not None else cfg.kmeans_tolerance
    reseed_budget = max_reseeds if max_reseeds is not None else cfg.kmeans_max_reseeds
    seed = seed if seed is not None else cfg.seed

    data = np.asarray(points, dtype=np.float64)
    if data.ndim == 1:
        data = data[:, None]
    if data.ndim != 2:
        raise DomainError(f"points must be a 2D array of shape (n, d), got shape {data.shape}")
    data = np.ascontiguousarray(data)
    n = data.shape[0]
    if not 1 <= k <= n:
        raise DomainError(f"k must be between 1 and the number of points ({n}), got {k}")
    if not np.all(np.isfinite(data)):
        raise DomainError("points must be finite")

    rng = np.random.default_rng(seed)
    centroids = kmeans_plus_plus(data, k, rng)
    reseeds = 0
    converged = False
    iteration = 0

    while iteration < max_iter:
        checkpoint(cancel)
        iteration += 1
        labels, d2 = assign_clusters(data, centroids)
        counts = np.bincount(labels, minlength=k)

        empty = np.flatnonzero(counts == 0)
        if empty.size:
            for j in empty:
                reseeds += 1
                if reseeds > reseed_budget:
                    raise ConvergenceError(
                        f"k-means could not keep {k} non-empty clusters: "
                        f"{reseeds - 1} re-seeds exhausted on iteration {iteration}",
                        iterations=iteration,
                        estimate=centroids.copy(),
                    )
                farthest = int(np.argmax(d2))
                log.info("k-means: cluster %d empty, re-seeding from point %d", j, farthest)
                centroids[j] = data[farthest]
                d2[farthest] = 0.0
            continue

        sums = np.zeros_like(centroids)
        np.add.at(sums, labels, data)
        updated = sums / counts[:, None]
        shift = float(np.max(np.linalg.norm(updated - centroids, axis=1)))
        centroids = updated

        emit(events, CONVERGENCE, operation="kmeans", iteration=iteration, error=shift)
        log.numerics("kmeans iteration %d: max centroid shift %.3e", iteration, shift)
        if shift <= tol:
            converged = True
            break

    labels, d2 = assign_clusters(data, centroids)
    if not converged:
        log.warning("k-means stopped at the iteration cap %d without converging", max_iter)
    return KMeansResult(
        centroids=centroids,
        labels=labels,
        inertia=float(d2.sum()),
        iterations=iteration,
        converged=converged,
    )
