"""Numerical configuration.

All tolerances, iteration budgets and algorithm thresholds used by YANC live
in :class:`Numerics`. Operations accept an optional ``numerics`` argument and
fall back to :data:`DEFAULT_NUMERICS`; explicit keyword arguments passed to an
operation take precedence over both.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from yancpy.env import default_worker_count


class _Section(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class LinalgNumerics(_Section):
    """Linear algebra tolerances.

    Attributes
    ----------
    singular_tolerance:
        A matrix is singular when ``|det| < singular_tolerance * ||M||_inf ** n``.
    eigen_tolerance:
        Relative size of a subdiagonal entry below which it is deflated.
    eigen_max_iterations:
        Total QR sweeps allowed before :class:`~yancpy.errors.ConvergenceError`.
    eigen_exceptional_shift_every:
        Sweeps without deflation after which an exceptional shift is used.
    """

    singular_tolerance: float = Field(default=1e-12, gt=0)
    eigen_tolerance: float = Field(default=1e-12, gt=0)
    eigen_max_iterations: int = Field(default=10000, ge=1)
    eigen_exceptional_shift_every: int = Field(default=10, ge=1)


class TransformNumerics(_Section):
    """Transform engine thresholds.

    ``direct_convolution_threshold`` is the crossover length: when the shorter
    operand has at most this many samples the direct O(n*m) sum is used.
    """

    direct_convolution_threshold: int = Field(default=32, ge=0)


class SolverNumerics(_Section):
    """Solver framework tolerances and budgets."""

    derivative_step: float | None = Field(default=None, gt=0)
    derivative_epsilon: float = Field(default=1e-14, gt=0)

    integration_tolerance: float = Field(default=1e-10, gt=0)
    integration_max_depth: int = Field(default=50, ge=1)

    newton_tolerance: float = Field(default=1e-12, gt=0)
    newton_max_iterations: int = Field(default=100, ge=1)

    gradient_tolerance: float = Field(default=1e-8, gt=0)
    gradient_max_iterations: int = Field(default=10000, ge=1)
    learning_rate: float = Field(default=0.1, gt=0)
    learning_schedule: Literal["fixed", "exponential", "inverse"] = "fixed"
    learning_decay: float = Field(default=0.01, ge=0)
    divergence_factor: float = Field(default=1e6, gt=1)

    monte_carlo_batch_size: int = Field(default=65536, ge=1)
    seed: int = Field(default=0, ge=0)

    kmeans_max_iterations: int = Field(default=300, ge=1)
    kmeans_tolerance: float = Field(default=1e-8, ge=0)
    kmeans_max_reseeds: int = Field(default=10, ge=0)


class SchedulerNumerics(_Section):
    """Worker pool sizing."""

    workers: int = Field(default_factory=default_worker_count, ge=1)


class CryptoNumerics(_Section):
    """Key generation budgets."""

    public_exponent: int = Field(default=65537, ge=3)
    miller_rabin_rounds: int = Field(default=40, ge=1)
    max_prime_attempts: int = Field(default=100000, ge=1)


class Numerics(_Section):
    """Aggregate numerical configuration."""

    linalg: LinalgNumerics = Field(default_factory=LinalgNumerics)
    transform: TransformNumerics = Field(default_factory=TransformNumerics)
    solver: SolverNumerics = Field(default_factory=SolverNumerics)
    scheduler: SchedulerNumerics = Field(default_factory=SchedulerNumerics)
    crypto: CryptoNumerics = Field(default_factory=CryptoNumerics)


DEFAULT_NUMERICS = Numerics()


def resolve(numerics: Numerics | None) -> Numerics:
    """Return ``numerics`` or the defaults."""
    return DEFAULT_NUMERICS if numerics is None else numerics
