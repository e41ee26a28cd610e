"""Linear algebra engine.

Factorizations use partial pivoting to bound element growth. The LU kernels
live in :mod:`yancpy.kernels.cpu_numba`; this module handles shapes,
tolerances and error reporting.

Tolerances come from :class:`~yancpy.numerics.LinalgNumerics`:

- a matrix is treated as singular when ``|det(M)| < eps * ||M||_inf ** n``,
  compared in log space so large matrices do not overflow;
- QR eigenvalue iteration deflates a trailing subdiagonal entry once it is
  below ``eigen_tolerance`` relative to its diagonal neighbours.
"""

from __future__ import annotations

import cmath
import math
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np
import numpy.typing as npt
from scipy.linalg import hessenberg

from yancpy.errors import ConvergenceError, DimensionError, SingularMatrixError
from yancpy.kernels.cpu_numba import lu_factor_inplace, lu_solve
from yancpy.log import numerics_logger
from yancpy.matrix import Matrix
from yancpy.numerics import Numerics, resolve
from yancpy.progress import WARNING, checkpoint, emit

if TYPE_CHECKING:
    from yancpy.tasks.events import EventBus
    from yancpy.tasks.task import CancellationToken

log = numerics_logger(__name__)


@dataclass(frozen=True)
class LUDecomposition:
    """Result of :func:`lu_decompose`.

    Attributes
    ----------
    lu:
        Combined factors: strictly lower triangle of ``L`` (unit diagonal
        implied) and upper triangle ``U``.
    permutation:
        Row order, ``M[permutation] == L @ U``.
    sign:
        Permutation sign, ``+1.0`` or ``-1.0``.
    """

    lu: np.ndarray
    permutation: np.ndarray
    sign: float

    @property
    def lower(self) -> Matrix:
        n = self.lu.shape[0]
        return Matrix.from_array(np.tril(self.lu, -1) + np.eye(n))

    @property
    def upper(self) -> Matrix:
        return Matrix.from_array(np.triu(self.lu))

    @property
    def pivots(self) -> np.ndarray:
        return np.diag(self.lu).copy()

    def determinant(self) -> float:
        return float(self.sign * np.prod(np.diag(self.lu)))

    def log_abs_determinant(self) -> float:
        with np.errstate(divide="ignore"):
            return float(np.sum(np.log(np.abs(np.diag(self.lu)))))


def _require_square(matrix: Matrix, operation: str) -> None:
    if not matrix.is_square:
        raise DimensionError(
            f"{operation} requires a square matrix, got shape {matrix.shape}"
        )


def lu_decompose(matrix: Matrix | np.ndarray, overwrite: bool = False) -> LUDecomposition:
    """LU factorization with partial pivoting.

    Parameters
    ----------
    matrix:
        Square :class:`~yancpy.matrix.Matrix`, or a square ``float64`` NumPy
        array.
    overwrite:
        Only meaningful for a writable C-contiguous ``float64`` array: the
        factorization is then computed in that buffer and the returned
        ``lu`` aliases it. :class:`~yancpy.matrix.Matrix` inputs are never
        modified.

    Notes
    -----
    A zero pivot is not an error here; it shows up as a zero in
    :attr:`LUDecomposition.pivots` and a zero determinant.
    """
    if isinstance(matrix, Matrix):
        _require_square(matrix, "LU decomposition")
        work = matrix.to_array()
    else:
        arr = np.asarray(matrix)
        if arr.ndim != 2 or arr.shape[0] != arr.shape[1]:
            raise DimensionError(
                f"LU decomposition requires a square matrix, got shape {arr.shape}"
            )
        inplace_ok = (
            overwrite
            and arr.dtype == np.float64
            and arr.flags.c_contiguous
            and arr.flags.writeable
        )
        work = arr if inplace_ok else np.array(arr, dtype=np.float64, order="C")

    perm, sign = lu_factor_inplace(work)
    return LUDecomposition(lu=work, permutation=perm, sign=float(sign))


def determinant(matrix: Matrix, numerics: Numerics | None = None) -> float:
    """Determinant of a square matrix.

    The 0x0 matrix has determinant 1. The 1x1 and 2x2 cases use closed forms
    (``a*d - b*c``), larger matrices the product of the LU pivots times the
    permutation sign.
    """
    _require_square(matrix, "determinant")
    n = matrix.rows
    if n == 0:
        return 1.0
    if n == 1:
        return matrix[0, 0]
    if n == 2:
        a, b, c, d = matrix.data
        return float(a * d - b * c)
    return lu_decompose(matrix).determinant()


def _check_singular(matrix: Matrix, factors: LUDecomposition, eps: float) -> None:
    n = matrix.rows
    norm = matrix.norm("inf")
    if n <= 2:
        det = determinant(matrix)
        log_det = math.log(abs(det)) if det != 0.0 else -math.inf
    else:
        det = factors.determinant()
        log_det = factors.log_abs_determinant()
    if norm == 0.0 or log_det < math.log(eps) + n * math.log(norm):
        raise SingularMatrixError(
            f"matrix of shape {matrix.shape} is singular: |det| = {abs(det):.3e}, "
            f"threshold {eps:.1e} * ||M||_inf^{n} with ||M||_inf = {norm:.3e}"
        )


def solve(
    matrix: Matrix,
    rhs: Matrix | npt.ArrayLike,
    numerics: Numerics | None = None,
    *,
    tolerance: float | None = None,
) -> Matrix | np.ndarray:
    """Solve ``matrix @ X = rhs``.

    ``rhs`` may be a vector (returns a vector) or a :class:`Matrix` (returns a
    matrix).

    Raises
    ------
    DimensionError
        If the matrix is not square or ``rhs`` has the wrong number of rows.
    SingularMatrixError
        If the matrix is singular within tolerance.
    """
    _require_square(matrix, "solve")
    eps = tolerance if tolerance is not None else resolve(numerics).linalg.singular_tolerance

    as_vector = not isinstance(rhs, Matrix)
    b = np.asarray(rhs, dtype=np.float64) if as_vector else rhs.to_array()
    if as_vector and b.ndim != 1:
        raise DimensionError(f"right-hand side must be a vector or Matrix, got shape {b.shape}")
    if b.shape[0] != matrix.rows:
        raise DimensionError(
            f"cannot solve system with matrix of shape {matrix.shape} "
            f"and right-hand side with {b.shape[0]} rows"
        )

    n = matrix.rows
    if n == 0:
        return np.zeros(0) if as_vector else Matrix.zeros(0, rhs.cols)

    factors = lu_decompose(matrix)
    _check_singular(matrix, factors, eps)

    columns = np.ascontiguousarray(b.reshape(n, -1))
    x = lu_solve(factors.lu, factors.permutation, columns)
    if as_vector:
        return x.ravel()
    return Matrix.from_array(x)


def inverse(
    matrix: Matrix,
    numerics: Numerics | None = None,
    *,
    tolerance: float | None = None,
) -> Matrix:
    """Inverse of a square matrix via its LU factors.

    Raises
    ------
    SingularMatrixError
        When ``|det| < eps * ||M||_inf ** n`` (``eps`` from
        ``numerics.linalg.singular_tolerance`` unless ``tolerance`` is given).
    """
    _require_square(matrix, "inverse")
    n = matrix.rows
    if n == 0:
        return Matrix.zeros(0, 0)
    return solve(matrix, Matrix.identity(n), numerics, tolerance=tolerance)


def _wilkinson_shift(a: complex, b: complex, c: complex, d: complex) -> complex:
    """Eigenvalue of ``[[a, b], [c, d]]`` closest to ``d``."""
    half_trace = 0.5 * (a + d)
    disc = cmath.sqrt(0.25 * (a - d) * (a - d) + b * c)
    mu1 = half_trace + disc
    mu2 = half_trace - disc
    return mu1 if abs(mu1 - d) <= abs(mu2 - d) else mu2


def eigenvalues(
    matrix: Matrix,
    numerics: Numerics | None = None,
    *,
    tolerance: float | None = None,
    max_iterations: int | None = None,
    events: EventBus | None = None,
    cancel: CancellationToken | None = None,
) -> np.ndarray:
    """Eigenvalues of a general real square matrix.

    The matrix is reduced to upper Hessenberg form, then shifted QR sweeps
    (Wilkinson shift, with an exceptional shift after a run of sweeps without
    deflation) are applied to the active leading block. Once the trailing
    subdiagonal entry is negligible the bottom diagonal entry is accepted as
    an eigenvalue and the block shrinks.

    Returns
    -------
    numpy.ndarray
        ``complex128`` eigenvalues ordered by their final diagonal position.
        Imaginary parts below tolerance are set to zero.

    Raises
    ------
    ConvergenceError
        After ``max_iterations`` sweeps. The partial estimate (accepted
        eigenvalues plus the current diagonal of the active block) is attached
        to the error, logged, and emitted as a ``warning`` event.
    """
    _require_square(matrix, "eigenvalues")
    cfg = resolve(numerics).linalg
    tol = tolerance if tolerance is not None else cfg.eigen_tolerance
    max_iter = max_iterations if max_iterations is not None else cfg.eigen_max_iterations

    n = matrix.rows
    if n == 0:
        return np.zeros(0, dtype=np.complex128)
    if n == 1:
        return np.array([matrix[0, 0]], dtype=np.complex128)

    h = hessenberg(matrix.to_array()).astype(np.complex128)
    scale = max(matrix.norm("fro"), np.finfo(np.float64).tiny)
    found = np.zeros(n, dtype=np.complex128)

    hi = n - 1
    iterations = 0
    since_deflation = 0
    while hi > 0:
        sub = abs(h[hi, hi - 1])
        neighbours = abs(h[hi, hi]) + abs(h[hi - 1, hi - 1])
        if sub <= tol * (neighbours if neighbours > 0.0 else scale):
            found[hi] = h[hi, hi]
            h[hi, hi - 1] = 0.0
            hi -= 1
            since_deflation = 0
            continue

        if iterations >= max_iter:
            estimate = found.copy()
            estimate[: hi + 1] = np.diag(h)[: hi + 1]
            message = (
                f"QR eigenvalue iteration did not converge after {iterations} sweeps "
                f"({hi + 1} of {n} eigenvalues unresolved, trailing subdiagonal {sub:.3e})"
            )
            log.warning(message)
            emit(
                events,
                WARNING,
                operation="eigenvalues",
                iteration=iterations,
                error=sub,
                estimate=estimate.tolist(),
            )
            raise ConvergenceError(message, iterations=iterations, estimate=estimate)

        checkpoint(cancel)

        if since_deflation > 0 and since_deflation % cfg.eigen_exceptional_shift_every == 0:
            mu = h[hi, hi] + 0.75 * sub
        else:
            mu = _wilkinson_shift(h[hi - 1, hi - 1], h[hi - 1, hi], h[hi, hi - 1], h[hi, hi])

        block = h[: hi + 1, : hi + 1]
        shift = mu * np.eye(hi + 1)
        q, r = np.linalg.qr(block - shift)
        h[: hi + 1, : hi + 1] = r @ q + shift

        iterations += 1
        since_deflation += 1
        log.numerics("eigenvalues sweep %d: active block %d, subdiagonal %.3e", iterations, hi + 1, sub)

    found[0] = h[0, 0]
    found.imag[np.abs(found.imag) <= tol * scale] = 0.0
    log.debug("eigenvalues converged in %d sweeps", iterations)
    return found
