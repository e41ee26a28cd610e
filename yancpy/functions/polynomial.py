from __future__ import annotations

from collections.abc import Sequence

import numpy as np
import numpy.typing as npt

from yancpy.functions.base import Capability


class Polynomial:
    """Real polynomial with coefficients stored lowest degree first.

    ``Polynomial([1, -2, 1])`` is ``1 - 2x + x**2``. Trailing zero coefficients
    are trimmed; the zero polynomial has the single coefficient ``0.0``.
    """

    capabilities = frozenset({Capability.EVALUATE, Capability.DERIVATIVE})

    def __init__(self, coefficients: Sequence[float] | npt.ArrayLike):
        coefficients = np.array(coefficients, dtype=np.float64).ravel()
        nonzero = np.flatnonzero(coefficients)
        if nonzero.size == 0:
            coefficients = np.zeros(1)
        else:
            coefficients = coefficients[: nonzero[-1] + 1]
        coefficients.setflags(write=False)
        self._coefficients = coefficients

    @property
    def coefficients(self) -> np.ndarray:
        return self._coefficients

    @property
    def degree(self) -> int:
        """Degree of the polynomial; the zero polynomial has degree 0."""
        return self._coefficients.size - 1

    def evaluate(self, x):
        """Evaluate with Horner's method; works on scalars and arrays."""
        result = np.zeros_like(np.asarray(x, dtype=np.float64))
        for c in self._coefficients[::-1]:
            result = result * x + c
        if np.ndim(result) == 0:
            return float(result)
        return result

    evaluate_many = evaluate

    def __call__(self, x):
        return self.evaluate(x)

    def derivative(self) -> Polynomial:
        if self.degree == 0:
            return Polynomial([0.0])
        powers = np.arange(1, self._coefficients.size, dtype=np.float64)
        return Polynomial(self._coefficients[1:] * powers)

    def antiderivative(self, constant: float = 0.0) -> Polynomial:
        """Antiderivative whose value at zero is ``constant``."""
        powers = np.arange(1, self._coefficients.size + 1, dtype=np.float64)
        return Polynomial(np.concatenate(([constant], self._coefficients / powers)))

    def add(self, other: Polynomial) -> Polynomial:
        n = max(self._coefficients.size, other._coefficients.size)
        out = np.zeros(n)
        out[: self._coefficients.size] += self._coefficients
        out[: other._coefficients.size] += other._coefficients
        return Polynomial(out)

    def mul(self, other: Polynomial) -> Polynomial:
        from yancpy.transforms import convolution

        return Polynomial(convolution(self._coefficients, other._coefficients))

    def roots(self, numerics=None) -> np.ndarray:
        """Complex roots, computed as eigenvalues of the companion matrix."""
        from yancpy.linalg import eigenvalues
        from yancpy.matrix import Matrix

        n = self.degree
        if n == 0:
            return np.zeros(0, dtype=np.complex128)
        monic = self._coefficients[:-1] / self._coefficients[-1]
        companion = np.zeros((n, n))
        companion[1:, :-1] = np.eye(n - 1)
        companion[:, -1] = -monic
        return eigenvalues(Matrix.from_array(companion), numerics=numerics)

    def __add__(self, other):
        return self.add(other)

    def __mul__(self, other):
        if isinstance(other, Polynomial):
            return self.mul(other)
        return Polynomial(self._coefficients * float(other))

    __rmul__ = __mul__

    def __eq__(self, other):
        if not isinstance(other, Polynomial):
            return NotImplemented
        return bool(np.array_equal(self._coefficients, other._coefficients))

    __hash__ = None

    def __repr__(self):
        return f"Polynomial({self._coefficients.tolist()!r})"
