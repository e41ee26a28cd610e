"""Dense real matrices.

:class:`Matrix` stores ``rows * cols`` float64 values in row-major order.
Matrices are copy-on-write: the backing buffer is marked read-only and every
operation returns a new matrix. Zero-sized matrices (``rows == 0`` or
``cols == 0``) are valid and behave as degenerate cases of every operation.

The heavier operations (:meth:`Matrix.determinant`, :meth:`Matrix.inverse`,
:meth:`Matrix.eigenvalues`) delegate to :mod:`yancpy.linalg`.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from numbers import Real
from typing import TYPE_CHECKING

import numpy as np
import numpy.typing as npt

from yancpy.errors import DimensionError

if TYPE_CHECKING:
    from yancpy.numerics import Numerics


class Matrix:
    """Row-major dense ``float64`` matrix.

    Parameters
    ----------
    rows, cols:
        Shape of the matrix.
    data:
        Flat row-major sequence of exactly ``rows * cols`` values. The values
        are copied.

    Raises
    ------
    DimensionError
        If the shape is negative or ``len(data) != rows * cols``.
    """

    __slots__ = ("_rows", "_cols", "_data")

    def __init__(self, rows: int, cols: int, data: Iterable[float] | npt.ArrayLike):
        rows = int(rows)
        cols = int(cols)
        if rows < 0 or cols < 0:
            raise DimensionError(f"matrix shape must be non-negative, got ({rows}, {cols})")
        if not isinstance(data, (np.ndarray, Sequence)):
            data = list(data)
        flat = np.array(data, dtype=np.float64).ravel()
        if flat.size != rows * cols:
            raise DimensionError(
                f"data has {flat.size} elements but a ({rows}, {cols}) matrix needs {rows * cols}"
            )
        flat.setflags(write=False)
        self._rows = rows
        self._cols = cols
        self._data = flat

    @classmethod
    def from_rows(cls, rows: Sequence[Sequence[float]]) -> Matrix:
        """Build a matrix from nested row sequences; ragged rows are rejected."""
        n_rows = len(rows)
        n_cols = len(rows[0]) if n_rows else 0
        for i, row in enumerate(rows):
            if len(row) != n_cols:
                raise DimensionError(
                    f"row {i} has {len(row)} entries, expected {n_cols}"
                )
        return cls(n_rows, n_cols, [value for row in rows for value in row])

    @classmethod
    def from_array(cls, array: npt.ArrayLike) -> Matrix:
        """Build a matrix from a 2D array-like (a 1D input becomes a column)."""
        arr = np.asarray(array, dtype=np.float64)
        if arr.ndim == 1:
            arr = arr.reshape(-1, 1)
        if arr.ndim != 2:
            raise DimensionError(f"expected a 2D array, got shape {arr.shape}")
        return cls(arr.shape[0], arr.shape[1], arr)

    @classmethod
    def zeros(cls, rows: int, cols: int) -> Matrix:
        return cls(rows, cols, np.zeros(rows * cols))

    @classmethod
    def identity(cls, n: int) -> Matrix:
        return cls(n, n, np.eye(n))

    @property
    def rows(self) -> int:
        return self._rows

    @property
    def cols(self) -> int:
        return self._cols

    @property
    def shape(self) -> tuple[int, int]:
        return self._rows, self._cols

    @property
    def data(self) -> np.ndarray:
        """Read-only flat row-major view of the values."""
        return self._data

    @property
    def is_square(self) -> bool:
        return self._rows == self._cols

    def to_array(self) -> np.ndarray:
        """Return a writable 2D copy."""
        return self._data.reshape(self._rows, self._cols).copy()

    def to_rows(self) -> list[list[float]]:
        return self._data.reshape(self._rows, self._cols).tolist()

    def _view(self) -> np.ndarray:
        return self._data.reshape(self._rows, self._cols)

    def __getitem__(self, index: tuple[int, int]) -> float:
        i, j = index
        if not (0 <= i < self._rows and 0 <= j < self._cols):
            raise IndexError(f"index ({i}, {j}) out of range for shape {self.shape}")
        return float(self._data[i * self._cols + j])

    def row(self, i: int) -> np.ndarray:
        return self._view()[i].copy()

    def column(self, j: int) -> np.ndarray:
        return self._view()[:, j].copy()

    def _check_same_shape(self, other: Matrix, op: str) -> None:
        if not isinstance(other, Matrix):
            raise TypeError(f"cannot {op} Matrix and {type(other).__name__}")
        if self.shape != other.shape:
            raise DimensionError(
                f"cannot {op} matrices of shapes {self.shape} and {other.shape}"
            )

    def add(self, other: Matrix) -> Matrix:
        self._check_same_shape(other, "add")
        return Matrix(self._rows, self._cols, self._data + other._data)

    def sub(self, other: Matrix) -> Matrix:
        self._check_same_shape(other, "subtract")
        return Matrix(self._rows, self._cols, self._data - other._data)

    def mul(self, other: Matrix) -> Matrix:
        """Matrix product ``self @ other``."""
        if not isinstance(other, Matrix):
            raise TypeError(f"cannot multiply Matrix and {type(other).__name__}")
        if self._cols != other._rows:
            raise DimensionError(
                f"cannot multiply matrices of shapes {self.shape} and {other.shape}: "
                f"inner dimensions {self._cols} and {other._rows} differ"
            )
        return Matrix(self._rows, other._cols, self._view() @ other._view())

    def matvec(self, vector: npt.ArrayLike) -> np.ndarray:
        vec = np.asarray(vector, dtype=np.float64)
        if vec.shape != (self._cols,):
            raise DimensionError(
                f"cannot multiply matrix of shape {self.shape} with vector of shape {vec.shape}"
            )
        return self._view() @ vec

    def scale(self, factor: float) -> Matrix:
        return Matrix(self._rows, self._cols, self._data * float(factor))

    def transpose(self) -> Matrix:
        return Matrix(self._cols, self._rows, self._view().T)

    def norm(self, kind: str = "fro") -> float:
        """Matrix norm: ``"fro"`` (Frobenius), ``"1"`` (max column sum) or ``"inf"`` (max row sum)."""
        if self._data.size == 0:
            return 0.0
        view = np.abs(self._view())
        match kind:
            case "fro":
                return float(np.sqrt(np.sum(view * view)))
            case "1":
                return float(view.sum(axis=0).max())
            case "inf":
                return float(view.sum(axis=1).max())
            case _:
                raise ValueError(f"unknown norm {kind!r}; expected 'fro', '1' or 'inf'")

    def allclose(self, other: Matrix, *, rtol: float = 1e-9, atol: float = 1e-12) -> bool:
        return self.shape == other.shape and bool(
            np.allclose(self._data, other._data, rtol=rtol, atol=atol)
        )

    def determinant(self, numerics: Numerics | None = None) -> float:
        from yancpy.linalg import determinant

        return determinant(self, numerics=numerics)

    def inverse(self, numerics: Numerics | None = None) -> Matrix:
        from yancpy.linalg import inverse

        return inverse(self, numerics=numerics)

    def eigenvalues(self, numerics: Numerics | None = None) -> np.ndarray:
        from yancpy.linalg import eigenvalues

        return eigenvalues(self, numerics=numerics)

    def __add__(self, other):
        return self.add(other)

    def __sub__(self, other):
        return self.sub(other)

    def __matmul__(self, other):
        return self.mul(other)

    def __mul__(self, other):
        if isinstance(other, Real):
            return self.scale(other)
        return NotImplemented

    __rmul__ = __mul__

    def __neg__(self):
        return self.scale(-1.0)

    def __eq__(self, other):
        if not isinstance(other, Matrix):
            return NotImplemented
        return self.shape == other.shape and bool(np.array_equal(self._data, other._data))

    __hash__ = None

    def __repr__(self):
        return f"Matrix({self._rows}, {self._cols}, {self._data.tolist()!r})"
