import numpy as np
import pytest

from yancpy.errors import DimensionError
from yancpy.matrix import Matrix


def test_row_major_layout():
    m = Matrix(2, 3, [1, 2, 3, 4, 5, 6])
    assert m.shape == (2, 3)
    assert m[1, 0] == 4.0
    assert m.to_rows() == [[1, 2, 3], [4, 5, 6]]
    np.testing.assert_array_equal(m.column(2), [3, 6])


def test_data_length_must_match_shape():
    with pytest.raises(DimensionError, match="needs 6"):
        Matrix(2, 3, [1, 2, 3])


def test_ragged_rows_are_rejected():
    with pytest.raises(DimensionError):
        Matrix.from_rows([[1, 2], [3]])


def test_arithmetic_returns_new_matrices():
    a = Matrix.from_rows([[1, 2], [3, 4]])
    b = Matrix.identity(2)

    assert a.add(b) == Matrix.from_rows([[2, 2], [3, 5]])
    assert a - b == Matrix.from_rows([[0, 2], [3, 3]])
    assert a @ b == a
    assert 2 * a == Matrix.from_rows([[2, 4], [6, 8]])
    assert a.transpose() == Matrix.from_rows([[1, 3], [2, 4]])
    assert a == Matrix.from_rows([[1, 2], [3, 4]])


def test_buffer_is_read_only():
    m = Matrix.identity(2)
    with pytest.raises(ValueError):
        m.data[0] = 5.0


@pytest.mark.parametrize(
    "a_shape,b_shape",
    [((2, 3), (2, 3)), ((3, 2), (3, 2))],
)
def test_product_dimension_mismatch(a_shape, b_shape):
    a = Matrix.zeros(*a_shape)
    b = Matrix.zeros(*b_shape)
    with pytest.raises(DimensionError, match="inner dimensions"):
        a.mul(b)


def test_add_dimension_mismatch_names_shapes():
    with pytest.raises(DimensionError, match=r"\(2, 2\) and \(3, 3\)"):
        Matrix.identity(2).add(Matrix.identity(3))


def test_zero_sized_matrices_are_valid():
    empty = Matrix.zeros(0, 3)
    assert empty.shape == (0, 3)
    assert empty.transpose().shape == (3, 0)
    assert (empty @ Matrix.zeros(3, 2)).shape == (0, 2)
    assert (Matrix.zeros(2, 0) @ Matrix.zeros(0, 2)) == Matrix.zeros(2, 2)
    assert empty.norm() == 0.0


def test_norms():
    m = Matrix.from_rows([[1, -2], [3, 4]])
    assert m.norm("1") == 6.0
    assert m.norm("inf") == 7.0
    assert m.norm("fro") == pytest.approx(np.sqrt(30.0))
