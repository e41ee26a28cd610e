import numpy as np
import pytest

from yancpy.errors import ConvergenceError, DimensionError, SingularMatrixError
from yancpy.linalg import determinant, eigenvalues, inverse, lu_decompose, solve
from yancpy.matrix import Matrix
from yancpy.tasks.events import EventBus


def _sorted(values) -> np.ndarray:
    values = np.asarray(values)
    return values[np.lexsort((values.imag.round(6), values.real.round(6)))]


def _random_matrix(n: int, seed: int) -> Matrix:
    rng = np.random.default_rng(seed)
    return Matrix.from_array(rng.normal(size=(n, n)) + n * np.eye(n))


def test_two_by_two_determinant_is_closed_form():
    assert determinant(Matrix.from_rows([[1, 2], [3, 4]])) == -2.0


@pytest.mark.parametrize("n", [3, 5, 8])
def test_determinant_matches_numpy(n):
    m = _random_matrix(n, seed=n)
    assert determinant(m) == pytest.approx(np.linalg.det(m.to_array()), rel=1e-10)


def test_determinant_edge_cases():
    assert determinant(Matrix.zeros(0, 0)) == 1.0
    assert determinant(Matrix.from_rows([[7.5]])) == 7.5
    with pytest.raises(DimensionError, match="square"):
        determinant(Matrix.zeros(2, 3))


def test_lu_factors_reproduce_permuted_matrix():
    m = Matrix.from_rows([[0, 2, 1], [1, 1, 1], [4, 3, 2]])
    lu = lu_decompose(m)
    lower = lu.lower.to_array()
    upper = lu.upper.to_array()
    np.testing.assert_allclose(lower @ upper, m.to_array()[lu.permutation])
    assert lu.determinant() == pytest.approx(determinant(m))


def test_lu_overwrite_aliases_the_buffer():
    arr = np.array([[4.0, 3.0], [6.0, 3.0]])
    lu = lu_decompose(arr, overwrite=True)
    assert lu.lu is arr

    untouched = Matrix.from_rows([[4.0, 3.0], [6.0, 3.0]])
    lu_decompose(untouched, overwrite=True)
    assert untouched == Matrix.from_rows([[4.0, 3.0], [6.0, 3.0]])


@pytest.mark.parametrize("n", [1, 2, 4, 10])
def test_inverse_round_trip(n):
    m = _random_matrix(n, seed=100 + n)
    product = m.inverse().mul(m)
    assert product.allclose(Matrix.identity(n), atol=1e-10)


def test_singular_inverse_fails():
    with pytest.raises(SingularMatrixError, match="singular"):
        inverse(Matrix.from_rows([[1, 2], [2, 4]]))


def test_singular_threshold_is_relative_to_norm():
    tiny = Matrix.from_rows([[1e-8, 0.0], [0.0, 1e-8]])
    expected = Matrix.from_rows([[1e8, 0.0], [0.0, 1e8]])
    assert inverse(tiny).allclose(expected)

    nearly_singular = Matrix.from_rows([[1.0, 1.0], [1.0, 1.0 + 1e-14]])
    with pytest.raises(SingularMatrixError):
        inverse(nearly_singular)


def test_solve_vector_and_matrix_rhs():
    m = Matrix.from_rows([[3, 1], [1, 2]])
    np.testing.assert_allclose(solve(m, [9, 8]), [2.0, 3.0])
    x = solve(m, Matrix.from_rows([[9, 3], [8, 1]]))
    np.testing.assert_allclose(x.to_array(), [[2.0, 1.0], [3.0, 0.0]])

    with pytest.raises(DimensionError):
        solve(m, [1, 2, 3])


def test_eigenvalues_of_symmetric_matrix():
    m = Matrix.from_rows([[2, 1, 0], [1, 3, 1], [0, 1, 4]])
    values = eigenvalues(m)
    assert values.dtype == np.complex128
    np.testing.assert_allclose(np.sort(values.real), np.linalg.eigvalsh(m.to_array()), atol=1e-9)
    assert np.all(values.imag == 0.0)


def test_eigenvalues_of_rotation_are_complex_pair():
    rotation = Matrix.from_rows([[0, -1], [1, 0]])
    values = _sorted(eigenvalues(rotation))
    np.testing.assert_allclose(values, [-1j, 1j], atol=1e-10)


def test_eigenvalues_of_general_matrix_match_numpy():
    m = _random_matrix(6, seed=7)
    ours = _sorted(eigenvalues(m))
    reference = _sorted(np.linalg.eigvals(m.to_array()))
    np.testing.assert_allclose(ours, reference, atol=1e-8)


def test_eigenvalue_budget_reports_estimate():
    received = []
    bus = EventBus()
    bus.subscribe("warning", received.append)
    m = _random_matrix(5, seed=3)

    with pytest.raises(ConvergenceError) as excinfo:
        eigenvalues(m, max_iterations=1, events=bus)

    assert excinfo.value.iterations == 1
    assert len(excinfo.value.estimate) == 5
    assert len(received) == 1
    assert received[0].payload["operation"] == "eigenvalues"
