import math

import pytest

from yancpy.errors import ConvergenceError, DomainError, TaskCancelledError
from yancpy.functions import Polynomial, UserFunction
from yancpy.numerics import Numerics, SolverNumerics
from yancpy.solvers import derivative, integrate
from yancpy.tasks.task import CancellationToken


@pytest.mark.parametrize("x", [-3.0, -0.5, 0.0, 1.0, 10.0])
def test_numerical_derivative_matches_analytic(x):
    p = Polynomial([1.0, -4.0, 0.5, 2.0])
    numerical = derivative(UserFunction(p.evaluate), x)
    analytic = p.derivative().evaluate(x)
    assert numerical == pytest.approx(analytic, rel=1e-7, abs=1e-7)


def test_derivative_prefers_analytic():
    f = UserFunction(math.sin, derivative=lambda x: 42.0)
    assert derivative(f, 0.0) == 42.0
    assert derivative(f, 0.0, h=1e-5) == pytest.approx(1.0)


def test_derivative_step_from_configuration():
    numerics = Numerics(solver=SolverNumerics(derivative_step=1e-3))
    value = derivative(UserFunction(lambda x: x**3), 1.0, numerics=numerics)
    # Central difference error for x**3 is exactly h**2.
    assert value == pytest.approx(3.0 + 1e-6, rel=1e-9)


def test_integrate_quadratic():
    p = Polynomial([1.0, -2.0, 1.0])
    assert integrate(p, 0.0, 1.0) == pytest.approx(1.0 / 3.0, abs=1e-12)


@pytest.mark.parametrize(
    "f,a,b,expected",
    [
        (math.sin, 0.0, math.pi, 2.0),
        (math.exp, 0.0, 1.0, math.e - 1.0),
        (lambda x: 1.0 / (1.0 + x * x), -1.0, 1.0, math.pi / 2.0),
    ],
)
def test_integrate_known_values(f, a, b, expected):
    assert integrate(f, a, b) == pytest.approx(expected, abs=1e-9)


def test_integrate_orientation():
    assert integrate(math.cos, 1.0, 1.0) == 0.0
    assert integrate(math.cos, 1.0, 0.0) == pytest.approx(-math.sin(1.0), abs=1e-10)


def test_integrate_depth_limit():
    with pytest.raises(ConvergenceError, match="depth"):
        integrate(lambda x: math.sin(1.0 / x) if x else 0.0, 0.0, 1.0, max_depth=5)


def test_integrate_rejects_non_finite_integrand():
    with pytest.raises(DomainError, match="not finite"):
        integrate(lambda x: 1.0 / x if x else math.inf, 0.0, 1.0)


def test_integrate_honours_cancellation():
    token = CancellationToken()
    token.cancel()
    with pytest.raises(TaskCancelledError):
        integrate(math.sin, 0.0, 1.0, cancel=token)
