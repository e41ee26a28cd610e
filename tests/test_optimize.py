import numpy as np
import pytest

from yancpy.errors import DivergenceError, DomainError
from yancpy.numerics import Numerics, SolverNumerics
from yancpy.solvers import gradient_descent
from yancpy.solvers.optimize import numerical_gradient, step_size
from yancpy.tasks.events import EventBus

CENTER = np.array([1.0, -2.0])


def bowl(x):
    return float(np.sum((x - CENTER) ** 2))


def bowl_gradient(x):
    return 2.0 * (x - CENTER)


def test_converges_on_quadratic_bowl():
    result = gradient_descent(bowl, bowl_gradient, [0.0, 0.0], 0.1)
    assert result.converged
    np.testing.assert_allclose(result.x, CENTER, atol=1e-7)
    assert result.value == pytest.approx(0.0, abs=1e-14)
    assert result.gradient_norm < 1e-8


def test_numerical_gradient_fallback():
    result = gradient_descent(bowl, None, [3.0, 3.0], 0.2, tolerance=1e-6)
    assert result.converged
    np.testing.assert_allclose(result.x, CENTER, atol=1e-5)
    np.testing.assert_allclose(numerical_gradient(bowl, np.zeros(2)), [-2.0, 4.0], atol=1e-8)


def test_scalar_starting_point():
    result = gradient_descent(lambda x: (x - 3.0) ** 2, lambda x: 2.0 * (x - 3.0), 0.0, 0.25)
    assert float(result.x) == pytest.approx(3.0, abs=1e-8)


@pytest.mark.parametrize("schedule", ["fixed", "exponential", "inverse"])
def test_schedules_converge(schedule):
    numerics = Numerics(solver=SolverNumerics(learning_schedule=schedule, learning_decay=0.001))
    result = gradient_descent(bowl, bowl_gradient, [0.0, 0.0], 0.1, numerics=numerics)
    assert result.converged


def test_step_size_schedules():
    assert step_size("fixed", 0.5, 0.1, 10) == 0.5
    assert step_size("exponential", 0.5, 0.1, 10) == pytest.approx(0.5 * np.exp(-1.0))
    assert step_size("inverse", 0.5, 0.1, 10) == pytest.approx(0.25)
    with pytest.raises(DomainError):
        step_size("cosine", 0.5, 0.1, 10)


def test_iteration_cap_reports_not_converged():
    result = gradient_descent(bowl, bowl_gradient, [0.0, 0.0], 0.01, max_iterations=5)
    assert not result.converged
    assert result.iterations == 5


def test_divergence_with_large_step():
    with pytest.raises(DivergenceError, match="diverged"):
        gradient_descent(bowl, bowl_gradient, [0.0, 0.0], 1.5)


def test_emits_convergence_events():
    bus = EventBus()
    events = []
    bus.subscribe("convergence", events.append)
    result = gradient_descent(bowl, bowl_gradient, [0.0, 0.0], 0.1, events=bus)
    assert len(events) == result.iterations
    assert events[-1].payload["error"] == pytest.approx(result.gradient_norm)
