import math

import pytest

from yancpy.errors import ConvergenceError, DomainError
from yancpy.functions import Polynomial, UserFunction
from yancpy.solvers import newton_raphson
from yancpy.tasks.events import EventBus


def test_double_root_converges_with_non_increasing_errors():
    bus = EventBus()
    events = []
    bus.subscribe("convergence", events.append)

    root = newton_raphson(Polynomial([1.0, -2.0, 1.0]), 0.5, events=bus)

    assert root == pytest.approx(1.0, abs=1e-5)
    assert 0 < len(events) < 100
    iterations = [e.payload["iteration"] for e in events]
    assert iterations == list(range(1, len(events) + 1))
    errors = [e.payload["error"] for e in events]
    assert all(later <= earlier for earlier, later in zip(errors, errors[1:]))
    assert errors[-1] < 1e-12


def test_simple_root_with_numerical_derivative():
    root = newton_raphson(UserFunction(lambda x: x * x - 2.0), 1.0)
    assert root == pytest.approx(math.sqrt(2.0), rel=1e-12)


def test_starting_at_root_returns_immediately():
    bus = EventBus()
    events = []
    bus.subscribe("convergence", events.append)
    assert newton_raphson(Polynomial([-1.0, 1.0]), 1.0, events=bus) == 1.0
    assert events == []


def test_vanishing_derivative():
    with pytest.raises(DomainError, match="derivative vanishes"):
        newton_raphson(Polynomial([1.0, 0.0, 1.0]), 0.0)


def test_iteration_budget():
    with pytest.raises(ConvergenceError) as excinfo:
        newton_raphson(UserFunction(math.atan, derivative=lambda x: 1.0 / (1.0 + x * x)), 0.5, max_iterations=2)
    assert excinfo.value.iterations == 2
    assert excinfo.value.estimate is not None


def test_iteration_budget_on_rootless_function():
    with pytest.raises(ConvergenceError, match="did not converge"):
        newton_raphson(Polynomial([1.0, 0.0, 1.0]), 0.3, max_iterations=20)
