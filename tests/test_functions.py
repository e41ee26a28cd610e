import math

import numpy as np
import pytest

from yancpy.errors import UnsupportedOperationError
from yancpy.functions import (
    Capability,
    ComposedFunction,
    NumericalDerivative,
    Polynomial,
    UserFunction,
    analytic_derivative,
    as_math_function,
    capabilities_of,
    differentiate,
)


def test_polynomial_horner_evaluation():
    p = Polynomial([1.0, -2.0, 1.0])
    assert p.evaluate(3.0) == 4.0
    np.testing.assert_allclose(p.evaluate(np.array([0.0, 1.0, 2.0])), [1.0, 0.0, 1.0])


def test_polynomial_trims_trailing_zeros():
    p = Polynomial([1.0, 2.0, 0.0, 0.0])
    assert p.degree == 1
    assert Polynomial([0.0, 0.0]).coefficients.tolist() == [0.0]


def test_polynomial_calculus():
    p = Polynomial([1.0, -2.0, 1.0])
    assert p.derivative() == Polynomial([-2.0, 2.0])
    assert p.antiderivative().derivative() == p
    assert Polynomial([5.0]).derivative() == Polynomial([0.0])


def test_polynomial_arithmetic():
    a = Polynomial([1.0, 1.0])
    b = Polynomial([-1.0, 1.0])
    assert a + b == Polynomial([0.0, 2.0])
    np.testing.assert_allclose((a * b).coefficients, [-1.0, 0.0, 1.0], atol=1e-12)


def test_polynomial_roots():
    roots = np.sort(Polynomial([6.0, -5.0, 1.0]).roots().real)
    np.testing.assert_allclose(roots, [2.0, 3.0], atol=1e-9)
    assert Polynomial([4.0]).roots().size == 0


def test_capability_probing():
    assert capabilities_of(Polynomial([1.0])) == {Capability.EVALUATE, Capability.DERIVATIVE}
    assert capabilities_of(UserFunction(math.sin)) == {Capability.EVALUATE}

    class Foreign:
        def evaluate(self, x):
            return x

    assert capabilities_of(Foreign()) == {Capability.EVALUATE}


def test_plain_callables_are_wrapped():
    f = as_math_function(lambda x: x * x)
    assert isinstance(f, UserFunction)
    assert f.evaluate(3.0) == 9.0

    with pytest.raises(UnsupportedOperationError, match="evaluate"):
        as_math_function(42)


def test_missing_derivative_without_fallback():
    with pytest.raises(UnsupportedOperationError, match="derivative"):
        analytic_derivative(UserFunction(math.sin))


def test_user_function_with_analytic_derivative():
    f = UserFunction(math.sin, derivative=math.cos)
    assert f.derivative().evaluate(0.0) == 1.0


def test_composed_chain_rule():
    inner = Polynomial([0.0, 2.0])
    outer = UserFunction(math.sin, derivative=math.cos)
    h = ComposedFunction(outer, inner)
    assert h.evaluate(0.25) == pytest.approx(math.sin(0.5))
    assert h.derivative().evaluate(0.25) == pytest.approx(2.0 * math.cos(0.5))

    no_derivative = ComposedFunction(UserFunction(math.exp), inner)
    assert Capability.DERIVATIVE not in no_derivative.capabilities
    with pytest.raises(UnsupportedOperationError):
        no_derivative.derivative()


def test_numerical_derivative_fallback():
    d = differentiate(UserFunction(math.exp))
    assert isinstance(d, NumericalDerivative)
    assert d.evaluate(1.0) == pytest.approx(math.e, rel=1e-8)
    assert d.derivative().evaluate(0.0) == pytest.approx(1.0, rel=1e-4)
