"""Math function variants sharing the ``evaluate``/``derivative`` capability surface."""

from yancpy.functions.base import (
    Capability,
    MathFunction,
    as_math_function,
    capabilities_of,
    evaluate_many,
    require,
    supports,
)
from yancpy.functions.composed import (
    ComposedFunction,
    NumericalDerivative,
    UserFunction,
    analytic_derivative,
    central_difference,
    default_step,
    differentiate,
)
from yancpy.functions.polynomial import Polynomial

__all__ = [
    "Capability",
    "ComposedFunction",
    "MathFunction",
    "NumericalDerivative",
    "Polynomial",
    "UserFunction",
    "analytic_derivative",
    "as_math_function",
    "capabilities_of",
    "central_difference",
    "default_step",
    "differentiate",
    "evaluate_many",
    "require",
    "supports",
]
