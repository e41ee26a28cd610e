from yancpy.solvers.calculus import derivative, integrate
from yancpy.solvers.clustering import KMeansResult, kmeans
from yancpy.solvers.montecarlo import MonteCarloResult, combine_estimates, monte_carlo_integrate
from yancpy.solvers.optimize import OptimizationResult, gradient_descent, numerical_gradient
from yancpy.solvers.roots import newton_raphson

__all__ = [
    "KMeansResult",
    "MonteCarloResult",
    "OptimizationResult",
    "combine_estimates",
    "derivative",
    "gradient_descent",
    "integrate",
    "kmeans",
    "monte_carlo_integrate",
    "newton_raphson",
    "numerical_gradient",
]
