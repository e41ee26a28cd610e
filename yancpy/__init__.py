from .complex import Complex
from .config import Config
from .crypto import RSAKeyPair, generate_rsa_keys, rsa_decrypt, rsa_encrypt
from .errors import (
    ConfigError,
    ConvergenceError,
    DimensionError,
    DivergenceError,
    DomainError,
    HandlerError,
    KeyGenerationError,
    SingularMatrixError,
    TaskCancelledError,
    UnsupportedOperationError,
    YancError,
)
from .functions import ComposedFunction, NumericalDerivative, Polynomial, UserFunction
from .linalg import determinant, eigenvalues, inverse, lu_decompose, solve
from .matrix import Matrix
from .numerics import Numerics
from .sampling import PlotSink, render_function, render_surface, sample_function, sample_surface
from .solvers import derivative, gradient_descent, integrate, kmeans, monte_carlo_integrate, newton_raphson
from .tasks import CancellationToken, EventBus, Scheduler, Task, TaskState, parallel_fft, parallel_integrate, parallel_monte_carlo
from .transforms import convolution, dft, fft, fft_frequencies, ifft

__version__ = "0.1.0"
