import math

import numpy as np
import pytest

from yancpy.errors import DomainError, UnsupportedOperationError
from yancpy.functions import Polynomial
from yancpy.sampling import PlotSink, render_function, render_surface, sample_function, sample_surface


class RecordingSink:
    def __init__(self):
        self.calls = []

    def plot_function(self, x, y):
        self.calls.append(("function", x, y))

    def plot_surface(self, x, y, z):
        self.calls.append(("surface", x, y, z))


def test_sample_function_grid():
    x, y = sample_function(Polynomial([0.0, 0.0, 1.0]), -1.0, 1.0, 5)
    np.testing.assert_allclose(x, [-1.0, -0.5, 0.0, 0.5, 1.0])
    np.testing.assert_allclose(y, x**2)


def test_sample_surface_orientation():
    x, y, z = sample_surface(lambda a, b: a + 10 * b, (0.0, 1.0), (0.0, 2.0), samples=(2, 3))
    assert z.shape == (3, 2)
    assert z[2, 1] == x[1] + 10 * y[2]


def test_vectorized_surface_matches_pointwise():
    f = lambda a, b: np.sin(a) * np.cos(b)  # noqa: E731
    _, _, pointwise = sample_surface(f, (0.0, math.pi), (0.0, math.pi), 7)
    _, _, vectorized = sample_surface(f, (0.0, math.pi), (0.0, math.pi), 7, vectorized=True)
    np.testing.assert_allclose(vectorized, pointwise)


def test_render_pushes_arrays_to_sink():
    sink = RecordingSink()
    assert isinstance(sink, PlotSink)
    render_function(sink, math.sin, 0.0, 1.0, 10)
    render_surface(sink, lambda a, b: a * b, (0.0, 1.0), (0.0, 1.0), 4)
    assert [call[0] for call in sink.calls] == ["function", "surface"]
    assert sink.calls[1][3].shape == (4, 4)


def test_sink_without_surface_support():
    class LineOnly:
        def plot_function(self, x, y):
            pass

    with pytest.raises(UnsupportedOperationError, match="plot_surface"):
        render_surface(LineOnly(), lambda a, b: a, (0.0, 1.0), (0.0, 1.0))


def test_invalid_ranges():
    with pytest.raises(DomainError):
        sample_function(math.sin, 0.0, 0.0)
    with pytest.raises(DomainError):
        sample_function(math.sin, 0.0, 1.0, samples=1)
