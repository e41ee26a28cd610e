"""Fourier transforms and convolution.

:func:`fft` is a radix-2 decimation-in-time transform: the signal is split by
even/odd index, both halves are transformed recursively and combined with
butterflies. A block whose length is odd (and not 1) cannot be split further
and is transformed with the direct O(n^2) DFT instead. Power-of-two lengths
therefore run in O(n log n); other lengths hit that performance cliff at the
odd factor but still return the exact DFT.

Output bins are in natural order: bin 0 is the DC component, bin ``k`` is
frequency ``k / (n * spacing)`` (see :func:`fft_frequencies`).
"""

from __future__ import annotations

import logging

import numpy as np
import numpy.typing as npt

from yancpy.complex import Complex
from yancpy.kernels.cpu_numba import direct_convolution, direct_dft
from yancpy.numerics import Numerics, resolve

log = logging.getLogger(__name__)


def _as_array(values: npt.ArrayLike) -> np.ndarray:
    if isinstance(values, np.ndarray):
        arr = values
    else:
        values = list(values)
        if any(isinstance(v, Complex) for v in values):
            values = [complex(Complex.from_value(v)) for v in values]
        arr = np.asarray(values)
    if arr.ndim != 1:
        raise ValueError(f"signal must be one-dimensional, got shape {arr.shape}")
    return arr


def as_signal(values: npt.ArrayLike) -> np.ndarray:
    """Coerce a sequence of numbers or :class:`~yancpy.complex.Complex` values to ``complex128``."""
    return np.ascontiguousarray(_as_array(values), dtype=np.complex128)


def is_power_of_two(n: int) -> bool:
    return n > 0 and (n & (n - 1)) == 0


def next_power_of_two(n: int) -> int:
    return 1 if n <= 1 else 1 << (int(n) - 1).bit_length()


def _fft(x: np.ndarray, sign: float) -> np.ndarray:
    n = x.shape[0]
    if n == 1:
        return x.copy()
    if n % 2:
        log.debug("odd block of length %d: direct DFT fallback", n)
        return direct_dft(np.ascontiguousarray(x), sign)

    even = _fft(x[0::2], sign)
    odd = _fft(x[1::2], sign)
    half = n // 2
    twiddle = np.exp(sign * 2j * np.pi * np.arange(half) / n) * odd
    return np.concatenate((even + twiddle, even - twiddle))


def fft(signal: npt.ArrayLike) -> np.ndarray:
    """Discrete Fourier transform ``X[k] = sum_t x[t] exp(-2 pi i k t / n)``.

    Parameters
    ----------
    signal:
        Real or complex samples.

    Returns
    -------
    numpy.ndarray
        ``complex128`` spectrum of the same length, natural bin order.
    """
    x = as_signal(signal)
    if x.size == 0:
        return x.copy()
    if not is_power_of_two(x.size):
        log.debug("fft length %d is not a power of two; odd factors use the direct DFT", x.size)
    return _fft(x, -1.0)


def ifft(spectrum: npt.ArrayLike) -> np.ndarray:
    """Normalized inverse of :func:`fft`; ``ifft(fft(x)) ~= x``."""
    x = as_signal(spectrum)
    if x.size == 0:
        return x.copy()
    return _fft(x, 1.0) / x.size


def dft(signal: npt.ArrayLike, inverse: bool = False) -> np.ndarray:
    """Direct O(n^2) transform; the inverse is normalized like :func:`ifft`."""
    x = as_signal(signal)
    if x.size == 0:
        return x.copy()
    if inverse:
        return direct_dft(x, 1.0) / x.size
    return direct_dft(x, -1.0)


def fft_frequencies(n: int, spacing: float = 1.0) -> np.ndarray:
    """Frequencies of the ``n`` bins returned by :func:`fft`, in natural order.

    Bins past the Nyquist frequency are reported as negative frequencies,
    ``[0, 1, ..., n/2 - 1, -n/2, ..., -1] / (n * spacing)`` for even ``n``.
    """
    if n < 0:
        raise ValueError(f"n must be non-negative, got {n}")
    if n == 0:
        return np.zeros(0)
    k = np.arange(n)
    k[k >= (n + 1) // 2] -= n
    return k / (n * spacing)


def convolution(
    a: npt.ArrayLike,
    b: npt.ArrayLike,
    numerics: Numerics | None = None,
    *,
    direct_threshold: int | None = None,
) -> np.ndarray:
    """Full linear convolution, ``len(a) + len(b) - 1`` samples.

    When the shorter operand has at most ``direct_threshold`` samples
    (``numerics.transform.direct_convolution_threshold`` by default) the
    direct sum is used; otherwise both operands are zero padded to a power of
    two, multiplied in the frequency domain and transformed back. Real inputs
    yield a real ``float64`` result.
    """
    threshold = (
        direct_threshold
        if direct_threshold is not None
        else resolve(numerics).transform.direct_convolution_threshold
    )
    a = _as_array(a)
    b = _as_array(b)
    real = not (np.iscomplexobj(a) or np.iscomplexobj(b))
    x = as_signal(a)
    y = as_signal(b)
    if x.size == 0 or y.size == 0:
        return np.zeros(0, dtype=np.float64 if real else np.complex128)

    n_out = x.size + y.size - 1
    if min(x.size, y.size) <= threshold:
        out = direct_convolution(x, y)
    else:
        size = next_power_of_two(n_out)
        xp = np.zeros(size, dtype=np.complex128)
        yp = np.zeros(size, dtype=np.complex128)
        xp[: x.size] = x
        yp[: y.size] = y
        out = ifft(fft(xp) * fft(yp))[:n_out]

    return out.real.copy() if real else out
