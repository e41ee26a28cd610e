from numba import complex128, float64, int64, jit, prange

import numpy as np


@jit(nopython=True, nogil=True, cache=True)
def lu_factor_inplace(a: np.ndarray):
    """LU factorization with partial pivoting, overwriting ``a``.

    Parameters
    ----------
    a : np.ndarray
        Square ``float64`` C-contiguous array. On return the strictly lower
        triangle holds the unit-lower factor ``L`` (without its diagonal) and the
        upper triangle holds ``U``.

    Returns
    -------
    perm : np.ndarray
        Row permutation, ``P @ A = L @ U`` with ``P[i, perm[i]] = 1``.
    sign : float
        Sign of the permutation, ``+1.0`` or ``-1.0``.

    Notes
    -----
    A zero pivot column is skipped rather than treated as an error; the zero
    then appears on the diagonal of ``U`` and makes the determinant zero.
    """
    n = a.shape[0]
    perm = np.arange(n)
    sign = 1.0

    for k in range(n):
        p = k
        pmax = abs(a[k, k])
        for i in range(k + 1, n):
            v = abs(a[i, k])
            if v > pmax:
                pmax = v
                p = i

        if p != k:
            for j in range(n):
                tmp = a[k, j]
                a[k, j] = a[p, j]
                a[p, j] = tmp
            tmp_idx = perm[k]
            perm[k] = perm[p]
            perm[p] = tmp_idx
            sign = -sign

        pivot = a[k, k]
        if pivot == 0.0:
            continue

        for i in range(k + 1, n):
            a[i, k] = a[i, k] / pivot
            factor = a[i, k]
            if factor == 0.0:
                continue
            for j in range(k + 1, n):
                a[i, j] -= factor * a[k, j]

    return perm, sign


@jit(nopython=True, nogil=True, cache=True)
def lu_solve(lu: np.ndarray, perm: np.ndarray, b: np.ndarray):
    """Solve ``A @ x = b`` from the factors produced by :func:`lu_factor_inplace`.

    ``b`` is a 2D ``float64`` array whose columns are independent right-hand
    sides. The diagonal of ``lu`` must be free of zeros.
    """
    n = lu.shape[0]
    m = b.shape[1]
    x = np.empty((n, m), dtype=float64)

    for c in range(m):
        for i in range(n):
            s = b[perm[i], c]
            for j in range(i):
                s -= lu[i, j] * x[j, c]
            x[i, c] = s
        for i in range(n - 1, -1, -1):
            s = x[i, c]
            for j in range(i + 1, n):
                s -= lu[i, j] * x[j, c]
            x[i, c] = s / lu[i, i]

    return x


@jit(nopython=True, parallel=True, nogil=True, cache=True)
def direct_dft(x: np.ndarray, sign: float):
    """Direct O(n^2) discrete Fourier transform of a ``complex128`` vector.

    ``sign`` is ``-1.0`` for the forward and ``+1.0`` for the (unnormalized)
    inverse transform. The phase index ``k * t`` is reduced modulo ``n`` before
    conversion to an angle to keep the twiddle factors accurate for long inputs.
    """
    n = x.shape[0]
    out = np.zeros(n, dtype=complex128)

    for k in prange(n):
        acc = 0j
        for t in range(n):
            angle = sign * 2.0 * np.pi * ((k * t) % n) / n
            acc += x[t] * (np.cos(angle) + 1j * np.sin(angle))
        out[k] = acc

    return out


@jit(nopython=True, nogil=True, cache=True)
def direct_convolution(a: np.ndarray, b: np.ndarray):
    """Full linear convolution of two ``complex128`` vectors by direct summation."""
    la = a.shape[0]
    lb = b.shape[0]
    out = np.zeros(la + lb - 1, dtype=complex128)

    for i in range(la):
        ai = a[i]
        for j in range(lb):
            out[i + j] += ai * b[j]

    return out


@jit(nopython=True, parallel=True, nogil=True, cache=True)
def assign_clusters(points: np.ndarray, centroids: np.ndarray):
    """Assign each point to its nearest centroid.

    Returns
    -------
    labels : np.ndarray
        ``int64`` index of the nearest centroid for each point.
    distances : np.ndarray
        Squared euclidean distance to that centroid.
    """
    n = points.shape[0]
    k = centroids.shape[0]
    d = points.shape[1]
    labels = np.empty(n, dtype=int64)
    distances = np.empty(n, dtype=float64)

    for i in prange(n):
        best = np.inf
        best_j = 0
        for j in range(k):
            s = 0.0
            for c in range(d):
                diff = points[i, c] - centroids[j, c]
                s += diff * diff
            if s < best:
                best = s
                best_j = j
        labels[i] = best_j
        distances[i] = best

    return labels, distances
