import numpy as np
from typing import Tuple

from numba import njit
import scipy.linalg


@njit(fastmath=True)
def gram_schmidt_qr(A: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """Modified Gram-Schmidt QR of a float64 matrix.

    Each column is normalized and then projected out of the columns to its
    right, so ``R`` is filled row by row and its diagonal holds the column
    norms, never negative. A column that vanishes keeps a zero ``Q`` column.
    """
    m, n = A.shape
    Q = A.copy()
    R = np.zeros((n, n), dtype=np.float64)

    for j in range(n):
        norm = 0.0
        for k in range(m):
            norm += Q[k, j] * Q[k, j]
        norm = np.sqrt(norm)
        R[j, j] = norm
        if norm == 0.0:
            continue

        for k in range(m):
            Q[k, j] /= norm

        for i in range(j + 1, n):
            proj = 0.0
            for k in range(m):
                proj += Q[k, j] * Q[k, i]
            R[j, i] = proj
            for k in range(m):
                Q[k, i] -= proj * Q[k, j]

    return Q, R


def _householder_qr(K: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    Q, R = scipy.linalg.qr(K, mode="full", check_finite=False)
    # Householder reflections leave the diagonal signs arbitrary.
    signs = np.sign(np.diag(R))
    signs[signs == 0.0] = 1.0
    return Q * signs[np.newaxis, :], R * signs[:, np.newaxis]


def _gs_qr(K: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    return gram_schmidt_qr(np.ascontiguousarray(K, dtype=np.float64))


_QR_METHODS = {
    "householder": _householder_qr,
    "scipy": _householder_qr,
    "qr": _householder_qr,
    "gs": _gs_qr,
    "gram-schmidt": _gs_qr,
    "gram_schmidt": _gs_qr,
    "numba": _gs_qr,
}


def qr_positive(K: np.ndarray, method: str = "householder") -> Tuple[np.ndarray, np.ndarray]:
    """QR decomposition with a non-negative diagonal of ``R``.

    Plain QR is unique only up to the signs of the columns of ``Q``. The
    Householder backend flips each column of ``Q`` together with the matching
    row of ``R``; Gram-Schmidt yields the column norms on the diagonal
    directly. Either way decomposing the same matrix twice gives identical
    factors. A zero diagonal entry (rank-deficient ``K``) is kept as is.
    """
    try:
        factorize = _QR_METHODS[method.lower()]
    except KeyError as exc:
        available = "householder, gs"
        raise ValueError(f"Unknown qr_method '{method}'. Available: {available}.") from exc

    K = np.asarray(K, dtype=float)
    if K.ndim != 2 or K.shape[0] != K.shape[1]:
        raise ValueError(f"K must be a square matrix, got shape {K.shape}.")

    return factorize(K)


def log_diagonal(R: np.ndarray) -> np.ndarray:
    """``log|R[i, i]|``; ``-inf`` marks a degenerate tangent direction."""
    return np.log(np.abs(np.diag(R)))


__all__ = [
    "gram_schmidt_qr",
    "qr_positive",
    "log_diagonal",
]
