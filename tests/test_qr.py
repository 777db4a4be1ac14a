import numpy as np
import pytest

from lyaplib.numpy import qr_positive
from lyaplib.numpy.qr import gram_schmidt_qr, log_diagonal


def _random_matrix(n, seed=0):
    rng = np.random.default_rng(seed)
    return rng.normal(size=(n, n))


@pytest.mark.parametrize("method", ["householder", "gs"])
def test_qr_positive_factorizes_with_nonnegative_diagonal(method):
    K = _random_matrix(4)
    Q, R = qr_positive(K, method)
    assert np.allclose(Q @ R, K, atol=1e-12)
    assert np.allclose(Q.T @ Q, np.eye(4), atol=1e-12)
    assert np.allclose(R, np.triu(R), atol=1e-12)
    assert np.all(np.diag(R) >= 0.0)


def test_qr_positive_is_deterministic():
    K = _random_matrix(5, seed=3)
    Q1, R1 = qr_positive(K)
    Q2, R2 = qr_positive(K)
    assert np.array_equal(Q1, Q2)
    assert np.array_equal(R1, R2)


def test_householder_and_gram_schmidt_agree():
    K = _random_matrix(3, seed=7)
    Qh, Rh = qr_positive(K, "householder")
    Qg, Rg = qr_positive(K, "gs")
    assert np.allclose(Qh, Qg, atol=1e-10)
    assert np.allclose(Rh, Rg, atol=1e-10)


def test_qr_positive_does_not_modify_input():
    K = _random_matrix(3, seed=1)
    K_copy = K.copy()
    qr_positive(K)
    assert np.array_equal(K, K_copy)


def test_rank_deficient_matrix_gives_degenerate_log_terms():
    K = np.array([[1.0, 2.0], [2.0, 4.0]])
    Q, R = qr_positive(K)
    with np.errstate(divide="ignore"):
        logs = log_diagonal(R)
    assert np.isfinite(logs[0])
    assert logs[1] < -30.0


def test_gram_schmidt_zero_column_does_not_produce_nan():
    K = np.array([[1.0, 0.0], [0.0, 0.0]])
    Q, R = gram_schmidt_qr(K)
    assert np.all(np.isfinite(Q))
    assert R[1, 1] == 0.0


def test_qr_positive_unknown_method():
    with pytest.raises(ValueError, match="Unknown qr_method"):
        qr_positive(np.eye(2), "cholesky")


def test_qr_positive_requires_square_matrix():
    with pytest.raises(ValueError, match="square"):
        qr_positive(np.ones((2, 3)))


def test_gram_schmidt_kernel_diagonal_is_column_norm():
    K = -np.abs(_random_matrix(4, seed=5))
    Q, R = gram_schmidt_qr(K)
    assert np.all(np.diag(R) > 0.0)
    assert R[0, 0] == pytest.approx(np.linalg.norm(K[:, 0]))
    assert np.allclose(Q @ R, K, atol=1e-12)
    assert np.allclose(np.tril(R, -1), 0.0)
