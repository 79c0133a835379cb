"""
tests/helpers.py

Synthetic scene builders and comparisons shared by the test modules.
"""

from __future__ import annotations

import cv2
import numpy as np


def rotation(rvec) -> np.ndarray:
    R, _ = cv2.Rodrigues(np.asarray(rvec, dtype=np.float64).reshape(3, 1))
    return R


def project(P: np.ndarray, X: np.ndarray) -> np.ndarray:
    """(N,3) world points -> (N,2) pixels."""
    Xh = np.hstack([X, np.ones((X.shape[0], 1))])
    x = Xh @ P.T
    return x[:, :2] / x[:, 2:3]


def hom(p) -> np.ndarray:
    return np.array([p[0], p[1], 1.0])


def dehom(x: np.ndarray) -> np.ndarray:
    return x[:2] / x[2]


def normalized(A) -> np.ndarray:
    """Unit Frobenius norm with the sign fixed by the largest magnitude element."""
    v = np.asarray(A, dtype=np.float64).reshape(-1)
    v = v / np.linalg.norm(v)
    return v * np.sign(v[np.argmax(np.abs(v))])


def assert_equal_up_to_scale(A, B, atol: float = 1e-8) -> None:
    np.testing.assert_allclose(normalized(A), normalized(B), atol=atol)


def plane_points(N: np.ndarray, d: float, count: int, rng: np.random.Generator) -> np.ndarray:
    """Points X with N^T X = d, spread around the point closest to the origin."""
    N = N / np.linalg.norm(N)
    u = np.cross(N, [1.0, 0.0, 0.0])
    u /= np.linalg.norm(u)
    v = np.cross(N, u)
    ab = rng.uniform(-1.0, 1.0, size=(count, 2))
    return d * N + ab[:, :1] * u + ab[:, 1:] * v
