"""
mvgeo/geometry_utils/projective.py

Projective camera matrices: metric construction P = K[R|t], canonical
cameras from fundamental matrices, and the transform taking a camera to
[I|0].
"""

from __future__ import annotations

from typing import Optional, Tuple

import numpy as np

from .common import DecompositionError, EPS, as_matrix, as_vector3, cross_matrix, require_finite, write_out
from .epipolar import extract_epipoles_fundamental


def projection_matrix(K: np.ndarray, R: np.ndarray, t: np.ndarray) -> np.ndarray:
    """
    Compute the 3x4 projection matrix P = K [R | t].
    Args:
        K: (3,3) intrinsic matrix
        R: (3,3) rotation matrix
        t: (3,) or (3,1) translation vector
    Returns:
        P: (3,4) projection matrix
    """

    K = np.asarray(K, np.float64)
    R = np.asarray(R, np.float64)
    t = np.asarray(t, np.float64).reshape(3, 1)

    if K.shape != (3, 3):
        raise ValueError(f"K must be (3,3), got {K.shape}")
    if R.shape != (3, 3):
        raise ValueError(f"R must be (3,3), got {R.shape}")

    return K @ np.hstack([R, t])  # 3x4


def camera_center(R: np.ndarray, t: np.ndarray) -> np.ndarray:
    """Compute camera center in world coordinates from extrinsics R and t.
    Returns:
        C: (3,) camera center in world coordinates"""
    # world->cam: Xc = R X + t  => C = -R^T t
    return (-np.asarray(R, np.float64).T @ np.asarray(t, np.float64).reshape(3, 1)).reshape(3)


# -------------------------
# [I|0] normalization
# -------------------------

def _pseudo_inverse_and_center(P: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Pseudo inverse P+ (4x3) and the camera center u (P u = 0, unit norm).
    """
    require_finite(P, "Camera matrix SVD")
    try:
        U, S, Vt = np.linalg.svd(P, full_matrices=True)
    except np.linalg.LinAlgError as e:
        raise DecompositionError("SVD of the camera matrix failed.") from e

    if S[2] <= EPS * S[0]:
        raise DecompositionError(f"Camera matrix has rank < 3 (singular values {S}).")

    P_pinv = Vt[:3].T @ np.diag(1.0 / S) @ U.T
    return P_pinv, Vt[3].copy()


def projective_to_identity_h(P, *, out: Optional[np.ndarray] = None) -> np.ndarray:
    """
    4x4 transform H such that P*H = [I|0].

    Raises:
        DecompositionError: non-finite or rank deficient P
    """
    P = as_matrix(P, (3, 4), "P")
    P_pinv, center = _pseudo_inverse_and_center(P)
    return write_out(np.column_stack([P_pinv, center]), out)


def projective_to_fundamental(P1, P2, *, out: Optional[np.ndarray] = None) -> np.ndarray:
    """
    Fundamental matrix F21 between two general camera matrices.

        F21 = [e']x P2 P1+,  e' = P2 C,  P1 C = 0
    """
    P1 = as_matrix(P1, (3, 4), "P1")
    P2 = as_matrix(P2, (3, 4), "P2")
    P1_pinv, C = _pseudo_inverse_and_center(P1)
    e = P2 @ C
    return write_out(cross_matrix(e) @ P2 @ P1_pinv, out)


# -------------------------
# Fundamental -> projective cameras
# -------------------------

def fundamental_to_projective(
    F,
    e2=None,
    v=None,
    lam: float = 1.0,
    *,
    out: Optional[np.ndarray] = None,
) -> np.ndarray:
    """
    Canonical camera for view 2 given F21, with view 1 at P1 = [I|0]
    (page 256 in Hartley-Zisserman):

        P2 = [[e2]x F + e2 v^T | lam*e2]

    Known only up to a projective transform.

    Args:
        F: fundamental matrix x2^T F x1 = 0
        e2: left epipole, F^T e2 = 0. Computed when None.
        v: arbitrary 3-vector, zeros when None
        lam: non-zero scalar
    """
    F = as_matrix(F, (3, 3), "F")
    if lam == 0:
        raise ValueError("lam must be non-zero")
    e2 = extract_epipoles_fundamental(F)[1] if e2 is None else as_vector3(e2, "e2")
    v = np.zeros(3) if v is None else as_vector3(v, "v")

    M = cross_matrix(e2) @ F + np.outer(e2, v)
    return write_out(np.column_stack([M, lam * e2]), out)


def fundamental_to_projective_three(F21, F31, F32) -> Tuple[np.ndarray, np.ndarray]:
    """
    Camera matrices P2, P3 consistent with three fundamental matrices,
    P1 = [I|0]. P2 is the canonical camera of F21. P3 solves the linear
    system stating that P3^T F31 P1 and P3^T F32 P2 are skew-symmetric
    (section 15.4 in Hartley-Zisserman).

    Args:
        F21: x2^T F21 x1 = 0
        F31: x3^T F31 x1 = 0
        F32: x3^T F32 x2 = 0

    Returns:
        (P2, P3)
    """
    F31 = as_matrix(F31, (3, 3), "F31")
    F32 = as_matrix(F32, (3, 3), "F32")
    P1 = np.hstack([np.eye(3), np.zeros((3, 1))])
    P2 = fundamental_to_projective(F21)

    rows = []
    for F, P in ((F31, P1), (F32, P2)):
        rows.extend(_skew_symmetric_rows(F @ P))
    A = np.vstack(rows)
    require_finite(A, "Three view camera SVD")

    P3 = np.linalg.svd(A)[2][-1].reshape(3, 4)
    return P2, P3


def _skew_symmetric_rows(G: np.ndarray):
    """
    Linear equations in the 12 entries of X (3x4, row-major) stating that
    X^T G is skew-symmetric, where G is 3x4.

    (X^T G)[a,b] = sum_r X[r,a] * G[r,b]
    """
    rows = []
    for a in range(4):
        for b in range(a, 4):
            eq = np.zeros((3, 4))
            eq[:, a] += G[:, b]
            if b != a:
                eq[:, b] += G[:, a]
            rows.append(eq.reshape(12))
    return rows
