"""
mvgeo/geometry_utils/decompose.py

Metric decompositions: camera matrix -> (K, R, T), essential matrix -> four
candidate motions, and projective cameras upgraded through a rectifying
homography.
"""

from __future__ import annotations

import logging
from typing import List, Tuple

import numpy as np
import scipy.linalg

from mvgeo.io.camera import DecomposedCamera, RigidMotion

from .common import DecompositionError, as_matrix, invert, require_finite

logger = logging.getLogger(__name__)

# reverses the row order
_PIVOT = np.eye(3)[::-1]

_W = np.array([
    [0.0, -1.0, 0.0],
    [1.0, 0.0, 0.0],
    [0.0, 0.0, 1.0],
])


# -------------------------
# Camera matrix
# -------------------------

def decompose_metric_camera(P) -> Tuple[np.ndarray, RigidMotion]:
    """
    Decomposes a metric camera matrix P = K*[R|T], K upper triangular.

    Several factorizations reproduce P; the one returned has a positive
    diagonal in K, K[2,2] = 1 and det(R) = +1. A camera center on the plane
    at infinity is not supported.

    Args:
        P: (3,4) camera matrix

    Returns:
        (K, world_to_view)

    Raises:
        DecompositionError: the QR step or the inversion of K failed
    """
    P = as_matrix(P, (3, 4), "P")
    A = P[:, :3]
    T = P[:, 3].copy()

    # RQ decomposition through QR by permuting the rows
    try:
        Q, Rq = scipy.linalg.qr((_PIVOT @ A).T)
    except (ValueError, np.linalg.LinAlgError) as e:
        raise DecompositionError("QR decomposition failed. Bad input?") from e

    R = _PIVOT @ Q.T
    K = _PIVOT @ Rq.T @ _PIVOT

    # each flip leaves K*R unchanged
    for i in range(3):
        if K[i, i] < 0:
            K[:, i] *= -1
            R[i, :] *= -1

    if np.linalg.det(R) < 0:
        R = -R
        T = -T

    k = K[2, 2]
    if not np.isfinite(k) or k == 0:
        raise DecompositionError("Calibration matrix is singular.")
    K = K / k
    T = invert(K, "K") @ (T / k)

    return K, RigidMotion(R, T)


def decompose_projection_matrix(P: np.ndarray) -> DecomposedCamera:
    """
    Decompose P into intrinsics and world->camera extrinsics.

    Returns:
        DecomposedCamera with K (3,3), R (3,3), t (3,1) and the camera
        center C (3,1) in world coordinates
    """
    K, motion = decompose_metric_camera(P)
    t = motion.T.reshape(3, 1)
    C = -motion.R.T @ t
    return DecomposedCamera(K=K, R=motion.R, t=t, C=C)


# -------------------------
# Essential matrix
# -------------------------

def decompose_essential(E) -> List[RigidMotion]:
    """
    Four motions from view 1 to view 2 that could have produced the
    essential matrix (section 9.6.2 in Hartley-Zisserman).

        R = U W V^T or U W^T V^T,  T = +/- s*u3

    s is the mean of the two leading singular values so [T]x R reproduces E
    up to sign. The physically valid motion puts points in front of both
    cameras; that test needs observations and is left to the caller.
    """
    E = as_matrix(E, (3, 3), "E")
    require_finite(E, "Essential matrix SVD")
    try:
        U, S, Vt = np.linalg.svd(E)
    except np.linalg.LinAlgError as e:
        raise DecompositionError("SVD of the essential matrix failed.") from e

    if np.linalg.det(U) < 0:
        U = -U
    if np.linalg.det(Vt) < 0:
        Vt = -Vt

    s = (S[0] + S[1]) / 2
    Ra = U @ _W @ Vt
    Rb = U @ _W.T @ Vt
    t = s * U[:, 2]

    return [
        RigidMotion(Ra, t),
        RigidMotion(Ra, -t),
        RigidMotion(Rb, t),
        RigidMotion(Rb, -t),
    ]


# -------------------------
# Projective -> metric
# -------------------------

def projective_to_metric(P, H) -> Tuple[np.ndarray, RigidMotion]:
    """
    Elevates a projective camera to a metric one with the rectifying
    homography H and decomposes it, P' = P*H = K*[R|T].

    Args:
        P: (3,4) projective camera matrix
        H: (4,4) rectifying homography, see absolute_quadratic_to_h()
    """
    P = as_matrix(P, (3, 4), "P")
    H = as_matrix(H, (4, 4), "H")
    return decompose_metric_camera(P @ H)


def projective_to_metric_known_k(P, H, K) -> RigidMotion:
    """
    Motion of a projective camera when the calibration is already known,
    P*H = lambda*K*[R|T].

    The rotation is the nearest rotation matrix (SVD) to the left 3x3 block
    of K^-1*P*H. T is divided by its scale so it lives in the same frame.

    Raises:
        DecompositionError: K is singular or the SVD failed
    """
    P = as_matrix(P, (3, 4), "P")
    H = as_matrix(H, (4, 4), "H")
    K = as_matrix(K, (3, 3), "K")

    M = invert(K, "K") @ P @ H
    require_finite(M, "Rotation SVD")
    try:
        U, S, Vt = np.linalg.svd(M[:, :3])
    except np.linalg.LinAlgError as e:
        raise DecompositionError("SVD failed while extracting the rotation.") from e

    scale = S.mean()
    if scale == 0:
        raise DecompositionError("Rotation block of the camera matrix is zero.")

    R = U @ Vt
    T = M[:, 3] / scale
    if np.linalg.det(R) < 0:
        R = -R
        T = -T

    logger.debug(f"known K upgrade: singular values {S}")
    return RigidMotion(R, T)
