"""
mvgeo/geometry_utils/epipolar.py

Two-view epipolar geometry: essential and fundamental matrices, their
epipoles, and three-view compatibility of fundamental matrices.

Convention: F21 maps view 1 to view 2, x2^T F21 x1 = 0. Motion (R, T) is
from the first camera frame into the second.
"""

from __future__ import annotations

import logging
from typing import Optional, Tuple, Union

import numpy as np

from mvgeo.io.camera import CameraPinhole, DecomposedCamera

from .common import (
    DecompositionError,
    as_matrix,
    as_vector3,
    cross_matrix,
    homogeneous,
    invert,
    require_finite,
    write_out,
)

logger = logging.getLogger(__name__)

CalibrationLike = Union[np.ndarray, CameraPinhole]


def _as_K(K: CalibrationLike, name: str) -> np.ndarray:
    if isinstance(K, CameraPinhole):
        return K.to_matrix()
    return as_matrix(K, (3, 3), name)


# -------------------------
# Builders
# -------------------------

def create_essential(R, T, *, out: Optional[np.ndarray] = None) -> np.ndarray:
    """
    Essential matrix E = [T]x R for the motion from view 1 into view 2.
    """
    R = as_matrix(R, (3, 3), "R")
    E = cross_matrix(as_vector3(T, "T")) @ R
    return write_out(E, out)


def create_fundamental(
    E,
    K1: CalibrationLike,
    K2: Optional[CalibrationLike] = None,
    *,
    out: Optional[np.ndarray] = None,
) -> np.ndarray:
    """
    Fundamental matrix from an essential matrix and calibration.

        F = K2^-T E K1^-1

    K2 defaults to K1 (both views share one camera). Either may be a 3x3
    matrix or a CameraPinhole.
    """
    E = as_matrix(E, (3, 3), "E")
    K1_inv = invert(_as_K(K1, "K1"), "K1")
    K2_inv = K1_inv if K2 is None else invert(_as_K(K2, "K2"), "K2")
    return write_out(K2_inv.T @ E @ K1_inv, out)


def create_fundamental_motion(
    R,
    T,
    K1: CalibrationLike,
    K2: CalibrationLike,
    *,
    out: Optional[np.ndarray] = None,
) -> np.ndarray:
    """Fundamental matrix from a motion (view 1 into view 2) and both calibrations."""
    return create_fundamental(create_essential(R, T), K1, K2, out=out)


def compute_fundamental_matrix(
    cam_i: DecomposedCamera,
    cam_j: DecomposedCamera,
) -> np.ndarray:
    """Compute the fundamental matrix F such that p2^T F p1 = 0
    for corresponding points p1 in image i and p2 in image j.
    Both cameras are world-to-camera; F is scaled to unit Frobenius norm.
    """
    Ri = np.asarray(cam_i.R, np.float64)
    Rj = np.asarray(cam_j.R, np.float64)
    ti = np.asarray(cam_i.t, np.float64).reshape(3)
    tj = np.asarray(cam_j.t, np.float64).reshape(3)

    R_rel = Rj @ Ri.T
    t_rel = tj - R_rel @ ti

    F = create_fundamental_motion(R_rel, t_rel, cam_i.K, cam_j.K)
    F /= (np.linalg.norm(F) + 1e-12)
    return F


# -------------------------
# Epipoles and conversions
# -------------------------

def extract_epipoles_fundamental(F) -> Tuple[np.ndarray, np.ndarray]:
    """
    Epipoles of a fundamental or essential matrix from its null spaces.

        right: F e1 = 0
        left:  e2^T F = 0

    Homogeneous with unit norm; an epipole at infinity has z = 0.

    Returns:
        (e1, e2)
    """
    F = as_matrix(F, (3, 3), "F")
    require_finite(F, "Epipole extraction")
    U, _, Vt = np.linalg.svd(F)
    return Vt[2].copy(), U[:, 2].copy()


def fundamental_to_essential(F, K, *, out: Optional[np.ndarray] = None) -> np.ndarray:
    """
    E = K^T F K with the singular values forced to [1, 1, 0].
    """
    F = as_matrix(F, (3, 3), "F")
    K = _as_K(K, "K")
    E = K.T @ F @ K
    require_finite(E, "Essential matrix SVD")

    # unlikely to be a perfect essential matrix, enforce the structure
    U, _, Vt = np.linalg.svd(E)
    E = U @ np.diag([1.0, 1.0, 0.0]) @ Vt
    return write_out(E, out)


def fundamental_compatible3(F21, F31, F32, tol: float) -> bool:
    """
    Checks whether three fundamental matrices are consistent with one camera
    triple using their epipoles (section 15.4 in Hartley-Zisserman). With
    e_ij the image of camera center j in view i:

        e_23^T F21 e_13 = 0
        e_32^T F31 e_12 = 0
        e_31^T F32 e_21 = 0

    Each matrix is scaled to unit Frobenius norm so `tol` does not depend on
    the arbitrary scale of the inputs.

    Args:
        F21: x2^T F21 x1 = 0
        F31: x3^T F31 x1 = 0
        F32: x3^T F32 x2 = 0
        tol: maximum mean absolute residual

    Returns:
        True if the mean residual is <= tol
    """
    F21 = _unit_frobenius(as_matrix(F21, (3, 3), "F21"))
    F31 = _unit_frobenius(as_matrix(F31, (3, 3), "F31"))
    F32 = _unit_frobenius(as_matrix(F32, (3, 3), "F32"))

    e12, e21 = extract_epipoles_fundamental(F21)
    e13, e31 = extract_epipoles_fundamental(F31)
    e23, e32 = extract_epipoles_fundamental(F32)

    score = 0.0
    score += abs(e23 @ F21 @ e13)
    score += abs(e32 @ F31 @ e12)
    score += abs(e31 @ F32 @ e21)
    score /= 3

    logger.debug(f"three view compatibility score {score:.3e} (tol {tol:.3e})")
    return score <= tol


def _unit_frobenius(F: np.ndarray) -> np.ndarray:
    n = np.linalg.norm(F)
    if not np.isfinite(n) or n == 0:
        raise DecompositionError("Fundamental matrix must be finite and non-zero.")
    return F / n


def epipolar_distance(p1, p2, F) -> float:
    """
    Symmetric epipolar distance in pixels: the mean of the distance from p2
    to the epipolar line F p1 and from p1 to the line F^T p2.
    """
    F = as_matrix(F, (3, 3), "F")
    x1 = homogeneous(p1, "p1")
    x2 = homogeneous(p2, "p2")

    l2 = F @ x1
    l1 = F.T @ x2
    residual = abs(float(x2 @ l2))

    d2 = residual / (np.hypot(l2[0], l2[1]) + 1e-12)
    d1 = residual / (np.hypot(l1[0], l1[1]) + 1e-12)
    return float(0.5 * (d1 + d2))
