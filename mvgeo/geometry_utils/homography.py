"""
mvgeo/geometry_utils/homography.py

Homographies between two views: construction from a plane, homographies
induced by a trifocal line, plane-induced homographies fitted to a
fundamental matrix, Euclidean decomposition and symmetric transfer error.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Tuple

import numpy as np

from mvgeo.config import ToleranceConfig
from mvgeo.io.camera import RigidMotion

from .common import (
    EPS,
    DecompositionError,
    as_matrix,
    as_vector3,
    cross_matrix,
    homogeneous,
    invert,
    require_finite,
    unit,
    write_out,
)
from .epipolar import extract_epipoles_fundamental
from .observations import AssociatedPair, PairLineNorm, pairs_to_arrays
from .trifocal import TrifocalTensor

logger = logging.getLogger(__name__)


# -------------------------
# Construction
# -------------------------

def create_homography(R, T, d: float, N, K=None) -> np.ndarray:
    """
    Homography induced by a plane, x2 = H*x1:

        H = R + (1/d)*T*N^T            (calibrated)
        H = K*(R + (1/d)*T*N^T)*K^-1   (pixels, when K is given)

    Args:
        R: rotation from camera 1 to camera 2
        T: translation from camera 1 to camera 2
        d: distance > 0 of the closest point on the plane to the origin of camera 1
        N: plane normal in camera 1
        K: optional 3x3 calibration matrix shared by both cameras
    """
    R = as_matrix(R, (3, 3), "R")
    T = as_vector3(T, "T")
    N = as_vector3(N, "N")
    if not d > 0:
        raise ValueError(f"Plane distance must be > 0, got {d}")

    H = R + np.outer(T, N) / d
    if K is None:
        return H

    K = as_matrix(K, (3, 3), "K")
    return K @ H @ invert(K, "K")


def induced_homography13(tensor: TrifocalTensor, line2, *, out: Optional[np.ndarray] = None) -> np.ndarray:
    """
    Homography from view 1 to view 3 induced by a line in view 2, p3 = H13*p1.
    Column i is T_i^T * line2. The line must contain the view 2 observation.
    """
    line2 = as_vector3(line2, "line2")
    H = np.einsum("ijk,j->ki", tensor.stack(), line2)
    return write_out(H, out)


def induced_homography12(tensor: TrifocalTensor, line3, *, out: Optional[np.ndarray] = None) -> np.ndarray:
    """
    Homography from view 1 to view 2 induced by a line in view 3, p2 = H12*p1.
    Column i is T_i * line3. The line must contain the view 3 observation.
    """
    line3 = as_vector3(line3, "line3")
    H = np.einsum("ijk,k->ji", tensor.stack(), line3)
    return write_out(H, out)


# -------------------------
# Plane-induced homographies given F (section 13.2 in Hartley-Zisserman)
# -------------------------

def _fundamental_setup(F, tol: Optional[float]) -> Tuple[np.ndarray, np.ndarray, float]:
    """Unit norm F, its left epipole e2 (F^T e2 = 0) and the degeneracy tolerance."""
    F = unit(as_matrix(F, (3, 3), "F"))
    require_finite(F, "Plane induced homography")
    if tol is None:
        tol = ToleranceConfig().degenerate_tol
    return F, extract_epipoles_fundamental(F)[1], tol


def homography_stereo_3pts(
    F,
    p1: AssociatedPair,
    p2: AssociatedPair,
    p3: AssociatedPair,
    tol: Optional[float] = None,
) -> Optional[np.ndarray]:
    """
    Homography from view 1 to view 2 induced by the plane through three
    observed points (result 13.6):

        H = A - e2 (M^-1 b)^T,  A = [e2]x F
        b_i = (x2_i x A x1_i)^T (x2_i x e2) / |x2_i x e2|^2

    Args:
        F: fundamental matrix, x2^T F x1 = 0
        p1, p2, p3: observations of three points on the plane
        tol: relative degeneracy threshold, ToleranceConfig.degenerate_tol when None

    Returns:
        3x3 homography, or None when the points are collinear in view 1 or
        one of them coincides with the epipole in view 2.
    """
    F, e2, tol = _fundamental_setup(F, tol)
    A = cross_matrix(e2) @ F

    M = np.empty((3, 3))
    b = np.empty(3)
    for i, pair in enumerate((p1, p2, p3)):
        x1 = homogeneous(pair.p1, "p1")
        x2 = homogeneous(pair.p2, "p2")
        x2e = np.cross(x2, e2)
        denom = x2e @ x2e
        if denom <= tol * (x2 @ x2) or denom == 0:
            logger.debug("homography_stereo_3pts: observation coincides with the epipole")
            return None
        M[i] = x1
        b[i] = np.cross(x2, A @ x1) @ x2e / denom

    scale = np.prod(np.linalg.norm(M, axis=1))
    if abs(np.linalg.det(M)) <= tol * scale:
        logger.debug("homography_stereo_3pts: points are collinear")
        return None
    try:
        v = np.linalg.solve(M, b)
    except np.linalg.LinAlgError:
        logger.debug("homography_stereo_3pts: singular point matrix")
        return None

    return A - np.outer(e2, v)


def homography_stereo_line_pt(
    F,
    line: PairLineNorm,
    point: AssociatedPair,
    tol: Optional[float] = None,
) -> Optional[np.ndarray]:
    """
    Homography induced by the plane containing a line and a point.

    The planes through the line form the pencil H(mu) = [l2]x F + mu e2 l1^T
    (result 13.7); mu is picked so that H(mu) maps the point onto its match.

    Returns:
        3x3 homography, or None when the point lies on the line or its match
        lies on the line joining it to the epipole.
    """
    F, e2, tol = _fundamental_setup(F, tol)
    l1 = unit(as_vector3(line.l1, "l1"))
    l2 = unit(as_vector3(line.l2, "l2"))
    x1 = homogeneous(point.p1, "p1")
    x2 = homogeneous(point.p2, "p2")

    L = cross_matrix(l2) @ F
    a = np.cross(x2, L @ x1)
    b = np.cross(x2, e2) * (l1 @ x1)

    bb = b @ b
    if bb <= tol * (x1 @ x1) * (x2 @ x2) or bb == 0:
        logger.debug("homography_stereo_line_pt: degenerate line/point configuration")
        return None

    mu = -(a @ b) / bb
    return L + mu * np.outer(e2, l1)


def homography_stereo_2lines(
    F,
    line0: PairLineNorm,
    line1: PairLineNorm,
    tol: Optional[float] = None,
) -> Optional[np.ndarray]:
    """
    Homography induced by the plane containing two lines.

    Uses the pencil of planes through line0, H(mu) = [l0']x F + mu e2 l0^T,
    and picks mu so that lines transfer as H^T l1' ~ l1.

    Returns:
        3x3 homography, or None when the lines coincide in view 1 or line1
        passes through the epipole in view 2.
    """
    F, e2, tol = _fundamental_setup(F, tol)
    l0 = unit(as_vector3(line0.l1, "line0.l1"))
    l0p = unit(as_vector3(line0.l2, "line0.l2"))
    l1 = unit(as_vector3(line1.l1, "line1.l1"))
    l1p = unit(as_vector3(line1.l2, "line1.l2"))

    # H(mu)^T l1' = F^T (l1' x l0') + mu (e2 . l1') l0
    c = np.cross(l1, F.T @ np.cross(l1p, l0p))
    d = (e2 @ l1p) * np.cross(l1, l0)

    dd = d @ d
    if dd <= tol * (c @ c) or dd == 0:
        logger.debug("homography_stereo_2lines: degenerate line configuration")
        return None

    mu = -(c @ d) / dd
    return cross_matrix(l0p) @ F + mu * np.outer(e2, l0)


# -------------------------
# Decomposition
# -------------------------

def decompose_homography(H) -> List[Tuple[RigidMotion, np.ndarray]]:
    """
    Decomposes a Euclidean homography H = R + (1/d)*T*N^T (computed from
    normalized image coordinates) into its four candidate solutions
    (section 5.3.3 in Y. Ma et al., "An Invitation to 3-D Vision").

    The returned translation is T/d. Picking the physical solution (positive
    depth) is left to the caller.

    Returns:
        four (motion, plane normal) pairs
    """
    H = as_matrix(H, (3, 3), "H")
    require_finite(H, "Homography SVD")

    sv = np.linalg.svd(H, compute_uv=False)
    if sv[1] <= 0:
        raise DecompositionError("Homography is rank deficient.")
    H = H / sv[1]

    # eigen decomposition of H^T H, values in descending order
    _, S, Vt = np.linalg.svd(H.T @ H)
    V = Vt.T
    if np.linalg.det(V) < 0:
        V = -V
    v1, v2, v3 = V[:, 0], V[:, 1], V[:, 2]

    if S[0] - S[2] <= np.sqrt(EPS):
        # pure rotation, the plane is not observable
        U, _, Wt = np.linalg.svd(H)
        R = U @ Wt
        if np.linalg.det(R) < 0:
            R = -R
        zero = np.zeros(3)
        return [
            (RigidMotion(R, zero), v3.copy()),
            (RigidMotion(R, zero), v1.copy()),
            (RigidMotion(R, zero), -v3),
            (RigidMotion(R, zero), -v1),
        ]

    a = np.sqrt(max(1.0 - S[2], 0.0))
    b = np.sqrt(max(S[0] - 1.0, 0.0))
    c = np.sqrt(S[0] - S[2])
    u1 = (a * v1 + b * v3) / c
    u2 = (a * v1 - b * v3) / c

    solutions = []
    for u in (u1, u2):
        U = np.column_stack([v2, u, np.cross(v2, u)])
        Hv2, Hu = H @ v2, H @ u
        W = np.column_stack([Hv2, Hu, np.cross(Hv2, Hu)])
        R = W @ U.T
        N = np.cross(v2, u)
        T = (H - R) @ N
        solutions.append((R, T, N))

    (R1, T1, N1), (R2, T2, N2) = solutions
    return [
        (RigidMotion(R1, T1), N1),
        (RigidMotion(R2, T2), N2),
        (RigidMotion(R1, -T1), -N1),
        (RigidMotion(R2, -T2), -N2),
    ]


# -------------------------
# Errors
# -------------------------

def errors_homography_symm(
    observations: Sequence[AssociatedPair],
    H,
    H_inv=None,
    storage: Optional[List[float]] = None,
) -> List[float]:
    """
    Symmetric squared transfer error for each observation:

        error[i] = |H*x1 - x2|^2 + |H^-1*x2 - x1|^2

    Observations that either transform sends onto the plane at infinity are
    skipped, so the result can be shorter than the input.

    Args:
        observations: point pairs
        H: homography from view 1 to view 2
        H_inv: inverse of H, computed when None
        storage: optional list that is cleared and filled

    Returns:
        the list of errors (`storage` when given)
    """
    H = as_matrix(H, (3, 3), "H")
    H_inv = invert(H, "H") if H_inv is None else as_matrix(H_inv, (3, 3), "H_inv")

    if storage is None:
        storage = []
    else:
        storage.clear()

    x1, x2 = pairs_to_arrays(observations)
    if x1.shape[0] == 0:
        return storage

    ones = np.ones((x1.shape[0], 1))
    fwd = np.hstack([x1, ones]) @ H.T
    bwd = np.hstack([x2, ones]) @ H_inv.T

    good = (np.abs(fwd[:, 2]) > EPS) & (np.abs(bwd[:, 2]) > EPS)
    if not np.any(good):
        return storage

    d2 = x2[good] - fwd[good, :2] / fwd[good, 2:3]
    d1 = x1[good] - bwd[good, :2] / bwd[good, 2:3]
    err = np.sum(d2 * d2, axis=1) + np.sum(d1 * d1, axis=1)

    storage.extend(float(e) for e in err)
    return storage
