"""
mvgeo/geometry_utils/autocalib.py

Absolute dual quadratic Q used for projective -> metric upgrades
(section 19.3 in Hartley-Zisserman):

    Q = H*diag(1,1,1,0)*H^T,  H = [K 0; -p^T*K 1]
    Q = [w  -w*p; -p^T*w  p^T*w*p],  w = K*K^T

Failing to decompose Q is an expected outcome (Q not positive semi-definite)
and is reported through False/None, never an exception.
"""

from __future__ import annotations

import logging
from typing import Optional, Tuple

import numpy as np
import scipy.linalg

from .common import as_matrix, require_finite, write_out

logger = logging.getLogger(__name__)


class AbsoluteDualQuadraticDecomposition:
    """
    Splits Q into w, p and an upper triangular K, and rebuilds Q or the
    rectifying homography from them. K is only known up to scale; edit
    `K` before calling recompute_q() to force a structure.
    """

    def __init__(self):
        self.w = np.zeros((3, 3))
        self.p = np.zeros(3)
        self.K = np.zeros((3, 3))

    def decompose(self, Q) -> bool:
        """
        Returns:
            False if w is singular or w^-1 is not positive definite
        """
        Q = as_matrix(Q, (4, 4), "Q")
        require_finite(Q, "Absolute dual quadratic decomposition")

        w = Q[:3, :3]
        try:
            w_inv = np.linalg.inv(w)
        except np.linalg.LinAlgError:
            logger.debug("absolute dual quadratic: w is singular")
            return False

        # w^-1 = L*L^T  =>  w = K*K^T with K = L^-T upper triangular
        try:
            L = scipy.linalg.cholesky(w_inv, lower=True)
        except np.linalg.LinAlgError:
            logger.debug("absolute dual quadratic: w is not positive definite")
            return False

        self.w = w.copy()
        self.p = -w_inv @ Q[:3, 3]
        self.K = np.linalg.inv(L).T
        return True

    def rectifying_homography(self, *, out: Optional[np.ndarray] = None) -> np.ndarray:
        """H = [K 0; -p^T*K 1]"""
        H = np.zeros((4, 4))
        H[:3, :3] = self.K
        H[3, :3] = -self.p @ self.K
        H[3, 3] = 1.0
        return write_out(H, out)

    def recompute_q(self, *, out: Optional[np.ndarray] = None) -> np.ndarray:
        """Q = H*diag(1,1,1,0)*H^T from the current K and p."""
        H = self.rectifying_homography()
        Q = H @ np.diag([1.0, 1.0, 1.0, 0.0]) @ H.T
        return write_out(Q, out)


def enforce_absolute_quadratic_constraints(
    Q: np.ndarray,
    zero_center: bool = False,
    zero_skew: bool = False,
) -> bool:
    """
    Forces an approximate Q (e.g. from a linear solver) to have the exact
    structure of an absolute dual quadratic. Q is modified in place:

    1. sign flipped when Q[3,3] < 0
    2. decomposed into K and p
    3. (optional) principal point of K set to zero
    4. (optional) skew of K set to zero
    5. rebuilt as H*diag(1,1,1,0)*H^T

    Args:
        Q: (4,4) float array, modified in place
        zero_center: zero K[0,2] and K[1,2]
        zero_skew: zero K[0,1]

    Returns:
        False if Q could not be decomposed. Q may have had its sign flipped.
    """
    if not isinstance(Q, np.ndarray) or Q.shape != (4, 4) or Q.dtype.kind != "f":
        raise ValueError("Q must be a (4,4) float numpy array, it is modified in place")

    # possibly just off by a sign
    if Q[3, 3] < 0:
        Q *= -1

    alg = AbsoluteDualQuadraticDecomposition()
    if not alg.decompose(Q):
        return False

    if zero_center:
        alg.K[0, 2] = alg.K[1, 2] = 0.0
    if zero_skew:
        alg.K[0, 1] = 0.0

    alg.recompute_q(out=Q)
    return True


def absolute_quadratic_to_h(Q, *, out: Optional[np.ndarray] = None) -> Optional[np.ndarray]:
    """
    Rectifying homography H for the projective -> metric upgrade
    (page 464 in Hartley-Zisserman). Q is not modified.

    Returns:
        (4,4) H, or None if Q could not be decomposed
    """
    alg = AbsoluteDualQuadraticDecomposition()
    if not alg.decompose(Q):
        return None
    return alg.rectifying_homography(out=out)


def decompose_abs_dual_quadratic(Q) -> Optional[Tuple[np.ndarray, np.ndarray]]:
    """
    Sub-blocks of Q = [w -w*p; -p^T*w p^T*w*p].

    Returns:
        (w, p), or None if Q could not be decomposed
    """
    alg = AbsoluteDualQuadraticDecomposition()
    if not alg.decompose(Q):
        return None
    return alg.w, alg.p


def create_projective_to_metric(
    K,
    v1: float,
    v2: float,
    v3: float,
    lam: float,
    *,
    out: Optional[np.ndarray] = None,
) -> np.ndarray:
    """
    Rectifying homography from the calibration of view 1 and the plane at
    infinity (v1, v2, v3):

        H = [K 0; v^T lam]
    """
    K = as_matrix(K, (3, 3), "K")
    H = np.zeros((4, 4))
    H[:3, :3] = K
    H[3] = [v1, v2, v3, lam]
    return write_out(H, out)
