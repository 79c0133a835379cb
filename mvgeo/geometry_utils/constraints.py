"""
mvgeo/geometry_utils/constraints.py

Algebraic incidence constraints for two and three views. Each evaluates to
(near) zero for a correct correspondence and can be used as a residual.

Points are pixels (x, y); lines are in general form (a, b, c).
"""

from __future__ import annotations

import numpy as np

from .common import as_matrix, as_vector3, cross_matrix, homogeneous
from .trifocal import TrifocalTensor


def _weighted_sum(tensor: TrifocalTensor, p1) -> np.ndarray:
    """sum_i p1^i * T_i with p1 = (x, y, 1)"""
    x, y, _ = homogeneous(p1, "p1")
    return x * tensor.T1 + y * tensor.T2 + tensor.T3


def constraint_lll(tensor: TrifocalTensor, l1, l2, l3) -> np.ndarray:
    """
    Line-line-line: (l2^T [T1,T2,T3] l3) x l1 = 0

    Returns:
        (3,) residual vector
    """
    l1 = as_vector3(l1, "l1")
    l2 = as_vector3(l2, "l2")
    l3 = as_vector3(l3, "l3")
    transferred = np.array([l2 @ T @ l3 for T in tensor.slices()])
    return np.cross(transferred, l1)


def constraint_pll(tensor: TrifocalTensor, p1, l2, l3) -> float:
    """Point-line-line: l2^T (sum p1^i T_i) l3 = 0"""
    l2 = as_vector3(l2, "l2")
    l3 = as_vector3(l3, "l3")
    return float(l2 @ _weighted_sum(tensor, p1) @ l3)


def constraint_plp(tensor: TrifocalTensor, p1, l2, p3) -> np.ndarray:
    """Point-line-point: (l2^T (sum p1^i T_i)) [p3]x = 0, as a (3,) vector."""
    l2 = as_vector3(l2, "l2")
    v = _weighted_sum(tensor, p1).T @ l2
    return np.cross(v, homogeneous(p3, "p3"))


def constraint_ppl(tensor: TrifocalTensor, p1, p2, l3) -> np.ndarray:
    """Point-point-line: [p2]x (sum p1^i T_i) l3 = 0, as a (3,) vector."""
    l3 = as_vector3(l3, "l3")
    return cross_matrix(homogeneous(p2, "p2")) @ _weighted_sum(tensor, p1) @ l3


def constraint_ppp(tensor: TrifocalTensor, p1, p2, p3) -> np.ndarray:
    """Point-point-point: [p2]x (sum p1^i T_i) [p3]x = 0, as a (3,3) matrix."""
    cross2 = cross_matrix(homogeneous(p2, "p2"))
    cross3 = cross_matrix(homogeneous(p3, "p3"))
    return cross2 @ _weighted_sum(tensor, p1) @ cross3


def constraint_epipolar(F, p1, p2) -> float:
    """
    Epipolar constraint p2^T F p1 for a fundamental (pixels) or essential
    (normalized image coordinates) matrix.
    """
    F = as_matrix(F, (3, 3), "F")
    return float(homogeneous(p2, "p2") @ F @ homogeneous(p1, "p1"))


def constraint_homography(H, p1) -> np.ndarray:
    """
    Location of p1 in view 2 predicted by the homography: z*p2 = H*p1.

    Returns:
        (2,) pixel. Non-finite when p1 maps onto the plane at infinity.
    """
    H = as_matrix(H, (3, 3), "H")
    x = H @ homogeneous(p1, "p1")
    with np.errstate(divide="ignore", invalid="ignore"):
        return x[:2] / x[2]
