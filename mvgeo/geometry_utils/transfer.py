"""
mvgeo/geometry_utils/transfer.py

Point transfer with the trifocal tensor (section 15.3 in Hartley-Zisserman).
Given a point in view 1 and either a line or a point in one of the other
views, predict the point in the remaining view. Results are homogeneous.
"""

from __future__ import annotations

import numpy as np

from .common import as_vector3, homogeneous
from .trifocal import TrifocalGeometryExtractor, TrifocalTensor


def transfer_1_to_3(tensor: TrifocalTensor, x1, l2) -> np.ndarray:
    """
    x3^k = x1^i * l2_j * T_i^{jk}. l2 is any line through the observation in
    view 2 other than its epipolar line.
    """
    l2 = as_vector3(l2, "l2")
    return np.einsum("i,j,ijk->k", homogeneous(x1, "x1"), l2, tensor.stack())


def transfer_1_to_2(tensor: TrifocalTensor, x1, l3) -> np.ndarray:
    """
    x2^j = x1^i * l3_k * T_i^{jk}. l3 is any line through the observation in
    view 3 other than its epipolar line.
    """
    l3 = as_vector3(l3, "l3")
    return np.einsum("i,k,ijk->j", homogeneous(x1, "x1"), l3, tensor.stack())


def _perpendicular_line(epipolar_line: np.ndarray, p) -> np.ndarray:
    """Line through p perpendicular to the epipolar line (a, b, c)."""
    a, b, _ = epipolar_line
    x, y, _ = homogeneous(p)
    return np.array([b, -a, a * y - b * x])


class TrifocalTransfer:
    """
    Point to point transfer. The line through the observed point is chosen
    perpendicular to its epipolar line (step (ii) of algorithm 15.1 in
    Hartley-Zisserman).

    Fundamental matrices are extracted once on construction.
    """

    def __init__(self, tensor: TrifocalTensor):
        self.tensor = tensor
        self.F21, self.F31 = TrifocalGeometryExtractor(tensor).fundamental()

    def transfer_1_to_3(self, x1, x2) -> np.ndarray:
        le = self.F21 @ homogeneous(x1, "x1")
        return transfer_1_to_3(self.tensor, x1, _perpendicular_line(le, x2))

    def transfer_1_to_2(self, x1, x3) -> np.ndarray:
        le = self.F31 @ homogeneous(x1, "x1")
        return transfer_1_to_2(self.tensor, x1, _perpendicular_line(le, x3))


def transfer_1_to_3_points(tensor: TrifocalTensor, x1, x2) -> np.ndarray:
    """Location in view 3 of the point observed at x1 and x2."""
    return TrifocalTransfer(tensor).transfer_1_to_3(x1, x2)


def transfer_1_to_2_points(tensor: TrifocalTensor, x1, x3) -> np.ndarray:
    """Location in view 2 of the point observed at x1 and x3."""
    return TrifocalTransfer(tensor).transfer_1_to_2(x1, x3)
