"""
mvgeo/geometry_utils/trifocal.py

Trifocal tensor: the container, its construction from camera matrices or
rigid motions, and extraction of the epipoles, fundamental matrices and
camera matrices it encodes.

Convention: view 1 has the camera matrix P1 = [I|0] unless stated otherwise.
Slice i of the tensor is the 3x3 matrix T_i with T_i[j,k] = T_i^{jk}.

Reference: R. Hartley, and A. Zisserman, "Multiple View Geometry in Computer
Vision", 2nd Ed, Cambridge 2003, chapter 15.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple

import numpy as np

from mvgeo.io.camera import RigidMotion

from .common import as_matrix, cross_matrix


def _zeros3x3() -> np.ndarray:
    return np.zeros((3, 3), dtype=np.float64)


@dataclass
class TrifocalTensor:
    """Three 3x3 slices T1, T2, T3. Defined up to an overall scale."""
    T1: np.ndarray = field(default_factory=_zeros3x3)
    T2: np.ndarray = field(default_factory=_zeros3x3)
    T3: np.ndarray = field(default_factory=_zeros3x3)

    def __post_init__(self):
        self.T1 = as_matrix(self.T1, (3, 3), "T1").copy()
        self.T2 = as_matrix(self.T2, (3, 3), "T2").copy()
        self.T3 = as_matrix(self.T3, (3, 3), "T3").copy()

    def get_t(self, index: int) -> np.ndarray:
        if index == 0:
            return self.T1
        if index == 1:
            return self.T2
        if index == 2:
            return self.T3
        raise IndexError(f"Tensor slice index must be 0, 1 or 2, got {index}")

    def slices(self) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        return self.T1, self.T2, self.T3

    def stack(self) -> np.ndarray:
        """(3,3,3) array indexed [i, j, k]."""
        return np.stack(self.slices())

    def to_vector(self) -> np.ndarray:
        """27-vector, slice by slice, each slice row-major."""
        return self.stack().reshape(27)

    @classmethod
    def from_vector(cls, v) -> "TrifocalTensor":
        v = np.asarray(v, dtype=np.float64).reshape(-1)
        if v.size != 27:
            raise ValueError(f"Trifocal vector must have 27 elements, got {v.size}")
        T = v.reshape(3, 3, 3)
        return cls(T[0], T[1], T[2])

    def normalize_scale(self) -> "TrifocalTensor":
        """Scale in place so the 27-vector has unit norm."""
        n = np.linalg.norm(self.to_vector())
        if n > 0:
            for T in self.slices():
                T /= n
        return self

    def copy(self) -> "TrifocalTensor":
        return TrifocalTensor(self.T1, self.T2, self.T3)

    def set_from(self, other: "TrifocalTensor") -> None:
        for mine, theirs in zip(self.slices(), other.slices()):
            mine[...] = theirs


# -------------------------
# Construction
# -------------------------

def create_trifocal(P2, P3, *, out: Optional[TrifocalTensor] = None) -> TrifocalTensor:
    """
    Trifocal tensor from two camera matrices, assuming P1 = [I|0].

        T_i^{jk} = P2[j,i]*P3[k,3] - P2[j,3]*P3[k,i]

    Args:
        P2: (3,4) camera matrix for view 2
        P3: (3,4) camera matrix for view 3
        out: optional tensor to overwrite

    Returns:
        TrifocalTensor
    """
    P2 = as_matrix(P2, (3, 4), "P2")
    P3 = as_matrix(P3, (3, 4), "P3")
    ret = out if out is not None else TrifocalTensor()

    for i in range(3):
        ret.get_t(i)[...] = np.outer(P2[:, i], P3[:, 3]) - np.outer(P2[:, 3], P3[:, i])

    return ret


def create_trifocal_general(P1, P2, P3, *, out: Optional[TrifocalTensor] = None) -> TrifocalTensor:
    """
    Trifocal tensor from three arbitrary camera matrices (page 415 in Hartley-Zisserman).

    Each entry is a 4x4 determinant of two rows of P1 (row i removed), one row
    of P2 and one row of P3, with alternating sign per slice. The cameras are
    divided by their largest absolute element first to keep the determinants
    in range.
    """
    P1 = as_matrix(P1, (3, 4), "P1")
    P2 = as_matrix(P2, (3, 4), "P2")
    P3 = as_matrix(P3, (3, 4), "P3")
    ret = out if out is not None else TrifocalTensor()

    # invariant to scale
    scale = max(np.abs(P1).max(), np.abs(P2).max(), np.abs(P3).max())
    if not np.isfinite(scale) or scale == 0:
        raise ValueError("Camera matrices must be finite and not all zero.")
    A1, A2, A3 = P1 / scale, P2 / scale, P3 / scale

    A = np.empty((4, 4), dtype=np.float64)
    sign = 1.0
    for i in range(3):
        T = ret.get_t(i)
        A[0:2] = A1[[row for row in range(3) if row != i]]

        for q in range(3):
            A[2] = A2[q]
            for r in range(3):
                A[3] = A3[r]
                T[q, r] = sign * np.linalg.det(A) * scale

        sign = -sign

    return ret


def create_trifocal_motion(
    motion2: RigidMotion,
    motion3: RigidMotion,
    *,
    out: Optional[TrifocalTensor] = None,
) -> TrifocalTensor:
    """
    Trifocal tensor for the calibrated case, view 1 being the world frame.

    Args:
        motion2: transform from view 1 to view 2
        motion3: transform from view 1 to view 3
    """
    ret = out if out is not None else TrifocalTensor()
    R2, T2 = motion2.R, motion2.T
    R3, T3 = motion3.R, motion3.T

    for col in range(3):
        ret.get_t(col)[...] = np.outer(R2[:, col], T3) - np.outer(T2, R3[:, col])

    return ret


# -------------------------
# Extraction
# -------------------------

def _null_vectors(M: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """Left and right null vectors (unit norm) of a rank deficient 3x3 matrix."""
    U, _, Vt = np.linalg.svd(M)
    return U[:, 2], Vt[2]


class TrifocalGeometryExtractor:
    """
    Recovers the geometry encoded by a trifocal tensor (algorithm 15.1 in
    Hartley-Zisserman). The epipoles are computed once on construction and
    shared by the fundamental and camera matrix extraction.

    e2: epipole of camera 1 in view 2, e3: epipole of camera 1 in view 3.
    """

    def __init__(self, tensor: TrifocalTensor):
        self.tensor = tensor

        lefts, rights = [], []
        for T in tensor.slices():
            u, v = _null_vectors(T)
            lefts.append(u)
            rights.append(v)

        # e2^T [u1 u2 u3] = 0 and e3^T [v1 v2 v3] = 0
        self.e2 = np.linalg.svd(np.vstack(lefts))[2][2]
        self.e3 = np.linalg.svd(np.vstack(rights))[2][2]

    def epipoles(self) -> Tuple[np.ndarray, np.ndarray]:
        return self.e2.copy(), self.e3.copy()

    def fundamental(self) -> Tuple[np.ndarray, np.ndarray]:
        """F21 = [e2]x [T1,T2,T3] e3 and F31 = [e3]x [T1^T,T2^T,T3^T] e2."""
        slices = self.tensor.slices()
        F21 = cross_matrix(self.e2) @ np.column_stack([T @ self.e3 for T in slices])
        F31 = cross_matrix(self.e3) @ np.column_stack([T.T @ self.e2 for T in slices])
        return F21, F31

    def camera_matrices(self) -> Tuple[np.ndarray, np.ndarray]:
        """
        P2 = [[T1,T2,T3] e3 | e2]
        P3 = [(e3 e3^T - I)[T1^T,T2^T,T3^T] e2 | e3]
        """
        slices = self.tensor.slices()
        P2 = np.column_stack([T @ self.e3 for T in slices] + [self.e2])

        M = np.outer(self.e3, self.e3) - np.eye(3)
        P3 = np.column_stack([M @ (T.T @ self.e2) for T in slices] + [self.e3])
        return P2, P3


def extract_epipoles(tensor: TrifocalTensor) -> Tuple[np.ndarray, np.ndarray]:
    """
    Epipoles of the first camera in views 2 and 3, homogeneous with unit norm.

    Properties: e2^T F21 = 0 and e3^T F31 = 0.
    """
    return TrifocalGeometryExtractor(tensor).epipoles()


def extract_fundamental(tensor: TrifocalTensor) -> Tuple[np.ndarray, np.ndarray]:
    """
    Fundamental matrices F21 and F31 with x_i^T Fi1 x_1 = 0.

    The first camera is P1 = [I|0], so pixel observations in view 1 only
    satisfy these constraints when the tensor was built with that camera.
    """
    return TrifocalGeometryExtractor(tensor).fundamental()


def extract_camera_matrices(tensor: TrifocalTensor) -> Tuple[np.ndarray, np.ndarray]:
    """Camera matrices P2, P3 (P1 = [I|0]) up to a common projective transform."""
    return TrifocalGeometryExtractor(tensor).camera_matrices()
