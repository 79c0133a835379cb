"""
mvgeo/geometry_utils/common.py

Small numeric helpers shared by the geometry modules: input validation,
homogeneous coordinates, cross-product matrices and output buffers.
"""

from __future__ import annotations

from typing import Optional, Tuple

import numpy as np

# ----------------------------
# Constants
# ----------------------------
# Machine epsilon, used for plane-at-infinity checks.
EPS = float(np.finfo(np.float64).eps)


class DecompositionError(RuntimeError):
    """A matrix decomposition failed. The input was malformed (non-finite or singular)."""


# ----------------------------
# Validation
# ----------------------------

def as_matrix(A, shape: Tuple[int, int], name: str = "matrix") -> np.ndarray:
    A = np.asarray(A, dtype=np.float64)
    if A.shape != shape:
        raise ValueError(f"{name} must be {shape[0]}x{shape[1]}, got {A.shape}")
    return A


def as_vector3(v, name: str = "vector") -> np.ndarray:
    v = np.asarray(v, dtype=np.float64).reshape(-1)
    if v.size != 3:
        raise ValueError(f"{name} must have 3 elements, got {v.size}")
    return v


def as_point2(p, name: str = "point") -> np.ndarray:
    p = np.asarray(p, dtype=np.float64).reshape(-1)
    if p.size != 2:
        raise ValueError(f"{name} must have 2 elements, got {p.size}")
    return p


def homogeneous(p, name: str = "point") -> np.ndarray:
    """(x, y) -> (x, y, 1)"""
    p = as_point2(p, name)
    return np.array([p[0], p[1], 1.0], dtype=np.float64)


def require_finite(A: np.ndarray, what: str) -> None:
    if not np.isfinite(A).all():
        raise DecompositionError(f"{what} failed: input contains non-finite values.")


# ----------------------------
# Linear algebra helpers
# ----------------------------

def cross_matrix(v) -> np.ndarray:
    """Skew-symmetric matrix [v]_x such that [v]_x @ a == cross(v, a)."""
    x, y, z = as_vector3(v, "v")
    return np.array([
        [0.0, -z, y],
        [z, 0.0, -x],
        [-y, x, 0.0],
    ], dtype=np.float64)


def invert(A: np.ndarray, name: str = "matrix") -> np.ndarray:
    """Matrix inverse that raises DecompositionError instead of LinAlgError."""
    require_finite(A, f"Inverting {name}")
    try:
        return np.linalg.inv(A)
    except np.linalg.LinAlgError as e:
        raise DecompositionError(f"Inverse of {name} failed. Singular input?") from e


def write_out(result: np.ndarray, out: Optional[np.ndarray], name: str = "out") -> np.ndarray:
    """
    Return `result`, or copy it into the caller supplied buffer `out`.

    A supplied buffer must already have the result's shape; it is overwritten
    in place and returned.
    """
    if out is None:
        return result
    if out.shape != result.shape:
        raise ValueError(f"{name} must have shape {result.shape}, got {out.shape}")
    out[...] = result
    return out


def unit(v: np.ndarray) -> np.ndarray:
    n = np.linalg.norm(v)
    if n == 0:
        return v
    return v / n
