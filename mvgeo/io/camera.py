from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Sequence, Tuple, Union

import cv2
import numpy as np

from .parsing import load_data, matrix_from_obj


@dataclass
class CameraPinhole:
    """Pinhole intrinsics. Converts to/from the 3x3 calibration matrix K."""
    fx: float
    fy: float
    skew: float = 0.0
    cx: float = 0.0
    cy: float = 0.0
    width: int = 0
    height: int = 0

    def to_matrix(self) -> np.ndarray:
        return np.array([[self.fx, self.skew, self.cx],
                         [0.0, self.fy, self.cy],
                         [0.0, 0.0, 1.0]], dtype=np.float64)

    @classmethod
    def from_matrix(cls, K: np.ndarray, width: int = 0, height: int = 0) -> "CameraPinhole":
        K = np.asarray(K, dtype=np.float64)
        _validate_K(K)
        return cls(
            fx=float(K[0, 0]), fy=float(K[1, 1]), skew=float(K[0, 1]),
            cx=float(K[0, 2]), cy=float(K[1, 2]),
            width=width, height=height,
        )


@dataclass
class RigidMotion:
    """
    Rigid body transform from a reference frame into a view: X_view = R @ X + T.
    """
    R: np.ndarray  # (3,3)
    T: np.ndarray  # (3,)

    def __post_init__(self):
        self.R = np.array(self.R, dtype=np.float64).reshape(3, 3)
        self.T = np.array(self.T, dtype=np.float64).reshape(3)

    @classmethod
    def identity(cls) -> "RigidMotion":
        return cls(np.eye(3), np.zeros(3))

    @classmethod
    def from_rvec(cls, rvec, T) -> "RigidMotion":
        R, _ = cv2.Rodrigues(np.asarray(rvec, dtype=np.float64).reshape(3, 1))
        return cls(R, T)

    def to_rvec(self) -> np.ndarray:
        rvec, _ = cv2.Rodrigues(self.R)
        return rvec.reshape(3)

    def to_matrix(self) -> np.ndarray:
        """3x4 matrix [R|T]."""
        return np.hstack([self.R, self.T.reshape(3, 1)])

    def transform(self, X: np.ndarray) -> np.ndarray:
        """Apply to (N,3) or (3,) points."""
        X = np.asarray(X, dtype=np.float64)
        return X @ self.R.T + self.T

    def invert(self) -> "RigidMotion":
        return RigidMotion(self.R.T, -self.R.T @ self.T)

    def concat(self, other: "RigidMotion") -> "RigidMotion":
        """This transform followed by `other`."""
        return RigidMotion(other.R @ self.R, other.R @ self.T + other.T)


@dataclass(frozen=True)
class DecomposedCamera:
    K: np.ndarray  # (3,3)
    R: np.ndarray  # (3,3)
    t: np.ndarray  # (3,1)
    C: np.ndarray  # (3,1)


# -------------------------
# Public, format-agnostic API
# -------------------------

def read_intrinsics(path: Union[str, Path]) -> np.ndarray:
    """
    Read a 3x3 intrinsic matrix K from .txt/.json/.yaml.
    """
    obj = load_data(path)
    K = _k_from_obj(obj)
    _validate_K(K)
    return K


def read_camera(path: Union[str, Path], width: int = 0, height: int = 0) -> CameraPinhole:
    """
    Read pinhole intrinsics from .txt/.json/.yaml.
    """
    obj = load_data(path)
    if isinstance(obj, Mapping):
        width = int(obj.get("width", width))
        height = int(obj.get("height", height))
    return CameraPinhole.from_matrix(_k_from_obj(obj), width=width, height=height)


def read_projection_matrix(path: Union[str, Path]) -> np.ndarray:
    """
    Read a 3x4 projection matrix P from .txt/.json/.yaml.
    """
    P = read_matrix(path, (3, 4), keys=("P", "projection"))
    if not np.isfinite(P).all():
        raise ValueError("P contains non-finite values.")
    return P


def read_matrix(
    path: Union[str, Path],
    shape: Tuple[int, int],
    keys: Sequence[str] = ("matrix",),
) -> np.ndarray:
    """
    Read any fixed size matrix (F, E, H, Q ...) from .txt/.json/.yaml.
    """
    obj = load_data(path)
    M = matrix_from_obj(obj, shape, keys)
    if M is None:
        raise ValueError(f"Could not find any of {list(keys)} in {path}")
    return M


# -------------------------
# Domain decoding helpers (private)
# -------------------------

def _k_from_obj(obj: Any) -> np.ndarray:
    """
    Extract K from:
      - raw text: expects >=9 floats
      - dict: {"K": ...}, {"intrinsics": {"K": ...}}, or fx/fy/cx/cy[/skew]
    """
    K = matrix_from_obj(obj, (3, 3), keys=("K",), nested=("intrinsics", "camera"))
    if K is not None:
        return K

    for sub in (obj, obj.get("intrinsics"), obj.get("camera")):
        if isinstance(sub, Mapping) and all(k in sub for k in ("fx", "fy", "cx", "cy")):
            return CameraPinhole(
                fx=float(sub["fx"]), fy=float(sub["fy"]),
                skew=float(sub.get("skew", 0.0)),
                cx=float(sub["cx"]), cy=float(sub["cy"]),
            ).to_matrix()

    raise ValueError("Could not extract K from provided data.")


def _validate_K(K: np.ndarray) -> None:
    if K.shape != (3, 3):
        raise ValueError(f"K must be 3x3, got {K.shape}")

    if not np.isfinite(K).all():
        raise ValueError("K contains non-finite values.")

    if abs(K[2, 2] - 1.0) > 1e-6:
        raise ValueError(f"Expected K[2,2] ~ 1, got {K[2,2]}")

    fx, fy = K[0, 0], K[1, 1]
    if fx <= 0 or fy <= 0:
        raise ValueError(f"Invalid focal lengths fx={fx}, fy={fy}")
