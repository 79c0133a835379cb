"""
tests/conftest.py

Seeded synthetic scenes. Nothing here is noisy, so every geometric relation
should hold to near machine precision.
"""

from types import SimpleNamespace

import numpy as np
import pytest

from helpers import project, rotation


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def K():
    return np.array([
        [620.0, 0.0, 320.0],
        [0.0, 610.0, 240.0],
        [0.0, 0.0, 1.0],
    ])


@pytest.fixture
def points3d(rng):
    """Points in front of every camera used by the scenes."""
    xy = rng.uniform(-1.0, 1.0, size=(30, 2))
    z = rng.uniform(4.0, 6.0, size=(30, 1))
    return np.hstack([xy, z])


@pytest.fixture
def three_view(points3d):
    """
    Projective three view scene with P1 = [I|0]. Calibrations are close to
    identity so observations stay well conditioned.
    """
    K2 = np.array([[1.1, 0.01, 0.05], [0.0, 1.05, -0.02], [0.0, 0.0, 1.0]])
    K3 = np.array([[0.9, 0.0, -0.03], [0.0, 0.95, 0.04], [0.0, 0.0, 1.0]])

    P1 = np.hstack([np.eye(3), np.zeros((3, 1))])
    P2 = K2 @ np.hstack([rotation([0.05, -0.1, 0.02]), np.array([[-0.8], [0.1], [0.2]])])
    P3 = K3 @ np.hstack([rotation([-0.04, 0.12, -0.03]), np.array([[0.7], [0.3], [-0.1]])])

    return SimpleNamespace(
        P1=P1, P2=P2, P3=P3, X=points3d,
        x1=project(P1, points3d),
        x2=project(P2, points3d),
        x3=project(P3, points3d),
    )


@pytest.fixture
def stereo(K, points3d):
    """Calibrated stereo pair, camera 1 at the origin. Observations in pixels."""
    R = rotation([0.02, -0.15, 0.03])
    T = np.array([-1.0, 0.1, 0.15])
    P1 = K @ np.hstack([np.eye(3), np.zeros((3, 1))])
    P2 = K @ np.hstack([R, T.reshape(3, 1)])
    return SimpleNamespace(
        K=K, R=R, T=T, P1=P1, P2=P2, X=points3d,
        x1=project(P1, points3d),
        x2=project(P2, points3d),
    )
