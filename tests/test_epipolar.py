"""
Tests for essential/fundamental construction, epipoles and the three view
compatibility check.
"""

import numpy as np
import pytest

from helpers import assert_equal_up_to_scale, hom
from mvgeo.geometry import (
    compute_fundamental_matrix,
    create_essential,
    create_fundamental,
    create_fundamental_motion,
    decompose_projection_matrix,
    epipolar_distance,
    extract_epipoles_fundamental,
    fundamental_compatible3,
    fundamental_to_essential,
    projective_to_fundamental,
)
from mvgeo.geometry_utils.common import DecompositionError, cross_matrix
from mvgeo.io.camera import CameraPinhole


class TestBuilders:

    def test_essential_is_cross_times_rotation(self, stereo):
        E = create_essential(stereo.R, stereo.T)
        np.testing.assert_allclose(E, cross_matrix(stereo.T) @ stereo.R)

    def test_fundamental_from_calibration(self, stereo):
        E = create_essential(stereo.R, stereo.T)
        K_inv = np.linalg.inv(stereo.K)
        np.testing.assert_allclose(create_fundamental(E, stereo.K), K_inv.T @ E @ K_inv)

    def test_pinhole_and_matrix_agree(self, stereo):
        E = create_essential(stereo.R, stereo.T)
        cam = CameraPinhole.from_matrix(stereo.K)
        np.testing.assert_allclose(create_fundamental(E, cam), create_fundamental(E, stereo.K))
        np.testing.assert_allclose(create_fundamental(E, cam, cam), create_fundamental(E, stereo.K))

    def test_asymmetric_calibration(self, stereo):
        K2 = stereo.K.copy()
        K2[0, 0] = 700.0
        E = create_essential(stereo.R, stereo.T)
        F = create_fundamental(E, stereo.K, K2)
        np.testing.assert_allclose(F, np.linalg.inv(K2).T @ E @ np.linalg.inv(stereo.K))

    def test_motion_form_satisfies_constraint(self, stereo):
        F = create_fundamental_motion(stereo.R, stereo.T, stereo.K, stereo.K)
        F /= np.linalg.norm(F)
        for x1, x2 in zip(stereo.x1, stereo.x2):
            assert epipolar_distance(x1, x2, F) < 1e-8

    def test_out_buffer(self, stereo):
        out = np.empty((3, 3))
        assert create_essential(stereo.R, stereo.T, out=out) is out
        with pytest.raises(ValueError):
            create_essential(stereo.R, stereo.T, out=np.empty(9))

    def test_singular_calibration(self, stereo):
        with pytest.raises(DecompositionError):
            create_fundamental(np.eye(3), np.zeros((3, 3)))


class TestEpipoles:

    def test_null_spaces(self, stereo):
        F = create_fundamental_motion(stereo.R, stereo.T, stereo.K, stereo.K)
        F /= np.linalg.norm(F)
        e1, e2 = extract_epipoles_fundamental(F)

        assert np.linalg.norm(e1) == pytest.approx(1.0)
        assert np.linalg.norm(e2) == pytest.approx(1.0)
        np.testing.assert_allclose(F @ e1, 0.0, atol=1e-12)
        np.testing.assert_allclose(e2 @ F, 0.0, atol=1e-12)

    def test_epipole_is_image_of_other_center(self, stereo):
        F = create_fundamental_motion(stereo.R, stereo.T, stereo.K, stereo.K)
        _, e2 = extract_epipoles_fundamental(F)
        # center of camera 1 seen by camera 2
        assert_equal_up_to_scale(e2, stereo.K @ stereo.T)

    def test_at_infinity(self):
        # pure x translation, no rotation: epipoles at infinity
        F = create_essential(np.eye(3), [1.0, 0.0, 0.0])
        e1, e2 = extract_epipoles_fundamental(F)
        assert abs(e1[2]) < 1e-12
        assert abs(e2[2]) < 1e-12


class TestFundamentalToEssential:

    def test_recovers_essential(self, stereo):
        T = stereo.T / np.linalg.norm(stereo.T)
        E = create_essential(stereo.R, T)
        F = 3.7 * create_fundamental(E, stereo.K)
        np.testing.assert_allclose(fundamental_to_essential(F, stereo.K), E, atol=1e-9)

    def test_singular_values(self, stereo):
        F = create_fundamental_motion(stereo.R, stereo.T, stereo.K, stereo.K)
        F += 1e-9 * np.arange(9).reshape(3, 3)
        s = np.linalg.svd(fundamental_to_essential(F, stereo.K), compute_uv=False)
        np.testing.assert_allclose(s, [1.0, 1.0, 0.0], atol=1e-12)


class TestCompatible3:

    @pytest.fixture
    def fundamentals(self, three_view):
        return (
            projective_to_fundamental(three_view.P1, three_view.P2),
            projective_to_fundamental(three_view.P1, three_view.P3),
            projective_to_fundamental(three_view.P2, three_view.P3),
        )

    def test_consistent_triple(self, fundamentals):
        assert fundamental_compatible3(*fundamentals, 1e-6)

    def test_scale_does_not_matter(self, fundamentals):
        F21, F31, F32 = fundamentals
        assert fundamental_compatible3(1e3 * F21, -2.0 * F31, 1e-4 * F32, 1e-6)

    def test_perturbed_triple(self, fundamentals, rng):
        F21, F31, F32 = fundamentals
        F21 = F21 / np.linalg.norm(F21) + 0.1 * rng.standard_normal((3, 3))
        assert not fundamental_compatible3(F21, F31, F32, 1e-6)

    def test_zero_matrix(self, fundamentals):
        F21, F31, _ = fundamentals
        with pytest.raises(DecompositionError):
            fundamental_compatible3(F21, F31, np.zeros((3, 3)), 1e-6)


class TestTwoCameraFundamental:

    def test_compute_fundamental_matrix(self, stereo):
        cam1 = decompose_projection_matrix(stereo.P1)
        cam2 = decompose_projection_matrix(stereo.P2)
        F = compute_fundamental_matrix(cam1, cam2)

        assert np.linalg.norm(F) == pytest.approx(1.0)
        for x1, x2 in zip(stereo.x1, stereo.x2):
            assert abs(hom(x2) @ F @ hom(x1)) < 1e-9
