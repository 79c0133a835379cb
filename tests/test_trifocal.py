"""
Tests for trifocal tensor construction and geometry extraction.
"""

import numpy as np
import pytest

from helpers import assert_equal_up_to_scale, hom, rotation
from mvgeo.geometry import (
    TrifocalGeometryExtractor,
    TrifocalTensor,
    create_trifocal,
    create_trifocal_general,
    create_trifocal_motion,
    extract_camera_matrices,
    extract_epipoles,
    extract_fundamental,
)
from mvgeo.io.camera import RigidMotion


class TestTrifocalTensor:

    def test_vector_layout_is_slice_major(self):
        v = np.arange(27, dtype=np.float64)
        t = TrifocalTensor.from_vector(v)
        assert t.T1[0, 0] == 0 and t.T1[0, 1] == 1
        assert t.T2[0, 0] == 9
        assert t.T3[2, 2] == 26
        np.testing.assert_array_equal(t.to_vector(), v)

    def test_from_vector_rejects_wrong_size(self):
        with pytest.raises(ValueError):
            TrifocalTensor.from_vector(np.zeros(26))

    def test_get_t_bounds(self):
        t = TrifocalTensor()
        assert t.get_t(2) is t.T3
        with pytest.raises(IndexError):
            t.get_t(3)

    def test_normalize_scale_in_place(self):
        t = TrifocalTensor.from_vector(np.arange(27, dtype=np.float64))
        T1 = t.T1
        t.normalize_scale()
        assert t.T1 is T1
        assert np.linalg.norm(t.to_vector()) == pytest.approx(1.0)

    def test_copy_is_independent(self):
        t = TrifocalTensor.from_vector(np.ones(27))
        c = t.copy()
        c.T1[0, 0] = 5.0
        assert t.T1[0, 0] == 1.0


class TestConstruction:

    def test_slice_formula(self, three_view):
        t = create_trifocal(three_view.P2, three_view.P3)
        P2, P3 = three_view.P2, three_view.P3
        for i in range(3):
            for j in range(3):
                for k in range(3):
                    expected = P2[j, i] * P3[k, 3] - P2[j, 3] * P3[k, i]
                    assert t.get_t(i)[j, k] == pytest.approx(expected)

    def test_general_matches_canonical_when_p1_is_identity(self, three_view):
        a = create_trifocal(three_view.P2, three_view.P3)
        b = create_trifocal_general(three_view.P1, three_view.P2, three_view.P3)
        assert_equal_up_to_scale(a.to_vector(), b.to_vector())

    def test_general_is_invariant_to_camera_scale(self, three_view):
        a = create_trifocal_general(three_view.P1, three_view.P2, three_view.P3)
        b = create_trifocal_general(3.0 * three_view.P1, 0.5 * three_view.P2, 7.0 * three_view.P3)
        assert_equal_up_to_scale(a.to_vector(), b.to_vector())

    def test_general_with_projective_frame(self, three_view):
        """Constraints hold when no camera is [I|0]."""
        H = np.eye(4) + 0.1 * np.arange(16).reshape(4, 4) / 16.0
        P1, P2, P3 = (P @ H for P in (three_view.P1, three_view.P2, three_view.P3))
        t = create_trifocal_general(P1, P2, P3)
        t.normalize_scale()

        for x1, x2, x3 in zip(three_view.x1, three_view.x2, three_view.x3):
            S = sum(w * T for w, T in zip(hom(x1), t.slices()))
            l2 = np.cross(hom(x2), [0.3, -0.2, 1.0])
            l3 = np.cross(hom(x3), [-0.1, 0.4, 1.0])
            assert abs(l2 @ S @ l3) < 1e-9

    def test_motion_matches_camera_form(self):
        m2 = RigidMotion(rotation([0.1, 0.2, -0.1]), [0.5, -0.2, 0.1])
        m3 = RigidMotion(rotation([-0.2, 0.05, 0.3]), [-0.3, 0.4, 0.2])
        a = create_trifocal_motion(m2, m3)
        b = create_trifocal(m2.to_matrix(), m3.to_matrix())
        np.testing.assert_allclose(a.to_vector(), b.to_vector(), atol=1e-12)

    def test_out_is_reused(self, three_view):
        out = TrifocalTensor()
        ret = create_trifocal(three_view.P2, three_view.P3, out=out)
        assert ret is out
        assert np.linalg.norm(out.to_vector()) > 0

    def test_shape_validation(self):
        with pytest.raises(ValueError):
            create_trifocal(np.zeros((3, 3)), np.zeros((3, 4)))


class TestExtraction:

    def test_epipoles_are_images_of_first_center(self, three_view):
        t = create_trifocal(three_view.P2, three_view.P3)
        e2, e3 = extract_epipoles(t)
        assert np.linalg.norm(e2) == pytest.approx(1.0)
        assert_equal_up_to_scale(e2, three_view.P2[:, 3])
        assert_equal_up_to_scale(e3, three_view.P3[:, 3])

    def test_fundamental_matrices_satisfy_epipolar_constraint(self, three_view):
        t = create_trifocal(three_view.P2, three_view.P3)
        F21, F31 = extract_fundamental(t)
        F21 /= np.linalg.norm(F21)
        F31 /= np.linalg.norm(F31)

        for x1, x2, x3 in zip(three_view.x1, three_view.x2, three_view.x3):
            assert abs(hom(x2) @ F21 @ hom(x1)) < 1e-10
            assert abs(hom(x3) @ F31 @ hom(x1)) < 1e-10

    def test_camera_matrices_reproduce_tensor(self, three_view):
        t = create_trifocal(three_view.P2, three_view.P3)
        P2, P3 = extract_camera_matrices(t)
        rebuilt = create_trifocal(P2, P3)
        assert_equal_up_to_scale(rebuilt.to_vector(), t.to_vector())

    def test_extractor_matches_functions(self, three_view):
        t = create_trifocal(three_view.P2, three_view.P3)
        alg = TrifocalGeometryExtractor(t)

        for a, b in zip(alg.epipoles(), extract_epipoles(t)):
            np.testing.assert_allclose(a, b, atol=1e-14)
        for a, b in zip(alg.fundamental(), extract_fundamental(t)):
            np.testing.assert_allclose(a, b, atol=1e-14)

        # returned epipoles are copies
        e2, _ = alg.epipoles()
        e2[:] = 0.0
        assert np.linalg.norm(alg.e2) == pytest.approx(1.0)
