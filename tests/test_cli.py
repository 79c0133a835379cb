"""
Tests for the mvgeo-geometry command line tool.
"""

import numpy as np
import pytest
import yaml

from mvgeo.cli import build_parser, main
from mvgeo.geometry import projective_to_fundamental


def _write_matrix(path, M):
    path.write_text("\n".join(" ".join(repr(float(v)) for v in row) for row in M))
    return str(path)


def test_decompose(tmp_path, capsys, K):
    P = K @ np.hstack([np.eye(3), np.array([[0.5], [0.0], [2.0]])])
    code = main(["--log_level", "WARNING", "decompose", _write_matrix(tmp_path / "P.txt", P)])

    out = capsys.readouterr().out
    assert code == 0
    assert "K:" in out and "C:" in out


def test_trifocal(tmp_path, capsys, three_view):
    p2 = _write_matrix(tmp_path / "P2.txt", three_view.P2)
    p3 = _write_matrix(tmp_path / "P3.txt", three_view.P3)
    assert main(["trifocal", "--P2", p2, "--P3", p3]) == 0

    out = capsys.readouterr().out
    for name in ("T1:", "T3:", "e2:", "e3:", "F21:", "F31:"):
        assert name in out


def test_trifocal_general(tmp_path, capsys, three_view):
    p1 = _write_matrix(tmp_path / "P1.txt", three_view.P1)
    p2 = _write_matrix(tmp_path / "P2.txt", three_view.P2)
    p3 = _write_matrix(tmp_path / "P3.txt", three_view.P3)
    assert main(["trifocal", "--P1", p1, "--P2", p2, "--P3", p3]) == 0


class TestCompatible:

    @pytest.fixture
    def files(self, tmp_path, three_view):
        F21 = projective_to_fundamental(three_view.P1, three_view.P2)
        F31 = projective_to_fundamental(three_view.P1, three_view.P3)
        F32 = projective_to_fundamental(three_view.P2, three_view.P3)
        return [
            _write_matrix(tmp_path / "F21.txt", F21),
            _write_matrix(tmp_path / "F31.txt", F31),
            _write_matrix(tmp_path / "F32.txt", F32),
        ]

    def test_consistent(self, files, capsys):
        assert main(["compatible", *files]) == 0
        assert capsys.readouterr().out.strip() == "compatible"

    def test_inconsistent(self, files, tmp_path, capsys):
        files[0] = _write_matrix(tmp_path / "bad.txt", np.arange(9, dtype=np.float64).reshape(3, 3) + np.eye(3))
        assert main(["compatible", *files]) == 1
        assert capsys.readouterr().out.strip() == "incompatible"

    def test_tolerance_from_config(self, files, tmp_path):
        cfg = tmp_path / "config.yaml"
        cfg.write_text(yaml.safe_dump({"tolerances": {"compatible_tol": 10.0}}))
        files[0] = _write_matrix(tmp_path / "bad.txt", np.arange(9, dtype=np.float64).reshape(3, 3) + np.eye(3))
        assert main(["--config", str(cfg), "compatible", *files]) == 0


def test_requires_command():
    with pytest.raises(SystemExit):
        build_parser().parse_args([])
