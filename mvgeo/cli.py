"""
mvgeo/cli.py

Command line access to the geometry toolkit. Matrices are read from
.txt/.json/.yaml files.

Examples:
  mvgeo-geometry decompose P.txt
  mvgeo-geometry trifocal --P2 P2.yaml --P3 P3.yaml
  mvgeo-geometry compatible F21.txt F31.txt F32.txt --tol 1e-5
"""

from __future__ import annotations

import argparse
from typing import List, Optional

import numpy as np

from mvgeo.config import GeometryConfig, get_default_config, load_config
from mvgeo.geometry import (
    create_trifocal,
    create_trifocal_general,
    decompose_projection_matrix,
    fundamental_compatible3,
    TrifocalGeometryExtractor,
)
from mvgeo.io.camera import read_matrix, read_projection_matrix
from mvgeo.io.logging_utils import make_logger, timed


def _fmt(name: str, M: np.ndarray) -> str:
    return f"{name}:\n{np.array2string(np.asarray(M), precision=6, suppress_small=True)}"


def cmd_decompose(args, config: GeometryConfig, logger) -> int:
    P = read_projection_matrix(args.P)
    with timed(logger, "Decomposing camera matrix"):
        cam = decompose_projection_matrix(P)

    print(_fmt("K", cam.K))
    print(_fmt("R", cam.R))
    print(_fmt("t", cam.t.reshape(3)))
    print(_fmt("C", cam.C.reshape(3)))
    return 0


def cmd_trifocal(args, config: GeometryConfig, logger) -> int:
    P2 = read_projection_matrix(args.P2)
    P3 = read_projection_matrix(args.P3)

    with timed(logger, "Building trifocal tensor"):
        if args.P1 is None:
            tensor = create_trifocal(P2, P3)
        else:
            tensor = create_trifocal_general(read_projection_matrix(args.P1), P2, P3)
        tensor.normalize_scale()
        geom = TrifocalGeometryExtractor(tensor)

    e2, e3 = geom.epipoles()
    F21, F31 = geom.fundamental()

    for i, T in enumerate(tensor.slices(), start=1):
        print(_fmt(f"T{i}", T))
    print(_fmt("e2", e2))
    print(_fmt("e3", e3))
    print(_fmt("F21", F21))
    print(_fmt("F31", F31))
    return 0


def cmd_compatible(args, config: GeometryConfig, logger) -> int:
    keys = ("F", "fundamental", "matrix")
    F21 = read_matrix(args.F21, (3, 3), keys=keys)
    F31 = read_matrix(args.F31, (3, 3), keys=keys)
    F32 = read_matrix(args.F32, (3, 3), keys=keys)

    tol = config.tolerances.compatible_tol if args.tol is None else args.tol
    ok = fundamental_compatible3(F21, F31, F32, tol)
    logger.info(f"Compatibility tolerance {tol:g}")
    print("compatible" if ok else "incompatible")
    return 0 if ok else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mvgeo-geometry",
        description="Projective multi-view geometry tools",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--config", type=str, default=None,
                        help="Optional .json/.yaml config overriding tolerances and log level")
    parser.add_argument("--log_level", type=str, default=None,
                        help="DEBUG, INFO, WARNING or ERROR (overrides the config)")

    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("decompose", help="Decompose a 3x4 camera matrix into K, R, t")
    p.add_argument("P", type=str, help="Camera matrix file")
    p.set_defaults(func=cmd_decompose)

    p = sub.add_parser("trifocal", help="Trifocal tensor, epipoles and fundamental matrices")
    p.add_argument("--P1", type=str, default=None,
                   help="Camera matrix of view 1 (default [I|0])")
    p.add_argument("--P2", type=str, required=True, help="Camera matrix of view 2")
    p.add_argument("--P3", type=str, required=True, help="Camera matrix of view 3")
    p.set_defaults(func=cmd_trifocal)

    p = sub.add_parser("compatible", help="Check three fundamental matrices for consistency")
    p.add_argument("F21", type=str)
    p.add_argument("F31", type=str)
    p.add_argument("F32", type=str)
    p.add_argument("--tol", type=float, default=None,
                   help="Maximum mean residual (default from config)")
    p.set_defaults(func=cmd_compatible)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    config = get_default_config() if args.config is None else load_config(args.config)
    level = args.log_level or config.logging.level
    logger = make_logger("mvgeo", level)

    return args.func(args, config, logger)


if __name__ == "__main__":
    raise SystemExit(main())
