"""
mvgeo/__init__.py

Projective multi-view geometry toolkit.

Usage:
    from mvgeo.geometry import create_trifocal, extract_fundamental, decompose_metric_camera

    tensor = create_trifocal(P2, P3)
    F21, F31 = extract_fundamental(tensor)

    K, world_to_view = decompose_metric_camera(P)
"""

__version__ = "0.1.0"
