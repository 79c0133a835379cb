"""
mvgeo/geometry_utils/__init__.py

Geometry internals. Import the public API from mvgeo.geometry instead.
"""
