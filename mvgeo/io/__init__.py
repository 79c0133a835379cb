"""
mvgeo/io/__init__.py

Camera/matrix file readers, value types and logging helpers.
"""
