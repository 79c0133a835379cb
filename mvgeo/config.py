"""
mvgeo/config.py

Configuration dataclasses for callers of the geometry toolkit.
ALL default tolerances live here - the geometry functions take them as
arguments and never hardcode anything beyond machine epsilon.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Mapping, Union

from mvgeo.io.parsing import load_data


@dataclass
class ToleranceConfig:
    """Thresholds for consistency checks and degenerate configurations."""
    compatible_tol: float = 1e-6           # mean |e^T F e| for three-view compatibility
    degenerate_tol: float = 1e-12          # relative size below which a plane-induced fit is degenerate


@dataclass
class LoggingConfig:
    level: str = "INFO"                    # "DEBUG" | "INFO" | "WARNING" | "ERROR"


@dataclass
class GeometryConfig:
    """Top-level configuration."""
    tolerances: ToleranceConfig = field(default_factory=ToleranceConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def get_default_config() -> GeometryConfig:
    return GeometryConfig()


def config_from_dict(data: Mapping[str, Any]) -> GeometryConfig:
    """
    Build a GeometryConfig from a nested mapping, e.g.

        {"tolerances": {"compatible_tol": 1e-5}, "logging": {"level": "DEBUG"}}

    Unknown sections or keys raise ValueError so typos do not pass silently.
    """
    config = GeometryConfig()
    sections = {f.name for f in fields(GeometryConfig)}
    for section, values in (data or {}).items():
        if section not in sections:
            raise ValueError(f"Unknown config section: {section}")
        target = getattr(config, section)
        allowed = {f.name for f in fields(target)}
        for key, value in (values or {}).items():
            if key not in allowed:
                raise ValueError(f"Unknown key '{key}' in config section '{section}'")
            current = getattr(target, key)
            setattr(target, key, type(current)(value))
    return config


def load_config(path: Union[str, Path]) -> GeometryConfig:
    """Load a GeometryConfig from .json or .yaml."""
    data = load_data(path)
    if not isinstance(data, Mapping):
        raise ValueError(f"Config file must contain a mapping, got {type(data).__name__}")
    return config_from_dict(data)
