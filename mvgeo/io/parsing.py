from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np
import yaml


def extract_floats(text: str) -> List[float]:
    """
    Extract floats/ints/scientific-notation numbers from arbitrary text.
    """
    pattern = r"[-+]?(?:\d*\.\d+|\d+\.?)(?:[eE][-+]?\d+)?"
    return [float(x) for x in re.findall(pattern, text)]


def load_data(path: Union[str, Path]) -> Any:
    """
    Load a file into a Python object based on file extension.

    - .json -> parsed dict/list
    - .yaml/.yml -> parsed dict/list
    - otherwise -> raw text (str)

    This function is domain-neutral: it does NOT interpret the contents.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")

    suf = path.suffix.lower()
    text = path.read_text(encoding="utf-8", errors="ignore")

    if suf == ".json":
        return json.loads(text)

    if suf in (".yaml", ".yml"):
        return yaml.safe_load(text)

    return text


def matrix_from_obj(
    obj: Any,
    shape: Tuple[int, int],
    keys: Sequence[str],
    nested: Sequence[str] = ("camera",),
) -> Optional[np.ndarray]:
    """
    Pull a matrix of the given shape out of a loaded object.

      - raw text: the first rows*cols numbers, row-major
      - dict: the first of `keys` found at top level or under one of `nested`

    Returns None when a mapping holds none of the keys.
    """
    n = shape[0] * shape[1]

    if isinstance(obj, str):
        vals = extract_floats(obj)
        if len(vals) < n:
            raise ValueError(f"Expected >={n} numbers for a {shape[0]}x{shape[1]} matrix, got {len(vals)}")
        return np.array(vals[:n], dtype=np.float64).reshape(shape)

    if isinstance(obj, (list, tuple)):
        return _reshape(obj, shape)

    if isinstance(obj, Mapping):
        for k in keys:
            if k in obj:
                return _reshape(obj[k], shape)
        for outer in nested:
            sub = obj.get(outer)
            if isinstance(sub, Mapping):
                found = matrix_from_obj(sub, shape, keys, nested=())
                if found is not None:
                    return found
        return None

    raise ValueError(f"Unsupported data type {type(obj).__name__}")


def _reshape(x: Any, shape: Tuple[int, int]) -> np.ndarray:
    arr = np.array(x, dtype=np.float64)
    n = shape[0] * shape[1]
    if arr.size != n:
        raise ValueError(f"Expected {n} values for {shape[0]}x{shape[1]}, got {arr.size}")
    return arr.reshape(shape)
