"""
mvgeo/geometry_utils/observations.py

Point and line correspondences across two and three views.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence, Tuple

import numpy as np


@dataclass
class AssociatedPair:
    p1: np.ndarray  # (2,) pixel in view 1
    p2: np.ndarray  # (2,) pixel in view 2

    def __post_init__(self):
        self.p1 = np.asarray(self.p1, dtype=np.float64).reshape(2)
        self.p2 = np.asarray(self.p2, dtype=np.float64).reshape(2)


@dataclass
class AssociatedTriple:
    p1: np.ndarray  # (2,)
    p2: np.ndarray  # (2,)
    p3: np.ndarray  # (2,)

    def __post_init__(self):
        self.p1 = np.asarray(self.p1, dtype=np.float64).reshape(2)
        self.p2 = np.asarray(self.p2, dtype=np.float64).reshape(2)
        self.p3 = np.asarray(self.p3, dtype=np.float64).reshape(2)


@dataclass
class PairLineNorm:
    """The same line observed in two views, in general form (a, b, c): ax + by + c = 0."""
    l1: np.ndarray  # (3,)
    l2: np.ndarray  # (3,)

    def __post_init__(self):
        self.l1 = np.asarray(self.l1, dtype=np.float64).reshape(3)
        self.l2 = np.asarray(self.l2, dtype=np.float64).reshape(3)


def split2(pairs: Sequence[AssociatedPair]) -> Tuple[List[np.ndarray], List[np.ndarray]]:
    """Splits associated pairs into one list per view."""
    return [p.p1 for p in pairs], [p.p2 for p in pairs]


def split3(
    triples: Sequence[AssociatedTriple],
) -> Tuple[List[np.ndarray], List[np.ndarray], List[np.ndarray]]:
    """Splits associated triples into one list per view."""
    return [t.p1 for t in triples], [t.p2 for t in triples], [t.p3 for t in triples]


def pairs_to_arrays(pairs: Sequence[AssociatedPair]) -> Tuple[np.ndarray, np.ndarray]:
    """(N,2) arrays for each view. Empty input gives (0,2) arrays."""
    if len(pairs) == 0:
        return np.zeros((0, 2)), np.zeros((0, 2))
    list1, list2 = split2(pairs)
    return np.vstack(list1), np.vstack(list2)
