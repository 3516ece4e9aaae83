"""
Core geometry types for finger-joint panel construction.

Points are plain (x, y) tuples in millimetres. Edge profiles and panels are
lists of points. The transform helpers below never mutate their input, so a
generated edge can be placed several times without aliasing.
"""
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Tuple

import numpy as np

Point = Tuple[float, float]

# Every floating-point comparison in the kernel uses this tolerance.
TOLERANCE_MM = 1e-3

_ROT90 = np.array([[0.0, -1.0], [1.0, 0.0]])
_ROT90_CCW = np.array([[0.0, 1.0], [-1.0, 0.0]])


class BoxGeometryError(Exception):
    """Base exception for unrecoverable geometry failures."""
    pass


class EdgeMode(Enum):
    """How one side of a panel meets its neighbour."""
    FLAT = "flat"
    FINGERS_IN = "fingers-in"
    FINGERS_OUT = "fingers-out"

    @property
    def is_patterned(self) -> bool:
        return self is not EdgeMode.FLAT

    @property
    def complement(self) -> "EdgeMode":
        if self is EdgeMode.FINGERS_IN:
            return EdgeMode.FINGERS_OUT
        if self is EdgeMode.FINGERS_OUT:
            return EdgeMode.FINGERS_IN
        return EdgeMode.FLAT


@dataclass(frozen=True)
class PanelSpec:
    """Dimensions and per-side edge modes for one panel.

    ``width_class`` / ``height_class`` name the box dimension ("W", "D" or
    "H") the panel's width and height belong to. Patterns may pick a
    per-class finger count from them; standalone panels leave them unset.
    """
    width: float
    height: float
    thickness: float
    finger_width: float
    top: EdgeMode = EdgeMode.FLAT
    right: EdgeMode = EdgeMode.FLAT
    bottom: EdgeMode = EdgeMode.FLAT
    left: EdgeMode = EdgeMode.FLAT
    width_class: Optional[str] = None
    height_class: Optional[str] = None

    def mode_for(self, side: str) -> EdgeMode:
        return getattr(self, side)

    def length_for(self, side: str) -> float:
        """Edge length of a side: top/bottom run along width, left/right along height."""
        return self.width if side in ("top", "bottom") else self.height

    def class_for(self, side: str) -> Optional[str]:
        return self.width_class if side in ("top", "bottom") else self.height_class


# ─── Transform utilities ─────────────────────────────────────────────────────

def _apply_matrix(edge: Sequence[Point], matrix: np.ndarray) -> List[Point]:
    if not edge:
        return []
    pts = np.asarray(edge, dtype=float).reshape(-1, 2)
    out = pts @ matrix.T
    return [(float(x), float(y)) for x, y in out]


def rotate90(edge: Sequence[Point]) -> List[Point]:
    """Rotate 90 degrees: (x, y) -> (-y, x)."""
    return _apply_matrix(edge, _ROT90)


def rotate90_ccw(edge: Sequence[Point]) -> List[Point]:
    """Rotate 90 degrees the other way: (x, y) -> (y, -x)."""
    return _apply_matrix(edge, _ROT90_CCW)


def reverse(edge: Sequence[Point]) -> List[Point]:
    return list(reversed(edge))


def translate(edge: Sequence[Point], dx: float, dy: float) -> List[Point]:
    if not edge:
        return []
    pts = np.asarray(edge, dtype=float).reshape(-1, 2) + np.array([dx, dy])
    return [(float(x), float(y)) for x, y in pts]


# ─── Measurements ────────────────────────────────────────────────────────────

def bounding_box(points: Sequence[Point]) -> Tuple[float, float, float, float]:
    """Return (min_x, min_y, max_x, max_y) of a point list."""
    if not points:
        raise ValueError("Cannot compute the bounding box of an empty point list")
    pts = np.asarray(points, dtype=float).reshape(-1, 2)
    min_x, min_y = pts.min(axis=0)
    max_x, max_y = pts.max(axis=0)
    return (float(min_x), float(min_y), float(max_x), float(max_y))


def points_close(a: Point, b: Point, tol: float = TOLERANCE_MM) -> bool:
    return abs(a[0] - b[0]) <= tol and abs(a[1] - b[1]) <= tol


def doubles_back(a: Point, b: Point, c: Point, tol: float = TOLERANCE_MM) -> bool:
    """True when a -> b -> c runs along one axis and turns back 180 degrees at b."""
    dx1, dy1 = b[0] - a[0], b[1] - a[1]
    dx2, dy2 = c[0] - b[0], c[1] - b[1]
    if abs(dy1) <= tol and abs(dy2) <= tol:
        return dx1 * dx2 < 0 and abs(dx1) > tol and abs(dx2) > tol
    if abs(dx1) <= tol and abs(dx2) <= tol:
        return dy1 * dy2 < 0 and abs(dy1) > tol and abs(dy2) > tol
    return False


def max_point_deviation(a: Sequence[Point], b: Sequence[Point]) -> float:
    """Largest per-coordinate difference between two equally long point lists.

    Returns ``inf`` when the lists differ in length.
    """
    if len(a) != len(b):
        return float("inf")
    if not a:
        return 0.0
    diff = np.abs(np.asarray(a, dtype=float) - np.asarray(b, dtype=float))
    return float(diff.max())
