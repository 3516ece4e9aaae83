"""
Panel construction from four independently generated edges.

The perimeter is walked top (left to right), right (top to bottom), bottom
(right to left) and left (bottom to top). Bottom and left are generated
forward and then walked backwards, so their start phase is corrected with
start_phase_for() to keep finger boundaries anchored the same way as the
top and right edges.

A tab that starts or ends at a corner can run back over the neighbouring
edge's last stretch. Those doubled-back corner vertices are removed after
the edges are joined, so every remaining turn is 90 degrees.
"""
import logging
from typing import List, Optional

from edge_generator import generate_edge
from finger_patterns import PatternConfig, start_phase_for
from geometry_primitives import (
    PanelSpec,
    Point,
    doubles_back,
    points_close,
    reverse,
    rotate90,
    rotate90_ccw,
    translate,
)

logger = logging.getLogger(__name__)


def build_panel(spec: PanelSpec, pattern: Optional[PatternConfig] = None) -> List[Point]:
    """Build one closed, orthogonal panel outline.

    Args:
        spec: Panel dimensions and per-side modes.
        pattern: Segmentation strategy; canonical when omitted.

    Returns:
        Closed point list (first point repeated at the end).
    """
    if spec.width <= 0 or spec.height <= 0:
        raise ValueError(f"Panel dimensions must be positive (got {spec.width} x {spec.height})")
    if pattern is None:
        pattern = PatternConfig()

    # Segmentations depend only on the length, never on which side uses them.
    horizontal = pattern.segment(
        spec.width, spec.finger_width, "horizontal", spec.width_class
    ).segmentation
    vertical = pattern.segment(
        spec.height, spec.finger_width, "vertical", spec.height_class
    ).segmentation

    top = generate_edge(
        spec.width, spec.thickness, spec.finger_width, spec.top,
        starts_with_tab=start_phase_for(horizontal, reversed_traversal=False),
        segmentation=horizontal,
    )
    right = generate_edge(
        spec.height, spec.thickness, spec.finger_width, spec.right,
        starts_with_tab=start_phase_for(vertical, reversed_traversal=False),
        segmentation=vertical,
    )
    bottom = generate_edge(
        spec.width, spec.thickness, spec.finger_width, spec.bottom,
        starts_with_tab=start_phase_for(horizontal, reversed_traversal=True),
        segmentation=horizontal,
    )
    left = generate_edge(
        spec.height, spec.thickness, spec.finger_width, spec.left,
        starts_with_tab=start_phase_for(vertical, reversed_traversal=True),
        segmentation=vertical,
    )

    placed_right = translate(rotate90(right), spec.width, 0.0)
    placed_bottom = translate(reverse(bottom), 0.0, spec.height)
    placed_left = translate(rotate90_ccw(left), 0.0, spec.height)

    # The left edge ends at the origin; close on top[0] exactly.
    joined = top + placed_right[1:] + placed_bottom[1:] + placed_left[1:-1] + [top[0]]
    panel = remove_backtracks(joined)
    logger.debug(
        "Built %.3f x %.3f panel with %d points (%d corner backtracks removed)",
        spec.width, spec.height, len(panel), len(joined) - len(panel),
    )
    return panel


def remove_backtracks(ring: List[Point]) -> List[Point]:
    """Drop vertices where a closed outline reverses along the same line.

    The ring is treated cyclically, so a reversal at the start point is
    removed as well; the outline then starts at the next surviving point.
    Points that coincide with their predecessor are dropped too.
    """
    pts = list(ring[:-1])
    changed = True
    while changed and len(pts) > 3:
        changed = False
        for i in range(len(pts)):
            prev, cur, nxt = pts[i - 1], pts[i], pts[(i + 1) % len(pts)]
            if points_close(prev, cur) or doubles_back(prev, cur, nxt):
                del pts[i]
                changed = True
                break
    return pts + [pts[0]]
