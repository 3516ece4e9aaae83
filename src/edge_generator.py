"""
Edge profile generation.

An edge profile runs from (0, 0) to (length, 0) in its own frame. Tabs leave
the baseline to +thickness (fingers-out) or -thickness (fingers-in); gaps stay
on the baseline. Placing the profile on a panel is the panel builder's job.
"""
import logging
from typing import List, Optional

from finger_patterns import FingerSegmentation, canonical_segmentation
from geometry_primitives import TOLERANCE_MM, EdgeMode, Point

logger = logging.getLogger(__name__)


def generate_edge(
    length: float,
    thickness: float,
    finger_width: float,
    mode: EdgeMode,
    starts_with_tab: bool = True,
    segmentation: Optional[FingerSegmentation] = None,
) -> List[Point]:
    """Generate one edge profile.

    Args:
        length: Edge length (mm).
        thickness: Material thickness, the tab height.
        finger_width: Nominal finger width, used when no segmentation is given.
        mode: FLAT, FINGERS_IN or FINGERS_OUT.
        starts_with_tab: Whether segment 0 is a tab.
        segmentation: Explicit segmentation; canonical when omitted.

    Returns:
        Points from (0, 0) to exactly (length, 0).
    """
    mode = EdgeMode(mode)
    if mode is EdgeMode.FLAT:
        return [(0.0, 0.0), (float(length), 0.0)]

    if segmentation is None:
        segmentation = canonical_segmentation(length, finger_width)
    if abs(segmentation.total_length - length) > TOLERANCE_MM:
        raise ValueError(
            f"Segmentation is for a {segmentation.total_length:.3f}mm edge, "
            f"not {length:.3f}mm"
        )

    tab_y = thickness if mode is EdgeMode.FINGERS_OUT else -thickness
    raw: List[Point] = [(0.0, 0.0)]
    x = 0.0

    for i, seg_len in enumerate(segmentation.lengths):
        is_tab = (i % 2 == 0) == starts_with_tab
        if is_tab:
            end_x = x + seg_len
            raw.append((x, 0.0))
            raw.append((x, tab_y))
            raw.append((end_x, tab_y))
            raw.append((end_x, 0.0))
            x = end_x
        else:
            x += seg_len
            raw.append((x, 0.0))

    points = _drop_consecutive_duplicates(raw)

    # Absorb floating-point drift so the edge meets the next corner exactly.
    last_x, last_y = points[-1]
    if abs(last_y) <= TOLERANCE_MM and abs(last_x - length) <= TOLERANCE_MM:
        points[-1] = (float(length), 0.0)
    else:
        points.append((float(length), 0.0))

    logger.debug(
        "Edge %.3fmm %s: %d segments, %d points",
        length, mode.value, segmentation.count, len(points),
    )
    return points


def _drop_consecutive_duplicates(points: List[Point]) -> List[Point]:
    kept: List[Point] = [points[0]]
    for p in points[1:]:
        prev = kept[-1]
        if abs(p[0] - prev[0]) > TOLERANCE_MM or abs(p[1] - prev[1]) > TOLERANCE_MM:
            kept.append(p)
    return kept
