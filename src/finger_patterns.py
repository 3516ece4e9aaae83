"""
Finger pattern calculators.

Turns an edge length and a nominal finger width into an alternating tab/gap
segmentation. Three strategies are available and the caller picks one with
PatternConfig:

  - canonical:      equal steps, count even and >= 4
  - centered:       K full-width core fingers flanked by two adaptive edge
                    segments; identical lengths give identical segments, so
                    mating edges always line up
  - special-bottom: three fixed 10mm centre fingers on width edges, with the
                    remainder shared by two side fingers and two side gaps

Segment index 0 is a tab when the edge starts with a tab, and kinds alternate
from there.
"""
import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Tuple

from geometry_primitives import TOLERANCE_MM

logger = logging.getLogger(__name__)

MIN_CANONICAL_COUNT = 4
SPECIAL_CENTER_FINGER_MM = 10.0
SPECIAL_CENTER_COUNT = 3


class SegmentCompatibilityError(ValueError):
    """Two same-length edges that must mate were given different segments."""
    pass


@dataclass(frozen=True)
class FingerSegmentation:
    """Ordered tab/gap segment lengths for one edge length."""
    lengths: Tuple[float, ...]
    total_length: float
    finger_width: float
    core_fingers: int = 0

    @property
    def count(self) -> int:
        return len(self.lengths)

    def is_consistent(self, tol: float = TOLERANCE_MM) -> bool:
        return abs(sum(self.lengths) - self.total_length) <= tol


@dataclass(frozen=True)
class SegmentResult:
    """A segmentation plus how it was obtained."""
    segmentation: FingerSegmentation
    effective_k: int
    edge_len: float
    ok: bool = True
    warning: Optional[str] = None


@dataclass(frozen=True)
class FingerPattern:
    """Canonical (count, step) pair for an edge length."""
    count: int
    step: float
    starts_with_tab: bool = True

    def to_segmentation(self, total_length: float, finger_width: float) -> FingerSegmentation:
        return FingerSegmentation(
            lengths=tuple(self.step for _ in range(self.count)),
            total_length=total_length,
            finger_width=finger_width,
        )


class PatternStrategy(Enum):
    CANONICAL = "canonical"
    CENTERED = "centered"
    SPECIAL_BOTTOM = "special-bottom"


@dataclass(frozen=True)
class CenteredFingerConfig:
    """Core finger counts per length class for the centered strategy."""
    k_width: int = 3
    k_depth: int = 2
    k_height: int = 2
    min_edge_finger: float = 3.0

    def k_for(self, length_class: str) -> int:
        return {"W": self.k_width, "D": self.k_depth, "H": self.k_height}[length_class]


def _require_positive(length: float, finger_width: float) -> None:
    if length <= 0 or finger_width <= 0:
        raise ValueError(
            f"Edge length and finger width must be positive "
            f"(got length={length}, finger_width={finger_width})"
        )


# ─── Canonical ───────────────────────────────────────────────────────────────

def make_canonical_pattern(
    length: float,
    finger_width: float,
    starts_with_tab: bool = True,
) -> FingerPattern:
    """Derive the canonical pattern from edge length and finger width only.

    The count is rounded from ``length / finger_width``, raised to at least 4
    and bumped to the next even number, so reversed traversal of the edge can
    always be compensated by flipping the start phase.
    """
    _require_positive(length, finger_width)
    count = int(round(length / finger_width))
    if count < MIN_CANONICAL_COUNT:
        count = MIN_CANONICAL_COUNT
    if count % 2 != 0:
        count += 1
    return FingerPattern(count=count, step=length / count, starts_with_tab=starts_with_tab)


def canonical_segmentation(length: float, finger_width: float) -> FingerSegmentation:
    return make_canonical_pattern(length, finger_width).to_segmentation(length, finger_width)


# ─── Centered ────────────────────────────────────────────────────────────────

def compute_centered_segments(
    length: float,
    finger_width: float,
    k: int,
    min_edge_finger: float,
) -> SegmentResult:
    """Compute [edge, fw * K, edge] with K reduced until both edges fit.

    If even K=0 leaves less than ``2 * min_edge_finger``, falls back to
    ``max(2, round(length / fw))`` equal segments and reports ``ok=False``.
    """
    _require_positive(length, finger_width)
    effective_k = max(0, int(math.floor(k)))
    warning = None

    core_len = effective_k * finger_width
    remaining = length - core_len

    if remaining < 2 * min_edge_finger:
        original_k = effective_k
        while effective_k > 0 and remaining < 2 * min_edge_finger:
            effective_k -= 1
            core_len = effective_k * finger_width
            remaining = length - core_len

        if effective_k != original_k:
            warning = (
                f"Core fingers reduced from {original_k} to {effective_k} "
                f"due to small edge length"
            )

        if remaining < 2 * min_edge_finger:
            fallback_count = max(2, int(round(length / finger_width)))
            segment_len = length / fallback_count
            logger.debug(
                "Centered segments: %.3fmm edge falls back to %d uniform segments",
                length, fallback_count,
            )
            return SegmentResult(
                segmentation=FingerSegmentation(
                    lengths=tuple(segment_len for _ in range(fallback_count)),
                    total_length=length,
                    finger_width=finger_width,
                    core_fingers=0,
                ),
                effective_k=0,
                edge_len=segment_len,
                ok=False,
                warning=(
                    f"Fallback segmentation used (edge {length:.1f}mm too small "
                    f"for minEdge {min_edge_finger:.1f}mm)"
                ),
            )

    edge_len = remaining / 2
    lengths = [edge_len] + [finger_width] * effective_k + [edge_len]
    return SegmentResult(
        segmentation=FingerSegmentation(
            lengths=tuple(lengths),
            total_length=length,
            finger_width=finger_width,
            core_fingers=effective_k,
        ),
        effective_k=effective_k,
        edge_len=edge_len,
        ok=True,
        warning=warning,
    )


# ─── Special bottom ──────────────────────────────────────────────────────────

def compute_special_bottom_segments(
    length: float,
    finger_width: float,
    center_finger_mm: float = SPECIAL_CENTER_FINGER_MM,
    center_count: int = SPECIAL_CENTER_COUNT,
) -> SegmentResult:
    """Side finger, side gap, fixed centre fingers, side gap, side finger.

    Centre fingers are separated by ``finger_width`` gaps. The four side
    segments share what is left so the segments sum to ``length``.
    """
    _require_positive(length, finger_width)
    center_total = center_finger_mm * center_count + finger_width * (center_count - 1)
    side = (length - center_total) / 4

    if side <= TOLERANCE_MM:
        fallback = canonical_segmentation(length, finger_width)
        return SegmentResult(
            segmentation=fallback,
            effective_k=0,
            edge_len=fallback.lengths[0],
            ok=False,
            warning=(
                f"Special bottom pattern needs more than {center_total:.1f}mm "
                f"(edge {length:.1f}mm); canonical pattern used"
            ),
        )

    center: List[float] = []
    for i in range(center_count):
        center.append(center_finger_mm)
        if i < center_count - 1:
            center.append(finger_width)
    lengths = [side, side] + center + [side, side]
    return SegmentResult(
        segmentation=FingerSegmentation(
            lengths=tuple(lengths),
            total_length=length,
            finger_width=finger_width,
            core_fingers=center_count,
        ),
        effective_k=center_count,
        edge_len=side,
    )


# ─── Strategy selector ───────────────────────────────────────────────────────

@dataclass(frozen=True)
class PatternConfig:
    """Caller-selected segmentation strategy.

    ``min_edge_finger_mm`` defaults to half the finger width (at least 3mm)
    for the centered strategy. The special-bottom strategy only applies to
    horizontal edges; vertical edges stay canonical.

    With ``class_fingers`` set, the centered strategy takes its core finger
    count from the edge's length class ("W", "D" or "H") instead of
    ``core_fingers``, and its minimum edge segment from
    ``class_fingers.min_edge_finger``. Edges without a class keep using
    ``core_fingers``.
    """
    strategy: PatternStrategy = PatternStrategy.CANONICAL
    core_fingers: int = 3
    min_edge_finger_mm: Optional[float] = None
    class_fingers: Optional[CenteredFingerConfig] = None

    def min_edge_for(self, finger_width: float) -> float:
        if self.min_edge_finger_mm is not None:
            return self.min_edge_finger_mm
        floor = self.class_fingers.min_edge_finger if self.class_fingers else 3.0
        return max(floor, finger_width / 2)

    def core_fingers_for(self, length_class: Optional[str] = None) -> int:
        if self.class_fingers is not None and length_class is not None:
            return self.class_fingers.k_for(length_class)
        return self.core_fingers

    def segment(
        self,
        length: float,
        finger_width: float,
        axis: str = "horizontal",
        length_class: Optional[str] = None,
    ) -> SegmentResult:
        """Segment one edge length.

        Depends only on (length, finger_width, axis, length_class), so two
        edges that agree on those always get identical segments.
        """
        if self.strategy is PatternStrategy.CENTERED:
            return compute_centered_segments(
                length,
                finger_width,
                self.core_fingers_for(length_class),
                self.min_edge_for(finger_width),
            )
        if self.strategy is PatternStrategy.SPECIAL_BOTTOM and axis == "horizontal":
            return compute_special_bottom_segments(length, finger_width)
        seg = canonical_segmentation(length, finger_width)
        return SegmentResult(segmentation=seg, effective_k=0, edge_len=seg.lengths[0])


LENGTH_CLASS_LABELS = {"W": "Width", "D": "Depth", "H": "Height"}
LENGTH_CLASS_AXES = {"W": "horizontal", "D": "vertical", "H": "vertical"}


def compute_length_class_segments(
    lengths: Dict[str, float],
    finger_width: float,
    pattern: Optional[PatternConfig] = None,
) -> Tuple[Dict[str, SegmentResult], List[str]]:
    """Segments for the W/D/H length classes of a box.

    Every edge of a box belongs to one of these classes, so the three results
    cover all of its segmentations and warnings.

    Args:
        lengths: Mapping with keys "W", "D" and "H".
        finger_width: Nominal finger width.
        pattern: Strategy to apply; centered with the default per-class
            core counts when omitted.

    Returns:
        (results keyed like ``lengths``, labelled warnings).
    """
    if pattern is None:
        pattern = PatternConfig(
            strategy=PatternStrategy.CENTERED, class_fingers=CenteredFingerConfig()
        )

    results: Dict[str, SegmentResult] = {}
    warnings: List[str] = []
    for key in ("W", "D", "H"):
        result = pattern.segment(lengths[key], finger_width, LENGTH_CLASS_AXES[key], key)
        results[key] = result
        if result.warning:
            warnings.append(f"{LENGTH_CLASS_LABELS[key]} edges: {result.warning}")
    return results, warnings


# ─── Mating and traversal ────────────────────────────────────────────────────

def validate_segments_compatibility(
    a: FingerSegmentation,
    b: FingerSegmentation,
    pair_name: str,
    tolerance: float = TOLERANCE_MM,
) -> None:
    """Raise if two same-length segmentations differ anywhere.

    Segmentations of different total length are not expected to mate and are
    accepted as-is.
    """
    if abs(a.total_length - b.total_length) > tolerance:
        return

    if a.count != b.count:
        raise SegmentCompatibilityError(
            f"Segment count mismatch for {pair_name} "
            f"(same length {a.total_length:.1f}mm):\n"
            f"  Edge A: {a.count} segments {_format_lengths(a)}\n"
            f"  Edge B: {b.count} segments {_format_lengths(b)}"
        )

    for i, (la, lb) in enumerate(zip(a.lengths, b.lengths)):
        if abs(la - lb) > tolerance:
            raise SegmentCompatibilityError(
                f"Segment length mismatch for {pair_name} at segment {i}:\n"
                f"  Edge A: {_format_lengths(a)}\n"
                f"  Edge B: {_format_lengths(b)}"
            )


def _format_lengths(seg: FingerSegmentation) -> str:
    return "[" + ", ".join(f"{v:.3f}" for v in seg.lengths) + "]"


def reverse_segments(seg: FingerSegmentation) -> FingerSegmentation:
    return FingerSegmentation(
        lengths=tuple(reversed(seg.lengths)),
        total_length=seg.total_length,
        finger_width=seg.finger_width,
        core_fingers=seg.core_fingers,
    )


def start_phase_for(
    segmentation: FingerSegmentation,
    reversed_traversal: bool,
    starts_with_tab: bool = True,
) -> bool:
    """Start phase to generate with so the placed edge keeps ``starts_with_tab``.

    An edge that is generated forward and then walked backwards shows its last
    segment first. With an even count the last segment has the opposite kind
    to the first, so the phase is flipped; an odd count starts and ends with
    the same kind and needs no correction.
    """
    if reversed_traversal and segmentation.count % 2 == 0:
        return not starts_with_tab
    return starts_with_tab
