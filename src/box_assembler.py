"""
Box assembly: six finger-jointed panels from interior dimensions.

Every panel spans the full outer extent along the edges it shares with a
neighbour, so both panels of a joint see the same edge length and therefore
the same segmentation. One panel of each joint carries fingers-out and the
other fingers-in.

The hinged variant reuses build_simple_box() unchanged and only attaches
hinge-hole metadata to the left and right panels.
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Tuple

from finger_patterns import (
    PatternConfig,
    PatternStrategy,
    SegmentCompatibilityError,
    compute_length_class_segments,
    validate_segments_compatibility,
)
from geometry_primitives import TOLERANCE_MM, EdgeMode, PanelSpec, Point
from panel_builder import build_panel

logger = logging.getLogger(__name__)

PANEL_NAMES = ("front", "back", "left", "right", "bottom", "lid")

# (panel, side) pairs that interlock once the box is assembled. The back is
# seen from outside, so its right side meets the left panel.
MATING_EDGES: Tuple[Tuple[Tuple[str, str], Tuple[str, str]], ...] = (
    (("front", "right"), ("right", "left")),
    (("front", "left"), ("left", "right")),
    (("back", "right"), ("left", "left")),
    (("back", "left"), ("right", "right")),
    (("front", "bottom"), ("bottom", "top")),
    (("back", "bottom"), ("bottom", "bottom")),
    (("left", "bottom"), ("bottom", "left")),
    (("right", "bottom"), ("bottom", "right")),
)

FLAT = EdgeMode.FLAT
IN = EdgeMode.FINGERS_IN
OUT = EdgeMode.FINGERS_OUT


@dataclass(frozen=True)
class BoxInputs:
    """Interior box dimensions and material parameters (mm)."""
    inner_width: float
    inner_depth: float
    inner_height: float
    thickness: float
    finger_width: float

    def __post_init__(self):
        for name in ("inner_width", "inner_depth", "inner_height", "thickness", "finger_width"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive (got {getattr(self, name)})")


@dataclass(frozen=True)
class HingeConfig:
    """Pin hinge on the back edge of the left/right panels."""
    enabled: bool = True
    pin_diameter_mm: float = 3.0
    clearance_mm: float = 0.2
    inset_from_top_mm: float = 8.0
    inset_from_back_mm: float = 8.0

    @property
    def hole_diameter_mm(self) -> float:
        return self.pin_diameter_mm + 2 * self.clearance_mm


@dataclass(frozen=True)
class HingeHole:
    """Hole centre and diameter in the owning panel's frame."""
    cx: float
    cy: float
    diameter: float


@dataclass
class BoxPanels:
    """The six panels of a box, plus non-fatal geometry warnings."""
    front: List[Point]
    back: List[Point]
    left: List[Point]
    right: List[Point]
    bottom: List[Point]
    lid: List[Point]
    warnings: List[str] = field(default_factory=list)

    def as_dict(self) -> Dict[str, List[Point]]:
        return {name: getattr(self, name) for name in PANEL_NAMES}

    def items(self) -> Iterator[Tuple[str, List[Point]]]:
        return iter(self.as_dict().items())


@dataclass
class HingedBoxPanels:
    panels: BoxPanels
    hinge_holes: Dict[str, HingeHole] = field(default_factory=dict)

    @property
    def warnings(self) -> List[str]:
        return self.panels.warnings


def box_panel_specs(inputs: BoxInputs) -> Dict[str, PanelSpec]:
    """Derive the six panel specs from interior dimensions."""
    t = inputs.thickness
    fw = inputs.finger_width
    outer_width = inputs.inner_width + 2 * t
    outer_depth = inputs.inner_depth + 2 * t
    height = inputs.inner_height

    def spec(width, w_class, panel_height, h_class, top, right, bottom, left):
        return PanelSpec(
            width, panel_height, t, fw,
            top=top, right=right, bottom=bottom, left=left,
            width_class=w_class, height_class=h_class,
        )

    return {
        "front": spec(outer_width, "W", height, "H", FLAT, OUT, OUT, OUT),
        "back": spec(outer_width, "W", height, "H", FLAT, OUT, OUT, OUT),
        "left": spec(outer_depth, "D", height, "H", FLAT, IN, OUT, IN),
        "right": spec(outer_depth, "D", height, "H", FLAT, IN, OUT, IN),
        "bottom": spec(outer_width, "W", outer_depth, "D", IN, IN, IN, IN),
        "lid": spec(outer_width, "W", outer_depth, "D", FLAT, FLAT, FLAT, FLAT),
    }


def class_lengths(inputs: BoxInputs) -> Dict[str, float]:
    """Edge length of each W/D/H class: outer width, outer depth, interior height."""
    return {
        "W": inputs.inner_width + 2 * inputs.thickness,
        "D": inputs.inner_depth + 2 * inputs.thickness,
        "H": inputs.inner_height,
    }


def panel_pattern(name: str, pattern: PatternConfig) -> PatternConfig:
    """Pattern used for one panel.

    With the special-bottom strategy the fixed centre fingers belong to the
    width-class joints only (front/back and the bottom panel). The left and
    right panels meet the bottom panel's vertical sides, which stay canonical,
    so they are built canonical too.
    """
    if pattern.strategy is PatternStrategy.SPECIAL_BOTTOM and name in ("left", "right"):
        return PatternConfig()
    return pattern


def check_mating_edges(
    specs: Dict[str, PanelSpec],
    pattern: Optional[PatternConfig] = None,
) -> None:
    """Verify that every joint pairs equal lengths, complementary modes and identical segments."""
    if pattern is None:
        pattern = PatternConfig()

    for (panel_a, side_a), (panel_b, side_b) in MATING_EDGES:
        spec_a, spec_b = specs[panel_a], specs[panel_b]
        pair_name = f"{panel_a}.{side_a} / {panel_b}.{side_b}"
        len_a, len_b = spec_a.length_for(side_a), spec_b.length_for(side_b)
        mode_a, mode_b = spec_a.mode_for(side_a), spec_b.mode_for(side_b)

        if abs(len_a - len_b) > TOLERANCE_MM:
            raise SegmentCompatibilityError(
                f"Mating edges {pair_name} differ in length: {len_a:.3f}mm vs {len_b:.3f}mm"
            )
        if not mode_a.is_patterned or mode_b is not mode_a.complement:
            raise SegmentCompatibilityError(
                f"Mating edges {pair_name} need complementary modes, "
                f"got {mode_a.value} and {mode_b.value}"
            )

        pattern_a = panel_pattern(panel_a, pattern)
        pattern_b = panel_pattern(panel_b, pattern)
        seg_a = pattern_a.segment(
            len_a, spec_a.finger_width, _axis_for(side_a), spec_a.class_for(side_a)
        ).segmentation
        seg_b = pattern_b.segment(
            len_b, spec_b.finger_width, _axis_for(side_b), spec_b.class_for(side_b)
        ).segmentation
        validate_segments_compatibility(seg_a, seg_b, pair_name)


def _axis_for(side: str) -> str:
    return "horizontal" if side in ("top", "bottom") else "vertical"


def build_simple_box(inputs: BoxInputs, pattern: Optional[PatternConfig] = None) -> BoxPanels:
    """Build the six panels of a plain finger-joint box."""
    if pattern is None:
        pattern = PatternConfig()
    specs = box_panel_specs(inputs)
    check_mating_edges(specs, pattern)

    panels = {name: build_panel(specs[name], panel_pattern(name, pattern)) for name in PANEL_NAMES}

    _, warnings = compute_length_class_segments(class_lengths(inputs), inputs.finger_width, pattern)
    for w in warnings:
        logger.warning("%s", w)

    logger.info(
        "Built box %.1f x %.1f x %.1f (t=%.2f, fw=%.2f, %s pattern)",
        inputs.inner_width, inputs.inner_depth, inputs.inner_height,
        inputs.thickness, inputs.finger_width, pattern.strategy.value,
    )
    return BoxPanels(warnings=warnings, **panels)


# ─── Hinged variant ──────────────────────────────────────────────────────────

def _clamp(value: float, lo: float, hi: float) -> float:
    if lo > hi:
        return (lo + hi) / 2
    return max(lo, min(hi, value))


def compute_hinge_holes(inputs: BoxInputs, hinge: HingeConfig) -> Dict[str, HingeHole]:
    """Place one pin hole near the top-back corner of the left and right panels.

    Insets are measured from the panel's nominal rectangle, ``0..width`` by
    ``0..height``, never from finger tips that stick out past it. The back
    edge is x = 0 on the left panel and x = width on the right panel, and
    the top edge is y = 0 on both. Centres are clamped to stay
    ``diameter / 2 + 1`` inside that rectangle.
    """
    specs = box_panel_specs(inputs)
    diameter = hinge.hole_diameter_mm
    margin = diameter / 2 + 1

    holes: Dict[str, HingeHole] = {}
    for name in ("left", "right"):
        width, height = specs[name].width, specs[name].height
        if name == "left":
            cx_desired = hinge.inset_from_back_mm
        else:
            cx_desired = width - hinge.inset_from_back_mm
        holes[name] = HingeHole(
            cx=_clamp(cx_desired, margin, width - margin),
            cy=_clamp(hinge.inset_from_top_mm, margin, height - margin),
            diameter=diameter,
        )
    return holes


def build_hinged_box(
    inputs: BoxInputs,
    hinge: Optional[HingeConfig] = None,
    pattern: Optional[PatternConfig] = None,
) -> HingedBoxPanels:
    """Plain box geometry plus hinge-hole metadata on the left/right panels."""
    if hinge is None:
        hinge = HingeConfig()
    panels = build_simple_box(inputs, pattern)
    if not hinge.enabled:
        return HingedBoxPanels(panels=panels)

    holes = compute_hinge_holes(inputs, hinge)
    logger.debug("Hinge holes: %s", holes)
    return HingedBoxPanels(panels=panels, hinge_holes=holes)
