"""
SVG export for finger-joint panels.

Paths use absolute M/L/Z commands only, at 3-decimal precision, so the
output is a straight-line laser toolpath. Documents are sized in millimetres
with a matching numeric viewBox.

layout_panels() places named panels on a fixed-column grid in row-major
order. It is a deterministic placement, not a nesting optimiser.
"""
import io
import logging
import re
from dataclasses import dataclass, field
from typing import List, Sequence, Tuple

import svgwrite
from shapely.geometry import box

from geometry_primitives import TOLERANCE_MM, BoxGeometryError, Point, bounding_box, translate

logger = logging.getLogger(__name__)

CURVE_COMMANDS = frozenset("CSQTA")

STYLES = {
    "cut_line": {
        "fill": "none",
        "stroke": "#000000",
        "stroke_width": 0.1,
    },
}

_COMMAND_RE = re.compile(r"[A-Za-z]")


class PathValidationError(BoxGeometryError):
    """An emitted path contains a curve command."""
    pass


class LayoutError(BoxGeometryError):
    """Placed panels overlap."""
    pass


@dataclass(frozen=True)
class LayoutConfig:
    margin: float = 5.0
    spacing: float = 5.0
    columns: int = 3


@dataclass
class LayoutPanel:
    name: str
    points: List[Point]


@dataclass
class Placement:
    """A panel translated into the combined sheet.

    ``x``/``y`` is the top-left corner of the panel's bounding box on the
    sheet; ``points`` are already shifted there.
    """
    name: str
    points: List[Point]
    x: float
    y: float
    width: float
    height: float

    @property
    def bounds(self) -> Tuple[float, float, float, float]:
        return (self.x, self.y, self.x + self.width, self.y + self.height)


@dataclass
class LayoutResult:
    placements: List[Placement] = field(default_factory=list)
    width: float = 0.0
    height: float = 0.0
    column_widths: List[float] = field(default_factory=list)
    row_heights: List[float] = field(default_factory=list)


# ─── Path data ───────────────────────────────────────────────────────────────

def fmt(value: float) -> str:
    """Fixed 3-decimal formatting without a negative zero."""
    return f"{round(value, 3) + 0.0:.3f}"


def points_to_path(points: Sequence[Point]) -> str:
    """Closed absolute path data: M x y L x y ... Z."""
    if not points:
        return ""
    parts = [f"M {fmt(points[0][0])} {fmt(points[0][1])}"]
    for x, y in points[1:]:
        parts.append(f"L {fmt(x)} {fmt(y)}")
    parts.append("Z")
    return " ".join(parts)


def validate_orthogonal_path(path_d: str) -> None:
    """Raise PathValidationError if the path data holds any curve command.

    This scans the text independently of the point-level panel validator.
    """
    for match in _COMMAND_RE.finditer(path_d):
        cmd = match.group(0)
        if cmd.upper() in CURVE_COMMANDS:
            raise PathValidationError(
                f"SVG VALIDATION ERROR: Path contains curve \"{cmd}\" at offset "
                f"{match.start()}. Only M/L/Z allowed."
            )


# ─── Documents ───────────────────────────────────────────────────────────────

def _new_drawing(width: float, height: float) -> svgwrite.Drawing:
    return svgwrite.Drawing(
        size=(f"{fmt(width)}mm", f"{fmt(height)}mm"),
        viewBox=f"0 0 {fmt(width)} {fmt(height)}",
    )


def _cut_path(dwg: svgwrite.Drawing, points: Sequence[Point]):
    path_d = points_to_path(points)
    validate_orthogonal_path(path_d)
    return dwg.path(d=path_d, **STYLES["cut_line"])


def _to_string(dwg: svgwrite.Drawing) -> str:
    buf = io.StringIO()
    dwg.write(buf)
    return buf.getvalue()


def _element_id(name: str) -> str:
    slug = re.sub(r"[^A-Za-z0-9_-]+", "_", name.strip()) or "panel"
    if not slug[0].isalpha():
        slug = f"panel_{slug}"
    return slug


def panel_to_svg(points: Sequence[Point], padding: float = 5.0) -> str:
    """Single-panel SVG document, shifted into positive space with padding.

    Args:
        points: Closed panel outline.
        padding: Blank border around the panel (mm).

    Returns:
        SVG document text.
    """
    min_x, min_y, max_x, max_y = bounding_box(points)
    width = max_x - min_x + padding * 2
    height = max_y - min_y + padding * 2
    shifted = translate(points, -min_x + padding, -min_y + padding)

    dwg = _new_drawing(width, height)
    dwg.add(_cut_path(dwg, shifted))
    return _to_string(dwg)


# ─── Grid layout ─────────────────────────────────────────────────────────────

def compute_layout(panels: Sequence[LayoutPanel], config: LayoutConfig) -> LayoutResult:
    """Place panels on a fixed-column grid, row-major.

    Each column is as wide as its widest panel and each row as tall as its
    tallest. Panels sit at cumulative column/row offsets plus the margin,
    with ``spacing`` between neighbouring columns and rows.
    """
    if config.columns < 1:
        raise ValueError(f"Layout needs at least one column (got {config.columns})")
    if not panels:
        return LayoutResult(width=2 * config.margin, height=2 * config.margin)

    columns = min(config.columns, len(panels))
    rows = -(-len(panels) // columns)
    boxes = [bounding_box(p.points) for p in panels]

    column_widths = [0.0] * columns
    row_heights = [0.0] * rows
    for i, (min_x, min_y, max_x, max_y) in enumerate(boxes):
        col, row = i % columns, i // columns
        column_widths[col] = max(column_widths[col], max_x - min_x)
        row_heights[row] = max(row_heights[row], max_y - min_y)

    placements: List[Placement] = []
    for i, (panel, (min_x, min_y, max_x, max_y)) in enumerate(zip(panels, boxes)):
        col, row = i % columns, i // columns
        x = config.margin + sum(column_widths[:col]) + config.spacing * col
        y = config.margin + sum(row_heights[:row]) + config.spacing * row
        placements.append(Placement(
            name=panel.name,
            points=translate(panel.points, x - min_x, y - min_y),
            x=x,
            y=y,
            width=max_x - min_x,
            height=max_y - min_y,
        ))

    total_width = 2 * config.margin + sum(column_widths) + config.spacing * (columns - 1)
    total_height = 2 * config.margin + sum(row_heights) + config.spacing * (rows - 1)

    overlaps = find_overlaps(placements)
    if overlaps:
        raise LayoutError(f"Layout placed overlapping panels: {overlaps}")

    return LayoutResult(
        placements=placements,
        width=total_width,
        height=total_height,
        column_widths=column_widths,
        row_heights=row_heights,
    )


def find_overlaps(placements: Sequence[Placement]) -> List[Tuple[str, str]]:
    """Pairs of placements whose bounding boxes share area (touching is fine)."""
    rects = [box(*p.bounds) for p in placements]
    overlaps = []
    for i in range(len(rects)):
        for j in range(i + 1, len(rects)):
            if rects[i].intersection(rects[j]).area > TOLERANCE_MM:
                overlaps.append((placements[i].name, placements[j].name))
    return overlaps


def layout_panels(panels: Sequence[LayoutPanel], config: LayoutConfig = LayoutConfig()) -> str:
    """Combined SVG with every panel placed on the grid, one group per panel."""
    layout = compute_layout(panels, config)
    dwg = _new_drawing(layout.width, layout.height)
    for placement in layout.placements:
        group = dwg.g(id=_element_id(placement.name))
        group.add(_cut_path(dwg, placement.points))
        dwg.add(group)
    logger.info(
        "Laid out %d panels on %.1f x %.1f mm",
        len(layout.placements), layout.width, layout.height,
    )
    return _to_string(dwg)


# ─── Regression checks ───────────────────────────────────────────────────────

_PATH_TAG_RE = re.compile(r"<path\b[^>]*>")
_PATH_D_RE = re.compile(r'\sd="([^"]*)"')
_NAN_RE = re.compile(r"\b(nan|inf)\b", re.IGNORECASE)


def check_svg_document(svg: str) -> List[str]:
    """Laser-safety checks on a finished document. Returns problems (empty = ok)."""
    problems = []
    if not svg.startswith("<?xml"):
        problems.append("Missing XML declaration")
    if "<svg" not in svg or "</svg>" not in svg:
        problems.append("Missing svg root element")
    if 'xmlns="http://www.w3.org/2000/svg"' not in svg:
        problems.append("Missing SVG namespace")
    if _NAN_RE.search(svg):
        problems.append("Document contains NaN values")
    for tag in ("<linearGradient", "<radialGradient", "<filter", "<circle", "<ellipse", "<rect"):
        if tag in svg:
            problems.append(f"Document contains forbidden element {tag[1:]}")

    for tag in _PATH_TAG_RE.findall(svg):
        if 'fill="none"' not in tag:
            problems.append("Path without fill=\"none\"")
        d = _PATH_D_RE.search(tag)
        if d is not None:
            try:
                validate_orthogonal_path(d.group(1))
            except PathValidationError as exc:
                problems.append(str(exc))
    return problems
