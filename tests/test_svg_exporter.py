"""Tests for svg_exporter module."""
import re
import xml.etree.ElementTree as ET

import pytest

from box_assembler import PANEL_NAMES, build_simple_box
from finger_patterns import PatternConfig, PatternStrategy
from svg_exporter import (
    LayoutConfig,
    LayoutError,
    LayoutPanel,
    PathValidationError,
    Placement,
    check_svg_document,
    compute_layout,
    find_overlaps,
    fmt,
    layout_panels,
    panel_to_svg,
    points_to_path,
    validate_orthogonal_path,
)

SVG_NS = "{http://www.w3.org/2000/svg}"
CURVE_RE = re.compile(r"[CcQqAaSsTt]")


def _rect(w, h):
    return [(0.0, 0.0), (w, 0.0), (w, h), (0.0, h), (0.0, 0.0)]


def _parse(svg):
    return ET.fromstring(svg.encode("utf-8"))


def _box_layout_panels(inputs, pattern=None):
    panels = build_simple_box(inputs, pattern)
    return [LayoutPanel(name, getattr(panels, name)) for name in PANEL_NAMES]


class TestPathData:
    """Absolute M/L/Z path strings."""

    def test_rectangle(self, square_outline):
        assert points_to_path(square_outline) == (
            "M 0.000 0.000 L 100.000 0.000 L 100.000 50.000 "
            "L 0.000 50.000 L 0.000 0.000 Z"
        )

    def test_empty(self):
        assert points_to_path([]) == ""

    def test_three_decimal_rounding(self):
        assert points_to_path([(1.23456, 2.0004)]) == "M 1.235 2.000 Z"

    def test_no_negative_zero(self):
        assert fmt(-0.0) == "0.000"
        assert fmt(-0.0004) == "0.000"
        assert fmt(-1.5) == "-1.500"

    def test_only_move_line_close(self, simple_box):
        for _, points in simple_box.items():
            d = points_to_path(points)
            assert set(re.findall(r"[A-Za-z]", d)) <= {"M", "L", "Z"}


class TestValidateOrthogonalPath:
    @pytest.mark.parametrize("d", [
        "M 0 0 C 1 1 2 2 3 3 Z",
        "M 0 0 q 1 1 2 2",
        "M 0 0 A 5 5 0 0 1 10 10",
        "M 0 0 s 1 1 2 2",
        "M 0 0 T 4 4",
    ])
    def test_rejects_curves(self, d):
        with pytest.raises(PathValidationError, match="Only M/L/Z allowed"):
            validate_orthogonal_path(d)

    def test_accepts_polyline(self, square_outline):
        validate_orthogonal_path(points_to_path(square_outline))


class TestPanelToSvg:
    """Single-panel documents."""

    def test_document_structure(self, square_outline):
        svg = panel_to_svg(square_outline)
        assert svg.startswith('<?xml version="1.0" encoding="utf-8" ?>')
        root = _parse(svg)
        assert root.tag == f"{SVG_NS}svg"
        assert root.get("width") == "110.000mm"
        assert root.get("height") == "60.000mm"
        assert root.get("viewBox") == "0 0 110.000 60.000"

    def test_single_shifted_path(self, square_outline):
        root = _parse(panel_to_svg(square_outline))
        paths = root.findall(f".//{SVG_NS}path")
        assert len(paths) == 1
        assert paths[0].get("d").startswith("M 5.000 5.000 L 105.000 5.000")
        assert paths[0].get("fill") == "none"

    def test_negative_coordinates_shifted(self):
        points = [(-20.0, -10.0), (0.0, -10.0), (0.0, 0.0), (-20.0, 0.0), (-20.0, -10.0)]
        root = _parse(panel_to_svg(points, padding=2.0))
        assert root.get("viewBox") == "0 0 24.000 14.000"
        assert root.find(f".//{SVG_NS}path").get("d").startswith("M 2.000 2.000")

    def test_passes_safety_checks(self, simple_box):
        for _, points in simple_box.items():
            assert check_svg_document(panel_to_svg(points)) == []

    def test_empty_panel_raises(self):
        with pytest.raises(ValueError):
            panel_to_svg([])


class TestComputeLayout:
    """Fixed-column grid placement."""

    def test_grid_offsets_and_totals(self):
        panels = [
            LayoutPanel("a", _rect(100.0, 50.0)),
            LayoutPanel("b", _rect(30.0, 20.0)),
            LayoutPanel("c", _rect(40.0, 60.0)),
            LayoutPanel("d", _rect(10.0, 10.0)),
        ]
        layout = compute_layout(panels, LayoutConfig(margin=5.0, spacing=5.0, columns=2))
        assert layout.column_widths == [100.0, 30.0]
        assert layout.row_heights == [50.0, 60.0]
        assert layout.width == pytest.approx(5 + 100 + 5 + 30 + 5)
        assert layout.height == pytest.approx(5 + 50 + 5 + 60 + 5)

        by_name = {p.name: p for p in layout.placements}
        assert (by_name["a"].x, by_name["a"].y) == (5.0, 5.0)
        assert (by_name["b"].x, by_name["b"].y) == (110.0, 5.0)
        assert (by_name["c"].x, by_name["c"].y) == (5.0, 60.0)
        assert (by_name["d"].x, by_name["d"].y) == (110.0, 60.0)

    def test_placement_order_is_row_major(self):
        panels = [LayoutPanel(str(i), _rect(10.0, 10.0)) for i in range(5)]
        layout = compute_layout(panels, LayoutConfig(columns=3))
        assert [p.name for p in layout.placements] == ["0", "1", "2", "3", "4"]
        ys = [p.y for p in layout.placements]
        assert ys[0] == ys[1] == ys[2] < ys[3] == ys[4]

    def test_points_moved_to_placement(self):
        panels = [LayoutPanel("a", [(-5.0, -5.0), (5.0, -5.0), (5.0, 5.0), (-5.0, 5.0), (-5.0, -5.0)])]
        placement = compute_layout(panels, LayoutConfig(margin=3.0)).placements[0]
        xs = [x for x, _ in placement.points]
        ys = [y for _, y in placement.points]
        assert min(xs) == pytest.approx(3.0)
        assert min(ys) == pytest.approx(3.0)

    def test_fewer_panels_than_columns(self):
        panels = [LayoutPanel("a", _rect(10.0, 10.0)), LayoutPanel("b", _rect(20.0, 10.0))]
        layout = compute_layout(panels, LayoutConfig(margin=5.0, spacing=5.0, columns=3))
        assert layout.width == pytest.approx(5 + 10 + 5 + 20 + 5)

    def test_box_layout_has_no_overlaps(self, box_inputs):
        config = LayoutConfig()
        layout = compute_layout(_box_layout_panels(box_inputs), config)
        assert find_overlaps(layout.placements) == []
        expected_width = (
            2 * config.margin + sum(layout.column_widths)
            + config.spacing * (len(layout.column_widths) - 1)
        )
        expected_height = (
            2 * config.margin + sum(layout.row_heights)
            + config.spacing * (len(layout.row_heights) - 1)
        )
        assert layout.width == pytest.approx(expected_width)
        assert layout.height == pytest.approx(expected_height)

    @pytest.mark.parametrize("columns", [1, 2, 3, 4, 6, 10])
    def test_placed_boxes_stay_disjoint(self, box_inputs, columns):
        layout = compute_layout(_box_layout_panels(box_inputs), LayoutConfig(columns=columns))
        assert find_overlaps(layout.placements) == []
        for p in layout.placements:
            assert p.x >= 0 and p.y >= 0
            assert p.x + p.width <= layout.width
            assert p.y + p.height <= layout.height

    def test_zero_spacing_panels_touch_without_overlap(self):
        panels = [LayoutPanel("a", _rect(10.0, 10.0)), LayoutPanel("b", _rect(10.0, 10.0))]
        layout = compute_layout(panels, LayoutConfig(margin=0.0, spacing=0.0, columns=2))
        assert find_overlaps(layout.placements) == []

    def test_overlap_detection(self):
        placements = [
            Placement("a", [], 0.0, 0.0, 10.0, 10.0),
            Placement("b", [], 5.0, 5.0, 10.0, 10.0),
        ]
        assert find_overlaps(placements) == [("a", "b")]

    def test_negative_spacing_raises_layout_error(self):
        panels = [LayoutPanel("a", _rect(10.0, 10.0)), LayoutPanel("b", _rect(10.0, 10.0))]
        with pytest.raises(LayoutError):
            compute_layout(panels, LayoutConfig(spacing=-5.0, columns=2))

    def test_rejects_zero_columns(self):
        with pytest.raises(ValueError):
            compute_layout([LayoutPanel("a", _rect(1.0, 1.0))], LayoutConfig(columns=0))

    def test_empty_layout(self):
        layout = compute_layout([], LayoutConfig(margin=5.0))
        assert layout.placements == []
        assert layout.width == pytest.approx(10.0)


class TestLayoutPanels:
    """Combined layout documents."""

    def test_one_group_per_panel(self, box_inputs):
        svg = layout_panels(_box_layout_panels(box_inputs))
        root = _parse(svg)
        groups = root.findall(f"{SVG_NS}g")
        assert [g.get("id") for g in groups] == list(PANEL_NAMES)
        for g in groups:
            assert len(g.findall(f"{SVG_NS}path")) == 1

    def test_document_size_matches_layout(self, box_inputs):
        panels = _box_layout_panels(box_inputs)
        layout = compute_layout(panels, LayoutConfig())
        root = _parse(layout_panels(panels))
        assert root.get("width") == f"{fmt(layout.width)}mm"
        assert root.get("viewBox") == f"0 0 {fmt(layout.width)} {fmt(layout.height)}"

    @pytest.mark.parametrize("strategy", list(PatternStrategy))
    def test_paths_never_contain_curves(self, box_inputs, strategy):
        svg = layout_panels(_box_layout_panels(box_inputs, PatternConfig(strategy=strategy)))
        for path in _parse(svg).iter(f"{SVG_NS}path"):
            assert not CURVE_RE.search(path.get("d"))
        assert check_svg_document(svg) == []

    def test_deterministic(self, box_inputs):
        panels = _box_layout_panels(box_inputs)
        assert layout_panels(panels) == layout_panels(panels)

    def test_odd_names_become_valid_ids(self):
        svg = layout_panels([LayoutPanel("2 side/panel", _rect(10.0, 10.0))])
        group = _parse(svg).find(f"{SVG_NS}g")
        assert group.get("id") == "panel_2_side_panel"


class TestCheckSvgDocument:
    """Laser-safety regression checks."""

    def _doc(self, body):
        return (
            '<?xml version="1.0" encoding="utf-8" ?>\n'
            '<svg xmlns="http://www.w3.org/2000/svg" width="10mm" height="10mm" '
            f'viewBox="0 0 10 10">{body}</svg>'
        )

    def test_clean_document(self):
        assert check_svg_document(self._doc('<path d="M 0 0 L 1 0 Z" fill="none" />')) == []

    def test_filled_path(self):
        problems = check_svg_document(self._doc('<path d="M 0 0 L 1 0 Z" fill="red" />'))
        assert any("fill" in p for p in problems)

    def test_curve_in_document(self):
        problems = check_svg_document(self._doc('<path d="M 0 0 C 1 1 2 2 3 3" fill="none" />'))
        assert any("curve" in p for p in problems)

    def test_nan_coordinates(self):
        problems = check_svg_document(self._doc('<path d="M nan 0 L 1 0 Z" fill="none" />'))
        assert any("NaN" in p for p in problems)

    def test_gradient_and_circle(self):
        problems = check_svg_document(
            self._doc('<linearGradient id="g" /><circle cx="1" cy="1" r="1" />')
        )
        assert len(problems) == 2

    def test_missing_declaration(self):
        svg = self._doc("").split("\n", 1)[1]
        assert "Missing XML declaration" in check_svg_document(svg)
