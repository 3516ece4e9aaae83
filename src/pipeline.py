"""Box generation pipeline: inputs -> validated panels -> SVG run artifacts."""

from __future__ import annotations

import logging
import time
from dataclasses import asdict, dataclass, field
from typing import Dict, List, Optional

from box_assembler import (
    PANEL_NAMES,
    BoxInputs,
    BoxPanels,
    HingeConfig,
    HingeHole,
    build_hinged_box,
)
from finger_patterns import PatternConfig
from geometry_primitives import BoxGeometryError, Point
from panel_validation import validate_box_inputs, validate_hinge_inputs, validate_simple_box
from run_protocol import (
    prepare_run_dir,
    update_latest_pointer,
    write_layout_svg,
    write_manifest,
    write_panel_svgs,
    write_summary,
)
from svg_exporter import LayoutConfig, LayoutPanel, check_svg_document, layout_panels, panel_to_svg

logger = logging.getLogger(__name__)


class InputValidationError(ValueError):
    """User-supplied box parameters failed validation."""

    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__("Invalid box inputs: " + "; ".join(self.errors))


@dataclass
class BoxGenerationResult:
    inputs: BoxInputs
    panels: BoxPanels
    hinge_holes: Dict[str, HingeHole] = field(default_factory=dict)
    warnings: List[str] = field(default_factory=list)
    panel_svgs: Dict[str, str] = field(default_factory=dict)
    layout_svg: str = ""
    pattern: PatternConfig = field(default_factory=PatternConfig)
    layout: LayoutConfig = field(default_factory=LayoutConfig)

    def named_panels(self) -> List[tuple]:
        """(name, points) in the fixed panel order."""
        return [(name, getattr(self.panels, name)) for name in PANEL_NAMES]


@dataclass
class PipelineConfig:
    runs_dir: str = "runs"
    export_svg: bool = True
    export_layout_svg: bool = True
    update_latest: bool = True


@dataclass
class PipelineResult:
    run_id: str
    run_dir: str
    manifest_path: str
    summary_path: str
    svg_paths: List[str] = field(default_factory=list)
    layout_svg_path: Optional[str] = None


def generate_box(
    inputs: BoxInputs,
    hinge: Optional[HingeConfig] = None,
    pattern: Optional[PatternConfig] = None,
    layout: Optional[LayoutConfig] = None,
    check_inputs: bool = True,
) -> BoxGenerationResult:
    """Build, validate and serialize one box.

    Args:
        inputs: Interior dimensions and material parameters.
        hinge: Hinge settings; no hinge holes when omitted.
        pattern: Finger segmentation strategy (canonical by default).
        layout: Grid settings for the combined layout document.
        check_inputs: Run the user-input range checks first.

    Returns:
        BoxGenerationResult with panels, hinge holes, warnings and SVG text.

    Raises:
        InputValidationError: Input range checks failed.
        BoxGeometryError: Generated geometry broke a structural invariant.
    """
    if pattern is None:
        pattern = PatternConfig()
    if layout is None:
        layout = LayoutConfig()
    if hinge is None:
        hinge = HingeConfig(enabled=False)

    warnings: List[str] = []
    if check_inputs:
        report = validate_box_inputs(inputs)
        report.extend(validate_hinge_inputs(hinge, inputs.thickness))
        if not report.is_valid:
            raise InputValidationError(report.errors)
        for w in report.warnings:
            logger.warning("%s", w)
        warnings.extend(report.warnings)

    hinged = build_hinged_box(inputs, hinge, pattern)
    panels = hinged.panels
    validate_simple_box(panels)
    warnings.extend(panels.warnings)

    named = [(name, getattr(panels, name)) for name in PANEL_NAMES]
    panel_svgs = {name: panel_to_svg(points) for name, points in named}
    layout_svg = layout_panels([LayoutPanel(name, points) for name, points in named], layout)

    documents = dict(panel_svgs, layout=layout_svg)
    for doc_name, svg in documents.items():
        problems = check_svg_document(svg)
        if problems:
            raise BoxGeometryError(
                f"{doc_name} SVG failed safety checks: " + "; ".join(problems)
            )

    logger.info(
        "Generated box with %d panels, %d hinge holes, %d warnings",
        len(named), len(hinged.hinge_holes), len(warnings),
    )
    return BoxGenerationResult(
        inputs=inputs,
        panels=panels,
        hinge_holes=hinged.hinge_holes,
        warnings=warnings,
        panel_svgs=panel_svgs,
        layout_svg=layout_svg,
        pattern=pattern,
        layout=layout,
    )


def export_box_run(
    result: BoxGenerationResult,
    box_name: str = "box",
    config: Optional[PipelineConfig] = None,
) -> PipelineResult:
    """Write a generated box into a fresh run folder."""
    if config is None:
        config = PipelineConfig()

    started = time.perf_counter()
    paths = prepare_run_dir(config.runs_dir, box_name, result.inputs)
    named = result.named_panels()

    svg_paths: List[str] = []
    layout_svg_path = None
    if config.export_svg:
        svg_paths = [str(p) for p in write_panel_svgs(paths, result.panel_svgs)]
    if config.export_layout_svg:
        layout_svg_path = str(write_layout_svg(paths, result.layout_svg))

    elapsed = time.perf_counter() - started

    manifest = {
        "run_id": paths.run_id,
        "box_name": box_name,
        "created_utc": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
        "inputs": asdict(result.inputs),
        "pattern": _pattern_payload(result.pattern),
        "layout": asdict(result.layout),
        "panels": {name: _panel_payload(points) for name, points in named},
        "hinge_holes": {name: asdict(hole) for name, hole in result.hinge_holes.items()},
        "warnings": list(result.warnings),
        "artifacts": {
            "svg": svg_paths,
            "layout_svg": layout_svg_path,
            "summary": str(paths.summary_path),
        },
    }
    write_manifest(paths, manifest)
    write_summary(paths, _build_summary(result, paths.run_id, elapsed))
    if config.update_latest:
        update_latest_pointer(paths)

    logger.info("Exported run %s to %s", paths.run_id, paths.run_dir)
    return PipelineResult(
        run_id=paths.run_id,
        run_dir=str(paths.run_dir),
        manifest_path=str(paths.manifest_path),
        summary_path=str(paths.summary_path),
        svg_paths=svg_paths,
        layout_svg_path=layout_svg_path,
    )


def _pattern_payload(pattern: PatternConfig) -> Dict[str, object]:
    return {
        "strategy": pattern.strategy.value,
        "core_fingers": pattern.core_fingers,
        "min_edge_finger_mm": pattern.min_edge_finger_mm,
        "class_fingers": asdict(pattern.class_fingers) if pattern.class_fingers else None,
    }


def _panel_payload(points: List[Point]) -> Dict[str, object]:
    xs = [p[0] for p in points]
    ys = [p[1] for p in points]
    return {
        "point_count": len(points),
        "width_mm": round(max(xs) - min(xs), 3),
        "height_mm": round(max(ys) - min(ys), 3),
    }


def _build_summary(result: BoxGenerationResult, run_id: str, elapsed_s: float) -> str:
    inputs = result.inputs
    lines = [
        f"# Run {run_id}",
        "",
        f"- Interior: {inputs.inner_width:.1f} x {inputs.inner_depth:.1f} x "
        f"{inputs.inner_height:.1f} mm",
        f"- Thickness: {inputs.thickness:.2f} mm",
        f"- Finger width: {inputs.finger_width:.2f} mm",
        f"- Pattern: {result.pattern.strategy.value}",
        f"- Hinge holes: {len(result.hinge_holes)}",
        f"- Duration: {elapsed_s:.2f}s",
        "",
        "## Panels",
    ]
    for name, points in result.named_panels():
        info = _panel_payload(points)
        lines.append(
            f"- {name}: {info['width_mm']:.1f} x {info['height_mm']:.1f} mm "
            f"({info['point_count']} points)"
        )

    lines += ["", "## Warnings"]
    if not result.warnings:
        lines.append("- None")
    else:
        lines.extend(f"- {w}" for w in result.warnings)

    return "\n".join(lines) + "\n"
