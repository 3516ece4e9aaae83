#!/usr/bin/env python3
"""
Generate a laser-cut finger-joint box.

Usage:
    # Plain box, 100 x 80 x 60 mm interior, 3mm stock
    python scripts/generate_box.py --width 100 --depth 80 --height 60 --thickness 3

    # Hinged lid with 4mm pins, centered finger pattern
    python scripts/generate_box.py --width 150 --depth 100 --height 80 \\
        --hinge --pin-diameter 4 --pattern centered

Writes per-panel SVG files, a combined layout, manifest.json and
summary.md into a new folder under --runs-dir.
"""
import argparse
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from box_assembler import BoxInputs, HingeConfig
from finger_patterns import CenteredFingerConfig, PatternConfig, PatternStrategy
from geometry_primitives import BoxGeometryError
from pipeline import PipelineConfig, export_box_run, generate_box
from svg_exporter import LayoutConfig

logger = logging.getLogger("generate_box")


def build_parser():
    parser = argparse.ArgumentParser(description="Generate a finger-joint box for laser cutting")

    # Box dimensions
    parser.add_argument("--width", type=float, required=True, help="Interior width in mm")
    parser.add_argument("--depth", type=float, required=True, help="Interior depth in mm")
    parser.add_argument("--height", type=float, required=True, help="Interior height in mm")
    parser.add_argument(
        "--thickness", type=float, default=3.0, help="Material thickness in mm (default: 3.0)"
    )
    parser.add_argument(
        "--finger-width", type=float, default=10.0, help="Nominal finger width in mm (default: 10.0)"
    )

    # Pattern options
    parser.add_argument(
        "--pattern", type=str, default="canonical",
        choices=[s.value for s in PatternStrategy],
        help="Finger segmentation strategy (default: canonical)",
    )
    parser.add_argument(
        "--core-fingers", type=int, default=3,
        help="Core fingers per edge for the centered pattern (default: 3)",
    )
    parser.add_argument(
        "--min-edge-finger", type=float, default=None,
        help="Minimum edge segment for the centered pattern in mm",
    )
    parser.add_argument(
        "--class-fingers", type=int, nargs=3, default=None, metavar=("W", "D", "H"),
        help="Core fingers per width/depth/height edge for the centered pattern "
             "(overrides --core-fingers)",
    )

    # Hinge options
    parser.add_argument("--hinge", action="store_true", help="Add pin hinge holes")
    parser.add_argument(
        "--pin-diameter", type=float, default=3.0, help="Hinge pin diameter in mm (default: 3.0)"
    )
    parser.add_argument(
        "--clearance", type=float, default=0.2, help="Radial pin clearance in mm (default: 0.2)"
    )
    parser.add_argument(
        "--inset-top", type=float, default=8.0, help="Hole inset from top edge in mm (default: 8.0)"
    )
    parser.add_argument(
        "--inset-back", type=float, default=8.0,
        help="Hole inset from back edge in mm (default: 8.0)",
    )

    # Layout and output
    parser.add_argument("--columns", type=int, default=3, help="Layout columns (default: 3)")
    parser.add_argument("--spacing", type=float, default=5.0, help="Layout spacing in mm (default: 5.0)")
    parser.add_argument("--margin", type=float, default=5.0, help="Layout margin in mm (default: 5.0)")
    parser.add_argument("--runs-dir", type=str, default="runs", help="Output root directory")
    parser.add_argument("--name", type=str, default="box", help="Box name")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        inputs = BoxInputs(
            inner_width=args.width,
            inner_depth=args.depth,
            inner_height=args.height,
            thickness=args.thickness,
            finger_width=args.finger_width,
        )
        hinge = HingeConfig(
            enabled=args.hinge,
            pin_diameter_mm=args.pin_diameter,
            clearance_mm=args.clearance,
            inset_from_top_mm=args.inset_top,
            inset_from_back_mm=args.inset_back,
        )
        class_fingers = None
        if args.class_fingers:
            k_width, k_depth, k_height = args.class_fingers
            class_fingers = CenteredFingerConfig(
                k_width=k_width, k_depth=k_depth, k_height=k_height
            )
        pattern = PatternConfig(
            strategy=PatternStrategy(args.pattern),
            core_fingers=args.core_fingers,
            min_edge_finger_mm=args.min_edge_finger,
            class_fingers=class_fingers,
        )
        layout = LayoutConfig(margin=args.margin, spacing=args.spacing, columns=args.columns)

        result = generate_box(inputs, hinge=hinge, pattern=pattern, layout=layout)
        run = export_box_run(
            result,
            box_name=args.name,
            config=PipelineConfig(runs_dir=args.runs_dir),
        )
    except (BoxGeometryError, ValueError) as e:
        logger.error("%s", e)
        return 1

    print(f"\nRun: {run.run_id}")
    print(f"Folder: {run.run_dir}")
    for name, points in result.named_panels():
        print(f"  {name}: {len(points)} points")
    for name, hole in result.hinge_holes.items():
        print(f"  hinge hole ({name}): ({hole.cx:.2f}, {hole.cy:.2f}) d={hole.diameter:.2f} mm")
    for w in result.warnings:
        print(f"  warning: {w}")

    if run.layout_svg_path:
        print(f"\nLayout SVG: {run.layout_svg_path}")
    print(f"Manifest: {run.manifest_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
