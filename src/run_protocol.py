"""
Run folders for generated boxes.

Each export lands in ``<runs>/<stamp>_<name>_<W>x<D>x<H>/``:

    svg/<panel>.svg   one document per panel
    svg/layout.svg    all panels on one sheet
    manifest.json     inputs, pattern, panel sizes, hinge holes, warnings
    summary.md        human-readable digest

``<runs>/latest`` points at the most recent run.
"""

from __future__ import annotations

import json
import os
import re
import shutil
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List

from box_assembler import BoxInputs


@dataclass
class RunPaths:
    run_id: str
    run_dir: Path
    svg_dir: Path
    manifest_path: Path
    summary_path: Path

    @property
    def runs_root(self) -> Path:
        return self.run_dir.parent

    @property
    def layout_svg_path(self) -> Path:
        return self.svg_dir / "layout.svg"

    def panel_svg_path(self, panel_name: str) -> Path:
        return self.svg_dir / f"{slugify(panel_name, default='panel')}.svg"


def slugify(value: str, default: str = "box") -> str:
    value = re.sub(r"[^a-z0-9]+", "-", value.strip().lower())
    return value.strip("-") or default


def dimension_tag(inputs: BoxInputs) -> str:
    """Interior size as ``WxDxH`` in mm, e.g. ``100x80x60``."""
    return f"{inputs.inner_width:g}x{inputs.inner_depth:g}x{inputs.inner_height:g}"


def create_run_id(box_name: str, inputs: BoxInputs) -> str:
    stamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S_%f")
    return f"{stamp}_{slugify(box_name)}_{dimension_tag(inputs)}"


def prepare_run_dir(runs_root: str, box_name: str, inputs: BoxInputs) -> RunPaths:
    run_id = create_run_id(box_name, inputs)
    run_dir = Path(runs_root) / run_id
    svg_dir = run_dir / "svg"
    svg_dir.mkdir(parents=True, exist_ok=True)

    return RunPaths(
        run_id=run_id,
        run_dir=run_dir,
        svg_dir=svg_dir,
        manifest_path=run_dir / "manifest.json",
        summary_path=run_dir / "summary.md",
    )


# ─── Artifact writers ────────────────────────────────────────────────────────

def write_panel_svgs(paths: RunPaths, panel_svgs: Dict[str, str]) -> List[Path]:
    """Write one SVG per panel, in the order given."""
    written: List[Path] = []
    for name, svg in panel_svgs.items():
        target = paths.panel_svg_path(name)
        target.write_text(svg, encoding="utf-8")
        written.append(target)
    return written


def write_layout_svg(paths: RunPaths, svg: str) -> Path:
    paths.layout_svg_path.write_text(svg, encoding="utf-8")
    return paths.layout_svg_path


def write_manifest(paths: RunPaths, manifest: Dict[str, Any]) -> None:
    paths.manifest_path.write_text(json.dumps(manifest, indent=2) + "\n", encoding="utf-8")


def write_summary(paths: RunPaths, summary: str) -> None:
    paths.summary_path.write_text(summary, encoding="utf-8")


def update_latest_pointer(paths: RunPaths) -> None:
    """Point ``<runs>/latest`` at this run.

    Where symlinks are unavailable, ``<runs>/latest`` becomes a directory
    holding ``latest_run.txt`` with the run id.
    """
    latest = paths.runs_root / "latest"

    if latest.is_symlink() or latest.is_file():
        latest.unlink()
    elif latest.exists():
        shutil.rmtree(latest)

    try:
        latest.symlink_to(os.path.relpath(paths.run_dir, paths.runs_root))
    except OSError:
        latest.mkdir()
        (latest / "latest_run.txt").write_text(paths.run_id, encoding="utf-8")
