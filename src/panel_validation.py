"""
Panel geometry validation and box input checks.

validate_panel() / validate_simple_box() enforce the structural invariants of
generated panels (non-empty, closed, axis-aligned segments only). A failure
there is an algorithmic defect and raises PanelValidationError.

validate_box_inputs() / validate_hinge_inputs() check user-supplied
dimensions before anything is built and report errors and warnings as lists.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Sequence

from geometry_primitives import TOLERANCE_MM, BoxGeometryError, Point, doubles_back

logger = logging.getLogger(__name__)


class PanelValidationError(BoxGeometryError):
    """A generated panel broke a structural invariant."""
    pass


@dataclass
class ValidationResult:
    """Outcome of an input check."""

    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def extend(self, other: "ValidationResult") -> None:
        self.errors.extend(other.errors)
        self.warnings.extend(other.warnings)


# ─── Geometry invariants ─────────────────────────────────────────────────────


def _is_orthogonal(a: Point, b: Point) -> bool:
    dx = b[0] - a[0]
    dy = b[1] - a[1]
    return abs(dx) < TOLERANCE_MM or abs(dy) < TOLERANCE_MM


def validate_panel(name: str, points: Sequence[Point]) -> None:
    """Raise PanelValidationError unless the panel is closed and orthogonal.

    Consecutive segments that run back over each other (a 180 degree turn,
    including across the closing point) are rejected as well.
    """
    if len(points) == 0:
        raise PanelValidationError(f"Panel {name} is empty")

    first = points[0]
    last = points[-1]
    if abs(first[0] - last[0]) > TOLERANCE_MM or abs(first[1] - last[1]) > TOLERANCE_MM:
        raise PanelValidationError(f"Panel {name} is not closed")

    for i in range(1, len(points) - 1):
        if not _is_orthogonal(points[i - 1], points[i]):
            raise PanelValidationError(
                f"Panel {name} has non-orthogonal segment at point {i}"
            )

    if len(points) >= 2 and not _is_orthogonal(points[-2], points[-1]):
        raise PanelValidationError(f"Panel {name} has non-orthogonal closing segment")

    for i in range(1, len(points) - 1):
        if doubles_back(points[i - 1], points[i], points[i + 1]):
            raise PanelValidationError(f"Panel {name} doubles back on itself at point {i}")

    if len(points) >= 4 and doubles_back(points[-2], points[0], points[1]):
        raise PanelValidationError(f"Panel {name} doubles back on itself at its start point")


def validate_simple_box(panels) -> None:
    """Validate every panel of a box.

    Args:
        panels: BoxPanels, or any mapping of panel name -> points.
    """
    named: Dict[str, Sequence[Point]] = (
        panels.as_dict() if hasattr(panels, "as_dict") else dict(panels)
    )
    for name, points in named.items():
        validate_panel(name, points)
    logger.debug("Validated %d panels", len(named))


# ─── Input checks ────────────────────────────────────────────────────────────


def calculate_min_dimension(thickness_mm: float, finger_width_mm: float) -> float:
    """Smallest interior dimension that still fits finger joints."""
    return max(finger_width_mm * 3, thickness_mm * 4)


def calculate_recommended_finger_width(
    width_mm: float,
    depth_mm: float,
    height_mm: float,
) -> float:
    """About 1/12 of the average dimension, clamped to 5..20mm."""
    avg = (width_mm + depth_mm + height_mm) / 3
    return float(max(5, min(20, round(avg / 12))))


def validate_box_inputs(inputs) -> ValidationResult:
    """Check box dimensions, thickness and finger width.

    Args:
        inputs: BoxInputs.

    Returns:
        ValidationResult with hard errors and advisory warnings.
    """
    result = ValidationResult()
    errors, warnings = result.errors, result.warnings
    w, d, h = inputs.inner_width, inputs.inner_depth, inputs.inner_height
    t, fw = inputs.thickness, inputs.finger_width

    if w < 10:
        errors.append("Width must be at least 10mm")
    if d < 10:
        errors.append("Depth must be at least 10mm")
    if h < 10:
        errors.append("Height must be at least 10mm")

    if w > 1000:
        warnings.append("Width exceeds 1000mm - may not fit on standard laser beds")
    if d > 1000:
        warnings.append("Depth exceeds 1000mm - may not fit on standard laser beds")
    if h > 500:
        warnings.append("Height exceeds 500mm - very tall box")

    if t < 1:
        errors.append("Material thickness must be at least 1mm")
    if t > 50:
        errors.append("Material thickness exceeds 50mm")
    elif t > 10:
        warnings.append("Material thickness > 10mm is unusual for laser cutting")

    if fw < 3:
        errors.append("Finger width must be at least 3mm")
    if fw > 50:
        errors.append("Finger width exceeds 50mm")

    recommended = calculate_recommended_finger_width(w, d, h)
    if fw < recommended * 0.5:
        warnings.append(f"Finger width is small. Recommended: {recommended:.1f}mm")
    if fw > recommended * 2:
        warnings.append(f"Finger width is large. Recommended: {recommended:.1f}mm")

    min_dim = calculate_min_dimension(t, fw)
    for label, value in (("Width", w), ("Depth", d), ("Height", h)):
        if value < min_dim:
            errors.append(f"{label} too small for finger joints. Minimum: {min_dim:.1f}mm")

    if min(w, d, h) < t * 3:
        warnings.append(
            "Smallest dimension is less than 3x material thickness - box may be fragile"
        )

    return result


def validate_hinge_inputs(hinge, thickness_mm: float) -> ValidationResult:
    """Check hinge hole size and inset against the material thickness."""
    result = ValidationResult()
    if not hinge.enabled:
        return result

    diameter = hinge.hole_diameter_mm
    if hinge.pin_diameter_mm <= 0:
        result.errors.append("Pin diameter must be positive")
    if hinge.clearance_mm < 0:
        result.errors.append("Hinge clearance cannot be negative")
    if diameter < 2:
        result.errors.append("Hinge hole diameter must be at least 2mm")
    if diameter > thickness_mm * 2:
        result.warnings.append("Hinge hole diameter is larger than 2x material thickness")
    if min(hinge.inset_from_top_mm, hinge.inset_from_back_mm) < thickness_mm:
        result.warnings.append(
            "Hinge hole inset is less than material thickness - may be too close to edge"
        )
    return result
