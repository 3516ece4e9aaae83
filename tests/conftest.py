"""
Shared test fixtures for the finger-joint box kernel.
"""
import sys
from pathlib import Path

import pytest

# Add src/ to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from box_assembler import BoxInputs, HingeConfig, build_simple_box
from geometry_primitives import EdgeMode, PanelSpec


@pytest.fixture
def box_inputs():
    """A 100 x 80 x 60mm interior box in 3mm stock with 10mm fingers."""
    return BoxInputs(
        inner_width=100.0,
        inner_depth=80.0,
        inner_height=60.0,
        thickness=3.0,
        finger_width=10.0,
    )


@pytest.fixture
def small_box_inputs():
    """A box too small for three 10mm core fingers on any edge."""
    return BoxInputs(
        inner_width=20.0,
        inner_depth=20.0,
        inner_height=20.0,
        thickness=3.0,
        finger_width=10.0,
    )


@pytest.fixture
def simple_box(box_inputs):
    return build_simple_box(box_inputs)


@pytest.fixture
def hinge_config():
    return HingeConfig(
        enabled=True,
        pin_diameter_mm=3.0,
        clearance_mm=0.2,
        inset_from_top_mm=8.0,
        inset_from_back_mm=8.0,
    )


@pytest.fixture
def fingered_spec():
    """A 100 x 60 panel with every side patterned."""
    return PanelSpec(
        width=100.0,
        height=60.0,
        thickness=3.0,
        finger_width=10.0,
        top=EdgeMode.FINGERS_OUT,
        right=EdgeMode.FINGERS_OUT,
        bottom=EdgeMode.FINGERS_OUT,
        left=EdgeMode.FINGERS_OUT,
    )


@pytest.fixture
def square_outline():
    """A closed 100 x 50 rectangle."""
    return [(0.0, 0.0), (100.0, 0.0), (100.0, 50.0), (0.0, 50.0), (0.0, 0.0)]
