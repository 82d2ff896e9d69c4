"""
Shared test fixtures for jewelry generation tests.
"""
import sys
from pathlib import Path

import pytest

# Add src/ to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from geometry_primitives import Point3D
from jewelry import generate_jewelry
from mesh_builder import PatternResult
from parameters import GeometryParameters


@pytest.fixture
def default_params():
    """Contract defaults: size 1.0, thickness 0.2, complexity 0.7, symmetry 8."""
    return GeometryParameters()


@pytest.fixture
def minimal_params():
    """Smallest valid design: one layer / generation, triangle symmetry."""
    return GeometryParameters(
        size=0.5,
        thickness=0.1,
        complexity=0.1,
        symmetry=3,
        spiral_turns=1,
    )


@pytest.fixture
def maximal_params():
    """Largest valid design."""
    return GeometryParameters(
        size=2.0,
        thickness=0.5,
        complexity=1.0,
        symmetry=12,
        spiral_turns=8,
        finger_size=12.0,
    )


@pytest.fixture
def unit_triangle():
    """A single right triangle in the XY plane, wound counter-clockwise."""
    return PatternResult(
        vertices=(
            Point3D(0.0, 0.0, 0.0),
            Point3D(1.0, 0.0, 0.0),
            Point3D(0.0, 1.0, 0.0),
        ),
        faces=((0, 1, 2),),
    )


@pytest.fixture
def necklace_geometry(default_params):
    return generate_jewelry("necklace", "mandala", default_params)


@pytest.fixture
def ring_geometry(default_params):
    return generate_jewelry("ring", "mandala", default_params, {"fingerSize": 7})
