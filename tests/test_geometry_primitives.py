"""Tests for geometry_primitives module."""
import math

import numpy as np
import pytest

from geometry_primitives import (
    PHI,
    Point2D,
    Point3D,
    compute_bounding_box,
    extrude_to_z,
    footprint_area_mm2,
    make_cross_section_basis,
    polar_to_cartesian,
    rotate_point_2d,
)


class TestTransforms:
    """Polar conversion, rotation, extrusion."""

    def test_golden_ratio(self):
        assert PHI == pytest.approx(1.618033988749895)
        assert PHI * PHI == pytest.approx(PHI + 1)

    def test_polar_to_cartesian_axes(self):
        p = polar_to_cartesian(2.0, 0.0)
        assert p.x == pytest.approx(2.0)
        assert p.y == pytest.approx(0.0)

        q = polar_to_cartesian(2.0, math.pi / 2)
        assert q.x == pytest.approx(0.0, abs=1e-12)
        assert q.y == pytest.approx(2.0)

    def test_rotate_quarter_turn(self):
        p = rotate_point_2d(Point2D(1.0, 0.0), math.pi / 2)
        assert p.x == pytest.approx(0.0, abs=1e-12)
        assert p.y == pytest.approx(1.0)

    def test_rotate_preserves_length(self):
        p = rotate_point_2d(Point2D(3.0, 4.0), 1.234)
        assert math.hypot(p.x, p.y) == pytest.approx(5.0)

    def test_extrude_to_z(self):
        assert extrude_to_z(Point2D(1.0, 2.0), 0.5) == Point3D(1.0, 2.0, 0.5)


class TestBoundingBox:
    """Axis-aligned bounds of a vertex buffer."""

    def test_empty_buffer_is_degenerate_origin_box(self):
        box = compute_bounding_box([])
        assert box.min == Point3D(0.0, 0.0, 0.0)
        assert box.max == Point3D(0.0, 0.0, 0.0)

    def test_componentwise_min_max(self):
        box = compute_bounding_box([
            Point3D(1.0, -2.0, 0.5),
            Point3D(-3.0, 4.0, 0.0),
            Point3D(0.0, 0.0, 2.0),
        ])
        assert box.min == Point3D(-3.0, -2.0, 0.0)
        assert box.max == Point3D(1.0, 4.0, 2.0)
        assert box.size == pytest.approx((4.0, 6.0, 2.0))

    def test_single_point(self):
        box = compute_bounding_box([Point3D(1.0, 2.0, 3.0)])
        assert box.min == box.max == Point3D(1.0, 2.0, 3.0)

    def test_to_dict(self):
        box = compute_bounding_box([Point3D(1.0, 2.0, 3.0)])
        assert box.to_dict() == {
            "min": {"x": 1.0, "y": 2.0, "z": 3.0},
            "max": {"x": 1.0, "y": 2.0, "z": 3.0},
        }


class TestFootprint:
    """XY projection of triangles."""

    def test_unit_square(self):
        vertices = [
            Point3D(0.0, 0.0, 0.0),
            Point3D(1.0, 0.0, 0.0),
            Point3D(1.0, 1.0, 0.0),
            Point3D(0.0, 1.0, 0.0),
        ]
        faces = [(0, 1, 2), (0, 2, 3)]
        assert footprint_area_mm2(vertices, faces) == pytest.approx(1.0)

    def test_vertical_wall_has_no_footprint(self):
        vertices = [
            Point3D(0.0, 0.0, 0.0),
            Point3D(1.0, 0.0, 0.0),
            Point3D(1.0, 0.0, 1.0),
        ]
        assert footprint_area_mm2(vertices, [(0, 1, 2)]) == 0.0

    def test_overlapping_triangles_counted_once(self):
        vertices = [
            Point3D(0.0, 0.0, 0.0),
            Point3D(1.0, 0.0, 0.0),
            Point3D(0.0, 1.0, 0.0),
            Point3D(0.0, 0.0, 1.0),
            Point3D(1.0, 0.0, 1.0),
            Point3D(0.0, 1.0, 1.0),
        ]
        assert footprint_area_mm2(vertices, [(0, 1, 2), (3, 4, 5)]) == pytest.approx(0.5)


class TestCrossSectionBasis:
    """Orthonormal frames for tube sweeps."""

    @pytest.mark.parametrize("direction", [
        [1.0, 0.0, 0.0],
        [0.0, 0.0, 1.0],
        [0.3, -0.4, 0.2],
        [0.0, 1.0, 0.0],
    ])
    def test_right_handed_about_direction(self, direction):
        d = np.array(direction)
        u, v = make_cross_section_basis(d)
        assert np.linalg.norm(u) == pytest.approx(1.0)
        assert np.linalg.norm(v) == pytest.approx(1.0)
        assert float(u @ v) == pytest.approx(0.0, abs=1e-12)
        np.testing.assert_allclose(np.cross(u, v), d / np.linalg.norm(d), atol=1e-12)
