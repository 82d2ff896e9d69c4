"""
Core geometry types for sacred-geometry jewelry generation.

Provides Point2D / Point3D, the golden ratio, the small set of planar
transforms every pattern generator is written in terms of (polar to
Cartesian, 2D rotation, Z extrusion), axis-aligned bounding boxes, and a
Shapely-based XY footprint of a triangle mesh.
"""
import math
from dataclasses import dataclass
from typing import Dict, Iterable, Sequence, Tuple

import numpy as np
from shapely.geometry import MultiPolygon, Polygon
from shapely.ops import unary_union

# Golden ratio, used for spiral growth and petal proportions
PHI = (1 + math.sqrt(5)) / 2


@dataclass(frozen=True)
class Point2D:
    x: float
    y: float


@dataclass(frozen=True)
class Point3D:
    """A position in model space (millimeters)."""
    x: float
    y: float
    z: float

    def as_tuple(self) -> Tuple[float, float, float]:
        return (self.x, self.y, self.z)

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y, "z": self.z}


@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned box containing a vertex buffer."""
    min: Point3D
    max: Point3D

    @property
    def size(self) -> Tuple[float, float, float]:
        """Extent along (x, y, z)."""
        return (
            self.max.x - self.min.x,
            self.max.y - self.min.y,
            self.max.z - self.min.z,
        )

    def to_dict(self) -> Dict[str, Dict[str, float]]:
        return {"min": self.min.to_dict(), "max": self.max.to_dict()}


# ─── Transforms ──────────────────────────────────────────────────────────────

def polar_to_cartesian(radius: float, angle: float) -> Point2D:
    """Convert polar coordinates (angle in radians) to a 2D point."""
    return Point2D(radius * math.cos(angle), radius * math.sin(angle))


def rotate_point_2d(point: Point2D, angle: float) -> Point2D:
    """Rotate a point counter-clockwise about the origin."""
    cos_a = math.cos(angle)
    sin_a = math.sin(angle)
    return Point2D(
        point.x * cos_a - point.y * sin_a,
        point.x * sin_a + point.y * cos_a,
    )


def extrude_to_z(point: Point2D, z: float) -> Point3D:
    """Lift a planar point to height z."""
    return Point3D(point.x, point.y, z)


# ─── Bounding box ────────────────────────────────────────────────────────────

def compute_bounding_box(vertices: Sequence[Point3D]) -> BoundingBox:
    """Componentwise min/max of a vertex buffer.

    An empty buffer yields the degenerate box (0,0,0)-(0,0,0).
    """
    if len(vertices) == 0:
        origin = Point3D(0.0, 0.0, 0.0)
        return BoundingBox(min=origin, max=origin)

    coords = points_to_array(vertices)
    lo = coords.min(axis=0)
    hi = coords.max(axis=0)
    return BoundingBox(
        min=Point3D(float(lo[0]), float(lo[1]), float(lo[2])),
        max=Point3D(float(hi[0]), float(hi[1]), float(hi[2])),
    )


def points_to_array(points: Iterable[Point3D]) -> np.ndarray:
    """Stack points into an (N, 3) float array."""
    arr = np.array([p.as_tuple() for p in points], dtype=np.float64)
    if arr.size == 0:
        return np.zeros((0, 3), dtype=np.float64)
    return arr


# ─── XY footprint ────────────────────────────────────────────────────────────

def project_triangles_to_xy(
    vertices: Sequence[Point3D],
    faces: Sequence[Sequence[int]],
):
    """Union of all triangles projected onto the XY plane.

    Triangles that are degenerate in projection (e.g. vertical walls) are
    skipped. Returns an empty Polygon if nothing survives.
    """
    polygons = []
    for face in faces:
        pts_2d = [(vertices[i].x, vertices[i].y) for i in face]
        p = Polygon(pts_2d)
        if p.is_valid and p.area > 0:
            polygons.append(p)

    if not polygons:
        return Polygon()
    return unary_union(polygons)


def footprint_area_mm2(
    vertices: Sequence[Point3D],
    faces: Sequence[Sequence[int]],
) -> float:
    """Area covered by the mesh when seen from above."""
    footprint = project_triangles_to_xy(vertices, faces)
    if footprint.is_empty:
        return 0.0
    if isinstance(footprint, MultiPolygon):
        return float(sum(g.area for g in footprint.geoms))
    return float(footprint.area)


# ─── Internal helpers ────────────────────────────────────────────────────────

def make_cross_section_basis(direction: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """Build an orthonormal (u, v) basis perpendicular to direction.

    The pair satisfies u x v = direction, so a circle traced from u toward v
    winds counter-clockwise about the direction of travel.
    """
    norm = np.linalg.norm(direction)
    if norm < 1e-12:
        d = np.array([0.0, 0.0, 1.0])
    else:
        d = direction / norm
    if abs(d[2]) < 0.9:
        ref = np.array([0.0, 0.0, 1.0])
    else:
        ref = np.array([1.0, 0.0, 0.0])
    u = np.cross(d, ref)
    u /= np.linalg.norm(u)
    v = np.cross(d, u)
    v /= np.linalg.norm(v)
    return u, v
