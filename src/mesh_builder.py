"""
Vertex/face buffers for procedural jewelry meshes.

PatternResult is the immutable mesh handed between pipeline stages.
MeshBuilder owns the growable buffers while a pattern or structure is being
generated: stages append vertices and faces, quads are split into triangles
as they are added, and ``build()`` freezes the result.
"""
import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple

import numpy as np

from geometry_primitives import (
    Point2D,
    Point3D,
    make_cross_section_basis,
    points_to_array,
)

logger = logging.getLogger(__name__)

Face = Tuple[int, ...]
Edge = Tuple[int, int]


@dataclass(frozen=True)
class PatternResult:
    """A generated mesh: ordered vertices, faces indexing into them, and an
    optional wireframe edge list."""
    vertices: Tuple[Point3D, ...]
    faces: Tuple[Face, ...]
    edges: Optional[Tuple[Edge, ...]] = None

    @property
    def vertex_count(self) -> int:
        return len(self.vertices)

    @property
    def face_count(self) -> int:
        return len(self.faces)

    def vertex_array(self) -> np.ndarray:
        """Vertices as an (N, 3) float array."""
        return points_to_array(self.vertices)

    def face_array(self) -> np.ndarray:
        """Triangle faces as an (M, 3) int array."""
        if not self.faces:
            return np.zeros((0, 3), dtype=np.int64)
        return np.array(self.faces, dtype=np.int64)

    def validate_geometry(self) -> List[str]:
        """Check index bounds and face arity.

        Returns list of issue strings (empty = ok).
        """
        issues = []
        n = len(self.vertices)
        if n == 0:
            issues.append("Pattern has no vertices")
        for i, face in enumerate(self.faces):
            if len(set(face)) < 3:
                issues.append(f"Face {i} references fewer than 3 distinct vertices")
            if any(idx < 0 or idx >= n for idx in face):
                issues.append(f"Face {i} references a vertex out of range")
        return issues


def compute_wireframe_edges(faces: Sequence[Sequence[int]]) -> Tuple[Edge, ...]:
    """Unique undirected edges of a face list, sorted."""
    pairs = []
    for face in faces:
        for k in range(len(face)):
            a, b = face[k], face[(k + 1) % len(face)]
            pairs.append((min(a, b), max(a, b)))
    if not pairs:
        return ()
    unique = np.unique(np.array(pairs, dtype=np.int64), axis=0)
    return tuple((int(a), int(b)) for a, b in unique)


class MeshBuilder:
    """Growable vertex and triangle buffers.

    Indices returned by ``add_vertex`` stay valid for the lifetime of the
    builder; nothing is ever removed or reordered.
    """

    def __init__(self):
        self.vertices: List[Point3D] = []
        self.faces: List[Face] = []

    @classmethod
    def from_pattern(cls, pattern: PatternResult) -> "MeshBuilder":
        """Start a working copy of an existing pattern."""
        builder = cls()
        builder.vertices.extend(pattern.vertices)
        builder.faces.extend(pattern.faces)
        return builder

    @property
    def vertex_count(self) -> int:
        return len(self.vertices)

    @property
    def face_count(self) -> int:
        return len(self.faces)

    def add_vertex(self, point: Point3D) -> int:
        self.vertices.append(point)
        return len(self.vertices) - 1

    def add_vertices(self, points: Sequence[Point3D]) -> int:
        """Append points; return the index of the first one."""
        start = len(self.vertices)
        self.vertices.extend(points)
        return start

    def add_triangle(self, a: int, b: int, c: int) -> None:
        self.faces.append((a, b, c))

    def add_quad(self, a: int, b: int, c: int, d: int) -> None:
        """Add quad a-b-c-d as triangles (a, b, c) and (a, c, d)."""
        self.faces.append((a, b, c))
        self.faces.append((a, c, d))

    def add_face(self, indices: Sequence[int]) -> None:
        if len(indices) == 3:
            self.add_triangle(*indices)
        elif len(indices) == 4:
            self.add_quad(*indices)
        else:
            raise ValueError(f"Faces must have 3 or 4 indices, got {len(indices)}")

    def transform_vertices(
        self,
        fn: Callable[[Point3D], Point3D],
        start: int = 0,
        stop: Optional[int] = None,
    ) -> None:
        """Replace vertices[start:stop] with fn(vertex)."""
        if stop is None:
            stop = len(self.vertices)
        for i in range(start, stop):
            self.vertices[i] = fn(self.vertices[i])

    # ─── Composite shapes ────────────────────────────────────────────────

    def add_prism(
        self,
        outline: Sequence[Point2D],
        z_bottom: float,
        z_top: float,
        center: Optional[Point2D] = None,
    ) -> int:
        """Extrude a counter-clockwise outline between two heights.

        Vertices are interleaved bottom/top per outline point. With *center*
        the caps are fanned from an extra center vertex pair appended after
        the rim (needed for star-shaped outlines); without it the caps are
        fanned from the first rim point. Returns the first vertex index.
        """
        n = len(outline)
        base = self.vertex_count
        for p in outline:
            self.add_vertex(Point3D(p.x, p.y, z_bottom))
            self.add_vertex(Point3D(p.x, p.y, z_top))

        if center is not None:
            center_bottom = self.add_vertex(Point3D(center.x, center.y, z_bottom))
            center_top = self.add_vertex(Point3D(center.x, center.y, z_top))
            for i in range(n):
                cur = base + i * 2
                nxt = base + ((i + 1) % n) * 2
                self.add_triangle(center_bottom, nxt, cur)
                self.add_triangle(center_top, cur + 1, nxt + 1)
        else:
            for i in range(1, n - 1):
                cur = base + i * 2
                nxt = base + (i + 1) * 2
                self.add_triangle(base, nxt, cur)
                self.add_triangle(base + 1, cur + 1, nxt + 1)

        for i in range(n):
            cur = base + i * 2
            nxt = base + ((i + 1) % n) * 2
            self.add_quad(cur, nxt, nxt + 1, cur + 1)
        return base

    def stitch_rings(self, ring_starts: Sequence[int], ring_size: int) -> None:
        """Connect consecutive rings of *ring_size* vertices with side quads.

        Each ring must be stored contiguously and wind counter-clockwise
        about the direction from one ring to the next.
        """
        for r in range(len(ring_starts) - 1):
            base = ring_starts[r]
            nxt = ring_starts[r + 1]
            for j in range(ring_size):
                k = (j + 1) % ring_size
                self.add_quad(base + j, base + k, nxt + k, nxt + j)

    def add_sweep(
        self,
        centers: Sequence[Point3D],
        tangents: Sequence[np.ndarray],
        radius: float,
        sides: int,
    ) -> int:
        """Sweep a regular *sides*-gon of *radius* along a path.

        The cross-section at each station lies in the plane perpendicular to
        the matching tangent. Ends are left open. Returns the first vertex
        index.
        """
        if len(centers) != len(tangents):
            raise ValueError("centers and tangents must have the same length")

        first = self.vertex_count
        ring_starts = []
        for center, tangent in zip(centers, tangents):
            u, v = make_cross_section_basis(np.asarray(tangent, dtype=np.float64))
            ring_starts.append(self.vertex_count)
            for j in range(sides):
                a = (j / sides) * 2 * np.pi
                offset = radius * (np.cos(a) * u + np.sin(a) * v)
                self.add_vertex(Point3D(
                    center.x + float(offset[0]),
                    center.y + float(offset[1]),
                    center.z + float(offset[2]),
                ))
        self.stitch_rings(ring_starts, sides)
        return first

    def build(self, include_edges: bool = False) -> PatternResult:
        """Freeze the buffers into a PatternResult."""
        faces = tuple(self.faces)
        edges = compute_wireframe_edges(faces) if include_edges else None
        logger.debug(
            "Built mesh: %d vertices, %d faces", len(self.vertices), len(faces),
        )
        return PatternResult(
            vertices=tuple(self.vertices),
            faces=faces,
            edges=edges,
        )
