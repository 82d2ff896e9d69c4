"""
STL export for generated jewelry meshes.

ASCII STL is written by hand so the byte layout slicers receive is fixed:
one facet block per triangle, six-decimal fixed-point numbers, and a unit
face normal computed from the winding. Binary STL and GLB go through
trimesh.

Units: millimeters.
"""
import logging
import os
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np
import trimesh

from geometry_primitives import Point3D
from mesh_builder import PatternResult

logger = logging.getLogger(__name__)

Vector3 = Tuple[float, float, float]


@dataclass
class STLExportConfig:
    """Configuration for STL export."""
    solid_name: str = "Sacred_Geometry_Jewelry"
    precision: int = 6


@dataclass
class Facet:
    """One triangle read back from an ASCII STL."""
    normal: Vector3
    vertices: Tuple[Vector3, Vector3, Vector3]


def face_normal(v1: Point3D, v2: Point3D, v3: Point3D) -> Vector3:
    """Unit normal of (v2 - v1) x (v3 - v1).

    A degenerate (zero-area) triangle yields (0, 0, 0).
    """
    u = np.array([v2.x - v1.x, v2.y - v1.y, v2.z - v1.z])
    v = np.array([v3.x - v1.x, v3.y - v1.y, v3.z - v1.z])
    n = np.cross(u, v)
    length = float(np.linalg.norm(n))
    if length == 0.0:
        return (0.0, 0.0, 0.0)
    n = n / length
    return (float(n[0]), float(n[1]), float(n[2]))


def pattern_to_ascii_stl(
    pattern: PatternResult,
    config: Optional[STLExportConfig] = None,
) -> str:
    """Serialize a triangle mesh as ASCII STL text.

    Raises:
        ValueError: A face does not have exactly three indices.
    """
    if config is None:
        config = STLExportConfig()

    fmt = _make_formatter(config.precision)
    lines = [f"solid {config.solid_name}"]

    for i, face in enumerate(pattern.faces):
        if len(face) != 3:
            raise ValueError(
                f"Face {i} has {len(face)} indices; triangulate before export"
            )
        v1, v2, v3 = (pattern.vertices[idx] for idx in face)
        normal = face_normal(v1, v2, v3)

        lines.append(f"facet normal {fmt(normal)}")
        lines.append("  outer loop")
        for v in (v1, v2, v3):
            lines.append(f"    vertex {fmt(v.as_tuple())}")
        lines.append("  endloop")
        lines.append("endfacet")

    lines.append(f"endsolid {config.solid_name}")
    return "\n".join(lines) + "\n"


def write_ascii_stl(
    pattern: PatternResult,
    filepath: str,
    config: Optional[STLExportConfig] = None,
) -> str:
    """Write a pattern to an ASCII STL file.

    Returns:
        Path to created STL file.
    """
    content = pattern_to_ascii_stl(pattern, config)
    os.makedirs(os.path.dirname(filepath) or ".", exist_ok=True)
    with open(filepath, "w", encoding="ascii", newline="\n") as f:
        f.write(content)
    logger.info("Exported STL: %s (%d facets)", filepath, pattern.face_count)
    return filepath


def parse_ascii_stl(text: str) -> List[Facet]:
    """Read facets back from ASCII STL text.

    Raises:
        ValueError: Malformed facet block.
    """
    facets: List[Facet] = []
    normal: Optional[Vector3] = None
    loop: List[Vector3] = []

    for lineno, raw in enumerate(text.splitlines(), start=1):
        tokens = raw.split()
        if not tokens:
            continue
        keyword = tokens[0]
        if keyword == "facet":
            if len(tokens) != 5 or tokens[1] != "normal":
                raise ValueError(f"Line {lineno}: malformed facet header")
            normal = _parse_vector(tokens[2:], lineno)
            loop = []
        elif keyword == "vertex":
            if normal is None:
                raise ValueError(f"Line {lineno}: vertex outside facet")
            loop.append(_parse_vector(tokens[1:], lineno))
        elif keyword == "endfacet":
            if normal is None or len(loop) != 3:
                raise ValueError(f"Line {lineno}: facet without three vertices")
            facets.append(Facet(normal=normal, vertices=(loop[0], loop[1], loop[2])))
            normal = None

    return facets


def pattern_to_trimesh(pattern: PatternResult) -> trimesh.Trimesh:
    """Wrap a pattern in a trimesh.Trimesh without merging or reordering."""
    return trimesh.Trimesh(
        vertices=pattern.vertex_array(),
        faces=pattern.face_array(),
        process=False,
    )


def export_mesh(pattern: PatternResult, filepath: str, file_type: str = "stl") -> str:
    """Export through trimesh (binary ``stl``, ``glb``, ``obj``, ...).

    Returns:
        Path to created file.
    """
    mesh = pattern_to_trimesh(pattern)
    os.makedirs(os.path.dirname(filepath) or ".", exist_ok=True)
    mesh.export(filepath, file_type=file_type)
    logger.info("Exported %s: %s", file_type.upper(), filepath)
    return filepath


# ─── Internal helpers ────────────────────────────────────────────────────────

def _make_formatter(precision: int):
    def fmt(values: Sequence[float]) -> str:
        # + 0.0 turns -0.0 into 0.0
        return " ".join(f"{v + 0.0:.{precision}f}" for v in values)
    return fmt


def _parse_vector(tokens: Sequence[str], lineno: int) -> Vector3:
    if len(tokens) != 3:
        raise ValueError(f"Line {lineno}: expected 3 components, got {len(tokens)}")
    try:
        x, y, z = (float(t) for t in tokens)
    except ValueError:
        raise ValueError(f"Line {lineno}: non-numeric component") from None
    return (x, y, z)
