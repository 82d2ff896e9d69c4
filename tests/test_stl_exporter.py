"""Tests for STL export."""
import os

import numpy as np
import pytest
import trimesh

from geometry_primitives import Point3D
from mesh_builder import PatternResult
from stl_exporter import (
    STLExportConfig,
    export_mesh,
    face_normal,
    parse_ascii_stl,
    pattern_to_ascii_stl,
    pattern_to_trimesh,
    write_ascii_stl,
)

UNIT_TRIANGLE_STL = """\
solid Sacred_Geometry_Jewelry
facet normal 0.000000 0.000000 1.000000
  outer loop
    vertex 0.000000 0.000000 0.000000
    vertex 1.000000 0.000000 0.000000
    vertex 0.000000 1.000000 0.000000
  endloop
endfacet
endsolid Sacred_Geometry_Jewelry
"""


class TestAsciiStl:
    """Exact text layout."""

    def test_single_triangle(self, unit_triangle):
        assert pattern_to_ascii_stl(unit_triangle) == UNIT_TRIANGLE_STL

    def test_empty_mesh(self):
        text = pattern_to_ascii_stl(PatternResult(vertices=(), faces=()))
        assert text == "solid Sacred_Geometry_Jewelry\nendsolid Sacred_Geometry_Jewelry\n"

    def test_degenerate_triangle_gets_zero_normal(self):
        pattern = PatternResult(
            vertices=(Point3D(0, 0, 0), Point3D(1, 1, 1), Point3D(2, 2, 2)),
            faces=((0, 1, 2),),
        )
        text = pattern_to_ascii_stl(pattern)
        assert "facet normal 0.000000 0.000000 0.000000" in text

    def test_negative_zero_printed_unsigned(self):
        pattern = PatternResult(
            vertices=(Point3D(-0.0, 0.0, 0.0), Point3D(0.0, 1.0, 0.0), Point3D(1.0, 0.0, 0.0)),
            faces=((0, 1, 2),),
        )
        text = pattern_to_ascii_stl(pattern)
        assert "-0.000000" not in text
        assert "facet normal 0.000000 0.000000 -1.000000" in text

    def test_custom_solid_name(self, unit_triangle):
        text = pattern_to_ascii_stl(unit_triangle, STLExportConfig(solid_name="Ring_7"))
        lines = text.splitlines()
        assert lines[0] == "solid Ring_7"
        assert lines[-1] == "endsolid Ring_7"

    def test_precision(self, unit_triangle):
        text = pattern_to_ascii_stl(unit_triangle, STLExportConfig(precision=3))
        assert "vertex 1.000 0.000 0.000" in text

    def test_non_triangle_face_rejected(self):
        pattern = PatternResult(
            vertices=(Point3D(0, 0, 0), Point3D(1, 0, 0), Point3D(1, 1, 0), Point3D(0, 1, 0)),
            faces=((0, 1, 2, 3),),
        )
        with pytest.raises(ValueError):
            pattern_to_ascii_stl(pattern)


class TestFaceNormal:

    def test_right_hand_rule(self):
        n = face_normal(Point3D(0, 0, 0), Point3D(0, 1, 0), Point3D(1, 0, 0))
        assert n == pytest.approx((0.0, 0.0, -1.0))

    def test_unit_length(self):
        n = face_normal(Point3D(0, 0, 0), Point3D(3, 0, 0), Point3D(0, 0, 5))
        assert np.linalg.norm(n) == pytest.approx(1.0)


class TestParseAsciiStl:

    def test_reads_back_every_facet(self, necklace_geometry):
        text = pattern_to_ascii_stl(necklace_geometry.pattern)
        facets = parse_ascii_stl(text)
        assert len(facets) == necklace_geometry.pattern.face_count
        for facet in facets:
            length = np.linalg.norm(facet.normal)
            assert length == pytest.approx(1.0, abs=1e-5) or length == 0.0

    def test_vertices_match_to_precision(self, unit_triangle):
        (facet,) = parse_ascii_stl(pattern_to_ascii_stl(unit_triangle))
        assert facet.vertices == ((0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (0.0, 1.0, 0.0))
        assert facet.normal == (0.0, 0.0, 1.0)

    def test_malformed_vertex(self):
        text = "solid x\nfacet normal 0 0 1\n  outer loop\n    vertex 0 0\n"
        with pytest.raises(ValueError, match="Line 4"):
            parse_ascii_stl(text)

    def test_short_facet(self):
        text = (
            "solid x\nfacet normal 0 0 1\n  outer loop\n"
            "    vertex 0 0 0\n    vertex 1 0 0\n  endloop\nendfacet\nendsolid x\n"
        )
        with pytest.raises(ValueError):
            parse_ascii_stl(text)

    def test_non_numeric_component(self):
        with pytest.raises(ValueError, match="non-numeric"):
            parse_ascii_stl("facet normal a b c\n")


class TestFileExport:

    def test_write_ascii_stl(self, tmp_path, ring_geometry):
        path = write_ascii_stl(ring_geometry.pattern, str(tmp_path / "out" / "ring.stl"))
        assert os.path.exists(path)
        with open(path, encoding="ascii") as f:
            facets = parse_ascii_stl(f.read())
        assert len(facets) == ring_geometry.pattern.face_count

    def test_ascii_stl_loads_in_trimesh(self, tmp_path, unit_triangle):
        path = write_ascii_stl(unit_triangle, str(tmp_path / "tri.stl"))
        mesh = trimesh.load_mesh(path, file_type="stl", process=False)
        assert len(mesh.faces) == 1

    def test_binary_stl_size(self, tmp_path, necklace_geometry):
        path = export_mesh(necklace_geometry.pattern, str(tmp_path / "n.stl"), "stl")
        # 80-byte header, uint32 count, 50 bytes per facet
        assert os.path.getsize(path) == 84 + 50 * necklace_geometry.pattern.face_count

    def test_glb_export(self, tmp_path, necklace_geometry):
        path = export_mesh(necklace_geometry.pattern, str(tmp_path / "n.glb"), "glb")
        assert os.path.getsize(path) > 0

    def test_trimesh_keeps_buffers(self, necklace_geometry):
        mesh = pattern_to_trimesh(necklace_geometry.pattern)
        assert len(mesh.vertices) == necklace_geometry.pattern.vertex_count
        assert len(mesh.faces) == necklace_geometry.pattern.face_count
