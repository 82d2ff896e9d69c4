"""Tests for the generation pipeline and run folders."""
import json
from pathlib import Path

import pytest

from jewelry import UnsupportedTypeError
from parameters import ValidationError
from pipeline import GenerationRequest, PipelineConfig, run_generation, run_generation_from_dict
from run_protocol import create_run_id, prepare_run_dir, slugify
from stl_exporter import parse_ascii_stl


@pytest.fixture
def config(tmp_path):
    return PipelineConfig(runs_dir=str(tmp_path / "runs"))


class TestRunGeneration:

    def test_artifacts_written(self, config):
        result = run_generation(GenerationRequest(jewelry_type="necklace"), config)
        for path in (
            result.manifest_path,
            result.metrics_path,
            result.summary_path,
            result.geometry_json_path,
            result.stl_path,
        ):
            assert Path(path).exists()
        assert result.binary_stl_path is None
        assert result.glb_path is None

    def test_stl_matches_geometry(self, config):
        result = run_generation(
            GenerationRequest(jewelry_type="ring", pattern_type="islamic"), config,
        )
        facets = parse_ascii_stl(Path(result.stl_path).read_text(encoding="ascii"))
        assert len(facets) == result.geometry.pattern.face_count
        assert len(facets) == result.summary["faceCount"]

    def test_metrics(self, config):
        result = run_generation(
            GenerationRequest(jewelry_type="necklace", parameters={"symmetry": 6}), config,
        )
        metrics = json.loads(Path(result.metrics_path).read_text())
        assert metrics["run_id"] == result.run_id
        assert metrics["vertexCount"] == result.geometry.pattern.vertex_count
        assert metrics["price_multiplier"] == result.price_multiplier
        assert metrics["footprint_area_mm2"] > 0
        assert set(metrics["boundingBox"]) == {"min", "max"}

    def test_manifest(self, config):
        request = GenerationRequest(
            jewelry_type="earrings",
            pattern_type="celtic",
            parameters={"size": 1.2},
            options={"wireType": "stud"},
            design_name="Celtic Studs",
        )
        result = run_generation(request, config)
        manifest = json.loads(Path(result.manifest_path).read_text())
        assert manifest["design_name"] == "Celtic Studs"
        assert "celtic-studs" in manifest["run_id"]
        assert manifest["request"]["jewelry_type"] == "earrings"
        assert manifest["request"]["parameters"]["size"] == 1.2
        assert manifest["request"]["options"]["wireType"] == "stud"
        assert manifest["artifacts"]["meshes"] == [result.stl_path]

    def test_geometry_json(self, config):
        result = run_generation(GenerationRequest(jewelry_type="ring"), config)
        payload = json.loads(Path(result.geometry_json_path).read_text())
        assert payload["structure"]["type"] == "ring"
        assert payload["faceCount"] == result.summary["faceCount"]
        assert "edges" not in payload
        assert result.geometry.pattern.edges is None

    def test_include_edges(self, tmp_path):
        config = PipelineConfig(runs_dir=str(tmp_path), include_edges=True)
        result = run_generation(
            GenerationRequest(jewelry_type="necklace", pattern_type="islamic"), config,
        )
        payload = json.loads(Path(result.geometry_json_path).read_text())
        assert all(a < b for a, b in payload["edges"])
        assert result.geometry.pattern.edges is not None
        assert payload["edges"] == [list(e) for e in result.geometry.pattern.edges]

    def test_summary_markdown(self, config):
        result = run_generation(
            GenerationRequest(jewelry_type="ring", options={"fingerSize": 9}), config,
        )
        text = Path(result.summary_path).read_text()
        assert text.startswith(f"# Run {result.run_id}")
        assert "Ring size 9" in text
        assert "Price multiplier: 1.10" in text

    def test_binary_and_glb(self, tmp_path):
        config = PipelineConfig(
            runs_dir=str(tmp_path), export_binary_stl=True, export_glb=True,
        )
        result = run_generation(GenerationRequest(jewelry_type="necklace"), config)
        assert Path(result.binary_stl_path).stat().st_size == 84 + 50 * result.summary["faceCount"]
        assert Path(result.glb_path).exists()

    def test_latest_pointer(self, config):
        run_generation(GenerationRequest(jewelry_type="necklace"), config)
        second = run_generation(GenerationRequest(jewelry_type="ring"), config)
        latest = Path(config.runs_dir) / "latest"
        if latest.is_symlink():
            assert latest.resolve() == Path(second.run_dir).resolve()
        else:
            assert (latest / "latest_run.txt").read_text() == Path(second.run_dir).name

    def test_runs_get_distinct_folders(self, config):
        first = run_generation(GenerationRequest(jewelry_type="necklace"), config)
        second = run_generation(GenerationRequest(jewelry_type="necklace"), config)
        assert first.run_dir != second.run_dir


class TestFailures:

    def test_invalid_parameters_create_nothing(self, tmp_path):
        config = PipelineConfig(runs_dir=str(tmp_path / "runs"))
        with pytest.raises(ValidationError) as exc:
            run_generation(
                GenerationRequest(jewelry_type="necklace", parameters={"size": 3.0}), config,
            )
        assert exc.value.errors[0].field == "size"
        assert not (tmp_path / "runs").exists()

    def test_unsupported_type_creates_nothing(self, tmp_path):
        config = PipelineConfig(runs_dir=str(tmp_path / "runs"))
        with pytest.raises(UnsupportedTypeError):
            run_generation(GenerationRequest(jewelry_type="anklet"), config)
        assert not (tmp_path / "runs").exists()

    def test_bad_finger_size(self, config):
        with pytest.raises(ValidationError):
            run_generation(
                GenerationRequest(jewelry_type="ring", options={"fingerSize": 13}), config,
            )


class TestFromDict:

    def test_camel_case_payload(self, config):
        result = run_generation_from_dict({
            "type": "ring",
            "patternType": "fibonacci",
            "parameters": {"spiralTurns": 2, "fingerSize": 6.5},
            "name": "spiral ring",
        }, config)
        assert result.geometry.structure.finger_size == 6.5
        assert "spiral-ring" in result.run_id


class TestRunIds:

    def test_slugify(self):
        assert slugify("  Golden Spiral!! Ring ") == "golden-spiral-ring"
        assert slugify("***") == "jewelry"

    def test_run_ids_unique(self):
        assert create_run_id("a") != create_run_id("a")

    def test_run_folder_layout(self, tmp_path):
        paths = prepare_run_dir(str(tmp_path), "Flower Pendant")
        assert paths.run_dir.parent == tmp_path
        assert paths.artifacts_dir.is_dir()
        assert paths.manifest_path == paths.run_dir / "manifest.json"
        assert paths.artifact("a.stl") == paths.run_dir / "artifacts" / "a.stl"
        assert "flower-pendant" in paths.run_id


class TestOptionValidation:

    def test_bad_chain_length_creates_nothing(self, tmp_path):
        config = PipelineConfig(runs_dir=str(tmp_path / "runs"))
        with pytest.raises(ValidationError) as exc:
            run_generation(
                GenerationRequest(jewelry_type="necklace", options={"chainLength": "long"}),
                config,
            )
        assert exc.value.errors[0].field == "chainLength"
        assert not (tmp_path / "runs").exists()
