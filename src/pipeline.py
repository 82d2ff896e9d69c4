"""Generation pipeline: parameters -> jewelry geometry -> run artifacts."""

from __future__ import annotations

import logging
import time
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from geometry_primitives import footprint_area_mm2
from jewelry import (
    JewelryGeometry,
    StructureOptions,
    generate_jewelry,
    generation_summary,
    resolve_jewelry_type,
)
from parameters import ValidationError, validate_parameters
from patterns import resolve_pattern_type
from run_protocol import prepare_run_dir, update_latest_pointer, write_json, write_text
from stl_exporter import STLExportConfig, export_mesh, write_ascii_stl

logger = logging.getLogger(__name__)


@dataclass
class PipelineConfig:
    runs_dir: str = "runs"
    export_ascii_stl: bool = True
    export_binary_stl: bool = False
    export_glb: bool = False
    include_edges: bool = False
    stl: STLExportConfig = field(default_factory=STLExportConfig)


@dataclass
class GenerationRequest:
    """What an external collaborator hands the core for one piece."""
    jewelry_type: str
    pattern_type: str = "mandala"
    parameters: Dict[str, Any] = field(default_factory=dict)
    options: Dict[str, Any] = field(default_factory=dict)
    design_name: str = "jewelry"


@dataclass
class PipelineResult:
    run_id: str
    run_dir: str
    manifest_path: str
    metrics_path: str
    summary_path: str
    geometry_json_path: str
    price_multiplier: float
    summary: Dict[str, Any]
    stl_path: Optional[str] = None
    binary_stl_path: Optional[str] = None
    glb_path: Optional[str] = None
    geometry: Optional[JewelryGeometry] = None


def run_generation(
    request: GenerationRequest,
    config: Optional[PipelineConfig] = None,
) -> PipelineResult:
    """Validate, generate, export, and record one jewelry piece.

    Raises:
        ValidationError: Parameters or options violate the contract.
        UnsupportedTypeError: Unknown jewelry or wire type.
    """
    if config is None:
        config = PipelineConfig()

    # Fail before creating a run folder
    validation = validate_parameters(request.parameters)
    if not validation.valid:
        raise ValidationError(validation.errors)
    jewelry_type = resolve_jewelry_type(request.jewelry_type)
    pattern_type = resolve_pattern_type(request.pattern_type)
    options = StructureOptions.from_dict(request.options)

    started = time.perf_counter()
    geometry = generate_jewelry(
        jewelry_type, pattern_type, validation.parameters, options,
        include_edges=config.include_edges,
    )
    generate_s = time.perf_counter() - started

    paths = prepare_run_dir(config.runs_dir, request.design_name)
    summary = generation_summary(geometry)

    stl_path = None
    if config.export_ascii_stl:
        stl_path = write_ascii_stl(
            geometry.pattern,
            str(paths.artifact(f"{paths.run_id}.stl")),
            config.stl,
        )
    binary_stl_path = None
    if config.export_binary_stl:
        binary_stl_path = export_mesh(
            geometry.pattern, str(paths.artifact(f"{paths.run_id}_binary.stl")), "stl",
        )
    glb_path = None
    if config.export_glb:
        glb_path = export_mesh(
            geometry.pattern, str(paths.artifact(f"{paths.run_id}.glb")), "glb",
        )

    geometry_json_path = paths.artifact("geometry.json")
    write_json(geometry_json_path, _geometry_payload(geometry))

    elapsed = time.perf_counter() - started
    footprint = footprint_area_mm2(geometry.pattern.vertices, geometry.pattern.faces)

    metrics: Dict[str, Any] = {
        "run_id": paths.run_id,
        "elapsed_s": round(elapsed, 3),
        "generate_s": round(generate_s, 3),
        "price_multiplier": validation.price_multiplier,
        "footprint_area_mm2": round(footprint, 3),
        **summary,
    }
    write_json(paths.metrics_path, metrics)

    write_text(
        paths.summary_path,
        _build_summary(paths.run_id, geometry, validation.price_multiplier, footprint, elapsed),
    )

    artifacts: List[str] = [p for p in (stl_path, binary_stl_path, glb_path) if p]
    manifest = {
        "run_id": paths.run_id,
        "design_name": request.design_name,
        "created_utc": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
        "request": {
            "jewelry_type": jewelry_type.value,
            "pattern_type": pattern_type.value,
            "parameters": validation.parameters.to_dict(),
            "options": {
                "chainLength": options.chain_length,
                "wireType": options.wire_type.value,
                "fingerSize": options.finger_size,
            },
        },
        "config": asdict(config),
        "artifacts": {
            "geometry_json": str(geometry_json_path),
            "metrics": str(paths.metrics_path),
            "summary": str(paths.summary_path),
            "meshes": artifacts,
        },
    }
    write_json(paths.manifest_path, manifest)
    update_latest_pointer(config.runs_dir, paths.run_dir)

    logger.info("Run %s written to %s", paths.run_id, paths.run_dir)
    return PipelineResult(
        run_id=paths.run_id,
        run_dir=str(paths.run_dir),
        manifest_path=str(paths.manifest_path),
        metrics_path=str(paths.metrics_path),
        summary_path=str(paths.summary_path),
        geometry_json_path=str(geometry_json_path),
        price_multiplier=validation.price_multiplier,
        summary=summary,
        stl_path=stl_path,
        binary_stl_path=binary_stl_path,
        glb_path=glb_path,
        geometry=geometry,
    )


def run_generation_from_dict(
    payload: Mapping[str, Any],
    config: Optional[PipelineConfig] = None,
) -> PipelineResult:
    """Convenience wrapper for JSON-shaped requests (camelCase keys)."""
    request = GenerationRequest(
        jewelry_type=payload.get("type", payload.get("jewelryType", "")),
        pattern_type=payload.get("patternType", "mandala"),
        parameters=dict(payload.get("parameters", {})),
        options=dict(payload.get("options", {})),
        design_name=payload.get("name", "jewelry"),
    )
    return run_generation(request, config)


# ─── Internal helpers ────────────────────────────────────────────────────────

def _geometry_payload(geometry: JewelryGeometry) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        **generation_summary(geometry),
        "structure": geometry.structure.to_dict(),
    }
    if geometry.pattern.edges is not None:
        payload["edges"] = [list(e) for e in geometry.pattern.edges]
    return payload


def _build_summary(
    run_id: str,
    geometry: JewelryGeometry,
    price_multiplier: float,
    footprint_mm2: float,
    elapsed_s: float,
) -> str:
    box = geometry.bounding_box
    width, depth, height = box.size
    structure = geometry.structure

    lines = [
        f"# Run {run_id}",
        "",
        f"- Type: **{structure.type.value.upper()}**",
        f"- Duration: {elapsed_s:.2f}s",
        f"- Vertices: {geometry.pattern.vertex_count}",
        f"- Faces: {geometry.pattern.face_count}",
        f"- Bounds: {width:.2f} x {depth:.2f} x {height:.2f} mm",
        f"- Footprint: {footprint_mm2:.2f} mm2",
        f"- Price multiplier: {price_multiplier:.2f}",
        "",
        "## Structure",
    ]
    if structure.ring_band is not None:
        band = structure.ring_band
        lines.append(f"- Ring size {structure.finger_size:g}")
        lines.append(
            f"- Band: inner r {band.inner_radius:.2f} mm, "
            f"outer r {band.outer_radius:.2f} mm, height {band.height:.2f} mm"
        )
    elif structure.ear_wire_attachment is not None:
        p = structure.ear_wire_attachment
        lines.append(f"- {structure.wire_type.value} at ({p.x:.2f}, {p.y:.2f}, {p.z:.2f})")
    else:
        for p in structure.chain_attachments:
            lines.append(f"- Chain loop at ({p.x:.2f}, {p.y:.2f}, {p.z:.2f})")
        lines.append(f"- Chain length: {structure.chain_length:g} in")

    return "\n".join(lines) + "\n"
