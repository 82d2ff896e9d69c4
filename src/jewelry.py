"""
Jewelry structure composition.

Combines a sacred-geometry pattern with the hardware a wearable piece needs:
chain loops for necklaces, a hook or stud for earrings, and a sized band for
rings. ``generate_jewelry`` is the single entry point; it dispatches on
JewelryType and returns an immutable JewelryGeometry.
"""
import logging
import math
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Union

import numpy as np

from geometry_primitives import (
    PHI,
    BoundingBox,
    Point3D,
    compute_bounding_box,
    polar_to_cartesian,
)
from mesh_builder import MeshBuilder, PatternResult
from parameters import (
    OPTION_SPECS,
    GeometryParameters,
    ValidationError,
    check_fields,
    check_finger_size,
    parse_parameters,
)
from patterns import PatternType, generate_pattern

logger = logging.getLogger(__name__)

# US ring size 0 inner circumference and per-size increment (mm)
RING_BASE_CIRCUMFERENCE_MM = 44.2
RING_SIZE_INCREMENT_MM = 2.56
DEFAULT_FINGER_SIZE = 7.0
DEFAULT_CHAIN_LENGTH_IN = OPTION_SPECS["chainLength"].default

CHAIN_LOOP_SEGMENTS = 8
HOOK_SEGMENTS = 16
WIRE_SIDES = 6
RING_BAND_SEGMENTS = 32


class JewelryGenerationError(Exception):
    """Base exception for jewelry generation errors."""
    pass


class UnsupportedTypeError(JewelryGenerationError):
    """Requested jewelry (or wire) type is not supported."""
    pass


class DegenerateGeometryError(JewelryGenerationError):
    """A generated pattern has no vertices."""
    pass


class JewelryType(Enum):
    NECKLACE = "necklace"
    EARRINGS = "earrings"
    RING = "ring"


class WireType(Enum):
    """Ear wire hardware."""
    HOOK = "hook"
    STUD = "stud"


@dataclass(frozen=True)
class StructureOptions:
    """Per-type extras supplied alongside the design parameters.

    Attributes:
        chain_length: Necklace chain length in inches (recorded only)
        wire_type: Earring hardware
        finger_size: Ring size, overrides GeometryParameters.finger_size
    """
    chain_length: float = DEFAULT_CHAIN_LENGTH_IN
    wire_type: WireType = WireType.HOOK
    finger_size: Optional[float] = None

    def __post_init__(self):
        object.__setattr__(self, "wire_type", resolve_wire_type(self.wire_type))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "StructureOptions":
        """Build from a dict with contract (camelCase) or snake_case keys.

        Numeric options go through the same field checks as the design
        parameters.

        Raises:
            ValidationError: chainLength not a positive number, or fingerSize
                outside 4-12 in half sizes.
            UnsupportedTypeError: Unknown wire type.
        """
        values, errors = check_fields(OPTION_SPECS.values(), data)
        if errors:
            raise ValidationError(errors)
        wire_type = data.get("wireType", data.get("wire_type", WireType.HOOK))
        return cls(
            chain_length=values["chain_length"],
            wire_type=resolve_wire_type(wire_type),
            finger_size=values.get("finger_size"),
        )


@dataclass(frozen=True)
class RingBand:
    inner_radius: float
    outer_radius: float
    height: float

    @property
    def width(self) -> float:
        return self.outer_radius - self.inner_radius

    def to_dict(self) -> Dict[str, float]:
        return {
            "innerRadius": self.inner_radius,
            "outerRadius": self.outer_radius,
            "height": self.height,
        }


@dataclass(frozen=True)
class JewelryStructure:
    """Structural hardware, tagged by jewelry type.

    Exactly one of chain_attachments / ear_wire_attachment / ring_band is
    populated, matching ``type``.
    """
    type: JewelryType
    chain_attachments: Optional[List[Point3D]] = None
    ear_wire_attachment: Optional[Point3D] = None
    ring_band: Optional[RingBand] = None
    chain_length: Optional[float] = None
    wire_type: Optional[WireType] = None
    finger_size: Optional[float] = None

    def __post_init__(self):
        populated = {
            JewelryType.NECKLACE: self.chain_attachments is not None,
            JewelryType.EARRINGS: self.ear_wire_attachment is not None,
            JewelryType.RING: self.ring_band is not None,
        }
        if not populated[self.type] or sum(populated.values()) != 1:
            raise ValueError(f"Structure fields do not match type {self.type.value}")

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"type": self.type.value}
        if self.type == JewelryType.NECKLACE:
            payload["chainAttachments"] = [p.to_dict() for p in self.chain_attachments]
            payload["chainLength"] = self.chain_length
        elif self.type == JewelryType.EARRINGS:
            payload["earWireAttachment"] = self.ear_wire_attachment.to_dict()
            payload["wireType"] = self.wire_type.value if self.wire_type else None
        else:
            payload["ringBand"] = self.ring_band.to_dict()
            payload["fingerSize"] = self.finger_size
        return payload


@dataclass(frozen=True)
class JewelryGeometry:
    """A complete piece: mesh, hardware description, and bounds."""
    pattern: PatternResult
    structure: JewelryStructure
    bounding_box: BoundingBox


# Mesh under construction plus its hardware description
Composed = Tuple[MeshBuilder, JewelryStructure]


def ring_diameter_mm(ring_size: float) -> float:
    """Inner diameter (mm) of a US ring size."""
    circumference = RING_BASE_CIRCUMFERENCE_MM + ring_size * RING_SIZE_INCREMENT_MM
    return circumference / math.pi


def resolve_jewelry_type(jewelry_type: Union[str, JewelryType]) -> JewelryType:
    if isinstance(jewelry_type, JewelryType):
        return jewelry_type
    try:
        return JewelryType(jewelry_type)
    except ValueError:
        raise UnsupportedTypeError(f"Unsupported jewelry type: {jewelry_type}") from None


def resolve_wire_type(wire_type: Union[str, WireType]) -> WireType:
    if isinstance(wire_type, WireType):
        return wire_type
    try:
        return WireType(wire_type)
    except ValueError:
        raise UnsupportedTypeError(f"Unsupported wire type: {wire_type}") from None


# ─── Necklace ────────────────────────────────────────────────────────────────

def _compose_necklace(
    pattern_type: PatternType,
    params: GeometryParameters,
    options: StructureOptions,
) -> Composed:
    builder = MeshBuilder.from_pattern(_checked_pattern(pattern_type, params))

    # Golden-ratio spaced attachment points above the pattern
    height = params.size * 0.8
    spacing = params.size * PHI * 0.3
    attachments = [
        Point3D(-spacing, height, params.thickness / 2),
        Point3D(spacing, height, params.thickness / 2),
    ]

    loop_radius = params.thickness * 0.5
    loop_height = params.thickness * 0.2
    axis = np.array([0.0, 0.0, 1.0])
    for point in attachments:
        top = Point3D(point.x, point.y, point.z + loop_height)
        builder.add_sweep([point, top], [axis, axis], loop_radius, CHAIN_LOOP_SEGMENTS)

    structure = JewelryStructure(
        type=JewelryType.NECKLACE,
        chain_attachments=attachments,
        chain_length=options.chain_length,
    )
    return builder, structure


# ─── Earrings ────────────────────────────────────────────────────────────────

def _compose_earrings(
    pattern_type: PatternType,
    params: GeometryParameters,
    options: StructureOptions,
) -> Composed:
    earring_params = replace(
        params,
        size=params.size * 0.6,
        thickness=params.thickness * 0.8,
    )
    builder = MeshBuilder.from_pattern(_checked_pattern(pattern_type, earring_params))

    attachment = Point3D(
        0.0,
        earring_params.size * 0.9,
        earring_params.thickness / 2,
    )

    if options.wire_type == WireType.HOOK:
        _add_hook(builder, attachment, earring_params)
    else:
        _add_stud(builder, attachment, earring_params)

    structure = JewelryStructure(
        type=JewelryType.EARRINGS,
        ear_wire_attachment=attachment,
        wire_type=options.wire_type,
    )
    return builder, structure


def _add_hook(builder: MeshBuilder, attachment: Point3D, params: GeometryParameters) -> None:
    """Partial-circle wire rising from the attachment point."""
    hook_radius = params.size * 0.3
    wire_radius = params.thickness * 0.3

    centers = []
    tangents = []
    for i in range(HOOK_SEGMENTS + 1):
        angle = (i / HOOK_SEGMENTS) * math.pi * 1.2 + math.pi / 2
        p = polar_to_cartesian(hook_radius, angle)
        centers.append(Point3D(
            attachment.x + p.x,
            attachment.y + p.y + hook_radius,
            attachment.z,
        ))
        tangents.append(np.array([-math.sin(angle), math.cos(angle), 0.0]))

    builder.add_sweep(centers, tangents, wire_radius, WIRE_SIDES)


def _add_stud(builder: MeshBuilder, attachment: Point3D, params: GeometryParameters) -> None:
    """Straight hexagonal post along +y."""
    post_height = params.thickness * 2
    post_radius = params.thickness * 0.2
    axis = np.array([0.0, 1.0, 0.0])
    end = Point3D(attachment.x, attachment.y + post_height, attachment.z)
    builder.add_sweep([attachment, end], [axis, axis], post_radius, WIRE_SIDES)


# ─── Ring ────────────────────────────────────────────────────────────────────

def _compose_ring(
    pattern_type: PatternType,
    params: GeometryParameters,
    options: StructureOptions,
) -> Composed:
    finger_size = options.finger_size
    if finger_size is None:
        finger_size = params.finger_size
    if finger_size is None:
        finger_size = DEFAULT_FINGER_SIZE
    check_finger_size(finger_size)

    inner_radius = ring_diameter_mm(finger_size) / 2
    band_width = params.size * 8
    outer_radius = inner_radius + band_width
    band_height = params.thickness * 2

    # Scale the pattern to the band width
    ring_params = replace(params, size=params.size * 0.8 * (band_width / 10))
    builder = MeshBuilder.from_pattern(_checked_pattern(pattern_type, ring_params))
    pattern_end = builder.vertex_count

    lift = band_height + params.thickness * 0.5
    target_radius = inner_radius + band_width * 0.5

    def seat_on_band(v: Point3D) -> Point3D:
        x, y = v.x, v.y
        distance = math.hypot(x, y)
        if distance < inner_radius:
            scale = target_radius / max(distance, 0.1)
            x *= scale
            y *= scale
        return Point3D(x, y, v.z + lift)

    builder.transform_vertices(seat_on_band, 0, pattern_end)
    _add_band(builder, inner_radius, outer_radius, band_height)

    structure = JewelryStructure(
        type=JewelryType.RING,
        ring_band=RingBand(
            inner_radius=inner_radius,
            outer_radius=outer_radius,
            height=band_height,
        ),
        finger_size=finger_size,
    )
    return builder, structure


def _add_band(
    builder: MeshBuilder,
    inner_radius: float,
    outer_radius: float,
    height: float,
) -> None:
    """Annular band: inner wall, outer wall, bottom and top."""
    n = RING_BAND_SEGMENTS
    inner_base = builder.vertex_count
    for radius in (inner_radius, outer_radius):
        for i in range(n):
            p = polar_to_cartesian(radius, (i / n) * 2 * math.pi)
            builder.add_vertex(Point3D(p.x, p.y, 0.0))
            builder.add_vertex(Point3D(p.x, p.y, height))
    outer_base = inner_base + n * 2

    for i in range(n):
        ic = inner_base + i * 2
        inx = inner_base + ((i + 1) % n) * 2
        oc = outer_base + i * 2
        onx = outer_base + ((i + 1) % n) * 2

        builder.add_quad(ic, ic + 1, inx + 1, inx)      # inner wall, facing the finger
        builder.add_quad(oc, onx, onx + 1, oc + 1)      # outer wall
        builder.add_quad(ic, inx, onx, oc)              # bottom
        builder.add_quad(ic + 1, oc + 1, onx + 1, inx + 1)  # top


# ─── Dispatch ────────────────────────────────────────────────────────────────

JEWELRY_COMPOSERS: Dict[
    JewelryType,
    Callable[[PatternType, GeometryParameters, StructureOptions], Composed],
] = {
    JewelryType.NECKLACE: _compose_necklace,
    JewelryType.EARRINGS: _compose_earrings,
    JewelryType.RING: _compose_ring,
}


def compose(
    jewelry_type: Union[str, JewelryType],
    pattern_type: Union[str, PatternType, None],
    params: GeometryParameters,
    options: Optional[StructureOptions] = None,
    include_edges: bool = False,
) -> JewelryGeometry:
    """Fuse type-specific hardware onto a generated pattern.

    With *include_edges* the resulting pattern carries its wireframe edges.

    Raises:
        UnsupportedTypeError: Unknown jewelry type.
        DegenerateGeometryError: The pattern produced no vertices.
        ValidationError: Ring finger size outside 4-12 (half sizes).
    """
    if options is None:
        options = StructureOptions()
    kind = resolve_jewelry_type(jewelry_type)
    builder, structure = JEWELRY_COMPOSERS[kind](pattern_type, params, options)
    geometry = _finish(builder, structure, include_edges)
    logger.info(
        "Generated %s (%s): %d vertices, %d faces",
        kind.value,
        pattern_type.value if isinstance(pattern_type, PatternType) else pattern_type,
        geometry.pattern.vertex_count,
        geometry.pattern.face_count,
    )
    return geometry


def generate_jewelry(
    jewelry_type: Union[str, JewelryType],
    pattern_type: Union[str, PatternType, None],
    params: Union[GeometryParameters, Mapping[str, Any]],
    options: Union[StructureOptions, Mapping[str, Any], None] = None,
    include_edges: bool = False,
) -> JewelryGeometry:
    """Generate a complete piece of jewelry.

    Args:
        jewelry_type: "necklace", "earrings" or "ring"
        pattern_type: Pattern identifier; unknown values use the mandala
        params: Normalized parameters, or a raw dict to validate first
        options: StructureOptions or a dict with chainLength / wireType /
            fingerSize
        include_edges: Also compute the pattern's wireframe edges

    Returns:
        JewelryGeometry with pattern, structure and bounding box.
    """
    if not isinstance(params, GeometryParameters):
        params = parse_parameters(params)
    if options is not None and not isinstance(options, StructureOptions):
        options = StructureOptions.from_dict(options)
    return compose(jewelry_type, pattern_type, params, options, include_edges)


def generation_summary(geometry: JewelryGeometry) -> Dict[str, Any]:
    """Counts and bounds reported to callers after generation."""
    return {
        "vertexCount": geometry.pattern.vertex_count,
        "faceCount": geometry.pattern.face_count,
        "boundingBox": geometry.bounding_box.to_dict(),
    }


# ─── Internal helpers ────────────────────────────────────────────────────────

def _checked_pattern(
    pattern_type: Union[str, PatternType, None],
    params: GeometryParameters,
) -> PatternResult:
    pattern = generate_pattern(pattern_type, params)
    if pattern.vertex_count == 0:
        raise DegenerateGeometryError(f"Pattern {pattern_type!r} produced no vertices")
    return pattern


def _finish(
    builder: MeshBuilder,
    structure: JewelryStructure,
    include_edges: bool = False,
) -> JewelryGeometry:
    pattern = builder.build(include_edges=include_edges)
    return JewelryGeometry(
        pattern=pattern,
        structure=structure,
        bounding_box=compute_bounding_box(pattern.vertices),
    )
