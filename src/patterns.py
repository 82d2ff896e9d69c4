"""
Sacred-geometry pattern generators.

Five parametric families, each mapping GeometryParameters to a
PatternResult. Dispatch goes through a single table keyed by PatternType;
unknown pattern identifiers fall back to the mandala.
"""
import logging
import math
from enum import Enum
from typing import Callable, Dict, List, Union

import numpy as np

from geometry_primitives import (
    PHI,
    Point2D,
    Point3D,
    extrude_to_z,
    polar_to_cartesian,
    rotate_point_2d,
)
from mesh_builder import MeshBuilder, PatternResult
from parameters import GeometryParameters

logger = logging.getLogger(__name__)


class PatternType(Enum):
    """Supported pattern families."""
    MANDALA = "mandala"
    FIBONACCI = "fibonacci"
    FLOWER_OF_LIFE = "flower-of-life"
    ISLAMIC = "islamic"
    CELTIC = "celtic"


DEFAULT_PATTERN = PatternType.MANDALA

CIRCLE_SEGMENTS = 12     # flower of life circle resolution
KNOT_TUBE_SIDES = 8
KNOT_SEGMENTS_PER_LOOP = 32
SPIRAL_SEGMENTS_PER_TURN = 20


def resolve_pattern_type(pattern_type: Union[str, PatternType, None]) -> PatternType:
    """Map an identifier to a PatternType, falling back to the mandala."""
    if isinstance(pattern_type, PatternType):
        return pattern_type
    try:
        return PatternType(pattern_type)
    except ValueError:
        logger.debug("Unknown pattern %r, using %s", pattern_type, DEFAULT_PATTERN.value)
        return DEFAULT_PATTERN


# ─── Mandala ─────────────────────────────────────────────────────────────────

def generate_mandala(params: GeometryParameters) -> PatternResult:
    """Concentric petal layers around an extruded center disc.

    Layer count grows with complexity (1-6), petal count grows with the
    layer index. Each petal is a thin radial blade whose inner radius is
    set by the golden ratio.
    """
    builder = MeshBuilder()
    symmetry = params.symmetry
    layers = math.floor(params.complexity * 5) + 1

    center_radius = params.size * 0.1
    disc = [
        polar_to_cartesian(center_radius, (i / symmetry) * 2 * math.pi)
        for i in range(symmetry)
    ]
    builder.add_prism(disc, 0.0, params.thickness, center=Point2D(0.0, 0.0))

    for layer in range(1, layers + 1):
        layer_radius = params.size * (layer / layers) * 0.8
        inner_radius = layer_radius * (1 - 1 / PHI)
        layer_petals = symmetry * layer

        for i in range(layer_petals):
            angle = (i / layer_petals) * 2 * math.pi
            # sacred wave
            petal_angle = angle + math.sin(angle * symmetry) * 0.3

            inner = polar_to_cartesian(inner_radius, petal_angle)
            outer = polar_to_cartesian(layer_radius, petal_angle)
            ib = builder.add_vertices([
                extrude_to_z(inner, 0.0),
                extrude_to_z(inner, params.thickness),
                extrude_to_z(outer, 0.0),
                extrude_to_z(outer, params.thickness),
            ])
            it, ob, ot = ib + 1, ib + 2, ib + 3

            builder.add_triangle(ib, ob, it)
            builder.add_triangle(it, ob, ot)
            # mirrored pair, reversed winding
            builder.add_triangle(ib, it, ob)
            builder.add_triangle(it, ot, ob)

    logger.debug("Mandala: %d layers, symmetry %d", layers, symmetry)
    return builder.build()


# ─── Fibonacci spiral ────────────────────────────────────────────────────────

def generate_fibonacci_spiral(params: GeometryParameters) -> PatternResult:
    """A tapering ribbon following a golden-ratio spiral."""
    builder = MeshBuilder()
    turns = params.spiral_turns
    segments = turns * SPIRAL_SEGMENTS_PER_TURN
    max_radius = params.size * 0.8

    def spiral_point(t: float) -> Point2D:
        t = min(max(t, 0.0), 1.0)
        radius = max_radius * t ** (1 / PHI)
        return polar_to_cartesian(radius, t * turns * 2 * math.pi)

    step = 1.0 / segments
    ring_starts = []
    for i in range(segments + 1):
        t = i / segments
        center = spiral_point(t)

        # Path direction by central difference, rotated a quarter turn
        ahead = spiral_point(t + step * 0.5)
        behind = spiral_point(t - step * 0.5)
        direction = Point2D(ahead.x - behind.x, ahead.y - behind.y)
        length = math.hypot(direction.x, direction.y)
        if length < 1e-12:
            direction = polar_to_cartesian(1.0, t * turns * 2 * math.pi + math.pi / 2)
            length = 1.0
        normal = rotate_point_2d(
            Point2D(direction.x / length, direction.y / length), math.pi / 2,
        )

        half_width = params.thickness * (1 - t * 0.3) / 2
        left = Point2D(center.x + normal.x * half_width, center.y + normal.y * half_width)
        right = Point2D(center.x - normal.x * half_width, center.y - normal.y * half_width)

        # Counter-clockwise about the direction of travel
        ring_starts.append(builder.add_vertices([
            extrude_to_z(left, 0.0),
            extrude_to_z(left, params.thickness),
            extrude_to_z(right, params.thickness),
            extrude_to_z(right, 0.0),
        ]))

    builder.stitch_rings(ring_starts, 4)
    logger.debug("Fibonacci spiral: %d turns, %d segments", turns, segments)
    return builder.build()


# ─── Flower of life ──────────────────────────────────────────────────────────

def generate_flower_of_life(params: GeometryParameters) -> PatternResult:
    """Hexagonal rings of overlapping extruded circles."""
    builder = MeshBuilder()
    circle_radius = params.size * 0.15
    generations = math.floor(params.complexity * 3) + 1

    centers = [Point2D(0.0, 0.0)]
    for gen in range(1, generations + 1):
        distance = circle_radius * 2 * gen
        circles_in_ring = gen * 6
        for i in range(circles_in_ring):
            centers.append(
                polar_to_cartesian(distance, (i / circles_in_ring) * 2 * math.pi)
            )

    for c in centers:
        outline = []
        for i in range(CIRCLE_SEGMENTS):
            p = polar_to_cartesian(circle_radius, (i / CIRCLE_SEGMENTS) * 2 * math.pi)
            outline.append(Point2D(c.x + p.x, c.y + p.y))
        builder.add_prism(outline, 0.0, params.thickness)

    logger.debug("Flower of life: %d generations, %d circles", generations, len(centers))
    return builder.build()


# ─── Islamic star ────────────────────────────────────────────────────────────

def generate_islamic_star(params: GeometryParameters) -> PatternResult:
    """An extruded star polygon with *symmetry* points."""
    builder = MeshBuilder()
    points = params.symmetry
    outer_radius = params.size * 0.8
    inner_radius = outer_radius * 0.6

    rim = []
    for i in range(points * 2):
        angle = (i / (points * 2)) * 2 * math.pi
        radius = outer_radius if i % 2 == 0 else inner_radius
        rim.append(polar_to_cartesian(radius, angle))

    builder.add_prism(rim, 0.0, params.thickness, center=Point2D(0.0, 0.0))
    logger.debug("Islamic star: %d points", points)
    return builder.build()


# ─── Celtic knot ─────────────────────────────────────────────────────────────

def generate_celtic_knot(params: GeometryParameters) -> PatternResult:
    """A woven closed curve swept with an octagonal tube.

    x = R cos t (1 + 0.3 cos Lt), y = R sin t (1 + 0.3 cos Lt),
    z = 0.2 R sin Lt, with L loops.
    """
    builder = MeshBuilder()
    loops = math.floor(params.complexity * 4) + 2
    knot_radius = params.size * 0.7
    tube_radius = params.thickness * 0.8
    segments = loops * KNOT_SEGMENTS_PER_LOOP

    centers: List[Point3D] = []
    tangents: List[np.ndarray] = []
    for i in range(segments + 1):
        t = (i / segments) * 2 * math.pi
        wave = 1 + 0.3 * math.cos(loops * t)
        d_wave = -0.3 * loops * math.sin(loops * t)

        centers.append(Point3D(
            knot_radius * math.cos(t) * wave,
            knot_radius * math.sin(t) * wave,
            knot_radius * 0.2 * math.sin(loops * t) + params.thickness,
        ))
        tangents.append(np.array([
            knot_radius * (-math.sin(t) * wave + math.cos(t) * d_wave),
            knot_radius * (math.cos(t) * wave + math.sin(t) * d_wave),
            knot_radius * 0.2 * loops * math.cos(loops * t),
        ]))

    builder.add_sweep(centers, tangents, tube_radius, KNOT_TUBE_SIDES)
    logger.debug("Celtic knot: %d loops, %d segments", loops, segments)
    return builder.build()


# ─── Dispatch ────────────────────────────────────────────────────────────────

PATTERN_GENERATORS: Dict[PatternType, Callable[[GeometryParameters], PatternResult]] = {
    PatternType.MANDALA: generate_mandala,
    PatternType.FIBONACCI: generate_fibonacci_spiral,
    PatternType.FLOWER_OF_LIFE: generate_flower_of_life,
    PatternType.ISLAMIC: generate_islamic_star,
    PatternType.CELTIC: generate_celtic_knot,
}


def generate_pattern(
    pattern_type: Union[str, PatternType, None],
    params: GeometryParameters,
) -> PatternResult:
    """Generate the base mesh for a pattern family.

    Never fails on the pattern identifier alone; unknown values produce a
    mandala.
    """
    kind = resolve_pattern_type(pattern_type)
    return PATTERN_GENERATORS[kind](params)
