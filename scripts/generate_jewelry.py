#!/usr/bin/env python3
"""
Generate a printable sacred-geometry jewelry mesh from design parameters.

Usage:
    # Necklace pendant with the default mandala
    python scripts/generate_jewelry.py --type necklace

    # Fibonacci ring, size 8.5, with a GLB preview alongside the STL
    python scripts/generate_jewelry.py --type ring --pattern fibonacci \\
        --finger-size 8.5 --glb

    # Stud earrings, Islamic star
    python scripts/generate_jewelry.py --type earrings --pattern islamic --wire-type stud

    # Only check parameters and print the price multiplier
    python scripts/generate_jewelry.py --type ring --size 1.4 --validate-only
"""
import argparse
import json
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from jewelry import JewelryGenerationError, JewelryType, WireType
from parameters import ValidationError, validate_parameters
from patterns import PatternType
from pipeline import GenerationRequest, PipelineConfig, run_generation


def _collect_parameters(args) -> dict:
    """Only pass flags the user actually set so defaults apply once."""
    raw = {
        "size": args.size,
        "thickness": args.thickness,
        "complexity": args.complexity,
        "symmetry": args.symmetry,
        "spiralTurns": args.spiral_turns,
        "fingerSize": args.finger_size,
    }
    return {k: v for k, v in raw.items() if v is not None}


def main():
    parser = argparse.ArgumentParser(
        description="Generate sacred-geometry jewelry meshes (ASCII STL)"
    )

    parser.add_argument(
        "--type", dest="jewelry_type", type=str, required=True,
        choices=[t.value for t in JewelryType],
        help="Jewelry type",
    )
    parser.add_argument(
        "--pattern", type=str, default=PatternType.MANDALA.value,
        choices=[p.value for p in PatternType],
        help="Pattern family (default: mandala)",
    )

    # Design parameters (validated against the contract ranges)
    parser.add_argument("--size", type=float, default=None, help="Scale factor 0.5-2.0 (default: 1.0)")
    parser.add_argument("--thickness", type=float, default=None, help="Thickness 0.1-0.5 mm (default: 0.2)")
    parser.add_argument("--complexity", type=float, default=None, help="Complexity 0.1-1.0 (default: 0.7)")
    parser.add_argument("--symmetry", type=int, default=None, help="Symmetry 3-12 (default: 8)")
    parser.add_argument("--spiral-turns", type=int, default=None, help="Spiral turns 1-8 (default: 3)")
    parser.add_argument("--finger-size", type=float, default=None, help="US ring size 4-12 in half sizes")

    # Structure options
    parser.add_argument(
        "--wire-type", type=str, default=WireType.HOOK.value,
        choices=[w.value for w in WireType],
        help="Earring hardware (default: hook)",
    )
    parser.add_argument(
        "--chain-length", type=float, default=18.0,
        help="Necklace chain length in inches (default: 18)",
    )

    # Output options
    parser.add_argument("--name", type=str, default="jewelry", help="Design name")
    parser.add_argument("--runs-dir", type=str, default="runs", help="Run output root")
    parser.add_argument("--binary-stl", action="store_true", help="Also export binary STL")
    parser.add_argument("--glb", action="store_true", help="Also export GLB")
    parser.add_argument("--edges", action="store_true", help="Include wireframe edges in geometry.json")
    parser.add_argument(
        "--validate-only", action="store_true",
        help="Validate parameters, print the price multiplier, and exit",
    )
    parser.add_argument("-v", "--verbose", action="store_true")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    raw_params = _collect_parameters(args)

    if args.validate_only:
        result = validate_parameters(raw_params)
        print(json.dumps(result.to_dict(), indent=2))
        return 0 if result.valid else 1

    request = GenerationRequest(
        jewelry_type=args.jewelry_type,
        pattern_type=args.pattern,
        parameters=raw_params,
        options={
            "chainLength": args.chain_length,
            "wireType": args.wire_type,
        },
        design_name=args.name,
    )
    config = PipelineConfig(
        runs_dir=args.runs_dir,
        export_binary_stl=args.binary_stl,
        export_glb=args.glb,
        include_edges=args.edges,
    )

    try:
        result = run_generation(request, config)
    except ValidationError as e:
        print(f"Error: {e}")
        for err in e.errors:
            print(f"  {err.field}: {err.message}")
        return 1
    except JewelryGenerationError as e:
        print(f"Error: {e}")
        return 1

    # Print results
    box = result.summary["boundingBox"]
    print(f"\nRun ID: {result.run_id}")
    print(f"Jewelry: {args.jewelry_type} ({args.pattern})")
    print(f"Vertices: {result.summary['vertexCount']}")
    print(f"Faces: {result.summary['faceCount']}")
    print(
        "Bounds: "
        f"({box['min']['x']:.2f}, {box['min']['y']:.2f}, {box['min']['z']:.2f}) - "
        f"({box['max']['x']:.2f}, {box['max']['y']:.2f}, {box['max']['z']:.2f})"
    )
    print(f"Price multiplier: {result.price_multiplier:.2f}")

    if result.stl_path:
        print(f"\nSTL: {result.stl_path}")
    if result.binary_stl_path:
        print(f"Binary STL: {result.binary_stl_path}")
    if result.glb_path:
        print(f"GLB: {result.glb_path}")
    print(f"Run folder: {result.run_dir}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
