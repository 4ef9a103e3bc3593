"""
Command line entry point: volume of one STL file.

Usage:
    mesh-volume ring.stl
    mesh-volume ring.stl --json
    mesh-volume ring.stl --validate --tolerance 1e-5
    mesh-volume ring.stl --config project.meshvol.json

Exit codes: 0 success, 1 the file was rejected (structured mesh error),
2 bad arguments / configuration or unexpected failure.
"""

import argparse
import json
import logging
import sys
from typing import List, Optional

from mesh_volume.engine import VolumeResult, compute_mesh_volume
from mesh_volume.errors import MeshError
from mesh_volume.geometry.mesh import build_mesh
from mesh_volume.io.ascii_decoder import decode_ascii_bytes
from mesh_volume.io.binary_decoder import decode_binary
from mesh_volume.io.source import read_stl_bytes
from mesh_volume.io.stl_format import STLFormat
from mesh_volume.io.validator import ValidationReport, check_watertight
from mesh_volume.logging_config import LogContext, setup_logging
from mesh_volume.project_config import ProjectConfig, load_config

logger = logging.getLogger(__name__)


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Compute the enclosed volume and bounding box of an STL file.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("stl_file", help="Path to the input STL file (ASCII or binary).")
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the result as JSON (overrides output.format).",
    )
    parser.add_argument(
        "--tolerance", "-t",
        type=float,
        default=None,
        help="Vertex dedup tolerance in model units (default: config or 1e-6).",
    )
    parser.add_argument(
        "--max-bytes",
        type=int,
        default=None,
        dest="max_bytes",
        help="Reject files larger than this many bytes (default: config).",
    )
    parser.add_argument(
        "--validate",
        action="store_true",
        help="Also report whether the mesh is watertight.",
    )
    parser.add_argument(
        "--config", "-c",
        default=None,
        help="Path to a .meshvol.json configuration file.",
    )
    parser.add_argument(
        "--log-json",
        default=None,
        dest="log_json",
        help="Write JSON-lines logs to this file.",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable DEBUG logging.",
    )
    return parser.parse_args(argv)


def _apply_args(config: ProjectConfig, args: argparse.Namespace) -> ProjectConfig:
    if args.tolerance is not None:
        config.engine.dedup_tolerance = args.tolerance
    if args.max_bytes is not None:
        config.limits.max_file_bytes = args.max_bytes
    if args.json:
        config.output.format = "json"
    if args.log_json:
        config.logging.json_file = args.log_json
    if args.verbose:
        config.logging.level = "DEBUG"
    return config.validate()


def _validation_report(data: bytes, result: VolumeResult, tolerance: float) -> ValidationReport:
    if result.format is STLFormat.BINARY:
        decoded = decode_binary(data)
    else:
        decoded = decode_ascii_bytes(data)
    return check_watertight(build_mesh(decoded.triangles, tolerance))


def format_text(result: VolumeResult, decimals: int = 3) -> str:
    """Human-readable rendering of a VolumeResult."""
    if not result.success:
        return f"ERROR [{result.error_kind}]: {result.error.message}"

    lines = [
        f"Format:       {result.format.value}",
        f"Solid name:   {result.solid_name or '-'}",
        f"Triangles:    {result.triangle_count:,}",
        f"Vertices:     {result.vertex_count:,}",
    ]
    if result.dropped_facets:
        lines.append(f"Dropped:      {result.dropped_facets} malformed facets")
    lines.append(f"Volume:       {result.volume:.{decimals}f}")
    lines.append(result.mesh_stats.summary())
    return "\n".join(lines)


def main(argv: Optional[List[str]] = None) -> int:
    args = _parse_args(argv)

    try:
        config = _apply_args(
            load_config(stl_path=args.stl_file, explicit_config=args.config), args
        )
    except ValueError as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return 2

    setup_logging(
        level=config.logging.level,
        json_file=config.logging.json_file,
        use_colors=config.logging.use_colors,
    )

    with LogContext(file=args.stl_file):
        try:
            data = read_stl_bytes(args.stl_file, config.limits.max_file_bytes)
        except MeshError as exc:
            result = VolumeResult(success=False, error=exc)
            data = b""
        except OSError as exc:
            logger.critical("Cannot read %s: %s", args.stl_file, exc)
            return 2
        else:
            result = compute_mesh_volume(data, config.engine.dedup_tolerance)

        report = None
        if args.validate and result.success:
            report = _validation_report(data, result, config.engine.dedup_tolerance)

    if config.output.format == "json":
        payload = result.to_dict()
        if report is not None:
            payload['validation'] = report.to_dict()
        print(json.dumps(payload, indent=2, ensure_ascii=False))
    else:
        print(format_text(result, config.output.decimals))
        if report is not None:
            print()
            print(report.summary())

    return 0 if result.success else 1


if __name__ == "__main__":
    sys.exit(main())
