"""
Single entry point: STL bytes -> volume and bounding box.

Pipeline:
    detect_stl_format -> decode_ascii / decode_binary -> build_mesh
    -> calculate_volume + calculate_mesh_stats

Every MeshError raised along the way is returned inside the VolumeResult;
callers never need a try/except around ``compute_mesh_volume``.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

from mesh_volume.errors import MeshError
from mesh_volume.geometry.mesh import DEFAULT_TOLERANCE, build_mesh, validate_tolerance
from mesh_volume.geometry.mesh_stats import MeshStats, calculate_mesh_stats
from mesh_volume.geometry.volume import calculate_volume
from mesh_volume.io.ascii_decoder import decode_ascii_bytes
from mesh_volume.io.binary_decoder import decode_binary
from mesh_volume.io.stl_format import STLFormat, detect_stl_format, read_solid_name
from mesh_volume.logging_config import log_timing

logger = logging.getLogger(__name__)

BytesLike = Union[bytes, bytearray, memoryview]


@dataclass
class VolumeResult:
    """Outcome of one volume computation.

    ``volume`` is only meaningful when ``success`` is True.
    """
    success: bool
    volume: float = 0.0
    error: Optional[MeshError] = None
    mesh_stats: Optional[MeshStats] = None
    triangle_count: int = 0
    vertex_count: int = 0
    format: Optional[STLFormat] = None
    solid_name: Optional[str] = None
    dropped_facets: int = 0

    @property
    def error_kind(self) -> Optional[str]:
        """Error kind value, or None on success."""
        return self.error.kind.value if self.error else None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'success': self.success,
            'volume': self.volume,
            'error': self.error.to_dict() if self.error else None,
            'mesh_stats': self.mesh_stats.to_dict() if self.mesh_stats else None,
            'triangle_count': self.triangle_count,
            'vertex_count': self.vertex_count,
            'format': self.format.value if self.format else None,
            'solid_name': self.solid_name,
            'dropped_facets': self.dropped_facets,
        }


def compute_mesh_volume(data: BytesLike,
                        tolerance: float = DEFAULT_TOLERANCE) -> VolumeResult:
    """Compute enclosed volume and bounding box of an STL buffer.

    Args:
        data: Complete STL file contents (ASCII or binary)
        tolerance: Vertex dedup step in model units

    Returns:
        VolumeResult; on failure ``success`` is False and ``error`` holds the
        MeshError with its diagnostic details

    Raises:
        TypeError: if ``data`` is not bytes-like
        ValueError: if ``tolerance`` is not a positive number
    """
    if not isinstance(data, (bytes, bytearray, memoryview)):
        raise TypeError(f"Expected bytes-like STL data, got {type(data).__name__}")
    validate_tolerance(tolerance)
    data = bytes(data)

    stl_format: Optional[STLFormat] = None
    try:
        stl_format = detect_stl_format(data)

        with log_timing(logger, "decode", format=stl_format.value) as timing:
            if stl_format is STLFormat.BINARY:
                decoded = decode_binary(data)
            else:
                decoded = decode_ascii_bytes(data)
            timing['triangles'] = decoded.n_triangles

        with log_timing(logger, "build mesh", tolerance=tolerance):
            mesh = build_mesh(decoded.triangles, tolerance)

    except MeshError as exc:
        logger.warning("STL rejected: %s", exc.message,
                       extra={'error_kind': exc.kind.value, 'bytes': len(data)})
        return VolumeResult(success=False, error=exc, format=stl_format)

    volume = calculate_volume(mesh)
    stats = calculate_mesh_stats(mesh.vertices)

    result = VolumeResult(
        success=True,
        volume=volume,
        mesh_stats=stats,
        triangle_count=mesh.n_triangles,
        vertex_count=mesh.n_vertices,
        format=stl_format,
        solid_name=read_solid_name(data, stl_format),
        dropped_facets=decoded.dropped_facets,
    )

    logger.info(
        "Volume %.6g from %d triangles, %d unique vertices (%s)",
        volume, result.triangle_count, result.vertex_count, stl_format.value,
    )
    return result
