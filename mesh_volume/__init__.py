"""
mesh_volume: enclosed volume and bounding box of STL meshes.

Entry point: ``compute_mesh_volume(data)`` takes the raw bytes of an ASCII or
binary STL file and returns a ``VolumeResult``.
"""

from mesh_volume.engine import VolumeResult, compute_mesh_volume
from mesh_volume.errors import (
    EmptyMeshError,
    ErrorKind,
    InputTooLargeError,
    InvalidCoordinateError,
    MalformedFacetError,
    MeshError,
    TruncatedFileError,
    UnrecognizedFormatError,
)
from mesh_volume.logging_config import (
    setup_logging,
    get_logger,
    log_timing,
    timed,
    LogContext,
)

__version__ = "1.0.0"

__all__ = [
    "compute_mesh_volume",
    "VolumeResult",
    "ErrorKind",
    "MeshError",
    "UnrecognizedFormatError",
    "EmptyMeshError",
    "TruncatedFileError",
    "MalformedFacetError",
    "InvalidCoordinateError",
    "InputTooLargeError",
    "setup_logging",
    "get_logger",
    "log_timing",
    "timed",
    "LogContext",
]
