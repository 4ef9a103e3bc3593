"""Geometry module: mesh building, volume and bounding box statistics."""

from mesh_volume.geometry.mesh import (
    DEFAULT_TOLERANCE,
    Mesh,
    Vertex,
    build_mesh,
)
from mesh_volume.geometry.mesh_stats import MeshStats, calculate_mesh_stats
from mesh_volume.geometry.volume import calculate_signed_volume, calculate_volume

__all__ = [
    "DEFAULT_TOLERANCE",
    "Mesh",
    "Vertex",
    "build_mesh",
    "MeshStats",
    "calculate_mesh_stats",
    "calculate_volume",
    "calculate_signed_volume",
]
