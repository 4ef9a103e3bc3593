"""
Mesh statistics calculation module.

Provides:
- Axis-aligned bounding box (min / max corners)
- Per-axis extents (width, height, depth)
- Bounding box center
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict

import numpy as np
from numpy.typing import ArrayLike

from mesh_volume.geometry.mesh import Vertex

logger = logging.getLogger(__name__)

_ORIGIN = Vertex(0.0, 0.0, 0.0)


@dataclass(frozen=True)
class MeshStats:
    """Axis-aligned bounding box statistics.

    Attributes:
        min: Minimum corner (x_min, y_min, z_min)
        max: Maximum corner (x_max, y_max, z_max)
    """
    min: Vertex
    max: Vertex

    @property
    def width(self) -> float:
        """X-axis extent."""
        return self.max.x - self.min.x

    @property
    def height(self) -> float:
        """Y-axis extent."""
        return self.max.y - self.min.y

    @property
    def depth(self) -> float:
        """Z-axis extent."""
        return self.max.z - self.min.z

    @property
    def dimensions(self) -> Vertex:
        """(width, height, depth)."""
        return Vertex(self.width, self.height, self.depth)

    @property
    def center(self) -> Vertex:
        """Midpoint of the box."""
        return Vertex(
            (self.min.x + self.max.x) / 2,
            (self.min.y + self.max.y) / 2,
            (self.min.z + self.max.z) / 2,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'bounding_box': {
                'min': self.min._asdict(),
                'max': self.max._asdict(),
            },
            'dimensions': {
                'width': self.width,
                'height': self.height,
                'depth': self.depth,
            },
            'center': self.center._asdict(),
        }

    def summary(self) -> str:
        """Generate human-readable summary."""
        c = self.center
        return "\n".join([
            f"Dimensions:   {self.width:.3f} x {self.height:.3f} x {self.depth:.3f}",
            f"Min:          ({self.min.x:.3f}, {self.min.y:.3f}, {self.min.z:.3f})",
            f"Max:          ({self.max.x:.3f}, {self.max.y:.3f}, {self.max.z:.3f})",
            f"Center:       ({c.x:.3f}, {c.y:.3f}, {c.z:.3f})",
        ])


def calculate_mesh_stats(vertices: ArrayLike) -> MeshStats:
    """Calculate bounding box statistics for vertices.

    Args:
        vertices: (N, 3) array of vertex coordinates

    Returns:
        MeshStats; all zero when there are no vertices
    """
    points = np.asarray(vertices, dtype=np.float64).reshape(-1, 3)
    if len(points) == 0:
        return MeshStats(min=_ORIGIN, max=_ORIGIN)

    lo = points.min(axis=0)
    hi = points.max(axis=0)
    stats = MeshStats(
        min=Vertex(float(lo[0]), float(lo[1]), float(lo[2])),
        max=Vertex(float(hi[0]), float(hi[1]), float(hi[2])),
    )

    logger.debug(
        "Mesh statistics calculated",
        extra={'vertices': len(points), 'dimensions': list(stats.dimensions)},
    )
    return stats
