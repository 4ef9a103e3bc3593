"""
Mesh construction from raw triangles.

Vertices that coincide within a tolerance are merged. Each coordinate is
quantized independently (``round(c / tolerance)``) and the three
integer-valued floats form the dictionary key, so the first-seen vertex of
each cell is kept with its original, unrounded coordinates.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, NamedTuple, Tuple

import numpy as np
from numpy.typing import ArrayLike, NDArray

from mesh_volume.errors import InvalidCoordinateError

logger = logging.getLogger(__name__)

DEFAULT_TOLERANCE = 1e-6


class Vertex(NamedTuple):
    """Immutable 3D point."""
    x: float
    y: float
    z: float


@dataclass(frozen=True, eq=False)
class Mesh:
    """Deduplicated triangle mesh.

    Attributes:
        vertices: (N, 3) float64 array, first-seen order
        triangles: (M, 3) int32 array of indices into ``vertices``
    """
    vertices: NDArray[np.float64]
    triangles: NDArray[np.int32]

    def __post_init__(self) -> None:
        # Frozen copies; the caller's arrays stay writable
        vertices = np.array(self.vertices, dtype=np.float64)
        triangles = np.array(self.triangles, dtype=np.int32)
        vertices.setflags(write=False)
        triangles.setflags(write=False)
        object.__setattr__(self, 'vertices', vertices)
        object.__setattr__(self, 'triangles', triangles)

    @property
    def n_vertices(self) -> int:
        return len(self.vertices)

    @property
    def n_triangles(self) -> int:
        return len(self.triangles)

    def vertex(self, index: int) -> Vertex:
        """Return vertex ``index`` as an immutable Vertex."""
        x, y, z = self.vertices[index]
        return Vertex(float(x), float(y), float(z))

    def triangle_vertices(self) -> Tuple[NDArray[np.float64], NDArray[np.float64], NDArray[np.float64]]:
        """Corner coordinates of every triangle as three (M, 3) arrays."""
        return (
            self.vertices[self.triangles[:, 0]],
            self.vertices[self.triangles[:, 1]],
            self.vertices[self.triangles[:, 2]],
        )

    def translated(self, offset: ArrayLike) -> 'Mesh':
        """Return a copy moved by ``offset`` (x, y, z)."""
        shift = np.asarray(offset, dtype=np.float64).reshape(3)
        return Mesh(self.vertices + shift, self.triangles)

    def reversed_winding(self) -> 'Mesh':
        """Return a copy with the vertex order of every triangle reversed."""
        return Mesh(self.vertices, self.triangles[:, ::-1])


def quantize(points: ArrayLike, tolerance: float = DEFAULT_TOLERANCE) -> NDArray[np.float64]:
    """Map coordinates onto the grid used for dedup keys.

    Cell indices stay float64 so large coordinates never hit an integer
    range limit; equal indices compare and hash equal as Python floats.

    Args:
        points: (..., 3) coordinates
        tolerance: Grid cell size in model units

    Returns:
        Integer-valued float64 array of the same shape

    Raises:
        ValueError: if a coordinate is not finite, or so large that its cell
            index overflows float64 (about 1.8e302 at the default tolerance)
    """
    with np.errstate(over='ignore', invalid='ignore'):
        scaled = np.rint(np.asarray(points, dtype=np.float64) / tolerance)
    if not np.all(np.isfinite(scaled)):
        raise ValueError("coordinate cannot be quantized")
    return scaled


def validate_tolerance(tolerance: float) -> None:
    if not np.isfinite(tolerance) or tolerance <= 0:
        raise ValueError(f"Dedup tolerance must be a positive number, got {tolerance!r}")


def build_mesh(triangles: ArrayLike, tolerance: float = DEFAULT_TOLERANCE) -> Mesh:
    """Build a deduplicated mesh from raw triangles.

    Args:
        triangles: (M, 3, 3) array, three (x, y, z) corners per triangle,
            float32 or float64
        tolerance: Coordinates equal after rounding to this step are merged

    Returns:
        Mesh with M triangles and the unique vertices in first-seen order

    Raises:
        ValueError: if ``tolerance`` is not a positive number or the input
            shape is wrong
        InvalidCoordinateError: if a coordinate is NaN or infinite, or its grid
            index overflows float64
    """
    validate_tolerance(tolerance)

    raw = np.asarray(triangles)
    if raw.size == 0:
        raw = raw.reshape(0, 3, 3)
    if raw.ndim != 3 or raw.shape[1:] != (3, 3):
        raise ValueError(f"Expected (M, 3, 3) triangles, got shape {raw.shape}")

    corners = raw.reshape(-1, 3).astype(np.float64)
    try:
        keys = quantize(corners, tolerance)
    except ValueError:
        with np.errstate(over='ignore', invalid='ignore'):
            bad = ~np.all(np.isfinite(corners / tolerance), axis=1)
        raise InvalidCoordinateError(int(np.argmax(bad)) // 3, tolerance) from None

    index_by_key: Dict[Tuple[float, float, float], int] = {}
    unique_rows: List[int] = []
    corner_indices = np.empty(len(corners), dtype=np.int32)

    for row, key in enumerate(map(tuple, keys.tolist())):
        index = index_by_key.get(key)
        if index is None:
            index = len(unique_rows)
            index_by_key[key] = index
            unique_rows.append(row)
        corner_indices[row] = index

    vertices = corners[unique_rows] if unique_rows else np.zeros((0, 3), dtype=np.float64)
    mesh = Mesh(
        vertices=np.ascontiguousarray(vertices, dtype=np.float64),
        triangles=corner_indices.reshape(-1, 3),
    )

    logger.debug(
        "Mesh built: %d raw corners -> %d unique vertices, %d triangles",
        len(corners), mesh.n_vertices, mesh.n_triangles,
        extra={'tolerance': tolerance},
    )
    return mesh
