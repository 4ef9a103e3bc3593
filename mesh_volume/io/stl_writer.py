"""
STL serialization of raw triangles.

Produces the two encodings the decoders read. Normals are derived from the
winding order of each triangle (zero for degenerate triangles).
"""

import logging
from typing import List

import numpy as np
from numpy.typing import ArrayLike, NDArray

from mesh_volume.io.binary_decoder import FACET_DTYPE
from mesh_volume.io.stl_format import HEADER_SIZE

logger = logging.getLogger(__name__)


def _as_triangles(triangles: ArrayLike) -> NDArray[np.float64]:
    arr = np.asarray(triangles, dtype=np.float64)
    if arr.ndim != 3 or arr.shape[1:] != (3, 3):
        raise ValueError(f"Expected (M, 3, 3) triangles, got shape {arr.shape}")
    return arr


def _fmt(point: NDArray[np.float64]) -> str:
    # repr() of a Python float round-trips exactly
    return " ".join(repr(float(c)) for c in point)


def facet_normals(triangles: ArrayLike) -> NDArray[np.float64]:
    """Unit normals following the right-hand rule on each triangle.

    Args:
        triangles: (M, 3, 3) array of vertex coordinates

    Returns:
        (M, 3) array of unit normals
    """
    arr = _as_triangles(triangles)
    cross = np.cross(arr[:, 1] - arr[:, 0], arr[:, 2] - arr[:, 0])
    norms = np.linalg.norm(cross, axis=1, keepdims=True)
    norms = np.where(norms < 1e-12, 1.0, norms)
    return cross / norms


def write_ascii_stl(triangles: ArrayLike, name: str = "mesh") -> bytes:
    """Serialize triangles as ASCII STL.

    Args:
        triangles: (M, 3, 3) array of vertex coordinates
        name: Solid name written after 'solid' / 'endsolid'

    Returns:
        Encoded file contents
    """
    arr = _as_triangles(triangles)
    normals = facet_normals(arr)

    lines: List[str] = [f"solid {name}"]
    for normal, tri in zip(normals, arr):
        lines.append(f"  facet normal {_fmt(normal)}")
        lines.append("    outer loop")
        for v in tri:
            lines.append(f"      vertex {_fmt(v)}")
        lines.append("    endloop")
        lines.append("  endfacet")
    lines.append(f"endsolid {name}")

    return ("\n".join(lines) + "\n").encode('ascii')


def write_binary_stl(triangles: ArrayLike, header: bytes = b"") -> bytes:
    """Serialize triangles as binary STL (coordinates stored as float32).

    Args:
        triangles: (M, 3, 3) array of vertex coordinates
        header: Up to 80 header bytes, NUL-padded

    Returns:
        Encoded file contents
    """
    if len(header) > HEADER_SIZE:
        raise ValueError(f"Header is {len(header)} bytes, limit is {HEADER_SIZE}")

    arr = _as_triangles(triangles)
    records = np.zeros(len(arr), dtype=FACET_DTYPE)
    records['normals'] = facet_normals(arr)
    records['vectors'] = arr

    count = np.array([len(arr)], dtype='<u4')
    logger.debug("Writing binary STL: %d facets", len(arr))
    return header.ljust(HEADER_SIZE, b"\x00") + count.tobytes() + records.tobytes()
