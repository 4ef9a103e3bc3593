"""
Enclosed volume by the divergence theorem.

Each triangle (v1, v2, v3) and the origin span a tetrahedron with signed
volume ``v1 . ((v2 - v1) x (v3 - v1)) / 6``. Over a closed surface the signed
volumes sum to the enclosed volume regardless of where the origin lies.

The result is only meaningful for closed, non-self-intersecting meshes.
Nothing here checks that; see ``mesh_volume.io.validator`` for an opt-in
edge report.
"""

import logging

import numpy as np

from mesh_volume.geometry.mesh import Mesh

logger = logging.getLogger(__name__)


def calculate_signed_volume(mesh: Mesh) -> float:
    """Signed mesh volume; negative when triangles wind inward.

    Accumulation is in float64 even when the source file stored float32.

    Args:
        mesh: Built mesh

    Returns:
        Signed volume in model units cubed
    """
    if mesh.n_triangles == 0:
        return 0.0

    v1, v2, v3 = mesh.triangle_vertices()
    cross = np.cross(v2 - v1, v3 - v1)
    triple = np.einsum('ij,ij->i', v1, cross)

    return float(np.sum(triple, dtype=np.float64)) / 6.0


def calculate_volume(mesh: Mesh) -> float:
    """Enclosed mesh volume, independent of winding direction.

    Formula: V = |sum(v1 . ((v2 - v1) x (v3 - v1)))| / 6

    Args:
        mesh: Built mesh

    Returns:
        Non-negative volume in model units cubed
    """
    signed = calculate_signed_volume(mesh)
    if signed < 0:
        logger.debug("Negative signed volume %.6g: inward winding", signed)
    return abs(signed)
