"""
Binary STL decoding.

Layout (little-endian):

    [0, 80)     header, opaque
    [80, 84)    uint32 triangle count N
    N x 50 bytes:
        float32[3]     facet normal (unused)
        float32[3][3]  vertices
        uint16         attribute byte count (unused)

A buffer shorter than 84 + 50 * N is rejected; decoding never returns a
partial triangle list.
"""

import logging

import numpy as np

from mesh_volume.errors import EmptyMeshError, TruncatedFileError
from mesh_volume.io.decoded import DecodedSTL
from mesh_volume.io.stl_format import (
    BINARY_PREAMBLE,
    STLFormat,
    declared_triangle_count,
    expected_binary_size,
)

logger = logging.getLogger(__name__)

# Packed record, same field layout numpy-stl uses for Mesh.dtype
FACET_DTYPE = np.dtype([
    ('normals', '<f4', (3,)),
    ('vectors', '<f4', (3, 3)),
    ('attr', '<u2'),
])


def decode_binary(data: bytes) -> DecodedSTL:
    """Decode a binary STL buffer into raw triangles.

    Args:
        data: Full file contents

    Returns:
        DecodedSTL with (N, 3, 3) float32 triangles in file order

    Raises:
        TruncatedFileError: if the buffer is shorter than its declared size
        EmptyMeshError: if the declared triangle count is zero
    """
    n_declared = declared_triangle_count(data)
    if n_declared is None:
        raise TruncatedFileError(expected=BINARY_PREAMBLE, actual=len(data))

    expected = expected_binary_size(n_declared)
    if len(data) < expected:
        raise TruncatedFileError(
            expected=expected,
            actual=len(data),
            declared_triangles=n_declared,
        )

    if n_declared == 0:
        raise EmptyMeshError(STLFormat.BINARY.value)

    records = np.frombuffer(data, dtype=FACET_DTYPE, count=n_declared,
                            offset=BINARY_PREAMBLE)

    trailing = len(data) - expected
    if trailing:
        logger.warning("Binary STL has %d bytes after the last of %d records",
                       trailing, n_declared)

    logger.debug("Binary decode: %d facets", n_declared)
    return DecodedSTL(
        format=STLFormat.BINARY,
        triangles=records['vectors'],
        trailing_bytes=trailing,
    )
