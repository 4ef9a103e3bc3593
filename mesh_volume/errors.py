"""
Error taxonomy for the mesh volume engine.

Decoders and the mesh builder raise these exceptions; the orchestrator in
``mesh_volume.engine`` catches them and returns them inside a
``VolumeResult`` instead of letting them escape to the caller.

Every error carries:
- ``kind``: machine-readable ErrorKind
- ``details``: diagnostic fields (offsets, expected vs actual sizes, counts)
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(Enum):
    """Machine-readable error category."""
    UNRECOGNIZED_FORMAT = "unrecognized_format"
    EMPTY_MESH = "empty_mesh"
    TRUNCATED_FILE = "truncated_file"
    MALFORMED_FACET = "malformed_facet"
    INVALID_COORDINATE = "invalid_coordinate"
    INPUT_TOO_LARGE = "input_too_large"


class MeshError(Exception):
    """Base class for all STL decoding and mesh building failures."""

    kind: ErrorKind

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details: Dict[str, Any] = details

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'kind': self.kind.value,
            'message': self.message,
            'details': dict(self.details),
        }


class UnrecognizedFormatError(MeshError):
    """Buffer is neither a length-consistent binary STL nor ASCII STL."""

    kind = ErrorKind.UNRECOGNIZED_FORMAT

    def __init__(self, length: int):
        super().__init__(
            f"Unrecognized STL format ({length} bytes): no consistent binary "
            f"layout and no 'solid' marker",
            length=length,
        )
        self.length = length


class EmptyMeshError(MeshError):
    """Decoding succeeded structurally but produced zero triangles."""

    kind = ErrorKind.EMPTY_MESH

    def __init__(self, format_name: str, dropped_facets: int = 0):
        message = f"{format_name.upper()} STL contains no triangles"
        if dropped_facets:
            message += f" ({dropped_facets} malformed facets dropped)"
        super().__init__(message, format=format_name, dropped_facets=dropped_facets)
        self.dropped_facets = dropped_facets


class TruncatedFileError(MeshError):
    """Binary buffer is shorter than its declared triangle count implies."""

    kind = ErrorKind.TRUNCATED_FILE

    def __init__(self, expected: int, actual: int,
                 declared_triangles: Optional[int] = None):
        super().__init__(
            f"Truncated binary STL: expected {expected} bytes, got {actual}",
            expected=expected,
            actual=actual,
            declared_triangles=declared_triangles,
        )
        self.expected = expected
        self.actual = actual
        self.declared_triangles = declared_triangles


class MalformedFacetError(MeshError):
    """A single ASCII facet could not be parsed.

    Non-fatal: the ASCII decoder records it and moves on to the next facet.
    """

    kind = ErrorKind.MALFORMED_FACET

    def __init__(self, facet_index: int, offset: int, reason: str):
        super().__init__(
            f"Malformed facet #{facet_index} at offset {offset}: {reason}",
            facet_index=facet_index,
            offset=offset,
            reason=reason,
        )
        self.facet_index = facet_index
        self.offset = offset
        self.reason = reason


class InvalidCoordinateError(MeshError):
    """A vertex coordinate is NaN, infinite, or too large to quantize."""

    kind = ErrorKind.INVALID_COORDINATE

    def __init__(self, triangle_index: int, tolerance: float):
        super().__init__(
            f"Triangle #{triangle_index} has a non-finite coordinate or one "
            f"out of range for tolerance {tolerance:g}",
            triangle_index=triangle_index,
            tolerance=tolerance,
        )
        self.triangle_index = triangle_index


class InputTooLargeError(MeshError):
    """Input file exceeds the configured byte ceiling."""

    kind = ErrorKind.INPUT_TOO_LARGE

    def __init__(self, limit: int, actual: int):
        super().__init__(
            f"Input is {actual} bytes, above the {limit} byte limit",
            limit=limit,
            actual=actual,
        )
        self.limit = limit
        self.actual = actual
