"""
ASCII STL decoding.

Accepted grammar (case-insensitive, any whitespace between tokens):

    solid [name]
      facet normal nx ny nz
        outer loop
          vertex x y z
          vertex x y z
          vertex x y z
        endloop
      endfacet
    endsolid [name]

A facet that does not parse is dropped and decoding continues with the next
one. Zero well-formed facets is an error, not an empty success.
"""

import logging
import math
import re
from typing import Iterator, List, Optional, Tuple

import numpy as np

from mesh_volume.errors import EmptyMeshError, MalformedFacetError
from mesh_volume.io.decoded import DecodedSTL
from mesh_volume.io.stl_format import STLFormat

logger = logging.getLogger(__name__)

_TOKEN_RE = re.compile(r'\S+')
_NUMBER_RE = re.compile(r'[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?\Z')

# Individual warnings per file; the rest go to DEBUG
MAX_FACET_WARNINGS = 5

Point = Tuple[float, float, float]


class _FacetSyntaxError(ValueError):
    """Raised inside a facet body; converted to MalformedFacetError."""


def _parse_number(token: str) -> float:
    if not _NUMBER_RE.match(token):
        raise _FacetSyntaxError(f"{token!r} is not a number")
    value = float(token)
    if not math.isfinite(value):
        raise _FacetSyntaxError(f"{token!r} overflows a float")
    return value


def _split_facets(text: str) -> Iterator[Tuple[int, List[str], bool]]:
    """Group tokens into facet bodies.

    Yields:
        (offset of 'facet', tokens after 'facet', terminated by 'endfacet')
    """
    tokens = [(m.start(), m.group()) for m in _TOKEN_RE.finditer(text)]
    start = 0
    body: Optional[List[str]] = None
    # End of the current 'solid <name>' line; a name may itself be "facet"
    name_line_end = -1

    for i, (offset, token) in enumerate(tokens):
        word = token.lower()

        if word == 'facet':
            if offset < name_line_end and body is None:
                next_word = tokens[i + 1][1].lower() if i + 1 < len(tokens) else ''
                if next_word != 'normal':
                    continue
            if body is not None:
                yield start, body, False
            start, body = offset, []
        elif word == 'endfacet':
            if body is not None:
                yield start, body, True
                body = None
        elif word in ('solid', 'endsolid'):
            if body is not None:
                yield start, body, False
                body = None
            line_end = text.find('\n', offset)
            name_line_end = len(text) if line_end < 0 else line_end
        elif body is not None:
            body.append(token)

    if body is not None:
        yield start, body, False


def _parse_facet(body: List[str]) -> Tuple[Point, Point, Point]:
    """Parse the tokens between 'facet' and 'endfacet'.

    Normal components are not validated; the volume does not use them.
    """
    if len(body) < 6 or body[0].lower() != 'normal':
        raise _FacetSyntaxError("missing 'normal nx ny nz'")
    if body[4].lower() != 'outer' or body[5].lower() != 'loop':
        raise _FacetSyntaxError("missing 'outer loop'")

    vertices: List[Point] = []
    idx = 6
    while idx < len(body) and body[idx].lower() == 'vertex':
        coords = body[idx + 1:idx + 4]
        if len(coords) < 3:
            raise _FacetSyntaxError("vertex record has fewer than 3 coordinates")
        x, y, z = (_parse_number(c) for c in coords)
        vertices.append((x, y, z))
        idx += 4

    if idx >= len(body) or body[idx].lower() != 'endloop':
        found = body[idx] if idx < len(body) else 'end of facet'
        raise _FacetSyntaxError(f"expected 'endloop', found {found!r}")
    if idx != len(body) - 1:
        raise _FacetSyntaxError(f"unexpected token {body[idx + 1]!r} after 'endloop'")
    if len(vertices) != 3:
        raise _FacetSyntaxError(f"expected 3 vertices, found {len(vertices)}")

    return vertices[0], vertices[1], vertices[2]


def decode_ascii(text: str) -> DecodedSTL:
    """Decode ASCII STL text into raw triangles.

    Args:
        text: Full file contents as text

    Returns:
        DecodedSTL with (M, 3, 3) float64 triangles in file order and the
        list of dropped facets

    Raises:
        EmptyMeshError: if no well-formed facet was found
    """
    triangles: List[Tuple[Point, Point, Point]] = []
    malformed: List[MalformedFacetError] = []

    for facet_index, (offset, body, terminated) in enumerate(_split_facets(text)):
        try:
            if not terminated:
                raise _FacetSyntaxError("facet is not closed by 'endfacet'")
            triangles.append(_parse_facet(body))
        except _FacetSyntaxError as exc:
            error = MalformedFacetError(facet_index, offset, str(exc))
            malformed.append(error)
            level = logging.WARNING if len(malformed) <= MAX_FACET_WARNINGS else logging.DEBUG
            logger.log(level, "Dropping %s", error.message)

    if malformed:
        logger.warning("Dropped %d malformed facets, kept %d",
                       len(malformed), len(triangles))

    if not triangles:
        raise EmptyMeshError(STLFormat.ASCII.value, dropped_facets=len(malformed))

    decoded = DecodedSTL(
        format=STLFormat.ASCII,
        triangles=np.array(triangles, dtype=np.float64).reshape(-1, 3, 3),
        malformed=malformed,
    )
    logger.debug("ASCII decode: %d facets", decoded.n_triangles)
    return decoded


def decode_ascii_bytes(data: bytes) -> DecodedSTL:
    """Decode a raw ASCII STL buffer (UTF-8, undecodable bytes replaced)."""
    return decode_ascii(bytes(data).decode('utf-8', errors='replace'))
