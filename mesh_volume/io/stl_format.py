"""
STL format autodetection on an in-memory buffer.

Binary length consistency is checked first: an 80-byte binary header may
legally start with the word "solid", so the ASCII marker alone is not proof
of an ASCII file.
"""

import logging
from enum import Enum
from typing import Optional

import numpy as np

from mesh_volume.errors import UnrecognizedFormatError

logger = logging.getLogger(__name__)

HEADER_SIZE = 80
COUNT_SIZE = 4
BINARY_PREAMBLE = HEADER_SIZE + COUNT_SIZE  # 84
FACET_RECORD_SIZE = 50

ASCII_MARKER = b"solid"

# Bytes scanned when deciding whether a buffer is text
SNIFF_WINDOW = 4096

# Control bytes that never appear in a text STL (whitespace excluded)
_CONTROL_BYTES = bytes(
    b for b in range(0x20) if b not in (0x09, 0x0A, 0x0B, 0x0C, 0x0D)
) + b"\x7f"


class STLFormat(Enum):
    """STL file format type."""
    BINARY = "binary"
    ASCII = "ascii"


def declared_triangle_count(data: bytes) -> Optional[int]:
    """Read the little-endian uint32 triangle count at offset 80.

    Returns:
        Declared count, or None if the buffer is shorter than 84 bytes
    """
    if len(data) < BINARY_PREAMBLE:
        return None
    return int(np.frombuffer(data, dtype='<u4', count=1, offset=HEADER_SIZE)[0])


def expected_binary_size(n_triangles: int) -> int:
    """Byte size of a binary STL holding ``n_triangles`` facets."""
    return BINARY_PREAMBLE + FACET_RECORD_SIZE * n_triangles


def has_ascii_marker(data: bytes) -> bool:
    """True if the buffer starts with 'solid' (case-insensitive)."""
    return bytes(data[:len(ASCII_MARKER)]).lower() == ASCII_MARKER


def looks_binary(data: bytes) -> bool:
    """True if the sniff window contains control bytes impossible in text."""
    window = bytes(data[:SNIFF_WINDOW])
    return len(window.translate(None, _CONTROL_BYTES)) != len(window)


def detect_stl_format(data: bytes) -> STLFormat:
    """Classify a buffer as binary or ASCII STL.

    Order of checks:
    1. ``84 + 50 * N == len(data)`` -> BINARY, even with a 'solid' header
    2. 'solid' marker -> ASCII; stray control bytes such as a DOS ``\\x1a``
       end-of-file byte or NUL padding do not override it
    3. >= 84 bytes with control bytes -> BINARY, the decoder reports the
       size mismatch
    4. otherwise the format is unrecognized

    Args:
        data: Raw file contents

    Returns:
        STLFormat.BINARY or STLFormat.ASCII

    Raises:
        UnrecognizedFormatError: if neither signal is conclusive
    """
    n_declared = declared_triangle_count(data)
    if n_declared is not None and expected_binary_size(n_declared) == len(data):
        logger.debug("Binary STL: %d triangles, length consistent", n_declared)
        return STLFormat.BINARY

    if has_ascii_marker(data):
        logger.debug("ASCII STL: 'solid' marker found")
        return STLFormat.ASCII

    if n_declared is not None and looks_binary(data):
        logger.debug(
            "Binary STL by content: declared %d triangles, %d bytes present",
            n_declared, len(data),
        )
        return STLFormat.BINARY

    raise UnrecognizedFormatError(len(data))


def read_solid_name(data: bytes, stl_format: STLFormat) -> Optional[str]:
    """Extract the solid name from an ASCII first line or a binary header.

    Args:
        data: Raw file contents
        stl_format: Detected format

    Returns:
        Solid name, or None if absent
    """
    if stl_format is STLFormat.ASCII:
        first_line = bytes(data[:SNIFF_WINDOW]).split(b"\n", 1)[0]
        text = first_line.decode('utf-8', errors='replace').strip()
        return text[len(ASCII_MARKER):].strip() or None

    header = bytes(data[:HEADER_SIZE]).split(b"\x00", 1)[0]
    text = header.decode('ascii', errors='ignore').strip()
    if text.lower().startswith('solid'):
        text = text[5:].strip()
    return text or None
