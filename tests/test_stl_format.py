"""
Unit tests for mesh_volume.io.stl_format module.

Tests:
- Binary detection by length consistency
- ASCII detection by 'solid' marker
- Binary header starting with 'solid'
- Unrecognized input
- Solid name extraction
"""

import numpy as np
import pytest

from mesh_volume.errors import ErrorKind, UnrecognizedFormatError
from mesh_volume.io.stl_format import (
    STLFormat,
    declared_triangle_count,
    detect_stl_format,
    expected_binary_size,
    has_ascii_marker,
    looks_binary,
    read_solid_name,
)
from mesh_volume.io.stl_writer import write_binary_stl


def _binary_buffer(n_declared: int, n_records: int, header: bytes = b"") -> bytes:
    count = np.array([n_declared], dtype='<u4').tobytes()
    records = b"\x01\x00" * 25 * n_records
    return header.ljust(80, b"\x00") + count + records


class TestHelpers:
    """Tests for size and marker helpers."""

    def test_expected_binary_size(self):
        """Test expected binary size."""
        assert expected_binary_size(0) == 84
        assert expected_binary_size(100) == 5084

    def test_declared_count_short_buffer(self):
        """Test declared count short buffer."""
        assert declared_triangle_count(b"solid") is None

    def test_declared_count_little_endian(self):
        """Test declared count little endian."""
        assert declared_triangle_count(_binary_buffer(258, 0)) == 258

    def test_ascii_marker_case_insensitive(self):
        """Test ASCII marker case insensitive."""
        assert has_ascii_marker(b"SOLID cube")
        assert has_ascii_marker(b"Solid")
        assert not has_ascii_marker(b"soli")
        assert not has_ascii_marker(b"  solid")

    def test_looks_binary(self):
        """Test looks binary."""
        assert looks_binary(b"abc\x00def")
        assert not looks_binary(b"solid x\r\n\tfacet\n")
        assert not looks_binary("solid pièce\n".encode("utf-8"))


class TestDetectFormat:
    """Tests for detect_stl_format."""

    def test_binary_by_length(self, unit_cube_binary):
        """Test binary by length."""
        assert detect_stl_format(unit_cube_binary) == STLFormat.BINARY

    def test_ascii_by_marker(self, unit_cube_ascii):
        """Test ASCII by marker."""
        assert detect_stl_format(unit_cube_ascii) == STLFormat.ASCII

    def test_empty_ascii_solid(self):
        """Test empty ASCII solid."""
        assert detect_stl_format(b"solid x endsolid x") == STLFormat.ASCII

    def test_binary_with_solid_header(self, unit_cube):
        """Length consistency beats the 'solid' text marker."""
        data = write_binary_stl(unit_cube, header=b"solid exported by CAD")
        assert data[:5] == b"solid"
        assert detect_stl_format(data) == STLFormat.BINARY

    def test_truncated_binary_is_binary(self):
        """Test truncated binary is binary."""
        data = _binary_buffer(100, 10)
        assert detect_stl_format(data) == STLFormat.BINARY

    def test_length_inconsistent_solid_header_is_ascii(self):
        """Once the length check fails, the 'solid' marker decides."""
        data = _binary_buffer(100, 10, header=b"solid part")
        assert detect_stl_format(data) == STLFormat.ASCII

    @pytest.mark.parametrize("suffix", [b"\x1a", b"\x00" * 3, b"\x00" * 200])
    def test_ascii_with_control_bytes(self, unit_cube_ascii, suffix):
        """Test a DOS EOF byte or NUL padding does not hide the 'solid' marker."""
        data = unit_cube_ascii + suffix
        assert looks_binary(data)
        assert detect_stl_format(data) == STLFormat.ASCII

    def test_short_ascii_with_control_bytes(self):
        """Test a sub-84-byte ASCII buffer with a trailing NUL."""
        assert detect_stl_format(b"solid x endsolid x\x00") == STLFormat.ASCII

    def test_unrecognized_short_buffer(self):
        """Test unrecognized short buffer."""
        with pytest.raises(UnrecognizedFormatError) as excinfo:
            detect_stl_format(b"hello")
        assert excinfo.value.kind == ErrorKind.UNRECOGNIZED_FORMAT
        assert excinfo.value.length == 5

    def test_unrecognized_plain_text(self):
        """Test unrecognized plain text."""
        text = b"This is not an STL file, just some notes about a ring. " * 4
        with pytest.raises(UnrecognizedFormatError):
            detect_stl_format(text)

    def test_unrecognized_empty(self):
        """Test unrecognized empty."""
        with pytest.raises(UnrecognizedFormatError):
            detect_stl_format(b"")


class TestSolidName:
    """Tests for read_solid_name."""

    def test_ascii_name(self, unit_cube_ascii):
        """Test ASCII name."""
        assert read_solid_name(unit_cube_ascii, STLFormat.ASCII) == "unit_cube"

    def test_ascii_without_name(self):
        """Test ASCII without name."""
        assert read_solid_name(b"solid\nendsolid\n", STLFormat.ASCII) is None

    def test_binary_header_with_solid_prefix(self, unit_cube):
        """Test binary header with solid prefix."""
        data = write_binary_stl(unit_cube, header=b"solid ring_v2")
        assert read_solid_name(data, STLFormat.BINARY) == "ring_v2"

    def test_binary_blank_header(self):
        """Test binary blank header."""
        assert read_solid_name(_binary_buffer(0, 0), STLFormat.BINARY) is None
