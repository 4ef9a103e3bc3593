"""STL format detection, decoding and encoding."""

from mesh_volume.io.ascii_decoder import decode_ascii, decode_ascii_bytes
from mesh_volume.io.binary_decoder import decode_binary
from mesh_volume.io.decoded import DecodedSTL
from mesh_volume.io.stl_format import STLFormat, detect_stl_format

__all__ = [
    "STLFormat",
    "DecodedSTL",
    "detect_stl_format",
    "decode_ascii",
    "decode_ascii_bytes",
    "decode_binary",
]
