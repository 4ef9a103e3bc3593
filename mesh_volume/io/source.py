"""
Reading STL files from disk with a byte ceiling.

The engine keeps the whole file in memory, so callers reject oversized
inputs before reading them.
"""

import logging
import os
from pathlib import Path
from typing import Optional, Union

from mesh_volume.errors import InputTooLargeError

logger = logging.getLogger(__name__)


def read_stl_bytes(path: Union[str, Path], max_bytes: Optional[int] = None) -> bytes:
    """Read a whole STL file.

    Args:
        path: File to read
        max_bytes: Reject files larger than this; None disables the check

    Returns:
        File contents

    Raises:
        FileNotFoundError: if the file does not exist
        InputTooLargeError: if the file exceeds ``max_bytes``
    """
    path = Path(path)
    size = os.path.getsize(path)

    if max_bytes is not None and size > max_bytes:
        raise InputTooLargeError(limit=max_bytes, actual=size)

    logger.debug("Reading %s (%.1f KB)", path, size / 1024)
    return path.read_bytes()
