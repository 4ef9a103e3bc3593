"""Raw facet container shared by the ASCII and binary decoders."""

from dataclasses import dataclass, field
from typing import List

import numpy as np
from numpy.typing import NDArray

from mesh_volume.errors import MalformedFacetError
from mesh_volume.io.stl_format import STLFormat


@dataclass
class DecodedSTL:
    """Triangles decoded from one STL buffer, in file order.

    Attributes:
        format: Encoding the triangles came from
        triangles: (M, 3, 3) array, one row of three (x, y, z) per facet
        malformed: ASCII facets that were dropped
        trailing_bytes: Unused bytes after the last binary record
    """
    format: STLFormat
    triangles: NDArray[np.floating]
    malformed: List[MalformedFacetError] = field(default_factory=list)
    trailing_bytes: int = 0

    @property
    def n_triangles(self) -> int:
        """Number of well-formed facets."""
        return len(self.triangles)

    @property
    def dropped_facets(self) -> int:
        """Number of facets skipped as malformed."""
        return len(self.malformed)
