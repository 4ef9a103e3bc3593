"""
Pytest configuration and fixtures for the mesh volume engine.

Provides:
- Analytic shapes as raw (M, 3, 3) triangle arrays (cube, tetrahedron, cylinder)
- The same shapes encoded as binary STL (via numpy-stl) and ASCII STL
- STL files on disk for batch / CLI tests
"""

import logging
from pathlib import Path

import numpy as np
import pytest
from stl import Mode
from stl import mesh as stl_mesh

from mesh_volume.logging_config import PACKAGE_LOGGER


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Undo setup_logging() so caplog sees package records in every test."""
    yield
    logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True

# ============================================================================
# Shape builders
# ============================================================================

CUBE_CORNERS = np.array([
    [0, 0, 0], [1, 0, 0], [1, 1, 0], [0, 1, 0],  # bottom
    [0, 0, 1], [1, 0, 1], [1, 1, 1], [0, 1, 1],  # top
], dtype=np.float64)

# Outward-facing (counter-clockwise seen from outside)
CUBE_FACES = [
    [0, 2, 1], [0, 3, 2],  # bottom
    [4, 5, 6], [4, 6, 7],  # top
    [0, 1, 5], [0, 5, 4],  # front
    [2, 3, 7], [2, 7, 6],  # back
    [0, 4, 7], [0, 7, 3],  # left
    [1, 2, 6], [1, 6, 5],  # right
]


def cube_triangles(size: float = 1.0, origin=(0.0, 0.0, 0.0)) -> np.ndarray:
    """Closed axis-aligned cube as (12, 3, 3) triangles."""
    corners = CUBE_CORNERS * size + np.asarray(origin, dtype=np.float64)
    return np.array([[corners[i] for i in face] for face in CUBE_FACES])


def tetrahedron_triangles(a: float = 3.0, b: float = 4.0, c: float = 5.0) -> np.ndarray:
    """Right-corner tetrahedron with legs a, b, c; volume a*b*c/6."""
    o = [0.0, 0.0, 0.0]
    x = [a, 0.0, 0.0]
    y = [0.0, b, 0.0]
    z = [0.0, 0.0, c]
    return np.array([
        [o, y, x],
        [o, x, z],
        [o, z, y],
        [x, y, z],
    ])


def cylinder_triangles(radius: float = 5.0, height: float = 20.0,
                       segments: int = 32) -> np.ndarray:
    """Closed prism approximating a cylinder."""
    angles = np.linspace(0, 2 * np.pi, segments, endpoint=False)
    h2 = height / 2
    top = np.column_stack([radius * np.cos(angles), radius * np.sin(angles),
                           np.full(segments, h2)])
    bot = np.column_stack([radius * np.cos(angles), radius * np.sin(angles),
                           np.full(segments, -h2)])

    triangles = []
    for i in range(segments):
        j = (i + 1) % segments
        triangles.append([bot[i], bot[j], top[j]])
        triangles.append([bot[i], top[j], top[i]])
        triangles.append([top[i], top[j], [0, 0, h2]])
        triangles.append([bot[j], bot[i], [0, 0, -h2]])
    return np.array(triangles)


def polygon_prism_volume(radius: float, height: float, segments: int) -> float:
    """Exact volume of the regular-polygon prism built by cylinder_triangles."""
    return 0.5 * segments * radius ** 2 * np.sin(2 * np.pi / segments) * height


# ============================================================================
# Encoders
# ============================================================================

def binary_stl_bytes(triangles: np.ndarray, tmp_path: Path, name: str = "mesh") -> bytes:
    """Encode triangles as binary STL with numpy-stl."""
    m = stl_mesh.Mesh(np.zeros(len(triangles), dtype=stl_mesh.Mesh.dtype))
    for i, tri in enumerate(triangles):
        m.vectors[i] = tri
    m.update_normals()
    path = tmp_path / f"{name}.stl"
    m.save(str(path), mode=Mode.BINARY)
    return path.read_bytes()


def ascii_stl_bytes(triangles: np.ndarray, name: str = "mesh") -> bytes:
    """Encode triangles as ASCII STL by hand."""
    lines = [f"solid {name}"]
    for tri in triangles:
        v0, v1, v2 = (np.asarray(v, dtype=np.float64) for v in tri)
        normal = np.cross(v1 - v0, v2 - v0)
        norm = np.linalg.norm(normal)
        if norm > 1e-12:
            normal = normal / norm
        lines.append(f"  facet normal {normal[0]:e} {normal[1]:e} {normal[2]:e}")
        lines.append("    outer loop")
        for v in (v0, v1, v2):
            lines.append(f"      vertex {v[0]:.10e} {v[1]:.10e} {v[2]:.10e}")
        lines.append("    endloop")
        lines.append("  endfacet")
    lines.append(f"endsolid {name}")
    return ("\n".join(lines) + "\n").encode("ascii")


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def unit_cube() -> np.ndarray:
    return cube_triangles(1.0)


@pytest.fixture
def tetrahedron() -> np.ndarray:
    return tetrahedron_triangles()


@pytest.fixture
def unit_cube_binary(unit_cube, tmp_path) -> bytes:
    return binary_stl_bytes(unit_cube, tmp_path, "unit_cube")


@pytest.fixture
def unit_cube_ascii(unit_cube) -> bytes:
    return ascii_stl_bytes(unit_cube, "unit_cube")


@pytest.fixture
def cube2_binary(tmp_path) -> bytes:
    return binary_stl_bytes(cube_triangles(2.0), tmp_path, "cube2")


@pytest.fixture
def stl_folder(tmp_path, unit_cube) -> Path:
    """Folder with two good files and one broken file."""
    folder = tmp_path / "models"
    folder.mkdir()
    (folder / "cube.stl").write_bytes(ascii_stl_bytes(unit_cube, "cube"))
    (folder / "tetra.STL").write_bytes(
        binary_stl_bytes(tetrahedron_triangles(), tmp_path, "tetra"))
    (folder / "broken.stl").write_bytes(b"solid broken\nendsolid broken\n")
    (folder / "notes.txt").write_text("not an stl")
    return folder
