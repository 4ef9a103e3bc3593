"""
Opt-in mesh integrity report.

The volume path never calls this module: a volume is computed for any mesh,
closed or not. Callers that want to know whether the number is trustworthy
ask for a report here.

Checks:
- Closed: every edge is shared by at least two triangles (no boundary edges)
- Manifold: no edge is shared by more than two triangles
- Degenerate triangles: zero area or repeated vertex index

Findings are reported, never raised.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Tuple

import numpy as np

from mesh_volume.geometry.mesh import Mesh

logger = logging.getLogger(__name__)


class ValidationSeverity(Enum):
    """Severity level of validation issues."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass
class ValidationIssue:
    """A single finding in the mesh."""
    code: str
    severity: ValidationSeverity
    message: str
    count: int = 1
    details: List[int] = field(default_factory=list)  # triangle indices

    def __str__(self) -> str:
        return f"[{self.severity.value.upper()}] {self.code}: {self.message}"


@dataclass
class ValidationReport:
    """Integrity report for a mesh."""
    n_vertices: int
    n_triangles: int
    n_edges: int
    n_boundary_edges: int
    n_non_manifold_edges: int
    n_degenerate_triangles: int
    issues: List[ValidationIssue] = field(default_factory=list)

    @property
    def is_closed(self) -> bool:
        return self.n_boundary_edges == 0

    @property
    def is_manifold(self) -> bool:
        return self.n_non_manifold_edges == 0

    @property
    def is_watertight(self) -> bool:
        """Every edge borders exactly two triangles."""
        return self.n_triangles > 0 and self.is_closed and self.is_manifold

    def summary(self) -> str:
        """Generate human-readable summary."""
        lines = [
            "Mesh Validation Report",
            "=" * 40,
            f"Vertices:             {self.n_vertices}",
            f"Triangles:            {self.n_triangles}",
            f"Edges:                {self.n_edges}",
            f"Boundary edges:       {self.n_boundary_edges}",
            f"Non-manifold edges:   {self.n_non_manifold_edges}",
            f"Degenerate triangles: {self.n_degenerate_triangles}",
            f"Watertight:           {'Yes' if self.is_watertight else 'No'}",
        ]
        if self.issues:
            lines.append("")
            lines.append("Issues:")
            lines.extend(f"  - {issue}" for issue in self.issues)
        return "\n".join(lines)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            'n_vertices': self.n_vertices,
            'n_triangles': self.n_triangles,
            'n_edges': self.n_edges,
            'n_boundary_edges': self.n_boundary_edges,
            'n_non_manifold_edges': self.n_non_manifold_edges,
            'n_degenerate_triangles': self.n_degenerate_triangles,
            'is_watertight': self.is_watertight,
            'issues': [
                {'code': i.code, 'severity': i.severity.value,
                 'message': i.message, 'count': i.count}
                for i in self.issues
            ],
        }


def _build_edge_map(triangles: np.ndarray) -> Dict[Tuple[int, int], List[int]]:
    """Map each undirected edge (low, high) to the triangles using it."""
    edge_to_triangles: Dict[Tuple[int, int], List[int]] = defaultdict(list)

    for ti, tri in enumerate(triangles.tolist()):
        for i in range(3):
            a, b = tri[i], tri[(i + 1) % 3]
            if a == b:
                continue
            edge_to_triangles[(min(a, b), max(a, b))].append(ti)

    return edge_to_triangles


def _degenerate_mask(mesh: Mesh, area_threshold: float) -> np.ndarray:
    if mesh.n_triangles == 0:
        return np.zeros(0, dtype=bool)
    tris = mesh.triangles
    repeated = (tris[:, 0] == tris[:, 1]) | (tris[:, 1] == tris[:, 2]) | (tris[:, 0] == tris[:, 2])
    v1, v2, v3 = mesh.triangle_vertices()
    areas = 0.5 * np.linalg.norm(np.cross(v2 - v1, v3 - v1), axis=1)
    return repeated | (areas < area_threshold)


def check_watertight(mesh: Mesh, degenerate_area_threshold: float = 1e-12) -> ValidationReport:
    """Report boundary, non-manifold and degenerate geometry.

    Args:
        mesh: Built mesh
        degenerate_area_threshold: Triangles below this area are degenerate

    Returns:
        ValidationReport with all findings
    """
    edge_map = _build_edge_map(mesh.triangles)

    boundary = [e for e, tris in edge_map.items() if len(tris) == 1]
    non_manifold = [e for e, tris in edge_map.items() if len(tris) > 2]
    degenerate = np.flatnonzero(_degenerate_mask(mesh, degenerate_area_threshold))

    issues: List[ValidationIssue] = []
    if boundary:
        issues.append(ValidationIssue(
            code="BOUNDARY_EDGES",
            severity=ValidationSeverity.ERROR,
            message=f"{len(boundary)} edges border a single triangle (mesh is open)",
            count=len(boundary),
        ))
    if non_manifold:
        issues.append(ValidationIssue(
            code="NON_MANIFOLD_EDGES",
            severity=ValidationSeverity.ERROR,
            message=f"{len(non_manifold)} edges border more than two triangles",
            count=len(non_manifold),
        ))
    if len(degenerate):
        issues.append(ValidationIssue(
            code="DEGENERATE_TRIANGLES",
            severity=ValidationSeverity.WARNING,
            message=f"{len(degenerate)} triangles have zero area",
            count=len(degenerate),
            details=degenerate[:10].tolist(),
        ))

    report = ValidationReport(
        n_vertices=mesh.n_vertices,
        n_triangles=mesh.n_triangles,
        n_edges=len(edge_map),
        n_boundary_edges=len(boundary),
        n_non_manifold_edges=len(non_manifold),
        n_degenerate_triangles=len(degenerate),
        issues=issues,
    )

    for issue in issues:
        logger.warning("%s", issue)
    logger.debug("Watertight check: %s", report.is_watertight)
    return report
