"""Volume enclosed by a closed surface, measured from the origin.

Each triangle is the base of the tetrahedron ``(0, x0, x1, x2)``:

    E_face = |<x0 x x1, x2>| / 6
"""

from __future__ import annotations

import numpy as np

from geometry.mesh import MESH_GRADE_AREA, Mesh
from geometry.vector_ops import vec_cross, vec_dot
from modules.energy.base import (
    Functional,
    GeometricReference,
    add_to_column,
    resolve_common,
)


def integrand(mesh: Mesh, element_id: int, vertex_ids: np.ndarray, ref=None) -> float:
    x0, x1, x2 = (mesh.get_vertex(v) for v in vertex_ids[:3])
    return abs(vec_dot(vec_cross(x0, x1), x2)) / 6.0


def gradient(
    mesh: Mesh, element_id: int, vertex_ids: np.ndarray, ref, frc: np.ndarray
) -> None:
    x0, x1, x2 = (mesh.get_vertex(v) for v in vertex_ids[:3])
    cx = vec_cross(x0, x1)
    # A face through the origin has no orientation; it gets no force.
    sign = float(np.sign(vec_dot(cx, x2)))

    add_to_column(frc, vertex_ids[2], sign / 6.0, cx)
    add_to_column(frc, vertex_ids[0], sign / 6.0, vec_cross(x1, x2))
    add_to_column(frc, vertex_ids[1], sign / 6.0, vec_cross(x2, x0))


def build_functional(global_params=None, **options) -> Functional:
    _, eps, fd_eps, symmetry = resolve_common(global_params, options)
    return Functional(
        name="volume_enclosed",
        grade=MESH_GRADE_AREA,
        integrand_fn=integrand,
        gradient_fn=gradient,
        ref=GeometricReference(eps=eps),
        symmetry=symmetry,
        fd_eps=fd_eps,
    )


__all__ = ["integrand", "gradient", "build_functional"]
