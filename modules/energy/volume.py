"""Volume functional over tetrahedra.

    E_tet = |<x1 - x0, (x2 - x0) x (x3 - x0)>| / 6

The gradient of each vertex is the cofactor of the opposite face, signed by
the orientation of the tetrahedron.
"""

from __future__ import annotations

import numpy as np

from geometry.mesh import MESH_GRADE_VOLUME, Mesh
from geometry.vector_ops import vec_cross, vec_dot, vec_sub
from modules.energy.base import (
    Functional,
    GeometricReference,
    add_to_column,
    resolve_common,
)


def integrand(mesh: Mesh, element_id: int, vertex_ids: np.ndarray, ref=None) -> float:
    x0, x1, x2, x3 = (mesh.get_vertex(v) for v in vertex_ids[:4])
    s10 = vec_sub(x1, x0)
    s20 = vec_sub(x2, x0)
    s30 = vec_sub(x3, x0)
    return abs(vec_dot(s10, vec_cross(s20, s30))) / 6.0


def gradient(
    mesh: Mesh, element_id: int, vertex_ids: np.ndarray, ref, frc: np.ndarray
) -> None:
    x0, x1, x2, x3 = (mesh.get_vertex(v) for v in vertex_ids[:4])
    s10 = vec_sub(x1, x0)
    s20 = vec_sub(x2, x0)
    s30 = vec_sub(x3, x0)
    s31 = vec_sub(x3, x1)
    s21 = vec_sub(x2, x1)

    cx = vec_cross(s20, s30)
    sign = 1.0 if vec_dot(s10, cx) > 0 else -1.0

    add_to_column(frc, vertex_ids[1], sign / 6.0, cx)
    add_to_column(frc, vertex_ids[0], sign / 6.0, vec_cross(s31, s21))
    add_to_column(frc, vertex_ids[2], sign / 6.0, vec_cross(s30, s10))
    add_to_column(frc, vertex_ids[3], sign / 6.0, vec_cross(s10, s20))


def build_functional(global_params=None, **options) -> Functional:
    _, eps, fd_eps, symmetry = resolve_common(global_params, options)
    return Functional(
        name="volume",
        grade=MESH_GRADE_VOLUME,
        integrand_fn=integrand,
        gradient_fn=gradient,
        ref=GeometricReference(eps=eps),
        symmetry=symmetry,
        fd_eps=fd_eps,
    )


__all__ = ["integrand", "gradient", "build_functional"]
