"""Area enclosed by a closed curve, measured from the origin.

Each edge sweeps the triangle ``(0, x0, x1)``:

    E_edge = 1/2 |x0 x x1|
"""

from __future__ import annotations

import numpy as np

from core.exceptions import DegenerateElementError
from geometry.mesh import MESH_GRADE_LINE, Mesh
from geometry.vector_ops import vec_cross, vec_norm
from modules.energy.base import (
    Functional,
    GeometricReference,
    add_to_column,
    reference_eps,
    resolve_common,
)


def integrand(mesh: Mesh, element_id: int, vertex_ids: np.ndarray, ref=None) -> float:
    x0 = mesh.get_vertex(vertex_ids[0])
    x1 = mesh.get_vertex(vertex_ids[1])
    return 0.5 * vec_norm(vec_cross(x0, x1))


def gradient(
    mesh: Mesh, element_id: int, vertex_ids: np.ndarray, ref, frc: np.ndarray
) -> None:
    x0 = mesh.get_vertex(vertex_ids[0])
    x1 = mesh.get_vertex(vertex_ids[1])
    cx = vec_cross(x0, x1)
    norm = vec_norm(cx)
    if norm < reference_eps(ref):
        raise DegenerateElementError(element_id, MESH_GRADE_LINE, "swept area")

    add_to_column(frc, vertex_ids[0], 0.5 / norm, vec_cross(x1, cx))
    add_to_column(frc, vertex_ids[1], 0.5 / norm, vec_cross(cx, x0))


def build_functional(global_params=None, **options) -> Functional:
    _, eps, fd_eps, symmetry = resolve_common(global_params, options)
    return Functional(
        name="area_enclosed",
        grade=MESH_GRADE_LINE,
        integrand_fn=integrand,
        gradient_fn=gradient,
        ref=GeometricReference(eps=eps),
        symmetry=symmetry,
        fd_eps=fd_eps,
    )


__all__ = ["integrand", "gradient", "build_functional"]
