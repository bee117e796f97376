"""Area functional.

Each triangle contributes

    E_face = 1/2 |(x1 - x0) x (x2 - x1)|

The gradient follows from differentiating the norm of the normal
``n = s0 x s1``; with ``s0 = x1 - x0`` and ``s1 = x2 - x1``:

    dE/dx0 =  (n x s1) / (2|n|)
    dE/dx2 =  (n x s0) / (2|n|)
    dE/dx1 = -(dE/dx0 + dE/dx2)
"""

from __future__ import annotations

import numpy as np

from core.exceptions import DegenerateElementError
from geometry.mesh import MESH_GRADE_AREA, Mesh
from geometry.vector_ops import vec_add, vec_cross, vec_norm, vec_sub
from modules.energy.base import (
    Functional,
    GeometricReference,
    add_to_column,
    reference_eps,
    resolve_common,
)


def integrand(mesh: Mesh, element_id: int, vertex_ids: np.ndarray, ref=None) -> float:
    x0, x1, x2 = (mesh.get_vertex(v) for v in vertex_ids[:3])
    s0 = vec_sub(x1, x0)
    s1 = vec_sub(x2, x1)
    return 0.5 * vec_norm(vec_cross(s0, s1))


def gradient(
    mesh: Mesh, element_id: int, vertex_ids: np.ndarray, ref, frc: np.ndarray
) -> None:
    x0, x1, x2 = (mesh.get_vertex(v) for v in vertex_ids[:3])
    s0 = vec_sub(x1, x0)
    s1 = vec_sub(x2, x1)

    s01 = vec_cross(s0, s1)
    norm = vec_norm(s01)
    if norm < reference_eps(ref):
        raise DegenerateElementError(element_id, MESH_GRADE_AREA, "triangle normal")

    s010 = vec_cross(s01, s0)
    s011 = vec_cross(s01, s1)

    add_to_column(frc, vertex_ids[0], 0.5 / norm, s011)
    add_to_column(frc, vertex_ids[2], 0.5 / norm, s010)
    add_to_column(frc, vertex_ids[1], -0.5 / norm, vec_add(s010, s011))


def build_functional(global_params=None, **options) -> Functional:
    _, eps, fd_eps, symmetry = resolve_common(global_params, options)
    return Functional(
        name="area",
        grade=MESH_GRADE_AREA,
        integrand_fn=integrand,
        gradient_fn=gradient,
        ref=GeometricReference(eps=eps),
        symmetry=symmetry,
        fd_eps=fd_eps,
    )


__all__ = ["integrand", "gradient", "build_functional"]
