"""Length functional.

Each edge contributes

    E_edge = |x1 - x0|

and the analytic gradient is the unit edge direction, with opposite signs on
the two endpoints.
"""

from __future__ import annotations

import numpy as np

from core.exceptions import DegenerateElementError
from geometry.mesh import MESH_GRADE_LINE, Mesh
from geometry.vector_ops import vec_norm, vec_sub
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
    return vec_norm(vec_sub(x1, x0))


def gradient(
    mesh: Mesh, element_id: int, vertex_ids: np.ndarray, ref, frc: np.ndarray
) -> None:
    x0 = mesh.get_vertex(vertex_ids[0])
    x1 = mesh.get_vertex(vertex_ids[1])
    s0 = vec_sub(x1, x0)
    norm = vec_norm(s0)
    if norm < reference_eps(ref):
        raise DegenerateElementError(element_id, MESH_GRADE_LINE, "edge length")

    add_to_column(frc, vertex_ids[0], -1.0 / norm, s0)
    add_to_column(frc, vertex_ids[1], 1.0 / norm, s0)


def build_functional(global_params=None, **options) -> Functional:
    _, eps, fd_eps, symmetry = resolve_common(global_params, options)
    return Functional(
        name="length",
        grade=MESH_GRADE_LINE,
        integrand_fn=integrand,
        gradient_fn=gradient,
        ref=GeometricReference(eps=eps),
        symmetry=symmetry,
        fd_eps=fd_eps,
    )


__all__ = ["integrand", "gradient", "build_functional"]
