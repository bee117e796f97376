"""Squared gradient of a vertex field over triangles.

On each triangle the field is interpolated linearly, so its gradient is

    grad q = sum_j q_j t_j

where ``t_j`` is the component of an edge leaving vertex ``j`` perpendicular
to the opposite edge, scaled by ``1/|t_j|^2`` (the gradient of the ``j``-th
barycentric coordinate). The energy is ``area * |grad q|^2`` summed over all
field components.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np

from core.exceptions import DegenerateElementError, MissingReferenceError
from geometry.field import Field
from geometry.mesh import MESH_GRADE_AREA, MESH_GRADE_VERTEX, Mesh
from geometry.vector_ops import vec_dot, vec_norm, vec_scale, vec_sub
from modules.energy.base import DEGENERACY_EPS, Functional, resolve_common
from modules.energy.element_size import element_size
from runtime.gradient import map_numerical_field_gradient


@dataclass(frozen=True)
class GradSqReference:
    field: Field
    eps: float = DEGENERACY_EPS


def compute_perpendicular(
    s1: np.ndarray, s2: np.ndarray, eps: float = DEGENERACY_EPS
) -> Optional[np.ndarray]:
    """Return ``t / |t|^2`` with ``t = s1 - (s1.s2 / s2.s2) s2``.

    ``None`` signals a side of zero weight.
    """
    s2s2 = vec_dot(s2, s2)
    if abs(s2s2) < eps:
        return None
    out = vec_sub(s1, vec_scale(vec_dot(s1, s2) / s2s2, s2))
    sout = vec_norm(out)
    if abs(sout) < eps:
        return None
    return vec_scale(1.0 / (sout * sout), out)


def evaluate_gradient(
    mesh: Mesh, field: Field, vertex_ids: np.ndarray, eps: float = DEGENERACY_EPS
) -> Optional[np.ndarray]:
    """Return the ``(psize, D)`` gradient of ``field`` on a triangle."""
    x = [mesh.get_vertex(v) for v in vertex_ids[:3]]
    f = [field.element_values(MESH_GRADE_VERTEX, int(v)) for v in vertex_ids[:3]]

    s = [vec_sub(x[1], x[0]), vec_sub(x[2], x[1]), vec_sub(x[0], x[2])]
    t = [
        compute_perpendicular(s[2], s[1], eps),
        compute_perpendicular(s[0], s[2], eps),
        compute_perpendicular(s[1], s[0], eps),
    ]
    if any(tj is None for tj in t):
        return None

    grad = np.zeros((field.psize, mesh.dim), dtype=float)
    for j in range(3):
        grad += np.outer(f[j], t[j])
    return grad


def integrand(
    mesh: Mesh, element_id: int, vertex_ids: np.ndarray, ref: GradSqReference
) -> float:
    size = element_size(mesh, MESH_GRADE_AREA, element_id, vertex_ids)
    grad = evaluate_gradient(mesh, ref.field, vertex_ids, ref.eps)
    if grad is None:
        raise DegenerateElementError(element_id, MESH_GRADE_AREA, "opposite edge")
    gradnrm = vec_norm(grad.ravel())
    return gradnrm * gradnrm * size


@dataclass(frozen=True)
class GradSqFunctional(Functional):
    """GradSq adds a derivative with respect to the field values."""

    def field_gradient(self, mesh: Mesh, selection=None):
        return map_numerical_field_gradient(
            mesh,
            selection,
            self.grade,
            self.ref.field,
            self.integrand_fn,
            self.ref,
            eps=self.fd_eps,
        )


def build_functional(global_params=None, *, field: Optional[Field] = None, **options):
    if field is None:
        raise MissingReferenceError("GradSq requires a field.")
    _, eps, fd_eps, symmetry = resolve_common(global_params, options)
    return GradSqFunctional(
        name="grad_sq",
        grade=MESH_GRADE_AREA,
        integrand_fn=integrand,
        ref=GradSqReference(field=field, eps=eps),
        symmetry=symmetry,
        fd_eps=fd_eps,
    )


__all__ = [
    "GradSqReference",
    "GradSqFunctional",
    "compute_perpendicular",
    "evaluate_gradient",
    "integrand",
    "build_functional",
]
