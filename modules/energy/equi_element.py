"""Mesh regularity penalty that favours equally sized elements.

Each vertex looks at the elements of ``grade`` it touches and contributes

    E_v = weight * sum_e (1 - size_e / mean_size)^2

A vertex with at most one incident element contributes nothing. The grade
defaults to the highest grade of the mesh being evaluated.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np

from core.exceptions import DegenerateElementError
from geometry.mesh import MESH_GRADE_VERTEX, Mesh
from modules.energy.base import DEGENERACY_EPS, Functional, resolve_common
from modules.energy.element_size import element_size


@dataclass(frozen=True)
class EquiElementReference:
    grade: Optional[int] = None
    weight: float = 1.0
    eps: float = DEGENERACY_EPS


def effective_grade(mesh: Mesh, grade: Optional[int]) -> int:
    maxgrade = mesh.max_grade
    if grade is None or grade <= MESH_GRADE_VERTEX or grade > maxgrade:
        return maxgrade
    return int(grade)


def integrand(
    mesh: Mesh, element_id: int, vertex_ids: np.ndarray, ref: EquiElementReference
) -> float:
    grade = effective_grade(mesh, ref.grade)
    conn = mesh.incident_elements(grade, element_id)
    if conn.size <= 1:
        return 0.0

    sizes = np.array(
        [element_size(mesh, grade, int(e), mesh.element_vertices(grade, int(e))) for e in conn]
    )
    mean = float(sizes.mean())
    if abs(mean) < ref.eps:
        raise DegenerateElementError(
            element_id, MESH_GRADE_VERTEX, "mean incident element size"
        )

    return ref.weight * float(np.sum((1.0 - sizes / mean) ** 2))


def build_functional(
    global_params=None, *, grade: Optional[int] = None, weight: float = 1.0, **options
) -> Functional:
    _, eps, fd_eps, symmetry = resolve_common(global_params, options)
    return Functional(
        name="equi_element",
        grade=MESH_GRADE_VERTEX,
        integrand_fn=integrand,
        ref=EquiElementReference(grade=grade, weight=float(weight), eps=eps),
        symmetry=symmetry,
        fd_eps=fd_eps,
    )


__all__ = ["EquiElementReference", "effective_grade", "integrand", "build_functional"]
