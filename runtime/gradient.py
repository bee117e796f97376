"""Gradient evaluation over the elements of a mesh."""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

import numpy as np

from core.exceptions import FunctionalError
from geometry.mesh import Mesh
from geometry.selection import Selection
from runtime.element_set import resolve_elements
from runtime.finite_difference import (
    DEFAULT_FD_EPS,
    numerical_field_gradient,
    numerical_gradient,
)
from runtime.reduction import Integrand
from runtime.symmetry import SymmetryPolicy, sum_forces

logger = logging.getLogger("mesh_functionals")

# gradient_kernel(mesh, element_id, vertex_ids, ref, frc) adds into frc.
GradientKernel = Callable[[Mesh, int, np.ndarray, Any, np.ndarray], None]


def map_gradient(
    mesh: Mesh,
    selection: Optional[Selection],
    grade: int,
    gradient_kernel: GradientKernel,
    ref: Any = None,
    symmetry: SymmetryPolicy = SymmetryPolicy.ADD,
) -> Optional[np.ndarray]:
    """Accumulate per-element gradients into a ``(D, N)`` matrix.

    Every visited element contributes, image elements included; with
    ``SymmetryPolicy.ADD`` the columns of identified vertices are folded
    together once the loop is done. Returns ``None`` when the grade has no
    elements.
    """
    elements = resolve_elements(mesh, grade, selection)
    if elements.count == 0:
        return None

    frc = np.zeros((mesh.dim, mesh.vertex_count), dtype=float)
    try:
        for element_id, vertex_ids in elements:
            if vertex_ids.size == 0:
                continue
            gradient_kernel(mesh, element_id, vertex_ids, ref, frc)
    except FunctionalError as exc:
        logger.error("Gradient aborted on grade %d: %s", grade, exc)
        raise

    if SymmetryPolicy.coerce(symmetry) is SymmetryPolicy.ADD:
        sum_forces(mesh, frc)
    return frc


def map_numerical_gradient(
    mesh: Mesh,
    selection: Optional[Selection],
    grade: int,
    integrand: Integrand,
    ref: Any = None,
    symmetry: SymmetryPolicy = SymmetryPolicy.ADD,
    eps: float = DEFAULT_FD_EPS,
) -> Optional[np.ndarray]:
    """Same as :func:`map_gradient` using central differences of ``integrand``."""

    def kernel(mesh, element_id, vertex_ids, ref, frc):
        numerical_gradient(mesh, element_id, vertex_ids, integrand, ref, frc, eps=eps)

    return map_gradient(mesh, selection, grade, kernel, ref, symmetry)


def map_numerical_field_gradient(
    mesh: Mesh,
    selection: Optional[Selection],
    grade: int,
    field,
    integrand: Integrand,
    ref: Any = None,
    eps: float = DEFAULT_FD_EPS,
) -> Optional[np.ndarray]:
    """Derivative of the summed integrand with respect to a vertex field.

    The result has the shape of ``field.values``. Returns ``None`` when the
    grade has no elements.
    """
    elements = resolve_elements(mesh, grade, selection)
    if elements.count == 0:
        return None

    out = np.zeros_like(field.values)
    try:
        for element_id, vertex_ids in elements:
            if vertex_ids.size == 0:
                continue
            numerical_field_gradient(
                mesh, element_id, vertex_ids, field, integrand, ref, out, eps=eps
            )
    except FunctionalError as exc:
        logger.error("Field gradient aborted on grade %d: %s", grade, exc)
        raise
    return out


__all__ = [
    "GradientKernel",
    "map_gradient",
    "map_numerical_gradient",
    "map_numerical_field_gradient",
]
