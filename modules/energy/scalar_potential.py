"""Scalar potential evaluated at vertices.

Each vertex contributes ``f(x, y, z)`` for a user-supplied callable ``f``.
An optional ``gradient_function`` returning a D-vector provides the analytic
force; without one the gradient is obtained by central differences.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

import numpy as np

from core.exceptions import CallbackError, MissingReferenceError
from geometry.mesh import MESH_GRADE_VERTEX, Mesh
from modules.energy.base import Functional, resolve_common
from runtime.symmetry import SymmetryPolicy


@dataclass(frozen=True)
class ScalarPotentialReference:
    function: Callable
    gradient_function: Optional[Callable] = None


def _call(fn: Callable, mesh: Mesh, vertex_id: int):
    x = mesh.get_vertex(vertex_id)
    try:
        return fn(*(float(c) for c in x))
    except Exception as exc:
        raise CallbackError(
            f"Potential callback failed at vertex {vertex_id}: {exc}",
            element_id=vertex_id,
        ) from exc


def integrand(
    mesh: Mesh, element_id: int, vertex_ids: np.ndarray, ref: ScalarPotentialReference
) -> float:
    ret = _call(ref.function, mesh, element_id)
    try:
        arr = np.asarray(ret, dtype=float)
    except (TypeError, ValueError):
        arr = None
    if arr is None or arr.size != 1:
        raise CallbackError(
            f"Potential must return a number, got {ret!r} at vertex {element_id}.",
            element_id=element_id,
        )
    return float(arr.reshape(()))


def gradient(
    mesh: Mesh,
    element_id: int,
    vertex_ids: np.ndarray,
    ref: ScalarPotentialReference,
    frc: np.ndarray,
) -> None:
    ret = _call(ref.gradient_function, mesh, element_id)
    try:
        arr = np.asarray(ret, dtype=float).ravel()
    except (TypeError, ValueError):
        arr = None
    if arr is None or arr.size != frc.shape[0]:
        raise CallbackError(
            f"Potential gradient must return {frc.shape[0]} components, "
            f"got {ret!r} at vertex {element_id}.",
            element_id=element_id,
        )
    frc[:, element_id] += arr


def build_functional(
    global_params=None,
    *,
    function: Optional[Callable] = None,
    gradient_function: Optional[Callable] = None,
    **options,
) -> Functional:
    if function is None:
        raise MissingReferenceError("ScalarPotential requires a potential function.")
    for fn in (function, gradient_function):
        if fn is not None and not callable(fn):
            raise CallbackError(f"ScalarPotential expects a callable, got {fn!r}.")
    _, _, fd_eps, _ = resolve_common(global_params, options)
    # Potentials act on each vertex independently; no force fold-back unless asked.
    symmetry = SymmetryPolicy.coerce(options.get("symmetry_policy", "none"))
    return Functional(
        name="scalar_potential",
        grade=MESH_GRADE_VERTEX,
        integrand_fn=integrand,
        gradient_fn=gradient if gradient_function is not None else None,
        ref=ScalarPotentialReference(function, gradient_function),
        symmetry=symmetry,
        fd_eps=fd_eps,
    )


__all__ = ["ScalarPotentialReference", "integrand", "gradient", "build_functional"]
