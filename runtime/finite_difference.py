"""Central-difference fallback for functionals without an analytic gradient."""

from __future__ import annotations

from typing import Any

import numpy as np

from geometry.mesh import Mesh
from runtime.reduction import Integrand

DEFAULT_FD_EPS = 1e-10


def numerical_gradient(
    mesh: Mesh,
    element_id: int,
    vertex_ids: np.ndarray,
    integrand: Integrand,
    ref: Any,
    frc: np.ndarray,
    eps: float = DEFAULT_FD_EPS,
) -> None:
    """Add the central-difference gradient of one element into ``frc``.

    Each coordinate of each incident vertex is moved by ``+eps`` and ``-eps``
    in place. The step is a fixed absolute offset, so accuracy degrades for
    coordinates far from unit scale. The original coordinate is written back
    before anything else happens, including when the integrand raises.
    """
    coords = mesh.vertices
    for vid in vertex_ids:
        vid = int(vid)
        for k in range(mesh.dim):
            x0 = coords[k, vid]
            try:
                coords[k, vid] = x0 + eps
                fp = integrand(mesh, element_id, vertex_ids, ref)
                coords[k, vid] = x0 - eps
                fm = integrand(mesh, element_id, vertex_ids, ref)
            finally:
                coords[k, vid] = x0
            frc[k, vid] += (fp - fm) / (2.0 * eps)


def numerical_field_gradient(
    mesh: Mesh,
    element_id: int,
    vertex_ids: np.ndarray,
    field,
    integrand: Integrand,
    ref: Any,
    out: np.ndarray,
    eps: float = DEFAULT_FD_EPS,
) -> None:
    """Add the derivative of one element's integrand w.r.t. field values.

    ``out`` has the shape of ``field.values``; the same perturb and restore
    discipline as :func:`numerical_gradient` applies to the field entries.
    """
    values = field.values
    for vid in vertex_ids:
        vid = int(vid)
        for k in range(values.shape[1]):
            q0 = values[vid, k]
            try:
                values[vid, k] = q0 + eps
                fp = integrand(mesh, element_id, vertex_ids, ref)
                values[vid, k] = q0 - eps
                fm = integrand(mesh, element_id, vertex_ids, ref)
            finally:
                values[vid, k] = q0
            out[vid, k] += (fp - fm) / (2.0 * eps)


__all__ = ["DEFAULT_FD_EPS", "numerical_gradient", "numerical_field_gradient"]
