"""Linear elastic energy relative to a reference mesh.

For each element the Gram matrices of the edge vectors ``x_i - x_0`` are
built in the reference and in the current configuration. With
``CG = 1/2 (G_def G_ref^-1 - I)`` the energy density is

    w = mu tr(CG^2) + lambda/2 tr(CG)^2

weighted by the size of the element in the reference mesh. The Lamé
coefficients follow from the Poisson ratio ``nu`` (unit Young modulus):

    mu = 1 / (2 (1 + nu)),   lambda = nu / ((1 + nu)(1 - 2 nu))

There is no analytic gradient; forces come from central differences.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np

from core.exceptions import MissingReferenceError, SingularReferenceError
from geometry.mesh import Mesh
from modules.energy.base import DEGENERACY_EPS, Functional, resolve_common
from modules.energy.element_size import element_size

logger = logging.getLogger("mesh_functionals")


@dataclass(frozen=True)
class LinearElasticityReference:
    reference_mesh: Mesh
    grade: int
    lam: float
    mu: float
    eps: float = DEGENERACY_EPS


def lame_coefficients(poisson_ratio: float) -> tuple[float, float]:
    """Return ``(lambda, mu)`` for a Poisson ratio."""
    nu = float(poisson_ratio)
    if nu <= -1.0 or nu >= 0.5:
        raise ValueError(f"Poisson ratio must lie in (-1, 0.5), got {nu}")
    mu = 0.5 / (1.0 + nu)
    lam = nu / (1.0 + nu) / (1.0 - 2.0 * nu)
    return lam, mu


def gram_matrix(vertices: np.ndarray, vertex_ids: np.ndarray) -> np.ndarray:
    """Gram matrix of the edge vectors from the first vertex to the others."""
    x = vertices[:, vertex_ids]
    sides = x[:, 1:] - x[:, :1]
    return sides.T @ sides


def integrand(
    mesh: Mesh, element_id: int, vertex_ids: np.ndarray, ref: LinearElasticityReference
) -> float:
    refmesh = ref.reference_mesh
    if refmesh.vertex_count != mesh.vertex_count:
        raise MissingReferenceError(
            f"Reference mesh has {refmesh.vertex_count} vertices, "
            f"mesh has {mesh.vertex_count}."
        )

    gram_ref = gram_matrix(refmesh.vertices, vertex_ids)
    gram_def = gram_matrix(mesh.vertices, vertex_ids)

    # det(G) <= prod(diag(G)) for a Gram matrix, so this is scale free.
    scale = float(np.prod(np.diag(gram_ref)))
    if scale <= 0.0 or abs(np.linalg.det(gram_ref)) <= ref.eps * scale:
        raise SingularReferenceError(element_id, ref.grade, "reference Gram determinant")
    try:
        q = np.linalg.inv(gram_ref)
    except np.linalg.LinAlgError:
        raise SingularReferenceError(
            element_id, ref.grade, "reference Gram determinant"
        ) from None

    cg = 0.5 * (gram_def @ q) - 0.5 * np.identity(gram_ref.shape[0])
    trcg = float(np.trace(cg))
    trcgcg = float(np.trace(cg @ cg))

    weight = element_size(refmesh, ref.grade, element_id, vertex_ids)
    return weight * (ref.mu * trcgcg + 0.5 * ref.lam * trcg * trcg)


def build_functional(
    global_params=None,
    *,
    reference_mesh: Optional[Mesh] = None,
    grade: Optional[int] = None,
    **options,
) -> Functional:
    if reference_mesh is None:
        raise MissingReferenceError("LinearElasticity requires a reference mesh.")
    resolver, eps, fd_eps, symmetry = resolve_common(global_params, options)
    nu = resolver.get(options, "poisson_ratio", 0.3)
    lam, mu = lame_coefficients(nu)
    if grade is None:
        grade = reference_mesh.max_grade
    logger.debug("LinearElasticity on grade %d with nu=%g", grade, float(nu))
    return Functional(
        name="linear_elasticity",
        grade=int(grade),
        integrand_fn=integrand,
        ref=LinearElasticityReference(reference_mesh, int(grade), lam, mu, eps),
        symmetry=symmetry,
        fd_eps=fd_eps,
    )


__all__ = [
    "LinearElasticityReference",
    "lame_coefficients",
    "gram_matrix",
    "integrand",
    "build_functional",
]
