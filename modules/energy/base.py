"""Common plumbing shared by the functional kernels.

A :class:`Functional` bundles the grade a kernel integrates over, its
per-element integrand, an optional analytic gradient and the typed reference
payload both receive. Its three methods map onto the evaluation engine:

* :meth:`Functional.integrand` – per-element values (Map mode),
* :meth:`Functional.total` – compensated sum (Total mode),
* :meth:`Functional.gradient` – ``(D, N)`` force matrix; functionals without
  an analytic kernel fall back to central differences.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

import numpy as np

from geometry.mesh import Mesh
from geometry.selection import Selection
from parameters.global_parameters import GlobalParameters
from parameters.resolver import ParameterResolver
from runtime.finite_difference import DEFAULT_FD_EPS
from runtime.gradient import GradientKernel, map_gradient, map_numerical_gradient
from runtime.reduction import Integrand, map_integrand, sum_integrand
from runtime.symmetry import SymmetryPolicy

DEGENERACY_EPS = float(np.finfo(float).eps)


@dataclass(frozen=True)
class GeometricReference:
    """Reference payload of the purely geometric kernels."""

    eps: float = DEGENERACY_EPS


@dataclass(frozen=True)
class Functional:
    name: str
    grade: int
    integrand_fn: Integrand
    gradient_fn: Optional[GradientKernel] = None
    ref: Any = None
    symmetry: SymmetryPolicy = SymmetryPolicy.ADD
    fd_eps: float = DEFAULT_FD_EPS

    @property
    def has_analytic_gradient(self) -> bool:
        return self.gradient_fn is not None

    def integrand(self, mesh: Mesh, selection: Optional[Selection] = None):
        return map_integrand(mesh, selection, self.grade, self.integrand_fn, self.ref)

    def total(self, mesh: Mesh, selection: Optional[Selection] = None):
        return sum_integrand(mesh, selection, self.grade, self.integrand_fn, self.ref)

    def gradient(self, mesh: Mesh, selection: Optional[Selection] = None):
        if self.gradient_fn is not None:
            return map_gradient(
                mesh, selection, self.grade, self.gradient_fn, self.ref, self.symmetry
            )
        return self.numerical_gradient(mesh, selection)

    def numerical_gradient(self, mesh: Mesh, selection: Optional[Selection] = None):
        return map_numerical_gradient(
            mesh,
            selection,
            self.grade,
            self.integrand_fn,
            self.ref,
            self.symmetry,
            eps=self.fd_eps,
        )


def reference_eps(ref) -> float:
    return float(getattr(ref, "eps", DEGENERACY_EPS))


def add_to_column(frc: np.ndarray, vertex_id: int, scale: float, vec) -> None:
    """Add ``scale * vec`` into column ``vertex_id`` of ``frc``.

    Cross products always come back with three components; only the first
    ``D`` are used.
    """
    vec = np.asarray(vec, dtype=float)
    frc[:, vertex_id] += scale * vec[: frc.shape[0]]


def resolve_common(global_params: GlobalParameters | None, options: dict):
    """Return ``(resolver, eps, fd_eps, symmetry)`` for ``build_functional``."""
    resolver = ParameterResolver(global_params)
    eps = float(resolver.get(options, "degeneracy_eps", DEGENERACY_EPS))
    fd_eps = float(resolver.get(options, "fd_eps", DEFAULT_FD_EPS))
    symmetry = SymmetryPolicy.coerce(resolver.get(options, "symmetry_policy", "add"))
    return resolver, eps, fd_eps, symmetry


__all__ = [
    "DEGENERACY_EPS",
    "Functional",
    "GeometricReference",
    "add_to_column",
    "reference_eps",
    "resolve_common",
]
