"""Public entry points for mesh-functionals.

The evaluation engine lives in top-level packages like `geometry/`,
`modules/`, and `runtime/`. This package gathers the pieces most callers
need and exposes the installed version.
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

from core.exceptions import (
    CallbackError,
    DegenerateElementError,
    ElementRelationNotFoundError,
    FunctionalError,
    MissingInputError,
    MissingReferenceError,
    SingularReferenceError,
)
from geometry.field import Field
from geometry.geom_io import load_geometry, parse_geometry
from geometry.mesh import Mesh
from geometry.selection import Selection
from parameters.global_parameters import GlobalParameters
from runtime.functional_manager import FunctionalManager
from runtime.logging_config import setup_logging
from runtime.symmetry import SymmetryPolicy

try:
    __version__ = version("mesh-functionals")
except PackageNotFoundError:  # pragma: no cover
    __version__ = "0.0.0"


def functionals_from_file(filename) -> tuple[Mesh, FunctionalManager]:
    """Load a geometry file and build the functionals it lists."""
    mesh = load_geometry(filename)
    return mesh, FunctionalManager(mesh.functional_specs, mesh.global_parameters)


__all__ = [
    "CallbackError",
    "DegenerateElementError",
    "ElementRelationNotFoundError",
    "Field",
    "FunctionalError",
    "FunctionalManager",
    "GlobalParameters",
    "Mesh",
    "MissingInputError",
    "MissingReferenceError",
    "Selection",
    "SingularReferenceError",
    "SymmetryPolicy",
    "functionals_from_file",
    "load_geometry",
    "parse_geometry",
    "setup_logging",
    "__version__",
]
