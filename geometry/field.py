"""Per-vertex fields sampled on a mesh."""

from __future__ import annotations

import numpy as np

from core.exceptions import MissingInputError
from geometry.mesh import MESH_GRADE_VERTEX, Mesh


class Field:
    """Values attached to the vertices of a mesh.

    Each vertex carries ``psize`` scalars (1 for a scalar field, ``D`` for a
    vector field), stored as an ``(N, psize)`` array.
    """

    def __init__(self, mesh: Mesh, values):
        data = np.array(values, dtype=float)
        if data.ndim == 1:
            data = data.reshape(-1, 1)
        if data.ndim != 2 or data.shape[0] != mesh.vertex_count:
            raise MissingInputError(
                f"Field needs one entry per vertex ({mesh.vertex_count}), "
                f"got shape {data.shape}."
            )
        self.mesh = mesh
        self.values = data

    @classmethod
    def from_function(cls, mesh: Mesh, fn) -> "Field":
        """Sample ``fn(*x)`` at every vertex of ``mesh``."""
        samples = [np.atleast_1d(fn(*mesh.get_vertex(i))) for i in range(mesh.vertex_count)]
        return cls(mesh, np.array(samples, dtype=float))

    @property
    def psize(self) -> int:
        return int(self.values.shape[1])

    def element_values(self, grade: int, element_id: int) -> np.ndarray:
        """Return the flat list of values stored on an element."""
        if grade != MESH_GRADE_VERTEX:
            raise MissingInputError(f"Field has no entries on grade {grade}.")
        return self.values[element_id]
