"""Resolve the elements a functional visits."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterator, Optional, Tuple

import numpy as np

from core.exceptions import ElementRelationNotFoundError
from geometry.mesh import MESH_GRADE_VERTEX, Mesh
from geometry.selection import Selection

logger = logging.getLogger("mesh_functionals")


@dataclass(frozen=True)
class ElementSet:
    """Ordered element ids of one grade together with their vertex lists.

    ``count`` is the number of elements of the grade in the mesh (the length
    of a Map-mode output), not the number of ids visited.
    """

    mesh: Mesh
    grade: int
    count: int
    ids: np.ndarray
    ascending: bool

    def vertices(self, element_id: int) -> np.ndarray:
        return self.mesh.element_vertices(self.grade, element_id)

    def __iter__(self) -> Iterator[Tuple[int, np.ndarray]]:
        for element_id in self.ids:
            element_id = int(element_id)
            yield element_id, self.vertices(element_id)

    def __len__(self) -> int:
        return int(self.ids.size)


def count_elements(mesh: Mesh, grade: int) -> int:
    """Return the number of grade-``grade`` elements, failing if absent."""
    if grade == MESH_GRADE_VERTEX:
        return mesh.vertex_count
    if mesh.connectivity(MESH_GRADE_VERTEX, grade) is None:
        raise ElementRelationNotFoundError(grade)
    return mesh.element_count(grade)


def _valid_id(key, n: int) -> bool:
    if isinstance(key, bool) or not isinstance(key, (int, np.integer)):
        return False
    return 0 <= int(key) < n


def resolve_elements(
    mesh: Mesh, grade: int, selection: Optional[Selection] = None
) -> ElementSet:
    """Return the elements of ``grade`` to visit, in visiting order.

    Without a selection (or with an empty slot for ``grade``) every element
    is visited in ascending id order. Otherwise the selection's own order is
    used, keeping only valid integer ids for the grade.
    """
    n = count_elements(mesh, grade)

    if selection is None or selection.count(grade) == 0:
        ids = np.arange(n, dtype=np.int64)
        return ElementSet(mesh, grade, n, ids, ascending=True)

    keys = list(selection.selected(grade))
    valid = [int(k) for k in keys if _valid_id(k, n)]
    if len(valid) != len(keys):
        logger.debug(
            "Ignoring %d selected keys that are not element ids of grade %d",
            len(keys) - len(valid),
            grade,
        )
    ids = np.array(valid, dtype=np.int64)
    ascending = bool(np.all(ids[1:] > ids[:-1])) if ids.size > 1 else True
    return ElementSet(mesh, grade, n, ids, ascending=ascending)


__all__ = ["ElementSet", "count_elements", "resolve_elements"]
