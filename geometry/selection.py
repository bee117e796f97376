"""Per-grade element selections."""

from __future__ import annotations

import logging
from typing import Dict, Iterable, Iterator

import numpy as np

from geometry.mesh import MAX_GRADE, MESH_GRADE_VERTEX, Mesh

logger = logging.getLogger("mesh_functionals")


class Selection:
    """Insertion-ordered sets of selected element ids, one per grade.

    An empty slot for a grade means "every element of that grade" to the
    evaluation engine. Keys are kept as given; the engine filters out
    anything that is not a valid integer id when it iterates.
    """

    def __init__(self, selected: Dict[int, Iterable] | None = None):
        self._selected: Dict[int, Dict[object, None]] = {
            g: {} for g in range(MAX_GRADE + 1)
        }
        for grade, ids in (selected or {}).items():
            self.add(grade, ids)

    @classmethod
    def from_vertices(cls, vertex_ids: Iterable) -> "Selection":
        return cls({MESH_GRADE_VERTEX: vertex_ids})

    def _slot(self, grade: int) -> Dict[object, None]:
        if grade not in self._selected:
            raise ValueError(f"Invalid grade {grade} for a selection.")
        return self._selected[grade]

    def add(self, grade: int, ids: Iterable) -> "Selection":
        slot = self._slot(grade)
        for key in ids:
            if isinstance(key, np.integer):
                key = int(key)
            slot[key] = None
        return self

    def remove(self, grade: int, ids: Iterable) -> "Selection":
        slot = self._slot(grade)
        for key in ids:
            if isinstance(key, np.integer):
                key = int(key)
            slot.pop(key, None)
        return self

    def is_selected(self, grade: int, element_id) -> bool:
        return element_id in self._slot(grade)

    def count(self, grade: int) -> int:
        return len(self._slot(grade))

    def selected(self, grade: int) -> Iterator[object]:
        """Enumerate the raw keys of ``grade`` in insertion order."""
        return iter(list(self._slot(grade)))

    def add_grade(self, mesh: Mesh, grade: int, *, partial: bool = False) -> "Selection":
        """Select grade-``grade`` elements from the current vertex selection.

        An element is added when all of its vertices are selected, or any
        of them when ``partial`` is true.
        """
        if grade == MESH_GRADE_VERTEX:
            return self
        vertices = {k for k in self._slot(MESH_GRADE_VERTEX) if _is_int(k)}
        test = any if partial else all
        added = []
        for element_id, row in enumerate(mesh.elements.get(grade, ())):
            if test(int(v) in vertices for v in row):
                added.append(element_id)
        self.add(grade, added)
        logger.debug("Selected %d elements of grade %d", len(added), grade)
        return self

    def __repr__(self) -> str:
        counts = ", ".join(f"g{g}={len(s)}" for g, s in self._selected.items() if s)
        return f"Selection({counts})"


def _is_int(key) -> bool:
    return isinstance(key, (int, np.integer)) and not isinstance(key, bool)


__all__ = ["Selection"]
