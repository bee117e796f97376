"""Total and Map evaluation of a per-element integrand."""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

import numpy as np

from core.exceptions import FunctionalError
from geometry.mesh import Mesh
from geometry.selection import Selection
from runtime.element_set import resolve_elements
from runtime.symmetry import ImageFilter, image_list

logger = logging.getLogger("mesh_functionals")

# integrand(mesh, element_id, vertex_ids, ref) -> float; raises on failure.
Integrand = Callable[[Mesh, int, np.ndarray, Any], float]


class KahanSum:
    """Compensated running sum.

    The compensation term carries the low-order bits lost by each addition
    and feeds them back into the next one, so the error stays O(eps)
    regardless of how many terms are added.
    """

    __slots__ = ("total", "compensation")

    def __init__(self, start: float = 0.0):
        self.total = float(start)
        self.compensation = 0.0

    def add(self, value: float) -> None:
        y = float(value) - self.compensation
        t = self.total + y
        self.compensation = (t - self.total) - y
        self.total = t

    def __float__(self) -> float:
        return self.total


def sum_integrand(
    mesh: Mesh,
    selection: Optional[Selection],
    grade: int,
    integrand: Integrand,
    ref: Any = None,
) -> Optional[float]:
    """Return the compensated sum of ``integrand`` over the selected elements.

    Image elements are skipped so each identified set of elements counts
    once. Returns ``None`` when the grade has no elements. Any integrand
    failure aborts the evaluation.
    """
    elements = resolve_elements(mesh, grade, selection)
    if elements.count == 0:
        return None

    images = ImageFilter(image_list(mesh, grade), ascending=elements.ascending)
    acc = KahanSum()
    try:
        for element_id, vertex_ids in elements:
            if images.is_image(element_id):
                continue
            if vertex_ids.size == 0:
                continue
            acc.add(integrand(mesh, element_id, vertex_ids, ref))
    except FunctionalError as exc:
        logger.error("Total aborted on grade %d: %s", grade, exc)
        raise

    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(
            "Summed %d elements of grade %d (%d images skipped): %.12g",
            len(elements),
            grade,
            len(images),
            acc.total,
        )
    return float(acc)


def map_integrand(
    mesh: Mesh,
    selection: Optional[Selection],
    grade: int,
    integrand: Integrand,
    ref: Any = None,
) -> Optional[np.ndarray]:
    """Return per-element integrand values as a vector indexed by element id.

    Slots of unvisited and image elements stay zero. Returns ``None`` when the
    grade has no elements. On failure nothing is returned.
    """
    elements = resolve_elements(mesh, grade, selection)
    if elements.count == 0:
        return None

    images = ImageFilter(image_list(mesh, grade), ascending=elements.ascending)
    out = np.zeros(elements.count, dtype=float)
    try:
        for element_id, vertex_ids in elements:
            if images.is_image(element_id):
                continue
            if vertex_ids.size == 0:
                continue
            out[element_id] = integrand(mesh, element_id, vertex_ids, ref)
    except FunctionalError as exc:
        logger.error("Integrand map aborted on grade %d: %s", grade, exc)
        raise
    return out


__all__ = ["Integrand", "KahanSum", "sum_integrand", "map_integrand"]
