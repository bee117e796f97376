"""Symmetry handling: image elements and force fold-back."""

from __future__ import annotations

import logging
from enum import Enum

import numpy as np

from geometry.mesh import MESH_GRADE_VERTEX, Mesh

logger = logging.getLogger("mesh_functionals")


class SymmetryPolicy(Enum):
    NONE = "none"
    ADD = "add"

    @classmethod
    def coerce(cls, value) -> "SymmetryPolicy":
        if isinstance(value, cls):
            return value
        return cls(str(value).lower())


def image_list(mesh: Mesh, grade: int) -> np.ndarray:
    """Return the sorted ids of grade-``grade`` elements that are images.

    These are the second coordinates of the off-diagonal entries of the
    ``(grade, grade)`` identification relation.
    """
    rel = mesh.connectivity(grade, grade)
    if rel is None or rel.nnz == 0:
        return np.empty(0, dtype=np.int64)
    coo = rel.tocoo()
    off_diagonal = coo.row != coo.col
    return np.unique(coo.col[off_diagonal]).astype(np.int64)


class ImageFilter:
    """Answer "is this element an image?" while the element loop runs.

    When ids arrive in ascending order a single pointer walks the sorted
    image list alongside the loop. Any other order falls back to a set
    membership test.
    """

    def __init__(self, images: np.ndarray, *, ascending: bool = True):
        self._images = images
        self._pos = 0
        self._ascending = ascending
        self._members = None if ascending else set(int(i) for i in images)

    def __len__(self) -> int:
        return int(self._images.size)

    def is_image(self, element_id: int) -> bool:
        if not self._images.size:
            return False
        if not self._ascending:
            return element_id in self._members
        while self._pos < self._images.size and self._images[self._pos] < element_id:
            self._pos += 1
        if self._pos < self._images.size and self._images[self._pos] == element_id:
            self._pos += 1
            return True
        return False


def sum_forces(mesh: Mesh, frc: np.ndarray) -> bool:
    """Fold forces on identified vertices onto each other.

    For each identified pair ``(i, j)`` both columns are replaced with their
    sum. Returns ``True`` when the mesh carries vertex symmetries.
    """
    rel = mesh.connectivity(MESH_GRADE_VERTEX, MESH_GRADE_VERTEX)
    if rel is None:
        return False
    coo = rel.tocoo()
    for i, j in zip(coo.row, coo.col):
        if i == j:
            continue
        fsum = frc[:, i] + frc[:, j]
        frc[:, i] = fsum
        frc[:, j] = fsum
    logger.debug("Summed forces over %d symmetry pairs", coo.nnz)
    return True


__all__ = ["SymmetryPolicy", "image_list", "ImageFilter", "sum_forces"]
