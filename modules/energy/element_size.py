"""Size (length, area or volume) of a single element."""

from __future__ import annotations

import numpy as np

from core.exceptions import MissingInputError
from geometry.mesh import Mesh
from modules.energy import area, length, volume

_SIZE_INTEGRANDS = {
    1: length.integrand,
    2: area.integrand,
    3: volume.integrand,
}


def element_size(mesh: Mesh, grade: int, element_id: int, vertex_ids: np.ndarray) -> float:
    try:
        fn = _SIZE_INTEGRANDS[grade]
    except KeyError:
        raise MissingInputError(f"Element size is undefined for grade {grade}.") from None
    return fn(mesh, element_id, vertex_ids, None)


__all__ = ["element_size"]
