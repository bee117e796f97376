# mesh.py

import itertools
import logging
from collections import defaultdict
from typing import Dict, Iterable, Optional, Set, Tuple

import numpy as np
import scipy.sparse as sp

from core.exceptions import ElementRelationNotFoundError, MissingInputError
from parameters.global_parameters import GlobalParameters

logger = logging.getLogger("mesh_functionals")

MESH_GRADE_VERTEX = 0
MESH_GRADE_LINE = 1
MESH_GRADE_AREA = 2
MESH_GRADE_VOLUME = 3
MAX_GRADE = MESH_GRADE_VOLUME


class MeshError(MissingInputError):
    """Custom exception for invalid mesh topology or geometry."""


class Mesh:
    """Simplicial mesh with column-major vertex storage.

    ``vertices`` has shape ``(D, N)``; column ``j`` holds the coordinates of
    vertex ``j``. Elements of grade ``g > 0`` are stored as an integer array of
    shape ``(n_g, g + 1)`` whose rows keep the vertex order they were given in.
    Incidence and symmetry relations are ``scipy.sparse`` matrices keyed by
    ``(row_grade, col_grade)``:

    * ``(0, g)`` – rows are vertices, columns are elements of grade ``g``;
    * ``(g, 0)`` – rows are elements, columns are vertices (built on demand);
    * ``(g, g)`` – symmetry identification, entry ``(i, j)`` marks element
      ``j`` as an image of element ``i``.
    """

    def __init__(self, vertices, elements: Optional[Dict[int, Iterable]] = None):
        verts = np.array(vertices, dtype=float)
        if verts.ndim == 1:
            verts = verts.reshape(-1, 1)
        if verts.ndim != 2:
            raise MeshError("vertices must be a (D, N) array")
        self.vertices: np.ndarray = verts
        self.elements: Dict[int, np.ndarray] = {}
        self._connectivity: Dict[Tuple[int, int], sp.spmatrix] = {}
        # Identifications given through add_symmetry, per grade.
        self._symmetry_pairs: Dict[int, Set[Tuple[int, int]]] = {}
        self.global_parameters = GlobalParameters()
        self.functional_specs: list = []

        for grade, elts in (elements or {}).items():
            self.add_grade(grade, elts)

    @classmethod
    def from_points(cls, points, elements: Optional[Dict[int, Iterable]] = None):
        """Build a mesh from an ``(N, D)`` list of points."""
        pts = np.array(points, dtype=float)
        if pts.ndim == 1:
            pts = pts.reshape(1, -1)
        return cls(pts.T, elements)

    # ------------------------------------------------------------------
    # Sizes
    # ------------------------------------------------------------------
    @property
    def dim(self) -> int:
        return int(self.vertices.shape[0])

    @property
    def vertex_count(self) -> int:
        return int(self.vertices.shape[1])

    @property
    def max_grade(self) -> int:
        if not self.elements:
            return MESH_GRADE_VERTEX
        return max(self.elements)

    def element_count(self, grade: int) -> int:
        if grade == MESH_GRADE_VERTEX:
            return self.vertex_count
        elts = self.elements.get(grade)
        if elts is None:
            raise ElementRelationNotFoundError(grade)
        return int(elts.shape[0])

    # ------------------------------------------------------------------
    # Topology
    # ------------------------------------------------------------------
    def add_grade(self, grade: int, elements: Iterable) -> np.ndarray:
        """Store elements of ``grade`` and build the ``(0, grade)`` incidence."""
        if grade < MESH_GRADE_LINE or grade > MAX_GRADE:
            raise MeshError(f"Cannot add elements of grade {grade}.")
        arr = np.array(list(elements), dtype=np.int64)
        if arr.size == 0:
            arr = arr.reshape(0, grade + 1)
        if arr.ndim != 2 or arr.shape[1] != grade + 1:
            raise MeshError(
                f"Elements of grade {grade} need exactly {grade + 1} vertices each."
            )
        if arr.size and (arr.min() < 0 or arr.max() >= self.vertex_count):
            raise MeshError(f"Element of grade {grade} refers to a missing vertex.")
        arr.flags.writeable = False
        self.elements[grade] = arr

        n_el = arr.shape[0]
        rows = arr.ravel()
        cols = np.repeat(np.arange(n_el), grade + 1)
        data = np.ones(rows.size, dtype=float)
        self._connectivity[(MESH_GRADE_VERTEX, grade)] = sp.csc_matrix(
            (data, (rows, cols)), shape=(self.vertex_count, n_el)
        )
        # Anything derived from the old element list is stale now.
        self._connectivity.pop((grade, MESH_GRADE_VERTEX), None)
        explicit = self._symmetry_pairs.get(grade)
        if explicit:
            kept = {(i, j) for i, j in explicit if i < n_el and j < n_el}
            if len(kept) < len(explicit):
                logger.warning(
                    "Dropped %d symmetry pairs of grade %d that no longer fit",
                    len(explicit) - len(kept),
                    grade,
                )
            self._symmetry_pairs[grade] = kept
        self._rebuild_symmetry(grade)
        logger.debug("Added %d elements of grade %d", n_el, grade)
        return arr

    def connectivity(self, row_grade: int, col_grade: int) -> Optional[sp.spmatrix]:
        """Return the stored relation between two grades, or ``None``."""
        return self._connectivity.get((row_grade, col_grade))

    def add_connectivity(self, row_grade: int, col_grade: int) -> sp.spmatrix:
        """Return the ``(row_grade, col_grade)`` relation, building it if needed.

        Only the vertex-to-element relation ``(g, 0)`` can be derived; it is
        the transpose of the stored ``(0, g)`` incidence.
        """
        existing = self.connectivity(row_grade, col_grade)
        if existing is not None:
            return existing
        if col_grade == MESH_GRADE_VERTEX and row_grade > MESH_GRADE_VERTEX:
            forward = self.connectivity(MESH_GRADE_VERTEX, row_grade)
            if forward is None:
                raise ElementRelationNotFoundError(row_grade)
            reverse = sp.csc_matrix(forward.T)
            self._connectivity[(row_grade, col_grade)] = reverse
            return reverse
        raise ElementRelationNotFoundError(
            row_grade,
            f"Cannot derive relation ({row_grade}, {col_grade}) for this mesh.",
        )

    def element_vertices(self, grade: int, element_id: int) -> np.ndarray:
        """Return the ordered vertex ids of an element as a read-only view."""
        if grade == MESH_GRADE_VERTEX:
            vid = np.array([element_id], dtype=np.int64)
            vid.flags.writeable = False
            return vid
        elts = self.elements.get(grade)
        if elts is None:
            raise ElementRelationNotFoundError(grade)
        return elts[element_id]

    def incident_elements(self, grade: int, vertex_id: int) -> np.ndarray:
        """Return the ids of grade-``grade`` elements touching ``vertex_id``."""
        if grade <= MESH_GRADE_VERTEX:
            raise ElementRelationNotFoundError(
                grade, "Vertices have no incident elements of grade 0."
            )
        rel = self.add_connectivity(grade, MESH_GRADE_VERTEX)
        start, stop = rel.indptr[vertex_id], rel.indptr[vertex_id + 1]
        return rel.indices[start:stop]

    # ------------------------------------------------------------------
    # Symmetries
    # ------------------------------------------------------------------
    def add_symmetry(self, pairs: Iterable[Tuple[int, int]], grade: int = 0):
        """Identify elements of ``grade``: each ``(i, j)`` makes ``j`` an image of ``i``.

        Vertex identifications are lifted to every stored higher grade: an
        element whose vertices map, through the identification, exactly onto
        the vertices of another element becomes that element's image. A
        vertex may have several images; each combination is tried. Pairs
        given for a grade directly are kept alongside the lifted ones.
        """
        n = self.element_count(grade)
        explicit = self._symmetry_pairs.setdefault(grade, set())
        for i, j in pairs:
            i, j = int(i), int(j)
            if not (0 <= i < n and 0 <= j < n):
                raise MeshError(
                    f"Symmetry pair ({i}, {j}) is out of range for grade {grade}."
                )
            if i == j:
                continue
            explicit.add((i, j))

        rel = self._rebuild_symmetry(grade)
        if grade == MESH_GRADE_VERTEX:
            for g in sorted(self.elements):
                self._rebuild_symmetry(g)
        return rel

    def _rebuild_symmetry(self, grade: int) -> Optional[sp.dok_matrix]:
        pairs = set(self._symmetry_pairs.get(grade, ()))
        if grade > MESH_GRADE_VERTEX:
            lifted = self._lifted_pairs(grade)
            if lifted:
                logger.debug(
                    "Lifted %d vertex identifications to grade %d", len(lifted), grade
                )
            pairs |= lifted
        if not pairs:
            self._connectivity.pop((grade, grade), None)
            return None
        n = self.element_count(grade)
        rel = sp.dok_matrix((n, n), dtype=float)
        for i, j in sorted(pairs):
            rel[i, j] = 1.0
        self._connectivity[(grade, grade)] = rel
        return rel

    def _lifted_pairs(self, grade: int) -> Set[Tuple[int, int]]:
        vertex_pairs = self._symmetry_pairs.get(MESH_GRADE_VERTEX)
        if not vertex_pairs:
            return set()
        images = defaultdict(set)
        for i, j in vertex_pairs:
            images[i].add(j)
        elts = self.elements[grade]
        by_vertices = {frozenset(row.tolist()): k for k, row in enumerate(elts)}

        pairs = set()
        for k, row in enumerate(elts):
            if not any(int(v) in images for v in row):
                continue
            choices = [
                sorted(images[int(v)]) if int(v) in images else [int(v)] for v in row
            ]
            for mapped in itertools.product(*choices):
                target = by_vertices.get(frozenset(mapped))
                if target is not None and target != k:
                    pairs.add((k, target))
        return pairs

    # ------------------------------------------------------------------
    # Coordinates
    # ------------------------------------------------------------------
    def get_vertex(self, vertex_id: int) -> np.ndarray:
        return self.vertices[:, vertex_id]

    def set_vertex(self, vertex_id: int, position) -> None:
        self.vertices[:, vertex_id] = np.asarray(position, dtype=float)

    def get_coordinate(self, axis: int, vertex_id: int) -> float:
        return float(self.vertices[axis, vertex_id])

    def set_coordinate(self, axis: int, vertex_id: int, value: float) -> None:
        self.vertices[axis, vertex_id] = value

    def element_positions(self, vertex_ids) -> np.ndarray:
        """Return the coordinates of ``vertex_ids`` as rows ``(k, D)``."""
        return self.vertices[:, vertex_ids].T

    def copy(self) -> "Mesh":
        new = Mesh(self.vertices.copy())
        new.elements = dict(self.elements)
        new._connectivity = {key: rel.copy() for key, rel in self._connectivity.items()}
        new._symmetry_pairs = {g: set(p) for g, p in self._symmetry_pairs.items()}
        new.global_parameters = GlobalParameters(dict(self.global_parameters.to_dict()))
        new.functional_specs = list(self.functional_specs)
        return new

    def __repr__(self) -> str:
        counts = ", ".join(
            f"g{g}={self.elements[g].shape[0]}" for g in sorted(self.elements)
        )
        return f"Mesh(dim={self.dim}, vertices={self.vertex_count}, {counts})"
