# geom_io.py
import json
import logging
from itertools import combinations

import numpy as np
import yaml

from geometry.mesh import MESH_GRADE_AREA, MESH_GRADE_LINE, MESH_GRADE_VOLUME, Mesh
from parameters.global_parameters import GlobalParameters

logger = logging.getLogger("mesh_functionals")

_GRADE_KEYS = {
    MESH_GRADE_LINE: "edges",
    MESH_GRADE_AREA: "faces",
    MESH_GRADE_VOLUME: "volumes",
}


def load_data(filename):
    """Load geometry from a JSON or YAML file.

    Expected format:
    {
        "vertices": [[x, y, z], ...],
        "edges": [[i, j], ...],
        "faces": [[i, j, k], ...],
        "volumes": [[i, j, k, l], ...],
        "symmetry": [[i, j], ...],
        "global_parameters": {...},
        "functionals": ["area", {"name": "volume_enclosed", "prefactor": -1.0}]
    }"""
    filename_str = str(filename)
    with open(filename_str, "r") as f:
        if filename_str.endswith((".yaml", ".yml")):
            data = yaml.safe_load(f)
        elif filename_str.endswith(".json"):
            data = json.load(f)
        else:
            logger.error(f"Unsupported file format for: {filename_str}")
            raise ValueError(f"Unsupported file format for: {filename_str}")

    return data


def _sub_simplices(elements, size: int):
    """Unique sorted ``size``-vertex faces of ``elements``, in first-seen order."""
    seen = {}
    for row in elements:
        for combo in combinations(row, size):
            key = tuple(sorted(int(v) for v in combo))
            seen.setdefault(key, None)
    return list(seen)


def parse_geometry(data: dict) -> Mesh:
    vertices = data.get("vertices")
    if not vertices:
        raise ValueError("Geometry needs a non-empty 'vertices' list.")
    mesh = Mesh.from_points(np.asarray(vertices, dtype=float))

    # Override global parameters with values from the input file
    mesh.global_parameters = GlobalParameters()
    mesh.global_parameters.update(data.get("global_parameters", {}) or {})

    def _coerce_float_param(key: str) -> None:
        """Coerce numeric global parameters that may parse as strings in YAML."""
        val = mesh.global_parameters.get(key)
        if isinstance(val, str):
            try:
                mesh.global_parameters.set(key, float(val))
            except ValueError:
                logger.warning(
                    "global_parameters.%s should be numeric; got %r", key, val
                )

    for _key in ("degeneracy_eps", "fd_eps", "poisson_ratio", "prefactor"):
        _coerce_float_param(_key)

    grade_data = {g: data.get(key) for g, key in _GRADE_KEYS.items()}

    if data.get("derive_faces") and grade_data[MESH_GRADE_VOLUME] and not grade_data[MESH_GRADE_AREA]:
        grade_data[MESH_GRADE_AREA] = _sub_simplices(grade_data[MESH_GRADE_VOLUME], 3)
    if data.get("derive_edges") and not grade_data[MESH_GRADE_LINE]:
        source = grade_data[MESH_GRADE_AREA] or grade_data[MESH_GRADE_VOLUME]
        if source:
            grade_data[MESH_GRADE_LINE] = _sub_simplices(source, 2)

    for grade, elements in grade_data.items():
        if elements:
            mesh.add_grade(grade, elements)

    symmetry = data.get("symmetry")
    if symmetry:
        mesh.add_symmetry([tuple(pair) for pair in symmetry])

    mesh.functional_specs = list(data.get("functionals", []) or [])

    logger.info(f"Parsed geometry: {mesh!r}")
    return mesh


def load_geometry(filename) -> Mesh:
    """Read and parse a geometry file in one step."""
    return parse_geometry(load_data(filename))
