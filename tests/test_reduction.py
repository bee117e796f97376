import math
import os
import sys

import numpy as np
import pytest

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from core.exceptions import DegenerateElementError, FunctionalError
from geometry.mesh import MESH_GRADE_AREA, MESH_GRADE_LINE, MESH_GRADE_VERTEX, Mesh
from geometry.selection import Selection
from modules.energy import area, area_enclosed, length, volume, volume_enclosed
from runtime.reduction import KahanSum, map_integrand, sum_integrand
from sample_meshes import (
    edge_mesh,
    octahedron_mesh,
    square_loop_mesh,
    square_mesh,
    tetra_mesh,
    triangle_mesh,
)


def test_kahan_sum_keeps_small_terms():
    acc = KahanSum()
    acc.add(1e16)
    for _ in range(2000):
        acc.add(1.0)
    assert float(acc) == 1e16 + 2000.0


def test_total_is_compensated():
    mesh = Mesh.from_points(np.zeros((2001, 1)))

    def big_then_ones(mesh, element_id, vertex_ids, ref):
        return 1e16 if element_id == 0 else 1.0

    naive = 0.0
    for eid in range(2001):
        naive += big_then_ones(mesh, eid, None, None)
    assert naive != 1e16 + 2000.0
    assert sum_integrand(mesh, None, MESH_GRADE_VERTEX, big_then_ones) == 1e16 + 2000.0


def test_length_of_single_edge():
    mesh = edge_mesh((1.0, 2.0, 3.0), (4.0, 6.0, 3.0))
    assert math.isclose(length.build_functional().total(mesh), 5.0)


def test_area_and_volume_of_unit_simplices():
    assert math.isclose(area.build_functional().total(triangle_mesh()), 0.5)
    assert math.isclose(volume.build_functional().total(tetra_mesh()), 1.0 / 6.0)


def test_volume_ignores_orientation():
    mesh = Mesh.from_points(
        [[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [0.0, 1.0, 0.0], [0.0, 0.0, 1.0]],
        {3: [[0, 2, 1, 3]]},
    )
    assert math.isclose(volume.build_functional().total(mesh), 1.0 / 6.0)


def test_enclosed_area_and_volume():
    assert math.isclose(area_enclosed.build_functional().total(square_loop_mesh()), 4.0)
    assert math.isclose(
        volume_enclosed.build_functional().total(octahedron_mesh()), 4.0 / 3.0
    )


def test_total_of_planar_mesh():
    mesh = Mesh.from_points(
        [[0.0, 0.0], [2.0, 0.0], [0.0, 1.0]], {1: [[0, 1]], 2: [[0, 1, 2]]}
    )
    assert mesh.dim == 2
    assert math.isclose(area.build_functional().total(mesh), 1.0)
    assert math.isclose(length.build_functional().total(mesh), 2.0)


def test_total_is_additive_over_partitions():
    mesh = square_mesh(3, 2)
    functional = area.build_functional()
    whole = functional.total(mesh)

    first = Selection({MESH_GRADE_AREA: [0, 3, 5, 7]})
    rest = Selection({MESH_GRADE_AREA: [1, 2, 4, 6, 8, 9, 10, 11]})
    parts = functional.total(mesh, first) + functional.total(mesh, rest)
    assert math.isclose(whole, 1.0)
    assert math.isclose(parts, whole)


def test_map_has_one_slot_per_element():
    mesh = square_mesh(2, 2)
    functional = area.build_functional()
    values = functional.integrand(mesh)
    assert values.shape == (mesh.element_count(MESH_GRADE_AREA),)
    assert np.allclose(values, 0.125)


def test_map_leaves_unselected_slots_zero():
    mesh = triangle_mesh()
    sel = Selection({MESH_GRADE_LINE: [2, 0]})
    values = length.build_functional().integrand(mesh, sel)
    assert values.shape == (3,)
    assert math.isclose(values[0], 1.0)
    assert values[1] == 0.0
    assert math.isclose(values[2], 1.0)


def test_map_sum_matches_total():
    mesh = tetra_mesh()
    functional = area.build_functional()
    assert math.isclose(float(np.sum(functional.integrand(mesh))), functional.total(mesh))


def test_no_elements_gives_none():
    mesh = Mesh.from_points([[0.0, 0.0, 0.0]], {1: []})
    functional = length.build_functional()
    assert functional.total(mesh) is None
    assert functional.integrand(mesh) is None
    assert functional.gradient(mesh) is None


def test_failing_integrand_aborts_total(caplog):
    mesh = triangle_mesh()
    visited = []

    def fails_on_second(mesh, element_id, vertex_ids, ref):
        visited.append(element_id)
        if element_id == 1:
            raise DegenerateElementError(element_id, MESH_GRADE_LINE, "test")
        return 1.0

    with caplog.at_level("ERROR", logger="mesh_functionals"):
        with pytest.raises(FunctionalError):
            sum_integrand(mesh, None, MESH_GRADE_LINE, fails_on_second)
    assert visited == [0, 1]
    assert "Total aborted" in caplog.text

    with pytest.raises(DegenerateElementError):
        map_integrand(mesh, None, MESH_GRADE_LINE, fails_on_second)
