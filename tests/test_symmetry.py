import os
import sys

import numpy as np
import pytest

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from geometry.mesh import MESH_GRADE_LINE, MESH_GRADE_VERTEX, Mesh
from geometry.selection import Selection
from modules.energy import length, scalar_potential
from runtime.symmetry import ImageFilter, SymmetryPolicy, image_list, sum_forces
from sample_meshes import periodic_edge_mesh, triangle_mesh


def test_image_list_is_sorted_and_skips_diagonal():
    mesh = triangle_mesh()
    mesh.add_symmetry([(2, 1), (0, 0), (1, 0)], grade=MESH_GRADE_LINE)
    assert image_list(mesh, MESH_GRADE_LINE).tolist() == [0, 1]
    assert image_list(mesh, 2).size == 0


def test_image_filter_co_scan():
    images = ImageFilter(np.array([1, 4]))
    hits = [eid for eid in range(6) if images.is_image(eid)]
    assert hits == [1, 4]
    assert len(images) == 2


def test_image_filter_unordered_ids():
    images = ImageFilter(np.array([1, 4]), ascending=False)
    hits = [eid for eid in [5, 4, 0, 1] if images.is_image(eid)]
    assert hits == [4, 1]


def test_sum_forces_folds_identified_columns():
    mesh = periodic_edge_mesh()
    frc = np.arange(12, dtype=float).reshape(3, 4)
    assert sum_forces(mesh, frc)
    assert np.allclose(frc[:, 0], frc[:, 2])
    assert np.allclose(frc[:, 1], frc[:, 3])
    assert np.allclose(frc[:, 0], [2.0, 10.0, 18.0])


def test_sum_forces_without_symmetry():
    mesh = triangle_mesh()
    frc = np.ones((3, 3))
    assert not sum_forces(mesh, frc)
    assert np.allclose(frc, 1.0)


def test_policy_coerce():
    assert SymmetryPolicy.coerce("ADD") is SymmetryPolicy.ADD
    assert SymmetryPolicy.coerce(SymmetryPolicy.NONE) is SymmetryPolicy.NONE
    with pytest.raises(ValueError):
        SymmetryPolicy.coerce("mirror")


def test_image_edge_counted_once():
    mesh = periodic_edge_mesh()
    functional = length.build_functional()
    single = float(np.hypot(1.0, 0.5))
    assert np.isclose(functional.total(mesh), single)

    values = functional.integrand(mesh)
    assert values.shape == (2,)
    assert np.isclose(values[0], single)
    assert values[1] == 0.0


def test_image_skipped_for_unordered_selection():
    mesh = periodic_edge_mesh()
    functional = length.build_functional()
    sel = Selection({MESH_GRADE_LINE: [1, 0]})
    assert np.isclose(functional.total(mesh, sel), np.hypot(1.0, 0.5))


def test_gradient_columns_agree_after_fold_back():
    mesh = periodic_edge_mesh()
    grad = length.build_functional().gradient(mesh)
    assert np.allclose(grad[:, 0], grad[:, 2])
    assert np.allclose(grad[:, 1], grad[:, 3])

    unfolded = length.build_functional(symmetry_policy="none").gradient(mesh)
    assert np.allclose(grad[:, 0], unfolded[:, 0] + unfolded[:, 2])


def test_vertex_images_skipped_in_total():
    mesh = periodic_edge_mesh()
    functional = scalar_potential.build_functional(function=lambda x, y, z: x)
    # Vertices 2 and 3 are images; only 0 and 1 contribute.
    assert np.isclose(functional.total(mesh), 1.0)
    sel = Selection({MESH_GRADE_VERTEX: [3, 1]})
    assert np.isclose(functional.total(mesh, sel), 1.0)


def test_every_image_of_a_shared_vertex_is_skipped():
    mesh = Mesh.from_points(
        [
            [0.0, 0.0, 0.0],
            [0.0, 1.0, 0.0],
            [1.0, 0.0, 0.0],
            [5.0, 5.0, 5.0],
            [0.0, 0.0, 1.0],
        ],
        {1: [[0, 1], [2, 1], [4, 1]]},
    )
    mesh.add_symmetry([(0, 2), (0, 4)])
    assert image_list(mesh, MESH_GRADE_LINE).tolist() == [1, 2]
    functional = length.build_functional()
    assert np.isclose(functional.total(mesh), 1.0)
    values = functional.integrand(mesh)
    assert np.allclose(values, [1.0, 0.0, 0.0])


def test_explicit_edge_images_kept_after_vertex_symmetry():
    mesh = Mesh.from_points(
        [[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [0.0, 0.0, 1.0], [1.0, 0.0, 1.0]],
        {1: [[0, 1], [2, 3], [0, 2], [1, 3]]},
    )
    mesh.add_symmetry([(3, 2)], grade=MESH_GRADE_LINE)
    mesh.add_symmetry([(0, 2), (1, 3)])
    assert image_list(mesh, MESH_GRADE_LINE).tolist() == [1, 2]
    # Edges 0 and 3 remain, each of unit length.
    assert np.isclose(length.build_functional().total(mesh), 2.0)
