import math
import os
import sys

import numpy as np
import pytest

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from core.exceptions import CallbackError, MissingReferenceError
from geometry.mesh import MESH_GRADE_VERTEX
from geometry.selection import Selection
from modules.energy import scalar_potential
from runtime.symmetry import SymmetryPolicy
from sample_meshes import skewed_mesh, triangle_mesh


def _potential(x, y, z):
    return x * x + y + 2.0 * z


def _potential_gradient(x, y, z):
    return [2.0 * x, 1.0, 2.0]


def test_total_and_map():
    mesh = triangle_mesh()
    functional = scalar_potential.build_functional(function=_potential)
    assert functional.grade == MESH_GRADE_VERTEX
    assert functional.symmetry is SymmetryPolicy.NONE
    assert math.isclose(functional.total(mesh), 2.0)
    assert np.allclose(functional.integrand(mesh), [0.0, 1.0, 1.0])


def test_selection_restricts_vertices():
    mesh = triangle_mesh()
    functional = scalar_potential.build_functional(function=_potential)
    sel = Selection.from_vertices([2])
    assert math.isclose(functional.total(mesh, sel), 1.0)
    assert np.allclose(functional.integrand(mesh, sel), [0.0, 0.0, 1.0])


def test_analytic_gradient():
    mesh = skewed_mesh()
    functional = scalar_potential.build_functional(
        function=_potential, gradient_function=_potential_gradient
    )
    assert functional.has_analytic_gradient
    grad = functional.gradient(mesh)
    expected = np.vstack(
        [2.0 * mesh.vertices[0], np.ones(4), 2.0 * np.ones(4)]
    )
    assert np.allclose(grad, expected)


def test_gradient_falls_back_to_finite_differences():
    mesh = skewed_mesh()
    functional = scalar_potential.build_functional(function=_potential, fd_eps=1e-6)
    assert not functional.has_analytic_gradient
    grad = functional.gradient(mesh)
    expected = np.vstack(
        [2.0 * mesh.vertices[0], np.ones(4), 2.0 * np.ones(4)]
    )
    assert np.allclose(grad, expected, atol=1e-6)


def test_numpy_scalar_results_are_accepted():
    mesh = triangle_mesh()
    functional = scalar_potential.build_functional(function=lambda x, y, z: np.array([x]))
    assert math.isclose(functional.total(mesh), 1.0)


def test_failing_callback_raises_and_restores_coordinates():
    mesh = triangle_mesh()
    before = mesh.vertices.copy()
    calls = []

    def flaky(x, y, z):
        calls.append((x, y, z))
        if len(calls) > 1:
            raise RuntimeError("boom")
        return x

    functional = scalar_potential.build_functional(function=flaky)
    with pytest.raises(CallbackError) as excinfo:
        functional.gradient(mesh)
    assert excinfo.value.element_id == 0
    assert isinstance(excinfo.value.__cause__, RuntimeError)
    assert np.array_equal(mesh.vertices, before)


def test_wrong_result_shapes():
    mesh = triangle_mesh()
    bad_value = scalar_potential.build_functional(function=lambda x, y, z: [x, y])
    with pytest.raises(CallbackError):
        bad_value.total(mesh)

    bad_grad = scalar_potential.build_functional(
        function=_potential, gradient_function=lambda x, y, z: [1.0, 2.0]
    )
    with pytest.raises(CallbackError):
        bad_grad.gradient(mesh)


def test_missing_or_invalid_callbacks():
    with pytest.raises(MissingReferenceError):
        scalar_potential.build_functional()
    with pytest.raises(CallbackError):
        scalar_potential.build_functional(function=3.0)
    with pytest.raises(CallbackError):
        scalar_potential.build_functional(function=_potential, gradient_function="grad")
