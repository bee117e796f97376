import math
import os
import sys

import numpy as np
import pytest

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from core.exceptions import DegenerateElementError, MissingInputError, MissingReferenceError
from geometry.field import Field
from geometry.mesh import MESH_GRADE_AREA, Mesh
from modules.energy import grad_sq
from sample_meshes import square_mesh, triangle_mesh


def test_field_shapes():
    mesh = triangle_mesh()
    scalar = Field(mesh, [0.0, 1.0, 2.0])
    assert scalar.psize == 1
    assert scalar.values.shape == (3, 1)
    vector = Field.from_function(mesh, lambda x, y, z: [x, y])
    assert vector.psize == 2
    assert np.allclose(vector.element_values(0, 1), [1.0, 0.0])
    with pytest.raises(MissingInputError):
        Field(mesh, [1.0, 2.0])
    with pytest.raises(MissingInputError):
        scalar.element_values(MESH_GRADE_AREA, 0)


def test_linear_field_gradient_is_exact():
    mesh = triangle_mesh()
    field = Field.from_function(mesh, lambda x, y, z: 2.0 * x + 3.0 * y)
    grad = grad_sq.evaluate_gradient(mesh, field, mesh.element_vertices(MESH_GRADE_AREA, 0))
    assert np.allclose(grad, [[2.0, 3.0, 0.0]])

    functional = grad_sq.build_functional(field=field)
    assert math.isclose(functional.total(mesh), 0.5 * 13.0)


def test_vector_field_sums_components():
    mesh = triangle_mesh()
    field = Field.from_function(mesh, lambda x, y, z: [2.0 * x + 3.0 * y, 1.0])
    assert math.isclose(grad_sq.build_functional(field=field).total(mesh), 6.5)


def test_linear_field_energy_scales_with_area():
    mesh = square_mesh(2, 2)
    field = Field.from_function(mesh, lambda x, y, z: x - y)
    values = grad_sq.build_functional(field=field).integrand(mesh)
    assert np.allclose(values, 0.125 * 2.0)


def test_compute_perpendicular():
    t = grad_sq.compute_perpendicular(np.array([0.0, -1.0, 0.0]), np.array([-1.0, 1.0, 0.0]))
    assert np.allclose(t, [-1.0, -1.0, 0.0])
    assert grad_sq.compute_perpendicular(np.ones(3), np.zeros(3)) is None
    assert grad_sq.compute_perpendicular(np.array([2.0, 0.0, 0.0]), np.array([1.0, 0.0, 0.0])) is None


def test_degenerate_triangle_raises():
    mesh = Mesh.from_points(
        [[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [2.0, 0.0, 0.0]], {2: [[0, 1, 2]]}
    )
    field = Field(mesh, [0.0, 1.0, 2.0])
    with pytest.raises(DegenerateElementError):
        grad_sq.build_functional(field=field).total(mesh)


def test_field_gradient():
    mesh = triangle_mesh()
    field = Field.from_function(mesh, lambda x, y, z: 2.0 * x + 3.0 * y)
    functional = grad_sq.build_functional(field=field, fd_eps=1e-6)
    dq = functional.field_gradient(mesh)
    assert dq.shape == (3, 1)
    assert np.allclose(dq[:, 0], [-5.0, 2.0, 3.0], atol=1e-6)
    assert np.allclose(field.values[:, 0], [0.0, 2.0, 3.0])


def test_coordinate_gradient_by_finite_differences():
    mesh = triangle_mesh()
    field = Field(mesh, [0.0, 2.0, 3.0])
    functional = grad_sq.build_functional(field=field, fd_eps=1e-6)
    assert not functional.has_analytic_gradient
    grad = functional.gradient(mesh)
    assert grad.shape == (3, 3)
    assert np.allclose(grad.sum(axis=1), 0.0, atol=1e-5)


def test_missing_field():
    with pytest.raises(MissingReferenceError):
        grad_sq.build_functional()
