import os
import sys

import numpy as np
import pytest

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from geometry.vector_ops import (
    vec_add,
    vec_add_scale,
    vec_cross,
    vec_dot,
    vec_norm,
    vec_scale,
    vec_sub,
)


def test_elementwise_helpers():
    a = np.array([1.0, 2.0, 3.0])
    b = np.array([0.5, -1.0, 2.0])
    assert np.allclose(vec_add(a, b), [1.5, 1.0, 5.0])
    assert np.allclose(vec_sub(a, b), [0.5, 3.0, 1.0])
    assert np.allclose(vec_scale(2.0, a), [2.0, 4.0, 6.0])
    assert np.allclose(vec_add_scale(a, -2.0, b), [0.0, 4.0, -1.0])


def test_dot_and_norm_return_floats():
    a = np.array([3.0, 4.0])
    assert vec_dot(a, a) == 25.0
    assert vec_norm(a) == 5.0
    assert isinstance(vec_norm(a), float)


def test_cross_in_3d():
    ex = np.array([1.0, 0.0, 0.0])
    ey = np.array([0.0, 1.0, 0.0])
    assert np.allclose(vec_cross(ex, ey), [0.0, 0.0, 1.0])
    assert np.allclose(vec_cross(ey, ex), [0.0, 0.0, -1.0])


def test_cross_pads_planar_vectors():
    out = vec_cross(np.array([2.0, 0.0]), np.array([0.0, 3.0]))
    assert out.shape == (3,)
    assert np.allclose(out, [0.0, 0.0, 6.0])


def test_cross_rejects_higher_dimensions():
    with pytest.raises(ValueError):
        vec_cross(np.ones(4), np.ones(4))
