"""Dimension-generic dense vector helpers used by the functional kernels."""

from __future__ import annotations

import numpy as np


def _fast_cross(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Compute cross products for arrays of 3D vectors."""
    x = a[..., 1] * b[..., 2] - a[..., 2] * b[..., 1]
    y = a[..., 2] * b[..., 0] - a[..., 0] * b[..., 2]
    z = a[..., 0] * b[..., 1] - a[..., 1] * b[..., 0]
    out = np.empty(x.shape + (3,), dtype=x.dtype)
    out[..., 0] = x
    out[..., 1] = y
    out[..., 2] = z
    return out


def _as_3d(a: np.ndarray) -> np.ndarray:
    """Embed 1D/2D vectors in 3D by zero padding."""
    a = np.asarray(a, dtype=float)
    n = a.shape[-1]
    if n == 3:
        return a
    if n > 3:
        raise ValueError(f"cross product needs vectors of size <= 3, got {n}")
    pad = [(0, 0)] * (a.ndim - 1) + [(0, 3 - n)]
    return np.pad(a, pad)


def vec_add(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    return np.add(a, b)


def vec_sub(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    return np.subtract(a, b)


def vec_scale(lam: float, a: np.ndarray) -> np.ndarray:
    return lam * np.asarray(a, dtype=float)


def vec_add_scale(a: np.ndarray, lam: float, b: np.ndarray) -> np.ndarray:
    """Return ``a + lam * b``."""
    return np.asarray(a, dtype=float) + lam * np.asarray(b, dtype=float)


def vec_dot(a: np.ndarray, b: np.ndarray) -> float:
    return float(np.dot(a, b))


def vec_norm(a: np.ndarray) -> float:
    return float(np.linalg.norm(a))


def vec_cross(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """3D cross product; 2D inputs are treated as lying in the z=0 plane.

    The result always has three components, so callers working in 2D get
    the out-of-plane normal back.
    """
    return _fast_cross(_as_3d(a), _as_3d(b))


__all__ = [
    "vec_add",
    "vec_sub",
    "vec_scale",
    "vec_add_scale",
    "vec_dot",
    "vec_norm",
    "vec_cross",
]
