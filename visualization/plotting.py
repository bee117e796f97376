import logging
from itertools import combinations
from typing import Optional

import matplotlib.pyplot as plt
import numpy as np
from matplotlib import cm, colors
from mpl_toolkits.mplot3d.art3d import Line3DCollection, Poly3DCollection

from geometry.mesh import (
    MESH_GRADE_AREA,
    MESH_GRADE_LINE,
    MESH_GRADE_VERTEX,
    MESH_GRADE_VOLUME,
    Mesh,
)

logger = logging.getLogger("mesh_functionals")


def _points_3d(mesh: Mesh) -> np.ndarray:
    """Vertex coordinates as ``(N, 3)`` rows, zero padded below 3D."""
    pts = mesh.vertices.T
    if pts.shape[1] >= 3:
        return pts[:, :3]
    return np.pad(pts, ((0, 0), (0, 3 - pts.shape[1])))


def plot_element_values(
    mesh: Mesh,
    values: Optional[np.ndarray],
    grade: int,
    ax=None,
    cmap: str = "viridis",
    colorbar: bool = True,
    show: bool = False,
):
    """
    Draw the elements of ``grade`` coloured by per-element ``values``.

    Parameters
    ----------
    mesh :
        The :class:`~geometry.mesh.Mesh` to draw.
    values :
        Vector indexed by element id, as returned by a functional's
        ``integrand`` method. ``None`` (no elements) draws nothing.
    grade : int
        Grade the values belong to: vertices are scattered, edges drawn
        as segments, faces as filled triangles and tetrahedra through
        their four faces.
    ax : mpl_toolkits.mplot3d.Axes3D, optional
        Axis to draw into. A new figure and 3D axis are created if omitted.
    show : bool, optional
        If ``True``, call :func:`matplotlib.pyplot.show` after drawing.

    Returns
    -------
    The axis that was drawn into.
    """
    if ax is None:
        fig = plt.figure()
        ax = fig.add_subplot(111, projection="3d")

    if values is None or mesh.vertex_count == 0:
        logger.warning("No element values to visualize.")
        return ax

    values = np.asarray(values, dtype=float).ravel()
    norm = colors.Normalize(vmin=float(values.min()), vmax=float(values.max()))
    mapper = cm.ScalarMappable(norm=norm, cmap=cmap)
    pts = _points_3d(mesh)

    if grade == MESH_GRADE_VERTEX:
        ax.scatter(pts[:, 0], pts[:, 1], pts[:, 2], c=mapper.to_rgba(values), s=20)
    elif grade == MESH_GRADE_LINE:
        segments = pts[mesh.elements[grade]]
        ax.add_collection3d(
            Line3DCollection(list(segments), colors=mapper.to_rgba(values), linewidths=1.5)
        )
    elif grade == MESH_GRADE_AREA:
        triangles = pts[mesh.elements[grade]]
        collection = Poly3DCollection(list(triangles), edgecolor="k", linewidths=0.5)
        collection.set_facecolor(mapper.to_rgba(values))
        ax.add_collection3d(collection)
    elif grade == MESH_GRADE_VOLUME:
        polys, face_colors = [], []
        for row, rgba in zip(mesh.elements[grade], mapper.to_rgba(values)):
            for face in combinations(row, 3):
                polys.append(pts[list(face)])
                face_colors.append(rgba)
        collection = Poly3DCollection(polys, alpha=0.4, edgecolor="k", linewidths=0.3)
        collection.set_facecolor(face_colors)
        ax.add_collection3d(collection)
    else:
        raise ValueError(f"Cannot plot values of grade {grade}.")

    lo, hi = pts.min(axis=0), pts.max(axis=0)
    pad = 0.05 * max(float(np.max(hi - lo)), 1e-12)
    ax.set_xlim(lo[0] - pad, hi[0] + pad)
    ax.set_ylim(lo[1] - pad, hi[1] + pad)
    ax.set_zlim(lo[2] - pad, hi[2] + pad)

    if colorbar:
        mapper.set_array(values)
        plt.colorbar(mapper, ax=ax, shrink=0.7)

    if show:
        plt.show()
    return ax


__all__ = ["plot_element_values"]
