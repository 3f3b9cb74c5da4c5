"""
Dominant-axis selection for surface normals.

A normal is classified into one of six signed principal axes. When the two
largest components are nearly equal (a face on a 45 degree diagonal), the
largest one flips between neighbouring triangles and shears the texture, so
the smallest component's axis is used instead: it stays stable across both
triangles of a quad.
"""
from typing import Tuple

import numpy as np

from world_uv.contracts import TIE_EPS, Axis, AxisResult


def project_normals(normals: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """Classify many normals at once.

    Args:
        normals: (N, 3) normals, unit length or close to it. Not renormalised.

    Returns:
        (axes, signs): (N,) int axis columns and (N,) +1/-1 signs.
    """
    normals = np.asarray(normals, dtype=float).reshape(-1, 3)
    if len(normals) == 0:
        return np.zeros(0, dtype=int), np.zeros(0, dtype=int)

    magnitudes = np.abs(normals)
    # Stable sort keeps X before Y before Z on equal magnitudes; NaN sorts last.
    order = np.argsort(-magnitudes, axis=1, kind="stable")
    ranked = np.take_along_axis(magnitudes, order, axis=1)

    tie = (ranked[:, 0] - ranked[:, 1]) < TIE_EPS
    axes = np.where(tie, order[:, 2], order[:, 0])

    signed = normals[np.arange(len(normals)), axes]
    signs = np.where(signed >= 0.0, 1, -1)
    return axes.astype(int), signs.astype(int)


def project_normal(normal) -> AxisResult:
    """Return the dominant signed axis of a single normal."""
    axes, signs = project_normals(np.asarray(normal, dtype=float).reshape(1, 3))
    return AxisResult(axis=Axis(int(axes[0])), sign=int(signs[0]))


def snapped_normals(axes: np.ndarray, signs: np.ndarray) -> np.ndarray:
    """Axis-aligned unit normals for classified rows."""
    axes = np.asarray(axes, dtype=int)
    out = np.zeros((len(axes), 3), dtype=float)
    out[np.arange(len(axes)), axes] = np.asarray(signs, dtype=float)
    return out
