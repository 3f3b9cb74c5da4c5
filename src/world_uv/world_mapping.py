"""
World-space UV projection.

Each vertex (or triangle) is classified by its normal, its world position is
projected onto the two remaining axes and snapped to a fine grid so that
coincident positions from unrelated meshes land on bit-identical UVs. The
texture period is one world unit on every face.
"""
import logging
from collections import Counter
from typing import Dict

import numpy as np

from world_uv.axis_projection import project_normals, snapped_normals
from world_uv.contracts import (
    UV_AXIS_COLUMNS,
    UV_GRID,
    Axis,
    AxisResult,
    MeshBuffer,
    MissingAttributeError,
    ProjectionMode,
    Space,
)
from world_uv.geometry_prep import compute_face_normals, to_non_indexed

logger = logging.getLogger(__name__)


def snap_to_grid(values, grid: float = UV_GRID) -> np.ndarray:
    """Round values to the nearest multiple of *grid*.

    Negative zeros are folded into +0.0 so that shared seams compare equal
    bit for bit.
    """
    snapped = np.round(np.asarray(values, dtype=float) / grid) * grid
    return snapped + 0.0


def map_world_space_uvs(
    mesh: MeshBuffer,
    mode: ProjectionMode = ProjectionMode.PER_VERTEX_NORMAL,
    grid: float = UV_GRID,
) -> MeshBuffer:
    """Return a copy of *mesh* with world-space UVs and snapped normals.

    ``PER_TRIANGLE_COMPUTED`` derives a face normal per triangle and writes it
    to all three corners, expanding indexed input first so corners stay
    independent. ``PER_VERTEX_NORMAL`` uses each vertex's existing (usually
    averaged) normal and keeps the topology as is.
    """
    if mesh.positions is None:
        raise MissingAttributeError("mesh has no positions to project")
    if mesh.space is not Space.WORLD:
        logger.debug("Projecting a %s-space buffer as world space", mesh.space.value)

    if mode is ProjectionMode.PER_TRIANGLE_COMPUTED:
        out = to_non_indexed(mesh)
        face_normals = compute_face_normals(out.positions, out.corner_indices())
        axes, signs = project_normals(face_normals)
        axes = np.repeat(axes, 3)
        signs = np.repeat(signs, 3)
    elif mode is ProjectionMode.PER_VERTEX_NORMAL:
        if mesh.normals is None:
            raise MissingAttributeError(
                "per-vertex projection needs vertex normals; prepare the mesh first"
            )
        out = mesh.copy()
        axes, signs = project_normals(out.normals)
    else:
        raise ValueError(f"Unknown projection mode: {mode!r}")

    out.uvs = _project_positions(out.positions, axes, signs, grid)
    out.normals = snapped_normals(axes, signs)
    logger.debug(
        "Mapped %d vertices (%d triangles) in %s mode",
        out.vertex_count, out.triangle_count, mode.value,
    )
    return out


def _project_positions(
    positions: np.ndarray,
    axes: np.ndarray,
    signs: np.ndarray,
    grid: float,
) -> np.ndarray:
    rows = np.arange(len(positions))
    columns = UV_AXIS_COLUMNS[axes]
    u = snap_to_grid(positions[rows, columns[:, 0]], grid)
    v = snap_to_grid(positions[rows, columns[:, 1]], grid)
    # Negative-facing sides mirror U.
    u = np.where(signs < 0, -u, u) + 0.0
    return np.column_stack([u, v])


def summarize_directions(mesh: MeshBuffer) -> Dict[str, int]:
    """Count vertices per snapped face direction, keyed like ``"+X"``."""
    if mesh.normals is None or mesh.vertex_count == 0:
        return {}
    axes, signs = project_normals(mesh.normals)
    counts = Counter(
        AxisResult(axis=Axis(int(a)), sign=int(s)).label for a, s in zip(axes, signs)
    )
    return dict(sorted(counts.items()))
