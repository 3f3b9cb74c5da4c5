"""Brush dispatch: box, cylinder and imported-mesh building blocks."""

from __future__ import annotations

import logging
from dataclasses import replace
from functools import singledispatch
from typing import Optional, Union

import numpy as np

from world_uv.contracts import (
    MERGE_TOLERANCE,
    BoxSpec,
    CylinderSpec,
    ImportedMesh,
    MeshBuffer,
    ProjectionMode,
    to_vec3,
)
from world_uv.geometry_prep import normal_matrix, prepare_for_world_projection, to_non_indexed
from world_uv.primitive_uv import apply_box_uvs, apply_cylinder_uvs, build_box, build_cylinder
from world_uv.world_mapping import map_world_space_uvs

logger = logging.getLogger(__name__)

Brush = Union[BoxSpec, CylinderSpec, ImportedMesh]


@singledispatch
def texture_brush(
    brush,
    mode: ProjectionMode = ProjectionMode.PER_VERTEX_NORMAL,
    weld: bool = True,
    tolerance: float = MERGE_TOLERANCE,
) -> Optional[MeshBuffer]:
    """Return textured geometry for *brush*.

    Primitives get their closed-form, size-scaled UVs in local space.
    Imported meshes are moved to world space, projected and returned as a
    flat triangle list; welding only applies to the per-vertex-normal mode.
    Returns None for an imported mesh without positions.
    """
    raise TypeError(f"Unsupported brush type: {type(brush).__name__}")


@texture_brush.register
def _(brush: BoxSpec, mode=ProjectionMode.PER_VERTEX_NORMAL, weld=True,
      tolerance=MERGE_TOLERANCE) -> Optional[MeshBuffer]:
    return apply_box_uvs(build_box(brush), brush)


@texture_brush.register
def _(brush: CylinderSpec, mode=ProjectionMode.PER_VERTEX_NORMAL, weld=True,
      tolerance=MERGE_TOLERANCE) -> Optional[MeshBuffer]:
    return apply_cylinder_uvs(build_cylinder(brush), brush)


@texture_brush.register
def _(brush: ImportedMesh, mode=ProjectionMode.PER_VERTEX_NORMAL, weld=True,
      tolerance=MERGE_TOLERANCE) -> Optional[MeshBuffer]:
    should_weld = weld and mode is ProjectionMode.PER_VERTEX_NORMAL
    prepared = prepare_for_world_projection(
        brush.buffer, brush.world_matrix, weld=should_weld, tolerance=tolerance,
    )
    if prepared is None:
        logger.warning("Imported mesh %r has no positions; skipped", brush.name)
        return None
    return to_non_indexed(map_world_space_uvs(prepared, mode))


@singledispatch
def bake_scale(brush, scale) -> Brush:
    """Fold an object scale into the brush's own dimensions.

    Boxes scale per axis, cylinders take the larger horizontal factor for
    the radius and the vertical factor for the height. Imported meshes have
    their local positions scaled and normals carried through the matching
    normal matrix.
    """
    raise TypeError(f"Unsupported brush type: {type(brush).__name__}")


@bake_scale.register
def _(brush: BoxSpec, scale) -> Brush:
    s = np.asarray(scale, dtype=float).reshape(3)
    return BoxSpec(half_extents=to_vec3(np.asarray(brush.half_extents) * s))


@bake_scale.register
def _(brush: CylinderSpec, scale) -> Brush:
    sx, sy, sz = np.asarray(scale, dtype=float).reshape(3)
    return replace(brush, radius=brush.radius * max(sx, sz), height=brush.height * sy)


@bake_scale.register
def _(brush: ImportedMesh, scale) -> Brush:
    s = np.asarray(scale, dtype=float).reshape(3)
    buffer = brush.buffer.copy()
    if buffer.positions is not None:
        buffer.positions = buffer.positions * s
    if buffer.normals is not None:
        scaled = buffer.normals @ normal_matrix(np.diag([*s, 1.0])).T
        lengths = np.linalg.norm(scaled, axis=1, keepdims=True)
        buffer.normals = np.divide(
            scaled, lengths, out=np.zeros_like(scaled), where=lengths > 1e-12
        )
    return replace(brush, buffer=buffer)
