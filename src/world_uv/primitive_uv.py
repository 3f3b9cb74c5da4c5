"""
Closed-form UVs for box and cylinder brushes.

Primitive topology and orientation are known when the brush is built, so the
default [0, 1] parametrisation of each face only needs scaling by the face's
physical size for a tiling texture to repeat once per world unit. The
builders here emit the usual BoxGeometry / CylinderGeometry vertex layout,
which the unwrap helpers rely on:

- box: 4 vertices per face, faces ordered +X, -X, +Y, -Y, +Z, -Z;
- cylinder: (radial + 1) * (height + 1) torso vertices, then the top and
  bottom caps with ``2 * radial + 1`` vertices each (centres first).
"""
import math
from typing import Tuple

import numpy as np

from world_uv.contracts import DEFAULT_RADIAL_SEGMENTS, BoxSpec, CylinderSpec, MeshBuffer, Space

# (u axis, v axis, w axis, u direction, v direction, w sign) per box face.
_BOX_FACES = (
    (2, 1, 0, -1, -1, 1),
    (2, 1, 0, 1, -1, -1),
    (0, 2, 1, 1, 1, 1),
    (0, 2, 1, 1, -1, -1),
    (0, 1, 2, 1, -1, 1),
    (0, 1, 2, -1, -1, -1),
)


def unwrap_box(half_extents) -> np.ndarray:
    """Per-face (width, height) UV scale, shape (6, 2), faces +X..-Z."""
    sx, sy, sz = 2.0 * np.asarray(half_extents, dtype=float).reshape(3)
    return np.array(
        [
            [sz, sy], [sz, sy],
            [sx, sz], [sx, sz],
            [sx, sy], [sx, sy],
        ],
        dtype=float,
    )


def unwrap_cylinder(
    radius: float,
    height: float,
    radial_segments: int = DEFAULT_RADIAL_SEGMENTS,
) -> Tuple[np.ndarray, float]:
    """Return (side_scale, cap_scale).

    The side U spans the circumference and V the height; caps are scaled
    by the diameter about their centre so both share one texel density.
    """
    if radial_segments < 3:
        raise ValueError("a cylinder needs at least 3 radial segments")
    side_scale = np.array([2.0 * math.pi * radius, height], dtype=float)
    return side_scale, 2.0 * radius


def build_box(spec: BoxSpec) -> MeshBuffer:
    """Indexed box centred on the origin with default per-face UVs."""
    size = spec.size
    positions, normals, uvs, indices = [], [], [], []
    for u_axis, v_axis, w_axis, u_dir, v_dir, w_sign in _BOX_FACES:
        offset = len(positions)
        width, height, depth = size[u_axis], size[v_axis], size[w_axis]
        for iy in range(2):
            for ix in range(2):
                vertex = np.zeros(3)
                vertex[u_axis] = (ix * width - width / 2.0) * u_dir
                vertex[v_axis] = (iy * height - height / 2.0) * v_dir
                vertex[w_axis] = w_sign * depth / 2.0
                normal = np.zeros(3)
                normal[w_axis] = w_sign
                positions.append(vertex)
                normals.append(normal)
                uvs.append((ix, 1 - iy))
        a, b, c, d = offset, offset + 2, offset + 3, offset + 1
        indices.extend([a, b, d, b, c, d])

    return MeshBuffer(
        positions=np.array(positions),
        normals=np.array(normals),
        uvs=np.array(uvs, dtype=float),
        indices=np.array(indices),
        space=Space.LOCAL,
    )


def build_cylinder(spec: CylinderSpec) -> MeshBuffer:
    """Indexed Y-up cylinder centred on the origin with default UVs."""
    radial, rows = spec.radial_segments, spec.height_segments
    half = spec.height / 2.0
    positions, normals, uvs, indices = [], [], [], []

    grid = []
    for y in range(rows + 1):
        v = y / rows
        row = []
        for x in range(radial + 1):
            u = x / radial
            theta = u * 2.0 * math.pi
            sin_t, cos_t = math.sin(theta), math.cos(theta)
            positions.append((spec.radius * sin_t, -v * spec.height + half, spec.radius * cos_t))
            normals.append((sin_t, 0.0, cos_t))
            uvs.append((u, 1.0 - v))
            row.append(len(positions) - 1)
        grid.append(row)
    for x in range(radial):
        for y in range(rows):
            a, b = grid[y][x], grid[y + 1][x]
            c, d = grid[y + 1][x + 1], grid[y][x + 1]
            indices.extend([a, b, d, b, c, d])

    for sign in (1.0, -1.0):
        center_start = len(positions)
        for _ in range(radial):
            positions.append((0.0, half * sign, 0.0))
            normals.append((0.0, sign, 0.0))
            uvs.append((0.5, 0.5))
        ring_start = len(positions)
        for x in range(radial + 1):
            theta = x / radial * 2.0 * math.pi
            sin_t, cos_t = math.sin(theta), math.cos(theta)
            positions.append((spec.radius * sin_t, half * sign, spec.radius * cos_t))
            normals.append((0.0, sign, 0.0))
            uvs.append((cos_t * 0.5 + 0.5, sin_t * 0.5 * sign + 0.5))
        for x in range(radial):
            c, i = center_start + x, ring_start + x
            if sign > 0:
                indices.extend([i, i + 1, c])
            else:
                indices.extend([i + 1, i, c])

    return MeshBuffer(
        positions=np.array(positions, dtype=float),
        normals=np.array(normals, dtype=float),
        uvs=np.array(uvs, dtype=float),
        indices=np.array(indices),
        space=Space.LOCAL,
    )


def apply_box_uvs(mesh: MeshBuffer, spec: BoxSpec) -> MeshBuffer:
    """Scale a box buffer's per-face UVs to its physical size."""
    if mesh.uvs is None:
        return mesh.copy()
    if mesh.vertex_count != 24:
        raise ValueError(f"expected a 24-vertex box, got {mesh.vertex_count} vertices")
    out = mesh.copy()
    scales = np.repeat(unwrap_box(spec.half_extents), 4, axis=0)
    out.uvs = out.uvs * scales
    return out


def apply_cylinder_uvs(mesh: MeshBuffer, spec: CylinderSpec) -> MeshBuffer:
    """Scale a cylinder buffer's torso and cap UVs to its physical size."""
    if mesh.uvs is None:
        return mesh.copy()
    radial, rows = spec.radial_segments, spec.height_segments
    torso = (radial + 1) * (rows + 1)
    cap = 2 * radial + 1
    if mesh.vertex_count != torso + 2 * cap:
        raise ValueError(
            f"expected {torso + 2 * cap} cylinder vertices, got {mesh.vertex_count}"
        )

    side_scale, cap_scale = unwrap_cylinder(spec.radius, spec.height, radial)
    out = mesh.copy()
    out.uvs[:torso] = out.uvs[:torso] * side_scale
    out.uvs[torso:] = 0.5 + (out.uvs[torso:] - 0.5) * cap_scale
    return out
