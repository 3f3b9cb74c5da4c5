"""
Preparation of imported geometry for world-space projection.

Brings a mesh into world space, fills in missing attributes and welds
coincident vertices so that one averaged normal drives every position. The
steps run in a fixed order:

1. Compute vertex normals when the mesh has none.
2. Add a zero UV placeholder when the mesh has none.
3. Expand indexed topology to a flat triangle list.
4. Transform positions by the world matrix and normals by its normal matrix.
5. Optionally weld vertices within a tolerance and recompute normals.
"""
import logging
from typing import Optional

import numpy as np
from scipy.sparse import coo_matrix
from scipy.sparse.csgraph import connected_components
from scipy.spatial import cKDTree
import trimesh

from world_uv.contracts import MERGE_TOLERANCE, MeshBuffer, MissingAttributeError, Space

logger = logging.getLogger(__name__)


def prepare_for_world_projection(
    mesh: MeshBuffer,
    world_matrix: Optional[np.ndarray] = None,
    weld: bool = True,
    tolerance: float = MERGE_TOLERANCE,
) -> Optional[MeshBuffer]:
    """Return a world-space copy of *mesh* ready for UV projection.

    Args:
        mesh: Local-space geometry lent by the caller; it is not modified.
        world_matrix: 4x4 local-to-world transform (identity when None).
        weld: Merge vertices closer than *tolerance* (import path).
        tolerance: Weld distance in world units.

    Returns:
        The prepared buffer, or None when the mesh has no positions and so
        cannot contribute geometry.
    """
    if mesh.positions is None:
        logger.warning("Skipping mesh without a position attribute")
        return None

    out = mesh.copy()
    if out.normals is None:
        out.normals = compute_vertex_normals(out.positions, out.corner_indices())
    if out.uvs is None:
        out.uvs = np.zeros((out.vertex_count, 2), dtype=float)

    out = to_non_indexed(out)
    out = transform_buffer(out, world_matrix)

    if weld:
        before = out.vertex_count
        out = weld_vertices(out, tolerance)
        out.normals = compute_vertex_normals(
            out.positions, out.corner_indices(), fallback=out.normals
        )
        logger.debug("Welded %d vertices into %d", before, out.vertex_count)

    return out


def to_non_indexed(mesh: MeshBuffer) -> MeshBuffer:
    """Give every triangle its own three vertices."""
    if not mesh.is_indexed:
        return mesh.copy()
    if mesh.positions is None:
        raise MissingAttributeError("cannot expand a mesh without positions")
    corners = mesh.indices
    return MeshBuffer(
        positions=mesh.positions[corners],
        normals=None if mesh.normals is None else mesh.normals[corners],
        uvs=None if mesh.uvs is None else mesh.uvs[corners],
        indices=None,
        space=mesh.space,
    )


def normal_matrix(world_matrix: np.ndarray) -> np.ndarray:
    """Inverse transpose of the upper 3x3 of a 4x4 transform."""
    linear = np.asarray(world_matrix, dtype=float)[:3, :3]
    return np.linalg.inv(linear).T


def transform_buffer(
    mesh: MeshBuffer,
    world_matrix: Optional[np.ndarray] = None,
) -> MeshBuffer:
    """Move positions and normals into world space."""
    out = mesh.copy()
    if world_matrix is None:
        world_matrix = np.eye(4)
    world_matrix = np.asarray(world_matrix, dtype=float)
    if world_matrix.shape != (4, 4):
        raise ValueError(f"world matrix must be 4x4, got {world_matrix.shape}")

    if out.positions is not None and len(out.positions):
        homogeneous = np.column_stack([out.positions, np.ones(len(out.positions))])
        moved = homogeneous @ world_matrix.T
        out.positions = moved[:, :3] / moved[:, 3:4]
    if out.normals is not None and len(out.normals):
        out.normals = _normalize_rows(out.normals @ normal_matrix(world_matrix).T)
    out.space = Space.WORLD
    return out


def compute_face_normals(positions: np.ndarray, corners: np.ndarray) -> np.ndarray:
    """Unit normals of each triangle from cross(v1 - v0, v2 - v0).

    Degenerate triangles produce NaN rows; they are left as such.
    """
    tri = positions[np.asarray(corners, dtype=np.int64).reshape(-1, 3)]
    cross = np.cross(tri[:, 1] - tri[:, 0], tri[:, 2] - tri[:, 0])
    with np.errstate(divide="ignore", invalid="ignore"):
        return cross / np.linalg.norm(cross, axis=1, keepdims=True)


def compute_vertex_normals(
    positions: np.ndarray,
    corners: np.ndarray,
    fallback: Optional[np.ndarray] = None,
) -> np.ndarray:
    """Area-weighted average of the face normals around each vertex.

    Vertices with no usable adjacent face keep the *fallback* normal (or a
    zero vector when no fallback is given).
    """
    positions = np.asarray(positions, dtype=float)
    corners = np.asarray(corners, dtype=np.int64).reshape(-1, 3)
    if fallback is None:
        out = np.zeros((len(positions), 3), dtype=float)
    else:
        out = np.array(fallback, dtype=float).reshape(-1, 3)
    if len(corners) == 0:
        return out

    # Unnormalised cross products weight each face by twice its area.
    weighted = trimesh.triangles.cross(positions[corners])
    normals = trimesh.geometry.mean_vertex_normals(len(positions), corners, weighted)
    valid = np.linalg.norm(normals, axis=1) > 0.5
    out[valid] = normals[valid]
    return out


def weld_vertices(mesh: MeshBuffer, tolerance: float = MERGE_TOLERANCE) -> MeshBuffer:
    """Merge vertices closer than *tolerance* into one indexed vertex.

    Chains of near neighbours collapse into a single vertex. The first
    vertex of each group keeps its position and UV; normals are averaged.
    Vertex order follows the first occurrence of each group.
    """
    if mesh.positions is None:
        raise MissingAttributeError("cannot weld a mesh without positions")
    n = mesh.vertex_count
    corners = mesh.corner_indices().reshape(-1)
    if n == 0:
        return MeshBuffer(
            positions=mesh.positions.copy(),
            normals=None if mesh.normals is None else mesh.normals.copy(),
            uvs=None if mesh.uvs is None else mesh.uvs.copy(),
            indices=corners,
            space=mesh.space,
        )

    tree = cKDTree(mesh.positions)
    pairs = np.asarray(
        tree.query_pairs(r=float(tolerance), output_type="ndarray"), dtype=np.int64
    ).reshape(-1, 2)
    graph = coo_matrix(
        (np.ones(len(pairs)), (pairs[:, 0], pairs[:, 1])), shape=(n, n)
    )
    _, labels = connected_components(graph, directed=False)

    _, first, inverse = np.unique(labels, return_index=True, return_inverse=True)
    inverse = inverse.reshape(-1)
    order = np.argsort(first, kind="stable")
    rank = np.empty_like(order)
    rank[order] = np.arange(len(order))
    remap = rank[inverse]
    keep = first[order]

    normals = None
    if mesh.normals is not None:
        sums = np.zeros((len(keep), 3), dtype=float)
        np.add.at(sums, remap, np.nan_to_num(mesh.normals))
        normals = _normalize_rows(sums, fallback=mesh.normals[keep])

    return MeshBuffer(
        positions=mesh.positions[keep],
        normals=normals,
        uvs=None if mesh.uvs is None else mesh.uvs[keep],
        indices=remap[corners],
        space=mesh.space,
    )


def _normalize_rows(
    vectors: np.ndarray,
    fallback: Optional[np.ndarray] = None,
) -> np.ndarray:
    vectors = np.asarray(vectors, dtype=float)
    lengths = np.linalg.norm(vectors, axis=1)
    valid = lengths > 1e-12
    out = vectors.copy() if fallback is None else np.array(fallback, dtype=float)
    out[valid] = vectors[valid] / lengths[valid][:, None]
    return out
