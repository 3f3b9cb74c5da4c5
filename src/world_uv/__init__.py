"""Public API for world-space UV projection."""

from world_uv.axis_projection import project_normal, project_normals
from world_uv.brushes import Brush, bake_scale, texture_brush
from world_uv.contracts import (
    MERGE_TOLERANCE,
    TIE_EPS,
    UV_AXIS_PAIRS,
    UV_GRID,
    Axis,
    AxisResult,
    BoxSpec,
    CylinderSpec,
    ImportedMesh,
    MeshBuffer,
    MissingAttributeError,
    ProjectionMode,
    Space,
    UVAxisPair,
    WorldUVConfig,
    WorldUVError,
)
from world_uv.geometry_prep import prepare_for_world_projection, weld_vertices
from world_uv.pipeline import WorldUVRunResult, run_world_uv_pipeline
from world_uv.primitive_uv import unwrap_box, unwrap_cylinder
from world_uv.world_mapping import map_world_space_uvs, snap_to_grid

__all__ = [
    "MERGE_TOLERANCE",
    "TIE_EPS",
    "UV_AXIS_PAIRS",
    "UV_GRID",
    "Axis",
    "AxisResult",
    "BoxSpec",
    "Brush",
    "CylinderSpec",
    "ImportedMesh",
    "MeshBuffer",
    "MissingAttributeError",
    "ProjectionMode",
    "Space",
    "UVAxisPair",
    "WorldUVConfig",
    "WorldUVError",
    "WorldUVRunResult",
    "bake_scale",
    "map_world_space_uvs",
    "prepare_for_world_projection",
    "project_normal",
    "project_normals",
    "run_world_uv_pipeline",
    "snap_to_grid",
    "texture_brush",
    "unwrap_box",
    "unwrap_cylinder",
    "weld_vertices",
]
