"""Scene file -> world-space UVs -> textured GLB."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import numpy as np
import trimesh

from world_uv.brushes import texture_brush
from world_uv.contracts import ImportedMesh, MeshBuffer, MeshReport, WorldUVConfig
from world_uv.world_mapping import summarize_directions

logger = logging.getLogger(__name__)


@dataclass
class WorldUVRunResult:
    run_id: str
    meshes: List[MeshReport] = field(default_factory=list)
    buffers: Dict[str, MeshBuffer] = field(default_factory=dict)
    output_path: Optional[Path] = None

    @property
    def processed_count(self) -> int:
        return sum(1 for report in self.meshes if not report.skipped)

    @property
    def skipped_count(self) -> int:
        return sum(1 for report in self.meshes if report.skipped)

    def direction_totals(self) -> Dict[str, int]:
        totals: Dict[str, int] = {}
        for report in self.meshes:
            for label, count in report.directions.items():
                totals[label] = totals.get(label, 0) + count
        return dict(sorted(totals.items()))


def run_world_uv_pipeline(
    *,
    config: WorldUVConfig,
    run_id: str,
    artifacts_dir: Path,
) -> WorldUVRunResult:
    scene_path = Path(config.scene_path)
    if not scene_path.is_file():
        raise FileNotFoundError(f"Scene file not found: {scene_path}")

    placed = load_scene_meshes(scene_path)
    logger.info("Loaded %d meshes from %s", len(placed), scene_path)

    result = WorldUVRunResult(run_id=run_id)
    for name, mesh, transform in placed:
        brush = ImportedMesh(
            buffer=MeshBuffer.from_trimesh(mesh),
            world_matrix=transform,
            name=name,
        )
        textured = texture_brush(
            brush, config.mode, weld=config.weld, tolerance=config.merge_tolerance,
        )
        if textured is None:
            result.meshes.append(MeshReport(name=name, skipped=True))
            continue

        result.buffers[name] = textured
        result.meshes.append(
            MeshReport(
                name=name,
                skipped=False,
                vertices_in=int(len(mesh.vertices)),
                vertices_out=textured.vertex_count,
                triangles=textured.triangle_count,
                directions=summarize_directions(textured),
            )
        )
        logger.debug(
            "%s: %d -> %d vertices", name, len(mesh.vertices), textured.vertex_count
        )

    if result.skipped_count:
        logger.warning("Skipped %d meshes without positions", result.skipped_count)

    if config.export_glb and result.buffers:
        output_path = Path(artifacts_dir) / "textured.glb"
        export_textured_scene(result.buffers, output_path)
        result.output_path = output_path
        logger.info("Wrote %s", output_path)

    return result


def load_scene_meshes(
    scene_path: Path,
) -> List[Tuple[str, trimesh.Trimesh, np.ndarray]]:
    """Return (node name, local mesh, 4x4 world transform) per mesh instance."""
    scene = trimesh.load(scene_path, force="scene")
    if not scene.geometry:
        raise ValueError(f"Scene contains no geometry: {scene_path}")

    placed = []
    for node in scene.graph.nodes_geometry:
        transform, geometry_name = scene.graph[node]
        geometry = scene.geometry.get(geometry_name)
        if not isinstance(geometry, trimesh.Trimesh):
            continue
        placed.append((str(node), geometry, np.asarray(transform, dtype=float)))

    if not placed:
        raise ValueError(f"Scene has no mesh geometry: {scene_path}")
    return placed


def export_textured_scene(buffers: Dict[str, MeshBuffer], output_path: Path) -> Path:
    """Write world-space buffers as one GLB scene with normals and UVs."""
    scene = trimesh.Scene()
    for name, buffer in buffers.items():
        scene.add_geometry(buffer.to_trimesh(), geom_name=name, node_name=name)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    scene.export(str(output_path), file_type="glb", include_normals=True)
    return output_path
