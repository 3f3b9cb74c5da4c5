"""
Shared test fixtures for world-space UV projection tests.
"""
import sys
from pathlib import Path

import numpy as np
import pytest
import trimesh

# Add src/ to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from world_uv.contracts import BoxSpec, CylinderSpec, MeshBuffer


@pytest.fixture
def unit_cube():
    """A 1x1x1 cube spanning [0, 1] on every axis (8 vertices, 12 faces)."""
    mesh = trimesh.creation.box(extents=[1.0, 1.0, 1.0])
    mesh.apply_translation([0.5, 0.5, 0.5])
    return mesh


@pytest.fixture
def unit_cube_buffer(unit_cube):
    """The unit cube as an indexed buffer without normals or UVs."""
    return MeshBuffer.from_trimesh(unit_cube)


@pytest.fixture
def box_spec():
    return BoxSpec(half_extents=(1.0, 1.0, 1.0))


@pytest.fixture
def cylinder_spec():
    return CylinderSpec(radius=1.0, height=2.0, radial_segments=16, height_segments=1)


@pytest.fixture
def quad_triangles():
    """Two coplanar +Z triangles sharing the edge (0,0,0)-(1,1,0)."""
    first = np.array([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [1.0, 1.0, 0.0]])
    second = np.array([[0.0, 0.0, 0.0], [1.0, 1.0, 0.0], [0.0, 1.0, 0.0]])
    return first, second


@pytest.fixture
def scene_file(tmp_path: Path) -> str:
    """A GLB with two boxes, the second moved 10 units along +X."""
    scene = trimesh.Scene()
    scene.add_geometry(
        trimesh.creation.box(extents=[2.0, 2.0, 2.0]),
        geom_name="left_box",
        node_name="left_box",
    )
    scene.add_geometry(
        trimesh.creation.box(extents=[1.0, 3.0, 1.0]),
        geom_name="right_box",
        node_name="right_box",
        transform=trimesh.transformations.translation_matrix([10.0, 0.0, 0.0]),
    )
    path = tmp_path / "scene.glb"
    scene.export(str(path))
    return str(path)
