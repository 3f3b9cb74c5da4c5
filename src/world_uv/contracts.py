"""Contracts for the world-space UV projection kernel."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Dict, Optional, Tuple

import numpy as np
import trimesh

Vec3 = Tuple[float, float, float]

# Normals whose two largest magnitudes differ by less than this are treated as
# balanced between two axes; the third axis wins.
TIE_EPS = 0.2
# World-space UV snap resolution (world units).
UV_GRID = 1.0 / 512.0
# Positions closer than this are welded into one vertex.
MERGE_TOLERANCE = 1e-5

DEFAULT_RADIAL_SEGMENTS = 16
DEFAULT_HEIGHT_SEGMENTS = 1


class WorldUVError(Exception):
    """Base exception for UV projection errors."""
    pass


class MissingAttributeError(WorldUVError):
    """A mesh lacks an attribute the requested operation needs."""
    pass


class Axis(IntEnum):
    """Principal world axis; the value is the coordinate column."""
    X = 0
    Y = 1
    Z = 2


class Space(Enum):
    LOCAL = "local"
    WORLD = "world"


class ProjectionMode(Enum):
    """How WorldUVMapper picks the normal that drives projection."""
    PER_VERTEX_NORMAL = "per_vertex_normal"
    PER_TRIANGLE_COMPUTED = "per_triangle_computed"


@dataclass(frozen=True)
class AxisResult:
    """Dominant signed axis of a normal."""

    axis: Axis
    sign: int

    @property
    def normal(self) -> np.ndarray:
        """Axis-aligned unit normal, e.g. (0, -1, 0) for -Y."""
        out = np.zeros(3, dtype=float)
        out[int(self.axis)] = float(self.sign)
        return out

    @property
    def label(self) -> str:
        return f"{'+' if self.sign > 0 else '-'}{self.axis.name}"


@dataclass(frozen=True)
class UVAxisPair:
    """World axes mapped to U and V for one dominant axis."""

    u: Axis
    v: Axis


UV_AXIS_PAIRS: Dict[Axis, UVAxisPair] = {
    Axis.X: UVAxisPair(u=Axis.Z, v=Axis.Y),
    Axis.Y: UVAxisPair(u=Axis.X, v=Axis.Z),
    Axis.Z: UVAxisPair(u=Axis.X, v=Axis.Y),
}

# Same table as a (3, 2) column lookup for vectorised mapping.
UV_AXIS_COLUMNS = np.array(
    [[int(UV_AXIS_PAIRS[a].u), int(UV_AXIS_PAIRS[a].v)] for a in Axis],
    dtype=int,
)


@dataclass
class MeshBuffer:
    """Triangle mesh attributes.

    Non-indexed when ``indices`` is None (every 3 consecutive vertices form a
    triangle), otherwise ``indices`` is a flat list of triangle corners into
    the shared vertex pool. ``positions`` may be None for imports that came
    without a position attribute.
    """

    positions: Optional[np.ndarray]
    normals: Optional[np.ndarray] = None
    uvs: Optional[np.ndarray] = None
    indices: Optional[np.ndarray] = None
    space: Space = Space.LOCAL

    def __post_init__(self):
        if self.positions is not None:
            self.positions = np.asarray(self.positions, dtype=float).reshape(-1, 3)
        n = self.vertex_count
        if self.normals is not None:
            self.normals = np.asarray(self.normals, dtype=float)
            if self.normals.size != 3 * n:
                raise ValueError(
                    f"normals has {self.normals.size} values, expected {3 * n}"
                )
            self.normals = self.normals.reshape(-1, 3)
        if self.uvs is not None:
            self.uvs = np.asarray(self.uvs, dtype=float)
            if self.uvs.size != 2 * n:
                raise ValueError(f"uvs has {self.uvs.size} values, expected {2 * n}")
            self.uvs = self.uvs.reshape(-1, 2)
        if self.indices is not None:
            self.indices = np.asarray(self.indices, dtype=np.int64).reshape(-1)
            if self.indices.size % 3 != 0:
                raise ValueError("index count must be a multiple of 3")
            if self.indices.size and (
                self.indices.min() < 0 or self.indices.max() >= n
            ):
                raise ValueError("indices reference vertices outside the buffer")
        elif n % 3 != 0:
            raise ValueError(
                f"a non-indexed buffer needs whole triangles, got {n} vertices"
            )

    @property
    def vertex_count(self) -> int:
        return 0 if self.positions is None else int(len(self.positions))

    @property
    def is_indexed(self) -> bool:
        return self.indices is not None

    @property
    def triangle_count(self) -> int:
        if self.indices is not None:
            return int(len(self.indices) // 3)
        return self.vertex_count // 3

    def corner_indices(self) -> np.ndarray:
        """Triangle corners as a (T, 3) array of vertex indices."""
        if self.indices is not None:
            return self.indices.reshape(-1, 3)
        return np.arange(self.triangle_count * 3, dtype=np.int64).reshape(-1, 3)

    def copy(self) -> "MeshBuffer":
        return MeshBuffer(
            positions=None if self.positions is None else self.positions.copy(),
            normals=None if self.normals is None else self.normals.copy(),
            uvs=None if self.uvs is None else self.uvs.copy(),
            indices=None if self.indices is None else self.indices.copy(),
            space=self.space,
        )

    @classmethod
    def from_trimesh(
        cls,
        mesh: trimesh.Trimesh,
        include_normals: Optional[bool] = None,
    ) -> "MeshBuffer":
        """Wrap a trimesh mesh as an indexed local-space buffer.

        trimesh derives vertex normals lazily, so by default they are only
        carried over when the source supplied them (they sit in the mesh
        cache before anything asks for them). Pass True to always take them
        or False to drop them.
        """
        if len(mesh.vertices) == 0:
            return cls(positions=None)
        uv = getattr(mesh.visual, "uv", None)
        if uv is not None and len(uv) != len(mesh.vertices):
            uv = None
        if include_normals is None:
            include_normals = "vertex_normals" in mesh._cache
        return cls(
            positions=np.array(mesh.vertices, dtype=float),
            normals=np.array(mesh.vertex_normals, dtype=float) if include_normals else None,
            uvs=None if uv is None else np.array(uv, dtype=float),
            indices=np.array(mesh.faces, dtype=np.int64).reshape(-1),
        )

    def to_trimesh(self) -> trimesh.Trimesh:
        """Build a trimesh mesh carrying these normals and UVs."""
        if self.positions is None:
            raise MissingAttributeError("cannot build a mesh without positions")
        visual = None
        if self.uvs is not None:
            visual = trimesh.visual.TextureVisuals(
                uv=self.uvs,
                material=trimesh.visual.material.PBRMaterial(name="world_uv"),
            )
        return trimesh.Trimesh(
            vertices=self.positions,
            faces=self.corner_indices(),
            vertex_normals=self.normals,
            visual=visual,
            process=False,
        )


@dataclass(frozen=True)
class BoxSpec:
    """Axis-aligned box brush described by half extents."""

    half_extents: Vec3

    @property
    def size(self) -> np.ndarray:
        return 2.0 * np.asarray(self.half_extents, dtype=float)


@dataclass(frozen=True)
class CylinderSpec:
    """Y-up cylinder brush."""

    radius: float
    height: float
    radial_segments: int = DEFAULT_RADIAL_SEGMENTS
    height_segments: int = DEFAULT_HEIGHT_SEGMENTS

    def __post_init__(self):
        if self.radial_segments < 3:
            raise ValueError("a cylinder needs at least 3 radial segments")
        if self.height_segments < 1:
            raise ValueError("a cylinder needs at least 1 height segment")


@dataclass(frozen=True)
class ImportedMesh:
    """Arbitrary geometry placed in the world by a 4x4 transform."""

    buffer: MeshBuffer
    world_matrix: np.ndarray = field(default_factory=lambda: np.eye(4))
    name: str = "imported"


@dataclass(frozen=True)
class WorldUVConfig:
    """Configuration for the scene-file projection pipeline."""

    scene_path: str
    design_name: str = "world_uv"
    mode: ProjectionMode = ProjectionMode.PER_VERTEX_NORMAL
    weld: bool = True
    merge_tolerance: float = MERGE_TOLERANCE
    export_glb: bool = True


@dataclass
class MeshReport:
    """Per-mesh outcome of the pipeline."""

    name: str
    skipped: bool
    vertices_in: int = 0
    vertices_out: int = 0
    triangles: int = 0
    directions: Dict[str, int] = field(default_factory=dict)


def to_vec3(values) -> Vec3:
    arr = np.asarray(values, dtype=float).reshape(3)
    return (float(arr[0]), float(arr[1]), float(arr[2]))
