"""Tests for closed-form primitive UVs."""
import math

import numpy as np
import pytest

from world_uv.contracts import BoxSpec, CylinderSpec
from world_uv.geometry_prep import compute_face_normals
from world_uv.primitive_uv import (
    apply_box_uvs,
    apply_cylinder_uvs,
    build_box,
    build_cylinder,
    unwrap_box,
    unwrap_cylinder,
)

# First vertex of each box face, in +X, -X, +Y, -Y, +Z, -Z order.
FACE_STARTS = range(0, 24, 4)


class TestUnwrapBox:

    def test_cube_faces_scale_to_full_size(self):
        assert np.array_equal(unwrap_box((1.0, 1.0, 1.0)), np.full((6, 2), 2.0))

    def test_faces_match_spanned_plane(self):
        scales = unwrap_box((0.5, 1.0, 1.5))
        assert scales.tolist() == [
            [3.0, 2.0], [3.0, 2.0],
            [1.0, 3.0], [1.0, 3.0],
            [1.0, 2.0], [1.0, 2.0],
        ]


class TestBoxBrush:

    def test_layout(self, box_spec):
        box = build_box(box_spec)
        assert box.vertex_count == 24
        assert box.triangle_count == 12
        expected = [(1, 0, 0), (-1, 0, 0), (0, 1, 0), (0, -1, 0), (0, 0, 1), (0, 0, -1)]
        for start, normal in zip(FACE_STARTS, expected):
            assert np.array_equal(box.normals[start:start + 4], np.tile(normal, (4, 1)))

    def test_winding_faces_outward(self):
        box = build_box(BoxSpec(half_extents=(0.5, 1.0, 2.0)))
        corners = box.corner_indices()
        face_normals = compute_face_normals(box.positions, corners)
        assert np.allclose(face_normals, box.normals[corners[:, 0]])

    def test_face_positions_lie_on_extents(self):
        box = build_box(BoxSpec(half_extents=(0.5, 1.0, 2.0)))
        assert np.allclose(box.positions[0:4, 0], 0.5)
        assert np.allclose(box.positions[12:16, 1], -1.0)
        assert np.allclose(box.positions[20:24, 2], -2.0)

    def test_z_faces_hit_integer_corners(self, box_spec):
        box = apply_box_uvs(build_box(box_spec), box_spec)
        allowed = {(0.0, 0.0), (2.0, 0.0), (0.0, 2.0), (2.0, 2.0)}
        for start in (16, 20):
            corners = {tuple(uv) for uv in box.uvs[start:start + 4]}
            assert corners == allowed

    def test_default_uvs_are_unit_square(self, box_spec):
        box = build_box(box_spec)
        assert set(np.unique(box.uvs)) == {0.0, 1.0}

    def test_missing_uv_attribute_is_left_alone(self, box_spec):
        box = build_box(box_spec)
        box.uvs = None
        assert apply_box_uvs(box, box_spec).uvs is None

    def test_rejects_foreign_layout(self, box_spec, cylinder_spec):
        with pytest.raises(ValueError):
            apply_box_uvs(build_cylinder(cylinder_spec), box_spec)


class TestCylinderBrush:

    def test_unwrap_scales(self):
        side, cap = unwrap_cylinder(1.0, 2.0, 16)
        assert side[0] == pytest.approx(2.0 * math.pi)
        assert side[1] == pytest.approx(2.0)
        assert cap == pytest.approx(2.0)

    def test_unwrap_rejects_too_few_segments(self):
        with pytest.raises(ValueError):
            unwrap_cylinder(1.0, 2.0, 2)

    def test_spec_validation(self):
        with pytest.raises(ValueError):
            CylinderSpec(radius=1.0, height=1.0, radial_segments=2)
        with pytest.raises(ValueError):
            CylinderSpec(radius=1.0, height=1.0, height_segments=0)

    def test_layout(self, cylinder_spec):
        cyl = build_cylinder(cylinder_spec)
        torso = 17 * 2
        assert cyl.vertex_count == torso + 2 * 33
        assert cyl.triangle_count == 16 * 2 + 2 * 16
        assert np.allclose(cyl.normals[torso:torso + 33], [0.0, 1.0, 0.0])
        assert np.allclose(cyl.normals[torso + 33:], [0.0, -1.0, 0.0])

    def test_winding_faces_outward(self, cylinder_spec):
        cyl = build_cylinder(cylinder_spec)
        corners = cyl.corner_indices()
        face_normals = compute_face_normals(cyl.positions, corners)
        centroids = cyl.positions[corners].mean(axis=1)
        assert np.all(np.einsum("ij,ij->i", face_normals, centroids) > 0.0)

    def test_side_uvs_span_circumference_and_height(self, cylinder_spec):
        cyl = apply_cylinder_uvs(build_cylinder(cylinder_spec), cylinder_spec)
        torso = cyl.uvs[:34]
        assert torso[:, 0].min() == pytest.approx(0.0)
        assert torso[:, 0].max() == pytest.approx(2.0 * math.pi)
        assert torso[:, 1].max() == pytest.approx(2.0)

    def test_cap_uvs_scaled_about_centre(self, cylinder_spec):
        cyl = apply_cylinder_uvs(build_cylinder(cylinder_spec), cylinder_spec)
        top_centres = cyl.uvs[34:50]
        top_ring = cyl.uvs[50:67]
        assert np.allclose(top_centres, 0.5)
        # Ring UVs sit one radius from the centre, matching the side density.
        assert np.allclose(np.linalg.norm(top_ring - 0.5, axis=1), cylinder_spec.radius)

    def test_multiple_height_segments(self):
        spec = CylinderSpec(radius=0.5, height=3.0, radial_segments=8, height_segments=3)
        cyl = apply_cylinder_uvs(build_cylinder(spec), spec)
        assert cyl.vertex_count == 9 * 4 + 2 * 17
        assert cyl.uvs[:36, 1].max() == pytest.approx(3.0)
