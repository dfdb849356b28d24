"""Unit tests for the patch module.

Tests cover:
- Ray-patch intersection for squares and rectangles
- Normals facing the ray origin
- Parallel rays and out-of-bounds crossings
- Surface parameterization used for view factors
"""

import pytest
import taichi as ti


def _hit(origin, direction, center, length, width, u, v, w, t_min=0.001, t_max=1e10):
    """Run hit_patch on the host and return (hit, t, point, normal)."""
    from src.radtrace.geometry.patch import Patch, hit_patch

    hit = ti.field(dtype=ti.i32, shape=())
    t = ti.field(dtype=ti.f32, shape=())
    point = ti.Vector.field(3, dtype=ti.f32, shape=())
    normal = ti.Vector.field(3, dtype=ti.f32, shape=())

    vectors = ti.Vector.field(3, dtype=ti.f32, shape=6)
    for k, value in enumerate((origin, direction, center, u, v, w)):
        vectors[k] = value

    @ti.kernel
    def test_kernel(length_: ti.f32, width_: ti.f32, t_lo: ti.f32, t_hi: ti.f32):
        patch = Patch(
            center=vectors[2],
            length=length_,
            width=width_,
            u=vectors[3],
            v=vectors[4],
            w=vectors[5],
        )
        rec = hit_patch(vectors[0], vectors[1], patch, t_lo, t_hi)
        hit[None] = rec.hit
        t[None] = rec.t
        point[None] = rec.point
        normal[None] = rec.normal

    test_kernel(length, width, t_min, t_max)
    return hit[None], t[None], point[None], normal[None]


# Unit square in the y = 0 plane facing up
FLOOR = dict(
    center=(0.0, 0.0, 0.0),
    length=1.0,
    width=1.0,
    u=(1.0, 0.0, 0.0),
    v=(0.0, 0.0, -1.0),
    w=(0.0, 1.0, 0.0),
)


class TestPatchIntersection:
    """Tests for hit_patch."""

    def test_hit_from_above(self):
        """Test a downward ray hits the floor square with an upward normal."""
        hit, t, point, normal = _hit((0.1, 2.0, 0.2), (0.0, -1.0, 0.0), **FLOOR)
        assert hit == 1
        assert abs(t - 2.0) < 1e-4
        assert abs(point[0] - 0.1) < 1e-4
        assert abs(point[1]) < 1e-4
        assert abs(point[2] - 0.2) < 1e-4
        assert abs(normal[1] - 1.0) < 1e-6

    def test_hit_from_below_flips_normal(self):
        """Test the normal opposes the ray direction when hit from behind."""
        hit, t, _, normal = _hit((0.0, -3.0, 0.0), (0.0, 1.0, 0.0), **FLOOR)
        assert hit == 1
        assert abs(t - 3.0) < 1e-4
        assert abs(normal[1] - (-1.0)) < 1e-6

    def test_oblique_unnormalized_direction(self):
        """Test t is measured in units of an unnormalized direction."""
        hit, t, point, _ = _hit((-1.0, 1.0, 0.0), (2.0, -2.0, 0.0), **FLOOR)
        assert hit == 1
        assert abs(t - 0.5) < 1e-4
        assert abs(point[0]) < 1e-4

    def test_miss_outside_bounds(self):
        """Test a plane crossing outside the half extents misses."""
        hit, _, _, _ = _hit((0.6, 2.0, 0.0), (0.0, -1.0, 0.0), **FLOOR)
        assert hit == 0

    def test_parallel_ray_misses(self):
        """Test a ray parallel to the plane never hits."""
        hit, _, _, _ = _hit((-2.0, 0.5, 0.0), (1.0, 0.0, 0.0), **FLOOR)
        assert hit == 0

    def test_behind_origin_misses(self):
        """Test a crossing at negative t is rejected."""
        hit, _, _, _ = _hit((0.0, 2.0, 0.0), (0.0, 1.0, 0.0), **FLOOR)
        assert hit == 0

    def test_rectangle_extents(self):
        """Test a rectangle checks length along u and width along v separately."""
        rect = dict(FLOOR, length=4.0, width=1.0)
        # Inside along u (|x| < 2) but outside along v (|z| > 0.5)
        hit_u, _, _, _ = _hit((1.5, 1.0, 0.0), (0.0, -1.0, 0.0), **rect)
        hit_v, _, _, _ = _hit((0.0, 1.0, 0.7), (0.0, -1.0, 0.0), **rect)
        assert hit_u == 1
        assert hit_v == 0

    def test_tilted_patch(self):
        """Test a patch in the x = 2 plane hit by a ray along +x."""
        hit, t, point, normal = _hit(
            (0.0, 0.1, -0.1),
            (1.0, 0.0, 0.0),
            center=(2.0, 0.0, 0.0),
            length=1.0,
            width=1.0,
            u=(0.0, 1.0, 0.0),
            v=(0.0, 0.0, 1.0),
            w=(1.0, 0.0, 0.0),
        )
        assert hit == 1
        assert abs(t - 2.0) < 1e-4
        assert abs(point[1] - 0.1) < 1e-4
        assert abs(normal[0] - (-1.0)) < 1e-6


class TestPatchParameterization:
    """Tests for patch_point, patch_normal, patch_area and patch_diff_a."""

    def test_point_corners_and_center(self):
        """Test (0.5, 0.5) is the center and (1, 1) the +u +v corner."""
        from src.radtrace.geometry.patch import Patch, patch_point, vec3

        result = ti.Vector.field(3, dtype=ti.f32, shape=2)

        @ti.kernel
        def test_kernel():
            patch = Patch(
                center=vec3(1.0, 0.0, 0.0),
                length=2.0,
                width=4.0,
                u=vec3(1.0, 0.0, 0.0),
                v=vec3(0.0, 0.0, 1.0),
                w=vec3(0.0, -1.0, 0.0),
            )
            result[0] = patch_point(patch, 0.5, 0.5)
            result[1] = patch_point(patch, 1.0, 1.0)

        test_kernel()
        assert abs(result[0][0] - 1.0) < 1e-6
        assert abs(result[1][0] - 2.0) < 1e-6
        assert abs(result[1][2] - 2.0) < 1e-6

    def test_normal_area_and_diff_a(self):
        """Test the normal is w and both area and diff_a equal length * width."""
        from src.radtrace.geometry.patch import (
            Patch,
            patch_area,
            patch_diff_a,
            patch_normal,
            vec3,
        )

        normal = ti.Vector.field(3, dtype=ti.f32, shape=())
        values = ti.field(dtype=ti.f32, shape=2)

        @ti.kernel
        def test_kernel():
            patch = Patch(
                center=vec3(0.0, 0.0, 0.0),
                length=2.0,
                width=3.0,
                u=vec3(1.0, 0.0, 0.0),
                v=vec3(0.0, 1.0, 0.0),
                w=vec3(0.0, 0.0, 1.0),
            )
            normal[None] = patch_normal(patch, 0.2, 0.7)
            values[0] = patch_area(patch)
            values[1] = patch_diff_a(patch, 0.2, 0.7)

        test_kernel()
        assert abs(normal[None][2] - 1.0) < 1e-6
        assert abs(values[0] - 6.0) < 1e-6
        assert abs(values[1] - 6.0) < 1e-6


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
