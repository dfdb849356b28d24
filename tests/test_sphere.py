"""Unit tests for the sphere module.

Tests cover:
- Ray-sphere intersection (hits, misses, tangents, t bounds)
- Nearest root selection and outward normals
- Surface parameterization used for view factors
"""

import math

import pytest
import taichi as ti


def _hit(origin, direction, center, radius, t_min=0.001, t_max=1e10):
    """Run hit_sphere on the host and return (hit, t, point, normal)."""
    from src.radtrace.geometry.sphere import Sphere, hit_sphere, vec3

    hit = ti.field(dtype=ti.i32, shape=())
    t = ti.field(dtype=ti.f32, shape=())
    point = ti.Vector.field(3, dtype=ti.f32, shape=())
    normal = ti.Vector.field(3, dtype=ti.f32, shape=())

    @ti.kernel
    def test_kernel(
        ox: ti.f32, oy: ti.f32, oz: ti.f32,
        dx: ti.f32, dy: ti.f32, dz: ti.f32,
        cx: ti.f32, cy: ti.f32, cz: ti.f32,
        r: ti.f32, t_lo: ti.f32, t_hi: ti.f32,
    ):
        sphere = Sphere(center=vec3(cx, cy, cz), radius=r)
        rec = hit_sphere(vec3(ox, oy, oz), vec3(dx, dy, dz), sphere, t_lo, t_hi)
        hit[None] = rec.hit
        t[None] = rec.t
        point[None] = rec.point
        normal[None] = rec.normal

    test_kernel(*origin, *direction, *center, radius, t_min, t_max)
    return hit[None], t[None], point[None], normal[None]


class TestSphereIntersection:
    """Tests for hit_sphere."""

    def test_hit_from_outside(self):
        """Test a ray toward the center hits the near surface."""
        hit, t, point, normal = _hit((0, 0, 0), (0, 0, -1), (0, 0, -5), 1.0)
        assert hit == 1
        assert abs(t - 4.0) < 1e-5
        assert abs(point[2] - (-4.0)) < 1e-5
        assert abs(normal[2] - 1.0) < 1e-5

    def test_miss(self):
        """Test a ray pointing away from the sphere misses."""
        hit, _, _, _ = _hit((0, 0, 0), (0, 0, 1), (0, 0, -5), 1.0)
        assert hit == 0

    def test_offset_ray_misses(self):
        """Test a ray passing beside the sphere misses."""
        hit, _, _, _ = _hit((2, 0, 0), (0, 0, -1), (0, 0, -5), 1.0)
        assert hit == 0

    def test_tangent_ray_is_a_miss(self):
        """Test a zero discriminant does not count as a hit."""
        hit, _, _, _ = _hit((1, 0, 0), (0, 0, -1), (0, 0, -5), 1.0)
        assert hit == 0

    def test_inside_hits_far_root(self):
        """Test a ray starting inside hits the far surface with an outward normal."""
        hit, t, _, normal = _hit((0, 0, 0), (1, 0, 0), (0, 0, 0), 2.0)
        assert hit == 1
        assert abs(t - 2.0) < 1e-5
        assert abs(normal[0] - 1.0) < 1e-5

    def test_unnormalized_direction(self):
        """Test t is measured in units of the given direction."""
        hit, t, point, _ = _hit((0, 0, 0), (0, 0, -2), (0, 0, -5), 1.0)
        assert hit == 1
        assert abs(t - 2.0) < 1e-5
        assert abs(point[2] - (-4.0)) < 1e-5

    def test_t_max_excludes_hit(self):
        """Test hits beyond t_max are rejected."""
        hit, _, _, _ = _hit((0, 0, 0), (0, 0, -1), (0, 0, -5), 1.0, t_max=3.0)
        assert hit == 0

    def test_t_min_selects_far_root(self):
        """Test a near root below t_min falls back to the far root."""
        hit, t, _, _ = _hit((0, 0, 0), (0, 0, -1), (0, 0, -5), 1.0, t_min=4.5)
        assert hit == 1
        assert abs(t - 6.0) < 1e-5

    def test_normal_is_unit_length(self):
        """Test the normal of an oblique hit has unit length."""
        hit, _, _, normal = _hit((0, 0, 0), (0.1, 0.2, -1), (0, 0, -5), 1.5)
        assert hit == 1
        n = math.sqrt(normal[0] ** 2 + normal[1] ** 2 + normal[2] ** 2)
        assert abs(n - 1.0) < 1e-5


class TestSphereParameterization:
    """Tests for sphere_point, sphere_normal, sphere_area and sphere_diff_a."""

    def test_equator_point(self):
        """Test (s, t) = (0, 0.5) maps to center + r * x."""
        from src.radtrace.geometry.sphere import Sphere, sphere_normal, sphere_point, vec3

        point = ti.Vector.field(3, dtype=ti.f32, shape=())
        normal = ti.Vector.field(3, dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            sphere = Sphere(center=vec3(1.0, 2.0, 3.0), radius=2.0)
            point[None] = sphere_point(sphere, 0.0, 0.5)
            normal[None] = sphere_normal(sphere, 0.0, 0.5)

        test_kernel()
        p = point[None]
        assert abs(p[0] - 3.0) < 1e-5
        assert abs(p[1] - 2.0) < 1e-5
        assert abs(p[2] - 3.0) < 1e-5
        assert abs(normal[None][0] - 1.0) < 1e-5

    def test_pole(self):
        """Test t = 1 maps to the +z pole."""
        from src.radtrace.geometry.sphere import Sphere, sphere_point, vec3

        point = ti.Vector.field(3, dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            sphere = Sphere(center=vec3(0.0, 0.0, 0.0), radius=1.0)
            point[None] = sphere_point(sphere, 0.3, 1.0)

        test_kernel()
        assert abs(point[None][2] - 1.0) < 1e-5

    def test_area(self):
        """Test the area is 4 pi r^2."""
        from src.radtrace.geometry.sphere import Sphere, sphere_area, vec3

        result = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = sphere_area(Sphere(center=vec3(0.0, 0.0, 0.0), radius=0.5))

        test_kernel()
        assert abs(result[None] - math.pi) < 1e-5

    def test_diff_a_integrates_to_area(self):
        """Test the mean of diff_a over uniform (s, t) estimates the area."""
        from src.radtrace.geometry.sphere import Sphere, sphere_diff_a, vec3

        total = ti.field(dtype=ti.f32, shape=())
        n = 100000

        @ti.kernel
        def test_kernel():
            sphere = Sphere(center=vec3(0.0, 0.0, 0.0), radius=1.0)
            for _ in range(n):
                total[None] += sphere_diff_a(sphere, ti.random(ti.f32), ti.random(ti.f32))

        test_kernel()
        estimate = total[None] / n
        assert abs(estimate - 4.0 * math.pi) / (4.0 * math.pi) < 0.02


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
