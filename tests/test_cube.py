"""Unit tests for the cube module.

Tests cover:
- Axis-aligned and rotated cube intersection
- Bounding sphere rejection and t bounds
- Random horizontal basis construction
"""

import math

import numpy as np
import pytest
import taichi as ti

AXES = ((1.0, 0.0, 0.0), (0.0, 1.0, 0.0), (0.0, 0.0, 1.0))


def _hit(origin, direction, center, length, basis=AXES, t_min=0.001, t_max=1e10):
    """Run hit_cube on the host and return (hit, t, normal)."""
    from src.radtrace.geometry.cube import Cube, hit_cube, vec3

    hit = ti.field(dtype=ti.i32, shape=())
    t = ti.field(dtype=ti.f32, shape=())
    normal = ti.Vector.field(3, dtype=ti.f32, shape=())

    o = ti.Vector.field(3, dtype=ti.f32, shape=())
    d = ti.Vector.field(3, dtype=ti.f32, shape=())
    c = ti.Vector.field(3, dtype=ti.f32, shape=())
    axes = ti.Vector.field(3, dtype=ti.f32, shape=3)
    o[None] = origin
    d[None] = direction
    c[None] = center
    for k in range(3):
        axes[k] = basis[k]

    @ti.kernel
    def test_kernel(edge: ti.f32, t_lo: ti.f32, t_hi: ti.f32):
        cube = Cube(center=c[None], length=edge, u=axes[0], v=axes[1], w=axes[2])
        rec = hit_cube(o[None], d[None], cube, t_lo, t_hi)
        hit[None] = rec.hit
        t[None] = rec.t
        normal[None] = rec.normal

    test_kernel(length, t_min, t_max)
    return hit[None], t[None], normal[None]


class TestCubeIntersection:
    """Tests for hit_cube."""

    def test_hit_top_face(self):
        """Test a ray from above hits the top face with an upward normal."""
        hit, t, normal = _hit((0.0, 0.0, 5.0), (0.0, 0.0, -1.0), (0.0, 0.0, 0.0), 2.0)
        assert hit == 1
        assert abs(t - 4.0) < 1e-4
        assert abs(normal[2] - 1.0) < 1e-6

    def test_hit_side_face(self):
        """Test a ray along -x hits the +x face."""
        hit, t, normal = _hit((5.0, 0.2, -0.3), (-1.0, 0.0, 0.0), (0.0, 0.0, 0.0), 1.0)
        assert hit == 1
        assert abs(t - 4.5) < 1e-4
        assert abs(normal[0] - 1.0) < 1e-6

    def test_miss_beside(self):
        """Test a ray passing beside the bounding sphere misses."""
        hit, _, _ = _hit((3.0, 5.0, 0.0), (0.0, -1.0, 0.0), (0.0, 0.0, 0.0), 1.0)
        assert hit == 0

    def test_miss_inside_bounding_sphere(self):
        """Test a ray through the bounding sphere but outside the cube misses."""
        # Passes the corner region at x = z = 0.6 > half edge
        hit, _, _ = _hit((0.6, 5.0, 0.6), (0.0, -1.0, 0.0), (0.0, 0.0, 0.0), 1.0)
        assert hit == 0

    def test_t_max_excludes_hit(self):
        """Test hits beyond t_max are rejected."""
        hit, _, _ = _hit((0.0, 0.0, 5.0), (0.0, 0.0, -1.0), (0.0, 0.0, 0.0), 2.0, t_max=3.0)
        assert hit == 0

    def test_rotated_cube(self):
        """Test a cube rotated 45 degrees about the vertical axis."""
        s = math.sqrt(0.5)
        basis = ((s, 0.0, s), (s, 0.0, -s), (0.0, 1.0, 0.0))
        hit, t, normal = _hit((-5.0, 0.0, 0.1), (1.0, 0.0, 0.0), (0.0, 0.0, 0.0), 1.0, basis)
        assert hit == 1
        assert abs(t - (5.0 - (s - 0.1))) < 1e-3
        assert abs(normal[0] - (-s)) < 1e-5
        assert abs(normal[1]) < 1e-6
        assert abs(normal[2] - s) < 1e-5


class TestRandomHorizontalBasis:
    """Tests for random_horizontal_basis."""

    def test_orthonormal(self):
        """Test the basis is orthonormal with a vertical w."""
        from src.radtrace.geometry.cube import random_horizontal_basis

        rng = np.random.default_rng(7)
        for _ in range(10):
            u, v, w = random_horizontal_basis(rng)
            basis = np.array([u, v, w])
            np.testing.assert_allclose(basis @ basis.T, np.eye(3), atol=1e-12)
            np.testing.assert_allclose(w, [0.0, 1.0, 0.0])
            assert abs(u[1]) < 1e-12

    def test_seeded_generator_is_reproducible(self):
        """Test two generators with the same seed give the same basis."""
        from src.radtrace.geometry.cube import random_horizontal_basis

        u1, _, _ = random_horizontal_basis(np.random.default_rng(3))
        u2, _, _ = random_horizontal_basis(np.random.default_rng(3))
        np.testing.assert_array_equal(u1, u2)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
