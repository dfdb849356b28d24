"""Unit tests for scene-level intersection over the form table.

Tests cover:
- Empty scenes and misses
- Nearest-hit selection across spheres, cubes and patches
- Hit index and material id reporting
- Form table helpers (kinds, areas, points)
"""

import math

import pytest
import taichi as ti


class TestFormTable:
    """Tests for the low-level form table."""

    def test_add_forms_and_count(self):
        """Test forms are appended in order with their kinds."""
        from src.radtrace.scene.intersection import (
            FormKind,
            add_cube,
            add_patch,
            add_sphere,
            clear_scene,
            get_form_count,
            get_form_kind,
        )

        clear_scene()
        assert get_form_count() == 0

        axes = ((1.0, 0.0, 0.0), (0.0, 1.0, 0.0), (0.0, 0.0, 1.0))
        assert add_sphere((0.0, 0.0, 0.0), 1.0) == 0
        assert add_cube((3.0, 0.0, 0.0), 1.0, *axes) == 1
        assert add_patch((6.0, 0.0, 0.0), 1.0, 1.0, *axes) == 2
        assert add_patch((9.0, 0.0, 0.0), 2.0, 1.0, *axes) == 3

        assert get_form_count() == 4
        assert get_form_kind(0) == FormKind.SPHERE
        assert get_form_kind(1) == FormKind.CUBE
        assert get_form_kind(2) == FormKind.SQUARE
        assert get_form_kind(3) == FormKind.RECTANGLE

    def test_clear_scene(self):
        """Test clear_scene resets the count."""
        from src.radtrace.scene.intersection import add_sphere, clear_scene, get_form_count

        add_sphere((0.0, 0.0, 0.0), 1.0)
        clear_scene()
        assert get_form_count() == 0

    def test_form_area_and_point(self):
        """Test form_area and form_point dispatch by kind."""
        from src.radtrace.scene.intersection import (
            add_cube,
            add_patch,
            add_sphere,
            form_area,
            form_point,
        )

        axes = ((1.0, 0.0, 0.0), (0.0, 1.0, 0.0), (0.0, 0.0, 1.0))
        add_sphere((0.0, 0.0, 0.0), 2.0)
        add_patch((5.0, 0.0, 0.0), 2.0, 3.0, *axes)
        add_cube((9.0, 0.0, 0.0), 1.0, *axes)

        areas = ti.field(dtype=ti.f32, shape=3)
        point = ti.Vector.field(3, dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            for i in range(3):
                areas[i] = form_area(i)
            point[None] = form_point(1, 0.5, 0.5)

        test_kernel()
        assert abs(areas[0] - 16.0 * math.pi) < 1e-3
        assert abs(areas[1] - 6.0) < 1e-6
        assert areas[2] == 0.0
        assert abs(point[None][0] - 5.0) < 1e-6


class TestCastRay:
    """Tests for nearest-hit queries through cast_ray."""

    def test_empty_scene_misses(self):
        """Test a ray in an empty scene reports a miss."""
        from src.radtrace.scene.intersection import cast_ray

        result = cast_ray((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        assert result["hit"] is False
        assert result["hit_index"] == -1
        assert result["material_id"] == -1

    def test_nearest_sphere_wins(self):
        """Test the closer of two spheres is reported regardless of table order."""
        from src.radtrace.scene.intersection import cast_ray
        from src.radtrace.scene.manager import SceneManager

        scene = SceneManager()
        far_mat = scene.add_lambertian_material((0.2, 0.2, 0.2))
        near_mat = scene.add_metal_material((0.9, 0.9, 0.9))
        scene.add_sphere((0.0, 0.0, -10.0), 1.0, far_mat)
        near = scene.add_sphere((0.0, 0.0, -5.0), 1.0, near_mat)

        result = cast_ray((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        assert result["hit"] is True
        assert result["hit_index"] == near
        assert result["material_id"] == near_mat
        assert abs(result["t"] - 4.0) < 1e-4
        assert abs(result["normal"][2] - 1.0) < 1e-5

    def test_patch_occludes_sphere(self):
        """Test a square between the origin and a sphere is hit first."""
        from src.radtrace.scene.intersection import cast_ray
        from src.radtrace.scene.manager import SceneManager

        scene = SceneManager()
        mat = scene.add_lambertian_material((0.5, 0.5, 0.5))
        scene.add_sphere((0.0, 0.0, -5.0), 1.0, mat)
        square = scene.add_square(
            (0.0, 0.0, -2.0), 1.0, mat, (1.0, 0.0, 0.0), (0.0, 1.0, 0.0), (0.0, 0.0, 1.0)
        )

        result = cast_ray((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        assert result["hit_index"] == square
        assert abs(result["t"] - 2.0) < 1e-4

    def test_cube_hit_index(self):
        """Test a cube reports its own form index."""
        from src.radtrace.scene.intersection import cast_ray
        from src.radtrace.scene.manager import SceneManager

        scene = SceneManager(seed=0)
        mat = scene.add_dielectric_material(1.5)
        scene.add_sphere((10.0, 0.0, 0.0), 1.0, mat)
        cube = scene.add_cube((0.0, 0.0, 0.0), 1.0, mat)

        result = cast_ray((0.0, 5.0, 0.0), (0.0, -1.0, 0.0))
        assert result["hit_index"] == cube
        assert abs(result["t"] - 4.5) < 1e-3
        assert abs(result["normal"][1] - 1.0) < 1e-5

    def test_t_max_limits_search(self):
        """Test forms beyond t_max are ignored."""
        from src.radtrace.scene.intersection import cast_ray
        from src.radtrace.scene.manager import SceneManager

        scene = SceneManager()
        mat = scene.add_lambertian_material((0.5, 0.5, 0.5))
        scene.add_sphere((0.0, 0.0, -5.0), 1.0, mat)

        result = cast_ray((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), t_max=3.0)
        assert result["hit"] is False


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
