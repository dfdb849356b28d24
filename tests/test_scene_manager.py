"""Unit tests for the SceneManager.

Tests cover:
- Material registration and unified material IDs
- Form creation for spheres, cubes, squares and rectangles
- Validation errors
- FormInfo queries and areas
- Scene serialization round trips through dictionaries
"""

import math

import numpy as np
import pytest
import taichi as ti

AXES = ((1.0, 0.0, 0.0), (0.0, 1.0, 0.0), (0.0, 0.0, 1.0))


class TestMaterialManagement:
    """Tests for material registration."""

    def test_unified_ids_are_sequential(self):
        """Test material IDs are assigned in order across material types."""
        from src.radtrace.scene.manager import MaterialType, SceneManager

        scene = SceneManager()
        lam = scene.add_lambertian_material((0.5, 0.5, 0.5))
        metal = scene.add_metal_material((0.9, 0.9, 0.9), fuzz=0.1)
        glass = scene.add_dielectric_material(1.5)
        lam2 = scene.add_lambertian_material((0.1, 0.2, 0.3))

        assert (lam, metal, glass, lam2) == (0, 1, 2, 3)
        assert scene.get_material_count() == 4
        assert scene.get_material_type_python(metal) == MaterialType.METAL
        assert scene.get_material_info(lam2).type_index == 1
        assert scene.get_material_info(glass).params == {"ior": 1.5}
        assert scene.get_material_info(99) is None

    def test_kernel_side_material_lookup(self):
        """Test get_material_type and get_material_type_index inside a kernel."""
        from src.radtrace.scene.manager import (
            MaterialType,
            SceneManager,
            get_material_type,
            get_material_type_index,
        )

        scene = SceneManager()
        scene.add_lambertian_material((0.5, 0.5, 0.5))
        scene.add_metal_material((0.5, 0.5, 0.5))
        scene.add_metal_material((0.2, 0.2, 0.2))

        types = ti.field(dtype=ti.i32, shape=4)
        indices = ti.field(dtype=ti.i32, shape=4)

        @ti.kernel
        def test_kernel():
            for i in range(4):
                types[i] = get_material_type(i)
                indices[i] = get_material_type_index(i)

        test_kernel()
        assert types[0] == int(MaterialType.LAMBERTIAN)
        assert types[2] == int(MaterialType.METAL)
        assert indices[2] == 1
        assert types[3] == -1
        assert indices[3] == -1

    def test_invalid_material_parameters(self):
        """Test out-of-range material parameters are rejected."""
        from src.radtrace.scene.manager import SceneManager

        scene = SceneManager()
        with pytest.raises(ValueError, match="outside"):
            scene.add_lambertian_material((1.2, 0.5, 0.5))
        with pytest.raises(ValueError, match="Fuzz"):
            scene.add_metal_material((0.5, 0.5, 0.5), fuzz=1.5)
        with pytest.raises(ValueError, match="less than 1.0"):
            scene.add_dielectric_material(0.9)
        with pytest.raises(ValueError, match="3 components"):
            scene.add_lambertian_material((0.5, 0.5))
        assert scene.get_material_count() == 0


class TestFormManagement:
    """Tests for adding forms."""

    def test_add_each_kind(self):
        """Test every form kind gets the next index and the right FormInfo."""
        from src.radtrace.scene.intersection import FormKind
        from src.radtrace.scene.manager import SceneManager

        scene = SceneManager(seed=1)
        mat = scene.add_lambertian_material((0.5, 0.5, 0.5))

        sphere = scene.add_sphere((0.0, 0.0, 0.0), 1.0, mat)
        cube = scene.add_cube((3.0, 0.0, 0.0), 1.0, mat)
        square = scene.add_square((6.0, 0.0, 0.0), 2.0, mat, *AXES)
        rect = scene.add_rectangle((9.0, 0.0, 0.0), 2.0, 3.0, mat, *AXES)
        floor = scene.add_horizontal_square((0.0, -1.0, 0.0), 4.0, mat)

        assert (sphere, cube, square, rect, floor) == (0, 1, 2, 3, 4)
        assert scene.get_form_count() == 5
        kinds = [scene.get_form_info(i).kind for i in range(5)]
        assert kinds == [
            FormKind.SPHERE,
            FormKind.CUBE,
            FormKind.SQUARE,
            FormKind.RECTANGLE,
            FormKind.SQUARE,
        ]
        assert scene.get_form_info(floor).w == (0.0, 1.0, 0.0)

    def test_form_areas(self):
        """Test FormInfo.area for every kind."""
        from src.radtrace.scene.manager import SceneManager

        scene = SceneManager()
        mat = scene.add_lambertian_material((0.5, 0.5, 0.5))
        scene.add_sphere((0.0, 0.0, 0.0), 0.5, mat)
        scene.add_square((3.0, 0.0, 0.0), 2.0, mat, *AXES)
        scene.add_rectangle((6.0, 0.0, 0.0), 2.0, 3.0, mat, *AXES)
        scene.add_cube((9.0, 0.0, 0.0), 1.0, mat, AXES)

        assert scene.get_form_info(0).area == pytest.approx(math.pi)
        assert scene.get_form_info(1).area == pytest.approx(4.0)
        assert scene.get_form_info(2).area == pytest.approx(6.0)
        assert scene.get_form_info(3).area is None
        assert not scene.get_form_info(3).parameterizable

    def test_validation_errors(self):
        """Test invalid sizes, materials and bases raise ValueError."""
        from src.radtrace.scene.manager import SceneManager

        scene = SceneManager()
        mat = scene.add_lambertian_material((0.5, 0.5, 0.5))

        with pytest.raises(ValueError, match="radius"):
            scene.add_sphere((0.0, 0.0, 0.0), 0.0, mat)
        with pytest.raises(ValueError, match="material_id"):
            scene.add_sphere((0.0, 0.0, 0.0), 1.0, mat + 1)
        with pytest.raises(ValueError, match="orthonormal"):
            scene.add_square(
                (0.0, 0.0, 0.0), 1.0, mat, (1.0, 0.0, 0.0), (1.0, 0.0, 0.0), (0.0, 0.0, 1.0)
            )
        with pytest.raises(ValueError, match="extents"):
            scene.add_rectangle((0.0, 0.0, 0.0), 1.0, -1.0, mat, *AXES)
        assert scene.get_form_count() == 0

    def test_get_form_info_out_of_range(self):
        """Test get_form_info raises IndexError past the end."""
        from src.radtrace.scene.manager import SceneManager

        scene = SceneManager()
        with pytest.raises(IndexError):
            scene.get_form_info(0)

    def test_seeded_cube_orientation_is_reproducible(self):
        """Test two scenes with the same seed orient cubes identically."""
        from src.radtrace.scene.manager import SceneManager

        scene = SceneManager(seed=11)
        mat = scene.add_lambertian_material((0.5, 0.5, 0.5))
        scene.add_cube((0.0, 0.0, 0.0), 1.0, mat)
        first = scene.get_form_info(0).u

        scene = SceneManager(seed=11)
        mat = scene.add_lambertian_material((0.5, 0.5, 0.5))
        scene.add_cube((0.0, 0.0, 0.0), 1.0, mat)
        np.testing.assert_allclose(scene.get_form_info(0).u, first)

    def test_convenience_methods(self):
        """Test add_*_sphere return (form_index, material_id)."""
        from src.radtrace.scene.manager import MaterialType, SceneManager

        scene = SceneManager()
        assert scene.add_lambertian_sphere((0.0, 0.0, -1.0), 0.5, (0.8, 0.3, 0.3)) == (0, 0)
        assert scene.add_metal_sphere((1.0, 0.0, -1.0), 0.5, (0.8, 0.8, 0.8), 0.3) == (1, 1)
        assert scene.add_dielectric_sphere((-1.0, 0.0, -1.0), 0.5) == (2, 2)
        assert scene.get_material_type_python(2) == MaterialType.DIELECTRIC

    def test_clear(self):
        """Test clear removes forms and materials."""
        from src.radtrace.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_lambertian_sphere((0.0, 0.0, -1.0), 0.5, (0.8, 0.3, 0.3))
        scene.clear()
        assert scene.get_form_count() == 0
        assert scene.get_material_count() == 0
        assert scene.forms == []


class TestSerialization:
    """Tests for to_dict/from_dict."""

    def test_round_trip(self):
        """Test a mixed scene survives to_dict and from_dict."""
        from src.radtrace.scene.manager import SceneManager

        scene = SceneManager(seed=5)
        lam = scene.add_lambertian_material((0.5, 0.4, 0.3))
        metal = scene.add_metal_material((0.9, 0.9, 0.9), 0.2)
        scene.add_sphere((0.0, 1.0, 0.0), 1.0, lam)
        scene.add_cube((2.0, 0.5, 0.0), 1.0, metal)
        scene.add_rectangle((0.0, 0.0, 0.0), 4.0, 2.0, lam, *AXES)
        data = scene.to_dict()

        restored = SceneManager()
        restored.from_dict(data)

        assert restored.get_material_count() == 2
        assert restored.get_form_count() == 3
        assert restored.to_dict() == data
        assert data["forms"][2]["kind"] == "rectangle"
        assert data["forms"][2]["width"] == 2.0
        assert data["materials"][1] == {"type": "metal", "albedo": [0.9, 0.9, 0.9], "fuzz": 0.2}

    def test_unknown_kind_raises(self):
        """Test an unknown form kind is rejected."""
        from src.radtrace.scene.manager import SceneManager

        scene = SceneManager()
        with pytest.raises(ValueError, match="Unknown form kind"):
            scene.from_dict(
                {
                    "materials": [{"type": "lambertian", "albedo": [0.5, 0.5, 0.5]}],
                    "forms": [{"kind": "torus", "center": [0, 0, 0], "length": 1.0}],
                }
            )

    def test_unknown_material_raises(self):
        """Test an unknown material type is rejected."""
        from src.radtrace.scene.manager import SceneManager

        scene = SceneManager()
        with pytest.raises(ValueError, match="Unknown material type"):
            scene.from_dict({"materials": [{"type": "plasma"}], "forms": []})

    def test_capacities(self):
        """Test the capacity accessors."""
        from src.radtrace.scene.manager import MAX_MATERIALS, SceneManager
        from src.radtrace.scene.intersection import MAX_FORMS

        assert SceneManager.get_max_forms() == MAX_FORMS
        assert SceneManager.get_max_materials() == MAX_MATERIALS


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
