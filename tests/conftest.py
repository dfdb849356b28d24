"""Pytest configuration for ray tracer and view-factor tests.

This module provides shared fixtures for all test modules, including
Taichi initialization which must happen once per session.
"""

import pytest
import taichi as ti


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Using session scope prevents multiple ti.init() calls which can cause
    segmentation faults due to Taichi runtime conflicts.
    """
    ti.init(arch=ti.cpu, random_seed=42)
    yield


@pytest.fixture(autouse=True)
def clear_all_scene_data():
    """Clear scene, material, camera and render target state before each test.

    This ensures tests are isolated from each other.
    """
    # Import here so Taichi is initialized before the module fields exist
    from src.radtrace.camera.pinhole import reset_camera
    from src.radtrace.core.integrator import reset_render_target
    from src.radtrace.materials.dielectric import clear_dielectric_materials
    from src.radtrace.materials.lambertian import clear_lambertian_materials
    from src.radtrace.materials.metal import clear_metal_materials
    from src.radtrace.scene.intersection import clear_scene
    from src.radtrace.scene.manager import _clear_material_tracking

    def _clear_all():
        clear_scene()
        clear_lambertian_materials()
        clear_metal_materials()
        clear_dielectric_materials()
        _clear_material_tracking()
        reset_render_target()
        reset_camera()

    # Clear everything before test
    _clear_all()

    yield

    # Clear everything after test
    _clear_all()
