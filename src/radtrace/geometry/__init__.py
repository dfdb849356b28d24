"""Geometry module for shape primitives and intersection algorithms.

Components:
    sphere: Sphere primitive, the shared HitRecord, and sphere sampling
    cube: Oriented cube intersected face by face with 3x3 solves
    patch: Square/rectangle patches with arbitrary orientation

All intersection routines are Taichi functions (@ti.func) with the shape

    record = hit_shape(ray_origin, ray_direction, shape, t_min, t_max)

and return a HitRecord whose hit field tells whether the record is valid.
Spheres and patches also expose point/normal/area/diff_a for view-factor
sampling; cubes do not.
"""

from .cube import Cube, hit_cube, random_horizontal_basis
from .patch import (
    Patch,
    hit_patch,
    patch_area,
    patch_diff_a,
    patch_normal,
    patch_point,
)
from .sphere import (
    HitRecord,
    Sphere,
    hit_sphere,
    make_miss,
    make_sphere,
    sphere_area,
    sphere_diff_a,
    sphere_normal,
    sphere_point,
)

__all__ = [
    "HitRecord",
    "make_miss",
    # Sphere
    "Sphere",
    "hit_sphere",
    "make_sphere",
    "sphere_point",
    "sphere_normal",
    "sphere_area",
    "sphere_diff_a",
    # Cube
    "Cube",
    "hit_cube",
    "random_horizontal_basis",
    # Patch
    "Patch",
    "hit_patch",
    "patch_point",
    "patch_normal",
    "patch_area",
    "patch_diff_a",
]
