"""Core rendering module.

Components:
    ray: Ray data structure, vector algebra and random sampling helpers
    integrator: Depth-bounded colour integrator and render target
    renderer: Batched renderer wrapping the integrator

All compute-intensive operations use Taichi kernels.
"""

from .ray import (
    MAX_REJECTION_TRIES,
    Ray,
    cross,
    dot,
    gamma2,
    gamma3,
    length,
    length_squared,
    make_ray,
    max_component,
    near_zero,
    random_in_unit_disk,
    random_in_unit_sphere,
    random_vec3,
    ray_at,
    reflect,
    refract,
    schlick,
    unit_vector,
    vec3,
)

# Note: integrator and renderer are NOT imported here to avoid circular imports.
# Import directly from src.radtrace.core.integrator or src.radtrace.core.renderer.

__all__ = [
    "Ray",
    "ray_at",
    "make_ray",
    "vec3",
    "length",
    "length_squared",
    "unit_vector",
    "dot",
    "cross",
    "max_component",
    "gamma2",
    "gamma3",
    "reflect",
    "refract",
    "schlick",
    "near_zero",
    "random_vec3",
    "random_in_unit_sphere",
    "random_in_unit_disk",
    "MAX_REJECTION_TRIES",
]
