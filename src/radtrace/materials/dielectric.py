"""Dielectric (glass/water) material implementation.

Key physics:
    - Snell's law for refraction: n1 * sin(theta1) = n2 * sin(theta2)
    - Schlick's approximation for Fresnel reflectance
    - Total internal reflection when sin(theta_t) would exceed 1

Whether a ray enters or leaves the medium is read from the sign of
dot(ray_direction, normal) with the geometric normal reported by the hit.
The cosine of the angle of incidence is always measured against the normal
that faces the incident side, in both branches.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.radtrace.materials.dielectric import scatter_dielectric
    >>> # Use within a Taichi kernel:
    >>> # direction, attenuation, did_scatter = scatter_dielectric(
    >>> #     ior, incident_dir, normal
    >>> # )
"""

import logging

import taichi as ti
import taichi.math as tm

from src.radtrace.core.ray import reflect, refract, schlick, unit_vector

logger = logging.getLogger(__name__)

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.dataclass
class DielectricMaterial:
    """Dielectric material properties.

    Attributes:
        ior: Index of refraction. Common values:
            - Water: 1.33
            - Glass: 1.5
            - Diamond: 2.4
    """

    ior: ti.f32


@ti.func
def _interface(ior: ti.f32, incident_direction: vec3, normal: vec3):
    """Resolve the incident-side normal, index ratio and incidence cosine.

    Returns:
        A tuple (outward, ni_over_nt, cosine) where outward faces the
        incident side.
    """
    outward = normal
    ni_over_nt = 1.0 / ior
    if tm.dot(incident_direction, normal) > 0.0:
        # Leaving the medium
        outward = -normal
        ni_over_nt = ior
    cosine = tm.min(-tm.dot(unit_vector(incident_direction), outward), 1.0)
    return outward, ni_over_nt, cosine


@ti.func
def scatter_dielectric(
    ior: ti.f32,
    incident_direction: vec3,
    normal: vec3,
):
    """Compute the scattered ray direction for a dielectric surface.

    Total internal reflection forces reflection. Otherwise the Schlick
    reflectance is compared against a fresh uniform draw to pick reflection
    or refraction.

    Args:
        ior: Index of refraction of the material.
        incident_direction: The incoming ray direction (any length).
        normal: The geometric surface normal reported by the hit.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter).
        Attenuation is white and did_scatter is always 1.
    """
    attenuation = vec3(1.0, 1.0, 1.0)
    outward, ni_over_nt, cosine = _interface(ior, incident_direction, normal)

    scattered_direction = reflect(incident_direction, outward)
    refracted, can_refract = refract(incident_direction, outward, ni_over_nt)
    if can_refract == 1:
        if ti.random(ti.f32) >= schlick(cosine, ni_over_nt):
            scattered_direction = refracted

    return scattered_direction, attenuation, 1


@ti.func
def will_reflect(
    ior: ti.f32,
    incident_direction: vec3,
    normal: vec3,
) -> ti.i32:
    """Return 1 if total internal reflection occurs, 0 otherwise."""
    _, ni_over_nt, cosine = _interface(ior, incident_direction, normal)
    sine = ti.sqrt(tm.max(0.0, 1.0 - cosine * cosine))
    return 1 if ni_over_nt * sine > 1.0 else 0


@ti.func
def fresnel_reflectance(
    ior: ti.f32,
    incident_direction: vec3,
    normal: vec3,
) -> ti.f32:
    """Schlick reflectance for the given incidence (ignores TIR)."""
    _, ni_over_nt, cosine = _interface(ior, incident_direction, normal)
    return schlick(cosine, ni_over_nt)


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of dielectric materials in the scene
MAX_DIELECTRIC_MATERIALS = 1024

dielectric_iors = ti.field(dtype=ti.f32, shape=MAX_DIELECTRIC_MATERIALS)
num_dielectric_materials = ti.field(dtype=ti.i32, shape=())


def clear_dielectric_materials() -> None:
    """Clear all dielectric materials."""
    num_dielectric_materials[None] = 0


def add_dielectric_material(ior: float = 1.5) -> int:
    """Add a dielectric material to the material registry.

    Args:
        ior: Index of refraction. Default is 1.5 (typical glass).
            Must be >= 1.0.

    Returns:
        The index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If IOR is less than 1.0.
    """
    if ior < 1.0:
        raise ValueError(
            f"Index of refraction = {ior} is less than 1.0. "
            "IOR must be >= 1.0 for physically meaningful materials."
        )

    idx = num_dielectric_materials[None]
    if idx >= MAX_DIELECTRIC_MATERIALS:
        raise RuntimeError(
            f"Maximum number of dielectric materials ({MAX_DIELECTRIC_MATERIALS}) exceeded"
        )

    dielectric_iors[idx] = ior
    num_dielectric_materials[None] = idx + 1
    logger.debug("dielectric material %d: ior=%s", idx, ior)
    return idx


def get_dielectric_material_count() -> int:
    """Get the number of dielectric materials in the registry."""
    return int(num_dielectric_materials[None])


@ti.func
def get_dielectric_ior(material_idx: ti.i32) -> ti.f32:
    """Get the IOR for a dielectric material by index."""
    return dielectric_iors[material_idx]


@ti.func
def scatter_dielectric_by_id(
    material_idx: ti.i32,
    incident_direction: vec3,
    normal: vec3,
):
    """Scatter off a registered dielectric material.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter).
    """
    ior = get_dielectric_ior(material_idx)
    return scatter_dielectric(ior, incident_direction, normal)
