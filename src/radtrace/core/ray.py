"""Ray data structure and vector utilities for Monte Carlo light transport.

This module provides the Ray dataclass together with the 3-vector algebra,
colour correction and random sampling helpers used by every other part of
the tracer. All functions are Taichi functions so they can be called from
rendering and view-factor kernels alike.

Vectors double as points, directions and linear RGB colours. Arithmetic is
component-wise except for dot, cross and length.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> origin = ti.math.vec3(0.0, 0.0, 0.0)
    >>> direction = ti.math.vec3(0.0, 0.0, -1.0)
    >>> ray = Ray(origin=origin, direction=direction)
    >>> point = ray_at(ray, 5.0)  # Point 5 units along the ray
"""

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Iteration cap for rejection sampling loops
MAX_REJECTION_TRIES = 100


@ti.dataclass
class Ray:
    """A ray with an origin point and direction vector.

    Attributes:
        origin: The starting point of the ray (vec3).
        direction: The direction vector of the ray (vec3). Camera rays are
            not normalized, so intersection code must not assume unit length.
    """

    origin: vec3
    direction: vec3


@ti.func
def ray_at(ray: Ray, t: ti.f32) -> vec3:
    """Compute the point along the ray at parameter t.

    Args:
        ray: The ray to evaluate.
        t: The parameter value. Positive values are in front of the origin.

    Returns:
        The point ray.origin + t * ray.direction.
    """
    return ray.origin + t * ray.direction


@ti.func
def make_ray(origin: vec3, direction: vec3) -> Ray:
    """Create a ray from origin and direction inside a Taichi kernel."""
    return Ray(origin=origin, direction=direction)


# =============================================================================
# Vector Utility Functions
# =============================================================================


@ti.func
def length(v: vec3) -> ti.f32:
    """Euclidean length of a vector."""
    return tm.length(v)


@ti.func
def length_squared(v: vec3) -> ti.f32:
    """Squared Euclidean length of a vector."""
    return tm.dot(v, v)


@ti.func
def unit_vector(v: vec3) -> vec3:
    """Scale a vector to unit length.

    No guard is applied: a zero-length input yields NaN or Inf components,
    so callers must rule out degenerate vectors themselves.

    Args:
        v: The input vector.

    Returns:
        v / |v|.
    """
    return v / tm.length(v)


@ti.func
def dot(a: vec3, b: vec3) -> ti.f32:
    """Dot product a . b."""
    return tm.dot(a, b)


@ti.func
def cross(a: vec3, b: vec3) -> vec3:
    """Cross product a x b."""
    return tm.cross(a, b)


@ti.func
def max_component(v: vec3) -> ti.f32:
    """Largest of the three components of a vector."""
    return tm.max(v.x, tm.max(v.y, v.z))


@ti.func
def gamma2(color: vec3) -> vec3:
    """Gamma-2 colour correction (component-wise square root)."""
    return ti.sqrt(color)


@ti.func
def gamma3(color: vec3) -> vec3:
    """Gamma-3 colour correction (component-wise cube root)."""
    return color ** (1.0 / 3.0)


@ti.func
def reflect(incident: vec3, normal: vec3) -> vec3:
    """Reflect an incident vector about a normal.

    Computes v - 2 * dot(n, v) * n. The normal should be unit length.

    Args:
        incident: The incoming direction vector (pointing toward the surface).
        normal: The surface normal.

    Returns:
        The reflected direction vector.
    """
    return incident - 2.0 * tm.dot(incident, normal) * normal


@ti.func
def refract(incident: vec3, normal: vec3, ni_over_nt: ti.f32):
    """Refract an incident vector through an interface using Snell's law.

    The normal must face the incident side (dot(incident, normal) < 0).
    The incident vector is normalized before use.

    Args:
        incident: The incoming direction vector.
        normal: Unit surface normal on the incident side.
        ni_over_nt: Ratio of refractive indices (incident over transmitted).

    Returns:
        A tuple of (refracted, ok). ok is 0 when the discriminant is
        negative (total internal reflection); refracted is then zero.
    """
    uv = unit_vector(incident)
    cos_i = -tm.dot(uv, normal)
    discriminant = 1.0 - ni_over_nt * ni_over_nt * (1.0 - cos_i * cos_i)

    refracted = vec3(0.0, 0.0, 0.0)
    ok = 0
    if discriminant >= 0.0:
        perpendicular = ni_over_nt * (uv + cos_i * normal)
        parallel = -ti.sqrt(discriminant) * normal
        refracted = perpendicular + parallel
        ok = 1
    return refracted, ok


@ti.func
def schlick(cosine: ti.f32, ref_idx: ti.f32) -> ti.f32:
    """Schlick's polynomial approximation of Fresnel reflectance.

    Args:
        cosine: Cosine of the angle of incidence.
        ref_idx: Ratio of refractive indices.

    Returns:
        r0 + (1 - r0) * (1 - cosine)^5 with r0 = ((1 - n) / (1 + n))^2.
    """
    r0 = (1.0 - ref_idx) / (1.0 + ref_idx)
    r0 = r0 * r0
    return r0 + (1.0 - r0) * ((1.0 - cosine) ** 5)


@ti.func
def near_zero(v: vec3) -> ti.i32:
    """Return 1 if all components of v are below 1e-8 in magnitude."""
    s = 1e-8
    return ti.abs(v.x) < s and ti.abs(v.y) < s and ti.abs(v.z) < s


# =============================================================================
# Random Sampling Utilities for Monte Carlo
# =============================================================================


@ti.func
def random_vec3() -> vec3:
    """Uniform random vector in [0, 1)^3."""
    return vec3(ti.random(ti.f32), ti.random(ti.f32), ti.random(ti.f32))


@ti.func
def random_in_unit_sphere() -> vec3:
    """Generate a random point inside the unit sphere.

    Draws from [0, 1)^3, rescales to [-1, 1)^3 and rejects points outside
    the unit ball. The loop is capped; if every draw is rejected the origin
    is returned.

    Returns:
        A random point with length < 1.
    """
    p = vec3(0.0, 0.0, 0.0)
    found = False
    for _ in range(MAX_REJECTION_TRIES):
        if not found:
            candidate = 2.0 * random_vec3() - vec3(1.0, 1.0, 1.0)
            if length_squared(candidate) < 1.0:
                p = candidate
                found = True
    return p


@ti.func
def random_in_unit_disk() -> vec3:
    """Generate a random point inside the unit disk in the z = 0 plane.

    Used by the thin-lens camera to jitter ray origins across the aperture.

    Returns:
        A random point (x, y, 0) with x^2 + y^2 < 1.
    """
    p = vec3(0.0, 0.0, 0.0)
    found = False
    for _ in range(MAX_REJECTION_TRIES):
        if not found:
            candidate = vec3(
                ti.random(ti.f32) * 2.0 - 1.0,
                ti.random(ti.f32) * 2.0 - 1.0,
                0.0,
            )
            if candidate.x * candidate.x + candidate.y * candidate.y < 1.0:
                p = candidate
                found = True
    return p
