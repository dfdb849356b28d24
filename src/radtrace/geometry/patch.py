"""Planar patch primitive covering squares and rectangles.

A patch is a finite, arbitrarily oriented rectangle defined by its center,
its extents along u (length) and v (width), and an orthonormal basis
(u, v, w) where w is the surface normal. A square is a patch whose width
equals its length.

Intersection locates the plane-ray crossing point directly in world space.
Two unit directions n1, n2 perpendicular to the ray are built from a random
helper vector; the crossing point is the unique point lying on the patch
plane and on the two planes through the ray origin with normals n1 and n2.
The point is then bounds-checked against the half extents.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.radtrace.geometry.patch import Patch, hit_patch, vec3
    >>> # Unit square in the y = 0 plane facing up
    >>> patch = Patch(
    ...     center=vec3(0, 0, 0), length=1.0, width=1.0,
    ...     u=vec3(1, 0, 0), v=vec3(0, 0, -1), w=vec3(0, 1, 0),
    ... )
    >>> # Use hit_patch within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from src.radtrace.core.ray import MAX_REJECTION_TRIES, random_vec3, unit_vector
from src.radtrace.geometry.sphere import HitRecord

vec3 = tm.vec3

# Rays closer than this to the patch plane (|cos| of the angle between the
# unit ray direction and the normal) never hit
PARALLEL_EPSILON = 1e-3

# Helper directions more aligned with the ray than this are redrawn
MAX_HELPER_ALIGNMENT = 0.8

# Singularity guard for the three-plane solve
PLANE_DET_EPSILON = 1e-5


@ti.dataclass
class Patch:
    """A rectangular planar patch.

    Attributes:
        center: The center point of the patch.
        length: Extent along u.
        width: Extent along v (equal to length for a square).
        u: First in-plane axis (unit length).
        v: Second in-plane axis (unit length).
        w: Surface normal (unit length, w = u x v).
    """

    center: vec3
    length: ti.f32
    width: ti.f32
    u: vec3
    v: vec3
    w: vec3


@ti.func
def _fallback_helper(d_hat: vec3) -> vec3:
    """World axis least aligned with d_hat."""
    ax = ti.abs(d_hat.x)
    ay = ti.abs(d_hat.y)
    az = ti.abs(d_hat.z)
    helper = vec3(1.0, 0.0, 0.0)
    if ay <= ax and ay <= az:
        helper = vec3(0.0, 1.0, 0.0)
    elif az <= ax and az <= ay:
        helper = vec3(0.0, 0.0, 1.0)
    return helper


@ti.func
def random_transverse_helper(d_hat: vec3) -> vec3:
    """Draw a random unit vector that is not nearly parallel to d_hat.

    Candidates are drawn from [0, 1)^3 and rejected while
    |dot(candidate, d_hat)| > MAX_HELPER_ALIGNMENT. If the capped loop
    finds nothing, the world axis least aligned with d_hat is used.

    Args:
        d_hat: Unit ray direction.

    Returns:
        A unit helper vector.
    """
    helper = _fallback_helper(d_hat)
    found = False
    for _ in range(MAX_REJECTION_TRIES):
        if not found:
            candidate = random_vec3()
            norm2 = tm.dot(candidate, candidate)
            if norm2 > 1e-6:
                candidate = candidate / ti.sqrt(norm2)
                if ti.abs(tm.dot(candidate, d_hat)) <= MAX_HELPER_ALIGNMENT:
                    helper = candidate
                    found = True
    return helper


@ti.func
def _intersect_planes(a: vec3, b: vec3, c: vec3, r0: ti.f32, r1: ti.f32, r2: ti.f32):
    """Solve the system a.p = r0, b.p = r1, c.p = r2 for p.

    Returns:
        A tuple (p, ok) with ok == 0 when the planes do not meet in a point.
    """
    det = tm.dot(a, tm.cross(b, c))
    p = vec3(0.0, 0.0, 0.0)
    ok = 0
    if ti.abs(det) > PLANE_DET_EPSILON:
        p = (r0 * tm.cross(b, c) + r1 * tm.cross(c, a) + r2 * tm.cross(a, b)) / det
        ok = 1
    return p, ok


@ti.func
def hit_patch(
    ray_origin: vec3,
    ray_direction: vec3,
    patch: Patch,
    t_min: ti.f32,
    t_max: ti.f32,
) -> HitRecord:
    """Test for ray-patch intersection.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray (need not be normalized).
        patch: The patch to test intersection against.
        t_min: Inclusive lower bound on accepted t values.
        t_max: Inclusive upper bound on accepted t values.

    Returns:
        A HitRecord whose normal is w flipped to oppose the ray direction.
    """
    did_hit = 0
    hit_t = 0.0
    hit_point = vec3(0.0, 0.0, 0.0)
    hit_normal = vec3(0.0, 0.0, 0.0)

    n = patch.w
    d_hat = unit_vector(ray_direction)
    n_dot_d = tm.dot(n, d_hat)

    if ti.abs(n_dot_d) >= PARALLEL_EPSILON:
        helper = random_transverse_helper(d_hat)
        n1 = unit_vector(tm.cross(helper, ray_direction))
        n2 = unit_vector(tm.cross(ray_direction, n1))

        p, ok = _intersect_planes(
            n,
            n1,
            n2,
            tm.dot(n, patch.center),
            tm.dot(n1, ray_origin),
            tm.dot(n2, ray_origin),
        )
        if ok == 1:
            t = tm.dot(p - ray_origin, ray_direction) / tm.dot(ray_direction, ray_direction)
            if t >= t_min and t <= t_max:
                rel = p - patch.center
                if (
                    ti.abs(tm.dot(rel, patch.u)) <= 0.5 * patch.length
                    and ti.abs(tm.dot(rel, patch.v)) <= 0.5 * patch.width
                ):
                    did_hit = 1
                    hit_t = t
                    hit_point = p
                    hit_normal = n
                    if n_dot_d > 0.0:
                        hit_normal = -n

    return HitRecord(hit=did_hit, t=hit_t, point=hit_point, normal=hit_normal)


# =============================================================================
# Surface Parameterization
# =============================================================================


@ti.func
def patch_point(patch: Patch, s: ti.f32, t: ti.f32) -> vec3:
    """Surface point center + length*(s - 0.5)*u + width*(t - 0.5)*v."""
    return (
        patch.center
        + patch.length * (s - 0.5) * patch.u
        + patch.width * (t - 0.5) * patch.v
    )


@ti.func
def patch_normal(patch: Patch, s: ti.f32, t: ti.f32) -> vec3:
    """The patch normal w (independent of s and t)."""
    return patch.w


@ti.func
def patch_area(patch: Patch) -> ti.f32:
    """Area length * width."""
    return patch.length * patch.width


@ti.func
def patch_diff_a(patch: Patch, s: ti.f32, t: ti.f32) -> ti.f32:
    """Differential area weight; uniform sampling makes it the full area."""
    return patch_area(patch)
