"""Sphere primitive with ray-sphere intersection and surface parameterization.

The intersection solves |O + tD - C|^2 = r^2 with the classic quadratic
formula. Only a strictly positive discriminant counts as a hit, and of the
two roots the nearest one inside (t_min, t_max) wins.

Besides intersection, a sphere can be sampled for view-factor estimation.
Parametric coordinates (s, t) in [0, 1]^2 map to longitude 2*pi*s and
latitude pi*(t - 0.5).

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.radtrace.geometry.sphere import Sphere, hit_sphere
    >>> sphere = Sphere(center=ti.math.vec3(0, 0, -1), radius=0.5)
    >>> # Use hit_sphere within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class Sphere:
    """A sphere defined by center point and radius.

    Attributes:
        center: The center point of the sphere (vec3).
        radius: The radius of the sphere (positive float).
    """

    center: vec3
    radius: ti.f32


@ti.dataclass
class HitRecord:
    """Record of a ray-primitive intersection.

    Shared by every primitive in the geometry package.

    Attributes:
        hit: 1 if the ray intersected the primitive, 0 on a miss.
        t: The parameter value along the ray where intersection occurred.
            Only valid if hit == 1.
        point: The 3D point where the ray intersected the surface.
            Only valid if hit == 1.
        normal: The surface normal at the intersection point (unit length).
            Spheres report the outward normal; patches report the normal
            facing the ray origin; cubes report the outward face axis.
            Only valid if hit == 1.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3


@ti.func
def make_miss() -> HitRecord:
    """Create a HitRecord indicating no intersection."""
    return HitRecord(hit=0, t=0.0, point=vec3(0.0, 0.0, 0.0), normal=vec3(0.0, 0.0, 0.0))


@ti.func
def hit_sphere(
    ray_origin: vec3,
    ray_direction: vec3,
    sphere: Sphere,
    t_min: ti.f32,
    t_max: ti.f32,
) -> HitRecord:
    """Test for ray-sphere intersection.

    With oc = origin - center the quadratic is a*t^2 + b*t + c = 0 where
        a = dot(direction, direction)
        b = 2 * dot(oc, direction)
        c = dot(oc, oc) - radius^2

    A discriminant <= 0 is a miss (tangent rays do not count). The larger
    root is accepted first and then replaced by the smaller one if that is
    admissible too, so the nearest admissible root wins.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray (need not be normalized).
        sphere: The sphere to test intersection against.
        t_min: Exclusive lower bound on accepted t values.
        t_max: Exclusive upper bound on accepted t values.

    Returns:
        A HitRecord with the outward normal (point - center) / radius.
    """
    oc = ray_origin - sphere.center
    a = tm.dot(ray_direction, ray_direction)
    b = 2.0 * tm.dot(oc, ray_direction)
    c = tm.dot(oc, oc) - sphere.radius * sphere.radius
    discriminant = b * b - 4.0 * a * c

    # Initialize result fields (Taichi requires outer-scope declaration)
    did_hit = 0
    hit_t = 0.0
    hit_point = vec3(0.0, 0.0, 0.0)
    hit_normal = vec3(0.0, 0.0, 0.0)

    if discriminant > 0.0:
        sqrt_d = ti.sqrt(discriminant)
        t1 = (-b - sqrt_d) / (2.0 * a)
        t2 = (-b + sqrt_d) / (2.0 * a)

        if t_min < t2 and t2 < t_max:
            did_hit = 1
            hit_t = t2
        if t_min < t1 and t1 < t_max:
            did_hit = 1
            hit_t = t1

        if did_hit == 1:
            hit_point = ray_origin + hit_t * ray_direction
            hit_normal = (hit_point - sphere.center) / sphere.radius

    return HitRecord(hit=did_hit, t=hit_t, point=hit_point, normal=hit_normal)


@ti.func
def make_sphere(center: vec3, radius: ti.f32) -> Sphere:
    """Create a sphere from center and radius inside a Taichi kernel."""
    return Sphere(center=center, radius=radius)


# =============================================================================
# Surface Parameterization
# =============================================================================


@ti.func
def _unit_direction(s: ti.f32, t: ti.f32) -> vec3:
    """Unit direction for parametric coordinates (s, t).

    Longitude is 2*pi*s and latitude pi*(t - 0.5); the poles lie on the
    z axis at t = 0 and t = 1.
    """
    lam = 2.0 * tm.pi * s
    phi = tm.pi * (t - 0.5)
    return vec3(ti.cos(lam) * ti.cos(phi), ti.sin(lam) * ti.cos(phi), ti.sin(phi))


@ti.func
def sphere_normal(sphere: Sphere, s: ti.f32, t: ti.f32) -> vec3:
    """Outward unit normal at parametric coordinates (s, t)."""
    return _unit_direction(s, t)


@ti.func
def sphere_point(sphere: Sphere, s: ti.f32, t: ti.f32) -> vec3:
    """Surface point at parametric coordinates (s, t)."""
    return sphere.center + sphere.radius * _unit_direction(s, t)


@ti.func
def sphere_area(sphere: Sphere) -> ti.f32:
    """Total surface area 4*pi*r^2."""
    return 4.0 * tm.pi * sphere.radius * sphere.radius


@ti.func
def sphere_diff_a(sphere: Sphere, s: ti.f32, t: ti.f32) -> ti.f32:
    """Differential area weight r^2 * cos(phi) * 2*pi^2.

    This is the Jacobian of the (s, t) parameterization. It integrates to
    the sphere area over the unit square, so a uniform (s, t) sample mean
    of this weight estimates the area.
    """
    phi = tm.pi * (t - 0.5)
    return sphere.radius * sphere.radius * ti.cos(phi) * 2.0 * tm.pi * tm.pi
