"""Cube primitive with arbitrary orientation about the vertical axis.

A cube is defined by its center, edge length and an orthonormal basis
(u, v, w). Scene builders keep w vertical and draw a random rotation of u
and v in the horizontal plane (see random_horizontal_basis).

Intersection is done face by face. A bounding sphere of radius
length * sqrt(3) / 2 rejects most rays early; then each of the six faces
solves the 3x3 system

    x0 * ej + x1 * ek - t * d = o - c - ei * length / 2

where ei is the signed face axis and ej, ek span the face. The system is
solved with Cramer's rule and skipped when the determinant is too small
(ray parallel to the face).

Cubes have no surface parameterization, so they cannot take part in
view-factor estimation.
"""

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from src.radtrace.geometry.sphere import HitRecord, Sphere, hit_sphere

vec3 = tm.vec3

# Below this determinant magnitude a face system is treated as singular
CUBE_DET_EPSILON = 1e-4


@ti.dataclass
class Cube:
    """An oriented cube.

    Attributes:
        center: The center point of the cube.
        length: The edge length.
        u: First horizontal axis (unit length).
        v: Second horizontal axis (unit length).
        w: Vertical axis (unit length).
    """

    center: vec3
    length: ti.f32
    u: vec3
    v: vec3
    w: vec3


@ti.func
def _det3(a: vec3, b: vec3, c: vec3) -> ti.f32:
    """Determinant of the 3x3 matrix with columns a, b, c."""
    return tm.dot(a, tm.cross(b, c))


@ti.func
def _solve_face(ej: vec3, ek: vec3, minus_d: vec3, k: vec3):
    """Solve [ej ek -d] x = k by Cramer's rule.

    Returns:
        A tuple (x, ok) with ok == 0 when the system is singular.
    """
    det = _det3(ej, ek, minus_d)
    x = vec3(0.0, 0.0, 0.0)
    ok = 0
    if ti.abs(det) > CUBE_DET_EPSILON:
        x = vec3(
            _det3(k, ek, minus_d) / det,
            _det3(ej, k, minus_d) / det,
            _det3(ej, ek, k) / det,
        )
        ok = 1
    return x, ok


@ti.func
def hit_cube(
    ray_origin: vec3,
    ray_direction: vec3,
    cube: Cube,
    t_min: ti.f32,
    t_max: ti.f32,
) -> HitRecord:
    """Test for ray-cube intersection.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray.
        cube: The cube to test intersection against.
        t_min: Exclusive lower bound on accepted t values.
        t_max: Exclusive upper bound on accepted t values.

    Returns:
        A HitRecord for the nearest face hit. The normal is the outward
        axis of that face.
    """
    did_hit = 0
    t_closest = t_max
    hit_normal = vec3(0.0, 0.0, 0.0)

    half = 0.5 * cube.length
    bound = Sphere(center=cube.center, radius=cube.length * ti.sqrt(3.0) / 2.0)
    if hit_sphere(ray_origin, ray_direction, bound, t_min, t_max).hit == 1:
        minus_d = -ray_direction
        for axis in ti.static(range(3)):
            ei = cube.u
            ej = cube.v
            ek = cube.w
            if ti.static(axis == 1):
                ei = cube.v
                ej = cube.w
                ek = cube.u
            elif ti.static(axis == 2):
                ei = cube.w
                ej = cube.u
                ek = cube.v
            for sign in ti.static((-1.0, 1.0)):
                face_axis = sign * ei
                k = ray_origin - cube.center - face_axis * half
                x, ok = _solve_face(ej, ek, minus_d, k)
                if ok == 1:
                    if ti.abs(x[0]) < half and ti.abs(x[1]) < half:
                        if t_min < x[2] and x[2] < t_closest:
                            did_hit = 1
                            t_closest = x[2]
                            hit_normal = face_axis

    hit_t = 0.0
    hit_point = vec3(0.0, 0.0, 0.0)
    if did_hit == 1:
        hit_t = t_closest
        hit_point = ray_origin + hit_t * ray_direction

    return HitRecord(hit=did_hit, t=hit_t, point=hit_point, normal=hit_normal)


# =============================================================================
# Host-side Construction Helpers
# =============================================================================


def random_horizontal_basis(
    rng: np.random.Generator,
) -> tuple[npt.NDArray[np.float64], npt.NDArray[np.float64], npt.NDArray[np.float64]]:
    """Draw an orthonormal basis rotated randomly about the vertical axis.

    w is (0, 1, 0), u = (cos a, 0, sin a) for a uniform angle a in [0, 2*pi),
    and v = w x u.

    Args:
        rng: NumPy random generator used for the rotation angle.

    Returns:
        The basis vectors (u, v, w) as float64 arrays.
    """
    angle = rng.random() * 2.0 * np.pi
    w = np.array([0.0, 1.0, 0.0])
    u = np.array([np.cos(angle), 0.0, np.sin(angle)])
    v = np.cross(w, u)
    return u, v, w
