"""Scene-level ray intersection over a single ordered table of forms.

Every primitive in the scene is a "form": a tagged record whose kind is
one of FormKind and whose position in the table is its form index. The
nearest-hit query scans the table linearly, narrowing t_max as closer hits
are found, and reports the owning form's material together with its index.
The index is what lets the view-factor estimator tell "the ray reached the
target" from "the ray was blocked by something else".

Forms are stored Structure-of-Arrays in Taichi fields. The meaning of the
size fields depends on the kind:

    SPHERE     length = radius
    CUBE       length = edge length, u/v/w = orientation
    SQUARE     length = width = edge length, u/v/w = orientation
    RECTANGLE  length along u, width along v, u/v/w = orientation

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.radtrace.scene.intersection import add_sphere, clear_scene
    >>> clear_scene()
    >>> add_sphere((0, 0, -1), 0.5, material_id=0)
    >>> # Use intersect_scene within a Taichi kernel
"""

from collections.abc import Sequence
from enum import IntEnum
from typing import Any

import taichi as ti
import taichi.math as tm

from src.radtrace.geometry.cube import Cube, hit_cube
from src.radtrace.geometry.patch import (
    Patch,
    hit_patch,
    patch_area,
    patch_diff_a,
    patch_normal,
    patch_point,
)
from src.radtrace.geometry.sphere import (
    HitRecord,
    Sphere,
    hit_sphere,
    make_miss,
    sphere_area,
    sphere_diff_a,
    sphere_normal,
    sphere_point,
)

vec3 = tm.vec3

Vector3 = Sequence[float]


class FormKind(IntEnum):
    """Enumeration of supported primitive kinds."""

    SPHERE = 0
    CUBE = 1
    SQUARE = 2
    RECTANGLE = 3


@ti.dataclass
class SceneHitRecord:
    """Record of a ray-scene intersection.

    Attributes:
        hit: 1 if any form was hit, 0 on a miss.
        t: Ray parameter of the nearest hit.
        point: World-space hit point.
        normal: Surface normal reported by the hit form.
        material_id: Unified material id of the owning form (-1 on a miss).
        hit_index: Position of the hit form in the scene table (-1 on a miss).
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    material_id: ti.i32
    hit_index: ti.i32


# Maximum number of forms supported in the scene
MAX_FORMS = 1024

form_kinds = ti.field(dtype=ti.i32, shape=MAX_FORMS)
form_centers = ti.Vector.field(3, dtype=ti.f32, shape=MAX_FORMS)
form_lengths = ti.field(dtype=ti.f32, shape=MAX_FORMS)
form_widths = ti.field(dtype=ti.f32, shape=MAX_FORMS)
form_u = ti.Vector.field(3, dtype=ti.f32, shape=MAX_FORMS)
form_v = ti.Vector.field(3, dtype=ti.f32, shape=MAX_FORMS)
form_w = ti.Vector.field(3, dtype=ti.f32, shape=MAX_FORMS)
form_material_ids = ti.field(dtype=ti.i32, shape=MAX_FORMS)
num_forms = ti.field(dtype=ti.i32, shape=())

# Single-ray probe used by cast_ray()
_probe_origin = ti.Vector.field(3, dtype=ti.f32, shape=())
_probe_direction = ti.Vector.field(3, dtype=ti.f32, shape=())
_probe_range = ti.Vector.field(2, dtype=ti.f32, shape=())
_probe_hit = ti.field(dtype=ti.i32, shape=())
_probe_t = ti.field(dtype=ti.f32, shape=())
_probe_point = ti.Vector.field(3, dtype=ti.f32, shape=())
_probe_normal = ti.Vector.field(3, dtype=ti.f32, shape=())
_probe_material_id = ti.field(dtype=ti.i32, shape=())
_probe_index = ti.field(dtype=ti.i32, shape=())


def clear_scene() -> None:
    """Clear all forms from the scene.

    Resets the form count to zero. The field data is overwritten when new
    forms are added.
    """
    num_forms[None] = 0


def add_form(
    kind: FormKind,
    center: Vector3,
    length: float,
    material_id: int = 0,
    *,
    width: float | None = None,
    u: Vector3 = (1.0, 0.0, 0.0),
    v: Vector3 = (0.0, 1.0, 0.0),
    w: Vector3 = (0.0, 0.0, 1.0),
) -> int:
    """Append a form to the scene table.

    No geometric validation happens here; see SceneManager for that.

    Args:
        kind: The form kind.
        center: The form center.
        length: Radius for spheres, edge length for cubes and squares,
            extent along u for rectangles.
        material_id: The unified material id of the form.
        width: Extent along v for rectangles (defaults to length).
        u: First basis vector.
        v: Second basis vector.
        w: Third basis vector (patch normal, cube vertical).

    Returns:
        The index of the added form.

    Raises:
        RuntimeError: If the maximum number of forms is exceeded.
    """
    idx = num_forms[None]
    if idx >= MAX_FORMS:
        raise RuntimeError(f"Maximum number of forms ({MAX_FORMS}) exceeded")
    form_kinds[idx] = int(kind)
    form_centers[idx] = [float(c) for c in center]
    form_lengths[idx] = length
    form_widths[idx] = length if width is None else width
    form_u[idx] = [float(c) for c in u]
    form_v[idx] = [float(c) for c in v]
    form_w[idx] = [float(c) for c in w]
    form_material_ids[idx] = material_id
    num_forms[None] = idx + 1
    return idx


def add_sphere(center: Vector3, radius: float, material_id: int = 0) -> int:
    """Add a sphere to the scene and return its form index."""
    return add_form(FormKind.SPHERE, center, radius, material_id)


def add_cube(
    center: Vector3,
    length: float,
    u: Vector3,
    v: Vector3,
    w: Vector3,
    material_id: int = 0,
) -> int:
    """Add an oriented cube to the scene and return its form index."""
    return add_form(FormKind.CUBE, center, length, material_id, u=u, v=v, w=w)


def add_patch(
    center: Vector3,
    length: float,
    width: float,
    u: Vector3,
    v: Vector3,
    w: Vector3,
    material_id: int = 0,
) -> int:
    """Add a square (length == width) or rectangle and return its form index."""
    kind = FormKind.SQUARE if length == width else FormKind.RECTANGLE
    return add_form(kind, center, length, material_id, width=width, u=u, v=v, w=w)


def get_form_count() -> int:
    """Get the number of forms in the scene."""
    return int(num_forms[None])


def get_form_kind(index: int) -> FormKind:
    """Get the kind of the form at index (Python side)."""
    return FormKind(int(form_kinds[index]))


# =============================================================================
# Form Accessors (Taichi side)
# =============================================================================


@ti.func
def _sphere_at(i: ti.i32) -> Sphere:
    return Sphere(center=form_centers[i], radius=form_lengths[i])


@ti.func
def _cube_at(i: ti.i32) -> Cube:
    return Cube(
        center=form_centers[i],
        length=form_lengths[i],
        u=form_u[i],
        v=form_v[i],
        w=form_w[i],
    )


@ti.func
def _patch_at(i: ti.i32) -> Patch:
    return Patch(
        center=form_centers[i],
        length=form_lengths[i],
        width=form_widths[i],
        u=form_u[i],
        v=form_v[i],
        w=form_w[i],
    )


@ti.func
def form_material_id(i: ti.i32) -> ti.i32:
    """Unified material id of form i."""
    return form_material_ids[i]


@ti.func
def form_center(i: ti.i32) -> vec3:
    """Center of form i."""
    return form_centers[i]


@ti.func
def intersect_form(
    i: ti.i32,
    ray_origin: vec3,
    ray_direction: vec3,
    t_min: ti.f32,
    t_max: ti.f32,
) -> HitRecord:
    """Dispatch a ray intersection to the primitive stored at index i."""
    rec = make_miss()
    kind = form_kinds[i]
    if kind == int(FormKind.SPHERE):
        rec = hit_sphere(ray_origin, ray_direction, _sphere_at(i), t_min, t_max)
    elif kind == int(FormKind.CUBE):
        rec = hit_cube(ray_origin, ray_direction, _cube_at(i), t_min, t_max)
    else:
        rec = hit_patch(ray_origin, ray_direction, _patch_at(i), t_min, t_max)
    return rec


@ti.func
def form_point(i: ti.i32, s: ti.f32, t: ti.f32) -> vec3:
    """Surface point of form i at parametric coordinates (s, t).

    Cubes have no parameterization and yield the zero vector.
    """
    p = vec3(0.0, 0.0, 0.0)
    kind = form_kinds[i]
    if kind == int(FormKind.SPHERE):
        p = sphere_point(_sphere_at(i), s, t)
    elif kind != int(FormKind.CUBE):
        p = patch_point(_patch_at(i), s, t)
    return p


@ti.func
def form_normal(i: ti.i32, s: ti.f32, t: ti.f32) -> vec3:
    """Surface normal of form i at parametric coordinates (s, t)."""
    n = vec3(0.0, 0.0, 0.0)
    kind = form_kinds[i]
    if kind == int(FormKind.SPHERE):
        n = sphere_normal(_sphere_at(i), s, t)
    elif kind != int(FormKind.CUBE):
        n = patch_normal(_patch_at(i), s, t)
    return n


@ti.func
def form_area(i: ti.i32) -> ti.f32:
    """Total area of form i (0 for cubes)."""
    area = 0.0
    kind = form_kinds[i]
    if kind == int(FormKind.SPHERE):
        area = sphere_area(_sphere_at(i))
    elif kind != int(FormKind.CUBE):
        area = patch_area(_patch_at(i))
    return area


@ti.func
def form_diff_a(i: ti.i32, s: ti.f32, t: ti.f32) -> ti.f32:
    """Differential area weight of form i at (s, t) (0 for cubes)."""
    weight = 0.0
    kind = form_kinds[i]
    if kind == int(FormKind.SPHERE):
        weight = sphere_diff_a(_sphere_at(i), s, t)
    elif kind != int(FormKind.CUBE):
        weight = patch_diff_a(_patch_at(i), s, t)
    return weight


# =============================================================================
# Scene Queries
# =============================================================================


@ti.func
def _make_miss_record() -> SceneHitRecord:
    """Create a SceneHitRecord indicating no intersection."""
    return SceneHitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        material_id=-1,
        hit_index=-1,
    )


@ti.func
def intersect_scene(
    ray_origin: vec3,
    ray_direction: vec3,
    t_min: ti.f32,
    t_max: ti.f32,
) -> SceneHitRecord:
    """Find the nearest form hit by a ray.

    Scans every form in table order, passing the closest distance found so
    far as the upper bound of the next test.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray.
        t_min: Lower bound on accepted t values.
        t_max: Upper bound on accepted t values.

    Returns:
        A SceneHitRecord for the nearest hit, or a miss record.
    """
    closest_t = t_max
    result = _make_miss_record()

    n = num_forms[None]
    for i in range(n):
        rec = intersect_form(i, ray_origin, ray_direction, t_min, closest_t)
        if rec.hit == 1:
            closest_t = rec.t
            result = SceneHitRecord(
                hit=1,
                t=rec.t,
                point=rec.point,
                normal=rec.normal,
                material_id=form_material_ids[i],
                hit_index=i,
            )

    return result


@ti.kernel
def _cast_probe_ray():
    rec = intersect_scene(
        _probe_origin[None], _probe_direction[None], _probe_range[None][0], _probe_range[None][1]
    )
    _probe_hit[None] = rec.hit
    _probe_t[None] = rec.t
    _probe_point[None] = rec.point
    _probe_normal[None] = rec.normal
    _probe_material_id[None] = rec.material_id
    _probe_index[None] = rec.hit_index


def cast_ray(
    origin: Vector3,
    direction: Vector3,
    t_min: float = 1e-3,
    t_max: float = 1e10,
) -> dict[str, Any]:
    """Trace a single ray against the scene from Python.

    Intended for debugging and tests; rendering and view factors call
    intersect_scene from inside their kernels.

    Returns:
        A dict with keys hit, t, point, normal, material_id and hit_index.
    """
    _probe_origin[None] = [float(c) for c in origin]
    _probe_direction[None] = [float(c) for c in direction]
    _probe_range[None] = [t_min, t_max]
    _cast_probe_ray()
    point = _probe_point[None]
    normal = _probe_normal[None]
    return {
        "hit": bool(_probe_hit[None]),
        "t": float(_probe_t[None]),
        "point": (float(point[0]), float(point[1]), float(point[2])),
        "normal": (float(normal[0]), float(normal[1]), float(normal[2])),
        "material_id": int(_probe_material_id[None]),
        "hit_index": int(_probe_index[None]),
    }
