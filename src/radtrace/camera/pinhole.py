"""Pinhole camera model for perspective projection ray generation.

This module implements the camera that generates primary rays for rendering.
The camera supports:
- Look-at positioning (lookfrom, lookat, vup)
- Vertical field of view specification
- Arbitrary aspect ratios
- Jittered sampling with a configurable deviation for anti-aliasing
- Optional thin lens depth of field (see thin_lens.ThinLensCamera)

The camera builds an orthonormal basis (u, v, w) from the view parameters:
- w: points from lookat toward lookfrom (opposite view direction)
- u: points right in the image plane
- v: points up in the image plane

Ray directions are left unnormalized: a ray through (s, t) points from the
eye at the image-plane point lower_left + s * horizontal + t * vertical.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.radtrace.camera.pinhole import PinholeCamera, setup_camera, get_ray
    >>>
    >>> camera = PinholeCamera(
    ...     lookfrom=(13.0, 2.0, 3.0),
    ...     lookat=(0.0, 0.0, 0.0),
    ...     vup=(0.0, 1.0, 0.0),
    ...     vfov=20.0,
    ...     aspect_ratio=1.5,
    ... )
    >>> setup_camera(camera)
    >>>
    >>> @ti.kernel
    ... def render():
    ...     ray = get_ray(0.5, 0.5)  # Ray through image center
"""

import logging
import math
from dataclasses import dataclass
from enum import IntEnum

import numpy as np
import taichi as ti

from src.radtrace.camera.thin_lens import ThinLensCamera, lens_offset
from src.radtrace.core.ray import Ray, make_ray, vec3

logger = logging.getLogger(__name__)


class CameraKind(IntEnum):
    """Ray generation strategy of the active camera."""

    SIMPLE = 0
    FOCUS = 1


# =============================================================================
# Camera Data Structures
# =============================================================================


@dataclass
class PinholeCamera:
    """Configuration for a pinhole (perspective) camera.

    A pinhole camera produces perfect perspective projection with no
    depth of field effects.

    Attributes:
        lookfrom: Camera position in world space (x, y, z).
        lookat: Point the camera is looking at in world space (x, y, z).
        vup: Up direction vector for camera orientation (typically (0, 1, 0)).
        vfov: Vertical field of view in degrees.
        aspect_ratio: Width divided by height of the output image.
    """

    lookfrom: tuple[float, float, float]
    lookat: tuple[float, float, float]
    vup: tuple[float, float, float]
    vfov: float
    aspect_ratio: float


# =============================================================================
# Taichi Fields for Camera State
# =============================================================================

_camera_origin = ti.Vector.field(3, dtype=ti.f32, shape=())

# Orthonormal basis vectors
_camera_u = ti.Vector.field(3, dtype=ti.f32, shape=())  # Right
_camera_v = ti.Vector.field(3, dtype=ti.f32, shape=())  # Up
_camera_w = ti.Vector.field(3, dtype=ti.f32, shape=())  # Backward (opposite view)

# Viewport vectors for ray computation
_viewport_horizontal = ti.Vector.field(3, dtype=ti.f32, shape=())  # Full width
_viewport_vertical = ti.Vector.field(3, dtype=ti.f32, shape=())  # Full height
_lower_left_corner = ti.Vector.field(3, dtype=ti.f32, shape=())  # Lower-left of viewport

_camera_kind = ti.field(dtype=ti.i32, shape=())
_lens_radius = ti.field(dtype=ti.f32, shape=())
_camera_ready = ti.field(dtype=ti.i32, shape=())


# =============================================================================
# Camera Setup (Python-side, called once per camera configuration)
# =============================================================================


def setup_camera(camera: PinholeCamera | ThinLensCamera) -> None:
    """Initialize camera state from configuration.

    Computes the camera's orthonormal basis (u, v, w) and viewport geometry.
    For a PinholeCamera the viewport sits at unit distance in front of the
    eye. For a ThinLensCamera it sits on the focal plane, scaled by
    focus_dist, and the lens radius is aperture / 2.

    Args:
        camera: Camera configuration with position, orientation, and FOV.

    Raises:
        ValueError: If lookfrom equals lookat or vup is parallel to the
            view direction.
    """
    theta = math.radians(camera.vfov)
    half_height = math.tan(theta / 2.0)
    half_width = camera.aspect_ratio * half_height

    lookfrom = np.array(camera.lookfrom, dtype=np.float64)
    lookat = np.array(camera.lookat, dtype=np.float64)
    vup = np.array(camera.vup, dtype=np.float64)

    w = lookfrom - lookat
    w_norm = np.linalg.norm(w)
    if w_norm == 0.0:
        raise ValueError("Camera lookfrom and lookat must differ")
    w = w / w_norm

    u = np.cross(vup, w)
    u_norm = np.linalg.norm(u)
    if u_norm == 0.0:
        raise ValueError("Camera vup must not be parallel to the view direction")
    u = u / u_norm

    v = np.cross(w, u)

    if isinstance(camera, ThinLensCamera):
        kind = CameraKind.FOCUS
        focus_dist = camera.focus_dist
        lens_radius = camera.lens_radius
    else:
        kind = CameraKind.SIMPLE
        focus_dist = 1.0
        lens_radius = 0.0

    horizontal = 2.0 * half_width * focus_dist * u
    vertical = 2.0 * half_height * focus_dist * v
    lower_left = lookfrom - (half_width * u + half_height * v + w) * focus_dist

    _camera_origin[None] = lookfrom.tolist()
    _camera_u[None] = u.tolist()
    _camera_v[None] = v.tolist()
    _camera_w[None] = w.tolist()
    _viewport_horizontal[None] = horizontal.tolist()
    _viewport_vertical[None] = vertical.tolist()
    _lower_left_corner[None] = lower_left.tolist()
    _camera_kind[None] = int(kind)
    _lens_radius[None] = lens_radius
    _camera_ready[None] = 1

    logger.debug("camera %s at %s looking at %s", kind.name.lower(), camera.lookfrom, camera.lookat)


def is_camera_ready() -> bool:
    """Whether setup_camera has been called."""
    return bool(_camera_ready[None])


def reset_camera() -> None:
    """Forget the current camera configuration."""
    _camera_ready[None] = 0


# =============================================================================
# Ray Generation
# =============================================================================


@ti.func
def get_ray(s: ti.f32, t: ti.f32) -> Ray:
    """Generate a ray through normalized image coordinates (s, t).

    - s = 0: left edge of image, s = 1: right edge
    - t = 0: bottom edge of image, t = 1: top edge

    A focus camera additionally displaces the origin across the lens and
    re-aims the ray at the same image-plane point.

    Args:
        s: Horizontal coordinate in [0, 1].
        t: Vertical coordinate in [0, 1].

    Returns:
        A Ray with an unnormalized direction.
    """
    offset = vec3(0.0, 0.0, 0.0)
    if _camera_kind[None] == int(CameraKind.FOCUS):
        offset = lens_offset(_lens_radius[None], _camera_u[None], _camera_v[None])

    origin = _camera_origin[None] + offset
    target = _lower_left_corner[None] + s * _viewport_horizontal[None] + t * _viewport_vertical[None]
    return make_ray(origin, target - origin)


@ti.func
def get_ray_jittered(
    pixel_i: ti.i32, pixel_j: ti.i32, width: ti.i32, height: ti.i32, dev: ti.f32
) -> Ray:
    """Generate a jittered ray for anti-aliasing.

    s = (i + dev * xi) / width and t = (j + dev * eta) / height with xi and
    eta uniform in [0, 1). dev = 0 always samples the pixel corner.

    Args:
        pixel_i: Pixel x-coordinate (0 = left).
        pixel_j: Pixel y-coordinate (0 = bottom).
        width: Image width in pixels.
        height: Image height in pixels.
        dev: Jitter amplitude in pixels.
    """
    s = (ti.cast(pixel_i, ti.f32) + dev * ti.random(ti.f32)) / ti.cast(width, ti.f32)
    t = (ti.cast(pixel_j, ti.f32) + dev * ti.random(ti.f32)) / ti.cast(height, ti.f32)
    return get_ray(s, t)


@ti.func
def get_camera_origin() -> vec3:
    """Get the camera origin (position) in world space."""
    return _camera_origin[None]


@ti.func
def get_camera_basis():
    """Get the camera's orthonormal basis vectors.

    Returns:
        A tuple (u, v, w) where:
        - u: Right direction in world space
        - v: Up direction in world space
        - w: Backward direction (opposite view direction)
    """
    return _camera_u[None], _camera_v[None], _camera_w[None]


# =============================================================================
# Utility Functions
# =============================================================================


def _as_tuple(vec) -> tuple[float, float, float]:
    return (float(vec[0]), float(vec[1]), float(vec[2]))


def get_camera_info() -> dict[str, object]:
    """Get current camera state for debugging.

    Returns:
        Dictionary with origin, u, v, w, horizontal, vertical, lower_left,
        lens_radius and kind.
    """
    return {
        "origin": _as_tuple(_camera_origin[None]),
        "u": _as_tuple(_camera_u[None]),
        "v": _as_tuple(_camera_v[None]),
        "w": _as_tuple(_camera_w[None]),
        "horizontal": _as_tuple(_viewport_horizontal[None]),
        "vertical": _as_tuple(_viewport_vertical[None]),
        "lower_left": _as_tuple(_lower_left_corner[None]),
        "lens_radius": float(_lens_radius[None]),
        "kind": CameraKind(int(_camera_kind[None])),
    }
