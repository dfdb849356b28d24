"""Thin lens camera model with depth of field.

A thin lens camera shares the look-at basis of the pinhole camera but
places the virtual image plane on the focal plane at focus_dist from the
eye. Each ray origin is displaced by a random point on a disk of radius
aperture / 2, spanned by the camera's u and v axes, while the ray still
aims at the same focal-plane point. Objects away from the focal plane
blur when samples are accumulated.

The camera state itself lives in the shared fields of the pinhole module;
see setup_camera there.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.radtrace.camera.thin_lens import ThinLensCamera
    >>> from src.radtrace.camera.pinhole import setup_camera
    >>> camera = ThinLensCamera(
    ...     lookfrom=(13.0, 2.0, 3.0),
    ...     lookat=(0.0, 0.0, 0.0),
    ...     vup=(0.0, 1.0, 0.0),
    ...     vfov=20.0,
    ...     aspect_ratio=1.5,
    ...     aperture=0.1,
    ...     focus_dist=10.0,
    ... )
    >>> setup_camera(camera)
"""

from dataclasses import dataclass

import taichi as ti

from src.radtrace.core.ray import random_in_unit_disk, vec3


@dataclass
class ThinLensCamera:
    """Configuration for a thin lens (depth of field) camera.

    Attributes:
        lookfrom: Camera position in world space (x, y, z).
        lookat: Point the camera is looking at in world space (x, y, z).
        vup: Up direction vector for camera orientation.
        vfov: Vertical field of view in degrees.
        aspect_ratio: Width divided by height of the output image.
        aperture: Lens diameter. Zero behaves like a pinhole.
        focus_dist: Distance from the eye to the plane in perfect focus.
    """

    lookfrom: tuple[float, float, float]
    lookat: tuple[float, float, float]
    vup: tuple[float, float, float]
    vfov: float
    aspect_ratio: float
    aperture: float = 0.1
    focus_dist: float = 10.0

    @property
    def lens_radius(self) -> float:
        return self.aperture / 2.0


@ti.func
def lens_offset(lens_radius: ti.f32, u: vec3, v: vec3) -> vec3:
    """Random displacement of the ray origin across the lens.

    Args:
        lens_radius: Radius of the lens disk.
        u: Camera right axis.
        v: Camera up axis.

    Returns:
        A point on the lens disk expressed in world space, relative to the
        eye position.
    """
    rd = lens_radius * random_in_unit_disk()
    return u * rd.x + v * rd.y
