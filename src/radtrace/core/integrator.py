"""Depth-bounded colour integrator and render target.

This module implements the per-ray colour protocol and the rendering
kernel that averages jittered samples into a preallocated image buffer.

A ray that misses every form returns the sky gradient. A ray that hits a
form asks the form's material to scatter; if the material scatters and
the depth budget is not exhausted, the colour of the scattered ray tinted
by the attenuation is returned, otherwise black. There are no light
sources: the sky is the only source of radiance.

The recursion is unrolled into a loop carrying a throughput product, since
Taichi functions cannot recurse. Bounce k tints the result by the product
of the first k attenuations, which is the same value the recursive form
produces.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.radtrace.core.integrator import render_image, setup_render_target
    >>> from src.radtrace.camera.pinhole import PinholeCamera, setup_camera
    >>> from src.radtrace.scene.manager import SceneManager
    >>>
    >>> scene = SceneManager()
    >>> scene.add_lambertian_sphere((0, -1000, 0), 1000, (0.5, 0.5, 0.5))
    >>> setup_camera(PinholeCamera((13, 2, 3), (0, 0, 0), (0, 1, 0), 20.0, 1.5))
    >>> setup_render_target(300, 200)
    >>> render_image(n_smooth=16, max_depth=30, dev=1.0)
"""

import logging

import numpy as np
import taichi as ti
import taichi.math as tm

from src.radtrace.camera.pinhole import get_ray_jittered, is_camera_ready
from src.radtrace.core.ray import unit_vector
from src.radtrace.materials.dielectric import scatter_dielectric_by_id
from src.radtrace.materials.lambertian import scatter_lambertian_by_id
from src.radtrace.materials.metal import scatter_metal_by_id
from src.radtrace.scene.intersection import intersect_scene
from src.radtrace.scene.manager import (
    MaterialType,
    get_material_type,
    get_material_type_index,
)

logger = logging.getLogger(__name__)

# Type alias for 3D vectors
vec3 = tm.vec3

# =============================================================================
# Rendering Constants
# =============================================================================

# Default depth budget of a ray path
MAX_DEPTH = 30

# t_min and t_max for ray intersection
T_MIN = 1e-3
T_MAX = 1e10

# Sky colour at the zenith; the horizon and below is white
BACKGROUND_TOP = vec3(0.5, 0.7, 1.0)

# =============================================================================
# Render Target (Image Buffer)
# =============================================================================

# Maximum supported image dimensions (preallocated to avoid kernel recompilation)
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048

_image_width = ti.field(dtype=ti.i32, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())

# Running mean of the sampled colour per pixel
_color_buffer = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))
_sample_count = ti.field(dtype=ti.i32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

_render_target_initialized = ti.field(dtype=ti.i32, shape=())

# Single ray probe used by trace_ray
_probe_origin = ti.Vector.field(3, dtype=ti.f32, shape=())
_probe_direction = ti.Vector.field(3, dtype=ti.f32, shape=())
_probe_color = ti.Vector.field(3, dtype=ti.f32, shape=())


def setup_render_target(width: int, height: int) -> None:
    """Initialize the render target buffers.

    Sets the active image dimensions and clears the buffers.

    Args:
        width: Image width in pixels (max MAX_IMAGE_WIDTH).
        height: Image height in pixels (max MAX_IMAGE_HEIGHT).

    Raises:
        ValueError: If dimensions are not positive or exceed the maximum
            supported size.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )

    _image_width[None] = width
    _image_height[None] = height
    _render_target_initialized[None] = 1

    clear_render_target()


def clear_render_target() -> None:
    """Clear the render target buffers to zero."""
    _color_buffer.fill(0.0)
    _sample_count.fill(0)


def reset_render_target() -> None:
    """Clear the buffers and mark the render target as not set up."""
    clear_render_target()
    _render_target_initialized[None] = 0


def get_image_dimensions() -> tuple[int, int]:
    """Get the current render target dimensions.

    Returns:
        Tuple of (width, height).
    """
    return int(_image_width[None]), int(_image_height[None])


def is_render_target_ready() -> bool:
    """Check if setup_render_target has been called since the last reset."""
    return bool(_render_target_initialized[None])


def _check_render_target_initialized() -> None:
    """Check if render target is initialized and raise if not."""
    if _render_target_initialized[None] == 0:
        raise RuntimeError("Render target not set up. Call setup_render_target() first.")


def _check_camera_ready() -> None:
    if not is_camera_ready():
        raise RuntimeError("Camera not set up. Call setup_camera() first.")


# =============================================================================
# Colour Protocol
# =============================================================================


@ti.func
def background(direction: vec3) -> vec3:
    """Sky gradient seen by a ray that escapes the scene.

    Blends white and BACKGROUND_TOP by t = 0.5 * (unit(direction).y + 1).
    """
    t = 0.5 * (unit_vector(direction).y + 1.0)
    return (1.0 - t) * vec3(1.0, 1.0, 1.0) + t * BACKGROUND_TOP


@ti.func
def _scatter_material(material_id: ti.i32, incident_direction: vec3, normal: vec3):
    """Dispatch to the appropriate material scattering function.

    Args:
        material_id: The unified material ID.
        incident_direction: The incoming ray direction.
        normal: The geometric normal reported by the hit.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter). An
        unknown material absorbs the ray.
    """
    mat_type = get_material_type(material_id)
    type_index = get_material_type_index(material_id)

    scattered_direction = vec3(0.0, 0.0, 0.0)
    attenuation = vec3(0.0, 0.0, 0.0)
    did_scatter = 0

    if mat_type == int(MaterialType.LAMBERTIAN):
        scattered_direction, attenuation, did_scatter = scatter_lambertian_by_id(
            type_index, normal
        )
    elif mat_type == int(MaterialType.METAL):
        scattered_direction, attenuation, did_scatter = scatter_metal_by_id(
            type_index, incident_direction, normal
        )
    elif mat_type == int(MaterialType.DIELECTRIC):
        scattered_direction, attenuation, did_scatter = scatter_dielectric_by_id(
            type_index, incident_direction, normal
        )

    return scattered_direction, attenuation, did_scatter


@ti.func
def ray_color(origin: vec3, direction: vec3, max_depth: ti.i32) -> vec3:
    """Colour carried back along a ray.

    Args:
        origin: Ray origin.
        direction: Ray direction (any nonzero length).
        max_depth: Number of scattering events allowed before the path
            turns black.

    Returns:
        The colour of the ray, each channel in [0, 1].
    """
    color = vec3(0.0, 0.0, 0.0)
    throughput = vec3(1.0, 1.0, 1.0)
    ray_origin = origin
    ray_direction = direction

    # Active flag for path continuation
    active = 1

    for depth in range(max_depth + 1):
        if active == 1:
            hit_record = intersect_scene(ray_origin, ray_direction, T_MIN, T_MAX)

            if hit_record.hit == 0:
                color = throughput * background(ray_direction)
                active = 0
            else:
                scattered_direction, attenuation, did_scatter = _scatter_material(
                    hit_record.material_id, ray_direction, hit_record.normal
                )

                if did_scatter == 0 or depth >= max_depth:
                    # Absorbed or out of depth budget: black
                    active = 0
                else:
                    throughput *= attenuation
                    ray_origin = hit_record.point
                    ray_direction = scattered_direction

    return color


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def _render_pass(width: ti.i32, height: ti.i32, n_smooth: ti.i32, max_depth: ti.i32, dev: ti.f32):
    """Average n_smooth jittered samples into every pixel.

    Pixel (i, j) has its origin at the bottom-left of the image.
    """
    for i, j in ti.ndrange(width, height):
        for _ in range(n_smooth):
            ray = get_ray_jittered(i, j, width, height, dev)
            color = ray_color(ray.origin, ray.direction, max_depth)

            for c in ti.static(range(3)):
                if tm.isnan(color[c]) or tm.isinf(color[c]):
                    color[c] = 0.0

            # Running average: avg_n = avg_{n-1} + (x_n - avg_{n-1}) / n
            _sample_count[i, j] += 1
            n = _sample_count[i, j]
            _color_buffer[i, j] += (color - _color_buffer[i, j]) / ti.cast(n, ti.f32)


@ti.kernel
def _trace_probe(max_depth: ti.i32):
    _probe_color[None] = ray_color(_probe_origin[None], _probe_direction[None], max_depth)


# =============================================================================
# Public Rendering API
# =============================================================================


def render_image(n_smooth: int = 16, max_depth: int = MAX_DEPTH, dev: float = 1.0) -> None:
    """Render n_smooth more samples into every pixel.

    Can be called repeatedly; samples keep accumulating until the render
    target is cleared.

    Args:
        n_smooth: Samples per pixel for this pass.
        max_depth: Depth budget of every path.
        dev: Sub-pixel jitter amplitude.

    Raises:
        RuntimeError: If the render target or camera has not been set up.
        ValueError: If n_smooth or max_depth is negative.
    """
    _check_render_target_initialized()
    _check_camera_ready()
    if n_smooth < 0 or max_depth < 0:
        raise ValueError(f"n_smooth and max_depth must be non-negative, got {n_smooth}, {max_depth}")

    width, height = get_image_dimensions()
    logger.debug("render pass %dx%d, %d samples, depth %d", width, height, n_smooth, max_depth)
    _render_pass(width, height, n_smooth, max_depth, dev)


def trace_ray(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    max_depth: int = MAX_DEPTH,
) -> tuple[float, float, float]:
    """Colour of a single ray traced through the current scene.

    Args:
        origin: Ray origin.
        direction: Ray direction.
        max_depth: Depth budget of the path.

    Returns:
        Tuple of (R, G, B).
    """
    _probe_origin[None] = [float(c) for c in origin]
    _probe_direction[None] = [float(c) for c in direction]
    _trace_probe(max_depth)
    color = _probe_color[None]
    return (float(color[0]), float(color[1]), float(color[2]))


def get_total_samples() -> int:
    """Get the number of samples accumulated in pixel (0, 0).

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()
    return int(_sample_count[0, 0])


def get_linear_image_numpy() -> np.ndarray:
    """Get the averaged, not gamma-corrected image as a NumPy array.

    Returns:
        Array of shape (height, width, 3), dtype float32, with the top image
        row first.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()
    full_image = _color_buffer.to_numpy()
    image = full_image[:width, :height, :]

    # (width, height, 3) -> (height, width, 3), then top row first
    image = np.transpose(image, (1, 0, 2))
    image = np.flipud(image)

    return np.ascontiguousarray(image, dtype=np.float32)


def get_image_uint8() -> np.ndarray:
    """Get the gamma-2 corrected image quantized to 8 bits.

    Each channel is floor(255.99 * sqrt(c)).

    Returns:
        Array of shape (height, width, 3), dtype uint8.
    """
    image = np.clip(get_linear_image_numpy(), 0.0, 1.0)
    return np.floor(255.99 * np.sqrt(image)).astype(np.uint8)

