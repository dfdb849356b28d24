"""Image export utilities for rendered images.

Supported formats:
    - PNG (8-bit via Pillow)
    - PPM (plain-text P3, one "r g b" triple per line)

Both writers take images with the top row first. Floating point images
are treated as linear colour and quantized with gamma 2 and
floor(255.99 * c).

Example:
    >>> from src.radtrace.preview.export import save_png, save_ppm
    >>> from src.radtrace.core.renderer import Renderer
    >>>
    >>> renderer = Renderer(300, 200)
    >>> renderer.render(16)
    >>> save_png(renderer, "ray_tracing.png")
    >>> save_ppm(renderer, "ray_tracing.ppm")
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

from src.radtrace.preview.display import apply_gamma

if TYPE_CHECKING:
    from src.radtrace.core.renderer import Renderer


def image_to_uint8(
    image: npt.NDArray[np.float32],
    *,
    gamma: float = 2.0,
) -> npt.NDArray[np.uint8]:
    """Convert a linear float image to uint8 for display/export.

    Args:
        image: Linear image array of shape (H, W, 3).
        gamma: Gamma correction value (default 2.0, the square root).

    Returns:
        8-bit image array of shape (H, W, 3) with dtype uint8.
    """
    corrected = apply_gamma(image, gamma)
    return np.floor(255.99 * corrected).astype(np.uint8)


def _as_uint8(image: npt.NDArray) -> npt.NDArray[np.uint8]:
    if image.dtype == np.uint8:
        return image
    return image_to_uint8(image)


def save_png_from_array(image: npt.NDArray, filepath: str | Path) -> None:
    """Save an image array as a PNG file.

    Args:
        image: Array of shape (H, W, 3), either uint8 or linear float.
        filepath: Output file path.
    """
    pil_image = PILImage.fromarray(_as_uint8(image))
    pil_image.save(filepath)


def save_png(renderer: Renderer, filepath: str | Path) -> None:
    """Save the current render of renderer as a PNG file."""
    save_png_from_array(renderer.get_image_uint8(), filepath)


def save_ppm_from_array(image: npt.NDArray, filepath: str | Path) -> None:
    """Save an image array as a plain-text P3 PPM file.

    The header is "P3", then "width height", then "255"; pixels follow
    row by row from the top of the image, one "r g b" triple per line.

    Args:
        image: Array of shape (H, W, 3), either uint8 or linear float.
        filepath: Output file path.
    """
    pixels = _as_uint8(image)
    height, width = pixels.shape[:2]
    with open(filepath, "w") as f:
        f.write(f"P3\n{width} {height}\n255\n")
        for row in pixels:
            for r, g, b in row:
                f.write(f"{r} {g} {b}\n")


def save_ppm(renderer: Renderer, filepath: str | Path) -> None:
    """Save the current render of renderer as a PPM file."""
    save_ppm_from_array(renderer.get_image_uint8(), filepath)


def compute_rmse(
    image_a: npt.NDArray[np.floating[npt.NBitBase]],
    image_b: npt.NDArray[np.floating[npt.NBitBase]],
) -> float:
    """Compute root mean squared error between two images.

    Args:
        image_a: First image array.
        image_b: Second image array (must have same shape as image_a).

    Returns:
        RMSE value (lower is more similar).

    Raises:
        ValueError: If image shapes don't match.
    """
    if image_a.shape != image_b.shape:
        raise ValueError(f"Image shapes must match: {image_a.shape} vs {image_b.shape}")

    diff = image_a.astype(np.float64) - image_b.astype(np.float64)
    return float(np.sqrt(np.mean(diff**2)))
