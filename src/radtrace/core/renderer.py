"""Batched renderer for iterative sample accumulation.

This module provides a convenient wrapper around the core integrator that supports:
- Batch rendering (several samples per pixel per kernel launch)
- Progress callbacks and a generator variant for UI updates
- Easy reset and re-render functionality
- Saving to PNG or plain PPM

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.radtrace.core.renderer import Renderer
    >>> from src.radtrace.camera.pinhole import PinholeCamera, setup_camera
    >>>
    >>> setup_camera(PinholeCamera((13, 2, 3), (0, 0, 0), (0, 1, 0), 20.0, 1.5))
    >>> renderer = Renderer(300, 200, max_depth=30)
    >>> renderer.render(16, batch_size=4)
    >>> renderer.save_image("ray_tracing.png")
"""

import logging
from collections.abc import Callable, Generator
from pathlib import Path

import numpy as np
import numpy.typing as npt

from src.radtrace.core.integrator import (
    MAX_DEPTH,
    clear_render_target,
    get_image_dimensions,
    get_image_uint8,
    get_linear_image_numpy,
    get_total_samples,
    is_render_target_ready,
    render_image,
    setup_render_target,
)
from src.radtrace.preview.export import save_png_from_array, save_ppm_from_array

logger = logging.getLogger(__name__)

# Callback receives (current_samples, total_target_samples)
ProgressCallback = Callable[[int, int], None]


class Renderer:
    """A renderer that accumulates jittered samples per pixel.

    The renderer keeps its own width, height, depth budget and jitter
    amplitude and delegates to the global integrator buffers.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        max_depth: Depth budget of every path.
        dev: Sub-pixel jitter amplitude.
    """

    def __init__(
        self, width: int, height: int, max_depth: int = MAX_DEPTH, dev: float = 1.0
    ) -> None:
        """Initialize the renderer and its render target.

        Args:
            width: Image width in pixels (max 2048).
            height: Image height in pixels (max 2048).
            max_depth: Depth budget of every path.
            dev: Sub-pixel jitter amplitude in [0, 1].

        Raises:
            ValueError: If dimensions are out of range, max_depth is
                negative or dev is outside [0, 1].
        """
        if max_depth < 0:
            raise ValueError(f"max_depth must be non-negative, got {max_depth}")
        if not 0.0 <= dev <= 1.0:
            raise ValueError(f"dev must be in [0, 1], got {dev}")
        self._width = width
        self._height = height
        self.max_depth = max_depth
        self.dev = dev
        setup_render_target(width, height)

    @property
    def width(self) -> int:
        """Get the image width."""
        return self._width

    @property
    def height(self) -> int:
        """Get the image height."""
        return self._height

    @property
    def sample_count(self) -> int:
        """Get the current number of accumulated samples per pixel."""
        return get_total_samples()

    def reset(self) -> None:
        """Clear the accumulated samples without changing the dimensions."""
        clear_render_target()

    def resize(self, width: int, height: int) -> None:
        """Resize the render target and reset the accumulator.

        Raises:
            ValueError: If dimensions are out of range.
        """
        self._width = width
        self._height = height
        setup_render_target(width, height)

    def _ensure_target(self) -> None:
        # Another renderer may have claimed the shared buffers
        if not is_render_target_ready() or get_image_dimensions() != (self._width, self._height):
            setup_render_target(self._width, self._height)

    def render(
        self,
        num_samples: int = 16,
        batch_size: int = 1,
        callback: ProgressCallback | None = None,
    ) -> None:
        """Accumulate num_samples more samples per pixel.

        Args:
            num_samples: Total number of samples to add.
            batch_size: Number of samples per kernel launch.
            callback: Optional callback called after each batch with
                (current_total_samples, target_total_samples).
        """
        for current, target in self.render_progressive(num_samples, batch_size):
            if callback is not None:
                callback(current, target)

    def render_progressive(
        self,
        num_samples: int = 16,
        batch_size: int = 1,
    ) -> Generator[tuple[int, int], None, None]:
        """Accumulate samples, yielding progress after each batch.

        Args:
            num_samples: Total number of samples to add.
            batch_size: Number of samples per kernel launch.

        Yields:
            Tuple of (current_total_samples, target_total_samples).

        Raises:
            ValueError: If batch_size is not positive.
        """
        if num_samples <= 0:
            return
        if batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {batch_size}")

        self._ensure_target()
        target_samples = self.sample_count + num_samples
        logger.info(
            "rendering %dx%d, %d samples per pixel, depth %d",
            self._width,
            self._height,
            num_samples,
            self.max_depth,
        )

        remaining = num_samples
        while remaining > 0:
            batch = min(batch_size, remaining)
            render_image(batch, self.max_depth, self.dev)
            remaining -= batch
            logger.debug("%d/%d samples", self.sample_count, target_samples)
            yield (self.sample_count, target_samples)

    def get_image_numpy(self, gamma: float = 1.0) -> npt.NDArray[np.float32]:
        """Get the averaged image as a NumPy array.

        Args:
            gamma: Gamma exponent denominator. 1.0 is linear, 2.0 applies
                the square root.

        Returns:
            NumPy array of shape (height, width, 3) with dtype float32, top
            row first.
        """
        image = get_linear_image_numpy()
        if gamma != 1.0:
            image = np.power(np.clip(image, 0.0, 1.0), 1.0 / gamma)
        return image

    def get_image_uint8(self) -> npt.NDArray[np.uint8]:
        """Get the gamma-2 corrected image as an 8-bit NumPy array."""
        return get_image_uint8()

    def save_image(self, filepath: str | Path) -> Path:
        """Save the rendered image.

        The format follows the suffix: ".ppm" writes a plain-text P3 file,
        anything else is written through Pillow.

        Returns:
            The path written.
        """
        path = Path(filepath)
        image = self.get_image_uint8()
        if path.suffix.lower() == ".ppm":
            save_ppm_from_array(image, path)
        else:
            save_png_from_array(image, path)
        logger.info("saved %s", path)
        return path

    def __repr__(self) -> str:
        """Return a string representation of the renderer state."""
        return (
            f"Renderer(width={self.width}, height={self.height}, "
            f"max_depth={self.max_depth}, samples={self.sample_count})"
        )
