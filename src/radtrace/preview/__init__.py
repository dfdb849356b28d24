"""Preview module for output and visualization.

Components:
    display: Matplotlib-based previews of renders and view factors
    export: PNG and PPM image export utilities

Example:
    >>> from src.radtrace.preview import show_preview, save_png
    >>> from src.radtrace.core.renderer import Renderer
    >>>
    >>> renderer = Renderer(300, 200)
    >>> renderer.render(16)
    >>> show_preview(renderer)
    >>> save_png(renderer, "ray_tracing.png")
"""

from src.radtrace.preview.display import (
    apply_gamma,
    show_comparison,
    show_preview,
    show_view_factors,
)
from src.radtrace.preview.export import (
    compute_rmse,
    image_to_uint8,
    save_png,
    save_png_from_array,
    save_ppm,
    save_ppm_from_array,
)

__all__ = [
    # Display functions
    "show_preview",
    "show_comparison",
    "show_view_factors",
    "apply_gamma",
    # Export functions
    "save_png",
    "save_png_from_array",
    "save_ppm",
    "save_ppm_from_array",
    "image_to_uint8",
    "compute_rmse",
]
