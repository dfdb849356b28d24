"""Matplotlib-based preview display for renders and view factors.

Features:
    - Static preview of the current render with its sample count
    - Side-by-side comparison of two renders
    - Annotated heatmap of a view-factor matrix

Example:
    >>> from src.radtrace.preview.display import show_preview
    >>> from src.radtrace.core.renderer import Renderer
    >>>
    >>> renderer = Renderer(300, 200)
    >>> renderer.render(16)
    >>> show_preview(renderer)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np
import numpy.typing as npt

if TYPE_CHECKING:
    from src.radtrace.core.renderer import Renderer
    from src.radtrace.radiation.view_factors import ViewFactorMatrix


def apply_gamma(
    image: npt.NDArray[np.float32],
    gamma: float = 2.0,
) -> npt.NDArray[np.float32]:
    """Apply gamma correction for display.

    Gamma 2 and 3 use the exact square and cube roots.

    Args:
        image: Linear image array of shape (H, W, 3).
        gamma: Gamma value (default 2.0).

    Returns:
        Gamma corrected image clamped to [0, 1].
    """
    # Clamp before gamma to avoid NaN from negative values
    image = np.clip(image, 0.0, 1.0)

    if gamma == 1.0:
        result = image
    elif gamma == 2.0:
        result = np.sqrt(image)
    elif gamma == 3.0:
        result = np.cbrt(image)
    else:
        result = np.power(image, 1.0 / gamma)

    return result.astype(np.float32)


def show_preview(
    renderer: Renderer,
    *,
    gamma: float = 2.0,
    title: str | None = None,
    figsize: tuple[float, float] = (9, 6),
    block: bool = True,
) -> None:
    """Display the current render as a Matplotlib figure.

    Args:
        renderer: The Renderer instance to display.
        gamma: Gamma correction value.
        title: Custom title (default shows sample count).
        figsize: Figure size in inches (width, height).
        block: Whether to block execution until figure is closed.
    """
    import matplotlib.pyplot as plt

    display_image = apply_gamma(renderer.get_image_numpy(gamma=1.0), gamma)

    fig, ax = plt.subplots(1, 1, figsize=figsize)
    ax.imshow(display_image)
    ax.axis("off")
    ax.set_title(title if title is not None else f"Render Preview - {renderer.sample_count} SPP")

    plt.tight_layout()
    plt.show(block=block)


def show_comparison(
    image_a: npt.NDArray[np.float32],
    image_b: npt.NDArray[np.float32],
    *,
    labels: tuple[str, str] = ("A", "B"),
    gamma: float = 2.0,
    diff_scale: float = 10.0,
    figsize: tuple[float, float] = (16, 6),
    block: bool = True,
) -> float:
    """Display side-by-side comparison of two images with difference view.

    Args:
        image_a: First image array (H, W, 3) in linear space.
        image_b: Second image array (H, W, 3) in linear space.
        labels: Labels for the two images.
        gamma: Gamma correction value.
        diff_scale: Scale factor for difference amplification.
        figsize: Figure size in inches.
        block: Whether to block execution until figure is closed.

    Returns:
        RMSE between the two images in display space.
    """
    import matplotlib.pyplot as plt

    from src.radtrace.preview.export import compute_rmse

    display_a = apply_gamma(image_a, gamma)
    display_b = apply_gamma(image_b, gamma)
    rmse = compute_rmse(display_a, display_b)

    diff = np.abs(display_a.astype(np.float64) - display_b.astype(np.float64))
    diff_amplified = np.clip(diff * diff_scale, 0.0, 1.0)

    fig, axes = plt.subplots(1, 3, figsize=figsize)

    axes[0].imshow(display_a)
    axes[0].set_title(labels[0])
    axes[0].axis("off")

    axes[1].imshow(display_b)
    axes[1].set_title(labels[1])
    axes[1].axis("off")

    axes[2].imshow(diff_amplified)
    axes[2].set_title(f"Difference ({diff_scale}x) - RMSE: {rmse:.6f}")
    axes[2].axis("off")

    plt.tight_layout()
    plt.show(block=block)

    return rmse


def show_view_factors(
    matrix: ViewFactorMatrix,
    *,
    title: str = "View factors",
    figsize: tuple[float, float] = (7, 6),
    block: bool = True,
):
    """Display a view-factor matrix as an annotated heatmap.

    Unsupported pairs (NaN) are left blank.

    Args:
        matrix: The view factors to show.
        title: Figure title.
        figsize: Figure size in inches.
        block: Whether to block execution until figure is closed.

    Returns:
        The Matplotlib figure.
    """
    import matplotlib.pyplot as plt

    values = np.ma.masked_invalid(matrix.values)
    n = matrix.values.shape[0]

    fig, ax = plt.subplots(1, 1, figsize=figsize)
    image = ax.imshow(values, cmap="viridis", vmin=0.0)
    fig.colorbar(image, ax=ax, label="F(i, j)")

    for i, j, value in matrix.pairs():
        if not np.isnan(value):
            ax.text(j, i, f"{value:.3f}", ha="center", va="center", color="w", fontsize=8)

    ax.set_xticks(range(n))
    ax.set_yticks(range(n))
    ax.set_xlabel("receiver j")
    ax.set_ylabel("emitter i")
    ax.set_title(title)

    plt.tight_layout()
    plt.show(block=block)
    return fig
