"""Run configuration for renders, random worlds and view factors.

The dataclasses carry the defaults of the command-line scripts in
examples/ and validate themselves before any Taichi work starts.

Example:
    >>> from src.radtrace.config import RenderConfig
    >>> config = RenderConfig(width=300, height=200, n_smooth=4)
    >>> config.validate()
    >>> camera = config.make_camera()
"""

from dataclasses import dataclass

from src.radtrace.camera.pinhole import PinholeCamera
from src.radtrace.camera.thin_lens import ThinLensCamera

Vector3 = tuple[float, float, float]
Range = tuple[float, float]


@dataclass
class RenderConfig:
    """Image, sampling and camera parameters of a render.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        n_smooth: Jittered samples per pixel.
        max_depth: Depth budget of every ray path.
        dev: Sub-pixel jitter amplitude in [0, 1].
        look_from: Camera position.
        look_at: Point the camera looks at.
        vup: World up direction.
        vfov: Vertical field of view in degrees.
        focus: Use the thin lens camera instead of the pinhole camera.
        aperture: Lens diameter of the thin lens camera.
        focus_dist: Focal distance of the thin lens camera.
        output: Output image path; ".ppm" selects the PPM writer.
    """

    width: int = 1200
    height: int = 800
    n_smooth: int = 16
    max_depth: int = 30
    dev: float = 1.0
    look_from: Vector3 = (13.0, 2.0, 3.0)
    look_at: Vector3 = (0.0, 0.0, 0.0)
    vup: Vector3 = (0.0, 1.0, 0.0)
    vfov: float = 20.0
    focus: bool = False
    aperture: float = 0.1
    focus_dist: float = 10.0
    output: str = "ray_tracing.png"

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height

    def validate(self) -> None:
        """Raise ValueError if any parameter is out of range."""
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Image size must be positive, got {self.width}x{self.height}")
        if self.n_smooth <= 0:
            raise ValueError(f"n_smooth must be positive, got {self.n_smooth}")
        if self.max_depth < 0:
            raise ValueError(f"max_depth must be non-negative, got {self.max_depth}")
        if not 0.0 <= self.dev <= 1.0:
            raise ValueError(f"dev must be in [0, 1], got {self.dev}")
        if self.vfov <= 0.0:
            raise ValueError(f"vfov must be positive, got {self.vfov}")
        if self.focus:
            if self.focus_dist <= 0.0:
                raise ValueError(f"focus_dist must be positive, got {self.focus_dist}")
            if self.aperture < 0.0:
                raise ValueError(f"aperture must be non-negative, got {self.aperture}")

    def make_camera(self) -> PinholeCamera | ThinLensCamera:
        """Build the camera configuration described by this config."""
        if self.focus:
            return ThinLensCamera(
                lookfrom=self.look_from,
                lookat=self.look_at,
                vup=self.vup,
                vfov=self.vfov,
                aspect_ratio=self.aspect_ratio,
                aperture=self.aperture,
                focus_dist=self.focus_dist,
            )
        return PinholeCamera(
            lookfrom=self.look_from,
            lookat=self.look_at,
            vup=self.vup,
            vfov=self.vfov,
            aspect_ratio=self.aspect_ratio,
        )


@dataclass
class WorldConfig:
    """Parameters of the random world generator.

    Form kind and material are each picked by comparing one uniform draw
    against the thresholds in ascending order. Every threshold above the
    draw overrides the previous pick, so the largest one wins (the last
    listed on ties). A draw above every threshold yields a square and a
    dielectric.

    Attributes:
        n: Number of forms.
        x_lim: Range of center x coordinates.
        y_lim: Range of center y coordinates.
        z_lim: Range of center z coordinates.
        length_lim: Range of form sizes (sphere diameter, cube or square edge).
        sphere_threshold: Threshold for spheres.
        cube_threshold: Threshold for cubes.
        square_threshold: Threshold for squares.
        lambertian_threshold: Threshold for Lambertian materials.
        metal_threshold: Threshold for metal materials.
        dielectric_threshold: Threshold for dielectric materials.
        seed: Seed of the scene's random generator, or None.
    """

    n: int = 500
    x_lim: Range = (-4.0, 4.0)
    y_lim: Range = (0.2, 0.4)
    z_lim: Range = (5.0, 10.0)
    length_lim: Range = (0.4, 0.8)
    sphere_threshold: float = 1.0
    cube_threshold: float = 0.0
    square_threshold: float = 0.0
    lambertian_threshold: float = 1.0
    metal_threshold: float = 0.0
    dielectric_threshold: float = 0.0
    seed: int | None = None

    def validate(self) -> None:
        """Raise ValueError if any parameter is out of range."""
        if self.n < 0:
            raise ValueError(f"n must be non-negative, got {self.n}")
        low, high = self.length_lim
        if low <= 0.0 or high <= 0.0:
            raise ValueError(f"length_lim must be positive, got {self.length_lim}")


@dataclass
class ViewFactorConfig:
    """Parameters of a view-factor run.

    Attributes:
        n_samples: Monte Carlo samples per pair.
        pair: Restrict the run to one (i, j) pair, or None for all pairs.
        seed: Taichi random seed, or None for Taichi's default.
    """

    n_samples: int = 10240
    pair: tuple[int, int] | None = None
    seed: int | None = None

    def validate(self) -> None:
        """Raise ValueError if any parameter is out of range."""
        if self.n_samples <= 0:
            raise ValueError(f"n_samples must be positive, got {self.n_samples}")
        if self.pair is not None and self.pair[0] == self.pair[1]:
            raise ValueError(f"pair must name two different forms, got {self.pair}")

