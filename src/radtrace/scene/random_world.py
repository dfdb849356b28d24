"""Random scene generators.

Two layouts are provided:

- random_world: n forms with centers drawn uniformly inside a box, sizes
  drawn between two limits and kind and material picked by thresholds
  (see WorldConfig).
- classic_world: the "book cover" layout, a jittered grid of small forms
  around a glass sphere, a diffuse sphere and a metal cube, all resting on
  a huge diffuse floor sphere.

All random draws come from the scene's numpy Generator, so seeding the
SceneManager makes both layouts reproducible.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.radtrace.scene.manager import SceneManager
    >>> from src.radtrace.scene.random_world import classic_world
    >>> scene = SceneManager(seed=3)
    >>> classic_world(scene, n=120)
    >>> scene.get_form_count()
    120
"""

import logging
from dataclasses import dataclass
from typing import Any

import numpy as np

from src.radtrace.config import WorldConfig
from src.radtrace.scene.intersection import FormKind
from src.radtrace.scene.manager import MaterialType, SceneManager

logger = logging.getLogger(__name__)

GLASS_IOR = 1.5

# Grid of the classic layout: a, b in [-GRID_EXTENT, GRID_EXTENT)
GRID_EXTENT = 11


@dataclass
class _FormSpec:
    """A form and its material, before registration with a scene."""

    kind: FormKind
    center: tuple[float, float, float]
    length: float
    material: MaterialType
    params: dict[str, Any]


def _pick(draw: float, thresholds: list[tuple[float, Any]], default: Any) -> Any:
    """Return the choice of the largest threshold above draw."""
    picked = default
    for threshold, choice in sorted(thresholds, key=lambda item: item[0]):
        if draw < threshold:
            picked = choice
    return picked


def _random_material(rng: np.random.Generator, material: MaterialType) -> dict[str, Any]:
    if material == MaterialType.LAMBERTIAN:
        albedo = rng.random(3) * rng.random(3)
        return {"albedo": tuple(float(c) for c in albedo)}
    if material == MaterialType.METAL:
        return {"albedo": (1.0, 1.0, 1.0), "fuzz": 0.01 * float(rng.random())}
    return {"ior": GLASS_IOR}


def _add_material(scene: SceneManager, material: MaterialType, params: dict[str, Any]) -> int:
    if material == MaterialType.LAMBERTIAN:
        return scene.add_lambertian_material(params["albedo"])
    if material == MaterialType.METAL:
        return scene.add_metal_material(params["albedo"], params["fuzz"])
    return scene.add_dielectric_material(params["ior"])


def _add_form(scene: SceneManager, spec: _FormSpec) -> int:
    material_id = _add_material(scene, spec.material, spec.params)
    if spec.kind == FormKind.SPHERE:
        return scene.add_sphere(spec.center, spec.length, material_id)
    if spec.kind == FormKind.CUBE:
        return scene.add_cube(spec.center, spec.length, material_id)
    return scene.add_horizontal_square(spec.center, spec.length, material_id)


def random_world(scene: SceneManager, config: WorldConfig | None = None) -> SceneManager:
    """Populate scene with randomly placed forms.

    Each form draws, in order: a material choice, a kind choice, a center
    center = r * min + (1 - r) * max with r uniform per axis, and a size
    length = lo * r + hi * (1 - r). Spheres use half the size as radius.
    Lambertian albedo is the product of two uniform colors, metal is white
    with fuzz 0.01 * r, dielectric has index 1.5.

    Args:
        scene: Scene to add forms to. Existing forms are kept.
        config: Generator parameters. Defaults to WorldConfig().

    Returns:
        The scene, for chaining.

    Raises:
        ValueError: If the configuration is invalid.
    """
    config = config or WorldConfig()
    config.validate()
    if config.seed is not None:
        scene.rng = np.random.default_rng(config.seed)
    rng = scene.rng

    materials = [
        (config.lambertian_threshold, MaterialType.LAMBERTIAN),
        (config.metal_threshold, MaterialType.METAL),
        (config.dielectric_threshold, MaterialType.DIELECTRIC),
    ]
    kinds = [
        (config.sphere_threshold, FormKind.SPHERE),
        (config.cube_threshold, FormKind.CUBE),
        (config.square_threshold, FormKind.SQUARE),
    ]
    center_min = np.array([config.x_lim[0], config.y_lim[0], config.z_lim[0]])
    center_max = np.array([config.x_lim[1], config.y_lim[1], config.z_lim[1]])
    length_lo, length_hi = config.length_lim

    for _ in range(config.n):
        material = _pick(float(rng.random()), materials, MaterialType.DIELECTRIC)
        kind = _pick(float(rng.random()), kinds, FormKind.SQUARE)

        r = rng.random(3)
        center = r * center_min + (1.0 - r) * center_max

        r_length = float(rng.random())
        length = length_lo * r_length + length_hi * (1.0 - r_length)
        if kind == FormKind.SPHERE:
            length /= 2.0

        spec = _FormSpec(
            kind=kind,
            center=(float(center[0]), float(center[1]), float(center[2])),
            length=length,
            material=material,
            params=_random_material(rng, material),
        )
        _add_form(scene, spec)

    logger.info("random world: %d forms", config.n)
    return scene


def classic_world(scene: SceneManager, n: int = 500) -> SceneManager:
    """Populate scene with the classic grid layout.

    A grid cell (a, b) gets a form centered at (a + 0.9 r, 0.2, b + 0.9 r)
    that is 80% Lambertian, 15% metal and 5% glass, and 10% squares of
    edge 0.2, 70% spheres of radius 0.2 and 20% cubes of edge 0.4. Four
    large forms follow: a glass sphere, a diffuse sphere, a mirror cube and
    the floor. Forms are dropped from the front until n remain.

    Args:
        scene: Scene to add forms to. Existing forms are kept.
        n: Maximum number of forms to add.

    Returns:
        The scene, for chaining.
    """
    if n < 0:
        raise ValueError(f"n must be non-negative, got {n}")
    rng = scene.rng
    specs: list[_FormSpec] = []

    for a in range(-GRID_EXTENT, GRID_EXTENT):
        for b in range(-GRID_EXTENT, GRID_EXTENT):
            if len(specs) > n:
                break
            choose_material = float(rng.random())
            choose_kind = float(rng.random())
            center = (a + 0.9 * float(rng.random()), 0.2, b + 0.9 * float(rng.random()))

            if choose_material < 0.8:
                material = MaterialType.LAMBERTIAN
            elif choose_material < 0.95:
                material = MaterialType.METAL
            else:
                material = MaterialType.DIELECTRIC
            params = _random_material(rng, material)

            if choose_kind < 0.1:
                specs.append(_FormSpec(FormKind.SQUARE, center, 0.2, material, params))
            elif choose_kind < 0.8:
                specs.append(_FormSpec(FormKind.SPHERE, center, 0.2, material, params))
            else:
                specs.append(_FormSpec(FormKind.CUBE, center, 0.4, material, params))

    specs.append(
        _FormSpec(FormKind.SPHERE, (0.0, 1.0, 0.0), 1.0, MaterialType.DIELECTRIC, {"ior": GLASS_IOR})
    )
    specs.append(
        _FormSpec(
            FormKind.SPHERE,
            (-4.0, 1.0, 0.0),
            1.0,
            MaterialType.LAMBERTIAN,
            {"albedo": (0.4, 0.2, 0.1)},
        )
    )
    specs.append(
        _FormSpec(
            FormKind.CUBE,
            (4.0, 0.5, 0.0),
            1.0,
            MaterialType.METAL,
            {"albedo": (0.7, 0.6, 0.5), "fuzz": 0.0},
        )
    )
    specs.append(
        _FormSpec(
            FormKind.SPHERE,
            (0.0, -1000.0, 0.0),
            1000.0,
            MaterialType.LAMBERTIAN,
            {"albedo": (0.5, 0.5, 0.5)},
        )
    )

    # Drop from the front so the four large forms survive
    specs = specs[max(len(specs) - n, 0) :]
    for spec in specs:
        _add_form(scene, spec)

    logger.info("classic world: %d forms", len(specs))
    return scene
