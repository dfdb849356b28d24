"""Monte Carlo view factors between forms of a scene.

The view factor F(i, j) is the fraction of the power diffusely emitted by
form i that reaches form j directly. It is estimated by drawing pairs of
uniform parametric coordinates on both forms and averaging the radiative
kernel

    cos(b1) * cos(b2) / l^2 * dA1 * dA2

over the samples, then dividing by pi * area(i). Each sample casts an
occlusion ray from the point on i toward the point on j through the whole
scene; the sample only counts when the first form hit is j (or nothing is
hit before the target point). Points facing away from each other
contribute nothing.

Spheres and patches (squares and rectangles) have a surface
parameterization; cubes do not and cannot take part in a view-factor query.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.radtrace.scene.manager import SceneManager
    >>> from src.radtrace.radiation.view_factors import view_factor
    >>> scene = SceneManager()
    >>> mat = scene.add_lambertian_material((0.8, 0.3, 0.3))
    >>> scene.add_square((0, 0, 0), 1.0, mat, (0, 1, 0), (0, 0, 1), (1, 0, 0))
    >>> scene.add_sphere((2, 0, 0), 1.0, mat)
    >>> view_factor(scene, 100_000, 0, 1)  # close to (1 / 2) ** 2
"""

import logging
import math
from collections.abc import Iterator
from dataclasses import dataclass

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from src.radtrace.core.ray import unit_vector
from src.radtrace.scene.intersection import (
    FormKind,
    form_diff_a,
    form_normal,
    form_point,
    intersect_scene,
)
from src.radtrace.scene.manager import SceneManager

logger = logging.getLogger(__name__)

vec3 = tm.vec3

# Lower bound of the occlusion ray, keeps it off the emitting surface
VF_T_MIN = 1e-4

# Sum of the radiative kernel over all samples of the current query
_kernel_sum = ti.field(dtype=ti.f32, shape=())


@ti.func
def radiative_kernel(i: ti.i32, j: ti.i32) -> ti.f32:
    """One Monte Carlo sample of the view-factor integrand between i and j.

    Args:
        i: Index of the emitting form.
        j: Index of the receiving form.

    Returns:
        cos1 * cos2 / l^2 * dA1 * dA2 for a random pair of points, or 0
        when the points face away from each other or j is occluded.
    """
    s1 = ti.random(ti.f32)
    t1 = ti.random(ti.f32)
    s2 = ti.random(ti.f32)
    t2 = ti.random(ti.f32)

    p1 = form_point(i, s1, t1)
    n1 = form_normal(i, s1, t1)
    p2 = form_point(j, s2, t2)
    n2 = form_normal(j, s2, t2)

    r12 = p2 - p1
    dist = tm.length(r12)

    cos1 = tm.dot(r12, n1) / dist
    cos2 = -tm.dot(r12, n2) / dist

    rec = intersect_scene(p1, unit_vector(r12), VF_T_MIN, dist)
    if rec.hit == 1 and rec.hit_index != j:
        cos2 = 0.0

    contribution = 0.0
    if cos1 >= 0.0 and cos2 >= 0.0:
        contribution = cos1 * cos2 / (dist * dist) * form_diff_a(i, s1, t1) * form_diff_a(j, s2, t2)
    return contribution


@ti.kernel
def _sample_view_factor(i: ti.i32, j: ti.i32, n_samples: ti.i32):
    for _ in range(n_samples):
        _kernel_sum[None] += radiative_kernel(i, j)


def _check_pair(scene: SceneManager, i: int, j: int) -> None:
    count = scene.get_form_count()
    for index in (i, j):
        if not 0 <= index < count:
            raise ValueError(f"Form index {index} out of range [0, {count})")
    if i == j:
        raise ValueError(f"View factor of a form with itself is not supported (i = j = {i})")
    for index in (i, j):
        if not scene.get_form_info(index).parameterizable:
            raise ValueError(f"Form {index} is a cube; cubes are unsupported in view factors")


def view_factor(scene: SceneManager, n_samples: int, i: int, j: int) -> float:
    """Estimate the view factor from form i to form j.

    Args:
        scene: The scene holding both forms (and any occluders).
        n_samples: Number of Monte Carlo samples.
        i: Index of the emitting form.
        j: Index of the receiving form.

    Returns:
        The estimated F(i, j).

    Raises:
        ValueError: If an index is out of range, i == j, either form is a
            cube, or n_samples is not positive.
    """
    if n_samples <= 0:
        raise ValueError(f"n_samples must be positive, got {n_samples}")
    _check_pair(scene, i, j)

    _kernel_sum[None] = 0.0
    _sample_view_factor(i, j, n_samples)

    area = scene.get_form_info(i).area
    assert area is not None
    result = float(_kernel_sum[None]) / (math.pi * area * n_samples)
    logger.info("F(%d,%d) = %.4f (%d samples)", i, j, result, n_samples)
    return result


@dataclass
class ViewFactorMatrix:
    """Upper-triangular table of view factors.

    values[i, j] holds F(i, j) for i < j. The diagonal and lower triangle
    are zero; pairs involving a cube are NaN.

    Attributes:
        values: Square array indexed by form index.
        n_samples: Samples used per pair.
    """

    values: npt.NDArray[np.float64]
    n_samples: int = 0

    def __getitem__(self, pair: tuple[int, int]) -> float:
        i, j = pair
        return float(self.values[i, j])

    def __len__(self) -> int:
        return self.values.shape[0]

    def pairs(self) -> Iterator[tuple[int, int, float]]:
        """Yield (i, j, F(i, j)) for every i < j in row order."""
        n = self.values.shape[0]
        for i in range(n):
            for j in range(i + 1, n):
                yield i, j, float(self.values[i, j])

    def to_rows(self) -> list[list[float]]:
        """Ragged rows: row i holds F(i, j) for j = i + 1 .. n - 1."""
        n = self.values.shape[0]
        return [[float(v) for v in self.values[i, i + 1 :]] for i in range(n)]

    def __str__(self) -> str:
        return "\n".join(f"F({i},{j}) = {value:.4f}" for i, j, value in self.pairs())


def view_factors(scene: SceneManager, n_samples: int) -> ViewFactorMatrix:
    """Estimate F(i, j) for every pair i < j of forms in the scene.

    Pairs involving a cube are skipped and reported as NaN.

    Args:
        scene: The scene to analyse.
        n_samples: Number of Monte Carlo samples per pair.

    Returns:
        The ViewFactorMatrix of the scene.
    """
    n = scene.get_form_count()
    values = np.zeros((n, n), dtype=np.float64)
    for i in range(n):
        for j in range(i + 1, n):
            kinds = (scene.get_form_info(i).kind, scene.get_form_info(j).kind)
            if FormKind.CUBE in kinds:
                logger.debug("skipping F(%d,%d): cube", i, j)
                values[i, j] = np.nan
            else:
                values[i, j] = view_factor(scene, n_samples, i, j)
    return ViewFactorMatrix(values=values, n_samples=n_samples)


def reciprocity_residual(
    scene: SceneManager, matrix: ViewFactorMatrix, i: int, j: int, reverse: float
) -> float:
    """A_i * F(i, j) - A_j * F(j, i).

    Args:
        scene: The scene the matrix was computed for.
        matrix: Holds F(i, j) for i < j.
        i: Lower form index.
        j: Higher form index.
        reverse: An estimate of F(j, i).

    Returns:
        The reciprocity residual, zero for exact view factors.
    """
    area_i = scene.get_form_info(i).area
    area_j = scene.get_form_info(j).area
    if area_i is None or area_j is None:
        raise ValueError("Reciprocity is undefined for cubes")
    return area_i * matrix[i, j] - area_j * reverse
