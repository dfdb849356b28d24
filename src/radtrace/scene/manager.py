"""Unified scene manager for coordinating forms and materials.

This module provides a high-level scene building API on top of the raw
form table in scene.intersection and the per-type material registries.
It tracks which material type (Lambertian, Metal, Dielectric) each unified
material id corresponds to, so the integrator can dispatch to the right
scattering function.

The SceneManager maintains:
- A unified material_id space across all material types
- Mapping from material_id to (material_type, type_local_index)
- Validated constructors for spheres, cubes, squares and rectangles
- A seedable random generator for randomly oriented cubes and squares
- Scene serialization to and from plain dictionaries

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.radtrace.scene.manager import SceneManager
    >>> scene = SceneManager(seed=7)
    >>> mat_id = scene.add_lambertian_material(albedo=(0.8, 0.3, 0.3))
    >>> scene.add_sphere(center=(0, 0, -1), radius=0.5, material_id=mat_id)
    >>> scene.add_cube(center=(1, 0, -1), length=0.5, material_id=mat_id)
"""

import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any

import numpy as np
import taichi as ti

from src.radtrace.geometry.cube import random_horizontal_basis
from src.radtrace.materials.dielectric import (
    add_dielectric_material,
    clear_dielectric_materials,
)
from src.radtrace.materials.lambertian import (
    add_lambertian_material,
    clear_lambertian_materials,
)
from src.radtrace.materials.metal import (
    add_metal_material,
    clear_metal_materials,
)
from src.radtrace.scene.intersection import (
    MAX_FORMS,
    FormKind,
    add_form,
    clear_scene,
    get_form_count,
)

logger = logging.getLogger(__name__)

Vector3 = tuple[float, float, float]

# Tolerance for the orthonormality check of user supplied bases
BASIS_TOLERANCE = 1e-4


class MaterialType(IntEnum):
    """Enumeration of supported material types.

    Used for material dispatch in the integrator to determine which
    scattering function to call.
    """

    LAMBERTIAN = 0
    METAL = 1
    DIELECTRIC = 2


# Maximum number of materials across all types
MAX_MATERIALS = 3072  # 1024 per type * 3 types

# material_types[i] stores the MaterialType for material_id i
material_types = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
# material_type_indices[i] stores the type-local index for material_id i
# (e.g., if material_id 5 is the 2nd metal material, material_type_indices[5] = 1)
material_type_indices = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
num_materials = ti.field(dtype=ti.i32, shape=())


def _clear_material_tracking() -> None:
    """Clear the material tracking fields."""
    num_materials[None] = 0


@ti.func
def get_material_type(material_id: ti.i32) -> ti.i32:
    """Get the material type for a given material ID.

    Args:
        material_id: The unified material ID.

    Returns:
        The material type as an integer (see MaterialType enum).
        Returns -1 for invalid material IDs.
    """
    result = -1
    if 0 <= material_id < num_materials[None]:
        result = material_types[material_id]
    return result


@ti.func
def get_material_type_index(material_id: ti.i32) -> ti.i32:
    """Get the type-local index for a given material ID.

    Returns:
        The index into the type-specific material array, or -1 for
        invalid material IDs.
    """
    result = -1
    if 0 <= material_id < num_materials[None]:
        result = material_type_indices[material_id]
    return result


@dataclass
class MaterialInfo:
    """Information about a registered material.

    Attributes:
        material_id: The unified material ID.
        material_type: The type of material.
        type_index: The index within the type-specific material array.
        params: The material parameters as provided during creation.
    """

    material_id: int
    material_type: MaterialType
    type_index: int
    params: dict[str, Any]


@dataclass
class FormInfo:
    """Information about a form in the scene.

    Attributes:
        index: Position of the form in the scene table.
        kind: The form kind.
        center: The form center.
        length: Radius for spheres, edge length otherwise.
        material_id: The unified material ID of the form.
        width: Extent along v for rectangles (None otherwise).
        u: First basis vector (None for spheres).
        v: Second basis vector (None for spheres).
        w: Third basis vector (None for spheres).
    """

    index: int
    kind: FormKind
    center: Vector3
    length: float
    material_id: int
    width: float | None = None
    u: Vector3 | None = None
    v: Vector3 | None = None
    w: Vector3 | None = None

    @property
    def parameterizable(self) -> bool:
        """Whether the form can be sampled for view factors."""
        return self.kind != FormKind.CUBE

    @property
    def area(self) -> float | None:
        """Surface area, or None for cubes."""
        if self.kind == FormKind.SPHERE:
            return 4.0 * math.pi * self.length**2
        if self.kind == FormKind.SQUARE:
            return self.length**2
        if self.kind == FormKind.RECTANGLE:
            assert self.width is not None
            return self.length * self.width
        return None


@dataclass
class SceneConfig:
    """Configuration for scene serialization.

    Attributes:
        materials: List of material configurations.
        forms: List of form configurations, in scene order.
    """

    materials: list[dict[str, Any]] = field(default_factory=list)
    forms: list[dict[str, Any]] = field(default_factory=list)


def _as_vector3(values: Sequence[float], name: str) -> Vector3:
    if len(values) != 3:
        raise ValueError(f"{name} must have 3 components, got {len(values)}")
    return (float(values[0]), float(values[1]), float(values[2]))


def _validate_basis(u: Vector3, v: Vector3, w: Vector3) -> None:
    """Raise ValueError unless (u, v, w) is orthonormal."""
    basis = np.array([u, v, w], dtype=np.float64)
    gram = basis @ basis.T
    if not np.allclose(gram, np.eye(3), atol=BASIS_TOLERANCE):
        raise ValueError(f"Basis vectors u={u}, v={v}, w={w} are not orthonormal")


class SceneManager:
    """Unified scene manager coordinating forms and materials.

    Attributes:
        materials: List of MaterialInfo for all registered materials.
        forms: List of FormInfo for all forms, in scene order.
        rng: Random generator used for randomly oriented cubes and squares.

    Example:
        >>> scene = SceneManager(seed=1)
        >>> red = scene.add_lambertian_material(albedo=(0.8, 0.1, 0.1))
        >>> mirror = scene.add_metal_material(albedo=(0.9, 0.9, 0.9), fuzz=0.0)
        >>> glass = scene.add_dielectric_material(ior=1.5)
        >>> scene.add_sphere((0, 0, -1), 0.5, red)
        >>> scene.add_horizontal_square((0, -0.5, -1), 4.0, mirror)
        >>> scene.add_cube((-1, 0, -1), 0.5, glass)
    """

    def __init__(self, seed: int | None = None) -> None:
        """Initialize an empty scene.

        Args:
            seed: Seed for the generator used by random orientations.
        """
        self.materials: list[MaterialInfo] = []
        self.forms: list[FormInfo] = []
        self.rng = np.random.default_rng(seed)
        self._clear_all()

    def _clear_all(self) -> None:
        """Clear all scene data including Taichi fields."""
        clear_scene()
        clear_lambertian_materials()
        clear_metal_materials()
        clear_dielectric_materials()
        _clear_material_tracking()
        self.materials.clear()
        self.forms.clear()

    def clear(self) -> None:
        """Clear the entire scene (forms and materials)."""
        self._clear_all()

    # =========================================================================
    # Material Management
    # =========================================================================

    def _register_material(
        self,
        material_type: MaterialType,
        type_index: int,
        params: dict[str, Any],
    ) -> int:
        """Assign a unified material ID to a type-local registry entry."""
        material_id = num_materials[None]
        if material_id >= MAX_MATERIALS:
            raise RuntimeError(f"Maximum number of materials ({MAX_MATERIALS}) exceeded")

        material_types[material_id] = int(material_type)
        material_type_indices[material_id] = type_index
        num_materials[None] = material_id + 1

        self.materials.append(
            MaterialInfo(
                material_id=material_id,
                material_type=material_type,
                type_index=type_index,
                params=params,
            )
        )
        return material_id

    def add_lambertian_material(self, albedo: Vector3) -> int:
        """Add a Lambertian (diffuse) material to the scene.

        Args:
            albedo: The diffuse reflectance color as (R, G, B).

        Returns:
            The unified material ID for this material.

        Raises:
            RuntimeError: If the maximum number of materials is exceeded.
            ValueError: If any albedo component is outside [0, 1].
        """
        albedo = _as_vector3(albedo, "albedo")
        type_index = add_lambertian_material(albedo)
        return self._register_material(MaterialType.LAMBERTIAN, type_index, {"albedo": albedo})

    def add_metal_material(self, albedo: Vector3, fuzz: float = 0.0) -> int:
        """Add a metal (specular reflective) material to the scene.

        Args:
            albedo: The reflective color as (R, G, B).
            fuzz: Perturbation radius in [0, 1]. Default is 0 (perfect mirror).

        Returns:
            The unified material ID for this material.

        Raises:
            RuntimeError: If the maximum number of materials is exceeded.
            ValueError: If any albedo component or fuzz is outside [0, 1].
        """
        albedo = _as_vector3(albedo, "albedo")
        type_index = add_metal_material(albedo, fuzz)
        return self._register_material(
            MaterialType.METAL, type_index, {"albedo": albedo, "fuzz": fuzz}
        )

    def add_dielectric_material(self, ior: float = 1.5) -> int:
        """Add a dielectric (glass/water) material to the scene.

        Args:
            ior: Index of refraction. Default is 1.5 (typical glass).

        Returns:
            The unified material ID for this material.

        Raises:
            RuntimeError: If the maximum number of materials is exceeded.
            ValueError: If IOR is less than 1.0.
        """
        type_index = add_dielectric_material(ior)
        return self._register_material(MaterialType.DIELECTRIC, type_index, {"ior": ior})

    def get_material_count(self) -> int:
        """Get the total number of materials in the scene."""
        return int(num_materials[None])

    def get_material_info(self, material_id: int) -> MaterialInfo | None:
        """Get information about a material by ID, or None if not found."""
        if 0 <= material_id < len(self.materials):
            return self.materials[material_id]
        return None

    def get_material_type_python(self, material_id: int) -> MaterialType | None:
        """Get the material type for a given material ID (Python side)."""
        info = self.get_material_info(material_id)
        return None if info is None else info.material_type

    # =========================================================================
    # Form Management
    # =========================================================================

    def _check_material_id(self, material_id: int) -> None:
        if material_id < 0 or material_id >= num_materials[None]:
            raise ValueError(f"Invalid material_id: {material_id}")

    def _append(self, info: FormInfo) -> int:
        index = add_form(
            info.kind,
            info.center,
            info.length,
            info.material_id,
            width=info.width,
            u=info.u or (1.0, 0.0, 0.0),
            v=info.v or (0.0, 1.0, 0.0),
            w=info.w or (0.0, 0.0, 1.0),
        )
        info.index = index
        self.forms.append(info)
        logger.debug("form %d: %s at %s", index, info.kind.name.lower(), info.center)
        return index

    def add_sphere(self, center: Vector3, radius: float, material_id: int) -> int:
        """Add a sphere to the scene.

        Args:
            center: The center point of the sphere as (x, y, z).
            radius: The radius of the sphere.
            material_id: The unified material ID to assign to the sphere.

        Returns:
            The form index of the added sphere.

        Raises:
            RuntimeError: If the maximum number of forms is exceeded.
            ValueError: If material_id is invalid or radius is not positive.
        """
        self._check_material_id(material_id)
        if radius <= 0.0:
            raise ValueError(f"Sphere radius must be positive, got {radius}")
        return self._append(
            FormInfo(
                index=-1,
                kind=FormKind.SPHERE,
                center=_as_vector3(center, "center"),
                length=float(radius),
                material_id=material_id,
            )
        )

    def add_cube(
        self,
        center: Vector3,
        length: float,
        material_id: int,
        basis: tuple[Vector3, Vector3, Vector3] | None = None,
    ) -> int:
        """Add a cube to the scene.

        Args:
            center: The center point of the cube.
            length: The edge length.
            material_id: The unified material ID to assign to the cube.
            basis: Orientation (u, v, w). When omitted, w is vertical and
                the horizontal rotation is drawn from self.rng.

        Returns:
            The form index of the added cube.

        Raises:
            RuntimeError: If the maximum number of forms is exceeded.
            ValueError: If material_id, length or basis is invalid.
        """
        self._check_material_id(material_id)
        if length <= 0.0:
            raise ValueError(f"Cube length must be positive, got {length}")
        u, v, w = self._resolve_basis(basis)
        return self._append(
            FormInfo(
                index=-1,
                kind=FormKind.CUBE,
                center=_as_vector3(center, "center"),
                length=float(length),
                material_id=material_id,
                u=u,
                v=v,
                w=w,
            )
        )

    def add_rectangle(
        self,
        center: Vector3,
        length: float,
        width: float,
        material_id: int,
        u: Vector3,
        v: Vector3,
        w: Vector3,
    ) -> int:
        """Add a rectangular patch to the scene.

        Args:
            center: The center point of the patch.
            length: Extent along u.
            width: Extent along v.
            material_id: The unified material ID to assign to the patch.
            u: First in-plane axis.
            v: Second in-plane axis.
            w: Surface normal.

        Returns:
            The form index of the added patch.

        Raises:
            RuntimeError: If the maximum number of forms is exceeded.
            ValueError: If material_id, extents or basis are invalid.
        """
        self._check_material_id(material_id)
        if length <= 0.0 or width <= 0.0:
            raise ValueError(f"Patch extents must be positive, got {length} x {width}")
        u, v, w = self._resolve_basis((u, v, w))
        return self._append(
            FormInfo(
                index=-1,
                kind=FormKind.RECTANGLE,
                center=_as_vector3(center, "center"),
                length=float(length),
                width=float(width),
                material_id=material_id,
                u=u,
                v=v,
                w=w,
            )
        )

    def add_square(
        self,
        center: Vector3,
        length: float,
        material_id: int,
        u: Vector3,
        v: Vector3,
        w: Vector3,
    ) -> int:
        """Add a square patch with an explicit basis (w is the normal)."""
        self._check_material_id(material_id)
        if length <= 0.0:
            raise ValueError(f"Square length must be positive, got {length}")
        u, v, w = self._resolve_basis((u, v, w))
        return self._append(
            FormInfo(
                index=-1,
                kind=FormKind.SQUARE,
                center=_as_vector3(center, "center"),
                length=float(length),
                width=float(length),
                material_id=material_id,
                u=u,
                v=v,
                w=w,
            )
        )

    def add_horizontal_square(self, center: Vector3, length: float, material_id: int) -> int:
        """Add an upward-facing square with a random rotation about the vertical."""
        u, v, w = self._resolve_basis(None)
        return self.add_square(center, length, material_id, u, v, w)

    def _resolve_basis(
        self, basis: tuple[Sequence[float], Sequence[float], Sequence[float]] | None
    ) -> tuple[Vector3, Vector3, Vector3]:
        if basis is None:
            u_arr, v_arr, w_arr = random_horizontal_basis(self.rng)
            return (
                _as_vector3(u_arr.tolist(), "u"),
                _as_vector3(v_arr.tolist(), "v"),
                _as_vector3(w_arr.tolist(), "w"),
            )
        u = _as_vector3(basis[0], "u")
        v = _as_vector3(basis[1], "v")
        w = _as_vector3(basis[2], "w")
        _validate_basis(u, v, w)
        return u, v, w

    # =========================================================================
    # Convenience Methods (add object with material in one call)
    # =========================================================================

    def add_lambertian_sphere(
        self, center: Vector3, radius: float, albedo: Vector3
    ) -> tuple[int, int]:
        """Add a sphere with a new Lambertian material.

        Returns:
            Tuple of (form_index, material_id).
        """
        material_id = self.add_lambertian_material(albedo)
        return self.add_sphere(center, radius, material_id), material_id

    def add_metal_sphere(
        self, center: Vector3, radius: float, albedo: Vector3, fuzz: float = 0.0
    ) -> tuple[int, int]:
        """Add a sphere with a new metal material.

        Returns:
            Tuple of (form_index, material_id).
        """
        material_id = self.add_metal_material(albedo, fuzz)
        return self.add_sphere(center, radius, material_id), material_id

    def add_dielectric_sphere(
        self, center: Vector3, radius: float, ior: float = 1.5
    ) -> tuple[int, int]:
        """Add a sphere with a new dielectric material.

        Returns:
            Tuple of (form_index, material_id).
        """
        material_id = self.add_dielectric_material(ior)
        return self.add_sphere(center, radius, material_id), material_id

    # =========================================================================
    # Scene Queries
    # =========================================================================

    def get_form_count(self) -> int:
        """Get the number of forms in the scene."""
        return get_form_count()

    def get_form_info(self, index: int) -> FormInfo:
        """Get information about the form at index.

        Raises:
            IndexError: If index is out of range.
        """
        if not 0 <= index < len(self.forms):
            raise IndexError(f"Form index {index} out of range [0, {len(self.forms)})")
        return self.forms[index]

    # =========================================================================
    # Scene Serialization
    # =========================================================================

    def to_config(self) -> SceneConfig:
        """Export the scene to a configuration object."""
        config = SceneConfig()

        for mat in self.materials:
            params = {
                key: list(value) if isinstance(value, tuple) else value
                for key, value in mat.params.items()
            }
            config.materials.append({"type": mat.material_type.name.lower(), **params})

        for form in self.forms:
            form_config: dict[str, Any] = {
                "kind": form.kind.name.lower(),
                "center": list(form.center),
                "length": form.length,
                "material_id": form.material_id,
            }
            if form.kind == FormKind.RECTANGLE:
                form_config["width"] = form.width
            if form.kind != FormKind.SPHERE:
                form_config["u"] = list(form.u or ())
                form_config["v"] = list(form.v or ())
                form_config["w"] = list(form.w or ())
            config.forms.append(form_config)

        return config

    def from_config(self, config: SceneConfig) -> None:
        """Load a scene from a configuration object.

        Clears the current scene and loads the configuration.

        Raises:
            ValueError: If the configuration contains invalid data.
        """
        self.clear()

        for mat_config in config.materials:
            mat_type = mat_config.get("type", "").lower()
            if mat_type == "lambertian":
                self.add_lambertian_material(tuple(mat_config.get("albedo", [0.5, 0.5, 0.5])))
            elif mat_type == "metal":
                self.add_metal_material(
                    tuple(mat_config.get("albedo", [0.8, 0.8, 0.8])),
                    mat_config.get("fuzz", 0.0),
                )
            elif mat_type == "dielectric":
                self.add_dielectric_material(mat_config.get("ior", 1.5))
            else:
                raise ValueError(f"Unknown material type: {mat_type}")

        for form_config in config.forms:
            kind = form_config.get("kind", "").lower()
            center = tuple(form_config.get("center", [0.0, 0.0, 0.0]))
            length = form_config.get("length", 1.0)
            material_id = form_config.get("material_id", 0)
            basis = None
            if "u" in form_config:
                basis = (form_config["u"], form_config["v"], form_config["w"])

            if kind == "sphere":
                self.add_sphere(center, length, material_id)
            elif kind == "cube":
                self.add_cube(center, length, material_id, basis)
            elif kind == "square":
                if basis is None:
                    self.add_horizontal_square(center, length, material_id)
                else:
                    self.add_square(center, length, material_id, *basis)
            elif kind == "rectangle":
                if basis is None:
                    raise ValueError("Rectangle forms require an explicit u/v/w basis")
                self.add_rectangle(
                    center, length, form_config.get("width", length), material_id, *basis
                )
            else:
                raise ValueError(f"Unknown form kind: {kind}")

    def to_dict(self) -> dict[str, Any]:
        """Export the scene to a dictionary (for JSON serialization)."""
        config = self.to_config()
        return {"materials": config.materials, "forms": config.forms}

    def from_dict(self, data: dict[str, Any]) -> None:
        """Load a scene from a dictionary with 'materials' and 'forms' keys."""
        self.from_config(
            SceneConfig(materials=data.get("materials", []), forms=data.get("forms", []))
        )

    # =========================================================================
    # Capacity Information
    # =========================================================================

    @staticmethod
    def get_max_forms() -> int:
        """Get the maximum number of forms supported."""
        return MAX_FORMS

    @staticmethod
    def get_max_materials() -> int:
        """Get the maximum number of materials supported."""
        return MAX_MATERIALS
