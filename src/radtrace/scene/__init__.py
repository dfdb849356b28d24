"""Scene module for scene management and hit records.

Components:
    intersection: Form table and nearest-hit queries
    manager: Unified scene manager coordinating forms and materials
    random_world: Random and classic scene generators

Scene data is organized for efficient kernel access:
    - Structure-of-Arrays layout for geometric data
    - Contiguous material ID arrays
"""

from .intersection import (
    MAX_FORMS,
    FormKind,
    SceneHitRecord,
    add_form,
    cast_ray,
    clear_scene,
    form_area,
    form_diff_a,
    form_normal,
    form_point,
    get_form_count,
    get_form_kind,
    intersect_form,
    intersect_scene,
)
from .manager import (
    MAX_MATERIALS,
    FormInfo,
    MaterialInfo,
    MaterialType,
    SceneConfig,
    SceneManager,
    get_material_type,
    get_material_type_index,
    material_type_indices,
    material_types,
    num_materials,
)
from .random_world import classic_world, random_world

__all__ = [
    # Intersection module
    "FormKind",
    "SceneHitRecord",
    "add_form",
    "cast_ray",
    "clear_scene",
    "get_form_count",
    "get_form_kind",
    "intersect_form",
    "intersect_scene",
    "form_point",
    "form_normal",
    "form_area",
    "form_diff_a",
    "MAX_FORMS",
    # Manager module
    "SceneManager",
    "MaterialType",
    "MaterialInfo",
    "FormInfo",
    "SceneConfig",
    "MAX_MATERIALS",
    "get_material_type",
    "get_material_type_index",
    "material_types",
    "material_type_indices",
    "num_materials",
    # Generators
    "random_world",
    "classic_world",
]
