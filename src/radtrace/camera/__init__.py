"""Camera module for view and ray generation.

Components:
    pinhole: Perspective camera, shared camera state and ray generation
    thin_lens: Depth of field camera configuration and lens sampling

Ray generation uses normalized image coordinates:
    s in [0, 1]: left to right across image
    t in [0, 1]: bottom to top across image
"""

from .pinhole import (
    CameraKind,
    PinholeCamera,
    get_camera_basis,
    get_camera_info,
    get_camera_origin,
    get_ray,
    get_ray_jittered,
    is_camera_ready,
    reset_camera,
    setup_camera,
)
from .thin_lens import ThinLensCamera, lens_offset

__all__ = [
    "CameraKind",
    "PinholeCamera",
    "ThinLensCamera",
    "setup_camera",
    "is_camera_ready",
    "reset_camera",
    "get_ray",
    "get_ray_jittered",
    "get_camera_origin",
    "get_camera_basis",
    "get_camera_info",
    "lens_offset",
]
