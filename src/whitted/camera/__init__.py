"""Camera module for view and ray generation.

Components:
    pinhole: Look-at pinhole camera with per-pixel primary rays

Pixel coordinates start at the top-left corner: px grows to the right and
py grows downward. Each primary ray passes through its pixel's center.
"""

from .pinhole import (
    PinholeCamera,
    get_camera_info,
    get_ray_for_pixel,
    ray_for_pixel,
    setup_camera,
)

__all__ = [
    "PinholeCamera",
    "setup_camera",
    "ray_for_pixel",
    "get_ray_for_pixel",
    "get_camera_info",
]
