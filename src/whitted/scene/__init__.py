"""Scene module for assembly, device storage and ray queries.

Components:
    intersection: Shape and light fields, nearest-hit and shadow queries,
        and the per-intersection shading context
    manager: SceneManager for building, freezing and (de)serializing scenes
    presets: Ready-made scenes

Scene data is organized for efficient GPU access:
    - Structure-of-Arrays layout for shape and light data
    - Per-shape inverse and normal matrices computed once on the host
    - One material per shape, indexed by material id

Importing this package allocates the scene fields, so do it after Taichi
is initialized.
"""

from .intersection import (
    EPSILON,
    MAX_LIGHTS,
    MAX_SHAPES,
    Computations,
    SceneHit,
    add_light,
    add_shape,
    clear_scene,
    compute_hit,
    get_light_count,
    get_shape_count,
    intersect_all,
    intersect_scene,
    is_shadowed,
    nearest_hit,
    point_is_shadowed,
    prepare_computations,
)
from .manager import (
    LightInfo,
    SceneConfig,
    SceneManager,
    ShapeInfo,
    release_device_scene,
)
from .presets import create_default_world, create_showcase_scene, default_camera

__all__ = [
    # Intersection module
    "EPSILON",
    "MAX_SHAPES",
    "MAX_LIGHTS",
    "SceneHit",
    "Computations",
    "add_shape",
    "add_light",
    "clear_scene",
    "get_shape_count",
    "get_light_count",
    "intersect_scene",
    "is_shadowed",
    "prepare_computations",
    "intersect_all",
    "nearest_hit",
    "compute_hit",
    "point_is_shadowed",
    # Manager module
    "SceneManager",
    "SceneConfig",
    "ShapeInfo",
    "LightInfo",
    "release_device_scene",
    # Presets
    "create_default_world",
    "create_showcase_scene",
    "default_camera",
]
