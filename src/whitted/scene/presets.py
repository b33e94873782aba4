"""Ready-made scenes.

Scenes:
    default world: two concentric spheres and one light; the standard
        fixture for shading, shadow and refraction checks
    showcase: checkered reflective floor, mirror wall, nested glass
        spheres, a dark red ball and a mirror ball

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from whitted.scene.presets import create_showcase_scene
    >>> scene = create_showcase_scene(width=320, height=320)
"""

import math
from typing import Any

from whitted.camera.pinhole import PinholeCamera
from whitted.materials.material import Material
from whitted.scene.manager import SceneManager

# Default world light
DEFAULT_LIGHT_POSITION = (-10.0, 10.0, -10.0)
DEFAULT_LIGHT_INTENSITY = (1.0, 1.0, 1.0)

# Outer sphere material of the default world
DEFAULT_OUTER_MATERIAL = Material(color=(0.8, 1.0, 0.6), diffuse=0.7, specular=0.2)


def default_camera(width: int = 100, height: int = 100) -> PinholeCamera:
    """Camera looking at the origin from slightly above, 5 units back."""
    return PinholeCamera(
        width=width,
        height=height,
        field_of_view=math.pi / 3.0,
        from_point=(0.0, 1.5, -5.0),
        to_point=(0.0, 1.0, 0.0),
        up=(0.0, 1.0, 0.0),
    )


def create_default_world(
    camera: PinholeCamera | None = None,
    outer: Material = DEFAULT_OUTER_MATERIAL,
    inner: Material | None = None,
) -> SceneManager:
    """Create the two-sphere reference world.

    Shape 0 is a unit sphere at the origin; shape 1 is a sphere of radius
    0.5 inside it. One white light sits at (-10, 10, -10).

    Args:
        camera: Optional camera; the scene is left without one if None.
        outer: Material of shape 0.
        inner: Material of shape 1; defaults to Material().

    Returns:
        An unfrozen scene, so tests can add more shapes.
    """
    scene = SceneManager()
    scene.add_light(DEFAULT_LIGHT_POSITION, DEFAULT_LIGHT_INTENSITY)
    scene.add_sphere(outer)
    scene.add_sphere(inner or Material(), [("scale", 0.5, 0.5, 0.5)])
    if camera is not None:
        scene.set_camera(camera)
    return scene


def showcase_entities(width: int = 400, height: int = 400) -> list[dict[str, Any]]:
    """Entity list for the showcase scene, in scene-description form."""
    return [
        {
            "add": "camera",
            "width": width,
            "height": height,
            "field-of-view": 0.698,
            "from": [0.0, 3.1, -10.3],
            "to": [0.0, 1.0, 0.0],
            "up": [0.0, 1.0, 0.0],
        },
        {"add": "light", "at": [-10.0, 10.0, -10.0], "intensity": [1.0, 1.0, 1.0]},
        # floor
        {
            "add": "plane",
            "material": {
                "colour": [0.1, 0.1, 0.1],
                "reflectivity": 0.3,
                "specular": 0.0,
                "pattern": {
                    "type": "3d-check",
                    "colour-a": [0.9, 0.9, 0.9],
                    "colour-b": [0.2, 0.2, 0.2],
                    "transform": [["rotate-y", 0.5236]],
                },
            },
        },
        # mirror wall
        {
            "add": "plane",
            "material": {
                "colour": [0.0, 0.0, 0.0],
                "ambient": 0.1,
                "diffuse": 0.1,
                "reflectivity": 0.95,
                "specular": 1.0,
            },
            "transform": [["rotate-x", 1.5708], ["rotate-y", -0.7855], ["translate", 0, 0, 5]],
        },
        # glass sphere with a hollow air bubble inside
        {
            "add": "sphere",
            "material": {
                "colour": [0.9, 1.0, 1.0],
                "diffuse": 0.0,
                "specular": 0.9,
                "transparency": 0.9,
                "reflectivity": 0.9,
                "refractive_index": 1.5,
            },
            "transform": [["translate", 0, 3, -8], ["scale", 0.5, 0.5, 0.5]],
        },
        {
            "add": "sphere",
            "material": {
                "colour": [1.0, 1.0, 1.0],
                "diffuse": 0.0,
                "ambient": 0.0,
                "specular": 0.9,
                "shininess": 300,
                "transparency": 0.9,
                "reflectivity": 0.9,
                "refractive_index": 1.00000034,
            },
            "transform": [["translate", 0, 3, -8], ["scale", 0.3, 0.3, 0.3]],
        },
        # dark red sphere
        {
            "add": "sphere",
            "material": {
                "colour": [0.3, 0.1, 0.1],
                "diffuse": 0.7,
                "specular": 0.6,
                "reflectivity": 0.1,
                "refractive_index": 1.5,
            },
            "transform": [["translate", -0.5, 1, -0.5]],
        },
        # mirror ball
        {
            "add": "sphere",
            "material": {"colour": [0.09, 0.09, 0.09], "reflectivity": 0.9},
            "transform": [["translate", 2, 2, 0]],
        },
    ]


def create_showcase_scene(width: int = 400, height: int = 400) -> SceneManager:
    """Build the showcase scene."""
    return SceneManager.from_entities(showcase_entities(width, height))
