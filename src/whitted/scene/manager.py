"""Scene assembly: shapes, materials, lights and camera.

This module provides the high-level API for building a scene. The
SceneManager keeps the Python-side description of every element and
mirrors it into the Taichi fields the render kernel reads. Assembly ends
with freeze(); a frozen scene rejects further changes and is shared
read-only by every pixel of a render.

The device storage is global, so only one scene is resident at a time.
Each manager re-uploads its description when it becomes active, which
lets several scenes coexist on the Python side.

Scenes can also be built from a plain configuration (SceneConfig, a dict
from to_dict(), or the entity list used by scene description files).

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from whitted.materials.material import Material
    >>> from whitted.scene.manager import SceneManager
    >>> scene = SceneManager()
    >>> scene.add_sphere(Material(color=(1, 0.2, 1)), [("translate", 0, 1, 0)])
    0
    >>> scene.add_light((-10, 10, -10), (1, 1, 1))
    0
"""

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from whitted.camera.pinhole import PinholeCamera
from whitted.core.transforms import Transform, TransformOp
from whitted.errors import ConfigurationError
from whitted.geometry.shape import ShapeKind
from whitted.materials.material import Material, add_material, clear_materials
from whitted.scene.intersection import (
    MAX_LIGHTS,
    MAX_SHAPES,
    add_light,
    add_shape,
    clear_scene,
)

logger = logging.getLogger(__name__)

Triple = tuple[float, float, float]


@dataclass
class ShapeInfo:
    """Information about a shape in the scene.

    Attributes:
        kind: The primitive kind.
        material: The shape's material.
        transform: Operation list mapping object space to world space.
        compiled: The composed transform (derived).
    """

    kind: ShapeKind
    material: Material = field(default_factory=Material)
    transform: tuple[TransformOp, ...] = ()
    compiled: Transform = field(default_factory=Transform.identity, repr=False, compare=False)


@dataclass
class LightInfo:
    """A point light.

    Attributes:
        position: World-space position.
        intensity: RGB intensity, each channel in [0, 1].
    """

    position: Triple
    intensity: Triple = (1.0, 1.0, 1.0)


@dataclass
class SceneConfig:
    """Serializable scene configuration."""

    camera: PinholeCamera | None = None
    lights: list[LightInfo] = field(default_factory=list)
    shapes: list[ShapeInfo] = field(default_factory=list)


# The manager whose description currently occupies the device fields
_resident: "SceneManager | None" = None


def release_device_scene() -> None:
    """Forget which scene is resident, forcing the next one to re-upload.

    Call after clearing the device fields directly.
    """
    global _resident
    _resident = None


def _triple(value: Any, what: str) -> Triple:
    if isinstance(value, (str, bytes)) or not isinstance(value, Sequence) or len(value) != 3:
        raise ConfigurationError(f"{what} must be three numbers, got {value!r}")
    try:
        x, y, z = (float(v) for v in value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"{what} must be three numbers, got {value!r}") from exc
    return (x, y, z)


class SceneManager:
    """High-level scene manager coordinating shapes, materials and lights.

    Shape and light indices are assigned in insertion order. Every
    add_* call validates its input and raises ConfigurationError naming the
    offending element; exceeding a capacity or modifying a frozen scene
    raises RuntimeError.

    Attributes:
        shapes: Shapes in insertion order.
        lights: Lights in insertion order.
        camera: The camera, or None until set_camera() is called.
    """

    def __init__(self) -> None:
        """Initialize an empty scene and make it the resident one."""
        self.shapes: list[ShapeInfo] = []
        self.lights: list[LightInfo] = []
        self.camera: PinholeCamera | None = None
        self._frozen = False
        self.activate()

    # -------------------------------------------------------------------------
    # Device residency
    # -------------------------------------------------------------------------

    def is_active(self) -> bool:
        return _resident is self

    def activate(self) -> None:
        """Upload this scene to the device fields if another scene is there."""
        global _resident
        if _resident is self:
            return
        clear_scene()
        clear_materials()
        for info in self.shapes:
            _upload_shape(info)
        for light in self.lights:
            add_light(light.position, light.intensity)
        _resident = self
        logger.debug(
            "Activated scene with %d shapes and %d lights", len(self.shapes), len(self.lights)
        )

    # -------------------------------------------------------------------------
    # Assembly
    # -------------------------------------------------------------------------

    @property
    def frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> None:
        """End assembly. Further add_* or set_camera calls raise RuntimeError."""
        if not self._frozen:
            self._frozen = True
            logger.info(
                "Scene frozen: %d shapes, %d lights", len(self.shapes), len(self.lights)
            )

    def _check_mutable(self) -> None:
        if self._frozen:
            raise RuntimeError("Scene is frozen; no further elements can be added")

    def add_shape(
        self,
        kind: "ShapeKind | str",
        material: Material | None = None,
        transform: Sequence[TransformOp] = (),
    ) -> int:
        """Add a shape to the scene.

        Args:
            kind: ShapeKind or its name ("sphere", "plane").
            material: Surface material; defaults to Material().
            transform: Operation list, applied in order to object space.

        Returns:
            The index of the added shape.

        Raises:
            ConfigurationError: On an unknown kind or invalid transform.
            RuntimeError: If the scene is frozen or full.
        """
        self._check_mutable()
        index = len(self.shapes)
        if index >= MAX_SHAPES:
            raise RuntimeError(f"Maximum number of shapes ({MAX_SHAPES}) exceeded")

        try:
            shape_kind = ShapeKind.parse(kind)
        except ValueError as exc:
            raise ConfigurationError(f"Shape {index}: {exc}") from exc
        try:
            compiled = Transform.from_ops(transform)
        except ConfigurationError as exc:
            raise ConfigurationError(f"Shape {index} ({shape_kind.name.lower()}): {exc}") from exc

        info = ShapeInfo(
            kind=shape_kind,
            material=material if material is not None else Material(),
            transform=compiled.ops,
            compiled=compiled,
        )

        self.activate()
        _upload_shape(info)
        self.shapes.append(info)
        logger.debug("Added %s %d with transform %s", shape_kind.name.lower(), index, info.transform)
        return index

    def add_sphere(
        self, material: Material | None = None, transform: Sequence[TransformOp] = ()
    ) -> int:
        """Add a unit sphere, placed and sized by its transform."""
        return self.add_shape(ShapeKind.SPHERE, material, transform)

    def add_plane(
        self, material: Material | None = None, transform: Sequence[TransformOp] = ()
    ) -> int:
        """Add an infinite plane (the x-z plane before transformation)."""
        return self.add_shape(ShapeKind.PLANE, material, transform)

    def add_light(
        self, position: Sequence[float], intensity: Sequence[float] = (1.0, 1.0, 1.0)
    ) -> int:
        """Add a point light.

        Raises:
            ConfigurationError: If position or intensity is malformed or an
                intensity channel is outside [0, 1].
            RuntimeError: If the scene is frozen or full.
        """
        self._check_mutable()
        index = len(self.lights)
        if index >= MAX_LIGHTS:
            raise RuntimeError(f"Maximum number of lights ({MAX_LIGHTS}) exceeded")

        light = LightInfo(
            position=_triple(position, f"Light {index} position"),
            intensity=_triple(intensity, f"Light {index} intensity"),
        )
        if any(not 0.0 <= c <= 1.0 for c in light.intensity):
            raise ConfigurationError(
                f"Light {index} intensity must be in [0, 1], got {light.intensity}"
            )

        self.activate()
        add_light(light.position, light.intensity)
        self.lights.append(light)
        logger.debug("Added light %d at %s", index, light.position)
        return index

    def set_camera(self, camera: PinholeCamera) -> None:
        """Set the scene camera.

        Raises:
            RuntimeError: If the scene is frozen.
        """
        self._check_mutable()
        self.camera = camera

    def get_shape_count(self) -> int:
        return len(self.shapes)

    def get_light_count(self) -> int:
        return len(self.lights)

    @staticmethod
    def get_max_shapes() -> int:
        return MAX_SHAPES

    @staticmethod
    def get_max_lights() -> int:
        return MAX_LIGHTS

    # -------------------------------------------------------------------------
    # Configuration
    # -------------------------------------------------------------------------

    def to_config(self) -> SceneConfig:
        """Export the scene as a SceneConfig."""
        return SceneConfig(
            camera=self.camera,
            lights=[LightInfo(l.position, l.intensity) for l in self.lights],
            shapes=[ShapeInfo(s.kind, s.material, s.transform, s.compiled) for s in self.shapes],
        )

    @classmethod
    def from_config(cls, config: SceneConfig) -> "SceneManager":
        """Build a new scene from a SceneConfig. The result is not frozen."""
        scene = cls()
        if config.camera is not None:
            scene.set_camera(config.camera)
        for light in config.lights:
            scene.add_light(light.position, light.intensity)
        for shape in config.shapes:
            scene.add_shape(shape.kind, shape.material, shape.transform)
        return scene

    def to_dict(self) -> dict[str, Any]:
        """Export the scene as plain Python data (lists, dicts, numbers)."""
        return {
            "camera": self.camera.to_dict() if self.camera is not None else None,
            "lights": [
                {"at": list(l.position), "intensity": list(l.intensity)} for l in self.lights
            ],
            "shapes": [
                {
                    "kind": s.kind.name.lower(),
                    "material": s.material.to_dict(),
                    "transform": [list(op) for op in s.transform],
                }
                for s in self.shapes
            ],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SceneManager":
        """Build a new scene from the output of to_dict().

        Raises:
            ConfigurationError: If any element is invalid.
        """
        unknown = set(data) - {"camera", "lights", "shapes"}
        if unknown:
            raise ConfigurationError(f"Unknown scene keys: {', '.join(sorted(unknown))}")

        entities: list[dict[str, Any]] = []
        if data.get("camera") is not None:
            entities.append({**data["camera"], "add": "camera"})
        for light in data.get("lights", []):
            entities.append({**light, "add": "light"})
        for shape in data.get("shapes", []):
            entry = {k: v for k, v in shape.items() if k != "kind"}
            entry["add"] = shape.get("kind")
            if entry.get("material") is None:
                entry.pop("material", None)
            entities.append(entry)
        return cls.from_entities(entities)

    @classmethod
    def from_entities(cls, entities: Sequence[Mapping[str, Any]]) -> "SceneManager":
        """Build a new scene from a scene-description entity list.

        Each entity is a mapping whose ``add`` key names what it adds:

        - ``camera``: width, height, field-of-view, from, to, up
        - ``light``: at, intensity
        - ``sphere`` / ``plane``: optional material and transform

        Raises:
            ConfigurationError: If any entity is invalid; the message names
                the entity's position in the list.
        """
        config = SceneConfig()
        for position, entity in enumerate(entities):
            try:
                _parse_entity(entity, config)
            except ConfigurationError as exc:
                raise ConfigurationError(f"Entity {position}: {exc}") from exc
        return cls.from_config(config)


def _parse_entity(entity: Mapping[str, Any], config: SceneConfig) -> None:
    if not isinstance(entity, Mapping) or "add" not in entity:
        raise ConfigurationError(f"expected a mapping with an 'add' key, got {entity!r}")

    what = str(entity["add"]).lower()
    if what == "camera":
        if config.camera is not None:
            raise ConfigurationError("a scene has exactly one camera")
        config.camera = PinholeCamera.from_dict(entity)
    elif what == "light":
        unknown = set(entity) - {"add", "at", "intensity"}
        if unknown:
            raise ConfigurationError(f"unknown light keys: {', '.join(sorted(unknown))}")
        if "at" not in entity:
            raise ConfigurationError("light is missing 'at'")
        config.lights.append(
            LightInfo(
                position=_triple(entity["at"], "light position"),
                intensity=_triple(entity.get("intensity", (1.0, 1.0, 1.0)), "light intensity"),
            )
        )
    else:
        try:
            kind = ShapeKind.parse(what)
        except ValueError as exc:
            raise ConfigurationError(str(exc)) from exc
        unknown = set(entity) - {"add", "material", "transform"}
        if unknown:
            raise ConfigurationError(f"unknown {what} keys: {', '.join(sorted(unknown))}")
        material_data = entity.get("material")
        if material_data is None:
            material_data = {}
        material = (
            material_data if isinstance(material_data, Material) else Material.from_dict(material_data)
        )
        transform = entity.get("transform")
        if transform is None:
            transform = ()
        elif isinstance(transform, (str, bytes)) or not isinstance(transform, Sequence):
            raise ConfigurationError(f"{what} transform must be a list of operations, got {transform!r}")
        config.shapes.append(ShapeInfo(kind=kind, material=material, transform=tuple(transform)))


def _upload_shape(info: ShapeInfo) -> None:
    """Mirror one shape and its material into the device fields."""
    material_id = add_material(info.material)
    add_shape(info.kind, info.compiled, material_id)
