"""Phong surface materials with optional procedural patterns.

A Material is a frozen configuration object with every field defaulted,
so partially specified materials are always complete. Materials are
uploaded to Structure-of-Arrays Taichi fields indexed by material id and
read back on the device as a SurfaceMaterial.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from whitted.materials.material import Material, add_material
    >>> glass = Material(transparency=1.0, refractive_index=1.5)
    >>> mat_id = add_material(glass)
"""

from collections.abc import Mapping
from dataclasses import asdict, dataclass, replace
from typing import Any

import taichi as ti
import taichi.math as tm

from whitted.core import linalg
from whitted.errors import ConfigurationError
from whitted.materials.pattern import Color, Pattern, PatternType, parse_color, pattern_at

vec3 = tm.vec3


@dataclass(frozen=True)
class Material:
    """Phong material parameters.

    Attributes:
        color: Base RGB color, used when no pattern is set.
        ambient: Ambient coefficient (>= 0).
        diffuse: Lambertian coefficient (>= 0).
        specular: Specular coefficient (>= 0).
        shininess: Specular exponent (> 0).
        reflectivity: Weight of the mirror reflection in [0, 1].
        transparency: Weight of the refracted ray in [0, 1].
        refractive_index: Index of refraction of the interior (> 0).
        pattern: Optional pattern overriding color.
    """

    color: Color = (1.0, 1.0, 1.0)
    ambient: float = 0.1
    diffuse: float = 0.9
    specular: float = 0.9
    shininess: float = 200.0
    reflectivity: float = 0.0
    transparency: float = 0.0
    refractive_index: float = 1.0
    pattern: Pattern | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "color", parse_color(self.color, "material color"))
        self.validate()

    def validate(self) -> None:
        """Check value ranges.

        Raises:
            ConfigurationError: If any coefficient is out of range.
        """
        for name in ("ambient", "diffuse", "specular"):
            if getattr(self, name) < 0.0:
                raise ConfigurationError(f"Material {name} must be >= 0, got {getattr(self, name)}")
        if self.shininess <= 0.0:
            raise ConfigurationError(f"Material shininess must be > 0, got {self.shininess}")
        for name in ("reflectivity", "transparency"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ConfigurationError(f"Material {name} must be in [0, 1], got {value}")
        if self.refractive_index <= 0.0:
            raise ConfigurationError(
                f"Material refractive_index must be > 0, got {self.refractive_index}"
            )

    def with_changes(self, **changes: Any) -> "Material":
        """Return a copy with some fields replaced."""
        return replace(self, **changes)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Material":
        """Build a material from a scene-description mapping.

        Keys may use hyphens or underscores, and ``colour`` is accepted for
        ``color``. ``reflective`` is accepted for ``reflectivity``.

        Raises:
            ConfigurationError: On an unknown key or invalid value.
        """
        if not isinstance(data, Mapping):
            raise ConfigurationError(f"Material must be a mapping, got {data!r}")
        aliases = {"colour": "color", "reflective": "reflectivity"}
        scalar_keys = {
            "ambient",
            "diffuse",
            "specular",
            "shininess",
            "reflectivity",
            "transparency",
            "refractive_index",
        }
        kwargs: dict[str, Any] = {}
        for key, value in data.items():
            name = str(key).replace("-", "_")
            name = aliases.get(name, name)
            if name == "color":
                kwargs["color"] = value
            elif name == "pattern":
                if value is not None and not isinstance(value, Pattern):
                    value = Pattern.from_dict(value)
                kwargs["pattern"] = value
            elif name in scalar_keys:
                try:
                    kwargs[name] = float(value)
                except (TypeError, ValueError) as exc:
                    raise ConfigurationError(f"Material {key} must be a number, got {value!r}") from exc
            else:
                raise ConfigurationError(f"Unknown material key {key!r}")
        return cls(**kwargs)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["color"] = list(self.color)
        data["pattern"] = self.pattern.to_dict() if self.pattern is not None else None
        return data


@ti.dataclass
class SurfaceMaterial:
    """Device-side view of a material.

    Attributes mirror Material; pattern_type is a PatternType value.
    """

    color: vec3
    ambient: ti.f32
    diffuse: ti.f32
    specular: ti.f32
    shininess: ti.f32
    reflectivity: ti.f32
    transparency: ti.f32
    refractive_index: ti.f32
    pattern_type: ti.i32


# =============================================================================
# Material Storage (Structure of Arrays)
# =============================================================================

MAX_MATERIALS = 256

material_colors = ti.Vector.field(3, dtype=ti.f32, shape=MAX_MATERIALS)
material_ambient = ti.field(dtype=ti.f32, shape=MAX_MATERIALS)
material_diffuse = ti.field(dtype=ti.f32, shape=MAX_MATERIALS)
material_specular = ti.field(dtype=ti.f32, shape=MAX_MATERIALS)
material_shininess = ti.field(dtype=ti.f32, shape=MAX_MATERIALS)
material_reflectivity = ti.field(dtype=ti.f32, shape=MAX_MATERIALS)
material_transparency = ti.field(dtype=ti.f32, shape=MAX_MATERIALS)
material_refractive_index = ti.field(dtype=ti.f32, shape=MAX_MATERIALS)

# Pattern parameters; pattern_inverses maps object space to pattern space
pattern_types = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
pattern_color_a = ti.Vector.field(3, dtype=ti.f32, shape=MAX_MATERIALS)
pattern_color_b = ti.Vector.field(3, dtype=ti.f32, shape=MAX_MATERIALS)
pattern_inverses = ti.Matrix.field(4, 4, dtype=ti.f32, shape=MAX_MATERIALS)

num_materials = ti.field(dtype=ti.i32, shape=())


def clear_materials() -> None:
    """Remove all materials. Field data is overwritten by later adds."""
    num_materials[None] = 0


def get_material_count() -> int:
    return int(num_materials[None])


def add_material(material: Material) -> int:
    """Upload a material and return its id.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ConfigurationError: If the pattern transform is singular.
    """
    idx = num_materials[None]
    if idx >= MAX_MATERIALS:
        raise RuntimeError(f"Maximum number of materials ({MAX_MATERIALS}) exceeded")

    pattern_type = PatternType.NONE
    color_a: Color = material.color
    color_b: Color = (0.0, 0.0, 0.0)
    pattern_inverse = linalg.identity().tolist()
    if material.pattern is not None:
        pattern_type = material.pattern.pattern_type
        color_a = material.pattern.color_a
        color_b = material.pattern.color_b
        pattern_inverse = material.pattern.compiled_transform().inverse.tolist()

    material_colors[idx] = list(material.color)
    material_ambient[idx] = material.ambient
    material_diffuse[idx] = material.diffuse
    material_specular[idx] = material.specular
    material_shininess[idx] = material.shininess
    material_reflectivity[idx] = material.reflectivity
    material_transparency[idx] = material.transparency
    material_refractive_index[idx] = material.refractive_index
    pattern_types[idx] = int(pattern_type)
    pattern_color_a[idx] = list(color_a)
    pattern_color_b[idx] = list(color_b)
    pattern_inverses[idx] = pattern_inverse

    num_materials[None] = idx + 1
    return idx


@ti.func
def get_surface_material(material_id: ti.i32) -> SurfaceMaterial:
    """Read a material from storage inside a Taichi kernel."""
    return SurfaceMaterial(
        color=material_colors[material_id],
        ambient=material_ambient[material_id],
        diffuse=material_diffuse[material_id],
        specular=material_specular[material_id],
        shininess=material_shininess[material_id],
        reflectivity=material_reflectivity[material_id],
        transparency=material_transparency[material_id],
        refractive_index=material_refractive_index[material_id],
        pattern_type=pattern_types[material_id],
    )


@ti.func
def material_color_at(material_id: ti.i32, object_point: vec3) -> vec3:
    """Surface color of a material at an object-space point.

    Patterned materials are evaluated in pattern space; others return the
    base color.
    """
    color = material_colors[material_id]
    pattern_type = pattern_types[material_id]
    if pattern_type != int(PatternType.NONE):
        m = pattern_inverses[material_id]
        p = m @ tm.vec4(object_point.x, object_point.y, object_point.z, 1.0)
        color = pattern_at(
            pattern_type,
            pattern_color_a[material_id],
            pattern_color_b[material_id],
            vec3(p[0], p[1], p[2]),
        )
    return color
