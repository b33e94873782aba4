"""Procedural color patterns evaluated in pattern space.

A pattern alternates between two colors. It carries its own transform,
applied after the owning shape's inverse transform, so the same pattern
can be scaled or rotated independently of the surface it decorates.

Patterns:
    STRIPE: alternates along x; even floor(x) gives color_a
    CHECKER: 3D checker; even floor(x) + floor(y) + floor(z) gives color_a
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import IntEnum
from typing import Any

import taichi as ti
import taichi.math as tm

from whitted.core.transforms import Transform, TransformOp
from whitted.errors import ConfigurationError

vec3 = tm.vec3

Color = tuple[float, float, float]


class PatternType(IntEnum):
    """Pattern discriminant stored per material."""

    NONE = 0
    STRIPE = 1
    CHECKER = 2


# Names accepted in scene descriptions
PATTERN_NAMES: dict[str, PatternType] = {
    "stripe": PatternType.STRIPE,
    "stripes": PatternType.STRIPE,
    "checker": PatternType.CHECKER,
    "checkers": PatternType.CHECKER,
    "3d-check": PatternType.CHECKER,
}


def parse_color(value: Any, what: str) -> Color:
    """Validate an RGB triple.

    Raises:
        ConfigurationError: If the value is not three finite numbers.
    """
    if isinstance(value, (str, bytes)) or not isinstance(value, Sequence) or len(value) != 3:
        raise ConfigurationError(f"{what} must be an [r, g, b] triple, got {value!r}")
    try:
        r, g, b = (float(c) for c in value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"{what} must contain numbers, got {value!r}") from exc
    return (r, g, b)


@dataclass(frozen=True)
class Pattern:
    """A two-color procedural pattern.

    Attributes:
        pattern_type: Which pattern to evaluate.
        color_a: Color of the even cells or stripes.
        color_b: Color of the odd cells or stripes.
        transform: Operation list mapping pattern space to object space.
    """

    pattern_type: PatternType
    color_a: Color = (1.0, 1.0, 1.0)
    color_b: Color = (0.0, 0.0, 0.0)
    transform: tuple[TransformOp, ...] = ()

    def __post_init__(self) -> None:
        if self.pattern_type == PatternType.NONE:
            raise ConfigurationError("Pattern type NONE cannot be instantiated; omit the pattern")
        object.__setattr__(self, "color_a", parse_color(self.color_a, "pattern color_a"))
        object.__setattr__(self, "color_b", parse_color(self.color_b, "pattern color_b"))
        object.__setattr__(self, "transform", tuple(tuple(op) for op in self.transform))
        self.compiled_transform()

    def compiled_transform(self) -> Transform:
        return Transform.from_ops(self.transform)

    @classmethod
    def stripe(cls, color_a: Color, color_b: Color, transform: Sequence[TransformOp] = ()) -> "Pattern":
        return cls(PatternType.STRIPE, color_a, color_b, tuple(transform))

    @classmethod
    def checker(cls, color_a: Color, color_b: Color, transform: Sequence[TransformOp] = ()) -> "Pattern":
        return cls(PatternType.CHECKER, color_a, color_b, tuple(transform))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Pattern":
        """Build a pattern from a scene-description mapping.

        Accepts ``type`` (stripe, checker or 3d-check), ``colour-a`` /
        ``color-a`` / ``color_a`` and the same for b, and ``transform``.

        Raises:
            ConfigurationError: On an unknown type or key.
        """
        if not isinstance(data, Mapping):
            raise ConfigurationError(f"Pattern must be a mapping, got {data!r}")
        known = {"type", "transform"}
        values: dict[str, Any] = {}
        for key, value in data.items():
            normalized = str(key).replace("colour", "color").replace("-", "_")
            if key in known:
                continue
            if normalized not in ("color_a", "color_b"):
                raise ConfigurationError(f"Unknown pattern key {key!r}")
            values[normalized] = value

        type_name = str(data.get("type", "")).lower()
        if type_name not in PATTERN_NAMES:
            raise ConfigurationError(
                f"Unknown pattern type {data.get('type')!r}; "
                f"expected one of {', '.join(sorted(PATTERN_NAMES))}"
            )
        return cls(
            PATTERN_NAMES[type_name],
            values.get("color_a", (1.0, 1.0, 1.0)),
            values.get("color_b", (0.0, 0.0, 0.0)),
            tuple(data.get("transform", ())),
        )

    def to_dict(self) -> dict[str, Any]:
        type_name = "stripe" if self.pattern_type == PatternType.STRIPE else "checker"
        return {
            "type": type_name,
            "color-a": list(self.color_a),
            "color-b": list(self.color_b),
            "transform": [list(op) for op in self.transform],
        }


# =============================================================================
# Pattern Evaluation (Taichi-compatible)
# =============================================================================


@ti.func
def _is_even(value: ti.f32) -> ti.i32:
    """Return 1 if an integer-valued float is even (negative values included)."""
    return ti.abs(value - 2.0 * ti.floor(value / 2.0)) < 0.5


@ti.func
def stripe_at(color_a: vec3, color_b: vec3, p: vec3) -> vec3:
    """Stripe color at a pattern-space point; constant in y and z."""
    color = color_b
    if _is_even(ti.floor(p.x)):
        color = color_a
    return color


@ti.func
def checker_at(color_a: vec3, color_b: vec3, p: vec3) -> vec3:
    """3D checker color at a pattern-space point."""
    color = color_b
    if _is_even(ti.floor(p.x) + ti.floor(p.y) + ti.floor(p.z)):
        color = color_a
    return color


@ti.func
def pattern_at(pattern_type: ti.i32, color_a: vec3, color_b: vec3, p: vec3) -> vec3:
    """Evaluate a pattern of the given type at a pattern-space point.

    Returns color_a for PatternType.NONE.
    """
    color = color_a
    if pattern_type == int(PatternType.STRIPE):
        color = stripe_at(color_a, color_b, p)
    elif pattern_type == int(PatternType.CHECKER):
        color = checker_at(color_a, color_b, p)
    return color
