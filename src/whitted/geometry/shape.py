"""Closed shape variant: kind tags and intersection/normal dispatch.

Every shape in a scene is one of a fixed set of kinds. Each kind provides
the same two capabilities in object space, local intersection and local
normal, and the dispatch below selects between them with a plain branch
on the kind tag inside the intersection loop.
"""

from enum import IntEnum

import taichi as ti
import taichi.math as tm

from whitted.geometry.plane import intersect_plane, plane_normal
from whitted.geometry.sphere import intersect_sphere, sphere_normal

vec3 = tm.vec3


class ShapeKind(IntEnum):
    """Supported primitive kinds.

    The integer values are stored in the shape kind field and compared
    inside Taichi functions.
    """

    SPHERE = 0
    PLANE = 1

    @classmethod
    def parse(cls, name: "str | ShapeKind") -> "ShapeKind":
        """Look up a kind by enum value or case-insensitive name.

        Raises:
            ValueError: If the name does not match a kind.
        """
        if isinstance(name, ShapeKind):
            return name
        try:
            return cls[str(name).upper()]
        except KeyError:
            valid = ", ".join(k.name.lower() for k in cls)
            raise ValueError(f"Unknown shape kind {name!r}; expected one of {valid}") from None


@ti.func
def local_intersect(kind: ti.i32, origin: vec3, direction: vec3):
    """Intersect an object-space ray with a primitive of the given kind.

    Args:
        kind: The ShapeKind value.
        origin: Ray origin in object space.
        direction: Ray direction in object space.

    Returns:
        Tuple of (count, t0, t1). Only the first ``count`` values are
        meaningful; roots may be negative.
    """
    count = 0
    t0 = 0.0
    t1 = 0.0
    if kind == int(ShapeKind.SPHERE):
        count, t0, t1 = intersect_sphere(origin, direction)
    elif kind == int(ShapeKind.PLANE):
        count, t0 = intersect_plane(origin, direction)
    return count, t0, t1


@ti.func
def local_normal(kind: ti.i32, object_point: vec3) -> vec3:
    """Object-space surface normal of a primitive at a point on it."""
    n = vec3(0.0, 1.0, 0.0)
    if kind == int(ShapeKind.SPHERE):
        n = sphere_normal(object_point)
    elif kind == int(ShapeKind.PLANE):
        n = plane_normal(object_point)
    return n
