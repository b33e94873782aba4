"""Infinite plane primitive.

In object space the plane is the x-z plane (y = 0) with its normal along
+y. Orientation and offset come from the owning shape's transform.
"""

import taichi as ti
import taichi.math as tm

vec3 = tm.vec3

# Rays whose object-space |direction.y| is below this are parallel
PARALLEL_EPSILON = 1e-6


@ti.func
def intersect_plane(origin: vec3, direction: vec3):
    """Intersect an object-space ray with the x-z plane.

    A ray parallel to the plane never hits it, including one lying inside
    the plane.

    Args:
        origin: Ray origin in object space.
        direction: Ray direction in object space.

    Returns:
        Tuple of (count, t) with count 0 or 1.
    """
    count = 0
    t = 0.0
    if ti.abs(direction.y) >= PARALLEL_EPSILON:
        t = -origin.y / direction.y
        count = 1
    return count, t


@ti.func
def plane_normal(object_point: vec3) -> vec3:
    return vec3(0.0, 1.0, 0.0)
