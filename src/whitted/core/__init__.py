"""Core rendering module.

Components:
    linalg: Host-side tuples and 4x4 matrices (NumPy)
    transforms: Operation lists composed into object-to-world matrices
    ray: Ray data structure and device-side vector utilities
    shading: Phong lighting and the bounded reflection/refraction tracer
    renderer: The render(scene) entry point and framebuffer

The shading and renderer modules allocate Taichi fields on import and are
not imported here. Import them directly once Taichi is initialized:
    from whitted.core.renderer import render
"""

from .ray import (
    Ray,
    make_ray,
    mat4,
    ray_at,
    reflect,
    refract,
    schlick,
    schlick_fresnel,
    transform_direction,
    transform_normal,
    transform_point,
    transform_ray,
    vec3,
    vec4,
)
from .transforms import Transform, compose, invert_op

__all__ = [
    "Ray",
    "ray_at",
    "make_ray",
    "vec3",
    "vec4",
    "mat4",
    "transform_point",
    "transform_direction",
    "transform_ray",
    "transform_normal",
    "reflect",
    "refract",
    "schlick",
    "schlick_fresnel",
    "Transform",
    "compose",
    "invert_op",
]
