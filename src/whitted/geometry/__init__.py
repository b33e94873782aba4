"""Geometry module for shape primitives.

Components:
    sphere: Unit sphere with robust ray-sphere intersection
    plane: Infinite x-z plane
    shape: ShapeKind tags and dispatch over the closed set of primitives

All intersection routines work in object space and are Taichi functions
(@ti.func) so they can run inside the parallel render kernel. They report
every root, including negative ones; hit selection happens in the scene
intersector.
"""

from .plane import intersect_plane, plane_normal
from .shape import ShapeKind, local_intersect, local_normal
from .sphere import intersect_sphere, sphere_normal

__all__ = [
    "ShapeKind",
    "local_intersect",
    "local_normal",
    "intersect_sphere",
    "sphere_normal",
    "intersect_plane",
    "plane_normal",
]
