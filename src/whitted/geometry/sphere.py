"""Unit sphere primitive with robust ray-sphere intersection.

The sphere lives in object space: centered at the origin with radius 1.
Position and size come from the owning shape's transform, so the ray is
moved into object space before these functions are called.

The quadratic is solved with the robust formula from Ray Tracing Gems to
avoid catastrophic cancellation when b^2 is nearly equal to 4ac.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from whitted.geometry.sphere import intersect_sphere
    >>> # Use intersect_sphere within a Taichi kernel:
    >>> # count, t0, t1 = intersect_sphere(vec3(0, 0, -5), vec3(0, 0, 1))
"""

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.func
def _solve_quadratic_robust(h: ti.f32, a: ti.f32, c: ti.f32, sqrt_d: ti.f32):
    """Solve quadratic equation using robust formula from Ray Tracing Gems.

    Solves a*t^2 + 2*h*t + c = 0 using a numerically stable method.

    Args:
        h: Half of the linear coefficient.
        a: Quadratic coefficient.
        c: Constant term.
        sqrt_d: Square root of discriminant (h^2 - a*c).

    Returns:
        Tuple of (t0, t1) where t0 <= t1.
    """
    # q = -(h + sign(h) * sqrt(discriminant))
    sign_h = ti.select(h < 0.0, -1.0, 1.0)
    q = -(h + sign_h * sqrt_d)

    t0 = 0.0
    t1 = 0.0

    if ti.abs(q) < 1e-10:
        # Tangent through the origin: fall back to the textbook formula
        t0 = (-h - sqrt_d) / a
        t1 = (-h + sqrt_d) / a
    else:
        t0 = q / a
        t1 = c / q

    if t0 > t1:
        temp = t0
        t0 = t1
        t1 = temp

    return t0, t1


@ti.func
def intersect_sphere(origin: vec3, direction: vec3):
    """Intersect an object-space ray with the unit sphere.

    Solves |origin + t * direction|^2 = 1. Both roots are reported even
    when negative (behind the origin); the caller decides which ones count
    as hits. A tangent ray reports the same t twice.

    Args:
        origin: Ray origin in object space.
        direction: Ray direction in object space (need not be normalized).

    Returns:
        Tuple of (count, t0, t1) with count 0 or 2 and t0 <= t1.
    """
    a = tm.dot(direction, direction)
    h = tm.dot(direction, origin)
    c = tm.dot(origin, origin) - 1.0
    discriminant = h * h - a * c

    count = 0
    t0 = 0.0
    t1 = 0.0
    if discriminant >= 0.0 and a > 0.0:
        t0, t1 = _solve_quadratic_robust(h, a, c, ti.sqrt(discriminant))
        count = 2

    return count, t0, t1


@ti.func
def sphere_normal(object_point: vec3) -> vec3:
    """Object-space normal of the unit sphere: the point itself."""
    return object_point
