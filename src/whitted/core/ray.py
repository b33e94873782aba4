"""Ray data structure and vector utilities for Taichi kernels.

This module provides the Ray dataclass together with the small set of
vector operations the Whitted tracer needs on the device: evaluating a ray,
moving rays and normals between world and object space, mirror reflection,
Snell refraction and the Schlick Fresnel approximation.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> origin = ti.math.vec3(0.0, 0.0, -5.0)
    >>> direction = ti.math.vec3(0.0, 0.0, 1.0)
    >>> ray = Ray(origin=origin, direction=direction)
    >>> point = ray_at(ray, 4.0)  # Point 4 units along the ray
"""

import taichi as ti
import taichi.math as tm

# Type aliases using Taichi's math module
vec3 = tm.vec3
vec4 = tm.vec4
mat4 = tm.mat4


@ti.dataclass
class Ray:
    """A ray with an origin point and direction vector.

    Attributes:
        origin: The starting point of the ray (vec3).
        direction: The direction vector of the ray (vec3). Camera, reflected
            and refracted rays are unit length; object-space rays are not.
    """

    origin: vec3
    direction: vec3


@ti.func
def ray_at(ray: Ray, t: ti.f32) -> vec3:
    """Compute the point along the ray at parameter t.

    Args:
        ray: The ray to evaluate.
        t: The parameter value. Positive values are in front of the origin.

    Returns:
        The point ray.origin + t * ray.direction.
    """
    return ray.origin + t * ray.direction


@ti.func
def make_ray(origin: vec3, direction: vec3) -> Ray:
    """Create a ray from origin and direction inside a Taichi kernel."""
    return Ray(origin=origin, direction=direction)


# =============================================================================
# Affine Transforms
# =============================================================================


@ti.func
def transform_point(m: mat4, p: vec3) -> vec3:
    """Apply a 4x4 matrix to a point (w=1, translation applies)."""
    r = m @ vec4(p.x, p.y, p.z, 1.0)
    return vec3(r[0], r[1], r[2])


@ti.func
def transform_direction(m: mat4, v: vec3) -> vec3:
    """Apply a 4x4 matrix to a direction (w=0, translation ignored)."""
    r = m @ vec4(v.x, v.y, v.z, 0.0)
    return vec3(r[0], r[1], r[2])


@ti.func
def transform_ray(m: mat4, ray: Ray) -> Ray:
    """Transform a ray by a matrix.

    The origin is treated as a point and the direction as a vector. The
    direction is left unnormalized so that t-values stay comparable
    between world and object space.

    Args:
        m: The matrix to apply (usually a shape's world-to-object inverse).
        ray: The ray to transform.

    Returns:
        The transformed ray.
    """
    return Ray(
        origin=transform_point(m, ray.origin),
        direction=transform_direction(m, ray.direction),
    )


@ti.func
def transform_normal(normal_matrix: mat4, n: vec3) -> vec3:
    """Map an object-space normal to world space and renormalize.

    Args:
        normal_matrix: The transpose of the shape's inverse transform.
        n: The object-space normal.

    Returns:
        The unit world-space normal.
    """
    return tm.normalize(transform_direction(normal_matrix, n))


# =============================================================================
# Reflection and Refraction
# =============================================================================


@ti.func
def reflect(incident: vec3, normal: vec3) -> vec3:
    """Reflect an incident vector about a normal.

    Args:
        incident: The incoming direction vector (pointing toward the surface).
        normal: The surface normal (should be normalized).

    Returns:
        The reflected direction vector.
    """
    return incident - 2.0 * tm.dot(incident, normal) * normal


@ti.func
def refract(eyev: vec3, normal: vec3, n1: ti.f32, n2: ti.f32):
    """Refract through a surface using Snell's law.

    Args:
        eyev: Unit vector from the surface back toward the ray origin.
        normal: Unit surface normal on the same side as eyev.
        n1: Refractive index of the medium being exited.
        n2: Refractive index of the medium being entered.

    Returns:
        Tuple of (direction, ok). ``ok`` is 0 under total internal
        reflection, in which case direction is the zero vector.
    """
    n_ratio = n1 / n2
    cos_i = tm.dot(eyev, normal)
    sin2_t = n_ratio * n_ratio * (1.0 - cos_i * cos_i)
    direction = vec3(0.0, 0.0, 0.0)
    ok = 0
    if sin2_t <= 1.0:
        cos_t = ti.sqrt(1.0 - sin2_t)
        direction = normal * (n_ratio * cos_i - cos_t) - eyev * n_ratio
        ok = 1
    return direction, ok


@ti.func
def schlick_fresnel(cosine: ti.f32, ref_idx: ti.f32) -> ti.f32:
    """Schlick's approximation for a given cosine and index ratio n1/n2."""
    r0 = ((1.0 - ref_idx) / (1.0 + ref_idx)) ** 2
    return r0 + (1.0 - r0) * ((1.0 - cosine) ** 5)


@ti.func
def schlick(eyev: vec3, normal: vec3, n1: ti.f32, n2: ti.f32) -> ti.f32:
    """Fraction of light reflected at a surface (Schlick approximation).

    When leaving a denser medium the cosine of the transmitted angle is
    used, and total internal reflection yields 1.0.

    Args:
        eyev: Unit vector toward the viewer.
        normal: Unit surface normal on the viewer's side.
        n1: Refractive index of the medium being exited.
        n2: Refractive index of the medium being entered.

    Returns:
        Reflectance in [0, 1].
    """
    cosine = tm.dot(eyev, normal)
    reflectance = 1.0
    total_internal = 0
    if n1 > n2:
        n = n1 / n2
        sin2_t = n * n * (1.0 - cosine * cosine)
        if sin2_t > 1.0:
            total_internal = 1
        else:
            cosine = ti.sqrt(1.0 - sin2_t)
    if total_internal == 0:
        reflectance = schlick_fresnel(cosine, n1 / n2)
    return reflectance
