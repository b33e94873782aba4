"""Whitted illumination: Phong shading with reflection and refraction.

The color seen along a ray is the Phong shading of the nearest surface
plus, while bounces remain, the color seen along the mirror-reflected ray
scaled by the material's reflectivity and the color seen along the
refracted ray scaled by its transparency. When a material is both
reflective and transparent the two are weighted by the Schlick
reflectance R and 1 - R. Rays that escape return the background color.

Taichi functions are inlined and cannot recurse, so the recursion is run
with a small per-pixel work stack. Each entry carries a ray, the product
of the weights on the path from the camera, and the bounces left. The
final color is the weighted sum of the local shading at every node of
the ray tree, which is exactly what the recursive formulation computes.

Key features:
    - Phong lighting per point light with hard shadows
    - Stripe and checker patterns through the material lookup
    - Mirror reflection from the over-point
    - Snell refraction from the under-point; total internal reflection
      contributes nothing
    - Schlick blending of reflection and refraction
    - No clamping; the result may exceed 1.0
"""

from collections.abc import Sequence

import taichi as ti
import taichi.math as tm

from whitted.core.ray import reflect, refract, schlick, transform_point
from whitted.materials.material import (
    SurfaceMaterial,
    get_surface_material,
    material_color_at,
)
from whitted.scene.intersection import (
    Computations,
    intersect_scene,
    is_shadowed,
    light_intensities,
    light_positions,
    num_lights,
    prepare_computations,
    shape_inverses,
    shape_material_ids,
)

vec3 = tm.vec3

# =============================================================================
# Shading Constants
# =============================================================================

# Default number of reflection/refraction bounces
DEFAULT_MAX_DEPTH = 5

# Hard ceiling on bounces; sizes the per-pixel work stack
MAX_RECURSION_DEPTH = 8

# A depth-first walk of a binary tree of height D holds at most D + 1 entries
STACK_SIZE = MAX_RECURSION_DEPTH + 2

# Color returned by rays that hit nothing
_background = ti.Vector.field(3, dtype=ti.f32, shape=())


def set_background(color: Sequence[float]) -> None:
    """Set the color returned by rays that escape the scene."""
    _background[None] = [float(color[0]), float(color[1]), float(color[2])]


def get_background() -> tuple[float, float, float]:
    c = _background[None]
    return (float(c[0]), float(c[1]), float(c[2]))


# =============================================================================
# Local Shading
# =============================================================================


@ti.func
def lighting(
    material: SurfaceMaterial,
    surface_color: vec3,
    light_position: vec3,
    light_intensity: vec3,
    point: vec3,
    eyev: vec3,
    normalv: vec3,
    in_shadow: ti.i32,
) -> vec3:
    """Phong reflection model for one point light.

    Ambient is always added. Diffuse and specular are skipped when the
    point is shadowed or the light is behind the surface, and specular is
    skipped when the reflected light points away from the eye.

    Args:
        material: The surface material.
        surface_color: Material or pattern color at the point.
        light_position: World-space light position.
        light_intensity: RGB light intensity.
        point: World-space point being shaded.
        eyev: Unit vector toward the eye.
        normalv: Unit surface normal.
        in_shadow: 1 if the light is occluded.

    Returns:
        The RGB contribution of this light.
    """
    effective_color = surface_color * light_intensity
    lightv = tm.normalize(light_position - point)
    ambient = effective_color * material.ambient

    diffuse = vec3(0.0, 0.0, 0.0)
    specular = vec3(0.0, 0.0, 0.0)
    if in_shadow == 0:
        light_dot_normal = tm.dot(lightv, normalv)
        if light_dot_normal >= 0.0:
            diffuse = effective_color * material.diffuse * light_dot_normal
            reflectv = reflect(-lightv, normalv)
            reflect_dot_eye = tm.dot(reflectv, eyev)
            if reflect_dot_eye > 0.0:
                factor = ti.pow(reflect_dot_eye, material.shininess)
                specular = light_intensity * material.specular * factor

    return ambient + diffuse + specular


@ti.func
def surface_color(shape_id: ti.i32, world_point: vec3) -> vec3:
    """Color of a shape's material at a world point, patterns included."""
    object_point = transform_point(shape_inverses[shape_id], world_point)
    return material_color_at(shape_material_ids[shape_id], object_point)


@ti.func
def shade_surface(comps: Computations, material: SurfaceMaterial) -> vec3:
    """Sum the Phong lighting of every light at an intersection.

    Each light gets its own shadow test from the over-point.
    """
    base_color = surface_color(comps.shape_id, comps.over_point)
    color = vec3(0.0, 0.0, 0.0)
    for light in range(num_lights[None]):
        light_position = light_positions[light]
        shadowed = is_shadowed(comps.over_point, light_position)
        color += lighting(
            material,
            base_color,
            light_position,
            light_intensities[light],
            comps.over_point,
            comps.eyev,
            comps.normalv,
            shadowed,
        )
    return color


@ti.func
def secondary_weights(comps: Computations, material: SurfaceMaterial):
    """Weights of the reflected and refracted rays spawned at a hit.

    Returns:
        Tuple of (reflect_weight, refract_weight).
    """
    reflect_weight = material.reflectivity
    refract_weight = material.transparency
    if material.reflectivity > 0.0 and material.transparency > 0.0:
        reflectance = schlick(comps.eyev, comps.normalv, comps.n1, comps.n2)
        reflect_weight = material.reflectivity * reflectance
        refract_weight = material.transparency * (1.0 - reflectance)
    return reflect_weight, refract_weight


# =============================================================================
# Ray Tree Evaluation
# =============================================================================


@ti.func
def color_at(origin: vec3, direction: vec3, remaining: ti.i32) -> vec3:
    """Color seen along a ray, following up to ``remaining`` bounces.

    Args:
        origin: Ray origin in world space.
        direction: Unit ray direction in world space.
        remaining: Reflection/refraction bounces allowed below this ray.

    Returns:
        The unclamped RGB color.
    """
    stack_origin = ti.Matrix.zero(ti.f32, STACK_SIZE, 3)
    stack_direction = ti.Matrix.zero(ti.f32, STACK_SIZE, 3)
    stack_weight = ti.Matrix.zero(ti.f32, STACK_SIZE, 3)
    stack_remaining = ti.Vector.zero(ti.i32, STACK_SIZE)

    for c in ti.static(range(3)):
        stack_origin[0, c] = origin[c]
        stack_direction[0, c] = direction[c]
        stack_weight[0, c] = 1.0
    stack_remaining[0] = remaining
    sp = 1

    color = vec3(0.0, 0.0, 0.0)
    while sp > 0:
        sp -= 1
        ray_origin = vec3(0.0, 0.0, 0.0)
        ray_direction = vec3(0.0, 0.0, 0.0)
        weight = vec3(0.0, 0.0, 0.0)
        depth = 0
        for k in ti.static(range(STACK_SIZE)):
            if k == sp:
                ray_origin = vec3(stack_origin[k, 0], stack_origin[k, 1], stack_origin[k, 2])
                ray_direction = vec3(
                    stack_direction[k, 0], stack_direction[k, 1], stack_direction[k, 2]
                )
                weight = vec3(stack_weight[k, 0], stack_weight[k, 1], stack_weight[k, 2])
                depth = stack_remaining[k]

        rec = intersect_scene(ray_origin, ray_direction)
        if rec.hit == 0:
            color += weight * _background[None]
        else:
            comps = prepare_computations(ray_origin, ray_direction, rec.t, rec.shape_id)
            material = get_surface_material(shape_material_ids[rec.shape_id])
            color += weight * shade_surface(comps, material)

            if depth > 0:
                reflect_weight, refract_weight = secondary_weights(comps, material)

                if material.reflectivity > 0.0 and sp < STACK_SIZE:
                    child_weight = weight * reflect_weight
                    for k in ti.static(range(STACK_SIZE)):
                        if k == sp:
                            for c in ti.static(range(3)):
                                stack_origin[k, c] = comps.over_point[c]
                                stack_direction[k, c] = comps.reflectv[c]
                                stack_weight[k, c] = child_weight[c]
                            stack_remaining[k] = depth - 1
                    sp += 1

                if material.transparency > 0.0 and sp < STACK_SIZE:
                    refracted, ok = refract(comps.eyev, comps.normalv, comps.n1, comps.n2)
                    if ok == 1:
                        child_weight = weight * refract_weight
                        for k in ti.static(range(STACK_SIZE)):
                            if k == sp:
                                for c in ti.static(range(3)):
                                    stack_origin[k, c] = comps.under_point[c]
                                    stack_direction[k, c] = refracted[c]
                                    stack_weight[k, c] = child_weight[c]
                                stack_remaining[k] = depth - 1
                        sp += 1

    return color


# =============================================================================
# Python-callable Probes
# =============================================================================

# Inputs: 0 origin/point, 1 direction/eyev, 2 normalv, 3 light position,
# 4 light intensity
_query_vectors = ti.Vector.field(3, dtype=ti.f32, shape=5)
_result_color = ti.Vector.field(3, dtype=ti.f32, shape=())
_result_flag = ti.field(dtype=ti.i32, shape=())


def _set_query_vector(slot: int, v: Sequence[float]) -> None:
    _query_vectors[slot] = [float(v[0]), float(v[1]), float(v[2])]


def _result_tuple() -> tuple[float, float, float]:
    c = _result_color[None]
    return (float(c[0]), float(c[1]), float(c[2]))


# The single-iteration outer loop keeps the scene loops serial
@ti.kernel
def _trace(remaining: ti.i32):
    for _ in range(1):
        _result_color[None] = color_at(_query_vectors[0], _query_vectors[1], remaining)


@ti.kernel
def _light(shape_id: ti.i32, in_shadow: ti.i32):
    for _ in range(1):
        point = _query_vectors[0]
        material = get_surface_material(shape_material_ids[shape_id])
        _result_color[None] = lighting(
            material,
            surface_color(shape_id, point),
            _query_vectors[3],
            _query_vectors[4],
            point,
            _query_vectors[1],
            _query_vectors[2],
            in_shadow,
        )


@ti.kernel
def _surface(shape_id: ti.i32):
    for _ in range(1):
        _result_color[None] = surface_color(shape_id, _query_vectors[0])


@ti.kernel
def _refracted(t: ti.f32, shape_id: ti.i32):
    for _ in range(1):
        comps = prepare_computations(_query_vectors[0], _query_vectors[1], t, shape_id)
        direction, ok = refract(comps.eyev, comps.normalv, comps.n1, comps.n2)
        _result_color[None] = direction
        _result_flag[None] = ok


def trace_ray(
    origin: Sequence[float], direction: Sequence[float], remaining: int = DEFAULT_MAX_DEPTH
) -> tuple[float, float, float]:
    """Color seen along a single ray in the current scene.

    This is a Python-callable function for testing. For production
    rendering use whitted.core.renderer.render().

    Args:
        origin: Ray origin.
        direction: Unit ray direction.
        remaining: Bounces allowed (0 disables reflection and refraction).

    Returns:
        Tuple of (R, G, B).

    Raises:
        ValueError: If remaining is outside [0, MAX_RECURSION_DEPTH].
    """
    if not 0 <= remaining <= MAX_RECURSION_DEPTH:
        raise ValueError(f"remaining must be in [0, {MAX_RECURSION_DEPTH}], got {remaining}")
    _set_query_vector(0, origin)
    _set_query_vector(1, direction)
    _trace(remaining)
    return _result_tuple()


def compute_lighting(
    shape_index: int,
    light_position: Sequence[float],
    light_intensity: Sequence[float],
    point: Sequence[float],
    eyev: Sequence[float],
    normalv: Sequence[float],
    in_shadow: bool = False,
) -> tuple[float, float, float]:
    """Phong lighting of one light on a shape's material at a point."""
    _set_query_vector(0, point)
    _set_query_vector(1, eyev)
    _set_query_vector(2, normalv)
    _set_query_vector(3, light_position)
    _set_query_vector(4, light_intensity)
    _light(shape_index, int(in_shadow))
    return _result_tuple()


def surface_color_at(shape_index: int, point: Sequence[float]) -> tuple[float, float, float]:
    """Material or pattern color of a shape at a world point."""
    _set_query_vector(0, point)
    _surface(shape_index)
    return _result_tuple()


def refracted_direction(
    origin: Sequence[float], direction: Sequence[float], t: float, shape_index: int
) -> tuple[float, float, float] | None:
    """Refracted direction at an intersection, or None on total internal reflection."""
    _set_query_vector(0, origin)
    _set_query_vector(1, direction)
    _refracted(float(t), shape_index)
    if _result_flag[None] == 0:
        return None
    return _result_tuple()
