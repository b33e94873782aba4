"""Scene-level storage and ray intersection queries.

Shapes and lights live in Structure-of-Arrays Taichi fields. Each shape
stores its kind, its world-to-object inverse, the inverse-transpose used
for normals and a material id. The intersector transforms the ray into
each shape's object space, asks the shape kind for its roots and keeps
the nearest one in front of the ray.

Queries:
    intersect_scene: nearest hit with t > EPSILON
    is_shadowed: any occluder between a point and a light
    prepare_computations: the shading context at a chosen intersection

Python-callable probes (intersect_all, compute_hit, point_is_shadowed)
run the same device code for a single ray and are meant for tests and
debugging.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from whitted.core.transforms import Transform
    >>> from whitted.geometry.shape import ShapeKind
    >>> from whitted.scene.intersection import add_shape, clear_scene, intersect_all
    >>> clear_scene()
    >>> add_shape(ShapeKind.SPHERE, Transform.identity(), material_id=0)
    >>> intersect_all((0, 0, -5), (0, 0, 1))
    [(4.0, 0), (6.0, 0)]
"""

from collections.abc import Sequence

import taichi as ti
import taichi.math as tm

from whitted.core.ray import reflect, transform_normal, transform_point, transform_direction
from whitted.core.transforms import Transform
from whitted.geometry.shape import ShapeKind, local_intersect, local_normal
from whitted.materials.material import material_refractive_index

vec3 = tm.vec3

# Hits closer than this are ignored; also the surface offset for secondary rays
EPSILON = 1e-4

# Upper bound for t when nothing is hit
T_MAX = 1e10

# Maximum number of shapes and lights supported in the scene
MAX_SHAPES = 256
MAX_LIGHTS = 16


@ti.dataclass
class SceneHit:
    """Nearest intersection along a ray.

    Attributes:
        hit: 1 if any shape was hit in front of the ray, 0 otherwise.
        t: Ray parameter of the hit. Only valid if hit == 1.
        shape_id: Index of the hit shape, -1 on a miss.
    """

    hit: ti.i32
    t: ti.f32
    shape_id: ti.i32


@ti.dataclass
class Computations:
    """Shading context at an intersection.

    Attributes:
        t: Ray parameter of the intersection.
        shape_id: Index of the intersected shape.
        point: World-space intersection point.
        over_point: Point nudged along the normal; origin of shadow and
            reflection rays.
        under_point: Point nudged against the normal; origin of refracted
            rays.
        eyev: Unit vector toward the ray origin.
        normalv: Unit world normal, flipped to face eyev.
        reflectv: Mirror direction of the incoming ray.
        inside: 1 if the ray origin is inside the shape.
        n1: Refractive index of the medium being exited.
        n2: Refractive index of the medium being entered.
    """

    t: ti.f32
    shape_id: ti.i32
    point: vec3
    over_point: vec3
    under_point: vec3
    eyev: vec3
    normalv: vec3
    reflectv: vec3
    inside: ti.i32
    n1: ti.f32
    n2: ti.f32


# Shape storage: Structure of Arrays layout for GPU efficiency
shape_kinds = ti.field(dtype=ti.i32, shape=MAX_SHAPES)
shape_inverses = ti.Matrix.field(4, 4, dtype=ti.f32, shape=MAX_SHAPES)
shape_normal_matrices = ti.Matrix.field(4, 4, dtype=ti.f32, shape=MAX_SHAPES)
shape_material_ids = ti.field(dtype=ti.i32, shape=MAX_SHAPES)
num_shapes = ti.field(dtype=ti.i32, shape=())

# Point lights
light_positions = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LIGHTS)
light_intensities = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LIGHTS)
num_lights = ti.field(dtype=ti.i32, shape=())


def clear_scene() -> None:
    """Remove all shapes and lights.

    Resets the counts to zero. Field data is overwritten by later adds.
    """
    num_shapes[None] = 0
    num_lights[None] = 0


def add_shape(kind: ShapeKind, transform: Transform, material_id: int) -> int:
    """Add a shape to the scene.

    Args:
        kind: The primitive kind.
        transform: Composed object-to-world transform.
        material_id: Id returned by add_material().

    Returns:
        The index of the added shape.

    Raises:
        RuntimeError: If the maximum number of shapes is exceeded.
    """
    idx = num_shapes[None]
    if idx >= MAX_SHAPES:
        raise RuntimeError(f"Maximum number of shapes ({MAX_SHAPES}) exceeded")
    shape_kinds[idx] = int(kind)
    shape_inverses[idx] = transform.inverse.tolist()
    shape_normal_matrices[idx] = transform.inverse_transpose.tolist()
    shape_material_ids[idx] = material_id
    num_shapes[None] = idx + 1
    return idx


def add_light(position: Sequence[float], intensity: Sequence[float]) -> int:
    """Add a point light to the scene.

    Raises:
        RuntimeError: If the maximum number of lights is exceeded.
    """
    idx = num_lights[None]
    if idx >= MAX_LIGHTS:
        raise RuntimeError(f"Maximum number of lights ({MAX_LIGHTS}) exceeded")
    light_positions[idx] = [float(c) for c in position]
    light_intensities[idx] = [float(c) for c in intensity]
    num_lights[None] = idx + 1
    return idx


def get_shape_count() -> int:
    """Get the number of shapes in the scene."""
    return int(num_shapes[None])


def get_light_count() -> int:
    """Get the number of lights in the scene."""
    return int(num_lights[None])


# =============================================================================
# Device Queries
# =============================================================================


@ti.func
def shape_roots(shape_id: ti.i32, origin: vec3, direction: vec3):
    """Roots of a world-space ray against one shape, in world t units."""
    inverse = shape_inverses[shape_id]
    local_origin = transform_point(inverse, origin)
    local_direction = transform_direction(inverse, direction)
    return local_intersect(shape_kinds[shape_id], local_origin, local_direction)


@ti.func
def intersect_scene(origin: vec3, direction: vec3) -> SceneHit:
    """Find the nearest intersection in front of the ray.

    Equivalent to collecting every root of every shape, sorting them and
    taking the first one greater than EPSILON.

    Args:
        origin: Ray origin in world space.
        direction: Ray direction in world space.

    Returns:
        A SceneHit; hit == 0 when the ray escapes.
    """
    closest_t = T_MAX
    closest_id = -1
    for i in range(num_shapes[None]):
        count, t0, t1 = shape_roots(i, origin, direction)
        if count >= 1 and t0 > EPSILON and t0 < closest_t:
            closest_t = t0
            closest_id = i
        if count >= 2 and t1 > EPSILON and t1 < closest_t:
            closest_t = t1
            closest_id = i

    hit = 0
    if closest_id >= 0:
        hit = 1
    return SceneHit(hit=hit, t=closest_t, shape_id=closest_id)


@ti.func
def is_shadowed(point: vec3, light_position: vec3) -> ti.i32:
    """Test whether any shape lies between a point and a light.

    Args:
        point: The (already offset) surface point.
        light_position: World-space light position.

    Returns:
        1 if an intersection exists with EPSILON < t < distance to light.
    """
    to_light = light_position - point
    distance = tm.length(to_light)
    direction = to_light / distance
    shadowed = 0
    for i in range(num_shapes[None]):
        count, t0, t1 = shape_roots(i, point, direction)
        if count >= 1 and t0 > EPSILON and t0 < distance:
            shadowed = 1
        if count >= 2 and t1 > EPSILON and t1 < distance:
            shadowed = 1
    return shadowed


@ti.func
def refractive_indices(origin: vec3, direction: vec3, t: ti.f32, shape_id: ti.i32):
    """Refractive indices on either side of the intersection at t.

    A shape contains the ray just before t when an odd number of its roots
    (negative ones included) lie before t. Of the containing shapes the
    one entered last supplies n1; n2 comes from the one entered last once
    the hit shape is toggled in or out. Empty space has index 1.0.

    Returns:
        Tuple of (n1, n2).
    """
    last_entry = -T_MAX
    last_index = 1.0
    outer_entry = -T_MAX
    outer_index = 1.0
    hit_inside = 0

    for i in range(num_shapes[None]):
        count, t0, t1 = shape_roots(i, origin, direction)
        before = 0
        entry = 0.0
        if count >= 1 and t0 < t - EPSILON:
            before += 1
            entry = t0
        if count >= 2 and t1 < t - EPSILON:
            before += 1
            entry = t1
        if before == 1:
            index = material_refractive_index[shape_material_ids[i]]
            if entry > last_entry:
                last_entry = entry
                last_index = index
            if i == shape_id:
                hit_inside = 1
            elif entry > outer_entry:
                outer_entry = entry
                outer_index = index

    n1 = last_index
    n2 = material_refractive_index[shape_material_ids[shape_id]]
    if hit_inside == 1:
        n2 = outer_index
    return n1, n2


@ti.func
def prepare_computations(origin: vec3, direction: vec3, t: ti.f32, shape_id: ti.i32) -> Computations:
    """Build the shading context for the intersection at t on a shape.

    Args:
        origin: Ray origin in world space.
        direction: Ray direction in world space.
        t: Ray parameter of the intersection.
        shape_id: Index of the intersected shape.

    Returns:
        The Computations record.
    """
    unit_direction = tm.normalize(direction)
    point = origin + t * direction

    object_point = transform_point(shape_inverses[shape_id], point)
    normalv = transform_normal(
        shape_normal_matrices[shape_id], local_normal(shape_kinds[shape_id], object_point)
    )
    eyev = -unit_direction

    inside = 0
    if tm.dot(normalv, eyev) < 0.0:
        inside = 1
        normalv = -normalv

    n1, n2 = refractive_indices(origin, direction, t, shape_id)

    return Computations(
        t=t,
        shape_id=shape_id,
        point=point,
        over_point=point + normalv * EPSILON,
        under_point=point - normalv * EPSILON,
        eyev=eyev,
        normalv=normalv,
        reflectv=reflect(unit_direction, normalv),
        inside=inside,
        n1=n1,
        n2=n2,
    )


# =============================================================================
# Python-callable Probes
# =============================================================================

_query_origin = ti.Vector.field(3, dtype=ti.f32, shape=())
_query_direction = ti.Vector.field(3, dtype=ti.f32, shape=())
_query_t = ti.field(dtype=ti.f32, shape=())
_query_shape = ti.field(dtype=ti.i32, shape=())
_query_flag = ti.field(dtype=ti.i32, shape=())
_query_light = ti.Vector.field(3, dtype=ti.f32, shape=())

_roots_t = ti.field(dtype=ti.f32, shape=2 * MAX_SHAPES)
_roots_shape = ti.field(dtype=ti.i32, shape=2 * MAX_SHAPES)
_roots_count = ti.field(dtype=ti.i32, shape=())

# Computations slots: point, over_point, under_point, eyev, normalv, reflectv
_comps_vectors = ti.Vector.field(3, dtype=ti.f32, shape=6)
# Computations scalars: t, n1, n2
_comps_scalars = ti.field(dtype=ti.f32, shape=3)


def _set_query_ray(origin: Sequence[float], direction: Sequence[float]) -> None:
    _query_origin[None] = [float(origin[0]), float(origin[1]), float(origin[2])]
    _query_direction[None] = [float(direction[0]), float(direction[1]), float(direction[2])]


# The single-iteration outer loop keeps the per-shape loops serial
@ti.kernel
def _collect_roots():
    for _ in range(1):
        origin = _query_origin[None]
        direction = _query_direction[None]
        n = 0
        for i in range(num_shapes[None]):
            count, t0, t1 = shape_roots(i, origin, direction)
            if count >= 1:
                _roots_t[n] = t0
                _roots_shape[n] = i
                n += 1
            if count >= 2:
                _roots_t[n] = t1
                _roots_shape[n] = i
                n += 1
        _roots_count[None] = n


@ti.kernel
def _nearest_hit():
    for _ in range(1):
        rec = intersect_scene(_query_origin[None], _query_direction[None])
        _query_flag[None] = rec.hit
        _query_t[None] = rec.t
        _query_shape[None] = rec.shape_id


@ti.kernel
def _prepare():
    for _ in range(1):
        comps = prepare_computations(
            _query_origin[None], _query_direction[None], _query_t[None], _query_shape[None]
        )
        _comps_vectors[0] = comps.point
        _comps_vectors[1] = comps.over_point
        _comps_vectors[2] = comps.under_point
        _comps_vectors[3] = comps.eyev
        _comps_vectors[4] = comps.normalv
        _comps_vectors[5] = comps.reflectv
        _comps_scalars[0] = comps.t
        _comps_scalars[1] = comps.n1
        _comps_scalars[2] = comps.n2
        _query_flag[None] = comps.inside


@ti.kernel
def _shadow_query():
    for _ in range(1):
        _query_flag[None] = is_shadowed(_query_origin[None], _query_light[None])


def intersect_all(origin: Sequence[float], direction: Sequence[float]) -> list[tuple[float, int]]:
    """Every root of every shape along a ray, sorted by t.

    Negative roots are included.

    Returns:
        List of (t, shape_index) pairs in ascending t order.
    """
    _set_query_ray(origin, direction)
    _collect_roots()
    n = int(_roots_count[None])
    roots = [(float(_roots_t[k]), int(_roots_shape[k])) for k in range(n)]
    return sorted(roots, key=lambda item: item[0])


def nearest_hit(origin: Sequence[float], direction: Sequence[float]) -> tuple[float, int] | None:
    """Nearest hit in front of the ray as (t, shape_index), or None."""
    _set_query_ray(origin, direction)
    _nearest_hit()
    if int(_query_flag[None]) == 0:
        return None
    return float(_query_t[None]), int(_query_shape[None])


def compute_hit(
    origin: Sequence[float], direction: Sequence[float], t: float, shape_index: int
) -> dict[str, object]:
    """Run prepare_computations for one intersection and return it as a dict.

    Vector entries are (x, y, z) tuples; inside is a bool.
    """
    _set_query_ray(origin, direction)
    _query_t[None] = float(t)
    _query_shape[None] = int(shape_index)
    _prepare()

    def _vec(slot: int) -> tuple[float, float, float]:
        v = _comps_vectors[slot]
        return (float(v[0]), float(v[1]), float(v[2]))

    return {
        "t": float(_comps_scalars[0]),
        "shape_id": int(shape_index),
        "point": _vec(0),
        "over_point": _vec(1),
        "under_point": _vec(2),
        "eyev": _vec(3),
        "normalv": _vec(4),
        "reflectv": _vec(5),
        "inside": bool(_query_flag[None]),
        "n1": float(_comps_scalars[1]),
        "n2": float(_comps_scalars[2]),
    }


def point_is_shadowed(point: Sequence[float], light_index: int = 0) -> bool:
    """Whether a world point is shadowed from one of the scene's lights."""
    light = light_positions[light_index]
    _query_origin[None] = [float(point[0]), float(point[1]), float(point[2])]
    _query_light[None] = [float(light[0]), float(light[1]), float(light[2])]
    _shadow_query()
    return bool(_query_flag[None])
