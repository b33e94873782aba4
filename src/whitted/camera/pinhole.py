"""Look-at pinhole camera and per-pixel primary ray generation.

The camera sits at ``from_point`` looking toward ``to_point`` with the
image plane one unit in front of the eye (z = -1 in camera space). The
field of view spans the longer image side. Pixel (0, 0) is the top-left
corner and each primary ray passes through the center of its pixel.

The view transform and its inverse are computed once with NumPy on the
Python side and uploaded to Taichi fields; ray generation runs inside
kernels.

Example:
    >>> import math
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from whitted.camera.pinhole import PinholeCamera, setup_camera
    >>> camera = PinholeCamera(
    ...     width=100,
    ...     height=100,
    ...     field_of_view=math.pi / 3,
    ...     from_point=(0.0, 1.5, -5.0),
    ...     to_point=(0.0, 1.0, 0.0),
    ...     up=(0.0, 1.0, 0.0),
    ... )
    >>> setup_camera(camera)
"""

import math
import numbers
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

import numpy as np
import taichi as ti
import taichi.math as tm

from whitted.core import linalg
from whitted.core.ray import Ray, make_ray, transform_point, vec3
from whitted.errors import ConfigurationError

Point3 = tuple[float, float, float]


# =============================================================================
# Camera Data Structures
# =============================================================================


@dataclass(frozen=True)
class PinholeCamera:
    """Configuration for a look-at pinhole camera.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        field_of_view: Field of view in radians across the longer side.
        from_point: Eye position in world space.
        to_point: Point the eye looks at.
        up: Approximate up direction.
        transform: World-to-camera view transform, derived.

    Raises:
        ConfigurationError: If the size or field of view is out of range,
            the eye coincides with the target, or up is parallel to the
            view direction.
    """

    width: int
    height: int
    field_of_view: float
    from_point: Point3
    to_point: Point3
    up: Point3 = (0.0, 1.0, 0.0)
    transform: np.ndarray = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        for name in ("width", "height"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise ConfigurationError(f"Camera {name} must be a positive integer, got {value!r}")
        fov = self.field_of_view
        if isinstance(fov, bool) or not isinstance(fov, numbers.Real) or not math.isfinite(fov):
            raise ConfigurationError(f"Camera field_of_view must be a number of radians, got {fov!r}")
        if not 0.0 < fov < math.pi:
            raise ConfigurationError(
                "Camera field_of_view must be in (0, pi) radians: at pi and above "
                f"tan(fov / 2) gives no finite image plane, got {fov}"
            )
        object.__setattr__(self, "field_of_view", float(fov))

        from_point = _as_point(self.from_point, "from")
        to_point = _as_point(self.to_point, "to")
        up = _as_point(self.up, "up")
        if np.allclose(from_point, to_point):
            raise ConfigurationError("Camera from and to points must differ")
        if np.linalg.norm(up) == 0.0:
            raise ConfigurationError("Camera up vector must be non-zero")

        try:
            view = linalg.view_transform(from_point, to_point, up)
        except ValueError as exc:
            raise ConfigurationError(f"Invalid camera orientation: {exc}") from exc

        object.__setattr__(self, "from_point", tuple(from_point.tolist()))
        object.__setattr__(self, "to_point", tuple(to_point.tolist()))
        object.__setattr__(self, "up", tuple(up.tolist()))
        object.__setattr__(self, "transform", view)

    @property
    def half_width(self) -> float:
        return self._half_extents()[0]

    @property
    def half_height(self) -> float:
        return self._half_extents()[1]

    @property
    def pixel_size(self) -> float:
        """World-space size of one pixel on the image plane."""
        return self.half_width * 2.0 / self.width

    def _half_extents(self) -> tuple[float, float]:
        half_view = math.tan(self.field_of_view / 2.0)
        aspect = self.width / self.height
        if aspect >= 1.0:
            return half_view, half_view / aspect
        return half_view * aspect, half_view

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PinholeCamera":
        """Build a camera from a scene-description mapping.

        Accepts ``width``, ``height``, ``field-of-view`` (or
        ``field_of_view``), ``from``, ``to`` and ``up``.

        Raises:
            ConfigurationError: If a key is missing or unknown.
        """
        aliases = {
            "width": "width",
            "height": "height",
            "field-of-view": "field_of_view",
            "field_of_view": "field_of_view",
            "from": "from_point",
            "from_point": "from_point",
            "to": "to_point",
            "to_point": "to_point",
            "up": "up",
        }
        kwargs: dict[str, Any] = {}
        for key, value in data.items():
            if key == "add":
                continue
            if key not in aliases:
                raise ConfigurationError(f"Unknown camera key {key!r}")
            kwargs[aliases[key]] = value
        missing = {"width", "height", "field_of_view", "from_point", "to_point"} - kwargs.keys()
        if missing:
            raise ConfigurationError(f"Camera is missing {', '.join(sorted(missing))}")
        return cls(**kwargs)

    def to_dict(self) -> dict[str, Any]:
        return {
            "add": "camera",
            "width": self.width,
            "height": self.height,
            "field-of-view": self.field_of_view,
            "from": list(self.from_point),
            "to": list(self.to_point),
            "up": list(self.up),
        }


def _as_point(value: Any, what: str) -> np.ndarray:
    try:
        arr = np.asarray(value, dtype=np.float64)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Camera {what} must be three numbers, got {value!r}") from exc
    if arr.shape != (3,) or not np.all(np.isfinite(arr)):
        raise ConfigurationError(f"Camera {what} must be three finite numbers, got {value!r}")
    return arr


# =============================================================================
# Taichi Fields for Camera State (GPU-accessible)
# =============================================================================

# Camera-to-world matrix (inverse of the view transform)
_camera_inverse = ti.Matrix.field(4, 4, dtype=ti.f32, shape=())

# Image-plane geometry
_half_width = ti.field(dtype=ti.f32, shape=())
_half_height = ti.field(dtype=ti.f32, shape=())
_pixel_size = ti.field(dtype=ti.f32, shape=())


def setup_camera(camera: PinholeCamera) -> None:
    """Upload camera state to Taichi fields.

    Must be called from Python before rendering.

    Args:
        camera: The camera configuration.
    """
    _camera_inverse[None] = linalg.inverse(camera.transform).tolist()
    _half_width[None] = camera.half_width
    _half_height[None] = camera.half_height
    _pixel_size[None] = camera.pixel_size


# =============================================================================
# Ray Generation (Taichi-compatible, GPU-callable)
# =============================================================================


@ti.func
def ray_for_pixel(px: ti.f32, py: ti.f32) -> Ray:
    """Generate the primary ray through the center of pixel (px, py).

    Args:
        px: Pixel column, 0 at the left edge.
        py: Pixel row, 0 at the top edge.

    Returns:
        A ray from the eye with a unit direction.
    """
    pixel_size = _pixel_size[None]
    world_x = _half_width[None] - (px + 0.5) * pixel_size
    world_y = _half_height[None] - (py + 0.5) * pixel_size

    inverse = _camera_inverse[None]
    pixel = transform_point(inverse, vec3(world_x, world_y, -1.0))
    origin = transform_point(inverse, vec3(0.0, 0.0, 0.0))
    direction = tm.normalize(pixel - origin)
    return make_ray(origin, direction)


_probe_origin = ti.Vector.field(3, dtype=ti.f32, shape=())
_probe_direction = ti.Vector.field(3, dtype=ti.f32, shape=())


@ti.kernel
def _probe_ray(px: ti.f32, py: ti.f32):
    ray = ray_for_pixel(px, py)
    _probe_origin[None] = ray.origin
    _probe_direction[None] = ray.direction


def get_ray_for_pixel(px: int, py: int) -> tuple[Point3, Point3]:
    """Primary ray for a pixel of the uploaded camera, for debugging.

    Returns:
        Tuple of (origin, direction).
    """
    _probe_ray(float(px), float(py))
    o = _probe_origin[None]
    d = _probe_direction[None]
    return (float(o[0]), float(o[1]), float(o[2])), (float(d[0]), float(d[1]), float(d[2]))


def get_camera_info() -> dict[str, float]:
    """Get the uploaded image-plane geometry for debugging."""
    return {
        "half_width": float(_half_width[None]),
        "half_height": float(_half_height[None]),
        "pixel_size": float(_pixel_size[None]),
    }
