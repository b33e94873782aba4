"""Render entry point: one primary ray per pixel, traced in parallel.

``render(scene)`` freezes the scene, uploads the camera, runs a single
Taichi parallel-for over every pixel and returns the framebuffer as a
NumPy array. Each pixel writes only its own cell, so no synchronization is
needed; the scene fields are read-only for the duration of the kernel.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from whitted.core.renderer import render
    >>> from whitted.scene.presets import create_default_world, default_camera
    >>> scene = create_default_world(default_camera(width=64, height=64))
    >>> image = render(scene)
    >>> image.shape
    (64, 64, 3)
"""

import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from whitted.camera.pinhole import ray_for_pixel, setup_camera
from whitted.core.shading import (
    DEFAULT_MAX_DEPTH,
    MAX_RECURSION_DEPTH,
    color_at,
    set_background,
)
from whitted.errors import ConfigurationError

if TYPE_CHECKING:
    from whitted.scene.manager import SceneManager

logger = logging.getLogger(__name__)

vec3 = tm.vec3


@dataclass(frozen=True)
class RenderSettings:
    """Per-render options.

    Attributes:
        max_depth: Reflection/refraction bounces per primary ray.
        background: Color of rays that hit nothing.
    """

    max_depth: int = DEFAULT_MAX_DEPTH
    background: tuple[float, float, float] = (0.0, 0.0, 0.0)

    def __post_init__(self) -> None:
        if isinstance(self.max_depth, bool) or not isinstance(self.max_depth, int):
            raise ConfigurationError(f"max_depth must be an integer, got {self.max_depth!r}")
        if not 0 <= self.max_depth <= MAX_RECURSION_DEPTH:
            raise ConfigurationError(
                f"max_depth must be in [0, {MAX_RECURSION_DEPTH}], got {self.max_depth}"
            )
        if len(self.background) != 3:
            raise ConfigurationError(f"background must be an RGB triple, got {self.background!r}")


# =============================================================================
# Render Target (Image Buffer)
# =============================================================================

# Maximum supported image dimensions (preallocated to avoid kernel recompilation)
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048

# Image dimensions (actual active size)
_image_width = ti.field(dtype=ti.i32, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())

# Color buffer indexed [column, row], row 0 at the top of the image
_color_buffer = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))


def setup_render_target(width: int, height: int) -> None:
    """Set the active image size and clear the buffer.

    Raises:
        RuntimeError: If dimensions exceed the preallocated buffer.
    """
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise RuntimeError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )
    _image_width[None] = width
    _image_height[None] = height
    clear_render_target()


def clear_render_target() -> None:
    """Clear the color buffer to zero."""
    _color_buffer.fill(0.0)


def get_image_dimensions() -> tuple[int, int]:
    """Get the current render target dimensions as (width, height)."""
    return int(_image_width[None]), int(_image_height[None])


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.func
def render_pixel_impl(px: ti.i32, py: ti.i32, max_depth: ti.i32) -> vec3:
    """Color of one pixel: trace its primary ray through the scene."""
    ray = ray_for_pixel(ti.cast(px, ti.f32), ti.cast(py, ti.f32))
    color = color_at(ray.origin, ray.direction, max_depth)

    # Degenerate geometry must not poison the image
    for c in ti.static(range(3)):
        if tm.isnan(color[c]) or tm.isinf(color[c]):
            color[c] = 0.0
    return color


@ti.kernel
def _render_frame(width: ti.i32, height: ti.i32, max_depth: ti.i32):
    """Render every pixel once into the color buffer."""
    for i, j in ti.ndrange(width, height):
        _color_buffer[i, j] = render_pixel_impl(i, j, max_depth)


_pixel_result = ti.Vector.field(3, dtype=ti.f32, shape=())


@ti.kernel
def _render_single_pixel(px: ti.i32, py: ti.i32, max_depth: ti.i32):
    """Render one pixel into _pixel_result; used for testing and debugging."""
    for _ in range(1):
        _pixel_result[None] = render_pixel_impl(px, py, max_depth)


# =============================================================================
# Public Rendering API
# =============================================================================


def _prepare(scene: "SceneManager", settings: RenderSettings) -> tuple[int, int]:
    if scene.camera is None:
        raise RuntimeError("Scene has no camera. Call set_camera() before rendering.")
    scene.freeze()
    scene.activate()
    camera = scene.camera
    setup_camera(camera)
    set_background(settings.background)
    return camera.width, camera.height


def render(
    scene: "SceneManager", settings: RenderSettings | None = None
) -> npt.NDArray[np.float32]:
    """Render a scene to an unclamped linear RGB image.

    Freezes the scene if it is still being assembled. Rendering the same
    scene twice yields identical images.

    Args:
        scene: The scene to render; must have a camera.
        settings: Render options; defaults to RenderSettings().

    Returns:
        Float32 array of shape (height, width, 3). Row 0 is the top of the
        image and column 0 the left edge. Values are not clamped.

    Raises:
        RuntimeError: If the scene has no camera or the image is larger
            than the preallocated buffer.
    """
    settings = settings or RenderSettings()
    width, height = _prepare(scene, settings)
    setup_render_target(width, height)

    logger.info(
        "Rendering %dx%d, %d shapes, %d lights, max depth %d",
        width,
        height,
        scene.get_shape_count(),
        scene.get_light_count(),
        settings.max_depth,
    )
    start = time.perf_counter()
    _render_frame(width, height, settings.max_depth)
    ti.sync()
    logger.info("Rendered in %.3f s", time.perf_counter() - start)

    return get_image_numpy()


def render_pixel(
    scene: "SceneManager", px: int, py: int, settings: RenderSettings | None = None
) -> tuple[float, float, float]:
    """Render a single pixel of a scene.

    This is a Python-callable function for testing. It gives the same color
    as the corresponding cell of render(scene).

    Returns:
        Tuple of (R, G, B) color values.
    """
    settings = settings or RenderSettings()
    width, height = _prepare(scene, settings)
    if not (0 <= px < width and 0 <= py < height):
        raise ValueError(f"Pixel ({px}, {py}) is outside the {width}x{height} image")
    _render_single_pixel(px, py, settings.max_depth)
    color = _pixel_result[None]
    return (float(color[0]), float(color[1]), float(color[2]))


def get_image_numpy() -> npt.NDArray[np.float32]:
    """Get the active region of the color buffer as a NumPy array.

    Returns:
        Float32 array of shape (height, width, 3), unclamped.
    """
    width, height = get_image_dimensions()

    full_image = _color_buffer.to_numpy()
    image = full_image[:width, :height, :]

    # Transpose from (width, height, 3) to (height, width, 3) for standard image format
    image = np.transpose(image, (1, 0, 2))

    return np.ascontiguousarray(image, dtype=np.float32)

