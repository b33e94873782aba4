"""Preview module for image output.

Components:
    export: Clamping, gamma encoding and file export via Pillow

Rendering never clamps; these helpers are the only place values are
limited to the displayable range.
"""

from whitted.preview.export import apply_gamma, image_to_uint8, save_image

__all__ = [
    "apply_gamma",
    "image_to_uint8",
    "save_image",
]
