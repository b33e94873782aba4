"""Image export utilities for rendered images.

Rendering produces unclamped linear RGB. These helpers perform the
deferred clamping to [0, 1], optional gamma encoding and 8-bit
quantization, then write the file with Pillow. The output format follows
the file extension (PNG, PPM, ...).

Example:
    >>> from whitted.core.renderer import render
    >>> from whitted.preview.export import save_image
    >>> image = render(scene)
    >>> save_image(image, "output.png")
"""

from pathlib import Path

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage


def apply_gamma(
    image: npt.NDArray[np.float32],
    gamma: float = 1.0,
) -> npt.NDArray[np.float32]:
    """Clamp to [0, 1] and apply gamma encoding.

    Args:
        image: Linear image array of shape (H, W, 3).
        gamma: Gamma value; 1.0 leaves values linear.

    Returns:
        Clamped, gamma encoded image.

    Raises:
        ValueError: If gamma is not positive.
    """
    if gamma <= 0.0:
        raise ValueError(f"gamma must be positive, got {gamma}")

    # Clamp before gamma to avoid NaN from negative values
    result = np.clip(np.nan_to_num(image, nan=0.0), 0.0, 1.0)
    if gamma != 1.0:
        result = np.power(result, 1.0 / gamma)
    return result.astype(np.float32)


def image_to_uint8(
    image: npt.NDArray[np.float32],
    *,
    gamma: float = 1.0,
) -> npt.NDArray[np.uint8]:
    """Convert a linear float image to 8-bit channels.

    Each channel is clamped to [0, 1] and scaled to 0..255, truncating
    toward zero.

    Args:
        image: Linear image array of shape (H, W, 3).
        gamma: Gamma value (default 1.0, no encoding).

    Returns:
        Array of shape (H, W, 3) with dtype uint8.
    """
    return (apply_gamma(image, gamma) * 255.0).astype(np.uint8)


def save_image(
    image: npt.NDArray[np.float32],
    filepath: "str | Path",
    *,
    gamma: float = 1.0,
) -> None:
    """Save a rendered image.

    Args:
        image: Linear image array of shape (H, W, 3).
        filepath: Output path; the extension selects the format.
        gamma: Gamma value (default 1.0, no encoding).

    Raises:
        ValueError: If the array is not of shape (H, W, 3).
    """
    if image.ndim != 3 or image.shape[2] != 3:
        raise ValueError(f"Expected an image of shape (H, W, 3), got {image.shape}")

    pil_image = PILImage.fromarray(image_to_uint8(image, gamma=gamma))
    pil_image.save(filepath)
