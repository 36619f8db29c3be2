"""Lanczos resampling and square fitting for RGBA raster images."""
import logging
from typing import Tuple

import numpy as np
from PIL import Image

from imgico.types import EncodingError, RasterImage, check_dimension

logger = logging.getLogger(__name__)


def resample(image: RasterImage, target_width: int, target_height: int) -> RasterImage:
    """
    Resize an image with a Lanczos-3 filter.

    Pillow filters RGBA images on premultiplied alpha, so fully
    transparent pixels do not bleed their color into opaque neighbors.
    An exact-size request returns a pixel-identical copy.

    Args:
        image: Source image
        target_width: Output width in [1, 256]
        target_height: Output height in [1, 256]

    Returns:
        New RasterImage of the requested size

    Raises:
        InvalidSizeError: If a target dimension is outside [1, 256]
        EncodingError: If Pillow fails to resize the image
    """
    target_width = check_dimension(target_width, "width")
    target_height = check_dimension(target_height, "height")

    if (target_width, target_height) == image.size:
        return RasterImage(image.pixels)

    try:
        img_pil = Image.fromarray(image.pixels)
        resized = img_pil.resize((target_width, target_height), Image.Resampling.LANCZOS)
    except (ValueError, OSError) as e:
        raise EncodingError(f"Failed to resize image: {e}") from e

    logger.debug(
        f"Resampled {image.width}x{image.height} -> {target_width}x{target_height}"
    )
    return RasterImage(np.asarray(resized, dtype=np.uint8))


def fitted_size(width: int, height: int, size: int) -> Tuple[int, int]:
    """Dimensions of a width x height image scaled to fit a size x size square."""
    if width == height:
        return size, size
    scale = size / max(width, height)
    return (
        min(size, max(1, int(round(width * scale)))),
        min(size, max(1, int(round(height * scale)))),
    )


def fit_square(image: RasterImage, size: int) -> RasterImage:
    """
    Resize an image into a size x size square, preserving aspect ratio.

    Non-square sources are centered on a fully transparent canvas.

    Raises:
        InvalidSizeError: If size is outside [1, 256]
    """
    size = check_dimension(size)
    fit_w, fit_h = fitted_size(image.width, image.height, size)
    resized = resample(image, fit_w, fit_h)
    if (fit_w, fit_h) == (size, size):
        return resized

    canvas = np.zeros((size, size, 4), dtype=np.uint8)
    left = (size - fit_w) // 2
    top = (size - fit_h) // 2
    canvas[top:top + fit_h, left:left + fit_w] = resized.pixels
    return RasterImage(canvas)
