"""Pytest configuration and fixtures."""
import io

import numpy as np
import pytest
from PIL import Image

from imgico.types import RasterImage


def encode_image(pixels: np.ndarray, fmt: str = "PNG") -> bytes:
    """Encode an RGBA/RGB array with Pillow."""
    img = Image.fromarray(np.asarray(pixels, dtype=np.uint8))
    if fmt in ("JPEG", "BMP") and img.mode == "RGBA":
        img = img.convert("RGB")
    buffer = io.BytesIO()
    img.save(buffer, format=fmt)
    return buffer.getvalue()


def solid(width: int, height: int, color=(200, 40, 40, 255)) -> np.ndarray:
    """Single-color RGBA array."""
    pixels = np.zeros((height, width, 4), dtype=np.uint8)
    pixels[:, :] = color
    return pixels


def quadrants(size: int = 64) -> np.ndarray:
    """Four flat colored quadrants."""
    pixels = np.zeros((size, size, 4), dtype=np.uint8)
    half = size // 2
    pixels[:half, :half] = [255, 0, 0, 255]
    pixels[:half, half:] = [0, 255, 0, 255]
    pixels[half:, :half] = [0, 0, 255, 255]
    pixels[half:, half:] = [255, 255, 0, 255]
    return pixels


@pytest.fixture
def solid_png():
    """2x2 single-color PNG."""
    return encode_image(solid(2, 2))


@pytest.fixture
def quadrant_png():
    """64x64 four-color PNG."""
    return encode_image(quadrants(64))


@pytest.fixture
def gradient_image():
    """100x100 RGBA gradient with a soft alpha edge."""
    y, x = np.mgrid[0:100, 0:100]
    pixels = np.zeros((100, 100, 4), dtype=np.uint8)
    pixels[..., 0] = (x * 255 // 99).astype(np.uint8)
    pixels[..., 1] = (y * 255 // 99).astype(np.uint8)
    pixels[..., 2] = ((x + y) * 255 // 198).astype(np.uint8)
    pixels[..., 3] = 255
    pixels[:, :10, 3] = 0
    return RasterImage(pixels)


@pytest.fixture
def circle_png():
    """128x128 dark disc on white."""
    y, x = np.mgrid[0:128, 0:128]
    inside = (x - 63.5) ** 2 + (y - 63.5) ** 2 <= 40 ** 2
    pixels = solid(128, 128, (255, 255, 255, 255))
    pixels[inside] = [20, 30, 120, 255]
    return encode_image(pixels)
