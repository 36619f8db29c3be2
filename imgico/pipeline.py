"""Conversion entry points: raster bytes to ICO containers and SVG markup."""
import dataclasses
import logging
from typing import Optional, Sequence

from imgico.contour import trace
from imgico.decode import decode
from imgico.ico import encode
from imgico.quantize import quantize
from imgico.resample import fit_square
from imgico.simplify import simplify_all, tolerance_for_size
from imgico.svg import emit
from imgico.types import (
    ConversionError,
    EncodingError,
    IconConfig,
    RasterImage,
    SizeSet,
    VectorConfig,
    VectorDocument,
    check_dimension,
)

logger = logging.getLogger(__name__)


def vectorize(image: RasterImage, config: Optional[VectorConfig] = None) -> VectorDocument:
    """
    Trace an image into a vector document on a size x size canvas.

    Stages: fit to canvas, quantize, trace contours, simplify and fit
    curves. One path is produced per non-transparent cluster, in ascending
    cluster id order (most populous color first).

    Args:
        image: Decoded source image
        config: Vector configuration. Uses defaults if None.

    Returns:
        VectorDocument with canvas width = height = config.size

    Raises:
        InvalidSizeError: If config.size is outside [1, 256]
    """
    config = config or VectorConfig()
    size = check_dimension(config.size)
    tolerance = config.tolerance if config.tolerance is not None else tolerance_for_size(size)

    canvas = fit_square(image, size)
    label_map = quantize(canvas, config.max_colors, config.alpha_threshold)
    polygons = trace(label_map)

    paths = []
    for cluster_id, cluster_polygons in polygons.items():
        color = label_map.color(cluster_id)
        if color[3] == 0:
            continue
        path = simplify_all(
            cluster_polygons,
            tolerance,
            corner_angle=config.corner_angle,
            fill=color,
            fill_rule=config.fill_rule,
        )
        if path is not None:
            paths.append(path)

    logger.info(f"Vectorized to {len(paths)} paths on a {size}x{size} canvas")
    return VectorDocument(width=size, height=size, paths=tuple(paths))


def imgico(
    data: bytes,
    sizes: Optional[Sequence[int]] = None,
    config: Optional[IconConfig] = None,
) -> bytes:
    """
    Convert an encoded image into a multi-resolution ICO container.

    The input is decoded before any parameter validation.

    Args:
        data: Encoded source image (PNG, JPEG, GIF, BMP, WebP, TIFF or ICO)
        sizes: Icon sizes, each in [1, 256]. Defaults to 16, 32, 48, 64, 128, 256.
        config: Icon configuration; sizes, when given, overrides config.sizes

    Returns:
        ICO container bytes

    Raises:
        DecodeError: If data cannot be decoded
        SizeRangeError: If sizes is empty or contains a value outside [1, 256]
        EncodingError: If the container cannot be assembled
    """
    image = decode(data)

    if config is None:
        config = IconConfig() if sizes is None else IconConfig(sizes=sizes)
    elif sizes is not None:
        config = dataclasses.replace(config, sizes=sizes)

    size_set = SizeSet.from_sequence(config.sizes)

    try:
        return encode(image, size_set, workers=config.workers)
    except ConversionError:
        raise
    except Exception as e:
        raise EncodingError(f"Icon conversion failed: {e}") from e


def imgsvg(
    data: bytes,
    size: Optional[int] = None,
    config: Optional[VectorConfig] = None,
) -> bytes:
    """
    Convert an encoded image into SVG markup.

    Args:
        data: Encoded source image
        size: Canvas width and height in [1, 256]. Defaults to 256.
        config: Vector configuration; size, when given, overrides config.size

    Returns:
        UTF-8 SVG bytes

    Raises:
        DecodeError: If data cannot be decoded
        InvalidSizeError: If size is outside [1, 256]
        EncodingError: If the markup cannot be assembled
    """
    image = decode(data)

    if config is None:
        config = VectorConfig() if size is None else VectorConfig(size=size)
    elif size is not None:
        config = dataclasses.replace(config, size=size)

    check_dimension(config.size)

    try:
        return emit(vectorize(image, config), config.precision)
    except ConversionError:
        raise
    except Exception as e:
        raise EncodingError(f"Vector conversion failed: {e}") from e
