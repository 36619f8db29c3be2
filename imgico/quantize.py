"""Color quantization using median-cut with Lloyd refinement."""
import logging
from typing import List

import numpy as np
from scipy.spatial.distance import cdist

from imgico.types import ColorLabelMap, ParameterError, RasterImage

logger = logging.getLogger(__name__)

TRANSPARENT = (0, 0, 0, 0)


def median_cut(colors: np.ndarray, counts: np.ndarray, max_colors: int) -> List[np.ndarray]:
    """
    Partition distinct colors into at most max_colors boxes.

    The box with the widest channel range is split at the population-
    weighted median of that channel until max_colors boxes exist or no
    box holds more than one distinct color.

    Args:
        colors: (U, 3) distinct RGB colors
        counts: (U,) pixel count of each color
        max_colors: Maximum number of boxes

    Returns:
        List of index arrays into colors, one per box
    """
    boxes = [np.arange(len(colors))]

    while len(boxes) < max_colors:
        best, best_key = None, None
        for i, box in enumerate(boxes):
            if len(box) < 2:
                continue
            spans = colors[box].max(axis=0) - colors[box].min(axis=0)
            key = (int(spans.max()), int(counts[box].sum()))
            if best_key is None or key > best_key:
                best, best_key = i, key

        if best is None:
            break

        box = boxes[best]
        values = colors[box]
        channel = int(np.argmax(values.max(axis=0) - values.min(axis=0)))

        order = np.argsort(values[:, channel], kind='stable')
        cumulative = np.cumsum(counts[box][order])
        median = values[order][np.searchsorted(cumulative, cumulative[-1] / 2.0), channel]
        if median == values[:, channel].max():
            lower = values[:, channel] < median
        else:
            lower = values[:, channel] <= median

        boxes[best:best + 1] = [box[lower], box[~lower]]

    return boxes


def refine_palette(colors: np.ndarray, counts: np.ndarray, centers: np.ndarray, iterations: int = 4) -> np.ndarray:
    """Weighted Lloyd iterations over distinct colors starting from centers."""
    colors = colors.astype(np.float64)
    weights = counts.astype(np.float64)
    centers = centers.astype(np.float64)

    for _ in range(iterations):
        nearest = np.argmin(cdist(colors, centers, 'sqeuclidean'), axis=1)
        totals = np.bincount(nearest, weights=weights, minlength=len(centers))
        updated = centers.copy()
        for channel in range(colors.shape[1]):
            sums = np.bincount(nearest, weights=weights * colors[:, channel], minlength=len(centers))
            nonempty = totals > 0
            updated[nonempty, channel] = sums[nonempty] / totals[nonempty]
        if np.array_equal(updated, centers):
            break
        centers = updated

    return centers


def _assign(colors: np.ndarray, palette: np.ndarray) -> np.ndarray:
    # argmin keeps the first minimum: ties go to the lowest palette index
    distances = cdist(colors.astype(np.float64), palette.astype(np.float64), 'sqeuclidean')
    return np.argmin(distances, axis=1)


def quantize(image: RasterImage, max_colors: int = 32, alpha_threshold: int = 128) -> ColorLabelMap:
    """
    Reduce an image to a bounded palette and label every pixel.

    Opaque pixels (alpha >= alpha_threshold) are clustered in RGB and each
    is assigned to its nearest palette entry by squared Euclidean distance,
    ties broken by lowest palette index. Palette entries are ordered by
    descending population. Pixels below the alpha threshold share a final
    fully transparent entry. When no pixel reaches the threshold, it is
    lowered to the image's maximum alpha, so a uniformly translucent image
    keeps its colors; only alpha 0 is always transparent.

    Args:
        image: Source image
        max_colors: Maximum number of opaque palette entries (>= 1)
        alpha_threshold: Minimum alpha for a pixel to count as opaque

    Returns:
        ColorLabelMap with (H, W) labels and (K, 4) RGBA palette

    Raises:
        ParameterError: If max_colors < 1
    """
    if max_colors < 1:
        raise ParameterError(f"max_colors must be >= 1, got {max_colors}")

    pixels = image.pixels.reshape(-1, 4)
    labels = np.zeros(len(pixels), dtype=np.int32)

    max_alpha = int(pixels[:, 3].max())
    if max_alpha == 0:
        logger.info("Image is fully transparent, using a single transparent entry")
        return ColorLabelMap(labels.reshape(image.height, image.width), np.array([TRANSPARENT]))

    opaque = pixels[:, 3] >= min(alpha_threshold, max_alpha)

    rgb = pixels[opaque, :3]
    colors, inverse, counts = np.unique(rgb, axis=0, return_inverse=True, return_counts=True)
    inverse = inverse.reshape(-1)

    boxes = median_cut(colors, counts, max_colors)
    centers = np.array([
        np.average(colors[box], axis=0, weights=counts[box]) for box in boxes
    ])
    if len(boxes) < len(colors):
        centers = refine_palette(colors, counts, centers)
    palette = np.rint(np.clip(centers, 0, 255)).astype(np.uint8)

    # Order by descending population (ties by color), then reassign against the final order
    nearest = _assign(colors, palette)
    population = np.bincount(nearest, weights=counts, minlength=len(palette))
    order = sorted(
        (i for i in range(len(palette)) if population[i] > 0),
        key=lambda i: (-population[i], tuple(int(c) for c in palette[i])),
    )
    palette = palette[order]
    nearest = _assign(colors, palette)
    used = np.unique(nearest)
    remap = np.full(len(palette), -1, dtype=np.int64)
    remap[used] = np.arange(len(used))
    palette = palette[used]
    nearest = remap[nearest]

    opaque_labels = nearest[inverse]
    alpha = pixels[opaque, 3].astype(np.float64)
    alpha_sums = np.bincount(opaque_labels, weights=alpha, minlength=len(palette))
    alpha_counts = np.bincount(opaque_labels, minlength=len(palette))
    alphas = np.rint(alpha_sums / alpha_counts).astype(np.uint8)

    rgba = np.column_stack([palette, alphas]).astype(np.uint8)
    labels[opaque] = opaque_labels

    if not np.all(opaque):
        labels[~opaque] = len(rgba)
        rgba = np.vstack([rgba, np.array([TRANSPARENT], dtype=np.uint8)])

    logger.info(f"Quantized {len(colors)} distinct colors to {len(rgba)} palette entries")
    return ColorLabelMap(labels.reshape(image.height, image.width), rgba)
