"""Polygon simplification using the Douglas-Peucker algorithm."""
from typing import Optional

import cv2
import numpy as np

from imgico.contour import signed_area
from imgico.smooth import fit_segments
from imgico.types import Color, EncodingError, Polygon, VectorPath

# Reference canvas for tolerance scaling
REFERENCE_SIZE = 256
MIN_TOLERANCE = 0.5


def tolerance_for_size(size: int) -> float:
    """Simplification tolerance in pixels for a size x size canvas."""
    return max(MIN_TOLERANCE, size / REFERENCE_SIZE)


def simplify_polygon(points: np.ndarray, tolerance: float) -> np.ndarray:
    """
    Reduce the vertex count of a closed polygon.

    Vertices closer than tolerance to the simplified outline are dropped
    (Ramer-Douglas-Peucker on a closed curve). A result that would
    collapse below three vertices or to zero area is discarded and the
    input returned unchanged.

    Args:
        points: (N, 2) polygon vertices
        tolerance: Maximum distance in pixels between input and output outline

    Returns:
        (M, 2) float array with M <= N
    """
    points = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    if len(points) <= 3 or tolerance <= 0:
        return points

    try:
        simplified = cv2.approxPolyDP(
            points.astype(np.float32).reshape(-1, 1, 2),
            float(tolerance),
            closed=True,
        ).reshape(-1, 2).astype(np.float64)
    except cv2.error as e:
        raise EncodingError(f"Polygon simplification failed: {e}") from e

    if len(simplified) < 3 or abs(signed_area(simplified)) < 1e-9:
        return points

    # Orientation is what separates outer boundaries from holes
    if np.sign(signed_area(simplified)) != np.sign(signed_area(points)):
        return points

    # Start at the kept vertex that came first in the input
    first_index = {}
    for i, point in enumerate(points.tolist()):
        first_index.setdefault(tuple(point), i)
    positions = [first_index.get(tuple(point), len(points)) for point in simplified.tolist()]
    return np.roll(simplified, -int(np.argmin(positions)), axis=0)


def simplify(
    polygon: Polygon,
    tolerance: float,
    corner_angle: float = 60.0,
    fill: Color = (0, 0, 0, 255),
    fill_rule: str = "nonzero",
    smooth: bool = True,
) -> VectorPath:
    """
    Simplify a polygon and fit it with line and cubic segments.

    Args:
        polygon: Traced polygon
        tolerance: Simplification tolerance in pixels
        corner_angle: Turning angle in degrees above which a vertex stays sharp
        fill: RGBA fill color of the resulting path
        fill_rule: "nonzero" or "evenodd"
        smooth: If False, every edge is emitted as a straight line

    Returns:
        VectorPath with a single closed subpath
    """
    simplified = simplify_polygon(polygon.as_array(), tolerance)
    segments = fit_segments(simplified, tolerance, corner_angle if smooth else 0.0)
    return VectorPath(subpaths=(segments,), fill=tuple(fill), fill_rule=fill_rule)


def simplify_all(
    polygons,
    tolerance: float,
    corner_angle: float = 60.0,
    fill: Color = (0, 0, 0, 255),
    fill_rule: str = "nonzero",
) -> Optional[VectorPath]:
    """Simplify several polygons into one compound path, in the given order."""
    subpaths = []
    for polygon in polygons:
        path = simplify(polygon, tolerance, corner_angle, fill, fill_rule)
        subpaths.extend(path.subpaths)
    if not subpaths:
        return None
    return VectorPath(subpaths=tuple(subpaths), fill=tuple(fill), fill_rule=fill_rule)
