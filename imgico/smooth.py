"""Curve fitting of simplified polygons with cubic Bezier segments."""
from typing import Tuple

import numpy as np

from imgico.types import EncodingError, PathSegment


def turning_angles(points: np.ndarray) -> np.ndarray:
    """
    Exterior turning angle at each vertex of a closed polygon, in degrees.

    0 means the outline continues straight through the vertex, 180 a
    full reversal.
    """
    incoming = points - np.roll(points, 1, axis=0)
    outgoing = np.roll(points, -1, axis=0) - points
    norms = np.linalg.norm(incoming, axis=1) * np.linalg.norm(outgoing, axis=1)
    dots = np.einsum('ij,ij->i', incoming, outgoing)
    cosines = np.divide(dots, norms, out=np.ones_like(dots), where=norms > 0)
    return np.degrees(np.arccos(np.clip(cosines, -1.0, 1.0)))


def _distance_to_chord(point: np.ndarray, start: np.ndarray, end: np.ndarray) -> float:
    chord = end - start
    length = float(np.hypot(chord[0], chord[1]))
    if length == 0.0:
        return float(np.hypot(*(point - start)))
    offset = point - start
    return abs(float(chord[0] * offset[1] - chord[1] * offset[0])) / length


def _point(p: np.ndarray) -> Tuple[float, float]:
    return float(p[0]), float(p[1])


def fit_segments(points: np.ndarray, tolerance: float, corner_angle: float = 60.0) -> Tuple[PathSegment, ...]:
    """
    Fit a closed polygon with straight and cubic Bezier segments.

    Each edge becomes a cubic whose control points follow Catmull-Rom
    tangents at smooth vertices and the edge's own direction at corners
    (vertices turning by more than corner_angle). Edges whose control
    points stay within tolerance / 2 of the chord are emitted as lines.

    Args:
        points: (N, 2) closed polygon, N >= 3
        tolerance: Simplification tolerance in pixels
        corner_angle: Corner threshold in degrees

    Returns:
        Tuple of N segments; segment i runs from vertex i to vertex i + 1
    """
    points = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    n = len(points)
    if n < 3:
        raise EncodingError(f"Cannot fit a closed path through {n} points")
    if not np.all(np.isfinite(points)):
        raise EncodingError("Polygon has non-finite coordinates")

    corners = turning_angles(points) > corner_angle
    flat = tolerance / 2.0
    segments = []

    for i in range(n):
        j = (i + 1) % n
        start, end = points[i], points[j]

        if corners[i] and corners[j]:
            segments.append(PathSegment(start=_point(start), end=_point(end)))
            continue

        if corners[i]:
            control1 = start + (end - start) / 3.0
        else:
            control1 = start + (end - points[i - 1]) / 6.0
        if corners[j]:
            control2 = end - (end - start) / 3.0
        else:
            control2 = end - (points[(j + 1) % n] - start) / 6.0

        if max(_distance_to_chord(control1, start, end), _distance_to_chord(control2, start, end)) <= flat:
            segments.append(PathSegment(start=_point(start), end=_point(end)))
        else:
            segments.append(PathSegment(
                start=_point(start),
                end=_point(end),
                control1=_point(control1),
                control2=_point(control2),
            ))

    return tuple(segments)
