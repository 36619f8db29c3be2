"""Boundary tracing of label-map regions on the pixel-corner lattice."""
import logging
from typing import Dict, List, Sequence, Tuple

import numpy as np

from imgico.types import ColorLabelMap, ContourError, Polygon, Winding

logger = logging.getLogger(__name__)

# Directions in screen space (y down): east, south, west, north.
# (d + 1) % 4 is a right turn.
EAST, SOUTH, WEST, NORTH = range(4)


def signed_area(points: Sequence[Tuple[float, float]]) -> float:
    """Shoelace area; positive for clockwise polygons on screen (y down)."""
    pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    if len(pts) < 3:
        return 0.0
    x, y = pts[:, 0], pts[:, 1]
    return float(np.dot(x, np.roll(y, -1)) - np.dot(np.roll(x, -1), y)) / 2.0


def boundary_edges(mask: np.ndarray) -> np.ndarray:
    """
    Directed boundary edges of a binary mask.

    Every pixel side separating a mask pixel from a non-mask pixel (or the
    image border) becomes one unit edge, oriented so the mask pixel lies
    on the right-hand side of travel.

    Args:
        mask: (H, W) boolean mask

    Returns:
        (4, H + 1, W + 1) boolean array; [d, y, x] is True when an edge in
        direction d starts at vertex (x, y)
    """
    p = np.pad(np.asarray(mask, dtype=bool), 1)
    here = p[1:, 1:]      # pixel (x, y)
    above = p[:-1, 1:]    # pixel (x, y - 1)
    left = p[1:, :-1]     # pixel (x - 1, y)
    diag = p[:-1, :-1]    # pixel (x - 1, y - 1)

    edges = np.empty((4,) + here.shape, dtype=bool)
    edges[EAST] = here & ~above
    edges[SOUTH] = left & ~here
    edges[WEST] = diag & ~left
    edges[NORTH] = above & ~diag
    return edges


def _discovery_order(edges: np.ndarray) -> np.ndarray:
    """
    Flat edge indices ordered by owning pixel in raster order, then side
    (top, right, bottom, left).
    """
    stride = edges.shape[2]
    rows, cols, sides, flat = [], [], [], []
    # (direction, pixel offset from start vertex, side rank)
    for direction, (ox, oy), side in ((EAST, (0, 0), 0), (SOUTH, (-1, 0), 1),
                                      (WEST, (-1, -1), 2), (NORTH, (0, -1), 3)):
        ys, xs = np.nonzero(edges[direction])
        rows.append(ys + oy)
        cols.append(xs + ox)
        sides.append(np.full(len(ys), side))
        flat.append(direction * edges[0].size + ys * stride + xs)

    rows, cols, sides, flat = (np.concatenate(a) for a in (rows, cols, sides, flat))
    return flat[np.lexsort((sides, cols, rows))]


def _follow(edge_flags: bytearray, used: bytearray, start: int, plane: int, stride: int) -> List[Tuple[float, float]]:
    """Walk one closed boundary from a flat start edge, returning its corner vertices."""
    steps = (1, stride, -1, -stride)
    start_dir, start_vertex = divmod(start, plane)
    direction, vertex = start_dir, start_vertex
    corners: List[int] = []

    for _ in range(len(used)):
        used[direction * plane + vertex] = 1
        vertex += steps[direction]

        for turn in (1, 0, 3):
            candidate = (direction + turn) % 4
            if edge_flags[candidate * plane + vertex]:
                break
        else:
            y, x = divmod(vertex, stride)
            raise ContourError(f"Boundary is open at vertex ({x}, {y})")

        if vertex == start_vertex and candidate == start_dir:
            if direction != start_dir:
                corners.insert(0, start_vertex)
            return [(float(v % stride), float(v // stride)) for v in corners]

        if candidate != direction:
            corners.append(vertex)
        direction = candidate

    raise ContourError("Boundary walk did not close")


def trace_mask(mask: np.ndarray) -> List[Polygon]:
    """
    Trace every closed boundary of a binary mask.

    Outer boundaries are clockwise on screen and holes counter-clockwise.
    At saddle vertices the rightmost turn is taken, so pixels that touch
    only diagonally belong to separate polygons. Polygons are returned in
    the raster order of the pixel owning their first discovered edge.

    Args:
        mask: (H, W) boolean mask

    Returns:
        List of polygons with integer corner coordinates

    Raises:
        ContourError: If a boundary cannot be closed
    """
    edges = boundary_edges(mask)
    plane, stride = edges[0].size, edges.shape[2]
    # Flat edge index: direction * plane + y * stride + x
    edge_flags = bytearray(edges.astype(np.uint8).tobytes())
    used = bytearray(len(edge_flags))
    polygons = []

    for start in _discovery_order(edges).tolist():
        if used[start]:
            continue
        corners = _follow(edge_flags, used, start, plane, stride)
        if len(corners) < 4:
            y, x = divmod(start % plane, stride)
            raise ContourError(f"Degenerate boundary with {len(corners)} corners at ({x}, {y})")
        winding = Winding.CLOCKWISE if signed_area(corners) > 0 else Winding.COUNTERCLOCKWISE
        polygons.append(Polygon(points=tuple(corners), winding=winding))

    return polygons


def trace(label_map: ColorLabelMap) -> Dict[int, List[Polygon]]:
    """
    Trace the region boundaries of every cluster in a label map.

    Args:
        label_map: Per-pixel cluster labels

    Returns:
        Dict mapping cluster id (ascending) to its polygons in discovery order
    """
    result: Dict[int, List[Polygon]] = {}
    present = np.unique(label_map.labels)

    for cluster_id in present.tolist():
        result[int(cluster_id)] = trace_mask(label_map.labels == cluster_id)

    logger.info(
        f"Traced {sum(len(p) for p in result.values())} polygons across {len(result)} clusters"
    )
    return result
