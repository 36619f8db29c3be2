"""Tests for polygon simplification."""
import numpy as np

from imgico.contour import signed_area, trace_mask
from imgico.simplify import simplify, simplify_all, simplify_polygon, tolerance_for_size
from imgico.types import Polygon, Winding


def staircase(steps: int = 20) -> np.ndarray:
    """Closed polygon with a pixel staircase along its diagonal edge."""
    points = [(0.0, 0.0)]
    for i in range(steps):
        points.append((float(i + 1), float(i)))
        points.append((float(i + 1), float(i + 1)))
    points.append((0.0, float(steps)))
    return np.array(points)


class TestSimplifyPolygon:
    """Test cases for simplify_polygon function."""

    def test_staircase_reduced(self):
        points = staircase()

        simplified = simplify_polygon(points, 1.0)

        assert len(simplified) < len(points)
        assert len(simplified) <= 4

    def test_rectangle_kept(self):
        points = np.array([[0, 0], [256, 0], [256, 256], [0, 256]], dtype=float)

        simplified = simplify_polygon(points, 1.0)

        np.testing.assert_array_equal(simplified, points)

    def test_starts_at_first_kept_vertex(self):
        points = np.array([[0, 0], [5, 0], [10, 0], [10, 10], [5, 10], [0, 10]], dtype=float)

        simplified = simplify_polygon(points, 0.5)

        assert tuple(simplified[0]) == (0.0, 0.0)
        assert len(simplified) == 4

    def test_small_polygon_not_collapsed(self):
        points = np.array([[3, 2], [4, 2], [4, 3], [3, 3]], dtype=float)

        simplified = simplify_polygon(points, 5.0)

        np.testing.assert_array_equal(simplified, points)

    def test_orientation_preserved(self):
        points = staircase()[::-1].copy()

        simplified = simplify_polygon(points, 1.0)

        assert np.sign(signed_area(simplified)) == np.sign(signed_area(points))


class TestToleranceForSize:
    """Test cases for tolerance scaling."""

    def test_scales_with_canvas(self):
        assert tolerance_for_size(256) == 1.0
        assert tolerance_for_size(128) == 0.5
        assert tolerance_for_size(16) == 0.5


class TestSimplify:
    """Test cases for simplify function."""

    def test_rectangle_path(self):
        polygon = Polygon(points=((0.0, 0.0), (4.0, 0.0), (4.0, 4.0), (0.0, 4.0)), winding=Winding.CLOCKWISE)

        path = simplify(polygon, 1.0, fill=(1, 2, 3, 255))

        assert path.fill == (1, 2, 3, 255)
        assert len(path.subpaths) == 1
        assert [s.start for s in path.subpaths[0]] == list(polygon.points)
        assert not any(s.is_curve for s in path.segments)

    def test_compound_path(self):
        mask = np.ones((6, 6), dtype=bool)
        mask[2:4, 2:4] = False

        path = simplify_all(trace_mask(mask), 0.5, fill=(0, 0, 0, 255))

        assert len(path.subpaths) == 2

    def test_no_polygons(self):
        assert simplify_all([], 1.0) is None
