"""Integration tests for the conversion entry points."""
from concurrent.futures import ThreadPoolExecutor
from xml.etree import ElementTree as ET

import numpy as np
import pytest

from conftest import encode_image, quadrants, solid
from imgico import imgico, imgsvg, vectorize
from imgico.decode import decode
from imgico.ico import parse_container
from imgico.types import (
    DecodeError,
    IconConfig,
    InvalidSizeError,
    ParameterError,
    SizeRangeError,
    VectorConfig,
)

SVG_NS = "{http://www.w3.org/2000/svg}"


class TestImgico:
    """Test cases for the imgico entry point."""

    def test_default_sizes(self, quadrant_png):
        container = parse_container(imgico(quadrant_png))

        assert [e.width for e in container.entries] == [16, 32, 48, 64, 128, 256]
        assert [e.height for e in container.entries] == [16, 32, 48, 64, 128, 256]

    def test_size_normalization(self, quadrant_png):
        assert imgico(quadrant_png, [64, 16, 16, 32]) == imgico(quadrant_png, [16, 32, 64])

    def test_deterministic(self, circle_png):
        assert imgico(circle_png, [16, 48]) == imgico(circle_png, [16, 48])

    def test_non_square_source(self):
        data = encode_image(solid(40, 10))

        container = parse_container(imgico(data, [32]))

        assert (container.entries[0].width, container.entries[0].height) == (32, 32)

    def test_config_workers(self, quadrant_png):
        config = IconConfig(sizes=(16, 32, 48), workers=1)

        assert imgico(quadrant_png, config=config) == imgico(quadrant_png, [16, 32, 48])

    @pytest.mark.parametrize("sizes", [[], [0], [257], [16, 512], [16.0]])
    def test_invalid_sizes(self, quadrant_png, sizes):
        with pytest.raises(SizeRangeError):
            imgico(quadrant_png, sizes)

    def test_size_errors_are_parameter_errors(self, quadrant_png):
        with pytest.raises(ParameterError):
            imgico(quadrant_png, [])

    def test_empty_input_checked_first(self):
        with pytest.raises(DecodeError):
            imgico(b"", [])

    def test_truncated_input(self, circle_png):
        with pytest.raises(DecodeError):
            imgico(circle_png[:40])

    def test_concurrent_calls(self, circle_png):
        expected = imgico(circle_png, [16, 32])

        with ThreadPoolExecutor(max_workers=4) as executor:
            results = list(executor.map(lambda _: imgico(circle_png, [16, 32]), range(4)))

        assert all(result == expected for result in results)


class TestImgsvg:
    """Test cases for the imgsvg entry point."""

    def test_default_canvas(self, circle_png):
        root = ET.fromstring(imgsvg(circle_png))

        assert root.tag == f"{SVG_NS}svg"
        assert root.get("viewBox") == "0 0 256 256"
        assert root.get("width") == "256"
        assert root.get("height") == "256"

    def test_requested_size(self, circle_png):
        root = ET.fromstring(imgsvg(circle_png, 32))

        assert root.get("viewBox") == "0 0 32 32"

    def test_single_color_is_one_canvas_path(self, solid_png):
        root = ET.fromstring(imgsvg(solid_png))
        paths = root.findall(f"{SVG_NS}path")

        assert len(paths) == 1
        assert paths[0].get("d") == "M0,0 L256,0 L256,256 L0,256 Z"
        assert paths[0].get("fill") == "#c82828"

    def test_translucent_single_color_path(self):
        pixels = solid(2, 2, (255, 0, 0, 100))

        paths = ET.fromstring(imgsvg(encode_image(pixels), 2)).findall(f"{SVG_NS}path")

        assert len(paths) == 1
        assert paths[0].get("d") == "M0,0 L2,0 L2,2 L0,2 Z"
        assert paths[0].get("fill") == "#ff0000"
        assert paths[0].get("fill-opacity") == "0.392"

    def test_flat_regions(self, quadrant_png):
        paths = ET.fromstring(imgsvg(quadrant_png, 64)).findall(f"{SVG_NS}path")

        assert [p.get("fill") for p in paths] == ["#0000ff", "#00ff00", "#ff0000", "#ffff00"]
        assert all(p.get("d").count("M") == 1 for p in paths)

    def test_transparent_regions_not_emitted(self):
        pixels = solid(16, 16, (10, 200, 10, 255))
        pixels[:, :8] = [0, 0, 0, 0]

        paths = ET.fromstring(imgsvg(encode_image(pixels), 16)).findall(f"{SVG_NS}path")

        assert len(paths) == 1
        assert paths[0].get("d") == "M8,0 L16,0 L16,16 L8,16 Z"

    def test_curves_for_round_shapes(self):
        y, x = np.mgrid[0:256, 0:256]
        pixels = solid(256, 256, (255, 255, 255, 255))
        pixels[(x - 127.5) ** 2 + (y - 127.5) ** 2 <= 100 ** 2] = [0, 0, 0, 255]

        paths = ET.fromstring(imgsvg(encode_image(pixels))).findall(f"{SVG_NS}path")

        assert len(paths) == 2
        assert any("C" in p.get("d") for p in paths)

    def test_deterministic(self, circle_png):
        assert imgsvg(circle_png, 64) == imgsvg(circle_png, 64)

    @pytest.mark.parametrize("size", [0, 257, -5, 1000])
    def test_invalid_size(self, circle_png, size):
        with pytest.raises(InvalidSizeError):
            imgsvg(circle_png, size)

    def test_empty_input_checked_first(self):
        with pytest.raises(DecodeError):
            imgsvg(b"", 0)

    def test_garbage_input(self):
        with pytest.raises(DecodeError):
            imgsvg(b"\x00garbage")


class TestVectorize:
    """Test cases for the vectorize pipeline."""

    def test_single_color_document(self, solid_png):
        document = vectorize(decode(solid_png), VectorConfig())

        assert (document.width, document.height) == (256, 256)
        assert len(document.paths) == 1
        path = document.paths[0]
        assert path.fill == (200, 40, 40, 255)
        assert [s.start for s in path.segments] == [(0.0, 0.0), (256.0, 0.0), (256.0, 256.0), (0.0, 256.0)]

    def test_translucent_single_color_document(self):
        """Test that a uniformly translucent image still fills the canvas."""
        pixels = solid(2, 2, (255, 0, 0, 100))

        document = vectorize(decode(encode_image(pixels)), VectorConfig(size=2))

        assert len(document.paths) == 1
        path = document.paths[0]
        assert path.fill == (255, 0, 0, 100)
        assert [s.start for s in path.segments] == [(0.0, 0.0), (2.0, 0.0), (2.0, 2.0), (0.0, 2.0)]

    def test_hole_kept_in_compound_path(self):
        pixels = solid(32, 32, (255, 255, 255, 255))
        pixels[8:24, 8:24] = [0, 0, 0, 255]
        pixels[12:20, 12:20] = [255, 255, 255, 255]

        document = vectorize(decode(encode_image(pixels)), VectorConfig(size=32))
        subpath_counts = sorted(len(path.subpaths) for path in document.paths)

        assert len(document.paths) == 2
        assert subpath_counts == [2, 3]

    def test_palette_bound_respected(self):
        rng = np.random.RandomState(5)
        pixels = rng.randint(0, 256, (32, 32, 4)).astype(np.uint8)
        pixels[..., 3] = 255

        document = vectorize(decode(encode_image(pixels)), VectorConfig(size=32, max_colors=6))

        assert 1 <= len(document.paths) <= 6
