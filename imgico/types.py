"""Core types and exceptions for imgico."""
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional, Tuple

import numpy as np

# Type aliases
Color = Tuple[int, int, int, int]
Point = Tuple[float, float]

MIN_SIZE = 1
MAX_SIZE = 256
DEFAULT_ICON_SIZES = (16, 32, 48, 64, 128, 256)
DEFAULT_SVG_SIZE = 256


class ConversionError(Exception):
    """Base exception for conversion errors."""
    pass


class DecodeError(ConversionError):
    """Input bytes are not a recognized, intact raster image."""
    pass


class ParameterError(ConversionError):
    """A caller supplied parameter is out of range."""
    pass


class SizeRangeError(ParameterError):
    """Requested icon size set is empty or contains a value outside [1, 256]."""
    pass


class InvalidSizeError(ParameterError):
    """A single target dimension is outside [1, 256]."""
    pass


class EncodingError(ConversionError):
    """Internal invariant violated while assembling output."""
    pass


class ContourError(EncodingError):
    """A region boundary could not be traced to a closed polygon."""
    pass


def _is_int(value) -> bool:
    return isinstance(value, (int, np.integer)) and not isinstance(value, (bool, np.bool_))


def check_dimension(value, name: str = "size") -> int:
    """Validate a single target dimension, raising InvalidSizeError."""
    if not _is_int(value) or not MIN_SIZE <= value <= MAX_SIZE:
        raise InvalidSizeError(
            f"Invalid {name}: {value}. Size must be between {MIN_SIZE} and {MAX_SIZE}."
        )
    return int(value)


@dataclass(frozen=True)
class RasterImage:
    """Immutable RGBA8 raster image.

    The pixel buffer is a read-only (H, W, 4) uint8 array owned by the
    instance; constructing an image copies the caller's array.
    """
    pixels: np.ndarray

    def __post_init__(self):
        source = np.asarray(self.pixels)
        if source.dtype != np.uint8:
            raise EncodingError(f"Expected uint8 RGBA pixels, got dtype {source.dtype}")
        pixels = source.copy()
        if pixels.ndim != 3 or pixels.shape[2] != 4:
            raise EncodingError(f"Expected (H, W, 4) RGBA array, got shape {pixels.shape}")
        if pixels.shape[0] < 1 or pixels.shape[1] < 1:
            raise EncodingError(f"Image dimensions must be positive, got {pixels.shape[1]}x{pixels.shape[0]}")
        pixels.setflags(write=False)
        object.__setattr__(self, "pixels", pixels)

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def size(self) -> Tuple[int, int]:
        return self.width, self.height

    def tobytes(self) -> bytes:
        """Raw RGBA buffer, row-major; length is width * height * 4."""
        return self.pixels.tobytes()

    @classmethod
    def from_buffer(cls, data: bytes, width: int, height: int) -> "RasterImage":
        """Build an image from a raw RGBA8 buffer."""
        if width < 1 or height < 1 or len(data) != width * height * 4:
            raise DecodeError(
                f"Buffer of {len(data)} bytes does not match {width}x{height} RGBA"
            )
        return cls(np.frombuffer(data, dtype=np.uint8).reshape(height, width, 4))

    def __eq__(self, other):
        if not isinstance(other, RasterImage):
            return NotImplemented
        return self.pixels.shape == other.pixels.shape and bool(np.array_equal(self.pixels, other.pixels))

    def __hash__(self):
        return hash((self.pixels.shape, self.pixels.tobytes()))


@dataclass(frozen=True)
class SizeSet:
    """Deduplicated, ascending set of icon sizes in [1, 256]."""
    sizes: Tuple[int, ...]

    @classmethod
    def from_sequence(cls, sizes: Iterable) -> "SizeSet":
        """Normalize caller input, raising SizeRangeError on bad values."""
        if sizes is None:
            raise SizeRangeError("Icon size list must not be empty")
        try:
            values = list(sizes)
        except TypeError as e:
            raise SizeRangeError(f"Icon sizes must be a sequence of integers, got {sizes!r}") from e
        if not values:
            raise SizeRangeError("Icon size list must not be empty")
        for size in values:
            if not _is_int(size) or not MIN_SIZE <= size <= MAX_SIZE:
                raise SizeRangeError(
                    f"Invalid icon size: {size}. Size must be between {MIN_SIZE} and {MAX_SIZE}."
                )
        return cls(tuple(sorted({int(s) for s in values})))

    def __iter__(self):
        return iter(self.sizes)

    def __len__(self):
        return len(self.sizes)


@dataclass(frozen=True)
class IconEntry:
    """One directory record of an icon container."""
    width: int
    height: int
    color_depth: int
    payload_offset: int
    payload_size: int


@dataclass(frozen=True)
class IconContainer:
    """Parsed icon container: directory records plus payloads."""
    entries: Tuple[IconEntry, ...]
    payloads: Tuple[bytes, ...]

    @property
    def count(self) -> int:
        return len(self.entries)


@dataclass(frozen=True)
class ColorLabelMap:
    """Per-pixel cluster ids plus the palette they index.

    labels: (H, W) int32 array, every value a valid palette index.
    palette: (K, 4) uint8 array of RGBA colors.
    """
    labels: np.ndarray
    palette: np.ndarray

    def __post_init__(self):
        labels = np.array(self.labels, dtype=np.int32, copy=True)
        palette = np.array(self.palette, dtype=np.uint8, copy=True).reshape(-1, 4)
        if labels.ndim != 2:
            raise EncodingError(f"Label map must be 2D, got shape {labels.shape}")
        if len(palette) == 0 or labels.min() < 0 or labels.max() >= len(palette):
            raise EncodingError("Label map references a palette entry that does not exist")
        labels.setflags(write=False)
        palette.setflags(write=False)
        object.__setattr__(self, "labels", labels)
        object.__setattr__(self, "palette", palette)

    @property
    def width(self) -> int:
        return int(self.labels.shape[1])

    @property
    def height(self) -> int:
        return int(self.labels.shape[0])

    def color(self, cluster_id: int) -> Color:
        return tuple(int(c) for c in self.palette[cluster_id])


class Winding(Enum):
    """Screen-space winding (y axis pointing down)."""
    CLOCKWISE = "cw"
    COUNTERCLOCKWISE = "ccw"


@dataclass(frozen=True)
class Polygon:
    """Closed polygon; the last point implicitly connects to the first."""
    points: Tuple[Point, ...]
    winding: Winding

    @property
    def is_hole(self) -> bool:
        return self.winding is Winding.COUNTERCLOCKWISE

    def as_array(self) -> np.ndarray:
        return np.asarray(self.points, dtype=np.float64).reshape(-1, 2)

    def __len__(self):
        return len(self.points)


@dataclass(frozen=True)
class PathSegment:
    """Straight edge (no control points) or cubic Bezier segment."""
    start: Point
    end: Point
    control1: Optional[Point] = None
    control2: Optional[Point] = None

    @property
    def is_curve(self) -> bool:
        return self.control1 is not None and self.control2 is not None


@dataclass(frozen=True)
class VectorPath:
    """Filled path made of one or more closed subpaths."""
    subpaths: Tuple[Tuple[PathSegment, ...], ...]
    fill: Color
    fill_rule: str = "nonzero"

    @property
    def segments(self) -> List[PathSegment]:
        return [segment for subpath in self.subpaths for segment in subpath]


@dataclass(frozen=True)
class VectorDocument:
    """Canvas plus paths in back-to-front paint order."""
    width: int
    height: int
    paths: Tuple[VectorPath, ...] = ()


@dataclass
class IconConfig:
    """Configuration for icon container conversion."""
    sizes: Tuple[int, ...] = DEFAULT_ICON_SIZES

    # Thread pool size for per-size encoding (None = executor default)
    workers: Optional[int] = None


@dataclass
class VectorConfig:
    """Configuration for raster-to-vector conversion."""
    size: int = DEFAULT_SVG_SIZE

    # Color quantization
    max_colors: int = 32
    alpha_threshold: int = 128

    # Simplification (None = derived from size)
    tolerance: Optional[float] = None

    # Curve fitting
    corner_angle: float = 60.0

    # SVG output
    precision: int = 2
    fill_rule: str = "nonzero"


__all__ = [
    "Color", "Point", "MIN_SIZE", "MAX_SIZE", "DEFAULT_ICON_SIZES", "DEFAULT_SVG_SIZE",
    "ConversionError", "DecodeError", "ParameterError", "SizeRangeError",
    "InvalidSizeError", "EncodingError", "ContourError", "check_dimension", "RasterImage", "SizeSet",
    "IconEntry", "IconContainer", "ColorLabelMap", "Winding", "Polygon", "PathSegment",
    "VectorPath", "VectorDocument", "IconConfig", "VectorConfig",
]
