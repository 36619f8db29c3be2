"""imgico: raster images to multi-resolution ICO containers and SVG tracings."""
from imgico.pipeline import imgico, imgsvg, vectorize
from imgico.types import (
    ConversionError,
    DecodeError,
    EncodingError,
    IconConfig,
    InvalidSizeError,
    ParameterError,
    RasterImage,
    SizeRangeError,
    VectorConfig,
    VectorDocument,
)

__version__ = "0.1.0"
__all__ = [
    "imgico",
    "imgsvg",
    "vectorize",
    "ConversionError",
    "DecodeError",
    "EncodingError",
    "IconConfig",
    "InvalidSizeError",
    "ParameterError",
    "RasterImage",
    "SizeRangeError",
    "VectorConfig",
    "VectorDocument",
]
