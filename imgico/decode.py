"""Raster decoding with signature sniffing."""
import io
import logging
from dataclasses import dataclass
from typing import Callable, Optional, Sequence, Tuple

import numpy as np
from PIL import Image, ImageOps

from imgico.types import DecodeError, RasterImage

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Decoder:
    """Decode capability for one source format.

    Attributes:
        name: Format name, also the Pillow format identifier
        matches: Predicate over the leading bytes of the input
    """
    name: str
    matches: Callable[[bytes], bool]

    def decode(self, data: bytes) -> RasterImage:
        """Decode data of this format into a RasterImage."""
        try:
            with Image.open(io.BytesIO(data), formats=[self.name]) as img:
                # Forces the full payload through the codec so truncation surfaces here
                img.load()
                img = ImageOps.exif_transpose(img)
                if img.mode != 'RGBA':
                    img = img.convert('RGBA')
                pixels = np.array(img, dtype=np.uint8)
        except (IOError, OSError) as e:
            raise DecodeError(f"Failed to load image: {e}") from e
        except Exception as e:
            raise DecodeError(f"Failed to load image: corrupt {self.name} data ({e})") from e

        if pixels.ndim != 3 or pixels.shape[2] != 4 or pixels.size == 0:
            raise DecodeError(f"Failed to load image: decoded buffer has shape {pixels.shape}")

        return RasterImage(pixels)


def _is_png(head: bytes) -> bool:
    return head.startswith(b'\x89PNG\r\n\x1a\n')


def _is_jpeg(head: bytes) -> bool:
    return head.startswith(b'\xff\xd8\xff')


def _is_gif(head: bytes) -> bool:
    return head[:6] in (b'GIF87a', b'GIF89a')


def _is_bmp(head: bytes) -> bool:
    return head.startswith(b'BM')


def _is_webp(head: bytes) -> bool:
    return head[:4] == b'RIFF' and head[8:12] == b'WEBP'


def _is_tiff(head: bytes) -> bool:
    return head[:4] in (b'II*\x00', b'MM\x00*')


def _is_ico(head: bytes) -> bool:
    return head[:4] == b'\x00\x00\x01\x00'


DEFAULT_DECODERS: Tuple[Decoder, ...] = (
    Decoder('PNG', _is_png),
    Decoder('JPEG', _is_jpeg),
    Decoder('GIF', _is_gif),
    Decoder('BMP', _is_bmp),
    Decoder('WEBP', _is_webp),
    Decoder('TIFF', _is_tiff),
    Decoder('ICO', _is_ico),
)


def sniff_format(data: bytes, decoders: Sequence[Decoder] = DEFAULT_DECODERS) -> Optional[Decoder]:
    """Return the first decoder whose signature matches data, or None."""
    head = bytes(data[:16])
    for decoder in decoders:
        if decoder.matches(head):
            return decoder
    return None


def decode(data: bytes, decoders: Sequence[Decoder] = DEFAULT_DECODERS) -> RasterImage:
    """
    Decode an encoded image buffer into a RasterImage.

    The format is chosen by sniffing the leading signature bytes; only the
    matching decoder is tried.

    Args:
        data: Encoded image bytes
        decoders: Decoder capabilities to choose from, in priority order

    Returns:
        RasterImage with RGBA8 pixels

    Raises:
        DecodeError: If data is empty, has an unknown signature, or is
            truncated or otherwise corrupt
    """
    if data is None or len(data) == 0:
        raise DecodeError("Failed to load image: input is empty")

    decoder = sniff_format(data, decoders)
    if decoder is None:
        raise DecodeError("Failed to load image: unrecognized image signature")

    image = decoder.decode(bytes(data))
    logger.info(f"Decoded {decoder.name} image: {image.width}x{image.height}")
    return image
