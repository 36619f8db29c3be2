"""ICO container packing with PNG-encoded entries."""
import io
import logging
import struct
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, List, Optional, Sequence, Tuple

from PIL import Image

from imgico.resample import fit_square
from imgico.types import (
    DecodeError,
    EncodingError,
    IconContainer,
    IconEntry,
    RasterImage,
    SizeSet,
)

logger = logging.getLogger(__name__)

# reserved, type, count
HEADER_FORMAT = '<HHH'
# width, height, colorCount, reserved, planes, bitsPerPixel, payloadSize, payloadOffset
DIRECTORY_FORMAT = '<BBBBHHII'
HEADER_SIZE = struct.calcsize(HEADER_FORMAT)
DIRECTORY_SIZE = struct.calcsize(DIRECTORY_FORMAT)

ICON_TYPE = 1
COLOR_PLANES = 1
BITS_PER_PIXEL = 32
MAX_ENTRIES = 0xFFFF
MAX_PAYLOAD = 0xFFFFFFFF


def encode_png(image: RasterImage) -> bytes:
    """Encode an image as a 32-bit RGBA PNG stream."""
    buffer = io.BytesIO()
    try:
        Image.fromarray(image.pixels).save(buffer, format='PNG')
    except (IOError, OSError, ValueError) as e:
        raise EncodingError(f"Failed to write PNG: {e}") from e
    return buffer.getvalue()


def _dimension_byte(value: int) -> int:
    # 256 is stored as 0
    return 0 if value >= 256 else value


def build_container(entries: Sequence[Tuple[int, int, bytes]]) -> bytes:
    """
    Assemble an ICO container from already encoded payloads.

    Args:
        entries: (width, height, payload) per directory record, in output order

    Returns:
        Complete container bytes

    Raises:
        EncodingError: If the entries cannot be represented in the format
    """
    if not entries or len(entries) > MAX_ENTRIES:
        raise EncodingError(f"Icon container cannot hold {len(entries)} entries")

    header = struct.pack(HEADER_FORMAT, 0, ICON_TYPE, len(entries))
    offset = HEADER_SIZE + DIRECTORY_SIZE * len(entries)

    directory = []
    for width, height, payload in entries:
        if not (1 <= width <= 256 and 1 <= height <= 256):
            raise EncodingError(f"Entry dimensions {width}x{height} out of range")
        if not payload or offset + len(payload) > MAX_PAYLOAD:
            raise EncodingError(f"Entry payload of {len(payload)} bytes cannot be placed at {offset}")
        directory.append(struct.pack(
            DIRECTORY_FORMAT,
            _dimension_byte(width),
            _dimension_byte(height),
            0,  # colorCount: use bit depth
            0,
            COLOR_PLANES,
            BITS_PER_PIXEL,
            len(payload),
            offset,
        ))
        offset += len(payload)

    data = b''.join([header] + directory + [payload for _, _, payload in entries])
    if len(data) != offset:
        raise EncodingError(f"Container length {len(data)} does not match layout end {offset}")
    return data


def _encode_entry(image: RasterImage, size: int) -> Tuple[int, int, bytes]:
    resized = fit_square(image, size)
    payload = encode_png(resized)
    logger.debug(f"Encoded {size}x{size} entry: {len(payload)} bytes")
    return resized.width, resized.height, payload


def encode(
    image: RasterImage,
    sizes: Iterable[int],
    workers: Optional[int] = None,
) -> bytes:
    """
    Pack resized copies of an image into an ICO container.

    Sizes are deduplicated and written in ascending order. Per-size
    resampling and PNG encoding run on a thread pool; the directory is
    always assembled in ascending size order.

    Args:
        image: Source image
        sizes: Requested sizes, each in [1, 256]
        workers: Thread pool size (None = executor default)

    Returns:
        ICO container bytes

    Raises:
        SizeRangeError: If sizes is empty or holds a value outside [1, 256]
        EncodingError: If the container cannot be assembled
    """
    size_set = sizes if isinstance(sizes, SizeSet) else SizeSet.from_sequence(sizes)

    if len(size_set) == 1:
        entries = [_encode_entry(image, size_set.sizes[0])]
    else:
        with ThreadPoolExecutor(max_workers=workers) as executor:
            # map() yields in submission order regardless of completion order
            entries = list(executor.map(lambda s: _encode_entry(image, s), size_set))

    data = build_container(entries)
    logger.info(f"Built icon container: {len(entries)} entries, {len(data)} bytes")
    return data


def parse_container(data: bytes) -> IconContainer:
    """
    Read the header, directory and payloads of an ICO container.

    Raises:
        DecodeError: If the buffer is not a well-formed icon container
    """
    if len(data) < HEADER_SIZE:
        raise DecodeError("Icon container is shorter than its header")

    reserved, kind, count = struct.unpack_from(HEADER_FORMAT, data, 0)
    if reserved != 0 or kind != ICON_TYPE:
        raise DecodeError(f"Not an icon container (reserved={reserved}, type={kind})")
    if len(data) < HEADER_SIZE + DIRECTORY_SIZE * count:
        raise DecodeError(f"Icon directory of {count} entries is truncated")

    entries: List[IconEntry] = []
    payloads: List[bytes] = []
    for index in range(count):
        width, height, _, _, _, bits, size, offset = struct.unpack_from(
            DIRECTORY_FORMAT, data, HEADER_SIZE + DIRECTORY_SIZE * index
        )
        if offset + size > len(data):
            raise DecodeError(f"Entry {index} payload runs past end of container")
        entries.append(IconEntry(
            width=width or 256,
            height=height or 256,
            color_depth=bits,
            payload_offset=offset,
            payload_size=size,
        ))
        payloads.append(bytes(data[offset:offset + size]))

    return IconContainer(entries=tuple(entries), payloads=tuple(payloads))
