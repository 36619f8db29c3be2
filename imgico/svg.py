"""SVG serialization of vector documents."""
import math
from typing import List

from imgico.types import Color, EncodingError, PathSegment, VectorDocument, VectorPath

SVG_NAMESPACE = "http://www.w3.org/2000/svg"
FILL_RULES = ("nonzero", "evenodd")
DEFAULT_PRECISION = 2


def format_number(x: float, precision: int = DEFAULT_PRECISION) -> str:
    """
    Format number with fixed precision.

    Trailing zeros and a bare decimal point are removed; negative zero is
    written as 0.

    Raises:
        EncodingError: If x is not finite
    """
    if not math.isfinite(x):
        raise EncodingError(f"Cannot serialize non-finite coordinate {x}")
    formatted = f"{x:.{precision}f}"
    if '.' in formatted:
        formatted = formatted.rstrip('0').rstrip('.')
    if formatted == '-0':
        formatted = '0'
    return formatted


def format_color(color: Color) -> str:
    """Format an RGB(A) color as #rrggbb (alpha ignored)."""
    r, g, b = [min(255, max(0, int(c))) for c in color[:3]]
    return f"#{r:02x}{g:02x}{b:02x}"


def _pair(point, precision: int) -> str:
    return f"{format_number(point[0], precision)},{format_number(point[1], precision)}"


def segment_command(segment: PathSegment, precision: int = DEFAULT_PRECISION) -> str:
    """Absolute L or C command ending at the segment's end point."""
    if segment.is_curve:
        return (
            f"C{_pair(segment.control1, precision)} "
            f"{_pair(segment.control2, precision)} "
            f"{_pair(segment.end, precision)}"
        )
    return f"L{_pair(segment.end, precision)}"


def path_data(path: VectorPath, precision: int = DEFAULT_PRECISION) -> str:
    """
    Build the d attribute of a path.

    Each subpath starts with M at its first segment's start point and ends
    with Z; a closing straight edge is left to Z.
    """
    commands: List[str] = []
    for subpath in path.subpaths:
        if not subpath:
            continue
        commands.append(f"M{_pair(subpath[0].start, precision)}")
        body = list(subpath)
        if not body[-1].is_curve:
            body = body[:-1]
        commands.extend(segment_command(segment, precision) for segment in body)
        commands.append("Z")
    return ' '.join(commands)


def path_element(path: VectorPath, precision: int = DEFAULT_PRECISION) -> str:
    """Serialize one VectorPath as a <path/> element, or '' if it has no geometry."""
    if path.fill_rule not in FILL_RULES:
        raise EncodingError(f"Unknown fill rule: {path.fill_rule}")

    data = path_data(path, precision)
    if not data:
        return ""

    attributes = f'd="{data}" fill="{format_color(path.fill)}" fill-rule="{path.fill_rule}"'
    alpha = int(path.fill[3]) if len(path.fill) > 3 else 255
    if alpha < 255:
        attributes += f' fill-opacity="{format_number(alpha / 255.0, 3)}"'
    return f'<path {attributes}/>'


def emit(document: VectorDocument, precision: int = DEFAULT_PRECISION) -> bytes:
    """
    Serialize a vector document as UTF-8 SVG markup.

    Paths are written in document order (back to front).

    Args:
        document: Canvas size and paths
        precision: Decimal places for coordinates

    Returns:
        Complete SVG document bytes

    Raises:
        EncodingError: If the document cannot be represented
    """
    width, height = document.width, document.height
    if not (isinstance(width, int) and isinstance(height, int)) or width < 1 or height < 1:
        raise EncodingError(f"Invalid canvas size {width}x{height}")

    path_elements = [path_element(path, precision) for path in document.paths]
    svg_content = '\n  '.join(element for element in path_elements if element)

    svg = f'''<?xml version="1.0" encoding="UTF-8"?>
<svg xmlns="{SVG_NAMESPACE}" width="{width}" height="{height}" viewBox="0 0 {width} {height}">
  {svg_content}
</svg>
'''
    return svg.encode('utf-8')
