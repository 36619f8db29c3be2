"""Command line interface for imgico."""
import argparse
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from imgico.ico import parse_container
from imgico.pipeline import imgico, imgsvg
from imgico.types import DEFAULT_ICON_SIZES, ConversionError

logger = logging.getLogger(__name__)


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser."""
    parser = argparse.ArgumentParser(
        prog='imgico',
        description='Convert images to ICO or SVG',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  imgico logo.png
  imgico logo.png --format svg
  imgico logo.png --sizes 16,32,48 --combined
        """,
    )

    parser.add_argument(
        'input',
        type=str,
        help='Input image path'
    )

    parser.add_argument(
        '-f', '--format',
        type=str.lower,
        choices=['ico', 'svg'],
        default='ico',
        help="Output format: 'ico' or 'svg' (default: ico)"
    )

    parser.add_argument(
        '--sizes',
        type=parse_sizes,
        default=list(DEFAULT_ICON_SIZES),
        help='Comma-separated sizes (default: 16,32,48,64,128,256)'
    )

    parser.add_argument(
        '--output-dir',
        type=str,
        default='.',
        help='Directory in which the timestamped output folder is created (default: .)'
    )

    parser.add_argument(
        '--combined',
        action='store_true',
        help='Also write one icon.ico holding every size (ico format only)'
    )

    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Log conversion progress'
    )

    return parser


def parse_sizes(value: str) -> List[int]:
    """Parse a comma-separated size list."""
    try:
        return [int(part) for part in value.split(',') if part.strip()]
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid size list: {value!r}")


def output_dir_name(now: Optional[datetime] = None) -> str:
    """Folder name imgico-YYYY-MM-DDTHH-MM-SS-mmmZ for a UTC timestamp."""
    now = now or datetime.now(timezone.utc)
    return f"imgico-{now.strftime('%Y-%m-%dT%H-%M-%S')}-{now.microsecond // 1000:03d}Z"


def main(args=None) -> int:
    """
    Main entry point.

    Returns:
        Exit code (0 for success, 1 for error)
    """
    parser = create_parser()
    parsed = parser.parse_args(args)

    logging.basicConfig(
        level=logging.INFO if parsed.verbose else logging.WARNING,
        format='%(levelname)s %(name)s: %(message)s',
    )

    input_path = Path(parsed.input)
    if not input_path.exists():
        print(f"Error: Input file not found: {input_path}", file=sys.stderr)
        return 1

    if not parsed.sizes:
        print("Error: --sizes must name at least one size", file=sys.stderr)
        return 1

    is_svg = parsed.format == 'svg'

    try:
        data = input_path.read_bytes()

        outputs = []
        for size in parsed.sizes:
            if is_svg:
                outputs.append((f"{size}.svg", imgsvg(data, size)))
            else:
                # Single-size container per file
                outputs.append((f"{size}.ico", imgico(data, [size])))

        if parsed.combined and not is_svg:
            combined = imgico(data, parsed.sizes)
            outputs.append(("icon.ico", combined))
            for entry in parse_container(combined).entries:
                logger.info(f"  icon.ico entry {entry.width}x{entry.height}: {entry.payload_size} bytes")

        out_dir = Path(parsed.output_dir) / output_dir_name()
        out_dir.mkdir(parents=True, exist_ok=True)
        for name, buffer in outputs:
            (out_dir / name).write_bytes(buffer)
            logger.info(f"Wrote {out_dir / name}")

    except ConversionError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(f"Extracted {'SVG' if is_svg else 'ICO'} images to {out_dir}")
    return 0


if __name__ == '__main__':
    sys.exit(main())
