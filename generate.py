#!/usr/bin/env python3

"""
Generates the embedded debug font from a TTF font.

Usage: ./generate.py <font-path> [<destination-path>]

The destination's extension picks the output: .rs for Rust source, .png for a preview image,
.json for a metadata document. Without a destination, Rust source is written to stdout.
"""

import argparse
import sys
from typing import List, Optional

import exportfont
import fontatlas
import log
import preparefont


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Rasterizes the printable ASCII range of a TTF font into an embeddable bitmap atlas"
    )
    parser.add_argument("font", help="Input TTF font file")
    parser.add_argument(
        "destination",
        nargs="?",
        help="Output file (.rs, .png or .json). Rust source goes to stdout if omitted",
    )
    parser.add_argument(
        "--size",
        type=int,
        default=fontatlas.DEFAULT_PIXEL_SIZE,
        help="Pixel size to rasterize at (default: {})".format(fontatlas.DEFAULT_PIXEL_SIZE),
    )
    parser.add_argument(
        "--max-width",
        type=int,
        default=fontatlas.MAX_ATLAS_WIDTH,
        help="Atlas width at which glyph rows wrap (default: {})".format(fontatlas.MAX_ATLAS_WIDTH),
    )
    parser.add_argument("--quiet", help="Only print warnings and errors", action="store_true")
    return parser


def generate(font_path: str, destination: Optional[str], pixel_size: int, max_width: int):
    # Reject the destination before doing any font work
    exportfont.select_format(destination)

    font_bytes = preparefont.load_font(font_path)
    atlas = fontatlas.build_atlas(font_bytes, pixel_size, max_width)
    family = preparefont.font_family_name(font_bytes, font_path)
    exportfont.write_atlas(atlas, destination, font_path, family)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    log.VERBOSE = not args.quiet

    try:
        generate(args.font, args.destination, args.size, args.max_width)
    except (preparefont.FontLoadError, exportfont.UnsupportedFormatError) as e:
        log.log(e, "ERROR")
        return 1
    except OSError as e:
        log.log("I/O error: {}".format(e), "ERROR")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
