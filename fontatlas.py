"""
This module packs the rasterized glyphs of the printable ASCII range into a single
coverage bitmap (the atlas) and records where each glyph ended up.
"""

from dataclasses import dataclass
from typing import List, Optional, Tuple

import preparefont
from preparefont import FIRST_CHAR, LAST_CHAR, GlyphBitmap, Rasterizer
from log import log

# Rows wrap once a glyph would cross this many pixels
MAX_ATLAS_WIDTH = 128
# Empty pixels kept to the right of and below every glyph
GLYPH_PADDING = 1
# Atlas height is rounded up to a multiple of this, and is never less than it
ROW_ALIGNMENT = 8

DEFAULT_PIXEL_SIZE = 18


@dataclass(frozen=True)
class Glyph:
    code_point: int
    width: int
    height: int
    x_offset: int
    y_offset: int
    advance: int
    atlas_x: int
    atlas_y: int

    def region(self) -> Tuple[int, int, int, int]:
        return (self.atlas_x, self.atlas_y, self.atlas_x + self.width, self.atlas_y + self.height)


@dataclass(frozen=True)
class Atlas:
    width: int
    height: int
    # width * height coverage bytes, row-major, 0 = background, 255 = full ink
    pixels: bytes
    # One entry per code point, indexed by code_point - first_char
    glyphs: Tuple[Glyph, ...]
    first_char: int = FIRST_CHAR
    pixel_size: int = DEFAULT_PIXEL_SIZE

    def glyph(self, code_point: int) -> Glyph:
        index = code_point - self.first_char
        if index < 0 or index >= len(self.glyphs):
            raise KeyError("Code point {} not in atlas".format(code_point))
        return self.glyphs[index]


def pack_glyphs(
    sizes: List[Tuple[int, int]], max_width: int = MAX_ATLAS_WIDTH
) -> Tuple[List[Tuple[int, int]], int, int]:
    """
    Places rectangles left-to-right in the given order, starting a new row whenever the next one
    would cross max_width. Zero-area rectangles take no space and are placed at (0, 0).
    Returns the positions plus the atlas width and height.
    """
    widest = max([w for (w, h) in sizes if w > 0 and h > 0], default=0)
    atlas_width = max(max_width, widest + GLYPH_PADDING)

    positions: List[Tuple[int, int]] = list()
    x = 0
    y = 0
    row_height = 0
    for (width, height) in sizes:
        if width <= 0 or height <= 0:
            positions.append((0, 0))
            continue
        if x + width + GLYPH_PADDING > atlas_width:
            y = y + row_height
            x = 0
            row_height = 0
        positions.append((x, y))
        x = x + width + GLYPH_PADDING
        row_height = max(row_height, height + GLYPH_PADDING)

    # At least one aligned row, so an atlas without ink still encodes as an image
    used_height = max(y + row_height, 1)
    atlas_height = used_height + (-used_height % ROW_ALIGNMENT)
    return (positions, atlas_width, atlas_height)


def assemble_atlas(
    bitmaps: List[GlyphBitmap],
    max_width: int = MAX_ATLAS_WIDTH,
    first_char: int = FIRST_CHAR,
    pixel_size: int = DEFAULT_PIXEL_SIZE,
) -> Atlas:
    positions, atlas_width, atlas_height = pack_glyphs([(b.width, b.height) for b in bitmaps], max_width)

    pixels = bytearray(atlas_width * atlas_height)
    glyphs: List[Glyph] = list()
    for i, (bitmap, (atlas_x, atlas_y)) in enumerate(zip(bitmaps, positions)):
        # Copy the glyph into the atlas one row at a time
        for row in range(bitmap.height):
            start = (atlas_y + row) * atlas_width + atlas_x
            pixels[start : start + bitmap.width] = bitmap.pixels[row * bitmap.width : (row + 1) * bitmap.width]
        glyphs.append(
            Glyph(
                code_point=first_char + i,
                width=bitmap.width,
                height=bitmap.height,
                x_offset=bitmap.x_offset,
                y_offset=bitmap.y_offset,
                advance=bitmap.advance,
                atlas_x=atlas_x,
                atlas_y=atlas_y,
            )
        )

    return Atlas(
        width=atlas_width,
        height=atlas_height,
        pixels=bytes(pixels),
        glyphs=tuple(glyphs),
        first_char=first_char,
        pixel_size=pixel_size,
    )


def build_atlas(
    font_bytes: bytes,
    pixel_size: int = DEFAULT_PIXEL_SIZE,
    max_width: int = MAX_ATLAS_WIDTH,
    rasterizer: Optional[Rasterizer] = None,
) -> Atlas:
    """
    Rasterizes FIRST_CHAR..LAST_CHAR of the given font and packs them into an Atlas.
    Raises FontLoadError if the font can't be parsed or pixel_size isn't positive.
    """
    if pixel_size <= 0:
        raise preparefont.FontLoadError("Invalid pixel size: {}".format(pixel_size))
    if rasterizer is None:
        rasterizer = preparefont.PillowRasterizer(font_bytes, pixel_size)
        preparefont.check_coverage(font_bytes)

    bitmaps = [rasterizer.rasterize(c) for c in range(FIRST_CHAR, LAST_CHAR + 1)]
    atlas = assemble_atlas(bitmaps, max_width, FIRST_CHAR, pixel_size)
    log("Packed {} glyphs at {}px into {}x{} atlas".format(len(atlas.glyphs), pixel_size, atlas.width, atlas.height))
    return atlas
