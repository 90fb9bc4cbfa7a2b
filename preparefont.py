"""
This module rasterizes the glyphs of a TTF font into individual coverage bitmaps.

The atlas builder only ever talks to a Rasterizer, so the concrete font library can be swapped
without touching the packing or export code.
"""
import io
import os
import struct
from dataclasses import dataclass
from typing import List

from PIL import Image, ImageDraw, ImageFont
from fontTools.ttLib import TTFont, TTLibError

from log import log

# Printable ASCII range covered by the atlas (inclusive)
FIRST_CHAR = 32
LAST_CHAR = 126


class FontLoadError(Exception):
    pass


@dataclass(frozen=True)
class GlyphBitmap:
    """
    Rasterized form of a single character.
    x_offset/y_offset place the top-left pixel relative to the pen position on the baseline.
    """

    width: int
    height: int
    x_offset: int
    y_offset: int
    advance: int
    # One coverage byte per pixel, row-major, 0 = no ink, 255 = full ink
    pixels: bytes


class Rasterizer:
    """
    Turns code points into GlyphBitmaps for one font at one pixel size.
    """

    def rasterize(self, code_point: int) -> GlyphBitmap:
        raise NotImplementedError


class PillowRasterizer(Rasterizer):
    def __init__(self, font_bytes: bytes, pixel_size: int):
        if pixel_size <= 0:
            raise FontLoadError("Invalid pixel size: {}".format(pixel_size))
        try:
            self.font = ImageFont.truetype(io.BytesIO(font_bytes), size=pixel_size)
        except (OSError, ValueError) as e:
            raise FontLoadError("Unable to load font: {}".format(e)) from e
        self.pixel_size = pixel_size

    def rasterize(self, code_point: int) -> GlyphBitmap:
        char = chr(code_point)
        advance = round(self.font.getlength(char))

        # Render into a canvas covering the layout box, anchored on the baseline
        left, top, right, bottom = (int(v) for v in self.font.getbbox(char, anchor="ls"))
        if right <= left or bottom <= top:
            return GlyphBitmap(0, 0, 0, 0, advance, b"")
        canvas = Image.new("L", (right - left, bottom - top), 0)
        draw = ImageDraw.Draw(canvas)
        draw.text((-left, -top), char, fill=255, font=self.font, anchor="ls")

        # Crop to the inked pixels only
        ink = canvas.getbbox()
        if ink is None:
            return GlyphBitmap(0, 0, 0, 0, advance, b"")
        glyph = canvas.crop(ink)
        return GlyphBitmap(
            width=glyph.width,
            height=glyph.height,
            x_offset=left + ink[0],
            y_offset=top + ink[1],
            advance=advance,
            pixels=glyph.tobytes(),
        )


def load_font(path: str) -> bytes:
    with open(path, "rb") as f:
        return f.read()


# Errors fontTools raises while decoding a damaged table
FONT_PARSE_ERRORS = (TTLibError, OSError, ValueError, IndexError, KeyError, AssertionError, struct.error)


def _open_ttf(font_bytes: bytes) -> TTFont:
    try:
        return TTFont(io.BytesIO(font_bytes), lazy=True)
    except FONT_PARSE_ERRORS as e:
        raise FontLoadError("Unable to parse font: {}".format(e)) from e


def mapped_code_points(font_bytes: bytes) -> List[int]:
    """
    Returns all code points that the font's character map assigns a glyph to.
    Tables are decoded on first access, so damage there also surfaces as FontLoadError.
    """
    ttf = _open_ttf(font_bytes)
    code_points = set()
    try:
        if "cmap" in ttf:
            for table in ttf["cmap"].tables:
                for code_point in table.cmap.keys():
                    code_points.add(code_point)
    except FONT_PARSE_ERRORS as e:
        raise FontLoadError("Unable to parse cmap table: {}".format(e)) from e
    finally:
        ttf.close()
    return sorted(code_points)


def font_family_name(font_bytes: bytes, fallback: str) -> str:
    ttf = _open_ttf(font_bytes)
    name = None
    try:
        if "name" in ttf:
            name = ttf["name"].getDebugName(1)
    except FONT_PARSE_ERRORS as e:
        raise FontLoadError("Unable to parse name table: {}".format(e)) from e
    finally:
        ttf.close()
    if not name:
        return os.path.basename(fallback)
    return name


def check_coverage(font_bytes: bytes, first: int = FIRST_CHAR, last: int = LAST_CHAR) -> List[int]:
    """
    Returns the code points in [first, last] the font has no glyph for, warning about each.
    """
    mapped = set(mapped_code_points(font_bytes))
    missing = [c for c in range(first, last + 1) if c not in mapped]
    for code_point in missing:
        log("Font has no glyph for {!r} ({}), using fallback glyph".format(chr(code_point), code_point), "WARNING")
    return missing
