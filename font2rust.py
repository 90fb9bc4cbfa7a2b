"""
This module converts an Atlas to Rust source code that can be compiled into a program as static data,
and parses such source back into an Atlas.
"""

import os
import re
from typing import Dict, List

from fontatlas import Atlas, Glyph

# Pixels per line in the GLYPH_ATLAS array
BYTES_PER_LINE = 16

# Order of the fields in GlyphInfo, mapped to the matching Glyph attribute
GLYPH_FIELDS: List[str] = ["width", "height", "x_offset", "y_offset", "x_advance", "atlas_x", "atlas_y"]
GLYPH_ATTRIBUTES: Dict[str, str] = {
    "width": "width",
    "height": "height",
    "x_offset": "x_offset",
    "y_offset": "y_offset",
    "x_advance": "advance",
    "atlas_x": "atlas_x",
    "atlas_y": "atlas_y",
}

find_constant_regex = re.compile(r"^pub const ([A-Z_]+): (u32|usize) = (\d+);$", flags=re.MULTILINE)
find_atlas_regex = re.compile(r"pub const GLYPH_ATLAS: \[u8; (\d+)\] = \[(.*?)\];", flags=re.DOTALL)
find_glyph_regex = re.compile(r"GlyphInfo \{ (\w+: -?\d+(?:, \w+: -?\d+)*) \}")


def _glyph_line(glyph: Glyph) -> str:
    fields = ", ".join(
        "{}: {}".format(field, getattr(glyph, GLYPH_ATTRIBUTES[field])) for field in GLYPH_FIELDS
    )
    return "    GlyphInfo {{ {} }}, // {!r}\n".format(fields, chr(glyph.code_point))


def atlas_to_rust(atlas: Atlas, font_path: str = "", family: str = "") -> str:
    font_name = os.path.basename(font_path)
    if family:
        font_name = "{} ({})".format(font_name, family).strip()

    lines: List[str] = list()
    lines.append("/// An embedded bitmap ascii font for debugging purposes.\n")
    lines.append("/// Generated from font {} at {}px.\n".format(font_name, atlas.pixel_size))
    lines.append("\n")
    lines.append("pub const ATLAS_WIDTH: u32 = {};\n".format(atlas.width))
    lines.append("pub const ATLAS_HEIGHT: u32 = {};\n".format(atlas.height))
    lines.append("\n")

    # Coverage bytes, 0 = no ink, 255 = full ink
    lines.append("pub const GLYPH_ATLAS: [u8; {}] = [\n".format(len(atlas.pixels)))
    for start in range(0, len(atlas.pixels), BYTES_PER_LINE):
        chunk = atlas.pixels[start : start + BYTES_PER_LINE]
        lines.append("    {},\n".format(", ".join("0x{:02X}".format(p) for p in chunk)))
    lines.append("];\n")
    lines.append("\n")

    lines.append("pub const FIRST_CHAR: u32 = {};\n".format(atlas.first_char))
    lines.append("pub const GLYPH_COUNT: usize = {};\n".format(len(atlas.glyphs)))
    lines.append("pub const FONT_HEIGHT: u32 = {};\n".format(atlas.pixel_size))
    lines.append("\n")

    lines.append("#[derive(Copy, Clone, Debug)]\n")
    lines.append("pub struct GlyphInfo {\n")
    for field in GLYPH_FIELDS:
        rust_type = "i16" if field in ("x_offset", "y_offset", "x_advance") else "u16"
        lines.append("    pub {}: {},\n".format(field, rust_type))
    lines.append("}\n")
    lines.append("\n")

    # Indexed by code_point - FIRST_CHAR
    lines.append("pub const GLYPH_INFO: [GlyphInfo; GLYPH_COUNT] = [\n")
    for glyph in atlas.glyphs:
        lines.append(_glyph_line(glyph))
    lines.append("];\n")

    return "".join(lines)


def parse_rust(source: str) -> Atlas:
    """
    Reads source produced by atlas_to_rust back into an Atlas.
    """
    constants: Dict[str, int] = dict()
    for match in find_constant_regex.finditer(source):
        constants[match.group(1)] = int(match.group(3))
    for name in ["ATLAS_WIDTH", "ATLAS_HEIGHT", "FIRST_CHAR", "GLYPH_COUNT", "FONT_HEIGHT"]:
        if name not in constants:
            raise ValueError("Missing constant {}".format(name))

    atlas_match = find_atlas_regex.search(source)
    if atlas_match is None:
        raise ValueError("Missing GLYPH_ATLAS array")
    pixels = bytes(int(v, 16) for v in atlas_match.group(2).replace(",", " ").split())
    if len(pixels) != int(atlas_match.group(1)) or len(pixels) != constants["ATLAS_WIDTH"] * constants["ATLAS_HEIGHT"]:
        raise ValueError("GLYPH_ATLAS length doesn't match atlas size")

    glyphs: List[Glyph] = list()
    for i, match in enumerate(find_glyph_regex.finditer(source)):
        values: Dict[str, int] = dict()
        for field in match.group(1).split(", "):
            key, value = field.split(": ")
            values[GLYPH_ATTRIBUTES[key]] = int(value)
        glyphs.append(Glyph(code_point=constants["FIRST_CHAR"] + i, **values))
    if len(glyphs) != constants["GLYPH_COUNT"]:
        raise ValueError("Expected {} glyphs, found {}".format(constants["GLYPH_COUNT"], len(glyphs)))

    return Atlas(
        width=constants["ATLAS_WIDTH"],
        height=constants["ATLAS_HEIGHT"],
        pixels=pixels,
        glyphs=tuple(glyphs),
        first_char=constants["FIRST_CHAR"],
        pixel_size=constants["FONT_HEIGHT"],
    )
