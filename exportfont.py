"""
This module writes an Atlas to disk (or stdout) in the format implied by the destination's extension.
"""

import io
import os
import sys
import tempfile
from dataclasses import dataclass
from typing import Dict, List, Optional

from dataclasses_json import dataclass_json
from PIL import Image

import font2rust
from fontatlas import Atlas, Glyph
from log import log

FORMAT_RUST = "rust"
FORMAT_PNG = "png"
FORMAT_JSON = "json"

FORMATS_BY_EXTENSION: Dict[str, str] = {
    ".rs": FORMAT_RUST,
    ".png": FORMAT_PNG,
    ".json": FORMAT_JSON,
}


class UnsupportedFormatError(Exception):
    pass


def select_format(destination: Optional[str]) -> str:
    """
    No destination means Rust source on stdout.
    """
    if destination is None:
        return FORMAT_RUST
    extension = os.path.splitext(destination)[1].lower()
    if extension not in FORMATS_BY_EXTENSION:
        raise UnsupportedFormatError(
            "Unsupported output format '{}' (expected one of {})".format(
                extension, ", ".join(sorted(FORMATS_BY_EXTENSION))
            )
        )
    return FORMATS_BY_EXTENSION[extension]


def atlas_to_png(atlas: Atlas) -> bytes:
    # Grayscale coverage replicated into RGB, fully opaque
    gray = Image.frombytes("L", (atlas.width, atlas.height), atlas.pixels)
    alpha = Image.new("L", gray.size, 255)
    img = Image.merge("RGBA", (gray, gray, gray, alpha))
    out = io.BytesIO()
    img.save(out, "PNG")
    return out.getvalue()


# These are used for JSON serialization
# Structure mirrors the GlyphInfo records of the Rust output
@dataclass_json
@dataclass
class GlyphEntry:
    code_point: int
    width: int
    height: int
    x_offset: int
    y_offset: int
    advance: int
    atlas_x: int
    atlas_y: int


@dataclass_json
@dataclass
class AtlasDocument:
    font: str
    pixel_size: int
    first_char: int
    width: int
    height: int
    glyphs: List[GlyphEntry]
    # Hex-encoded coverage bytes, row-major
    pixels: str


def atlas_to_json(atlas: Atlas, font_name: str = "") -> str:
    document = AtlasDocument(
        font=font_name,
        pixel_size=atlas.pixel_size,
        first_char=atlas.first_char,
        width=atlas.width,
        height=atlas.height,
        glyphs=[GlyphEntry(**vars(glyph)) for glyph in atlas.glyphs],
        pixels=atlas.pixels.hex(),
    )
    return document.to_json(indent=2) + "\n"


def atlas_from_json(text: str) -> Atlas:
    document: AtlasDocument = AtlasDocument.from_json(text)
    return Atlas(
        width=document.width,
        height=document.height,
        pixels=bytes.fromhex(document.pixels),
        glyphs=tuple(Glyph(**vars(entry)) for entry in document.glyphs),
        first_char=document.first_char,
        pixel_size=document.pixel_size,
    )


def encode_atlas(atlas: Atlas, output_format: str, font_path: str = "", family: str = "") -> bytes:
    if output_format == FORMAT_RUST:
        return font2rust.atlas_to_rust(atlas, font_path, family).encode("utf-8")
    elif output_format == FORMAT_PNG:
        return atlas_to_png(atlas)
    elif output_format == FORMAT_JSON:
        return atlas_to_json(atlas, family or os.path.basename(font_path)).encode("utf-8")
    else:
        raise UnsupportedFormatError("Unknown output format: {}".format(output_format))


def write_file_atomically(path: str, data: bytes):
    """
    Writes data next to path and moves it into place once complete.
    If anything fails, path is left untouched and the temporary file is removed.
    """
    directory = os.path.dirname(os.path.abspath(path))
    fd, temp_path = tempfile.mkstemp(prefix=".tmp-", dir=directory)
    try:
        os.chmod(temp_path, 0o644)
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        os.replace(temp_path, path)
    except BaseException:
        os.unlink(temp_path)
        raise


def write_atlas(atlas: Atlas, destination: Optional[str], font_path: str = "", family: str = ""):
    output_format = select_format(destination)
    data = encode_atlas(atlas, output_format, font_path, family)
    if destination is None:
        sys.stdout.write(data.decode("utf-8"))
        sys.stdout.flush()
        return
    write_file_atomically(destination, data)
    log("Wrote {} ({} bytes)".format(destination, len(data)))
