"""
Shared fixtures: a small TrueType font built on the fly with fontTools.

Every printable character except space is a solid rectangle. Widths and heights vary with the code
point, and every third character descends below the baseline.
"""
import pytest
from fontTools.fontBuilder import FontBuilder
from fontTools.pens.ttGlyphPen import TTGlyphPen
from fontTools.ttLib import TTFont

from preparefont import FIRST_CHAR, LAST_CHAR

UNITS_PER_EM = 1000
ASCENT = 800
DESCENT = -200


def rectangle_metrics(code_point: int):
    x0 = 50
    x1 = x0 + 100 + (code_point % 5) * 80
    y0 = -200 if code_point % 3 == 0 else 0
    y1 = 500 + (code_point % 4) * 60
    return (x0, y0, x1, y1)


def _rectangle(x0, y0, x1, y1):
    pen = TTGlyphPen(None)
    pen.moveTo((x0, y0))
    pen.lineTo((x0, y1))
    pen.lineTo((x1, y1))
    pen.lineTo((x1, y0))
    pen.closePath()
    return pen.glyph()


def build_test_font(path, missing=()):
    glyph_order = [".notdef", "space"]
    cmap = {FIRST_CHAR: "space"}
    glyphs = {".notdef": _rectangle(50, 0, 450, 700), "space": TTGlyphPen(None).glyph()}
    metrics = {".notdef": (500, 50), "space": (300, 0)}
    for code_point in range(FIRST_CHAR + 1, LAST_CHAR + 1):
        name = "uni{:04X}".format(code_point)
        x0, y0, x1, y1 = rectangle_metrics(code_point)
        glyph_order.append(name)
        if code_point not in missing:
            cmap[code_point] = name
        glyphs[name] = _rectangle(x0, y0, x1, y1)
        metrics[name] = (x1 + 50, x0)

    fb = FontBuilder(UNITS_PER_EM, isTTF=True)
    fb.setupGlyphOrder(glyph_order)
    fb.setupCharacterMap(cmap)
    fb.setupGlyf(glyphs)
    fb.setupHorizontalMetrics(metrics)
    fb.setupHorizontalHeader(ascent=ASCENT, descent=DESCENT)
    fb.setupNameTable({"familyName": "Atlas Test", "styleName": "Regular"})
    fb.setupOS2(sTypoAscender=ASCENT, sTypoDescender=DESCENT, usWinAscent=ASCENT, usWinDescent=-DESCENT)
    fb.setupPost()
    fb.save(str(path))
    return path


@pytest.fixture(scope="session")
def font_path(tmp_path_factory):
    return str(build_test_font(tmp_path_factory.mktemp("fonts") / "AtlasTest.ttf"))


@pytest.fixture(scope="session")
def font_bytes(font_path):
    with open(font_path, "rb") as f:
        return f.read()


# Characters left out of the character map of the sparse font
MISSING_CHARS = "A~"


@pytest.fixture(scope="session")
def sparse_font_bytes(tmp_path_factory):
    path = build_test_font(
        tmp_path_factory.mktemp("fonts") / "Sparse.ttf", missing=[ord(c) for c in MISSING_CHARS]
    )
    with open(str(path), "rb") as f:
        return f.read()


@pytest.fixture(scope="session")
def damaged_cmap_font_path(tmp_path_factory, font_path):
    """
    Copy of the test font with every byte of its cmap table set to 0xFF.
    FreeType still opens it, but the table can't be decoded.
    """
    with TTFont(font_path) as ttf:
        entry = ttf.reader.tables["cmap"]
        offset, length = entry.offset, entry.length
    with open(font_path, "rb") as f:
        data = bytearray(f.read())
    data[offset : offset + length] = b"\xff" * length
    path = tmp_path_factory.mktemp("fonts") / "DamagedCmap.ttf"
    path.write_bytes(bytes(data))
    return str(path)
