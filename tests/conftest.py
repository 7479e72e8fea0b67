from __future__ import annotations

import io
import sys
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

import pikepdf
import pytest
from fontTools.cffLib.CFF2ToCFF import convertCFF2ToCFF
from fontTools.fontBuilder import FontBuilder, buildCmapSubTable
from fontTools.misc import eexec
from fontTools.misc.psCharStrings import T1CharString
from fontTools.pens.t2CharStringPen import T2CharStringPen
from fontTools.pens.ttGlyphPen import TTGlyphPen
from fontTools.ttLib import TTFont
from pdfminer.pdfdocument import PDFDocument
from pdfminer.pdfinterp import PDFResourceManager
from pdfminer.pdfpage import PDFPage
from pdfminer.pdfparser import PDFParser
from pikepdf import Array, Dictionary, Name, String

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from processors.bounds_device import trace_page_bounds  # noqa: E402
from processors.font_variants import FontVariantFactory  # noqa: E402

ResourceBuilder = Callable[[pikepdf.Pdf], Dictionary]


def _stream(pdf: pikepdf.Pdf, data: bytes, **entries) -> pikepdf.Stream:
    stream = pdf.make_stream(data)
    for key, value in entries.items():
        stream[Name("/" + key)] = value
    return stream


GLYPH_ORDER = [".notdef", "space", "A"]

# (mapping, format, platformID, platEncID) per cmap subtable
CmapSpec = Tuple[Dict[int, str], int, int, int]


def _draw_letter_a(pen, units_per_em: int) -> None:
    """Rectangle spanning 1/8 to 5/8 em horizontally and 0 to 3/4 em vertically."""
    eighth = units_per_em // 8
    pen.moveTo((eighth, 0))
    pen.lineTo((eighth, 6 * eighth))
    pen.lineTo((5 * eighth, 6 * eighth))
    pen.lineTo((5 * eighth, 0))
    pen.closePath()


def _reload(font: TTFont) -> TTFont:
    buffer = io.BytesIO()
    font.save(buffer)
    buffer.seek(0)
    return TTFont(buffer, recalcBBoxes=False, recalcTimestamp=False)


def _finish_font(fb: FontBuilder, units_per_em: int, family: str) -> None:
    eighth = units_per_em // 8
    fb.setupHorizontalMetrics({
        ".notdef": (units_per_em // 2, 0),
        "space": (units_per_em // 2, 0),
        "A": (units_per_em, eighth),
    })
    fb.setupHorizontalHeader(ascent=6 * eighth, descent=0)
    fb.setupNameTable({"familyName": family, "styleName": "Regular"})
    fb.setupOS2(sTypoAscender=6 * eighth, usWinAscent=6 * eighth, usWinDescent=0)
    fb.setupPost()


def build_test_ttf(units_per_em: int, cmap: Optional[List[CmapSpec]] = None) -> bytes:
    """
    TrueType font with a rectangular "A" and an empty "space".

    ``cmap`` replaces the default Unicode subtables, e.g. with a symbol
    (3, 0) subtable.
    """
    pen = TTGlyphPen(None)
    _draw_letter_a(pen, units_per_em)

    fb = FontBuilder(units_per_em, isTTF=True)
    fb.setupGlyphOrder(GLYPH_ORDER)
    fb.setupCharacterMap({32: "space", 65: "A"})
    fb.setupGlyf({
        ".notdef": TTGlyphPen(None).glyph(),
        "space": TTGlyphPen(None).glyph(),
        "A": pen.glyph(),
    })
    _finish_font(fb, units_per_em, "Test Sans")
    if cmap is not None:
        fb.font["cmap"].tables = [buildCmapSubTable(*subtable) for subtable in cmap]

    buffer = io.BytesIO()
    fb.save(buffer)
    return buffer.getvalue()


def build_test_cff(cid_keyed: bool = False) -> bytes:
    """
    Bare CFF program at 1000 units per em with the glyphs of build_test_ttf.

    The CID-keyed flavor is built as CFF2 and converted, which names the
    glyphs cid00001 and cid00002 under an Adobe-Identity-0 ROS.
    """
    charstrings = {}
    for name in GLYPH_ORDER:
        if cid_keyed:
            pen = T2CharStringPen(None, None, CFF2=True)
        else:
            pen = T2CharStringPen(1000 if name == "A" else 500, None)
        if name == "A":
            _draw_letter_a(pen, 1000)
        charstrings[name] = pen.getCharString()

    fb = FontBuilder(1000, isTTF=False)
    fb.setupGlyphOrder(GLYPH_ORDER)
    fb.setupCharacterMap({32: "space", 65: "A"})
    if cid_keyed:
        fb.setupCFF2(charstrings)
    else:
        fb.setupCFF("TestCFF", {"FullName": "Test CFF"}, charstrings, {})
    _finish_font(fb, 1000, "Test CFF")

    font = _reload(fb.font)
    if cid_keyed:
        # Conversion renames glyphs; read back before extracting the table
        convertCFF2ToCFF(font)
        font = _reload(font)
    return font.getTableData("CFF ")


def build_test_type1() -> Tuple[bytes, bytes, bytes]:
    """
    Type 1 font program TestSerif with the "A" of build_test_ttf at
    1000 units per em and StandardEncoding as its built-in encoding.

    Returns the clear text, eexec encrypted and trailer portions.
    """
    glyphs = {
        ".notdef": [0, 500, "hsbw", "endchar"],
        "A": [
            0, 1000, "hsbw", 125, 0, "rmoveto", 0, 750, "rlineto",
            500, 0, "rlineto", 0, -750, "rlineto", "closepath", "endchar",
        ],
    }
    clear_text = b"\n".join([
        b"%!PS-AdobeFont-1.0: TestSerif 001.000",
        b"11 dict begin",
        b"/FontName /TestSerif def",
        b"/FontType 1 def",
        b"/PaintType 0 def",
        b"/FontMatrix [0.001 0 0 0.001 0 0] readonly def",
        b"/FontBBox {0 0 1000 750} readonly def",
        b"/Encoding StandardEncoding def",
        b"currentdict end",
        b"currentfile eexec\n",
    ])
    private = [
        b"dup /Private 8 dict dup begin",
        b"/RD {string currentfile exch readstring pop} executeonly def",
        b"/ND {noaccess def} executeonly def",
        b"/NP {noaccess put} executeonly def",
        b"/password 5839 def",
        b"/Subrs 0 array ND",
        b"2 index /CharStrings %d dict dup begin" % len(glyphs),
    ]
    for name, program in glyphs.items():
        charstring = T1CharString(program=program)
        charstring.compile()
        # Charstrings and the eexec section both start with four random bytes
        encrypted, _ = eexec.encrypt(b"\0\0\0\0" + charstring.bytecode, 4330)
        private.append(b"/%s %d RD " % (name.encode("ascii"), len(encrypted)) + encrypted + b" ND")
    private += [
        b"end",
        b"end",
        b"readonly put",
        b"noaccess put",
        b"dup /FontName get exch definefont pop",
        b"mark currentfile closefile\n",
    ]
    encrypted_part, _ = eexec.encrypt(b"\0\0\0\0" + b"\n".join(private), 55665)
    trailer = b"\n" + b"\n".join([b"0" * 64] * 8) + b"\ncleartomark\n"
    return clear_text, encrypted_part, trailer


def _descriptor(pdf: pikepdf.Pdf, font_name: str, flags: int = 32, **font_file) -> pikepdf.Object:
    descriptor = Dictionary(
        Type=Name.FontDescriptor,
        FontName=Name("/" + font_name),
        Flags=flags,
        FontBBox=Array([0, 0, 1000, 1000]),
        ItalicAngle=0,
        Ascent=750,
        Descent=0,
        CapHeight=750,
        StemV=80,
    )
    for key, stream in font_file.items():
        descriptor[Name("/" + key)] = stream
    return pdf.make_indirect(descriptor)


def _type0_font(pdf: pikepdf.Pdf, font_name: str, cid_font: Dictionary) -> Dictionary:
    cid_font[Name.Type] = Name.Font
    cid_font[Name.BaseFont] = Name("/" + font_name)
    cid_font[Name.CIDSystemInfo] = Dictionary(
        Registry=String("Adobe"), Ordering=String("Identity"), Supplement=0
    )
    cid_font[Name.DW] = 1000
    font = Dictionary(
        Type=Name.Font,
        Subtype=Name.Type0,
        BaseFont=Name("/" + font_name),
        Encoding=Name("/Identity-H"),
        DescendantFonts=Array([pdf.make_indirect(cid_font)]),
    )
    return Dictionary(Font=Dictionary(F1=pdf.make_indirect(font)))


@pytest.fixture()
def pdf_factory(tmp_path: Path) -> Callable[..., Path]:
    """Write a PDF with one page per content stream, all sharing ``resources``."""

    def _create(
        *contents: bytes,
        resources: Optional[ResourceBuilder] = None,
        filename: str = "doc.pdf",
        size=(200, 200),
        crop_box=None,
    ) -> Path:
        pdf = pikepdf.new()
        shared = resources(pdf) if resources else Dictionary()
        for content in contents:
            page = pdf.add_blank_page(page_size=size)
            page.obj[Name.Contents] = pdf.make_stream(content)
            page.obj[Name.Resources] = shared
            if crop_box is not None:
                page.obj[Name.CropBox] = Array(list(crop_box))
        path = tmp_path / filename
        pdf.save(path)
        return path

    return _create


@pytest.fixture()
def image_resources() -> ResourceBuilder:
    def _build(pdf: pikepdf.Pdf) -> Dictionary:
        image = _stream(
            pdf, b"\xff\x00\x00",
            Type=Name.XObject, Subtype=Name.Image, Width=1, Height=1,
            ColorSpace=Name.DeviceRGB, BitsPerComponent=8,
        )
        return Dictionary(XObject=Dictionary(Im1=image))

    return _build


@pytest.fixture()
def shading_resources() -> ResourceBuilder:
    def _build(pdf: pikepdf.Pdf) -> Dictionary:
        function = Dictionary(
            FunctionType=2, Domain=Array([0, 1]), C0=Array([1, 0, 0]), C1=Array([0, 0, 1]), N=1
        )
        shading = Dictionary(
            ShadingType=2, ColorSpace=Name.DeviceRGB, Coords=Array([0, 0, 100, 0]), Function=function
        )
        return Dictionary(Shading=Dictionary(Sh1=pdf.make_indirect(shading)))

    return _build


@pytest.fixture()
def form_resources() -> ResourceBuilder:
    def _build(pdf: pikepdf.Pdf) -> Dictionary:
        form = _stream(
            pdf, b"0 0 10 10 re f",
            Type=Name.XObject, Subtype=Name.Form,
            BBox=Array([0, 0, 10, 10]), Matrix=Array([1, 0, 0, 1, 50, 50]),
        )
        return Dictionary(XObject=Dictionary(Fm1=form))

    return _build


@pytest.fixture()
def type3_resources() -> ResourceBuilder:
    """
    Type 3 font F1: code 65 draws a full-em square, code 66 declares a box
    overflowing the font box, code 67 uses d0.
    """

    def _build(pdf: pikepdf.Pdf) -> Dictionary:
        char_procs = Dictionary({
            "/square": pdf.make_stream(b"1000 0 0 0 1000 1000 d1\n0 0 1000 1000 re f"),
            "/wide": pdf.make_stream(b"1000 0 -500 -500 2000 2000 d1\n-500 -500 2500 2500 re f"),
            "/plain": pdf.make_stream(b"1000 0 d0\n0 0 1000 1000 re f"),
        })
        encoding = Dictionary(
            Type=Name.Encoding,
            Differences=Array([65, Name("/square"), Name("/wide"), Name("/plain")]),
        )
        font = Dictionary(
            Type=Name.Font,
            Subtype=Name.Type3,
            FontBBox=Array([0, 0, 1000, 1000]),
            FontMatrix=Array([0.001, 0, 0, 0.001, 0, 0]),
            CharProcs=char_procs,
            Encoding=encoding,
            FirstChar=65,
            LastChar=67,
            Widths=Array([1000, 1000, 1000]),
            Resources=Dictionary(),
        )
        return Dictionary(Font=Dictionary(F1=pdf.make_indirect(font)))

    return _build


@pytest.fixture()
def truetype_resources() -> Callable[[int], ResourceBuilder]:
    """Resources with an embedded TrueType font F1 built at the given unitsPerEm."""

    def _for_upm(units_per_em: int) -> ResourceBuilder:
        data = build_test_ttf(units_per_em)

        def _build(pdf: pikepdf.Pdf) -> Dictionary:
            descriptor = _descriptor(pdf, "TestSans", FontFile2=_stream(pdf, data, Length1=len(data)))
            font = Dictionary(
                Type=Name.Font,
                Subtype=Name.TrueType,
                BaseFont=Name("/TestSans"),
                FirstChar=32,
                LastChar=65,
                Widths=Array([500] + [0] * 32 + [1000]),
                Encoding=Name.WinAnsiEncoding,
                FontDescriptor=descriptor,
            )
            return Dictionary(Font=Dictionary(F1=pdf.make_indirect(font)))

        return _build

    return _for_upm


@pytest.fixture()
def symbolic_truetype_resources() -> Callable[[List[CmapSpec]], ResourceBuilder]:
    """Symbolic TrueType font F1 without /Encoding whose program carries only ``cmap``."""

    def _for_cmap(cmap: List[CmapSpec]) -> ResourceBuilder:
        data = build_test_ttf(1000, cmap=cmap)

        def _build(pdf: pikepdf.Pdf) -> Dictionary:
            descriptor = _descriptor(pdf, "TestSymbol", flags=4, FontFile2=_stream(pdf, data, Length1=len(data)))
            font = Dictionary(
                Type=Name.Font,
                Subtype=Name.TrueType,
                BaseFont=Name("/TestSymbol"),
                FirstChar=65,
                LastChar=65,
                Widths=Array([1000]),
                FontDescriptor=descriptor,
            )
            return Dictionary(Font=Dictionary(F1=pdf.make_indirect(font)))

        return _build

    return _for_cmap


@pytest.fixture()
def cid_truetype_resources() -> ResourceBuilder:
    """
    Type0 font F1 (Identity-H) over a 2048 unitsPerEm CIDFontType2 whose
    CIDToGIDMap stream sends CID 7 to "A" and every lower CID to .notdef.
    """
    data = build_test_ttf(2048)

    def _build(pdf: pikepdf.Pdf) -> Dictionary:
        cid_font = Dictionary(
            Subtype=Name.CIDFontType2,
            FontDescriptor=_descriptor(pdf, "TestSans", FontFile2=_stream(pdf, data, Length1=len(data))),
            CIDToGIDMap=_stream(pdf, b"\x00\x00" * 7 + b"\x00\x02"),
        )
        return _type0_font(pdf, "TestSans", cid_font)

    return _build


@pytest.fixture()
def type1c_resources() -> ResourceBuilder:
    """Type1 font F1 with an embedded bare CFF program (FontFile3 /Type1C)."""
    data = build_test_cff()

    def _build(pdf: pikepdf.Pdf) -> Dictionary:
        font_file = _stream(pdf, data, Subtype=Name.Type1C)
        font = Dictionary(
            Type=Name.Font,
            Subtype=Name.Type1,
            BaseFont=Name("/TestCFF"),
            FirstChar=65,
            LastChar=65,
            Widths=Array([1000]),
            Encoding=Name.WinAnsiEncoding,
            FontDescriptor=_descriptor(pdf, "TestCFF", FontFile3=font_file),
        )
        return Dictionary(Font=Dictionary(F1=pdf.make_indirect(font)))

    return _build


@pytest.fixture()
def cid_cff_resources() -> ResourceBuilder:
    """Type0 font F1 (Identity-H) over a CIDFontType0 with a CID-keyed CFF program."""
    data = build_test_cff(cid_keyed=True)

    def _build(pdf: pikepdf.Pdf) -> Dictionary:
        font_file = _stream(pdf, data, Subtype=Name.CIDFontType0C)
        cid_font = Dictionary(
            Subtype=Name.CIDFontType0,
            FontDescriptor=_descriptor(pdf, "TestCFF", FontFile3=font_file),
        )
        return _type0_font(pdf, "TestCFF", cid_font)

    return _build


@pytest.fixture()
def type1_resources() -> ResourceBuilder:
    """
    Type1 font F1 with an embedded Type 1 program; its /Encoding only adds
    Differences mapping code 66 to "A" over the program's built-in encoding.
    """
    clear_text, encrypted_part, trailer = build_test_type1()

    def _build(pdf: pikepdf.Pdf) -> Dictionary:
        font_file = _stream(
            pdf, clear_text + encrypted_part + trailer,
            Length1=len(clear_text), Length2=len(encrypted_part), Length3=len(trailer),
        )
        font = Dictionary(
            Type=Name.Font,
            Subtype=Name.Type1,
            BaseFont=Name("/TestSerif"),
            FirstChar=65,
            LastChar=66,
            Widths=Array([1000, 1000]),
            Encoding=Dictionary(Type=Name.Encoding, Differences=Array([66, Name("/A")])),
            FontDescriptor=_descriptor(pdf, "TestSerif", FontFile=font_file),
        )
        return Dictionary(Font=Dictionary(F1=pdf.make_indirect(font)))

    return _build


@pytest.fixture()
def standard_font_resources() -> ResourceBuilder:
    """Non-embedded Helvetica, measured from its standard metrics."""

    def _build(pdf: pikepdf.Pdf) -> Dictionary:
        font = Dictionary(
            Type=Name.Font, Subtype=Name.Type1, BaseFont=Name.Helvetica, Encoding=Name.WinAnsiEncoding
        )
        return Dictionary(Font=Dictionary(F1=pdf.make_indirect(font)))

    return _build


@pytest.fixture()
def unsupported_font_resources() -> ResourceBuilder:
    """A font dictionary with a subtype no glyph geometry can be derived from."""

    def _build(pdf: pikepdf.Pdf) -> Dictionary:
        font = Dictionary(
            Type=Name.Font, Subtype=Name("/OpenType"), BaseFont=Name("/Mystery"),
            FirstChar=65, LastChar=65, Widths=Array([600]),
        )
        return Dictionary(Font=Dictionary(F1=pdf.make_indirect(font)))

    return _build


@pytest.fixture()
def page_bounds() -> Callable[..., list]:
    """Trace every page of a PDF file; one rectangle (or None) per page."""

    def _trace(path: Path, diagnostics=None, **factory_options) -> list:
        results = []
        with open(path, "rb") as fp:
            document = PDFDocument(PDFParser(fp))
            rsrcmgr = PDFResourceManager(caching=True)
            factory = FontVariantFactory(**factory_options)
            for page in PDFPage.create_pages(document):
                results.append(trace_page_bounds(page, rsrcmgr, factory, diagnostics))
        return results

    return _trace
