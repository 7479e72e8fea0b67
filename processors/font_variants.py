"""
Font variant factory.

Builds the FontVariant the glyph resolver works with from a pdfminer font
object and its font dictionary. Embedded font programs are read with
fontTools; glyph extents come from fontTools' BoundsPen.

Mapping:
    Type3                      -> Type3FontVariant (d1 box of each CharProc)
    TrueType + FontFile2       -> VectorFontVariant with unitsPerEm
    Type0 / CIDFontType2       -> VectorFontVariant with unitsPerEm
    Type0 / CIDFontType0 (CFF) -> VectorFontVariant
    Type1 / MMType1            -> SimpleFontVariant (glyph names)
    no embedded program        -> advance-box approximation, or no outlines
    anything else              -> UnknownFontVariant
"""

import io
import logging
import os
import tempfile
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from fontTools import agl
from fontTools.cffLib import CFFFontSet
from fontTools.pens.boundsPen import BoundsPen
from fontTools.t1Lib import T1Font
from fontTools.ttLib import TTFont
from pdfminer.pdffont import PDFUnicodeNotDefined
from pdfminer.pdfinterp import PDFContentParser
from pdfminer.pdfparser import PDFSyntaxError
from pdfminer.pdftypes import PDFStream, dict_value, list_value, resolve1, stream_value
from pdfminer.psparser import KWD, PSEOF, PSKeyword, PSLiteral, literal_name

from constants.pdf_keys import (
    KEY_BASE_FONT,
    KEY_CHAR_PROCS,
    KEY_CID_TO_GID_MAP,
    KEY_DESCENDANT_FONTS,
    KEY_DIFFERENCES,
    KEY_ENCODING,
    KEY_FLAGS,
    KEY_FONT_BBOX,
    KEY_FONT_DESCRIPTOR,
    KEY_FONT_FILE,
    KEY_FONT_FILE2,
    KEY_FONT_FILE3,
    KEY_FONT_MATRIX,
    KEY_SUBTYPE,
    FONT_SUBTYPE_CID_TYPE0,
    FONT_SUBTYPE_CID_TYPE2,
    FONT_SUBTYPE_MM_TYPE1,
    FONT_SUBTYPE_TRUETYPE,
    FONT_SUBTYPE_TYPE0,
    FONT_SUBTYPE_TYPE1,
    FONT_SUBTYPE_TYPE3,
    FONT_FLAG_SYMBOLIC,
)
from processors.glyph_bounds import (
    FontVariant,
    GlyphOutline,
    SimpleFontVariant,
    Type3FontVariant,
    UnknownFontVariant,
    VectorFontVariant,
)
from utils.font_encoding import MAC_ROMAN_ENCODING, apply_differences, base_encoding, build_encoding
from utils.pdf_transforms import Matrix, normalize_box, to_matrix

logger = logging.getLogger(__name__)

DEFAULT_FONT_MATRIX: Matrix = (0.001, 0.0, 0.0, 0.001, 0.0, 0.0)

KEYWORD_D1 = KWD(b"d1")

# Symbol fonts map codes into the private use area of a (3, 0) cmap
SYMBOL_CMAP_OFFSETS = (0x0000, 0xF000, 0xF100, 0xF200)

OPENTYPE_MAGIC = (b"OTTO", b"\x00\x01\x00\x00", b"true")


@dataclass(frozen=True)
class FontHandle:
    """Variant and font matrix for one font, as handed to show_glyph."""
    variant: FontVariant
    matrix: Matrix
    name: str = ""


# --- Font programs ---

class FontProgram:
    """
    Parsed embedded font program.

    Exposes glyph extents by glyph name together with the lookup tables
    needed to turn a PDF character code into a glyph name.
    """

    def __init__(
        self,
        glyph_set: Mapping[str, Any],
        glyph_order=None,
        units_per_em: Optional[int] = None,
        cmaps: Optional[Dict[Tuple[int, int], Dict[int, str]]] = None,
        builtin_encoding: Optional[Dict[int, str]] = None,
        font_matrix: Matrix = DEFAULT_FONT_MATRIX,
        cid_keyed: bool = False,
    ):
        self.glyph_set = glyph_set
        self.glyph_order = list(glyph_order or [])
        self.units_per_em = units_per_em
        self.cmaps = cmaps or {}
        self.builtin_encoding = builtin_encoding or {}
        self.font_matrix = font_matrix
        self.cid_keyed = cid_keyed
        self._outlines: Dict[str, Optional[GlyphOutline]] = {}

    def has_glyph(self, name: Optional[str]) -> bool:
        return bool(name) and name in self.glyph_set

    def name_for_gid(self, gid: int) -> Optional[str]:
        if 0 <= gid < len(self.glyph_order):
            return self.glyph_order[gid]
        return None

    def cmap_lookup(self, platform_id: int, encoding_id: int, code: int) -> Optional[str]:
        table = self.cmaps.get((platform_id, encoding_id))
        if not table:
            return None
        return table.get(code)

    def outline(self, name: Optional[str]) -> Optional[GlyphOutline]:
        """Glyph extent in font units; None for missing or empty glyphs."""
        if not self.has_glyph(name):
            return None
        if name not in self._outlines:
            pen = BoundsPen(self.glyph_set)
            try:
                self.glyph_set[name].draw(pen)
            except Exception as e:
                logger.warning(f"Failed to draw glyph '{name}': {e}")
                self._outlines[name] = None
                return None
            bounds = pen.bounds
            self._outlines[name] = GlyphOutline(bounds=bounds, glyph_name=name) if bounds else None
        return self._outlines[name]


def load_truetype_program(data: bytes) -> FontProgram:
    tt = TTFont(io.BytesIO(data), lazy=True)
    cmaps = {}
    if "cmap" in tt:
        for table in tt["cmap"].tables:
            cmaps.setdefault((table.platformID, table.platEncID), dict(table.cmap))
    # Only glyf outlines are authored in unitsPerEm; CFF flavored ones are 1000-unit
    units_per_em = tt["head"].unitsPerEm if "glyf" in tt else None
    return FontProgram(
        glyph_set=tt.getGlyphSet(),
        glyph_order=tt.getGlyphOrder(),
        units_per_em=units_per_em,
        cmaps=cmaps,
    )


def load_cff_program(data: bytes) -> FontProgram:
    cff = CFFFontSet()
    cff.decompile(io.BytesIO(data), None)
    top = cff[cff.fontNames[0]]
    charstrings = top.CharStrings
    builtin = {}
    encoding = getattr(top, "Encoding", None)
    if isinstance(encoding, list):
        builtin = {code: name for code, name in enumerate(encoding) if name and name != ".notdef"}
    font_matrix = DEFAULT_FONT_MATRIX
    if getattr(top, "FontMatrix", None):
        font_matrix = to_matrix(top.FontMatrix)
    return FontProgram(
        glyph_set=charstrings,
        glyph_order=list(getattr(top, "charset", None) or []),
        builtin_encoding=builtin,
        font_matrix=font_matrix,
        cid_keyed=hasattr(top, "ROS"),
    )


def load_type1_program(data: bytes) -> FontProgram:
    # t1Lib only reads from a path
    with tempfile.NamedTemporaryFile(suffix=".pfa", delete=False) as temp_file:
        temp_file.write(data)
        temp_path = temp_file.name
    try:
        font = T1Font(temp_path)
        charstrings = font["CharStrings"]
        encoding = font.font.get("Encoding")
        matrix = font.font.get("FontMatrix")
        font_matrix = to_matrix(matrix) if matrix else DEFAULT_FONT_MATRIX
    finally:
        os.unlink(temp_path)
    builtin = {}
    if isinstance(encoding, list):
        builtin = {code: name for code, name in enumerate(encoding) if name and name != ".notdef"}
    return FontProgram(
        glyph_set=charstrings,
        glyph_order=sorted(charstrings.keys()),
        builtin_encoding=builtin,
        font_matrix=font_matrix,
    )


def load_font_program(descriptor: Dict[str, Any]) -> Optional[FontProgram]:
    """Parse the embedded program of a font descriptor, None when not embedded."""
    for key in (KEY_FONT_FILE2, KEY_FONT_FILE3, KEY_FONT_FILE):
        ref = descriptor.get(key)
        if ref is None:
            continue
        stream = stream_value(ref)
        data = stream.get_data()
        if not data:
            return None
        if key == KEY_FONT_FILE2:
            return load_truetype_program(data)
        if key == KEY_FONT_FILE3:
            subtype = literal_name(stream.get(KEY_SUBTYPE)) if stream.get(KEY_SUBTYPE) else ""
            if subtype == "OpenType" or data[:4] in OPENTYPE_MAGIC:
                return load_truetype_program(data)
            return load_cff_program(data)
        return load_type1_program(data)
    return None


# --- Type 3 glyph procedures ---

def read_glyph_proc_bbox(stream: PDFStream) -> Optional[Tuple[float, float, float, float]]:
    """
    Read the glyph box declared by a Type 3 glyph procedure.

    Returns (llx, lly, urx, ury) from a leading ``d1`` operator, or None
    for ``d0`` procedures and procedures that declare nothing.
    """
    parser = PDFContentParser([stream])
    operands = []
    while True:
        try:
            _, obj = parser.nextobject()
        except PSEOF:
            return None
        if isinstance(obj, PSKeyword):
            if obj is KEYWORD_D1 and len(operands) >= 6:
                llx, lly, urx, ury = (float(v) for v in operands[-4:])
                return normalize_box((llx, lly, urx, ury))
            return None
        operands.append(obj)


# --- Factory ---

class FontVariantFactory:
    """
    Resolves pdfminer font objects to FontHandles.

    Font dictionaries are registered by the interpreter when page resources
    are loaded; a font object with no registered dictionary resolves to
    UnknownFontVariant. Results are cached per font object.
    """

    def __init__(self, approximate_missing_outlines: bool = True):
        self.approximate_missing_outlines = approximate_missing_outlines
        self._specs: Dict[int, Dict[str, Any]] = {}
        self._handles: Dict[int, FontHandle] = {}
        # Keeps registered fonts alive so their ids stay unique
        self._fonts: Dict[int, Any] = {}

    def register(self, font: Any, spec: Any) -> None:
        key = id(font)
        if key not in self._specs:
            self._specs[key] = dict_value(spec)
            self._fonts[key] = font

    def resolve(self, font: Any) -> FontHandle:
        key = id(font)
        handle = self._handles.get(key)
        if handle is None:
            handle = self._build(font, self._specs.get(key))
            self._handles[key] = handle
        return handle

    def _build(self, font: Any, spec: Optional[Dict[str, Any]]) -> FontHandle:
        if spec is None:
            return FontHandle(UnknownFontVariant(kind=type(font).__name__), DEFAULT_FONT_MATRIX)

        subtype = _name(spec.get(KEY_SUBTYPE))
        font_name = _name(spec.get(KEY_BASE_FONT))
        logger.debug(f"Building font variant for {font_name or '<unnamed>'} ({subtype})")

        if subtype == FONT_SUBTYPE_TYPE3:
            return self._type3(spec, font_name)
        if subtype == FONT_SUBTYPE_TYPE0:
            return self._type0(font, spec, font_name)
        if subtype == FONT_SUBTYPE_TRUETYPE:
            return self._truetype(font, spec, font_name)
        if subtype in (FONT_SUBTYPE_TYPE1, FONT_SUBTYPE_MM_TYPE1):
            return self._type1(font, spec, font_name)
        return FontHandle(UnknownFontVariant(kind=subtype or type(font).__name__), DEFAULT_FONT_MATRIX, font_name)

    # Type 3

    def _type3(self, spec: Dict[str, Any], font_name: str) -> FontHandle:
        font_bbox = normalize_box(list_value(spec.get(KEY_FONT_BBOX, [0, 0, 0, 0])))
        matrix = to_matrix(list_value(spec.get(KEY_FONT_MATRIX, DEFAULT_FONT_MATRIX)))
        encoding = resolve1(spec.get(KEY_ENCODING))
        code_to_name: Dict[int, str] = {}
        if isinstance(encoding, dict) and encoding.get(KEY_DIFFERENCES):
            apply_differences(code_to_name, list_value(encoding[KEY_DIFFERENCES]))
        char_procs = dict_value(spec.get(KEY_CHAR_PROCS, {}))
        cache: Dict[int, Optional[Tuple[float, float, float, float]]] = {}

        def glyph_proc_bbox(code: int):
            if code not in cache:
                cache[code] = None
                proc = resolve1(char_procs.get(code_to_name.get(code, "")))
                if isinstance(proc, PDFStream):
                    try:
                        cache[code] = read_glyph_proc_bbox(proc)
                    except (PDFSyntaxError, TypeError, ValueError) as e:
                        logger.warning(f"Unreadable glyph procedure for code {code} in {font_name}: {e}")
            return cache[code]

        return FontHandle(Type3FontVariant(font_bbox=font_bbox, glyph_proc_bbox=glyph_proc_bbox), matrix, font_name)

    # TrueType

    def _truetype(self, font: Any, spec: Dict[str, Any], font_name: str) -> FontHandle:
        descriptor = dict_value(spec.get(KEY_FONT_DESCRIPTOR, {}))
        program = self._load_program(descriptor, font_name)
        if program is None:
            return self._approximation(font, font_name)

        symbolic = bool(int(resolve1(descriptor.get(KEY_FLAGS, 0)) or 0) & FONT_FLAG_SYMBOLIC)
        has_encoding = spec.get(KEY_ENCODING) is not None
        encoding = build_encoding(resolve1(spec.get(KEY_ENCODING)))
        mac_codes = {name: code for code, name in base_encoding(MAC_ROMAN_ENCODING).items()}

        def glyph_name(code: int) -> Optional[str]:
            if not symbolic or has_encoding:
                name = encoding.get(code)
                if name:
                    unicode_text = agl.toUnicode(name)
                    if len(unicode_text) == 1:
                        mapped = program.cmap_lookup(3, 1, ord(unicode_text))
                        if mapped:
                            return mapped
                    if name in mac_codes:
                        mapped = program.cmap_lookup(1, 0, mac_codes[name])
                        if mapped:
                            return mapped
                    if program.has_glyph(name):
                        return name
            for offset in SYMBOL_CMAP_OFFSETS:
                mapped = program.cmap_lookup(3, 0, offset + code)
                if mapped:
                    return mapped
            return program.cmap_lookup(1, 0, code)

        def outline_path(code: int):
            return program.outline(glyph_name(code))

        return FontHandle(
            VectorFontVariant(outline_path=outline_path, units_per_em=program.units_per_em),
            DEFAULT_FONT_MATRIX,
            font_name,
        )

    # Type 1 and CFF

    def _type1(self, font: Any, spec: Dict[str, Any], font_name: str) -> FontHandle:
        descriptor = dict_value(spec.get(KEY_FONT_DESCRIPTOR, {}))
        program = self._load_program(descriptor, font_name)
        if program is None:
            return self._approximation(font, font_name)

        encoding = build_encoding(resolve1(spec.get(KEY_ENCODING)), fallback=program.builtin_encoding)
        return FontHandle(
            SimpleFontVariant(glyph_name_for=encoding.get, outline_path=program.outline),
            program.font_matrix,
            font_name,
        )

    # Composite fonts

    def _type0(self, font: Any, spec: Dict[str, Any], font_name: str) -> FontHandle:
        descendants = list_value(spec.get(KEY_DESCENDANT_FONTS, []))
        if not descendants:
            return FontHandle(UnknownFontVariant(kind="Type0 without descendant"), DEFAULT_FONT_MATRIX, font_name)
        descendant = dict_value(descendants[0])
        cid_subtype = _name(descendant.get(KEY_SUBTYPE))
        descriptor = dict_value(descendant.get(KEY_FONT_DESCRIPTOR, {}))

        if cid_subtype not in (FONT_SUBTYPE_CID_TYPE0, FONT_SUBTYPE_CID_TYPE2):
            return FontHandle(UnknownFontVariant(kind=f"Type0/{cid_subtype or 'unknown'}"), DEFAULT_FONT_MATRIX, font_name)

        program = self._load_program(descriptor, font_name)
        if program is None:
            return self._approximation(font, font_name)

        if cid_subtype == FONT_SUBTYPE_CID_TYPE2:
            cid_to_gid = _cid_to_gid_map(descendant.get(KEY_CID_TO_GID_MAP))

            def outline_path(cid: int):
                return program.outline(program.name_for_gid(cid_to_gid(cid)))

            return FontHandle(
                VectorFontVariant(outline_path=outline_path, units_per_em=program.units_per_em),
                DEFAULT_FONT_MATRIX,
                font_name,
            )

        def cff_outline_path(cid: int):
            if program.cid_keyed:
                return program.outline(f"cid{cid:05d}")
            return program.outline(program.name_for_gid(cid))

        return FontHandle(
            VectorFontVariant(outline_path=cff_outline_path, units_per_em=program.units_per_em),
            program.font_matrix,
            font_name,
        )

    # Helpers

    def _load_program(self, descriptor: Dict[str, Any], font_name: str) -> Optional[FontProgram]:
        try:
            return load_font_program(descriptor)
        except Exception as e:
            logger.warning(f"Could not read embedded font program of {font_name or '<unnamed>'}: {e}")
            return None

    def _approximation(self, font: Any, font_name: str) -> FontHandle:
        """Advance-width box per glyph for fonts whose outlines are not embedded."""
        if not self.approximate_missing_outlines:
            return FontHandle(VectorFontVariant(outline_path=_no_outline), DEFAULT_FONT_MATRIX, font_name)

        descent = float(getattr(font, "descent", 0) or 0)
        ascent = float(getattr(font, "ascent", 0) or 0)
        if ascent <= descent:
            bbox = getattr(font, "bbox", None)
            if bbox:
                _, descent, _, ascent = normalize_box(bbox)
        if ascent <= descent:
            return FontHandle(VectorFontVariant(outline_path=_no_outline), DEFAULT_FONT_MATRIX, font_name)

        def outline_path(code: int):
            if _is_blank(font, code):
                return None
            width = font.char_width(code) / font.hscale
            if width <= 0:
                return None
            return GlyphOutline(bounds=(0.0, descent, width, ascent))

        logger.debug(f"Approximating outlines of {font_name or '<unnamed>'} from metrics")
        return FontHandle(VectorFontVariant(outline_path=outline_path), DEFAULT_FONT_MATRIX, font_name)


def _no_outline(code: int) -> None:
    return None


def _is_blank(font: Any, code: int) -> bool:
    try:
        text = font.to_unichr(code)
    except PDFUnicodeNotDefined:
        return False
    return not text or text.isspace()


def _name(value: Any) -> str:
    value = resolve1(value)
    if value is None:
        return ""
    if isinstance(value, PSLiteral):
        return literal_name(value)
    if isinstance(value, bytes):
        return value.decode("latin-1")
    return str(value)


def _cid_to_gid_map(value: Any) -> Callable[[int], int]:
    """CIDToGIDMap lookup; Identity when absent or named."""
    value = resolve1(value)
    if isinstance(value, PDFStream):
        data = value.get_data()

        def lookup(cid: int) -> int:
            offset = cid * 2
            if offset + 2 > len(data):
                return 0
            return (data[offset] << 8) | data[offset + 1]

        return lookup
    return _identity_gid


def _identity_gid(cid: int) -> int:
    return cid
