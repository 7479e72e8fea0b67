"""Character code to glyph name tables for simple fonts."""

import logging
from functools import lru_cache
from typing import Any, Dict, Iterable, Optional

from pdfminer.latin_enc import ENCODING
from pdfminer.psparser import PSLiteral, literal_name

from constants.pdf_keys import KEY_BASE_ENCODING, KEY_DIFFERENCES

logger = logging.getLogger(__name__)

STANDARD_ENCODING = "StandardEncoding"
MAC_ROMAN_ENCODING = "MacRomanEncoding"
WIN_ANSI_ENCODING = "WinAnsiEncoding"
PDF_DOC_ENCODING = "PDFDocEncoding"

# Column of each encoding in pdfminer's (name, std, mac, win, pdf) rows
_ENCODING_COLUMNS = {
    STANDARD_ENCODING: 1,
    MAC_ROMAN_ENCODING: 2,
    WIN_ANSI_ENCODING: 3,
    PDF_DOC_ENCODING: 4,
}


@lru_cache(maxsize=8)
def _base_table(encoding_name: str) -> Dict[int, str]:
    column = _ENCODING_COLUMNS[encoding_name]
    table = {}
    for row in ENCODING:
        code = row[column]
        if code is not None:
            table[code] = row[0]
    return table


def base_encoding(encoding_name: Optional[str]) -> Dict[int, str]:
    """Return a copy of a predefined encoding, StandardEncoding when unknown."""
    if encoding_name not in _ENCODING_COLUMNS:
        if encoding_name:
            logger.debug(f"Unsupported base encoding '{encoding_name}', using {STANDARD_ENCODING}")
        encoding_name = STANDARD_ENCODING
    return dict(_base_table(encoding_name))


def apply_differences(table: Dict[int, str], differences: Iterable[Any]) -> Dict[int, str]:
    """Overlay a /Differences array ``[code /name /name ... code /name ...]`` onto ``table``."""
    code = None
    for item in differences:
        if isinstance(item, bool):
            continue
        if isinstance(item, (int, float)):
            code = int(item)
        elif isinstance(item, PSLiteral) and code is not None:
            table[code] = literal_name(item)
            code += 1
        elif isinstance(item, str) and code is not None:
            table[code] = item.lstrip("/")
            code += 1
    return table


def build_encoding(encoding: Any, fallback: Optional[Dict[int, str]] = None) -> Dict[int, str]:
    """
    Build the code to glyph name table of a simple font.

    Args:
        encoding: the font's /Encoding entry (name literal, dictionary or None)
        fallback: built-in encoding of the font program, used as the base when
            the dictionary names no BaseEncoding

    Returns:
        Mapping from character code to glyph name
    """
    if isinstance(encoding, PSLiteral):
        return base_encoding(literal_name(encoding))
    if isinstance(encoding, str):
        return base_encoding(encoding.lstrip("/"))
    if isinstance(encoding, dict):
        base = encoding.get(KEY_BASE_ENCODING)
        if base is not None:
            table = base_encoding(literal_name(base) if isinstance(base, PSLiteral) else str(base))
        elif fallback:
            table = dict(fallback)
        else:
            table = base_encoding(STANDARD_ENCODING)
        differences = encoding.get(KEY_DIFFERENCES)
        if differences:
            apply_differences(table, differences)
        return table
    if fallback:
        return dict(fallback)
    return base_encoding(STANDARD_ENCODING)
