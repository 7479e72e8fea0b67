"""
Glyph bounding boxes in page user space.

Fonts are described to the resolver through a closed set of variants, one
per structurally different way a font exposes glyph geometry:

- Type3FontVariant: glyph procedures declare a box with ``d1``; the box is
  clipped to the font's FontBBox.
- VectorFontVariant: outlines addressed by character code. TrueType-backed
  outlines carry ``units_per_em`` and are normalized to 1000 units per em.
- SimpleFontVariant: outlines addressed by glyph name after encoding lookup.
- UnknownFontVariant: nothing usable; reported through the diagnostic sink.

A lookup that comes back empty (space glyph, empty procedure, unmapped
code) is expected and contributes nothing.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional, Protocol, Sequence, Tuple, Union, runtime_checkable

from processors.bounds_accumulator import BoundingRectangle
from utils.pdf_transforms import compose, normalize_box, scale_matrix, transform_bounds

logger = logging.getLogger(__name__)

Box = Tuple[float, float, float, float]

# Glyph space of every non-TrueType font is 1000 units per em
GLYPH_SPACE_UNITS = 1000.0


@runtime_checkable
class PathShape(Protocol):
    """Anything with a glyph-space bounding box ``(x0, y0, x1, y1)``."""

    @property
    def bounds(self) -> Optional[Box]:
        ...


@dataclass(frozen=True)
class GlyphOutline:
    """Glyph outline reduced to the part the resolver needs: its bounds."""
    bounds: Optional[Box]
    glyph_name: Optional[str] = None


@dataclass(frozen=True)
class Type3FontVariant:
    font_bbox: Box
    glyph_proc_bbox: Callable[[int], Optional[Box]]


@dataclass(frozen=True)
class VectorFontVariant:
    outline_path: Callable[[int], Optional[PathShape]]
    units_per_em: Optional[int] = None


@dataclass(frozen=True)
class SimpleFontVariant:
    glyph_name_for: Callable[[int], Optional[str]]
    outline_path: Callable[[str], Optional[PathShape]]


@dataclass(frozen=True)
class UnknownFontVariant:
    kind: str = "unknown"


FontVariant = Union[Type3FontVariant, VectorFontVariant, SimpleFontVariant, UnknownFontVariant]


@dataclass(frozen=True)
class FontDiagnostic:
    """Non-fatal report about a font whose glyphs cannot be measured."""
    code: str
    font_kind: str
    message: str


UNRECOGNIZED_FONT_CAPABILITY = "UnrecognizedFontCapability"

DiagnosticSink = Callable[[FontDiagnostic], None]


def log_diagnostic(diagnostic: FontDiagnostic) -> None:
    logger.warning(f"{diagnostic.code}: {diagnostic.message}")


def clip_to_font_bbox(glyph_bbox: Sequence[float], font_bbox: Sequence[float]) -> Optional[Box]:
    """Intersect a Type 3 glyph box with the font box; None when they do not overlap."""
    fx0, fy0, fx1, fy1 = normalize_box(font_bbox)
    gx0, gy0, gx1, gy1 = normalize_box(glyph_bbox)
    x0, y0 = max(fx0, gx0), max(fy0, gy0)
    x1, y1 = min(fx1, gx1), min(fy1, gy1)
    if x0 > x1 or y0 > y1:
        return None
    return (x0, y0, x1, y1)


def _shape_bounds(shape: Optional[PathShape]) -> Optional[Box]:
    if shape is None:
        return None
    bounds = shape.bounds
    if bounds is None:
        return None
    return normalize_box(bounds)


class GlyphBoundsResolver:
    """
    Turns (text rendering matrix, font variant, font matrix, code) into a
    user-space rectangle.

    The glyph-space to user-space transform applies the font matrix first
    and the text rendering matrix second. For TrueType-backed outlines a
    uniform ``1000 / unitsPerEm`` scale is applied before the font matrix so
    the outline enters the same 1000-unit space as every other font.
    """

    def __init__(self, diagnostics: Optional[DiagnosticSink] = None):
        self._diagnostics = diagnostics or log_diagnostic

    def resolve(
        self,
        text_rendering_matrix: Sequence[float],
        font_variant: FontVariant,
        font_matrix: Sequence[float],
        code: int,
    ) -> Optional[BoundingRectangle]:
        transform = compose(font_matrix, text_rendering_matrix)

        if isinstance(font_variant, Type3FontVariant):
            glyph_bbox = font_variant.glyph_proc_bbox(code)
            if glyph_bbox is None:
                return None
            clipped = clip_to_font_bbox(glyph_bbox, font_variant.font_bbox)
            if clipped is None:
                return None
            return self._to_user_space(clipped, transform)

        if isinstance(font_variant, VectorFontVariant):
            bounds = _shape_bounds(font_variant.outline_path(code))
            if bounds is None:
                return None
            if font_variant.units_per_em:
                unit_scale = scale_matrix(GLYPH_SPACE_UNITS / font_variant.units_per_em)
                transform = compose(unit_scale, transform)
            return self._to_user_space(bounds, transform)

        if isinstance(font_variant, SimpleFontVariant):
            name = font_variant.glyph_name_for(code)
            if not name:
                return None
            bounds = _shape_bounds(font_variant.outline_path(name))
            if bounds is None:
                return None
            return self._to_user_space(bounds, transform)

        if isinstance(font_variant, UnknownFontVariant):
            kind = font_variant.kind
        else:
            kind = type(font_variant).__name__
        self._diagnostics(FontDiagnostic(
            code=UNRECOGNIZED_FONT_CAPABILITY,
            font_kind=kind,
            message=f"Unknown font class: {kind}",
        ))
        return None

    @staticmethod
    def _to_user_space(bounds: Box, transform) -> BoundingRectangle:
        return BoundingRectangle(*transform_bounds(bounds, transform))
