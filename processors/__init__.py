"""
PDF Processing Components

Stateful processors for content bounds computation. These components
maintain per-page state and implement the core algorithms:

- ContentBoundsVisitor: Drawing-event handler folding visible marks into one box
- BoundingBoxAccumulator / PathAccumulator: Running page and path extents
- GlyphBoundsResolver: Glyph boxes for Type 3, vector and simple fonts
- FontVariantFactory: pdfminer fonts to font variants via fontTools
- BoundsDevice / BoundsPageInterpreter: PDFMiner dispatcher for the visitor

These differ from utils/ which contains pure, stateless functions.
"""

from processors.bounds_accumulator import BoundingBoxAccumulator, BoundingRectangle, PathAccumulator
from processors.glyph_bounds import (
    FontDiagnostic,
    FontVariant,
    GlyphBoundsResolver,
    GlyphOutline,
    SimpleFontVariant,
    Type3FontVariant,
    UnknownFontVariant,
    VectorFontVariant,
)
from processors.content_events import ContentEventVisitor, WindingRule
from processors.content_bounds_visitor import ContentBoundsVisitor
from processors.font_variants import FontHandle, FontVariantFactory
from processors.bounds_device import BoundsDevice, BoundsPageInterpreter, trace_page_bounds

__version__ = "1.0.0"
__all__ = [
    'BoundingBoxAccumulator',
    'BoundingRectangle',
    'PathAccumulator',
    'FontDiagnostic',
    'FontVariant',
    'GlyphBoundsResolver',
    'GlyphOutline',
    'SimpleFontVariant',
    'Type3FontVariant',
    'UnknownFontVariant',
    'VectorFontVariant',
    'ContentEventVisitor',
    'WindingRule',
    'ContentBoundsVisitor',
    'FontHandle',
    'FontVariantFactory',
    'BoundsDevice',
    'BoundsPageInterpreter',
    'trace_page_bounds',
]
