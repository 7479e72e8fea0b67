"""
Content bounds visitor.

Receives drawing events for one page and folds every visible mark into a
single bounding rectangle:

- glyphs: resolved through GlyphBoundsResolver
- images: the unit square mapped through the CTM, pixel data ignored
- paths: extent tracked by PathAccumulator, committed on paint

Clipping never shrinks the result and shading fills never grow it.
Use one visitor per page; state is not shared between instances.
"""

import logging
from typing import Optional, Sequence

from processors.bounds_accumulator import BoundingBoxAccumulator, BoundingRectangle, PathAccumulator
from processors.content_events import Point, WindingRule
from processors.glyph_bounds import DiagnosticSink, FontVariant, GlyphBoundsResolver
from utils.pdf_transforms import unit_square_corners

logger = logging.getLogger(__name__)


class ContentBoundsVisitor:

    def __init__(self, diagnostics: Optional[DiagnosticSink] = None):
        self.bounds = BoundingBoxAccumulator()
        self.path = PathAccumulator()
        self.resolver = GlyphBoundsResolver(diagnostics)

    # --- Text ---

    def show_glyph(
        self,
        text_rendering_matrix: Sequence[float],
        font_variant: FontVariant,
        font_matrix: Sequence[float],
        code: int,
    ) -> None:
        rect = self.resolver.resolve(text_rendering_matrix, font_variant, font_matrix, code)
        if rect is not None:
            self.bounds.merge_rect(rect)

    # --- Images ---

    def draw_image(self, ctm: Sequence[float]) -> None:
        for x, y in unit_square_corners(ctm):
            self.bounds.merge_point(x, y)

    # --- Path construction ---

    def append_rectangle(self, p0: Point, p1: Point, p2: Point, p3: Point) -> None:
        self.path.add_points((p0, p1, p2, p3))

    def move_to(self, x: float, y: float) -> None:
        self.path.add_point(x, y)

    def line_to(self, x: float, y: float) -> None:
        self.path.add_point(x, y)

    def curve_to(
        self, x1: float, y1: float, x2: float, y2: float, x3: float, y3: float
    ) -> None:
        # Control points stand in for the curve extrema
        self.path.add_points(((x1, y1), (x2, y2), (x3, y3)))

    def close_path(self) -> None:
        self.path.close()

    # --- Path painting ---

    def end_path(self) -> None:
        self.path.discard()

    def stroke_path(self) -> None:
        self.path.flush_into(self.bounds)

    def fill_path(self, winding_rule: WindingRule) -> None:
        self.path.flush_into(self.bounds)

    def fill_and_stroke_path(self, winding_rule: WindingRule) -> None:
        self.path.flush_into(self.bounds)

    def clip(self, winding_rule: WindingRule) -> None:
        pass

    def shading_fill(self, name: str) -> None:
        logger.debug(f"Shading fill '{name}' ignored for bounds")

    # --- Result ---

    def result(self) -> Optional[BoundingRectangle]:
        return self.bounds.result()
