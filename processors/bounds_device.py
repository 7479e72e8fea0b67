"""Bounds Device for PDF Content Bounds

PDFMiner device and interpreter that replay a page's content stream as
ContentEventVisitor events, in paint order.

pdfminer owns parsing and graphics state. The device turns its callbacks
into visitor events with every coordinate already mapped to user space.
The interpreter starts each page with the identity CTM so results are in
PDF user space, and forwards the operators pdfminer would otherwise drop
silently (end path, clip, shading fill).
"""

import logging
from typing import Any, List, Optional, Sequence, Tuple

from pdfminer.pdfdevice import PDFTextDevice
from pdfminer.pdfinterp import PDFPageInterpreter, PDFResourceManager
from pdfminer.pdfpage import PDFPage
from pdfminer.pdftypes import dict_value
from pdfminer.psparser import PSLiteral, literal_name
from pdfminer.utils import MATRIX_IDENTITY, mult_matrix

from constants.pdf_keys import KEY_FONT
from constants.pdf_operators import (
    OP_CLOSEPATH, OP_CURVETO, OP_CURVETO_V, OP_CURVETO_Y,
    OP_LINETO, OP_MOVETO, OP_RECTANGLE,
)
from processors.bounds_accumulator import BoundingRectangle
from processors.content_bounds_visitor import ContentBoundsVisitor
from processors.content_events import ContentEventVisitor, WindingRule
from processors.font_variants import FontVariantFactory
from processors.glyph_bounds import DiagnosticSink
from utils.pdf_transforms import apply_matrix_transform

logger = logging.getLogger(__name__)

Point = Tuple[float, float]

# pdfminer path segments carry the operator as a str
_MOVETO = OP_MOVETO.decode('latin-1')
_LINETO = OP_LINETO.decode('latin-1')
_CURVETO = OP_CURVETO.decode('latin-1')
_CURVETO_V = OP_CURVETO_V.decode('latin-1')
_CURVETO_Y = OP_CURVETO_Y.decode('latin-1')
_CLOSEPATH = OP_CLOSEPATH.decode('latin-1')
_RECTANGLE = OP_RECTANGLE.decode('latin-1')


class BoundsDevice(PDFTextDevice):
    """
    Dispatcher device driving a ContentEventVisitor.

    Path segments from pdfminer are untransformed; each point is mapped
    through the CTM active when the path is painted before it reaches the
    visitor. Form XObjects save and restore the CTM around their content.
    """

    def __init__(
        self,
        rsrcmgr: PDFResourceManager,
        visitor: ContentEventVisitor,
        font_factory: Optional[FontVariantFactory] = None,
    ):
        super().__init__(rsrcmgr)
        self.visitor = visitor
        self.fonts = font_factory or FontVariantFactory()
        self.ctm = MATRIX_IDENTITY
        self.ctm_stack: List[Sequence[float]] = []

        self.glyph_count = 0
        self.image_count = 0
        self.path_count = 0

    # --- Page and graphics state ---

    def begin_page(self, page: PDFPage, ctm) -> None:
        self.ctm = ctm
        self.ctm_stack = []

    def end_page(self, page: PDFPage) -> None:
        logger.debug(
            f"Page done: {self.glyph_count} glyphs, {self.image_count} images, {self.path_count} paths"
        )

    def set_ctm(self, ctm) -> None:
        self.ctm = ctm

    def begin_figure(self, name: str, bbox, matrix) -> None:
        self.ctm_stack.append(self.ctm)

    def end_figure(self, name: str) -> None:
        if self.ctm_stack:
            self.ctm = self.ctm_stack.pop()

    def register_font(self, font: Any, spec: Any) -> None:
        self.fonts.register(font, spec)

    # --- Text ---

    def render_char(
        self,
        matrix,
        font,
        fontsize: float,
        scaling: float,
        rise: float,
        cid: int,
        ncs,
        graphicstate,
    ) -> float:
        """Emit one glyph and return its horizontal advance in text space."""
        handle = self.fonts.resolve(font)
        # matrix is Tm x CTM already translated to the glyph origin
        trm = mult_matrix((fontsize * scaling, 0, 0, fontsize, 0, rise), matrix)
        self.visitor.show_glyph(trm, handle.variant, handle.matrix, cid)
        self.glyph_count += 1
        return font.char_width(cid) * fontsize * scaling

    # --- Images ---

    def render_image(self, name: str, stream) -> None:
        self.visitor.draw_image(self.ctm)
        self.image_count += 1

    # --- Paths ---

    def paint_path(self, graphicstate, stroke: bool, fill: bool, evenodd: bool, path) -> None:
        self._emit_path(path)
        rule = WindingRule.from_evenodd(evenodd)
        if stroke and fill:
            self.visitor.fill_and_stroke_path(rule)
        elif fill:
            self.visitor.fill_path(rule)
        elif stroke:
            self.visitor.stroke_path()
        else:
            self.visitor.end_path()
        self.path_count += 1

    def end_path(self, path) -> None:
        self._emit_path(path)
        self.visitor.end_path()

    def clip(self, winding_rule: WindingRule) -> None:
        self.visitor.clip(winding_rule)

    def shading_fill(self, name: str) -> None:
        self.visitor.shading_fill(name)

    def _user(self, x: float, y: float) -> Point:
        return apply_matrix_transform(x, y, self.ctm)

    def _emit_path(self, path) -> None:
        """Replay pdfminer path segments as construction events."""
        current: Optional[Point] = None
        subpath_start: Optional[Point] = None

        for segment in path or []:
            op = segment[0]
            args = [float(v) for v in segment[1:]]

            if op == _MOVETO:
                current = subpath_start = self._user(args[0], args[1])
                self.visitor.move_to(*current)
            elif op == _LINETO:
                current = self._user(args[0], args[1])
                self.visitor.line_to(*current)
            elif op == _CURVETO:
                p1 = self._user(args[0], args[1])
                p2 = self._user(args[2], args[3])
                current = self._user(args[4], args[5])
                self.visitor.curve_to(*p1, *p2, *current)
            elif op == _CURVETO_V:
                # First control point coincides with the current point
                p2 = self._user(args[0], args[1])
                end = self._user(args[2], args[3])
                p1 = current if current is not None else p2
                current = end
                self.visitor.curve_to(*p1, *p2, *end)
            elif op == _CURVETO_Y:
                # Second control point coincides with the end point
                p1 = self._user(args[0], args[1])
                current = self._user(args[2], args[3])
                self.visitor.curve_to(*p1, *current, *current)
            elif op == _CLOSEPATH:
                self.visitor.close_path()
                current = subpath_start
            elif op == _RECTANGLE:
                x, y, w, h = args
                corners = [
                    self._user(x, y),
                    self._user(x + w, y),
                    self._user(x + w, y + h),
                    self._user(x, y + h),
                ]
                self.visitor.append_rectangle(*corners)
                current = subpath_start = corners[0]
            else:
                logger.debug(f"Ignoring unknown path segment '{op}'")


class BoundsPageInterpreter(PDFPageInterpreter):
    """Page interpreter feeding a BoundsDevice."""

    device: BoundsDevice

    def process_page(self, page: PDFPage) -> None:
        logger.debug(f"Processing page {page.pageid}")
        self.device.begin_page(page, MATRIX_IDENTITY)
        self.render_contents(page.resources, page.contents, ctm=MATRIX_IDENTITY)
        self.device.end_page(page)

    def init_resources(self, resources) -> None:
        super().init_resources(resources)
        if not resources:
            return
        fonts = dict_value(dict_value(resources).get(KEY_FONT, {}))
        for fontid, spec in fonts.items():
            font = self.fontmap.get(fontid)
            if font is not None:
                self.device.register_font(font, spec)

    def do_n(self) -> None:
        """End path without filling or stroking"""
        self.device.end_path(self.curpath)
        self.curpath = []

    def do_W(self) -> None:
        """Set clipping path using nonzero winding number rule"""
        self.device.clip(WindingRule.NONZERO)

    def do_W_a(self) -> None:
        """Set clipping path using even-odd rule"""
        self.device.clip(WindingRule.EVEN_ODD)

    def do_sh(self, name) -> None:
        """Paint area defined by shading pattern"""
        if isinstance(name, PSLiteral):
            name = literal_name(name)
        self.device.shading_fill(str(name))


def trace_page_bounds(
    page: PDFPage,
    rsrcmgr: Optional[PDFResourceManager] = None,
    font_factory: Optional[FontVariantFactory] = None,
    diagnostics: Optional[DiagnosticSink] = None,
) -> Optional[BoundingRectangle]:
    """
    Run one page through a fresh ContentBoundsVisitor.

    Returns the content bounding rectangle in user space, or None when the
    page draws nothing visible. pdfminer errors propagate to the caller.
    """
    rsrcmgr = rsrcmgr or PDFResourceManager()
    visitor = ContentBoundsVisitor(diagnostics)
    device = BoundsDevice(rsrcmgr, visitor, font_factory)
    interpreter = BoundsPageInterpreter(rsrcmgr, device)
    interpreter.process_page(page)
    device.close()
    return visitor.result()
