"""
PDF Bounds Processor

High-level processor computing the visible content bounding box of pages.
Each page is replayed through pdfminer into a fresh ContentBoundsVisitor;
font variants are shared across pages of the document.
"""

import logging
from typing import TYPE_CHECKING, Dict, List, Optional, Tuple

from pdfminer.pdfinterp import PDFResourceManager
from pdfminer.psparser import PSException

from engine.base_processor import BaseProcessor
from engine.config import BoundsProcessorOptions, PageRange
from models.pdf_types import BoundingBox, BoundsDiagnostic, PageBox, PageContentBounds
from processors.bounds_accumulator import BoundingRectangle
from processors.bounds_device import trace_page_bounds
from processors.font_variants import FontVariantFactory
from processors.glyph_bounds import FontDiagnostic, log_diagnostic
from utils.pdf_transforms import to_top_left
from utils.validation import ContentDispatchError

if TYPE_CHECKING:
    from engine.pdf_engine import PDFEngine

logger = logging.getLogger(__name__)

# Base of every error pdfminer raises on malformed content (PDFSyntaxError, PSEOF)
DISPATCH_ERRORS = (PSException,)


class DiagnosticCollector:
    """Diagnostic sink that groups reports by (code, font kind)."""

    def __init__(self):
        self.page_number: Optional[int] = None
        self._entries: Dict[Tuple[str, str], BoundsDiagnostic] = {}

    def __call__(self, diagnostic: FontDiagnostic) -> None:
        key = (diagnostic.code, diagnostic.font_kind)
        entry = self._entries.get(key)
        if entry is None:
            log_diagnostic(diagnostic)
            entry = BoundsDiagnostic(
                code=diagnostic.code,
                fontKind=diagnostic.font_kind,
                message=diagnostic.message,
                occurrences=0,
            )
            self._entries[key] = entry
        entry.occurrences += 1
        if self.page_number is not None and self.page_number not in entry.pageNumbers:
            entry.pageNumbers.append(self.page_number)

    @property
    def diagnostics(self) -> List[BoundsDiagnostic]:
        return list(self._entries.values())


class BoundsProcessor(BaseProcessor):
    """
    Processor computing page content bounds.

    Integrated with PDFEngine for resource management and lifecycle control.
    """

    def __init__(self, engine: 'PDFEngine', options: Optional[BoundsProcessorOptions] = None):
        super().__init__(engine)
        self.options = options or BoundsProcessorOptions()
        self._rsrcmgr: Optional[PDFResourceManager] = None
        self._fonts: Optional[FontVariantFactory] = None
        self._collector = DiagnosticCollector()

    def initialize(self) -> None:
        super().initialize()
        self._rsrcmgr = PDFResourceManager(caching=True)
        self._fonts = FontVariantFactory(
            approximate_missing_outlines=self.options.approximate_missing_outlines
        )
        self._collector = DiagnosticCollector()

    def cleanup(self) -> None:
        self._rsrcmgr = None
        self._fonts = None
        super().cleanup()

    @property
    def diagnostics(self) -> List[BoundsDiagnostic]:
        """Font diagnostics gathered so far, one entry per (code, font kind)."""
        return self._collector.diagnostics

    def compute_page_rectangle(self, page_num: int) -> Optional[BoundingRectangle]:
        """
        Raw content bounds of one page in user space.

        Args:
            page_num: 1-based page number

        Returns:
            BoundingRectangle, or None when the page draws nothing visible

        Raises:
            RuntimeError: If processor not initialized
            ContentDispatchError: If the page content cannot be interpreted
        """
        if not self.validate_state():
            raise RuntimeError("BoundsProcessor not initialized. Use PDFEngine context manager.")

        page = self.engine.get_pdfminer_page(page_num - 1)
        self._collector.page_number = page_num
        try:
            return trace_page_bounds(page, self._rsrcmgr, self._fonts, self._collector)
        except DISPATCH_ERRORS as e:
            logger.error(f"Content stream of page {page_num} could not be interpreted: {e}")
            raise ContentDispatchError(f"Page {page_num}: {e}", page_number=page_num) from e
        finally:
            self._collector.page_number = None

    def compute_page_bounds(self, page_num: int) -> PageContentBounds:
        """
        Content bounds of one page in the configured coordinate system.

        Args:
            page_num: 1-based page number
        """
        rect = self.compute_page_rectangle(page_num)
        crop_box = self.engine.get_page_crop_box(page_num - 1)
        media_box = self.engine.get_page_media_box(page_num - 1)

        bounds = None
        if rect is not None:
            x, y, width, height = rect.to_xywh()
            if self.options.coordinate_origin == "top-left":
                x, y, width, height = to_top_left(x, y, width, height, crop_box)
            precision = self.options.coordinate_precision
            bounds = BoundingBox(
                x=round(x, precision),
                y=round(y, precision),
                width=round(width, precision),
                height=round(height, precision),
            )

        logger.debug(f"Page {page_num}: bounds {bounds}")
        return PageContentBounds(
            pageNumber=page_num,
            hasContent=bounds is not None,
            bounds=bounds,
            cropBox=PageBox(x0=crop_box[0], y0=crop_box[1], x1=crop_box[2], y1=crop_box[3]),
            mediaBox=PageBox(x0=media_box[0], y0=media_box[1], x1=media_box[2], y1=media_box[3]),
        )

    def compute_bounds(self, page_range: Optional[PageRange] = None) -> List[PageContentBounds]:
        """
        Content bounds for every page in ``page_range`` (all pages when None).

        A page that cannot be interpreted aborts the whole call.
        """
        page_numbers = self.engine.resolve_page_numbers(page_range)
        logger.info(f"Computing content bounds for {len(page_numbers)} of {self.engine.get_page_count()} pages")
        return [self.compute_page_bounds(page_num) for page_num in page_numbers]
