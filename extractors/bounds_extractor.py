"""
PDF Content Bounds Module

Public API for computing the visible content bounding box of PDF pages.
Uses the PDFEngine + BoundsProcessor architecture.
"""

import logging
from typing import Optional

from engine import PDFEngine, EngineConfig, PageRange
from models.pdf_types import ContentBoundsResponse, CoordinateOrigin, PdfContentBoundsOptions

logger = logging.getLogger(__name__)


def extract_content_bounds(
        file_path: str,
        options: Optional[PdfContentBoundsOptions] = None,
        start_page: int = 1,
        end_page: Optional[int] = None
) -> ContentBoundsResponse:
    """
    Compute the content bounding box of each page.

    Args:
        file_path: Path to the input PDF file.
        options: Coordinate system and font handling options.
        start_page: First page to process (1-based).
        end_page: Last page to process (1-based, inclusive), None for all.

    Returns:
        ContentBoundsResponse with one entry per page.

    Raises:
        PdfValidationError: If the file cannot be opened as a PDF.
        ContentDispatchError: If a page content stream cannot be interpreted.
    """
    options = options or PdfContentBoundsOptions()
    page_range = PageRange(start=start_page, end=end_page)

    config = EngineConfig(
        enable_bounds_processor=True,
        bounds_processor_options={
            'coordinate_origin': CoordinateOrigin(options.coordinate_origin).value,
            'approximate_missing_outlines': options.approximate_missing_outlines,
            'include_diagnostics': options.include_diagnostics,
        }
    )

    try:
        with PDFEngine(file_path, config=config) as engine:
            processor = engine.bounds_processor
            pages = processor.compute_bounds(page_range)
            diagnostics = processor.diagnostics if options.include_diagnostics else []

            with_content = sum(1 for page in pages if page.hasContent)
            logger.info(f"Content bounds computed: {with_content}/{len(pages)} pages with visible content")

            return ContentBoundsResponse(
                coordinateOrigin=options.coordinate_origin,
                pages=pages,
                diagnostics=diagnostics,
            )
    except Exception as e:
        logger.error(f"Content bounds computation failed: {e}", exc_info=True)
        raise
