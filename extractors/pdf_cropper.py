"""
PDF Crop-to-Content Module

Public API for cropping PDF pages to their visible content.
Uses the PDFEngine + ContentCropper architecture.
"""

import logging
from typing import Optional

from engine import PDFEngine, EngineConfig, PageRange
from models.pdf_types import PdfCropOptions

logger = logging.getLogger(__name__)


def crop_pdf_to_content(
        file_path: str,
        options: Optional[PdfCropOptions] = None,
        start_page: int = 1,
        end_page: Optional[int] = None
) -> bytes:
    """
    Set each page's CropBox to its content bounds.

    Pages outside the range and pages without visible content are left as they are.

    Args:
        file_path: Path to the input PDF file.
        options: Margin and clamping options.
        start_page: First page to crop (1-based).
        end_page: Last page to crop (1-based, inclusive), None for all.

    Returns:
        Cropped PDF as bytes.
    """
    options = options or PdfCropOptions()

    config = EngineConfig(
        enable_bounds_processor=True,
        enable_content_cropper=True,
        content_cropper_options={
            'margin': options.margin,
            'clamp_to_media_box': options.clamp_to_media_box,
        }
    )

    try:
        with PDFEngine(file_path, config=config) as engine:
            cropper = engine.content_cropper
            cropped = cropper.crop_pages(PageRange(start=start_page, end=end_page))
            logger.info(f"Cropped pages {cropped} of {engine.get_page_count()}")
            return cropper.get_cropped_pdf_bytes()
    except Exception as e:
        logger.error(f"Crop to content failed: {e}", exc_info=True)
        raise
