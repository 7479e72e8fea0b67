"""
Content Cropper Processor

Sets each page's CropBox to its visible content bounds so viewers show
only the drawn area. Works on the engine's pikepdf document; the source
file is never modified.
"""

import io
import logging
from typing import Dict, List, Optional, Tuple, TYPE_CHECKING

import pikepdf

from constants.pdf_keys import KEY_CROP_BOX
from engine.base_processor import BaseProcessor
from engine.config import CropperOptions, PageRange

if TYPE_CHECKING:
    from engine.pdf_engine import PDFEngine

logger = logging.getLogger(__name__)

Box = Tuple[float, float, float, float]


def expand_box(box: Box, margin: float, limit: Optional[Box] = None) -> Box:
    """Grow ``box`` by ``margin`` on every side, optionally clamped to ``limit``."""
    x0, y0, x1, y1 = box
    x0, y0, x1, y1 = x0 - margin, y0 - margin, x1 + margin, y1 + margin
    if limit is not None:
        lx0, ly0, lx1, ly1 = limit
        x0, y0 = max(x0, lx0), max(y0, ly0)
        x1, y1 = min(x1, lx1), min(y1, ly1)
        if x0 > x1 or y0 > y1:
            # Content entirely outside the media box: leave the page viewable
            return limit
    return (x0, y0, x1, y1)


class ContentCropper(BaseProcessor):
    """
    Processor cropping pages to their content.

    Needs the engine's BoundsProcessor. Pages without visible content, or
    whose content box has no area, keep their current CropBox.
    """

    def __init__(self, engine: 'PDFEngine', options: Optional[CropperOptions] = None):
        super().__init__(engine)
        self.options = options or CropperOptions()

        if not self.options.validate():
            raise ValueError("Invalid CropperOptions")

        self._cropped: Dict[int, Box] = {}

    def cleanup(self) -> None:
        self._cropped.clear()
        super().cleanup()

    @property
    def cropped_pages(self) -> Dict[int, Box]:
        """New crop boxes keyed by 1-based page number."""
        return dict(self._cropped)

    def crop_page(self, page_num: int) -> Optional[Box]:
        """
        Crop one page to its content.

        Args:
            page_num: 1-based page number

        Returns:
            The CropBox written, or None when the page has no visible content
            or the content box (after the margin) has zero width or height
        """
        if not self.validate_state():
            raise RuntimeError("ContentCropper not initialized. Use PDFEngine context manager.")

        rect = self.engine.bounds_processor.compute_page_rectangle(page_num)
        if rect is None:
            logger.debug(f"Page {page_num}: no visible content, crop box unchanged")
            return None

        limit = self.engine.get_page_media_box(page_num - 1) if self.options.clamp_to_media_box else None
        crop_box = expand_box(rect.as_tuple(), self.options.margin, limit)
        if crop_box[2] <= crop_box[0] or crop_box[3] <= crop_box[1]:
            # Viewers reject an empty CropBox
            logger.warning(f"Page {page_num}: content box {crop_box} has no area, crop box unchanged")
            return None

        page = self.engine.pikepdf_document.pages[page_num - 1]
        page.obj[KEY_CROP_BOX] = pikepdf.Array([float(v) for v in crop_box])
        self._cropped[page_num] = crop_box

        logger.debug(f"Page {page_num}: crop box set to {crop_box}")
        return crop_box

    def crop_pages(self, page_range: Optional[PageRange] = None) -> List[int]:
        """
        Crop every page in ``page_range`` (all pages when None).

        Returns:
            1-based numbers of the pages whose CropBox was changed
        """
        cropped = []
        for page_num in self.engine.resolve_page_numbers(page_range):
            if self.crop_page(page_num) is not None:
                cropped.append(page_num)
        logger.info(f"Cropped {len(cropped)} pages to content")
        return cropped

    def get_cropped_pdf_bytes(self) -> bytes:
        """Serialize the document with the new crop boxes."""
        buffer = io.BytesIO()
        self.engine.pikepdf_document.save(buffer)
        return buffer.getvalue()
