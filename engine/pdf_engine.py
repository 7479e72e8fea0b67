"""
PDF Processing Engine - Core Coordinator

The PDFEngine owns the open documents and the processors working on them.
pdfminer drives content-stream interpretation for bounds; pikepdf reads
page boxes and writes modifications.

Usage:
    >>> from engine.pdf_engine import PDFEngine
    >>>
    >>> with PDFEngine('document.pdf') as engine:
    ...     bounds = engine.bounds_processor.compute_bounds()
"""

import logging
import os
from pathlib import Path
from typing import Optional, Any, Dict, List, Tuple

import pikepdf
from pdfminer.pdfdocument import PDFDocument
from pdfminer.pdfpage import PDFPage
from pdfminer.pdfparser import PDFParser

from constants.pdf_keys import KEY_CROP_BOX, KEY_MEDIA_BOX, KEY_PARENT
from engine.config import EngineConfig, PageRange
from engine.base_processor import ProcessorRegistry
from utils.pdf_transforms import normalize_box
from utils.validation import PdfValidationError, comprehensive_pdf_validation

logger = logging.getLogger(__name__)

Box = Tuple[float, float, float, float]

# US Letter, used when a page tree declares no MediaBox at all
DEFAULT_MEDIA_BOX: Box = (0.0, 0.0, 612.0, 792.0)


class PDFEngine:
    """
    PDF document coordinator with resource management and processor registry.

    Example:
        >>> with PDFEngine('document.pdf') as engine:
        ...     total_pages = engine.get_page_count()
    """

    def __init__(self, file_path: str, config: Optional[EngineConfig] = None):
        """
        Prepare an engine for ``file_path``. Documents open on __enter__.

        Raises:
            FileNotFoundError: If file does not exist
            PdfValidationError: If configuration is invalid
        """
        self.file_path = file_path
        self.config = config or EngineConfig.default()

        if not os.path.exists(file_path):
            raise FileNotFoundError(f"PDF file not found: {file_path}")

        if not self.config.validate():
            raise PdfValidationError("Invalid engine configuration")

        # Resource handles (initialized in __enter__)
        self._pikepdf_doc: Optional[pikepdf.Pdf] = None
        self._pdfminer_fp = None
        self._pdfminer_doc: Optional[PDFDocument] = None
        self._pdfminer_pages: Optional[List[PDFPage]] = None
        self._is_open = False

        self._processors = ProcessorRegistry()

        self._page_count: Optional[int] = None
        self._file_size_mb: Optional[float] = None

        logger.debug(f"PDFEngine initialized for: {Path(file_path).name}")

    def __enter__(self) -> 'PDFEngine':
        """
        Open both documents and initialize processors.

        Raises:
            PdfValidationError: If PDF cannot be opened or is invalid
        """
        try:
            logger.info(f"Opening PDF: {self.file_path}")

            if self.config.validate_on_open:
                self._validate_pdf_file()

            self._pikepdf_doc = pikepdf.open(self.file_path)

            self._pdfminer_fp = open(self.file_path, 'rb')
            self._pdfminer_doc = PDFDocument(PDFParser(self._pdfminer_fp))

            self._page_count = len(self._pikepdf_doc.pages)
            self._file_size_mb = os.path.getsize(self.file_path) / (1024 * 1024)
            self._is_open = True

            self._initialize_processors()

            logger.info(
                f"PDF opened successfully: {self._page_count} pages, "
                f"{self._file_size_mb:.2f} MB"
            )
            return self

        except PdfValidationError:
            self._cleanup_resources()
            raise
        except Exception as e:
            logger.error(f"Failed to open PDF: {e}")
            self._cleanup_resources()
            raise PdfValidationError(f"Failed to open PDF: {str(e)}") from e

    def __exit__(self, exc_type, exc_val, exc_tb):
        logger.info("Closing PDF engine")
        self._cleanup_resources()

        if exc_type is not None:
            logger.error(f"Exception during engine operation: {exc_val}")

        return False

    def _validate_pdf_file(self) -> None:
        """
        Raises:
            PdfValidationError: If any file-level check fails
        """
        results = comprehensive_pdf_validation(self.file_path, self.config.max_file_size_mb)
        if not results['is_valid']:
            raise PdfValidationError("; ".join(results['errors']))

    def _initialize_processors(self) -> None:
        if self.config.enable_bounds_processor:
            from engine.bounds_processor import BoundsProcessor
            self._processors.register('bounds', BoundsProcessor(self, self.config.bounds_options()))

        if self.config.enable_content_cropper:
            from engine.content_cropper import ContentCropper
            self._processors.register('cropper', ContentCropper(self, self.config.cropper_options()))

        self._processors.initialize_all()

    def _cleanup_resources(self) -> None:
        """Close documents and processors. Safe to call more than once."""
        self._processors.cleanup_all()

        if self._pikepdf_doc is not None:
            try:
                self._pikepdf_doc.close()
            except Exception as e:
                logger.warning(f"Error closing pikepdf document: {e}")
            finally:
                self._pikepdf_doc = None

        if self._pdfminer_fp is not None:
            try:
                self._pdfminer_fp.close()
            except OSError as e:
                logger.warning(f"Error closing pdfminer file handle: {e}")
            finally:
                self._pdfminer_fp = None

        self._pdfminer_doc = None
        self._pdfminer_pages = None
        self._is_open = False

    def _require_open(self) -> None:
        if not self._is_open:
            raise RuntimeError("Engine not opened - use within context manager")

    def _check_index(self, page_index: int) -> None:
        self._require_open()
        if page_index < 0 or page_index >= self._page_count:
            raise IndexError(f"Page index {page_index} out of bounds (0-{self._page_count-1})")

    # Public API - Document Information

    def get_page_count(self) -> int:
        self._require_open()
        return self._page_count

    def resolve_page_numbers(self, page_range: Optional[PageRange] = None) -> List[int]:
        """1-based page numbers selected by ``page_range`` (all pages when None)."""
        self._require_open()
        page_range = page_range or PageRange.all_pages()
        return page_range.to_page_numbers(self._page_count)

    # Public API - Page Boxes

    def _inherited_box(self, page_index: int, key: str) -> Optional[Box]:
        node = self._pikepdf_doc.pages[page_index].obj
        while node is not None:
            if key in node:
                return normalize_box([float(v) for v in node[key]])
            node = node.get(KEY_PARENT)
        return None

    def get_page_media_box(self, page_index: int) -> Box:
        """
        MediaBox of a page, following inheritance through the page tree.

        Args:
            page_index: 0-based page index
        """
        self._check_index(page_index)
        return self._inherited_box(page_index, KEY_MEDIA_BOX) or DEFAULT_MEDIA_BOX

    def get_page_crop_box(self, page_index: int) -> Box:
        """
        CropBox of a page; defaults to the MediaBox when absent.

        Args:
            page_index: 0-based page index
        """
        self._check_index(page_index)
        crop_box = self._inherited_box(page_index, KEY_CROP_BOX)
        return crop_box or self.get_page_media_box(page_index)

    # Public API - Resource Access (for processors)

    @property
    def pikepdf_document(self) -> pikepdf.Pdf:
        if not self._is_open or self._pikepdf_doc is None:
            raise RuntimeError("Engine not opened - use within context manager")
        return self._pikepdf_doc

    @property
    def pdfminer_document(self) -> PDFDocument:
        if not self._is_open or self._pdfminer_doc is None:
            raise RuntimeError("Engine not opened - use within context manager")
        return self._pdfminer_doc

    def get_pdfminer_page(self, page_index: int) -> PDFPage:
        """
        pdfminer page object for interpretation.

        Args:
            page_index: 0-based page index
        """
        self._check_index(page_index)
        if self._pdfminer_pages is None:
            self._pdfminer_pages = list(PDFPage.create_pages(self._pdfminer_doc))
        return self._pdfminer_pages[page_index]

    # Public API - Processor Access

    def _processor(self, name: str, label: str):
        processor = self._processors.get(name)
        if processor is None:
            raise RuntimeError(f"{label} not enabled or not yet initialized")
        return processor

    @property
    def bounds_processor(self):
        """Access BoundsProcessor instance."""
        return self._processor('bounds', 'BoundsProcessor')

    @property
    def content_cropper(self):
        """Access ContentCropper instance."""
        return self._processor('cropper', 'ContentCropper')

    # Status and Debugging

    @property
    def is_open(self) -> bool:
        return self._is_open

    def get_status(self) -> Dict[str, Any]:
        return {
            'is_open': self._is_open,
            'file_path': self.file_path,
            'page_count': self._page_count,
            'file_size_mb': self._file_size_mb,
            'processors': self._processors.processor_names,
            'config': self.config.to_dict()
        }

    def __repr__(self) -> str:
        status = "open" if self._is_open else "closed"
        pages = f"{self._page_count} pages" if self._page_count else "unknown pages"
        return f"PDFEngine({Path(self.file_path).name}, {status}, {pages})"
