"""
Input checks and error types for content bounds requests.

Checks return ``(is_valid, error_message)`` so callers can collect several
problems before failing; the exception types are raised by the engine and
mapped to HTTP status codes by the endpoint decorator.
"""

import os
import tempfile
import logging
from typing import Any, Dict, Optional, Tuple

import psutil

logger = logging.getLogger(__name__)

CheckResult = Tuple[bool, Optional[str]]

VALIDATION_CONSTANTS = {
    'PDF_SIGNATURE': b'%PDF',
    'MAX_FILE_SIZE_MB': 50,
    'MAX_PROCESSING_TIME_SECONDS': 300,
    'MIN_AVAILABLE_MEMORY_MB': 100,
    'MIN_FREE_DISK_MB': 100,
    'KNOWN_PDF_VERSIONS': ('1.0', '1.1', '1.2', '1.3', '1.4', '1.5', '1.6', '1.7', '2.0'),
}

_BYTES_PER_MB = 1024 * 1024


class PdfValidationError(Exception):
    """The input cannot be opened as a PDF document"""


class ProcessingTimeoutError(Exception):
    """A request ran past its processing budget"""


class ContentDispatchError(Exception):
    """
    A page content stream could not be interpreted.

    Fatal for the page traversal; no partial bounds are returned.
    """

    def __init__(self, message: str, page_number: Optional[int] = None):
        super().__init__(message)
        self.page_number = page_number


def _check_header(header: bytes) -> CheckResult:
    if len(header) < 5:
        return False, "File too small to be a valid PDF"
    if not header.startswith(VALIDATION_CONSTANTS['PDF_SIGNATURE']):
        return False, f"Missing %PDF signature (file starts with {header[:4]!r})"

    version = header[5:8].decode('ascii', errors='replace')
    if version not in VALIDATION_CONSTANTS['KNOWN_PDF_VERSIONS']:
        # pdfminer and pikepdf cope with most odd headers
        logger.warning(f"Unusual PDF header version '{version}', continuing")
    return True, None


def _check_size(size_bytes: int, max_size_mb: Optional[int]) -> CheckResult:
    limit = max_size_mb or VALIDATION_CONSTANTS['MAX_FILE_SIZE_MB']
    size_mb = size_bytes / _BYTES_PER_MB
    if size_mb > limit:
        return False, f"File too large: {size_mb:.1f}MB (max: {limit}MB)"
    return True, None


def validate_pdf_signature(file_path: str) -> CheckResult:
    """Check the ``%PDF-x.y`` header of a file on disk."""
    try:
        with open(file_path, 'rb') as f:
            header = f.read(8)
    except OSError as e:
        return False, f"Cannot read {file_path}: {e}"
    return _check_header(header)


def validate_file_size(file_path: str, max_size_mb: Optional[int] = None) -> CheckResult:
    try:
        size_bytes = os.path.getsize(file_path)
    except OSError as e:
        return False, f"Cannot stat {file_path}: {e}"
    return _check_size(size_bytes, max_size_mb)


def validate_file_content(content: bytes, max_size_mb: Optional[int] = None) -> CheckResult:
    """
    Check an upload before it is written to disk.

    Args:
        content: Raw upload bytes
        max_size_mb: Size limit, VALIDATION_CONSTANTS default when None

    Returns:
        Tuple of (is_valid, error_message)
    """
    is_valid, error = _check_size(len(content), max_size_mb)
    if not is_valid:
        return is_valid, error
    return _check_header(content[:8])


def validate_processing_environment() -> CheckResult:
    """Make sure the host has the memory and temp disk space a traversal needs."""
    temp_dir = tempfile.gettempdir()
    try:
        available_mb = psutil.virtual_memory().available / _BYTES_PER_MB
        free_mb = psutil.disk_usage(temp_dir).free / _BYTES_PER_MB
    except (OSError, psutil.Error) as e:
        return False, f"Cannot inspect system resources: {e}"

    min_memory = VALIDATION_CONSTANTS['MIN_AVAILABLE_MEMORY_MB']
    if available_mb < min_memory:
        return False, f"Only {available_mb:.0f}MB memory available, {min_memory}MB required"

    min_disk = VALIDATION_CONSTANTS['MIN_FREE_DISK_MB']
    if free_mb < min_disk:
        return False, f"Only {free_mb:.0f}MB free in {temp_dir}, {min_disk}MB required"

    logger.debug(f"Resources ok: {available_mb:.0f}MB memory, {free_mb:.0f}MB temp disk")
    return True, None


def comprehensive_pdf_validation(file_path: str, max_size_mb: Optional[int] = None) -> Dict[str, Any]:
    """
    Run every file-level check.

    Returns:
        Dictionary with ``is_valid``, ``errors`` and ``file_info``
    """
    if not os.path.exists(file_path):
        return {'is_valid': False, 'errors': [f"File not found: {file_path}"], 'file_info': {}}

    errors = [
        error
        for is_valid, error in (
            validate_file_size(file_path, max_size_mb),
            validate_pdf_signature(file_path),
            validate_processing_environment(),
        )
        if not is_valid
    ]
    file_info = {}
    if not errors:
        file_info['size_mb'] = round(os.path.getsize(file_path) / _BYTES_PER_MB, 2)

    return {'is_valid': not errors, 'errors': errors, 'file_info': file_info}


__all__ = [
    'validate_pdf_signature',
    'validate_file_size',
    'validate_file_content',
    'validate_processing_environment',
    'comprehensive_pdf_validation',
    'PdfValidationError',
    'ProcessingTimeoutError',
    'ContentDispatchError',
    'VALIDATION_CONSTANTS'
]
