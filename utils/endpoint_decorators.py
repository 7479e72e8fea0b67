"""
Decorators for FastAPI endpoint error handling and resource management.

Upload validation, temporary file lifetime and the mapping of bounds
computation errors to HTTP status codes live here so the endpoints only
deal with the happy path.
"""

import os
import tempfile
import logging
import asyncio
from functools import wraps
from typing import Callable, Optional
from fastapi import UploadFile, HTTPException, Request

from utils.validation import (
    validate_file_content,
    PdfValidationError,
    ProcessingTimeoutError,
    ContentDispatchError,
    VALIDATION_CONSTANTS
)

logger = logging.getLogger(__name__)

# Exception type -> (status code, detail prefix, log level)
ERROR_STATUS = (
    (PdfValidationError, 400, "PDF validation failed", logging.WARNING),
    (ContentDispatchError, 422, "Unreadable page content", logging.ERROR),
    (ProcessingTimeoutError, 408, "Processing timeout", logging.ERROR),
)


def _to_http_error(exc: Exception, filename: str) -> HTTPException:
    for exc_type, status_code, prefix, level in ERROR_STATUS:
        if isinstance(exc, exc_type):
            logger.log(level, f"{prefix} for {filename}: {exc}")
            return HTTPException(status_code=status_code, detail=f"{prefix}: {exc}")
    logger.exception(f"Unexpected error processing {filename}: {exc}")
    return HTTPException(
        status_code=500,
        detail=f"Internal server error during PDF processing: {exc}"
    )


async def _read_upload(file: UploadFile) -> bytes:
    if not file.filename or not file.filename.lower().endswith('.pdf'):
        raise HTTPException(status_code=400, detail="Only PDF files are supported")

    try:
        content = await file.read()
    except OSError as e:
        logger.error(f"Error reading uploaded file: {e}")
        raise HTTPException(status_code=400, detail=f"Error reading uploaded file: {e}")

    is_valid, error = validate_file_content(content, max_size_mb=VALIDATION_CONSTANTS['MAX_FILE_SIZE_MB'])
    if not is_valid:
        logger.warning(f"File content validation failed for {file.filename}: {error}")
        raise HTTPException(status_code=400, detail=error)
    return content


def handle_pdf_processing(func: Callable) -> Callable:
    """
    Wrap a PDF upload endpoint.

    The decorated endpoint must accept ``request: Request`` and ``file: UploadFile``
    as keyword arguments, and may accept ``processing_timeout``. Before the
    endpoint runs the upload is validated and written to a temporary file:

    - ``request.state.temp_file_path``: path of the temporary PDF
    - ``request.state.file_content``: raw upload bytes

    The endpoint runs under ``asyncio.wait_for``; the temporary file is
    removed afterwards whatever the outcome.
    """
    @wraps(func)
    async def wrapper(*args, **kwargs):
        request: Request = kwargs.get('request')
        if not request:
            raise HTTPException(
                status_code=500,
                detail="Endpoint decorated with handle_pdf_processing must accept 'request: Request'"
            )

        file: UploadFile = kwargs.get('file')
        if not file:
            raise HTTPException(status_code=400, detail="File parameter is required")

        processing_timeout: Optional[int] = kwargs.get('processing_timeout')
        timeout_seconds = processing_timeout or VALIDATION_CONSTANTS['MAX_PROCESSING_TIME_SECONDS']

        content = await _read_upload(file)

        with tempfile.NamedTemporaryFile(delete=False, suffix='.pdf') as temp_file:
            temp_file.write(content)
            temp_path = temp_file.name

        request.state.temp_file_path = temp_path
        request.state.file_content = content

        try:
            return await asyncio.wait_for(func(*args, **kwargs), timeout=timeout_seconds)
        except asyncio.TimeoutError as e:
            timeout_error = ProcessingTimeoutError(f"timed out after {timeout_seconds} seconds")
            raise _to_http_error(timeout_error, file.filename) from e
        except HTTPException:
            raise
        except Exception as e:
            raise _to_http_error(e, file.filename) from e
        finally:
            try:
                os.unlink(temp_path)
                logger.debug(f"Cleaned up temporary file: {temp_path}")
            except OSError as e:
                logger.warning(f"Failed to clean up temporary file {temp_path}: {e}")

    return wrapper
