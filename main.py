"""PDF Content Bounds Python Server"""

import sys
import logging
import asyncio
from typing import Optional
import os

import uvicorn
from fastapi import FastAPI, UploadFile, File, HTTPException, Query, Form, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from rich.console import Console
from rich.logging import RichHandler

from models.pdf_types import (
    ContentBoundsResponse,
    CoordinateOrigin,
    ErrorResponse,
    PdfContentBoundsOptions,
    PdfCropOptions,
)
from extractors.bounds_extractor import extract_content_bounds
from extractors.pdf_cropper import crop_pdf_to_content
from utils.endpoint_decorators import handle_pdf_processing

API_VERSION = "1.0.0"
ALLOWED_ORIGINS = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]
DEFAULT_TIMEOUT_SECONDS = 300
MIN_TIMEOUT_SECONDS = 30
MAX_TIMEOUT_SECONDS = 600
ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Not a readable PDF or invalid page range"},
    408: {"model": ErrorResponse, "description": "Processing timeout"},
    500: {"model": ErrorResponse, "description": "Unexpected processing failure"},
}

logger = logging.getLogger("rich")

app = FastAPI(
    title="PDF Content Bounds API",
    description="Locate the visible content of PDF pages without rendering",
    version=API_VERSION
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.get("/")
async def root():
    """Service banner"""
    return {
        "message": "PDF Content Bounds API",
        "version": API_VERSION,
        "features": [
            "Per-page content bounding boxes (text, images, paths)",
            "Type 3, TrueType, CFF, Type 1 and composite font glyph bounds",
            "Bottom-left user space or top-left crop box coordinates",
            "Crop pages to content"
        ]
    }

@app.get("/health")
async def health_check():
    """Health check with dependency verification"""
    try:
        import fontTools
        import pdfminer
        import pikepdf
        import numpy

        return {
            "status": "healthy",
            "version": API_VERSION,
            "features": {
                "content_interpretation": "pdfminer.six",
                "font_outlines": "fontTools",
                "pdf_manipulation": "pikepdf"
            },
            "dependencies": {
                "fontTools": fontTools.version,
                "pdfminer": pdfminer.__version__,
                "pikepdf": pikepdf.__version__,
                "numpy": numpy.__version__
            }
        }
    except ImportError as e:
        return JSONResponse(
            status_code=503,
            content={
                "status": "unhealthy",
                "error": f"Missing dependency: {str(e)}"
            }
        )

@app.post("/content-bounds", response_model=ContentBoundsResponse, responses=ERROR_RESPONSES)
@handle_pdf_processing
async def content_bounds(
    *,
    request: Request,
    file: UploadFile = File(...),
    coordinate_origin: CoordinateOrigin = Form(CoordinateOrigin.BOTTOM_LEFT, description="'bottom-left' (PDF user space) or 'top-left' (relative to the crop box, Y down)"),
    approximate_missing_outlines: bool = Form(True, description="Bound glyphs of non-embedded fonts by their metrics"),
    include_diagnostics: bool = Form(True, description="Report fonts whose glyphs could not be measured"),
    start_page: Optional[int] = Query(1, ge=1, description="Starting page number (1-based)"),
    end_page: Optional[int] = Query(None, ge=1, description="Ending page number (1-based), None for all pages"),
    processing_timeout: Optional[int] = Query(DEFAULT_TIMEOUT_SECONDS, ge=MIN_TIMEOUT_SECONDS, le=MAX_TIMEOUT_SECONDS, description="Processing timeout in seconds")
):
    """
    Compute the bounding box of all visible content on each page.

    **What counts as content:**
    - Glyphs, bounded by their outlines (Type 3 glyphs by their declared box)
    - Images, bounded by their placed unit square
    - Stroked and filled paths, bounded by their points including curve control points

    Clip paths never shrink the box and shading fills never grow it.

    **Returns:**
    - One entry per page with `bounds` (null when nothing visible is drawn)
    - `diagnostics` for fonts whose glyphs could not be measured
    """
    if end_page is not None and end_page < start_page:
        raise HTTPException(status_code=400, detail="end_page must be >= start_page")

    temp_file_path = request.state.temp_file_path
    options = PdfContentBoundsOptions(
        coordinate_origin=coordinate_origin,
        approximate_missing_outlines=approximate_missing_outlines,
        include_diagnostics=include_diagnostics,
    )

    logger.info(f"Computing content bounds (pages {start_page} to {end_page or 'end'}, origin={coordinate_origin.value})")

    result = await asyncio.to_thread(
        extract_content_bounds,
        temp_file_path,
        options=options,
        start_page=start_page,
        end_page=end_page
    )

    logger.info(f"Successfully computed bounds for {len(result.pages)} pages")
    return result

@app.post("/crop-to-content", responses=ERROR_RESPONSES)
@handle_pdf_processing
async def crop_to_content(
    *,
    request: Request,
    file: UploadFile = File(...),
    margin: float = Form(0.0, ge=0, description="Padding in points around the content box"),
    clamp_to_media_box: bool = Form(True, description="Keep the crop box inside the media box"),
    start_page: Optional[int] = Query(1, ge=1, description="Starting page number (1-based)"),
    end_page: Optional[int] = Query(None, ge=1, description="Ending page number (1-based), None for all pages"),
    processing_timeout: Optional[int] = Query(DEFAULT_TIMEOUT_SECONDS, ge=MIN_TIMEOUT_SECONDS, le=MAX_TIMEOUT_SECONDS, description="Processing timeout in seconds")
):
    """
    Return the PDF with each page's CropBox set to its content bounds.

    Pages without visible content keep their crop box.
    """
    if end_page is not None and end_page < start_page:
        raise HTTPException(status_code=400, detail="end_page must be >= start_page")

    temp_file_path = request.state.temp_file_path

    logger.info(f"Cropping PDF to content (margin={margin})")

    cropped_pdf_bytes = await asyncio.to_thread(
        crop_pdf_to_content,
        temp_file_path,
        options=PdfCropOptions(margin=margin, clamp_to_media_box=clamp_to_media_box),
        start_page=start_page,
        end_page=end_page
    )

    filename = file.filename if file.filename else "document.pdf"
    return Response(
        content=cropped_pdf_bytes,
        media_type='application/pdf',
        headers={
            "Content-Disposition": f"attachment; filename=cropped_{filename}"
        }
    )

LOGGED_PACKAGES = ("main", "rich", "engine", "extractors", "processors", "utils")

class _ShutdownNoiseFilter(logging.Filter):
    """Drop the tracebacks uvicorn emits when the server is interrupted"""
    NOISE = (KeyboardInterrupt, asyncio.CancelledError)

    def filter(self, record):
        if record.exc_info and record.exc_info[0] in self.NOISE:
            return False
        message = str(record.msg)
        return not any(noise.__name__ in message for noise in self.NOISE)

def _configure_server_logging() -> Console:
    """Route all logging through one RichHandler; project loggers follow LOG_LEVEL"""
    console = Console(force_terminal=True)

    handler = RichHandler(console=console, rich_tracebacks=True, show_time=False, show_path=True)
    handler.addFilter(_ShutdownNoiseFilter())

    # Third-party loggers (pdfminer in particular) stay at WARNING
    logging.basicConfig(level=logging.WARNING, format="%(message)s", handlers=[handler])
    for name in ("uvicorn", "uvicorn.error", "fastapi"):
        logging.getLogger(name).setLevel(logging.INFO)

    level = os.getenv("LOG_LEVEL", "INFO").upper()
    for name in LOGGED_PACKAGES:
        logging.getLogger(name).setLevel(level)

    return console

def _find_free_port(start_port: int = 8000, attempts: int = 100) -> int:
    """First port from start_port on that can be bound locally"""
    import socket

    for port in range(start_port, start_port + attempts):
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
            try:
                sock.bind(('localhost', port))
            except OSError:
                continue
            return port
    return start_port

server_console = _configure_server_logging()

if __name__ == "__main__":
    port = _find_free_port()
    server_console.print(f"[bold green]Content bounds server listening on http://localhost:{port}[/bold green]")

    try:
        uvicorn.run("main:app", host="0.0.0.0", port=port, reload=True, log_config=None)
    except KeyboardInterrupt:
        server_console.print("\n[bold yellow]Server stopped.[/bold yellow]")
        sys.exit(0)
