"""
Pydantic models for the PDF Content Bounds API
"""

from pydantic import BaseModel, Field
from typing import List, Optional
from enum import Enum

class CoordinateOrigin(str, Enum):
    """Coordinate system of returned boxes"""
    BOTTOM_LEFT = "bottom-left"  # PDF user space, Y up
    TOP_LEFT = "top-left"        # Relative to the crop box, Y down

class BoundingBox(BaseModel):
    """Axis-aligned box in points"""
    x: float
    y: float
    width: float
    height: float

class PageBox(BaseModel):
    """PDF rectangle as stored in the page dictionary"""
    x0: float
    y0: float
    x1: float
    y1: float

class PageContentBounds(BaseModel):
    """Content bounds of a single page"""
    pageNumber: int = Field(..., description="1-based page number")
    hasContent: bool = Field(..., description="False when nothing visible is drawn on the page")
    bounds: Optional[BoundingBox] = Field(None, description="Tightest box around all visible content, null when the page has none")
    cropBox: PageBox = Field(..., description="Page crop box in user space")
    mediaBox: PageBox = Field(..., description="Page media box in user space")

class BoundsDiagnostic(BaseModel):
    """Non-fatal problem met while measuring glyphs"""
    code: str = Field(..., description="Diagnostic code, e.g. UnrecognizedFontCapability")
    fontKind: str = Field(..., description="Font class or subtype the diagnostic refers to")
    message: str
    pageNumbers: List[int] = Field(default_factory=list, description="Pages on which the diagnostic occurred")
    occurrences: int = Field(1, description="Number of glyphs affected")

class ContentBoundsResponse(BaseModel):
    """Response model for the content-bounds endpoint"""
    coordinateOrigin: CoordinateOrigin
    pages: List[PageContentBounds] = Field(..., description="One entry per processed page")
    diagnostics: List[BoundsDiagnostic] = Field(default_factory=list)

class ErrorResponse(BaseModel):
    """Body of every non-2xx response"""
    detail: str = Field(..., description="Human readable reason, prefixed with the error category")

# Configuration models
class PdfContentBoundsOptions(BaseModel):
    """Configuration for content bounds computation"""
    coordinate_origin: CoordinateOrigin = Field(CoordinateOrigin.BOTTOM_LEFT, description="Origin and axis direction of returned boxes")
    approximate_missing_outlines: bool = Field(True, description="Bound glyphs of non-embedded fonts by advance width and ascent/descent")
    include_diagnostics: bool = Field(True, description="Report fonts whose glyphs could not be measured")

class PdfCropOptions(BaseModel):
    """Configuration for cropping pages to their content"""
    margin: float = Field(0.0, ge=0, description="Points of padding around the content box")
    clamp_to_media_box: bool = Field(True, description="Keep the new crop box inside the page media box")
