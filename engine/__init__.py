"""
PDF Processing Engine

Core engine module for coordinating PDF operations.
Contains the PDFEngine class and its bounds and cropping processors.
"""

__version__ = "1.0.0"

from engine.pdf_engine import PDFEngine
from engine.config import EngineConfig, ProcessorOptions, BoundsProcessorOptions, CropperOptions, PageRange
from engine.base_processor import BaseProcessor, ProcessorRegistry
from engine.bounds_processor import BoundsProcessor
from engine.content_cropper import ContentCropper

__all__ = [
    'PDFEngine',
    'EngineConfig',
    'ProcessorOptions',
    'BoundsProcessorOptions',
    'CropperOptions',
    'PageRange',
    'BaseProcessor',
    'ProcessorRegistry',
    'BoundsProcessor',
    'ContentCropper',
]
