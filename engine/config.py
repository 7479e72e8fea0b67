"""
Configuration system for the content bounds engine.

Dataclasses with explicit defaults; EngineConfig also accepts plain dicts
through from_dict() for callers that build configuration dynamically.
"""

from dataclasses import asdict, dataclass, fields
from typing import Optional, Dict, Any, List
import logging

logger = logging.getLogger(__name__)

COORDINATE_ORIGINS = ("bottom-left", "top-left")


@dataclass
class ProcessorOptions:
    """
    Options shared by every processor.
    """
    enabled: bool = True
    timeout_seconds: Optional[int] = None  # Override engine timeout if set

    def validate(self) -> bool:
        if self.timeout_seconds is not None and self.timeout_seconds < 0:
            logger.error("timeout_seconds must be non-negative")
            return False
        return True

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class BoundsProcessorOptions(ProcessorOptions):
    """
    Options for content bounds computation.

    coordinate_origin:
        "bottom-left" returns raw PDF user space (Y up).
        "top-left" returns boxes relative to the page crop box with Y down.
    approximate_missing_outlines:
        Bound glyphs of fonts without an embedded program by their advance
        width and the font ascent/descent. When off such glyphs contribute
        nothing.
    """
    coordinate_origin: str = "bottom-left"
    approximate_missing_outlines: bool = True
    include_diagnostics: bool = True
    coordinate_precision: int = 2

    def validate(self) -> bool:
        if not super().validate():
            return False
        if self.coordinate_origin not in COORDINATE_ORIGINS:
            logger.error(f"coordinate_origin must be one of {COORDINATE_ORIGINS}, got '{self.coordinate_origin}'")
            return False
        if self.coordinate_precision < 0:
            logger.error("coordinate_precision must be non-negative")
            return False
        return True


@dataclass
class CropperOptions(ProcessorOptions):
    """
    Options for cropping pages to their content.
    """
    margin: float = 0.0  # Points added on every side of the content box
    clamp_to_media_box: bool = True

    def validate(self) -> bool:
        if not super().validate():
            return False
        if self.margin < 0:
            logger.error("margin must be non-negative")
            return False
        return True


@dataclass
class EngineConfig:
    """
    Central configuration for PDFEngine initialization.

    Example:
        >>> config = EngineConfig(enable_content_cropper=False)
        >>> engine = PDFEngine(file_path, config=config)
    """

    # Processors
    enable_bounds_processor: bool = True
    enable_content_cropper: bool = False

    # Processor-specific options (as dictionaries for flexibility)
    bounds_processor_options: Optional[Dict[str, Any]] = None
    content_cropper_options: Optional[Dict[str, Any]] = None

    # Performance
    timeout_seconds: int = 300
    max_file_size_mb: int = 50

    # Validation
    validate_on_open: bool = True

    # Logging
    log_level: str = "INFO"

    def validate(self) -> bool:
        """
        Validate configuration values.

        Returns:
            True if all values are valid, False otherwise
        """
        if self.timeout_seconds < 1:
            logger.error("timeout_seconds must be at least 1 second")
            return False

        if self.max_file_size_mb < 1:
            logger.error("max_file_size_mb must be at least 1 MB")
            return False

        if not (self.enable_bounds_processor or self.enable_content_cropper):
            logger.error("At least one processor must be enabled")
            return False

        if self.enable_content_cropper and not self.enable_bounds_processor:
            logger.error("content cropper needs the bounds processor")
            return False

        options = (
            (BoundsProcessorOptions, self.bounds_processor_options),
            (CropperOptions, self.content_cropper_options),
        )
        for options_cls, values in options:
            try:
                if not options_cls(**(values or {})).validate():
                    return False
            except TypeError as e:
                logger.error(f"Invalid {options_cls.__name__}: {e}")
                return False

        return True

    def bounds_options(self) -> BoundsProcessorOptions:
        return BoundsProcessorOptions(**(self.bounds_processor_options or {}))

    def cropper_options(self) -> CropperOptions:
        return CropperOptions(**(self.content_cropper_options or {}))

    def to_dict(self) -> Dict[str, Any]:
        """Plain dict for serialization and logging."""
        return asdict(self)

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> 'EngineConfig':
        """
        Create EngineConfig from dictionary.

        Unknown keys are ignored with a warning.
        """
        valid_keys = {f.name for f in fields(cls)}

        filtered_config = {}
        for key, value in config.items():
            if key in valid_keys:
                filtered_config[key] = value
            else:
                logger.warning(f"Unknown config key '{key}' will be ignored")

        return cls(**filtered_config)

    @classmethod
    def default(cls) -> 'EngineConfig':
        return cls()

    def __repr__(self) -> str:
        return (
            f"EngineConfig("
            f"bounds={self.enable_bounds_processor}, "
            f"cropper={self.enable_content_cropper}, "
            f"timeout={self.timeout_seconds}s)"
        )


@dataclass
class PageRange:
    """
    Inclusive, 1-based range of pages to process.

    Example:
        >>> PageRange(start=2, end=5).to_page_numbers(10)
        [2, 3, 4, 5]
        >>> PageRange(start=5).to_page_numbers(7)
        [5, 6, 7]
    """

    start: int
    end: Optional[int] = None  # None means "to end of document"

    def __post_init__(self):
        if self.start < 1:
            raise ValueError(f"start page must be >= 1, got {self.start}")

        if self.end is not None:
            if self.end < 1:
                raise ValueError(f"end page must be >= 1, got {self.end}")
            if self.end < self.start:
                raise ValueError(
                    f"end page ({self.end}) must be >= start page ({self.start})"
                )

    def to_page_numbers(self, total_pages: int) -> List[int]:
        """
        Resolve to explicit page numbers, clamped to the document.

        Args:
            total_pages: Total number of pages in document

        Returns:
            List of 1-based page numbers, empty when the range lies past the end
        """
        if total_pages < 1 or self.start > total_pages:
            return []

        end = total_pages if self.end is None else min(self.end, total_pages)
        return list(range(self.start, end + 1))

    def validate(self, total_pages: int) -> bool:
        """True when the range lies within a document of ``total_pages`` pages."""
        if total_pages < 1:
            logger.error("total_pages must be >= 1")
            return False

        if self.start > total_pages:
            logger.error(f"start page {self.start} exceeds total pages {total_pages}")
            return False

        if self.end is not None and self.end > total_pages:
            logger.error(f"end page {self.end} exceeds total pages {total_pages}")
            return False

        return True

    @classmethod
    def all_pages(cls) -> 'PageRange':
        return cls(start=1, end=None)

    @classmethod
    def single_page(cls, page_num: int) -> 'PageRange':
        return cls(start=page_num, end=page_num)

    def __repr__(self) -> str:
        if self.end is None:
            return f"PageRange({self.start}→end)"
        elif self.start == self.end:
            return f"PageRange(page {self.start})"
        else:
            return f"PageRange({self.start}→{self.end})"
