"""
Base processor class and processor registry.

Processors are attached to a PDFEngine, share its open documents and
follow an initialize/cleanup lifecycle driven by the engine.
"""

from abc import ABC
from typing import Dict, List, Optional, TYPE_CHECKING
import logging

if TYPE_CHECKING:
    from engine.pdf_engine import PDFEngine

logger = logging.getLogger(__name__)


class BaseProcessor(ABC):
    """
    Abstract base class for engine processors.

    Subclasses override initialize() and cleanup() when they hold state
    beyond the engine reference.
    """

    def __init__(self, engine: 'PDFEngine'):
        self.engine = engine
        self._initialized = False
        logger.debug(f"{self.__class__.__name__} created with engine reference")

    def initialize(self) -> None:
        """Called by the engine once its documents are open."""
        if self._initialized:
            logger.warning(f"{self.__class__.__name__} already initialized")
            return

        self._initialized = True
        logger.debug(f"{self.__class__.__name__} initialized")

    def cleanup(self) -> None:
        """Release processor state. Idempotent."""
        if not self._initialized:
            return

        self._initialized = False
        logger.debug(f"{self.__class__.__name__} cleaned up")

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    def validate_state(self) -> bool:
        """
        Check that the processor can run.

        Returns:
            True if initialized and attached to an engine
        """
        if not self._initialized:
            logger.error(f"{self.__class__.__name__} not initialized")
            return False

        if self.engine is None:
            logger.error(f"{self.__class__.__name__} has no engine reference")
            return False

        return True

    def __repr__(self) -> str:
        status = "initialized" if self._initialized else "not initialized"
        return f"{self.__class__.__name__}({status})"


class ProcessorRegistry:
    """
    Named processors of one engine.

    Initializes in registration order and cleans up in reverse order.
    """

    def __init__(self):
        self._processors: Dict[str, BaseProcessor] = {}
        self._order: List[str] = []

    def register(self, name: str, processor: BaseProcessor) -> None:
        if name in self._processors:
            logger.warning(f"Processor '{name}' already registered, replacing")

        self._processors[name] = processor
        if name not in self._order:
            self._order.append(name)

        logger.debug(f"Registered processor: {name}")

    def get(self, name: str) -> Optional[BaseProcessor]:
        return self._processors.get(name)

    def initialize_all(self) -> None:
        for name in self._order:
            try:
                self._processors[name].initialize()
            except Exception as e:
                logger.error(f"Failed to initialize processor '{name}': {e}")
                raise

    def cleanup_all(self) -> None:
        for name in reversed(self._order):
            try:
                self._processors[name].cleanup()
            except Exception as e:
                # Keep going so the remaining processors still release state
                logger.warning(f"Error cleaning up processor '{name}': {e}")

    @property
    def processor_names(self) -> List[str]:
        return list(self._order)

    def __len__(self) -> int:
        return len(self._processors)

    def __repr__(self) -> str:
        return f"ProcessorRegistry({len(self)} processors: {self.processor_names})"
