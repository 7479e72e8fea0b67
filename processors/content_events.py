"""
Callback interface between a content-stream dispatcher and the code that
reacts to drawing operators.

The dispatcher owns parsing and graphics state; it calls exactly one of
these methods per drawing operator, in stream order. Coordinates passed to
path callbacks are already in user space.
"""

from enum import Enum
from typing import Optional, Protocol, Sequence, Tuple

from processors.bounds_accumulator import BoundingRectangle
from processors.glyph_bounds import FontVariant

Point = Tuple[float, float]


class WindingRule(str, Enum):
    NONZERO = "nonzero"
    EVEN_ODD = "evenodd"

    @classmethod
    def from_evenodd(cls, evenodd: bool) -> 'WindingRule':
        return cls.EVEN_ODD if evenodd else cls.NONZERO


class ContentEventVisitor(Protocol):
    """Drawing events for one page, delivered in operator order."""

    def show_glyph(
        self,
        text_rendering_matrix: Sequence[float],
        font_variant: FontVariant,
        font_matrix: Sequence[float],
        code: int,
    ) -> None: ...

    def draw_image(self, ctm: Sequence[float]) -> None: ...

    def append_rectangle(self, p0: Point, p1: Point, p2: Point, p3: Point) -> None: ...

    def move_to(self, x: float, y: float) -> None: ...

    def line_to(self, x: float, y: float) -> None: ...

    def curve_to(
        self, x1: float, y1: float, x2: float, y2: float, x3: float, y3: float
    ) -> None: ...

    def close_path(self) -> None: ...

    def end_path(self) -> None: ...

    def stroke_path(self) -> None: ...

    def fill_path(self, winding_rule: WindingRule) -> None: ...

    def fill_and_stroke_path(self, winding_rule: WindingRule) -> None: ...

    def clip(self, winding_rule: WindingRule) -> None: ...

    def shading_fill(self, name: str) -> None: ...

    def result(self) -> Optional[BoundingRectangle]: ...
