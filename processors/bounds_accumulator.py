"""
Running bounding-box state for a single page traversal.

BoundingBoxAccumulator holds the union of everything visible seen so far.
PathAccumulator tracks the extent of the path under construction until a
paint operator commits it or an end-path operator throws it away.

Curves are bounded by their control points, not by their true extrema.
The control polygon always encloses the curve, so the extent can only be
larger than the exact one.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

logger = logging.getLogger(__name__)

Point = Tuple[float, float]


@dataclass(frozen=True)
class BoundingRectangle:
    """Axis-aligned rectangle in page user space (Y-up)."""
    min_x: float
    min_y: float
    max_x: float
    max_y: float

    def __post_init__(self):
        if self.min_x > self.max_x or self.min_y > self.max_y:
            raise ValueError(
                f"Degenerate rectangle: ({self.min_x}, {self.min_y}) - ({self.max_x}, {self.max_y})"
            )

    @classmethod
    def from_point(cls, x: float, y: float) -> 'BoundingRectangle':
        return cls(x, y, x, y)

    @classmethod
    def from_points(cls, points: Iterable[Point]) -> Optional['BoundingRectangle']:
        """Smallest rectangle enclosing ``points``, or None when there are none."""
        pts = list(points)
        if not pts:
            return None
        xs = [float(p[0]) for p in pts]
        ys = [float(p[1]) for p in pts]
        return cls(min(xs), min(ys), max(xs), max(ys))

    @property
    def x(self) -> float:
        return self.min_x

    @property
    def y(self) -> float:
        return self.min_y

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y

    def union(self, other: 'BoundingRectangle') -> 'BoundingRectangle':
        return BoundingRectangle(
            min(self.min_x, other.min_x),
            min(self.min_y, other.min_y),
            max(self.max_x, other.max_x),
            max(self.max_y, other.max_y),
        )

    def include_point(self, x: float, y: float) -> 'BoundingRectangle':
        return BoundingRectangle(
            min(self.min_x, x),
            min(self.min_y, y),
            max(self.max_x, x),
            max(self.max_y, y),
        )

    def contains(self, other: 'BoundingRectangle') -> bool:
        return (
            self.min_x <= other.min_x
            and self.min_y <= other.min_y
            and self.max_x >= other.max_x
            and self.max_y >= other.max_y
        )

    def as_tuple(self) -> Tuple[float, float, float, float]:
        """(x0, y0, x1, y1) ordering used by PDF rectangles."""
        return (self.min_x, self.min_y, self.max_x, self.max_y)

    def to_xywh(self) -> Tuple[float, float, float, float]:
        return (self.min_x, self.min_y, self.width, self.height)


class BoundingBoxAccumulator:
    """Union of every visible contribution on the page; grows, never shrinks."""

    def __init__(self):
        self._rect: Optional[BoundingRectangle] = None

    def merge_point(self, x: float, y: float) -> None:
        x, y = float(x), float(y)
        if self._rect is None:
            self._rect = BoundingRectangle.from_point(x, y)
        else:
            self._rect = self._rect.include_point(x, y)

    def merge_rect(self, rect: Optional[BoundingRectangle]) -> None:
        if rect is None:
            return
        if self._rect is None:
            self._rect = rect
        else:
            self._rect = self._rect.union(rect)

    def merge(self, item) -> None:
        """Merge either a BoundingRectangle or an (x, y) point."""
        if isinstance(item, BoundingRectangle):
            self.merge_rect(item)
        else:
            x, y = item
            self.merge_point(x, y)

    def is_empty(self) -> bool:
        return self._rect is None

    def result(self) -> Optional[BoundingRectangle]:
        return self._rect

    def __repr__(self) -> str:
        return f"BoundingBoxAccumulator({self._rect!r})"


class PathAccumulator:
    """
    Extent of the path currently being constructed.

    Starts empty; the first point opens it and every further point
    (segment end points and all Bezier control points) extends it.
    close_path adds nothing. A paint flushes the extent into the page
    accumulator, an end-path drops it; both leave the tracker empty.
    """

    def __init__(self):
        self._extent: Optional[BoundingRectangle] = None

    @property
    def is_open(self) -> bool:
        return self._extent is not None

    @property
    def extent(self) -> Optional[BoundingRectangle]:
        return self._extent

    def add_point(self, x: float, y: float) -> None:
        x, y = float(x), float(y)
        if self._extent is None:
            self._extent = BoundingRectangle.from_point(x, y)
        else:
            self._extent = self._extent.include_point(x, y)

    def add_points(self, points: Iterable[Point]) -> None:
        for x, y in points:
            self.add_point(x, y)

    def close(self) -> None:
        pass

    def discard(self) -> None:
        if self._extent is not None:
            logger.debug(f"Discarding unpainted path extent {self._extent}")
        self._extent = None

    def flush_into(self, bounds: BoundingBoxAccumulator) -> None:
        if self._extent is not None:
            bounds.merge_rect(self._extent)
        self._extent = None
