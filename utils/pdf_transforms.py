"""Affine transformation utilities for content bounds computation.

Matrices follow the pdfminer convention: a 6-tuple ``(a, b, c, d, e, f)``
standing for the 3x3 matrix ``[[a, b, 0], [c, d, 0], [e, f, 1]]`` acting on
row vectors. ``compose(first, then)`` therefore applies ``first`` before
``then``, which is the order PDF uses for ``Trm = [Tfs*Th 0 0 Tfs 0 Trise] x Tm x CTM``.
"""

from typing import Iterable, List, Sequence, Tuple

import numpy as np
from pdfminer.utils import apply_matrix_pt, mult_matrix

Matrix = Tuple[float, float, float, float, float, float]
Point = Tuple[float, float]

IDENTITY_MATRIX: Matrix = (1.0, 0.0, 0.0, 1.0, 0.0, 0.0)

# Unit square an image is painted into, counter-clockwise from the origin
UNIT_SQUARE: Tuple[Point, ...] = ((0.0, 0.0), (1.0, 0.0), (1.0, 1.0), (0.0, 1.0))


def to_matrix(values: Sequence[float]) -> Matrix:
    """Coerce any 6-element sequence (list, pdfminer tuple, pikepdf array) to a Matrix."""
    if len(values) != 6:
        raise ValueError(f"Transformation matrix needs 6 elements, got {len(values)}")
    a, b, c, d, e, f = (float(v) for v in values)
    return (a, b, c, d, e, f)


def compose(first: Sequence[float], then: Sequence[float]) -> Matrix:
    """Return the matrix that applies ``first`` and then ``then``."""
    return to_matrix(mult_matrix(to_matrix(first), to_matrix(then)))


def scale_matrix(sx: float, sy: float = None) -> Matrix:
    if sy is None:
        sy = sx
    return (float(sx), 0.0, 0.0, float(sy), 0.0, 0.0)


def apply_matrix_transform(x: float, y: float, ctm: Sequence[float]) -> Point:
    """Apply a transformation matrix to a point.

    Args:
        x, y: Point coordinates
        ctm: 6-element matrix [a, b, c, d, e, f]

    Returns:
        Transformed (x, y) coordinates
    """
    tx, ty = apply_matrix_pt(to_matrix(ctm), (x, y))
    return float(tx), float(ty)


def transform_points(points: Iterable[Point], matrix: Sequence[float]) -> np.ndarray:
    """Transform a batch of points, returning an (N, 2) array."""
    a, b, c, d, e, f = to_matrix(matrix)
    pts = np.asarray(list(points), dtype=float).reshape(-1, 2)
    linear = np.array([[a, b], [c, d]], dtype=float)
    return pts @ linear + np.array([e, f], dtype=float)


def transform_bounds(
    bounds: Sequence[float], matrix: Sequence[float]
) -> Tuple[float, float, float, float]:
    """Map an axis-aligned box through ``matrix`` and return the box enclosing its 4 corners.

    Args:
        bounds: (x0, y0, x1, y1) in the source space
        matrix: transformation to the target space

    Returns:
        (min_x, min_y, max_x, max_y) in the target space
    """
    x0, y0, x1, y1 = bounds
    corners = transform_points(((x0, y0), (x1, y0), (x1, y1), (x0, y1)), matrix)
    mins = corners.min(axis=0)
    maxs = corners.max(axis=0)
    return float(mins[0]), float(mins[1]), float(maxs[0]), float(maxs[1])


def unit_square_corners(ctm: Sequence[float]) -> List[Point]:
    """Return the four corners of the image unit square mapped through ``ctm``."""
    return [(float(x), float(y)) for x, y in transform_points(UNIT_SQUARE, ctm)]


def normalize_box(values: Sequence[float]) -> Tuple[float, float, float, float]:
    """Normalize a PDF rectangle so that x0 <= x1 and y0 <= y1."""
    x0, y0, x1, y1 = (float(v) for v in values)
    return min(x0, x1), min(y0, y1), max(x0, x1), max(y0, y1)


def to_top_left(
    x: float, y: float, width: float, height: float, crop_box: Sequence[float]
) -> Tuple[float, float, float, float]:
    """Convert a Y-up user-space box to Y-down coordinates relative to the crop box.

    Args:
        x, y, width, height: box in PDF user space (origin bottom-left)
        crop_box: page crop box (x0, y0, x1, y1)

    Returns:
        (x, y, width, height) with the origin at the crop box top-left corner
    """
    cx0, _, _, cy1 = normalize_box(crop_box)
    return x - cx0, cy1 - (y + height), width, height
