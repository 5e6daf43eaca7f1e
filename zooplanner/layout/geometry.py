"""Low-level geometry helpers for the layout engine."""

from __future__ import annotations

from shapely.geometry import Polygon, box as shapely_box
from shapely.ops import unary_union

from .models import Rect


def overlaps(a: Rect, b: Rect) -> bool:
    """Return True if two rectangles share interior area.

    Rectangles that only touch along an edge or at a corner do NOT
    overlap.
    """
    return a.x < b.x + b.w and b.x < a.x + a.w and a.y < b.y + b.h and b.y < a.y + a.h


def in_bounds(rect: Rect, grid_size: int) -> bool:
    """Check that *rect* lies entirely inside a grid_size × grid_size grid."""
    return (
        rect.x >= 0
        and rect.y >= 0
        and rect.x + rect.w <= grid_size
        and rect.y + rect.h <= grid_size
    )


def clamp(value, lo, hi):
    return max(lo, min(value, hi))


def contains_cell(rect: Rect, cell_x: int, cell_y: int) -> bool:
    """Hit test: is grid cell (cell_x, cell_y) covered by *rect*?"""
    return rect.x <= cell_x < rect.x + rect.w and rect.y <= cell_y < rect.y + rect.h


def span_rect(x1: int, y1: int, x2: int, y2: int) -> Rect:
    """Rectangle covering both corner cells, inclusive of each."""
    return Rect(
        min(x1, x2), min(y1, y2),
        abs(x2 - x1) + 1, abs(y2 - y1) + 1,
    )


def rect_box(rect: Rect) -> Polygon:
    """Shapely polygon for a grid rectangle."""
    return shapely_box(rect.x, rect.y, rect.x + rect.w, rect.y + rect.h)


def covered_area(rects: list[Rect], grid_size: int) -> int:
    """Number of grid cells covered by the union of *rects*.

    Parts of a rectangle that hang off the grid are not counted.
    """
    if not rects:
        return 0
    grid = shapely_box(0, 0, grid_size, grid_size)
    union = unary_union([rect_box(r) for r in rects])
    return int(round(union.intersection(grid).area))
