"""Layout dataclasses, error types and configuration constants."""

from __future__ import annotations

import enum
from dataclasses import dataclass


# ── Geometry value type ────────────────────────────────────────────


@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle in grid units; (x, y) is the top-left cell."""

    x: int
    y: int
    w: int
    h: int

    @property
    def right(self) -> int:
        return self.x + self.w

    @property
    def bottom(self) -> int:
        return self.y + self.h

    @property
    def area(self) -> int:
        return self.w * self.h

    @property
    def perimeter(self) -> int:
        return 2 * (self.w + self.h)


# ── Placed entities ────────────────────────────────────────────────

BUILDING = "building"
DECORATION = "decoration"
ENCLOSURE = "enclosure"
ITEM_KINDS = (BUILDING, DECORATION)


@dataclass
class PlacedItem:
    """A building or decoration instantiated from a catalog entry."""

    instance_id: int
    kind: str               # BUILDING | DECORATION
    catalog_type_id: str
    grid_x: int
    grid_y: int
    width: int
    height: int

    @property
    def rect(self) -> Rect:
        return Rect(self.grid_x, self.grid_y, self.width, self.height)


@dataclass
class Enclosure:
    """A user-drawn, resizable area holding one occupant type."""

    instance_id: int
    occupant_id: str
    grid_x: int
    grid_y: int
    width: int
    height: int

    kind = ENCLOSURE

    @property
    def rect(self) -> Rect:
        return Rect(self.grid_x, self.grid_y, self.width, self.height)

    def set_rect(self, rect: Rect) -> None:
        self.grid_x, self.grid_y = rect.x, rect.y
        self.width, self.height = rect.w, rect.h


# ── Errors ─────────────────────────────────────────────────────────


class PlacementErrorKind(enum.Enum):
    OUT_OF_BOUNDS = "out_of_bounds"
    OVERLAP = "overlap"
    DUPLICATE_UNIQUE_TYPE = "duplicate_unique_type"
    INVALID_DIMENSION = "invalid_dimension"


class PlacementError(Exception):
    """Raised when an entity cannot be placed on the grid.

    Always recoverable: the store is left exactly as it was before the
    failed call.
    """

    def __init__(self, kind: PlacementErrorKind, subject: str, reason: str) -> None:
        self.kind = kind
        self.subject = subject
        self.reason = reason
        super().__init__(f"Cannot place '{subject}': {reason}")
