"""Placement store — the authoritative set of placed entities.

Every mutating call either succeeds and leaves the grid free of overlaps
and out-of-bounds rectangles, or raises/returns a rejection and leaves
the store untouched.  The one exception is :meth:`PlacementStore.move_entity`,
which writes unconditionally so a drag can be previewed live; the gesture
must end with :meth:`PlacementStore.commit_move`, which reverts invalid
positions.
"""

from __future__ import annotations

import logging
from typing import Iterator, Union

from zooplanner.catalog.models import CatalogEntry
from zooplanner.config import GRID_RULES, GridRules

from .geometry import in_bounds, overlaps
from .models import (
    BUILDING, DECORATION, ITEM_KINDS,
    Enclosure, PlacedItem, PlacementError, PlacementErrorKind, Rect,
)


log = logging.getLogger(__name__)

Entity = Union[PlacedItem, Enclosure]


class PlacementStore:
    """Buildings, decorations and enclosures keyed by instance id."""

    def __init__(self, rules: GridRules = GRID_RULES) -> None:
        self.rules = rules
        self._buildings: dict[int, PlacedItem] = {}
        self._decorations: dict[int, PlacedItem] = {}
        self._enclosures: dict[int, Enclosure] = {}
        self._next_id = 1

    # ── Queries ────────────────────────────────────────────────────

    @property
    def buildings(self) -> list[PlacedItem]:
        return list(self._buildings.values())

    @property
    def decorations(self) -> list[PlacedItem]:
        return list(self._decorations.values())

    @property
    def enclosures(self) -> list[Enclosure]:
        return list(self._enclosures.values())

    def items(self, kind: str) -> list[PlacedItem]:
        return list(self._collection(kind).values())

    def entities(self) -> Iterator[Entity]:
        """All entities: buildings, then decorations, then enclosures."""
        yield from self._buildings.values()
        yield from self._decorations.values()
        yield from self._enclosures.values()

    def get(self, instance_id: int) -> Entity | None:
        for coll in (self._buildings, self._decorations, self._enclosures):
            if instance_id in coll:
                return coll[instance_id]
        return None

    def is_empty(self) -> bool:
        return not (self._buildings or self._decorations or self._enclosures)

    def query_overlap(self, rect: Rect, exclude_id: int | None = None) -> bool:
        """True if *rect* overlaps any stored entity other than *exclude_id*."""
        for entity in self.entities():
            if entity.instance_id == exclude_id:
                continue
            if overlaps(rect, entity.rect):
                return True
        return False

    def enclosure_for(self, occupant_id: str) -> Enclosure | None:
        return next(
            (e for e in self._enclosures.values() if e.occupant_id == occupant_id),
            None,
        )

    def used_occupants(self) -> set[str]:
        return {e.occupant_id for e in self._enclosures.values()}

    def count_of_type(self, kind: str, type_id: str) -> int:
        return sum(
            1 for item in self._collection(kind).values()
            if item.catalog_type_id == type_id
        )

    def is_unique_kind(self, kind: str, type_id: str) -> bool:
        """Whether only one instance of this catalog type may exist."""
        return kind == BUILDING and type_id != self.rules.unlimited_building_id

    # ── Inserts ────────────────────────────────────────────────────

    def insert_item(self, kind: str, entry: CatalogEntry, x: int, y: int) -> PlacedItem:
        """Place a building or decoration with its top-left cell at (x, y).

        Raises
        ------
        PlacementError
            DUPLICATE_UNIQUE_TYPE, OUT_OF_BOUNDS or OVERLAP.
        """
        coll = self._collection(kind)
        if self.is_unique_kind(kind, entry.type_id) and self.count_of_type(kind, entry.type_id):
            raise PlacementError(
                PlacementErrorKind.DUPLICATE_UNIQUE_TYPE, entry.type_id,
                f"a {entry.name} is already placed",
            )
        rect = Rect(x, y, entry.width, entry.height)
        self._check_free(rect, entry.type_id)

        item = PlacedItem(
            instance_id=self._take_id(),
            kind=kind,
            catalog_type_id=entry.type_id,
            grid_x=x, grid_y=y,
            width=entry.width, height=entry.height,
        )
        coll[item.instance_id] = item
        log.info("Placed %s %s #%d at (%d, %d)",
                 kind, entry.type_id, item.instance_id, x, y)
        return item

    def insert_enclosure(self, occupant_id: str, x: int, y: int,
                         w: int, h: int) -> Enclosure:
        """Create the enclosure for *occupant_id*.

        Bounds are not checked here: callers only ever pass rectangles
        built from clamped grid cells.

        Raises
        ------
        PlacementError
            DUPLICATE_UNIQUE_TYPE, INVALID_DIMENSION or OVERLAP.
        """
        if self.enclosure_for(occupant_id) is not None:
            raise PlacementError(
                PlacementErrorKind.DUPLICATE_UNIQUE_TYPE, occupant_id,
                f"'{occupant_id}' already has an enclosure",
            )
        if w <= 0 or h <= 0:
            raise PlacementError(
                PlacementErrorKind.INVALID_DIMENSION, occupant_id,
                f"enclosure size {w}×{h} must be positive",
            )
        rect = Rect(x, y, w, h)
        if self.query_overlap(rect):
            raise PlacementError(
                PlacementErrorKind.OVERLAP, occupant_id,
                f"{w}×{h} at ({x}, {y}) overlaps another entity",
            )

        enc = Enclosure(
            instance_id=self._take_id(),
            occupant_id=occupant_id,
            grid_x=x, grid_y=y, width=w, height=h,
        )
        self._enclosures[enc.instance_id] = enc
        log.info("Created enclosure #%d for %s: %d×%d at (%d, %d)",
                 enc.instance_id, occupant_id, w, h, x, y)
        return enc

    # ── Mutations ──────────────────────────────────────────────────

    def move_entity(self, instance_id: int, x: int, y: int) -> Entity | None:
        """Write a new position with no validity check (live drag preview)."""
        entity = self.get(instance_id)
        if entity is None:
            return None
        entity.grid_x, entity.grid_y = x, y
        return entity

    def commit_move(self, instance_id: int, origin: tuple[int, int]) -> bool:
        """Finish a move: keep the current position if valid, else revert.

        Returns True when the position was kept, False when it was
        reverted to *origin*.
        """
        entity = self.get(instance_id)
        if entity is None:
            return False
        rect = entity.rect
        if in_bounds(rect, self.rules.grid_size) and not self.query_overlap(rect, instance_id):
            log.info("Moved #%d to (%d, %d)", instance_id, rect.x, rect.y)
            return True
        entity.grid_x, entity.grid_y = origin
        log.debug("Move of #%d to (%d, %d) rejected; reverted to (%d, %d)",
                  instance_id, rect.x, rect.y, origin[0], origin[1])
        return False

    def resize_enclosure(self, instance_id: int, x: int, y: int,
                         w: int, h: int) -> bool:
        """Apply a new geometry only if it overlaps nothing else.

        A rejected candidate leaves every field of the enclosure as it was.
        """
        enc = self._enclosures.get(instance_id)
        if enc is None:
            return False
        if w <= 0 or h <= 0:
            return False
        candidate = Rect(x, y, w, h)
        if self.query_overlap(candidate, instance_id):
            log.debug("Resize of #%d to %r rejected (overlap)", instance_id, candidate)
            return False
        enc.set_rect(candidate)
        return True

    def restore_rect(self, instance_id: int, rect: Rect) -> None:
        """Put an enclosure back to a geometry recorded earlier."""
        enc = self._enclosures.get(instance_id)
        if enc is not None:
            enc.set_rect(rect)

    # ── Removal ────────────────────────────────────────────────────

    def remove_item(self, instance_id: int) -> PlacedItem | None:
        item = self._buildings.pop(instance_id, None) or self._decorations.pop(instance_id, None)
        if item is not None:
            log.info("Removed %s %s #%d", item.kind, item.catalog_type_id, instance_id)
        return item

    def remove_enclosure(self, instance_id: int) -> Enclosure | None:
        enc = self._enclosures.pop(instance_id, None)
        if enc is not None:
            log.info("Removed enclosure #%d (%s)", instance_id, enc.occupant_id)
        return enc

    def remove(self, instance_id: int) -> Entity | None:
        """Remove whatever entity has this id."""
        return self.remove_item(instance_id) or self.remove_enclosure(instance_id)

    def remove_all_of_type(self, kind: str, type_id: str) -> list[PlacedItem]:
        """Delete every item of one catalog type; returns the removed items."""
        coll = self._collection(kind)
        doomed = [i for i in coll.values() if i.catalog_type_id == type_id]
        for item in doomed:
            del coll[item.instance_id]
        if doomed:
            log.info("Removed %d × %s %s", len(doomed), kind, type_id)
        return doomed

    def remove_enclosure_for(self, occupant_id: str) -> Enclosure | None:
        enc = self.enclosure_for(occupant_id)
        if enc is None:
            return None
        return self.remove_enclosure(enc.instance_id)

    def clear(self) -> None:
        """Drop everything and restart id assignment."""
        self._buildings.clear()
        self._decorations.clear()
        self._enclosures.clear()
        self._next_id = 1

    # ── Internals ──────────────────────────────────────────────────

    def _collection(self, kind: str) -> dict[int, PlacedItem]:
        if kind == BUILDING:
            return self._buildings
        if kind == DECORATION:
            return self._decorations
        raise ValueError(f"Unknown item kind '{kind}', expected one of {ITEM_KINDS}")

    def _check_free(self, rect: Rect, subject: str) -> None:
        if not in_bounds(rect, self.rules.grid_size):
            raise PlacementError(
                PlacementErrorKind.OUT_OF_BOUNDS, subject,
                f"{rect.w}×{rect.h} at ({rect.x}, {rect.y}) leaves the "
                f"{self.rules.grid_size}×{self.rules.grid_size} grid",
            )
        if self.query_overlap(rect):
            raise PlacementError(
                PlacementErrorKind.OVERLAP, subject,
                f"{rect.w}×{rect.h} at ({rect.x}, {rect.y}) overlaps another entity",
            )

    def _take_id(self) -> int:
        iid = self._next_id
        self._next_id += 1
        return iid
