"""Interaction controller — turns pointer events into layout edits.

The controller is a small state machine::

    idle ──down──▶ Drawing | Moving | Resizing ──up──▶ idle

``gesture`` holds the active variant (or None when idle).  What a press
starts depends on what is under the pointer, in priority order: an
enclosure side (resize), an entity body (move), empty ground (draw a new
enclosure for the selected occupant).

Pointer positions are raw pixels relative to the grid's top-left corner.
Grid cells are derived from them here; pixel distances decide whether a
release was a click (delete request) or a drag (commit).
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Callable, Optional, Union

from zooplanner.config import MAX_CATALOG_ENTRIES, GridRules

from .geometry import clamp, contains_cell, span_rect
from .models import ENCLOSURE, Enclosure, PlacementError, Rect
from .store import Entity, PlacementStore
from .validation import EnclosureStatus, ValidationEngine


log = logging.getLogger(__name__)

LEFT, RIGHT, TOP, BOTTOM = "left", "right", "top", "bottom"


# ── Events and callbacks ───────────────────────────────────────────


@dataclass(frozen=True)
class Pointer:
    """Pointer position in pixels, relative to the grid origin."""
    x: float
    y: float


@dataclass(frozen=True)
class RenderUpdate:
    """One change the renderer should reflect.

    ``action`` is "draw" (create or refresh an entity), "remove",
    "preview" (the enclosure being drawn), "clear_preview" or
    "clear_all" (the whole layout was replaced).
    """
    action: str
    kind: str
    instance_id: int | None = None
    rect: Rect | None = None
    status: str = EnclosureStatus.OK.value
    type_id: str = ""


RenderCallback = Callable[[RenderUpdate], None]
ConfirmCallback = Callable[[str, Callable[[], None]], None]


# ── Gesture variants ───────────────────────────────────────────────


@dataclass
class Drawing:
    occupant_id: str
    start: tuple[int, int]
    current: tuple[int, int]

    @property
    def rect(self) -> Rect:
        return span_rect(*self.start, *self.current)


@dataclass
class Moving:
    instance_id: int
    origin: tuple[int, int]     # entity position when the gesture began
    offset: tuple[int, int]     # pointer cell minus entity origin
    down: Pointer


@dataclass
class Resizing:
    instance_id: int
    sides: frozenset[str]
    original: Rect
    down: Pointer


Gesture = Union[Drawing, Moving, Resizing]


# ── Controller ─────────────────────────────────────────────────────


class InteractionController:
    """Drives draw, move and resize gestures over a PlacementStore."""

    def __init__(
        self,
        store: PlacementStore,
        validation: ValidationEngine,
        *,
        on_render: RenderCallback | None = None,
        confirm: ConfirmCallback | None = None,
    ) -> None:
        self.store = store
        self.validation = validation
        self.on_render = on_render
        self.confirm = confirm
        self.gesture: Optional[Gesture] = None
        self.selected_occupant: str | None = None

    @property
    def rules(self) -> GridRules:
        return self.store.rules

    # ── Coordinate translation ─────────────────────────────────────

    def cell_at(self, p: Pointer) -> tuple[int, int]:
        """Integer grid cell under the pointer, clamped onto the grid."""
        n = self.rules.grid_size
        size = self.rules.cell_size_px
        return (
            clamp(math.floor(p.x / size), 0, n - 1),
            clamp(math.floor(p.y / size), 0, n - 1),
        )

    def precise_at(self, p: Pointer) -> tuple[float, float]:
        """Fractional grid position under the pointer, clamped to [0, N]."""
        n = self.rules.grid_size
        size = self.rules.cell_size_px
        return (clamp(p.x / size, 0.0, float(n)), clamp(p.y / size, 0.0, float(n)))

    def _near_grid(self, p: Pointer) -> bool:
        margin = self.rules.move_margin_px
        extent = self.rules.grid_size_px
        return -margin <= p.x <= extent + margin and -margin <= p.y <= extent + margin

    def _is_click(self, down: Pointer, up: Pointer) -> bool:
        return math.hypot(up.x - down.x, up.y - down.y) < self.rules.click_threshold_px

    # ── Hit testing ────────────────────────────────────────────────

    def detect_edge(self, gx: float, gy: float) -> tuple[Enclosure, frozenset[str]] | None:
        """Find an enclosure side (or corner) within the edge threshold.

        A side only counts when the opposite side on the same axis is not
        also within reach, so a one-cell-wide enclosure does not grab
        both of its vertical sides at once.
        """
        t = self.rules.edge_threshold
        for enc in self.store.enclosures:
            left, top = enc.grid_x, enc.grid_y
            right, bottom = left + enc.width, top + enc.height
            if not (left - t <= gx <= right + t and top - t <= gy <= bottom + t):
                continue
            near_left = abs(gx - left) <= t
            near_right = abs(gx - right) <= t
            near_top = abs(gy - top) <= t
            near_bottom = abs(gy - bottom) <= t
            sides = set()
            if near_left and not near_right:
                sides.add(LEFT)
            if near_right and not near_left:
                sides.add(RIGHT)
            if near_top and not near_bottom:
                sides.add(TOP)
            if near_bottom and not near_top:
                sides.add(BOTTOM)
            if sides:
                return enc, frozenset(sides)
        return None

    def entity_at(self, cell_x: int, cell_y: int) -> Entity | None:
        """Entity covering a grid cell; items are drawn over enclosures."""
        for entity in (*self.store.buildings, *self.store.decorations, *self.store.enclosures):
            if contains_cell(entity.rect, cell_x, cell_y):
                return entity
        return None

    def cursor_at(self, p: Pointer) -> str:
        """Cursor hint for the renderer."""
        g = self.gesture
        if isinstance(g, Resizing):
            return _resize_cursor(g.sides)
        if isinstance(g, Moving):
            return "grabbing"
        if isinstance(g, Drawing):
            return "crosshair"

        hit = self.detect_edge(*self.precise_at(p))
        if hit is not None:
            return _resize_cursor(hit[1])
        cx, cy = self.cell_at(p)
        if any(contains_cell(e.rect, cx, cy) for e in self.store.enclosures):
            return "move"
        return "crosshair"

    # ── Pointer events ─────────────────────────────────────────────

    def down(self, p: Pointer) -> None:
        if self.gesture is not None:
            log.debug("Ignoring press during active %s", type(self.gesture).__name__)
            return

        hit = self.detect_edge(*self.precise_at(p))
        if hit is not None:
            enc, sides = hit
            self.gesture = Resizing(enc.instance_id, sides, enc.rect, p)
            log.debug("Resize #%d from %s", enc.instance_id, sorted(sides))
            return

        cx, cy = self.cell_at(p)
        entity = self.entity_at(cx, cy)
        if entity is not None:
            self.gesture = Moving(
                instance_id=entity.instance_id,
                origin=(entity.grid_x, entity.grid_y),
                offset=(cx - entity.grid_x, cy - entity.grid_y),
                down=p,
            )
            log.debug("Move #%d from (%d, %d)", entity.instance_id,
                      entity.grid_x, entity.grid_y)
            return

        # Empty ground: only draw when an occupant has been picked.
        if not self.selected_occupant:
            return
        self.gesture = Drawing(self.selected_occupant, (cx, cy), (cx, cy))
        self._emit_preview(self.gesture)

    def move(self, p: Pointer) -> None:
        g = self.gesture
        if isinstance(g, Resizing):
            self._resize_to(g, p)
        elif isinstance(g, Moving):
            self._move_to(g, p)
        elif isinstance(g, Drawing):
            g.current = self.cell_at(p)
            self._emit_preview(g)

    def up(self, p: Pointer) -> None:
        g = self.gesture
        self.gesture = None
        if isinstance(g, Resizing):
            self._finish_resize(g, p)
        elif isinstance(g, Moving):
            self._finish_move(g, p)
        elif isinstance(g, Drawing):
            self._finish_drawing(g)

    # ── Gesture steps ──────────────────────────────────────────────

    def _move_to(self, g: Moving, p: Pointer) -> None:
        if not self._near_grid(p):
            return
        entity = self.store.get(g.instance_id)
        if entity is None:
            return
        n = self.rules.grid_size
        cx, cy = self.cell_at(p)
        x = clamp(cx - g.offset[0], 0, n - entity.width)
        y = clamp(cy - g.offset[1], 0, n - entity.height)
        self.store.move_entity(g.instance_id, x, y)
        self._emit_entity(entity)

    def _finish_move(self, g: Moving, p: Pointer) -> None:
        entity = self.store.get(g.instance_id)
        if entity is None:
            return
        if self._is_click(g.down, p):
            self.store.move_entity(g.instance_id, *g.origin)
            self._emit_entity(entity)
            self._request_delete(entity)
            return
        self.store.commit_move(g.instance_id, g.origin)
        self._emit_entity(entity)

    def _resize_to(self, g: Resizing, p: Pointer) -> None:
        enc = self.store.get(g.instance_id)
        if not isinstance(enc, Enclosure):
            return
        n = self.rules.grid_size
        px, py = self.cell_at(p)
        x, y, w, h = enc.grid_x, enc.grid_y, enc.width, enc.height

        if RIGHT in g.sides:
            w = max(1, px - x + 1)
        if LEFT in g.sides:
            right = enc.grid_x + enc.width
            x = min(px, right - 1)
            w = right - x
        if BOTTOM in g.sides:
            h = max(1, py - y + 1)
        if TOP in g.sides:
            bottom = enc.grid_y + enc.height
            y = min(py, bottom - 1)
            h = bottom - y

        x = clamp(x, 0, n - 1)
        y = clamp(y, 0, n - 1)
        w = clamp(w, 1, n - x)
        h = clamp(h, 1, n - y)

        if self.store.resize_enclosure(g.instance_id, x, y, w, h):
            self._emit_entity(enc)

    def _finish_resize(self, g: Resizing, p: Pointer) -> None:
        enc = self.store.get(g.instance_id)
        if not isinstance(enc, Enclosure):
            return
        if self._is_click(g.down, p):
            self.store.restore_rect(g.instance_id, g.original)
            self._emit_entity(enc)
            self._request_delete(enc)
            return
        log.info("Resized enclosure #%d to %d×%d at (%d, %d)",
                 enc.instance_id, enc.width, enc.height, enc.grid_x, enc.grid_y)
        self._emit_entity(enc)

    def _finish_drawing(self, g: Drawing) -> None:
        rect = g.rect
        self._emit(RenderUpdate("clear_preview", ENCLOSURE, type_id=g.occupant_id))
        if rect.w <= 0 or rect.h <= 0 or self.store.query_overlap(rect):
            return
        try:
            enc = self.store.insert_enclosure(g.occupant_id, rect.x, rect.y, rect.w, rect.h)
        except PlacementError as exc:
            log.debug("Drawing discarded: %s", exc)
            return
        self._emit_entity(enc)
        self.refresh_selection()

    # ── Palette drops ──────────────────────────────────────────────

    def preview_item(self, kind: str, type_id: str, p: Pointer) -> tuple[Rect, bool]:
        """Where a palette item would land and whether it could be placed."""
        index, entry = self._catalog_entry(kind, type_id)
        cx, cy = self.cell_at(p)
        rect = Rect(cx, cy, entry.width, entry.height)
        ok = (
            index < MAX_CATALOG_ENTRIES
            and self.validation.item_valid_rect(rect)
            and not (self.store.is_unique_kind(kind, type_id)
                     and self.store.count_of_type(kind, type_id))
        )
        return rect, ok

    def drop_item(self, kind: str, type_id: str, p: Pointer):
        """Place a palette item at the pointer cell; None when it won't fit."""
        index, entry = self._catalog_entry(kind, type_id)
        if index >= MAX_CATALOG_ENTRIES:
            log.debug("Drop discarded: %s '%s' at index %d cannot be shared",
                      kind, type_id, index)
            return None
        cx, cy = self.cell_at(p)
        try:
            item = self.store.insert_item(kind, entry, cx, cy)
        except PlacementError as exc:
            log.debug("Drop discarded: %s", exc)
            return None
        self._emit_entity(item)
        return item

    def _catalog_entry(self, kind: str, type_id: str):
        """(catalog index, entry) for a palette type; KeyError if unknown."""
        for index, entry in enumerate(self.validation.catalog.entries(kind)):
            if entry.type_id == type_id:
                return index, entry
        raise KeyError(f"Unknown {kind} type '{type_id}'")

    # ── Deletion and selection ─────────────────────────────────────

    def delete_entity(self, instance_id: int) -> Entity | None:
        removed = self.store.remove(instance_id)
        if removed is None:
            return None
        self._emit(RenderUpdate("remove", removed.kind, instance_id=instance_id))
        if isinstance(removed, Enclosure):
            self.refresh_selection()
        return removed

    def delete_type(self, kind: str, type_id: str) -> list:
        """Bulk delete every item of one catalog type."""
        removed = self.store.remove_all_of_type(kind, type_id)
        for item in removed:
            self._emit(RenderUpdate("remove", item.kind, instance_id=item.instance_id))
        return removed

    def delete_enclosure_for(self, occupant_id: str) -> Enclosure | None:
        removed = self.store.remove_enclosure_for(occupant_id)
        if removed is not None:
            self._emit(RenderUpdate("remove", ENCLOSURE, instance_id=removed.instance_id))
            self.refresh_selection()
        return removed

    def redraw(self) -> None:
        """Emit a draw update for every entity (after a reload)."""
        for entity in self.store.entities():
            self._emit_entity(entity)

    def refresh_selection(self) -> None:
        """Keep the selected occupant pointing at one without an enclosure."""
        used = self.store.used_occupants()
        if self.selected_occupant and self.selected_occupant not in used:
            return
        self.selected_occupant = next(
            (a.occupant_id for a in self.validation.catalog.animals[:MAX_CATALOG_ENTRIES]
             if a.occupant_id not in used),
            None,
        )

    def _request_delete(self, entity: Entity) -> None:
        if self.confirm is None:
            log.debug("No confirmation handler; keeping #%d", entity.instance_id)
            return
        iid = entity.instance_id
        self.confirm(f"Delete this {entity.kind}?", lambda: self.delete_entity(iid))

    # ── Render plumbing ────────────────────────────────────────────

    def _emit(self, update: RenderUpdate) -> None:
        if self.on_render is not None:
            self.on_render(update)

    def _emit_entity(self, entity: Entity) -> None:
        if isinstance(entity, Enclosure):
            status = self.validation.status(entity).value
            type_id = entity.occupant_id
        else:
            valid = self.validation.item_valid(entity)
            status = (EnclosureStatus.OK if valid else EnclosureStatus.INVALID).value
            type_id = entity.catalog_type_id
        self._emit(RenderUpdate(
            "draw", entity.kind,
            instance_id=entity.instance_id,
            rect=entity.rect,
            status=status,
            type_id=type_id,
        ))

    def _emit_preview(self, g: Drawing) -> None:
        report = self.validation.check_rect(g.occupant_id, g.rect)
        self._emit(RenderUpdate(
            "preview", ENCLOSURE,
            rect=g.rect,
            status=report.status.value,
            type_id=g.occupant_id,
        ))


def _resize_cursor(sides: frozenset[str]) -> str:
    vertical = "n" if TOP in sides else "s" if BOTTOM in sides else ""
    horizontal = "w" if LEFT in sides else "e" if RIGHT in sides else ""
    if vertical and horizontal:
        return f"{vertical}{horizontal}-resize"
    if horizontal:
        return "ew-resize"
    return "ns-resize"
