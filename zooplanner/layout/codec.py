"""Layout serialization — compact base-36 text for share links.

Format::

    <buildings>.<decorations>.<enclosures>

Buildings and decorations are 3-character records ``[index][x][y]``;
enclosures are 5-character records ``[index][x][y][w][h]``.  Every
character is one base-36 digit (``0-9a-z``), so each field must be below
36.  ``index`` is the entry's position in its catalog list.  Trailing
dots are stripped on encode, and missing sections decode as empty.
A trailing partial record is ignored rather than treated as an error.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from zooplanner.catalog.models import CatalogResult
from zooplanner.config import GRID_RULES, GridRules

from .geometry import in_bounds
from .models import BUILDING, DECORATION, PlacementError, Rect
from .store import PlacementStore


log = logging.getLogger(__name__)

ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"
BASE = len(ALPHABET)
SEPARATOR = "."
ITEM_STRIDE = 3
ENCLOSURE_STRIDE = 5


class EncodeError(ValueError):
    """A value cannot be written in the single-digit base-36 format."""


class DecodeError(ValueError):
    """The encoded text is malformed; treat it as "no saved state"."""


@dataclass(frozen=True)
class ItemRecord:
    catalog_index: int
    x: int
    y: int


@dataclass(frozen=True)
class EnclosureRecord:
    occupant_index: int
    x: int
    y: int
    w: int
    h: int


@dataclass
class DecodedState:
    buildings: list[ItemRecord] = field(default_factory=list)
    decorations: list[ItemRecord] = field(default_factory=list)
    enclosures: list[EnclosureRecord] = field(default_factory=list)


# ── Digits ─────────────────────────────────────────────────────────


def _digit(value: int, what: str) -> str:
    if not 0 <= value < BASE:
        raise EncodeError(f"{what}={value} is outside 0..{BASE - 1}")
    return ALPHABET[value]


def _value(ch: str) -> int:
    idx = ALPHABET.find(ch.lower())
    if idx < 0:
        raise DecodeError(f"Invalid base-36 character {ch!r}")
    return idx


# ── Encode ─────────────────────────────────────────────────────────


def records_from_store(store: PlacementStore, catalog: CatalogResult) -> DecodedState:
    """Translate live entities into index-based records, in store order."""

    def _item_records(kind: str) -> list[ItemRecord]:
        order = [e.type_id for e in catalog.entries(kind)]
        records = []
        for item in store.items(kind):
            try:
                idx = order.index(item.catalog_type_id)
            except ValueError:
                raise EncodeError(
                    f"{kind} type '{item.catalog_type_id}' is not in the catalog"
                ) from None
            records.append(ItemRecord(idx, item.grid_x, item.grid_y))
        return records

    animal_order = [a.occupant_id for a in catalog.animals]
    enclosures = []
    for enc in store.enclosures:
        try:
            idx = animal_order.index(enc.occupant_id)
        except ValueError:
            raise EncodeError(
                f"occupant '{enc.occupant_id}' is not in the catalog") from None
        enclosures.append(EnclosureRecord(idx, enc.grid_x, enc.grid_y, enc.width, enc.height))

    return DecodedState(
        buildings=_item_records(BUILDING),
        decorations=_item_records(DECORATION),
        enclosures=enclosures,
    )


def encode_records(state: DecodedState) -> str:
    """Serialize records to the compact dotted string."""
    sections = [
        "".join(
            _digit(r.catalog_index, "index") + _digit(r.x, "x") + _digit(r.y, "y")
            for r in state.buildings
        ),
        "".join(
            _digit(r.catalog_index, "index") + _digit(r.x, "x") + _digit(r.y, "y")
            for r in state.decorations
        ),
        "".join(
            _digit(r.occupant_index, "index") + _digit(r.x, "x") + _digit(r.y, "y")
            + _digit(r.w, "w") + _digit(r.h, "h")
            for r in state.enclosures
        ),
    ]
    # Link unfurlers drop trailing punctuation, so never end on a dot.
    return SEPARATOR.join(sections).rstrip(SEPARATOR)


def encode_state(store: PlacementStore, catalog: CatalogResult) -> str:
    return encode_records(records_from_store(store, catalog))


# ── Decode ─────────────────────────────────────────────────────────


def _chunks(section: str, stride: int) -> list[str]:
    """Full-width records only; a short tail is dropped."""
    usable = len(section) - len(section) % stride
    return [section[i:i + stride] for i in range(0, usable, stride)]


def decode_state(text: str) -> DecodedState:
    """Parse the dotted string into records.

    The text is split on at most two dots, so any further dot stays in
    the enclosure section.  A dot that lands inside a full record is not
    a base-36 digit and fails the whole string; one in the trailing
    partial record is dropped along with it.

    Raises
    ------
    DecodeError
        On any malformed content.  No partial result is returned.
    """
    if not isinstance(text, str):
        raise DecodeError(f"Expected str, got {type(text).__name__}")

    parts = text.split(SEPARATOR, 2)
    parts += [""] * (3 - len(parts))
    building_str, decoration_str, enclosure_str = parts

    state = DecodedState()
    for chunk in _chunks(building_str, ITEM_STRIDE):
        state.buildings.append(ItemRecord(*(_value(c) for c in chunk)))
    for chunk in _chunks(decoration_str, ITEM_STRIDE):
        state.decorations.append(ItemRecord(*(_value(c) for c in chunk)))
    for chunk in _chunks(enclosure_str, ENCLOSURE_STRIDE):
        state.enclosures.append(EnclosureRecord(*(_value(c) for c in chunk)))
    return state


def build_store(
    state: DecodedState,
    catalog: CatalogResult,
    rules: GridRules = GRID_RULES,
) -> PlacementStore:
    """Reconstruct a fresh store from decoded records.

    Instance ids are newly assigned.  Records pointing past the end of a
    catalog list, or that would break a placement invariant, are skipped
    with a warning so the result is always a valid layout.
    """
    store = PlacementStore(rules)

    for kind, records in ((BUILDING, state.buildings), (DECORATION, state.decorations)):
        entries = catalog.entries(kind)
        for rec in records:
            if rec.catalog_index >= len(entries):
                log.warning("Skipping %s record with unknown index %d",
                            kind, rec.catalog_index)
                continue
            try:
                store.insert_item(kind, entries[rec.catalog_index], rec.x, rec.y)
            except PlacementError as exc:
                log.warning("Skipping %s record %r: %s", kind, rec, exc.reason)

    for rec in state.enclosures:
        if rec.occupant_index >= len(catalog.animals):
            log.warning("Skipping enclosure record with unknown index %d",
                        rec.occupant_index)
            continue
        if not in_bounds(Rect(rec.x, rec.y, rec.w, rec.h), rules.grid_size):
            log.warning("Skipping enclosure record %r: off the grid", rec)
            continue
        animal = catalog.animals[rec.occupant_index]
        try:
            store.insert_enclosure(animal.occupant_id, rec.x, rec.y, rec.w, rec.h)
        except PlacementError as exc:
            log.warning("Skipping enclosure record %r: %s", rec, exc.reason)

    return store


def parse_state(
    text: str,
    catalog: CatalogResult,
    rules: GridRules = GRID_RULES,
) -> PlacementStore:
    """decode_state + build_store.  Raises DecodeError on malformed text."""
    return build_store(decode_state(text), catalog, rules)
