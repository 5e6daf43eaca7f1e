"""Layout — placement of buildings, decorations and enclosures on the grid.

Submodules:
  models         Entity dataclasses, Rect and PlacementError.
  geometry       Overlap / bounds / clamp helpers and shapely coverage.
  store          PlacementStore — the authoritative entity collections.
  validation     Enclosure status (ok / warning / invalid) and summaries.
  controller     Pointer-driven draw / move / resize state machine.
  codec          Compact base-36 share-link encoding.
  serialization  JSON dicts for the web API.
"""

from .models import (
    Rect, PlacedItem, Enclosure, PlacementError, PlacementErrorKind,
    BUILDING, DECORATION, ENCLOSURE, ITEM_KINDS,
)
from .geometry import overlaps, in_bounds, clamp, span_rect, rect_box, covered_area
from .store import PlacementStore
from .validation import EnclosureStatus, EnclosureReport, LayoutSummary, ValidationEngine
from .controller import (
    InteractionController, Pointer, RenderUpdate, Drawing, Moving, Resizing,
)
from .codec import (
    encode_state, decode_state, parse_state, build_store,
    EncodeError, DecodeError, DecodedState, ItemRecord, EnclosureRecord,
)

__all__ = [
    # Models
    "Rect", "PlacedItem", "Enclosure", "PlacementError", "PlacementErrorKind",
    "BUILDING", "DECORATION", "ENCLOSURE", "ITEM_KINDS",
    # Geometry
    "overlaps", "in_bounds", "clamp", "span_rect", "rect_box", "covered_area",
    # Store / validation / controller
    "PlacementStore",
    "EnclosureStatus", "EnclosureReport", "LayoutSummary", "ValidationEngine",
    "InteractionController", "Pointer", "RenderUpdate", "Drawing", "Moving", "Resizing",
    # Codec
    "encode_state", "decode_state", "parse_state", "build_store",
    "EncodeError", "DecodeError", "DecodedState", "ItemRecord", "EnclosureRecord",
]
