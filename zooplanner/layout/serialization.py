"""Layout serialization — JSON conversion for the web API."""

from __future__ import annotations

from .controller import RenderUpdate
from .models import Enclosure, PlacedItem, Rect
from .store import PlacementStore
from .validation import EnclosureReport, LayoutSummary


def rect_to_dict(r: Rect) -> dict:
    return {"x": r.x, "y": r.y, "width": r.w, "height": r.h}


def entity_to_dict(e: PlacedItem | Enclosure) -> dict:
    d = {
        "instance_id": e.instance_id,
        "kind": e.kind,
        **rect_to_dict(e.rect),
    }
    if isinstance(e, Enclosure):
        d["occupant_id"] = e.occupant_id
    else:
        d["type_id"] = e.catalog_type_id
    return d


def store_to_dict(store: PlacementStore) -> dict:
    """Serialize every entity, grouped by collection, in insertion order."""
    return {
        "buildings": [entity_to_dict(b) for b in store.buildings],
        "decorations": [entity_to_dict(d) for d in store.decorations],
        "enclosures": [entity_to_dict(e) for e in store.enclosures],
    }


def update_to_dict(u: RenderUpdate) -> dict:
    return {
        "action": u.action,
        "kind": u.kind,
        "instance_id": u.instance_id,
        "rect": rect_to_dict(u.rect) if u.rect else None,
        "status": u.status,
        "type_id": u.type_id,
    }


def report_to_dict(r: EnclosureReport) -> dict:
    return {
        "instance_id": r.instance_id,
        "occupant_id": r.occupant_id,
        **rect_to_dict(r.rect),
        "area": r.area,
        "perimeter": r.perimeter,
        "min_area": r.min_area,
        "min_perimeter": r.min_perimeter,
        "area_too_small": r.area_too_small,
        "perimeter_too_small": r.perimeter_too_small,
        "fits": r.fits,
        "overlaps_others": r.overlaps_others,
        "status": r.status.value,
    }


def summary_to_dict(s: LayoutSummary) -> dict:
    return {
        "enclosures": [report_to_dict(r) for r in s.reports],
        "status_counts": s.status_counts,
        "occupied_cells": s.occupied_cells,
        "free_cells": s.free_cells,
        "all_ok": s.all_ok,
    }
