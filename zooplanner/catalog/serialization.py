"""Catalog serialization — convert dataclasses to JSON-safe dicts."""

from __future__ import annotations

from .models import AnimalRequirement, CatalogEntry, CatalogResult


def catalog_to_dict(result: CatalogResult) -> dict:
    """Serialize a CatalogResult to a JSON-safe dict for the web API.

    Each list keeps its load order; ``index`` is the position the state
    codec writes into share links.
    """
    return {
        "ok": result.ok,
        "buildings": [
            entry_to_dict(e, i) for i, e in enumerate(result.buildings)
        ],
        "decorations": [
            entry_to_dict(e, i) for i, e in enumerate(result.decorations)
        ],
        "animals": [
            animal_to_dict(a, i) for i, a in enumerate(result.animals)
        ],
        "errors": [{"type_id": e.type_id, "field": e.field, "message": e.message}
                   for e in result.errors],
    }


def entry_to_dict(e: CatalogEntry, index: int) -> dict:
    return {
        "index": index,
        "type_id": e.type_id,
        "name": e.name,
        "width": e.width,
        "height": e.height,
        "emoji": e.emoji,
        "color": e.color,
    }


def animal_to_dict(a: AnimalRequirement, index: int) -> dict:
    return {
        "index": index,
        "occupant_id": a.occupant_id,
        "name": a.name,
        "emoji": a.emoji,
        "min_area": a.min_area,
        "min_perimeter": a.min_perimeter,
    }
