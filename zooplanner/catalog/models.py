"""Catalog dataclasses — typed representations of catalog/*.json entries."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class CatalogEntry:
    """A placeable building or decoration type with a fixed footprint."""
    type_id: str
    name: str
    width: int                          # grid units
    height: int                         # grid units
    emoji: str = ""
    color: str = ""


@dataclass(frozen=True)
class AnimalRequirement:
    """Minimum enclosure size for one occupant type."""
    occupant_id: str
    name: str
    min_area: int
    min_perimeter: int
    emoji: str = ""


@dataclass
class ValidationError:
    type_id: str
    field: str
    message: str

    def __str__(self) -> str:
        return f"[{self.type_id}] {self.field}: {self.message}"


@dataclass
class CatalogResult:
    """Result of loading the catalog — ordered entries + any validation errors.

    List order is significant: the state codec stores positions in these
    lists, so they must never be re-sorted after loading.
    """
    buildings: list[CatalogEntry]
    decorations: list[CatalogEntry]
    animals: list[AnimalRequirement]
    errors: list[ValidationError]

    @property
    def ok(self) -> bool:
        return len(self.errors) == 0

    def building(self, type_id: str) -> CatalogEntry | None:
        return next((b for b in self.buildings if b.type_id == type_id), None)

    def decoration(self, type_id: str) -> CatalogEntry | None:
        return next((d for d in self.decorations if d.type_id == type_id), None)

    def animal(self, occupant_id: str) -> AnimalRequirement | None:
        return next((a for a in self.animals if a.occupant_id == occupant_id), None)

    def entries(self, kind: str) -> list[CatalogEntry]:
        """Building or decoration list by item kind."""
        if kind == "building":
            return self.buildings
        if kind == "decoration":
            return self.decorations
        raise ValueError(f"Unknown item kind '{kind}'")
