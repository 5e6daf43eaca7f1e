"""Enclosure validation — placement validity and occupant size requirements.

Reports are computed on demand from the current store and catalog, so
they always reflect the latest geometry and requirement data; nothing is
cached between mutations.
"""

from __future__ import annotations

import enum
from collections import Counter
from dataclasses import dataclass, field

from zooplanner.catalog.models import AnimalRequirement, CatalogResult

from .geometry import covered_area, in_bounds
from .models import Enclosure, PlacedItem, Rect
from .store import PlacementStore


class EnclosureStatus(enum.Enum):
    """Display status, in priority order: INVALID beats WARNING beats OK."""
    OK = "ok"
    WARNING = "warning"
    INVALID = "invalid"


@dataclass
class EnclosureReport:
    occupant_id: str
    rect: Rect
    fits: bool
    overlaps_others: bool
    min_area: int | None            # None when the occupant is not in the catalog
    min_perimeter: int | None
    instance_id: int | None = None  # None for a drawing preview

    @property
    def area(self) -> int:
        return self.rect.area

    @property
    def perimeter(self) -> int:
        return self.rect.perimeter

    @property
    def placement_valid(self) -> bool:
        return self.fits and not self.overlaps_others

    @property
    def area_too_small(self) -> bool:
        return self.min_area is None or self.area < self.min_area

    @property
    def perimeter_too_small(self) -> bool:
        return self.min_perimeter is None or self.perimeter < self.min_perimeter

    @property
    def meets_requirement(self) -> bool:
        return not (self.area_too_small or self.perimeter_too_small)

    @property
    def status(self) -> EnclosureStatus:
        if not self.placement_valid:
            return EnclosureStatus.INVALID
        if not self.meets_requirement:
            return EnclosureStatus.WARNING
        return EnclosureStatus.OK


@dataclass
class LayoutSummary:
    """Per-enclosure reports plus grid-wide occupancy numbers."""
    reports: list[EnclosureReport]
    occupied_cells: int
    free_cells: int
    status_counts: dict[str, int] = field(default_factory=dict)

    @property
    def all_ok(self) -> bool:
        return all(r.status is EnclosureStatus.OK for r in self.reports)


class ValidationEngine:
    """Computes enclosure reports against a store and a catalog."""

    def __init__(self, store: PlacementStore, catalog: CatalogResult) -> None:
        self.store = store
        self.catalog = catalog

    def requirement(self, occupant_id: str) -> AnimalRequirement | None:
        return self.catalog.animal(occupant_id)

    def check_rect(self, occupant_id: str, rect: Rect,
                   exclude_id: int | None = None) -> EnclosureReport:
        """Evaluate a candidate rectangle for *occupant_id*."""
        req = self.requirement(occupant_id)
        return EnclosureReport(
            occupant_id=occupant_id,
            rect=rect,
            fits=in_bounds(rect, self.store.rules.grid_size),
            overlaps_others=self.store.query_overlap(rect, exclude_id),
            min_area=req.min_area if req else None,
            min_perimeter=req.min_perimeter if req else None,
            instance_id=exclude_id,
        )

    def check_enclosure(self, enc: Enclosure) -> EnclosureReport:
        return self.check_rect(enc.occupant_id, enc.rect, enc.instance_id)

    def status(self, enc: Enclosure) -> EnclosureStatus:
        return self.check_enclosure(enc).status

    def item_valid(self, item: PlacedItem) -> bool:
        """Buildings/decorations have no size requirement, only placement."""
        return self.item_valid_rect(item.rect, item.instance_id)

    def item_valid_rect(self, rect: Rect, exclude_id: int | None = None) -> bool:
        return (in_bounds(rect, self.store.rules.grid_size)
                and not self.store.query_overlap(rect, exclude_id))

    def summary(self) -> LayoutSummary:
        reports = [self.check_enclosure(e) for e in self.store.enclosures]
        rules = self.store.rules
        occupied = covered_area([e.rect for e in self.store.entities()], rules.grid_size)
        counts = Counter(r.status.value for r in reports)
        return LayoutSummary(
            reports=reports,
            occupied_cells=occupied,
            free_cells=rules.grid_area - occupied,
            status_counts={s.value: counts.get(s.value, 0) for s in EnclosureStatus},
        )
