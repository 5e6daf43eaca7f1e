"""Small zoo catalog fixture — deterministic CatalogResult for unit tests.

Index order matters for the share-link codec:

  buildings:    0 entrance 3×2   1 restroom 2×2 (unlimited)   2 giftshop 3×3
  decorations:  0 tree 1×1       1 bench 2×1                  2 fountain 2×2
  animals:      0 penguin (area 12, perimeter 14)
                1 lion    (area 20, perimeter 14)
                2 elephant (area 60, perimeter 32)

A 4×3 enclosure is exactly enough for the penguin and too small for the
lion, which is what the status tests lean on.
"""

from __future__ import annotations

from zooplanner.catalog.models import AnimalRequirement, CatalogEntry, CatalogResult
from zooplanner.layout.controller import Pointer

CELL = 20.0


def make_zoo_catalog() -> CatalogResult:
    """Return the hardcoded test catalog."""
    return CatalogResult(
        buildings=[
            CatalogEntry("entrance", "Entrance", 3, 2),
            CatalogEntry("restroom", "Restroom", 2, 2),
            CatalogEntry("giftshop", "Gift Shop", 3, 3),
        ],
        decorations=[
            CatalogEntry("tree", "Tree", 1, 1),
            CatalogEntry("bench", "Bench", 2, 1),
            CatalogEntry("fountain", "Fountain", 2, 2),
        ],
        animals=[
            AnimalRequirement("penguin", "Penguin", min_area=12, min_perimeter=14),
            AnimalRequirement("lion", "Lion", min_area=20, min_perimeter=14),
            AnimalRequirement("elephant", "Elephant", min_area=60, min_perimeter=32),
        ],
        errors=[],
    )


def cell(cx: int, cy: int) -> Pointer:
    """Pointer at the centre of grid cell (cx, cy)."""
    return Pointer(cx * CELL + CELL / 2, cy * CELL + CELL / 2)


def make_crowded_catalog(extra: int = 40) -> CatalogResult:
    """The test catalog with *extra* more 1×1 decorations and animals.

    Entries past index 35 cannot be written into a share link.
    """
    catalog = make_zoo_catalog()
    catalog.decorations += [CatalogEntry(f"shrub{i}", f"Shrub {i}", 1, 1) for i in range(extra)]
    catalog.animals += [AnimalRequirement(f"beetle{i}", f"Beetle {i}", 1, 4) for i in range(extra)]
    return catalog
