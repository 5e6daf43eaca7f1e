"""Shared grid constants for the zoo planner.

These values describe the planning grid and the pointer thresholds used to
interpret gestures.  The **store** (bounds checks), the **controller**
(pixel → grid translation, click-vs-drag test) and the **codec** (base-36
field limits) all derive their parameters from this single source of truth.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class GridRules:
    """Geometry and interaction rules for one planning grid.

    Grid distances are in grid units, pointer distances in pixels.
    """

    grid_size: int = 30
    """Number of cells along each side of the square grid."""

    cell_size_px: float = 20.0
    """Rendered size of one cell, used to translate pointer positions."""

    edge_threshold: float = 0.3
    """How close (grid units) the pointer must be to an enclosure side
    for a press to start a resize instead of a move."""

    click_threshold_px: float = 5.0
    """Pointer travel below which a gesture counts as a click."""

    move_margin_px: float = 50.0
    """Margin around the grid outside which move updates are ignored."""

    unlimited_building_id: str = "restroom"
    """The one building type that may be placed any number of times."""

    # ── Derived helpers ────────────────────────────────────────────

    @property
    def grid_size_px(self) -> float:
        """Rendered width (and height) of the whole grid."""
        return self.grid_size * self.cell_size_px

    @property
    def grid_area(self) -> int:
        return self.grid_size * self.grid_size


# Module-level singleton — importable everywhere.
GRID_RULES = GridRules()

# Share links store a catalog position in one base-36 character.
MAX_CATALOG_ENTRIES = 36
