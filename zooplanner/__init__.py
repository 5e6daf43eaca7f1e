"""Zoo Planner — grid layout engine for zoo buildings, decorations and enclosures."""
