"""Tests for the grid geometry helpers."""

from __future__ import annotations

import unittest

from zooplanner.layout.geometry import (
    clamp, contains_cell, covered_area, in_bounds, overlaps, rect_box, span_rect,
)
from zooplanner.layout.models import Rect


class TestOverlaps(unittest.TestCase):

    def test_shared_interior(self):
        self.assertTrue(overlaps(Rect(0, 0, 4, 3), Rect(3, 2, 2, 2)))

    def test_symmetric(self):
        a, b = Rect(2, 2, 5, 1), Rect(4, 0, 1, 5)
        self.assertEqual(overlaps(a, b), overlaps(b, a))
        self.assertTrue(overlaps(a, b))

    def test_touching_edge_is_not_overlap(self):
        """Rectangles sharing only a side are allowed next to each other."""
        self.assertFalse(overlaps(Rect(0, 0, 4, 3), Rect(4, 0, 2, 3)))
        self.assertFalse(overlaps(Rect(0, 0, 4, 3), Rect(0, 3, 4, 3)))

    def test_touching_corner_is_not_overlap(self):
        self.assertFalse(overlaps(Rect(0, 0, 2, 2), Rect(2, 2, 2, 2)))

    def test_containment(self):
        self.assertTrue(overlaps(Rect(0, 0, 10, 10), Rect(3, 3, 1, 1)))

    def test_matches_shapely(self):
        """Cross-check against shapely's intersection area."""
        rects = [Rect(x, y, w, h)
                 for x, y, w, h in [(0, 0, 3, 3), (2, 2, 3, 1), (3, 0, 2, 2),
                                    (5, 5, 1, 1), (1, 4, 4, 2), (4, 1, 1, 4)]]
        for a in rects:
            for b in rects:
                if a is b:
                    continue
                shared = rect_box(a).intersection(rect_box(b)).area > 0
                self.assertEqual(overlaps(a, b), shared, f"{a} vs {b}")


class TestBoundsAndClamp(unittest.TestCase):

    def test_in_bounds(self):
        self.assertTrue(in_bounds(Rect(0, 0, 30, 30), 30))
        self.assertTrue(in_bounds(Rect(27, 28, 3, 2), 30))

    def test_out_of_bounds(self):
        self.assertFalse(in_bounds(Rect(28, 0, 3, 1), 30))
        self.assertFalse(in_bounds(Rect(0, 29, 1, 2), 30))
        self.assertFalse(in_bounds(Rect(-1, 0, 1, 1), 30))

    def test_clamp(self):
        self.assertEqual(clamp(-3, 0, 29), 0)
        self.assertEqual(clamp(31, 0, 29), 29)
        self.assertEqual(clamp(12, 0, 29), 12)
        self.assertEqual(clamp(2.5, 0.0, 30.0), 2.5)


class TestCellHelpers(unittest.TestCase):

    def test_contains_cell(self):
        r = Rect(2, 3, 2, 2)
        self.assertTrue(contains_cell(r, 2, 3))
        self.assertTrue(contains_cell(r, 3, 4))
        self.assertFalse(contains_cell(r, 4, 3))
        self.assertFalse(contains_cell(r, 2, 5))

    def test_span_rect_inclusive(self):
        """Both corner cells are part of the rectangle, in any drag direction."""
        self.assertEqual(span_rect(0, 0, 3, 2), Rect(0, 0, 4, 3))
        self.assertEqual(span_rect(3, 2, 0, 0), Rect(0, 0, 4, 3))
        self.assertEqual(span_rect(5, 5, 5, 5), Rect(5, 5, 1, 1))


class TestCoveredArea(unittest.TestCase):

    def test_empty(self):
        self.assertEqual(covered_area([], 30), 0)

    def test_disjoint_sum(self):
        self.assertEqual(covered_area([Rect(0, 0, 3, 2), Rect(5, 5, 4, 3)], 30), 18)

    def test_overlap_counted_once(self):
        self.assertEqual(covered_area([Rect(0, 0, 2, 2), Rect(1, 1, 2, 2)], 30), 7)

    def test_clipped_to_grid(self):
        self.assertEqual(covered_area([Rect(28, 28, 4, 4)], 30), 4)


if __name__ == "__main__":
    unittest.main()
