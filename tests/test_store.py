"""Tests for the placement store.

Validates:
  - Inserted entities respect bounds and never overlap (cross-checked
    with shapely)
  - Only one instance of each building type, except the restroom
  - Failed inserts leave the store unchanged
  - Move commit reverts invalid positions, resize rejects overlaps
  - Bulk removal by type and id assignment
"""

from __future__ import annotations

import itertools
import unittest

from shapely.geometry import box as shapely_box

from zooplanner.config import GridRules
from zooplanner.layout.models import (
    BUILDING, DECORATION, PlacementError, PlacementErrorKind, Rect,
)
from zooplanner.layout.store import PlacementStore
from tests.zoo_fixture import make_zoo_catalog


def _snapshot(store: PlacementStore):
    return [(e.instance_id, e.kind, e.rect) for e in store.entities()]


class TestInsertItem(unittest.TestCase):

    def setUp(self):
        self.catalog = make_zoo_catalog()
        self.store = PlacementStore()
        self.entrance = self.catalog.building("entrance")
        self.restroom = self.catalog.building("restroom")

    def test_insert_building(self):
        item = self.store.insert_item(BUILDING, self.entrance, 5, 5)
        self.assertEqual(item.rect, Rect(5, 5, 3, 2))
        self.assertEqual(item.catalog_type_id, "entrance")
        self.assertEqual(self.store.buildings, [item])
        self.assertIs(self.store.get(item.instance_id), item)

    def test_second_unique_building_rejected(self):
        """A second entrance raises DUPLICATE_UNIQUE_TYPE and changes nothing."""
        self.store.insert_item(BUILDING, self.entrance, 0, 0)
        before = _snapshot(self.store)
        with self.assertRaises(PlacementError) as ctx:
            self.store.insert_item(BUILDING, self.entrance, 10, 10)
        self.assertEqual(ctx.exception.kind, PlacementErrorKind.DUPLICATE_UNIQUE_TYPE)
        self.assertIn("entrance", str(ctx.exception))
        self.assertEqual(_snapshot(self.store), before)

    def test_restroom_unlimited(self):
        for i in range(4):
            self.store.insert_item(BUILDING, self.restroom, i * 2, 0)
        self.assertEqual(self.store.count_of_type(BUILDING, "restroom"), 4)

    def test_decorations_unlimited(self):
        tree = self.catalog.decoration("tree")
        for i in range(5):
            self.store.insert_item(DECORATION, tree, i, 0)
        self.assertEqual(len(self.store.decorations), 5)
        self.assertFalse(self.store.is_unique_kind(DECORATION, "tree"))

    def test_out_of_bounds(self):
        with self.assertRaises(PlacementError) as ctx:
            self.store.insert_item(BUILDING, self.entrance, 28, 0)
        self.assertEqual(ctx.exception.kind, PlacementErrorKind.OUT_OF_BOUNDS)
        self.assertTrue(self.store.is_empty())

    def test_overlap(self):
        self.store.insert_item(BUILDING, self.restroom, 5, 5)
        with self.assertRaises(PlacementError) as ctx:
            self.store.insert_item(BUILDING, self.restroom, 6, 6)
        self.assertEqual(ctx.exception.kind, PlacementErrorKind.OVERLAP)
        self.assertEqual(len(self.store.buildings), 1)

    def test_adjacent_allowed(self):
        self.store.insert_item(BUILDING, self.restroom, 5, 5)
        self.store.insert_item(BUILDING, self.restroom, 7, 5)
        self.store.insert_item(BUILDING, self.restroom, 5, 7)
        self.assertEqual(len(self.store.buildings), 3)

    def test_unknown_kind(self):
        with self.assertRaises(ValueError):
            self.store.insert_item("statue", self.restroom, 0, 0)


class TestInsertEnclosure(unittest.TestCase):

    def setUp(self):
        self.catalog = make_zoo_catalog()
        self.store = PlacementStore()

    def test_insert(self):
        enc = self.store.insert_enclosure("penguin", 0, 0, 4, 3)
        self.assertEqual(enc.rect, Rect(0, 0, 4, 3))
        self.assertIs(self.store.enclosure_for("penguin"), enc)
        self.assertEqual(self.store.used_occupants(), {"penguin"})

    def test_one_per_occupant(self):
        self.store.insert_enclosure("penguin", 0, 0, 4, 3)
        with self.assertRaises(PlacementError) as ctx:
            self.store.insert_enclosure("penguin", 10, 10, 2, 2)
        self.assertEqual(ctx.exception.kind, PlacementErrorKind.DUPLICATE_UNIQUE_TYPE)
        self.assertEqual(len(self.store.enclosures), 1)

    def test_invalid_dimension(self):
        with self.assertRaises(PlacementError) as ctx:
            self.store.insert_enclosure("lion", 0, 0, 0, 3)
        self.assertEqual(ctx.exception.kind, PlacementErrorKind.INVALID_DIMENSION)

    def test_overlaps_building(self):
        self.store.insert_item(BUILDING, self.catalog.building("giftshop"), 2, 2)
        with self.assertRaises(PlacementError) as ctx:
            self.store.insert_enclosure("lion", 0, 0, 4, 4)
        self.assertEqual(ctx.exception.kind, PlacementErrorKind.OVERLAP)
        self.assertEqual(self.store.enclosures, [])


class TestStoreInvariants(unittest.TestCase):
    """Fill the grid with attempted placements and check nothing overlaps."""

    def test_no_overlap_after_many_inserts(self):
        catalog = make_zoo_catalog()
        store = PlacementStore(GridRules(grid_size=12))
        entries = [(BUILDING, b) for b in catalog.buildings] + \
                  [(DECORATION, d) for d in catalog.decorations]
        for (kind, entry), x, y in zip(itertools.cycle(entries),
                                       itertools.cycle(range(0, 12, 2)),
                                       range(0, 60)):
            try:
                store.insert_item(kind, entry, x, y % 12)
            except PlacementError:
                pass

        rects = [e.rect for e in store.entities()]
        self.assertGreater(len(rects), 3)
        grid = shapely_box(0, 0, 12, 12)
        for r in rects:
            self.assertTrue(grid.contains(shapely_box(r.x, r.y, r.right, r.bottom)))
        for a, b in itertools.combinations(rects, 2):
            shared = shapely_box(a.x, a.y, a.right, a.bottom).intersection(
                shapely_box(b.x, b.y, b.right, b.bottom)).area
            self.assertEqual(shared, 0, f"{a} overlaps {b}")


class TestMoveAndResize(unittest.TestCase):

    def setUp(self):
        self.catalog = make_zoo_catalog()
        self.store = PlacementStore()
        self.shop = self.store.insert_item(BUILDING, self.catalog.building("giftshop"), 10, 10)
        self.enc = self.store.insert_enclosure("penguin", 0, 0, 4, 3)

    def test_commit_valid_move(self):
        self.store.move_entity(self.shop.instance_id, 20, 20)
        self.assertTrue(self.store.commit_move(self.shop.instance_id, (10, 10)))
        self.assertEqual(self.shop.rect, Rect(20, 20, 3, 3))

    def test_commit_reverts_overlap(self):
        """A move ending on another entity goes back to its origin."""
        self.store.move_entity(self.shop.instance_id, 2, 1)
        self.assertFalse(self.store.commit_move(self.shop.instance_id, (10, 10)))
        self.assertEqual(self.shop.rect, Rect(10, 10, 3, 3))

    def test_commit_reverts_out_of_bounds(self):
        self.store.move_entity(self.shop.instance_id, 29, 0)
        self.assertFalse(self.store.commit_move(self.shop.instance_id, (10, 10)))
        self.assertEqual((self.shop.grid_x, self.shop.grid_y), (10, 10))

    def test_resize_accepted(self):
        self.assertTrue(self.store.resize_enclosure(self.enc.instance_id, 0, 0, 6, 5))
        self.assertEqual(self.enc.rect, Rect(0, 0, 6, 5))

    def test_resize_onto_other_entity_rejected(self):
        """The enclosure keeps its exact geometry when the resize would overlap."""
        self.assertFalse(self.store.resize_enclosure(self.enc.instance_id, 0, 0, 12, 12))
        self.assertEqual(self.enc.rect, Rect(0, 0, 4, 3))

    def test_resize_non_positive_rejected(self):
        self.assertFalse(self.store.resize_enclosure(self.enc.instance_id, 0, 0, 0, 3))
        self.assertEqual(self.enc.rect, Rect(0, 0, 4, 3))

    def test_resize_ignores_items(self):
        self.assertFalse(self.store.resize_enclosure(self.shop.instance_id, 10, 10, 5, 5))

    def test_restore_rect(self):
        self.store.resize_enclosure(self.enc.instance_id, 0, 0, 6, 5)
        self.store.restore_rect(self.enc.instance_id, Rect(0, 0, 4, 3))
        self.assertEqual(self.enc.rect, Rect(0, 0, 4, 3))


class TestRemoval(unittest.TestCase):

    def setUp(self):
        self.catalog = make_zoo_catalog()
        self.store = PlacementStore()

    def test_remove_all_of_type(self):
        tree = self.catalog.decoration("tree")
        bench = self.catalog.decoration("bench")
        for i in range(3):
            self.store.insert_item(DECORATION, tree, i, 0)
        self.store.insert_item(DECORATION, bench, 0, 5)
        removed = self.store.remove_all_of_type(DECORATION, "tree")
        self.assertEqual(len(removed), 3)
        self.assertEqual([d.catalog_type_id for d in self.store.decorations], ["bench"])

    def test_remove_by_id(self):
        enc = self.store.insert_enclosure("lion", 0, 0, 5, 5)
        item = self.store.insert_item(BUILDING, self.catalog.building("entrance"), 10, 0)
        self.assertIs(self.store.remove(enc.instance_id), enc)
        self.assertIs(self.store.remove(item.instance_id), item)
        self.assertIsNone(self.store.remove(999))
        self.assertTrue(self.store.is_empty())

    def test_remove_enclosure_for(self):
        self.store.insert_enclosure("lion", 0, 0, 5, 5)
        self.assertIsNotNone(self.store.remove_enclosure_for("lion"))
        self.assertIsNone(self.store.remove_enclosure_for("lion"))

    def test_ids_shared_and_reset_by_clear(self):
        a = self.store.insert_item(BUILDING, self.catalog.building("entrance"), 0, 0)
        b = self.store.insert_enclosure("lion", 10, 10, 5, 5)
        c = self.store.insert_item(DECORATION, self.catalog.decoration("tree"), 20, 20)
        self.assertEqual([a.instance_id, b.instance_id, c.instance_id], [1, 2, 3])
        self.store.clear()
        d = self.store.insert_enclosure("lion", 0, 0, 5, 5)
        self.assertEqual(d.instance_id, 1)

    def test_entities_order(self):
        """Buildings come first, then decorations, then enclosures."""
        self.store.insert_enclosure("lion", 10, 10, 5, 5)
        self.store.insert_item(DECORATION, self.catalog.decoration("tree"), 20, 20)
        self.store.insert_item(BUILDING, self.catalog.building("entrance"), 0, 0)
        self.assertEqual([e.kind for e in self.store.entities()],
                         ["building", "decoration", "enclosure"])


if __name__ == "__main__":
    unittest.main()
