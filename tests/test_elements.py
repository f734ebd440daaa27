from __future__ import annotations

import sys
import unittest
from pathlib import Path

TESTS_DIR = Path(__file__).resolve().parent
sys.path.insert(0, str(TESTS_DIR.parent / "src"))

from wardleymap.elements import MapElements, target_maturity
from wardleymap.model import Component, MapModel, MapModelError, map_from_dict


class ComponentResolverTests(unittest.TestCase):
    def test_evolving_evolved_pair_collapses_to_one_component(self) -> None:
        model = map_from_dict(
            {
                "components": [
                    {"id": "k1", "name": "Kettle", "maturity": 0.4, "visibility": 0.4},
                    {"id": "k2", "name": "Kettle", "maturity": 0.7, "visibility": 0.4, "evolved": True},
                    {"name": "Power", "maturity": 0.8, "visibility": 0.1},
                ]
            }
        )
        elements = MapElements(model)
        merged = elements.get_merged_components()
        self.assertEqual([c.name for c in merged], ["Kettle", "Power"])
        self.assertEqual(merged[0].id, "k1")
        self.assertFalse(merged[0].evolved)

        self.assertEqual([c.id for c in elements.get_evolving_components()], ["k1"])
        self.assertEqual([c.id for c in elements.get_evolved_components()], ["k2"])
        pairs = elements.evolution_pairs()
        self.assertEqual(len(pairs), 1)
        self.assertEqual(target_maturity(pairs[0][1]), 0.7)

    def test_evolve_maturity_derives_counterpart(self) -> None:
        model = map_from_dict(
            {"components": [{"id": "p", "name": "Power", "maturity": 0.7, "visibility": 0.1, "evolveMaturity": 0.9}]}
        )
        elements = MapElements(model)
        self.assertEqual(len(elements.get_merged_components()), 1)
        (target,) = elements.get_evolution_targets()
        self.assertTrue(target.evolved)
        self.assertEqual(target.maturity, 0.9)
        self.assertEqual(target.id, "p")
        self.assertEqual(elements.get_evolving_components()[0].name, "Power")

    def test_standalone_evolved_component_has_no_arrow(self) -> None:
        model = map_from_dict(
            {"components": [{"name": "Cloud", "maturity": 0.9, "visibility": 0.2, "evolved": True}]}
        )
        elements = MapElements(model)
        self.assertEqual(len(elements.get_evolved_components()), 1)
        self.assertEqual(elements.get_evolving_components(), [])
        self.assertEqual(elements.evolution_pairs(), [])

    def test_every_evolving_component_pairs_with_its_own_target(self) -> None:
        model = map_from_dict(
            {
                "components": [
                    {"id": "a", "name": "Kettle", "maturity": 0.3, "visibility": 0.4, "evolveMaturity": 0.6},
                    {"id": "b", "name": "Cup", "maturity": 0.2, "visibility": 0.6},
                    {"id": "c", "name": "Cup", "maturity": 0.8, "visibility": 0.6, "evolved": True},
                    {"id": "d", "name": "Cloud", "maturity": 0.9, "visibility": 0.2, "evolved": True},
                ]
            }
        )
        pairs = MapElements(model).evolution_pairs()
        self.assertEqual([(e.id, t.id) for e, t in pairs], [("a", "a"), ("b", "c")])
        self.assertTrue(all(t.evolved for _e, t in pairs))

    def test_duplicate_plain_entries_keep_first(self) -> None:
        model = map_from_dict(
            {
                "components": [
                    {"id": "a", "name": "Tea", "maturity": 0.1, "visibility": 0.1},
                    {"id": "b", "name": "Tea", "maturity": 0.9, "visibility": 0.9},
                ]
            }
        )
        with self.assertLogs("wardleymap", "DEBUG") as logs:
            merged = MapElements(model).get_merged_components()
        self.assertEqual(len(merged), 1)
        self.assertEqual(merged[0].id, "a")
        self.assertTrue(
            any('duplicate component "Tea" (id=b) dropped' in line for line in logs.output), logs.output
        )

    def test_distances_are_attached_and_lookup_includes_anchors(self) -> None:
        model = map_from_dict(
            {
                "anchors": [{"name": "User", "maturity": 0.5, "visibility": 0.95}],
                "components": [
                    {"name": "Need", "maturity": 0.5, "visibility": 0.8, "evolveMaturity": 0.8},
                    {"name": "Orphan", "maturity": 0.5, "visibility": 0.2},
                ],
                "links": [{"start": "User", "end": "Need"}],
            }
        )
        elements = MapElements(model)
        self.assertEqual(elements.find_component("User").hop_distance, 0)
        self.assertEqual(elements.find_component("Need").hop_distance, 1)
        self.assertIsNone(elements.find_component("Orphan").hop_distance)
        self.assertIsNone(elements.find_component("Missing"))
        self.assertEqual(elements.get_evolution_targets()[0].hop_distance, 1)

    def test_anchor_typed_component_is_an_anchor(self) -> None:
        model = map_from_dict(
            {
                "components": [
                    {"name": "Customer", "type": "anchor", "maturity": 0.5, "visibility": 1},
                    {"name": "Shop", "maturity": 0.5, "visibility": 0.5},
                ],
                "links": [{"start": "Customer", "end": "Shop"}],
            }
        )
        elements = MapElements(model)
        self.assertEqual([a.name for a in elements.get_anchors()], ["Customer"])
        self.assertEqual(elements.find_component("Shop").hop_distance, 1)

    def test_nameless_component_is_rejected(self) -> None:
        model = MapModel(components=(Component(id="x", name="", maturity=0.1, visibility=0.1),))
        with self.assertRaises(MapModelError):
            MapElements(model)


if __name__ == "__main__":
    unittest.main()
