from __future__ import annotations

import unittest
from datetime import datetime, timedelta

from lifereplay.layout import (
    AREA,
    DAY,
    EMOTION,
    HIERARCHY,
    LayoutSettings,
    build_layout,
    effective_parents,
)
from lifereplay.models import MindEntry, Point

BASE = datetime(2026, 2, 8, 12, 0, 0)


def _entry(
    entry_id: str,
    minutes: int = 0,
    parent_id: str | None = None,
    emotion: str = "calm",
    area: str = "personal",
) -> MindEntry:
    return MindEntry(
        id=entry_id,
        timestamp=BASE + timedelta(minutes=minutes),
        raw_transcript="",
        title=f"Entry {entry_id}",
        summary="",
        primary_emotion=emotion,
        emotion_intensity=3,
        growth_area=area,
        entry_type="thought",
        parent_id=parent_id,
    )


class HierarchyLayoutTests(unittest.TestCase):
    def test_empty_input_gives_empty_result(self) -> None:
        for mode in (HIERARCHY, DAY, EMOTION, AREA):
            result = build_layout([], mode)
            self.assertEqual(result.nodes, ())
            self.assertEqual(result.edges, ())
            self.assertEqual(result.positions, {})
            self.assertEqual(result.clusters, ())

    def test_unknown_mode_is_rejected(self) -> None:
        with self.assertRaises(ValueError):
            build_layout([_entry("a")], "spiral")

    def test_parent_centered_over_first_and_last_child(self) -> None:
        entries = [_entry("root", 0), _entry("c1", 1, "root"), _entry("c2", 2, "root")]
        result = build_layout(entries, HIERARCHY)

        self.assertEqual(result.positions["c1"], Point(140.0, 160.0))
        self.assertEqual(result.positions["c2"], Point(420.0, 160.0))
        self.assertEqual(result.positions["root"], Point(280.0, 0.0))

    def test_children_ordered_by_timestamp_not_input(self) -> None:
        entries = [_entry("c2", 2, "root"), _entry("root", 0), _entry("c1", 1, "root")]
        result = build_layout(entries, HIERARCHY)
        self.assertLess(result.positions["c1"].x, result.positions["c2"].x)

    def test_equal_timestamps_keep_input_order(self) -> None:
        entries = [_entry("root", 0), _entry("b", 5, "root"), _entry("a", 5, "root")]
        result = build_layout(entries, HIERARCHY)
        self.assertLess(result.positions["b"].x, result.positions["a"].x)

    def test_midpoint_uses_outer_children_only(self) -> None:
        entries = [
            _entry("root", 0),
            _entry("a", 1, "root"),
            _entry("a1", 2, "a"),
            _entry("a2", 3, "a"),
            _entry("b", 4, "root"),
            _entry("b1", 5, "b"),
            _entry("b2", 6, "b"),
            _entry("b3", 7, "b"),
            _entry("c", 8, "root"),
        ]
        result = build_layout(entries, HIERARCHY)
        # slots: a [0, 560), b [560, 1400), c [1400, 1680)
        self.assertEqual(result.positions["a"].x, 280.0)
        self.assertEqual(result.positions["b"].x, 980.0)
        self.assertEqual(result.positions["c"].x, 1540.0)
        self.assertEqual(result.positions["root"].x, (280.0 + 1540.0) / 2)

    def test_roots_are_stacked_vertically(self) -> None:
        entries = [
            _entry("first", 0),
            _entry("second", 10),
            _entry("child", 11, "second"),
            _entry("third", 20),
        ]
        result = build_layout(entries, HIERARCHY)

        self.assertEqual(result.positions["first"], Point(140.0, 0.0))
        # leaf height 1: 1 * 160 + 240
        self.assertEqual(result.positions["second"], Point(140.0, 400.0))
        self.assertEqual(result.positions["child"], Point(140.0, 560.0))
        # height 2: 400 + 2 * 160 + 240
        self.assertEqual(result.positions["third"], Point(140.0, 960.0))

    def test_custom_settings_are_honoured(self) -> None:
        settings = LayoutSettings(x_gap=100.0, y_gap=50.0, roots_gap_y=10.0)
        entries = [_entry("root", 0), _entry("kid", 1, "root"), _entry("other", 2)]
        result = build_layout(entries, HIERARCHY, settings)
        self.assertEqual(result.positions["kid"], Point(50.0, 50.0))
        self.assertEqual(result.positions["other"], Point(50.0, 110.0))

    def test_dangling_parent_becomes_root_without_edge(self) -> None:
        entries = [_entry("orphan", 0, parent_id="missing")]
        result = build_layout(entries, HIERARCHY)
        self.assertEqual(result.edges, ())
        self.assertEqual(result.positions["orphan"], Point(140.0, 0.0))

    def test_edge_count_matches_resolvable_parents(self) -> None:
        entries = [
            _entry("r", 0),
            _entry("a", 1, "r"),
            _entry("b", 2, "r"),
            _entry("c", 3, "a"),
            _entry("d", 4, "gone"),
            _entry("e", 5, None),
        ]
        ids = {entry.id for entry in entries}
        expected = sum(1 for entry in entries if entry.parent_id in ids)
        result = build_layout(entries, HIERARCHY)

        self.assertEqual(len(result.edges), expected)
        self.assertIn(("r", "a"), {(edge.source, edge.target) for edge in result.edges})
        self.assertIn(("a", "c"), {(edge.source, edge.target) for edge in result.edges})

    def test_node_lies_within_its_leaf_span(self) -> None:
        entries = [
            _entry("r", 0),
            _entry("a", 1, "r"),
            _entry("a1", 2, "a"),
            _entry("a2", 3, "a"),
            _entry("a21", 4, "a2"),
            _entry("b", 5, "r"),
            _entry("c", 6, "r"),
            _entry("c1", 7, "c"),
            _entry("c2", 8, "c"),
            _entry("c3", 9, "c"),
            _entry("c31", 10, "c3"),
            _entry("c32", 11, "c3"),
        ]
        result = build_layout(entries, HIERARCHY)
        children: dict[str, list[str]] = {}
        for entry in entries:
            if entry.parent_id:
                children.setdefault(entry.parent_id, []).append(entry.id)

        def leaves(node: str) -> list[str]:
            kids = children.get(node, [])
            if not kids:
                return [node]
            return [leaf for kid in kids for leaf in leaves(kid)]

        for entry in entries:
            xs = [result.positions[leaf].x for leaf in leaves(entry.id)]
            x = result.positions[entry.id].x
            self.assertLessEqual(min(xs), x, entry.id)
            self.assertLessEqual(x, max(xs), entry.id)

    def test_removing_dangling_entry_keeps_other_subtrees(self) -> None:
        entries = [
            _entry("r1", 0),
            _entry("r1a", 1, "r1"),
            _entry("r1b", 2, "r1"),
            _entry("r2", 3),
            _entry("r2a", 4, "r2"),
            _entry("stray", 5, parent_id="deleted"),
        ]
        with_stray = build_layout(entries, HIERARCHY)
        without = build_layout([e for e in entries if e.id != "stray"], HIERARCHY)

        for key, point in without.positions.items():
            self.assertEqual(with_stray.positions[key], point)

    def test_removing_dangling_entry_never_moves_nodes_sideways(self) -> None:
        entries = [
            _entry("stray", 0, parent_id="deleted"),
            _entry("r1", 1),
            _entry("r1a", 2, "r1"),
            _entry("r1b", 3, "r1"),
        ]
        with_stray = build_layout(entries, HIERARCHY)
        without = build_layout(entries[1:], HIERARCHY)
        for key, point in without.positions.items():
            self.assertEqual(with_stray.positions[key].x, point.x)

    def test_layout_is_deterministic(self) -> None:
        entries = [_entry("r", 0), _entry("a", 1, "r"), _entry("b", 1, "r"), _entry("z", 3)]
        self.assertEqual(build_layout(entries, HIERARCHY), build_layout(entries, HIERARCHY))


class CycleHandlingTests(unittest.TestCase):
    def test_two_node_cycle_is_broken_at_earliest_entry(self) -> None:
        entries = [_entry("a", 0, parent_id="b"), _entry("b", 1, parent_id="a"), _entry("c", 2, "a")]
        parents = effective_parents(entries)
        self.assertEqual(parents, [None, 0, 0])

        result = build_layout(entries, HIERARCHY)
        self.assertEqual(set(result.positions), {"a", "b", "c"})
        self.assertEqual(
            {(edge.source, edge.target) for edge in result.edges},
            {("a", "b"), ("a", "c")},
        )

    def test_self_parent_is_treated_as_root(self) -> None:
        entries = [_entry("loop", 0, parent_id="loop")]
        result = build_layout(entries, HIERARCHY)
        self.assertEqual(result.edges, ())
        self.assertEqual(result.positions["loop"], Point(140.0, 0.0))

    def test_cycle_hanging_off_a_tree_keeps_the_tree(self) -> None:
        entries = [
            _entry("x", 5, parent_id="z"),
            _entry("y", 6, parent_id="x"),
            _entry("z", 7, parent_id="y"),
            _entry("root", 0),
            _entry("leaf", 1, "root"),
        ]
        parents = effective_parents(entries)
        self.assertIsNone(parents[0])
        self.assertEqual(parents[4], 3)
        result = build_layout(entries, HIERARCHY)
        self.assertEqual(len(result.positions), 5)

    def test_deep_chain_does_not_recurse(self) -> None:
        depth = 3000
        entries = [_entry("n0", 0)]
        entries += [_entry(f"n{i}", i, f"n{i - 1}") for i in range(1, depth)]
        result = build_layout(entries, HIERARCHY)
        self.assertEqual(result.positions[f"n{depth - 1}"], Point(140.0, (depth - 1) * 160.0))
        self.assertEqual(len(result.edges), depth - 1)


class ClusterLayoutTests(unittest.TestCase):
    def test_emotion_groups_sorted_on_grid(self) -> None:
        entries = [
            _entry("s", 0, emotion="stress"),
            _entry("h", 1, emotion="Happy"),
            _entry("c", 2, emotion="calm"),
            _entry("p", 3, emotion="proud"),
        ]
        result = build_layout(entries, EMOTION)

        self.assertEqual([c.key for c in result.clusters], ["calm", "happy", "proud", "stress"])
        self.assertEqual(result.clusters[0].center, Point(-820.0, -620.0))
        self.assertEqual(result.clusters[1].center, Point(0.0, -620.0))
        self.assertEqual(result.clusters[2].center, Point(820.0, -620.0))
        self.assertEqual(result.clusters[3].center, Point(-820.0, 0.0))
        # a single member sits at angle 0 on the ring
        self.assertEqual(result.positions["c"], Point(-820.0 + 240.0, -620.0))

    def test_grouping_ignores_case(self) -> None:
        entries = [_entry("a", 0, emotion="Happy"), _entry("b", 1, emotion="happy ")]
        result = build_layout(entries, EMOTION)
        self.assertEqual([c.key for c in result.clusters], ["happy"])

    def test_ring_is_newest_first(self) -> None:
        entries = [_entry("old", 0, area="health"), _entry("new", 10, area="health")]
        result = build_layout(entries, AREA)
        center = result.clusters[0].center
        self.assertAlmostEqual(result.positions["new"].x, center.x + 240.0)
        self.assertAlmostEqual(result.positions["new"].y, center.y)
        self.assertAlmostEqual(result.positions["old"].x, center.x - 240.0)
        self.assertAlmostEqual(result.positions["old"].y, center.y)

    def test_chain_and_hub_edges(self) -> None:
        cases = {1: 0, 2: 1, 3: 2 + 2, 6: 5 + 5, 7: 6 + 5}
        for size, expected in cases.items():
            entries = [_entry(f"e{i}", i) for i in range(size)]
            result = build_layout(entries, EMOTION)
            self.assertEqual(len(result.edges), expected, size)

    def test_hub_is_newest_member(self) -> None:
        entries = [_entry(f"e{i}", i) for i in range(4)]
        result = build_layout(entries, EMOTION)
        pairs = [(edge.source, edge.target) for edge in result.edges]
        self.assertEqual(pairs[:3], [("e3", "e2"), ("e2", "e1"), ("e1", "e0")])
        self.assertEqual(pairs[3:], [("e3", "e2"), ("e3", "e1"), ("e3", "e0")])

    def test_day_groups_newest_first(self) -> None:
        entries = [
            _entry("mon", 0),
            _entry("wed", 2 * 24 * 60),
            _entry("tue", 24 * 60),
        ]
        result = build_layout(entries, DAY)
        self.assertEqual([c.key for c in result.clusters], ["2026-02-10", "2026-02-09", "2026-02-08"])

    def test_cluster_modes_ignore_parent_links(self) -> None:
        entries = [_entry("p", 0), _entry("k", 1, "p")]
        result = build_layout(entries, AREA)
        self.assertEqual([(e.source, e.target) for e in result.edges], [("k", "p")])


if __name__ == "__main__":
    unittest.main()
