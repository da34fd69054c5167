from __future__ import annotations

import tempfile
import unittest
from datetime import datetime, timedelta
from pathlib import Path

from PIL import Image

from lifereplay.layout import EMOTION, HIERARCHY, build_layout
from lifereplay.models import LayoutResult, MindEntry, Point
from lifereplay.render import (
    bezier_points,
    meta_line,
    render_layout,
    save_layout_png,
    truncate,
    wrap_title,
)


def _entry(entry_id: str, minutes: int, parent_id: str | None = None, title: str = "Quiet morning") -> MindEntry:
    return MindEntry(
        id=entry_id,
        timestamp=datetime(2026, 2, 8, 12, 0) + timedelta(minutes=minutes),
        raw_transcript="",
        title=title,
        summary="",
        primary_emotion="Calm",
        emotion_intensity=2,
        growth_area="Reflection",
        entry_type="thought",
        parent_id=parent_id,
    )


class TextTests(unittest.TestCase):
    def test_truncate(self) -> None:
        self.assertEqual(truncate("  short  ", 10), "short")
        self.assertEqual(truncate("overwhelmed", 5), "overw…")

    def test_wrap_title_short(self) -> None:
        self.assertEqual(wrap_title("Short title"), ["Short title"])
        self.assertEqual(wrap_title("   "), [""])

    def test_wrap_title_two_lines_with_ellipsis(self) -> None:
        lines = wrap_title("A much longer title that will need wrapping")
        self.assertEqual(lines, ["A much longer title that", "will…"])

    def test_wrap_title_exact_fit(self) -> None:
        self.assertEqual(wrap_title("A much longer title that will"), ["A much longer title that", "will"])

    def test_wrap_title_long_word(self) -> None:
        word = "x" * 30
        self.assertEqual(wrap_title(word), ["x" * 24 + "…"])

    def test_meta_line(self) -> None:
        self.assertEqual(meta_line(_entry("a", 0)), "calm • reflection • 2/5")

    def test_bezier_hits_endpoints(self) -> None:
        points = bezier_points(Point(0.0, 0.0), Point(100.0, 50.0), horizontal=False, steps=10)
        self.assertEqual(len(points), 11)
        self.assertEqual(points[0], (0.0, 0.0))
        self.assertAlmostEqual(points[-1][0], 100.0)
        self.assertAlmostEqual(points[-1][1], 50.0)


class RenderTests(unittest.TestCase):
    def test_render_hierarchy_image(self) -> None:
        entries = [_entry("r", 0), _entry("a", 1, "r"), _entry("b", 2, "r", title="A much longer title that wraps")]
        image = render_layout(build_layout(entries, HIERARCHY), size=(640, 480))
        self.assertEqual(image.size, (640, 480))
        self.assertEqual(image.mode, "RGB")
        # something other than background was drawn
        self.assertIsNotNone(image.getbbox())

    def test_render_empty_layout_is_blank(self) -> None:
        image = render_layout(LayoutResult(mode=HIERARCHY), size=(200, 100))
        self.assertIsNone(image.getbbox())

    def test_render_cluster_with_explicit_transform(self) -> None:
        entries = [_entry(f"e{i}", i) for i in range(4)]
        image = render_layout(
            build_layout(entries, EMOTION),
            size=(400, 300),
            pan=Point(0.0, 0.0),
            zoom=0.2,
            selected_key="e1",
        )
        self.assertEqual(image.size, (400, 300))

    def test_save_layout_png(self) -> None:
        entries = [_entry("r", 0), _entry("a", 1, "r")]
        with tempfile.TemporaryDirectory() as tmp_dir:
            path = save_layout_png(build_layout(entries, HIERARCHY), Path(tmp_dir) / "out" / "graph.png", size=(320, 200))
            self.assertTrue(path.exists())
            with Image.open(path) as image:
                self.assertEqual(image.format, "PNG")
                self.assertEqual(image.size, (320, 200))


if __name__ == "__main__":
    unittest.main()
