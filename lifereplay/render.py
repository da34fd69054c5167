from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from PIL import Image, ImageDraw, ImageFont

from .layout import DEFAULT_SETTINGS, HIERARCHY, LayoutSettings
from .models import LayoutResult, MindEntry, Point
from .viewport import fit_to_layout, to_screen

BACKGROUND = (0, 0, 0)
EDGE_COLOR = (255, 255, 255, 46)
NODE_FILL = (255, 255, 255, 15)
NODE_OUTLINE = (255, 255, 255, 46)
TITLE_COLOR = (255, 255, 255, 255)
TITLE_SECOND_COLOR = (255, 255, 255, 235)
META_COLOR = (255, 255, 255, 166)
LABEL_COLOR = (255, 255, 255, 140)
SELECTED_OUTLINE = (255, 204, 102, 255)

CURVE_STEPS = 24
FONT_CANDIDATES = ("DejaVuSans.ttf", "Arial.ttf", "segoeui.ttf")


def truncate(text: str, limit: int) -> str:
    trimmed = text.strip()
    if len(trimmed) <= limit:
        return trimmed
    return trimmed[:limit] + "…"


def wrap_title(title: str, max_chars: int = 24, max_lines: int = 2) -> list[str]:
    words = title.split()
    if not words:
        return [""]

    lines: list[str] = []
    current = ""
    for word in words:
        candidate = f"{current} {word}" if current else word
        if len(candidate) <= max_chars:
            current = candidate
            continue
        if current:
            lines.append(current)
        current = word
        if len(lines) == max_lines - 1:
            break

    if len(lines) < max_lines and current:
        lines.append(current)
    lines = lines[:max_lines]

    if len(lines[-1]) > max_chars:
        lines[-1] = truncate(lines[-1], max_chars)
    elif len(" ".join(lines)) < len(" ".join(words)):
        last = lines[-1]
        lines[-1] = (last[: max_chars - 1] if len(last) >= max_chars else last) + "…"
    return lines


def meta_line(entry: MindEntry) -> str:
    emotion = truncate(entry.primary_emotion.lower(), 12)
    area = truncate(entry.growth_area.lower(), 14)
    return f"{emotion} • {area} • {entry.emotion_intensity}/5"


@lru_cache(maxsize=32)
def _font(size: int) -> ImageFont.ImageFont:
    for name in FONT_CANDIDATES:
        try:
            return ImageFont.truetype(name, size)
        except OSError:
            continue
    return ImageFont.load_default(size=size)


def bezier_points(a: Point, b: Point, horizontal: bool, steps: int = CURVE_STEPS) -> list[tuple[float, float]]:
    if horizontal:
        mid_x = (a.x + b.x) / 2
        c1, c2 = Point(mid_x, a.y), Point(mid_x, b.y)
    else:
        mid_y = a.y + (b.y - a.y) * 0.35
        c1, c2 = Point(a.x, mid_y), Point(b.x, mid_y)

    points = []
    for i in range(steps + 1):
        t = i / steps
        u = 1 - t
        x = u**3 * a.x + 3 * u * u * t * c1.x + 3 * u * t * t * c2.x + t**3 * b.x
        y = u**3 * a.y + 3 * u * u * t * c1.y + 3 * u * t * t * c2.y + t**3 * b.y
        points.append((x, y))
    return points


def render_layout(
    layout: LayoutResult,
    size: tuple[int, int] = (1600, 1000),
    pan: Point | None = None,
    zoom: float | None = None,
    settings: LayoutSettings = DEFAULT_SETTINGS,
    selected_key: str | None = None,
) -> Image.Image:
    node_size = (settings.node_width, settings.node_height)
    if pan is None or zoom is None:
        fit_pan, fit_zoom = fit_to_layout(layout, size, node_size)
        pan = fit_pan if pan is None else pan
        zoom = fit_zoom if zoom is None else zoom

    image = Image.new("RGB", size, BACKGROUND)
    draw = ImageDraw.Draw(image, "RGBA")

    def screen(point: Point) -> Point:
        return to_screen(point, size, pan, zoom)

    if layout.mode != HIERARCHY:
        label_offset = settings.cluster_radius + settings.node_height / 2 + 16
        label_font = _font(max(6, round(13.5 * zoom)))
        for cluster in layout.clusters:
            anchor = screen(Point(cluster.center.x, cluster.center.y - label_offset))
            draw.text((anchor.x, anchor.y), cluster.key.title(), fill=LABEL_COLOR, font=label_font, anchor="mm")

    line_width = max(1, round(1.6 * zoom))
    for edge in layout.edges:
        a = layout.positions.get(edge.source)
        b = layout.positions.get(edge.target)
        if a is None or b is None:
            continue
        curve = [
            (p.x, p.y)
            for p in (screen(Point(x, y)) for x, y in bezier_points(a, b, layout.mode != HIERARCHY))
        ]
        draw.line(curve, fill=EDGE_COLOR, width=line_width)

    for node in layout.nodes:
        center = layout.positions.get(node.key)
        if center is None:
            continue
        outline = SELECTED_OUTLINE if node.key == selected_key else NODE_OUTLINE
        _draw_node(draw, screen(center), node.entry, zoom, node_size, outline)

    return image


def _draw_node(
    draw: ImageDraw.ImageDraw,
    center: Point,
    entry: MindEntry,
    zoom: float,
    node_size: tuple[float, float],
    outline: tuple[int, int, int, int],
) -> None:
    w = node_size[0] * zoom
    h = node_size[1] * zoom
    left = center.x - w / 2
    top = center.y - h / 2
    draw.rounded_rectangle(
        (left, top, left + w, top + h),
        radius=max(1, round(14 * zoom)),
        fill=NODE_FILL,
        outline=outline,
        width=1,
    )
    # Text is unreadable below this height; boxes alone keep the shape visible.
    if h < 20:
        return

    title_font = _font(max(6, round(13.6 * zoom)))
    meta_font = _font(max(6, round(11 * zoom)))
    lines = wrap_title(entry.title)
    x = left + 12 * zoom
    draw.text((x, top + 20 * zoom), lines[0], fill=TITLE_COLOR, font=title_font, anchor="lm")
    if len(lines) > 1:
        draw.text((x, top + 38 * zoom), lines[1], fill=TITLE_SECOND_COLOR, font=title_font, anchor="lm")
    draw.text((x, top + h - 16 * zoom), meta_line(entry), fill=META_COLOR, font=meta_font, anchor="lm")


def save_layout_png(
    layout: LayoutResult,
    path: Path,
    size: tuple[int, int] = (1600, 1000),
    settings: LayoutSettings = DEFAULT_SETTINGS,
) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    render_layout(layout, size=size, settings=settings).save(path, format="PNG")
    return path
