from __future__ import annotations

from dataclasses import dataclass

from .models import GraphNode, LayoutResult, Point

GRAPH_ZOOM_RANGE = (0.12, 12.0)
DETAIL_ZOOM_RANGE = (0.25, 3.0)

DEFAULT_NODE_SIZE = (230.0, 78.0)


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def to_model(
    pointer: Point,
    viewport_size: tuple[float, float],
    pan: Point,
    zoom: float,
) -> Point:
    width, height = viewport_size
    return Point(
        (pointer.x - width / 2 - pan.x) / zoom,
        (pointer.y - height / 2 - pan.y) / zoom,
    )


def to_screen(
    point: Point,
    viewport_size: tuple[float, float],
    pan: Point,
    zoom: float,
) -> Point:
    width, height = viewport_size
    return Point(
        point.x * zoom + width / 2 + pan.x,
        point.y * zoom + height / 2 + pan.y,
    )


def hit_test(
    pointer: Point,
    viewport_size: tuple[float, float],
    layout: LayoutResult,
    pan: Point,
    zoom: float,
    node_size: tuple[float, float] = DEFAULT_NODE_SIZE,
) -> GraphNode | None:
    """Return the topmost node under ``pointer``, or ``None``.

    Nodes are drawn in order, so the scan runs back to front and the last
    drawn node wins when boxes overlap.
    """
    target = to_model(pointer, viewport_size, pan, zoom)
    half_w = node_size[0] / 2
    half_h = node_size[1] / 2
    for node in reversed(layout.nodes):
        center = layout.positions.get(node.key)
        if center is None:
            continue
        if (
            center.x - half_w <= target.x < center.x + half_w
            and center.y - half_h <= target.y < center.y + half_h
        ):
            return node
    return None


def fit_to_layout(
    layout: LayoutResult,
    viewport_size: tuple[float, float],
    node_size: tuple[float, float] = DEFAULT_NODE_SIZE,
    zoom_range: tuple[float, float] = GRAPH_ZOOM_RANGE,
    margin: float = 40.0,
) -> tuple[Point, float]:
    """Pan and zoom that frame every positioned node inside the viewport."""
    points = list(layout.positions.values())
    if not points:
        return Point(0.0, 0.0), 1.0

    min_x = min(p.x for p in points) - node_size[0] / 2
    max_x = max(p.x for p in points) + node_size[0] / 2
    min_y = min(p.y for p in points) - node_size[1] / 2
    max_y = max(p.y for p in points) + node_size[1] / 2

    width, height = viewport_size
    usable_w = max(1.0, width - 2 * margin)
    usable_h = max(1.0, height - 2 * margin)
    zoom = clamp(
        min(usable_w / max(1.0, max_x - min_x), usable_h / max(1.0, max_y - min_y)),
        zoom_range[0],
        zoom_range[1],
    )
    mid_x = (min_x + max_x) / 2
    mid_y = (min_y + max_y) / 2
    return Point(-mid_x * zoom, -mid_y * zoom), zoom


@dataclass
class Viewport:
    """Pan/zoom state for one graph view.

    Each transform keeps a committed value and a live value. Gesture updates
    only move the live value, so a cancelled gesture snaps back to the last
    committed state.
    """

    min_zoom: float = GRAPH_ZOOM_RANGE[0]
    max_zoom: float = GRAPH_ZOOM_RANGE[1]
    committed_pan: Point = Point(0.0, 0.0)
    pan: Point = Point(0.0, 0.0)
    committed_zoom: float = 1.0
    zoom: float = 1.0

    @classmethod
    def for_graph(cls) -> "Viewport":
        return cls(min_zoom=GRAPH_ZOOM_RANGE[0], max_zoom=GRAPH_ZOOM_RANGE[1])

    @classmethod
    def for_detail_tree(cls) -> "Viewport":
        return cls(min_zoom=DETAIL_ZOOM_RANGE[0], max_zoom=DETAIL_ZOOM_RANGE[1])

    def update_pan(self, dx: float, dy: float) -> Point:
        self.pan = Point(self.committed_pan.x + dx, self.committed_pan.y + dy)
        return self.pan

    def end_pan(self) -> None:
        self.committed_pan = self.pan

    def cancel_pan(self) -> None:
        self.pan = self.committed_pan

    def update_zoom(self, scale: float) -> float:
        self.zoom = clamp(self.committed_zoom * scale, self.min_zoom, self.max_zoom)
        return self.zoom

    def end_zoom(self) -> None:
        self.committed_zoom = self.zoom

    def cancel_zoom(self) -> None:
        self.zoom = self.committed_zoom

    def cancel_gestures(self) -> None:
        self.cancel_pan()
        self.cancel_zoom()

    def reset(self, pan: Point | None = None, zoom: float = 1.0) -> None:
        self.committed_pan = self.pan = pan or Point(0.0, 0.0)
        self.committed_zoom = self.zoom = clamp(zoom, self.min_zoom, self.max_zoom)

    def hit_test(
        self,
        pointer: Point,
        viewport_size: tuple[float, float],
        layout: LayoutResult,
        node_size: tuple[float, float] = DEFAULT_NODE_SIZE,
    ) -> GraphNode | None:
        return hit_test(pointer, viewport_size, layout, self.pan, self.zoom, node_size)

    def to_screen(self, point: Point, viewport_size: tuple[float, float]) -> Point:
        return to_screen(point, viewport_size, self.pan, self.zoom)
