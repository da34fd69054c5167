from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable, Sequence

from .models import Cluster, GraphEdge, GraphNode, LayoutResult, MindEntry, Point, local_timestamp

HIERARCHY = "hierarchy"
DAY = "day"
EMOTION = "emotion"
AREA = "area"
LAYOUT_MODES = (HIERARCHY, DAY, EMOTION, AREA)

HUB_FANOUT = 5


@dataclass(frozen=True)
class LayoutSettings:
    x_gap: float = 280.0
    y_gap: float = 160.0
    roots_gap_y: float = 240.0
    cluster_radius: float = 240.0
    cluster_spacing_x: float = 820.0
    cluster_spacing_y: float = 620.0
    grid_columns: int = 3
    node_width: float = 230.0
    node_height: float = 78.0


DEFAULT_SETTINGS = LayoutSettings()

# Detail tree inside a room uses a slightly tighter vertical stack.
ROOM_TREE_SETTINGS = LayoutSettings(roots_gap_y=220.0, node_width=220.0)


def build_layout(
    entries: Sequence[MindEntry],
    mode: str = HIERARCHY,
    settings: LayoutSettings = DEFAULT_SETTINGS,
) -> LayoutResult:
    if mode not in LAYOUT_MODES:
        raise ValueError(f"Unsupported layout mode: {mode}")
    if not entries:
        return LayoutResult(mode=mode)
    if mode == HIERARCHY:
        return _hierarchy_layout(entries, settings)
    return _cluster_layout(entries, mode, settings)


def _sort_key(entry: MindEntry):
    return local_timestamp(entry.timestamp)


def _hierarchy_layout(entries: Sequence[MindEntry], settings: LayoutSettings) -> LayoutResult:
    nodes = tuple(GraphNode(key=entry.id, entry=entry) for entry in entries)
    parents = effective_parents(entries)
    count = len(entries)

    children: list[list[int]] = [[] for _ in range(count)]
    roots: list[int] = []
    for index, parent in enumerate(parents):
        if parent is None:
            roots.append(index)
        else:
            children[parent].append(index)

    stamps = [_sort_key(entry) for entry in entries]
    for kids in children:
        kids.sort(key=lambda i: stamps[i])
    roots.sort(key=lambda i: stamps[i])

    edges = tuple(
        GraphEdge(source=entries[parent].id, target=entries[index].id)
        for index, parent in enumerate(parents)
        if parent is not None
    )

    widths, heights = _subtree_extents(roots, children, settings.x_gap)

    positions: dict[str, Point] = {}
    top_y = 0.0
    for root in roots:
        _place_subtree(root, top_y, children, widths, positions, entries, settings)
        top_y += heights[root] * settings.y_gap + settings.roots_gap_y

    return LayoutResult(mode=HIERARCHY, nodes=nodes, edges=edges, positions=positions)


def effective_parents(entries: Sequence[MindEntry]) -> list[int | None]:
    """Resolve each entry's parent to an index into ``entries``.

    Missing or absent parents resolve to ``None``. When parent links form a
    cycle, the cycle member with the earliest timestamp (then lowest index)
    loses its parent link so the remaining graph is a forest.
    """
    index_of: dict[str, int] = {}
    for index, entry in enumerate(entries):
        index_of.setdefault(entry.id, index)

    parents: list[int | None] = []
    for entry in entries:
        parent_id = entry.parent_id
        parents.append(index_of.get(parent_id) if parent_id else None)

    unvisited, walking, done = 0, 1, 2
    state = [unvisited] * len(entries)
    for start in range(len(entries)):
        path: list[int] = []
        cursor = start
        while cursor is not None and state[cursor] == unvisited:
            state[cursor] = walking
            path.append(cursor)
            cursor = parents[cursor]
        if cursor is not None and state[cursor] == walking:
            cycle = path[path.index(cursor):]
            breaker = min(cycle, key=lambda i: (_sort_key(entries[i]), i))
            parents[breaker] = None
        for index in path:
            state[index] = done
    return parents


def _subtree_extents(
    roots: list[int],
    children: list[list[int]],
    x_gap: float,
) -> tuple[dict[int, float], dict[int, int]]:
    order: list[int] = []
    stack = list(roots)
    while stack:
        node = stack.pop()
        order.append(node)
        stack.extend(children[node])

    widths: dict[int, float] = {}
    heights: dict[int, int] = {}
    for node in reversed(order):
        kids = children[node]
        if not kids:
            widths[node] = x_gap
            heights[node] = 1
        else:
            widths[node] = sum(widths[kid] for kid in kids)
            heights[node] = 1 + max(heights[kid] for kid in kids)
    return widths, heights


def _place_subtree(
    root: int,
    top_y: float,
    children: list[list[int]],
    widths: dict[int, float],
    positions: dict[str, Point],
    entries: Sequence[MindEntry],
    settings: LayoutSettings,
) -> None:
    stack: list[tuple[int, int, float]] = [(root, 0, 0.0)]
    while stack:
        node, depth, start_x = stack.pop()
        y = top_y + depth * settings.y_gap
        kids = children[node]
        if not kids:
            positions[entries[node].id] = Point(start_x + settings.x_gap / 2, y)
            continue

        cursor = start_x
        centers: list[float] = []
        for kid in kids:
            stack.append((kid, depth + 1, cursor))
            centers.append(cursor + widths[kid] / 2)
            cursor += widths[kid]
        positions[entries[node].id] = Point((centers[0] + centers[-1]) / 2, y)


def day_key(entry: MindEntry) -> str:
    return local_timestamp(entry.timestamp).date().isoformat()


def emotion_key(entry: MindEntry) -> str:
    return entry.primary_emotion.strip().lower()


def area_key(entry: MindEntry) -> str:
    return entry.growth_area.strip().lower()


_GROUPERS: dict[str, tuple[Callable[[MindEntry], str], bool]] = {
    DAY: (day_key, True),
    EMOTION: (emotion_key, False),
    AREA: (area_key, False),
}


def _cluster_layout(entries: Sequence[MindEntry], mode: str, settings: LayoutSettings) -> LayoutResult:
    key_for, newest_first = _GROUPERS[mode]
    nodes = tuple(GraphNode(key=entry.id, entry=entry) for entry in entries)

    groups: dict[str, list[GraphNode]] = {}
    for node in nodes:
        groups.setdefault(key_for(node.entry), []).append(node)
    ordered = sorted(groups.items(), key=lambda item: item[0], reverse=newest_first)

    positions: dict[str, Point] = {}
    edges: list[GraphEdge] = []
    clusters: list[Cluster] = []
    columns = max(1, settings.grid_columns)

    for group_index, (key, members) in enumerate(ordered):
        col = group_index % columns
        row = group_index // columns
        center = Point(
            col * settings.cluster_spacing_x - settings.cluster_spacing_x,
            row * settings.cluster_spacing_y - settings.cluster_spacing_y,
        )
        clusters.append(Cluster(key=key, center=center))

        ring = sorted(members, key=lambda node: _sort_key(node.entry), reverse=True)
        size = len(ring)
        for i, node in enumerate(ring):
            angle = 2.0 * math.pi * i / size
            positions[node.key] = Point(
                center.x + math.cos(angle) * settings.cluster_radius,
                center.y + math.sin(angle) * settings.cluster_radius,
            )
            if i > 0:
                edges.append(GraphEdge(source=ring[i - 1].key, target=node.key))

        if size >= 3:
            hub = ring[0]
            for node in ring[1 : min(size, HUB_FANOUT + 1)]:
                edges.append(GraphEdge(source=hub.key, target=node.key))

    return LayoutResult(
        mode=mode,
        nodes=nodes,
        edges=tuple(edges),
        positions=positions,
        clusters=tuple(clusters),
    )
