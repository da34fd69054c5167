from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime


@dataclass(frozen=True)
class MindEntry:
    id: str
    timestamp: datetime
    raw_transcript: str
    title: str
    summary: str
    primary_emotion: str
    emotion_intensity: int
    growth_area: str
    entry_type: str
    topics: tuple[str, ...] = ()
    people: tuple[str, ...] = ()
    loop_key: str = ""
    insight: str | None = None
    suggested_action: str | None = None
    room_id: str | None = None
    parent_id: str | None = None


@dataclass(frozen=True)
class Room:
    id: str
    title: str
    created_at: datetime


@dataclass(frozen=True)
class NormalizedMoment:
    title: str
    summary: str
    primary_emotion: str
    emotion_intensity: int
    growth_area: str
    entry_type: str
    topics: tuple[str, ...]
    people: tuple[str, ...]
    loop_key: str
    insight: str
    suggested_action: str


@dataclass(frozen=True)
class Point:
    x: float
    y: float


@dataclass(frozen=True)
class GraphNode:
    key: str
    entry: MindEntry


@dataclass(frozen=True)
class GraphEdge:
    source: str
    target: str


@dataclass(frozen=True)
class Cluster:
    key: str
    center: Point


@dataclass(frozen=True)
class LayoutResult:
    mode: str
    nodes: tuple[GraphNode, ...] = ()
    edges: tuple[GraphEdge, ...] = ()
    positions: dict[str, Point] = field(default_factory=dict)
    clusters: tuple[Cluster, ...] = ()


@dataclass(frozen=True)
class StatRow:
    title: str
    value: str
    delta: str | None


@dataclass(frozen=True)
class DailyPoint:
    day: date
    avg_intensity: float


@dataclass(frozen=True)
class CategoryCount:
    key: str
    count: int


@dataclass(frozen=True)
class LoopRow:
    loop_key: str
    count: int
    top_emotion: str
    top_topic: str


@dataclass(frozen=True)
class Dashboard:
    stats: tuple[StatRow, ...]
    daily: tuple[DailyPoint, ...]
    emotions: tuple[CategoryCount, ...]
    areas: tuple[CategoryCount, ...]
    types: tuple[CategoryCount, ...]
    loops: tuple[LoopRow, ...]


@dataclass(frozen=True)
class DaySection:
    day: date
    items: tuple[MindEntry, ...]


def new_id() -> str:
    return str(uuid.uuid4())


def local_timestamp(value: datetime) -> datetime:
    """Return ``value`` as an aware datetime in the local zone.

    Naive timestamps are taken to already be local wall-clock time.
    """
    return value.astimezone()
