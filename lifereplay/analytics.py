from __future__ import annotations

import math
from collections import Counter
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Iterable, Sequence

from .models import (
    CategoryCount,
    DailyPoint,
    Dashboard,
    LoopRow,
    MindEntry,
    StatRow,
    local_timestamp,
)

RANGE_LENGTH_DAYS = {"7d": 7, "30d": 30, "all": None}
PLACEHOLDER = "—"
UNBOUNDED_DELTA = "+∞"
MISC_LOOP = "misc"
MAX_LOOP_ROWS = 8

SIGNAL_WINDOW = 14
SIGNAL_MIN_ENTRIES = 5
SIGNAL_REPEAT_THRESHOLD = 5
SIGNAL_HIGH_INTENSITY = 4
SIGNAL_HIGH_COUNT = 4


@dataclass(frozen=True)
class PeriodStats:
    emotions: tuple[CategoryCount, ...]
    areas: tuple[CategoryCount, ...]
    types: tuple[CategoryCount, ...]
    avg_intensity: float


def build_dashboard(
    entries: Sequence[MindEntry],
    range_key: str = "7d",
    compare: bool = True,
    now: datetime | None = None,
) -> Dashboard:
    if range_key not in RANGE_LENGTH_DAYS:
        raise ValueError(f"Unsupported range: {range_key}")
    current, previous = split_periods(entries, range_key, compare, now)
    cur = period_stats(current)
    prev = period_stats(previous)
    show_delta = compare

    top_cur = cur.emotions[0].key if cur.emotions else PLACEHOLDER
    top_prev = prev.emotions[0].key if prev.emotions else PLACEHOLDER

    stats = (
        StatRow(
            title="Total entries",
            value=str(len(current)),
            delta=delta_text(len(current), len(previous), is_percent=True) if show_delta else None,
        ),
        StatRow(
            title="Top emotion",
            value=top_cur,
            delta=("same" if top_cur == top_prev else f"was {top_prev}") if show_delta else None,
        ),
        StatRow(
            title="Avg intensity",
            value=f"{cur.avg_intensity:.1f} / 5",
            delta=delta_text(cur.avg_intensity, prev.avg_intensity, is_percent=False) if show_delta else None,
        ),
    )

    return Dashboard(
        stats=stats,
        daily=daily_trend(current),
        emotions=cur.emotions,
        areas=cur.areas,
        types=cur.types,
        loops=loop_rows(current),
    )


def split_periods(
    entries: Sequence[MindEntry],
    range_key: str,
    compare: bool,
    now: datetime | None = None,
) -> tuple[list[MindEntry], list[MindEntry]]:
    length_days = RANGE_LENGTH_DAYS[range_key]
    if length_days is None:
        return list(entries), []

    end = local_timestamp(now) if now is not None else datetime.now().astimezone()
    length = timedelta(days=length_days)
    current_start = end - length
    stamped = [(local_timestamp(entry.timestamp), entry) for entry in entries]

    current = [entry for ts, entry in stamped if current_start <= ts <= end]
    if not compare:
        return current, []

    previous_start = current_start - length
    previous = [entry for ts, entry in stamped if previous_start <= ts < current_start]
    return current, previous


def period_stats(entries: Sequence[MindEntry]) -> PeriodStats:
    return PeriodStats(
        emotions=ranked_counts(entry.primary_emotion.lower() for entry in entries),
        areas=ranked_counts(entry.growth_area.lower() for entry in entries),
        types=ranked_counts(entry.entry_type.lower() for entry in entries),
        avg_intensity=mean_intensity(entries),
    )


def ranked_counts(values: Iterable[str]) -> tuple[CategoryCount, ...]:
    """Count values; order by count descending, then key ascending."""
    counts = Counter(values)
    ordered = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    return tuple(CategoryCount(key=key, count=count) for key, count in ordered)


def clamped_intensity(entry: MindEntry) -> int:
    return max(1, min(int(entry.emotion_intensity), 5))


def mean_intensity(entries: Sequence[MindEntry]) -> float:
    if not entries:
        return 0.0
    return sum(clamped_intensity(entry) for entry in entries) / len(entries)


def daily_trend(entries: Sequence[MindEntry]) -> tuple[DailyPoint, ...]:
    by_day: dict[date, list[MindEntry]] = {}
    for entry in entries:
        by_day.setdefault(local_timestamp(entry.timestamp).date(), []).append(entry)
    return tuple(
        DailyPoint(day=day, avg_intensity=mean_intensity(items))
        for day, items in sorted(by_day.items())
    )


def delta_text(current: float, previous: float, is_percent: bool) -> str:
    if previous <= 0:
        return UNBOUNDED_DELTA
    diff = current - previous
    if is_percent:
        pct = _round_half_away(diff / previous * 100.0)
        return f"+{pct}%" if pct >= 0 else f"{pct}%"
    text = f"{diff:+.1f}"
    return "+0.0" if text == "-0.0" else text


def _round_half_away(value: float) -> int:
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def normalize_loop_key(raw: str) -> str:
    key = (raw or "").strip().lower()
    return key or MISC_LOOP


def loop_rows(entries: Sequence[MindEntry], limit: int = MAX_LOOP_ROWS) -> tuple[LoopRow, ...]:
    buckets: dict[str, list[MindEntry]] = {}
    for entry in entries:
        buckets.setdefault(normalize_loop_key(entry.loop_key), []).append(entry)

    rows = []
    for key, members in buckets.items():
        emotions = ranked_counts(member.primary_emotion.lower() for member in members)
        topics = ranked_counts(topic.lower() for member in members for topic in member.topics)
        rows.append(
            LoopRow(
                loop_key=key,
                count=len(members),
                top_emotion=emotions[0].key if emotions else PLACEHOLDER,
                top_topic=topics[0].key if topics else PLACEHOLDER,
            )
        )
    rows.sort(key=lambda row: (-row.count, row.loop_key))
    return tuple(rows[:limit])


def insight_signals(entries: Sequence[MindEntry]) -> list[str]:
    """Short plain-language notes about repeating patterns in recent entries."""
    if len(entries) < SIGNAL_MIN_ENTRIES:
        return []
    recent = sorted(entries, key=lambda entry: local_timestamp(entry.timestamp), reverse=True)
    recent = recent[:SIGNAL_WINDOW]

    signals: list[str] = []
    emotions = ranked_counts(entry.primary_emotion.lower() for entry in recent)
    if emotions and emotions[0].count >= SIGNAL_REPEAT_THRESHOLD:
        top = emotions[0]
        signals.append(f"You logged “{top.key}” {top.count} times recently.")

    high = sum(1 for entry in recent if entry.emotion_intensity >= SIGNAL_HIGH_INTENSITY)
    if high >= SIGNAL_HIGH_COUNT:
        signals.append(f"High intensity (4–5) appears {high} times recently.")
    return signals
