from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Sequence

from .models import DaySection, MindEntry, local_timestamp

TIME_FILTERS = ("all", "today", "last7", "last30")
ALL = "all"


def filter_entries(
    entries: Sequence[MindEntry],
    time_filter: str = ALL,
    growth_filter: str = ALL,
    emotion_filter: str = ALL,
    now: datetime | None = None,
) -> list[MindEntry]:
    if time_filter not in TIME_FILTERS:
        raise ValueError(f"Unsupported time filter: {time_filter}")
    current = local_timestamp(now) if now is not None else datetime.now().astimezone()
    return [
        entry
        for entry in entries
        if _time_matches(time_filter, entry, current)
        and _category_matches(growth_filter, entry.growth_area)
        and _category_matches(emotion_filter, entry.primary_emotion)
    ]


def available_emotions(entries: Sequence[MindEntry]) -> list[str]:
    return sorted({entry.primary_emotion.lower() for entry in entries})


def day_sections(entries: Sequence[MindEntry]) -> list[DaySection]:
    grouped: dict[date, list[MindEntry]] = {}
    for entry in entries:
        grouped.setdefault(local_timestamp(entry.timestamp).date(), []).append(entry)
    sections = []
    for day in sorted(grouped, reverse=True):
        items = sorted(grouped[day], key=lambda entry: local_timestamp(entry.timestamp), reverse=True)
        sections.append(DaySection(day=day, items=tuple(items)))
    return sections


def section_title(day: date, today: date | None = None) -> str:
    today = today or date.today()
    if day == today:
        return "Today"
    if day == today - timedelta(days=1):
        return "Yesterday"
    return f"{day.strftime('%b')} {day.day}, {day.year}"


def _time_matches(time_filter: str, entry: MindEntry, now: datetime) -> bool:
    stamp = local_timestamp(entry.timestamp)
    if time_filter == "today":
        return stamp.date() == now.date()
    if time_filter == "last7":
        return stamp >= now - timedelta(days=7)
    if time_filter == "last30":
        return stamp >= now - timedelta(days=30)
    return True


def _category_matches(selected: str, value: str) -> bool:
    if not selected or selected.lower() == ALL:
        return True
    return value.strip().lower() == selected.strip().lower()
