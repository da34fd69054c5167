"""Recognized category values for normalized moments.

Emotion, growth area and entry type are stored as free-form lowercase strings.
These sets describe what the normalizer is asked to produce; values outside
them are kept as-is and only reported.
"""

from __future__ import annotations

from .models import NormalizedMoment

GROWTH_AREAS = (
    "emotional",
    "professional",
    "personal",
    "relationships",
    "health",
    "reflection",
)

ENTRY_TYPES = (
    "memory",
    "thought",
    "emotion",
    "action",
    "dream",
    "goal",
    "reflection",
)

EXAMPLE_EMOTIONS = (
    "stress",
    "calm",
    "hurt",
    "angry",
    "happy",
    "anxious",
    "proud",
    "shame",
    "excitement",
    "lonely",
    "overwhelmed",
)

MIN_INTENSITY = 1
MAX_INTENSITY = 5
MAX_TOPICS = 5
MAX_PEOPLE = 3


def clamp_intensity(value: int) -> int:
    return max(MIN_INTENSITY, min(int(value), MAX_INTENSITY))


def unknown_categories(moment: NormalizedMoment) -> list[str]:
    problems: list[str] = []
    if moment.growth_area not in GROWTH_AREAS:
        problems.append(f"growth area {moment.growth_area!r} is not one of {', '.join(GROWTH_AREAS)}")
    if moment.entry_type not in ENTRY_TYPES:
        problems.append(f"entry type {moment.entry_type!r} is not one of {', '.join(ENTRY_TYPES)}")
    if not moment.primary_emotion or " " in moment.primary_emotion:
        problems.append(f"primary emotion {moment.primary_emotion!r} should be a single word")
    return problems
