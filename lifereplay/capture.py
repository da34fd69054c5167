from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from .ai import MomentNormalizer
from .database import LifeReplayDatabase
from .models import MindEntry, Room, new_id
from .vocabulary import unknown_categories


@dataclass(frozen=True)
class CaptureResult:
    entry: MindEntry
    warnings: tuple[str, ...]


class MomentCaptureService:
    def __init__(self, db: LifeReplayDatabase, normalizer: MomentNormalizer):
        self.db = db
        self.normalizer = normalizer

    def capture(
        self,
        text: str,
        parent_id: str | None = None,
        room_id: str | None = None,
        timestamp: datetime | None = None,
    ) -> CaptureResult:
        transcript = text.strip()
        if not transcript:
            raise ValueError("Moment text cannot be empty.")

        if parent_id is not None:
            parent = self.db.get_entry(parent_id)
            if parent is None:
                raise ValueError(f"No entry with id {parent_id}")
            if room_id is None:
                room_id = parent.room_id

        moment = self.normalizer.normalize(transcript)
        entry = MindEntry(
            id=new_id(),
            timestamp=timestamp or datetime.now().astimezone(),
            raw_transcript=transcript,
            title=moment.title,
            summary=moment.summary,
            primary_emotion=moment.primary_emotion,
            emotion_intensity=moment.emotion_intensity,
            growth_area=moment.growth_area,
            entry_type=moment.entry_type,
            topics=moment.topics,
            people=moment.people,
            loop_key=moment.loop_key,
            insight=moment.insight or None,
            suggested_action=moment.suggested_action or None,
            room_id=room_id,
            parent_id=parent_id,
        )
        self.db.insert_entry(entry)
        return CaptureResult(entry=entry, warnings=tuple(unknown_categories(moment)))

    def add_child(self, parent_id: str, text: str) -> CaptureResult:
        return self.capture(text, parent_id=parent_id)

    def create_room(self, title: str) -> Room:
        name = title.strip()
        if not name:
            raise ValueError("Room title cannot be empty.")
        room = Room(id=new_id(), title=name, created_at=datetime.now().astimezone())
        self.db.insert_room(room)
        return room
