from __future__ import annotations

import json
import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterable

from .models import MindEntry, Room, local_timestamp

_ENTRY_COLUMNS = (
    "id, timestamp, raw_transcript, title, summary, primary_emotion, emotion_intensity, "
    "growth_area, entry_type, topics_json, people_json, loop_key, insight, suggested_action, "
    "room_id, parent_id"
)

EDITABLE_FIELDS = (
    "title",
    "summary",
    "primary_emotion",
    "emotion_intensity",
    "growth_area",
    "entry_type",
    "insight",
    "suggested_action",
)


class LifeReplayDatabase:
    def __init__(self, db_file: Path):
        self._db_file = Path(db_file)
        self._db_file.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()
        self._init_schema()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_file, timeout=30)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA synchronous=NORMAL")
        return conn

    @contextmanager
    def _connection(self):
        conn = self._connect()
        try:
            yield conn
        finally:
            conn.close()

    def _init_schema(self) -> None:
        with self._lock, self._connection() as conn:
            conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS mind_entries (
                    id TEXT PRIMARY KEY,
                    timestamp TEXT NOT NULL,
                    raw_transcript TEXT NOT NULL DEFAULT '',
                    title TEXT NOT NULL,
                    summary TEXT NOT NULL DEFAULT '',
                    primary_emotion TEXT NOT NULL DEFAULT '',
                    emotion_intensity INTEGER NOT NULL DEFAULT 3,
                    growth_area TEXT NOT NULL DEFAULT '',
                    entry_type TEXT NOT NULL DEFAULT '',
                    topics_json TEXT NOT NULL DEFAULT '[]',
                    people_json TEXT NOT NULL DEFAULT '[]',
                    loop_key TEXT NOT NULL DEFAULT '',
                    insight TEXT,
                    suggested_action TEXT,
                    room_id TEXT,
                    parent_id TEXT
                );

                CREATE INDEX IF NOT EXISTS idx_mind_entries_timestamp
                ON mind_entries(timestamp);

                CREATE INDEX IF NOT EXISTS idx_mind_entries_parent
                ON mind_entries(parent_id);

                CREATE TABLE IF NOT EXISTS rooms (
                    id TEXT PRIMARY KEY,
                    title TEXT NOT NULL,
                    created_at TEXT NOT NULL
                );

                CREATE TABLE IF NOT EXISTS app_settings (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                );
                """
            )
            conn.commit()

    def insert_entry(self, entry: MindEntry) -> str:
        with self._lock, self._connection() as conn:
            conn.execute(
                f"INSERT INTO mind_entries({_ENTRY_COLUMNS}) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                _entry_params(entry),
            )
            conn.commit()
        return entry.id

    def update_entry(self, entry_id: str, **changes) -> MindEntry:
        unknown = set(changes) - set(EDITABLE_FIELDS)
        if unknown:
            raise ValueError(f"Fields cannot be edited: {', '.join(sorted(unknown))}")
        current = self.get_entry(entry_id)
        if current is None:
            raise ValueError(f"No entry with id {entry_id}")
        if not changes:
            return current

        assignments = ", ".join(f"{name} = ?" for name in changes)
        values = [int(v) if name == "emotion_intensity" else v for name, v in changes.items()]
        with self._lock, self._connection() as conn:
            conn.execute(
                f"UPDATE mind_entries SET {assignments} WHERE id = ?",
                (*values, entry_id),
            )
            conn.commit()
        updated = self.get_entry(entry_id)
        if updated is None:
            raise ValueError(f"No entry with id {entry_id}")
        return updated

    def delete_entry(self, entry_id: str) -> bool:
        with self._lock, self._connection() as conn:
            cursor = conn.execute("DELETE FROM mind_entries WHERE id = ?", (entry_id,))
            conn.commit()
            return cursor.rowcount > 0

    def get_entry(self, entry_id: str) -> MindEntry | None:
        with self._lock, self._connection() as conn:
            row = conn.execute(
                f"SELECT {_ENTRY_COLUMNS} FROM mind_entries WHERE id = ?",
                (entry_id,),
            ).fetchone()
        return self._row_to_entry(row) if row is not None else None

    def list_entries(self, room_id: str | None = None) -> list[MindEntry]:
        query = f"SELECT {_ENTRY_COLUMNS} FROM mind_entries"
        params: tuple = ()
        if room_id is not None:
            query += " WHERE room_id = ?"
            params = (room_id,)
        query += " ORDER BY rowid ASC"
        with self._lock, self._connection() as conn:
            rows = conn.execute(query, params).fetchall()
        return _chronological(self._row_to_entry(row) for row in rows)

    def list_children(self, parent_id: str) -> list[MindEntry]:
        with self._lock, self._connection() as conn:
            rows = conn.execute(
                f"SELECT {_ENTRY_COLUMNS} FROM mind_entries WHERE parent_id = ? ORDER BY rowid ASC",
                (parent_id,),
            ).fetchall()
        return _chronological(self._row_to_entry(row) for row in rows)

    def insert_room(self, room: Room) -> str:
        with self._lock, self._connection() as conn:
            conn.execute(
                "INSERT INTO rooms(id, title, created_at) VALUES (?, ?, ?)",
                (room.id, room.title, room.created_at.isoformat()),
            )
            conn.commit()
        return room.id

    def list_rooms(self) -> list[Room]:
        with self._lock, self._connection() as conn:
            rows = conn.execute(
                "SELECT id, title, created_at FROM rooms ORDER BY created_at DESC"
            ).fetchall()
        return [
            Room(id=str(row["id"]), title=str(row["title"]), created_at=datetime.fromisoformat(row["created_at"]))
            for row in rows
        ]

    def get_setting(self, key: str, default: str | None = None) -> str | None:
        with self._lock, self._connection() as conn:
            row = conn.execute(
                "SELECT value FROM app_settings WHERE key = ?",
                (key,),
            ).fetchone()
        if row is None:
            return default
        return str(row["value"])

    def get_setting_bool(self, key: str, default: bool) -> bool:
        value = self.get_setting(key)
        if value is None:
            return default
        return value == "1"

    def set_setting(self, key: str, value: str) -> None:
        with self._lock, self._connection() as conn:
            conn.execute(
                """
                INSERT INTO app_settings(key, value)
                VALUES(?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value
                """,
                (key, value),
            )
            conn.commit()

    @staticmethod
    def _row_to_entry(row: sqlite3.Row) -> MindEntry:
        return MindEntry(
            id=str(row["id"]),
            timestamp=datetime.fromisoformat(row["timestamp"]),
            raw_transcript=str(row["raw_transcript"]),
            title=str(row["title"]),
            summary=str(row["summary"]),
            primary_emotion=str(row["primary_emotion"]),
            emotion_intensity=int(row["emotion_intensity"]),
            growth_area=str(row["growth_area"]),
            entry_type=str(row["entry_type"]),
            topics=_decode_list(row["topics_json"]),
            people=_decode_list(row["people_json"]),
            loop_key=str(row["loop_key"]),
            insight=row["insight"],
            suggested_action=row["suggested_action"],
            room_id=row["room_id"],
            parent_id=row["parent_id"],
        )


def _entry_params(entry: MindEntry) -> tuple:
    return (
        entry.id,
        entry.timestamp.isoformat(),
        entry.raw_transcript,
        entry.title,
        entry.summary,
        entry.primary_emotion,
        int(entry.emotion_intensity),
        entry.growth_area,
        entry.entry_type,
        json.dumps(list(entry.topics)),
        json.dumps(list(entry.people)),
        entry.loop_key,
        entry.insight,
        entry.suggested_action,
        entry.room_id,
        entry.parent_id,
    )


def _chronological(entries: Iterable[MindEntry]) -> list[MindEntry]:
    # Stored timestamps keep their UTC offset, so text order is not time order.
    return sorted(entries, key=lambda entry: local_timestamp(entry.timestamp))


def _decode_list(raw: str | None) -> tuple[str, ...]:
    try:
        parsed = json.loads(raw or "[]")
    except json.JSONDecodeError:
        return ()
    if not isinstance(parsed, list):
        return ()
    return tuple(str(item) for item in parsed)
