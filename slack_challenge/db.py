"""SQLite persistence layer for Slack Challenge."""

from __future__ import annotations

import json
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

from .errors import StoreUnavailable
from .models import MessageHandle

Connection = sqlite3.Connection


class Database:
    """Key/document store with two key spaces, both keyed by week id."""

    def __init__(self, path: Path) -> None:
        self._path = path
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._initialize()

    @contextmanager
    def connect(self) -> Iterator[Connection]:
        try:
            conn = sqlite3.connect(self._path)
        except sqlite3.Error as exc:
            raise StoreUnavailable(f"cannot open {self._path}: {exc}") from exc
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        except sqlite3.Error as exc:
            raise StoreUnavailable(str(exc)) from exc
        finally:
            conn.close()

    def _initialize(self) -> None:
        with self.connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                CREATE TABLE IF NOT EXISTS attendance_records (
                    week_id TEXT PRIMARY KEY,
                    records TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
                """
            )
            cursor.execute(
                """
                CREATE TABLE IF NOT EXISTS summary_messages (
                    week_id TEXT PRIMARY KEY,
                    channel TEXT NOT NULL,
                    ts TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
                """
            )
            conn.commit()

    # region Attendance records
    def get_record(self, week_id: str) -> Optional[List[Dict[str, Any]]]:
        with self.connect() as conn:
            cursor = conn.execute(
                "SELECT records FROM attendance_records WHERE week_id = ?",
                (week_id,),
            )
            row = cursor.fetchone()
        return json.loads(row["records"]) if row else None

    def put_record(self, week_id: str, document: List[Dict[str, Any]]) -> None:
        with self.connect() as conn:
            conn.execute(
                """
                INSERT INTO attendance_records (week_id, records, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT(week_id) DO UPDATE SET
                    records=excluded.records,
                    updated_at=excluded.updated_at
                """,
                (week_id, json.dumps(document, ensure_ascii=False), _utcnow()),
            )
            conn.commit()

    def delete_record(self, week_id: str) -> bool:
        with self.connect() as conn:
            cursor = conn.execute(
                "DELETE FROM attendance_records WHERE week_id = ?", (week_id,)
            )
            conn.commit()
            return cursor.rowcount > 0

    # endregion

    # region Summary message handles
    def get_handle(self, week_id: str) -> Optional[MessageHandle]:
        with self.connect() as conn:
            cursor = conn.execute(
                "SELECT channel, ts FROM summary_messages WHERE week_id = ?",
                (week_id,),
            )
            row = cursor.fetchone()
        return MessageHandle(channel=row["channel"], ts=row["ts"]) if row else None

    def put_handle(self, week_id: str, handle: MessageHandle) -> None:
        with self.connect() as conn:
            conn.execute(
                """
                INSERT INTO summary_messages (week_id, channel, ts, updated_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(week_id) DO UPDATE SET
                    channel=excluded.channel,
                    ts=excluded.ts,
                    updated_at=excluded.updated_at
                """,
                (week_id, handle.channel, handle.ts, _utcnow()),
            )
            conn.commit()

    def delete_handle(self, week_id: str) -> bool:
        with self.connect() as conn:
            cursor = conn.execute(
                "DELETE FROM summary_messages WHERE week_id = ?", (week_id,)
            )
            conn.commit()
            return cursor.rowcount > 0

    # endregion


def _utcnow() -> str:
    return datetime.now(timezone.utc).isoformat()


__all__ = ["Database"]
