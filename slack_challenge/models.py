"""Dataclasses representing Slack Challenge domain models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional


class AttendanceStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    WEEKEND = "weekend"


class CompletionOutcome(str, Enum):
    COMPLETED = "completed"
    ALREADY_COMPLETED = "already_completed"


@dataclass(slots=True)
class WeekInfo:
    """Calendar facts about one instant in the challenge time zone."""

    week_id: str
    month: int
    week_of_month: int
    weekday_index: int
    weekday_name: str
    local: datetime


@dataclass(slots=True)
class WeekRecord:
    """Participant name to attendance row, in membership snapshot order."""

    week_id: str
    rows: Dict[str, List[AttendanceStatus]] = field(default_factory=dict)

    @property
    def participants(self) -> List[str]:
        return list(self.rows)

    def copy(self) -> "WeekRecord":
        return WeekRecord(
            week_id=self.week_id,
            rows={name: list(row) for name, row in self.rows.items()},
        )

    def to_document(self) -> List[Dict[str, object]]:
        return [
            {"name": name, "row": [status.value for status in row]}
            for name, row in self.rows.items()
        ]

    @classmethod
    def from_document(cls, week_id: str, document: List[Dict[str, object]]) -> "WeekRecord":
        rows: Dict[str, List[AttendanceStatus]] = {}
        for entry in document:
            rows[str(entry["name"])] = [AttendanceStatus(value) for value in entry["row"]]
        return cls(week_id=week_id, rows=rows)


@dataclass(slots=True, frozen=True)
class MessageHandle:
    channel: str
    ts: str


@dataclass(slots=True)
class CompletionResult:
    outcome: CompletionOutcome
    slot: int


@dataclass(slots=True)
class Submission:
    """A decoded inbound chat event claiming today's completion."""

    user_id: str
    text: str
    ts: str
    channel: str
    thread_ts: Optional[str] = None

    @property
    def timestamp(self) -> float:
        return float(self.ts)


__all__ = [
    "AttendanceStatus",
    "CompletionOutcome",
    "CompletionResult",
    "MessageHandle",
    "Submission",
    "WeekInfo",
    "WeekRecord",
]
