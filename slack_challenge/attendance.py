"""Weekly attendance state machine."""

from __future__ import annotations

import logging
from typing import Dict, Iterable, Optional, Tuple

from .db import Database
from .errors import ChallengeNotStarted, NotAChallengeDay, UnknownParticipant
from .models import AttendanceStatus, CompletionOutcome, CompletionResult, WeekRecord

logger = logging.getLogger(__name__)


def fresh_row(week_length: int) -> list[AttendanceStatus]:
    """Return a new row: business days pending, days 6 and 7 marked weekend."""

    return [
        AttendanceStatus.PENDING if slot < 5 else AttendanceStatus.WEEKEND
        for slot in range(week_length)
    ]


class AttendanceBook:
    """Owns the attendance records of each week and every transition on them.

    The database holds the durable copy. ``_records`` is only a cache: every
    operation starts with :meth:`load_week`, so a record written by another
    process (or before a restart) is always picked up.
    """

    def __init__(self, database: Database, week_length: int = 5, *, backfill: bool = False) -> None:
        self.database = database
        self.week_length = week_length
        self.backfill = backfill
        self._records: Dict[str, WeekRecord] = {}

    def initialize_week(
        self,
        week_id: str,
        participant_names: Iterable[str],
        week_length: Optional[int] = None,
    ) -> WeekRecord:
        length = week_length or self.week_length
        record = WeekRecord(week_id=week_id)
        for name in participant_names:
            if name in record.rows:
                logger.warning("Duplicate participant name %r in %s; keeping the first", name, week_id)
                continue
            record.rows[name] = fresh_row(length)
        self.database.put_record(week_id, record.to_document())
        self._records[week_id] = record
        logger.info("Initialized %s with %d participants", week_id, len(record.rows))
        return record.copy()

    def load_week(self, week_id: str) -> Optional[WeekRecord]:
        document = self.database.get_record(week_id)
        if document is None:
            self._records.pop(week_id, None)
            return None
        record = WeekRecord.from_document(week_id, document)
        self._records[week_id] = record
        return record.copy()

    def plan_completion(
        self, week_id: str, participant_name: str, day_slot: int
    ) -> Tuple[CompletionResult, Optional[WeekRecord]]:
        """Work out a completion without writing it.

        Returns the result and the updated record, or ``None`` in place of the
        record when nothing changes.
        """

        record = self.load_week(week_id)
        if record is None:
            raise ChallengeNotStarted(week_id)
        row = record.rows.get(participant_name)
        if row is None:
            raise UnknownParticipant(week_id, participant_name)
        if not 0 <= day_slot < len(row) or row[day_slot] is AttendanceStatus.WEEKEND:
            raise NotAChallengeDay(f"slot {day_slot} of {week_id} is not recordable")
        if row[day_slot] is AttendanceStatus.COMPLETED:
            return CompletionResult(CompletionOutcome.ALREADY_COMPLETED, day_slot), None

        target = day_slot
        if self.backfill:
            target = next(
                slot for slot in range(day_slot + 1) if row[slot] is AttendanceStatus.PENDING
            )
        row[target] = AttendanceStatus.COMPLETED
        return CompletionResult(CompletionOutcome.COMPLETED, target), record

    def save_week(self, record: WeekRecord) -> None:
        self.database.put_record(record.week_id, record.to_document())
        self._records[record.week_id] = record.copy()

    def record_completion(self, week_id: str, participant_name: str, day_slot: int) -> CompletionResult:
        result, updated = self.plan_completion(week_id, participant_name, day_slot)
        if updated is not None:
            self.save_week(updated)
            logger.info("Marked %s slot %d completed for %s", week_id, result.slot, participant_name)
        return result

    def delete_week(self, week_id: str) -> bool:
        deleted = self.database.delete_record(week_id)
        self.database.delete_handle(week_id)
        self._records.pop(week_id, None)
        if deleted:
            logger.info("Deleted attendance record for %s", week_id)
        return deleted


__all__ = ["AttendanceBook", "fresh_row"]
