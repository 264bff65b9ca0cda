"""Core orchestration logic for Slack Challenge."""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, List, Optional

from . import clock
from .attendance import AttendanceBook
from .commands import has_qualifying_link
from .config import Settings
from .db import Database
from .errors import (
    ChallengeNotStarted,
    MissingQualifyingContent,
    NotAChallengeDay,
    PlatformCallFailed,
    SubmissionClosed,
    UnknownParticipant,
)
from .models import CompletionOutcome, CompletionResult, MessageHandle, Submission, WeekInfo, WeekRecord
from .render import render_summary
from .slack_client import SlackClient
from .sync import SummarySync

logger = logging.getLogger(__name__)

MSG_CLOSED = "오늘 챌린지 인증 마감 되었습니다."
MSG_NOT_A_CHALLENGE_DAY = "오늘은 챌린지 인증일이 아닙니다."
MSG_MISSING_LINK = "인증이 실패했습니다. 쓰레드 링크를 포함해야 합니다."
MSG_NOT_STARTED = "챌린지가 아직 시작되지 않았습니다. '챌린지 시작'을 입력하세요."
MSG_UNKNOWN_PARTICIPANT = "참가자 이름을 확인해 주세요."
MSG_ALREADY_COMPLETED = "오늘 인증을 이미 완료했습니다."
MSG_NO_RECORD = "현재 주차의 챌린지 기록이 없습니다."
MSG_DELETED = "현재 주차의 챌린지 기록이 삭제되었습니다."
MSG_NOTHING_TO_DELETE = "삭제할 챌린지 기록이 없습니다."


class ChallengeService:
    """High-level service shared by the scheduler, Slack events, REST and MCP."""

    def __init__(
        self,
        settings: Settings,
        database: Database,
        client: SlackClient,
        now: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.settings = settings
        self.database = database
        self.client = client
        self.zone = settings.zone
        self.book = AttendanceBook(database, settings.week_length, backfill=settings.backfill)
        self.summary = SummarySync(database, client, settings.channel_id)
        self._now = now or (lambda: clock.now(self.zone))
        self._locks: Dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    def week_info(self, when: Optional[datetime] = None) -> WeekInfo:
        return clock.resolve(when or self._now(), self.zone)

    def lock_for(self, week_id: str) -> asyncio.Lock:
        """Return the lock of ``week_id``, dropping idle locks of other weeks."""

        for stale in [key for key, lock in self._locks.items() if key != week_id and not lock.locked()]:
            del self._locks[stale]
        return self._locks[week_id]

    # region Week lifecycle
    async def snapshot_participants(self) -> List[str]:
        member_ids = await self.client.list_channel_members(self.settings.channel_id)
        names: List[str] = []
        for user_id in member_ids:
            if user_id == self.settings.bot_user_id:
                continue
            names.append(await self.client.get_display_name(user_id))
        return names

    async def start_week(self, when: Optional[datetime] = None) -> WeekRecord:
        """Reset the week with a fresh membership snapshot and post its summary."""

        info = self.week_info(when)
        names = await self.snapshot_participants()
        async with self.lock_for(info.week_id):
            record = self.book.initialize_week(info.week_id, names)
            await self.summary.sync_summary(info.week_id, render_summary(info, record))
        return record

    async def open_week(self, when: Optional[datetime] = None) -> WeekRecord:
        """Start the week only if it has no record yet.

        A running week keeps its progress; its summary is refreshed instead.
        """

        info = self.week_info(when)
        async with self.lock_for(info.week_id):
            record = self.book.load_week(info.week_id)
            if record is None:
                record = self.book.initialize_week(info.week_id, await self.snapshot_participants())
            else:
                logger.info("%s is already running; refreshing its summary", info.week_id)
            await self.summary.sync_summary(info.week_id, render_summary(info, record))
        return record

    async def post_daily(self, when: Optional[datetime] = None) -> MessageHandle:
        """Continue the current week, initializing it if Monday's run was missed."""

        info = self.week_info(when)
        async with self.lock_for(info.week_id):
            record = self.book.load_week(info.week_id)
            if record is None:
                logger.info("No record for %s yet; initializing it", info.week_id)
                record = self.book.initialize_week(info.week_id, await self.snapshot_participants())
            return await self.summary.sync_summary(info.week_id, render_summary(info, record))

    async def publish_summary(self, when: Optional[datetime] = None) -> MessageHandle:
        info = self.week_info(when)
        async with self.lock_for(info.week_id):
            record = self.book.load_week(info.week_id)
            if record is None:
                raise ChallengeNotStarted(info.week_id)
            return await self.summary.sync_summary(info.week_id, render_summary(info, record))

    async def delete_week(self, when: Optional[datetime] = None) -> bool:
        info = self.week_info(when)
        async with self.lock_for(info.week_id):
            return self.book.delete_week(info.week_id)

    def current_week(self, when: Optional[datetime] = None) -> Dict[str, Any]:
        info = self.week_info(when)
        record = self.book.load_week(info.week_id)
        handle = self.database.get_handle(info.week_id)
        return {
            "week_id": info.week_id,
            "started": record is not None,
            "records": record.to_document() if record else [],
            "summary": render_summary(info, record) if record else None,
            "message": {"channel": handle.channel, "ts": handle.ts} if handle else None,
        }

    # endregion

    # region Submissions
    async def submit(self, submission: Submission) -> CompletionResult:
        """Apply one qualifying event; raises a ``ChallengeError`` on rejection."""

        info = clock.resolve(submission.timestamp, self.zone)
        if info.local.time() >= self.settings.cutoff:
            raise SubmissionClosed(f"{info.week_id} day {info.weekday_index} closed at {self.settings.cutoff}")
        if not has_qualifying_link(submission.text):
            raise MissingQualifyingContent(submission.ts)
        slot = clock.slot_for(info.weekday_index, self.settings.week_length)
        if slot is None:
            raise NotAChallengeDay(f"{info.weekday_name} is outside the challenge week")

        name = await self.client.get_display_name(submission.user_id)
        async with self.lock_for(info.week_id):
            result, updated = self.book.plan_completion(info.week_id, name, slot)
            if updated is None:
                return result
            # the record is saved only once the summary shows it
            await self.summary.sync_summary(info.week_id, render_summary(info, updated))
            self.book.save_week(updated)
            logger.info("Marked %s slot %d completed for %s", info.week_id, result.slot, name)
        await self.client.add_reaction(submission.channel, submission.ts, self.settings.reaction)
        return result

    async def handle_submission(self, submission: Submission) -> Optional[CompletionResult]:
        """Run :meth:`submit` and answer rejections in the submission's thread."""

        reply: Optional[str] = None
        result: Optional[CompletionResult] = None
        try:
            result = await self.submit(submission)
        except NotAChallengeDay:
            reply = MSG_NOT_A_CHALLENGE_DAY
        except SubmissionClosed:
            reply = MSG_CLOSED
        except MissingQualifyingContent:
            reply = MSG_MISSING_LINK
        except ChallengeNotStarted:
            reply = MSG_NOT_STARTED
        except UnknownParticipant as exc:
            logger.info("Rejected submission from %s: %s", submission.user_id, exc)
            reply = MSG_UNKNOWN_PARTICIPANT
        else:
            if result.outcome is CompletionOutcome.ALREADY_COMPLETED:
                reply = MSG_ALREADY_COMPLETED

        if reply:
            await self.client.post_message(
                submission.channel, reply, thread_ts=submission.thread_ts or submission.ts
            )
        return result

    # endregion

    # region Operator reporting
    async def notify_operator(self, operation: str, exc: BaseException) -> None:
        channel = self.settings.operator_channel_id
        if not channel:
            return
        try:
            await self.client.post_message(channel, f":warning: {operation} failed: {exc}")
        except PlatformCallFailed as alert_exc:
            logger.error("Could not alert operator channel %s: %s", channel, alert_exc)

    async def guarded(self, operation: str, func: Callable[..., Awaitable[Any]], *args: Any) -> Any:
        """Run one triggered operation, logging and reporting any failure."""

        try:
            return await func(*args)
        except Exception as exc:  # noqa: BLE001
            logger.exception("%s failed", operation)
            await self.notify_operator(operation, exc)
            return None

    # endregion


__all__ = [
    "ChallengeService",
    "MSG_ALREADY_COMPLETED",
    "MSG_CLOSED",
    "MSG_DELETED",
    "MSG_MISSING_LINK",
    "MSG_NOT_A_CHALLENGE_DAY",
    "MSG_NOT_STARTED",
    "MSG_NOTHING_TO_DELETE",
    "MSG_NO_RECORD",
    "MSG_UNKNOWN_PARTICIPANT",
]
