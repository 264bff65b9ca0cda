"""Daily trigger that starts or continues the weekly challenge."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Callable, Optional
from zoneinfo import ZoneInfo

from . import clock
from .service import ChallengeService

logger = logging.getLogger(__name__)

FIRST_BUSINESS_DAY = 0


class TriggerAction(str, Enum):
    START_WEEK = "start_week"
    CONTINUE = "continue"
    IDLE = "idle"


def decide(weekday_index: int, week_length: int) -> TriggerAction:
    """Pick what the daily firing does on a given weekday (Monday = 0)."""

    if weekday_index == FIRST_BUSINESS_DAY:
        return TriggerAction.START_WEEK
    if clock.slot_for(weekday_index, week_length) is None:
        return TriggerAction.IDLE
    return TriggerAction.CONTINUE


class DailyTrigger:
    """Fires once a day at ``settings.post_time`` in the challenge zone.

    The loop is an asyncio task; :meth:`fire` holds the weekday branching so it
    can be exercised without waiting on a timer.
    """

    def __init__(
        self,
        service: ChallengeService,
        *,
        now: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.service = service
        self.settings = service.settings
        self.zone: ZoneInfo = service.zone
        self._now = now or (lambda: clock.now(self.zone))
        self._task: Optional[asyncio.Task] = None

    def decide(self, when: datetime) -> TriggerAction:
        local = clock.to_local(when, self.zone)
        return decide(local.weekday(), self.settings.week_length)

    def next_fire_at(self, when: datetime) -> datetime:
        """Return the first firing time strictly after ``when``."""

        local = clock.to_local(when, self.zone)
        candidate = datetime.combine(local.date(), self.settings.post_time, tzinfo=self.zone)
        if candidate <= local:
            candidate = datetime.combine(
                local.date() + timedelta(days=1), self.settings.post_time, tzinfo=self.zone
            )
        return candidate

    async def fire(self, when: Optional[datetime] = None) -> TriggerAction:
        when = when or self._now()
        action = self.decide(when)
        logger.info("Daily trigger at %s: %s", when.isoformat(), action.value)
        if action is TriggerAction.START_WEEK:
            await self.service.start_week(when)
        elif action is TriggerAction.CONTINUE:
            await self.service.post_daily(when)
        return action

    async def start_week_now(self, when: Optional[datetime] = None) -> None:
        """Manual start from the start command. A running week is left as it is."""

        await self.service.open_week(when or self._now())

    # region Loop
    def start(self) -> None:
        if self._task and not self._task.done():
            return
        self._task = asyncio.create_task(self._run())
        logger.info(
            "Daily trigger started: %s %s, week length %d",
            self.settings.post_time.strftime("%H:%M"),
            self.settings.timezone,
            self.settings.week_length,
        )

    async def stop(self) -> None:
        if not self._task:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Daily trigger stopped")

    async def _run(self) -> None:
        fired: Optional[datetime] = None
        while True:
            now = self._now()
            # the wall clock may still read before the last target after waking
            target = self.next_fire_at(now if fired is None else max(now, fired))
            delay = target.astimezone(timezone.utc) - now.astimezone(timezone.utc)
            await asyncio.sleep(max(delay.total_seconds(), 0))
            await self.service.guarded("daily trigger", self.fire, target)
            fired = target

    # endregion


__all__ = ["DailyTrigger", "TriggerAction", "decide"]
