"""Keeps the single summary message of a week in step with its record."""

from __future__ import annotations

import logging

from .db import Database
from .models import MessageHandle
from .slack_client import MessageNotFoundError, SlackClient

logger = logging.getLogger(__name__)


class SummarySync:
    """Creates, updates, or recreates the summary message for a week.

    Only a ``message_not_found`` failure on update triggers recreation; every
    other platform error propagates to the caller untouched.
    """

    def __init__(self, database: Database, client: SlackClient, channel_id: str) -> None:
        self.database = database
        self.client = client
        self.channel_id = channel_id

    async def sync_summary(self, week_id: str, text: str) -> MessageHandle:
        handle = self.database.get_handle(week_id)
        if handle is None:
            return await self._create(week_id, text)
        try:
            await self.client.update_message(handle, text)
        except MessageNotFoundError:
            logger.warning("Summary message %s for %s is gone; posting a new one", handle.ts, week_id)
            return await self._create(week_id, text)
        return handle

    async def _create(self, week_id: str, text: str) -> MessageHandle:
        handle = await self.client.post_message(self.channel_id, text)
        self.database.put_handle(week_id, handle)
        logger.info("Posted summary message %s for %s", handle.ts, week_id)
        return handle


__all__ = ["SummarySync"]
