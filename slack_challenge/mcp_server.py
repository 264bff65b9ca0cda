"""MCP server exposing Slack Challenge admin tools."""

from __future__ import annotations

from typing import Optional

from mcp.server.fastmcp import FastMCP

from .config import load_settings
from .db import Database
from .service import ChallengeService
from .slack_client import SlackClient

mcp = FastMCP("slack-challenge")

_service: Optional[ChallengeService] = None


def get_service() -> ChallengeService:
    global _service
    if _service is None:
        settings = load_settings()
        _service = ChallengeService(
            settings, Database(settings.database_path), SlackClient(settings.slack_bot_token)
        )
    return _service


@mcp.tool()
async def get_current_week() -> dict:
    """Return this week's attendance rows, rendered summary and message handle."""

    return get_service().current_week()


@mcp.tool()
async def post_summary() -> dict:
    """Create or update this week's summary message in the challenge channel."""

    service = get_service()
    handle = await service.publish_summary()
    return {"channel": handle.channel, "ts": handle.ts}


@mcp.tool()
async def delete_week() -> dict:
    """Delete this week's attendance record and forget its summary message."""

    return {"deleted": await get_service().delete_week()}


if __name__ == "__main__":  # pragma: no cover
    mcp.run()


__all__ = ["mcp", "get_service", "get_current_week", "post_summary", "delete_week"]
