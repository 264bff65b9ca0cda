"""HTTP client for interacting with Slack Web API."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import httpx

from .errors import PlatformCallFailed
from .models import MessageHandle

SLACK_API_BASE = "https://slack.com/api"


class SlackApiError(PlatformCallFailed):
    """Raised when Slack returns an error response."""

    def __init__(self, method: str, error: str) -> None:
        super().__init__(f"Slack API error for {method}: {error}")
        self.method = method
        self.error = error


class MessageNotFoundError(SlackApiError):
    """Raised when ``chat.update`` targets a message that no longer exists."""


class SlackClient:
    """Async wrapper around the Slack Web API endpoints used by the challenge bot."""

    def __init__(
        self,
        token: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=SLACK_API_BASE,
            headers={"Authorization": f"Bearer {token}"},
            timeout=httpx.Timeout(timeout, read=timeout * 3),
            transport=transport,
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def _request(
        self,
        http_method: str,
        method: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        payload: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        try:
            response = await self._client.request(http_method, method, params=params, json=payload)
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise SlackApiError(method, f"transport: {exc}") from exc
        if not data.get("ok"):
            error = data.get("error", "unknown_error")
            if error == "message_not_found":
                raise MessageNotFoundError(method, error)
            raise SlackApiError(method, error)
        return data

    async def list_channel_members(self, channel_id: str) -> List[str]:
        members: List[str] = []
        cursor: Optional[str] = None
        while True:
            params: Dict[str, Any] = {"channel": channel_id, "limit": 200}
            if cursor:
                params["cursor"] = cursor
            data = await self._request("GET", "conversations.members", params=params)
            members.extend(data.get("members", []))
            cursor = data.get("response_metadata", {}).get("next_cursor")
            if not cursor:
                break
        return members

    async def get_display_name(self, user_id: str) -> str:
        data = await self._request("GET", "users.info", params={"user": user_id})
        user = data.get("user", {})
        profile = user.get("profile", {})
        return (
            user.get("real_name")
            or profile.get("real_name")
            or profile.get("display_name")
            or user.get("name")
            or user_id
        )

    async def post_message(
        self, channel_id: str, text: str, *, thread_ts: Optional[str] = None
    ) -> MessageHandle:
        payload: Dict[str, Any] = {"channel": channel_id, "text": text}
        if thread_ts:
            payload["thread_ts"] = thread_ts
        data = await self._request("POST", "chat.postMessage", payload=payload)
        return MessageHandle(channel=data.get("channel", channel_id), ts=data["ts"])

    async def update_message(self, handle: MessageHandle, text: str) -> None:
        await self._request(
            "POST",
            "chat.update",
            payload={"channel": handle.channel, "ts": handle.ts, "text": text},
        )

    async def add_reaction(self, channel_id: str, ts: str, name: str) -> None:
        try:
            await self._request(
                "POST",
                "reactions.add",
                payload={"channel": channel_id, "timestamp": ts, "name": name},
            )
        except SlackApiError as exc:
            if exc.error != "already_reacted":
                raise


__all__ = ["SlackClient", "SlackApiError", "MessageNotFoundError"]
