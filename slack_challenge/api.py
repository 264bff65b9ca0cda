"""FastAPI application receiving Slack events and exposing the admin REST API."""

from __future__ import annotations

import hashlib
import hmac
import json
import logging
import time
from collections import deque
from typing import Any, Deque, Dict, Optional

from fastapi import BackgroundTasks, Depends, FastAPI, Header, HTTPException, Request, status
from fastapi.responses import JSONResponse

from .commands import Command, parse_command
from .config import Settings, load_settings
from .db import Database
from .errors import ChallengeNotStarted, PlatformCallFailed, StoreUnavailable
from .models import Submission
from .scheduler import DailyTrigger
from .service import MSG_DELETED, MSG_NO_RECORD, MSG_NOTHING_TO_DELETE, ChallengeService
from .slack_client import SlackClient

logger = logging.getLogger(__name__)

SIGNATURE_MAX_AGE_SECONDS = 60 * 5
RECENT_EVENT_LIMIT = 500


def verify_slack_signature(
    signing_secret: str,
    body: bytes,
    timestamp: Optional[str],
    signature: Optional[str],
    now: Optional[float] = None,
) -> bool:
    """Check Slack's ``v0`` request signature and reject replayed requests."""

    if not timestamp or not signature:
        return False
    try:
        age = abs((now or time.time()) - int(timestamp))
    except ValueError:
        return False
    if age > SIGNATURE_MAX_AGE_SECONDS:
        return False
    base = b"v0:" + timestamp.encode() + b":" + body
    expected = "v0=" + hmac.new(signing_secret.encode(), base, hashlib.sha256).hexdigest()
    return hmac.compare_digest(expected, signature)


async def dispatch_command(
    service: ChallengeService, trigger: DailyTrigger, command: Command, channel: str
) -> None:
    if command is Command.START:
        await trigger.start_week_now()
    elif command is Command.UPDATE:
        try:
            await service.publish_summary()
        except ChallengeNotStarted:
            await service.client.post_message(channel, MSG_NO_RECORD)
    elif command is Command.DELETE:
        deleted = await service.delete_week()
        await service.client.post_message(channel, MSG_DELETED if deleted else MSG_NOTHING_TO_DELETE)


def create_app(
    settings: Optional[Settings] = None,
    client: Optional[SlackClient] = None,
) -> FastAPI:
    settings = settings or load_settings()
    database = Database(settings.database_path)
    slack_client = client or SlackClient(settings.slack_bot_token)
    service = ChallengeService(settings, database, slack_client)
    trigger = DailyTrigger(service)
    recent_events: Deque[str] = deque(maxlen=RECENT_EVENT_LIMIT)

    async def verify_api_key(x_api_key: str = Header(..., alias="X-API-Key")) -> None:
        if x_api_key != settings.api_key:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid api key")

    app = FastAPI(title="Slack Challenge API", version="1.0.0")
    app.state.service = service
    app.state.trigger = trigger

    @app.on_event("startup")
    async def startup_event() -> None:  # pragma: no cover - io bound
        trigger.start()

    @app.on_event("shutdown")
    async def shutdown_event() -> None:  # pragma: no cover - io bound
        await trigger.stop()
        await slack_client.close()

    @app.exception_handler(PlatformCallFailed)
    async def platform_error_handler(request: Request, exc: PlatformCallFailed) -> JSONResponse:
        return JSONResponse(status_code=status.HTTP_502_BAD_GATEWAY, content={"detail": str(exc)})

    @app.exception_handler(StoreUnavailable)
    async def store_error_handler(request: Request, exc: StoreUnavailable) -> JSONResponse:
        return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content={"detail": str(exc)})

    async def process_event(event: Dict[str, Any]) -> None:
        if event.get("bot_id") or event.get("subtype"):
            return
        channel = event.get("channel")
        if channel != settings.channel_id:
            return
        text = event.get("text", "")
        command = parse_command(text)
        if event.get("type") == "message":
            if command:
                await service.guarded(
                    f"command {command.value}", dispatch_command, service, trigger, command, channel
                )
        elif event.get("type") == "app_mention" and command is None:
            submission = Submission(
                user_id=event["user"],
                text=text,
                ts=event["ts"],
                channel=channel,
                thread_ts=event.get("thread_ts"),
            )
            await service.guarded("submission", service.handle_submission, submission)

    @app.get("/healthz")
    async def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    @app.post("/slack/events")
    async def slack_events(
        request: Request,
        background_tasks: BackgroundTasks,
        x_slack_request_timestamp: Optional[str] = Header(None),
        x_slack_signature: Optional[str] = Header(None),
        x_slack_retry_num: Optional[str] = Header(None),
    ) -> dict[str, object]:
        body = await request.body()
        if settings.signing_secret and not verify_slack_signature(
            settings.signing_secret, body, x_slack_request_timestamp, x_slack_signature
        ):
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid signature")
        try:
            payload = json.loads(body)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail="Invalid JSON payload") from exc

        if payload.get("type") == "url_verification":
            return {"challenge": payload.get("challenge", "")}
        if payload.get("type") != "event_callback":
            return {"ok": True}
        if x_slack_retry_num is not None:
            logger.warning("Ignoring Slack retry %s for %s", x_slack_retry_num, payload.get("event_id"))
            return {"ok": True}

        event_id = payload.get("event_id")
        if event_id:
            if event_id in recent_events:
                logger.warning("Ignoring duplicate event %s", event_id)
                return {"ok": True}
            recent_events.append(event_id)
        background_tasks.add_task(process_event, payload.get("event", {}))
        return {"ok": True}

    @app.get("/api/week", dependencies=[Depends(verify_api_key)])
    async def get_week() -> dict[str, object]:
        return service.current_week()

    @app.post("/api/summary", dependencies=[Depends(verify_api_key)])
    async def post_summary() -> dict[str, object]:
        try:
            handle = await service.publish_summary()
        except ChallengeNotStarted as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        return {"channel": handle.channel, "ts": handle.ts}

    @app.post("/api/week/start", dependencies=[Depends(verify_api_key)])
    async def start_week() -> dict[str, object]:
        await trigger.start_week_now()
        return service.current_week()

    @app.delete("/api/week", dependencies=[Depends(verify_api_key)])
    async def delete_week() -> dict[str, object]:
        return {"deleted": await service.delete_week()}

    return app


__all__ = ["create_app", "dispatch_command", "verify_slack_signature"]
