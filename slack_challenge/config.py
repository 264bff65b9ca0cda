"""Configuration helpers for Slack Challenge."""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import time
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

WEEK_LENGTHS = (5, 7)
TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass(slots=True)
class Settings:
    """Runtime configuration values loaded from environment variables."""

    slack_bot_token: str
    channel_id: str
    api_key: str
    database_path: Path
    timezone: str = "Asia/Seoul"
    week_length: int = 5
    cutoff: time = time(23, 59)
    post_time: time = time(0, 1)
    backfill: bool = False
    reaction: str = "heart"
    bot_user_id: str = ""
    signing_secret: Optional[str] = None
    operator_channel_id: Optional[str] = None

    @property
    def zone(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


def parse_clock_time(value: str, name: str) -> time:
    """Parse an ``HH:MM`` value, naming the variable on failure."""

    try:
        hour, minute = value.strip().split(":")
        return time(int(hour), int(minute))
    except ValueError as exc:
        raise RuntimeError(f"{name} must be formatted as HH:MM, got {value!r}") from exc


def load_settings(env_file: str | None = None) -> Settings:
    """Load settings from the environment, optionally from a specific file."""

    if env_file:
        load_dotenv(env_file)
    else:
        load_dotenv()

    db_path = Path(os.getenv("DATABASE_PATH", "slack_challenge.db")).expanduser()

    slack_token = os.getenv("SLACK_BOT_TOKEN")
    channel_id = os.getenv("CHANNEL_ID")
    api_key = os.getenv("API_KEY")

    if not slack_token:
        raise RuntimeError("SLACK_BOT_TOKEN must be configured")
    if not channel_id:
        raise RuntimeError("CHANNEL_ID must be configured")
    if not api_key:
        raise RuntimeError("API_KEY must be configured")

    timezone = os.getenv("CHALLENGE_TIMEZONE", "Asia/Seoul")
    try:
        ZoneInfo(timezone)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise RuntimeError(f"CHALLENGE_TIMEZONE is not a known zone: {timezone!r}") from exc

    raw_length = os.getenv("CHALLENGE_WEEK_LENGTH", "5")
    if not raw_length.isdigit() or int(raw_length) not in WEEK_LENGTHS:
        raise RuntimeError("CHALLENGE_WEEK_LENGTH must be 5 or 7")

    return Settings(
        slack_bot_token=slack_token,
        channel_id=channel_id,
        api_key=api_key,
        database_path=db_path,
        timezone=timezone,
        week_length=int(raw_length),
        cutoff=parse_clock_time(os.getenv("CHALLENGE_CUTOFF", "23:59"), "CHALLENGE_CUTOFF"),
        post_time=parse_clock_time(os.getenv("CHALLENGE_POST_TIME", "00:01"), "CHALLENGE_POST_TIME"),
        backfill=os.getenv("CHALLENGE_BACKFILL", "false").strip().lower() in TRUE_VALUES,
        reaction=os.getenv("CHALLENGE_REACTION", "heart"),
        bot_user_id=os.getenv("BOT_USER_ID", ""),
        signing_secret=os.getenv("SLACK_SIGNING_SECRET") or None,
        operator_channel_id=os.getenv("OPERATOR_CHANNEL_ID") or None,
    )


__all__ = ["Settings", "load_settings", "parse_clock_time", "WEEK_LENGTHS"]
