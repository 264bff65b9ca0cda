"""Recognition of submission links and text commands in Slack messages."""

from __future__ import annotations

import re
from enum import Enum
from typing import Optional

LINK_PATTERN = re.compile(r"https?://\S+")
MENTION_PATTERN = re.compile(r"<@[A-Z0-9]+>")


class Command(str, Enum):
    START = "start"
    UPDATE = "update"
    DELETE = "delete"


COMMAND_PHRASES = {
    "챌린지 시작": Command.START,
    "챌린지 업데이트": Command.UPDATE,
    "챌린지 삭제": Command.DELETE,
}


def has_qualifying_link(text: str) -> bool:
    """Return whether a submission carries a thread link."""

    return bool(LINK_PATTERN.search(text or ""))


def parse_command(text: str) -> Optional[Command]:
    """Map a message that is exactly a command phrase, ignoring mentions and whitespace."""

    normalized = " ".join(MENTION_PATTERN.sub(" ", text or "").split())
    return COMMAND_PHRASES.get(normalized)


__all__ = ["Command", "COMMAND_PHRASES", "LINK_PATTERN", "has_qualifying_link", "parse_command"]
