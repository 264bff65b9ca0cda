"""Exception hierarchy for Slack Challenge."""

from __future__ import annotations


class ChallengeError(Exception):
    """Base class for every error raised by the challenge core."""


class ChallengeNotStarted(ChallengeError):
    """Raised when the requested week has no attendance record."""

    def __init__(self, week_id: str) -> None:
        super().__init__(f"no attendance record for {week_id}")
        self.week_id = week_id


class UnknownParticipant(ChallengeError):
    """Raised when a name is not part of the week's frozen participant set."""

    def __init__(self, week_id: str, name: str) -> None:
        super().__init__(f"{name!r} is not a participant of {week_id}")
        self.week_id = week_id
        self.name = name


class SubmissionClosed(ChallengeError):
    """Raised when a completion arrives at or after the daily cutoff."""


class NotAChallengeDay(SubmissionClosed):
    """Raised when the day has no recordable slot (weekend, out of range)."""


class MissingQualifyingContent(ChallengeError):
    """Raised when a submission does not contain a thread link."""


class StoreUnavailable(ChallengeError):
    """Raised when the record store cannot be read or written."""


class PlatformCallFailed(ChallengeError):
    """Raised when a chat platform call fails."""


__all__ = [
    "ChallengeError",
    "ChallengeNotStarted",
    "UnknownParticipant",
    "SubmissionClosed",
    "NotAChallengeDay",
    "MissingQualifyingContent",
    "StoreUnavailable",
    "PlatformCallFailed",
]
