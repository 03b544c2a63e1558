"""Quota window arithmetic for the AI assistant.

A user may ask ``question_limit`` questions per window. A window opens at
``window_start`` and expires ``reset_interval`` later; an expired window is
collapsed to a fresh one (count 0, start = now) before anything else is read.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from chitchat.schemas.assistant import QuotaRead, QuotaState

DEFAULT_QUESTION_LIMIT = 3
DEFAULT_RESET_INTERVAL = timedelta(hours=5)


def as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes for timezone-aware columns
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass(frozen=True)
class QuotaSnapshot:
    state: QuotaState
    questions_count: int
    window_started_at: datetime
    remaining: timedelta
    question_limit: int

    @property
    def can_ask(self) -> bool:
        return (
            self.state == QuotaState.ACTIVE_WINDOW
            and self.questions_count < self.question_limit
        )

    @property
    def remaining_questions(self) -> int:
        return max(0, self.question_limit - self.questions_count)

    @property
    def seconds_until_reset(self) -> int:
        # Rounded up so a window still open never reads as zero
        return math.ceil(self.remaining.total_seconds())

    def to_schema(self) -> QuotaRead:
        return QuotaRead(
            state=self.state,
            questions_count=self.questions_count,
            question_limit=self.question_limit,
            remaining_questions=self.remaining_questions,
            window_started_at=self.window_started_at,
            seconds_until_reset=self.seconds_until_reset,
        )


def evaluate_quota(
    questions_count: Optional[int],
    window_start: Optional[datetime],
    now: datetime,
    *,
    question_limit: int = DEFAULT_QUESTION_LIMIT,
    reset_interval: timedelta = DEFAULT_RESET_INTERVAL,
) -> QuotaSnapshot:
    """Classifies a stored counter without changing it."""
    now = as_utc(now)
    if questions_count is None or window_start is None:
        return QuotaSnapshot(
            state=QuotaState.NO_RECORD,
            questions_count=0,
            window_started_at=now,
            remaining=reset_interval,
            question_limit=question_limit,
        )

    window_start = as_utc(window_start)
    elapsed = now - window_start
    if elapsed >= reset_interval:
        return QuotaSnapshot(
            state=QuotaState.EXPIRED_PENDING_RESET,
            questions_count=questions_count,
            window_started_at=window_start,
            remaining=timedelta(0),
            question_limit=question_limit,
        )

    # Clock skew can put window_start in the future; never report more than a full window
    remaining = min(reset_interval - elapsed, reset_interval)
    count = min(max(questions_count, 0), question_limit)
    state = QuotaState.EXHAUSTED if count >= question_limit else QuotaState.ACTIVE_WINDOW
    return QuotaSnapshot(
        state=state,
        questions_count=count,
        window_started_at=window_start,
        remaining=remaining,
        question_limit=question_limit,
    )


def fresh_window(
    now: datetime,
    *,
    question_limit: int = DEFAULT_QUESTION_LIMIT,
    reset_interval: timedelta = DEFAULT_RESET_INTERVAL,
) -> QuotaSnapshot:
    return QuotaSnapshot(
        state=QuotaState.ACTIVE_WINDOW,
        questions_count=0,
        window_started_at=as_utc(now),
        remaining=reset_interval,
        question_limit=question_limit,
    )


def format_time_left(seconds: float) -> str:
    """Renders a countdown as HH:MM:SS."""
    total = max(0, int(seconds))
    hours, rest = divmod(total, 3600)
    minutes, secs = divmod(rest, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"
