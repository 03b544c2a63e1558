import enum
from datetime import datetime

from pydantic import BaseModel, Field, field_validator


class QuotaState(str, enum.Enum):
    NO_RECORD = "no-record"
    ACTIVE_WINDOW = "active-window"
    EXHAUSTED = "exhausted"
    EXPIRED_PENDING_RESET = "expired-pending-reset"


class QuotaRead(BaseModel):
    state: QuotaState
    questions_count: int
    question_limit: int
    remaining_questions: int
    window_started_at: datetime
    seconds_until_reset: int


class QuestionCreate(BaseModel):
    text: str = Field(min_length=1, max_length=4000)

    @field_validator("text")
    @classmethod
    def reject_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Question cannot be blank")
        return value


class AnswerRead(BaseModel):
    answer: str
    quota: QuotaRead
