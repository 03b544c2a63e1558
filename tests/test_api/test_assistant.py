from datetime import datetime, timedelta, timezone

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from test_helpers import FakeAssistant, get_limit

from chitchat.models import AIChatLimit, User

pytestmark = pytest.mark.asyncio

FIVE_HOURS_SECONDS = 5 * 3600


async def _store_limit(session_maker, user: User, count: int, started: datetime):
    async with session_maker() as session:
        session.add(
            AIChatLimit(user_id=user.id, questions_count=count, last_reset_at=started)
        )
        await session.commit()


async def test_first_activation_creates_a_fresh_window(
    authenticated_client: AsyncClient,
    db_test_session_manager: async_sessionmaker[AsyncSession],
    logged_in_user: User,
):
    response = await authenticated_client.get("/assistant/quota")
    assert response.status_code == 200
    data = response.json()
    assert data["state"] == "active-window"
    assert data["questions_count"] == 0
    assert data["remaining_questions"] == 3
    assert data["seconds_until_reset"] == FIVE_HOURS_SECONDS

    record = await get_limit(db_test_session_manager, logged_in_user)
    assert record is not None
    assert record.questions_count == 0


async def test_three_questions_then_rejected_without_upstream_call(
    authenticated_client: AsyncClient,
    db_test_session_manager: async_sessionmaker[AsyncSession],
    logged_in_user: User,
    fake_assistant: FakeAssistant,
):
    states = []
    for i in range(3):
        response = await authenticated_client.post(
            "/assistant/questions", json={"text": f"question {i}"}
        )
        assert response.status_code == 200, response.text
        assert response.json()["answer"] == fake_assistant.answer
        states.append(response.json()["quota"]["state"])

    assert states == ["active-window", "active-window", "exhausted"]

    rejected = await authenticated_client.post(
        "/assistant/questions", json={"text": "one more"}
    )
    assert rejected.status_code == 429
    assert rejected.json()["detail"]["seconds_until_reset"] > 0
    assert int(rejected.headers["Retry-After"]) > 0
    assert fake_assistant.questions == ["question 0", "question 1", "question 2"]

    record = await get_limit(db_test_session_manager, logged_in_user)
    assert record.questions_count == 3

    quota = (await authenticated_client.get("/assistant/quota")).json()
    assert quota["state"] == "exhausted"


async def test_upstream_failure_keeps_the_charge(
    authenticated_client: AsyncClient,
    db_test_session_manager: async_sessionmaker[AsyncSession],
    logged_in_user: User,
    fake_assistant: FakeAssistant,
):
    fake_assistant.fail = True
    response = await authenticated_client.post(
        "/assistant/questions", json={"text": "will fail"}
    )
    assert response.status_code == 502
    assert "upstream down" not in response.text

    record = await get_limit(db_test_session_manager, logged_in_user)
    assert record.questions_count == 1


async def test_expired_window_resets_on_activation(
    authenticated_client: AsyncClient,
    db_test_session_manager: async_sessionmaker[AsyncSession],
    logged_in_user: User,
):
    started = datetime.now(timezone.utc) - timedelta(hours=6)
    await _store_limit(db_test_session_manager, logged_in_user, 3, started)

    response = await authenticated_client.get("/assistant/quota")
    data = response.json()
    assert data["state"] == "active-window"
    assert data["questions_count"] == 0
    assert data["seconds_until_reset"] == FIVE_HOURS_SECONDS

    record = await get_limit(db_test_session_manager, logged_in_user)
    assert record.questions_count == 0
    assert record.last_reset_at.replace(tzinfo=timezone.utc) > started


async def test_expired_window_lets_the_user_ask_again(
    authenticated_client: AsyncClient,
    db_test_session_manager: async_sessionmaker[AsyncSession],
    logged_in_user: User,
    fake_assistant: FakeAssistant,
):
    started = datetime.now(timezone.utc) - timedelta(hours=5, seconds=1)
    await _store_limit(db_test_session_manager, logged_in_user, 3, started)

    response = await authenticated_client.post(
        "/assistant/questions", json={"text": "back again"}
    )
    assert response.status_code == 200
    assert response.json()["quota"]["questions_count"] == 1


async def test_exhausted_window_reports_time_left(
    authenticated_client: AsyncClient,
    db_test_session_manager: async_sessionmaker[AsyncSession],
    logged_in_user: User,
):
    started = datetime.now(timezone.utc) - timedelta(hours=4)
    await _store_limit(db_test_session_manager, logged_in_user, 3, started)

    data = (await authenticated_client.get("/assistant/quota")).json()
    assert data["state"] == "exhausted"
    assert 3590 <= data["seconds_until_reset"] <= 3600


async def test_blank_question_is_rejected(
    authenticated_client: AsyncClient,
    db_test_session_manager: async_sessionmaker[AsyncSession],
    logged_in_user: User,
    fake_assistant: FakeAssistant,
):
    response = await authenticated_client.post(
        "/assistant/questions", json={"text": "   "}
    )
    assert response.status_code == 422
    assert fake_assistant.questions == []
    assert await get_limit(db_test_session_manager, logged_in_user) is None
