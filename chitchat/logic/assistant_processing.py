import logging

from chitchat.models import User
from chitchat.schemas.assistant import AnswerRead, QuotaRead
from chitchat.services.assistant_service import AssistantService

logger = logging.getLogger(__name__)


async def handle_get_quota(user: User, assistant_service: AssistantService) -> QuotaRead:
    """Activation: creates or resets the user's quota window and reports it."""
    snapshot = await assistant_service.activate(user)
    return snapshot.to_schema()


async def handle_ask_question(
    user: User, text: str, assistant_service: AssistantService
) -> AnswerRead:
    answer, snapshot = await assistant_service.ask(user, text.strip())
    logger.info(
        f"Handler: user {user.id} asked a question, "
        f"{snapshot.remaining_questions} left in window"
    )
    return AnswerRead(answer=answer, quota=snapshot.to_schema())
