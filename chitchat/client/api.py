"""Async HTTP client for the ChitChat API."""

import logging
from typing import Any, Optional
from uuid import UUID

import httpx

from chitchat.core.validation import (
    DEFAULT_ALLOWED_EMAIL_DOMAINS,
    DEFAULT_PASSWORD_MIN_LENGTH,
    email_domain_allowed,
    password_problem,
)
from chitchat.schemas.assistant import AnswerRead, QuotaRead
from chitchat.schemas.conversation import (
    ConversationDetail,
    ConversationStartResponse,
    ConversationSummary,
)
from chitchat.schemas.message import MessageRead
from chitchat.schemas.profile import ProfileRead
from chitchat.schemas.user import SessionRead

from .errors import (
    InputError,
    InvalidCredentialsError,
    NetworkError,
    UserExistsError,
    error_from_response,
)

logger = logging.getLogger(__name__)

AUTH_COOKIE_NAME = "fastapiusersauth"


def _token_from_set_cookie(response: httpx.Response) -> Optional[str]:
    for header in response.headers.get_list("set-cookie"):
        name, _, rest = header.partition("=")
        if name.strip() == AUTH_COOKIE_NAME:
            return rest.split(";")[0] or None
    return None


class ChitChatClient:
    """Thin wrapper over an httpx.AsyncClient; the caller owns the transport."""

    def __init__(self, http: httpx.AsyncClient):
        self.http = http
        self._token: Optional[str] = None

    @property
    def signed_in(self) -> bool:
        return self._token is not None

    def _set_token(self, token: Optional[str]) -> None:
        self._token = token
        self.http.cookies.clear()
        if token:
            self.http.headers["Cookie"] = f"{AUTH_COOKIE_NAME}={token}"
        else:
            self.http.headers.pop("Cookie", None)

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            response = await self.http.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            logger.warning(f"{method} {url} failed: {type(e).__name__} - {e}")
            raise NetworkError("Could not reach the server") from e
        if response.is_error:
            raise error_from_response(response)
        return response

    # Auth

    async def sign_in(self, email: str, password: str) -> None:
        response = await self._request(
            "POST", "/auth/jwt/login", data={"username": email, "password": password}
        )
        self._set_token(_token_from_set_cookie(response))

    async def sign_up(self, email: str, password: str) -> None:
        await self._request(
            "POST", "/auth/register", json={"email": email, "password": password}
        )

    async def sign_out(self) -> None:
        try:
            await self._request("POST", "/auth/jwt/logout")
        finally:
            self._set_token(None)

    async def get_session(self) -> Optional[SessionRead]:
        response = await self._request("GET", "/auth/session")
        data = response.json()
        return SessionRead.model_validate(data) if data else None

    async def request_verification(self, email: str) -> None:
        await self._request("POST", "/auth/request-verify-token", json={"email": email})

    # Conversations

    async def list_conversations(self) -> list[ConversationSummary]:
        response = await self._request("GET", "/users/me/conversations")
        return [ConversationSummary.model_validate(c) for c in response.json()]

    async def get_conversation(self, conversation_id: UUID) -> ConversationDetail:
        response = await self._request("GET", f"/conversations/{conversation_id}")
        return ConversationDetail.model_validate(response.json())

    async def rename_conversation(
        self, conversation_id: UUID, label: Optional[str]
    ) -> ConversationSummary:
        response = await self._request(
            "PATCH", f"/conversations/{conversation_id}/label", json={"label": label}
        )
        return ConversationSummary.model_validate(response.json())

    async def start_conversation(
        self, peer_handle: str, label: Optional[str] = None
    ) -> ConversationStartResponse:
        response = await self._request(
            "POST",
            "/conversations",
            json={"peer_handle": peer_handle, "label": label},
        )
        return ConversationStartResponse.model_validate(response.json())

    async def send_message(
        self, conversation_id: UUID, body: dict[str, Any]
    ) -> MessageRead:
        response = await self._request(
            "POST", f"/conversations/{conversation_id}/messages", json={"body": body}
        )
        return MessageRead.model_validate(response.json())

    async def mark_read(self, conversation_id: UUID) -> int:
        response = await self._request("POST", f"/conversations/{conversation_id}/read")
        return response.json()["updated"]

    # Assistant

    async def get_quota(self) -> QuotaRead:
        response = await self._request("GET", "/assistant/quota")
        return QuotaRead.model_validate(response.json())

    async def ask(self, text: str) -> AnswerRead:
        response = await self._request("POST", "/assistant/questions", json={"text": text})
        return AnswerRead.model_validate(response.json())

    # Profile

    async def get_profile(self) -> ProfileRead:
        response = await self._request("GET", "/users/me/profile")
        return ProfileRead.model_validate(response.json())

    async def update_profile(self, **fields: Any) -> ProfileRead:
        response = await self._request("PATCH", "/users/me/profile", json=fields)
        return ProfileRead.model_validate(response.json())


def check_credentials(
    email: str,
    password: str,
    allowed_domains=DEFAULT_ALLOWED_EMAIL_DOMAINS,
    min_length: int = DEFAULT_PASSWORD_MIN_LENGTH,
) -> None:
    """Raises InputError naming the first invalid field."""
    if not email_domain_allowed(email, allowed_domains):
        allowed = ", ".join(f"@{d}" for d in allowed_domains)
        raise InputError(f"Email address must end with {allowed}", field="email")
    problem = password_problem(password, min_length)
    if problem:
        raise InputError(problem, field="password")


async def sign_in_or_sign_up(client: ChitChatClient, email: str, password: str) -> bool:
    """
    Signs in, or creates the account when sign-in is refused.

    Returns True when a new account was created. An existing account with a
    different password surfaces as InvalidCredentialsError on "password".
    """
    email = email.strip()
    check_credentials(email, password)
    try:
        await client.sign_in(email, password)
        return False
    except InvalidCredentialsError:
        logger.info("Sign-in refused, trying to create the account")

    try:
        await client.sign_up(email, password)
    except UserExistsError as e:
        raise InvalidCredentialsError(
            "Incorrect password", field="password", status_code=e.status_code
        ) from e
    await client.sign_in(email, password)
    return True
