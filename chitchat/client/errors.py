"""Errors raised by the ChitChat client.

Every error keeps the HTTP status and, when the server tied the failure to an
input, the name of that field so a form can show it next to the input.
"""

from typing import Any, Optional

import httpx

LOGIN_BAD_CREDENTIALS = "LOGIN_BAD_CREDENTIALS"
REGISTER_USER_ALREADY_EXISTS = "REGISTER_USER_ALREADY_EXISTS"


class ChitChatError(Exception):
    def __init__(
        self,
        message: str = "An unexpected error occurred",
        field: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        self.message = message
        self.field = field
        self.status_code = status_code
        super().__init__(self.message)


class NetworkError(ChitChatError):
    pass


class InputError(ChitChatError):
    """Rejected input; raised locally before sending or from a 400/422."""


class InvalidCredentialsError(InputError):
    pass


class UserExistsError(InputError):
    pass


class NotAuthenticatedError(ChitChatError):
    pass


class ForbiddenError(ChitChatError):
    pass


class NotFoundError(ChitChatError):
    pass


class QuotaExhaustedError(ChitChatError):
    def __init__(self, message: str, seconds_until_reset: int = 0, **kwargs):
        super().__init__(message, **kwargs)
        self.seconds_until_reset = seconds_until_reset


class AssistantUnavailableError(ChitChatError):
    pass


class ServerError(ChitChatError):
    pass


def _parse_detail(detail: Any) -> tuple[str, Optional[str], Optional[str]]:
    """Returns (message, field, code) from any of the server's detail shapes."""
    if isinstance(detail, str):
        return detail, None, detail
    if isinstance(detail, list) and detail:
        # Request validation: [{"loc": ["body", "field"], "msg": "..."}]
        first = detail[0] if isinstance(detail[0], dict) else {}
        loc = first.get("loc") or []
        field = str(loc[-1]) if len(loc) > 1 else None
        return first.get("msg", "Invalid input"), field, None
    if isinstance(detail, dict):
        message = detail.get("message") or detail.get("reason") or "Request failed"
        return message, detail.get("field"), detail.get("code")
    return "Request failed", None, None


def error_from_response(response: httpx.Response) -> ChitChatError:
    status_code = response.status_code
    try:
        detail = response.json().get("detail")
    except ValueError:
        detail = response.text or None
    message, field, code = _parse_detail(detail)

    if code == LOGIN_BAD_CREDENTIALS:
        return InvalidCredentialsError(
            "Incorrect email or password", field="password", status_code=status_code
        )
    if code == REGISTER_USER_ALREADY_EXISTS:
        return UserExistsError(
            "An account with this email already exists",
            field="email",
            status_code=status_code,
        )
    if status_code == 401:
        return NotAuthenticatedError(message, status_code=status_code)
    if status_code == 403:
        return ForbiddenError(message, field=field, status_code=status_code)
    if status_code == 404:
        return NotFoundError(message, field=field, status_code=status_code)
    if status_code == 429:
        seconds = detail.get("seconds_until_reset", 0) if isinstance(detail, dict) else 0
        return QuotaExhaustedError(
            message, seconds_until_reset=int(seconds), status_code=status_code
        )
    if status_code == 502:
        return AssistantUnavailableError(message, status_code=status_code)
    if status_code in (400, 422):
        return InputError(message, field=field, status_code=status_code)
    if status_code >= 500:
        return ServerError(message, status_code=status_code)
    return ChitChatError(message, field=field, status_code=status_code)
