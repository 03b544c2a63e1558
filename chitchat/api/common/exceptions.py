import logging
from typing import Any

from fastapi import HTTPException, status
from fastapi_users import exceptions as fastapi_users_exceptions
from fastapi_users.router.common import ErrorCode

from chitchat.services.exceptions import (
    BusinessRuleError,
    ConversationNotFoundError,
    DatabaseError,
    NotAuthorizedError,
    QuotaExceededError,
    ServiceError,
    UpstreamError,
    UserNotFoundError,
    ValidationFailedError,
)

logger = logging.getLogger(__name__)


class APIException(HTTPException):
    """Base class for API specific exceptions."""

    def __init__(
        self, status_code: int, detail: Any = None, headers: dict | None = None
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)


class NotFoundError(APIException):
    def __init__(self, detail: Any = "Resource not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class BadRequestError(APIException):
    def __init__(self, detail: Any = "Bad request"):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class ForbiddenError(APIException):
    def __init__(self, detail: Any = "Forbidden"):
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class UnprocessableError(APIException):
    def __init__(self, detail: Any = "Invalid input"):
        super().__init__(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=detail)


class TooManyRequestsError(APIException):
    def __init__(self, detail: Any = "Too many requests", retry_after: int = 0):
        super().__init__(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=detail,
            headers={"Retry-After": str(max(0, retry_after))},
        )


class BadGatewayError(APIException):
    def __init__(self, detail: Any = "Upstream service failed"):
        super().__init__(status_code=status.HTTP_502_BAD_GATEWAY, detail=detail)


class InternalServerError(APIException):
    def __init__(self, detail: Any = "Internal server error"):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail
        )


def error_detail(e: ServiceError) -> Any:
    """Plain message, or a message tied to the input field it concerns."""
    message = getattr(e, "message", str(e))
    field = getattr(e, "field", None)
    if field:
        return {"message": message, "field": field}
    return message


def handle_service_error(e: Exception):
    """
    Maps ServiceError subclasses to appropriate APIException or HTTPException.
    This function is expected to be called by the @handle_route_errors decorator.
    It standardizes how service layer errors are translated into HTTP responses.
    """
    logger.warning(
        f"Handling service error: {e.__class__.__name__} - {getattr(e, 'message', str(e))}"
    )

    if isinstance(e, (ConversationNotFoundError, UserNotFoundError)):
        raise NotFoundError(detail=error_detail(e))
    elif isinstance(e, fastapi_users_exceptions.UserAlreadyExists):
        raise BadRequestError(detail=ErrorCode.REGISTER_USER_ALREADY_EXISTS)
    elif isinstance(e, fastapi_users_exceptions.InvalidPasswordException):
        raise BadRequestError(
            detail={
                "code": ErrorCode.REGISTER_INVALID_PASSWORD,
                "reason": e.reason,
                "field": "password",
            }
        )
    elif isinstance(e, ValidationFailedError):
        raise UnprocessableError(detail=error_detail(e))
    elif isinstance(e, NotAuthorizedError):
        raise ForbiddenError(detail=error_detail(e))
    elif isinstance(e, BusinessRuleError):
        raise BadRequestError(detail=error_detail(e))
    elif isinstance(e, QuotaExceededError):
        raise TooManyRequestsError(
            detail={
                "message": e.message,
                "seconds_until_reset": e.seconds_until_reset,
            },
            retry_after=e.seconds_until_reset,
        )
    elif isinstance(e, UpstreamError):
        raise BadGatewayError(detail=e.message)
    elif isinstance(e, DatabaseError):
        logger.error(f"Database error: {e}", exc_info=True)
        raise InternalServerError(detail=e.message)
    elif isinstance(e, ServiceError):
        status_code = getattr(e, "status_code", status.HTTP_500_INTERNAL_SERVER_ERROR)
        raise APIException(
            status_code=status_code,
            detail=getattr(e, "message", "A service error occurred."),
        )
    raise InternalServerError(detail="An unexpected server error occurred.")
