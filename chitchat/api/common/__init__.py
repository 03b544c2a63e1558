# This file makes chitchat/api/common a Python package

from .base_router import BaseRouter
from .decorators import handle_route_errors, log_route_call
from .exceptions import (
    APIException,
    BadGatewayError,
    BadRequestError,
    ForbiddenError,
    InternalServerError,
    NotFoundError,
    TooManyRequestsError,
    UnprocessableError,
    handle_service_error,
)

__all__ = [
    "log_route_call",
    "handle_route_errors",
    "APIException",
    "NotFoundError",
    "BadRequestError",
    "ForbiddenError",
    "UnprocessableError",
    "TooManyRequestsError",
    "BadGatewayError",
    "InternalServerError",
    "handle_service_error",
    "BaseRouter",
]
