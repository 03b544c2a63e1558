import logging

logger = logging.getLogger(__name__)


class ServiceError(Exception):
    """Base class for service layer errors."""

    def __init__(
        self,
        message="An internal service error occurred.",
        status_code=500,
        field: str | None = None,
    ):
        self.message = message
        self.status_code = status_code
        # Name of the input field the error belongs to, when there is one
        self.field = field
        super().__init__(self.message)


class ValidationFailedError(ServiceError):
    """Input rejected before any store access (bad handle, bad email, weak password)."""

    def __init__(self, message="Invalid input.", field: str | None = None):
        super().__init__(message, status_code=422, field=field)


class ConversationNotFoundError(ServiceError):
    def __init__(self, message="Conversation not found."):
        super().__init__(message, status_code=404)


class UserNotFoundError(ServiceError):
    def __init__(self, message="User not found.", field: str | None = None):
        super().__init__(message, status_code=404, field=field)


class HandleNotFoundError(UserNotFoundError):
    def __init__(self, message="No user has this handle."):
        super().__init__(message, field="peer_handle")


class NotAuthorizedError(ServiceError):
    def __init__(self, message="User not authorized for this action."):
        super().__init__(message, status_code=403)


class BusinessRuleError(ServiceError):
    """For violations of specific business rules (e.g., messaging yourself)."""

    def __init__(self, message="Action violates business rules.", field=None):
        super().__init__(message, status_code=400, field=field)


class QuotaExceededError(ServiceError):
    def __init__(self, message="Question limit reached.", seconds_until_reset=0):
        self.seconds_until_reset = seconds_until_reset
        super().__init__(message, status_code=429)


class UpstreamError(ServiceError):
    """The AI upstream failed; no distinction is made between failure kinds."""

    def __init__(self, message="The assistant could not answer right now."):
        super().__init__(message, status_code=502)


class DatabaseError(ServiceError):
    """For general database errors during service operations."""

    def __init__(self, message="A database error occurred."):
        super().__init__(message, status_code=500)
