"""
Exception hierarchy for service code.

Two families:
- HttpException and subclasses: client-facing faults. The RPC boundary turns
  them into a failure envelope with the error code and a translated message.
- InternalException and subclasses: never shown to the client. The RPC
  boundary logs them with cause, metadata, context and tags, then replies
  with a generic SERVER_ERROR.
"""

from dataclasses import dataclass
from typing import Any

from app.core.i18n import MessageKey


class HttpException(Exception):
    """
    Base class for exceptions that are propagated to the client.

    Attributes:
        status_code: HTTP status code (e.g. 400)
        error_code: Machine-readable error code (e.g. "VALIDATION_ERROR")
        message_key: i18n key for the user-facing message
    """

    def __init__(
        self,
        status_code: int,
        *,
        error_code: str | None = None,
        message_key: MessageKey | None = None,
    ) -> None:
        self.status_code = status_code
        self.error_code = error_code or "SERVER_ERROR"
        self.message_key: MessageKey = message_key or "global_exception_internalServerError"
        super().__init__(f"{self.status_code} {self.error_code}")


class BadRequestException(HttpException):
    """400 Bad Request"""

    def __init__(
        self, *, error_code: str | None = None, message_key: MessageKey | None = None
    ) -> None:
        super().__init__(
            400,
            error_code=error_code or "VALIDATION_ERROR",
            message_key=message_key or "global_exception_badRequest",
        )


class UnauthorizedException(HttpException):
    """401 Unauthorized"""

    def __init__(
        self, *, error_code: str | None = None, message_key: MessageKey | None = None
    ) -> None:
        super().__init__(
            401,
            error_code=error_code or "AUTH_REQUIRED",
            message_key=message_key or "global_exception_unauthorized",
        )


class ForbiddenException(HttpException):
    """403 Forbidden"""

    def __init__(
        self, *, error_code: str | None = None, message_key: MessageKey | None = None
    ) -> None:
        super().__init__(
            403,
            error_code=error_code or "FORBIDDEN",
            message_key=message_key or "global_exception_forbidden",
        )


class NotFoundException(HttpException):
    """404 Not Found"""

    def __init__(
        self, *, error_code: str | None = None, message_key: MessageKey | None = None
    ) -> None:
        super().__init__(
            404,
            error_code=error_code or "NOT_FOUND",
            message_key=message_key or "global_exception_notFound",
        )


class ConflictException(HttpException):
    """409 Conflict"""

    def __init__(
        self, *, error_code: str | None = None, message_key: MessageKey | None = None
    ) -> None:
        super().__init__(
            409,
            error_code=error_code or "CONFLICT",
            message_key=message_key or "global_exception_conflict",
        )


class TooManyRequestsException(HttpException):
    """429 Too Many Requests"""

    def __init__(
        self, *, error_code: str | None = None, message_key: MessageKey | None = None
    ) -> None:
        super().__init__(
            429,
            error_code=error_code or "RATE_LIMITED",
            message_key=message_key or "global_exception_tooManyRequests",
        )


class InternalServerErrorException(HttpException):
    """500 Internal Server Error"""

    def __init__(
        self, *, error_code: str | None = None, message_key: MessageKey | None = None
    ) -> None:
        super().__init__(
            500,
            error_code=error_code or "SERVER_ERROR",
            message_key=message_key or "global_exception_internalServerError",
        )


class ServiceUnavailableException(HttpException):
    """503 Service Unavailable (e.g. Discord API down)"""

    def __init__(
        self, *, error_code: str | None = None, message_key: MessageKey | None = None
    ) -> None:
        super().__init__(
            503,
            error_code=error_code or "UNAVAILABLE",
            message_key=message_key or "global_exception_serviceUnavailable",
        )


@dataclass(frozen=True)
class InternalExceptionContext:
    """Where an internal exception was raised, e.g. source="AuthService", action="rotate"."""

    source: str | None = None
    action: str | None = None


class InternalException(Exception):
    """
    Base class for internal exceptions that are never shown to the client.

    Args:
        message: Descriptive message for the logs
        cause: Original error, if any
        metadata: Extra key/values to log (user ids, urls, ...)
        context: Source/action where the exception was raised
        tags: Log tags for filtering (e.g. ["assertion", "critical"])
    """

    default_message = "Internal error"

    def __init__(
        self,
        message: str | None = None,
        *,
        cause: BaseException | None = None,
        metadata: dict[str, Any] | None = None,
        context: InternalExceptionContext | None = None,
        tags: list[str] | None = None,
    ) -> None:
        self.message = message or self.default_message
        self.cause = cause
        self.metadata = metadata
        self.context = context
        self.tags = tags
        super().__init__(self.message)
        if cause is not None:
            self.__cause__ = cause


class AssertionFailedException(InternalException):
    default_message = "Assertion failed"


class ExternalServiceFailedException(InternalException):
    default_message = "External service failure"


class ExternalServiceDataValidationException(InternalException):
    default_message = "External service returned invalid data"


class MissingArgumentException(InternalException):
    default_message = "Missing argument"


class InvalidArgumentException(InternalException):
    default_message = "Invalid argument"


class MissingFieldException(InternalException):
    default_message = "Missing field"


class InvalidFieldException(InternalException):
    default_message = "Invalid field"


class PermissionDeniedException(InternalException):
    default_message = "Permission denied"


class PreconditionFailedException(InternalException):
    default_message = "Precondition failed"


class ResourceNotFoundException(InternalException):
    default_message = "Resource not found"


class UnexpectedException(InternalException):
    default_message = "Unexpected error"


def is_http_exception(exception: object) -> bool:
    """Check whether an object is a client-facing HttpException."""
    return isinstance(exception, HttpException)


def is_internal_exception(exception: object) -> bool:
    """Check whether an object is an InternalException."""
    return isinstance(exception, InternalException)
