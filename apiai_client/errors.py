"""apiai-client error hierarchy.

Every failure surfaced to callers is an ``AIServiceError`` so a single
``except`` clause covers the whole client.  Each ``ErrorKind`` also has
its own subclass for callers that want to react to one cause only.
"""

from __future__ import annotations

import enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from apiai_client.models.response import AIResponse, Status


class ErrorKind(enum.Enum):
    """Cause of an ``AIServiceError``."""

    INVALID_ARGUMENT = "invalid_argument"
    EMPTY_RESPONSE = "empty_response"
    MALFORMED_RESPONSE = "malformed_response"
    SERVICE_ERROR = "service_error"
    SERVICE_UNAVAILABLE = "service_unavailable"
    CONFIGURATION = "configuration"


class AIServiceError(Exception):
    """Base exception for all apiai-client errors.

    Parameters
    ----------
    message:
        Human-readable description.
    response:
        Structured service response carrying an error status, if any.
    cause:
        Underlying exception, exposed as ``__cause__``.
    """

    kind: ErrorKind = ErrorKind.SERVICE_ERROR

    def __init__(
        self,
        message: str = "",
        response: AIResponse | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.response = response
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        status = self.response.status if self.response is not None else None
        if status is not None and status.error_details:
            return status.error_details
        return self.message


class InvalidArgumentError(AIServiceError, ValueError):
    """Raised for bad caller input (missing request, empty entity list)."""

    kind = ErrorKind.INVALID_ARGUMENT


class EmptyResponseError(AIServiceError):
    """Raised when the service returned an empty body."""

    kind = ErrorKind.EMPTY_RESPONSE


class MalformedResponseError(AIServiceError):
    """Raised when the service body cannot be decoded into a response."""

    kind = ErrorKind.MALFORMED_RESPONSE


class ServiceError(AIServiceError):
    """Raised when the service reports an error status."""

    kind = ErrorKind.SERVICE_ERROR

    def __init__(
        self,
        message: str = "",
        response: AIResponse | None = None,
        cause: BaseException | None = None,
    ) -> None:
        status = response.status if response is not None else None
        if not message and status is not None:
            message = f"Service error {status.code}: {status.error_type or 'unknown'}"
        super().__init__(message, response=response, cause=cause)

    @property
    def status(self) -> Status | None:
        return self.response.status if self.response is not None else None

    @property
    def code(self) -> int | None:
        status = self.status
        return status.code if status is not None else None


class ServiceUnavailableError(AIServiceError):
    """Raised when the service cannot be reached or read from."""

    kind = ErrorKind.SERVICE_UNAVAILABLE


class ConfigurationError(AIServiceError):
    """Raised when the configured endpoint or proxy cannot be used."""

    kind = ErrorKind.CONFIGURATION
