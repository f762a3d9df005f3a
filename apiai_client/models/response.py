"""Inbound response models."""

from __future__ import annotations

from typing import Any

from pydantic import Field

from apiai_client.models.base import ApiModel

_ERROR_TYPES: dict[int, str] = {
    200: "success",
    400: "bad_request",
    401: "unauthorized",
    404: "not_found",
    405: "not_allowed",
    406: "not_acceptable",
    409: "conflict",
    429: "too_many_requests",
}


class Status(ApiModel):
    """Service status block: ``{code, errorType, errorDetails, errorID}``."""

    code: int | None = None
    error_type: str | None = None
    error_details: str | None = None
    error_id: str | None = Field(default=None, alias="errorID")

    @classmethod
    def from_response_code(cls, code: int) -> Status:
        """Build a status for a bare HTTP response code."""
        return cls(code=code, error_type=_ERROR_TYPES.get(code))


class Fulfillment(ApiModel):
    speech: str | None = None
    display_text: str | None = None
    messages: list[dict[str, Any]] | None = None


class Metadata(ApiModel):
    intent_id: str | None = None
    intent_name: str | None = None
    webhook_used: str | None = None


class OutputContext(ApiModel):
    """A context returned by the service after resolving a query."""

    name: str
    lifespan: int | None = None
    parameters: dict[str, Any] | None = None


class Result(ApiModel):
    """Resolved intent, action and parameters for a query."""

    source: str | None = None
    resolved_query: str | None = None
    action: str | None = None
    action_incomplete: bool | None = None
    parameters: dict[str, Any] | None = None
    contexts: list[OutputContext] | None = None
    fulfillment: Fulfillment | None = None
    metadata: Metadata | None = None
    score: float | None = None

    def trim_parameters(self) -> None:
        """Drop parameters whose value is an empty string."""
        if self.parameters:
            self.parameters = {
                key: value
                for key, value in self.parameters.items()
                if not (isinstance(value, str) and value == "")
            }


class AIResponse(ApiModel):
    """Response object returned by the service."""

    id: str | None = None
    timestamp: str | None = None
    lang: str | None = None
    session_id: str | None = None
    result: Result | None = None
    status: Status | None = None

    @property
    def is_error(self) -> bool:
        return (
            self.status is not None
            and self.status.code is not None
            and self.status.code >= 400
        )

    def cleanup(self) -> None:
        """Normalize transient fields of a successful response."""
        if self.result is not None:
            self.result.trim_parameters()
