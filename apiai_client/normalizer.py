"""Response normalizer -- turns raw service text into an ``AIResponse``."""

from __future__ import annotations

import logging
import re

from apiai_client.codec import decode_response
from apiai_client.errors import EmptyResponseError, ServiceError
from apiai_client.models.outcome import Outcome
from apiai_client.models.response import AIResponse

logger = logging.getLogger(__name__)

_NEWLINES = re.compile(r"[\r\n]+")


def one_line(text: str) -> str:
    """Collapse line breaks so a payload fits on one log line."""
    return _NEWLINES.sub(" ", text)


def _check_status(response: AIResponse) -> Outcome[AIResponse]:
    if response.is_error:
        logger.warning(
            "Service returned error status %s (%s)",
            response.status.code if response.status else None,
            response.status.error_type if response.status else None,
        )
        return Outcome.failure(ServiceError(response=response))
    response.cleanup()
    return Outcome.success(response)


def normalize_response(raw: str | None) -> Outcome[AIResponse]:
    """Parse *raw* into a successful, cleaned-up response.

    Returns a failed outcome with

    - ``EMPTY_RESPONSE`` when *raw* is ``None`` or empty,
    - ``MALFORMED_RESPONSE`` when it is not a valid response document,
    - ``SERVICE_ERROR`` when the service reported an error status.
    """
    if not raw:
        logger.error("Empty response from service")
        return Outcome.failure(
            EmptyResponseError(
                "Empty response from ai service. Please check configuration "
                "and Internet connection."
            )
        )

    logger.debug("Response json: %s", one_line(raw))

    outcome = decode_response(raw).then(_check_status)
    if outcome.error is not None and not isinstance(outcome.error, ServiceError):
        logger.error("Can't decode service response: %s", outcome.error)
    return outcome
