"""JSON codec for service payloads.

Encoding uses the models' camelCase aliases and drops unset optional
fields.  Decoding validates the body against the ``AIResponse`` schema
and reports problems as a failed :class:`Outcome` rather than raising.
"""

from __future__ import annotations

import json
from collections.abc import Iterable

from pydantic import TypeAdapter, ValidationError

from apiai_client.errors import MalformedResponseError
from apiai_client.models.outcome import Outcome
from apiai_client.models.request import AIRequest, Entity
from apiai_client.models.response import AIResponse

_ENTITY_LIST = TypeAdapter(list[Entity])


def encode_request(request: AIRequest) -> str:
    """Serialize *request* to JSON text."""
    return request.model_dump_json(by_alias=True, exclude_none=True)


def encode_entities(entities: Iterable[Entity]) -> str:
    """Serialize a collection of entities to a JSON array."""
    return _ENTITY_LIST.dump_json(
        list(entities), by_alias=True, exclude_none=True
    ).decode("utf-8")


def decode_response(raw: str) -> Outcome[AIResponse]:
    """Parse *raw* JSON text into an :class:`AIResponse`."""
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        return Outcome.failure(
            MalformedResponseError(
                "Wrong service answer format. Response is not valid JSON.",
                cause=exc,
            )
        )

    if data is None:
        return Outcome.failure(
            MalformedResponseError(
                "Service response parsed as null. Check debug log for details."
            )
        )

    try:
        return Outcome.success(AIResponse.model_validate(data))
    except ValidationError as exc:
        return Outcome.failure(
            MalformedResponseError(
                f"Wrong service answer format: {exc.error_count()} validation error(s)",
                cause=exc,
            )
        )
