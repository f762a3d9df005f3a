"""apiai-client data models."""

from apiai_client.models.outcome import Outcome
from apiai_client.models.request import (
    AIContext,
    AIRequest,
    Entity,
    EntityEntry,
    Location,
    RequestExtras,
)
from apiai_client.models.response import (
    AIResponse,
    Fulfillment,
    Metadata,
    OutputContext,
    Result,
    Status,
)

__all__ = [
    "AIContext",
    "AIRequest",
    "AIResponse",
    "Entity",
    "EntityEntry",
    "Fulfillment",
    "Location",
    "Metadata",
    "Outcome",
    "OutputContext",
    "RequestExtras",
    "Result",
    "Status",
]
