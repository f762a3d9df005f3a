"""Outbound request models.

``AIRequest`` and the types it embeds are pydantic models serialized
with the service's camelCase field names.  ``RequestExtras`` is a plain
input-only bundle that the request builder merges into a request.
"""

from __future__ import annotations

from dataclasses import dataclass

from pydantic import Field

from apiai_client.models.base import ApiModel


class AIContext(ApiModel):
    """A named, time-limited piece of conversational state."""

    name: str
    lifespan: int | None = None
    parameters: dict[str, str] | None = None


class EntityEntry(ApiModel):
    """One reference value of an entity and its synonyms."""

    value: str
    synonyms: list[str] = Field(default_factory=list)


class Entity(ApiModel):
    """A user-defined vocabulary uploaded to improve recognition."""

    name: str
    entries: list[EntityEntry] = Field(default_factory=list)
    extend: bool | None = None

    def add_entry(self, value: str, *synonyms: str) -> EntityEntry:
        """Append an entry, using *value* as its own synonym when none are given."""
        entry = EntityEntry(value=value, synonyms=list(synonyms) or [value])
        self.entries.append(entry)
        return entry


class Location(ApiModel):
    """Geographic position of the user."""

    latitude: float
    longitude: float


class AIRequest(ApiModel):
    """A text or voice query sent to the service.

    ``lang``, ``session_id`` and ``timezone`` are always filled in by the
    request builder; values set by the caller are overwritten.
    """

    query: str | None = None
    session_id: str | None = None
    lang: str | None = None
    timezone: str | None = None
    contexts: list[AIContext] | None = None
    entities: list[Entity] | None = None
    location: Location | None = None
    reset_contexts: bool | None = None


@dataclass
class RequestExtras:
    """Optional caller-supplied additions to a request.

    Attributes
    ----------
    contexts:
        Conversation contexts to send with the request.
    entities:
        User entities scoped to this request.
    location:
        User geolocation.
    additional_headers:
        Extra HTTP headers.  These go to the transport, not the body.
    """

    contexts: list[AIContext] | None = None
    entities: list[Entity] | None = None
    location: Location | None = None
    additional_headers: dict[str, str] | None = None

    def has_contexts(self) -> bool:
        return bool(self.contexts)

    def has_entities(self) -> bool:
        return bool(self.entities)
