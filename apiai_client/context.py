"""Session context shared by all requests of one conversation."""

from __future__ import annotations

import uuid
from dataclasses import dataclass


@dataclass(frozen=True)
class AIServiceContext:
    """Holds the server-side session identifier."""

    session_id: str

    @classmethod
    def create(cls) -> AIServiceContext:
        """Return a context with a freshly generated session id."""
        return AIServiceContextBuilder().generate_session_id().build()


class AIServiceContextBuilder:
    """Fluent builder for :class:`AIServiceContext`."""

    def __init__(self) -> None:
        self._session_id: str | None = None

    def set_session_id(self, session_id: str) -> AIServiceContextBuilder:
        if not session_id:
            raise ValueError("session_id must not be empty")
        self._session_id = session_id
        return self

    def generate_session_id(self) -> AIServiceContextBuilder:
        self._session_id = str(uuid.uuid4())
        return self

    def build(self) -> AIServiceContext:
        if self._session_id is None:
            raise ValueError("Session id is undefined")
        return AIServiceContext(session_id=self._session_id)
