"""Outcome -- tagged result passed between the client's internal layers.

The transport, codec and normalizer never raise for expected failures;
they return an ``Outcome`` holding either a value or the
``AIServiceError`` describing what went wrong.  ``AIDataService`` is the
only place that turns a failed outcome into a raised exception.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Generic, TypeVar

from apiai_client.errors import AIServiceError, ErrorKind

T = TypeVar("T")
U = TypeVar("U")


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Either a successful ``value`` or an ``error``, never both."""

    value: T | None = None
    """Payload of a successful step."""

    error: AIServiceError | None = None
    """Failure of an unsuccessful step."""

    @classmethod
    def success(cls, value: T) -> Outcome[T]:
        return cls(value=value)

    @classmethod
    def failure(cls, error: AIServiceError) -> Outcome[T]:
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def kind(self) -> ErrorKind | None:
        """Error kind of a failed outcome, ``None`` on success."""
        return self.error.kind if self.error is not None else None

    def then(self, fn: Callable[[T], Outcome[U]]) -> Outcome[U]:
        """Chain *fn* onto a successful outcome; failures pass through."""
        if self.error is not None:
            return Outcome(error=self.error)
        return fn(self.value)  # type: ignore[arg-type]

    def unwrap(self) -> T:
        """Return the value, raising the carried error on failure."""
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]
