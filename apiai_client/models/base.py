"""Shared pydantic base for service payload models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    """Model serialized with the service's camelCase field names.

    Python attribute names stay snake_case; both spellings are accepted
    when constructing or validating.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
