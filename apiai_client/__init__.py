"""apiai-client -- client library for the api.ai natural language service.

Public API re-exports for convenient access::

    from apiai_client import AIConfiguration, AIDataService

    service = AIDataService(AIConfiguration(api_key="..."))
    response = service.text_query_sync("hello")
"""

from apiai_client.config import AIConfiguration, load_configuration
from apiai_client.context import AIServiceContext, AIServiceContextBuilder
from apiai_client.errors import (
    AIServiceError,
    ConfigurationError,
    EmptyResponseError,
    ErrorKind,
    InvalidArgumentError,
    MalformedResponseError,
    ServiceError,
    ServiceUnavailableError,
)
from apiai_client.models.request import (
    AIContext,
    AIRequest,
    Entity,
    EntityEntry,
    Location,
    RequestExtras,
)
from apiai_client.models.response import AIResponse, Result, Status
from apiai_client.service import AIDataService

__all__ = [
    # Service
    "AIDataService",
    # Configuration
    "AIConfiguration",
    "AIServiceContext",
    "AIServiceContextBuilder",
    "load_configuration",
    # Models
    "AIContext",
    "AIRequest",
    "AIResponse",
    "Entity",
    "EntityEntry",
    "Location",
    "RequestExtras",
    "Result",
    "Status",
    # Errors
    "AIServiceError",
    "ErrorKind",
    "InvalidArgumentError",
    "EmptyResponseError",
    "MalformedResponseError",
    "ServiceError",
    "ServiceUnavailableError",
    "ConfigurationError",
]
