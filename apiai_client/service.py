"""AIDataService -- entry point for talking to the service.

Each public operation is a straight pipeline:

    build request -> serialize -> transport -> normalize -> return | raise

There are no retries and no state beyond the configuration snapshot
and the session context, both fixed at construction.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Collection
from typing import BinaryIO

import httpx

from apiai_client.codec import encode_entities, encode_request
from apiai_client.config import AIConfiguration
from apiai_client.context import AIServiceContext
from apiai_client.errors import AIServiceError, InvalidArgumentError
from apiai_client.models.request import AIContext, AIRequest, Entity, RequestExtras
from apiai_client.models.response import AIResponse
from apiai_client.normalizer import normalize_response
from apiai_client.request_builder import build_request
from apiai_client.transport import HttpTransport

logger = logging.getLogger(__name__)

RESET_CONTEXTS_QUERY = "empty_query_for_resetting_contexts"


class AIDataService:
    """Sends text and voice queries for one conversational session.

    Parameters
    ----------
    config:
        Client configuration.  A copy is kept, so later changes to the
        caller's object do not affect this service.
    context:
        Session context shared by every request.  A new session id is
        generated when omitted.
    transport:
        Optional ``httpx`` transport, forwarded to :class:`HttpTransport`.
    """

    def __init__(
        self,
        config: AIConfiguration,
        context: AIServiceContext | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if config is None:
            raise ValueError("config should not be None")

        self._config = config.clone()
        self._context = context if context is not None else AIServiceContext.create()
        self._transport = HttpTransport(self._config, transport=transport)

        logger.info(
            "AIDataService initialized (language=%s, session_id=%s, proxy=%s)",
            self._config.language,
            self._context.session_id,
            self._config.proxy,
        )

    @property
    def context(self) -> AIServiceContext:
        """Session context used in each request."""
        return self._context

    @property
    def config(self) -> AIConfiguration:
        return self._config

    async def request(
        self, request: AIRequest, extras: RequestExtras | None = None
    ) -> AIResponse:
        """Send a text request to the service.

        Parameters
        ----------
        request:
            Request to send.  Language, session id and time zone are
            overwritten from the service's configuration and context.
        extras:
            Optional contexts, entities, location and HTTP headers.

        Returns
        -------
        AIResponse
            A successful, cleaned-up response.

        Raises
        ------
        InvalidArgumentError
            If *request* is ``None``.
        AIServiceError
            If the service could not be reached or reported an error.
        """
        logger.debug("Start request")
        request, additional_headers = build_request(
            request, self._config, self._context, extras
        )

        raw = await self._transport.do_text_request(
            self._config.question_url(self._context.session_id),
            encode_request(request),
            additional_headers,
        )
        return raw.then(normalize_response).unwrap()

    async def text_query(
        self, query: str, extras: RequestExtras | None = None
    ) -> AIResponse:
        """Send a plain text *query*.  See :meth:`request`."""
        return await self.request(AIRequest(query=query), extras)

    async def voice_request(
        self,
        voice_stream: BinaryIO | bytes,
        extras: RequestExtras | None = None,
        contexts: list[AIContext] | None = None,
    ) -> AIResponse:
        """Send voice data for recognition and interpretation.

        The whole stream is uploaded before this returns; do not call
        :meth:`voice_request_sync` from a UI thread.

        Parameters
        ----------
        voice_stream:
            Binary stream (or bytes) with the recorded audio.
        extras:
            Optional request extras.  Defaults to an empty
            :class:`RequestExtras`.
        contexts:
            Shortcut for ``RequestExtras(contexts=...)``; ignored when
            *extras* is given.

        Returns
        -------
        AIResponse
            A successful, cleaned-up response.

        Raises
        ------
        InvalidArgumentError
            If *voice_stream* is ``None``.
        AIServiceError
            If the service could not be reached or reported an error.
        """
        if voice_stream is None:
            raise InvalidArgumentError("voice_stream must not be None")

        logger.debug("Start voice request")
        if extras is None:
            extras = RequestExtras(contexts=contexts)

        request, additional_headers = build_request(
            AIRequest(), self._config, self._context, extras
        )

        raw = await self._transport.do_sound_request(
            self._config.question_url(self._context.session_id),
            voice_stream,
            encode_request(request),
            additional_headers,
        )
        return raw.then(normalize_response).unwrap()

    async def reset_contexts(self) -> bool:
        """Forget all contexts of the current session.

        Returns
        -------
        bool
            ``True`` if the service accepted the reset, ``False`` on any
            failure.  Never raises.
        """
        clean_request = AIRequest(
            query=RESET_CONTEXTS_QUERY,
            reset_contexts=True,
        )
        try:
            response = await self.request(clean_request)
        except AIServiceError:
            logger.exception("Exception while resetting contexts")
            return False
        return not response.is_error

    async def upload_user_entities(self, entities: Collection[Entity]) -> AIResponse:
        """Upload user entities for the current session.

        Raises
        ------
        InvalidArgumentError
            If *entities* is ``None`` or empty.  Nothing is sent.
        AIServiceError
            If the service could not be reached or reported an error.
        """
        if not entities:
            raise InvalidArgumentError("Empty entities list")

        raw = await self._transport.do_text_request(
            self._config.user_entities_url(self._context.session_id),
            encode_entities(entities),
        )
        return raw.then(normalize_response).unwrap()

    async def upload_user_entity(self, entity: Entity) -> AIResponse:
        """Upload a single user entity.  See :meth:`upload_user_entities`."""
        return await self.upload_user_entities([entity])

    # -- Synchronous convenience wrappers --

    def request_sync(
        self, request: AIRequest, extras: RequestExtras | None = None
    ) -> AIResponse:
        """Synchronous wrapper for :meth:`request`."""
        return asyncio.run(self.request(request, extras))

    def text_query_sync(
        self, query: str, extras: RequestExtras | None = None
    ) -> AIResponse:
        """Synchronous wrapper for :meth:`text_query`."""
        return asyncio.run(self.text_query(query, extras))

    def voice_request_sync(
        self,
        voice_stream: BinaryIO | bytes,
        extras: RequestExtras | None = None,
        contexts: list[AIContext] | None = None,
    ) -> AIResponse:
        """Synchronous wrapper for :meth:`voice_request`."""
        return asyncio.run(
            self.voice_request(voice_stream, extras=extras, contexts=contexts)
        )

    def reset_contexts_sync(self) -> bool:
        """Synchronous wrapper for :meth:`reset_contexts`."""
        return asyncio.run(self.reset_contexts())

    def upload_user_entities_sync(self, entities: Collection[Entity]) -> AIResponse:
        """Synchronous wrapper for :meth:`upload_user_entities`."""
        return asyncio.run(self.upload_user_entities(entities))
