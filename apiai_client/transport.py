"""HTTP transport for the query and user entities endpoints.

Two independent paths share the same authentication headers:

- :meth:`HttpTransport.do_text_request` POSTs a JSON document.
- :meth:`HttpTransport.do_sound_request` POSTs a multipart body made of
  a ``request`` form field (the JSON document) followed by a
  ``voiceData`` file part named ``voice.wav``.

Every call opens its own ``httpx.AsyncClient`` inside an ``async with``
block, so the connection is released exactly once whichever way the
call ends.  Both methods return an :class:`Outcome` instead of raising
for network or HTTP failures.
"""

from __future__ import annotations

import contextlib
import io
import logging
from collections.abc import Iterator
from typing import BinaryIO

import httpx

from apiai_client.config import AIConfiguration
from apiai_client.errors import (
    ConfigurationError,
    InvalidArgumentError,
    ServiceError,
    ServiceUnavailableError,
)
from apiai_client.models.outcome import Outcome
from apiai_client.models.response import AIResponse, Status
from apiai_client.normalizer import one_line

logger = logging.getLogger(__name__)

JSON_CONTENT_TYPE = "application/json; charset=utf-8"
REQUEST_FIELD = "request"
VOICE_FIELD = "voiceData"
VOICE_FILENAME = "voice.wav"
VOICE_CONTENT_TYPE = "audio/wav"

_CONNECT_ERROR_MESSAGE = (
    "Can't make request to the API.AI service. "
    "Please, check connection settings and API access token."
)


class _SoundLogReader:
    """File-like wrapper that copies everything read into a log file.

    A failing log write stops the copy but never the upload.
    """

    def __init__(self, source: BinaryIO, log: BinaryIO) -> None:
        self._source = source
        self._log: BinaryIO | None = log
        self.bytes_read = 0

    def read(self, size: int = -1) -> bytes:
        chunk = self._source.read(size)
        if chunk:
            self.bytes_read += len(chunk)
            if self._log is not None:
                try:
                    self._log.write(chunk)
                except OSError as exc:
                    logger.warning("Can't write sound log: %s", exc)
                    self._log = None
        return chunk


def _body_text(response: httpx.Response) -> str:
    return response.content.decode("utf-8", errors="replace")


class HttpTransport:
    """Sends requests to the service over HTTP(S).

    Parameters
    ----------
    config:
        Client configuration (API key, proxy, timeout, sound log).
    transport:
        Optional ``httpx`` transport used instead of the network, e.g.
        an ``httpx.MockTransport`` in tests.
    """

    def __init__(
        self,
        config: AIConfiguration,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config
        self._transport = transport

    def _headers(
        self,
        additional_headers: dict[str, str] | None = None,
        content_type: str | None = None,
    ) -> dict[str, str]:
        """Build the authentication and content negotiation headers."""
        headers = {
            "Authorization": f"Bearer {self._config.api_key}",
            "Accept": "application/json",
        }
        if content_type:
            headers["Content-Type"] = content_type
        if additional_headers:
            headers.update(additional_headers)
        return headers

    def _open_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            proxy=self._config.proxy,
            timeout=self._config.timeout,
            transport=self._transport,
        )

    def _build_client(self) -> Outcome[httpx.AsyncClient]:
        """Create the per-call client, reporting a rejected setup as ``CONFIGURATION``."""
        try:
            return Outcome.success(self._open_client())
        except (ValueError, TypeError, httpx.InvalidURL) as exc:
            logger.error("Can't create HTTP client (proxy=%r): %s", self._config.proxy, exc)
            return Outcome.failure(
                ConfigurationError(
                    "Wrong configuration. Please, check the proxy settings",
                    cause=exc,
                )
            )

    async def do_text_request(
        self,
        endpoint: str,
        request_json: str,
        additional_headers: dict[str, str] | None = None,
    ) -> Outcome[str]:
        """POST *request_json* to *endpoint* and return the response text.

        An HTTP error status that comes with a body is returned as a
        successful outcome: the body carries the service's error status
        and is decoded by the normalizer.  A transport failure, or an
        error status without a body, yields ``SERVICE_UNAVAILABLE``.
        """
        logger.debug("Request json: %s", one_line(request_json))
        headers = self._headers(additional_headers, content_type=JSON_CONTENT_TYPE)

        built = self._build_client()
        if built.error is not None:
            return Outcome.failure(built.error)

        try:
            async with built.unwrap() as client:
                response = await client.post(
                    endpoint,
                    content=request_json.encode("utf-8"),
                    headers=headers,
                )
        except (httpx.InvalidURL, httpx.UnsupportedProtocol) as exc:
            logger.error("Malformed endpoint url %r: %s", endpoint, exc)
            return Outcome.failure(
                ConfigurationError(
                    "Wrong configuration. Please, connect to API.AI Service support",
                    cause=exc,
                )
            )
        except httpx.HTTPError as exc:
            logger.error("%s (%s)", _CONNECT_ERROR_MESSAGE, exc)
            return Outcome.failure(
                ServiceUnavailableError(_CONNECT_ERROR_MESSAGE, cause=exc)
            )

        if response.is_error:
            error_text = _body_text(response)
            if error_text:
                logger.debug("Error response: %s", one_line(error_text))
                return Outcome.success(error_text)
            logger.error(
                "Can't connect to the api.ai service: HTTP %d with no body",
                response.status_code,
            )
            return Outcome.failure(
                ServiceUnavailableError(
                    f"Can't connect to the api.ai service "
                    f"(HTTP {response.status_code} {response.reason_phrase})"
                )
            )

        return Outcome.success(_body_text(response))

    @contextlib.contextmanager
    def _voice_source(self, voice_stream: BinaryIO | bytes) -> Iterator[BinaryIO]:
        """Yield the stream to upload, teeing it to the sound log if enabled.

        The log is written with plain blocking file I/O from inside the
        upload, so on a slow disk it stalls the event loop for the
        duration of each write.  A log file that can't be opened is
        reported as a warning and the audio is uploaded without it.
        """
        stream: BinaryIO = (
            io.BytesIO(voice_stream)
            if isinstance(voice_stream, (bytes, bytearray))
            else voice_stream
        )
        if not self._config.write_sound_log:
            yield stream
            return

        log_path = self._config.resolved_sound_log_path
        try:
            log = open(log_path, "wb")
        except OSError as exc:
            logger.warning("Can't open sound log %s: %s", log_path, exc)
            yield stream
            return

        with log:
            reader = _SoundLogReader(stream, log)
            yield reader  # type: ignore[misc]
        logger.debug("Wrote %d bytes of voice data to %s", reader.bytes_read, log_path)

    async def do_sound_request(
        self,
        endpoint: str,
        voice_stream: BinaryIO | bytes,
        request_json: str,
        additional_headers: dict[str, str] | None = None,
    ) -> Outcome[str]:
        """Upload *voice_stream* with *request_json* as a multipart body.

        The voice stream is read to the end and treated as opaque bytes.
        This call blocks until the service has answered; do not run it
        on a latency-sensitive thread.  With ``write_sound_log`` set, the
        audio is also copied to disk synchronously while it is uploaded,
        which blocks the event loop.

        An HTTP error status with a body is returned as a successful
        outcome, like :meth:`do_text_request`.  An error status without a
        body is turned straight into a ``SERVICE_ERROR`` built from the
        status code and reason phrase.  Transport failures yield
        ``SERVICE_UNAVAILABLE``.

        Raises
        ------
        InvalidArgumentError
            If *voice_stream* is ``None``.
        """
        if voice_stream is None:
            raise InvalidArgumentError("voice_stream must not be None")

        logger.debug("Connecting to %s", endpoint)
        headers = self._headers(additional_headers)

        built = self._build_client()
        if built.error is not None:
            return Outcome.failure(built.error)

        try:
            with self._voice_source(voice_stream) as voice_data:
                async with built.unwrap() as client:
                    response = await client.post(
                        endpoint,
                        data={REQUEST_FIELD: request_json},
                        files={
                            VOICE_FIELD: (VOICE_FILENAME, voice_data, VOICE_CONTENT_TYPE)
                        },
                        headers=headers,
                    )
        except (httpx.InvalidURL, httpx.UnsupportedProtocol) as exc:
            logger.error("Malformed endpoint url %r: %s", endpoint, exc)
            return Outcome.failure(
                ConfigurationError(
                    "Wrong configuration. Please, connect to AI Service support",
                    cause=exc,
                )
            )
        except httpx.HTTPError as exc:
            logger.error("%s (%s)", _CONNECT_ERROR_MESSAGE, exc)
            return Outcome.failure(
                ServiceUnavailableError(_CONNECT_ERROR_MESSAGE, cause=exc)
            )

        if response.is_error:
            error_text = _body_text(response)
            if error_text:
                logger.debug("Error response: %s", one_line(error_text))
                return Outcome.success(error_text)

            status = Status.from_response_code(response.status_code)
            status.error_details = response.reason_phrase
            logger.error(
                "Voice request failed: HTTP %d %s",
                response.status_code,
                response.reason_phrase,
            )
            return Outcome.failure(ServiceError(response=AIResponse(status=status)))

        return Outcome.success(_body_text(response))
