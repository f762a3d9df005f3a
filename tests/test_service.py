"""Tests for AIDataService (the public facade)."""

from __future__ import annotations

import asyncio
import io
from pathlib import Path
from unittest.mock import patch
from urllib.parse import parse_qs, urlsplit

import httpx
import pytest

from apiai_client.config import AIConfiguration
from apiai_client.context import AIServiceContext
from apiai_client.errors import (
    AIServiceError,
    EmptyResponseError,
    InvalidArgumentError,
    MalformedResponseError,
    ServiceError,
    ServiceUnavailableError,
)
from apiai_client.models.request import AIContext, AIRequest, Entity, RequestExtras
from apiai_client.service import RESET_CONTEXTS_QUERY, AIDataService
from tests.conftest import (
    TEST_SESSION_ID,
    RecordingTransport,
    make_config,
    make_service,
    refuse_connection,
    request_json,
    respond_json,
    respond_text,
    success_body,
)

VOICE = b"RIFF fake voice data"


# -- Construction --


class TestAIDataServiceConstruction:
    def test_requires_config(self) -> None:
        with pytest.raises(ValueError, match="config should not be None"):
            AIDataService(None)  # type: ignore[arg-type]

    def test_generates_context(self) -> None:
        service = AIDataService(make_config())
        assert service.context.session_id

    def test_services_get_distinct_sessions(self) -> None:
        assert (
            AIDataService(make_config()).context
            != AIDataService(make_config()).context
        )

    def test_keeps_given_context(self) -> None:
        context = AIServiceContext(session_id="given")
        assert AIDataService(make_config(), context).context is context

    def test_config_is_cloned(self) -> None:
        config = make_config()
        service = AIDataService(config)
        assert service.config == config
        assert service.config is not config


# -- Text queries --


class TestTextQuery:
    def test_success(self) -> None:
        mock = respond_json({"status": {"code": 200}})
        response = asyncio.run(make_service(mock).text_query("hello"))
        assert not response.is_error
        assert response.status.code == 200

    def test_request_body_and_url(self) -> None:
        mock = respond_json(success_body())
        asyncio.run(make_service(mock, language="es").text_query("hola"))

        request = mock.last_request
        url = urlsplit(str(request.url))
        assert url.path == "/v1/query"
        assert parse_qs(url.query)["sessionId"] == [TEST_SESSION_ID]
        assert request_json(request) == {
            "query": "hola",
            "lang": "es",
            "sessionId": TEST_SESSION_ID,
            "timezone": "Europe/Berlin",
        }

    def test_extras_are_sent(self) -> None:
        mock = respond_json(success_body())
        extras = RequestExtras(
            contexts=[AIContext(name="order", lifespan=2, parameters={"item": "pizza"})],
            additional_headers={"X-Client": "kiosk"},
        )
        asyncio.run(make_service(mock).text_query("hi", extras))

        request = mock.last_request
        assert request.headers["X-Client"] == "kiosk"
        assert request_json(request)["contexts"] == [
            {"name": "order", "lifespan": 2, "parameters": {"item": "pizza"}}
        ]

    def test_result_is_cleaned(self) -> None:
        mock = respond_json(
            success_body(action="order", parameters={"item": "pizza", "size": ""})
        )
        response = asyncio.run(make_service(mock).text_query("one pizza"))
        assert response.result.action == "order"
        assert response.result.parameters == {"item": "pizza"}

    def test_request_none_raises_invalid_argument(self) -> None:
        mock = respond_json(success_body())
        with pytest.raises(InvalidArgumentError):
            asyncio.run(make_service(mock).request(None))  # type: ignore[arg-type]
        assert mock.requests == []

    def test_error_status(self) -> None:
        mock = respond_json({"status": {"code": 400, "errorType": "bad_request"}})
        with pytest.raises(ServiceError) as exc_info:
            asyncio.run(make_service(mock).text_query("hello"))
        assert exc_info.value.code == 400
        assert exc_info.value.status.error_type == "bad_request"

    def test_empty_body(self) -> None:
        with pytest.raises(EmptyResponseError):
            asyncio.run(make_service(respond_text("")).text_query("hello"))

    def test_unparsable_body(self) -> None:
        with pytest.raises(MalformedResponseError):
            asyncio.run(make_service(respond_text("not json")).text_query("hello"))

    def test_null_body(self) -> None:
        with pytest.raises(MalformedResponseError):
            asyncio.run(make_service(respond_text("null")).text_query("hello"))

    def test_connection_refused(self) -> None:
        with pytest.raises(ServiceUnavailableError) as exc_info:
            asyncio.run(make_service(refuse_connection()).text_query("hello"))
        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)

    def test_error_body_from_failed_call_is_parsed(self) -> None:
        mock = respond_json(
            {"status": {"code": 401, "errorType": "unauthorized", "errorDetails": "Bad key"}},
            status_code=401,
        )
        with pytest.raises(ServiceError, match="Bad key") as exc_info:
            asyncio.run(make_service(mock).text_query("hello"))
        assert exc_info.value.code == 401

    def test_unparsable_error_body_from_failed_call(self) -> None:
        mock = respond_text("<html>Bad Gateway</html>", status_code=502)
        with pytest.raises(MalformedResponseError):
            asyncio.run(make_service(mock).text_query("hello"))

    def test_all_failures_share_base_class(self) -> None:
        with pytest.raises(AIServiceError):
            asyncio.run(make_service(refuse_connection()).text_query("hello"))

    def test_sync_wrapper(self) -> None:
        mock = respond_json(success_body())
        response = make_service(mock).text_query_sync("hello")
        assert response.status.code == 200

    def test_request_sync_wrapper(self) -> None:
        mock = respond_json(success_body())
        response = make_service(mock).request_sync(AIRequest(query="hello"))
        assert not response.is_error

    def test_connection_closed_once_per_call(self) -> None:
        mock = respond_json(success_body())
        service = make_service(mock)
        asyncio.run(service.text_query("one"))
        asyncio.run(service.text_query("two"))
        assert len(mock.requests) == 2
        assert mock.close_count == 2


# -- Voice queries --


class TestVoiceRequest:
    def test_success(self) -> None:
        mock = respond_json(success_body(resolvedQuery="turn on the lights"))
        response = asyncio.run(make_service(mock).voice_request(io.BytesIO(VOICE)))
        assert response.result.resolved_query == "turn on the lights"

    def test_request_part_carries_session_defaults(self) -> None:
        mock = respond_json(success_body())
        asyncio.run(make_service(mock).voice_request(VOICE))

        content = mock.last_request.content
        assert b'name="request"' in content
        assert f'"sessionId":"{TEST_SESSION_ID}"'.encode() in content
        assert b'"lang":"en"' in content
        assert b'"query"' not in content
        assert content.index(b'name="request"') < content.index(
            b'name="voiceData"; filename="voice.wav"'
        )

    def test_contexts_shortcut(self) -> None:
        mock = respond_json(success_body())
        asyncio.run(
            make_service(mock).voice_request(VOICE, contexts=[AIContext(name="lights")])
        )
        assert b'"contexts":[{"name":"lights"}]' in mock.last_request.content

    def test_extras_headers(self) -> None:
        mock = respond_json(success_body())
        extras = RequestExtras(additional_headers={"X-Device": "car"})
        asyncio.run(make_service(mock).voice_request(VOICE, extras))
        assert mock.last_request.headers["X-Device"] == "car"

    def test_none_stream(self) -> None:
        mock = respond_json(success_body())
        with pytest.raises(InvalidArgumentError):
            asyncio.run(make_service(mock).voice_request(None))  # type: ignore[arg-type]
        assert mock.requests == []

    def test_error_status_without_body(self) -> None:
        with pytest.raises(ServiceError) as exc_info:
            asyncio.run(make_service(respond_text("", 503)).voice_request(VOICE))
        assert exc_info.value.code == 503
        assert str(exc_info.value) == "Service Unavailable"

    def test_error_status_with_body(self) -> None:
        mock = respond_json({"status": {"code": 400, "errorType": "bad_request"}}, 400)
        with pytest.raises(ServiceError) as exc_info:
            asyncio.run(make_service(mock).voice_request(VOICE))
        assert exc_info.value.status.error_type == "bad_request"

    def test_connection_refused(self) -> None:
        with pytest.raises(ServiceUnavailableError):
            asyncio.run(make_service(refuse_connection()).voice_request(VOICE))

    def test_sync_wrapper(self) -> None:
        mock = respond_json(success_body())
        assert not make_service(mock).voice_request_sync(VOICE).is_error

    def test_unwritable_sound_log_does_not_fail_request(self, tmp_path: Path) -> None:
        log_path = tmp_path / "missing" / "voice.wav"
        mock = respond_json(success_body())
        service = make_service(mock, write_sound_log=True, sound_log_path=str(log_path))

        assert not asyncio.run(service.voice_request(VOICE)).is_error
        assert not log_path.exists()
        assert len(mock.requests) == 1


# -- Context reset --


class TestResetContexts:
    def test_success(self) -> None:
        mock = respond_json(success_body())
        assert asyncio.run(make_service(mock).reset_contexts()) is True

        body = request_json(mock.last_request)
        assert body["query"] == RESET_CONTEXTS_QUERY
        assert body["resetContexts"] is True

    @pytest.mark.parametrize(
        "mock_factory",
        [
            lambda: respond_json({"status": {"code": 500, "errorType": "internal"}}),
            lambda: respond_text(""),
            lambda: respond_text("garbage"),
            lambda: respond_text("", 500),
            refuse_connection,
        ],
    )
    def test_failure_returns_false(self, mock_factory) -> None:
        mock: RecordingTransport = mock_factory()
        assert asyncio.run(make_service(mock).reset_contexts()) is False

    def test_sync_wrapper(self) -> None:
        assert make_service(refuse_connection()).reset_contexts_sync() is False

    def test_rejected_proxy_returns_false(self) -> None:
        service = make_service(respond_json(success_body()))
        with patch(
            "apiai_client.transport.httpx.AsyncClient",
            side_effect=ValueError("Unknown scheme for proxy URL"),
        ):
            assert asyncio.run(service.reset_contexts()) is False


# -- Entity upload --


class TestUploadUserEntities:
    def _entity(self) -> Entity:
        entity = Entity(name="dwarfs")
        entity.add_entry("Ori", "Ori", "Nori")
        return entity

    @pytest.mark.parametrize("entities", [None, []])
    def test_empty_raises_before_network(self, entities: list[Entity] | None) -> None:
        mock = respond_json(success_body())
        with pytest.raises(InvalidArgumentError, match="Empty entities list"):
            asyncio.run(make_service(mock).upload_user_entities(entities))  # type: ignore[arg-type]
        assert mock.requests == []

    def test_posts_entities(self) -> None:
        mock = respond_json(success_body())
        response = asyncio.run(make_service(mock).upload_user_entities([self._entity()]))
        assert not response.is_error

        request = mock.last_request
        url = urlsplit(str(request.url))
        assert url.path == "/v1/userEntities"
        assert parse_qs(url.query)["sessionId"] == [TEST_SESSION_ID]
        assert request.headers["Content-Type"] == "application/json; charset=utf-8"
        assert request_json(request) == [
            {"name": "dwarfs", "entries": [{"value": "Ori", "synonyms": ["Ori", "Nori"]}]}
        ]

    def test_single_entity(self) -> None:
        mock = respond_json(success_body())
        asyncio.run(make_service(mock).upload_user_entity(self._entity()))
        assert len(request_json(mock.last_request)) == 1

    def test_error_status(self) -> None:
        mock = respond_json({"status": {"code": 409, "errorType": "conflict"}}, 409)
        with pytest.raises(ServiceError) as exc_info:
            asyncio.run(make_service(mock).upload_user_entities([self._entity()]))
        assert exc_info.value.code == 409

    def test_sync_wrapper(self) -> None:
        mock = respond_json(success_body())
        assert not make_service(mock).upload_user_entities_sync([self._entity()]).is_error


class TestConfigurationIsolation:
    def test_requests_use_snapshot(self) -> None:
        mock = respond_json(success_body())
        config = AIConfiguration(api_key="first-key")
        service = AIDataService(config, transport=mock)
        asyncio.run(service.text_query("hi"))
        assert mock.last_request.headers["Authorization"] == "Bearer first-key"
