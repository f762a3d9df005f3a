"""Client configuration.

``AIConfiguration`` is an immutable snapshot of everything a request
needs from the outside world: credentials, language, endpoints, proxy
and diagnostics flags.  It can be built directly, from environment
variables, or from a YAML file via :func:`load_configuration`.
"""

from __future__ import annotations

import dataclasses
import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any
from urllib.parse import urlencode

import httpx
import yaml

logger = logging.getLogger(__name__)

DEFAULT_SERVICE_URL = "https://api.api.ai/v1/"
DEFAULT_PROTOCOL_VERSION = "20150910"
DEFAULT_LANGUAGE = "en"
DEFAULT_TIMEOUT = 30.0

QUESTION_ENDPOINT = "query"
USER_ENTITIES_ENDPOINT = "userEntities"

SUPPORTED_LANGUAGES: tuple[str, ...] = (
    "en",
    "ru",
    "de",
    "pt",
    "pt-BR",
    "es",
    "fr",
    "it",
    "ja",
    "ko",
    "zh-CN",
    "zh-HK",
    "zh-TW",
)

# Environment variables consulted by load_configuration().
_ENV_VARS: dict[str, str] = {
    "api_key": "APIAI_API_KEY",
    "language": "APIAI_LANGUAGE",
    "proxy": "APIAI_PROXY",
}

_PROXY_SCHEMES = ("http", "https", "socks5", "socks5h")


def _resolve_language(tag: str) -> str:
    for language in SUPPORTED_LANGUAGES:
        if language.lower() == tag.replace("_", "-").lower():
            return language
    logger.warning("Unsupported language %r; falling back to %r", tag, DEFAULT_LANGUAGE)
    return DEFAULT_LANGUAGE


def _check_proxy(proxy: str) -> None:
    try:
        url = httpx.URL(proxy)
    except httpx.InvalidURL as exc:
        raise ValueError(f"Invalid proxy URL {proxy!r}: {exc}") from exc
    if url.scheme not in _PROXY_SCHEMES or not url.host:
        raise ValueError(
            f"Invalid proxy URL {proxy!r}: expected one of "
            f"{', '.join(_PROXY_SCHEMES)} with a host"
        )


@dataclass(frozen=True)
class AIConfiguration:
    """Immutable client configuration.

    Attributes
    ----------
    api_key:
        Access token sent as ``Authorization: Bearer <api_key>``.
    language:
        Language tag of the agent (one of :data:`SUPPORTED_LANGUAGES`).
        Unknown tags fall back to English.
    service_url:
        Base URL of the service; endpoint names are appended to it.
    protocol_version:
        Value of the ``v`` query parameter, or ``None`` to omit it.
    proxy:
        Proxy URL for all requests, or ``None`` for a direct connection.
        Must use an http, https or socks5 scheme.
    write_sound_log:
        If ``True``, voice data sent to the service is also written to
        ``sound_log_path``.
    sound_log_path:
        Destination of the sound log.  Defaults to a file in the system
        temp directory.
    timeout:
        HTTP timeout in seconds.
    """

    api_key: str
    language: str = DEFAULT_LANGUAGE
    service_url: str = DEFAULT_SERVICE_URL
    protocol_version: str | None = DEFAULT_PROTOCOL_VERSION
    proxy: str | None = None
    write_sound_log: bool = False
    sound_log_path: str | None = None
    timeout: float = DEFAULT_TIMEOUT

    def __post_init__(self) -> None:
        if not self.api_key:
            raise ValueError("api_key is required for AIConfiguration")
        object.__setattr__(self, "language", _resolve_language(self.language))
        if not self.service_url.endswith("/"):
            object.__setattr__(self, "service_url", self.service_url + "/")
        if self.proxy:
            _check_proxy(self.proxy)

    def clone(self) -> AIConfiguration:
        """Return an independent copy of this configuration."""
        return dataclasses.replace(self)

    @property
    def resolved_sound_log_path(self) -> Path:
        if self.sound_log_path:
            return Path(self.sound_log_path)
        return Path(tempfile.gettempdir()) / "apiai_voice_log.wav"

    def _endpoint(self, name: str, session_id: str) -> str:
        params: dict[str, str] = {}
        if self.protocol_version:
            params["v"] = self.protocol_version
        params["sessionId"] = session_id
        return f"{self.service_url}{name}?{urlencode(params)}"

    def question_url(self, session_id: str) -> str:
        """URL of the query endpoint for *session_id*."""
        return self._endpoint(QUESTION_ENDPOINT, session_id)

    def user_entities_url(self, session_id: str) -> str:
        """URL of the user entities endpoint for *session_id*."""
        return self._endpoint(USER_ENTITIES_ENDPOINT, session_id)


def load_configuration(
    path: str | Path | None = None, **overrides: Any
) -> AIConfiguration:
    """Build an :class:`AIConfiguration` from a file, overrides and the environment.

    Values are taken, in order of precedence, from keyword *overrides*,
    the YAML file at *path*, and the ``APIAI_API_KEY``,
    ``APIAI_LANGUAGE`` and ``APIAI_PROXY`` environment variables.

    The YAML file holds the configuration fields at the top level::

        api_key: 0123456789abcdef
        language: de
        proxy: http://proxy.local:3128

    Raises
    ------
    FileNotFoundError
        If *path* is given but does not exist.
    ValueError
        If the file is not a mapping, names an unknown field, or no API
        key can be found.
    """
    values: dict[str, Any] = {}

    for name, env_var in _ENV_VARS.items():
        env_value = os.environ.get(env_var)
        if env_value:
            values[name] = env_value

    if path is not None:
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        with open(path) as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            raise ValueError(f"Invalid configuration file: expected a mapping in {path}")

        known = {fld.name for fld in dataclasses.fields(AIConfiguration)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(
                f"Invalid configuration file {path}: unknown fields {', '.join(unknown)}"
            )
        values.update(data)

    values.update({k: v for k, v in overrides.items() if v is not None})

    if not values.get("api_key"):
        raise ValueError(
            "API key is required. Set APIAI_API_KEY or pass api_key=."
        )

    logger.debug(
        "Loaded configuration (language=%s, proxy=%s)",
        values.get("language", DEFAULT_LANGUAGE),
        values.get("proxy"),
    )
    return AIConfiguration(**values)
