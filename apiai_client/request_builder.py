"""Request builder -- fills an ``AIRequest`` from session state and extras."""

from __future__ import annotations

import logging
import os
import time
import zoneinfo
from pathlib import Path

from apiai_client.config import AIConfiguration
from apiai_client.context import AIServiceContext
from apiai_client.errors import InvalidArgumentError
from apiai_client.models.request import AIRequest, RequestExtras

logger = logging.getLogger(__name__)

_ZONEINFO_MARKER = "zoneinfo/"
FALLBACK_TIMEZONE = "UTC"


def _system_timezone_name() -> str:
    tz = os.environ.get("TZ", "").lstrip(":")
    if tz:
        return tz

    localtime = Path("/etc/localtime")
    if localtime.is_symlink():
        target = str(localtime.resolve())
        index = target.find(_ZONEINFO_MARKER)
        if index != -1:
            return target[index + len(_ZONEINFO_MARKER):]

    is_dst = bool(time.daylight) and time.localtime().tm_isdst > 0
    return time.tzname[1 if is_dst else 0]


def local_timezone_id() -> str:
    """Return the IANA identifier of the local time zone.

    Looks at ``TZ`` first, then the ``/etc/localtime`` symlink, and
    finally the name reported by :mod:`time`.  That last source is only an
    abbreviation such as ``CEST`` (for instance when ``/etc/localtime`` is
    a copy rather than a link), and ``TZ`` may hold a POSIX rule such as
    ``EST5EDT,M3.2.0,M11.1.0``.  A name that :class:`zoneinfo.ZoneInfo`
    does not accept is replaced by ``"UTC"``.
    """
    name = _system_timezone_name()
    try:
        zoneinfo.ZoneInfo(name)
    except (zoneinfo.ZoneInfoNotFoundError, ValueError, OSError) as exc:
        logger.warning(
            "Local time zone %r is not an IANA id (%s); using %s",
            name,
            exc,
            FALLBACK_TIMEZONE,
        )
        return FALLBACK_TIMEZONE
    return name


def fill_request(request: AIRequest, extras: RequestExtras) -> None:
    """Copy the non-empty parts of *extras* into *request*.

    Absent or empty extras leave the request's own values untouched.
    """
    if extras.has_contexts():
        request.contexts = list(extras.contexts or [])

    if extras.has_entities():
        request.entities = list(extras.entities or [])

    if extras.location is not None:
        request.location = extras.location


def build_request(
    request: AIRequest | None,
    config: AIConfiguration,
    context: AIServiceContext,
    extras: RequestExtras | None = None,
) -> tuple[AIRequest, dict[str, str] | None]:
    """Populate *request* for sending.

    Language, session id and time zone always come from *config*,
    *context* and the local system, overriding anything the caller set.

    Returns
    -------
    tuple
        The populated request and the additional HTTP headers from
        *extras* (``None`` when there are none).

    Raises
    ------
    InvalidArgumentError
        If *request* is ``None``.
    """
    if request is None:
        raise InvalidArgumentError("Request argument must not be None")

    request.lang = config.language
    request.session_id = context.session_id
    request.timezone = local_timezone_id()

    additional_headers: dict[str, str] | None = None
    if extras is not None:
        fill_request(request, extras)
        additional_headers = extras.additional_headers

    return request, additional_headers
