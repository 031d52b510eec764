"""Turn opaque transport failures into actionable categories.

Every failure shape is first reduced to the same handful of facts (error code,
HTTP status, hostname, message, size flag); categorization then only looks at
those facts. :func:`classify` never raises.
"""

from __future__ import annotations

import errno
import socket
from collections.abc import Mapping
from dataclasses import dataclass
from functools import singledispatch
from logging import getLogger
from typing import Final
from urllib.parse import urlsplit

from clientingest.domain.errors import TransportFailure
from clientingest.domain.model import FailureCategory

log = getLogger(__name__)

TOO_LARGE_ERROR_TYPE: Final[str] = "Function.ResponseSizeTooLarge"
TOO_LARGE_MARKER: Final[str] = "payload size exceeded"

_CODE_CATEGORIES: Final[dict[str, FailureCategory]] = {
    "ENOTFOUND": FailureCategory.ENOTFOUND,
    "EAI_AGAIN": FailureCategory.ENOTFOUND,
    "ECONNREFUSED": FailureCategory.ECONNREFUSED,
    "ETIMEDOUT": FailureCategory.ETIMEDOUT,
    "ECONNRESET": FailureCategory.ECONNRESET,
}

_RETRYABLE: Final[frozenset[FailureCategory]] = frozenset(
    {
        FailureCategory.ETIMEDOUT,
        FailureCategory.ECONNRESET,
        FailureCategory.UPSTREAM_UNREACHABLE,
    }
)

_SUGGESTIONS: Final[dict[FailureCategory, tuple[str, ...]]] = {
    FailureCategory.RESPONSE_TOO_LARGE: (
        "Add filter parameters to your API request to reduce the response size",
        "Use pagination to retrieve data in smaller chunks",
        "Modify the API to return only essential fields",
        "Consider using the API filtering options of the request",
    ),
    FailureCategory.ENOTFOUND: (
        "Check if the URL is spelled correctly",
        "Verify that the domain exists and is accessible",
    ),
    FailureCategory.ECONNREFUSED: (
        "Verify the server is running and accepting connections",
        "Check if a firewall is blocking the connection",
        "Confirm the port number is correct",
    ),
    FailureCategory.ETIMEDOUT: (
        "The server might be overloaded or temporarily down",
        "Try again later or contact the API provider",
    ),
    FailureCategory.ECONNRESET: (
        "The server might be overloaded or temporarily down",
        "Try again later or contact the API provider",
    ),
    FailureCategory.UPSTREAM_UNREACHABLE: (
        "Check your internet connection",
        "Verify the API endpoint is reachable from this machine",
    ),
    FailureCategory.UNKNOWN: (),
}


@dataclass(frozen=True, slots=True)
class ClassifiedError:
    category: FailureCategory
    message: str
    hostname: str | None = None
    suggestions: tuple[str, ...] = ()
    status_code: int | None = None
    detail: str = ""
    retryable: bool = False


@dataclass(frozen=True, slots=True)
class _FailureFacts:
    message: str = ""
    code: str | None = None
    status_code: int | None = None
    hostname: str | None = None
    url: str | None = None
    error_type: str | None = None
    too_large: bool = False
    suggestion: str | None = None


def _hostname_from(url: object) -> str | None:
    if not isinstance(url, str) or not url:
        return None
    try:
        return urlsplit(url).hostname
    except ValueError:
        return None


def _as_int(value: object) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value)
    return None


def _as_str(value: object) -> str | None:
    return value if isinstance(value, str) and value else None


@singledispatch
def _facts(failure: object) -> _FailureFacts:
    return _FailureFacts(message=str(failure) if failure is not None else "")


@_facts.register
def _(failure: TransportFailure) -> _FailureFacts:
    details = failure.details
    network = details.get("networkDetails")
    code = failure.code
    if code is None and isinstance(network, Mapping):
        code = _as_str(network.get("errorCode"))
    return _FailureFacts(
        message=failure.message,
        code=code,
        status_code=failure.status_code,
        hostname=failure.hostname or _hostname_from(failure.url),
        url=failure.url,
        error_type=_as_str(details.get("errorType")),
        too_large=failure.too_large,
        suggestion=_as_str(details.get("suggestion")),
    )


@_facts.register
def _(failure: Mapping) -> _FailureFacts:  # type: ignore[type-arg]
    details = failure.get("details")
    details = details if isinstance(details, Mapping) else {}
    network = details.get("networkDetails") or failure.get("networkDetails")
    network = network if isinstance(network, Mapping) else {}
    url = _as_str(details.get("url")) or _as_str(failure.get("url"))
    message = _as_str(failure.get("message")) or _as_str(details.get("message")) or ""
    detail_message = _as_str(details.get("message")) or ""
    return _FailureFacts(
        message=message,
        code=_as_str(failure.get("code")) or _as_str(network.get("errorCode")),
        status_code=_as_int(failure.get("status")) or _as_int(failure.get("status_code")),
        hostname=_as_str(details.get("hostname")) or _hostname_from(url),
        url=url,
        error_type=_as_str(details.get("errorType")),
        too_large=TOO_LARGE_MARKER in detail_message,
        suggestion=_as_str(details.get("suggestion")),
    )


@_facts.register
def _(failure: Exception) -> _FailureFacts:
    status = getattr(failure, "status_code", None)
    if status is None:
        status = getattr(failure, "status", None)
    return _FailureFacts(
        message=str(failure),
        code=_as_str(getattr(failure, "code", None)),
        status_code=_as_int(status),
        url=_as_str(getattr(failure, "url", None)),
        hostname=_hostname_from(getattr(failure, "url", None)),
    )


@_facts.register
def _(failure: OSError) -> _FailureFacts:
    code = errno.errorcode.get(failure.errno) if failure.errno is not None else None
    return _FailureFacts(message=str(failure), code=code)


@_facts.register
def _(failure: socket.gaierror) -> _FailureFacts:
    return _FailureFacts(message=str(failure), code="ENOTFOUND")


@_facts.register
def _(failure: ConnectionRefusedError) -> _FailureFacts:
    return _FailureFacts(message=str(failure), code="ECONNREFUSED")


@_facts.register
def _(failure: ConnectionResetError) -> _FailureFacts:
    return _FailureFacts(message=str(failure), code="ECONNRESET")


@_facts.register
def _(failure: TimeoutError) -> _FailureFacts:
    return _FailureFacts(message=str(failure) or "timed out", code="ETIMEDOUT")


def _category(facts: _FailureFacts) -> FailureCategory:
    if (
        facts.too_large
        or facts.error_type == TOO_LARGE_ERROR_TYPE
        or TOO_LARGE_MARKER in facts.message
    ):
        return FailureCategory.RESPONSE_TOO_LARGE
    if facts.code is not None and facts.code.upper() in _CODE_CATEGORIES:
        return _CODE_CATEGORIES[facts.code.upper()]
    if facts.status_code == 502:
        return FailureCategory.UPSTREAM_UNREACHABLE
    return FailureCategory.UNKNOWN


def _message(category: FailureCategory, hostname: str | None) -> str:
    server = hostname or "the server"
    if category is FailureCategory.RESPONSE_TOO_LARGE:
        return (
            "The API response is too large to handle (exceeds the response size limit). "
            "You need to filter or paginate the API response."
        )
    if category is FailureCategory.ENOTFOUND:
        return (
            f'The hostname "{hostname or "unknown"}" could not be resolved. '
            "Please check if the URL is correct."
        )
    if category is FailureCategory.ECONNREFUSED:
        return (
            f'The connection to "{server}" was refused. '
            "The server might be down or not accepting connections."
        )
    if category is FailureCategory.ETIMEDOUT:
        return f'The connection to "{server}" timed out. The server might be slow or unreachable.'
    if category is FailureCategory.ECONNRESET:
        return (
            f'The connection to "{server}" was reset. '
            "The server might have closed the connection unexpectedly."
        )
    if category is FailureCategory.UPSTREAM_UNREACHABLE:
        return (
            "Cannot connect to the API server. "
            "Please check if the server is running and accessible."
        )
    return "An unknown error occurred while making the API request."


def classify(failure: object) -> ClassifiedError:
    """Classify ``failure`` into a :class:`ClassifiedError`."""

    try:
        facts = _facts(failure)
    except Exception:  # noqa: BLE001
        log.debug("Could not inspect failure of type %s", type(failure).__name__)
        facts = _FailureFacts(message=repr(failure))

    category = _category(facts)
    suggestions = _SUGGESTIONS[category]
    if facts.suggestion:
        suggestions = (*suggestions, facts.suggestion)
    classified = ClassifiedError(
        category=category,
        message=_message(category, facts.hostname),
        hostname=facts.hostname,
        suggestions=suggestions,
        status_code=facts.status_code,
        detail=facts.message,
        retryable=category in _RETRYABLE,
    )
    log.debug("Classified %s as %s", type(failure).__name__, category)
    return classified
