"""httpx-backed implementation of the :class:`Transport` port."""

from __future__ import annotations

import base64
import json
import socket
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Final
from urllib.parse import parse_qsl, urlsplit

import httpx

from clientingest.adapters.http_resilience import RequestOptions, ResilientClient
from clientingest.config.http_resilience import get_client_api_resilience
from clientingest.config.ingestion import DEFAULT_MAX_RESPONSE_BYTES
from clientingest.domain.errors import TransportFailure
from clientingest.domain.model import ApiKeyLocation, AuthType
from clientingest.domain.ports import RawResponse

if TYPE_CHECKING:
    from collections.abc import Callable
    from types import TracebackType

    from clientingest.config.http_resilience import ResilienceConfig
    from clientingest.domain.model import KeyValue, RequestSpec
    from clientingest.domain.ports import Transport

log = getLogger(__name__)

BODY_METHODS: Final[frozenset[str]] = frozenset({"POST", "PUT", "PATCH"})
FORM_CONTENT_TYPE: Final[str] = "application/x-www-form-urlencoded"

_DNS_MARKERS: Final[tuple[str, ...]] = (
    "name or service not known",
    "nodename nor servname",
    "getaddrinfo",
    "temporary failure in name resolution",
    "no address associated with hostname",
)


def _should_cache_payload(payload: object) -> bool:
    return not (isinstance(payload, dict) and "error" in payload)


def _default_resilience_config() -> ResilienceConfig:
    return get_client_api_resilience(cache_predicate=_should_cache_payload)


def _default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


def _error_code_from_os_error(error: OSError) -> str | None:
    if isinstance(error, socket.gaierror):
        return "ENOTFOUND"
    if isinstance(error, ConnectionRefusedError):
        return "ECONNREFUSED"
    if isinstance(error, ConnectionResetError):
        return "ECONNRESET"
    if isinstance(error, TimeoutError):
        return "ETIMEDOUT"
    return None


def error_code_for(exc: Exception) -> str | None:
    """Best-effort socket error code for a failed request."""

    current: BaseException | None = exc
    while current is not None:
        if isinstance(current, OSError):
            code = _error_code_from_os_error(current)
            if code is not None:
                return code
        current = current.__cause__ or current.__context__

    if isinstance(exc, httpx.TimeoutException):
        return "ETIMEDOUT"
    message = str(exc).lower()
    if any(marker in message for marker in _DNS_MARKERS):
        return "ENOTFOUND"
    if "refused" in message:
        return "ECONNREFUSED"
    if "reset" in message:
        return "ECONNRESET"
    return None


def merged_query_params(spec: RequestSpec) -> list[tuple[str, str]]:
    """Spec query parameters minus those the URL already carries."""

    in_url = {key for key, _ in parse_qsl(urlsplit(spec.url).query, keep_blank_values=True)}
    return [(param.key, param.value) for param in spec.query_params if param.key not in in_url]


def auth_headers(spec: RequestSpec) -> dict[str, str]:
    """Headers implied by ``spec.auth``; headers already set on the spec win."""

    auth = spec.auth
    if auth is None or auth.type is AuthType.NONE:
        return {}
    if auth.type is AuthType.BASIC:
        if spec.header("Authorization") is not None:
            return {}
        credentials = f"{auth.username or ''}:{auth.password or ''}".encode()
        return {"Authorization": f"Basic {base64.b64encode(credentials).decode('ascii')}"}
    if auth.type in {AuthType.BEARER, AuthType.JWT}:
        if spec.header("Authorization") is not None or not auth.token:
            return {}
        return {"Authorization": f"Bearer {auth.token}"}
    if (
        auth.type is AuthType.APIKEY
        and auth.api_key
        and auth.api_key_location is ApiKeyLocation.HEADER
        and spec.header(auth.api_key_name) is None
    ):
        return {auth.api_key_name: auth.api_key}
    return {}


def auth_query_params(spec: RequestSpec) -> list[tuple[str, str]]:
    auth = spec.auth
    if (
        auth is None
        or auth.type is not AuthType.APIKEY
        or not auth.api_key
        or auth.api_key_location is not ApiKeyLocation.QUERY
    ):
        return []
    if any(param.key == auth.api_key_name for param in spec.query_params):
        return []
    return [(auth.api_key_name, auth.api_key)]


def _headers(headers: tuple[KeyValue, ...]) -> dict[str, str]:
    return {header.key: header.value for header in headers if header.key}


def build_request_options(spec: RequestSpec) -> RequestOptions:
    headers = _headers(spec.headers)
    headers.update(auth_headers(spec))
    options: RequestOptions = {
        "headers": headers,
        "params": merged_query_params(spec) + auth_query_params(spec),
    }
    if spec.method not in BODY_METHODS or spec.body is None:
        return options

    content_type = (spec.header("Content-Type") or "").lower()
    if FORM_CONTENT_TYPE in content_type:
        if isinstance(spec.body, dict):
            options["data"] = {str(key): str(value) for key, value in spec.body.items()}
        else:
            options["content"] = str(spec.body)
    elif isinstance(spec.body, str):
        options["content"] = spec.body
    else:
        options["json"] = spec.body
    return options


# raised while building or sending a request; InvalidURL is not an HTTPError
_REQUEST_ERRORS: Final[tuple[type[Exception], ...]] = (
    httpx.HTTPError,
    httpx.InvalidURL,
    httpx.StreamError,
    ValueError,
    TypeError,
)


@dataclass(frozen=True, slots=True)
class _Body:
    status_code: int
    url: str
    content: bytes
    encoding: str
    truncated: bool = False

    @property
    def text(self) -> str:
        return self.content.decode(self.encoding, errors="replace")

    def payload(self) -> object:
        try:
            return json.loads(self.content)
        except ValueError:
            return self.text


async def _read_body(response: httpx.Response, limit: int) -> _Body:
    """Read at most ``limit`` bytes; a declared or streamed excess marks it truncated."""

    def body(content: bytes, *, truncated: bool = False) -> _Body:
        return _Body(
            status_code=response.status_code,
            url=str(response.url),
            content=content,
            encoding=response.charset_encoding or "utf-8",
            truncated=truncated,
        )

    declared = response.headers.get("Content-Length", "")
    if declared.isdigit() and int(declared) > limit:
        return body(b"", truncated=True)
    received = bytearray()
    async for chunk in response.aiter_bytes():
        received.extend(chunk)
        if len(received) > limit:
            return body(bytes(received), truncated=True)
    return body(bytes(received))


@dataclass(slots=True)
class HttpTransport:
    """Sends a :class:`RequestSpec` through a :class:`ResilientClient`.

    Used as an async context manager, one client serves every page of a
    traversal; outside of it each ``send`` opens and closes its own client.
    """

    resilience: ResilienceConfig = field(default_factory=_default_resilience_config)
    max_response_bytes: int = DEFAULT_MAX_RESPONSE_BYTES
    client_factory: Callable[[ResilienceConfig], ResilientClient] = field(
        default=_default_client_factory
    )
    _client: ResilientClient | None = field(default=None, init=False, repr=False)

    async def __aenter__(self) -> HttpTransport:
        self._client = self.client_factory(self.resilience)
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def send(self, spec: RequestSpec) -> RawResponse:
        if self._client is not None:
            return await self._send(self._client, spec)
        async with self.client_factory(self.resilience) as client:
            return await self._send(client, spec)

    async def _send(self, client: ResilientClient, spec: RequestSpec) -> RawResponse:
        hostname = spec.hostname
        log.debug("%s %s", spec.method, spec.url)
        try:
            options = build_request_options(spec)
            async with client.stream(spec.method, spec.url, **options) as response:
                body = await _read_body(response, self.max_response_bytes)
        except _REQUEST_ERRORS as exc:
            code = error_code_for(exc)
            log.debug("Request to %s failed with %s: %s", spec.url, code, exc)
            raise TransportFailure(
                str(exc) or type(exc).__name__,
                code=code,
                hostname=hostname,
                url=spec.url,
                details={"errorType": type(exc).__name__},
            ) from exc

        if body.truncated:
            raise TransportFailure(
                f"Response exceeds the {self.max_response_bytes} byte limit",
                status_code=body.status_code,
                hostname=hostname,
                url=spec.url,
                too_large=True,
                details={"received": len(body.content), "limit": self.max_response_bytes},
            )

        if body.status_code >= 400:
            raise TransportFailure(
                f"Request failed with status code {body.status_code}",
                status_code=body.status_code,
                hostname=hostname,
                url=spec.url,
                details={"body": body.text[:500]},
            )

        return RawResponse(
            status_code=body.status_code,
            payload=body.payload(),
            size_bytes=len(body.content),
            url=body.url,
        )


if TYPE_CHECKING:
    _transport_check: Transport = HttpTransport()
