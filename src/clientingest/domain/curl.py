"""Build a :class:`RequestSpec` from a pasted cURL command."""

from __future__ import annotations

import base64
import binascii
import json
import re
import shlex
from typing import Final
from urllib.parse import parse_qsl, urlsplit, urlunsplit

from clientingest.domain.errors import FormatError
from clientingest.domain.model import AuthConfig, AuthType, KeyValue, RequestSpec

_CONTINUATION = re.compile(r"\\\r?\n")

_METHOD_FLAGS: Final[frozenset[str]] = frozenset({"-X", "--request"})
_HEADER_FLAGS: Final[frozenset[str]] = frozenset({"-H", "--header"})
_DATA_FLAGS: Final[frozenset[str]] = frozenset(
    {"-d", "--data", "--data-raw", "--data-binary", "--data-ascii", "--data-urlencode"}
)
_USER_FLAGS: Final[frozenset[str]] = frozenset({"-u", "--user"})
_GET_FLAGS: Final[frozenset[str]] = frozenset({"-G", "--get"})
_VALUE_FLAGS: Final[frozenset[str]] = frozenset(
    {"-A", "--user-agent", "-e", "--referer", "-b", "--cookie", "-m", "--max-time"}
)


def _split_url(url: str) -> tuple[str, tuple[KeyValue, ...]]:
    parts = urlsplit(url)
    if not parts.query:
        return url, ()
    params = tuple(
        KeyValue(key, value) for key, value in parse_qsl(parts.query, keep_blank_values=True)
    )
    return urlunsplit(parts._replace(query="")), params


def _auth_from_header(value: str) -> AuthConfig | None:
    scheme, _, credentials = value.strip().partition(" ")
    credentials = credentials.strip()
    if scheme.lower() == "bearer" and credentials:
        return AuthConfig(type=AuthType.BEARER, token=credentials)
    if scheme.lower() == "basic" and credentials:
        try:
            decoded = base64.b64decode(credentials, validate=True).decode()
        except (binascii.Error, UnicodeDecodeError):
            return None
        username, _, password = decoded.partition(":")
        return AuthConfig(type=AuthType.BASIC, username=username, password=password)
    return None


def _decode_body(data: list[str]) -> object:
    if not data:
        return None
    raw = "&".join(data)
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


def _take_value(tokens: list[str], index: int, flag: str) -> str:
    if index + 1 >= len(tokens):
        raise FormatError(f"Option {flag} requires a value")
    return tokens[index + 1]


def parse_curl(command: str) -> RequestSpec:
    """Parse ``command`` into a request.

    Query parameters in the URL become ``query_params``; ``Authorization``
    headers with a Basic or Bearer scheme become ``auth``; JSON bodies are
    decoded. ``-G`` moves data into the query string.
    """

    try:
        tokens = shlex.split(_CONTINUATION.sub(" ", command.strip()))
    except ValueError as exc:
        raise FormatError(f"Invalid cURL command: {exc}") from exc
    if not tokens or tokens[0] != "curl":
        raise FormatError("Command must start with 'curl'")

    method: str | None = None
    url: str | None = None
    headers: list[KeyValue] = []
    data: list[str] = []
    auth: AuthConfig | None = None
    as_get = False

    index = 1
    while index < len(tokens):
        token = tokens[index]
        if token in _METHOD_FLAGS:
            method = _take_value(tokens, index, token)
            index += 2
            continue
        if token in _HEADER_FLAGS:
            name, _, value = _take_value(tokens, index, token).partition(":")
            header = KeyValue(name.strip(), value.strip())
            header_auth = None
            if header.key.lower() == "authorization":
                header_auth = _auth_from_header(header.value)
            if header_auth is not None:
                auth = header_auth
            else:
                headers.append(header)
            index += 2
            continue
        if token in _DATA_FLAGS:
            data.append(_take_value(tokens, index, token))
            index += 2
            continue
        if token in _USER_FLAGS:
            username, _, password = _take_value(tokens, index, token).partition(":")
            auth = AuthConfig(type=AuthType.BASIC, username=username, password=password)
            index += 2
            continue
        if token == "--url":
            url = _take_value(tokens, index, token)
            index += 2
            continue
        if token in _GET_FLAGS:
            as_get = True
        elif token in _VALUE_FLAGS:
            index += 1
        elif not token.startswith("-") and url is None:
            url = token
        index += 1

    if not url:
        raise FormatError("cURL command has no URL")

    base_url, query_params = _split_url(url)
    body = _decode_body(data)
    if as_get and data:
        query_params += tuple(
            KeyValue(key, value)
            for chunk in data
            for key, value in parse_qsl(chunk, keep_blank_values=True)
        )
        body = None
    if method is None:
        method = "POST" if body is not None else "GET"

    return RequestSpec(
        url=base_url,
        method=method,
        headers=tuple(headers),
        query_params=query_params,
        body=body,
        auth=auth,
    )
