from __future__ import annotations

import pytest

from clientingest.adapters.request_schema import dump_request_spec, load_request_spec
from clientingest.domain.errors import FormatError
from clientingest.domain.model import (
    ApiKeyLocation,
    AuthConfig,
    AuthType,
    KeyValue,
    RequestSpec,
)


def test_load_camel_case_document() -> None:
    document = """
    {
        "url": "https://api.example.com/clients",
        "method": "post",
        "headers": [{"key": "Accept", "value": "application/json"}, {"key": "", "value": "x"}],
        "queryParams": {"active": true, "limit": 50},
        "body": {"filter": "all"},
        "auth": {"type": "ApiKey", "apiKey": "k-1", "apiKeyLocation": "query"},
        "unknown": "ignored"
    }
    """

    spec = load_request_spec(document)

    assert spec.method == "POST"
    assert spec.headers == (KeyValue("Accept", "application/json"),)
    assert spec.query_params == (KeyValue("active", "true"), KeyValue("limit", "50"))
    assert spec.body == {"filter": "all"}
    assert spec.auth == AuthConfig(
        type=AuthType.APIKEY,
        api_key="k-1",
        api_key_location=ApiKeyLocation.QUERY,
    )


def test_auth_none_and_empty_body_are_dropped() -> None:
    spec = load_request_spec({"url": "https://api.example.com", "body": {}, "auth": {"type": ""}})

    assert spec.auth is None
    assert spec.body is None


@pytest.mark.parametrize(
    "document",
    [
        "{not json",
        '{"method": "GET"}',
        '{"url": "   "}',
        '{"url": "https://x", "auth": {"type": "kerberos"}}',
    ],
)
def test_invalid_documents_raise_format_error(document: str) -> None:
    with pytest.raises(FormatError, match="Invalid request specification"):
        load_request_spec(document)


def test_dump_uses_camel_case_and_can_redact() -> None:
    spec = RequestSpec(
        url="https://api.example.com",
        query_params=(KeyValue("page", "1"),),
        auth=AuthConfig(type=AuthType.BEARER, token="secret"),
    )

    dumped = dump_request_spec(spec)
    redacted = dump_request_spec(spec, redact=True)

    assert dumped["queryParams"] == [{"key": "page", "value": "1"}]
    assert dumped["auth"]["token"] == "secret"  # type: ignore[index]
    assert dumped["auth"]["apiKeyName"] == "X-API-Key"  # type: ignore[index]
    assert redacted["auth"]["token"] == "[REDACTED]"  # type: ignore[index]
    assert load_request_spec(dumped) == spec
