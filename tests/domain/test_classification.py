from __future__ import annotations

import socket

import pytest

from clientingest.domain.classification import classify
from clientingest.domain.errors import TransportFailure
from clientingest.domain.model import FailureCategory


def test_dns_failure_names_the_host() -> None:
    failure = TransportFailure(
        "getaddrinfo ENOTFOUND api.example.com",
        code="ENOTFOUND",
        hostname="api.example.com",
    )

    classified = classify(failure)

    assert classified.category is FailureCategory.ENOTFOUND
    assert classified.hostname == "api.example.com"
    assert classified.message == (
        'The hostname "api.example.com" could not be resolved. '
        "Please check if the URL is correct."
    )
    assert "Check if the URL is spelled correctly" in classified.suggestions
    assert not classified.retryable


def test_too_large_wins_over_other_facts() -> None:
    failure = TransportFailure("too big", code="ECONNRESET", status_code=502, too_large=True)

    classified = classify(failure)

    assert classified.category is FailureCategory.RESPONSE_TOO_LARGE
    assert len(classified.suggestions) == 4


def test_proxy_error_mapping_shape() -> None:
    failure = {
        "message": "Network error",
        "details": {
            "message": "payload size exceeded maximum allowed",
            "errorType": "Function.ResponseSizeTooLarge",
            "suggestion": "Ask the provider for a smaller export",
        },
    }

    classified = classify(failure)

    assert classified.category is FailureCategory.RESPONSE_TOO_LARGE
    assert classified.suggestions[-1] == "Ask the provider for a smaller export"


def test_proxy_network_details_code() -> None:
    failure = {
        "status": 502,
        "details": {
            "url": "https://down.example.com/clients",
            "networkDetails": {"errorCode": "ECONNREFUSED"},
        },
    }

    classified = classify(failure)

    assert classified.category is FailureCategory.ECONNREFUSED
    assert classified.hostname == "down.example.com"
    assert classified.status_code == 502
    assert 'The connection to "down.example.com" was refused.' in classified.message


def test_bare_502_is_upstream_unreachable() -> None:
    classified = classify(TransportFailure("Bad gateway", status_code=502))

    assert classified.category is FailureCategory.UPSTREAM_UNREACHABLE
    assert classified.retryable


@pytest.mark.parametrize(
    ("failure", "expected"),
    [
        (socket.gaierror(-2, "Name or service not known"), FailureCategory.ENOTFOUND),
        (ConnectionRefusedError(111, "Connection refused"), FailureCategory.ECONNREFUSED),
        (ConnectionResetError(104, "Connection reset by peer"), FailureCategory.ECONNRESET),
        (TimeoutError(), FailureCategory.ETIMEDOUT),
        (TransportFailure("x", code="eai_again"), FailureCategory.ENOTFOUND),
    ],
)
def test_socket_level_failures(failure: object, expected: FailureCategory) -> None:
    assert classify(failure).category is expected


@pytest.mark.parametrize(
    "failure",
    [
        None,
        "something odd",
        42,
        ValueError("nope"),
        TransportFailure("Bad request", status_code=400),
    ],
)
def test_unknown_failures(failure: object) -> None:
    classified = classify(failure)

    assert classified.category is FailureCategory.UNKNOWN
    assert classified.message == "An unknown error occurred while making the API request."
    assert classified.suggestions == ()


def test_details_are_kept_for_logs() -> None:
    classified = classify(TransportFailure("Request failed with status code 400", status_code=400))

    assert classified.detail == "Request failed with status code 400"
    assert classified.status_code == 400
