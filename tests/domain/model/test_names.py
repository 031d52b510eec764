from __future__ import annotations

import pytest

from clientingest.domain.model import (
    ClientType,
    detect_client_type,
    generate_unique_client_name,
    normalize_client_name,
    validate_client_name,
)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("  Acme   Corp \t", "Acme Corp"),
        ("Acme\n\nCorp", "Acme Corp"),
        ("", ""),
        (None, ""),
        ("   ", ""),
    ],
)
def test_normalize_client_name(raw: str | None, expected: str) -> None:
    assert normalize_client_name(raw) == expected


def test_normalize_is_idempotent() -> None:
    once = normalize_client_name("  A   b  c ")

    assert normalize_client_name(once) == once


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("Acme CNR+CEE", ClientType.CNR_CEE),
        ("acme cnr+cee", ClientType.CNR_CEE),
        ("Acme CNR", ClientType.CNR),
        ("cnr-north", ClientType.CNR),
        ("Acme", ClientType.STANDARD),
        ("", ClientType.STANDARD),
    ],
)
def test_detect_client_type(name: str, expected: ClientType) -> None:
    assert detect_client_type(name) is expected


def test_validate_client_name_length_boundaries() -> None:
    assert not validate_client_name("A").is_valid
    assert validate_client_name("AB").is_valid
    assert validate_client_name("A" * 100).is_valid

    too_long = validate_client_name("A" * 101)
    assert not too_long.is_valid
    assert too_long.message == "Client name must be at most 100 characters long"


def test_validate_client_name_required() -> None:
    outcome = validate_client_name("")

    assert not outcome.is_valid
    assert outcome.message == "Client name is required"
    assert validate_client_name("A").message == "Client name must be at least 2 characters long"


def test_generate_unique_client_name() -> None:
    assert generate_unique_client_name("Acme", set()) == "Acme"
    assert generate_unique_client_name("Acme", {"Other"}) == "Acme"
    assert generate_unique_client_name("Acme", {"Acme"}) == "Acme (1)"
    assert generate_unique_client_name("Acme", {"Acme", "Acme (1)"}) == "Acme (2)"


def test_generate_unique_client_name_stays_within_length_limit() -> None:
    name = "A" * 100

    first = generate_unique_client_name(name, {name})
    second = generate_unique_client_name(name, {name, first})

    assert first == "A" * 96 + " (1)"
    assert second == "A" * 96 + " (2)"
    assert validate_client_name(first).is_valid
