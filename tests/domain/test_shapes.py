from __future__ import annotations

import pytest

from clientingest.domain.shapes import PayloadKind, locate_records, payload_kind


def test_bare_array_is_the_record_collection() -> None:
    assert locate_records([{"name": "Acme"}, "Beta"]) == [{"name": "Acme"}, "Beta"]


def test_conventional_container_wins_over_other_arrays() -> None:
    payload = {
        "meta": [{"ignored": True}],
        "results": [{"name": "Acme"}],
    }

    assert locate_records(payload) == [{"name": "Acme"}]


def test_container_priority_order() -> None:
    payload = {
        "content": [{"name": "content"}],
        "data": [{"name": "data"}],
        "clients": [{"name": "clients"}],
    }

    assert locate_records(payload) == [{"name": "clients"}]


def test_empty_container_falls_through_to_first_array_field() -> None:
    payload = {"data": [], "items": [{"name": "Acme"}]}

    assert locate_records(payload) == [{"name": "Acme"}]


@pytest.mark.parametrize(
    "payload",
    [
        {"total": 3, "page": 1},
        {"data": []},
        "plain text",
        42,
        None,
    ],
)
def test_no_collection_found_yields_empty_list(payload: object) -> None:
    assert locate_records(payload) == []


def test_empty_top_level_array_is_returned_as_is() -> None:
    assert locate_records([]) == []


def test_payload_kind() -> None:
    assert payload_kind([1]) is PayloadKind.SEQUENCE
    assert payload_kind({"a": 1}) is PayloadKind.MAPPING
    assert payload_kind("abc") is PayloadKind.SCALAR
