from __future__ import annotations

from clientingest.domain.extraction import NAME_ALIASES, extract, extract_name, first_alias_value
from clientingest.domain.model import PLACEHOLDER_CLIENT_NAME, RequestSpec


def test_name_alias_priority() -> None:
    record = {"title": "From title", "customerName": "From customer", "company_id": "42"}

    assert extract_name(record) == "From customer"


def test_company_name_wins_over_company_id() -> None:
    assert extract_name({"Company ID": "42", "Company Name": "Acme"}) == "Acme"
    assert extract_name({"companyId": 42}) == "42"


def test_blank_and_non_text_values_are_skipped() -> None:
    record = {"name": "   ", "client_name": True, "clientName": None, "label": "Acme"}

    assert extract_name(record) == "Acme"


def test_bare_string_record_is_its_own_name() -> None:
    assert extract_name("Acme") == "Acme"


def test_unusable_records_get_placeholder_name() -> None:
    assert extract_name({"id": 7}) == PLACEHOLDER_CLIENT_NAME
    assert extract_name(12) == PLACEHOLDER_CLIENT_NAME
    assert extract_name("  ") == PLACEHOLDER_CLIENT_NAME


def test_extract_populates_secondary_fields() -> None:
    record = {
        "name": "Acme",
        "Company ID": "42",
        "companyName": "Acme GmbH",
        "oldCompanyId": "7",
        "Display ID": "D-1",
        "types": "retail",
    }

    draft = extract(record, index=3)

    assert draft.name == "Acme"
    assert draft.company_id == "42"
    assert draft.company_name == "Acme GmbH"
    assert draft.old_company_id == "7"
    assert draft.display_id == "D-1"
    assert draft.types == "retail"
    assert draft.source_index == 3
    assert draft.api_url is None


def test_api_url_comes_from_caller_only() -> None:
    spec = RequestSpec(url="https://api.example.com/clients")
    record = {"name": "Acme", "api_url": "https://evil.example.com"}

    draft = extract(record, spec.url, request_config=spec)

    assert draft.api_url == "https://api.example.com/clients"
    assert draft.request_config is spec


def test_first_alias_value_returns_none_when_absent() -> None:
    assert first_alias_value({"other": "x"}, NAME_ALIASES) is None
