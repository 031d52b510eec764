from __future__ import annotations

from typing import TYPE_CHECKING, cast

import pytest

from clientingest.app import IngestionOutcome
from clientingest.domain.data_integration import IngestionReport
from clientingest.domain.model import (
    ApiKeyLocation,
    AuthType,
    Batch,
    ClientDraft,
    DuplicatePolicy,
    IngestionSource,
    KeyValue,
)
from clientingest.ui import cli

if TYPE_CHECKING:
    from pathlib import Path

    from clientingest.config import IngestionConfig
    from clientingest.domain.model import RequestSpec


def _ok_outcome(source: IngestionSource = IngestionSource.CSV) -> IngestionOutcome:
    batch = Batch.of([ClientDraft(name="Acme")])
    return IngestionOutcome(report=IngestionReport(source=source, batch=batch))


def test_csv_command_reads_file(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    captured: dict[str, object] = {}

    def fake_ingest(text: str, **kwargs: object) -> IngestionOutcome:
        captured["text"] = text
        captured.update(kwargs)
        return _ok_outcome()

    monkeypatch.setattr(cli, "ingest_csv", fake_ingest)
    source = tmp_path / "clients.csv"
    source.write_text("name\nAcme\n", encoding="utf-8")

    cli.main(["csv", str(source), "--duplicates", "exclude", "--dry-run"])

    assert captured["text"] == "name\nAcme\n"
    assert captured["duplicate_policy"] is DuplicatePolicy.EXCLUDE
    assert captured["submit"] is False
    assert captured["api_url"] is None


def test_json_command_uses_request_file_url(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    captured: dict[str, object] = {}

    def fake_ingest(text: str, **kwargs: object) -> IngestionOutcome:
        _ = text
        captured.update(kwargs)
        return _ok_outcome(IngestionSource.JSON)

    monkeypatch.setattr(cli, "ingest_json", fake_ingest)
    clients = tmp_path / "clients.json"
    clients.write_text('["Acme"]', encoding="utf-8")
    request = tmp_path / "request.json"
    request.write_text('{"url": "https://couriers.example.com"}', encoding="utf-8")

    cli.main(["json", str(clients), "--request-file", str(request)])

    assert captured["api_url"] == "https://couriers.example.com"
    assert captured["submit"] is True


def test_api_command_builds_request(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: dict[str, object] = {}

    def fake_ingest(spec: RequestSpec, **kwargs: object) -> IngestionOutcome:
        captured["spec"] = spec
        captured.update(kwargs)
        return _ok_outcome(IngestionSource.API)

    monkeypatch.setattr(cli, "ingest_api", fake_ingest)
    monkeypatch.setenv("CLIENT_API_KEY", "k-1")

    cli.main(
        [
            "api",
            "--url",
            "https://api.example.com/clients",
            "-H",
            "Accept: application/json",
            "--param",
            "status=active",
            "--auth",
            "apikey",
            "--token-env",
            "CLIENT_API_KEY",
            "--api-key-location",
            "query",
            "--page-size",
            "25",
        ]
    )

    request = cast("RequestSpec", captured["spec"])
    assert request.headers == (KeyValue("Accept", "application/json"),)
    assert request.query_params == (KeyValue("status", "active"),)
    assert request.auth is not None
    assert request.auth.type is AuthType.APIKEY
    assert request.auth.api_key == "k-1"
    assert request.auth.api_key_location is ApiKeyLocation.QUERY
    config = cast("IngestionConfig", captured["config"])
    assert config.page_size == 25
    assert config.page_cap == 10


def test_api_command_keeps_explicit_zero_paging(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: dict[str, object] = {}

    def fake_ingest(spec: RequestSpec, **kwargs: object) -> IngestionOutcome:
        _ = spec
        captured.update(kwargs)
        return _ok_outcome(IngestionSource.API)

    monkeypatch.setattr(cli, "ingest_api", fake_ingest)

    cli.main(["api", "--url", "https://api.example.com", "--page-size", "0", "--page-cap", "0"])

    config = cast("IngestionConfig", captured["config"])
    assert config.page_size == 0
    assert config.page_cap == 0


def test_api_command_from_curl(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: dict[str, RequestSpec] = {}

    def fake_ingest(spec: RequestSpec, **kwargs: object) -> IngestionOutcome:
        _ = kwargs
        captured["spec"] = spec
        return _ok_outcome(IngestionSource.API)

    monkeypatch.setattr(cli, "ingest_api", fake_ingest)

    cli.main(["api", "--curl", "curl -H 'Authorization: Bearer t-1' https://api.example.com"])

    assert captured["spec"].auth is not None
    assert captured["spec"].auth.token == "t-1"


def test_missing_secret_exits_with_validation_code(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("MISSING_TOKEN", raising=False)

    with pytest.raises(SystemExit) as excinfo:
        cli.main(
            [
                "api",
                "--url",
                "https://api.example.com",
                "--auth",
                "bearer",
                "--token-env",
                "MISSING_TOKEN",
            ]
        )

    assert excinfo.value.code == 2


def test_invalid_report_exits_with_validation_code(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    def fake_ingest(text: str, **kwargs: object) -> IngestionOutcome:
        _ = (text, kwargs)
        report = IngestionReport(source=IngestionSource.CSV, batch=None, errors=("bad",))
        return IngestionOutcome(report=report)

    monkeypatch.setattr(cli, "ingest_csv", fake_ingest)
    source = tmp_path / "clients.csv"
    source.write_text("name\nA\n", encoding="utf-8")

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["csv", str(source)])

    assert excinfo.value.code == 2


def test_missing_file_exits_with_validation_code(tmp_path: Path) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["csv", str(tmp_path / "absent.csv")])

    assert excinfo.value.code == 2


def test_unexpected_failure_exits_with_error_code(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    def fake_ingest(text: str, **kwargs: object) -> IngestionOutcome:
        _ = (text, kwargs)
        raise RuntimeError("database unavailable")

    monkeypatch.setattr(cli, "ingest_csv", fake_ingest)
    source = tmp_path / "clients.csv"
    source.write_text("name\nAcme\n", encoding="utf-8")

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["csv", str(source)])

    assert excinfo.value.code == 1
