from __future__ import annotations

from typing import TYPE_CHECKING

from clientingest import app
from clientingest.domain.errors import TransportFailure
from clientingest.domain.model import DuplicatePolicy, RequestSpec
from tests.helpers.fakes import FakeUnitOfWork, RecordingCourierFetcher, ScriptedTransport, page_of

if TYPE_CHECKING:
    from collections.abc import Callable

    from clientingest.adapters.sqlalchemy.unit_of_work import SqlAlchemyClientUnitOfWork


def test_ingest_csv_stores_batch() -> None:
    uow = FakeUnitOfWork()

    outcome = app.ingest_csv("name\nAcme\nBeta\n", unit_of_work_factory=lambda: uow)

    assert outcome.report.ok
    assert outcome.stored == 2
    assert uow.repository.names() == {"Acme", "Beta"}


def test_dry_run_does_not_store() -> None:
    uow = FakeUnitOfWork()

    outcome = app.ingest_json('["Acme", "Beta"]', submit=False, unit_of_work_factory=lambda: uow)

    assert outcome.report.ok
    assert outcome.submission is None
    assert outcome.stored == 0
    assert uow.commits == 0


def test_invalid_input_is_not_submitted() -> None:
    uow = FakeUnitOfWork()

    outcome = app.ingest_csv("name\nAcme\nAcme\n", unit_of_work_factory=lambda: uow)

    assert not outcome.report.ok
    assert outcome.submission is None
    assert uow.commits == 0


def test_exclude_policy_stores_first_occurrences() -> None:
    uow = FakeUnitOfWork()

    outcome = app.ingest_csv(
        "name\nAcme\nAcme\nBeta\n",
        duplicate_policy=DuplicatePolicy.EXCLUDE,
        unit_of_work_factory=lambda: uow,
    )

    assert outcome.stored == 2


def test_ingest_api_with_injected_transport_and_courier_fetcher() -> None:
    uow = FakeUnitOfWork()
    fetcher = RecordingCourierFetcher()
    spec = RequestSpec(url="https://api.example.com/clients")
    transport = ScriptedTransport([page_of(["Acme", "Beta"])])

    outcome = app.ingest_api(
        spec,
        transport=transport,
        unit_of_work_factory=lambda: uow,
        courier_fetcher=fetcher,
    )

    assert outcome.stored == 2
    assert len(fetcher.calls) == 2
    assert all(api_url == spec.url for _, api_url in fetcher.calls)


def test_ingest_api_failure_reports_classified_error() -> None:
    uow = FakeUnitOfWork()
    failure = TransportFailure("refused", code="ECONNREFUSED", url="https://api.example.com")
    transport = ScriptedTransport([failure])

    outcome = app.ingest_api(
        RequestSpec(url="https://api.example.com"),
        transport=transport,
        unit_of_work_factory=lambda: uow,
    )

    assert not outcome.report.ok
    assert outcome.report.failure is not None
    assert outcome.report.errors[0].startswith('The connection to "api.example.com" was refused.')
    assert uow.commits == 0


def test_ingest_csv_into_sqlite(
    sqlite_unit_of_work: Callable[[], SqlAlchemyClientUnitOfWork],
) -> None:
    outcome = app.ingest_csv(
        "Company ID,Company Name\n42,Acme\n",
        unit_of_work_factory=sqlite_unit_of_work,
    )

    assert outcome.stored == 1
    with sqlite_unit_of_work() as uow:
        assert uow.repositories.clients.names() == {"Acme"}
