"""Application orchestration entry points."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from clientingest.adapters.http_transport import HttpTransport
from clientingest.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyClientUnitOfWork,
    is_started,
    startup,
)
from clientingest.config.ingestion import get_ingestion_config
from clientingest.domain.data_integration import (
    IngestionReport,
    SubmissionReport,
    ingest_api_async,
    ingest_csv_text,
    ingest_json_text,
    submit_batch,
)
from clientingest.domain.model import DuplicatePolicy
from clientingest.domain.ports.unit_of_work import ClientUnitOfWork

if TYPE_CHECKING:
    from clientingest.config.ingestion import IngestionConfig
    from clientingest.domain.model import RequestSpec
    from clientingest.domain.pagination import CancellationToken, ProgressCallback
    from clientingest.domain.ports import CourierFetcher, Transport

UnitOfWorkFactory = Callable[[], ClientUnitOfWork]

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class IngestionOutcome:
    report: IngestionReport
    submission: SubmissionReport | None = None

    @property
    def stored(self) -> int:
        return len(self.submission.clients) if self.submission is not None else 0


def _resolve_unit_of_work(factory: UnitOfWorkFactory | None) -> UnitOfWorkFactory:
    if factory is not None:
        return factory
    if not is_started():
        startup()
    return SqlAlchemyClientUnitOfWork


def _finish(
    report: IngestionReport,
    *,
    submit: bool,
    unit_of_work_factory: UnitOfWorkFactory | None,
    courier_fetcher: CourierFetcher | None,
) -> IngestionOutcome:
    for notice in report.notices:
        log.warning(notice)
    if report.batch is None:
        for error in report.errors:
            log.error(error)
        return IngestionOutcome(report=report)

    log.info("%s validated: %d client(s) ready", report.source.label, report.batch.count)
    if not submit:
        return IngestionOutcome(report=report)

    submission = submit_batch(
        report.batch,
        unit_of_work_factory=_resolve_unit_of_work(unit_of_work_factory),
        courier_fetcher=courier_fetcher,
    )
    for failed in submission.failed:
        log.warning("Courier fetch failed for %s: %s", failed.client_name, failed.error)
    return IngestionOutcome(report=report, submission=submission)


def ingest_csv(
    text: str,
    *,
    api_url: str | None = None,
    request_config: RequestSpec | None = None,
    duplicate_policy: DuplicatePolicy = DuplicatePolicy.REPORT,
    submit: bool = True,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    courier_fetcher: CourierFetcher | None = None,
) -> IngestionOutcome:
    """Validate pasted CSV text and store the resulting clients."""

    report = ingest_csv_text(
        text,
        api_url=api_url,
        request_config=request_config,
        duplicate_policy=duplicate_policy,
    )
    return _finish(
        report,
        submit=submit,
        unit_of_work_factory=unit_of_work_factory,
        courier_fetcher=courier_fetcher,
    )


def ingest_json(
    text: str,
    *,
    api_url: str | None = None,
    request_config: RequestSpec | None = None,
    duplicate_policy: DuplicatePolicy = DuplicatePolicy.REPORT,
    submit: bool = True,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    courier_fetcher: CourierFetcher | None = None,
) -> IngestionOutcome:
    """Validate pasted JSON text and store the resulting clients."""

    report = ingest_json_text(
        text,
        api_url=api_url,
        request_config=request_config,
        duplicate_policy=duplicate_policy,
    )
    return _finish(
        report,
        submit=submit,
        unit_of_work_factory=unit_of_work_factory,
        courier_fetcher=courier_fetcher,
    )


async def _fetch_report(
    request_spec: RequestSpec,
    *,
    transport: Transport | None,
    config: IngestionConfig,
    duplicate_policy: DuplicatePolicy,
    cancel: CancellationToken | None,
    on_progress: ProgressCallback | None,
) -> IngestionReport:
    async def run(active: Transport) -> IngestionReport:
        return await ingest_api_async(
            request_spec,
            active,
            page_size=config.page_size,
            page_cap=config.page_cap,
            duplicate_policy=duplicate_policy,
            cancel=cancel,
            on_progress=on_progress,
        )

    if transport is not None:
        return await run(transport)
    async with HttpTransport(max_response_bytes=config.max_response_bytes) as http_transport:
        return await run(http_transport)


def ingest_api(
    request_spec: RequestSpec,
    *,
    transport: Transport | None = None,
    config: IngestionConfig | None = None,
    duplicate_policy: DuplicatePolicy = DuplicatePolicy.REPORT,
    submit: bool = True,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    courier_fetcher: CourierFetcher | None = None,
    cancel: CancellationToken | None = None,
    on_progress: ProgressCallback | None = None,
) -> IngestionOutcome:
    """Traverse a client API and store the resulting clients."""

    effective_config = config or get_ingestion_config()
    log.info(
        "Starting API ingestion: %s %s, page_size=%s, page_cap=%s",
        request_spec.method,
        request_spec.url,
        effective_config.page_size,
        effective_config.page_cap,
    )
    report = asyncio.run(
        _fetch_report(
            request_spec,
            transport=transport,
            config=effective_config,
            duplicate_policy=duplicate_policy,
            cancel=cancel,
            on_progress=on_progress,
        )
    )
    if report.pagination is not None and not report.pagination.complete:
        log.warning(
            "Pagination ended early (%s) after %d page(s)",
            report.pagination.termination_reason,
            report.pagination.pages_fetched,
        )
    if report.failure is not None:
        for suggestion in report.failure.suggestions:
            log.info("Suggestion: %s", suggestion)
    return _finish(
        report,
        submit=submit,
        unit_of_work_factory=unit_of_work_factory,
        courier_fetcher=courier_fetcher,
    )
