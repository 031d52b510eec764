"""Application services for bulk client ingestion.

Three ingestion paths (CSV text, JSON text, a paginated API) share extraction
and validation. Each returns an :class:`IngestionReport`; nothing here raises
for bad input. A report carries a :class:`Batch` only when it has no errors,
and :func:`submit_batch` persists such a batch.
"""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from clientingest.domain.csv_tokenizer import tokenize
from clientingest.domain.errors import FormatError
from clientingest.domain.extraction import extract, row_request_config
from clientingest.domain.ingest_pipeline import validate
from clientingest.domain.model import (
    Batch,
    DuplicatePolicy,
    IngestionSource,
    PersistedClient,
    generate_unique_client_name,
)
from clientingest.domain.pagination import (
    DEFAULT_PAGE_CAP,
    DEFAULT_PAGE_SIZE,
    fetch_all,
)
from clientingest.domain.shapes import locate_records

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Sequence
    from uuid import UUID

    from clientingest.domain.classification import ClassifiedError
    from clientingest.domain.model import ClientDraft, RequestSpec
    from clientingest.domain.pagination import (
        CancellationToken,
        PaginationResult,
        ProgressCallback,
    )
    from clientingest.domain.ports import ClientUnitOfWork, CourierFetcher, Transport

log = getLogger(__name__)

NO_API_URL_MESSAGE = "No API URL provided"


@dataclass(frozen=True, slots=True)
class IngestionReport:
    """Outcome of one ingestion call.

    ``drafts`` are the normalized drafts that passed the per-name rules.
    ``request_spec`` is kept on API reports so a failed call can be retried.
    """

    source: IngestionSource
    batch: Batch | None
    errors: tuple[str, ...] = ()
    notices: tuple[str, ...] = ()
    drafts: tuple[ClientDraft, ...] = ()
    pagination: PaginationResult | None = None
    failure: ClassifiedError | None = None
    request_spec: RequestSpec | None = None

    @property
    def ok(self) -> bool:
        return self.batch is not None


@dataclass(frozen=True, slots=True)
class CourierResult:
    client_id: UUID
    client_name: str
    success: bool
    count: int = 0
    message: str | None = None
    error: str | None = None


@dataclass(slots=True)
class SubmissionReport:
    clients: list[PersistedClient] = field(default_factory=list[PersistedClient])
    courier_results: list[CourierResult] = field(default_factory=list[CourierResult])

    @property
    def failed(self) -> list[CourierResult]:
        return [result for result in self.courier_results if not result.success]


def _report(
    source: IngestionSource,
    drafts: Sequence[ClientDraft],
    *,
    duplicate_policy: DuplicatePolicy,
    pagination: PaginationResult | None = None,
    failure: ClassifiedError | None = None,
    request_spec: RequestSpec | None = None,
) -> IngestionReport:
    result = validate(drafts, source=source, duplicate_policy=duplicate_policy)
    batch = Batch.of(result.valid) if result.ok else None
    if result.errors:
        log.info("%s ingestion produced %d error(s)", source.label, len(result.errors))
    return IngestionReport(
        source=source,
        batch=batch,
        errors=result.errors,
        notices=result.notices,
        drafts=result.valid,
        pagination=pagination,
        failure=failure,
        request_spec=request_spec,
    )


def _failed(
    source: IngestionSource,
    message: str,
    *,
    pagination: PaginationResult | None = None,
    failure: ClassifiedError | None = None,
    request_spec: RequestSpec | None = None,
) -> IngestionReport:
    return IngestionReport(
        source=source,
        batch=None,
        errors=(message,),
        pagination=pagination,
        failure=failure,
        request_spec=request_spec,
    )


def ingest_csv_text(
    text: str,
    *,
    api_url: str | None = None,
    request_config: RequestSpec | None = None,
    duplicate_policy: DuplicatePolicy = DuplicatePolicy.REPORT,
) -> IngestionReport:
    """Parse pasted CSV text into a report.

    ``api_url`` and ``request_config`` are stamped onto every draft; a row with
    an ``auth_type`` column gets its own credentials on top of ``request_config``.
    """

    try:
        table = tokenize(text)
    except FormatError as exc:
        return _failed(IngestionSource.CSV, f"Invalid CSV: {exc}")

    if not table.rows:
        log.warning("CSV parsed successfully but contains no data rows")
    drafts = [
        extract(
            row,
            api_url,
            request_config=row_request_config(row, request_config, api_url),
            index=index,
        )
        for index, row in enumerate(table.rows)
    ]
    return _report(IngestionSource.CSV, drafts, duplicate_policy=duplicate_policy)


def ingest_json_text(
    text: str,
    *,
    api_url: str | None = None,
    request_config: RequestSpec | None = None,
    duplicate_policy: DuplicatePolicy = DuplicatePolicy.REPORT,
) -> IngestionReport:
    """Parse pasted JSON text into a report."""

    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        return _failed(IngestionSource.JSON, f"Invalid JSON: {exc.msg}")

    records = locate_records(payload)
    if not records:
        return _failed(IngestionSource.JSON, "JSON contains no client data")
    drafts = [
        extract(record, api_url, request_config=request_config, index=index)
        for index, record in enumerate(records)
    ]
    return _report(IngestionSource.JSON, drafts, duplicate_policy=duplicate_policy)


async def ingest_api_async(
    request_spec: RequestSpec,
    transport: Transport,
    *,
    page_size: int = DEFAULT_PAGE_SIZE,
    page_cap: int = DEFAULT_PAGE_CAP,
    duplicate_policy: DuplicatePolicy = DuplicatePolicy.REPORT,
    cancel: CancellationToken | None = None,
    on_progress: ProgressCallback | None = None,
) -> IngestionReport:
    """Traverse the paginated API behind ``request_spec`` into a report.

    Every draft gets the request URL as ``api_url`` and the request itself as
    ``request_config``. A failure after the first page keeps the records
    already fetched and is surfaced through ``failure``.
    """

    pagination = await fetch_all(
        request_spec,
        transport,
        page_size,
        page_cap=page_cap,
        cancel=cancel,
        on_progress=on_progress,
    )
    if pagination.error is not None and not pagination.records:
        return _failed(
            IngestionSource.API,
            pagination.error.message,
            pagination=pagination,
            failure=pagination.error,
            request_spec=request_spec,
        )
    if not pagination.records:
        return _failed(
            IngestionSource.API,
            "No clients found in the API response",
            pagination=pagination,
            request_spec=request_spec,
        )

    drafts = [
        extract(record, request_spec.url, request_config=request_spec, index=index)
        for index, record in enumerate(pagination.records)
    ]
    return _report(
        IngestionSource.API,
        drafts,
        duplicate_policy=duplicate_policy,
        pagination=pagination,
        failure=pagination.error,
        request_spec=request_spec,
    )


def ingest_api(
    request_spec: RequestSpec,
    transport: Transport,
    *,
    page_size: int = DEFAULT_PAGE_SIZE,
    page_cap: int = DEFAULT_PAGE_CAP,
    duplicate_policy: DuplicatePolicy = DuplicatePolicy.REPORT,
    cancel: CancellationToken | None = None,
    on_progress: ProgressCallback | None = None,
) -> IngestionReport:
    """Synchronous facade over :func:`ingest_api_async`."""

    return asyncio.run(
        ingest_api_async(
            request_spec,
            transport,
            page_size=page_size,
            page_cap=page_cap,
            duplicate_policy=duplicate_policy,
            cancel=cancel,
            on_progress=on_progress,
        )
    )


def _unique_drafts(drafts: Iterable[ClientDraft], existing: set[str]) -> list[ClientDraft]:
    taken = set(existing)
    unique: list[ClientDraft] = []
    for draft in drafts:
        name = generate_unique_client_name(draft.name, taken)
        if name != draft.name:
            log.info("Client name %r already exists, storing as %r", draft.name, name)
            draft = draft.with_name(name)
        taken.add(name)
        unique.append(draft)
    return unique


def submit_batch(
    batch: Batch,
    *,
    unit_of_work_factory: Callable[[], ClientUnitOfWork],
    courier_fetcher: CourierFetcher | None = None,
) -> SubmissionReport:
    """Persist ``batch`` and fetch courier data for every stored client.

    Names already present in the store receive a ``"name (n)"`` suffix.
    Courier failures are recorded per client and never abort the submission.
    """

    report = SubmissionReport()
    with unit_of_work_factory() as uow:
        repository = uow.repositories.clients
        drafts = _unique_drafts(batch.clients, repository.names())
        report.clients = repository.add_many(drafts)
        uow.commit()
    log.info("Stored %d client(s)", len(report.clients))

    for client in report.clients:
        report.courier_results.append(_fetch_couriers(client, courier_fetcher))
    return report


def _fetch_couriers(client: PersistedClient, fetcher: CourierFetcher | None) -> CourierResult:
    if not client.api_url:
        return CourierResult(
            client_id=client.id,
            client_name=client.name,
            success=True,
            message=NO_API_URL_MESSAGE,
        )
    if fetcher is None:
        return CourierResult(
            client_id=client.id,
            client_name=client.name,
            success=True,
            message="Courier fetching not configured",
        )
    try:
        couriers = fetcher.fetch_and_store(client.id, client.api_url, client.request_config)
    except Exception as exc:  # noqa: BLE001
        log.warning("Fetching couriers for %s failed: %s", client.name, exc)
        return CourierResult(
            client_id=client.id,
            client_name=client.name,
            success=False,
            error=str(exc) or "Unknown error",
        )
    return CourierResult(
        client_id=client.id,
        client_name=client.name,
        success=True,
        count=len(couriers),
    )
