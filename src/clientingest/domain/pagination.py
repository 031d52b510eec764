"""Bounded, heuristic page traversal over an opaque transport.

Pages are fetched strictly one after another. After each page the engine
decides whether to continue from the first pagination signal present in the
payload; a cap on the number of pages guards against APIs that always claim
to have more.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Final

from clientingest.domain.classification import ClassifiedError, classify
from clientingest.domain.model import TerminationReason
from clientingest.domain.shapes import locate_records

if TYPE_CHECKING:
    from collections.abc import Callable

    from clientingest.domain.model import RequestSpec
    from clientingest.domain.ports import Transport

log = getLogger(__name__)

DEFAULT_PAGE_SIZE: Final[int] = 100
DEFAULT_PAGE_CAP: Final[int] = 10

TOTAL_PAGES_PATHS: Final[tuple[tuple[str, ...], ...]] = (
    ("pagination", "total_pages"),
    ("pagination", "totalPages"),
    ("total_pages",),
    ("totalPages",),
)

NEXT_PAGE_PATHS: Final[tuple[tuple[str, ...], ...]] = (
    ("pagination", "next_page"),
    ("pagination", "hasNext"),
    ("pagination", "hasMore"),
    ("next_page",),
    ("hasNext",),
    ("hasMore",),
    ("next_page_url",),
)


class CancellationToken:
    """Cooperative cancellation flag checked before every page fetch."""

    __slots__ = ("_cancelled",)

    def __init__(self) -> None:
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


@dataclass(slots=True)
class PaginationState:
    current_page: int = 1
    total_pages: int | None = None
    accumulated: list[object] = field(default_factory=list[object])
    status: str = "Fetching first page..."


@dataclass(frozen=True, slots=True)
class PaginationResult:
    records: tuple[object, ...]
    pages_fetched: int
    termination_reason: TerminationReason
    error: ClassifiedError | None = None
    total_pages: int | None = None

    @property
    def complete(self) -> bool:
        return self.termination_reason is TerminationReason.COMPLETE


type ProgressCallback = Callable[[PaginationState], None]

_ABSENT = object()


def _lookup(payload: object, path: tuple[str, ...]) -> object:
    current = payload
    for key in path:
        if not isinstance(current, Mapping) or key not in current:
            return _ABSENT
        current = current[key]
    return _ABSENT if current is None else current


def _as_page_count(value: object) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value)
    return None


def total_pages_signal(payload: object) -> int | None:
    for path in TOTAL_PAGES_PATHS:
        total = _as_page_count(_lookup(payload, path))
        if total is not None:
            return total
    return None


def next_page_signal(payload: object) -> bool | None:
    for path in NEXT_PAGE_PATHS:
        value = _lookup(payload, path)
        if value is not _ABSENT:
            return bool(value)
    return None


def has_more_pages(
    payload: object,
    page_records: int,
    *,
    current_page: int,
    page_size: int,
) -> bool:
    """Decide whether another page should be requested after ``current_page``."""

    if page_records == 0:
        return False
    total = total_pages_signal(payload)
    if total is not None:
        return current_page < total
    indicator = next_page_signal(payload)
    if indicator is not None:
        return indicator
    return page_records == page_size


def page_request(spec: RequestSpec, page: int, page_size: int) -> RequestSpec:
    """Derive the request for ``page``; ``spec`` itself is left untouched."""

    return spec.with_query_params({"page": page, "size": page_size, "limit": page_size})


async def fetch_all(
    request_spec: RequestSpec,
    transport: Transport,
    page_size: int = DEFAULT_PAGE_SIZE,
    *,
    page_cap: int = DEFAULT_PAGE_CAP,
    cancel: CancellationToken | None = None,
    on_progress: ProgressCallback | None = None,
) -> PaginationResult:
    """Fetch pages until the payload says stop, the cap is hit, or a fetch fails.

    Accumulated records are always returned; a non-complete termination reason
    is advisory.
    """

    if page_size < 1:
        raise ValueError("page_size must be positive")
    if page_cap < 1:
        raise ValueError("page_cap must be positive")

    state = PaginationState()
    pages_fetched = 0

    def _finish(
        reason: TerminationReason, error: ClassifiedError | None = None
    ) -> PaginationResult:
        log.info(
            "Pagination of %s finished: %s after %d page(s), %d record(s)",
            request_spec.url,
            reason,
            pages_fetched,
            len(state.accumulated),
        )
        return PaginationResult(
            records=tuple(state.accumulated),
            pages_fetched=pages_fetched,
            termination_reason=reason,
            error=error,
            total_pages=state.total_pages,
        )

    while True:
        page = state.current_page
        if cancel is not None and cancel.cancelled:
            state.status = "Cancelled"
            return _finish(TerminationReason.CANCELLED)

        log.debug("Fetching page %d of %s", page, request_spec.url)
        try:
            response = await transport.send(page_request(request_spec, page, page_size))
        except Exception as exc:  # noqa: BLE001
            error = classify(exc)
            log.warning("Fetching page %d failed: %s", page, error.message)
            if page == 1:
                state.accumulated.clear()
                return _finish(TerminationReason.INITIAL_FETCH_FAILED, error)
            return _finish(TerminationReason.PARTIAL_FETCH_FAILED, error)

        pages_fetched += 1
        records = locate_records(response.payload)
        state.accumulated.extend(records)
        state.total_pages = total_pages_signal(response.payload) or state.total_pages

        more = has_more_pages(
            response.payload, len(records), current_page=page, page_size=page_size
        )
        state.status = "More pages available" if more else "Complete"
        if on_progress is not None:
            on_progress(state)

        if not more:
            return _finish(TerminationReason.COMPLETE)
        if page >= page_cap:
            log.warning("Stopped after %d pages although more were announced", page_cap)
            return _finish(TerminationReason.PAGE_CAP_REACHED)
        state.current_page = page + 1
