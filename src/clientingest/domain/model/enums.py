"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class ClientType(StrEnum):
    CNR_CEE = "CNR_CEE"
    CNR = "CNR"
    STANDARD = "STANDARD"


class AuthType(StrEnum):
    NONE = "none"
    BASIC = "basic"
    BEARER = "bearer"
    JWT = "jwt"
    APIKEY = "apikey"


class ApiKeyLocation(StrEnum):
    HEADER = "header"
    QUERY = "query"


class IngestionSource(StrEnum):
    CSV = "csv"
    JSON = "json"
    API = "api"

    @property
    def label(self) -> str:
        """Human wording used in operator-facing messages."""
        return _SOURCE_LABELS[self]


_SOURCE_LABELS: dict[IngestionSource, str] = {
    IngestionSource.CSV: "CSV",
    IngestionSource.JSON: "JSON",
    IngestionSource.API: "API response",
}


class DuplicatePolicy(StrEnum):
    """What the duplicate check does with repeated names besides reporting them."""

    REPORT = "report"
    EXCLUDE = "exclude"


class TerminationReason(StrEnum):
    COMPLETE = "complete"
    PAGE_CAP_REACHED = "page_cap_reached"
    INITIAL_FETCH_FAILED = "initial_fetch_failed"
    PARTIAL_FETCH_FAILED = "partial_fetch_failed"
    CANCELLED = "cancelled"


class FailureCategory(StrEnum):
    RESPONSE_TOO_LARGE = "RESPONSE_TOO_LARGE"
    ENOTFOUND = "ENOTFOUND"
    ECONNREFUSED = "ECONNREFUSED"
    ETIMEDOUT = "ETIMEDOUT"
    ECONNRESET = "ECONNRESET"
    UPSTREAM_UNREACHABLE = "UPSTREAM_UNREACHABLE"
    UNKNOWN = "UNKNOWN"
