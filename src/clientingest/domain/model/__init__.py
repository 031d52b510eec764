"""Public domain model surface."""

from __future__ import annotations

from clientingest.domain.model.client import (
    PLACEHOLDER_CLIENT_NAME,
    SECONDARY_FIELDS,
    Batch,
    ClientDraft,
    PersistedClient,
)
from clientingest.domain.model.enums import (
    ApiKeyLocation,
    AuthType,
    ClientType,
    DuplicatePolicy,
    FailureCategory,
    IngestionSource,
    TerminationReason,
)
from clientingest.domain.model.names import (
    NAME_MAX_LENGTH,
    NAME_MIN_LENGTH,
    ValidationOutcome,
    detect_client_type,
    generate_unique_client_name,
    normalize_client_name,
    validate_client_name,
)
from clientingest.domain.model.records import RawRecord
from clientingest.domain.model.request import AuthConfig, KeyValue, RequestSpec

__all__ = [
    "NAME_MAX_LENGTH",
    "NAME_MIN_LENGTH",
    "PLACEHOLDER_CLIENT_NAME",
    "SECONDARY_FIELDS",
    "ApiKeyLocation",
    "AuthConfig",
    "AuthType",
    "Batch",
    "ClientDraft",
    "ClientType",
    "DuplicatePolicy",
    "FailureCategory",
    "IngestionSource",
    "KeyValue",
    "PersistedClient",
    "RawRecord",
    "RequestSpec",
    "TerminationReason",
    "ValidationOutcome",
    "detect_client_type",
    "generate_unique_client_name",
    "normalize_client_name",
    "validate_client_name",
]
