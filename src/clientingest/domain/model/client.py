"""Client drafts, validated batches and stored clients."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Final
from uuid import UUID, uuid4

from .names import detect_client_type, validate_client_name

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .enums import ClientType
    from .request import RequestSpec

PLACEHOLDER_CLIENT_NAME: Final[str] = "Unknown Client"

SECONDARY_FIELDS: Final[tuple[str, ...]] = (
    "company_id",
    "company_name",
    "old_company_id",
    "display_id",
    "types",
)


@dataclass(slots=True, kw_only=True)
class ClientDraft:
    """A client extracted from raw input, not yet validated."""

    name: str
    company_id: str | None = None
    company_name: str | None = None
    old_company_id: str | None = None
    display_id: str | None = None
    types: str | None = None
    api_url: str | None = None
    request_config: RequestSpec | None = None
    source_index: int | None = None

    @property
    def client_type(self) -> ClientType:
        return detect_client_type(self.name)

    def with_name(self, name: str) -> ClientDraft:
        return replace(self, name=name)

    def as_record(self) -> dict[str, object]:
        """Flat view of the populated client fields (unset fields omitted)."""

        record: dict[str, object] = {"name": self.name}
        for field_name in SECONDARY_FIELDS:
            value = getattr(self, field_name)
            if value is not None:
                record[field_name] = value
        if self.api_url is not None:
            record["api_url"] = self.api_url
        return record


@dataclass(frozen=True, slots=True)
class Batch:
    """Validated drafts ready for persistence.

    Names are pairwise distinct and each satisfies the name rules.
    """

    clients: tuple[ClientDraft, ...]

    @property
    def count(self) -> int:
        return len(self.clients)

    @classmethod
    def of(cls, drafts: Iterable[ClientDraft]) -> Batch:
        clients = tuple(drafts)
        seen: set[str] = set()
        for draft in clients:
            outcome = validate_client_name(draft.name)
            if not outcome.is_valid:
                raise ValueError(f"Client {draft.name!r} is invalid: {outcome.message}")
            if draft.name in seen:
                raise ValueError(f"Duplicate client name in batch: {draft.name!r}")
            seen.add(draft.name)
        return cls(clients=clients)


@dataclass(eq=False, kw_only=True)
class PersistedClient:
    """A client as stored in the directory."""

    id: UUID = field(default_factory=uuid4)
    name: str
    client_type: ClientType
    company_id: str | None = None
    company_name: str | None = None
    old_company_id: str | None = None
    display_id: str | None = None
    types: str | None = None
    api_url: str | None = None
    request_config: RequestSpec | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @classmethod
    def from_draft(cls, draft: ClientDraft) -> PersistedClient:
        return cls(
            name=draft.name,
            client_type=draft.client_type,
            company_id=draft.company_id,
            company_name=draft.company_name,
            old_company_id=draft.old_company_id,
            display_id=draft.display_id,
            types=draft.types,
            api_url=draft.api_url,
            request_config=draft.request_config,
        )
