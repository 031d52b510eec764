from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal

from clientingest.domain.errors import TransportFailure
from clientingest.domain.model import PersistedClient
from clientingest.domain.ports import ClientRepositories, RawResponse

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence
    from types import TracebackType
    from uuid import UUID

    from clientingest.domain.model import ClientDraft, RequestSpec


@dataclass
class ScriptedTransport:
    """Returns queued payloads in order; a queued exception is raised instead."""

    responses: list[object]
    sent: list[RequestSpec] = field(default_factory=list)

    async def send(self, spec: RequestSpec) -> RawResponse:
        self.sent.append(spec)
        if not self.responses:
            raise TransportFailure("no more scripted responses")
        item = self.responses.pop(0)
        if isinstance(item, BaseException):
            raise item
        return RawResponse(status_code=200, payload=item, url=spec.url)

    def pages_requested(self) -> list[str | None]:
        pages: list[str | None] = []
        for spec in self.sent:
            page = next((param.value for param in spec.query_params if param.key == "page"), None)
            pages.append(page)
        return pages


def page_of(names: Iterable[str], **extra: object) -> dict[str, object]:
    return {"data": [{"name": name} for name in names], **extra}


@dataclass
class InMemoryClientRepository:
    stored: list[PersistedClient] = field(default_factory=list)

    def add(self, entity: PersistedClient) -> None:
        self.stored.append(entity)

    def add_many(self, drafts: Iterable[ClientDraft]) -> list[PersistedClient]:
        clients = [PersistedClient.from_draft(draft) for draft in drafts]
        self.stored.extend(clients)
        return clients

    def names(self) -> set[str]:
        return {client.name for client in self.stored}


@dataclass
class FakeUnitOfWork:
    repository: InMemoryClientRepository = field(default_factory=InMemoryClientRepository)
    commits: int = 0

    @property
    def repositories(self) -> ClientRepositories:
        return ClientRepositories(clients=self.repository)

    def __enter__(self) -> FakeUnitOfWork:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        return False

    def commit(self) -> None:
        self.commits += 1

    def rollback(self) -> None:
        return None


@dataclass
class RecordingCourierFetcher:
    couriers: Sequence[object] = ("dhl", "ups")
    fail_for: set[str] = field(default_factory=set)
    calls: list[tuple[UUID, str]] = field(default_factory=list)

    def fetch_and_store(
        self,
        client_id: UUID,
        api_url: str,
        request_config: RequestSpec | None,
    ) -> Sequence[object]:
        _ = request_config
        self.calls.append((client_id, api_url))
        if api_url in self.fail_for:
            raise RuntimeError(f"courier endpoint {api_url} unavailable")
        return self.couriers
