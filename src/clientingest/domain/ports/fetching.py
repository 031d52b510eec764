"""Ports for fetching external client data."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence
    from uuid import UUID

    from clientingest.domain.model import RequestSpec


@dataclass(frozen=True, slots=True)
class RawResponse:
    """A successful response; ``payload`` is decoded JSON, or text when not JSON."""

    status_code: int
    payload: object
    size_bytes: int = 0
    url: str | None = None


@runtime_checkable
class Transport(Protocol):
    """Opaque request capability used by the pagination engine.

    Implementations raise :class:`~clientingest.domain.errors.TransportFailure`
    for anything that is not a usable response.
    """

    async def send(self, spec: RequestSpec) -> RawResponse: ...


@runtime_checkable
class CourierFetcher(Protocol):
    """Fetches and stores the courier data of one persisted client."""

    def fetch_and_store(
        self,
        client_id: UUID,
        api_url: str,
        request_config: RequestSpec | None,
    ) -> Sequence[object]: ...


__all__ = ["CourierFetcher", "RawResponse", "Transport"]
