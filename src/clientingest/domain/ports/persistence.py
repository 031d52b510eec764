"""Port for the client directory store."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Iterable

    from clientingest.domain.model import ClientDraft, PersistedClient


@runtime_checkable
class ClientRepository(Protocol):
    """Stores validated drafts and answers which names are already taken."""

    def add_many(self, drafts: Iterable[ClientDraft]) -> list[PersistedClient]: ...

    def names(self) -> set[str]: ...
