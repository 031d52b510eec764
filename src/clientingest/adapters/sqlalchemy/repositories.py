"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import select

from clientingest.adapters.sqlalchemy.mappings import client_table
from clientingest.domain.model import PersistedClient

if TYPE_CHECKING:
    from collections.abc import Iterable

    from sqlalchemy.orm import Session

    from clientingest.domain.model import ClientDraft


class SqlAlchemyClientRepository:
    """Client rows in one session; the unit of work owns commit and rollback."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def add_many(self, drafts: Iterable[ClientDraft]) -> list[PersistedClient]:
        clients = [PersistedClient.from_draft(draft) for draft in drafts]
        self.session.add_all(clients)
        self.session.flush()
        return clients

    def names(self) -> set[str]:
        return set(self.session.execute(select(client_table.c.name)).scalars())
