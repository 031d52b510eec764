"""SQLAlchemy adapter package for clientingest."""

from __future__ import annotations

from .mappings import (
    RequestSpecJSON,
    UTCDateTime,
    client_table,
    create_all_tables,
    mapper_registry,
    start_mappers,
)
from .repositories import SqlAlchemyClientRepository
from .unit_of_work import (
    SqlAlchemyClientUnitOfWork,
    StartupError,
    shutdown,
    startup,
)

__all__ = [
    "RequestSpecJSON",
    "SqlAlchemyClientRepository",
    "SqlAlchemyClientUnitOfWork",
    "StartupError",
    "UTCDateTime",
    "client_table",
    "create_all_tables",
    "mapper_registry",
    "shutdown",
    "start_mappers",
    "startup",
]
