"""Table definition and imperative mapping for :class:`PersistedClient`."""

from __future__ import annotations

import json
import logging
import uuid
from datetime import UTC, datetime
from functools import cache
from typing import TYPE_CHECKING

from sqlalchemy import (
    Column,
    DateTime,
    Dialect,
    Enum,
    String,
    Table,
    Text,
    TypeDecorator,
    Uuid,
    orm,
)

from clientingest.adapters.request_schema import dump_request_spec, load_request_spec
from clientingest.domain.model import ClientType, PersistedClient, RequestSpec
from clientingest.domain.model.names import NAME_MAX_LENGTH

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)


def _as_utc(value: datetime) -> datetime:
    return value.replace(tzinfo=UTC) if value.tzinfo is None else value.astimezone(UTC)


class UTCDateTime(TypeDecorator[datetime]):
    """SQLite drops offsets; naive values read back are taken to be UTC."""

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        return None if value is None else _as_utc(value)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        return None if value is None else _as_utc(value)


class RequestSpecJSON(TypeDecorator[RequestSpec]):
    """Stores a :class:`RequestSpec` as its camelCase JSON document."""

    impl = Text
    cache_ok = True

    def process_bind_param(self, value: RequestSpec | None, dialect: Dialect) -> str | None:
        _ = dialect
        return None if value is None else json.dumps(dump_request_spec(value))

    def process_result_value(self, value: str | None, dialect: Dialect) -> RequestSpec | None:
        _ = dialect
        return None if value is None else load_request_spec(value)


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "pk": "pk_%(table_name)s",
}

client_table = Table(
    "client",
    mapper_registry.metadata,
    Column("id", Uuid[uuid.UUID], primary_key=True),
    Column("name", String(NAME_MAX_LENGTH), nullable=False, unique=True),
    Column("client_type", Enum(ClientType, native_enum=False), nullable=False),
    Column("company_id", String(255)),
    Column("company_name", String(255)),
    Column("old_company_id", String(255)),
    Column("display_id", String(255)),
    Column("types", String(255)),
    Column("api_url", Text),
    Column("request_config", RequestSpecJSON),
    Column("created_at", UTCDateTime, nullable=False),
)


@cache
def start_mappers() -> orm.registry:
    """Map :class:`PersistedClient` onto ``client_table``; safe to call repeatedly."""

    log.debug("Mapping PersistedClient onto table %s", client_table.name)
    mapper_registry.map_imperatively(PersistedClient, client_table)
    return mapper_registry


def create_all_tables(engine: Engine) -> None:
    mapper_registry.metadata.create_all(engine)
