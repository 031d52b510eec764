from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine  # noqa: TC002
from sqlalchemy.orm import Session, sessionmaker

from clientingest.adapters.sqlalchemy import create_all_tables, start_mappers
from clientingest.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyClientUnitOfWork,
    shutdown,
    startup,
)

os.environ.setdefault("DATABASE_URI", "sqlite+pysqlite:///:memory:")

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "CLIENTINGEST_HTTP_CACHE",
        "CLIENTINGEST_HTTP_TIMEOUT",
        "CLIENTINGEST_HTTP_RETRIES",
        "CLIENTINGEST_PAGE_SIZE",
        "CLIENTINGEST_PAGE_CAP",
        "CLIENTINGEST_MAX_RESPONSE_BYTES",
        "CLIENTINGEST_DB_ECHO",
        "CLIENTINGEST_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def sqlite_engine() -> Iterator[Engine]:
    engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
    start_mappers()
    create_all_tables(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def sqlite_session(sqlite_engine: Engine) -> Iterator[Session]:
    session_factory = sessionmaker(bind=sqlite_engine, future=True, expire_on_commit=False)
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def sqlite_unit_of_work(
    sqlite_engine: Engine,
) -> Iterator[Callable[[], SqlAlchemyClientUnitOfWork]]:
    startup(engine=sqlite_engine, force=True)

    def factory() -> SqlAlchemyClientUnitOfWork:
        return SqlAlchemyClientUnitOfWork()

    try:
        yield factory
    finally:
        shutdown()
