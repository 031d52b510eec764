"""SQLAlchemy-backed unit of work for the client directory.

The adapter holds one process-wide engine. :func:`startup` binds it (creating the
client table on first use) and every :class:`SqlAlchemyClientUnitOfWork` opens a
fresh session from it, so a single submission either stores all of its clients
or none of them.
"""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, Literal

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from clientingest.adapters.sqlalchemy.mappings import create_all_tables, start_mappers
from clientingest.adapters.sqlalchemy.repositories import SqlAlchemyClientRepository
from clientingest.config.storage import get_database_config
from clientingest.domain.ports.unit_of_work import ClientRepositories

if TYPE_CHECKING:
    from types import TracebackType

    from sqlalchemy.engine import Engine

log = getLogger(__name__)


class StartupError(RuntimeError):
    """Raised when the client store is used before :func:`startup` or reconfigured twice."""


@dataclass(slots=True)
class _AdapterState:
    engine: Engine | None = None
    sessions: sessionmaker[Session] | None = None

    def bind(self, engine: Engine) -> None:
        self.engine = engine
        self.sessions = sessionmaker(bind=engine, expire_on_commit=False)

    def reset(self) -> None:
        if self.engine is not None:
            self.engine.dispose()
        self.engine = None
        self.sessions = None

    def open_session(self) -> Session:
        if self.sessions is None:
            raise StartupError(
                "Client store not initialised. Call clientingest.adapters.sqlalchemy."
                "unit_of_work.startup() before storing clients."
            )
        return self.sessions()


_STATE = _AdapterState()


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    force: bool = False,
) -> None:
    """Bind the client store to ``engine`` (or a configured one) and create its table."""

    if _STATE.engine is not None and not force:
        raise StartupError("Client store already initialised. Pass force=True to reconfigure.")

    if engine is None:
        database = get_database_config()
        engine = create_engine(database_uri or database.uri, echo=database.echo, future=True)
    log.info("Client store at %s", engine.url.render_as_string(hide_password=True))

    start_mappers()
    create_all_tables(engine)
    if _STATE.engine is not None and _STATE.engine is not engine:
        _STATE.engine.dispose()
    _STATE.bind(engine)


def configured_engine() -> Engine | None:
    return _STATE.engine


def is_started() -> bool:
    return _STATE.engine is not None


def shutdown() -> None:
    """Dispose the bound engine; a later :func:`startup` may bind a new one."""

    _STATE.reset()


class SqlAlchemyClientUnitOfWork:
    """One session per ``with`` block; leaving it by exception rolls the batch back."""

    def __init__(self) -> None:
        if not is_started():
            raise StartupError("Client store not initialised; call startup() first.")
        self._session: Session | None = None
        self._repositories: ClientRepositories | None = None

    def __enter__(self) -> SqlAlchemyClientUnitOfWork:
        if self._session is not None:
            raise StartupError("Unit of work is already open")
        self._session = _STATE.open_session()
        self._repositories = ClientRepositories(
            clients=SqlAlchemyClientRepository(self._session)
        )
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        session = self.session
        try:
            if exc_type is not None:
                log.debug("Rolling back client batch after %s", exc_type.__name__)
                session.rollback()
        finally:
            session.close()
            self._session = None
            self._repositories = None
        return False

    @property
    def session(self) -> Session:
        if self._session is None:
            raise StartupError("Unit of work is not open")
        return self._session

    @property
    def repositories(self) -> ClientRepositories:
        if self._repositories is None:
            raise StartupError("Unit of work is not open")
        return self._repositories

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()


if TYPE_CHECKING:
    from clientingest.domain.ports.unit_of_work import ClientUnitOfWork

    _uow_check: ClientUnitOfWork = SqlAlchemyClientUnitOfWork()
