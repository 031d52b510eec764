from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine

from clientingest.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyClientUnitOfWork,
    StartupError,
    configured_engine,
    is_started,
    shutdown,
    startup,
)
from clientingest.domain.data_integration import submit_batch
from clientingest.domain.model import Batch, ClientDraft

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from sqlalchemy.engine import Engine


@pytest.fixture(autouse=True)
def reset_unit_of_work_state() -> Iterator[None]:
    shutdown()
    yield
    shutdown()


def test_unit_of_work_requires_startup() -> None:
    assert not is_started()
    with pytest.raises(StartupError):
        SqlAlchemyClientUnitOfWork()


def test_startup_requires_force_for_reconfiguration() -> None:
    engine_a = create_engine("sqlite+pysqlite:///:memory:", future=True)
    engine_b = create_engine("sqlite+pysqlite:///:memory:", future=True)

    startup(engine=engine_a, force=True)

    with pytest.raises(StartupError):
        startup(engine=engine_b)

    startup(engine=engine_b, force=True)
    assert configured_engine() is engine_b


def test_rollback_on_error(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)

    with pytest.raises(RuntimeError), SqlAlchemyClientUnitOfWork() as uow:
        uow.repositories.clients.add_many([ClientDraft(name="Acme")])
        raise RuntimeError("abort")

    with SqlAlchemyClientUnitOfWork() as uow:
        assert uow.repositories.clients.names() == set()


def test_submit_batch_twice_suffixes_names(
    sqlite_unit_of_work: Callable[[], SqlAlchemyClientUnitOfWork],
) -> None:
    batch = Batch.of([ClientDraft(name="Acme"), ClientDraft(name="Beta")])

    submit_batch(batch, unit_of_work_factory=sqlite_unit_of_work)
    second = submit_batch(batch, unit_of_work_factory=sqlite_unit_of_work)

    assert [client.name for client in second.clients] == ["Acme (1)", "Beta (1)"]
    with sqlite_unit_of_work() as uow:
        assert uow.repositories.clients.names() == {"Acme", "Beta", "Acme (1)", "Beta (1)"}
