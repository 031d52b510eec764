"""Transaction boundary used when a validated batch is stored."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from types import TracebackType

    from clientingest.domain.ports.persistence import ClientRepository


@dataclass(slots=True)
class ClientRepositories:
    clients: ClientRepository


@runtime_checkable
class ClientUnitOfWork(Protocol):
    """Context manager around one storage transaction.

    Leaving the block without :meth:`commit` discards everything added inside it.
    """

    @property
    def repositories(self) -> ClientRepositories: ...

    def __enter__(self) -> ClientUnitOfWork: ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> bool: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...
