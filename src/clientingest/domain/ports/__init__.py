"""Domain port definitions for adapters."""

from __future__ import annotations

from .fetching import CourierFetcher, RawResponse, Transport
from .persistence import ClientRepository
from .unit_of_work import ClientRepositories, ClientUnitOfWork

__all__ = [
    "ClientRepositories",
    "ClientRepository",
    "ClientUnitOfWork",
    "CourierFetcher",
    "RawResponse",
    "Transport",
]
