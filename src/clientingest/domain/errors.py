"""Ingestion error taxonomy."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping


class IngestionError(RuntimeError):
    """Base class for failures raised inside the ingestion engine."""


class FormatError(IngestionError):
    """Raised when CSV or JSON input is malformed; no partial batch is produced."""


class TransportFailure(IngestionError):
    """Raised by a transport when a request could not produce a usable response.

    ``code`` carries a socket-level error code (``ENOTFOUND``, ``ECONNREFUSED``,
    ...), ``status_code`` an HTTP status, ``too_large`` flags a payload above
    the transport's byte ceiling.
    """

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        status_code: int | None = None,
        hostname: str | None = None,
        url: str | None = None,
        too_large: bool = False,
        details: Mapping[str, object] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.hostname = hostname
        self.url = url
        self.too_large = too_large
        self.details = dict(details) if details else {}
