"""Outbound request description used by the API ingestion path."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING
from urllib.parse import urlsplit

from .enums import ApiKeyLocation, AuthType

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

REDACTED = "[REDACTED]"
DEFAULT_API_KEY_NAME = "X-API-Key"


@dataclass(frozen=True, slots=True)
class KeyValue:
    key: str
    value: str


@dataclass(frozen=True, slots=True, kw_only=True)
class AuthConfig:
    type: AuthType = AuthType.NONE
    username: str | None = None
    password: str | None = None
    token: str | None = None
    api_key: str | None = None
    api_key_name: str = DEFAULT_API_KEY_NAME
    api_key_location: ApiKeyLocation = ApiKeyLocation.HEADER

    def redacted(self) -> AuthConfig:
        return replace(
            self,
            password=REDACTED if self.password else self.password,
            token=REDACTED if self.token else self.token,
            api_key=REDACTED if self.api_key else self.api_key,
        )


@dataclass(frozen=True, slots=True, kw_only=True)
class RequestSpec:
    """Immutable description of one request attempt.

    Per-page variants are derived with :meth:`with_query_params`; the base spec
    is never modified.
    """

    url: str
    method: str = "GET"
    headers: tuple[KeyValue, ...] = ()
    query_params: tuple[KeyValue, ...] = ()
    body: object = None
    auth: AuthConfig | None = None

    def __post_init__(self) -> None:
        url = self.url.strip()
        if not url:
            raise ValueError("URL is required")
        object.__setattr__(self, "url", url)
        object.__setattr__(self, "method", (self.method or "GET").upper())

    @property
    def hostname(self) -> str | None:
        try:
            return urlsplit(self.url).hostname
        except ValueError:
            return None

    @property
    def auth_type(self) -> AuthType:
        return self.auth.type if self.auth is not None else AuthType.NONE

    def header(self, name: str) -> str | None:
        lowered = name.lower()
        for header in self.headers:
            if header.key.lower() == lowered:
                return header.value
        return None

    def with_query_params(self, overrides: Mapping[str, object]) -> RequestSpec:
        """Return a copy whose query parameters include ``overrides``.

        Existing parameters with an overridden key are replaced; the rest keep
        their order.
        """

        kept = tuple(param for param in self.query_params if param.key not in overrides)
        added = tuple(KeyValue(key, str(value)) for key, value in overrides.items())
        return replace(self, query_params=kept + added)

    def with_headers(self, headers: Iterable[KeyValue]) -> RequestSpec:
        return replace(self, headers=self.headers + tuple(headers))

    def redacted(self) -> RequestSpec:
        """Copy safe to log: credentials in ``auth`` are masked."""

        if self.auth is None:
            return self
        return replace(self, auth=self.auth.redacted())
