"""Retry, throttling and cache settings for client API requests."""

from __future__ import annotations

import os
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Final, Literal

import httpx

from .env import env_float, env_int
from .errors import ConfigurationError

if TYPE_CHECKING:
    from collections.abc import Mapping

ShouldCacheHook = Callable[[object], bool]

DEFAULT_TIMEOUT_SECONDS: Final[float] = 30.0
CLIENT_API_RESILIENCE_NAME: Final[str] = "client-api"
CACHE_BACKENDS: Final[tuple[str, ...]] = ("off", "memory", "sqlite")


@dataclass(slots=True, frozen=True)
class RetryPolicy:
    """Transient failures only; a 4xx from the client API is never retried."""

    total: int = 2
    backoff_factor: float = 0.5
    max_backoff_wait: float = 30.0
    respect_retry_after_header: bool = True
    allowed_methods: frozenset[str] = frozenset({"GET", "HEAD", "OPTIONS"})
    status_forcelist: frozenset[int] = frozenset({429, 503, 504})
    retry_on_exceptions: tuple[type[httpx.HTTPError], ...] = (
        httpx.TimeoutException,
        httpx.RemoteProtocolError,
    )
    backoff_jitter: float = 1.0


@dataclass(slots=True, frozen=True)
class RateLimit:
    max_calls: int
    per_seconds: float


@dataclass(slots=True, frozen=True)
class CacheConfig:
    enabled: bool = True
    backend: Literal["sqlite", "memory"] = "memory"
    sqlite_path: str | None = None
    default_ttl_seconds: float | None = 300.0
    refresh_ttl_on_access: bool = False
    should_cache: ShouldCacheHook | None = None


@dataclass(slots=True, frozen=True)
class ResilienceConfig:
    name: str
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    ratelimit: RateLimit | None = None
    cache: CacheConfig | None = None
    default_headers: Mapping[str, str] | None = None


def _cache_from_environment(predicate: ShouldCacheHook | None) -> CacheConfig | None:
    backend = (os.getenv("CLIENTINGEST_HTTP_CACHE") or "off").strip().lower()
    if backend not in CACHE_BACKENDS:
        raise ConfigurationError(
            f"CLIENTINGEST_HTTP_CACHE must be one of {', '.join(CACHE_BACKENDS)}; "
            f"got {backend!r}",
            variable="CLIENTINGEST_HTTP_CACHE",
        )
    if backend == "off":
        return None
    return CacheConfig(
        backend="sqlite" if backend == "sqlite" else "memory",
        should_cache=predicate,
    )


def get_client_api_resilience(
    *,
    cache_predicate: ShouldCacheHook | None = None,
) -> ResilienceConfig:
    """Settings for calls against operator-supplied client APIs.

    ``CLIENTINGEST_HTTP_TIMEOUT``, ``CLIENTINGEST_HTTP_RETRIES`` and
    ``CLIENTINGEST_HTTP_CACHE`` (off, memory or sqlite) override the defaults.
    """

    return ResilienceConfig(
        name=CLIENT_API_RESILIENCE_NAME,
        timeout_seconds=env_float("CLIENTINGEST_HTTP_TIMEOUT", DEFAULT_TIMEOUT_SECONDS),
        retry=RetryPolicy(total=env_int("CLIENTINGEST_HTTP_RETRIES", 2, minimum=0)),
        ratelimit=RateLimit(max_calls=5, per_seconds=1.0),
        cache=_cache_from_environment(cache_predicate),
        default_headers={"Accept": "application/json"},
    )
