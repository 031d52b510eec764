"""httpx client used for client-list APIs: retries, throttling and an optional cache.

The target host is whatever the operator configured, so the client carries no
base URL and every request uses an absolute URL.
"""

from __future__ import annotations

import json
import time
from contextlib import asynccontextmanager, nullcontext
from logging import getLogger
from typing import TYPE_CHECKING, TypedDict, Unpack

import httpx
from aiolimiter import AsyncLimiter
from hishel import AsyncSqliteStorage, FilterPolicy
from hishel import Response as HishelCacheResponse
from hishel._policies import BaseFilter
from hishel.httpx import AsyncCacheClient
from httpx_retries import Retry, RetryTransport

from clientingest.config.storage import get_storage_config

if TYPE_CHECKING:
    from collections.abc import AsyncIterator
    from types import TracebackType

    from httpx._types import (
        HeaderTypes,
        QueryParamTypes,
        RequestContent,
        RequestData,
        TimeoutTypes,
    )

    from clientingest.config.http_resilience import (
        CacheConfig,
        ResilienceConfig,
        RetryPolicy,
        ShouldCacheHook,
    )

log = getLogger(__name__)


class RequestOptions(TypedDict, total=False):
    content: RequestContent | None
    data: RequestData | None
    json: object
    params: QueryParamTypes | None
    headers: HeaderTypes | None


class _ClientOptions(TypedDict, total=False):
    timeout: TimeoutTypes
    headers: HeaderTypes
    transport: httpx.AsyncBaseTransport


def _retrying_transport(policy: RetryPolicy) -> RetryTransport:
    retry = Retry(
        total=policy.total,
        backoff_factor=policy.backoff_factor,
        max_backoff_wait=policy.max_backoff_wait,
        respect_retry_after_header=policy.respect_retry_after_header,
        allowed_methods=tuple(policy.allowed_methods),
        status_forcelist=tuple(policy.status_forcelist),
        retry_on_exceptions=policy.retry_on_exceptions,
        backoff_jitter=policy.backoff_jitter,
    )
    return RetryTransport(retry=retry)


class _PayloadFilter(BaseFilter[HishelCacheResponse]):
    """Keeps only responses whose decoded JSON body satisfies ``predicate``."""

    def __init__(self, predicate: ShouldCacheHook) -> None:
        self._predicate = predicate

    def needs_body(self) -> bool:
        return True

    def apply(self, item: HishelCacheResponse, body: bytes | None) -> bool:
        if item.status_code >= 400:
            return False
        if body is None:
            return True
        try:
            payload = json.loads(body)
        except (UnicodeDecodeError, json.JSONDecodeError):
            return False
        return bool(self._predicate(payload))


def _cache_layer(
    cache: CacheConfig | None,
) -> tuple[AsyncSqliteStorage, FilterPolicy | None] | None:
    if cache is None or not cache.enabled:
        return None

    if cache.backend == "sqlite":
        location = cache.sqlite_path or str(get_storage_config().http_cache_path())
    elif cache.backend == "memory":
        location = ":memory:"
    else:
        raise ValueError(f"Unsupported cache backend: {cache.backend}")

    log.debug("Caching client API responses in %s", location)
    storage = AsyncSqliteStorage(
        database_path=location,
        default_ttl=cache.default_ttl_seconds,
        refresh_ttl_on_access=cache.refresh_ttl_on_access,
    )
    policy = (
        FilterPolicy(response_filters=[_PayloadFilter(cache.should_cache)])
        if cache.should_cache is not None
        else None
    )
    return storage, policy


class ResilientClient:
    """Wraps an ``httpx.AsyncClient`` configured from a :class:`ResilienceConfig`."""

    def __init__(self, config: ResilienceConfig) -> None:
        self.config = config
        self._limiter = (
            AsyncLimiter(config.ratelimit.max_calls, config.ratelimit.per_seconds)
            if config.ratelimit is not None
            else None
        )

        options: _ClientOptions = {
            "timeout": config.timeout_seconds,
            "transport": _retrying_transport(config.retry),
        }
        if config.default_headers:
            options["headers"] = dict(config.default_headers)

        cache = _cache_layer(config.cache)
        if cache is None:
            self._client = httpx.AsyncClient(**options)
        else:
            storage, policy = cache
            self._client = AsyncCacheClient(**options, storage=storage, policy=policy)

    async def __aenter__(self) -> ResilientClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    def _throttle(self) -> AsyncLimiter | nullcontext[None]:
        return self._limiter if self._limiter is not None else nullcontext()

    @asynccontextmanager
    async def stream(
        self,
        method: str,
        url: str,
        **kwargs: Unpack[RequestOptions],
    ) -> AsyncIterator[httpx.Response]:
        """Open a response whose body the caller reads incrementally."""

        started = time.monotonic()
        async with self._throttle(), self._client.stream(method, url, **kwargs) as response:
            log.debug(
                "%s %s -> %s in %.2fs [%s]",
                method,
                url,
                response.status_code,
                time.monotonic() - started,
                self.config.name,
            )
            yield response
