"""Async httpx client with transport-level retries for proxy calls.

Retries here only cover dropped connections and overloaded upstreams, and only
for idempotent methods. Waiting for a write to become readable is not a
transport concern; the reconciler handles that above the gateway.
"""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, TypedDict, Unpack

import httpx
from httpx_retries import Retry, RetryTransport

if TYPE_CHECKING:
    from types import TracebackType

    from httpx._client import UseClientDefault
    from httpx._types import HeaderTypes, QueryParamTypes, TimeoutTypes, URLTypes

    from proxykeeper.config.http_resilience import ResilienceConfig, RetryPolicy

log = getLogger(__name__)


class RequestOptions(TypedDict, total=False):
    json: object
    params: QueryParamTypes | None
    headers: HeaderTypes | None
    timeout: TimeoutTypes | UseClientDefault


def build_retry(policy: RetryPolicy) -> Retry:
    return Retry(
        total=policy.total,
        backoff_factor=policy.backoff_factor,
        max_backoff_wait=policy.max_backoff_wait,
        respect_retry_after_header=policy.respect_retry_after_header,
        allowed_methods=tuple(policy.allowed_methods),
        status_forcelist=tuple(policy.status_forcelist),
        retry_on_exceptions=policy.retry_on_exceptions,
        backoff_jitter=policy.backoff_jitter,
    )


def build_transport(
    config: ResilienceConfig, inner: httpx.AsyncBaseTransport | None = None
) -> RetryTransport:
    """Wrap ``inner`` (a plain HTTP transport by default) in the retry layer."""

    base = inner or httpx.AsyncHTTPTransport(verify=config.verify_tls)
    return RetryTransport(transport=base, retry=build_retry(config.retry))


class ResilientClient:
    """Short-lived async client for one proxy session; close it or use ``async with``."""

    def __init__(
        self,
        config: ResilienceConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        self._client = httpx.AsyncClient(
            base_url=config.base_url or "",
            timeout=config.timeout_seconds,
            headers=dict(config.default_headers or {}),
            transport=build_transport(config, transport),
        )

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

    async def request(
        self,
        method: str,
        url: URLTypes,
        **kwargs: Unpack[RequestOptions],
    ) -> httpx.Response:
        response = await self._client.request(method, url, **kwargs)
        if response.is_server_error:
            log.debug(
                "%s answered %d for %s %s after retries",
                self.config.name,
                response.status_code,
                method,
                url,
            )
        return response
