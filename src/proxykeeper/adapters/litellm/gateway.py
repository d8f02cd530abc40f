"""Synchronous HTTP gateway to the LiteLLM proxy."""

from __future__ import annotations

import asyncio
from logging import getLogger
from typing import TYPE_CHECKING

import httpx

from proxykeeper.adapters.http_resilience import RequestOptions, ResilientClient
from proxykeeper.domain.errors import TransportError
from proxykeeper.domain.ports import GatewayResponse

if TYPE_CHECKING:
    from collections.abc import Callable

    from proxykeeper.config.http_resilience import ResilienceConfig
    from proxykeeper.config.litellm import LiteLLMConfig

log = getLogger(__name__)


def _in_running_loop() -> bool:
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return False
    return True


def _default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


class HttpGateway:
    """Blocking request/response calls, one short-lived async client per call.

    Each call drives its own event loop, so ``call`` must not be used from a
    coroutine; it raises ``RuntimeError`` there. Async code should talk to the
    proxy through ``ResilientClient`` directly.
    """

    def __init__(
        self,
        *,
        config: LiteLLMConfig,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
    ) -> None:
        self._config = config
        self._resilience = config.resilience
        self._client_factory = client_factory or _default_client_factory

    def call(
        self,
        method: str,
        path: str,
        body: object = None,
        *,
        timeout: float | None = None,
    ) -> GatewayResponse:
        if _in_running_loop():
            msg = "HttpGateway.call blocks; use ResilientClient inside a running event loop"
            raise RuntimeError(msg)
        return asyncio.run(self._call_async(method.upper(), path, body, timeout=timeout))

    async def _call_async(
        self,
        method: str,
        path: str,
        body: object,
        *,
        timeout: float | None,
    ) -> GatewayResponse:
        options: RequestOptions = {}
        if body is not None:
            options["json"] = body
        if timeout is not None:
            options["timeout"] = timeout

        log.debug("Making %s request to %s%s", method, self._config.api_base, path)
        try:
            async with self._client_factory(self._resilience) as client:
                response = await client.request(method, path, **options)
        except httpx.TransportError as exc:
            log.debug("%s %s failed without a response: %s", method, path, exc)
            detail = str(exc) or type(exc).__name__
            raise TransportError(f"{method} {path}", detail=detail) from exc

        result = _to_gateway_response(response)
        log.debug(
            "Response status %d for %s %s: %s", result.status_code, method, path, result.text
        )
        return result


def _to_gateway_response(response: httpx.Response) -> GatewayResponse:
    text = response.text
    payload: object
    if not text.strip() or text.strip() == "null":
        # Some mutations answer 200 with an empty body.
        payload = {} if response.is_success else None
    else:
        try:
            payload = response.json()
        except ValueError:
            payload = None
    return GatewayResponse(status_code=response.status_code, payload=payload, text=text)
