from __future__ import annotations

import asyncio
import json
from typing import TYPE_CHECKING

import httpx
import pytest

from proxykeeper.adapters.http_resilience import ResilientClient, build_retry
from proxykeeper.adapters.litellm import HttpGateway
from proxykeeper.config import LiteLLMConfig, ResilienceConfig, RetryPolicy
from proxykeeper.domain.errors import TransportError

if TYPE_CHECKING:
    from collections.abc import Callable

API_BASE = "https://proxy.example.test"


@pytest.fixture
def litellm_config() -> LiteLLMConfig:
    return LiteLLMConfig(
        api_base=API_BASE,
        api_key="sk-admin",
        resilience=ResilienceConfig(
            name="litellm",
            base_url=API_BASE,
            retry=RetryPolicy(backoff_factor=0.0, backoff_jitter=0.0),
            default_headers={"x-api-key": "sk-admin"},
        ),
    )


def _gateway(
    config: LiteLLMConfig, handler: Callable[[httpx.Request], httpx.Response]
) -> HttpGateway:
    async def async_handler(request: httpx.Request) -> httpx.Response:
        return handler(request)

    def factory(resilience: ResilienceConfig) -> ResilientClient:
        return ResilientClient(resilience, transport=httpx.MockTransport(async_handler))

    return HttpGateway(config=config, client_factory=factory)


def test_call_sends_json_and_decodes_response(litellm_config: LiteLLMConfig) -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"team_id": "team-1"})

    response = _gateway(litellm_config, handler).call("post", "/team/new", {"team_id": "team-1"})

    assert response.ok
    assert response.payload == {"team_id": "team-1"}
    assert seen[0].method == "POST"
    assert seen[0].url == httpx.URL(f"{API_BASE}/team/new")
    assert json.loads(seen[0].content) == {"team_id": "team-1"}
    assert seen[0].headers["x-api-key"] == "sk-admin"


def test_empty_success_body_decodes_to_empty_mapping(litellm_config: LiteLLMConfig) -> None:
    gateway = _gateway(litellm_config, lambda _request: httpx.Response(200, text=""))

    response = gateway.call("POST", "/user/delete", {"user_ids": ["u-1"]})

    assert response.payload == {}


def test_error_responses_are_returned_not_raised(litellm_config: LiteLLMConfig) -> None:
    def handler(_request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, text="Internal Server Error")

    response = _gateway(litellm_config, handler).call("GET", "/team/info?team_id=team-1")

    assert not response.ok
    assert response.status_code == 500
    assert response.payload is None
    assert response.body == "Internal Server Error"


def test_transport_failures_become_transport_errors(litellm_config: LiteLLMConfig) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(TransportError) as exc:
        _gateway(litellm_config, handler).call("GET", "/user/info?user_id=u-1")

    assert exc.value.status_code is None
    assert isinstance(exc.value.__cause__, httpx.ConnectError)


def test_resilient_client_applies_config() -> None:
    config = ResilienceConfig(
        name="litellm",
        base_url=API_BASE,
        timeout_seconds=7.0,
        default_headers={"x-api-key": "sk-admin"},
    )

    client = ResilientClient(config)
    inner = client._client  # noqa: SLF001  # type: ignore[reportPrivateUsage]

    assert inner.base_url == httpx.URL(f"{API_BASE}/")
    assert inner.headers["x-api-key"] == "sk-admin"
    assert inner.timeout == httpx.Timeout(7.0)


def test_build_retry_only_retries_idempotent_methods() -> None:
    retry = build_retry(RetryPolicy(total=2))

    assert retry.total == 2
    assert "GET" in retry.allowed_methods
    assert "POST" not in retry.allowed_methods


def test_idempotent_reads_are_retried_on_overload(litellm_config: LiteLLMConfig) -> None:
    statuses = [503, 502, 200]
    calls: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.method)
        return httpx.Response(statuses[len(calls) - 1], json={"user_id": "u-1"})

    response = _gateway(litellm_config, handler).call("GET", "/user/info?user_id=u-1")

    assert response.status_code == 200
    assert calls == ["GET", "GET", "GET"]


def test_mutations_are_not_replayed(litellm_config: LiteLLMConfig) -> None:
    calls: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.method)
        return httpx.Response(503, text="Service Unavailable")

    response = _gateway(litellm_config, handler).call("POST", "/user/new", {"user_id": "u-1"})

    assert response.status_code == 503
    assert calls == ["POST"]


def test_call_refuses_to_run_inside_an_event_loop(litellm_config: LiteLLMConfig) -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={})

    gateway = _gateway(litellm_config, handler)

    async def call_from_coroutine() -> None:
        gateway.call("get", "/team/info")

    with pytest.raises(RuntimeError, match="running event loop"):
        asyncio.run(call_from_coroutine())
    assert seen == []
