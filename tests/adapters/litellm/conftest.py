"""Shared fixtures for LiteLLM adapter tests."""

from __future__ import annotations

import pytest

from proxykeeper.adapters.litellm import LiteLLMAdminClient
from proxykeeper.domain.ports import GatewayResponse

type Request = tuple[str, str, object]


class FakeGateway:
    """Answers calls from a queue of canned responses and records every request."""

    def __init__(self) -> None:
        self.requests: list[Request] = []
        self.timeouts: list[float | None] = []
        self._responses: list[GatewayResponse] = []

    def respond(self, status_code: int, payload: object = None, text: str = "") -> None:
        self._responses.append(
            GatewayResponse(status_code=status_code, payload=payload, text=text)
        )

    def call(
        self,
        method: str,
        path: str,
        body: object = None,
        *,
        timeout: float | None = None,
    ) -> GatewayResponse:
        self.requests.append((method, path, body))
        self.timeouts.append(timeout)
        if not self._responses:
            return GatewayResponse(status_code=200, payload={})
        return self._responses.pop(0)


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def admin_client(gateway: FakeGateway) -> LiteLLMAdminClient:
    return LiteLLMAdminClient(gateway=gateway, timeout=12.5)
