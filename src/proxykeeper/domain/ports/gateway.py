"""Port for the raw request/response transport to the proxy."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@dataclass(frozen=True, slots=True)
class GatewayResponse:
    """Status and body of one completed call.

    ``payload`` is the decoded JSON body when it parsed, otherwise ``None``;
    ``text`` always holds the raw body.
    """

    status_code: int
    payload: object = None
    text: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def body(self) -> object:
        return self.payload if self.payload is not None else self.text


@runtime_checkable
class Gateway(Protocol):
    """Synchronous call primitive.

    Implementations raise ``TransportError`` when no response arrived and return
    a ``GatewayResponse`` for every answered request, whatever its status.
    """

    def call(
        self,
        method: str,
        path: str,
        body: object = None,
        *,
        timeout: float | None = None,
    ) -> GatewayResponse:
        ...


__all__ = ["Gateway", "GatewayResponse"]
