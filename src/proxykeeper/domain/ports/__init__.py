"""Domain port definitions for adapters."""

from __future__ import annotations

from .admin import ProxyAdmin
from .gateway import Gateway, GatewayResponse

__all__ = [
    "Gateway",
    "GatewayResponse",
    "ProxyAdmin",
]
