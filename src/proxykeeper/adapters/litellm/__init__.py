"""Public interface for the LiteLLM adapter."""

from __future__ import annotations

from .client import LiteLLMAdminClient
from .gateway import HttpGateway
from .schema import KeyInfoResponse, ModelInfoResponse, TeamInfoResponse, UserInfoResponse
from .translator import parse_key, parse_model, parse_team, parse_user

__all__ = [
    "HttpGateway",
    "KeyInfoResponse",
    "LiteLLMAdminClient",
    "ModelInfoResponse",
    "TeamInfoResponse",
    "UserInfoResponse",
    "parse_key",
    "parse_model",
    "parse_team",
    "parse_user",
]
