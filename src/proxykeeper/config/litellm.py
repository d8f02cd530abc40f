"""LiteLLM proxy configuration values."""

from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

from .env import optional_float_env, require_env_vars
from .http_resilience import ResilienceConfig, RetryPolicy

LITELLM_TIMEOUT_SECONDS = 30.0
_FALSY = frozenset({"0", "false", "no", "off"})


@dataclass(frozen=True, slots=True)
class LiteLLMConfig:
    """Holds LiteLLM admin API configuration values."""

    api_base: str
    api_key: str
    resilience: ResilienceConfig


def get_litellm_config(
    *,
    resilience: ResilienceConfig | None = None,
    load_env_file: bool = True,
) -> LiteLLMConfig:
    if load_env_file:
        load_dotenv()
    values = require_env_vars(("LITELLM_API_BASE", "LITELLM_API_KEY"))
    api_base = values["LITELLM_API_BASE"].rstrip("/")
    timeout = optional_float_env("LITELLM_TIMEOUT_SECONDS", LITELLM_TIMEOUT_SECONDS)
    verify_tls = os.getenv("LITELLM_VERIFY_TLS", "true").strip().lower() not in _FALSY

    return LiteLLMConfig(
        api_base=api_base,
        api_key=values["LITELLM_API_KEY"],
        resilience=resilience
        or ResilienceConfig(
            name="litellm",
            base_url=api_base,
            timeout_seconds=timeout,
            retry=RetryPolicy(),
            default_headers={
                "Content-Type": "application/json",
                "accept": "application/json",
                "x-api-key": values["LITELLM_API_KEY"],
            },
            verify_tls=verify_tls,
        ),
    )
