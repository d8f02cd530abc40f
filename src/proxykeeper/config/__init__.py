"""Application configuration helpers."""

from __future__ import annotations

from .env import optional_float_env, optional_int_env, require_env_var, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .http_resilience import ResilienceConfig, RetryPolicy
from .litellm import LiteLLMConfig, get_litellm_config
from .logging import configure_logging
from .reconcile import ReconcilePolicy, get_reconcile_policy

__all__ = [
    "ConfigurationError",
    "LiteLLMConfig",
    "MissingConfigurationError",
    "ReconcilePolicy",
    "ResilienceConfig",
    "RetryPolicy",
    "configure_logging",
    "get_litellm_config",
    "get_reconcile_policy",
    "optional_float_env",
    "optional_int_env",
    "require_env_var",
    "require_env_vars",
]
