"""Read-after-write reconciliation settings."""

from __future__ import annotations

from dataclasses import dataclass

from .env import optional_float_env, optional_int_env
from .errors import ConfigurationError


@dataclass(frozen=True, slots=True)
class ReconcilePolicy:
    """Retry budget for confirming a write became visible.

    The worst-case wait is bounded by ``max_attempts * max_delay``.
    """

    max_attempts: int = 5
    initial_delay: float = 1.0
    max_delay: float = 10.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ConfigurationError("max_attempts must be at least 1")
        if self.initial_delay < 0 or self.max_delay < 0:
            raise ConfigurationError("Reconcile delays must be non-negative")
        if self.max_delay < self.initial_delay:
            raise ConfigurationError("max_delay must not be smaller than initial_delay")


def get_reconcile_policy() -> ReconcilePolicy:
    defaults = ReconcilePolicy()
    return ReconcilePolicy(
        max_attempts=optional_int_env("PROXYKEEPER_RECONCILE_ATTEMPTS", defaults.max_attempts),
        initial_delay=optional_float_env(
            "PROXYKEEPER_RECONCILE_INITIAL_DELAY", defaults.initial_delay
        ),
        max_delay=optional_float_env("PROXYKEEPER_RECONCILE_MAX_DELAY", defaults.max_delay),
    )
