"""Read-after-write reconciliation.

Writes to the proxy are not immediately visible to reads. After a write that
must be observable before we return, the entity is read back until it appears
or the retry budget runs out. Only ``EntityNotFoundError`` counts as
propagation delay; any other failure ends the loop at once.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from proxykeeper.config.reconcile import ReconcilePolicy
from proxykeeper.domain.errors import EntityNotFoundError

if TYPE_CHECKING:
    from collections.abc import Callable

log = getLogger(__name__)

type Sleep = Callable[[float], None]
type Clock = Callable[[], float]


@dataclass(slots=True)
class RetryState:
    """Per-call attempt bookkeeping; never shared or persisted."""

    attempt: int
    delay: float
    max_delay: float

    @classmethod
    def start(cls, policy: ReconcilePolicy) -> RetryState:
        return cls(attempt=0, delay=policy.initial_delay, max_delay=policy.max_delay)

    def advance(self) -> float:
        """Return the delay to wait now and grow the next one, capped at ``max_delay``."""
        current = min(self.delay, self.max_delay)
        self.delay = min(self.delay * 2, self.max_delay)
        return current


def backoff_delays(policy: ReconcilePolicy) -> list[float]:
    """Delays slept between consecutive attempts when every read misses."""

    state = RetryState.start(policy)
    return [state.advance() for _ in range(policy.max_attempts - 1)]


def reconcile[T](
    read: Callable[[], T],
    *,
    policy: ReconcilePolicy | None = None,
    sleep: Sleep = time.sleep,
    deadline: float | None = None,
    clock: Clock = time.monotonic,
    description: str = "entity",
) -> T:
    """Call ``read`` until it succeeds, retrying only on ``EntityNotFoundError``.

    Performs at most ``policy.max_attempts`` reads. When every read misses the
    last ``EntityNotFoundError`` is re-raised. ``deadline`` is a ``clock``
    timestamp; once the next sleep would pass it, the loop gives up early.
    """

    effective = policy or ReconcilePolicy()
    state = RetryState.start(effective)
    while True:
        state.attempt += 1
        try:
            entity = read()
        except EntityNotFoundError:
            if state.attempt >= effective.max_attempts:
                log.warning(
                    "%s still not visible after %d attempts", description, state.attempt
                )
                raise
            delay = state.advance()
            if deadline is not None and clock() + delay > deadline:
                log.warning(
                    "Deadline reached waiting for %s after %d attempts",
                    description,
                    state.attempt,
                )
                raise
            log.info(
                "%s not visible yet (attempt %d/%d), retrying in %.2fs",
                description,
                state.attempt,
                effective.max_attempts,
                delay,
            )
            sleep(delay)
            continue

        if state.attempt > 1:
            log.info("%s visible after %d attempts", description, state.attempt)
        return entity


__all__ = ["RetryState", "backoff_delays", "reconcile"]
