"""Classified failures raised by proxy operations."""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from proxykeeper.domain.consistency.cascade import CascadeReport


class FailureKind(StrEnum):
    NOT_FOUND = "not_found"
    TRANSIENT = "transient"
    PERMANENT = "permanent"


class BackendError(RuntimeError):
    """Base for every classified failure of a proxy call."""

    kind: FailureKind = FailureKind.PERMANENT
    label: str = "request failed"

    def __init__(
        self,
        action: str,
        *,
        status_code: int | None = None,
        payload: object = None,
        detail: str | None = None,
    ) -> None:
        self.action = action
        self.status_code = status_code
        self.payload = payload
        self.detail = detail
        super().__init__(self._format())

    def _format(self) -> str:
        parts = [f"{self.action}: {self.label}"]
        if self.status_code is not None:
            parts.append(f"(status {self.status_code})")
        message = " ".join(parts)
        if self.detail:
            message = f"{message}: {self.detail}"
        return message


class EntityNotFoundError(BackendError):
    """The entity is absent, or not yet visible after a write."""

    kind = FailureKind.NOT_FOUND
    label = "entity not found"


class TransientBackendError(BackendError):
    """A failure worth retrying later (timeouts)."""

    kind = FailureKind.TRANSIENT
    label = "temporarily unavailable"


class TransportError(TransientBackendError):
    """No response was received at all."""

    label = "transport error"


class RequestRejectedError(BackendError):
    """The proxy answered and refused the request."""

    kind = FailureKind.PERMANENT
    label = "request rejected"


class CascadeCleanupError(RuntimeError):
    """Raised only when the caller asked cascading cleanup failures to escalate."""

    def __init__(self, report: CascadeReport) -> None:
        self.report = report
        failed = ", ".join(outcome.step for outcome in report.failed)
        super().__init__(f"Cascading cleanup for user {report.user_id} failed in: {failed}")
