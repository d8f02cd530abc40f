"""Consistency core: classify failures, confirm writes, cascade deletes, upsert."""

from __future__ import annotations

from .cascade import (
    CascadeOptions,
    CascadeReport,
    CascadingCleanup,
    CleanupOutcome,
    CleanupStatus,
    CleanupStep,
)
from .classify import NOT_FOUND_PATTERNS, classify, failure_from_response, is_not_found_body
from .reconcile import RetryState, backoff_delays, reconcile
from .upsert import upsert

__all__ = [
    "NOT_FOUND_PATTERNS",
    "CascadeOptions",
    "CascadeReport",
    "CascadingCleanup",
    "CleanupOutcome",
    "CleanupStatus",
    "CleanupStep",
    "RetryState",
    "backoff_delays",
    "classify",
    "failure_from_response",
    "is_not_found_body",
    "reconcile",
    "upsert",
]
