"""Classification of failed proxy responses.

The proxy has no single stable "not found" contract: different endpoints and
releases answer with different body shapes. Each known shape is one structural
pattern below; ``NOT_FOUND_PATTERNS`` is the closed set tried in order.
"""

from __future__ import annotations

import json
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import cast

from proxykeeper.domain.errors import (
    BackendError,
    EntityNotFoundError,
    FailureKind,
    RequestRejectedError,
    TransientBackendError,
    TransportError,
)

TRANSIENT_STATUS_CODES: frozenset[int] = frozenset({408, 504})
NOT_FOUND_STATUS_CODES: frozenset[int] = frozenset({404})

MODEL_LIST_NOT_LOADED = "LLM Model List not loaded in"


@dataclass(frozen=True, slots=True)
class ErrorBody:
    """A failed response body viewed through the fields the proxy uses for errors."""

    mapping: Mapping[str, object]
    text: str

    @classmethod
    def parse(cls, body: object) -> ErrorBody:
        if isinstance(body, bytes):
            body = body.decode("utf-8", errors="replace")
        if isinstance(body, str):
            text = body
            try:
                decoded: object = json.loads(body)
            except json.JSONDecodeError:
                decoded = None
        else:
            decoded = body
            text = _dump(body)
        mapping = cast(Mapping[str, object], decoded) if isinstance(decoded, Mapping) else {}
        return cls(mapping=mapping, text=text)

    def section(self, name: str) -> Mapping[str, object]:
        value = self.mapping.get(name)
        return cast(Mapping[str, object], value) if isinstance(value, Mapping) else {}

    @property
    def error_message(self) -> object:
        return self.section("error").get("message")

    @property
    def detail_error(self) -> str | None:
        value = self.section("detail").get("error")
        return value if isinstance(value, str) else None

    def messages(self) -> tuple[str, ...]:
        """Every string-valued message-bearing field, plus the raw text."""
        candidates = (
            self.error_message,
            self.mapping.get("detail"),
            self.detail_error,
            self.mapping.get("message"),
            self.text,
        )
        return tuple(value for value in candidates if isinstance(value, str) and value)


def _dump(body: object) -> str:
    if body is None:
        return ""
    try:
        return json.dumps(body, default=str)
    except (TypeError, ValueError):
        return str(body)


type NotFoundPattern = Callable[[ErrorBody], bool]


def flat_model_not_found(body: ErrorBody) -> bool:
    message = body.error_message
    return isinstance(message, str) and "model not found" in message


def nested_model_missing_in_db(body: ErrorBody) -> bool:
    message = body.error_message
    if not isinstance(message, Mapping):
        return False
    error = cast(Mapping[str, object], message).get("error")
    return isinstance(error, str) and "Model with id=" in error and "not found in db" in error


def detail_not_on_proxy(body: ErrorBody) -> bool:
    error = body.detail_error
    return error is not None and "not found on litellm proxy" in error


def model_list_not_loaded(body: ErrorBody) -> bool:
    # Router race on the proxy; the deployment is effectively gone for us.
    return any(MODEL_LIST_NOT_LOADED in message for message in body.messages())


NOT_FOUND_PATTERNS: tuple[NotFoundPattern, ...] = (
    flat_model_not_found,
    nested_model_missing_in_db,
    detail_not_on_proxy,
    model_list_not_loaded,
)


def is_not_found_body(body: object) -> bool:
    parsed = body if isinstance(body, ErrorBody) else ErrorBody.parse(body)
    return any(pattern(parsed) for pattern in NOT_FOUND_PATTERNS)


def classify(status_code: int | None, body: object = None) -> FailureKind:
    """Classify a failed call; ``status_code`` is ``None`` for transport failures."""

    if status_code is None or status_code in TRANSIENT_STATUS_CODES:
        return FailureKind.TRANSIENT
    if status_code in NOT_FOUND_STATUS_CODES or is_not_found_body(body):
        return FailureKind.NOT_FOUND
    return FailureKind.PERMANENT


_ERROR_TYPES: dict[FailureKind, type[BackendError]] = {
    FailureKind.NOT_FOUND: EntityNotFoundError,
    FailureKind.TRANSIENT: TransientBackendError,
    FailureKind.PERMANENT: RequestRejectedError,
}


def failure_from_response(status_code: int | None, body: object, *, action: str) -> BackendError:
    """Build the classified exception for a failed call."""

    kind = classify(status_code, body)
    if status_code is None:
        return TransportError(action, payload=body, detail=_detail_text(body))
    error_type = _ERROR_TYPES[kind]
    return error_type(action, status_code=status_code, payload=body, detail=_detail_text(body))


def _detail_text(body: object) -> str | None:
    parsed = ErrorBody.parse(body)
    messages = parsed.messages()
    if not messages:
        return None
    return messages[0]


__all__ = [
    "MODEL_LIST_NOT_LOADED",
    "NOT_FOUND_PATTERNS",
    "NOT_FOUND_STATUS_CODES",
    "TRANSIENT_STATUS_CODES",
    "ErrorBody",
    "NotFoundPattern",
    "classify",
    "detail_not_on_proxy",
    "failure_from_response",
    "flat_model_not_found",
    "is_not_found_body",
    "model_list_not_loaded",
    "nested_model_missing_in_db",
]
