from __future__ import annotations

import json

import pytest

from proxykeeper.domain.consistency.classify import (
    MODEL_LIST_NOT_LOADED,
    ErrorBody,
    classify,
    failure_from_response,
    is_not_found_body,
)
from proxykeeper.domain.errors import (
    EntityNotFoundError,
    FailureKind,
    RequestRejectedError,
    TransientBackendError,
    TransportError,
)

FLAT_MODEL_NOT_FOUND = {"error": {"message": "model not found: gpt-9"}}
NESTED_MODEL_MISSING = {
    "error": {"message": {"error": "Model with id=abc-123 not found in db"}, "type": "None"}
}
DETAIL_NOT_ON_PROXY = {"detail": {"error": "Team not found on litellm proxy, team_id=t-1"}}
ROUTER_NOT_LOADED = {"error": {"message": f"{MODEL_LIST_NOT_LOADED} router, try again"}}


@pytest.mark.parametrize(
    "body",
    [FLAT_MODEL_NOT_FOUND, NESTED_MODEL_MISSING, DETAIL_NOT_ON_PROXY, ROUTER_NOT_LOADED],
    ids=["flat", "nested", "detail", "router"],
)
def test_known_shapes_are_not_found_on_error_status(body: dict[str, object]) -> None:
    assert classify(400, body) is FailureKind.NOT_FOUND
    assert classify(500, json.dumps(body)) is FailureKind.NOT_FOUND


def test_status_404_is_not_found_whatever_the_body() -> None:
    assert classify(404, None) is FailureKind.NOT_FOUND
    assert classify(404, "<html>gone</html>") is FailureKind.NOT_FOUND


def test_unrelated_server_error_is_permanent() -> None:
    body = {"error": {"message": "database constraint violated"}}

    assert classify(500, body) is FailureKind.PERMANENT
    assert classify(400, "bad request") is FailureKind.PERMANENT


def test_plain_text_body_matching_router_race_is_not_found() -> None:
    assert classify(500, f"Internal error: {MODEL_LIST_NOT_LOADED} router") is FailureKind.NOT_FOUND


@pytest.mark.parametrize("status", [None, 408, 504])
def test_timeouts_and_transport_failures_are_transient(status: int | None) -> None:
    assert classify(status, FLAT_MODEL_NOT_FOUND) is FailureKind.TRANSIENT


def test_nested_message_without_db_wording_is_not_a_match() -> None:
    body = {"error": {"message": {"error": "Model with id=abc-123 is invalid"}}}

    assert not is_not_found_body(body)


def test_error_body_tolerates_bytes_and_non_json() -> None:
    parsed = ErrorBody.parse(b"not json at all")

    assert parsed.mapping == {}
    assert parsed.text == "not json at all"
    assert parsed.messages() == ("not json at all",)


def test_failure_from_response_builds_matching_error_types() -> None:
    not_found = failure_from_response(404, {"detail": "missing"}, action="reading user u-1")
    rejected = failure_from_response(400, {"error": {"message": "bad"}}, action="creating team")
    timeout = failure_from_response(504, "gateway timeout", action="reading key")
    transport = failure_from_response(None, None, action="reading model")

    assert isinstance(not_found, EntityNotFoundError)
    assert not_found.status_code == 404
    assert str(not_found) == "reading user u-1: entity not found (status 404): missing"
    assert isinstance(rejected, RequestRejectedError)
    assert rejected.detail == "bad"
    assert isinstance(timeout, TransientBackendError)
    assert not isinstance(timeout, TransportError)
    assert isinstance(transport, TransportError)
    assert transport.kind is FailureKind.TRANSIENT
