"""Typed client for the LiteLLM proxy admin API."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

import httpx

from proxykeeper.domain.consistency.classify import failure_from_response
from proxykeeper.domain.errors import EntityNotFoundError

from .schema import UserInfoResponse
from .translator import parse_key, parse_model, parse_team, user_from_response

if TYPE_CHECKING:
    from proxykeeper.domain.model import (
        ApiKey,
        EntityId,
        KeySpec,
        KeyToken,
        ModelDeployment,
        ModelSpec,
        Team,
        TeamMemberSpec,
        TeamSpec,
        User,
        UserSpec,
    )
    from proxykeeper.domain.ports import Gateway, GatewayResponse

log = getLogger(__name__)

ENDPOINT_USER_NEW = "/user/new"
ENDPOINT_USER_INFO = "/user/info"
ENDPOINT_USER_UPDATE = "/user/update"
ENDPOINT_USER_DELETE = "/user/delete"

ENDPOINT_TEAM_NEW = "/team/new"
ENDPOINT_TEAM_INFO = "/team/info"
ENDPOINT_TEAM_UPDATE = "/team/update"
ENDPOINT_TEAM_DELETE = "/team/delete"
ENDPOINT_TEAM_MEMBER_ADD = "/team/member_add"
ENDPOINT_TEAM_MEMBER_UPDATE = "/team/member_update"
ENDPOINT_TEAM_MEMBER_DELETE = "/team/member_delete"

ENDPOINT_KEY_GENERATE = "/key/generate"
ENDPOINT_KEY_SERVICE_ACCOUNT_GENERATE = "/key/service-account/generate"
ENDPOINT_KEY_INFO = "/key/info"
ENDPOINT_KEY_UPDATE = "/key/update"
ENDPOINT_KEY_DELETE = "/key/delete"

ENDPOINT_MODEL_NEW = "/model/new"
ENDPOINT_MODEL_INFO = "/model/info"
ENDPOINT_MODEL_UPDATE = "/model/update"
ENDPOINT_MODEL_DELETE = "/model/delete"


def _with_query(path: str, **params: str) -> str:
    return f"{path}?{httpx.QueryParams(params)}"


class LiteLLMAdminClient:
    """Entity operations over a ``Gateway``; every failure is classified."""

    def __init__(self, *, gateway: Gateway, timeout: float | None = None) -> None:
        self._gateway = gateway
        self._timeout = timeout

    # Users

    def get_user(self, user_id: EntityId) -> User:
        action = f"reading user {user_id}"
        response = self._send(
            "GET", _with_query(ENDPOINT_USER_INFO, user_id=user_id), action=action
        )
        info = UserInfoResponse.model_validate(response.payload or {})
        if info.reports_missing_user:
            raise EntityNotFoundError(
                action, status_code=response.status_code, payload=response.payload
            )
        return user_from_response(info, user_id=user_id)

    def create_user(self, spec: UserSpec) -> None:
        user_id = _require(spec.user_id, "user_id")
        log.debug("Creating user %s", user_id)
        self._send("POST", ENDPOINT_USER_NEW, spec.to_payload(), action=f"creating user {user_id}")
        log.info("User created with ID: %s", user_id)

    def update_user(self, spec: UserSpec) -> None:
        user_id = _require(spec.user_id, "user_id")
        self._send(
            "POST", ENDPOINT_USER_UPDATE, spec.to_payload(), action=f"updating user {user_id}"
        )
        log.info("Updated user %s", user_id)

    def delete_user(self, user_id: EntityId) -> None:
        self._send(
            "POST",
            ENDPOINT_USER_DELETE,
            {"user_ids": [user_id]},
            action=f"deleting user {user_id}",
        )
        log.info("Deleted user %s", user_id)

    # Teams

    def get_team(self, team_id: EntityId) -> Team:
        response = self._send(
            "GET",
            _with_query(ENDPOINT_TEAM_INFO, team_id=team_id),
            action=f"reading team {team_id}",
        )
        return parse_team(response.payload or {}, team_id=team_id)

    def create_team(self, spec: TeamSpec) -> None:
        team_id = _require(spec.team_id, "team_id")
        self._send(
            "POST", ENDPOINT_TEAM_NEW, spec.to_payload(), action=f"creating team {team_id}"
        )
        log.info("Team created with ID: %s", team_id)

    def update_team(self, spec: TeamSpec) -> None:
        team_id = _require(spec.team_id, "team_id")
        self._send(
            "POST", ENDPOINT_TEAM_UPDATE, spec.to_payload(), action=f"updating team {team_id}"
        )

    def delete_team(self, team_id: EntityId) -> None:
        self._send(
            "POST",
            ENDPOINT_TEAM_DELETE,
            {"team_ids": [team_id]},
            action=f"deleting team {team_id}",
        )
        log.info("Deleted team %s", team_id)

    # Team membership

    def add_team_member(self, spec: TeamMemberSpec) -> None:
        self._send(
            "POST",
            ENDPOINT_TEAM_MEMBER_ADD,
            spec.add_payload(),
            action=f"adding user {spec.user_id} to team {spec.team_id}",
        )
        log.info("Team member created with ID: %s", spec.member_id)

    def update_team_member(self, spec: TeamMemberSpec) -> None:
        self._send(
            "POST",
            ENDPOINT_TEAM_MEMBER_UPDATE,
            spec.update_payload(),
            action=f"updating user {spec.user_id} in team {spec.team_id}",
        )

    def remove_team_member(
        self, team_id: EntityId, user_id: EntityId, *, user_email: str | None = None
    ) -> None:
        body: dict[str, object] = {"team_id": team_id, "user_id": user_id}
        if user_email:
            body["user_email"] = user_email
        self._send(
            "POST",
            ENDPOINT_TEAM_MEMBER_DELETE,
            body,
            action=f"removing user {user_id} from team {team_id}",
        )

    # Keys

    def generate_key(self, spec: KeySpec) -> ApiKey:
        endpoint = ENDPOINT_KEY_GENERATE
        payload = spec.to_payload()
        if spec.service_account_id:
            endpoint = ENDPOINT_KEY_SERVICE_ACCOUNT_GENERATE
            payload["service_account_id"] = spec.service_account_id
        response = self._send("POST", endpoint, payload, action="generating key")
        return parse_key(response.payload or {})

    def get_key(self, token: KeyToken) -> ApiKey:
        path = _with_query(ENDPOINT_KEY_INFO, key=token)
        response = self._send("GET", path, action="reading key")
        return parse_key(response.payload or {}, token=token)

    def update_key(self, spec: KeySpec) -> ApiKey:
        token = _require(spec.token, "token")
        response = self._send("POST", ENDPOINT_KEY_UPDATE, spec.to_payload(), action="updating key")
        return parse_key(response.payload or {}, token=token)

    def delete_key(self, token: KeyToken) -> None:
        self._send("POST", ENDPOINT_KEY_DELETE, {"keys": [token]}, action="deleting key")

    # Models

    def create_model(self, spec: ModelSpec) -> None:
        model_id = _require(spec.model_id, "model_id")
        self._send(
            "POST", ENDPOINT_MODEL_NEW, spec.to_payload(), action=f"creating model {model_id}"
        )
        log.info("Model created with ID %s", model_id)

    def update_model(self, spec: ModelSpec) -> None:
        model_id = _require(spec.model_id, "model_id")
        self._send(
            "POST", ENDPOINT_MODEL_UPDATE, spec.to_payload(), action=f"updating model {model_id}"
        )

    def get_model(self, model_id: EntityId) -> ModelDeployment:
        action = f"reading model {model_id}"
        response = self._send(
            "GET", _with_query(ENDPOINT_MODEL_INFO, litellm_model_id=model_id), action=action
        )
        model = parse_model(response.payload or {}, model_id=model_id)
        if model is None:
            raise EntityNotFoundError(
                action, status_code=response.status_code, payload=response.payload
            )
        return model

    def delete_model(self, model_id: EntityId) -> None:
        self._send(
            "POST", ENDPOINT_MODEL_DELETE, {"id": model_id}, action=f"deleting model {model_id}"
        )
        log.info("Deleted model %s", model_id)

    def _send(
        self, method: str, path: str, body: object = None, *, action: str
    ) -> GatewayResponse:
        response = self._gateway.call(method, path, body, timeout=self._timeout)
        if not response.ok:
            raise failure_from_response(response.status_code, response.body, action=action)
        return response


def _require(value: str | None, name: str) -> str:
    if not value:
        raise ValueError(f"{name} must be set before calling the proxy")
    return value
