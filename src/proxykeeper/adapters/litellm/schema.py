"""Pydantic models describing LiteLLM admin API payloads.

Every field is optional and unknown fields are ignored: the proxy's response
shapes drift between releases, and a missing field must never fail a read.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import cast

from pydantic import BaseModel, ConfigDict, Field, field_validator


class LiteLLMBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


def _team_id_of(value: object) -> object:
    if isinstance(value, Mapping):
        mapping = cast(Mapping[str, object], value)
        return mapping.get("team_id")
    return value


def _normalize_team_ids(value: object) -> object:
    """Teams arrive either as plain ids or as team objects; keep the ids."""
    if not isinstance(value, list):
        return value
    items = cast(list[object], value)
    return [
        team_id
        for team_id in (_team_id_of(item) for item in items)
        if isinstance(team_id, str) and team_id
    ]


def _none_to_empty_list(value: object) -> object:
    return [] if value is None else value


class KeyPayload(LiteLLMBaseModel):
    token: str | None = None
    key: str | None = None
    key_name: str | None = None
    key_alias: str | None = None
    user_id: str | None = None
    team_id: str | None = None
    models: list[str] = Field(default_factory=list)
    spend: float | None = None
    max_budget: float | None = None
    blocked: bool | None = None
    metadata: dict[str, object] | None = None

    _normalize_models = field_validator("models", mode="before")(_none_to_empty_list)

    @property
    def identifier(self) -> str | None:
        return self.token or self.key


class UserInfoPayload(LiteLLMBaseModel):
    user_id: str | None = None
    user_email: str | None = None
    user_alias: str | None = None
    user_role: str | None = None
    max_budget: float | None = None
    budget_duration: str | None = None
    models: list[str] = Field(default_factory=list)
    teams: list[str] | None = None

    _normalize_teams = field_validator("teams", mode="before")(_normalize_team_ids)
    _normalize_models = field_validator("models", mode="before")(_none_to_empty_list)


class UserInfoResponse(LiteLLMBaseModel):
    user_id: str | None = None
    user_email: str | None = None
    user_info: UserInfoPayload | None = None
    keys: list[KeyPayload] = Field(default_factory=list)
    teams: list[str] | None = None

    _normalize_teams = field_validator("teams", mode="before")(_normalize_team_ids)
    _normalize_keys = field_validator("keys", mode="before")(_none_to_empty_list)

    @property
    def reports_missing_user(self) -> bool:
        """Some releases answer an unknown user with 200 and ``user_info: null``."""
        return "user_info" in self.model_fields_set and self.user_info is None and not self.keys


class MemberPayload(LiteLLMBaseModel):
    user_id: str | None = None
    user_email: str | None = None
    role: str | None = None


def _members_from_ids(value: object) -> object:
    if not isinstance(value, list):
        return _none_to_empty_list(value)
    items = cast(list[object], value)
    return [{"user_id": item} if isinstance(item, str) else item for item in items]


class TeamInfoPayload(LiteLLMBaseModel):
    team_id: str | None = None
    team_alias: str | None = None
    organization_id: str | None = None
    models: list[str] = Field(default_factory=list)
    max_budget: float | None = None
    budget_duration: str | None = None
    tpm_limit: int | None = None
    rpm_limit: int | None = None
    blocked: bool | None = None
    metadata: dict[str, object] | None = None
    members: list[MemberPayload] = Field(default_factory=list)
    members_with_roles: list[MemberPayload] = Field(default_factory=list)

    _normalize_members = field_validator("members", "members_with_roles", mode="before")(
        _members_from_ids
    )
    _normalize_models = field_validator("models", mode="before")(_none_to_empty_list)


class TeamInfoResponse(TeamInfoPayload):
    """Team info either flat or nested under ``team_info``."""

    team_info: TeamInfoPayload | None = None

    def merged(self) -> TeamInfoPayload:
        nested = self.team_info
        if nested is None:
            return self
        return TeamInfoPayload(
            team_id=self.team_id or nested.team_id,
            team_alias=self.team_alias or nested.team_alias,
            organization_id=self.organization_id or nested.organization_id,
            models=self.models or nested.models,
            max_budget=self.max_budget if self.max_budget is not None else nested.max_budget,
            budget_duration=self.budget_duration or nested.budget_duration,
            tpm_limit=self.tpm_limit if self.tpm_limit is not None else nested.tpm_limit,
            rpm_limit=self.rpm_limit if self.rpm_limit is not None else nested.rpm_limit,
            blocked=self.blocked if self.blocked is not None else nested.blocked,
            metadata=self.metadata or nested.metadata,
            members=self.members or nested.members,
            members_with_roles=self.members_with_roles or nested.members_with_roles,
        )


class KeyInfoResponse(KeyPayload):
    """``/key/info`` nests details under ``info``; ``/key/generate`` answers flat."""

    info: KeyPayload | None = None


class LiteLLMParamsPayload(LiteLLMBaseModel):
    model: str | None = None
    custom_llm_provider: str | None = None
    tpm: int | None = None
    rpm: int | None = None
    api_base: str | None = None
    api_version: str | None = None


class ModelInfoPayload(LiteLLMBaseModel):
    id: str | None = None
    base_model: str | None = None
    tier: str | None = None
    mode: str | None = None


class ModelPayload(LiteLLMBaseModel):
    model_name: str | None = None
    litellm_params: LiteLLMParamsPayload = Field(default_factory=LiteLLMParamsPayload)
    model_info: ModelInfoPayload = Field(default_factory=ModelInfoPayload)


class ModelInfoResponse(ModelPayload):
    """Model info either flat or as the first entry of ``data``."""

    data: list[ModelPayload] | None = None

    def deployment(self, model_id: str) -> ModelPayload | None:
        if self.data is None:
            return self if self.model_name or self.model_info.id else None
        for item in self.data:
            if item.model_info.id == model_id:
                return item
        return None


__all__ = [
    "KeyInfoResponse",
    "KeyPayload",
    "MemberPayload",
    "ModelInfoResponse",
    "ModelPayload",
    "TeamInfoPayload",
    "TeamInfoResponse",
    "UserInfoPayload",
    "UserInfoResponse",
]
