"""Desired-state specs for writes against the proxy.

Specs only emit the fields that are set; the proxy treats absent fields as
"leave unchanged" on update and as its own defaults on create.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any

from .entity import EntityId, KeyToken
from .enums import ModelMode, TeamRole

type Payload = dict[str, Any]

_TOKENS_PER_MILLION = 1_000_000.0


def _compact(values: Payload) -> Payload:
    payload: Payload = {}
    for name, value in values.items():
        if value is None:
            continue
        if isinstance(value, (list, tuple, dict)) and not value:
            continue
        payload[name] = list(value) if isinstance(value, tuple) else value
    return payload


@dataclass(frozen=True, slots=True, kw_only=True)
class UserSpec:
    user_id: EntityId | None = None
    user_email: str | None = None
    user_alias: str | None = None
    key_alias: str | None = None
    user_role: str | None = None
    max_budget: float | None = None
    budget_duration: str | None = None
    models: tuple[str, ...] = ()
    tpm_limit: int | None = None
    rpm_limit: int | None = None
    auto_create_key: bool | None = None

    def with_id(self, user_id: EntityId) -> UserSpec:
        return replace(self, user_id=user_id)

    def to_payload(self) -> Payload:
        return _compact(
            {
                "user_id": self.user_id,
                "user_email": self.user_email,
                "user_alias": self.user_alias,
                "key_alias": self.key_alias,
                "user_role": self.user_role,
                "max_budget": self.max_budget,
                "budget_duration": self.budget_duration,
                "models": self.models,
                "tpm_limit": self.tpm_limit,
                "rpm_limit": self.rpm_limit,
                "auto_create_key": self.auto_create_key,
            }
        )


@dataclass(frozen=True, slots=True, kw_only=True)
class TeamSpec:
    team_id: EntityId | None = None
    team_alias: str | None = None
    organization_id: str | None = None
    models: tuple[str, ...] = ()
    max_budget: float | None = None
    budget_duration: str | None = None
    tpm_limit: int | None = None
    rpm_limit: int | None = None
    blocked: bool | None = None
    metadata: dict[str, object] = field(default_factory=dict)

    def with_id(self, team_id: EntityId) -> TeamSpec:
        return replace(self, team_id=team_id)

    def to_payload(self) -> Payload:
        return _compact(
            {
                "team_id": self.team_id,
                "team_alias": self.team_alias,
                "organization_id": self.organization_id,
                "models": self.models,
                "max_budget": self.max_budget,
                "budget_duration": self.budget_duration,
                "tpm_limit": self.tpm_limit,
                "rpm_limit": self.rpm_limit,
                "blocked": self.blocked,
                "metadata": self.metadata,
            }
        )


@dataclass(frozen=True, slots=True, kw_only=True)
class TeamMemberSpec:
    team_id: EntityId
    user_id: EntityId
    user_email: str
    role: TeamRole = TeamRole.USER
    max_budget_in_team: float | None = None
    # User-level settings mirrored onto the user record when requested.
    user_max_budget: float | None = None
    budget_duration: str = "1mo"

    @property
    def member_id(self) -> str:
        return f"{self.team_id}:{self.user_id}"

    def add_payload(self) -> Payload:
        return _compact(
            {
                "team_id": self.team_id,
                "member": [
                    {
                        "role": self.role.value,
                        "user_id": self.user_id,
                        "user_email": self.user_email,
                    }
                ],
                "max_budget_in_team": self.max_budget_in_team,
            }
        )

    def update_payload(self) -> Payload:
        return _compact(
            {
                "team_id": self.team_id,
                "user_id": self.user_id,
                "user_email": self.user_email,
                "role": self.role.value,
                "max_budget_in_team": self.max_budget_in_team,
            }
        )

    def user_spec(self) -> UserSpec:
        """User record matching this membership; budget falls back to the in-team budget."""
        budget = self.user_max_budget or self.max_budget_in_team
        return UserSpec(
            user_id=self.user_id,
            user_email=self.user_email,
            max_budget=budget,
            budget_duration=self.budget_duration,
            user_role=self.role.user_role,
        )


@dataclass(frozen=True, slots=True, kw_only=True)
class KeySpec:
    token: KeyToken | None = None
    key_alias: str | None = None
    user_id: EntityId | None = None
    team_id: EntityId | None = None
    service_account_id: str | None = None
    models: tuple[str, ...] = ()
    max_budget: float | None = None
    budget_duration: str | None = None
    duration: str | None = None
    tpm_limit: int | None = None
    rpm_limit: int | None = None
    max_parallel_requests: int | None = None
    blocked: bool | None = None
    tags: tuple[str, ...] = ()
    metadata: dict[str, object] = field(default_factory=dict)

    def to_payload(self) -> Payload:
        return _compact(
            {
                "key": self.token,
                "key_alias": self.key_alias,
                "user_id": self.user_id,
                "team_id": self.team_id,
                "models": self.models,
                "max_budget": self.max_budget,
                "budget_duration": self.budget_duration,
                "duration": self.duration,
                "tpm_limit": self.tpm_limit,
                "rpm_limit": self.rpm_limit,
                "max_parallel_requests": self.max_parallel_requests,
                "blocked": self.blocked,
                "tags": self.tags,
                "metadata": self.metadata,
            }
        )


@dataclass(frozen=True, slots=True, kw_only=True)
class ModelSpec:
    model_name: str
    custom_llm_provider: str
    base_model: str
    model_id: EntityId | None = None
    tier: str = "free"
    mode: ModelMode | None = None
    tpm: int | None = None
    rpm: int | None = None
    api_key: str | None = field(default=None, repr=False)
    api_base: str | None = None
    api_version: str | None = None
    input_cost_per_million_tokens: float = 0.0
    output_cost_per_million_tokens: float = 0.0
    aws_access_key_id: str | None = field(default=None, repr=False)
    aws_secret_access_key: str | None = field(default=None, repr=False)
    aws_region_name: str | None = None
    reasoning_effort: str | None = None
    thinking_budget_tokens: int | None = None

    def with_id(self, model_id: EntityId) -> ModelSpec:
        return replace(self, model_id=model_id)

    @property
    def litellm_model(self) -> str:
        return f"{self.custom_llm_provider}/{self.base_model}"

    def to_payload(self) -> Payload:
        thinking = (
            {"type": "enabled", "budget_tokens": self.thinking_budget_tokens}
            if self.thinking_budget_tokens is not None
            else None
        )
        litellm_params = _compact(
            {
                "custom_llm_provider": self.custom_llm_provider,
                "model": self.litellm_model,
                "tpm": self.tpm,
                "rpm": self.rpm,
                "api_key": self.api_key,
                "api_base": self.api_base,
                "api_version": self.api_version,
                "input_cost_per_token": self.input_cost_per_million_tokens / _TOKENS_PER_MILLION,
                "output_cost_per_token": self.output_cost_per_million_tokens
                / _TOKENS_PER_MILLION,
                "aws_access_key_id": self.aws_access_key_id,
                "aws_secret_access_key": self.aws_secret_access_key,
                "aws_region_name": self.aws_region_name,
                "reasoning_effort": self.reasoning_effort,
                "thinking": thinking,
            }
        )
        model_info = _compact(
            {
                "id": self.model_id,
                "db_model": True,
                "base_model": self.base_model,
                "tier": self.tier,
                "mode": self.mode.value if self.mode else None,
            }
        )
        return {
            "model_name": self.model_name,
            "litellm_params": litellm_params,
            "model_info": model_info,
        }
