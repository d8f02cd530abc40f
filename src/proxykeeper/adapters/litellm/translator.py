"""Translate LiteLLM payloads into domain records."""

from __future__ import annotations

from typing import TYPE_CHECKING

from proxykeeper.domain.model import ApiKey, ModelDeployment, Team, TeamMember, User

from .schema import (
    KeyInfoResponse,
    KeyPayload,
    ModelInfoResponse,
    ModelPayload,
    TeamInfoResponse,
    UserInfoResponse,
)

if TYPE_CHECKING:
    from proxykeeper.domain.model import EntityId


def parse_user(payload: object, *, user_id: EntityId) -> User:
    response = UserInfoResponse.model_validate(payload)
    return user_from_response(response, user_id=user_id)


def user_from_response(response: UserInfoResponse, *, user_id: EntityId) -> User:
    info = response.user_info
    teams = response.teams
    if teams is None and info is not None:
        teams = info.teams
    tokens = tuple(
        identifier for key in response.keys if (identifier := key.identifier) is not None
    )
    return User(
        user_id=response.user_id or (info.user_id if info else None) or user_id,
        user_email=response.user_email or (info.user_email if info else None),
        user_alias=info.user_alias if info else None,
        user_role=info.user_role if info else None,
        max_budget=info.max_budget if info else None,
        budget_duration=info.budget_duration if info else None,
        models=tuple(info.models) if info else (),
        teams=tuple(teams) if teams is not None else None,
        key_tokens=tokens,
    )


def parse_team(payload: object, *, team_id: EntityId) -> Team:
    merged = TeamInfoResponse.model_validate(payload).merged()
    seen: set[str] = set()
    members: list[TeamMember] = []
    for member in (*merged.members_with_roles, *merged.members):
        if not member.user_id or member.user_id in seen:
            continue
        seen.add(member.user_id)
        members.append(
            TeamMember(user_id=member.user_id, role=member.role, user_email=member.user_email)
        )
    return Team(
        team_id=merged.team_id or team_id,
        team_alias=merged.team_alias,
        organization_id=merged.organization_id,
        models=tuple(merged.models),
        max_budget=merged.max_budget,
        budget_duration=merged.budget_duration,
        tpm_limit=merged.tpm_limit,
        rpm_limit=merged.rpm_limit,
        blocked=bool(merged.blocked),
        members=tuple(members),
        metadata=dict(merged.metadata or {}),
    )


def parse_key(payload: object, *, token: str | None = None) -> ApiKey:
    response = KeyInfoResponse.model_validate(payload)
    details: KeyPayload = response.info or response
    identifier = response.key or details.identifier or token
    if identifier is None:
        raise ValueError("Key payload carries no key or token")
    return ApiKey(
        token=identifier,
        key_alias=details.key_alias or details.key_name,
        user_id=details.user_id,
        team_id=details.team_id,
        models=tuple(details.models),
        spend=details.spend,
        max_budget=details.max_budget,
        blocked=bool(details.blocked),
        metadata=dict(details.metadata or {}),
    )


def parse_model(payload: object, *, model_id: EntityId) -> ModelDeployment | None:
    """Return the deployment, or ``None`` when the payload does not contain it."""

    item = ModelInfoResponse.model_validate(payload).deployment(model_id)
    if item is None:
        return None
    return model_from_payload(item, model_id=model_id)


def model_from_payload(item: ModelPayload, *, model_id: EntityId) -> ModelDeployment:
    params = item.litellm_params
    info = item.model_info
    return ModelDeployment(
        model_id=info.id or model_id,
        model_name=item.model_name,
        custom_llm_provider=params.custom_llm_provider,
        base_model=info.base_model,
        tier=info.tier,
        mode=info.mode,
        tpm=params.tpm,
        rpm=params.rpm,
        api_base=params.api_base,
        api_version=params.api_version,
    )


__all__ = ["parse_key", "parse_model", "parse_team", "parse_user", "user_from_response"]
