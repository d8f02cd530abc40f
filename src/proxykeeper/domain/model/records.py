"""Snapshots of entities as last observed on the proxy.

Every record is a point-in-time read: it may already be stale by the time it is
acted upon, so consumers must tolerate "already removed" when they act on it.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from .entity import EntityId, KeyToken


@dataclass(frozen=True, slots=True, kw_only=True)
class User:
    user_id: EntityId
    user_email: str | None = None
    user_alias: str | None = None
    user_role: str | None = None
    max_budget: float | None = None
    budget_duration: str | None = None
    models: tuple[str, ...] = ()
    # None means the proxy did not report a team list at all.
    teams: tuple[EntityId, ...] | None = None
    key_tokens: tuple[KeyToken, ...] = ()

    @property
    def has_memberships(self) -> bool:
        return bool(self.teams)


@dataclass(frozen=True, slots=True, kw_only=True)
class TeamMember:
    user_id: EntityId
    role: str | None = None
    user_email: str | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class Team:
    team_id: EntityId
    team_alias: str | None = None
    organization_id: str | None = None
    models: tuple[str, ...] = ()
    max_budget: float | None = None
    budget_duration: str | None = None
    tpm_limit: int | None = None
    rpm_limit: int | None = None
    blocked: bool = False
    members: tuple[TeamMember, ...] = ()
    metadata: dict[str, object] = field(default_factory=dict)

    @property
    def member_ids(self) -> frozenset[EntityId]:
        return frozenset(member.user_id for member in self.members)

    def has_member(self, user_id: EntityId) -> bool:
        return user_id in self.member_ids


@dataclass(frozen=True, slots=True, kw_only=True)
class ApiKey:
    token: KeyToken
    key_alias: str | None = None
    user_id: EntityId | None = None
    team_id: EntityId | None = None
    models: tuple[str, ...] = ()
    spend: float | None = None
    max_budget: float | None = None
    blocked: bool = False
    metadata: dict[str, object] = field(default_factory=dict)


@dataclass(frozen=True, slots=True, kw_only=True)
class ModelDeployment:
    model_id: EntityId
    model_name: str | None = None
    custom_llm_provider: str | None = None
    base_model: str | None = None
    tier: str | None = None
    mode: str | None = None
    tpm: int | None = None
    rpm: int | None = None
    api_base: str | None = None
    api_version: str | None = None
