"""Public domain model surface."""

from __future__ import annotations

from .entity import LOCALLY_NAMED_KINDS, EntityId, EntityRef, KeyToken, new_entity_id
from .enums import EntityKind, ModelMode, TeamRole
from .records import ApiKey, ModelDeployment, Team, TeamMember, User
from .specs import KeySpec, ModelSpec, Payload, TeamMemberSpec, TeamSpec, UserSpec

__all__ = [
    "LOCALLY_NAMED_KINDS",
    "ApiKey",
    "EntityId",
    "EntityKind",
    "EntityRef",
    "KeySpec",
    "KeyToken",
    "ModelDeployment",
    "ModelMode",
    "ModelSpec",
    "Payload",
    "Team",
    "TeamMember",
    "TeamMemberSpec",
    "TeamRole",
    "TeamSpec",
    "User",
    "UserSpec",
    "new_entity_id",
]
