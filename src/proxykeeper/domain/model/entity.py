"""Entity references and locally generated identifiers."""

from __future__ import annotations

from dataclasses import dataclass
from uuid import uuid4

from .enums import EntityKind

type EntityId = str
type KeyToken = str

# Kinds whose identifier is chosen on our side before the first remote call.
LOCALLY_NAMED_KINDS: frozenset[EntityKind] = frozenset(
    {EntityKind.USER, EntityKind.TEAM, EntityKind.MODEL}
)


def new_entity_id() -> EntityId:
    return str(uuid4())


@dataclass(frozen=True, slots=True)
class EntityRef:
    """Opaque identifier plus kind; the sole join key across reconciliation steps."""

    kind: EntityKind
    id: EntityId

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError(f"{self.kind} reference requires a non-empty id")

    def __str__(self) -> str:
        return f"{self.kind}:{self.id}"

    @classmethod
    def user(cls, user_id: EntityId) -> EntityRef:
        return cls(EntityKind.USER, user_id)

    @classmethod
    def team(cls, team_id: EntityId) -> EntityRef:
        return cls(EntityKind.TEAM, team_id)

    @classmethod
    def key(cls, token: KeyToken) -> EntityRef:
        return cls(EntityKind.KEY, token)

    @classmethod
    def model(cls, model_id: EntityId) -> EntityRef:
        return cls(EntityKind.MODEL, model_id)
