"""Typed entity operations against the proxy's admin API."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

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


@runtime_checkable
class ProxyAdmin(Protocol):
    """Every operation raises a classified ``BackendError`` on failure."""

    def get_user(self, user_id: EntityId) -> User: ...

    def create_user(self, spec: UserSpec) -> None: ...

    def update_user(self, spec: UserSpec) -> None: ...

    def delete_user(self, user_id: EntityId) -> None: ...

    def get_team(self, team_id: EntityId) -> Team: ...

    def create_team(self, spec: TeamSpec) -> None: ...

    def update_team(self, spec: TeamSpec) -> None: ...

    def delete_team(self, team_id: EntityId) -> None: ...

    def add_team_member(self, spec: TeamMemberSpec) -> None: ...

    def update_team_member(self, spec: TeamMemberSpec) -> None: ...

    def remove_team_member(
        self, team_id: EntityId, user_id: EntityId, *, user_email: str | None = None
    ) -> None: ...

    def generate_key(self, spec: KeySpec) -> ApiKey: ...

    def get_key(self, token: KeyToken) -> ApiKey: ...

    def update_key(self, spec: KeySpec) -> ApiKey: ...

    def delete_key(self, token: KeyToken) -> None: ...

    def create_model(self, spec: ModelSpec) -> None: ...

    def update_model(self, spec: ModelSpec) -> None: ...

    def get_model(self, model_id: EntityId) -> ModelDeployment: ...

    def delete_model(self, model_id: EntityId) -> None: ...


__all__ = ["ProxyAdmin"]
