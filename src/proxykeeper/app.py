"""Application entry points for managing proxy entities.

These functions are what a declarative layer calls: each one either returns an
entity that is already observable on the proxy, or raises a classified
``BackendError`` saying whether the entity was not found, the request was
rejected, or the proxy could not be reached.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, replace
from functools import singledispatch
from logging import getLogger
from typing import TYPE_CHECKING

from proxykeeper.adapters.litellm import HttpGateway, LiteLLMAdminClient
from proxykeeper.config import get_litellm_config, get_reconcile_policy
from proxykeeper.domain.consistency import CascadeOptions, CascadingCleanup, reconcile, upsert
from proxykeeper.domain.errors import BackendError, EntityNotFoundError
from proxykeeper.domain.model import (
    LOCALLY_NAMED_KINDS,
    ApiKey,
    EntityKind,
    EntityRef,
    KeySpec,
    ModelDeployment,
    ModelSpec,
    Team,
    TeamMember,
    TeamSpec,
    User,
    UserSpec,
    new_entity_id,
)
from proxykeeper.domain.ports import ProxyAdmin

if TYPE_CHECKING:
    from collections.abc import Callable

    from proxykeeper.config import LiteLLMConfig, ReconcilePolicy
    from proxykeeper.domain.consistency import CascadeReport
    from proxykeeper.domain.consistency.reconcile import Sleep
    from proxykeeper.domain.model import EntityId, TeamMemberSpec

type EntityRecord = User | Team | ApiKey | ModelDeployment
type EntitySpec = UserSpec | TeamSpec | KeySpec | ModelSpec

log = getLogger(__name__)


def build_admin_client(config: LiteLLMConfig | None = None) -> LiteLLMAdminClient:
    """Wire the configured HTTP gateway into an admin client."""

    effective = config or get_litellm_config()
    return LiteLLMAdminClient(gateway=HttpGateway(config=effective))


# Reads and deletes


def fetch_entity(ref: EntityRef, *, admin: ProxyAdmin) -> EntityRecord:
    """Read ``ref``; raises ``EntityNotFoundError`` when it is not visible."""

    match ref.kind:
        case EntityKind.USER:
            return admin.get_user(ref.id)
        case EntityKind.TEAM:
            return admin.get_team(ref.id)
        case EntityKind.KEY:
            return admin.get_key(ref.id)
        case EntityKind.MODEL:
            return admin.get_model(ref.id)


def read_entity(ref: EntityRef, *, admin: ProxyAdmin) -> EntityRecord | None:
    """Read ``ref`` outside any reconciliation window.

    ``None`` means the entity is gone and the caller should drop its local record.
    """

    try:
        return fetch_entity(ref, admin=admin)
    except EntityNotFoundError:
        log.warning("%s not found, removing from local state", ref)
        return None


def delete_entity(ref: EntityRef, *, admin: ProxyAdmin) -> None:
    """Delete ``ref``; an entity that is already gone counts as deleted."""

    try:
        match ref.kind:
            case EntityKind.USER:
                admin.delete_user(ref.id)
            case EntityKind.TEAM:
                admin.delete_team(ref.id)
            case EntityKind.KEY:
                admin.delete_key(ref.id)
            case EntityKind.MODEL:
                admin.delete_model(ref.id)
    except EntityNotFoundError:
        log.info("%s already deleted", ref)


# Creates


@singledispatch
def _create(spec: object, admin: ProxyAdmin) -> EntityRef:
    raise TypeError(f"Unsupported entity spec: {type(spec).__name__}")


@_create.register
def _(spec: UserSpec, admin: ProxyAdmin) -> EntityRef:
    user_id = spec.user_id or new_entity_id()
    admin.create_user(spec.with_id(user_id))
    return EntityRef.user(user_id)


@_create.register
def _(spec: TeamSpec, admin: ProxyAdmin) -> EntityRef:
    team_id = spec.team_id or new_entity_id()
    admin.create_team(spec.with_id(team_id))
    return EntityRef.team(team_id)


@_create.register
def _(spec: ModelSpec, admin: ProxyAdmin) -> EntityRef:
    model_id = spec.model_id or new_entity_id()
    admin.create_model(spec.with_id(model_id))
    return EntityRef.model(model_id)


@_create.register
def _(spec: KeySpec, admin: ProxyAdmin) -> EntityRef:
    # Keys are the one kind the proxy names itself.
    key = admin.generate_key(spec)
    return EntityRef.key(key.token)


def verify_visible(
    ref: EntityRef,
    *,
    admin: ProxyAdmin,
    policy: ReconcilePolicy | None = None,
    sleep: Sleep = time.sleep,
    deadline: float | None = None,
) -> EntityRecord:
    """Read ``ref`` back until the proxy shows it.

    Without an explicit ``policy`` the ``PROXYKEEPER_RECONCILE_*`` settings apply.
    """

    return reconcile(
        lambda: fetch_entity(ref, admin=admin),
        policy=policy or get_reconcile_policy(),
        sleep=sleep,
        deadline=deadline,
        description=str(ref),
    )


def create_and_verify(
    spec: EntitySpec,
    *,
    admin: ProxyAdmin,
    policy: ReconcilePolicy | None = None,
    sleep: Sleep = time.sleep,
    deadline: float | None = None,
) -> EntityRecord:
    """Create the entity, then wait until a read returns it.

    Users, teams and models get a locally generated id when ``spec`` carries none;
    the same id is used for the create and for every read-back.
    """

    ref = _create(spec, admin)
    log.info("Created %s, confirming it is visible", ref)
    return verify_visible(ref, admin=admin, policy=policy, sleep=sleep, deadline=deadline)


# Updates


@singledispatch
def _update(spec: object, admin: ProxyAdmin) -> None:
    raise TypeError(f"Unsupported entity spec: {type(spec).__name__}")


@_update.register
def _(spec: UserSpec, admin: ProxyAdmin) -> None:
    admin.update_user(spec)


@_update.register
def _(spec: TeamSpec, admin: ProxyAdmin) -> None:
    admin.update_team(spec)


@_update.register
def _(spec: ModelSpec, admin: ProxyAdmin) -> None:
    admin.update_model(spec)


@_update.register
def _(spec: KeySpec, admin: ProxyAdmin) -> None:
    admin.update_key(spec)


def _bind_id(spec: EntitySpec, ref: EntityRef) -> EntitySpec:
    match spec:
        case KeySpec():
            if spec.token is not None and spec.token != ref.id:
                raise ValueError(f"Spec token does not match {ref}")
            return replace(spec, token=ref.id)
        case _:
            current = _spec_id(spec)
            if current is not None and current != ref.id:
                raise ValueError(f"Spec id {current} does not match {ref}")
            return spec.with_id(ref.id)


def _spec_id(spec: UserSpec | TeamSpec | ModelSpec) -> EntityId | None:
    match spec:
        case UserSpec():
            return spec.user_id
        case TeamSpec():
            return spec.team_id
        case ModelSpec():
            return spec.model_id


def upsert_entity(
    ref: EntityRef,
    update_spec: EntitySpec,
    create_spec: EntitySpec | None = None,
    *,
    admin: ProxyAdmin,
    policy: ReconcilePolicy | None = None,
    sleep: Sleep = time.sleep,
    deadline: float | None = None,
) -> EntityRecord:
    """Update ``ref``, recreating it under the same id if the proxy lost it.

    Keys are named by the proxy, so a recreated key comes back with a new token.
    """

    to_update = _bind_id(update_spec, ref)
    to_create = create_spec if create_spec is not None else update_spec
    if ref.kind in LOCALLY_NAMED_KINDS:
        to_create = _bind_id(to_create, ref)
    elif isinstance(to_create, KeySpec):
        to_create = replace(to_create, token=None)

    def update() -> EntityRecord | None:
        _update(to_update, admin)
        return None

    def create() -> EntityRecord:
        return create_and_verify(
            to_create, admin=admin, policy=policy, sleep=sleep, deadline=deadline
        )

    recreated = upsert(update, create, description=str(ref))
    if recreated is not None:
        return recreated
    # Only the update itself decides about recreation; a lagging read is waited out.
    return verify_visible(ref, admin=admin, policy=policy, sleep=sleep, deadline=deadline)


# Team membership


@dataclass(frozen=True, slots=True)
class MembershipResult:
    member: TeamMember
    # Set when the user record was requested but could not be synchronised.
    user_record_error: str | None = None

    @property
    def user_record_synced(self) -> bool:
        return self.user_record_error is None


def read_team_member(
    team_id: EntityId, user_id: EntityId, *, admin: ProxyAdmin
) -> TeamMember | None:
    """Membership as currently listed by the team, ``None`` when absent."""

    try:
        return _find_member(team_id, user_id, admin=admin)
    except EntityNotFoundError:
        log.info("User %s is no longer a member of team %s", user_id, team_id)
        return None


def _find_member(team_id: EntityId, user_id: EntityId, *, admin: ProxyAdmin) -> TeamMember:
    team = admin.get_team(team_id)
    for member in team.members:
        if member.user_id == user_id:
            return member
    raise EntityNotFoundError(
        f"reading member {user_id} of team {team_id}", detail="user not listed in team"
    )


def _sync_user_record(spec: TeamMemberSpec, *, admin: ProxyAdmin) -> str | None:
    user_spec = spec.user_spec()
    try:
        upsert(
            lambda: admin.update_user(user_spec),
            lambda: admin.create_user(user_spec),
            description=str(EntityRef.user(spec.user_id)),
        )
    except BackendError as exc:
        # The membership itself succeeded; a stale user record is reported, not raised.
        log.warning("Failed to synchronise user record for %s: %s", spec.user_id, exc)
        return str(exc)
    log.info("Synchronised user record for %s", spec.user_id)
    return None


def _confirm_member(
    spec: TeamMemberSpec,
    *,
    admin: ProxyAdmin,
    policy: ReconcilePolicy | None,
    sleep: Sleep,
    deadline: float | None,
) -> TeamMember:
    return reconcile(
        lambda: _find_member(spec.team_id, spec.user_id, admin=admin),
        policy=policy or get_reconcile_policy(),
        sleep=sleep,
        deadline=deadline,
        description=f"team member {spec.member_id}",
    )


def add_team_member(
    spec: TeamMemberSpec,
    *,
    admin: ProxyAdmin,
    update_user_record: bool = False,
    policy: ReconcilePolicy | None = None,
    sleep: Sleep = time.sleep,
    deadline: float | None = None,
) -> MembershipResult:
    """Add the member, optionally mirror it onto the user record, and wait for it."""

    admin.add_team_member(spec)
    error = _sync_user_record(spec, admin=admin) if update_user_record else None
    member = _confirm_member(spec, admin=admin, policy=policy, sleep=sleep, deadline=deadline)
    return MembershipResult(member=member, user_record_error=error)


def update_team_member(
    spec: TeamMemberSpec,
    *,
    admin: ProxyAdmin,
    update_user_record: bool = False,
    policy: ReconcilePolicy | None = None,
    sleep: Sleep = time.sleep,
    deadline: float | None = None,
) -> MembershipResult:
    admin.update_team_member(spec)
    error = _sync_user_record(spec, admin=admin) if update_user_record else None
    log.info("Successfully updated team member with ID: %s", spec.member_id)
    member = _confirm_member(spec, admin=admin, policy=policy, sleep=sleep, deadline=deadline)
    return MembershipResult(member=member, user_record_error=error)


def remove_team_member(
    team_id: EntityId,
    user_id: EntityId,
    *,
    admin: ProxyAdmin,
    user_email: str | None = None,
    options: CascadeOptions | None = None,
    cleanup_factory: Callable[[ProxyAdmin], CascadingCleanup] = CascadingCleanup,
) -> CascadeReport:
    """Remove the membership and run the requested cascading cleanup.

    Only a failure of the removal itself is raised; cleanup failures are in the report.
    """

    cleanup = cleanup_factory(admin)
    return cleanup.remove_relationship_cascading(
        team_id, user_id, user_email=user_email, options=options
    )
