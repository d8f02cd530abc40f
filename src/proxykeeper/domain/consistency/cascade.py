"""Cascading cleanup after a team membership is removed.

The proxy does not cascade deletes: removing a user from a team leaves the
user's keys, other memberships and possibly the user itself behind. The
steps here perform that cleanup in a fixed order (keys, other teams, orphan
check). Each step reports an explicit ``CleanupOutcome``; a failed step never
stops the steps after it, and the membership removal that triggered the
cascade is never rolled back.

Relationships are read from a snapshot of the user record that may already be
stale, so every step treats "already gone" as done. There is no locking: two
cascades touching the same user at the same time may race.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING

from proxykeeper.domain.errors import (
    BackendError,
    CascadeCleanupError,
    EntityNotFoundError,
    RequestRejectedError,
)

if TYPE_CHECKING:
    from proxykeeper.domain.model import EntityId, User
    from proxykeeper.domain.ports import ProxyAdmin

log = getLogger(__name__)


class CleanupStatus(StrEnum):
    SKIPPED = "skipped"
    SUCCEEDED = "succeeded"
    FAILED_NON_FATAL = "failed_non_fatal"


class CleanupStep(StrEnum):
    KEYS = "keys"
    TEAMS = "teams"
    ORPHAN = "orphan"


@dataclass(frozen=True, slots=True)
class CleanupOutcome:
    step: CleanupStep
    status: CleanupStatus
    message: str
    # Per-target failures, e.g. one entry per key token that could not be deleted.
    failures: tuple[str, ...] = ()

    @property
    def failed(self) -> bool:
        return self.status is CleanupStatus.FAILED_NON_FATAL


@dataclass(frozen=True, slots=True, kw_only=True)
class CascadeOptions:
    delete_keys: bool = False
    remove_from_other_teams: bool = False
    delete_orphan: bool = False
    escalate_failures: bool = False

    @property
    def any_requested(self) -> bool:
        return self.delete_keys or self.remove_from_other_teams or self.delete_orphan


@dataclass(slots=True)
class CascadeReport:
    user_id: EntityId
    outcomes: list[CleanupOutcome] = field(default_factory=list["CleanupOutcome"])

    @property
    def failed(self) -> tuple[CleanupOutcome, ...]:
        return tuple(outcome for outcome in self.outcomes if outcome.failed)

    @property
    def ok(self) -> bool:
        return not self.failed

    def outcome(self, step: CleanupStep) -> CleanupOutcome | None:
        for outcome in self.outcomes:
            if outcome.step is step:
                return outcome
        return None


@dataclass(slots=True)
class CascadingCleanup:
    """Sequences best-effort cleanup of everything hanging off one user."""

    admin: ProxyAdmin

    def cleanup_user_keys(self, user_id: EntityId) -> CleanupOutcome:
        """Delete every key the user record lists."""

        user = self._read_user(user_id, CleanupStep.KEYS)
        if isinstance(user, CleanupOutcome):
            return user
        tokens = user.key_tokens
        if not tokens:
            return self._outcome(
                CleanupStep.KEYS, CleanupStatus.SKIPPED, f"No keys to clean up for user {user_id}"
            )

        log.debug("Deleting %d keys for user %s", len(tokens), user_id)
        failures: list[str] = []
        for token in tokens:
            try:
                self.admin.delete_key(token)
            except EntityNotFoundError:
                log.debug("Key %s for user %s was already deleted", _mask(token), user_id)
            except BackendError as exc:
                log.warning("Failed to delete key %s for user %s: %s", _mask(token), user_id, exc)
                failures.append(f"{_mask(token)}: {exc}")

        if failures:
            return self._outcome(
                CleanupStep.KEYS,
                CleanupStatus.FAILED_NON_FATAL,
                f"Deleted {len(tokens) - len(failures)} of {len(tokens)} keys for user {user_id}",
                failures,
            )
        return self._outcome(
            CleanupStep.KEYS,
            CleanupStatus.SUCCEEDED,
            f"Deleted {len(tokens)} keys for user {user_id}",
        )

    def cleanup_user_teams(
        self, user_id: EntityId, exclude_team_id: EntityId | None = None
    ) -> CleanupOutcome:
        """Remove the user from every team except ``exclude_team_id``."""

        user = self._read_user(user_id, CleanupStep.TEAMS)
        if isinstance(user, CleanupOutcome):
            return user
        teams = [team_id for team_id in user.teams or () if team_id != exclude_team_id]
        if not teams:
            return self._outcome(
                CleanupStep.TEAMS,
                CleanupStatus.SKIPPED,
                f"No other team memberships for user {user_id}",
            )

        failures: list[str] = []
        for team_id in teams:
            log.debug("Removing user %s from team %s", user_id, team_id)
            try:
                self.admin.remove_team_member(team_id, user_id, user_email=user.user_email)
            except EntityNotFoundError:
                log.debug("User %s was already removed from team %s", user_id, team_id)
            except BackendError as exc:
                log.warning("Failed to remove user %s from team %s: %s", user_id, team_id, exc)
                failures.append(f"{team_id}: {exc}")

        if failures:
            return self._outcome(
                CleanupStep.TEAMS,
                CleanupStatus.FAILED_NON_FATAL,
                f"Removed user {user_id} from {len(teams) - len(failures)} of {len(teams)} teams",
                failures,
            )
        return self._outcome(
            CleanupStep.TEAMS,
            CleanupStatus.SUCCEEDED,
            f"Removed user {user_id} from {len(teams)} teams",
        )

    def cleanup_orphaned_user(self, user_id: EntityId) -> CleanupOutcome:
        """Delete the user when it no longer belongs to any team."""

        try:
            user = self.admin.get_user(user_id)
        except EntityNotFoundError:
            return self._outcome(
                CleanupStep.ORPHAN,
                CleanupStatus.SUCCEEDED,
                f"User {user_id} already deleted",
            )
        except BackendError as exc:
            return self._outcome(
                CleanupStep.ORPHAN,
                CleanupStatus.FAILED_NON_FATAL,
                f"Could not read user {user_id} for orphan check",
                (str(exc),),
            )

        if user.has_memberships:
            return self._outcome(
                CleanupStep.ORPHAN,
                CleanupStatus.SKIPPED,
                f"User {user_id} still has team memberships, not deleting",
            )

        try:
            self.admin.delete_user(user_id)
        except EntityNotFoundError:
            return self._outcome(
                CleanupStep.ORPHAN,
                CleanupStatus.SUCCEEDED,
                f"User {user_id} already deleted",
            )
        except BackendError as exc:
            return self._outcome(
                CleanupStep.ORPHAN,
                CleanupStatus.FAILED_NON_FATAL,
                f"Failed to delete orphaned user {user_id}",
                (str(exc),),
            )
        return self._outcome(
            CleanupStep.ORPHAN,
            CleanupStatus.SUCCEEDED,
            f"Deleted orphaned user {user_id}",
        )

    def run(
        self,
        user_id: EntityId,
        *,
        current_team_id: EntityId | None,
        options: CascadeOptions,
    ) -> CascadeReport:
        """Run the requested steps in order: keys, other teams, orphan check."""

        report = CascadeReport(user_id=user_id)
        if options.delete_keys:
            report.outcomes.append(self.cleanup_user_keys(user_id))
        if options.remove_from_other_teams:
            report.outcomes.append(self.cleanup_user_teams(user_id, current_team_id))
        if options.delete_orphan:
            report.outcomes.append(self.cleanup_orphaned_user(user_id))

        if report.outcomes:
            log.info(
                "Cascading cleanup for user %s finished: %s",
                user_id,
                ", ".join(f"{outcome.step}={outcome.status}" for outcome in report.outcomes),
            )
        if options.escalate_failures and not report.ok:
            raise CascadeCleanupError(report)
        return report

    def full_user_cleanup(
        self,
        user_id: EntityId,
        current_team_id: EntityId | None = None,
        *,
        delete_orphaned_user: bool = False,
    ) -> CascadeReport:
        return self.run(
            user_id,
            current_team_id=current_team_id,
            options=CascadeOptions(
                delete_keys=True,
                remove_from_other_teams=True,
                delete_orphan=delete_orphaned_user,
            ),
        )

    def remove_relationship_cascading(
        self,
        team_id: EntityId,
        user_id: EntityId,
        *,
        user_email: str | None = None,
        options: CascadeOptions | None = None,
    ) -> CascadeReport:
        """Remove ``user_id`` from ``team_id``, then clean up what hangs off the user.

        Only a failure of the membership removal itself propagates. A membership
        that is already gone counts as removed.
        """

        effective = options or CascadeOptions()
        self._remove_membership(team_id, user_id, user_email=user_email)
        log.info("Removed user %s from team %s", user_id, team_id)
        if not effective.any_requested:
            return CascadeReport(user_id=user_id)
        return self.run(user_id, current_team_id=team_id, options=effective)

    def _remove_membership(
        self, team_id: EntityId, user_id: EntityId, *, user_email: str | None
    ) -> None:
        try:
            self.admin.remove_team_member(team_id, user_id, user_email=user_email)
        except EntityNotFoundError:
            log.debug("Membership %s:%s already absent", team_id, user_id)
        except RequestRejectedError:
            if not self._membership_absent(team_id, user_id):
                raise
            log.debug("Membership %s:%s already absent", team_id, user_id)

    def _membership_absent(self, team_id: EntityId, user_id: EntityId) -> bool:
        try:
            team = self.admin.get_team(team_id)
        except EntityNotFoundError:
            return True
        except BackendError as exc:
            log.debug("Could not re-read team %s after rejected removal: %s", team_id, exc)
            return False
        return not team.has_member(user_id)

    def _read_user(self, user_id: EntityId, step: CleanupStep) -> User | CleanupOutcome:
        try:
            return self.admin.get_user(user_id)
        except BackendError as exc:
            # Secondary state we cannot look up is treated as nothing to clean.
            return self._outcome(
                step,
                CleanupStatus.SKIPPED,
                f"Could not read user {user_id}, nothing to clean: {exc}",
            )

    @staticmethod
    def _outcome(
        step: CleanupStep,
        status: CleanupStatus,
        message: str,
        failures: list[str] | tuple[str, ...] = (),
    ) -> CleanupOutcome:
        outcome = CleanupOutcome(
            step=step, status=status, message=message, failures=tuple(failures)
        )
        if outcome.failed:
            log.warning("%s cleanup: %s", step, message)
        else:
            log.debug("%s cleanup: %s", step, message)
        return outcome


def _mask(token: str) -> str:
    if len(token) <= 8:
        return "****"
    return f"{token[:5]}...{token[-4:]}"


__all__ = [
    "CascadeOptions",
    "CascadeReport",
    "CascadingCleanup",
    "CleanupOutcome",
    "CleanupStatus",
    "CleanupStep",
]
