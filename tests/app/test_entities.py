from __future__ import annotations

import pytest

from proxykeeper.adapters.litellm import LiteLLMAdminClient
from proxykeeper.app import (
    add_team_member,
    build_admin_client,
    create_and_verify,
    delete_entity,
    read_entity,
    read_team_member,
    remove_team_member,
    update_team_member,
    upsert_entity,
)
from proxykeeper.config import LiteLLMConfig, ReconcilePolicy, ResilienceConfig
from proxykeeper.domain.consistency import CascadeOptions, CleanupStatus, CleanupStep
from proxykeeper.domain.errors import EntityNotFoundError, RequestRejectedError, TransportError
from proxykeeper.domain.model import (
    ApiKey,
    EntityRef,
    KeySpec,
    ModelDeployment,
    ModelSpec,
    Team,
    TeamMemberSpec,
    TeamRole,
    TeamSpec,
    User,
    UserSpec,
)
from proxykeeper.domain.ports import ProxyAdmin
from tests.support.admin import FakeAdmin, RecordingSleep, rejected, transport_error

FAST = ReconcilePolicy(max_attempts=3, initial_delay=0.1, max_delay=0.2)


def _model_spec(model_id: str | None = None) -> ModelSpec:
    return ModelSpec(
        model_name="gpt-4o",
        custom_llm_provider="openai",
        base_model="gpt-4o",
        model_id=model_id,
    )


def test_create_user_generates_id_and_waits_for_visibility() -> None:
    admin = FakeAdmin(write_lag=2)
    sleep = RecordingSleep()

    record = create_and_verify(UserSpec(user_email="new@example.com"), admin=admin, sleep=sleep)

    assert isinstance(record, User)
    created = admin.calls_to("create_user")
    assert len(created) == 1
    assert record.user_id == created[0][1]
    # Every read-back targets the id the create used.
    assert {call[1] for call in admin.calls_to("get_user")} == {record.user_id}
    assert len(admin.calls_to("get_user")) == 3
    assert sleep.delays == [1.0, 2.0]


def test_create_keeps_caller_supplied_id() -> None:
    admin = FakeAdmin()

    record = create_and_verify(TeamSpec(team_id="team-1", team_alias="one"), admin=admin)

    assert isinstance(record, Team)
    assert record.team_id == "team-1"


def test_create_that_never_becomes_visible_raises_not_found() -> None:
    admin = FakeAdmin()
    admin.delay_visibility("m-1", 10)
    sleep = RecordingSleep()

    with pytest.raises(EntityNotFoundError):
        create_and_verify(_model_spec("m-1"), admin=admin, policy=FAST, sleep=sleep)

    assert len(admin.calls_to("get_model")) == 3
    assert sleep.delays == [0.1, 0.2]


def test_create_uses_environment_reconcile_policy(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PROXYKEEPER_RECONCILE_ATTEMPTS", "2")
    monkeypatch.setenv("PROXYKEEPER_RECONCILE_INITIAL_DELAY", "0.5")
    admin = FakeAdmin()
    admin.delay_visibility("m-1", 10)
    sleep = RecordingSleep()

    with pytest.raises(EntityNotFoundError):
        create_and_verify(_model_spec("m-1"), admin=admin, sleep=sleep)

    assert len(admin.calls_to("get_model")) == 2
    assert sleep.delays == [0.5]


def test_create_rejection_is_not_retried() -> None:
    admin = FakeAdmin()
    admin.fail("create_model", "m-1", rejected("creating model m-1"))

    with pytest.raises(RequestRejectedError):
        create_and_verify(_model_spec("m-1"), admin=admin, policy=FAST, sleep=RecordingSleep())

    assert admin.calls_to("get_model") == []


def test_key_create_reads_back_the_generated_token() -> None:
    admin = FakeAdmin()

    record = create_and_verify(KeySpec(key_alias="ci"), admin=admin)

    assert isinstance(record, ApiKey)
    assert record.token == "sk-generated-1"
    assert admin.calls_to("get_key") == [("get_key", "sk-generated-1")]


def test_read_entity_returns_none_when_gone() -> None:
    admin = FakeAdmin()
    admin.add_user("u-1")

    assert read_entity(EntityRef.user("u-1"), admin=admin) == admin.users["u-1"]
    assert read_entity(EntityRef.team("team-missing"), admin=admin) is None


def test_read_entity_propagates_transport_errors() -> None:
    admin = FakeAdmin(user_reads_fail=True)

    with pytest.raises(TransportError):
        read_entity(EntityRef.user("u-1"), admin=admin)


def test_delete_of_missing_entity_succeeds() -> None:
    admin = FakeAdmin()
    admin.add_user("u-1")

    delete_entity(EntityRef.user("u-1"), admin=admin)
    delete_entity(EntityRef.user("u-1"), admin=admin)
    delete_entity(EntityRef.key("sk-missing"), admin=admin)

    assert admin.users == {}


def test_upsert_updates_existing_entity() -> None:
    admin = FakeAdmin()
    admin.create_model(_model_spec("m-1"))

    record = upsert_entity(
        EntityRef.model("m-1"),
        ModelSpec(model_name="renamed", custom_llm_provider="openai", base_model="gpt-4o"),
        admin=admin,
    )

    assert isinstance(record, ModelDeployment)
    assert record.model_name == "renamed"
    assert admin.calls_to("create_model") == [("create_model", "m-1")]


def test_upsert_recreates_vanished_model_under_same_id() -> None:
    admin = FakeAdmin()
    sleep = RecordingSleep()

    record = upsert_entity(EntityRef.model("m-1"), _model_spec(), admin=admin, sleep=sleep)

    assert isinstance(record, ModelDeployment)
    assert record.model_id == "m-1"
    assert admin.calls_to("update_model") == [("update_model", "m-1")]
    assert admin.calls_to("create_model") == [("create_model", "m-1")]


def test_upsert_waits_for_lagging_read_instead_of_recreating() -> None:
    admin = FakeAdmin()
    admin.add_user("u-1", email="u1@example.com")
    admin.delay_visibility("u-1", 1)
    sleep = RecordingSleep()

    record = upsert_entity(
        EntityRef.user("u-1"), UserSpec(max_budget=5.0), admin=admin, sleep=sleep
    )

    assert isinstance(record, User)
    assert record.max_budget == 5.0
    assert record.user_email == "u1@example.com"
    assert admin.calls_to("create_user") == []
    assert len(admin.calls_to("get_user")) == 2
    assert sleep.delays == [1.0]


def test_upsert_does_not_recreate_on_other_failures() -> None:
    admin = FakeAdmin()
    admin.add_user("u-1")
    admin.fail("update_user", "u-1", transport_error("updating user u-1"))

    with pytest.raises(TransportError):
        upsert_entity(EntityRef.user("u-1"), UserSpec(max_budget=5.0), admin=admin)

    assert admin.calls_to("create_user") == []


def test_upsert_rejects_mismatched_ids() -> None:
    with pytest.raises(ValueError, match="does not match"):
        upsert_entity(EntityRef.user("u-1"), UserSpec(user_id="u-2"), admin=FakeAdmin())


def test_upsert_recreated_key_gets_new_token() -> None:
    admin = FakeAdmin()

    record = upsert_entity(EntityRef.key("sk-lost"), KeySpec(key_alias="ci"), admin=admin)

    assert isinstance(record, ApiKey)
    assert record.token == "sk-generated-1"
    assert admin.calls_to("update_key") == [("update_key", "sk-lost")]


def test_add_team_member_waits_for_membership() -> None:
    admin = FakeAdmin()
    admin.create_team(TeamSpec(team_id="team-1"))
    admin.delay_visibility("team-1", 1)
    sleep = RecordingSleep()
    spec = TeamMemberSpec(team_id="team-1", user_id="u-1", user_email="u1@example.com")

    result = add_team_member(spec, admin=admin, sleep=sleep)

    assert result.member.user_id == "u-1"
    assert result.user_record_synced
    assert sleep.delays == [1.0]
    assert admin.calls_to("update_user") == []


def test_add_team_member_creates_missing_user_record() -> None:
    admin = FakeAdmin()
    admin.create_team(TeamSpec(team_id="team-1"))
    spec = TeamMemberSpec(
        team_id="team-1", user_id="u-1", user_email="u1@example.com", max_budget_in_team=7.0
    )

    result = add_team_member(spec, admin=admin, update_user_record=True)

    assert result.user_record_synced
    assert admin.users["u-1"].max_budget == 7.0
    assert admin.users["u-1"].user_role == TeamRole.INTERNAL_USER.value


def test_user_record_failure_is_reported_without_failing_membership() -> None:
    admin = FakeAdmin()
    admin.create_team(TeamSpec(team_id="team-1"))
    admin.fail("update_user", "u-1", rejected("updating user u-1"))
    spec = TeamMemberSpec(team_id="team-1", user_id="u-1", user_email="u1@example.com")

    result = add_team_member(spec, admin=admin, update_user_record=True)

    assert not result.user_record_synced
    assert result.user_record_error is not None
    assert admin.teams["team-1"].has_member("u-1")


def test_update_team_member_returns_listed_member() -> None:
    admin = FakeAdmin()
    admin.add_user("u-1", teams=("team-1",))
    spec = TeamMemberSpec(
        team_id="team-1", user_id="u-1", user_email="u1@example.com", role=TeamRole.ADMIN
    )

    result = update_team_member(spec, admin=admin)

    assert result.member.role == "admin"


def test_update_team_member_waits_for_lagging_team_read() -> None:
    admin = FakeAdmin()
    admin.add_user("u-1", teams=("team-1",))
    admin.delay_visibility("team-1", 1)
    sleep = RecordingSleep()
    spec = TeamMemberSpec(
        team_id="team-1", user_id="u-1", user_email="u1@example.com", role=TeamRole.ADMIN
    )

    result = update_team_member(spec, admin=admin, sleep=sleep)

    assert result.member.role == "admin"
    assert len(admin.calls_to("get_team")) == 2
    assert sleep.delays == [1.0]


def test_read_team_member_returns_none_when_not_listed() -> None:
    admin = FakeAdmin()
    admin.add_user("u-1", teams=("team-1",))

    assert read_team_member("team-1", "u-1", admin=admin) is not None
    assert read_team_member("team-1", "u-2", admin=admin) is None
    assert read_team_member("team-2", "u-1", admin=admin) is None


def test_remove_team_member_runs_requested_cleanup() -> None:
    admin = FakeAdmin()
    admin.add_user("u-1", teams=("team-1", "team-2"), keys=("sk-a",))
    options = CascadeOptions(delete_keys=True, remove_from_other_teams=True, delete_orphan=True)

    report = remove_team_member("team-1", "u-1", admin=admin, options=options)

    assert report.ok
    keys = report.outcome(CleanupStep.KEYS)
    assert keys is not None and keys.status is CleanupStatus.SUCCEEDED
    assert admin.users == {}


def test_remove_team_member_without_options_only_removes_membership() -> None:
    admin = FakeAdmin()
    admin.add_user("u-1", teams=("team-1",), keys=("sk-a",))

    report = remove_team_member("team-1", "u-1", admin=admin)

    assert report.outcomes == []
    assert "sk-a" in admin.keys
    assert not admin.teams["team-1"].has_member("u-1")


def test_build_admin_client_uses_given_config() -> None:
    config = LiteLLMConfig(
        api_base="https://proxy.example.test",
        api_key="sk-admin",
        resilience=ResilienceConfig(name="litellm", base_url="https://proxy.example.test"),
    )

    client = build_admin_client(config)

    assert isinstance(client, LiteLLMAdminClient)
    assert isinstance(client, ProxyAdmin)
    assert isinstance(FakeAdmin(), ProxyAdmin)
